"""Error types raised by the revenue engine and its storage layer."""


class RevenueError(Exception):
    """Base class for revenue engine errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RevenueError):
    """Input rejected before any write was attempted."""

    kind = "validation"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(RevenueError):
    """Referenced record does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class StorageError(RevenueError):
    """Underlying database read or write failed."""

    kind = "storage"

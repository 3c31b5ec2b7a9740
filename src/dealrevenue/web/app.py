"""FastAPI application factory for the web API."""

from collections.abc import Callable
from datetime import date
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dealrevenue import __version__, audit
from dealrevenue.config import Config, load_config
from dealrevenue.errors import RevenueError

# HTTP status for each error kind
STATUS_BY_KIND = {
    "validation": 422,
    "not_found": 404,
    "storage": 500,
}


def error_response(kind: str, message: str, field: str | None = None) -> JSONResponse:
    """Structured failure body shared by routes and exception handlers."""
    content = {"success": False, "error": message, "kind": kind}
    if field:
        content["field"] = field
    return JSONResponse(status_code=STATUS_BY_KIND.get(kind, 500), content=content)


def create_app(
    config_path: Path | None = None,
    config: Config | None = None,
    clock: Callable[[], date] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config_path: Path to the configuration file.
        config: Already-loaded configuration; takes precedence over config_path.
        clock: Source of today's date for ongoing deals (defaults to date.today).

    Returns:
        Configured FastAPI application.
    """
    if config is None:
        config = load_config(config_path)

    audit.configure(enabled=config.logging.enabled)

    app = FastAPI(
        title="Deal Revenue",
        description="Monthly revenue schedules for CRM deals",
        version=__version__,
    )

    app.state.config = config
    app.state.clock = clock or date.today

    from dealrevenue.web.routes import deals, reports, revenue

    app.include_router(deals.router)
    app.include_router(revenue.router)
    app.include_router(reports.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.exception_handler(RevenueError)
    async def revenue_error_handler(request: Request, exc: RevenueError):
        """Render domain errors as structured JSON failures."""
        return error_response(exc.kind, exc.message, getattr(exc, "field", None))

    return app

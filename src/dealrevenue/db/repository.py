"""Data access layer using SQLAlchemy Core."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from .engine import create_db_engine, initialize_schema
from .tables import deal_revenue_items, deals

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")

# Deal columns callers may change after creation
DEAL_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "status",
        "audit_fee",
        "retainer_monthly",
        "custom_dev_fee",
        "revenue_start_date",
        "revenue_end_date",
        "currency",
    }
)


@dataclass
class Deal:
    """Deal record (revenue-relevant fields only)."""

    id: str
    title: str
    status: str
    audit_fee: Decimal
    retainer_monthly: Decimal
    custom_dev_fee: Decimal
    revenue_start_date: date | None
    revenue_end_date: date | None
    currency: str
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_ongoing(self) -> bool:
        """Tracked deal without an end date."""
        return self.revenue_start_date is not None and self.revenue_end_date is None


@dataclass
class RevenueItem:
    """Stored override for one (deal, month, item_type) cell."""

    id: int | None
    deal_id: str
    month: str  # YYYY-MM-01
    item_type: str  # retainer, audit_fee, custom_dev_fee
    amount: Decimal
    notes: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


def _row_to_dict(row: Any) -> dict:
    """Convert SQLAlchemy row to dict."""
    return dict(row._mapping)


def _format_datetime(dt: datetime | str | None) -> str | None:
    """Format datetime to ISO string."""
    if dt is None:
        return None
    if isinstance(dt, str):
        return dt
    return dt.isoformat()


def _money(value: Any) -> Decimal:
    """Read a money column; NULL reads as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _deal_from_row(row: Any) -> Deal:
    row_dict = _row_to_dict(row)
    for key in ("audit_fee", "retainer_monthly", "custom_dev_fee"):
        row_dict[key] = _money(row_dict[key])
    row_dict["created_at"] = _format_datetime(row_dict["created_at"])
    row_dict["updated_at"] = _format_datetime(row_dict["updated_at"])
    return Deal(**row_dict)


def _item_from_row(row: Any) -> RevenueItem:
    row_dict = _row_to_dict(row)
    row_dict["amount"] = _money(row_dict["amount"])
    row_dict["created_at"] = _format_datetime(row_dict["created_at"])
    row_dict["updated_at"] = _format_datetime(row_dict["updated_at"])
    return RevenueItem(**row_dict)


class Database:
    """Database connection and operations using SQLAlchemy Core.

    Every SQLAlchemy failure leaves this class as a ``StorageError`` so callers
    only deal with the engine's own error types.
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or full connection string.
        """
        self._engine: Engine | None = None
        self._db_path = db_path

    @property
    def engine(self) -> Engine:
        """Get or create database engine."""
        if self._engine is None:
            self._engine = create_db_engine(self._db_path)
        return self._engine

    @property
    def dialect(self) -> str:
        """Get database dialect (sqlite, postgresql)."""
        return self.engine.dialect.name

    def close(self) -> None:
        """Close database connection."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def initialize(self) -> None:
        """Initialize database schema."""
        with self._storage("initialize schema"):
            initialize_schema(self.engine)

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        """Translate SQLAlchemy failures into StorageError."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("storage.failed", operation=operation, error=str(e))
            raise StorageError(f"Failed to {operation}") from e

    def _upsert(self, table, values: dict, index_elements: list[str], update_columns: list[str]):
        """Create dialect-appropriate upsert statement."""
        if self.dialect == "postgresql":
            stmt = pg_insert(table).values(**values)
        else:  # sqlite
            stmt = sqlite_insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=index_elements,
            set_={col: getattr(stmt.excluded, col) for col in update_columns},
        )

    # Deal operations

    def create_deal(
        self,
        title: str,
        audit_fee: Decimal = ZERO,
        retainer_monthly: Decimal = ZERO,
        custom_dev_fee: Decimal = ZERO,
        revenue_start_date: date | None = None,
        revenue_end_date: date | None = None,
        currency: str = "USD",
        status: str = "open",
        deal_id: str | None = None,
    ) -> Deal:
        """Insert a new deal and return it."""
        now = datetime.now()
        values = {
            "id": deal_id or str(uuid.uuid4()),
            "title": title,
            "status": status,
            "audit_fee": audit_fee,
            "retainer_monthly": retainer_monthly,
            "custom_dev_fee": custom_dev_fee,
            "revenue_start_date": revenue_start_date,
            "revenue_end_date": revenue_end_date,
            "currency": currency,
            "created_at": now,
            "updated_at": now,
        }
        with self._storage("create deal"), self.engine.begin() as conn:
            conn.execute(deals.insert().values(**values))
        return self.get_deal(values["id"])

    def get_deal(self, deal_id: str) -> Deal | None:
        """Get deal by ID."""
        with self._storage("load deal"), self.engine.connect() as conn:
            row = conn.execute(select(deals).where(deals.c.id == deal_id)).fetchone()
        if row:
            return _deal_from_row(row)
        return None

    def list_deals(self, status: str | None = None) -> list[Deal]:
        """List deals, optionally filtered by status, ordered by title."""
        stmt = select(deals).order_by(deals.c.title, deals.c.id)
        if status:
            stmt = stmt.where(deals.c.status == status)
        with self._storage("list deals"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_deal_from_row(row) for row in rows]

    def list_deals_by_status(self, statuses: list[str] | tuple[str, ...]) -> list[Deal]:
        """List deals whose status is one of ``statuses``."""
        stmt = (
            select(deals)
            .where(deals.c.status.in_(list(statuses)))
            .order_by(deals.c.title, deals.c.id)
        )
        with self._storage("list deals"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_deal_from_row(row) for row in rows]

    def update_deal(self, deal_id: str, **fields: Any) -> Deal | None:
        """Update deal fields.

        Returns:
            Updated Deal, or None if the deal does not exist.

        Raises:
            ValueError: If a field is not updatable.
        """
        unknown = set(fields) - DEAL_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update deal fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        values["updated_at"] = datetime.now()
        with self._storage("update deal"), self.engine.begin() as conn:
            result = conn.execute(
                update(deals).where(deals.c.id == deal_id).values(**values)
            )
            if result.rowcount == 0:
                return None
        return self.get_deal(deal_id)

    def delete_deal(self, deal_id: str) -> bool:
        """Delete a deal. Its revenue items are removed by the foreign key cascade."""
        with self._storage("delete deal"), self.engine.begin() as conn:
            result = conn.execute(delete(deals).where(deals.c.id == deal_id))
        return result.rowcount > 0

    # Revenue item operations

    def upsert_revenue_item(
        self,
        deal_id: str,
        month: str,
        item_type: str,
        amount: Decimal,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> RevenueItem:
        """Write or replace the single row for (deal_id, month, item_type).

        Concurrent writers to the same cell resolve last-write-wins on the
        unique key.
        """
        now = datetime.now()
        values = {
            "deal_id": deal_id,
            "month": month,
            "item_type": item_type,
            "amount": amount,
            "notes": notes,
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        stmt = self._upsert(
            deal_revenue_items,
            values,
            index_elements=["deal_id", "month", "item_type"],
            update_columns=["amount", "notes", "created_by", "updated_at"],
        )
        with self._storage("save revenue item"), self.engine.begin() as conn:
            conn.execute(stmt)
            row = conn.execute(
                select(deal_revenue_items).where(
                    deal_revenue_items.c.deal_id == deal_id,
                    deal_revenue_items.c.month == month,
                    deal_revenue_items.c.item_type == item_type,
                )
            ).fetchone()
        return _item_from_row(row)

    def get_revenue_item(self, deal_id: str, month: str, item_type: str) -> RevenueItem | None:
        """Get the amendment for one cell, if any."""
        stmt = select(deal_revenue_items).where(
            deal_revenue_items.c.deal_id == deal_id,
            deal_revenue_items.c.month == month,
            deal_revenue_items.c.item_type == item_type,
        )
        with self._storage("load revenue item"), self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        if row:
            return _item_from_row(row)
        return None

    def get_revenue_items_for_deal(self, deal_id: str) -> list[RevenueItem]:
        """Get all amendments for a deal ordered by month, then item type."""
        stmt = (
            select(deal_revenue_items)
            .where(deal_revenue_items.c.deal_id == deal_id)
            .order_by(deal_revenue_items.c.month, deal_revenue_items.c.item_type)
        )
        with self._storage("load revenue items"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_item_from_row(row) for row in rows]

    def get_revenue_items_for_deals(self, deal_ids: list[str]) -> dict[str, list[RevenueItem]]:
        """Get amendments for several deals in one query, grouped by deal ID."""
        result: dict[str, list[RevenueItem]] = {deal_id: [] for deal_id in deal_ids}
        if not deal_ids:
            return result

        stmt = (
            select(deal_revenue_items)
            .where(deal_revenue_items.c.deal_id.in_(deal_ids))
            .order_by(deal_revenue_items.c.month, deal_revenue_items.c.item_type)
        )
        with self._storage("load revenue items"), self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        for row in rows:
            item = _item_from_row(row)
            result[item.deal_id].append(item)
        return result

    def delete_revenue_item(self, deal_id: str, month: str, item_type: str) -> bool:
        """Delete the amendment for one cell.

        Returns:
            True if a row was removed, False if there was nothing to remove.
        """
        stmt = delete(deal_revenue_items).where(
            deal_revenue_items.c.deal_id == deal_id,
            deal_revenue_items.c.month == month,
            deal_revenue_items.c.item_type == item_type,
        )
        with self._storage("delete revenue item"), self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount > 0

"""SQLAlchemy table definitions for deal revenue tracking."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

# Use naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Money columns
MONEY = Numeric(14, 2)

ITEM_TYPES = ("retainer", "audit_fee", "custom_dev_fee")
DEAL_STATUSES = ("open", "won", "lost")

# Schema version tracking
schema_version = Table(
    "schema_version",
    metadata,
    Column("version", Integer, primary_key=True),
    Column("applied_at", DateTime, server_default=func.now()),
)

# Deals (revenue-relevant subset of the CRM deal record)
deals = Table(
    "deals",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID
    Column("title", String(500), nullable=False),
    Column("status", String(20), nullable=False, server_default="open"),
    Column("audit_fee", MONEY, server_default="0"),
    Column("retainer_monthly", MONEY, server_default="0"),
    Column("custom_dev_fee", MONEY, server_default="0"),
    Column("revenue_start_date", Date),
    Column("revenue_end_date", Date),
    Column("currency", String(3), nullable=False, server_default="USD"),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
    CheckConstraint(
        "status IN ('open', 'won', 'lost')",
        name="status_check",
    ),
)

Index("idx_deals_status", deals.c.status)

# Per-month, per-line-item overrides ("amendments")
deal_revenue_items = Table(
    "deal_revenue_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "deal_id",
        String(36),
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("month", String(10), nullable=False),  # YYYY-MM-01
    Column("item_type", String(20), nullable=False),
    # No range check: stored values are read back as-is
    Column("amount", MONEY, nullable=False),
    Column("notes", Text),
    Column("created_by", String(200)),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now()),
    UniqueConstraint(
        "deal_id",
        "month",
        "item_type",
        name="uq_deal_revenue_items_cell",
    ),
    CheckConstraint(
        "item_type IN ('retainer', 'audit_fee', 'custom_dev_fee')",
        name="item_type_check",
    ),
)

Index("idx_deal_revenue_items_deal", deal_revenue_items.c.deal_id)

SCHEMA_VERSION = 1

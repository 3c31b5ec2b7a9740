"""Database layer with SQLAlchemy Core abstraction.

Supports SQLite (default) and PostgreSQL for production.
"""

from .engine import create_db_engine, database_url, initialize_schema
from .repository import Database, Deal, RevenueItem
from .tables import DEAL_STATUSES, ITEM_TYPES, SCHEMA_VERSION, metadata

__all__ = [
    "DEAL_STATUSES",
    "Database",
    "Deal",
    "ITEM_TYPES",
    "RevenueItem",
    "SCHEMA_VERSION",
    "create_db_engine",
    "database_url",
    "initialize_schema",
    "metadata",
]

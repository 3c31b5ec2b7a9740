"""Engine setup for the revenue store (SQLite file or PostgreSQL URL)."""

from pathlib import Path

from sqlalchemy import create_engine, event, select
from sqlalchemy.engine import URL, Engine, make_url

from .tables import SCHEMA_VERSION, metadata, schema_version


def database_url(location: str | Path) -> URL:
    """Parse a configured database location.

    A bare path (no ``scheme://``) is treated as a SQLite file.
    """
    location = str(location)
    if "://" not in location:
        location = f"sqlite:///{location}"
    return make_url(location)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # Amendments cascade with their deal; SQLite only enforces this per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(location: str | Path) -> Engine:
    """Create an engine for a SQLite path or a SQLAlchemy URL.

    Raises:
        ValueError: For backends other than SQLite and PostgreSQL.
    """
    url = database_url(location)
    backend = url.get_backend_name()

    if backend == "sqlite":
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_foreign_keys)
        return engine

    if backend == "postgresql":
        return create_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True)

    raise ValueError(f"Unsupported database dialect: {backend}")


def initialize_schema(engine: Engine) -> None:
    """Create missing tables and stamp the schema version on first run."""
    metadata.create_all(engine)

    with engine.begin() as conn:
        stamped = conn.execute(select(schema_version.c.version).limit(1)).first()
        if stamped is None:
            conn.execute(schema_version.insert().values(version=SCHEMA_VERSION))

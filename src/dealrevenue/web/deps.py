"""FastAPI dependency injection for the web API."""

from typing import Generator

from fastapi import Depends, Request

from dealrevenue.config import Config
from dealrevenue.db import Database
from dealrevenue.revenue.service import RevenueService


def get_config(request: Request) -> Config:
    """Get the application configuration from app state."""
    return request.app.state.config


def get_db(config: Config = Depends(get_config)) -> Generator[Database, None, None]:
    """Get a database connection.

    Yields a Database instance that is automatically closed after the request.
    """
    db = Database(config.database.path)
    db.initialize()
    try:
        yield db
    finally:
        db.close()


def get_revenue_service(
    request: Request,
    config: Config = Depends(get_config),
    db: Database = Depends(get_db),
) -> RevenueService:
    """Build the revenue service for this request using the app clock."""
    return RevenueService(
        db,
        clock=request.app.state.clock,
        default_currency=config.revenue.default_currency,
    )

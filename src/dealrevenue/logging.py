"""Structured logging for revenue events (Splunk key=value or JSON)."""

import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import structlog

from .config import Config

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def plain_values(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Render Decimal amounts as floats and dates as ISO strings."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = float(value)
        elif isinstance(value, (date, datetime)):
            event_dict[key] = value.isoformat()
    return event_dict


def splunk_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> str:
    """Format log entries in Splunk key=value format.

    Format: 2026-01-08T12:15:00Z INFO  revenue_item.upserted deal_id=... month=2024-02-01
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    level = event_dict.pop("level", "INFO").upper()
    event = event_dict.pop("event", "")

    kvs = []
    for key, value in sorted(event_dict.items()):
        if key.startswith("_"):
            continue
        if isinstance(value, str) and " " in value:
            value = f'"{value}"'
        kvs.append(f"{key}={value}")

    return " ".join([f"{timestamp} {level:5} {event}", *kvs])


def json_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Stamp UTC time and an upper-case level before JSON rendering."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    event_dict["level"] = event_dict.get("level", "info").upper()
    return event_dict


def configure_logging(config: Config) -> None:
    """Route structlog through stdlib handlers in the configured format."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.logging.file:
        config.logging.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(
        format="%(message)s",
        level=LEVELS.get(config.logging.level, logging.INFO),
        handlers=handlers,
        force=True,
    )

    processors: list[Any] = [structlog.stdlib.add_log_level, plain_values]
    if config.logging.format == "json":
        processors += [json_processor, structlog.processors.JSONRenderer()]
    else:
        processors.append(splunk_processor)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

"""Deal revenue schedules: monthly revenue ledgers with per-month amendments."""

__version__ = "0.1.0"

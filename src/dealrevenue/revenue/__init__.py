"""Revenue schedule engine: default generation, amendment merging, mutations."""

from .actions import ActionResponse
from .reports import MonthlyRevenueData, monthly_revenue
from .schedule import (
    DefaultMonth,
    MonthlyRevenueRow,
    RevenueSchedule,
    RevenueTotals,
    build_schedule,
    generate_default_schedule,
    merge_schedule,
)
from .service import RevenueService

__all__ = [
    "ActionResponse",
    "DefaultMonth",
    "MonthlyRevenueData",
    "MonthlyRevenueRow",
    "RevenueSchedule",
    "RevenueService",
    "RevenueTotals",
    "build_schedule",
    "generate_default_schedule",
    "merge_schedule",
    "monthly_revenue",
]

"""Outage schedule monitor.

Fills the DTEK shutdowns address form in a headless browser, extracts the
hourly outage table, merges it into periods and posts changes to Telegram.
"""

from src.shutdowns.classifier import classify
from src.shutdowns.merger import merge_periods
from src.shutdowns.models import (
    AddressQuery,
    CellClassification,
    CellRecord,
    MergedPeriod,
    ProcessedSchedule,
)
from src.shutdowns.parser import ScheduleExtractor
from src.shutdowns.processing import schedules_equal

__all__ = [
    "AddressQuery",
    "CellClassification",
    "CellRecord",
    "MergedPeriod",
    "ProcessedSchedule",
    "ScheduleExtractor",
    "classify",
    "merge_periods",
    "schedules_equal",
]

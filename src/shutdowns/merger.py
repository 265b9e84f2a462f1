"""Merge classified half-hour cells into contiguous outage periods.

Cells are grouped by their table date first; cells from different dates never
merge, even when one ends at 24:00 and the next starts at 00:00. Date groups
keep the order in which their first cell appears (the page lists today's table
before tomorrow's), and periods inside a group ascend by start time.
"""

import re
from typing import Iterable

from src.shutdowns.classifier import SlotInterval, format_minutes, slot_interval
from src.shutdowns.logging import get_logger
from src.shutdowns.models import CellRecord, MergedPeriod

log = get_logger(__name__)

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def merge_periods(cells: Iterable[CellRecord]) -> list[MergedPeriod]:
    """Coalesce cells into sorted, non-overlapping, non-touching periods.

    Cells whose time-slot label does not parse are dropped.
    """
    intervals: list[tuple[str | None, SlotInterval]] = []
    dropped = 0
    for cell in cells:
        interval = slot_interval(cell.time_slot_label, cell.classification)
        if interval is None:
            dropped += 1
            continue
        intervals.append((cell.date, interval))

    if dropped:
        log.debug("cells_dropped", count=dropped)
    return _coalesce(intervals)


def remerge(periods: Iterable[MergedPeriod]) -> list[MergedPeriod]:
    """Run the merge again over already merged periods.

    ``remerge(merge_periods(cells)) == merge_periods(cells)`` for any cells.
    """
    intervals: list[tuple[str | None, SlotInterval]] = []
    for period in periods:
        start = _clock_minutes(period.start_time)
        end = _clock_minutes(period.end_time)
        if start is None or end is None or end <= start:
            continue
        intervals.append(
            (period.date, SlotInterval(start, end, period.start_time, period.end_time))
        )
    return _coalesce(intervals)


def _clock_minutes(value: str) -> int | None:
    match = _CLOCK_RE.match(value or "")
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def _coalesce(intervals: list[tuple[str | None, SlotInterval]]) -> list[MergedPeriod]:
    groups: dict[str | None, list[SlotInterval]] = {}
    for date, interval in intervals:
        groups.setdefault(date, []).append(interval)

    merged: list[MergedPeriod] = []
    for date, group in groups.items():
        # sorted() is stable, equal starts keep page order
        ordered = sorted(group, key=lambda interval: interval.start_minutes)

        current_start = ordered[0].start_minutes
        current_end = ordered[0].end_minutes
        for interval in ordered[1:]:
            if interval.start_minutes <= current_end:
                current_end = max(current_end, interval.end_minutes)
                continue
            merged.append(_period(current_start, current_end, date))
            current_start, current_end = interval.start_minutes, interval.end_minutes
        merged.append(_period(current_start, current_end, date))

    return merged


def _period(start: int, end: int, date: str | None) -> MergedPeriod:
    return MergedPeriod(
        start_time=format_minutes(start), end_time=format_minutes(end), date=date
    )

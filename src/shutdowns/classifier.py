"""Cell classification and time-slot arithmetic.

The shutdowns table marks every hour cell with CSS classes:

  td.cell-non-scheduled     -> power on
  td.cell-scheduled         -> outage for the whole hour
  td.cell-scheduled-maybe   -> possible outage, treated as the whole hour
  td.cell-first-half        -> outage in the first 30 minutes
  td.cell-second-half       -> outage in the last 30 minutes

Column headers carry labels like "05-06".
"""

import re
from typing import Iterable, NamedTuple

from src.shutdowns.models import CellClassification

NON_SCHEDULED = "cell-non-scheduled"
FIRST_HALF = "cell-first-half"
SECOND_HALF = "cell-second-half"
SCHEDULED_PREFIX = "cell-scheduled"

_LABEL_RE = re.compile(r"^\s*(\d{1,2})\s*[-–]\s*(\d{1,2})\s*$")


class SlotInterval(NamedTuple):
    start_minutes: int
    end_minutes: int
    start_label: str
    end_label: str


def classify(style_classes: Iterable[str] | None) -> CellClassification:
    """Map the class tokens of one table cell to its outage state.

    Never raises: unknown or missing tokens give ``CellClassification.NONE``.
    """
    if not style_classes:
        return CellClassification.NONE
    if isinstance(style_classes, str):
        style_classes = style_classes.split()

    tokens = {token.strip() for token in style_classes if isinstance(token, str)}

    if NON_SCHEDULED in tokens:
        return CellClassification.NONE
    if FIRST_HALF in tokens:
        return CellClassification.FIRST_HALF
    if SECOND_HALF in tokens:
        return CellClassification.SECOND_HALF
    if any(token.startswith(SCHEDULED_PREFIX) for token in tokens):
        return CellClassification.FULL
    return CellClassification.NONE


def parse_slot_label(label: str | None) -> tuple[int, int] | None:
    """Parse ``"HH-HH"`` into ``(start_hour, end_hour)``.

    The start hour must fall in [0, 24) and the end hour in [0, 24]; the last
    column of a day is labelled "23-24".
    """
    if not label:
        return None
    match = _LABEL_RE.match(label)
    if not match:
        return None
    start_hour, end_hour = int(match.group(1)), int(match.group(2))
    if not 0 <= start_hour < 24 or not 0 <= end_hour <= 24:
        return None
    return start_hour, end_hour


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM`` (1440 -> ``24:00``)."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_interval(
    label: str | None, classification: CellClassification
) -> SlotInterval | None:
    """Convert a classified cell into its outage interval.

    Returns None for unparseable labels, ``NONE`` cells and empty intervals.
    """
    hours = parse_slot_label(label)
    if hours is None:
        return None
    start_hour, end_hour = hours

    if classification is CellClassification.FULL:
        start, end = start_hour * 60, end_hour * 60
    elif classification is CellClassification.FIRST_HALF:
        # The half always sits in the label's first hour
        start, end = start_hour * 60, start_hour * 60 + 30
    elif classification is CellClassification.SECOND_HALF:
        if end_hour == start_hour:
            end_hour = start_hour + 1
        start, end = start_hour * 60 + 30, end_hour * 60
    else:
        return None

    if end <= start:
        return None
    return SlotInterval(start, end, format_minutes(start), format_minutes(end))

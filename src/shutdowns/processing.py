"""Turn a persisted schedule record into a comparable, notifiable schedule."""

from src.shutdowns.merger import merge_periods
from src.shutdowns.models import PersistedSchedule, ProcessedSchedule


def build_processed_schedule(record: PersistedSchedule) -> ProcessedSchedule:
    """Merge the record's cells into periods, carrying update date and address."""
    return ProcessedSchedule(
        update_date=record.update_date,
        address=record.address.model_copy(),
        periods=merge_periods(record.outages),
    )


def schedules_equal(a: ProcessedSchedule, b: ProcessedSchedule) -> bool:
    """Exact, order-sensitive comparison used to decide whether to notify.

    Address fields compare with missing treated as empty. Periods compare
    pairwise by index on start, end and date.
    """
    if a.update_date != b.update_date:
        return False

    for field in ("city", "street", "building", "queue"):
        if (getattr(a.address, field) or "") != (getattr(b.address, field) or ""):
            return False

    if len(a.periods) != len(b.periods):
        return False

    for period_a, period_b in zip(a.periods, b.periods):
        if (
            period_a.start_time != period_b.start_time
            or period_a.end_time != period_b.end_time
            or period_a.date != period_b.date
        ):
            return False

    return True

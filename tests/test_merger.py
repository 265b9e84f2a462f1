"""Unit tests for PeriodMerger."""

from src.shutdowns.merger import merge_periods, remerge
from src.shutdowns.models import CellClassification, CellRecord, MergedPeriod

FULL = CellClassification.FULL
FIRST = CellClassification.FIRST_HALF
SECOND = CellClassification.SECOND_HALF


def cell(label, classification=FULL, date="26.11.25"):
    return CellRecord(classification=classification, time_slot_label=label, date=date)


def spans(periods):
    return [(p.date, p.start_time, p.end_time) for p in periods]


class TestMergePeriods:
    def test_adjacent_hours_merge(self):
        periods = merge_periods([cell("06-07"), cell("07-08")])
        assert spans(periods) == [("26.11.25", "06:00", "08:00")]

    def test_gap_keeps_periods_apart(self):
        periods = merge_periods([cell("06-07"), cell("09-10")])
        assert spans(periods) == [
            ("26.11.25", "06:00", "07:00"),
            ("26.11.25", "09:00", "10:00"),
        ]

    def test_half_hours_join_full_hours(self):
        periods = merge_periods(
            [cell("05-06", SECOND), cell("06-07"), cell("07-08"), cell("08-09", FIRST)]
        )
        assert spans(periods) == [("26.11.25", "05:30", "08:30")]

    def test_two_halves_of_one_hour_merge(self):
        periods = merge_periods([cell("10-11", FIRST), cell("10-11", SECOND)])
        assert spans(periods) == [("26.11.25", "10:00", "11:00")]

    def test_first_half_then_next_full_hour_does_not_touch(self):
        periods = merge_periods([cell("09-10", FIRST), cell("10-11")])
        assert spans(periods) == [
            ("26.11.25", "09:00", "09:30"),
            ("26.11.25", "10:00", "11:00"),
        ]

    def test_unordered_input_is_sorted(self):
        periods = merge_periods([cell("18-19"), cell("06-07"), cell("12-13")])
        assert [p.start_time for p in periods] == ["06:00", "12:00", "18:00"]

    def test_duplicates_and_overlaps_collapse(self):
        periods = merge_periods([cell("06-07"), cell("06-07"), cell("06-07", FIRST)])
        assert spans(periods) == [("26.11.25", "06:00", "07:00")]

    def test_dates_never_merge(self):
        periods = merge_periods(
            [cell("23-24", date="26.11.25"), cell("00-01", date="27.11.25")]
        )
        assert spans(periods) == [
            ("26.11.25", "23:00", "24:00"),
            ("27.11.25", "00:00", "01:00"),
        ]

    def test_date_groups_keep_page_order(self):
        periods = merge_periods(
            [
                cell("10-11", date="27.11.25"),
                cell("08-09", date="26.11.25"),
                cell("05-06", date="27.11.25"),
            ]
        )
        assert spans(periods) == [
            ("27.11.25", "05:00", "06:00"),
            ("27.11.25", "10:00", "11:00"),
            ("26.11.25", "08:00", "09:00"),
        ]

    def test_cells_without_date_form_their_own_group(self):
        periods = merge_periods([cell("06-07", date=None), cell("07-08", date=None)])
        assert spans(periods) == [(None, "06:00", "08:00")]

    def test_unparseable_and_none_cells_are_dropped(self):
        periods = merge_periods(
            [
                cell("garbage"),
                cell("06-07", CellClassification.NONE),
                cell("25-26"),
                cell("12-13"),
            ]
        )
        assert spans(periods) == [("26.11.25", "12:00", "13:00")]

    def test_empty_input(self):
        assert merge_periods([]) == []

    def test_whole_day(self):
        labels = [f"{h:02d}-{h + 1:02d}" for h in range(24)]
        periods = merge_periods([cell(label) for label in labels])
        assert spans(periods) == [("26.11.25", "00:00", "24:00")]

    def test_output_is_strictly_separated(self):
        periods = merge_periods(
            [cell("01-02"), cell("03-04", SECOND), cell("04-05"), cell("07-08", FIRST)]
        )
        for earlier, later in zip(periods, periods[1:]):
            assert earlier.start_time < earlier.end_time
            assert earlier.end_time < later.start_time


class TestRemerge:
    def test_merge_is_idempotent(self):
        cells = [
            cell("05-06", SECOND),
            cell("06-07"),
            cell("09-10", FIRST),
            cell("23-24"),
            cell("00-01", date="27.11.25"),
            cell("01-02", FIRST, date="27.11.25"),
        ]
        merged = merge_periods(cells)
        assert remerge(merged) == merged

    def test_remerge_joins_touching_periods(self):
        periods = [
            MergedPeriod(start_time="06:00", end_time="07:00", date="26.11.25"),
            MergedPeriod(start_time="07:00", end_time="07:30", date="26.11.25"),
        ]
        assert spans(remerge(periods)) == [("26.11.25", "06:00", "07:30")]

    def test_remerge_skips_malformed_times(self):
        periods = [
            MergedPeriod(start_time="bad", end_time="07:00"),
            MergedPeriod(start_time="08:00", end_time="08:00"),
        ]
        assert remerge(periods) == []

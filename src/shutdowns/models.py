"""Pydantic models for outage schedule data.

All data structures use Pydantic v2. Models that are written to disk serialize
with camelCase keys (``updateDate``, ``startTime``), the key style of the
schedule files written by the earlier Node tooling. Cell records from those
files (``className`` / ``timeSlot``) still load.
"""

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddressQuery(BaseModel):
    """Address typed into the shutdowns form. Constant for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    city: str
    street: str | None = None
    building: str | None = None

    def describe(self) -> str:
        return ", ".join(part for part in (self.city, self.street, self.building) if part)


class CellClassification(str, Enum):
    """Outage state of one hour cell in the schedule table."""

    NONE = "none"
    FIRST_HALF = "first-half"
    SECOND_HALF = "second-half"
    FULL = "full"


class CellRecord(_CamelModel):
    """One classified table cell, e.g. ``FULL`` for time slot ``"06-07"``."""

    classification: CellClassification = Field(
        validation_alias=AliasChoices("classification", "className")
    )
    # "HH-HH" from the column header
    time_slot_label: str = Field(
        validation_alias=AliasChoices("timeSlotLabel", "time_slot_label", "timeSlot")
    )
    date: str | None = None  # "26.11.25" from the table's date tab

    @field_validator("classification", mode="before")
    @classmethod
    def _classify_style_token(cls, value):
        # Records saved before classification existed hold the raw "cell-*" token
        if isinstance(value, str) and value.startswith("cell-"):
            from src.shutdowns.classifier import classify

            return classify({value})
        return value


class MergedPeriod(_CamelModel):
    """A maximal contiguous outage interval, ``start_time < end_time``."""

    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM", "24:00" for end of day
    date: str | None = None


class ScheduleAddress(BaseModel):
    """Address as stored next to a schedule; ``queue`` is the outage group label."""

    city: str
    street: str = ""
    building: str = ""
    queue: str | None = None


class ProcessedSchedule(_CamelModel):
    """Unit of change detection and of delivery to subscribers."""

    update_date: str | None = None
    address: ScheduleAddress
    periods: list[MergedPeriod] = Field(default_factory=list)


class PersistedSchedule(_CamelModel):
    """Schedule record written to disk after every cycle.

    One versioned schema: every field except ``address`` is optional and takes
    its default when missing from an older file.
    """

    version: int = SCHEMA_VERSION
    update_date: str | None = None
    address: ScheduleAddress
    outages: list[CellRecord] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Everything ScheduleExtractor pulls out of one rendered page."""

    cells: list[CellRecord] = Field(default_factory=list)
    update_date: str | None = None
    queue: str | None = None
    address: ScheduleAddress


class FormTimings(BaseModel):
    """Bounded-wait budgets for the address form, in milliseconds."""

    request_timeout_ms: int = 20000
    modal_timeout_ms: int = 5000
    field_visible_timeout_ms: int = 1000
    suggestion_timeout_ms: int = 8000
    suggestion_click_timeout_ms: int = 1000
    settle_ms: int = 500
    poll_interval_ms: int = 100


class NotificationResult(BaseModel):
    """Outcome reported by the notifier; failures are logged, never raised."""

    ok: bool
    error: str | None = None


class CycleResult(BaseModel):
    """Outcome of one fetch → extract → compare → notify cycle."""

    status: str  # "changed", "unchanged", "failed" or "skipped"
    notified: bool = False
    schedule: ProcessedSchedule | None = None
    error: str | None = None

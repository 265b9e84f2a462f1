"""ScheduleExtractor - turns the rendered shutdowns page into cell records.

DOM structure of the rendered page:
  div#discon-fact
    div.dates -> div.date[rel=<unix ts>] per day tab
      span[rel="date"] -> "26.11.25"
    div.discon-fact-tables
      div.discon-fact-table[rel=<unix ts>] per day
        table
          thead tr -> th[colspan=2] "Часові проміжки" + th per hour ("00-01" ... "23-24")
          tbody tr -> td label column(s) + td.cell-* per hour
    span.update -> "26.11.2025 10:15"
  div#group-name -> "Черга 3.1" (inside the address form)

Older layouts render a single weekly table under #tableRenderElem with one row
per weekday; those rows are dated by their weekday label instead.

Payloads that are not markup (a JSON document from an API endpoint) go through
a generic record-array search instead.
"""

import json
import math
import re
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Tag

from src.shutdowns.classifier import classify
from src.shutdowns.logging import get_logger
from src.shutdowns.models import (
    AddressQuery,
    CellClassification,
    CellRecord,
    ExtractionResult,
    ScheduleAddress,
)

log = get_logger(__name__)

_SLOT_RE = re.compile(r"(\d{1,2})\s*[-–—]\s*(\d{1,2})")
_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})")

# Record key aliases accepted by the structured-data path
_SLOT_KEYS = ("timeSlot", "timeSlotLabel", "time_slot", "slot", "hours")
_CLASS_KEYS = ("classification", "className", "class", "type", "status")
_DATE_KEYS = ("date", "day", "scheduleDate")
_START_KEYS = ("start", "startTime", "from")
_END_KEYS = ("end", "endTime", "to")
_CITY_KEYS = ("city", "City")
_STREET_KEYS = ("street", "Street", "address")
_BUILDING_KEYS = ("building", "Building", "house", "house_num")
_UPDATE_KEYS = ("updateDate", "update", "updated", "updatedAt")
_QUEUE_KEYS = ("queue", "group", "groupName")


class ScheduleExtractor:
    """Parses rendered markup (or structured data) into an ExtractionResult."""

    CONTAINER_SELECTORS = (
        "#discon-fact",
        ".discon-schedule-table",
        "#tableRenderElem",
    )
    FACT_TABLE = "div.discon-fact-table"
    DATE_TAB = "div.dates div.date"
    DATE_LABEL = "span[rel='date']"
    UPDATE_LABEL = "span.update"
    QUEUE_LABEL = "#group-name"

    def __init__(self, timezone: str = "Europe/Kyiv") -> None:
        self.timezone = ZoneInfo(timezone)

    def extract(
        self, payload: str | dict | list, address: AddressQuery
    ) -> ExtractionResult:
        """Extract cells, update date and queue for ``address``.

        Markup yielding no cells is retried as JSON before giving up.
        """
        if not isinstance(payload, str):
            return self.from_structured(payload, address)

        result = self.from_html(payload, address)
        if result.cells:
            return result

        try:
            structured = json.loads(payload)
        except ValueError as e:
            log.debug("json_fallback_skipped", reason=str(e)[:80])
            return result

        if not isinstance(structured, (dict, list)):
            return result
        log.info("json_fallback_used")
        return self.from_structured(structured, address)

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------
    def from_html(self, markup: str, address: AddressQuery) -> ExtractionResult:
        soup = BeautifulSoup(markup, "lxml")

        update_date = _label_text(soup, self.UPDATE_LABEL)
        queue = _label_text(soup, self.QUEUE_LABEL)
        if update_date is None:
            log.debug("update_date_not_found")
        if queue is None:
            log.debug("queue_not_found")

        cells: list[CellRecord] = []
        container = self._find_container(soup)
        if container is None:
            log.info("schedule_container_missing")
        else:
            for table, table_date in self._dated_tables(container):
                cells.extend(self._walk_table(table, table_date))

        log.info(
            "schedule_extracted",
            cells=len(cells),
            update_date=update_date,
            queue=queue,
        )
        return ExtractionResult(
            cells=cells,
            update_date=update_date,
            queue=queue,
            address=_address_from_query(address, queue),
        )

    def _find_container(self, soup: BeautifulSoup) -> Tag | None:
        for selector in self.CONTAINER_SELECTORS:
            container = soup.select_one(selector)
            if container is not None:
                return container
        return None

    def _dated_tables(self, container: Tag) -> list[tuple[Tag, str | None]]:
        """Pair every schedule table with its reference date."""
        fact_tables = container.select(self.FACT_TABLE)
        if not fact_tables:
            if container.name == "table":
                return [(container, None)]
            return [(table, None) for table in container.select("table")]

        tabs = container.select(self.DATE_TAB)
        tab_dates_by_rel: dict[str, str] = {}
        for tab in tabs:
            text = _label_text(tab, self.DATE_LABEL)
            if tab.get("rel") and text:
                tab_dates_by_rel[_attr(tab, "rel")] = text

        dated: list[tuple[Tag, str | None]] = []
        for index, fact_table in enumerate(fact_tables):
            table = fact_table.find("table")
            if table is None:
                continue
            rel = _attr(fact_table, "rel")
            table_date = tab_dates_by_rel.get(rel) if rel else None
            if table_date is None and index < len(tabs):
                table_date = _label_text(tabs[index], self.DATE_LABEL)
            if table_date is None and rel:
                table_date = self._format_timestamp(rel)
            dated.append((table, table_date))
        return dated

    def _format_timestamp(self, value: str) -> str | None:
        try:
            moment = datetime.fromtimestamp(int(value), tz=self.timezone)
        except (ValueError, OverflowError, OSError):
            return None
        return moment.strftime("%d.%m.%y")

    def _walk_table(self, table: Tag, table_date: str | None) -> list[CellRecord]:
        header_row = table.select_one("thead tr")
        body_rows = table.select("tbody tr")
        if header_row is None:
            rows = table.find_all("tr")
            if not rows:
                return []
            header_row, body_rows = rows[0], body_rows or rows[1:]
        elif not body_rows:
            # Rows left outside <tbody>; lxml does not wrap them
            body_rows = [
                row for row in table.find_all("tr") if row.find_parent("thead") is None
            ]

        slots = _header_slots(header_row)
        if not any(slots):
            log.debug("schedule_headers_missing", date=table_date)
            return []

        records: list[CellRecord] = []
        for row in body_rows:
            positioned = _expand_columns(row)
            width = sum(span for _, span in positioned)
            offset = max(0, width - len(slots))

            row_labels: list[str] = []
            slot_cells: list[tuple[Tag, str]] = []
            column = 0
            for cell, span in positioned:
                index = column - offset
                column += span
                label = slots[index] if 0 <= index < len(slots) else None
                if label is None:
                    text = cell.get_text(" ", strip=True)
                    if text:
                        row_labels.append(text)
                    continue
                if cell.name == "td":
                    slot_cells.append((cell, label))

            row_date = table_date or (" ".join(row_labels) or None)
            for cell, label in slot_cells:
                classification = classify(cell.get("class"))
                if classification is CellClassification.NONE:
                    continue
                records.append(
                    CellRecord(
                        classification=classification,
                        time_slot_label=label,
                        date=row_date,
                    )
                )
        return records

    # ------------------------------------------------------------------
    # Structured data
    # ------------------------------------------------------------------
    def from_structured(
        self, data: dict | list, address: AddressQuery
    ) -> ExtractionResult:
        """Generic extraction: first array of records found anywhere in ``data``."""
        records = [record for record in _find_array(data) if isinstance(record, dict)]

        cells: list[CellRecord] = []
        for record in records:
            cells.extend(_cells_from_record(record))

        root = data if isinstance(data, dict) else {}
        first = records[0] if records else {}
        queue = _pick(root, _QUEUE_KEYS) or _pick(first, _QUEUE_KEYS)
        update_date = _pick(root, _UPDATE_KEYS)

        city = _pick(first, _CITY_KEYS)
        street = _pick(first, _STREET_KEYS)
        building = _pick(first, _BUILDING_KEYS)
        result_address = ScheduleAddress(
            city=city or address.city,
            street=street or address.street or "",
            building=building or address.building or "",
            queue=queue,
        )

        log.info("structured_schedule_extracted", records=len(records), cells=len(cells))
        return ExtractionResult(
            cells=cells,
            update_date=update_date,
            queue=queue,
            address=result_address,
        )


def _address_from_query(address: AddressQuery, queue: str | None) -> ScheduleAddress:
    return ScheduleAddress(
        city=address.city,
        street=address.street or "",
        building=address.building or "",
        queue=queue,
    )


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _label_text(root: Tag, selector: str) -> str | None:
    element = root.select_one(selector)
    if element is None:
        return None
    text = " ".join(element.get_text(" ", strip=True).split())
    return text or None


def _colspan(cell: Tag) -> int:
    try:
        return max(1, int(_attr(cell, "colspan") or 1))
    except ValueError:
        return 1


def _expand_columns(row: Tag) -> list[tuple[Tag, int]]:
    return [(cell, _colspan(cell)) for cell in row.find_all(["td", "th"], recursive=False)]


def _header_slots(header_row: Tag) -> list[str | None]:
    """One entry per table column: ``"HH-HH"`` or None for non-slot headers."""
    slots: list[str | None] = []
    for cell, span in _expand_columns(header_row):
        match = _SLOT_RE.search(cell.get_text(" ", strip=True))
        label = f"{int(match.group(1)):02d}-{int(match.group(2)):02d}" if match else None
        slots.append(label)
        slots.extend([None] * (span - 1))
    return slots


def _find_array(data: Any) -> list:
    """First list holding at least one record (dict), depth first."""
    if isinstance(data, list):
        if any(isinstance(item, dict) for item in data):
            return data
        children = data
    elif isinstance(data, dict):
        children = data.values()
    else:
        return []

    for child in children:
        found = _find_array(child)
        if found:
            return found
    return []


def _pick(record: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _cells_from_record(record: dict) -> list[CellRecord]:
    date = _pick(record, _DATE_KEYS)
    token = _pick(record, _CLASS_KEYS)
    classification = _classification_from_token(token)
    if classification is CellClassification.NONE:
        return []

    slot = _pick(record, _SLOT_KEYS)
    if slot:
        match = _SLOT_RE.search(slot)
        if not match:
            return []
        label = f"{int(match.group(1)):02d}-{int(match.group(2)):02d}"
        return [CellRecord(classification=classification, time_slot_label=label, date=date)]

    start = _clock_minutes(_pick(record, _START_KEYS))
    end = _clock_minutes(_pick(record, _END_KEYS))
    if start is None or end is None or end <= start:
        return []
    return [
        CellRecord(classification=kind, time_slot_label=label, date=date)
        for kind, label in _hour_cells(start, end)
    ]


def _classification_from_token(token: str | None) -> CellClassification:
    if token is None:
        # A record listed among outages without a class is a full outage
        return CellClassification.FULL
    try:
        return CellClassification(token)
    except ValueError:
        return classify(token.split())


def _clock_minutes(value: str | None) -> int | None:
    if not value:
        return None
    match = _CLOCK_RE.search(value)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def _hour_cells(start: int, end: int) -> list[tuple[CellClassification, str]]:
    """Split ``[start, end)`` minutes into hour cells; unaligned pieces are dropped."""
    cells: list[tuple[CellClassification, str]] = []
    for hour in range(start // 60, math.ceil(end / 60)):
        hour_start, hour_end = hour * 60, (hour + 1) * 60
        piece_start, piece_end = max(start, hour_start), min(end, hour_end)
        label = f"{hour:02d}-{hour + 1:02d}"
        if piece_start == hour_start and piece_end == hour_end:
            cells.append((CellClassification.FULL, label))
        elif piece_start == hour_start and piece_end == hour_start + 30:
            cells.append((CellClassification.FIRST_HALF, label))
        elif piece_start == hour_start + 30 and piece_end == hour_end:
            cells.append((CellClassification.SECOND_HALF, label))
    return cells

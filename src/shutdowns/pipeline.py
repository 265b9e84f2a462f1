"""Fetch → extract → persist → compare → notify, once per scheduler tick.

The pipeline owns the browser (through its client) and the snapshot of the
last notified schedule. A failed cycle is logged and reported in the
CycleResult; it never raises, so the next tick runs normally.
"""

import asyncio
from typing import Protocol

from src.shutdowns.config import MonitorConfig
from src.shutdowns.logging import get_logger
from src.shutdowns.models import (
    AddressQuery,
    CycleResult,
    PersistedSchedule,
    ProcessedSchedule,
)
from src.shutdowns.notifier import TelegramNotifier
from src.shutdowns.parser import ScheduleExtractor
from src.shutdowns.processing import build_processed_schedule, schedules_equal
from src.shutdowns.storage import ScheduleStorage

log = get_logger(__name__)


class ScheduleSource(Protocol):
    async def fetch(self, address: AddressQuery) -> str | dict: ...

    async def close(self) -> None: ...


class MonitorPipeline:
    """Runs monitor cycles one at a time for a single address."""

    def __init__(
        self,
        address: AddressQuery,
        source: ScheduleSource,
        storage: ScheduleStorage,
        notifier: TelegramNotifier | None = None,
        extractor: ScheduleExtractor | None = None,
    ) -> None:
        self.address = address
        self.source = source
        self.storage = storage
        self.notifier = notifier
        self.extractor = extractor or ScheduleExtractor()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "MonitorPipeline":
        from src.shutdowns.client import ShutdownsClient
        from src.shutdowns.session import BrowserSession

        session = BrowserSession(headless=config.headless, user_agent=config.user_agent)
        client = ShutdownsClient(config.dtek_base_url, session, config.form_timings)
        storage = ScheduleStorage(config.storage_path, config.resolved_snapshot_path)

        notifier = None
        if config.telegram_enabled:
            notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
            log.info("telegram_enabled", chat_id=config.telegram_chat_id)
        else:
            log.warning("telegram_disabled", reason="token or chat id missing")

        return cls(
            config.address,
            client,
            storage,
            notifier,
            ScheduleExtractor(timezone=config.timezone),
        )

    async def run_cycle(self, *, notify: bool = True) -> CycleResult:
        """Run one full cycle. A tick that arrives mid-cycle is skipped."""
        if self._lock.locked():
            log.warning("cycle_skipped", reason="previous cycle still running")
            return CycleResult(status="skipped")

        async with self._lock:
            log.info("cycle_started", address=self.address.describe())
            try:
                payload = await self.source.fetch(self.address)
                # Parsing, file writes and the Telegram call are blocking
                return await asyncio.to_thread(self.process_payload, payload, notify=notify)
            except Exception as e:
                log.exception("cycle_failed", address=self.address.describe())
                return CycleResult(status="failed", error=f"{type(e).__name__}: {e}")

    def process_payload(self, payload: str | dict, *, notify: bool = True) -> CycleResult:
        """Extract, persist and compare a fetched payload; notify on change."""
        extraction = self.extractor.extract(payload, self.address)
        if not extraction.cells:
            log.warning("extraction_empty", address=self.address.describe())

        record = PersistedSchedule(
            update_date=extraction.update_date,
            address=extraction.address,
            outages=extraction.cells,
        )
        self.storage.save(record)

        processed = build_processed_schedule(record)
        return self._notify_if_changed(processed, notify=notify)

    def _notify_if_changed(
        self, processed: ProcessedSchedule, *, notify: bool
    ) -> CycleResult:
        snapshot = self.storage.load_snapshot()
        if snapshot is not None and schedules_equal(processed, snapshot):
            log.info("schedule_unchanged", periods=len(processed.periods))
            return CycleResult(status="unchanged", schedule=processed)

        log.info(
            "schedule_changed",
            periods=len(processed.periods),
            first_run=snapshot is None,
        )
        if not notify:
            log.info("notification_suppressed")
            return CycleResult(status="changed", schedule=processed)

        notified = False
        error = None
        if self.notifier is None:
            log.warning("notification_skipped", reason="notifier not configured")
        else:
            result = self.notifier.send_schedule(processed)
            notified, error = result.ok, result.error
            if not result.ok:
                log.error("notification_failed", error=result.error)

        # Saved even when delivery failed: each schedule state is sent at most once
        self.storage.save_snapshot(processed)
        log.info("cycle_complete", notified=notified)
        return CycleResult(status="changed", notified=notified, schedule=processed, error=error)

    async def wait_idle(self) -> None:
        """Return once no cycle is in flight; a running cycle is not cancelled."""
        async with self._lock:
            pass

    async def close(self) -> None:
        await self.source.close()

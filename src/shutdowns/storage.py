"""JSON persistence for the schedule record and the last notified snapshot.

Both files are rewritten in full (never appended) as two-space indented JSON.
A file that is missing, unreadable or no longer matches the schema reads as
"no prior state".
"""

import json
import os
import tempfile
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from src.shutdowns.logging import get_logger
from src.shutdowns.models import PersistedSchedule, ProcessedSchedule

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ScheduleStorage:
    """Reads and writes the two state files of the monitor."""

    def __init__(self, storage_path: str | Path, snapshot_path: str | Path) -> None:
        self.storage_path = Path(storage_path)
        self.snapshot_path = Path(snapshot_path)

    def save(self, record: PersistedSchedule) -> None:
        _write_json(self.storage_path, record)
        logger.info(
            "schedule_saved", outages=len(record.outages), path=str(self.storage_path)
        )

    def load(self) -> PersistedSchedule | None:
        return _read_json(self.storage_path, PersistedSchedule)

    def save_snapshot(self, schedule: ProcessedSchedule) -> None:
        _write_json(self.snapshot_path, schedule)
        logger.info(
            "snapshot_saved", periods=len(schedule.periods), path=str(self.snapshot_path)
        )

    def load_snapshot(self) -> ProcessedSchedule | None:
        return _read_json(self.snapshot_path, ProcessedSchedule)


def _write_json(path: Path, model: BaseModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = model.model_dump(mode="json", by_alias=True, exclude_none=True)
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, model: type[ModelT]) -> ModelT | None:
    if not path.exists():
        logger.debug("state_file_missing", path=str(path))
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return model.model_validate(data)
    except (OSError, ValueError, ValidationError) as e:
        logger.warning(
            "state_file_unreadable",
            path=str(path),
            error=str(e),
            type=type(e).__name__,
        )
        return None

"""Fetch the outage schedule once and print it as JSON or a table.

Runs a single monitor cycle for the configured address: fills the form,
saves the schedule record, compares with the last notified snapshot and
(unless --no-notify) posts a change to Telegram.

Run with: python scripts/fetch_schedule.py
Debug:    python scripts/fetch_schedule.py --headed --no-notify
Table:    python scripts/fetch_schedule.py --table
Offline:  python scripts/fetch_schedule.py --from-file data/page.html --no-notify

Exit codes:
  0 = success (schedule on stdout)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.shutdowns.config import get_config  # noqa: E402
from src.shutdowns.logging import setup_logging  # noqa: E402
from src.shutdowns.models import ProcessedSchedule  # noqa: E402
from src.shutdowns.pipeline import MonitorPipeline  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch the DTEK outage schedule once.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Do not send Telegram messages or update the notified snapshot.",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    parser.add_argument(
        "--from-file",
        type=str,
        default=None,
        help="Parse a saved HTML or JSON payload instead of opening the browser.",
    )
    return parser.parse_args()


def format_table(schedule: ProcessedSchedule) -> str:
    """Format merged periods as a human-readable table.

    Columns: Date | Start | End
    """
    header = f"Queue: {schedule.address.queue or '-'}   Updated: {schedule.update_date or '-'}"
    if not schedule.periods:
        return f"{header}\n(no outages scheduled)"

    headers = ["Date", "Start", "End"]
    rows = [[p.date or "-", p.start_time, p.end_time] for p in schedule.periods]

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]
    return "\n".join([header, "", header_line, separator, *row_lines])


async def main(args: argparse.Namespace) -> int:
    config = get_config()
    if args.headed:
        config.headless = False

    pipeline = MonitorPipeline.from_config(config)
    try:
        if args.from_file:
            payload = Path(args.from_file).read_text(encoding="utf-8")
            result = pipeline.process_payload(payload, notify=not args.no_notify)
        else:
            result = await pipeline.run_cycle(notify=not args.no_notify)
    finally:
        await pipeline.close()

    if result.schedule is None:
        print(f"ERROR: cycle {result.status}: {result.error}", file=sys.stderr)
        return 1

    if args.table:
        print(format_table(result.schedule))
    else:
        output = result.schedule.model_dump(mode="json", by_alias=True, exclude_none=True)
        print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        config = get_config()
        setup_logging(
            json_output=config.log_json, log_level=config.log_level, stream=sys.stderr
        )
        sys.exit(asyncio.run(main(args)))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

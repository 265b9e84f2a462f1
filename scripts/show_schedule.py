"""Print the saved schedule record as merged periods; optionally send it.

Reads STORAGE_PATH without touching the browser. Useful to check what the
last cycle stored and how the Telegram message renders.

Run with: python scripts/show_schedule.py
Send:     python scripts/show_schedule.py --send
Message:  python scripts/show_schedule.py --message
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.shutdowns.config import get_config  # noqa: E402
from src.shutdowns.logging import setup_logging  # noqa: E402
from src.shutdowns.notifier import TelegramNotifier, format_message  # noqa: E402
from src.shutdowns.processing import build_processed_schedule  # noqa: E402
from src.shutdowns.storage import ScheduleStorage  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the saved outage schedule.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--message",
        action="store_true",
        help="Print the Telegram message text instead of JSON.",
    )
    group.add_argument(
        "--send",
        action="store_true",
        help="Send the schedule to the configured Telegram chat.",
    )
    return parser.parse_args()


def main(args: argparse.Namespace) -> int:
    config = get_config()
    storage = ScheduleStorage(config.storage_path, config.resolved_snapshot_path)

    record = storage.load()
    if record is None:
        print(f"No schedule record at {config.storage_path}", file=sys.stderr)
        return 1

    processed = build_processed_schedule(record)

    if args.message:
        print(format_message(processed))
        return 0

    if args.send:
        if not config.telegram_enabled:
            print("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are not set", file=sys.stderr)
            return 1
        notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
        result = notifier.send_schedule(processed)
        if not result.ok:
            print(f"Send failed: {result.error}", file=sys.stderr)
            return 1
        print("Sent.", file=sys.stderr)
        return 0

    output = processed.model_dump(mode="json", by_alias=True, exclude_none=True)
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        config = get_config()
        setup_logging(
            json_output=config.log_json, log_level=config.log_level, stream=sys.stderr
        )
        sys.exit(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

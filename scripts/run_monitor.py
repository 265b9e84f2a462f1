"""Run the outage schedule monitor as a long-lived service.

Runs one cycle immediately, then one per CRON_PATTERN tick (in TIMEZONE). SIGINT or
SIGTERM stops new cycles, lets a running one finish and closes the browser.

Run with: python scripts/run_monitor.py
Debug:    python scripts/run_monitor.py --headed
Once:     python scripts/run_monitor.py --once

Exit codes:
  0 = clean shutdown
  1 = configuration error
"""

import argparse
import asyncio
import os
import signal
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.shutdowns.config import get_config  # noqa: E402
from src.shutdowns.logging import get_logger, setup_logging  # noqa: E402
from src.shutdowns.pipeline import MonitorPipeline  # noqa: E402

log = get_logger("run_monitor")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Monitor the DTEK outage schedule and post changes to Telegram.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit instead of scheduling.",
    )
    return parser.parse_args()


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still ends asyncio.run()
            pass


async def main(args: argparse.Namespace) -> None:
    config = get_config()
    if args.headed:
        config.headless = False

    pipeline = MonitorPipeline.from_config(config)
    log.info(
        "monitor_starting",
        address=config.address.describe(),
        cron=config.cron_pattern,
        timezone=config.timezone,
        storage=config.storage_path,
    )

    try:
        if args.once:
            result = await pipeline.run_cycle()
            log.info("cycle_result", status=result.status, notified=result.notified)
            return

        stop = asyncio.Event()
        _install_signal_handlers(stop)

        scheduler = AsyncIOScheduler(timezone=config.timezone)
        scheduler.add_job(
            pipeline.run_cycle,
            CronTrigger.from_crontab(config.cron_pattern, timezone=config.timezone),
            id="fetch_schedule",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )

        await pipeline.run_cycle()
        scheduler.start()
        log.info("scheduler_started", cron=config.cron_pattern)

        try:
            await stop.wait()
        finally:
            log.info("shutdown_requested")
            scheduler.shutdown(wait=False)
            await pipeline.wait_idle()
    finally:
        await pipeline.close()
        log.info("monitor_stopped")


if __name__ == "__main__":
    args = _parse_args()
    try:
        config = get_config()
    except ValidationError as e:
        print(f"ERROR: invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(json_output=config.log_json, log_level=config.log_level)
    try:
        asyncio.run(main(args))
    except KeyboardInterrupt:
        pass

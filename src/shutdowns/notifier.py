"""Telegram delivery of processed schedules.

Messages go through the Bot API sendMessage method with HTML formatting.
Network errors and 5xx/429 responses are retried; any other rejection is
final. Callers get a NotificationResult and never an exception.
"""

from html import escape

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.shutdowns.errors import NotificationError, ShutdownsError, TransientError
from src.shutdowns.logging import get_logger
from src.shutdowns.models import MergedPeriod, NotificationResult, ProcessedSchedule

log = get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"
NO_DATE_LABEL = "Не вказано"


def format_message(schedule: ProcessedSchedule) -> str:
    """Render a schedule as a Telegram HTML message."""
    lines = ["🔌 <b>Графік відключень світла</b>\n"]

    address = schedule.address
    lines.append(f"📍 <b>{escape(address.queue or _address_line(schedule))}</b>")

    if schedule.update_date:
        lines.append(f"📅 <b>Оновлено:</b> {escape(schedule.update_date)}")

    if not schedule.periods:
        lines.append("\n✅ <b>Відключень не заплановано</b>")
        return "\n".join(lines)

    by_date: dict[str, list[MergedPeriod]] = {}
    for period in schedule.periods:
        by_date.setdefault(period.date or NO_DATE_LABEL, []).append(period)

    lines.append("\n⏰ <b>Періоди відключення:</b>")
    for date in sorted(by_date):
        lines.append(f"\n📆 <b>{escape(date)}:</b>")
        for period in by_date[date]:
            lines.append(f"🕯️ {period.start_time} - {period.end_time}")

    return "\n".join(lines)


def _address_line(schedule: ProcessedSchedule) -> str:
    address = schedule.address
    return ", ".join(part for part in (address.city, address.street, address.building) if part)


class TelegramNotifier:
    """Sends messages to one Telegram chat or channel."""

    def __init__(self, bot_token: str, chat_id: str, timeout: int = 30) -> None:
        if not bot_token or not chat_id:
            raise ValueError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are required")
        self.chat_id = chat_id
        self.timeout = timeout
        self._url = f"{TELEGRAM_API}/bot{bot_token}/sendMessage"
        self._session = requests.Session()

    def send_schedule(self, schedule: ProcessedSchedule) -> NotificationResult:
        return self.send_message(format_message(schedule), disable_preview=True)

    def send_message(self, text: str, *, disable_preview: bool = False) -> NotificationResult:
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": disable_preview,
        }
        try:
            self._post(payload)
        except ShutdownsError as e:
            log.error("telegram_send_failed", chat_id=self.chat_id, error=str(e))
            return NotificationResult(ok=False, error=str(e))

        log.info("telegram_message_sent", chat_id=self.chat_id, chars=len(text))
        return NotificationResult(ok=True)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _post(self, payload: dict) -> None:
        try:
            response = self._session.post(self._url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientError(f"Telegram API unreachable: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientError(f"Telegram API returned {response.status_code}")
        if response.status_code != 200:
            raise NotificationError(
                f"Telegram API returned {response.status_code}: {_description(response)}"
            )


def _description(response: requests.Response) -> str:
    try:
        return str(response.json().get("description", ""))
    except ValueError:
        return response.text[:200]

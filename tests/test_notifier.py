"""Unit tests for TelegramNotifier and message formatting."""

import json

import pytest
import responses
from requests.exceptions import RequestException
from tenacity import wait_none

from src.shutdowns.models import MergedPeriod, ProcessedSchedule, ScheduleAddress
from src.shutdowns.notifier import TelegramNotifier, format_message

SEND_URL = "https://api.telegram.org/bot123:abc/sendMessage"


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(TelegramNotifier._post.retry, "wait", wait_none())


@pytest.fixture
def schedule():
    return ProcessedSchedule(
        update_date="26.11.2025 10:15",
        address=ScheduleAddress(city="м. Ірпінь", street="вул. Садова", building="3", queue="Черга 4.2"),
        periods=[
            MergedPeriod(start_time="00:00", end_time="01:30", date="27.11.25"),
            MergedPeriod(start_time="05:30", end_time="08:00", date="26.11.25"),
            MergedPeriod(start_time="23:00", end_time="24:00", date="26.11.25"),
        ],
    )


@pytest.fixture
def notifier():
    return TelegramNotifier("123:abc", "-100500")


class TestFormatMessage:
    def test_periods_grouped_by_date(self, schedule):
        text = format_message(schedule)

        assert "📍 <b>Черга 4.2</b>" in text
        assert "📅 <b>Оновлено:</b> 26.11.2025 10:15" in text
        assert text.index("26.11.25") < text.index("27.11.25")
        assert "🕯️ 05:30 - 08:00\n🕯️ 23:00 - 24:00" in text
        assert "🕯️ 00:00 - 01:30" in text

    def test_no_periods(self, schedule):
        text = format_message(schedule.model_copy(update={"periods": []}))
        assert "Відключень не заплановано" in text
        assert "🕯️" not in text

    def test_address_line_without_queue(self):
        schedule = ProcessedSchedule(
            address=ScheduleAddress(city="м. Ірпінь", street="вул. Садова", building="3"),
            periods=[MergedPeriod(start_time="06:00", end_time="07:00")],
        )
        text = format_message(schedule)

        assert "📍 <b>м. Ірпінь, вул. Садова, 3</b>" in text
        assert "Оновлено" not in text
        assert "Не вказано" in text

    def test_markup_is_escaped(self):
        schedule = ProcessedSchedule(
            update_date="<script>",
            address=ScheduleAddress(city="A & B"),
        )
        text = format_message(schedule)
        assert "A &amp; B" in text
        assert "&lt;script&gt;" in text


class TestTelegramNotifier:
    def test_requires_token_and_chat(self):
        with pytest.raises(ValueError):
            TelegramNotifier("", "-100500")
        with pytest.raises(ValueError):
            TelegramNotifier("123:abc", None)

    @responses.activate
    def test_send_schedule_success(self, notifier, schedule):
        responses.add(responses.POST, SEND_URL, json={"ok": True}, status=200)

        result = notifier.send_schedule(schedule)

        assert result.ok
        assert result.error is None
        body = json.loads(responses.calls[0].request.body)
        assert body["chat_id"] == "-100500"
        assert body["parse_mode"] == "HTML"
        assert body["disable_web_page_preview"] is True
        assert body["text"] == format_message(schedule)

    @responses.activate
    def test_rejection_is_not_retried(self, notifier):
        responses.add(
            responses.POST,
            SEND_URL,
            json={"ok": False, "description": "Bad Request: chat not found"},
            status=400,
        )

        result = notifier.send_message("hello")

        assert not result.ok
        assert "chat not found" in result.error
        assert len(responses.calls) == 1

    @responses.activate
    def test_server_error_retried_then_succeeds(self, notifier):
        responses.add(responses.POST, SEND_URL, status=502)
        responses.add(responses.POST, SEND_URL, json={"ok": True}, status=200)

        result = notifier.send_message("hello")

        assert result.ok
        assert len(responses.calls) == 2

    @responses.activate
    def test_gives_up_after_three_attempts(self, notifier):
        for _ in range(3):
            responses.add(responses.POST, SEND_URL, body=RequestException("down"))

        result = notifier.send_message("hello")

        assert not result.ok
        assert "unreachable" in result.error
        assert len(responses.calls) == 3

    @responses.activate
    def test_rate_limit_is_retried(self, notifier):
        responses.add(responses.POST, SEND_URL, status=429)
        responses.add(responses.POST, SEND_URL, status=429)
        responses.add(responses.POST, SEND_URL, status=429)

        result = notifier.send_message("hello")

        assert not result.ok
        assert "429" in result.error
        assert len(responses.calls) == 3

"""Unit tests for page setup and the bounded-wait helper."""

import asyncio
from types import SimpleNamespace

import pytest

from src.shutdowns.utils import await_condition, configure_page_for_scraping


class FakeRoute:
    def __init__(self, resource_type):
        self.request = SimpleNamespace(resource_type=resource_type)
        self.outcome = None

    async def abort(self):
        self.outcome = "abort"

    async def fallback(self):
        self.outcome = "fallback"


class FakePage:
    def __init__(self):
        self.routes = []
        self.timeout = None
        self.navigation_timeout = None

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    def set_default_timeout(self, timeout):
        self.timeout = timeout

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout


class TestConfigurePage:
    async def test_blocks_heavy_resources_and_sets_timeouts(self):
        page = FakePage()
        await configure_page_for_scraping(page, timeout_ms=15000)

        assert page.timeout == page.navigation_timeout == 15000
        [(pattern, handler)] = page.routes
        assert pattern == "**/*"

        outcomes = {}
        for resource_type in ("image", "font", "media", "document", "stylesheet", "script", "xhr"):
            route = FakeRoute(resource_type)
            await handler(route)
            outcomes[resource_type] = route.outcome

        assert outcomes == {
            "image": "abort",
            "font": "abort",
            "media": "abort",
            "document": "fallback",
            "stylesheet": "fallback",
            "script": "fallback",
            "xhr": "fallback",
        }

    async def test_user_agent_comes_from_context_only(self):
        with pytest.raises(TypeError):
            await configure_page_for_scraping(FakePage(), user_agent="test-agent")


class TestAwaitCondition:
    async def test_true_immediately(self):
        async def ready():
            return True

        assert await await_condition(ready, timeout=1)

    async def test_becomes_true(self):
        calls = 0

        async def third_time():
            nonlocal calls
            calls += 1
            return calls >= 3

        assert await await_condition(third_time, timeout=2, poll_interval=0.01)
        assert calls == 3

    async def test_times_out(self):
        loop = asyncio.get_running_loop()
        started = loop.time()

        async def never():
            return False

        assert not await await_condition(never, timeout=0.2, poll_interval=0.05)
        assert loop.time() - started < 1

    async def test_hung_predicate_is_cut_off(self):
        loop = asyncio.get_running_loop()
        started = loop.time()

        async def frozen_page():
            await asyncio.sleep(30)
            return True

        assert not await await_condition(frozen_page, timeout=0.2, poll_interval=0.05)
        assert loop.time() - started < 1

    async def test_slow_predicate_within_budget_counts(self):
        async def slow_but_ready():
            await asyncio.sleep(0.05)
            return True

        assert await await_condition(slow_but_ready, timeout=1, poll_interval=0.01)

    async def test_exceptions_count_as_not_ready(self):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("Execution context was destroyed")
            return True

        assert await await_condition(flaky, timeout=1, poll_interval=0.01)

    async def test_zero_timeout_checks_once(self):
        calls = 0

        async def never():
            nonlocal calls
            calls += 1
            return False

        assert not await await_condition(never, timeout=0)
        assert calls == 1

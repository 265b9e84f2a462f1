"""ShutdownsPage - drives the address form until the outage table renders.

DOM structure of the form:
  div.modal__container.m-attention__container -> "attention" popup on load
    button.modal__close.m-attention__close
  form#discon_form
    input#city      + div#cityautocomplete-list      > div per suggestion
    input#street    + div#streetautocomplete-list    > div per suggestion
    input#house_num + div#house_numautocomplete-list > div per suggestion
    div#group-name -> queue label once the building is chosen
  div#discon-fact -> schedule tables (see parser.py)

The fields cascade: street stays disabled until a city suggestion is chosen,
house number until a street is chosen. Suggestion lists are filled by AJAX
listeners on input/keyup/change, so setting .value alone does nothing.

Every wait below is bounded. Only page load failures raise (NavigationError);
anything that goes wrong inside the form is logged and the next step runs, as
a partially filled form still renders a coarser schedule.
"""

import asyncio
from typing import NamedTuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.shutdowns.errors import NavigationError, TransientError
from src.shutdowns.logging import get_logger
from src.shutdowns.models import AddressQuery, FormTimings
from src.shutdowns.utils import await_condition

log = get_logger(__name__)

_IS_ENABLED_JS = """(sel) => {
    const el = document.querySelector(sel);
    return !!el && !el.disabled && !el.hasAttribute("disabled");
}"""

_FORCE_ENABLE_JS = """(sel) => {
    const el = document.querySelector(sel);
    if (el) {
        el.removeAttribute("disabled");
        el.disabled = false;
        el.readOnly = false;
    }
}"""

_SET_VALUE_JS = """([sel, value]) => {
    const input = document.querySelector(sel);
    if (!input) {
        return false;
    }
    input.value = value;
    for (const type of ["input", "keyup", "change"]) {
        input.dispatchEvent(new Event(type, { bubbles: true }));
    }
    const $ = window.jQuery || window.$;
    if (typeof $ === "function") {
        try {
            $(input).trigger("input").trigger("keyup").trigger("change");
        } catch (e) {}
    }
    return true;
}"""

_SUGGESTIONS_VISIBLE_JS = """(sel) => {
    const list = document.querySelector(sel);
    if (!list || list.querySelectorAll("div").length === 0) {
        return false;
    }
    const style = window.getComputedStyle(list);
    return style.display !== "none" && style.visibility !== "hidden";
}"""

_DOM_CLICK_FIRST_JS = """(sel) => {
    const list = document.querySelector(sel);
    const item = list ? list.querySelector("div") : null;
    if (!item) {
        return false;
    }
    item.scrollIntoView({ block: "nearest" });
    item.click();
    return true;
}"""

_DOM_CLICK_JS = """(selectors) => {
    for (const sel of selectors) {
        const button = document.querySelector(sel);
        if (button && button.offsetParent !== null) {
            button.click();
            return true;
        }
    }
    return false;
}"""

_TABLE_POPULATED_JS = """(sel) => {
    const table = document.querySelector(sel);
    return !!table && table.querySelectorAll("tbody tr").length > 0;
}"""

_DOCUMENT_READY_JS = (
    "() => document.readyState === 'complete' || typeof window.jQuery !== 'undefined'"
)


class AddressField(NamedTuple):
    name: str
    selector: str
    value: str | None


class ShutdownsPage:
    """Shutdowns page with the cascading address form.

    Fills city, street and house number in order and waits for the schedule
    table to reflect the address.
    """

    FORM = "#discon_form"
    CITY_INPUT = "#city"
    STREET_INPUT = "#street"
    BUILDING_INPUT = "#house_num"
    SCHEDULE_TABLE = "#discon-fact table, #tableRenderElem table, .discon-schedule-table table"
    MODAL_CLOSE_SELECTORS = (
        "button.modal__close.m-attention__close",
        "button.modal_close.m-attention_close",
        "[data-micromodal-close]",
        ".modal__close",
        ".modal_close",
        "button[aria-label*='Close']",
    )

    def __init__(self, page: Page, timings: FormTimings | None = None) -> None:
        self.page = page
        self.timings = timings or FormTimings()

    def _seconds(self, milliseconds: int) -> float:
        return milliseconds / 1000

    @property
    def _poll(self) -> float:
        return self._seconds(self.timings.poll_interval_ms)

    async def fetch_schedule_html(self, url: str, address: AddressQuery) -> str:
        """Load the page, fill the address and return the rendered markup.

        Raises:
            NavigationError: If the page or its form never loaded.
        """
        await self.load(url)
        await self.dismiss_modal()
        await self.fill_address(address)
        await self.wait_for_schedule()

        html = await self.page.content()
        log.info("schedule_html_fetched", chars=len(html), address=address.describe())
        return html

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    async def load(self, url: str) -> None:
        """Navigate to the shutdowns page and wait for the address form.

        Raises:
            NavigationError: If navigation fails or the form never appears.
        """
        log.debug("navigating", url=url)
        try:
            await self.page.goto(
                url, wait_until="load", timeout=self.timings.request_timeout_ms
            )
        except PlaywrightError as e:
            log.warning("navigation_failed", url=url, error=str(e))
            raise NavigationError(f"Shutdowns page failed to load: {e}") from e

        scripts_ready = await await_condition(
            lambda: self.page.evaluate(_DOCUMENT_READY_JS),
            self._seconds(self.timings.modal_timeout_ms),
            self._poll,
        )
        if not scripts_ready:
            log.warning("page_scripts_not_ready", url=url)

        form_ready = await await_condition(
            lambda: self.page.locator(self.FORM).count(),
            self._seconds(self.timings.modal_timeout_ms),
            self._poll,
        )
        if not form_ready:
            raise NavigationError(f"Address form {self.FORM} not found on {url}")
        log.info("shutdowns_page_loaded", url=url)

    async def dismiss_modal(self) -> bool:
        """Close the attention popup if it shows up. Returns True if one was closed."""
        timeout = self._seconds(self.timings.modal_timeout_ms)
        visible_selector: str | None = None

        async def _modal_visible() -> bool:
            nonlocal visible_selector
            for selector in self.MODAL_CLOSE_SELECTORS:
                if await self.page.locator(selector).first.is_visible():
                    visible_selector = selector
                    return True
            return False

        if not await await_condition(_modal_visible, timeout, self._poll):
            log.debug("modal_not_present")
            return False

        try:
            await self.page.locator(visible_selector).first.click(
                timeout=self.timings.modal_timeout_ms
            )
        except PlaywrightError as e:
            log.debug("modal_click_failed", selector=visible_selector, error=str(e))
            try:
                await self.page.evaluate(_DOM_CLICK_JS, list(self.MODAL_CLOSE_SELECTORS))
            except PlaywrightError as e:
                log.warning("modal_close_failed", error=str(e))
                return False

        async def _modal_hidden() -> bool:
            return not await self.page.locator(visible_selector).first.is_visible()

        if not await await_condition(_modal_hidden, timeout, self._poll):
            log.warning("modal_still_visible", selector=visible_selector)
            return False

        log.info("modal_dismissed", selector=visible_selector)
        return True

    async def fill_address(self, address: AddressQuery) -> None:
        """Fill city, street and house number, skipping absent values."""
        fields = (
            AddressField("city", self.CITY_INPUT, address.city),
            AddressField("street", self.STREET_INPUT, address.street),
            AddressField("building", self.BUILDING_INPUT, address.building),
        )
        for field in fields:
            if not field.value:
                log.warning(
                    "address_field_missing",
                    field=field.name,
                    detail="schedule may be less accurate",
                )
                continue
            await self.fill_field(field)

    async def fill_field(self, field: AddressField) -> None:
        """Run one autocomplete field from visible to settled."""
        await self._await_interactable(field)
        await self._await_enabled(field)
        await self._type_value(field)

        list_selector = self.suggestion_list_selector(field.selector)
        clicked = False
        if await self._await_suggestions(field, list_selector):
            clicked = await self._select_first_suggestion(list_selector)

        if not clicked:
            await self._keyboard_select(field)

        await asyncio.sleep(self._seconds(self.timings.settle_ms))
        log.info("address_field_filled", field=field.name, via_click=clicked)

    @staticmethod
    def suggestion_list_selector(selector: str) -> str:
        """``#street`` -> ``#streetautocomplete-list``."""
        return f"#{selector.lstrip('#')}autocomplete-list"

    async def _await_interactable(self, field: AddressField) -> None:
        visible = await await_condition(
            lambda: self.page.locator(field.selector).first.is_visible(),
            self._seconds(self.timings.field_visible_timeout_ms),
            self._poll,
        )
        if not visible:
            log.warning("field_not_visible", field=field.name, selector=field.selector)

    async def _await_enabled(self, field: AddressField) -> None:
        enabled = await await_condition(
            lambda: self.page.evaluate(_IS_ENABLED_JS, field.selector),
            self._seconds(self.timings.request_timeout_ms),
            self._poll,
        )
        if enabled:
            return

        log.warning("field_not_enabled", field=field.name, action="force_enable")
        try:
            await self.page.evaluate(_FORCE_ENABLE_JS, field.selector)
        except PlaywrightError as e:
            log.warning("force_enable_failed", field=field.name, error=str(e))

    async def _type_value(self, field: AddressField) -> None:
        locator = self.page.locator(field.selector).first
        timeout = self.timings.field_visible_timeout_ms
        try:
            await locator.focus(timeout=timeout)
            await locator.click(click_count=3, timeout=timeout)
            await self.page.keyboard.press("Backspace")
        except PlaywrightError as e:
            log.warning("field_clear_failed", field=field.name, error=str(e))

        try:
            found = await self.page.evaluate(_SET_VALUE_JS, [field.selector, field.value])
            if not found:
                log.warning("field_missing_on_fill", field=field.name)
            await locator.focus(timeout=timeout)
        except PlaywrightError as e:
            log.warning("field_fill_failed", field=field.name, error=str(e))

    async def _await_suggestions(self, field: AddressField, list_selector: str) -> bool:
        shown = await await_condition(
            lambda: self.page.evaluate(_SUGGESTIONS_VISIBLE_JS, list_selector),
            self._seconds(self.timings.suggestion_timeout_ms),
            self._poll,
        )
        if not shown:
            log.warning(
                "suggestions_not_visible",
                field=field.name,
                list=list_selector,
                action="keyboard_fallback",
            )
        return shown

    async def _select_first_suggestion(self, list_selector: str) -> bool:
        item = self.page.locator(f"{list_selector} > div").first
        timeout = self.timings.suggestion_click_timeout_ms
        try:
            await item.scroll_into_view_if_needed(timeout=timeout)
            await item.click(timeout=timeout)
            log.debug("suggestion_clicked", list=list_selector)
            return True
        except PlaywrightError as e:
            log.debug("suggestion_click_failed", list=list_selector, error=str(e))

        try:
            clicked = bool(await self.page.evaluate(_DOM_CLICK_FIRST_JS, list_selector))
        except PlaywrightError as e:
            log.warning("suggestion_dom_click_failed", list=list_selector, error=str(e))
            return False
        if clicked:
            log.debug("suggestion_clicked", list=list_selector, method="dom")
        return clicked

    async def _keyboard_select(self, field: AddressField) -> None:
        log.debug("keyboard_fallback", field=field.name)
        try:
            await self.page.locator(field.selector).first.focus(
                timeout=self.timings.field_visible_timeout_ms
            )
            await self.page.keyboard.press("ArrowDown")
            await asyncio.sleep(0.1)
            await self.page.keyboard.press("Enter")
        except PlaywrightError as e:
            log.warning("keyboard_fallback_failed", field=field.name, error=str(e))

    async def wait_for_schedule(self) -> bool:
        """Wait until the schedule table has at least one body row.

        A table without any outage styling is a valid result.
        """
        rendered = await await_condition(
            lambda: self.page.evaluate(_TABLE_POPULATED_JS, self.SCHEDULE_TABLE),
            self._seconds(self.timings.request_timeout_ms),
            self._poll,
        )
        if rendered:
            log.debug("schedule_table_rendered")
        else:
            log.warning("schedule_table_timeout", action="continue")
        return rendered

"""ShutdownsClient - one rendered schedule page per call."""

from src.shutdowns.logging import get_logger
from src.shutdowns.models import AddressQuery, FormTimings
from src.shutdowns.pages.shutdowns import ShutdownsPage
from src.shutdowns.session import BrowserSession
from src.shutdowns.utils import configure_page_for_scraping

log = get_logger(__name__)


class ShutdownsClient:
    """Fetches rendered schedule markup for an address through a shared browser."""

    def __init__(
        self,
        base_url: str,
        session: BrowserSession,
        timings: FormTimings | None = None,
    ) -> None:
        self.base_url = base_url
        self.session = session
        self.timings = timings or FormTimings()

    async def fetch(self, address: AddressQuery) -> str:
        """Return the page markup after the address form has been filled.

        Raises:
            NavigationError: If the page or its form never loaded.
        """
        log.info("fetch_started", address=address.describe())
        async with self.session.open_page() as page:
            await configure_page_for_scraping(
                page, timeout_ms=self.timings.request_timeout_ms
            )
            return await ShutdownsPage(page, self.timings).fetch_schedule_html(
                self.base_url, address
            )

    async def close(self) -> None:
        await self.session.close()

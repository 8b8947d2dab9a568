"""Base extractor class."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from bs4 import BeautifulSoup

from etsy_automation.exceptions import ElementNotFoundError, NotAuthenticatedError
from etsy_automation.utils.constants import SELECTOR_TIMEOUT, SETTLE_DELAY
from etsy_automation.utils.logging import get_logger


if TYPE_CHECKING:
    from bs4 import Tag

    from etsy_automation.core.auth import Authenticator
    from etsy_automation.core.browser import BrowserManager
    from etsy_automation.core.events import EventChannel

logger = get_logger(__name__)

T = TypeVar("T")


class BaseExtractor(ABC, Generic[T]):
    """
    Shared navigation and parsing for page extractors.

    Every entry point calls ``require_authenticated()`` before touching the
    page. Navigation errors propagate; a record that cannot be parsed is
    logged and dropped without failing the batch.
    """

    # CSS selector matching one record container on the list page
    record_selector: str = ""

    def __init__(
        self,
        browser: BrowserManager,
        auth: Authenticator,
        events: EventChannel,
        settle_delay: float = SETTLE_DELAY,
    ) -> None:
        self.browser = browser
        self.auth = auth
        self.events = events
        self.settle_delay = settle_delay

    def require_authenticated(self) -> None:
        if not self.auth.is_authenticated:
            raise NotAuthenticatedError()

    @property
    def shop(self) -> str | None:
        return self.auth.shop_identifier

    async def load(self, url: str) -> BeautifulSoup:
        """Navigate, let client-side rendering settle, and parse the DOM."""
        await self.browser.goto(url)
        await self.browser.wait_until_loaded()
        if self.settle_delay:
            await asyncio.sleep(self.settle_delay)
        return BeautifulSoup(await self.browser.get_content(), "html.parser")

    def parse_records(self, soup: BeautifulSoup) -> list[T]:
        """Parse every record container, skipping malformed ones."""
        records: list[T] = []
        for index, element in enumerate(soup.select(self.record_selector)):
            try:
                records.append(self.parse(element))
            except Exception as e:
                logger.warning(
                    "Skipping malformed record",
                    extractor=type(self).__name__,
                    index=index,
                    error=str(e),
                )
        return records

    @abstractmethod
    def parse(self, element: Tag) -> T:
        """Build one record from its container element."""
        ...

    async def require_element(
        self, selector: str, timeout: float = SELECTOR_TIMEOUT
    ) -> Any:
        """Wait for an interactive element or raise ElementNotFoundError."""
        element = await self.browser.wait_for_selector(selector, timeout=timeout)
        if element is None:
            raise ElementNotFoundError(f"Element not found: {selector}")
        return element

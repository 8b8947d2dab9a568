"""Browser manager using nodriver for undetectable Chrome automation."""

from __future__ import annotations

import asyncio
import contextlib
import random
from pathlib import Path
from typing import TYPE_CHECKING, Any

import nodriver
from nodriver import cdp

from etsy_automation.exceptions import (
    BrowserNotInitializedError,
    InitializationError,
    NavigationError,
)
from etsy_automation.utils.constants import (
    ACCEPT_LANGUAGE,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_VIEWPORT,
    NAVIGATION_POLL_INTERVAL,
    SELECTOR_TIMEOUT,
)
from etsy_automation.utils.logging import get_logger
from etsy_automation.utils.stealth import BROWSER_ARGS, STEALTH_SCRIPT


if TYPE_CHECKING:
    from nodriver import Element
    from nodriver import Tab as Page
else:
    Page = nodriver.Tab

# Export Page for other modules
__all__ = ["BrowserManager", "Page"]

logger = get_logger(__name__)


class BrowserManager:
    """
    Owns the single Chrome instance and the one page every component shares.

    Features:
    - Fingerprint reduction (automation flag, plugins, languages,
      permissions query, chrome runtime, DevTools debug noise)
    - Realistic viewport and user agent
    - Human-paced typing, clicking and mouse movement
    - Cookie export/import for session persistence
    """

    def __init__(
        self,
        headless: bool = False,
        user_data_dir: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        viewport: tuple[int, int] = DEFAULT_VIEWPORT,
        user_agent: str = DEFAULT_USER_AGENT,
        lang: str = "en-US",
    ) -> None:
        self.headless = headless
        self.user_data_dir = user_data_dir
        self.timeout = timeout
        self.viewport = viewport
        self.user_agent = user_agent
        self.lang = lang

        self._browser: nodriver.Browser | None = None
        self._page: Page | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Launch Chrome and prepare the shared page."""
        if self._page is not None:
            return

        logger.info("Starting Chrome browser", headless=self.headless)

        if self.user_data_dir:
            Path(self.user_data_dir).mkdir(parents=True, exist_ok=True)

        width, height = self.viewport
        browser_args = [
            *BROWSER_ARGS,
            f"--window-size={width},{height}",
            f"--user-agent={self.user_agent}",
        ]

        try:
            self._browser = await nodriver.start(
                headless=self.headless,
                user_data_dir=self.user_data_dir,
                browser_args=browser_args,
                lang=self.lang,
            )
            page = await self._browser.get("about:blank")
            await self._apply_fingerprint(page)
        except Exception as e:
            logger.error("Browser launch failed", error=str(e))
            await self.close()
            raise InitializationError(f"Could not start browser: {e}") from e

        self._page = page
        logger.info("Browser started successfully")

    async def _apply_fingerprint(self, page: Page) -> None:
        """Install anti-fingerprinting overrides on the page."""
        width, height = self.viewport
        await page.send(
            cdp.page.add_script_to_evaluate_on_new_document(source=STEALTH_SCRIPT)
        )
        await page.send(
            cdp.network.set_user_agent_override(
                user_agent=self.user_agent,
                accept_language=ACCEPT_LANGUAGE,
            )
        )
        await page.send(
            cdp.emulation.set_device_metrics_override(
                width=width,
                height=height,
                device_scale_factor=1,
                mobile=False,
            )
        )
        logger.debug("Fingerprint overrides applied", viewport=f"{width}x{height}")

    async def close(self) -> None:
        """Close browser and cleanup. Safe to call when never started."""
        if self._browser is None and self._page is None:
            return

        logger.info("Closing browser")
        if self._page is not None:
            with contextlib.suppress(Exception):
                await self._page.close()
            self._page = None

        if self._browser is not None:
            with contextlib.suppress(Exception):
                self._browser.stop()
            self._browser = None

        logger.info("Browser closed")

    @property
    def is_started(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        """The shared page; raises if the browser has not been started."""
        if self._page is None:
            raise BrowserNotInitializedError("Browser not initialized")
        return self._page

    # =========================================================================
    # Navigation
    # =========================================================================

    @property
    def current_url(self) -> str:
        """Current URL of the shared page."""
        if self._page is None:
            return ""
        return self._page.target.url or ""

    async def goto(self, url: str) -> None:
        """Navigate the shared page to a URL."""
        logger.info("Navigating to URL", url=url)

        try:
            await self.page.get(url)
        except BrowserNotInitializedError:
            raise
        except Exception as e:
            logger.error("Navigation failed", url=url, error=str(e))
            raise NavigationError(f"Navigation to {url} failed: {e}") from e

    async def wait_until_loaded(self, timeout: float | None = None) -> bool:
        """Wait for document.readyState to reach 'complete'."""
        effective_timeout = timeout if timeout is not None else self.timeout / 1000
        loop = asyncio.get_running_loop()
        deadline = loop.time() + effective_timeout

        while loop.time() < deadline:
            with contextlib.suppress(Exception):
                state = await self.page.evaluate("document.readyState")
                if state == "complete":
                    return True
            await asyncio.sleep(NAVIGATION_POLL_INTERVAL)

        logger.warning("Page did not finish loading", timeout=effective_timeout)
        return False

    async def wait_for_navigation(self, from_url: str, timeout: float) -> bool:
        """
        Wait until the page leaves ``from_url``.

        Args:
            from_url: URL the page was on before the triggering action
            timeout: Maximum seconds to wait

        Returns:
            True if the URL changed, False on timeout
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while loop.time() < deadline:
            if self.current_url != from_url:
                await self.wait_until_loaded()
                return True
            await asyncio.sleep(NAVIGATION_POLL_INTERVAL)

        logger.debug("No navigation within timeout", url=from_url, timeout=timeout)
        return False

    async def get_content(self) -> str:
        """Snapshot of the current DOM as HTML."""
        return await self.page.get_content()

    async def random_delay(self, min_sec: float = 0.5, max_sec: float = 2.0) -> None:
        """Add random delay to simulate human behavior."""
        delay = random.uniform(min_sec, max_sec)
        await asyncio.sleep(delay)

    # =========================================================================
    # Elements
    # =========================================================================

    async def query_selector(self, selector: str) -> Element | None:
        """Find element by selector, return None if not found."""
        try:
            return await self.page.query_selector(selector)
        except BrowserNotInitializedError:
            raise
        except Exception:
            return None

    async def wait_for_selector(
        self,
        selector: str,
        timeout: float = SELECTOR_TIMEOUT,
    ) -> Element | None:
        """Wait for an element to appear; None on timeout."""
        try:
            return await self.page.select(selector, timeout=timeout)
        except BrowserNotInitializedError:
            raise
        except Exception:
            logger.warning("Selector not found", selector=selector)
            return None

    async def type_text(
        self,
        element: Element,
        text: str,
        min_delay: float = 0.0,
        max_delay: float = 0.0,
    ) -> None:
        """Type text one key at a time with per-keystroke jitter."""
        if not max_delay:
            await element.send_keys(text)
            return

        for char in text:
            await element.send_keys(char)
            await asyncio.sleep(random.uniform(min_delay, max_delay))

    async def click(self, element: Element) -> None:
        await element.click()

    async def triple_click(self, element: Element) -> None:
        """Triple-click an element to select its current contents."""
        x, y = await self._element_center(element)
        for event_type in ("mousePressed", "mouseReleased"):
            await self.page.send(
                cdp.input_.dispatch_mouse_event(
                    type_=event_type,
                    x=x,
                    y=y,
                    button=cdp.input_.MouseButton.LEFT,
                    click_count=3,
                )
            )

    async def move_mouse_to(self, element: Element) -> None:
        """Move the mouse to the center of an element's bounding box."""
        x, y = await self._element_center(element)
        await self.page.mouse_move(x, y, steps=random.randint(8, 15))

    async def press_key(self, key: str, code: int) -> None:
        """Press and release a non-printing key (e.g. Tab)."""
        for event_type in ("rawKeyDown", "keyUp"):
            await self.page.send(
                cdp.input_.dispatch_key_event(
                    type_=event_type,
                    key=key,
                    code=key,
                    windows_virtual_key_code=code,
                )
            )

    async def _element_center(self, element: Element) -> tuple[float, float]:
        position = await element.get_position()
        if position is None:
            raise NavigationError("Element has no bounding box")
        return position.x + position.width / 2, position.y + position.height / 2

    async def screenshot(self, path: Path) -> Path | None:
        """Save a PNG of the page; None if the capture failed."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await self.page.save_screenshot(str(path), format="png")
            logger.info("Screenshot saved", path=str(path))
            return path
        except Exception as e:
            logger.warning("Screenshot failed", error=str(e))
            return None

    # =========================================================================
    # Cookies
    # =========================================================================

    async def get_cookies(self) -> list[dict[str, Any]]:
        """Get all cookies from browser."""
        if self._page is None:
            return []

        result = await self._page.send(cdp.network.get_all_cookies())
        cookies = []
        for c in result:
            cookies.append(
                {
                    "name": c.name,
                    "value": c.value,
                    "domain": c.domain,
                    "path": c.path,
                    "expires": c.expires,
                    "httpOnly": c.http_only,
                    "secure": c.secure,
                    "sameSite": c.same_site.value if c.same_site else "Lax",
                }
            )
        return cookies

    async def set_cookies(self, cookies: list[dict[str, Any]]) -> None:
        """Set cookies in browser."""
        if self._page is None or not cookies:
            return

        cookie_params = []
        for c in cookies:
            expires = c.get("expires")
            cookie_params.append(
                cdp.network.CookieParam(
                    name=c["name"],
                    value=c["value"],
                    domain=c.get("domain", ".etsy.com"),
                    path=c.get("path", "/"),
                    secure=c.get("secure"),
                    http_only=c.get("httpOnly"),
                    same_site=_same_site(c.get("sameSite")),
                    expires=(
                        cdp.network.TimeSinceEpoch(expires)
                        if expires and expires > 0
                        else None
                    ),
                )
            )

        await self._page.send(cdp.network.set_cookies(cookie_params))
        logger.info("Cookies set", count=len(cookies))

    async def __aenter__(self) -> BrowserManager:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()


def _same_site(value: str | None) -> cdp.network.CookieSameSite | None:
    if not value:
        return None
    try:
        return cdp.network.CookieSameSite(value)
    except ValueError:
        return None

"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from etsy_automation.core.auth import Authenticator, AuthState
from etsy_automation.core.events import EventChannel
from etsy_automation.core.session import SessionStore
from etsy_automation.exceptions import NavigationError


if TYPE_CHECKING:
    from pathlib import Path


# =============================================================================
# Fake browser
# =============================================================================


class FakeElement:
    """Stand-in for a nodriver element."""

    def __init__(self, name: str, on_click: Any = None) -> None:
        self.name = name
        self.on_click = on_click
        self.typed = ""
        self.clicks = 0

    def __repr__(self) -> str:
        return f"FakeElement({self.name!r})"


class FakeBrowser:
    """
    In-memory BrowserManager double.

    Serves canned HTML per URL, records navigations, and resolves
    interactive elements by their exact selector string.
    """

    def __init__(self, routes: dict[str, str] | None = None) -> None:
        self.routes: dict[str, str] = dict(routes or {})
        self.redirects: dict[str, str] = {}
        self.elements: dict[str, FakeElement] = {}
        # selector -> lookups left before the element disappears
        self.vanish_after: dict[str, int] = {}
        self.cookies: list[dict[str, Any]] = []
        self.set_cookie_calls: list[list[dict[str, Any]]] = []
        self.visited: list[str] = []
        self.screenshots: list[Path] = []
        self.keys: list[str] = []
        self.current_url = ""
        self.started = False
        self.closed = False
        self.fail_navigation = False

    @property
    def is_started(self) -> bool:
        return self.started

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True
        self.started = False

    async def goto(self, url: str) -> None:
        if self.fail_navigation:
            raise NavigationError(f"Navigation to {url} failed: net::ERR_FAILED")
        self.visited.append(url)
        self.current_url = self.redirects.get(url, url)

    async def wait_until_loaded(self, timeout: float | None = None) -> bool:
        return True

    async def wait_for_navigation(self, from_url: str, timeout: float) -> bool:
        return self.current_url != from_url

    async def get_content(self) -> str:
        return self.routes.get(self.current_url, "<html><body></body></html>")

    async def random_delay(self, min_sec: float = 0.5, max_sec: float = 2.0) -> None:
        return None

    async def query_selector(self, selector: str) -> FakeElement | None:
        remaining = self.vanish_after.get(selector)
        if remaining is not None:
            if remaining <= 0:
                return None
            self.vanish_after[selector] = remaining - 1
        return self.elements.get(selector)

    async def wait_for_selector(
        self, selector: str, timeout: float = 10.0
    ) -> FakeElement | None:
        return await self.query_selector(selector)

    async def type_text(
        self,
        element: FakeElement,
        text: str,
        min_delay: float = 0.0,
        max_delay: float = 0.0,
    ) -> None:
        element.typed += text

    async def click(self, element: FakeElement) -> None:
        element.clicks += 1
        if element.on_click is not None:
            element.on_click()

    async def triple_click(self, element: FakeElement) -> None:
        element.clicks += 3

    async def move_mouse_to(self, element: FakeElement) -> None:
        return None

    async def press_key(self, key: str, code: int) -> None:
        self.keys.append(key)

    async def screenshot(self, path: Path) -> Path | None:
        self.screenshots.append(path)
        return path

    async def get_cookies(self) -> list[dict[str, Any]]:
        return list(self.cookies)

    async def set_cookies(self, cookies: list[dict[str, Any]]) -> None:
        self.set_cookie_calls.append(cookies)
        self.cookies = list(cookies)


# =============================================================================
# HTML fixtures
# =============================================================================

SIGNED_IN_HTML = """
<html><body>
  <header data-user-id="42"><a href="/your/shops/me">Shop Manager</a></header>
</body></html>
"""

SIGNIN_HTML = """
<html><body>
  <form><input name="email"><input name="password" type="password"></form>
</body></html>
"""

SHOPS_HTML = """
<html><body>
  <div class="shop-manager">
    <a href="https://www.etsy.com/shop/PrintCraftStudio?ref=shop_sugg">PrintCraftStudio</a>
  </div>
</body></html>
"""

INBOX_HTML = """
<html><body>
<div class="inbox">
  <div class="conversation-card is-unread" data-conversation-id="c1">
    <span class="username">maker_anna</span>
    <p class="last-message">Can you quote this STL?</p>
    <time datetime="2024-05-01T10:00:00Z">May 1</time>
    <a href="/conversations/c1">Open</a>
  </div>
  <div class="conversation-card" data-conversation-id="c2">
    <span class="buyer-name">bob_buys</span>
    <p class="message-snippet">Thanks, received, love it!</p>
    <time datetime="2024-04-30T09:00:00Z">Apr 30</time>
  </div>
  <div class="message-thread" id="thread-3">
    <div data-conversation-id="c3"></div>
    <a href="/people/carol">carol</a>
    <p>Hello there</p>
    <span class="unread-indicator"></span>
  </div>
</div>
</body></html>
"""

CONVERSATION_HTML = """
<html><body>
<div class="conversation">
  <div class="buyer-username">maker_anna</div>
  <a href="/people/maker_anna">profile</a>
  <div class="order-number" data-order-id="1001">Order #1001</div>
  <a href="/your/order/1001">View order</a>
  <div class="message">
    <span class="sender-name">maker_anna</span>
    <div class="message-content">Can you 3d print 5 pieces in PETG, about 80mm?</div>
    <time datetime="2024-05-01T10:00:00Z">May 1</time>
    <a class="attachment" href="/download/dragon.stl">dragon.stl</a>
  </div>
  <div class="message">
    <span class="sender-name">PrintCraftStudio</span>
    <div class="message-content">Sure, let me check.</div>
  </div>
</div>
</body></html>
"""

ORDERS_HTML = """
<html><body>
<table><tbody>
  <tr class="order-row" data-order-id="1001">
    <td><span class="buyer-name">dana</span></td>
    <td><span class="order-status">New</span></td>
    <td><span class="order-total">$25.00</span></td>
    <td>
      <div class="order-item">
        <span class="item-title">Ceramic Mug</span>
        <span class="quantity">Qty: 2</span>
      </div>
    </td>
    <td><time datetime="2024-05-02">May 2</time></td>
  </tr>
  <tr class="order-row" data-order-id="1002">
    <td><span class="buyer-name">erin</span></td>
    <td><span class="order-status">Shipped</span></td>
    <td><span class="order-total">$40.00</span></td>
    <td>
      <div class="order-item">
        <span class="item-title">3D Printed Dragon</span>
        <span class="quantity">1</span>
      </div>
    </td>
    <td><time datetime="2024-04-28">Apr 28</time></td>
  </tr>
  <tr class="order-row" data-order-id="1003">
    <td><span class="buyer-name">frank</span></td>
    <td><span class="order-status">Payment confirmed</span></td>
    <td><span class="order-total">$12.50</span></td>
    <td>
      <div class="line-item">
        <span class="listing-title">Keychain</span>
        <span class="customization">Upload my STL</span>
      </div>
    </td>
  </tr>
</tbody></table>
</body></html>
"""


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_browser() -> FakeBrowser:
    """Browser double with no routes."""
    return FakeBrowser()


@pytest.fixture
def session_store(tmp_path: Path) -> SessionStore:
    """Session store writing into a temp directory."""
    return SessionStore(tmp_path / "sessions" / "etsy-session.json")


@pytest.fixture
def authenticator(
    fake_browser: FakeBrowser, session_store: SessionStore, tmp_path: Path
) -> Authenticator:
    """Authenticator with short waits for tests."""
    return Authenticator(
        fake_browser,
        session_store,
        navigation_timeout=0.05,
        two_factor_timeout=0.2,
        manual_login_timeout=0.05,
        manual_poll_interval=0.01,
        screenshot_dir=tmp_path / "debug",
    )


@pytest.fixture
def signed_in(authenticator: Authenticator) -> Authenticator:
    """Authenticator already in the AUTHENTICATED state for a known shop."""
    authenticator._state = AuthState.AUTHENTICATED
    authenticator._session.authenticated = True
    authenticator._session.shop_identifier = "PrintCraftStudio"
    return authenticator


@pytest.fixture
def events() -> EventChannel:
    return EventChannel()


@pytest.fixture
def fast_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make asyncio.sleep yield without waiting."""
    real_sleep = asyncio.sleep

    async def _sleep(delay: float, *args: Any, **kwargs: Any) -> None:
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", _sleep)

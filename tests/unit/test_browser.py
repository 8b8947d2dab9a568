"""Unit tests for BrowserManager."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from etsy_automation.core.browser import BrowserManager, _same_site
from etsy_automation.exceptions import (
    BrowserNotInitializedError,
    InitializationError,
    NavigationError,
)


def started_manager(**kwargs) -> tuple[BrowserManager, MagicMock]:
    """Manager with a mocked page already attached."""
    manager = BrowserManager(**kwargs)
    page = MagicMock()
    page.send = AsyncMock()
    page.get = AsyncMock()
    page.evaluate = AsyncMock(return_value="complete")
    page.get_content = AsyncMock(return_value="<html></html>")
    page.close = AsyncMock()
    page.target.url = "https://www.etsy.com/"
    manager._page = page
    manager._browser = MagicMock()
    return manager, page


class TestBrowserManagerInit:
    """Tests for BrowserManager initialization."""

    def test_init_defaults(self) -> None:
        """Headed by default so manual login is possible."""
        manager = BrowserManager()

        assert manager.headless is False
        assert manager.timeout == 30000
        assert manager.viewport == (1366, 768)
        assert "Chrome/" in manager.user_agent

    def test_init_no_browser_started(self) -> None:
        manager = BrowserManager()

        assert manager._browser is None
        assert manager.is_started is False
        assert manager.current_url == ""

    def test_page_before_start_raises(self) -> None:
        with pytest.raises(BrowserNotInitializedError):
            _ = BrowserManager().page


class TestBrowserLifecycle:
    """Tests for browser start/close lifecycle."""

    @pytest.mark.asyncio
    async def test_start_applies_fingerprint(self) -> None:
        page = MagicMock()
        page.send = AsyncMock()
        browser = MagicMock()
        browser.get = AsyncMock(return_value=page)

        with patch(
            "etsy_automation.core.browser.nodriver.start",
            new=AsyncMock(return_value=browser),
        ) as start:
            manager = BrowserManager(headless=True)
            await manager.start()

        args = start.call_args.kwargs["browser_args"]
        assert "--disable-blink-features=AutomationControlled" in args
        assert "--window-size=1366,768" in args
        assert start.call_args.kwargs["headless"] is True
        # Stealth script, user agent, device metrics
        assert page.send.await_count == 3
        assert manager.page is page

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        manager, _ = started_manager()

        with patch("etsy_automation.core.browser.nodriver.start", new=AsyncMock()) as start:
            await manager.start()

        start.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_failure_raises_initialization_error(self) -> None:
        with patch(
            "etsy_automation.core.browser.nodriver.start",
            new=AsyncMock(side_effect=FileNotFoundError("chrome not found")),
        ):
            manager = BrowserManager()
            with pytest.raises(InitializationError, match="chrome not found"):
                await manager.start()

        assert manager.is_started is False
        assert manager._browser is None

    @pytest.mark.asyncio
    async def test_close_without_start(self) -> None:
        """Close is safe when the browser never started."""
        await BrowserManager().close()

    @pytest.mark.asyncio
    async def test_close_stops_browser(self) -> None:
        manager, page = started_manager()
        browser = manager._browser

        await manager.close()

        page.close.assert_awaited_once()
        browser.stop.assert_called_once()
        assert manager.is_started is False

    @pytest.mark.asyncio
    async def test_context_manager_starts_and_closes(self) -> None:
        manager = BrowserManager()
        manager.start = AsyncMock()
        manager.close = AsyncMock()

        async with manager:
            manager.start.assert_called_once()

        manager.close.assert_called_once()


class TestNavigation:
    """Tests for navigation helpers."""

    @pytest.mark.asyncio
    async def test_goto_before_start(self) -> None:
        with pytest.raises(BrowserNotInitializedError):
            await BrowserManager().goto("https://www.etsy.com")

    @pytest.mark.asyncio
    async def test_goto_wraps_errors(self) -> None:
        manager, page = started_manager()
        page.get.side_effect = ConnectionError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(NavigationError):
            await manager.goto("https://www.etsy.com")

    @pytest.mark.asyncio
    async def test_wait_until_loaded(self) -> None:
        manager, page = started_manager()

        assert await manager.wait_until_loaded(timeout=1) is True
        page.evaluate.assert_awaited_with("document.readyState")

    @pytest.mark.asyncio
    async def test_wait_until_loaded_timeout(self) -> None:
        manager, page = started_manager()
        page.evaluate.return_value = "loading"

        with patch("etsy_automation.core.browser.NAVIGATION_POLL_INTERVAL", 0.01):
            assert await manager.wait_until_loaded(timeout=0.03) is False

    @pytest.mark.asyncio
    async def test_wait_for_navigation_detects_url_change(self) -> None:
        manager, page = started_manager()
        page.target.url = "https://www.etsy.com/your/account"

        assert await manager.wait_for_navigation("https://www.etsy.com/signin", 1) is True

    @pytest.mark.asyncio
    async def test_wait_for_navigation_timeout(self) -> None:
        manager, page = started_manager()
        page.target.url = "https://www.etsy.com/signin"

        with patch("etsy_automation.core.browser.NAVIGATION_POLL_INTERVAL", 0.01):
            assert (
                await manager.wait_for_navigation("https://www.etsy.com/signin", 0.03)
                is False
            )


class TestElements:
    """Tests for element helpers."""

    @pytest.mark.asyncio
    async def test_wait_for_selector_found(self) -> None:
        manager, page = started_manager()
        element = MagicMock()
        page.select = AsyncMock(return_value=element)

        assert await manager.wait_for_selector("textarea", timeout=5) is element
        page.select.assert_awaited_once_with("textarea", timeout=5)

    @pytest.mark.asyncio
    async def test_wait_for_selector_timeout_returns_none(self) -> None:
        manager, page = started_manager()
        page.select = AsyncMock(side_effect=TimeoutError("time ran out"))

        assert await manager.wait_for_selector("textarea") is None

    @pytest.mark.asyncio
    async def test_query_selector_error_returns_none(self) -> None:
        manager, page = started_manager()
        page.query_selector = AsyncMock(side_effect=RuntimeError("detached"))

        assert await manager.query_selector("button") is None

    @pytest.mark.asyncio
    async def test_type_text_one_key_at_a_time(self) -> None:
        manager, _ = started_manager()
        element = MagicMock()
        element.send_keys = AsyncMock()

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await manager.type_text(element, "abc", 0.1, 0.15)

        assert [c.args[0] for c in element.send_keys.await_args_list] == ["a", "b", "c"]
        for call in mock_sleep.await_args_list:
            assert 0.1 <= call.args[0] <= 0.15

    @pytest.mark.asyncio
    async def test_type_text_without_delay(self) -> None:
        manager, _ = started_manager()
        element = MagicMock()
        element.send_keys = AsyncMock()

        await manager.type_text(element, "1Z999")

        element.send_keys.assert_awaited_once_with("1Z999")

    @pytest.mark.asyncio
    async def test_screenshot_failure_returns_none(self, tmp_path) -> None:
        manager, page = started_manager()
        page.save_screenshot = AsyncMock(side_effect=RuntimeError("no target"))

        assert await manager.screenshot(tmp_path / "shot.png") is None


class TestRandomDelay:
    """Tests for random delay functionality."""

    @pytest.mark.asyncio
    async def test_random_delay_default_range(self) -> None:
        manager = BrowserManager()

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await manager.random_delay()

            call_args = mock_sleep.call_args[0][0]
            assert 0.5 <= call_args <= 2.0


class TestCookieOperations:
    """Tests for cookie get/set operations."""

    @pytest.mark.asyncio
    async def test_get_cookies_no_browser_returns_empty(self) -> None:
        assert await BrowserManager().get_cookies() == []

    @pytest.mark.asyncio
    async def test_get_cookies_maps_fields(self) -> None:
        manager, page = started_manager()
        cookie = MagicMock()
        cookie.name = "session-key-user"
        cookie.value = "abc"
        cookie.domain = ".etsy.com"
        cookie.path = "/"
        cookie.expires = 1767225600
        cookie.http_only = True
        cookie.secure = True
        cookie.same_site = None
        page.send.return_value = [cookie]

        cookies = await manager.get_cookies()

        assert cookies == [
            {
                "name": "session-key-user",
                "value": "abc",
                "domain": ".etsy.com",
                "path": "/",
                "expires": 1767225600,
                "httpOnly": True,
                "secure": True,
                "sameSite": "Lax",
            }
        ]

    @pytest.mark.asyncio
    async def test_set_cookies_no_browser_does_nothing(self) -> None:
        await BrowserManager().set_cookies([{"name": "test", "value": "123"}])

    @pytest.mark.asyncio
    async def test_set_cookies_sends_once(self) -> None:
        manager, page = started_manager()

        await manager.set_cookies(
            [
                {"name": "a", "value": "1", "sameSite": "Strict", "expires": 1767225600},
                {"name": "b", "value": "2", "expires": -1},
            ]
        )

        page.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_set_cookies_empty_list_does_nothing(self) -> None:
        manager, page = started_manager()

        await manager.set_cookies([])

        page.send.assert_not_called()

    def test_same_site_mapping(self) -> None:
        assert _same_site("Lax") is not None
        assert _same_site("unspecified") is None
        assert _same_site(None) is None

"""Main Etsy automation orchestrator."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from etsy_automation.core.auth import Authenticator
from etsy_automation.core.browser import BrowserManager
from etsy_automation.core.events import EventChannel
from etsy_automation.core.poller import MESSAGES, ORDERS, Poller
from etsy_automation.core.session import SessionStore
from etsy_automation.extractors.messages import MessageExtractor
from etsy_automation.extractors.orders import OrderExtractor
from etsy_automation.utils.config import Settings, get_settings
from etsy_automation.utils.constants import ALL_STATUSES, NEW_ORDER_STATUS
from etsy_automation.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from etsy_automation.core.events import Event
    from etsy_automation.models.records import (
        Conversation,
        ConversationDetail,
        Credentials,
        Order,
    )

logger = get_logger(__name__)


class EtsyAutomation:
    """
    Main automation class for an Etsy shop.

    Orchestrates:
    - Browser startup and silent session restore
    - Login (credentials, 2FA wait, manual fallback)
    - Message and order extraction and actions
    - Background polling with event delivery

    All browser work goes through one page. ``_page_lock`` serializes every
    navigating operation, so poll ticks wait behind a login in progress.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        browser: BrowserManager | None = None,
        events: EventChannel | None = None,
    ) -> None:
        """
        Initialize the automation engine.

        Args:
            settings: Application settings (defaults to environment)
            browser: Pre-built browser manager, mainly for tests
            events: Event channel to publish on (a new one if omitted)
        """
        self.settings = settings or get_settings()
        browser_cfg = self.settings.browser
        auth_cfg = self.settings.auth

        self.browser = browser or BrowserManager(
            headless=browser_cfg.headless,
            user_data_dir=browser_cfg.user_data_dir,
            timeout=browser_cfg.timeout,
            viewport=(browser_cfg.viewport_width, browser_cfg.viewport_height),
            user_agent=browser_cfg.user_agent,
            lang=browser_cfg.lang,
        )
        self.store = SessionStore(self.settings.session_file)
        self.events = events or EventChannel()
        self.auth = Authenticator(
            self.browser,
            self.store,
            shop_name=self.settings.shop_name,
            navigation_timeout=auth_cfg.navigation_timeout,
            two_factor_timeout=auth_cfg.two_factor_timeout,
            manual_login_timeout=auth_cfg.manual_login_timeout,
            manual_poll_interval=auth_cfg.manual_poll_interval,
            screenshot_dir=self.settings.screenshot_dir,
        )
        self.messages = MessageExtractor(
            self.browser, self.auth, self.events, self.settings.settle_delay
        )
        self.orders = OrderExtractor(
            self.browser, self.auth, self.events, self.settings.settle_delay
        )
        self.poller = Poller(
            self.events,
            fetch_messages=lambda: self.get_messages(only_unread=True),
            fetch_orders=lambda: self.get_orders(NEW_ORDER_STATUS),
        )

        self._page_lock = asyncio.Lock()
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> bool:
        """
        Start the browser and try to restore the saved session.

        Returns:
            True once the browser is up (authenticated or not)

        Raises:
            InitializationError: If the browser could not be launched
        """
        if self._initialized:
            return True

        logger.info("Initializing Etsy automation")
        async with self._page_lock:
            await self.browser.start()
            self._initialized = True
            restored = await self.auth.restore_session()

        logger.info("Etsy automation ready", authenticated=restored)
        return True

    async def close(self) -> None:
        """Stop polling and close the browser. Safe before ``initialize()``."""
        await self.poller.aclose()
        await self.browser.close()
        self.auth.reset()
        self._initialized = False
        logger.info("Etsy automation closed")

    async def __aenter__(self) -> EtsyAutomation:
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    async def login(self, credentials: Credentials | None = None) -> bool:
        """
        Log in to Etsy.

        With credentials the form is filled automatically; without them (or
        if the automated attempt fails) the user logs in by hand in the
        browser window.

        Returns:
            True if authenticated
        """
        async with self._page_lock:
            return await self.auth.login(credentials)

    async def check_login_status(self) -> bool:
        async with self._page_lock:
            return await self.auth.check_login_status()

    # =========================================================================
    # Messages
    # =========================================================================

    async def get_messages(self, only_unread: bool = False) -> list[Conversation]:
        async with self._page_lock:
            return await self.messages.get_messages(only_unread)

    async def get_message_details(self, conversation_id: str) -> ConversationDetail:
        async with self._page_lock:
            return await self.messages.get_message_details(conversation_id)

    async def send_message(self, conversation_id: str, text: str) -> bool:
        async with self._page_lock:
            return await self.messages.send_message(conversation_id, text)

    # =========================================================================
    # Orders
    # =========================================================================

    async def get_orders(self, status_filter: str = ALL_STATUSES) -> list[Order]:
        async with self._page_lock:
            return await self.orders.get_orders(status_filter)

    async def mark_order_shipped(
        self, order_id: str, tracking_number: str | None = None
    ) -> bool:
        async with self._page_lock:
            return await self.orders.mark_shipped(order_id, tracking_number)

    # =========================================================================
    # Polling
    # =========================================================================

    def start_message_polling(self, interval: float | None = None) -> None:
        """Poll unread messages; emits ``new-messages`` for non-empty batches."""
        if interval is None:
            interval = self.settings.polling.message_interval
        self.poller.start_message_polling(interval)

    def start_order_polling(self, interval: float | None = None) -> None:
        """Poll new orders; emits ``new-orders`` for non-empty batches."""
        if interval is None:
            interval = self.settings.polling.order_interval
        self.poller.start_order_polling(interval)

    def stop_polling(self) -> None:
        self.poller.stop_polling()

    @property
    def last_message_check(self) -> datetime | None:
        return self.poller.last_message_check

    @property
    def last_order_check(self) -> datetime | None:
        return self.poller.last_order_check

    # =========================================================================
    # Events
    # =========================================================================

    def on(self, event: Event | str, handler: Callable[[Any], Any]) -> None:
        self.events.on(event, handler)

    def off(self, event: Event | str, handler: Callable[[Any], Any]) -> None:
        self.events.off(event, handler)

    def status(self) -> dict[str, Any]:
        """Snapshot of the engine state."""
        return {
            "initialized": self._initialized,
            "authenticated": self.auth.is_authenticated,
            "auth_state": self.auth.state.value,
            "shop": self.auth.shop_identifier,
            "message_polling": self.poller.is_running(MESSAGES),
            "order_polling": self.poller.is_running(ORDERS),
            "last_message_check": self.last_message_check,
            "last_order_check": self.last_order_check,
        }

"""Login state machine: session restore, credentialed login, 2FA and manual fallback."""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from etsy_automation.exceptions import InvalidStateTransitionError, NavigationError
from etsy_automation.models.records import Credentials, Session
from etsy_automation.utils.constants import (
    ACCOUNT_URL,
    MANUAL_LOGIN_POLL_INTERVAL,
    MANUAL_LOGIN_TIMEOUT,
    POST_SUBMIT_TIMEOUT,
    SHOPS_URL,
    SHORT_DELAY,
    SIGNIN_URL,
    SIGNIN_URL_PATTERN,
    TWO_FACTOR_TIMEOUT,
    TYPING_DELAY_MAX,
    TYPING_DELAY_MIN,
)
from etsy_automation.utils.logging import get_logger, mask
from etsy_automation.utils.parsers import extract_shop_name


if TYPE_CHECKING:
    from etsy_automation.core.browser import BrowserManager
    from etsy_automation.core.session import SessionStore

logger = get_logger(__name__)


class AuthState(str, Enum):
    """Where the login flow currently stands."""

    UNAUTHENTICATED = "unauthenticated"
    SESSION_RESTORE_PENDING = "session_restore_pending"
    CREDENTIALED_LOGIN_PENDING = "credentialed_login_pending"
    TWO_FACTOR_PENDING = "two_factor_pending"
    MANUAL_LOGIN_PENDING = "manual_login_pending"
    AUTHENTICATED = "authenticated"


TRANSITIONS: dict[AuthState, frozenset[AuthState]] = {
    AuthState.UNAUTHENTICATED: frozenset(
        {
            AuthState.SESSION_RESTORE_PENDING,
            AuthState.CREDENTIALED_LOGIN_PENDING,
            AuthState.MANUAL_LOGIN_PENDING,
        }
    ),
    AuthState.SESSION_RESTORE_PENDING: frozenset(
        {AuthState.AUTHENTICATED, AuthState.UNAUTHENTICATED}
    ),
    # A failed credentialed attempt never loops back to itself
    AuthState.CREDENTIALED_LOGIN_PENDING: frozenset(
        {
            AuthState.TWO_FACTOR_PENDING,
            AuthState.AUTHENTICATED,
            AuthState.MANUAL_LOGIN_PENDING,
        }
    ),
    AuthState.TWO_FACTOR_PENDING: frozenset(
        {AuthState.AUTHENTICATED, AuthState.MANUAL_LOGIN_PENDING}
    ),
    AuthState.MANUAL_LOGIN_PENDING: frozenset(
        {AuthState.AUTHENTICATED, AuthState.UNAUTHENTICATED}
    ),
    AuthState.AUTHENTICATED: frozenset(
        {
            AuthState.CREDENTIALED_LOGIN_PENDING,
            AuthState.MANUAL_LOGIN_PENDING,
            AuthState.UNAUTHENTICATED,
        }
    ),
}

# Elements only rendered for a signed-in user
AUTHENTICATED_MARKERS = ("[data-user-id]", ".shop-manager", '[href*="/your/"]')

SELECTORS = {
    "email_input": 'input[name="email"], input[type="email"]',
    "password_input": 'input[name="password"], input[type="password"]',
    "submit_button": 'button[name="submit_attempt"], button[type="submit"]',
    "two_factor_input": 'input[name="code"], input[name="verification_code"]',
    "shop_link": 'a[href*="/shop/"]',
}


def classify_login_page(url: str, html: str) -> bool:
    """
    Decide from the URL and DOM whether the user is signed in.

    The sign-in URL wins over any marker found in the DOM.
    """
    if SIGNIN_URL_PATTERN in url:
        return False

    soup = BeautifulSoup(html or "", "html.parser")
    return any(soup.select_one(marker) is not None for marker in AUTHENTICATED_MARKERS)


class Authenticator:
    """
    Drives authentication against the storefront.

    Flow:
    - restore_session(): reuse persisted cookies, silently
    - login(credentials): human-paced form fill, optional 2FA wait,
      then manual login in the visible window as the terminal fallback

    Owns the Session. Other components only read ``is_authenticated``
    and ``shop_identifier``.
    """

    def __init__(
        self,
        browser: BrowserManager,
        store: SessionStore,
        shop_name: str | None = None,
        navigation_timeout: float = POST_SUBMIT_TIMEOUT,
        two_factor_timeout: float = TWO_FACTOR_TIMEOUT,
        manual_login_timeout: float = MANUAL_LOGIN_TIMEOUT,
        manual_poll_interval: float = MANUAL_LOGIN_POLL_INTERVAL,
        screenshot_dir: str | Path = "./data/debug",
    ) -> None:
        self.browser = browser
        self.store = store
        self.shop_name = shop_name
        self.navigation_timeout = navigation_timeout
        self.two_factor_timeout = two_factor_timeout
        self.manual_login_timeout = manual_login_timeout
        self.manual_poll_interval = manual_poll_interval
        self.screenshot_dir = Path(screenshot_dir)

        self._state = AuthState.UNAUTHENTICATED
        self._session = Session(shop_identifier=shop_name)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def shop_identifier(self) -> str | None:
        return self._session.shop_identifier

    @property
    def session(self) -> Session:
        """Read-only copy of the current session."""
        return Session(
            cookies=list(self._session.cookies),
            shop_identifier=self._session.shop_identifier,
            authenticated=self._session.authenticated,
        )

    def _transition(self, new_state: AuthState) -> None:
        """Move to ``new_state``; the only place the state changes."""
        if new_state not in TRANSITIONS[self._state]:
            raise InvalidStateTransitionError(
                f"Cannot go from {self._state.value} to {new_state.value}"
            )
        logger.debug("Auth state", old=self._state.value, new=new_state.value)
        self._state = new_state
        self._session.authenticated = new_state is AuthState.AUTHENTICATED

    def reset(self) -> None:
        """Forget the login (e.g. after the browser closed)."""
        if self._state is not AuthState.UNAUTHENTICATED:
            self._state = AuthState.UNAUTHENTICATED
            self._session.authenticated = False

    # =========================================================================
    # Status
    # =========================================================================

    async def check_login_status(self) -> bool:
        """Classify the current page as signed in or not."""
        try:
            url = self.browser.current_url
            if SIGNIN_URL_PATTERN in url:
                return False
            html = await self.browser.get_content()
        except Exception as e:
            logger.debug("Login status check failed", error=str(e))
            return False
        return classify_login_page(url, html)

    # =========================================================================
    # Session Restoration
    # =========================================================================

    async def restore_session(self) -> bool:
        """
        Restore session from saved cookies.

        Never raises: any failure leaves the state UNAUTHENTICATED.

        Returns:
            True if the saved session is still valid
        """
        if self._state is not AuthState.UNAUTHENTICATED:
            return self.is_authenticated

        self._transition(AuthState.SESSION_RESTORE_PENDING)
        try:
            cookies = self.store.load()
            if not cookies:
                logger.info("No previous session found")
                self._transition(AuthState.UNAUTHENTICATED)
                return False

            await self.browser.set_cookies(cookies)
            await self.browser.goto(ACCOUNT_URL)
            await self.browser.wait_until_loaded()

            if not await self.check_login_status():
                logger.info("Saved session expired")
                self._transition(AuthState.UNAUTHENTICATED)
                return False
        except Exception as e:
            logger.info("Session restore failed", error=str(e))
            self._transition(AuthState.UNAUTHENTICATED)
            return False

        self._session.cookies = cookies
        self._transition(AuthState.AUTHENTICATED)
        await self.extract_shop_info()
        logger.info("Etsy session restored successfully", shop=self.shop_identifier)
        return True

    # =========================================================================
    # Login Flow
    # =========================================================================

    async def login(self, credentials: Credentials | None = None) -> bool:
        """
        Log in, with credentials if given, else by waiting for the user.

        A failed credentialed attempt is not retried; it falls through to
        manual login in the browser window.

        Args:
            credentials: Account email and password, or None for manual login

        Returns:
            True once authenticated, False if the manual window timed out

        If the call is cancelled or fails part way, the state falls back to
        UNAUTHENTICATED so that ``login()`` can be called again.
        """
        try:
            await self.browser.goto(SIGNIN_URL)
        except NavigationError as e:
            logger.error("Error during login", error=str(e))
            return False
        await self.browser.wait_until_loaded()

        if credentials and credentials.email and credentials.password:
            first = AuthState.CREDENTIALED_LOGIN_PENDING
        else:
            first = AuthState.MANUAL_LOGIN_PENDING
        self._transition(first)

        try:
            if first is AuthState.CREDENTIALED_LOGIN_PENDING:
                signed_in = await self._credentialed_login(credentials)
                if self._state is AuthState.UNAUTHENTICATED:
                    logger.warning("Login abandoned")
                    return False
                if signed_in:
                    return await self._complete_login()
                logger.info("Falling back to manual login")
                self._transition(AuthState.MANUAL_LOGIN_PENDING)

            return await self._manual_login()
        finally:
            if not self.is_authenticated:
                self.reset()

    async def _credentialed_login(self, credentials: Credentials) -> bool:
        """Fill and submit the sign-in form; True if it ended signed in."""
        logger.info("Attempting automated login", email=mask(credentials.email))
        try:
            await self._submit_credentials(credentials)

            if await self.browser.query_selector(SELECTORS["two_factor_input"]):
                self._transition(AuthState.TWO_FACTOR_PENDING)
                await self._wait_for_two_factor()

            if await self.check_login_status():
                return True
            logger.warning("Automated login did not reach a signed-in page")
        except Exception as e:
            logger.error("Automated login failed", error=str(e))
            await self.browser.screenshot(
                self.screenshot_dir
                / f"login_error_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
            )
        return False

    async def _submit_credentials(self, credentials: Credentials) -> None:
        """Type credentials and click submit with human-like pacing."""
        await self.browser.random_delay(2.0, 4.0)

        email_input = await self.browser.wait_for_selector(SELECTORS["email_input"])
        if email_input is None:
            raise RuntimeError("Email input not found")
        await self.browser.triple_click(email_input)
        await asyncio.sleep(SHORT_DELAY)
        await self.browser.type_text(
            email_input, credentials.email, TYPING_DELAY_MIN, TYPING_DELAY_MAX
        )

        await self.browser.random_delay(0.5, 1.0)
        await self.browser.press_key("Tab", 9)

        password_input = await self.browser.wait_for_selector(
            SELECTORS["password_input"]
        )
        if password_input is None:
            raise RuntimeError("Password input not found")
        await self.browser.type_text(
            password_input, credentials.password, TYPING_DELAY_MIN, TYPING_DELAY_MAX
        )

        await self.browser.random_delay(1.0, 2.0)
        button = await self.browser.query_selector(SELECTORS["submit_button"])
        if button is None:
            raise RuntimeError("Sign-in button not found")
        await self.browser.move_mouse_to(button)
        await asyncio.sleep(SHORT_DELAY)

        signin_url = self.browser.current_url
        await self.browser.click(button)
        await self.browser.wait_for_navigation(signin_url, self.navigation_timeout)

    async def _wait_for_two_factor(self) -> None:
        """Wait for the user to finish 2FA in the browser window."""
        logger.warning(
            "2FA required - please enter code in browser window",
            timeout=self.two_factor_timeout,
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.two_factor_timeout
        challenge_url = self.browser.current_url

        while loop.time() < deadline:
            if self.browser.current_url != challenge_url:
                await self.browser.wait_until_loaded()
                return
            if await self.browser.query_selector(SELECTORS["two_factor_input"]) is None:
                return
            await asyncio.sleep(self.manual_poll_interval)

        logger.warning("Timed out waiting for 2FA")

    async def _manual_login(self) -> bool:
        """Poll until the user signs in by hand or the window closes."""
        logger.warning(
            "Please login to Etsy in the browser window",
            timeout=self.manual_login_timeout,
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.manual_login_timeout

        while True:
            signed_in = await self.check_login_status()
            # reset() from close() ends the wait
            if self._state is not AuthState.MANUAL_LOGIN_PENDING:
                logger.warning("Manual login abandoned", state=self._state.value)
                return False
            if signed_in:
                return await self._complete_login()
            if loop.time() >= deadline:
                break
            await asyncio.sleep(self.manual_poll_interval)

        logger.error("Manual login timed out", timeout=self.manual_login_timeout)
        self._transition(AuthState.UNAUTHENTICATED)
        return False

    async def _complete_login(self) -> bool:
        """Enter AUTHENTICATED, persist the session and learn the shop."""
        self._transition(AuthState.AUTHENTICATED)
        await self.save_session()
        await self.extract_shop_info()
        logger.info("Successfully logged in to Etsy", shop=self.shop_identifier)
        return True

    async def save_session(self) -> bool:
        """Persist cookies; failures are logged only."""
        try:
            cookies = await self.browser.get_cookies()
        except Exception as e:
            logger.error("Error reading cookies", error=str(e))
            return False
        self._session.cookies = cookies
        return self.store.save(cookies)

    async def extract_shop_info(self) -> str | None:
        """Learn the shop identifier from the account's shops page."""
        if self.shop_name:
            self._session.shop_identifier = self.shop_name
            return self.shop_name

        try:
            await self.browser.goto(SHOPS_URL)
            await self.browser.wait_until_loaded()
            soup = BeautifulSoup(await self.browser.get_content(), "html.parser")
        except Exception as e:
            logger.error("Error extracting shop info", error=str(e))
            return self._session.shop_identifier

        link = soup.select_one(SELECTORS["shop_link"])
        shop = extract_shop_name(link.get("href") if link else None)
        if shop:
            self._session.shop_identifier = shop
            logger.info("Shop name extracted", shop=shop)
        else:
            logger.warning("Shop link not found, using generic pages")
        return self._session.shop_identifier

    def logout(self) -> None:
        """Drop the login and forget persisted cookies."""
        if self._state is AuthState.AUTHENTICATED:
            self._transition(AuthState.UNAUTHENTICATED)
        self._session.cookies = []
        self.store.clear()

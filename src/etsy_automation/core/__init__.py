"""Core module - Browser, authentication, polling and events."""

from etsy_automation.core.auth import AuthState, Authenticator
from etsy_automation.core.automation import EtsyAutomation
from etsy_automation.core.browser import BrowserManager
from etsy_automation.core.events import Event, EventChannel
from etsy_automation.core.poller import Poller
from etsy_automation.core.session import SessionStore


__all__ = [
    "AuthState",
    "Authenticator",
    "BrowserManager",
    "EtsyAutomation",
    "Event",
    "EventChannel",
    "Poller",
    "SessionStore",
]

"""Custom exceptions for the Etsy automation engine."""

from __future__ import annotations


class EtsyAutomationError(Exception):
    """Base exception for all automation errors."""

    pass


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(EtsyAutomationError):
    """Base exception for browser-related errors."""

    pass


class BrowserNotInitializedError(BrowserError):
    """Raised when the page is accessed before initialize()."""

    pass


class InitializationError(BrowserError):
    """Raised when the browser or its page could not be created."""

    pass


class NavigationError(BrowserError):
    """Raised when page navigation fails."""

    pass


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(EtsyAutomationError):
    """Base exception for authentication errors."""

    pass


class NotAuthenticatedError(AuthenticationError):
    """Raised when a data operation is attempted before a successful login."""

    def __init__(self, message: str = "Not authenticated with Etsy") -> None:
        super().__init__(message)


class InvalidStateTransitionError(AuthenticationError):
    """Raised when the login state machine refuses a transition."""

    pass


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(EtsyAutomationError):
    """Base exception for data extraction errors."""

    pass


class ElementNotFoundError(ExtractionError):
    """Raised when a required interactive element is missing."""

    pass


# =============================================================================
# Persistence / Configuration Errors
# =============================================================================


class SessionPersistenceError(EtsyAutomationError):
    """Raised when session cookies cannot be saved or loaded."""

    pass


class ConfigurationError(EtsyAutomationError):
    """Raised when configuration is invalid."""

    pass

"""Session persistence for authentication cookies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from etsy_automation.exceptions import SessionPersistenceError
from etsy_automation.utils.logging import get_logger


logger = get_logger(__name__)


class SessionStore:
    """
    Saves and loads the account's cookies as a flat JSON list.

    One process drives one account, so the store holds a single record set.
    Every failure is logged and swallowed: a missing or broken session only
    means the next run logs in again.
    """

    def __init__(self, path: str | Path = "./data/sessions/etsy-session.json") -> None:
        self.path = Path(path)

    def save(self, cookies: list[dict[str, Any]]) -> bool:
        """
        Save cookies to file.

        Args:
            cookies: List of cookie dictionaries

        Returns:
            True if written, False if the write failed
        """
        try:
            self._write(cookies)
        except SessionPersistenceError as e:
            logger.error("Error saving session", path=str(self.path), error=str(e))
            return False
        logger.info("Session saved", path=str(self.path), count=len(cookies))
        return True

    def load(self) -> list[dict[str, Any]] | None:
        """
        Load cookies from file.

        Returns:
            List of cookies, or None if missing or unreadable
        """
        if not self.path.exists():
            logger.debug("Session file not found", path=str(self.path))
            return None

        try:
            cookies = self._read()
        except SessionPersistenceError as e:
            logger.warning("Ignoring unreadable session", path=str(self.path), error=str(e))
            return None

        logger.info("Session loaded", path=str(self.path), count=len(cookies))
        return cookies

    def clear(self) -> None:
        """Delete the saved session."""
        if self.path.exists():
            self.path.unlink()
            logger.info("Session cleared", path=str(self.path))

    def _write(self, cookies: list[dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w") as f:
                json.dump(cookies, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            raise SessionPersistenceError(str(e)) from e

    def _read(self) -> list[dict[str, Any]]:
        try:
            with self.path.open() as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise SessionPersistenceError(str(e)) from e

        if not isinstance(data, list) or not all(
            isinstance(c, dict) and "name" in c and "value" in c for c in data
        ):
            raise SessionPersistenceError("Session file is not a list of cookies")
        return data

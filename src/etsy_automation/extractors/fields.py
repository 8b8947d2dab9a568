"""Selector fallback chains.

Each logical field is described by an ordered tuple of strategies. The
first strategy that yields a non-empty value wins; when all miss, the
field gets its default instead of raising.

    CUSTOMER_NAME = Field(
        Text(".username, .buyer-name"),
        Text('a[href*="/people/"]'),
        default="Unknown Customer",
    )
    name = CUSTOMER_NAME.extract(row)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from etsy_automation.utils.parsers import clean_text


if TYPE_CHECKING:
    from bs4 import Tag


class Strategy(Protocol):
    def __call__(self, element: Tag) -> str | None: ...


@dataclass(frozen=True)
class Attr:
    """Attribute on the record element itself."""

    name: str

    def __call__(self, element: Tag) -> str | None:
        value = element.get(self.name)
        if isinstance(value, list):
            value = " ".join(value)
        return clean_text(value) or None


@dataclass(frozen=True)
class ChildAttr:
    """Attribute on the first descendant matching ``selector``."""

    selector: str
    name: str

    def __call__(self, element: Tag) -> str | None:
        child = element.select_one(self.selector)
        if child is None:
            return None
        return Attr(self.name)(child)


@dataclass(frozen=True)
class Text:
    """Text of the first descendant matching ``selector``."""

    selector: str

    def __call__(self, element: Tag) -> str | None:
        child = element.select_one(self.selector)
        if child is None:
            return None
        return clean_text(child.get_text(" ")) or None


@dataclass(frozen=True)
class OwnText:
    """Text of the record element, truncated."""

    limit: int = 200

    def __call__(self, element: Tag) -> str | None:
        return clean_text(element.get_text(" "))[: self.limit] or None


@dataclass(frozen=True)
class HasClass:
    """'true' if the record element carries a CSS class."""

    class_name: str

    def __call__(self, element: Tag) -> str | None:
        return "true" if self.class_name in (element.get("class") or []) else None


@dataclass(frozen=True)
class Exists:
    """'true' if a descendant matches ``selector``."""

    selector: str

    def __call__(self, element: Tag) -> str | None:
        return "true" if element.select_one(self.selector) is not None else None


@dataclass(frozen=True)
class AttrEquals:
    """'true' if an attribute on the record element has a given value."""

    name: str
    value: str

    def __call__(self, element: Tag) -> str | None:
        return "true" if element.get(self.name) == self.value else None


class Field:
    """Ordered fallback chain for one logical field."""

    def __init__(self, *strategies: Strategy, default: Any = None) -> None:
        self.strategies = strategies
        self.default = default

    def extract(self, element: Tag) -> Any:
        """First non-empty strategy result, or the default."""
        for strategy in self.strategies:
            value = strategy(element)
            if value:
                return value
        return self.default

    def matches(self, element: Tag) -> bool:
        """True if any strategy yields a value (for boolean fields)."""
        return any(strategy(element) for strategy in self.strategies)


def extract_fields(element: Tag, table: dict[str, Field]) -> dict[str, Any]:
    """Evaluate every field of a table against one record element."""
    return {name: rule.extract(element) for name, rule in table.items()}

"""Shared parsing utilities for extracted storefront text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from etsy_automation.utils.constants import (
    PRINT_KEYWORDS,
    PROCESSING_STATUSES,
    QUOTE_KEYWORDS,
)


if TYPE_CHECKING:
    from etsy_automation.models.records import OrderItem


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace and strip the ends."""
    if not text:
        return ""
    return " ".join(text.split())


def contains_any(text: str | None, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against a keyword set."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def needs_quote(preview: str | None) -> bool:
    """
    Check whether a conversation preview looks like a quote request.

    Args:
        preview: Message preview text

    Returns:
        True if the preview contains any quote keyword
    """
    return contains_any(preview, QUOTE_KEYWORDS)


def is_3d_print(items: Iterable[OrderItem]) -> bool:
    """True if any item's title or customization mentions 3D printing."""
    return any(
        contains_any(item.title, PRINT_KEYWORDS)
        or contains_any(item.customization, PRINT_KEYWORDS)
        for item in items
    )


def needs_processing(status: str | None) -> bool:
    """
    Check whether an order status requires seller action.

    Exact, case-sensitive match against the platform's English labels.
    A localized or reworded label will not match.
    """
    return status in PROCESSING_STATUSES


def parse_quantity(quantity_text: str | None, default: int = 1) -> int:
    """
    Parse an item quantity from text.

    Handles formats like "2", "Qty: 3", "x4".

    Args:
        quantity_text: Quantity string
        default: Value used when no digits are present

    Returns:
        Parsed quantity, or default if parsing fails
    """
    if not quantity_text:
        return default

    match = re.search(r"\d+", quantity_text)
    if not match:
        return default
    return int(match.group())


def extract_shop_name(href: str | None) -> str | None:
    """Extract the shop identifier from a /shop/<name> link."""
    if not href:
        return None
    match = re.search(r"/shop/([^/?#]+)", href)
    return match.group(1) if match else None

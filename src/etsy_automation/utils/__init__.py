"""Utility modules."""

from etsy_automation.utils.config import Settings, get_settings, load_settings
from etsy_automation.utils.inquiry import QuoteRequest, parse_quote_request
from etsy_automation.utils.logging import get_logger, setup_logging
from etsy_automation.utils.parsers import (
    clean_text,
    is_3d_print,
    needs_processing,
    needs_quote,
    parse_quantity,
)


__all__ = [
    "QuoteRequest",
    "Settings",
    "clean_text",
    "get_logger",
    "get_settings",
    "is_3d_print",
    "load_settings",
    "needs_processing",
    "needs_quote",
    "parse_quantity",
    "parse_quote_request",
    "setup_logging",
]

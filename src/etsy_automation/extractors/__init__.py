"""Page extractors for the seller inbox and orders."""

from etsy_automation.extractors.base import BaseExtractor
from etsy_automation.extractors.messages import MessageExtractor
from etsy_automation.extractors.orders import OrderExtractor


__all__ = ["BaseExtractor", "MessageExtractor", "OrderExtractor"]

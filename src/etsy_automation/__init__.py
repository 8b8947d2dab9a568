"""
Etsy Automation - Browser automation core for an Etsy seller account.

Usage:
    from etsy_automation import Credentials, EtsyAutomation

    async with EtsyAutomation() as etsy:
        if not etsy.is_authenticated:
            await etsy.login(Credentials(email, password))
        etsy.on("new-messages", handle_messages)
        etsy.start_message_polling()
"""

__version__ = "0.1.0"

from etsy_automation.core.automation import EtsyAutomation
from etsy_automation.core.events import Event, EventChannel
from etsy_automation.models.records import Credentials


__all__ = [
    "Credentials",
    "EtsyAutomation",
    "Event",
    "EventChannel",
    "__version__",
]

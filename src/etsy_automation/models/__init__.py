"""Data models for extracted records."""

from etsy_automation.models.records import (
    Attachment,
    Conversation,
    ConversationDetail,
    Credentials,
    CustomerInfo,
    Message,
    MessageSummary,
    Order,
    OrderInfo,
    OrderItem,
    OrderSummary,
    Session,
)


__all__ = [
    "Attachment",
    "Conversation",
    "ConversationDetail",
    "Credentials",
    "CustomerInfo",
    "Message",
    "MessageSummary",
    "Order",
    "OrderInfo",
    "OrderItem",
    "OrderSummary",
    "Session",
]

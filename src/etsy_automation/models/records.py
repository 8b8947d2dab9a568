"""Typed records extracted from storefront pages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from etsy_automation.utils.logging import mask


@dataclass
class Credentials:
    """Account credentials supplied by the caller."""

    email: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(email={mask(self.email)!r}, password='***')"


@dataclass
class Session:
    """Authentication artifact persisted across process restarts."""

    cookies: list[dict[str, Any]] = field(default_factory=list)
    shop_identifier: str | None = None
    authenticated: bool = False


@dataclass
class Conversation:
    """A conversation row from the inbox list."""

    id: str | None
    customer_name: str
    preview_text: str
    is_unread: bool
    timestamp_raw: str
    needs_quote: bool
    detail_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Attachment:
    """File attached to a message."""

    name: str
    url: str | None


@dataclass
class Message:
    """A single message inside a conversation."""

    sender: str
    content: str
    timestamp_raw: str
    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class CustomerInfo:
    """Buyer shown on a conversation page."""

    name: str | None = None
    profile_url: str | None = None


@dataclass
class OrderInfo:
    """Order linked from a conversation page."""

    order_number: str | None = None
    order_url: str | None = None


@dataclass
class ConversationDetail:
    """Full contents of a conversation page."""

    messages: list[Message] = field(default_factory=list)
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)
    order_info: OrderInfo = field(default_factory=OrderInfo)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OrderItem:
    """Line item of an order."""

    title: str
    quantity: int = 1
    customization: str | None = None


@dataclass
class Order:
    """A sold order from the orders page."""

    order_id: str | None
    buyer_name: str
    status: str
    total: str
    items: list[OrderItem] = field(default_factory=list)
    order_date: str = ""
    is_3d_print: bool = False
    needs_processing: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MessageSummary:
    """Payload of the messages-updated event."""

    total: int
    unread: int
    quote_requests: int


@dataclass
class OrderSummary:
    """Payload of the orders-updated event."""

    total: int
    new: int
    print_orders: int

"""Conversation extractor for the seller inbox."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from etsy_automation.core.events import Event
from etsy_automation.extractors.base import BaseExtractor
from etsy_automation.extractors.fields import (
    Attr,
    AttrEquals,
    ChildAttr,
    Exists,
    Field,
    HasClass,
    OwnText,
    Text,
    extract_fields,
)
from etsy_automation.models.records import (
    Attachment,
    Conversation,
    ConversationDetail,
    CustomerInfo,
    Message,
    MessageSummary,
    OrderInfo,
)
from etsy_automation.utils.constants import (
    BASE_URL,
    CONVERSATION_URL,
    MESSAGES_URL,
    SHOP_MESSAGES_URL,
)
from etsy_automation.utils.logging import get_logger
from etsy_automation.utils.parsers import clean_text, needs_quote


if TYPE_CHECKING:
    from bs4 import Tag

logger = get_logger(__name__)

CONVERSATION_SELECTOR = ", ".join(
    [
        ".conversation-card",
        "[data-convo-thread]",
        ".message-thread",
        "tbody tr[data-conversation-id]",
        '[role="article"][data-conversation]',
    ]
)

CONVERSATION_FIELDS = {
    "id": Field(
        Attr("data-conversation-id"),
        ChildAttr("[data-conversation-id]", "data-conversation-id"),
        Attr("id"),
    ),
    "customer_name": Field(
        Text(".username, .buyer-name, [data-buyer-username]"),
        Text('a[href*="/people/"]'),
        default="Unknown Customer",
    ),
    "preview_text": Field(
        Text(".last-message, .message-snippet, .conversation-snippet"),
        Text("p"),
        default="",
    ),
    "timestamp_raw": Field(
        ChildAttr("time, .timestamp, [data-timestamp]", "datetime"),
        ChildAttr("[data-timestamp]", "data-timestamp"),
        Text(".conversation-date"),
        Text("time"),
        default="",
    ),
    "detail_url": Field(ChildAttr('a[href*="/conversations/"]', "href")),
}

UNREAD = Field(
    HasClass("is-unread"),
    Exists(".unread-indicator"),
    AttrEquals("data-unread", "true"),
)

MESSAGE_SELECTOR = ".message, [data-message], .conversation-message"

MESSAGE_FIELDS = {
    "sender": Field(
        Text(".sender-name"),
        Text(".username"),
        Attr("data-sender"),
        default="Unknown",
    ),
    "content": Field(
        Text(".message-content, .message-body"),
        Text("p"),
        OwnText(),
        default="",
    ),
    "timestamp_raw": Field(
        ChildAttr("time", "datetime"),
        Text("time"),
        Attr("data-timestamp"),
        default="",
    ),
}

ATTACHMENT_SELECTOR = 'a[href*="/download/"], .attachment'

CUSTOMER_FIELDS = {
    "name": Field(
        Text(".buyer-username, [data-buyer-name]"),
        ChildAttr("[data-buyer-name]", "data-buyer-name"),
        Text('a[href*="/people/"]'),
    ),
    "profile_url": Field(ChildAttr('a[href*="/people/"]', "href")),
}

ORDER_LINK_FIELDS = {
    "order_number": Field(
        Text("[data-order-id], .order-number"),
        ChildAttr("[data-order-id]", "data-order-id"),
    ),
    "order_url": Field(ChildAttr('a[href*="/order/"]', "href")),
}

REPLY_INPUT = 'textarea[name="message"], #message-textarea'
SEND_BUTTON = 'button[type="submit"], button.send-message'


class MessageExtractor(BaseExtractor[Conversation]):
    """
    Reads the seller inbox and individual conversations.

    Every call to ``get_messages`` publishes a ``messages-updated`` summary.
    """

    record_selector = CONVERSATION_SELECTOR

    def messages_url(self) -> str:
        if self.shop:
            return SHOP_MESSAGES_URL.format(shop=self.shop)
        return MESSAGES_URL

    async def get_messages(self, only_unread: bool = False) -> list[Conversation]:
        """
        Fetch conversations from the inbox.

        Args:
            only_unread: Drop conversations that have been read

        Returns:
            List of conversations (possibly empty)
        """
        self.require_authenticated()
        logger.info("Fetching messages", only_unread=only_unread)

        soup = await self.load(self.messages_url())
        conversations = self.parse_records(soup)
        if only_unread:
            conversations = [c for c in conversations if c.is_unread]

        summary = MessageSummary(
            total=len(conversations),
            unread=sum(1 for c in conversations if c.is_unread),
            quote_requests=sum(1 for c in conversations if c.needs_quote),
        )
        await self.events.emit(Event.MESSAGES_UPDATED, summary)

        logger.info(
            "Messages fetched",
            total=summary.total,
            unread=summary.unread,
            quote_requests=summary.quote_requests,
        )
        return conversations

    def parse(self, element: Tag) -> Conversation:
        fields = extract_fields(element, CONVERSATION_FIELDS)
        href = fields.pop("detail_url")
        return Conversation(
            **fields,
            is_unread=UNREAD.matches(element),
            needs_quote=needs_quote(fields["preview_text"]),
            detail_url=urljoin(BASE_URL, href) if href else None,
        )

    async def get_message_details(self, conversation_id: str) -> ConversationDetail:
        """
        Read every message of one conversation.

        Args:
            conversation_id: Conversation identifier from the inbox

        Returns:
            Messages plus the buyer and linked order, if shown
        """
        self.require_authenticated()
        logger.info("Fetching conversation", conversation_id=conversation_id)

        soup = await self.load(CONVERSATION_URL.format(conversation_id=conversation_id))

        messages: list[Message] = []
        for index, element in enumerate(soup.select(MESSAGE_SELECTOR)):
            try:
                messages.append(self._parse_message(element))
            except Exception as e:
                logger.warning("Skipping malformed message", index=index, error=str(e))

        return ConversationDetail(
            messages=messages,
            customer_info=CustomerInfo(
                **extract_fields(soup, CUSTOMER_FIELDS)
            ),
            order_info=OrderInfo(
                **extract_fields(soup, ORDER_LINK_FIELDS)
            ),
        )

    def _parse_message(self, element: Tag) -> Message:
        attachments = [
            Attachment(name=clean_text(link.get_text(" ")), url=link.get("href"))
            for link in element.select(ATTACHMENT_SELECTOR)
        ]
        return Message(
            **extract_fields(element, MESSAGE_FIELDS),
            attachments=attachments,
        )

    async def send_message(self, conversation_id: str, text: str) -> bool:
        """
        Reply in a conversation.

        Raises:
            NotAuthenticatedError: Before a successful login
            ElementNotFoundError: If the reply box or send button is missing
        """
        self.require_authenticated()
        logger.info("Sending message", conversation_id=conversation_id)

        await self.browser.goto(CONVERSATION_URL.format(conversation_id=conversation_id))
        await self.browser.wait_until_loaded()

        reply_box = await self.require_element(REPLY_INPUT, timeout=5)
        await self.browser.click(reply_box)
        await self.browser.type_text(reply_box, text, 0.03, 0.07)

        send_button = await self.require_element(SEND_BUTTON, timeout=5)
        await self.browser.click(send_button)
        await asyncio.sleep(self.settle_delay)

        logger.info("Message sent", conversation_id=conversation_id)
        return True

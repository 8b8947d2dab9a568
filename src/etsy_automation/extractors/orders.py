"""Order extractor for the shop's sold orders."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from etsy_automation.core.events import Event
from etsy_automation.extractors.base import BaseExtractor
from etsy_automation.extractors.fields import Attr, ChildAttr, Field, Text, extract_fields
from etsy_automation.models.records import Order, OrderItem, OrderSummary
from etsy_automation.utils.constants import (
    ALL_STATUSES,
    SHOP_ORDERS_URL,
    SOLD_ORDER_URL,
    SOLD_ORDERS_URL,
)
from etsy_automation.utils.logging import get_logger
from etsy_automation.utils.parsers import is_3d_print, needs_processing, parse_quantity


if TYPE_CHECKING:
    from bs4 import Tag

logger = get_logger(__name__)

ORDER_SELECTOR = ".order-row, [data-order], tr[data-order-id], .panel[data-order-id]"

ORDER_FIELDS = {
    "order_id": Field(
        Attr("data-order-id"),
        ChildAttr("[data-order-id]", "data-order-id"),
        Text(".order-number"),
        Attr("id"),
    ),
    "buyer_name": Field(
        Text(".buyer-name, [data-buyer-username]"),
        Text('a[href*="/people/"]'),
        default="Unknown Buyer",
    ),
    "status": Field(
        Text(".order-status, [data-status]"),
        Attr("data-status"),
        default="",
    ),
    "total": Field(
        Text(".order-total, .total-price"),
        Attr("data-total"),
        default="",
    ),
    "order_date": Field(
        ChildAttr("time, .order-date", "datetime"),
        Text(".order-date"),
        Text("time"),
        default="",
    ),
}

ITEM_SELECTOR = ".order-item, .line-item"

ITEM_FIELDS = {
    "title": Field(
        Text(".item-title, .listing-title"),
        ChildAttr("img", "alt"),
        default="",
    ),
    "quantity": Field(Text(".quantity"), Attr("data-quantity")),
    "customization": Field(Text(".personalization, .customization")),
}

SHIP_BUTTON = "button[data-ship], .mark-shipped-button"
TRACKING_INPUT = 'input[name="tracking_number"]'
CONFIRM_BUTTON = 'button[type="submit"], .confirm-ship'


class OrderExtractor(BaseExtractor[Order]):
    """
    Reads sold orders and marks them shipped.

    Every call to ``get_orders`` publishes an ``orders-updated`` summary.
    """

    record_selector = ORDER_SELECTOR

    def orders_url(self) -> str:
        if self.shop:
            return SHOP_ORDERS_URL.format(shop=self.shop)
        return SOLD_ORDERS_URL

    async def get_orders(self, status_filter: str = ALL_STATUSES) -> list[Order]:
        """
        Fetch orders from the orders page.

        Args:
            status_filter: Exact status label to keep, or "all"

        Returns:
            List of orders (possibly empty)
        """
        self.require_authenticated()
        logger.info("Fetching orders", status=status_filter)

        soup = await self.load(self.orders_url())
        orders = self.parse_records(soup)
        if status_filter != ALL_STATUSES:
            orders = [o for o in orders if o.status == status_filter]

        summary = OrderSummary(
            total=len(orders),
            new=sum(1 for o in orders if o.needs_processing),
            print_orders=sum(1 for o in orders if o.is_3d_print),
        )
        await self.events.emit(Event.ORDERS_UPDATED, summary)

        logger.info(
            "Orders fetched",
            total=summary.total,
            new=summary.new,
            print_orders=summary.print_orders,
        )
        return orders

    def parse(self, element: Tag) -> Order:
        fields = extract_fields(element, ORDER_FIELDS)
        items = [self._parse_item(item) for item in element.select(ITEM_SELECTOR)]
        return Order(
            **fields,
            items=items,
            is_3d_print=is_3d_print(items),
            needs_processing=needs_processing(fields["status"]),
        )

    def _parse_item(self, element: Tag) -> OrderItem:
        fields = extract_fields(element, ITEM_FIELDS)
        return OrderItem(
            title=fields["title"],
            quantity=parse_quantity(fields["quantity"]),
            customization=fields["customization"],
        )

    async def mark_shipped(
        self, order_id: str, tracking_number: str | None = None
    ) -> bool:
        """
        Mark an order as shipped, optionally with a tracking number.

        Raises:
            NotAuthenticatedError: Before a successful login
            ElementNotFoundError: If the ship controls are missing
        """
        self.require_authenticated()
        logger.info("Marking order shipped", order_id=order_id)

        await self.browser.goto(SOLD_ORDER_URL.format(order_id=order_id))
        await self.browser.wait_until_loaded()

        await self.browser.click(await self.require_element(SHIP_BUTTON))
        await asyncio.sleep(1.0)

        if tracking_number:
            tracking_input = await self.require_element(TRACKING_INPUT, timeout=5)
            await self.browser.type_text(tracking_input, tracking_number)

        await self.browser.click(await self.require_element(CONFIRM_BUTTON, timeout=5))
        await asyncio.sleep(self.settle_delay)

        logger.info("Order marked as shipped", order_id=order_id)
        return True

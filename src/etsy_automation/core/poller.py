"""Fixed-rate polling of the message and order pipelines."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from etsy_automation.core.events import Event, EventChannel
from etsy_automation.utils.constants import MESSAGE_POLL_INTERVAL, ORDER_POLL_INTERVAL
from etsy_automation.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

logger = get_logger(__name__)

MESSAGES = "messages"
ORDERS = "orders"


class Poller:
    """
    Runs one background task per pipeline.

    Each tick fetches the actionable batch (unread messages, new orders)
    and publishes a delta event when it is non-empty. Ticks of one pipeline
    never overlap: a tick that overruns its interval makes the loop skip
    the missed slots instead of queueing them. A failing tick is logged and
    the loop keeps going.
    """

    def __init__(
        self,
        events: EventChannel,
        fetch_messages: Callable[[], Awaitable[Sequence[Any]]],
        fetch_orders: Callable[[], Awaitable[Sequence[Any]]],
    ) -> None:
        self.events = events
        self._pipelines: dict[str, tuple[Callable[[], Awaitable[Sequence[Any]]], Event]] = {
            MESSAGES: (fetch_messages, Event.NEW_MESSAGES),
            ORDERS: (fetch_orders, Event.NEW_ORDERS),
        }
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._last_check: dict[str, datetime | None] = {MESSAGES: None, ORDERS: None}

    # =========================================================================
    # Watermarks
    # =========================================================================

    @property
    def last_message_check(self) -> datetime | None:
        return self._last_check[MESSAGES]

    @property
    def last_order_check(self) -> datetime | None:
        return self._last_check[ORDERS]

    def is_running(self, pipeline: str) -> bool:
        task = self._tasks.get(pipeline)
        return task is not None and not task.done()

    # =========================================================================
    # Start / Stop
    # =========================================================================

    def start_message_polling(self, interval: float = MESSAGE_POLL_INTERVAL) -> None:
        """Poll for unread messages every ``interval`` seconds."""
        self._start(MESSAGES, interval)

    def start_order_polling(self, interval: float = ORDER_POLL_INTERVAL) -> None:
        """Poll for new orders every ``interval`` seconds."""
        self._start(ORDERS, interval)

    def _start(self, pipeline: str, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive")

        self._cancel(pipeline)
        self._tasks[pipeline] = asyncio.create_task(
            self._run(pipeline, interval), name=f"poll-{pipeline}"
        )
        logger.info(f"{pipeline.capitalize()} polling started", interval=interval)

    def _cancel(self, pipeline: str) -> asyncio.Task[None] | None:
        task = self._tasks.pop(pipeline, None)
        if task is not None and not task.done():
            task.cancel()
        return task

    def stop_polling(self) -> None:
        """Cancel both pipelines. Safe to call repeatedly or before any start."""
        stopped = [p for p in (MESSAGES, ORDERS) if self._cancel(p) is not None]
        if stopped:
            logger.info("Polling stopped", pipelines=stopped)

    async def aclose(self) -> None:
        """Cancel both pipelines and wait for their tasks to finish."""
        tasks = [t for t in (self._cancel(MESSAGES), self._cancel(ORDERS)) if t]
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task

    # =========================================================================
    # Loop
    # =========================================================================

    async def _run(self, pipeline: str, interval: float) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() + interval

        while True:
            await asyncio.sleep(max(0.0, next_run - loop.time()))
            await self.tick(pipeline)

            next_run += interval
            behind = loop.time() - next_run
            if behind > 0:
                skipped = int(behind // interval) + 1
                next_run += skipped * interval
                logger.warning(
                    "Poll tick overran its interval, skipping",
                    pipeline=pipeline,
                    skipped=skipped,
                )

    async def tick(self, pipeline: str) -> int:
        """
        Run one poll of a pipeline.

        Returns:
            Size of the actionable batch (0 on error)
        """
        fetch, delta_event = self._pipelines[pipeline]
        try:
            batch = await fetch()
        except Exception as e:
            logger.error(f"Error polling {pipeline}", error=str(e))
            return 0

        self._last_check[pipeline] = datetime.now(timezone.utc)
        if batch:
            await self.events.emit(delta_event, list(batch))
        return len(batch)

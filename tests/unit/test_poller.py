"""Unit tests for Poller."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from etsy_automation.core.events import EventChannel
from etsy_automation.core.poller import MESSAGES, ORDERS, Poller


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def poller(channel: EventChannel) -> Poller:
    return Poller(
        channel,
        fetch_messages=AsyncMock(return_value=[]),
        fetch_orders=AsyncMock(return_value=[]),
    )


class TestTick:
    """Tests for a single poll."""

    @pytest.mark.asyncio
    async def test_delta_event_only_when_non_empty(self, channel: EventChannel) -> None:
        fetch = AsyncMock(side_effect=[[], ["c1", "c2"]])
        poller = Poller(channel, fetch_messages=fetch, fetch_orders=AsyncMock())
        received: list[object] = []
        channel.on("new-messages", received.append)

        assert await poller.tick(MESSAGES) == 0
        assert received == []

        assert await poller.tick(MESSAGES) == 2
        assert received == [["c1", "c2"]]

    @pytest.mark.asyncio
    async def test_order_pipeline_emits_new_orders(self, channel: EventChannel) -> None:
        poller = Poller(
            channel,
            fetch_messages=AsyncMock(),
            fetch_orders=AsyncMock(return_value=["1001"]),
        )
        received: list[object] = []
        channel.on("new-orders", received.append)

        await poller.tick(ORDERS)

        assert received == [["1001"]]
        assert poller.last_order_check is not None
        assert poller.last_message_check is None

    @pytest.mark.asyncio
    async def test_error_is_swallowed(self, channel: EventChannel) -> None:
        poller = Poller(
            channel,
            fetch_messages=AsyncMock(side_effect=RuntimeError("page crashed")),
            fetch_orders=AsyncMock(),
        )

        assert await poller.tick(MESSAGES) == 0
        assert poller.last_message_check is None


class TestPollingLoop:
    """Tests for the background tasks."""

    @pytest.mark.asyncio
    async def test_ticks_repeat(self, poller: Poller) -> None:
        poller.start_message_polling(0.01)
        await asyncio.sleep(0.055)
        await poller.aclose()

        fetch = poller._pipelines[MESSAGES][0]
        assert fetch.await_count >= 3

    @pytest.mark.asyncio
    async def test_errors_do_not_stop_the_timer(self, channel: EventChannel) -> None:
        fetch = AsyncMock(side_effect=RuntimeError("timeout"))
        poller = Poller(channel, fetch_messages=AsyncMock(), fetch_orders=fetch)

        poller.start_order_polling(0.01)
        await asyncio.sleep(0.055)

        assert poller.is_running(ORDERS)
        assert fetch.await_count >= 3
        await poller.aclose()

    @pytest.mark.asyncio
    async def test_restart_replaces_task(self, poller: Poller) -> None:
        poller.start_message_polling(10)
        first = poller._tasks[MESSAGES]

        poller.start_message_polling(10)
        await asyncio.sleep(0.01)

        assert first.cancelled()
        assert poller._tasks[MESSAGES] is not first
        assert poller.is_running(MESSAGES)
        await poller.aclose()

    @pytest.mark.asyncio
    async def test_pipelines_are_independent(self, poller: Poller) -> None:
        poller.start_message_polling(10)
        poller.start_order_polling(10)

        assert poller.is_running(MESSAGES)
        assert poller.is_running(ORDERS)
        await poller.aclose()
        assert not poller.is_running(MESSAGES)
        assert not poller.is_running(ORDERS)

    @pytest.mark.asyncio
    async def test_slow_tick_never_overlaps(self, channel: EventChannel) -> None:
        in_flight = 0
        peak = 0

        async def slow_fetch() -> list[str]:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.03)
            in_flight -= 1
            return []

        poller = Poller(channel, fetch_messages=slow_fetch, fetch_orders=AsyncMock())
        poller.start_message_polling(0.01)
        await asyncio.sleep(0.1)
        await poller.aclose()

        assert peak == 1

    def test_invalid_interval(self, poller: Poller) -> None:
        with pytest.raises(ValueError):
            poller.start_order_polling(0)


class TestStop:
    """Tests for stopping."""

    def test_stop_before_start(self, poller: Poller) -> None:
        poller.stop_polling()
        poller.stop_polling()

    @pytest.mark.asyncio
    async def test_stop_twice(self, poller: Poller) -> None:
        poller.start_message_polling(10)

        poller.stop_polling()
        poller.stop_polling()
        await poller.aclose()

        assert not poller.is_running(MESSAGES)

"""Unit tests for EventChannel."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from etsy_automation.core.events import Event, EventChannel


class TestSubscription:
    """Tests for on/off bookkeeping."""

    def test_on_and_off(self) -> None:
        channel = EventChannel()
        handler = lambda payload: None  # noqa: E731

        channel.on("new-orders", handler)
        assert channel.listener_count(Event.NEW_ORDERS) == 1

        channel.off(Event.NEW_ORDERS, handler)
        assert channel.listener_count("new-orders") == 0

    def test_off_unknown_handler_is_ignored(self) -> None:
        channel = EventChannel()

        channel.off("new-messages", print)

        assert channel.listener_count("new-messages") == 0

    def test_unknown_event_name(self) -> None:
        channel = EventChannel()

        with pytest.raises(ValueError, match="Unknown event"):
            channel.on("order-shipped", print)

    def test_clear(self) -> None:
        channel = EventChannel()
        channel.on("new-messages", print)

        channel.clear()

        assert channel.listener_count("new-messages") == 0


class TestEmit:
    """Tests for delivery."""

    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self) -> None:
        channel = EventChannel()
        calls: list[str] = []

        async def second(payload: object) -> None:
            calls.append(f"second:{payload}")

        channel.on("messages-updated", lambda p: calls.append(f"first:{p}"))
        channel.on("messages-updated", second)

        delivered = await channel.emit("messages-updated", 3)

        assert delivered == 2
        assert calls == ["first:3", "second:3"]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self) -> None:
        channel = EventChannel()
        calls: list[object] = []

        def broken(payload: object) -> None:
            raise RuntimeError("store unavailable")

        channel.on("new-orders", broken)
        channel.on("new-orders", calls.append)

        delivered = await channel.emit(Event.NEW_ORDERS, ["order"])

        assert delivered == 1
        assert calls == [["order"]]

    @pytest.mark.asyncio
    async def test_emit_without_subscribers(self) -> None:
        assert await EventChannel().emit("orders-updated", None) == 0

    @pytest.mark.asyncio
    async def test_events_are_independent(self) -> None:
        channel = EventChannel()
        calls: list[object] = []
        channel.on("new-messages", calls.append)

        await channel.emit("messages-updated", "summary")

        assert calls == []


class TestLogging:
    """Emit logs carry the event name without clashing with structlog's own key."""

    @pytest.mark.asyncio
    async def test_emit_logs_event_name(self) -> None:
        channel = EventChannel()
        channel.on("messages-updated", lambda payload: None)

        with capture_logs() as logs:
            assert await channel.emit("messages-updated", {"total": 0}) == 1

        emitted = [entry for entry in logs if entry["event"] == "Event emitted"]
        assert emitted == [
            {
                "event": "Event emitted",
                "event_name": "messages-updated",
                "handlers": 1,
                "log_level": "debug",
            }
        ]

    @pytest.mark.asyncio
    async def test_handler_failure_is_logged(self) -> None:
        channel = EventChannel()

        def broken(payload: object) -> None:
            raise RuntimeError("store unavailable")

        channel.on("new-orders", broken)

        with capture_logs() as logs:
            assert await channel.emit("new-orders", []) == 0

        failure = next(entry for entry in logs if entry["event"] == "Event handler failed")
        assert failure["event_name"] == "new-orders"
        assert failure["handler"] == "broken"
        assert failure["error"] == "store unavailable"

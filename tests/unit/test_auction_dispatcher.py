"""
커밋 후 알림 큐 테스트
"""
import asyncio
from unittest.mock import AsyncMock

from service.event.event_bus import AuctionEvent, AuctionEventType
from service.notification.auction_dispatcher import AuctionNotificationDispatcher


def make_event(product_id=1, event_type=AuctionEventType.BID_PLACED):
    return AuctionEvent(type=event_type, product_id=product_id, result=None)


class TestEnqueue:
    def test_enqueue_does_not_block_without_worker(self, event_bus):
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)

        assert dispatcher.enqueue(make_event()) is True
        assert dispatcher.pending_count == 1

    def test_overflow_is_dropped_not_raised(self, event_bus):
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus, max_size=2)

        assert dispatcher.enqueue(make_event(1)) is True
        assert dispatcher.enqueue(make_event(2)) is True
        assert dispatcher.enqueue(make_event(3)) is False
        assert dispatcher.pending_count == 2


class TestWorker:
    async def test_worker_publishes_in_order(self, event_bus):
        received = []

        async def on_bid(event):
            received.append(event.product_id)

        event_bus.subscribe(AuctionEventType.BID_PLACED, on_bid)
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)
        dispatcher.start()

        for product_id in (1, 2, 3):
            dispatcher.enqueue(make_event(product_id))

        await dispatcher.stop()

        assert received == [1, 2, 3]
        assert dispatcher.is_running is False

    async def test_subscriber_failure_does_not_stop_worker(self, event_bus):
        calls = []

        async def flaky(event):
            calls.append(event.product_id)
            if event.product_id == 1:
                raise RuntimeError("DM 전송 실패")

        event_bus.subscribe(AuctionEventType.BID_PLACED, flaky)
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)
        dispatcher.start()

        dispatcher.enqueue(make_event(1))
        dispatcher.enqueue(make_event(2))
        await dispatcher.stop()

        assert calls == [1, 2]

    async def test_stop_gives_up_after_timeout(self, event_bus):
        async def slow(event):
            await asyncio.sleep(10)

        event_bus.subscribe(AuctionEventType.BID_PLACED, slow)
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)
        dispatcher.start()
        dispatcher.enqueue(make_event())

        await dispatcher.stop(timeout=0.05)

        assert dispatcher.is_running is False

    async def test_start_twice_keeps_single_worker(self, event_bus):
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)
        dispatcher.start()
        worker = dispatcher._worker

        dispatcher.start()

        assert dispatcher._worker is worker
        await dispatcher.stop()

    async def test_drain_publishes_without_worker(self, event_bus):
        callback = AsyncMock(__name__="callback")
        event_bus.subscribe(AuctionEventType.AUCTION_ENDED, callback)
        dispatcher = AuctionNotificationDispatcher(event_bus=event_bus)

        dispatcher.enqueue(make_event(event_type=AuctionEventType.AUCTION_ENDED))
        await dispatcher.drain()

        callback.assert_awaited_once()
        assert dispatcher.pending_count == 0

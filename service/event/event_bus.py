"""
이벤트 버스 (Event Bus)

옵저버 패턴을 사용하여 경매 이벤트를 발행하고 구독합니다.
경매 서비스는 커밋 이후 이벤트를 발행하기만 하면 되고,
구독자(디스코드 알림 등)가 메시지 작성과 전송을 책임집니다.
"""

import logging
from datetime import datetime, timezone
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List

logger = logging.getLogger(__name__)


class AuctionEventType(Enum):
    """경매 이벤트 타입"""

    BID_PLACED = "bid_placed"                   # 입찰 (BidResult)
    BUY_NOW_PURCHASED = "buy_now_purchased"     # 즉시 구매 (PurchaseResult)
    BIDDER_REJECTED = "bidder_rejected"         # 입찰자 거부 (RejectionResult)
    AUCTION_ENDED = "auction_ended"             # 경매 마감 (AuctionEndResult)


@dataclass
class AuctionEvent:
    """경매 이벤트"""

    type: AuctionEventType
    product_id: int
    result: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"AuctionEvent(type={self.type.value}, product_id={self.product_id})"


Subscriber = Callable[[AuctionEvent], Awaitable[None]]


class EventBus:
    """
    이벤트 버스 (싱글톤)

    발행자(Publisher)는 이벤트를 발행하고, 구독자(Subscriber)는 이벤트를 수신합니다.

    Example:
        >>> event_bus = EventBus()
        >>>
        >>> async def on_bid(event: AuctionEvent):
        ...     print(event.result.new_price)
        >>>
        >>> event_bus.subscribe(AuctionEventType.BID_PLACED, on_bid)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
            logger.info("EventBus instance created")
        return cls._instance

    def subscribe(self, event_type: AuctionEventType, callback: Subscriber) -> None:
        """
        이벤트 구독

        Args:
            event_type: 구독할 이벤트 타입
            callback: 이벤트 발생 시 호출할 async 함수
        """
        callbacks: List[Subscriber] = self._subscribers.setdefault(event_type, [])

        if callback not in callbacks:
            callbacks.append(callback)
            logger.debug(f"Subscribed to {event_type.value}: {callback.__name__}")

    def unsubscribe(self, event_type: AuctionEventType, callback: Subscriber) -> None:
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(callback)
                logger.debug(f"Unsubscribed from {event_type.value}: {callback.__name__}")
            except ValueError:
                pass

    async def publish(self, event: AuctionEvent) -> None:
        """
        이벤트 발행

        각 구독자의 콜백이 순차적으로 호출되며, 에러가 발생해도 다른 구독자에게 영향을 주지 않습니다.
        """
        callbacks = self._subscribers.get(event.type)
        if not callbacks:
            logger.debug(f"No subscribers for event: {event.type.value}")
            return

        logger.debug(f"Publishing event: {event}")

        for callback in list(callbacks):
            try:
                await callback(event)
            except Exception as e:
                logger.error(
                    f"Error in event callback {callback.__name__} for {event.type.value}: {e}",
                    exc_info=True
                )

    def get_subscriber_count(self, event_type: AuctionEventType) -> int:
        return len(self._subscribers.get(event_type, []))

    def clear_all_subscribers(self) -> None:
        """모든 구독자 제거 (테스트용)"""
        self._subscribers.clear()
        logger.info("All subscribers cleared")

"""
커밋 후 알림 큐

경매 서비스는 트랜잭션 커밋 이후 enqueue()만 호출하고 바로 반환합니다.
워커 태스크가 큐를 비우며 EventBus로 이벤트를 발행하므로,
알림 전송이 느리거나 실패해도 이미 커밋된 경매 결과에는 영향이 없습니다.
"""
import asyncio
import logging
from typing import Optional

from config.notification import NOTIFICATION
from service.event.event_bus import AuctionEvent, EventBus

logger = logging.getLogger(__name__)


class AuctionNotificationDispatcher:
    """경매 이벤트 비동기 전달기"""

    def __init__(self, event_bus: Optional[EventBus] = None, max_size: int = NOTIFICATION.QUEUE_MAX_SIZE):
        self.event_bus = event_bus or EventBus()
        self.max_size = max_size
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending_count(self) -> int:
        return self._queue.qsize() if self._queue else 0

    def _get_queue(self) -> asyncio.Queue:
        # 이벤트 루프 안에서 처음 사용할 때 생성
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_size)
        return self._queue

    def enqueue(self, event: AuctionEvent) -> bool:
        """
        이벤트 적재 (대기하지 않음, 예외를 던지지 않음)

        Returns:
            적재 성공 여부 (큐가 가득 차면 False)
        """
        try:
            self._get_queue().put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Notification queue full, dropping {event}")
            return False

        logger.debug(f"Enqueued {event}")
        return True

    def start(self) -> None:
        """워커 시작 (이미 실행 중이면 무시)"""
        if self.is_running:
            return

        self._get_queue()
        self._worker = asyncio.create_task(self._run())
        logger.info("Auction notification dispatcher started")

    async def stop(self, timeout: float = NOTIFICATION.STOP_DRAIN_TIMEOUT_SECONDS) -> None:
        """남은 이벤트를 최대 timeout초 동안 처리한 뒤 워커 종료"""
        if not self.is_running:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Notification dispatcher stopped with {self.pending_count} pending events"
            )

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass

        self._worker = None
        logger.info("Auction notification dispatcher stopped")

    async def drain(self) -> None:
        """큐에 쌓인 이벤트를 현재 태스크에서 모두 발행 (워커 없이)"""
        queue = self._get_queue()
        while not queue.empty():
            event = queue.get_nowait()
            try:
                await self.event_bus.publish(event)
            finally:
                queue.task_done()

    async def _run(self) -> None:
        queue = self._get_queue()
        while True:
            event = await queue.get()
            try:
                await self.event_bus.publish(event)
            except Exception as e:
                # 워커는 계속 실행
                logger.error(f"Failed to dispatch {event}: {e}", exc_info=True)
            finally:
                queue.task_done()


# 전역 디스패처
auction_dispatcher = AuctionNotificationDispatcher()

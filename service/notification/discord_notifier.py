"""
디스코드 DM 경매 알림

EventBus의 경매 이벤트를 구독하여 판매자/입찰자에게 DM을 보냅니다.
메시지 작성(compose)과 전송(handle)을 분리해 두었습니다.
"""
import logging
from typing import Dict, List, Optional, Tuple

import discord

from models.users import User
from service.auction.results import AuctionEndResult, BidResult, PurchaseResult, RejectionResult
from service.event.event_bus import AuctionEvent, AuctionEventType, EventBus

logger = logging.getLogger(__name__)

Message = Tuple[int, str]


def _won(amount: int) -> str:
    return f"{amount:,}원"


class DiscordAuctionNotifier:
    """경매 이벤트 → 디스코드 DM"""

    def __init__(self, client: discord.Client):
        self.client = client

    def subscribe(self, event_bus: Optional[EventBus] = None) -> None:
        event_bus = event_bus or EventBus()
        for event_type in AuctionEventType:
            event_bus.subscribe(event_type, self.handle)

    def unsubscribe(self, event_bus: Optional[EventBus] = None) -> None:
        event_bus = event_bus or EventBus()
        for event_type in AuctionEventType:
            event_bus.unsubscribe(event_type, self.handle)

    async def handle(self, event: AuctionEvent) -> None:
        messages = self.compose(event)
        if not messages:
            return

        discord_ids = await self._resolve_discord_ids({user_id for user_id, _ in messages})

        for user_id, text in messages:
            discord_id = discord_ids.get(user_id)
            if discord_id is None:
                logger.debug(f"User {user_id} has no linked discord account, skipping")
                continue
            await self._send(user_id, discord_id, text)

    # =========================================================================
    # 메시지 작성
    # =========================================================================

    def compose(self, event: AuctionEvent) -> List[Message]:
        """이벤트 → (수신자 user_id, 메시지) 목록"""
        if event.type == AuctionEventType.BID_PLACED:
            return self._compose_bid(event.result)
        if event.type == AuctionEventType.BUY_NOW_PURCHASED:
            return self._compose_purchase(event.result)
        if event.type == AuctionEventType.BIDDER_REJECTED:
            return self._compose_rejection(event.result)
        if event.type == AuctionEventType.AUCTION_ENDED:
            return self._compose_end(event.result)
        return []

    @staticmethod
    def _compose_bid(result: BidResult) -> List[Message]:
        name = result.product_name
        price = _won(result.new_price)
        messages: List[Message] = []

        # 판매자
        if result.sold:
            messages.append((
                result.seller_id,
                f"📦 [{name}] 즉시 구매가 {price}에 도달하여 낙찰되었습니다."
            ))
        elif result.price_changed or result.previous_leader_id != result.new_leader_id:
            messages.append((
                result.seller_id,
                f"📦 [{name}] 새 입찰이 있습니다. 현재가: {price}"
            ))

        # 입찰자
        if result.is_bidder_winning:
            if result.sold:
                text = f"🎉 [{name}] {price}에 낙찰되었습니다!"
            elif result.previous_leader_id == result.bidder_id:
                text = f"✅ [{name}] 최대 입찰가가 {_won(result.max_bid)}으로 변경되었습니다. 현재가: {price}"
            else:
                text = f"✅ [{name}] 현재 최고 입찰자입니다. 현재가: {price}"
        else:
            text = (
                f"⚠️ [{name}] 입찰이 접수되었지만 다른 입찰자의 자동 입찰가가 더 높습니다. "
                f"현재가: {price}"
            )
        if result.extended and result.new_end_at and not result.sold:
            text += f"\n⏰ 마감 시간이 {result.new_end_at:%Y-%m-%d %H:%M} (UTC)로 연장되었습니다."
        messages.append((result.bidder_id, text))

        # 이전 최고 입찰자 (가격이 바뀐 경우만)
        if result.outbid_leader_id is not None:
            messages.append((
                result.outbid_leader_id,
                f"📉 [{name}] 다른 입찰자에게 최고가를 빼앗겼습니다. 현재가: {price}"
            ))
        elif (
            result.previous_leader_id is not None
            and result.previous_leader_id != result.bidder_id
            and result.price_changed
        ):
            if result.sold:
                text = f"🎉 [{name}] 자동 입찰로 {price}에 낙찰되었습니다!"
            else:
                text = f"🔼 [{name}] 자동 입찰로 현재가가 {price}로 올랐습니다. 여전히 최고 입찰자입니다."
            messages.append((result.previous_leader_id, text))

        return messages

    @staticmethod
    def _compose_purchase(result: PurchaseResult) -> List[Message]:
        name = result.product_name
        price = _won(result.price)
        messages: List[Message] = [
            (result.buyer_id, f"🛒 [{name}] {price}에 즉시 구매했습니다."),
            (result.seller_id, f"📦 [{name}] {price}에 즉시 구매되었습니다."),
        ]

        if result.previous_leader_id is not None and result.previous_leader_id != result.buyer_id:
            messages.append((
                result.previous_leader_id,
                f"🔚 [{name}] 다른 사용자가 즉시 구매하여 경매가 종료되었습니다."
            ))

        return messages

    @staticmethod
    def _compose_rejection(result: RejectionResult) -> List[Message]:
        name = result.product_name
        messages: List[Message] = [
            (result.rejected_bidder_id, f"🚫 [{name}] 판매자가 입찰을 거부했습니다.")
        ]

        if result.leader_changed and result.new_leader_id is not None:
            messages.append((
                result.new_leader_id,
                f"✅ [{name}] 최고 입찰자가 되었습니다. 현재가: {_won(result.new_price)}"
            ))

        return messages

    @staticmethod
    def _compose_end(result: AuctionEndResult) -> List[Message]:
        name = result.product_name
        if not result.has_winner:
            return [(result.seller_id, f"⌛ [{name}] 입찰자 없이 경매가 종료되었습니다.")]

        price = _won(result.final_price)
        return [
            (result.winner_id, f"🎉 [{name}] 경매가 종료되었습니다. {price}에 낙찰되었습니다!"),
            (result.seller_id, f"📦 [{name}] 경매가 종료되었습니다. 낙찰가: {price}"),
        ]

    # =========================================================================
    # 전송
    # =========================================================================

    @staticmethod
    async def _resolve_discord_ids(user_ids) -> Dict[int, int]:
        rows = await User.filter(
            id__in=list(user_ids),
            discord_id__isnull=False
        ).values_list("id", "discord_id")
        return {user_id: discord_id for user_id, discord_id in rows}

    async def _send(self, user_id: int, discord_id: int, text: str) -> None:
        try:
            discord_user = await self.client.fetch_user(discord_id)
            await discord_user.send(text)
        except discord.HTTPException as e:
            logger.warning(f"Failed to send auction DM to user {user_id} ({discord_id}): {e}")
        except Exception as e:
            logger.error(
                f"Unexpected error sending auction DM to user {user_id} ({discord_id}): {e}",
                exc_info=True
            )

"""
경매 서비스

입찰, 즉시 구매, 입찰자 거부를 상품 행 잠금을 잡은 단일 트랜잭션으로 처리합니다.

- 모든 조건 검사는 변경 전에 트랜잭션 안에서 수행 (실패 시 전체 롤백)
- 같은 상품에 대한 작업은 행 잠금으로 직렬화
- 알림은 커밋 이후 큐에 적재만 하고, 실패해도 결과에 영향 없음
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from config.auction import AUCTION
from exceptions import (
    AlreadyDecidedError,
    AuctionClosedError,
    BidderRejectedError,
    BuyNowUnavailableError,
    InvalidAuctionSettingsError,
    InvalidBidAmountError,
    NotSellerError,
    ProductNotFoundError,
    ProxyBidNotFoundError,
    SelfBidError,
    UserNotFoundError,
)
from models.bid_history import BidHistory
from models.product import AuctionStatus, Product, as_utc
from models.rejected_bidder import RejectedBidder
from models.repos import auction_repo
from models.users import User
from service.auction.eligibility import check_eligibility, fetch_user_rating
from service.auction.extension_policy import compute_extended_end
from service.auction.locking import locked_product
from service.auction.proxy_bid_resolver import AuctionSnapshot, resolve_proxy_bid
from service.auction.rejection import (
    HistoryTail,
    RemainingBid,
    recalculate_after_rejection,
)
from service.auction.results import (
    AuctionEndResult,
    BidResult,
    PurchaseResult,
    RejectionResult,
)
from service.event.event_bus import AuctionEvent, AuctionEventType
from service.notification.auction_dispatcher import auction_dispatcher
from service.settings_service import SettingsService

logger = logging.getLogger(__name__)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now else datetime.now(timezone.utc)


class AuctionService:
    """경매 비즈니스 로직"""

    # =========================================================================
    # 등록
    # =========================================================================

    @staticmethod
    async def create_auction(
        seller_id: int,
        name: str,
        starting_price: int,
        step_price: int,
        duration_hours: int,
        buy_now_price: Optional[int] = None,
        auto_extend: bool = False,
        allow_unrated_bidder: bool = True,
        now: Optional[datetime] = None
    ) -> Product:
        """
        경매 등록

        Args:
            seller_id: 판매자
            name: 상품명
            starting_price: 시작가
            step_price: 최소 증가폭
            duration_hours: 경매 기간 (시간)
            buy_now_price: 즉시 구매가 (선택)
            auto_extend: 마감 직전 입찰 시 자동 연장
            allow_unrated_bidder: 평가 이력 없는 입찰자 허용

        Returns:
            생성된 Product

        Raises:
            UserNotFoundError: 판매자 없음
            InvalidAuctionSettingsError: 가격 또는 기간이 유효하지 않음
        """
        now = _resolve_now(now)

        # Guard: 판매자 확인
        if not await User.exists(id=seller_id):
            raise UserNotFoundError(seller_id)

        # Guard: 가격 검증
        if not name or not name.strip():
            raise InvalidAuctionSettingsError("상품명을 입력해주세요")

        if starting_price < AUCTION.MIN_STARTING_PRICE:
            raise InvalidAuctionSettingsError(
                f"시작가는 최소 {AUCTION.MIN_STARTING_PRICE:,} 이상이어야 합니다"
            )

        if step_price <= 0:
            raise InvalidAuctionSettingsError("입찰 단위는 0보다 커야 합니다")

        if buy_now_price is not None and buy_now_price <= starting_price:
            raise InvalidAuctionSettingsError("즉시 구매가는 시작가보다 높아야 합니다")

        # Guard: 기간 검증
        if not (1 <= duration_hours <= AUCTION.MAX_DURATION_HOURS):
            raise InvalidAuctionSettingsError(
                f"경매 기간은 1~{AUCTION.MAX_DURATION_HOURS}시간이어야 합니다"
            )

        product = await Product.create(
            seller_id=seller_id,
            name=name.strip(),
            starting_price=starting_price,
            step_price=step_price,
            buy_now_price=buy_now_price,
            current_price=starting_price,
            end_at=now + timedelta(hours=duration_hours),
            auto_extend=auto_extend,
            allow_unrated_bidder=allow_unrated_bidder,
        )

        logger.info(
            f"User {seller_id} created auction {product.id} "
            f"(start={starting_price}, step={step_price}, buy_now={buy_now_price}, {duration_hours}h)"
        )
        return product

    # =========================================================================
    # 입찰
    # =========================================================================

    @staticmethod
    async def place_bid(
        product_id: int,
        bidder_id: int,
        max_bid: int,
        now: Optional[datetime] = None
    ) -> BidResult:
        """
        자동 입찰 등록

        입찰자의 상한가를 저장하고, 기존 최고 입찰자의 상한가와 비교해
        공개 현재가와 최고 입찰자를 다시 정합니다.

        Args:
            product_id: 상품 ID
            bidder_id: 입찰자
            max_bid: 입찰자의 상한가
            now: 기준 시각 (기본: 현재)

        Returns:
            BidResult

        Raises:
            ProductNotFoundError: 상품 없음
            AlreadyDecidedError: 판매 확정/취소된 경매
            SelfBidError: 판매자 본인 입찰
            BidderRejectedError: 판매자에게 거부된 입찰자
            UserNotFoundError: 입찰자 없음
            IneligibleBidderError: 평점 조건 미달
            AuctionClosedError: 마감된 경매
            InvalidBidAmountError: 현재가 + 입찰 단위 미만
            AuctionBusyError: 잠금 대기 시간 초과
        """
        now = _resolve_now(now)

        async with locked_product(product_id) as (conn, product):

            # Guard: 판매 확정/취소 여부
            if product.is_sold is not None:
                raise AlreadyDecidedError(product_id)

            # Guard: 본인 상품
            if product.seller_id == bidder_id:
                raise SelfBidError(product_id, bidder_id)

            # Guard: 거부된 입찰자
            if await auction_repo.is_bidder_rejected(conn, product_id, bidder_id):
                raise BidderRejectedError(product_id, bidder_id)

            # Guard: 평점
            rating = await fetch_user_rating(bidder_id, using_db=conn)
            check_eligibility(rating, product.allow_unrated_bidder)

            # Guard: 마감 (저장된 end_at 기준)
            end_at = as_utc(product.end_at)
            if product.closed_at is not None or now >= end_at:
                raise AuctionClosedError(product_id)

            # Guard: 입찰가 (공개 현재가 기준)
            min_required = product.current_price + product.step_price
            if max_bid <= product.current_price or max_bid < min_required:
                raise InvalidBidAmountError(max_bid, product.current_price, min_required)

            # 자동 연장
            extended_end_at = None
            if product.auto_extend:
                settings = await SettingsService.get_auto_extend_settings(using_db=conn)
                extended_end_at = compute_extended_end(
                    end_at,
                    now,
                    settings.trigger_minutes,
                    settings.duration_minutes
                )

            outcome = resolve_proxy_bid(
                AuctionSnapshot.from_product(product),
                bidder_id,
                max_bid,
                product.step_price
            )

            updates = {
                "current_price": outcome.new_current_price,
                "highest_bidder_id": outcome.new_highest_bidder_id,
                "highest_max_price": outcome.new_highest_max_price,
            }
            # 즉시 구매가 도달 시 연장보다 마감이 우선
            if outcome.sold:
                updates["end_at"] = now
                updates["closed_at"] = now
            elif extended_end_at is not None:
                updates["end_at"] = extended_end_at

            await auction_repo.update_auction_fields(conn, product_id, **updates)

            if outcome.should_write_history:
                await auction_repo.add_bid_history(
                    conn,
                    product_id,
                    outcome.new_highest_bidder_id,
                    outcome.new_current_price
                )

            await auction_repo.upsert_proxy_bid(conn, product_id, bidder_id, max_bid)

        extended = extended_end_at is not None and not outcome.sold
        result = BidResult(
            product_id=product_id,
            product_name=product.name,
            seller_id=product.seller_id,
            bidder_id=bidder_id,
            max_bid=max_bid,
            previous_leader_id=product.highest_bidder_id,
            previous_price=product.current_price,
            new_leader_id=outcome.new_highest_bidder_id,
            new_price=outcome.new_current_price,
            price_changed=outcome.new_current_price != product.current_price,
            sold=outcome.sold,
            extended=extended,
            new_end_at=extended_end_at if extended else None,
        )

        logger.info(
            f"User {bidder_id} bid on product {product_id} (max={max_bid}): "
            f"price {result.previous_price} -> {result.new_price}, "
            f"leader {result.previous_leader_id} -> {result.new_leader_id}"
            f"{', sold' if result.sold else ''}{', extended' if result.extended else ''}"
        )

        AuctionService._notify(AuctionEventType.BID_PLACED, product_id, result)
        return result

    # =========================================================================
    # 즉시 구매
    # =========================================================================

    @staticmethod
    async def buy_now(
        product_id: int,
        buyer_id: int,
        now: Optional[datetime] = None
    ) -> PurchaseResult:
        """
        즉시 구매

        자동 입찰 기록은 건드리지 않습니다. 즉시 구매는 상한가가 아니므로
        입찰 내역에만 즉시 구매로 표시된 1건을 남깁니다.

        Raises:
            ProductNotFoundError: 상품 없음
            SelfBidError: 판매자 본인 구매
            AlreadyDecidedError: 판매 확정/취소된 경매
            AuctionClosedError: 마감된 경매
            BuyNowUnavailableError: 즉시 구매가 없음
            BidderRejectedError: 거부된 구매자
            IneligibleBidderError: 평점 조건 미달
            AuctionBusyError: 잠금 대기 시간 초과
        """
        now = _resolve_now(now)

        async with locked_product(product_id) as (conn, product):

            if product.seller_id == buyer_id:
                raise SelfBidError(product_id, buyer_id)

            if product.is_sold is not None:
                raise AlreadyDecidedError(product_id)

            if product.closed_at is not None or now >= as_utc(product.end_at):
                raise AuctionClosedError(product_id)

            if product.buy_now_price is None:
                raise BuyNowUnavailableError(product_id)

            if await auction_repo.is_bidder_rejected(conn, product_id, buyer_id):
                raise BidderRejectedError(product_id, buyer_id)

            rating = await fetch_user_rating(buyer_id, using_db=conn)
            check_eligibility(rating, product.allow_unrated_bidder)

            price = product.buy_now_price
            await auction_repo.update_auction_fields(
                conn,
                product_id,
                current_price=price,
                highest_bidder_id=buyer_id,
                highest_max_price=price,
                end_at=now,
                closed_at=now,
                is_buy_now_purchase=True,
            )
            await auction_repo.add_bid_history(conn, product_id, buyer_id, price, is_buy_now=True)

        result = PurchaseResult(
            product_id=product_id,
            product_name=product.name,
            seller_id=product.seller_id,
            buyer_id=buyer_id,
            price=price,
            previous_leader_id=product.highest_bidder_id,
            previous_price=product.current_price,
            purchased_at=now,
        )

        logger.info(f"User {buyer_id} bought product {product_id} now for {price}")

        AuctionService._notify(AuctionEventType.BUY_NOW_PURCHASED, product_id, result)
        return result

    # =========================================================================
    # 입찰자 거부
    # =========================================================================

    @staticmethod
    async def reject_bidder(
        product_id: int,
        bidder_id: int,
        seller_id: int,
        now: Optional[datetime] = None
    ) -> RejectionResult:
        """
        입찰자 거부

        거부 기록 후 해당 입찰자의 입찰 내역과 자동 입찰을 모두 지우고,
        남은 자동 입찰로 최고 입찰자와 현재가를 다시 계산합니다.
        이미 거부된 입찰자를 다시 거부해도 에러가 아닙니다.

        Raises:
            ProductNotFoundError: 상품 없음
            NotSellerError: 판매자가 아님
            AlreadyDecidedError: 판매 확정/취소된 경매
            AuctionClosedError: 마감된 경매
            ProxyBidNotFoundError: 해당 입찰자의 자동 입찰 없음
            AuctionBusyError: 잠금 대기 시간 초과
        """
        now = _resolve_now(now)

        async with locked_product(product_id) as (conn, product):
            AuctionService._ensure_seller_and_open(product, seller_id, now)

            # Guard: 입찰 기록 확인
            if not await auction_repo.get_proxy_bid(conn, product_id, bidder_id):
                raise ProxyBidNotFoundError(product_id, bidder_id)

            await auction_repo.add_rejection(conn, product_id, bidder_id, seller_id)
            deleted_history = await auction_repo.delete_bid_history_for_bidder(conn, product_id, bidder_id)
            await auction_repo.delete_proxy_bid(conn, product_id, bidder_id)

            remaining = [
                RemainingBid(bidder_id=bid.bidder_id, max_price=bid.max_price)
                for bid in await auction_repo.list_proxy_bids(conn, product_id)
            ]
            last = await auction_repo.get_last_history(conn, product_id)
            last_history = (
                HistoryTail(bidder_id=last.bidder_id, current_price=last.current_price)
                if last else None
            )

            recalculation = recalculate_after_rejection(
                starting_price=product.starting_price,
                step_price=product.step_price,
                buy_now_price=product.buy_now_price,
                previous_price=product.current_price,
                previous_leader_id=product.highest_bidder_id,
                remaining=remaining,
                last_history=last_history,
            )

            await auction_repo.update_auction_fields(
                conn,
                product_id,
                current_price=recalculation.current_price,
                highest_bidder_id=recalculation.highest_bidder_id,
                highest_max_price=recalculation.highest_max_price,
            )

            if recalculation.should_write_history:
                await auction_repo.add_bid_history(
                    conn,
                    product_id,
                    recalculation.highest_bidder_id,
                    recalculation.current_price
                )

        result = RejectionResult(
            product_id=product_id,
            product_name=product.name,
            seller_id=product.seller_id,
            rejected_bidder_id=bidder_id,
            previous_leader_id=product.highest_bidder_id,
            previous_price=product.current_price,
            new_leader_id=recalculation.highest_bidder_id,
            new_price=recalculation.current_price,
        )

        logger.info(
            f"Seller {seller_id} rejected bidder {bidder_id} on product {product_id} "
            f"(history removed={deleted_history}, remaining bids={len(remaining)}): "
            f"price {result.previous_price} -> {result.new_price}, "
            f"leader {result.previous_leader_id} -> {result.new_leader_id}"
        )

        AuctionService._notify(AuctionEventType.BIDDER_REJECTED, product_id, result)
        return result

    @staticmethod
    async def unreject_bidder(
        product_id: int,
        bidder_id: int,
        seller_id: int,
        now: Optional[datetime] = None
    ) -> bool:
        """
        입찰자 거부 해제

        거부 기록만 지우며 재계산은 하지 않습니다 (입찰자는 처음부터 다시 입찰).

        Returns:
            거부 기록이 있었는지 여부
        """
        now = _resolve_now(now)

        async with locked_product(product_id) as (conn, product):
            AuctionService._ensure_seller_and_open(product, seller_id, now)

            removed = await auction_repo.remove_rejection(conn, product_id, bidder_id)

        logger.info(
            f"Seller {seller_id} unrejected bidder {bidder_id} on product {product_id} "
            f"(removed={removed})"
        )
        return removed > 0

    # =========================================================================
    # 마감 처리
    # =========================================================================

    @staticmethod
    async def close_ended_auctions(now: Optional[datetime] = None) -> List[AuctionEndResult]:
        """
        마감 시간이 지난 경매 마감 처리

        상품마다 별도 트랜잭션으로 처리하며, 한 상품의 실패가 나머지를 막지 않습니다.

        Returns:
            이번에 마감 처리된 경매 목록
        """
        now = _resolve_now(now)

        product_ids = await Product.filter(
            end_at__lte=now,
            is_sold__isnull=True,
            end_notified_at__isnull=True
        ).order_by("end_at").values_list("id", flat=True)

        results = []
        for product_id in product_ids:
            try:
                result = await AuctionService._close_auction(product_id, now)
            except Exception as e:
                logger.error(f"Failed to close auction {product_id}: {e}", exc_info=True)
                continue

            if result is None:
                continue

            results.append(result)
            AuctionService._notify(AuctionEventType.AUCTION_ENDED, product_id, result)

        if results:
            logger.info(f"Closed {len(results)} ended auctions")

        return results

    @staticmethod
    async def _close_auction(product_id: int, now: datetime) -> Optional[AuctionEndResult]:
        async with locked_product(product_id) as (conn, product):

            # 잠금 전에 다른 작업이 먼저 처리한 경우
            end_at = as_utc(product.end_at)
            if (
                product.is_sold is not None
                or product.end_notified_at is not None
                or end_at > now
            ):
                return None

            closed_at = product.closed_at or end_at
            await auction_repo.update_auction_fields(
                conn,
                product_id,
                closed_at=closed_at,
                end_notified_at=now,
            )

        logger.info(
            f"Auction {product_id} ended: winner={product.highest_bidder_id}, "
            f"price={product.current_price}"
        )

        return AuctionEndResult(
            product_id=product_id,
            product_name=product.name,
            seller_id=product.seller_id,
            winner_id=product.highest_bidder_id,
            final_price=product.current_price,
            ended_at=as_utc(closed_at),
        )

    # =========================================================================
    # 조회
    # =========================================================================

    @staticmethod
    async def get_bid_history(product_id: int) -> List[BidHistory]:
        """입찰 내역 (최신순)"""
        return await BidHistory.filter(product_id=product_id).order_by("-created_at", "-id")

    @staticmethod
    async def get_rejected_bidders(product_id: int) -> List[RejectedBidder]:
        return await RejectedBidder.filter(product_id=product_id).order_by("created_at")

    @staticmethod
    async def get_auction_status(
        product_id: int,
        now: Optional[datetime] = None
    ) -> AuctionStatus:
        product = await Product.get_or_none(id=product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        return product.status_at(_resolve_now(now))

    # =========================================================================
    # 내부 헬퍼
    # =========================================================================

    @staticmethod
    def _ensure_seller_and_open(product: Product, seller_id: int, now: datetime) -> None:
        """판매자 본인이고 경매가 진행 중인지 확인"""
        if product.seller_id != seller_id:
            raise NotSellerError(product.id, seller_id)

        if product.is_sold is not None:
            raise AlreadyDecidedError(product.id)

        if product.closed_at is not None or as_utc(product.end_at) <= now:
            raise AuctionClosedError(product.id)

    @staticmethod
    def _notify(event_type: AuctionEventType, product_id: int, result) -> None:
        """커밋 후 알림 적재 (예외를 던지지 않음)"""
        try:
            auction_dispatcher.enqueue(AuctionEvent(type=event_type, product_id=product_id, result=result))
        except Exception as e:
            logger.error(f"Failed to enqueue {event_type.value} for product {product_id}: {e}", exc_info=True)

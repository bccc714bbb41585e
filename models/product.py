"""
경매 상품 모델

상품의 경매 필드(현재가, 최고 입찰자, 최고 입찰자의 상한가 등)를 관리합니다.
입찰 관련 필드는 AuctionService가 행 잠금을 잡은 트랜잭션 안에서만 변경합니다.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from tortoise import fields, models


class AuctionStatus(str, Enum):
    """경매 상태"""
    ACTIVE = "active"        # 진행 중
    PENDING = "pending"      # 마감, 낙찰자 결제 대기
    SOLD = "sold"            # 판매 확정
    CANCELLED = "cancelled"  # 거래 취소
    EXPIRED = "expired"      # 입찰자 없이 만료


def as_utc(value: datetime) -> datetime:
    """naive datetime은 UTC로 간주하여 timezone-aware로 변환"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def classify_status(
    is_sold: Optional[bool],
    end_at: datetime,
    closed_at: Optional[datetime],
    highest_bidder_id: Optional[int],
    now: datetime
) -> AuctionStatus:
    """
    경매 상태 판정

    Args:
        is_sold: None=미정, True=판매 확정, False=취소
        end_at: 마감 시각
        closed_at: 입찰 마감 처리 시각
        highest_bidder_id: 최고 입찰자
        now: 기준 시각

    Returns:
        AuctionStatus
    """
    if is_sold is True:
        return AuctionStatus.SOLD
    if is_sold is False:
        return AuctionStatus.CANCELLED

    ended = as_utc(end_at) <= as_utc(now) or closed_at is not None
    if not ended:
        return AuctionStatus.ACTIVE
    if highest_bidder_id is not None:
        return AuctionStatus.PENDING
    return AuctionStatus.EXPIRED


class Product(models.Model):
    """
    경매 상품

    - 금액은 모두 최소 화폐 단위의 정수
    - highest_max_price는 최고 입찰자의 비공개 상한가
    - closed_at은 입찰이 멈추는 시점에 설정 (즉시 구매, 마감 처리)
    - is_sold가 정해지면 입찰 필드는 더 이상 바뀌지 않음
    """

    id = fields.BigIntField(pk=True)

    seller = fields.ForeignKeyField(
        "models.User",
        related_name="products",
        on_delete=fields.CASCADE
    )
    name = fields.CharField(max_length=255)

    # 가격
    starting_price = fields.BigIntField()
    step_price = fields.BigIntField()
    buy_now_price = fields.BigIntField(null=True)
    current_price = fields.BigIntField()

    # 최고 입찰
    highest_bidder = fields.ForeignKeyField(
        "models.User",
        related_name="leading_products",
        null=True,
        on_delete=fields.SET_NULL
    )
    highest_max_price = fields.BigIntField(null=True)

    # 시간
    created_at = fields.DatetimeField(auto_now_add=True)
    end_at = fields.DatetimeField()
    closed_at = fields.DatetimeField(null=True)
    end_notified_at = fields.DatetimeField(null=True)

    # 상태
    is_sold = fields.BooleanField(null=True)
    is_buy_now_purchase = fields.BooleanField(default=False)

    # 옵션
    auto_extend = fields.BooleanField(default=False)
    allow_unrated_bidder = fields.BooleanField(default=True)

    class Meta:
        table = "auction_product"
        indexes = (
            ("end_at", "closed_at"),  # 마감 처리 쿼리
            ("seller", "is_sold"),
        )

    def status_at(self, now: Optional[datetime] = None) -> AuctionStatus:
        """기준 시각의 경매 상태"""
        return classify_status(
            self.is_sold,
            self.end_at,
            self.closed_at,
            self.highest_bidder_id,
            now or datetime.now(timezone.utc),
        )

    def __str__(self) -> str:
        return f"Product {self.id}: {self.name} ({self.current_price})"

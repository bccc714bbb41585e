"""
경매 작업 결과

커밋 이후 알림 디스패처에 전달되는 요약 정보입니다.
상한가(highest_max_price)는 비공개 정보이므로 입찰자 본인의 것만 담습니다.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BidResult:
    """입찰 결과"""

    product_id: int
    product_name: str
    seller_id: int
    bidder_id: int
    max_bid: int

    previous_leader_id: Optional[int]
    previous_price: int
    new_leader_id: int
    new_price: int

    price_changed: bool
    sold: bool
    extended: bool
    new_end_at: Optional[datetime]

    @property
    def is_bidder_winning(self) -> bool:
        return self.new_leader_id == self.bidder_id

    @property
    def outbid_leader_id(self) -> Optional[int]:
        """이번 입찰로 선두를 잃은 이전 최고 입찰자"""
        if self.previous_leader_id is None:
            return None
        if self.previous_leader_id in (self.new_leader_id, self.bidder_id):
            return None
        return self.previous_leader_id


@dataclass(frozen=True)
class PurchaseResult:
    """즉시 구매 결과"""

    product_id: int
    product_name: str
    seller_id: int
    buyer_id: int
    price: int
    previous_leader_id: Optional[int]
    previous_price: int
    purchased_at: datetime


@dataclass(frozen=True)
class RejectionResult:
    """입찰자 거부 결과"""

    product_id: int
    product_name: str
    seller_id: int
    rejected_bidder_id: int
    previous_leader_id: Optional[int]
    previous_price: int
    new_leader_id: Optional[int]
    new_price: int

    @property
    def leader_changed(self) -> bool:
        return self.previous_leader_id != self.new_leader_id


@dataclass(frozen=True)
class AuctionEndResult:
    """경매 마감 결과"""

    product_id: int
    product_name: str
    seller_id: int
    winner_id: Optional[int]
    final_price: int
    ended_at: datetime

    @property
    def has_winner(self) -> bool:
        return self.winner_id is not None

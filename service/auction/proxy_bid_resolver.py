"""
자동 입찰(프록시 입찰) 계산기

현재 경매 상태와 새 상한가로부터 공개 현재가, 최고 입찰자, 최고 상한가,
즉시 구매 도달 여부를 계산합니다. I/O가 없는 순수 함수입니다.

공개 현재가는 두 번째로 높은 상한가가 결정합니다 (2nd-price 방식).
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuctionSnapshot:
    """계산에 필요한 경매 상태"""

    starting_price: int
    current_price: int
    highest_bidder_id: Optional[int]
    highest_max_price: Optional[int]
    buy_now_price: Optional[int]

    @classmethod
    def from_product(cls, product) -> "AuctionSnapshot":
        return cls(
            starting_price=product.starting_price,
            current_price=product.current_price,
            highest_bidder_id=product.highest_bidder_id,
            highest_max_price=product.highest_max_price,
            buy_now_price=product.buy_now_price,
        )


@dataclass(frozen=True)
class ResolverOutcome:
    """자동 입찰 계산 결과"""

    new_current_price: int
    new_highest_bidder_id: int
    new_highest_max_price: int
    should_write_history: bool
    sold: bool


def resolve_proxy_bid(
    snapshot: AuctionSnapshot,
    bidder_id: int,
    max_bid: int,
    min_increment: int
) -> ResolverOutcome:
    """
    새 자동 입찰 반영

    Args:
        snapshot: 현재 경매 상태
        bidder_id: 입찰자
        max_bid: 입찰자가 제시한 상한가
        min_increment: 최소 증가폭 (step_price)

    Returns:
        ResolverOutcome

    Note:
        입찰가 검증(현재가 + 증가폭 이상)은 호출 측에서 먼저 수행해야 합니다.
    """
    buy_now = snapshot.buy_now_price
    leader_id = snapshot.highest_bidder_id
    leader_max = snapshot.highest_max_price

    # 기존 최고 입찰자의 상한가가 이미 즉시 구매가에 도달한 경우
    if (
        buy_now is not None
        and leader_id is not None
        and leader_max is not None
        and leader_id != bidder_id
        and leader_max >= buy_now
    ):
        return ResolverOutcome(
            new_current_price=buy_now,
            new_highest_bidder_id=leader_id,
            new_highest_max_price=leader_max,
            should_write_history=True,
            sold=True,
        )

    should_write_history = True

    if leader_id is not None and leader_id == bidder_id:
        # 본인 상한가만 갱신, 공개 가격은 그대로
        new_price = snapshot.current_price
        new_leader_id = bidder_id
        new_leader_max = max_bid
        should_write_history = False
    elif leader_id is None or leader_max is None:
        # 첫 입찰
        new_price = snapshot.starting_price
        new_leader_id = bidder_id
        new_leader_max = max_bid
    elif max_bid <= leader_max:
        # 동률이면 기존 최고 입찰자 유지
        new_price = max_bid
        new_leader_id = leader_id
        new_leader_max = leader_max
    else:
        new_price = min(leader_max + min_increment, max_bid)
        new_leader_id = bidder_id
        new_leader_max = max_bid

    sold = False
    if buy_now is not None and new_price >= buy_now:
        new_price = buy_now
        sold = True

    return ResolverOutcome(
        new_current_price=new_price,
        new_highest_bidder_id=new_leader_id,
        new_highest_max_price=new_leader_max,
        should_write_history=should_write_history,
        sold=sold,
    )

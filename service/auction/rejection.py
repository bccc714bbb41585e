"""
입찰자 거부 후 경매 상태 재계산

거부된 입찰자의 자동 입찰과 내역을 지운 뒤, 남은 자동 입찰(상한가 내림차순)로
최고 입찰자와 공개 현재가를 다시 정합니다.

남은 입찰이 둘 이상이면 거부된 입찰자가 최고 입찰자였는지와 관계없이
항상 다시 계산합니다. 거부된 입찰자가 현재가를 정한 두 번째 상한가였을 수 있기 때문입니다.
"""
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class RemainingBid:
    bidder_id: int
    max_price: int


@dataclass(frozen=True)
class HistoryTail:
    """가장 최근 입찰 내역"""

    bidder_id: int
    current_price: int


@dataclass(frozen=True)
class Recalculation:
    highest_bidder_id: Optional[int]
    current_price: int
    highest_max_price: Optional[int]
    should_write_history: bool


def recalculate_after_rejection(
    *,
    starting_price: int,
    step_price: int,
    buy_now_price: Optional[int],
    previous_price: int,
    previous_leader_id: Optional[int],
    remaining: Sequence[RemainingBid],
    last_history: Optional[HistoryTail]
) -> Recalculation:
    """
    남은 자동 입찰로 경매 상태 재계산

    Args:
        starting_price: 시작가
        step_price: 최소 증가폭
        buy_now_price: 즉시 구매가 (없으면 None)
        previous_price: 거부 전 현재가
        previous_leader_id: 거부 전 최고 입찰자
        remaining: 남은 자동 입찰 (상한가 내림차순, 동률은 먼저 입찰한 순)
        last_history: 거부된 입찰자 내역 삭제 후 가장 최근 내역

    Returns:
        Recalculation
    """
    if not remaining:
        return Recalculation(
            highest_bidder_id=None,
            current_price=starting_price,
            highest_max_price=None,
            should_write_history=False,
        )

    top = remaining[0]

    if len(remaining) == 1:
        # 경쟁자가 없으므로 시작가
        changed = (
            top.bidder_id != previous_leader_id
            or previous_price != starting_price
        )
        return Recalculation(
            highest_bidder_id=top.bidder_id,
            current_price=starting_price,
            highest_max_price=top.max_price,
            should_write_history=changed,
        )

    second = remaining[1]
    new_price = min(second.max_price + step_price, top.max_price)
    # 입찰자를 빼서 가격이 오르지는 않음
    new_price = min(new_price, previous_price)
    if buy_now_price is not None:
        new_price = min(new_price, buy_now_price)
    new_price = max(new_price, starting_price)

    tail_differs = (
        last_history is None
        or last_history.current_price != new_price
        or last_history.bidder_id != top.bidder_id
    )

    return Recalculation(
        highest_bidder_id=top.bidder_id,
        current_price=new_price,
        highest_max_price=top.max_price,
        should_write_history=tail_differs,
    )

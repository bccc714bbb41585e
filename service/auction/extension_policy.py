"""마감 직전 입찰 시 경매 자동 연장 정책"""
from datetime import datetime, timedelta
from typing import Optional

from models.product import as_utc


def compute_extended_end(
    end_at: datetime,
    now: datetime,
    trigger_minutes: int,
    extend_minutes: int
) -> Optional[datetime]:
    """
    연장된 마감 시각 계산

    남은 시간이 trigger_minutes 이하이면 end_at + extend_minutes를 반환하고,
    아니면 None을 반환합니다. 상품의 auto_extend가 켜진 경우에만 호출합니다.
    """
    end_at = as_utc(end_at)
    minutes_remaining = (end_at - as_utc(now)).total_seconds() / 60

    if minutes_remaining <= trigger_minutes:
        return end_at + timedelta(minutes=extend_minutes)
    return None

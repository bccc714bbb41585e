"""
경매 상태 판정 테스트
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.product import AuctionStatus, classify_status

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
FUTURE = NOW + timedelta(hours=1)
PAST = NOW - timedelta(hours=1)


class TestClassifyStatus:
    @pytest.mark.parametrize("is_sold, end_at, closed_at, leader, expected", [
        (None, FUTURE, None, None, AuctionStatus.ACTIVE),
        (None, FUTURE, None, 7, AuctionStatus.ACTIVE),
        (None, PAST, None, 7, AuctionStatus.PENDING),
        (None, PAST, None, None, AuctionStatus.EXPIRED),
        (None, FUTURE, NOW, 7, AuctionStatus.PENDING),
        (None, FUTURE, NOW, None, AuctionStatus.EXPIRED),
        (True, PAST, NOW, 7, AuctionStatus.SOLD),
        (False, PAST, NOW, 7, AuctionStatus.CANCELLED),
        (False, FUTURE, None, None, AuctionStatus.CANCELLED),
    ])
    def test_classification(self, is_sold, end_at, closed_at, leader, expected):
        assert classify_status(is_sold, end_at, closed_at, leader, NOW) == expected

    def test_end_at_equal_to_now_is_ended(self):
        assert classify_status(None, NOW, None, 7, NOW) == AuctionStatus.PENDING

    def test_naive_end_at(self):
        naive_future = FUTURE.replace(tzinfo=None)

        assert classify_status(None, naive_future, None, None, NOW) == AuctionStatus.ACTIVE

"""
경매 커맨드 응답 테스트
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from cogs.auction_command import AuctionCommand, format_bid_result
from exceptions import AuctionClosedError, InvalidBidAmountError
from service.auction.results import BidResult


def bid_result(**overrides) -> BidResult:
    data = dict(
        product_id=10, product_name="카메라", seller_id=1, bidder_id=2, max_bid=200,
        previous_leader_id=None, previous_price=100, new_leader_id=2, new_price=100,
        price_changed=False, sold=False, extended=False, new_end_at=None,
    )
    data.update(overrides)
    return BidResult(**data)


@pytest.fixture
def cog():
    return AuctionCommand(bot=MagicMock())


@pytest.fixture
def account(monkeypatch):
    monkeypatch.setattr(
        "cogs.auction_command.find_account_by_discordid",
        AsyncMock(return_value=SimpleNamespace(id=2)),
    )


class TestPlaceBidCommand:
    async def test_refusal_reason_is_shown(self, cog, account, monkeypatch, mock_discord_interaction):
        error = InvalidBidAmountError(amount=105, current_price=100, min_required=110)
        monkeypatch.setattr(
            "cogs.auction_command.AuctionService.place_bid",
            AsyncMock(side_effect=error),
        )

        await cog.place_bid.callback(cog, mock_discord_interaction, 10, 105)

        args, kwargs = mock_discord_interaction.response.send_message.call_args
        assert error.message in args[0]
        assert kwargs["ephemeral"] is True

    async def test_closed_auction_reason_is_shown(self, cog, account, monkeypatch, mock_discord_interaction):
        monkeypatch.setattr(
            "cogs.auction_command.AuctionService.place_bid",
            AsyncMock(side_effect=AuctionClosedError(10)),
        )

        await cog.place_bid.callback(cog, mock_discord_interaction, 10, 500)

        args, _ = mock_discord_interaction.response.send_message.call_args
        assert "종료된 경매" in args[0]

    async def test_success_reply(self, cog, account, monkeypatch, mock_discord_interaction):
        place_bid = AsyncMock(return_value=bid_result())
        monkeypatch.setattr("cogs.auction_command.AuctionService.place_bid", place_bid)

        await cog.place_bid.callback(cog, mock_discord_interaction, 10, 200)

        place_bid.assert_awaited_once_with(10, 2, 200)
        args, _ = mock_discord_interaction.response.send_message.call_args
        assert "입찰 완료" in args[0]


class TestFormatBidResult:
    def test_outbid(self):
        message = format_bid_result(bid_result(new_leader_id=3, new_price=150))
        assert "앞서 있습니다" in message

    def test_sold_to_bidder(self):
        message = format_bid_result(bid_result(sold=True, new_price=500))
        assert "낙찰" in message

    def test_sold_to_other(self):
        message = format_bid_result(bid_result(sold=True, new_leader_id=3, new_price=500))
        assert "다른 입찰자" in message

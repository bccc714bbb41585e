"""
동시 입찰 직렬화 테스트
"""
import asyncio

import pytest
from tortoise.transactions import in_transaction

from config.auction import AuctionConfig
from exceptions import AuctionBusyError, InvalidBidAmountError
from models.bid_history import BidHistory
from models.product import Product
from models.proxy_bid import ProxyBid
from models.repos import auction_repo
from service.auction.auction_service import AuctionService
from tests.fixtures.auctions import NOW

pytestmark = pytest.mark.integration


class TestConcurrentBids:
    async def test_equal_concurrent_bids_see_each_other(self, auction, bidders):
        """같은 상한가 두 건이 동시에 들어와도 두 번째는 첫 번째 결과 위에서 계산"""
        a, b, c = bidders
        await AuctionService.place_bid(auction.id, a.id, 150, now=NOW)

        results = await asyncio.gather(
            AuctionService.place_bid(auction.id, b.id, 200, now=NOW),
            AuctionService.place_bid(auction.id, c.id, 200, now=NOW),
        )

        first, second = sorted(results, key=lambda r: r.previous_price)
        assert first.new_price == 160
        # 두 번째 입찰은 첫 번째가 만든 160을 이전 가격으로 봄
        assert second.previous_price == 160
        assert second.new_price == 200
        assert second.new_leader_id == first.new_leader_id

        product = await Product.get(id=auction.id)
        assert product.current_price == 200
        assert product.highest_bidder_id == first.bidder_id
        assert product.highest_max_price == 200

    async def test_many_concurrent_bids_are_linearizable(self, auction, bidders):
        a, b, c = bidders
        amounts = [(a, 120), (b, 140), (c, 160), (a, 180), (b, 200), (c, 220)]

        outcomes = await asyncio.gather(
            *[AuctionService.place_bid(auction.id, bidder.id, amount, now=NOW) for bidder, amount in amounts],
            return_exceptions=True
        )

        accepted = [o for o in outcomes if not isinstance(o, Exception)]
        refused = [o for o in outcomes if isinstance(o, Exception)]
        assert accepted
        assert all(isinstance(error, InvalidBidAmountError) for error in refused)

        # 커밋된 순서대로 이전 가격이 이어짐
        chain = sorted(accepted, key=lambda r: (r.previous_price, r.new_price))
        for earlier, later in zip(chain, chain[1:]):
            assert later.previous_price == earlier.new_price

        prices = [h.current_price for h in await BidHistory.filter(product_id=auction.id).order_by("id")]
        assert prices == sorted(prices)

        product = await Product.get(id=auction.id)
        assert product.highest_max_price >= product.current_price


class TestLockWaitTimeout:
    """다른 트랜잭션이 상품을 오래 잡고 있을 때"""

    @pytest.fixture
    def short_lock_wait(self, monkeypatch):
        monkeypatch.setattr(
            "service.auction.locking.AUCTION",
            AuctionConfig(LOCK_WAIT_TIMEOUT_SECONDS=0.2)
        )

    @pytest.fixture
    async def held_lock(self, auction):
        """상품 행 잠금을 잡고 release.set() 전까지 놓지 않는 트랜잭션"""
        holding = asyncio.Event()
        release = asyncio.Event()

        async def _hold():
            async with in_transaction() as conn:
                await auction_repo.lock_product(conn, auction.id)
                holding.set()
                await release.wait()

        task = asyncio.create_task(_hold())
        await holding.wait()
        yield release
        release.set()
        await task

    async def test_bid_gives_up_with_busy_error(self, auction, bidders, short_lock_wait, held_lock, dispatched):
        a, _, _ = bidders

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(AuctionBusyError) as exc_info:
            await AuctionService.place_bid(auction.id, a.id, 150, now=NOW)

        assert exc_info.value.retryable is True
        assert loop.time() - started < 1.0
        assert dispatched() == []

        # 잠금이 풀린 뒤에도 아무것도 기록되지 않음
        held_lock.set()
        await asyncio.sleep(0)
        product = await Product.get(id=auction.id)
        assert product.current_price == 100
        assert product.highest_bidder_id is None
        assert await ProxyBid.filter(product_id=auction.id).count() == 0
        assert await BidHistory.filter(product_id=auction.id).count() == 0

    async def test_bid_succeeds_after_lock_is_released(self, auction, bidders, short_lock_wait, held_lock):
        a, b, _ = bidders

        with pytest.raises(AuctionBusyError):
            await AuctionService.place_bid(auction.id, a.id, 150, now=NOW)
        held_lock.set()

        result = await AuctionService.place_bid(auction.id, b.id, 150, now=NOW)

        assert result.new_leader_id == b.id
        assert result.new_price == 100
        product = await Product.get(id=auction.id)
        assert product.highest_bidder_id == b.id

    async def test_buy_now_and_rejection_also_time_out(self, product_factory, seller, bidders, short_lock_wait):
        a, _, _ = bidders
        product = await product_factory(seller, buy_now_price=500)

        release = asyncio.Event()
        holding = asyncio.Event()

        async def _hold():
            async with in_transaction() as conn:
                await auction_repo.lock_product(conn, product.id)
                holding.set()
                await release.wait()

        task = asyncio.create_task(_hold())
        await holding.wait()
        try:
            with pytest.raises(AuctionBusyError):
                await AuctionService.buy_now(product.id, a.id, now=NOW)
            with pytest.raises(AuctionBusyError):
                await AuctionService.reject_bidder(product.id, a.id, seller.id, now=NOW)
        finally:
            release.set()
            await task

        refreshed = await Product.get(id=product.id)
        assert refreshed.closed_at is None
        assert refreshed.highest_bidder_id is None

"""
경매 Repository

상품 행 잠금을 잡은 트랜잭션 안에서 사용하는 데이터 접근 레이어입니다.
모든 함수는 in_transaction()이 넘겨준 connection을 받습니다.
"""
from typing import List, Optional

from tortoise.backends.base.client import BaseDBAsyncClient

from models.bid_history import BidHistory
from models.product import Product
from models.proxy_bid import ProxyBid
from models.rejected_bidder import RejectedBidder


async def lock_product(conn: BaseDBAsyncClient, product_id: int) -> Optional[Product]:
    """
    상품 행 배타 잠금 (SELECT ... FOR UPDATE)

    잠금은 트랜잭션이 커밋/롤백될 때 해제됩니다.
    """
    return await Product.filter(id=product_id).select_for_update().using_db(conn).first()


async def set_lock_wait_timeout(conn: BaseDBAsyncClient, seconds: int) -> None:
    """MySQL 행 잠금 대기 시간 (초) 설정"""
    await conn.execute_script(f"SET SESSION innodb_lock_wait_timeout = {int(seconds)}")


async def update_auction_fields(
    conn: BaseDBAsyncClient,
    product_id: int,
    **values
) -> None:
    """상품 경매 필드 갱신"""
    await Product.filter(id=product_id).using_db(conn).update(**values)


async def is_bidder_rejected(conn: BaseDBAsyncClient, product_id: int, bidder_id: int) -> bool:
    return await RejectedBidder.filter(
        product_id=product_id,
        bidder_id=bidder_id
    ).using_db(conn).exists()


async def add_rejection(
    conn: BaseDBAsyncClient,
    product_id: int,
    bidder_id: int,
    seller_id: int
) -> bool:
    """
    거부 기록 추가 (이미 있으면 무시)

    Returns:
        새로 추가되었는지 여부
    """
    if await is_bidder_rejected(conn, product_id, bidder_id):
        return False

    await RejectedBidder.create(
        product_id=product_id,
        bidder_id=bidder_id,
        seller_id=seller_id,
        using_db=conn
    )
    return True


async def remove_rejection(conn: BaseDBAsyncClient, product_id: int, bidder_id: int) -> int:
    """거부 기록 삭제, 삭제된 행 수 반환"""
    return await RejectedBidder.filter(
        product_id=product_id,
        bidder_id=bidder_id
    ).using_db(conn).delete()


async def add_bid_history(
    conn: BaseDBAsyncClient,
    product_id: int,
    bidder_id: int,
    current_price: int,
    is_buy_now: bool = False
) -> BidHistory:
    return await BidHistory.create(
        product_id=product_id,
        bidder_id=bidder_id,
        current_price=current_price,
        is_buy_now=is_buy_now,
        using_db=conn
    )


async def get_last_history(conn: BaseDBAsyncClient, product_id: int) -> Optional[BidHistory]:
    """가장 최근 입찰 내역"""
    return await BidHistory.filter(
        product_id=product_id
    ).using_db(conn).order_by("-created_at", "-id").first()


async def delete_bid_history_for_bidder(
    conn: BaseDBAsyncClient,
    product_id: int,
    bidder_id: int
) -> int:
    return await BidHistory.filter(
        product_id=product_id,
        bidder_id=bidder_id
    ).using_db(conn).delete()


async def get_proxy_bid(
    conn: BaseDBAsyncClient,
    product_id: int,
    bidder_id: int
) -> Optional[ProxyBid]:
    return await ProxyBid.filter(
        product_id=product_id,
        bidder_id=bidder_id
    ).using_db(conn).first()


async def upsert_proxy_bid(
    conn: BaseDBAsyncClient,
    product_id: int,
    bidder_id: int,
    max_price: int
) -> ProxyBid:
    """
    입찰자의 상한가 저장 (상품 x 입찰자 당 1건)

    상품 행 잠금 아래에서만 호출되므로 조회 후 생성/갱신해도 경쟁이 없습니다.
    """
    proxy_bid = await get_proxy_bid(conn, product_id, bidder_id)

    if proxy_bid:
        proxy_bid.max_price = max_price
        await proxy_bid.save(using_db=conn, update_fields=["max_price", "updated_at"])
        return proxy_bid

    return await ProxyBid.create(
        product_id=product_id,
        bidder_id=bidder_id,
        max_price=max_price,
        using_db=conn
    )


async def delete_proxy_bid(conn: BaseDBAsyncClient, product_id: int, bidder_id: int) -> int:
    return await ProxyBid.filter(
        product_id=product_id,
        bidder_id=bidder_id
    ).using_db(conn).delete()


async def list_proxy_bids(conn: BaseDBAsyncClient, product_id: int) -> List[ProxyBid]:
    """상한가 내림차순, 동률은 먼저 입찰한 순"""
    return await ProxyBid.filter(
        product_id=product_id
    ).using_db(conn).order_by("-max_price", "updated_at", "id")

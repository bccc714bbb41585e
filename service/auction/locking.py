"""
상품 행 잠금 트랜잭션

경매 상태를 바꾸는 모든 작업은 locked_product() 안에서 실행됩니다.
잠금 대기는 AUCTION.LOCK_WAIT_TIMEOUT_SECONDS를 넘지 않습니다.

- 트랜잭션 진입 대기: asyncio.timeout으로 제한
  (SQLite는 연결 하나를 트랜잭션 잠금으로 공유, MySQL은 풀에서 연결 획득)
- 행 잠금 대기: MySQL innodb_lock_wait_timeout으로 DB가 제한
  (실행 중인 쿼리는 취소하지 않음)
"""
import asyncio
import logging
import math
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Tuple

from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.exceptions import OperationalError
from tortoise.transactions import in_transaction

from config.auction import AUCTION
from exceptions import AuctionBusyError, ProductNotFoundError
from models.product import Product
from models.repos import auction_repo

logger = logging.getLogger(__name__)

MYSQL_LOCK_WAIT_TIMEOUT_ERROR = 1205


def is_lock_wait_timeout(error: Exception) -> bool:
    """드라이버의 잠금 대기 초과 오류인지 확인"""
    cause = error.args[0] if error.args else None
    cause_args = getattr(cause, "args", None)
    if cause_args and cause_args[0] == MYSQL_LOCK_WAIT_TIMEOUT_ERROR:
        return True
    return "lock wait timeout" in str(error).lower()


async def _enter_transaction(context, product_id: int) -> BaseDBAsyncClient:
    try:
        async with asyncio.timeout(AUCTION.LOCK_WAIT_TIMEOUT_SECONDS):
            return await context.__aenter__()
    except TimeoutError:
        # 연결을 잡은 뒤 BEGIN 도중 취소되었으면 되돌리고 반납
        if getattr(context, "token", None) is not None:
            await context.__aexit__(AuctionBusyError, None, None)
        logger.warning(f"Transaction wait timed out for product {product_id}")
        raise AuctionBusyError(product_id)


async def _lock_row(conn: BaseDBAsyncClient, product_id: int) -> Product:
    if conn.capabilities.dialect == "mysql":
        seconds = max(1, math.ceil(AUCTION.LOCK_WAIT_TIMEOUT_SECONDS))
        await auction_repo.set_lock_wait_timeout(conn, seconds)

    try:
        product = await auction_repo.lock_product(conn, product_id)
    except OperationalError as e:
        if not is_lock_wait_timeout(e):
            raise
        logger.warning(f"Row lock wait timed out for product {product_id}")
        raise AuctionBusyError(product_id) from e

    if not product:
        raise ProductNotFoundError(product_id)

    return product


@asynccontextmanager
async def locked_product(product_id: int) -> AsyncIterator[Tuple[BaseDBAsyncClient, Product]]:
    """
    상품 행을 잠근 트랜잭션

    블록이 정상 종료되면 커밋, 예외가 나면 롤백합니다.

    Yields:
        (트랜잭션 connection, 잠근 Product)

    Raises:
        AuctionBusyError: 잠금 대기 시간 초과
        ProductNotFoundError: 상품 없음
    """
    context = in_transaction()
    async with AsyncExitStack() as stack:
        conn = await _enter_transaction(context, product_id)
        stack.push_async_exit(context)

        product = await _lock_row(conn, product_id)
        yield conn, product

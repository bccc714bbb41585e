"""
pytest 설정 및 공통 픽스처 정의
"""
import sys
from datetime import timedelta
from pathlib import Path
from typing import AsyncGenerator, List
from unittest.mock import MagicMock, AsyncMock

import pytest

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures.auctions import BASIC_AUCTION, NOW  # noqa: E402
from tests.fixtures.users import BIDDER_A, BIDDER_B, BIDDER_C, SELLER  # noqa: E402


# =============================================================================
# pytest 설정
# =============================================================================


def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# 데이터베이스 픽스처
# =============================================================================


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[None, None]:
    """
    테스트용 인메모리 SQLite 데이터베이스
    각 테스트 함수마다 새로운 DB 생성
    """
    from tortoise import Tortoise

    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": ["models"]},
        use_tz=True,
        timezone="UTC"
    )
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


# =============================================================================
# 알림 픽스처
# =============================================================================


@pytest.fixture
def event_bus():
    """구독자가 비어 있는 EventBus"""
    from service.event.event_bus import EventBus

    bus = EventBus()
    bus.clear_all_subscribers()
    yield bus
    bus.clear_all_subscribers()


@pytest.fixture(autouse=True)
def dispatcher(monkeypatch, event_bus):
    """
    테스트마다 새 알림 디스패처

    경매 서비스가 적재한 이벤트는 dispatched_events()로 확인합니다.
    """
    from service.notification.auction_dispatcher import AuctionNotificationDispatcher

    fresh = AuctionNotificationDispatcher(event_bus=event_bus)
    monkeypatch.setattr("service.auction.auction_service.auction_dispatcher", fresh)
    return fresh


@pytest.fixture
def dispatched(dispatcher):
    """큐에 쌓인 이벤트 목록을 돌려주는 함수 (큐는 비우지 않음)"""

    def _events() -> List:
        return list(dispatcher._get_queue()._queue)

    return _events


# =============================================================================
# Mock 픽스처
# =============================================================================


@pytest.fixture
def mock_discord_interaction() -> MagicMock:
    """Mock Discord Interaction 객체"""
    interaction = MagicMock()
    interaction.user = MagicMock()
    interaction.user.id = BIDDER_A["discord_id"]
    interaction.user.name = "BidderA"
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    return interaction


@pytest.fixture
def mock_discord_client() -> MagicMock:
    """fetch_user()가 DM 가능한 사용자를 돌려주는 Mock 클라이언트"""
    client = MagicMock()
    sent = {}

    async def _fetch_user(discord_id):
        user = MagicMock()
        user.id = discord_id
        user.send = AsyncMock()
        sent[discord_id] = user.send
        return user

    client.fetch_user = AsyncMock(side_effect=_fetch_user)
    client.sent = sent
    return client


# =============================================================================
# 경매 엔티티 팩토리 픽스처
# =============================================================================


@pytest.fixture
def user_factory(test_db):
    """테스트용 User 생성 팩토리 (DB 저장)"""
    from models.users import User

    async def _create_user(**overrides) -> User:
        data = {"username": "TestUser", "review_count": 1, "rating_point": 1.0}
        data.update(overrides)
        return await User.create(**data)

    return _create_user


@pytest.fixture
def product_factory(test_db):
    """테스트용 Product 생성 팩토리 (DB 저장)"""
    from models.product import Product

    async def _create_product(seller, **overrides) -> Product:
        data = dict(BASIC_AUCTION)
        data["end_at"] = NOW + timedelta(days=1)
        data.update(overrides)
        data.setdefault("current_price", data["starting_price"])
        return await Product.create(seller=seller, **data)

    return _create_product


@pytest.fixture
async def seller(user_factory):
    return await user_factory(**SELLER)


@pytest.fixture
async def bidders(user_factory):
    """입찰자 A, B, C"""
    return (
        await user_factory(**BIDDER_A),
        await user_factory(**BIDDER_B),
        await user_factory(**BIDDER_C),
    )


@pytest.fixture
async def auction(product_factory, seller):
    """시작가 100, 입찰 단위 10, 즉시 구매 없음"""
    return await product_factory(seller)

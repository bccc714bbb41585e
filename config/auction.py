"""경매 엔진 설정 (자동 연장, 입찰 자격, 잠금 대기)"""
from dataclasses import dataclass


@dataclass(frozen=True)
class AuctionConfig:
    """경매 설정

    자동 연장 값은 system_settings 테이블에 값이 없을 때의 기본값입니다.
    """

    # 자동 연장 (스나이핑 방지)
    AUTO_EXTEND_TRIGGER_MINUTES: int = 5
    """마감까지 남은 시간이 이 값(분) 이하일 때 입찰되면 연장"""

    AUTO_EXTEND_DURATION_MINUTES: int = 10
    """연장 시간 (분)"""

    # 입찰 자격
    MIN_RATING_POINT: float = 0.8
    """평점이 이 값을 초과해야 입찰 가능 (0.0 ~ 1.0)"""

    # 동시성
    LOCK_WAIT_TIMEOUT_SECONDS: float = 5.0
    """상품 행 잠금 대기 최대 시간 (초)"""

    # 마감 처리
    END_SWEEP_INTERVAL_SECONDS: int = 30
    """마감 경매 확인 주기 (초)"""

    # 등록 검증
    MIN_STARTING_PRICE: int = 1
    """최소 시작가"""

    MAX_DURATION_HOURS: int = 720
    """최대 경매 기간 (30일)"""


AUCTION = AuctionConfig()

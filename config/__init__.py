"""
경매 엔진 설정 상수

모든 매직 넘버와 정책 기본값을 여기서 관리합니다.
각 도메인별 설정은 config/ 하위 모듈에 정의되어 있습니다.
"""
from config.auction import AuctionConfig, AUCTION
from config.notification import NotificationConfig, NOTIFICATION

__all__ = [
    "AuctionConfig",
    "AUCTION",
    "NotificationConfig",
    "NOTIFICATION",
]

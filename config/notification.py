"""
알림 시스템 설정
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationConfig:
    """커밋 후 알림 큐 설정"""

    QUEUE_MAX_SIZE: int = 1000
    """대기 가능한 최대 알림 수 (초과분은 버리고 경고 로그)"""

    STOP_DRAIN_TIMEOUT_SECONDS: float = 5.0
    """종료 시 남은 알림을 처리하기 위해 기다리는 최대 시간"""


# 싱글톤 설정 객체
NOTIFICATION = NotificationConfig()

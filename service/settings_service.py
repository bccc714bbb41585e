"""
시스템 설정 서비스

관리자가 바꿀 수 있는 정책 값을 system_settings 테이블에서 읽습니다.
값이 없거나 잘못된 경우 config.auction의 기본값을 사용합니다.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from tortoise.backends.base.client import BaseDBAsyncClient

from config.auction import AUCTION
from exceptions import InvalidSettingError
from models.system_setting import SystemSetting

logger = logging.getLogger(__name__)


AUTO_EXTEND_TRIGGER_KEY = "auto_extend_trigger_minutes"
AUTO_EXTEND_DURATION_KEY = "auto_extend_duration_minutes"

DEFAULT_SETTINGS: Dict[str, int] = {
    AUTO_EXTEND_TRIGGER_KEY: AUCTION.AUTO_EXTEND_TRIGGER_MINUTES,
    AUTO_EXTEND_DURATION_KEY: AUCTION.AUTO_EXTEND_DURATION_MINUTES,
}


@dataclass(frozen=True)
class AutoExtendSettings:
    trigger_minutes: int
    duration_minutes: int


class SettingsService:
    """시스템 설정 조회/변경"""

    @staticmethod
    async def get_all(using_db: Optional[BaseDBAsyncClient] = None) -> Dict[str, int]:
        """
        알려진 모든 설정 조회

        Returns:
            {key: value} (저장된 값이 없으면 기본값)
        """
        settings = dict(DEFAULT_SETTINGS)
        query = SystemSetting.filter(key__in=list(DEFAULT_SETTINGS))
        if using_db:
            query = query.using_db(using_db)
        rows = await query

        for row in rows:
            try:
                value = int(row.value)
            except ValueError:
                logger.warning(
                    f"Invalid system setting {row.key}={row.value!r}, "
                    f"using default {settings[row.key]}"
                )
                continue

            if value < 0:
                logger.warning(
                    f"Negative system setting {row.key}={value}, "
                    f"using default {settings[row.key]}"
                )
                continue

            settings[row.key] = value

        return settings

    @staticmethod
    async def get_auto_extend_settings(
        using_db: Optional[BaseDBAsyncClient] = None
    ) -> AutoExtendSettings:
        """자동 연장 설정 조회"""
        settings = await SettingsService.get_all(using_db)
        return AutoExtendSettings(
            trigger_minutes=settings[AUTO_EXTEND_TRIGGER_KEY],
            duration_minutes=settings[AUTO_EXTEND_DURATION_KEY],
        )

    @staticmethod
    async def update_setting(key: str, value: int) -> SystemSetting:
        """
        설정 변경

        Raises:
            InvalidSettingError: 알 수 없는 키 또는 음수 값
        """
        if key not in DEFAULT_SETTINGS:
            raise InvalidSettingError(key, "알 수 없는 설정입니다")

        if value < 0:
            raise InvalidSettingError(key, "0 이상이어야 합니다")

        setting, _ = await SystemSetting.update_or_create(
            defaults={"value": str(value)},
            key=key
        )

        logger.info(f"System setting updated: {key}={value}")
        return setting

"""
시스템 설정 서비스 통합 테스트
"""
import pytest

from config.auction import AUCTION
from exceptions import InvalidSettingError
from models.system_setting import SystemSetting
from service.settings_service import SettingsService

pytestmark = pytest.mark.integration


class TestSettingsService:
    async def test_defaults_when_empty(self, test_db):
        settings = await SettingsService.get_auto_extend_settings()

        assert settings.trigger_minutes == AUCTION.AUTO_EXTEND_TRIGGER_MINUTES
        assert settings.duration_minutes == AUCTION.AUTO_EXTEND_DURATION_MINUTES

    async def test_update_then_read(self, test_db):
        await SettingsService.update_setting("auto_extend_trigger_minutes", 3)
        await SettingsService.update_setting("auto_extend_trigger_minutes", 7)

        settings = await SettingsService.get_auto_extend_settings()

        assert settings.trigger_minutes == 7
        assert await SystemSetting.filter(key="auto_extend_trigger_minutes").count() == 1

    async def test_malformed_value_falls_back(self, test_db):
        await SystemSetting.create(key="auto_extend_duration_minutes", value="ten")

        settings = await SettingsService.get_auto_extend_settings()

        assert settings.duration_minutes == AUCTION.AUTO_EXTEND_DURATION_MINUTES

    async def test_unknown_key_rejected(self, test_db):
        with pytest.raises(InvalidSettingError):
            await SettingsService.update_setting("max_bidders", 3)

    async def test_negative_value_rejected(self, test_db):
        with pytest.raises(InvalidSettingError):
            await SettingsService.update_setting("auto_extend_duration_minutes", -1)

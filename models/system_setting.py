"""
시스템 설정 모델

관리자가 런타임에 바꿀 수 있는 정책 값(자동 연장 등)을 key/value로 저장합니다.
"""
from tortoise import fields, models


class SystemSetting(models.Model):
    id = fields.IntField(pk=True)
    key = fields.CharField(max_length=100, unique=True)
    value = fields.CharField(max_length=255)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "system_settings"

    def __str__(self) -> str:
        return f"{self.key}={self.value}"

"""
사용자 모델

계정/로그인은 외부 시스템이 관리하며, 경매 엔진은 식별자와
평점 집계값(review_count, rating_point)만 읽습니다.
"""
from tortoise import fields, models


class User(models.Model):
    id = fields.BigIntField(pk=True)
    discord_id = fields.BigIntField(null=True, unique=True)
    username = fields.CharField(max_length=255)

    # 리뷰 시스템이 갱신하는 집계값
    review_count = fields.IntField(default=0)
    rating_point = fields.FloatField(default=0.0)
    """긍정 리뷰 비율 (0.0 ~ 1.0)"""

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self) -> str:
        return f"User {self.id}: {self.username}"

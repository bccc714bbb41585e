"""
입찰 내역 모델

공개 가격 변동 기록입니다. 화면에 보이는 현재가나 최고 입찰자가
실제로 바뀔 때만 추가되며, 한 번 기록된 행은 수정하지 않습니다.
"""
from tortoise import fields, models


class BidHistory(models.Model):
    id = fields.BigIntField(pk=True)

    product = fields.ForeignKeyField(
        "models.Product",
        related_name="bid_history",
        on_delete=fields.CASCADE
    )
    bidder = fields.ForeignKeyField(
        "models.User",
        related_name="bid_history",
        on_delete=fields.CASCADE
    )

    current_price = fields.BigIntField()
    is_buy_now = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "bid_history"
        indexes = (
            ("product", "created_at"),
        )

    def __str__(self) -> str:
        return f"History {self.id}: {self.bidder_id} leads {self.product_id} at {self.current_price}"

"""
자동 입찰 모델

입찰자별로 '이 상품에 최대 얼마까지 지불할 의사가 있는지'를 기록합니다.
입찰할 때마다 갱신(upsert)되며, 입찰자 거부 시에만 삭제됩니다.
"""
from tortoise import fields, models


class ProxyBid(models.Model):
    """자동 입찰 상한가 (상품 x 입찰자 당 1건)"""

    id = fields.BigIntField(pk=True)

    product = fields.ForeignKeyField(
        "models.Product",
        related_name="proxy_bids",
        on_delete=fields.CASCADE
    )
    bidder = fields.ForeignKeyField(
        "models.User",
        related_name="proxy_bids",
        on_delete=fields.CASCADE
    )

    max_price = fields.BigIntField()
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "proxy_bid"
        unique_together = (("product", "bidder"),)
        indexes = (
            ("product", "max_price"),  # 상한가 순 조회
        )

    def __str__(self) -> str:
        return f"ProxyBid {self.bidder_id} on {self.product_id}: max {self.max_price}"

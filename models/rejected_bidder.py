"""
거부된 입찰자 모델

판매자가 특정 상품에서 배제한 입찰자입니다. 해제하기 전까지는
해당 상품에 입찰하거나 즉시 구매할 수 없습니다.
"""
from tortoise import fields, models


class RejectedBidder(models.Model):
    id = fields.BigIntField(pk=True)

    product = fields.ForeignKeyField(
        "models.Product",
        related_name="rejected_bidders",
        on_delete=fields.CASCADE
    )
    bidder = fields.ForeignKeyField(
        "models.User",
        related_name="rejections",
        on_delete=fields.CASCADE
    )
    seller_id = fields.BigIntField()
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "rejected_bidder"
        unique_together = (("product", "bidder"),)

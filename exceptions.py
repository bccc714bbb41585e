"""
경매 엔진 커스텀 예외 클래스 정의

모든 예외는 AuctionHouseError를 상속받아 일관된 에러 처리를 제공합니다.
message 속성은 그대로 사용자에게 보여줄 수 있는 거절 사유입니다.
"""
from typing import Optional


class AuctionHouseError(Exception):
    """경매 엔진 기본 예외 클래스"""

    retryable: bool = False

    def __init__(self, message: str = "알 수 없는 오류가 발생했습니다"):
        self.message = message
        super().__init__(self.message)


# =============================================================================
# 조회 실패 (NotFound)
# =============================================================================


class NotFoundError(AuctionHouseError):
    """대상을 찾을 수 없음"""


class ProductNotFoundError(NotFoundError):
    """경매 상품을 찾을 수 없음"""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"경매 상품을 찾을 수 없습니다: {product_id}")


class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없음"""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"사용자를 찾을 수 없습니다: {user_id}")


class ProxyBidNotFoundError(NotFoundError):
    """해당 입찰자의 자동 입찰 기록이 없음"""

    def __init__(self, product_id: int, bidder_id: int):
        self.product_id = product_id
        self.bidder_id = bidder_id
        super().__init__("이 입찰자는 해당 상품에 입찰한 기록이 없습니다.")


# =============================================================================
# 경매 상태 관련 예외
# =============================================================================


class AlreadyDecidedError(AuctionHouseError):
    """이미 판매 확정 또는 취소된 경매"""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("이미 판매가 확정되었거나 취소된 경매입니다.")


class AuctionClosedError(AuctionHouseError):
    """마감된 경매"""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("이미 종료된 경매입니다.")


class BuyNowUnavailableError(AuctionHouseError):
    """즉시 구매가가 설정되지 않음"""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("즉시 구매가 설정되지 않은 상품입니다.")


class AuctionBusyError(AuctionHouseError):
    """상품 잠금 대기 시간 초과 (재시도 가능)"""

    retryable = True

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("다른 입찰을 처리 중입니다. 잠시 후 다시 시도해주세요.")


# =============================================================================
# 권한 관련 예외
# =============================================================================


class UnauthorizedError(AuctionHouseError):
    """해당 행동을 할 권한이 없음"""


class SelfBidError(UnauthorizedError):
    """판매자 본인의 입찰/구매"""

    def __init__(self, product_id: int, user_id: int):
        self.product_id = product_id
        self.user_id = user_id
        super().__init__("본인이 등록한 상품에는 입찰하거나 구매할 수 없습니다.")


class NotSellerError(UnauthorizedError):
    """판매자가 아닌 사용자의 판매자 전용 행동"""

    def __init__(self, product_id: int, user_id: int):
        self.product_id = product_id
        self.user_id = user_id
        super().__init__("판매자만 입찰자를 관리할 수 있습니다.")


class ForbiddenError(AuctionHouseError):
    """해당 상품에 대한 참여가 금지됨"""


class BidderRejectedError(ForbiddenError):
    """판매자에게 거부된 입찰자"""

    def __init__(self, product_id: int, bidder_id: int):
        self.product_id = product_id
        self.bidder_id = bidder_id
        super().__init__("판매자가 이 상품에 대한 입찰을 거부했습니다.")


class IneligibleBidderError(AuctionHouseError):
    """평점 조건 미달"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# =============================================================================
# 입력값 관련 예외
# =============================================================================


class InvalidBidAmountError(AuctionHouseError):
    """입찰가가 현재가 또는 최소 증가폭 미달"""

    def __init__(self, amount: int, current_price: int, min_required: int):
        self.amount = amount
        self.current_price = current_price
        self.min_required = min_required
        super().__init__(
            f"입찰가는 최소 {min_required:,} 이상이어야 합니다. "
            f"(현재가: {current_price:,}, 입찰가: {amount:,})"
        )


class InvalidAuctionSettingsError(AuctionHouseError):
    """경매 등록 값이 유효하지 않음"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidSettingError(AuctionHouseError):
    """시스템 설정 값이 유효하지 않음"""

    def __init__(self, key: str, reason: Optional[str] = None):
        self.key = key
        self.reason = reason or "허용되지 않는 값입니다"
        super().__init__(f"시스템 설정 '{key}' 오류: {self.reason}")

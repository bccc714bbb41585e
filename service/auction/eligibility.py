"""
입찰 자격 검사

평점 집계는 리뷰 시스템의 몫이고, 여기서는 집계값을 읽어
상품 설정과 정책 임계값에 따라 입찰 가능 여부만 판단합니다.
"""
from dataclasses import dataclass
from typing import Optional

from tortoise.backends.base.client import BaseDBAsyncClient

from config.auction import AUCTION
from exceptions import IneligibleBidderError, UserNotFoundError
from models.users import User


@dataclass(frozen=True)
class UserRating:
    has_reviews: bool
    rating_point: float


async def fetch_user_rating(
    user_id: int,
    using_db: Optional[BaseDBAsyncClient] = None
) -> UserRating:
    """사용자 평점 조회"""
    query = User.filter(id=user_id)
    if using_db:
        query = query.using_db(using_db)
    user = await query.first()
    if not user:
        raise UserNotFoundError(user_id)

    return UserRating(
        has_reviews=user.review_count > 0,
        rating_point=user.rating_point,
    )


def check_eligibility(
    rating: UserRating,
    allow_unrated: bool,
    min_rating_point: float = AUCTION.MIN_RATING_POINT
) -> None:
    """
    입찰 자격 확인

    Args:
        rating: 입찰자 평점
        allow_unrated: 상품의 평가 없는 입찰자 허용 여부
        min_rating_point: 평점이 이 값을 초과해야 통과

    Raises:
        IneligibleBidderError: 자격 미달
    """
    if not rating.has_reviews:
        if not allow_unrated:
            raise IneligibleBidderError(
                "판매자가 평가 이력이 없는 입찰자의 참여를 허용하지 않았습니다."
            )
        return

    if rating.rating_point <= 0:
        raise IneligibleBidderError("평점 때문에 입찰할 수 없습니다.")

    if rating.rating_point <= min_rating_point:
        raise IneligibleBidderError(
            f"평점이 {min_rating_point:.0%}를 넘지 않아 입찰할 수 없습니다."
        )

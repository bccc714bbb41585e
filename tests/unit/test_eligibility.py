"""
입찰 자격 검사 테스트
"""
import pytest

from exceptions import IneligibleBidderError
from service.auction.eligibility import UserRating, check_eligibility


class TestCheckEligibility:
    def test_good_rating_passes(self):
        check_eligibility(UserRating(has_reviews=True, rating_point=0.95), allow_unrated=False)

    def test_unrated_allowed(self):
        check_eligibility(UserRating(has_reviews=False, rating_point=0.0), allow_unrated=True)

    def test_unrated_not_allowed(self):
        with pytest.raises(IneligibleBidderError) as exc_info:
            check_eligibility(UserRating(has_reviews=False, rating_point=0.0), allow_unrated=False)

        assert "평가 이력" in exc_info.value.message

    @pytest.mark.parametrize("rating_point", [-0.5, 0.0])
    def test_non_positive_rating_rejected(self, rating_point):
        with pytest.raises(IneligibleBidderError):
            check_eligibility(UserRating(has_reviews=True, rating_point=rating_point), allow_unrated=True)

    @pytest.mark.parametrize("rating_point", [0.5, 0.8])
    def test_rating_at_or_below_threshold_rejected(self, rating_point):
        with pytest.raises(IneligibleBidderError) as exc_info:
            check_eligibility(UserRating(has_reviews=True, rating_point=rating_point), allow_unrated=True)

        assert "80%" in exc_info.value.message

    def test_threshold_is_configurable(self):
        rating = UserRating(has_reviews=True, rating_point=0.6)

        check_eligibility(rating, allow_unrated=False, min_rating_point=0.5)

        with pytest.raises(IneligibleBidderError):
            check_eligibility(rating, allow_unrated=False, min_rating_point=0.7)

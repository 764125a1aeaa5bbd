"""Mastery rule applied once per review, right after scheduling."""

from decimal import Decimal

from muraja.domain.constants import (
    MASTERY_MIN_INTERVAL_DAYS,
    MASTERY_MIN_SUCCESS_RATE,
    MASTERY_MIN_TOTAL_REVIEWS,
)
from muraja.domain.models import ReviewState


class MasteryEvaluator:
    """
    Decides whether a card is mastered.

    A card is mastered once success_rate >= 90, total_reviews >= 10 and
    interval_days >= 30 all hold. Mastery is never revoked here.
    """

    def __init__(
        self,
        min_success_rate: Decimal = MASTERY_MIN_SUCCESS_RATE,
        min_total_reviews: int = MASTERY_MIN_TOTAL_REVIEWS,
        min_interval_days: int = MASTERY_MIN_INTERVAL_DAYS,
    ):
        self.min_success_rate = min_success_rate
        self.min_total_reviews = min_total_reviews
        self.min_interval_days = min_interval_days

    def evaluate(self, state: ReviewState) -> bool:
        if state.is_mastered:
            return True

        return (
            state.success_rate >= self.min_success_rate
            and state.total_reviews >= self.min_total_reviews
            and state.interval_days >= self.min_interval_days
        )

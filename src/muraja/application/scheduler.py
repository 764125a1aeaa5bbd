"""
SM-2 scheduler: computes the next ReviewState from the current one and a
0-5 recall quality.

This is a pure computation module with no I/O. The clock is passed in.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal

from muraja.domain.constants import (
    FAILED_INTERVAL_DAYS,
    FAILURE_OUTCOME,
    FIRST_INTERVAL_DAYS,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
    SUCCESS_OUTCOME,
)
from muraja.domain.errors import InvalidQuality
from muraja.domain.models import ReviewState


def validate_quality(quality: int) -> int:
    """Return `quality` unchanged, or raise InvalidQuality if it is not an int in 0..5."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQuality(quality)
    return quality


class SM2Scheduler:
    """
    Stateless SM-2 implementation.

    Quality scale: 0 = complete blackout ... 5 = perfect recall; 3 and above
    is a successful recall.
    """

    def advance(self, state: ReviewState, quality: int, now: datetime) -> ReviewState:
        """
        Apply one review to `state` and return the resulting state.

        The mastery flag and version are carried over untouched.

        Raises:
            InvalidQuality: quality is not an integer in 0..5.
        """
        validate_quality(quality)

        interval_days, repetitions = self._next_interval(state, quality)
        ease_factor = self._next_ease_factor(state.ease_factor, quality)
        total_reviews = state.total_reviews + 1

        return replace(
            state,
            ease_factor=ease_factor,
            interval_days=interval_days,
            repetitions=repetitions,
            next_review_date=now + timedelta(days=interval_days),
            last_review_date=now,
            total_reviews=total_reviews,
            success_rate=self._next_success_rate(state.success_rate, total_reviews, quality),
        )

    def _next_interval(self, state: ReviewState, quality: int) -> tuple[int, int]:
        """
        Returns (interval_days, repetitions) after the review.

        Growth uses the ease factor from before this review.
        """
        if quality < PASSING_QUALITY:
            return FAILED_INTERVAL_DAYS, 0

        if state.repetitions == 0:
            interval = FIRST_INTERVAL_DAYS
        elif state.repetitions == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            # Decimal rounds half to even
            interval = round(state.interval_days * state.ease_factor)

        return interval, state.repetitions + 1

    def _next_ease_factor(self, ease_factor: Decimal, quality: int) -> Decimal:
        """
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3.
        """
        miss = MAX_QUALITY - quality
        updated = ease_factor + (Decimal("0.1") - miss * (Decimal("0.08") + miss * Decimal("0.02")))
        return max(updated, MIN_EASE_FACTOR)

    def _next_success_rate(
        self, success_rate: Decimal, total_reviews: int, quality: int
    ) -> Decimal:
        """
        Incremental lifetime mean of outcomes (100 for a pass, 0 for a fail).

        `total_reviews` already includes the review being recorded.
        """
        outcome = SUCCESS_OUTCOME if quality >= PASSING_QUALITY else FAILURE_OUTCOME
        return (success_rate * (total_reviews - 1) + outcome) / total_reviews

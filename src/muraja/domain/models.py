"""
Domain models for flashcards and their per-user scheduling state.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from .constants import DEFAULT_DIFFICULTY_LEVEL, INITIAL_EASE_FACTOR


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Card:
    """
    Immutable flashcard content, owned by the card catalog.

    Attributes:
        id: Catalog identifier.
        front: Prompt side (e.g. an Arabic word or the start of a verse).
        back: Answer side.
        category: Grouping such as "verse_memorization", "arabic_vocab", "hadith".
        difficulty_level: Free-form level label ("beginner", "intermediate", ...).
        reference: Optional source reference (e.g. "2:255").
        notes: Optional extra context shown after the answer.
        is_active: Inactive cards are never scheduled or reviewed.
        created_date: When the card entered the catalog.
    """

    id: int
    front: str
    back: str
    category: str = ""
    difficulty_level: str = DEFAULT_DIFFICULTY_LEVEL
    reference: str | None = None
    notes: str | None = None
    is_active: bool = True
    created_date: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ReviewState:
    """
    SM-2 scheduling record for one (user, card) pair.

    Updated only by producing a new value (see SM2Scheduler.advance);
    the store owns persistence and the `version` concurrency token.

    Attributes:
        user_id: Reviewing user.
        card_id: Reviewed card.
        ease_factor: Interval growth multiplier, never below 1.3.
        interval_days: Days between last_review_date and next_review_date.
        repetitions: Consecutive successful recalls since the last failure.
        next_review_date: The state is due once this is <= now.
        last_review_date: None until the first review is recorded.
        total_reviews: Lifetime review count.
        success_rate: Lifetime percentage (0-100) of reviews with quality >= 3.
        is_mastered: One-way flag; mastered cards leave the due queue.
        version: Store-assigned write counter (0 = never persisted).
    """

    user_id: int
    card_id: int
    ease_factor: Decimal = INITIAL_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    next_review_date: datetime = field(default_factory=utcnow)
    last_review_date: datetime | None = None
    total_reviews: int = 0
    success_rate: Decimal = Decimal(0)
    is_mastered: bool = False
    version: int = 0

    @classmethod
    def initial(cls, user_id: int, card_id: int, now: datetime | None = None) -> "ReviewState":
        """Default state for a pair that has never been reviewed."""
        return cls(
            user_id=user_id,
            card_id=card_id,
            next_review_date=now or utcnow(),
        )

    @property
    def key(self) -> tuple[int, int]:
        return (self.user_id, self.card_id)

    def is_due(self, now: datetime) -> bool:
        return not self.is_mastered and self.next_review_date <= now

"""
Review Service — Application layer orchestrator.

Owns the read-modify-write cycle of a single review: validate the quality,
load or initialize the scheduling state, run SM-2, apply the mastery rule,
and persist the result with an optimistic-concurrency write.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from muraja.domain.constants import DEFAULT_DUE_LIMIT, DEFAULT_MAX_REVIEW_ATTEMPTS, MAX_DUE_LIMIT
from muraja.domain.errors import CardNotFound, ConflictError, ProgressNotFound, StaleStateError
from muraja.domain.models import Card, ReviewState, utcnow
from muraja.domain.ports import CardCatalog, ReviewStateRepository

from .due_selector import DueSetSelector
from .mastery import MasteryEvaluator
from .scheduler import SM2Scheduler, validate_quality

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Public entry point of the review engine.

    Follows Dependency Inversion: depends on the CardCatalog and
    ReviewStateRepository ports, not on concrete adapters.
    """

    def __init__(
        self,
        catalog: CardCatalog,
        states: ReviewStateRepository,
        scheduler: SM2Scheduler | None = None,
        mastery: MasteryEvaluator | None = None,
        max_attempts: int = DEFAULT_MAX_REVIEW_ATTEMPTS,
        default_due_limit: int = DEFAULT_DUE_LIMIT,
        max_due_limit: int = MAX_DUE_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            catalog: Card content port.
            states: Review-state persistence port.
            scheduler: Optional custom scheduler; uses SM-2 defaults if not provided.
            mastery: Optional custom mastery rule.
            max_attempts: Total read-modify-write attempts before ConflictError.
            default_due_limit: Limit used by get_due_cards when none is given.
            max_due_limit: Upper bound applied to any requested due limit.
            clock: Source of "now"; injectable for tests.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._catalog = catalog
        self._states = states
        self._scheduler = scheduler or SM2Scheduler()
        self._mastery = mastery or MasteryEvaluator()
        self._selector = DueSetSelector(catalog, states)
        self._max_attempts = max_attempts
        self._default_due_limit = default_due_limit
        self._max_due_limit = max_due_limit
        self._clock = clock

    async def get_due_cards(self, user_id: int, limit: int | None = None) -> list[Card]:
        """
        Cards to study next: overdue reviews first, then unseen cards.
        Limits above the configured maximum are clamped; a limit of zero or
        less yields an empty list.
        """
        if limit is None:
            limit = self._default_due_limit
        limit = min(limit, self._max_due_limit)
        return await self._selector.select_due(user_id, limit, now=self._clock())

    async def review(self, user_id: int, card_id: int, quality: int) -> ReviewState:
        """
        Record one review of `card_id` by `user_id`.

        Returns:
            The persisted ReviewState (next due date, new ease factor, ...).

        Raises:
            InvalidQuality: quality is not an integer in 0..5. Nothing is read or written.
            CardNotFound: the card is absent or inactive.
            ConflictError: concurrent reviews of the same pair won every attempt.
        """
        validate_quality(quality)

        if await self._catalog.get_active_card(card_id) is None:
            raise CardNotFound(card_id)

        for attempt in range(1, self._max_attempts + 1):
            current = await self._states.get(user_id, card_id)
            now = self._clock()
            if current is None:
                current = ReviewState.initial(user_id, card_id, now)

            updated = self._scheduler.advance(current, quality, now)
            updated = replace(updated, is_mastered=self._mastery.evaluate(updated))

            try:
                stored = await self._states.upsert(updated)
            except StaleStateError as e:
                logger.warning(
                    f"Concurrent review detected (attempt {attempt}/{self._max_attempts}): {e}"
                )
                continue

            logger.info(
                f"FlashCard {card_id} reviewed by user {user_id} with quality {quality} "
                f"(interval={stored.interval_days}d, ease={stored.ease_factor})"
            )
            if stored.is_mastered and not current.is_mastered:
                logger.info(f"FlashCard {card_id} mastered by user {user_id}")
            return stored

        raise ConflictError(user_id, card_id, self._max_attempts)

    async def get_progress(self, user_id: int, card_id: int) -> ReviewState:
        """
        The stored scheduling record for a pair.

        Raises:
            ProgressNotFound: the user never reviewed the card.
        """
        state = await self._states.get(user_id, card_id)
        if state is None:
            raise ProgressNotFound(user_id, card_id)
        return state

    async def list_cards(self, category: str | None = None) -> list[Card]:
        """All active cards, optionally restricted to one category."""
        return await self._catalog.list_active_cards(category=category)

    async def get_card(self, card_id: int) -> Card:
        card = await self._catalog.get_card(card_id)
        if card is None:
            raise CardNotFound(card_id)
        return card

"""
Due-card selection for a study session.

Builds the ordered list of cards to present next by:
1. Taking the user's overdue, non-mastered reviews, earliest due first
2. Backfilling with active cards the user has never reviewed, by ascending id
"""

import logging
from datetime import datetime

from muraja.domain.models import Card, utcnow
from muraja.domain.ports import CardCatalog, ReviewStateRepository

logger = logging.getLogger(__name__)


class DueSetSelector:
    """
    Read-only projection over the review-state store and the card catalog.
    """

    def __init__(self, catalog: CardCatalog, states: ReviewStateRepository):
        self._catalog = catalog
        self._states = states

    async def select_due(
        self, user_id: int, limit: int, now: datetime | None = None
    ) -> list[Card]:
        """
        Args:
            user_id: The studying user.
            limit: Maximum number of cards to return.
            now: Reference time; defaults to the current UTC time.

        Returns:
            Overdue cards (ordered by next_review_date, then card id) followed
            by unseen active cards (ordered by id). Never more than `limit`,
            never a mastered or inactive card, never the same card twice.
        """
        if limit <= 0:
            return []

        now = now or utcnow()
        selected: list[Card] = []
        seen: set[int] = set()

        # Phase 1: overdue reviews
        for state in await self._states.list_due(user_id, now):
            if len(selected) >= limit:
                break
            if not state.is_due(now) or state.card_id in seen:
                continue

            card = await self._catalog.get_active_card(state.card_id)
            if card is None:
                logger.debug(
                    f"Skipping due state for missing or inactive card {state.card_id} "
                    f"(user {user_id})"
                )
                continue

            selected.append(card)
            seen.add(card.id)

        # Phase 2: new material
        remaining = limit - len(selected)
        if remaining > 0:
            reviewed = await self._states.reviewed_card_ids(user_id)
            new_cards = await self._catalog.list_active_cards(
                exclude_ids=reviewed | seen, limit=remaining
            )
            selected.extend(new_cards)

        logger.debug(
            f"Selected {len(selected)} cards for user {user_id} "
            f"({len(seen)} due, {len(selected) - len(seen)} new)"
        )
        return selected

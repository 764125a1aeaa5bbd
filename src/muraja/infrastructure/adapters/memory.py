"""
In-memory adapters for the card catalog and the review-state store.

Used by the test-suite and by the "memory" backend. State lives for the
lifetime of the process only.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from muraja.domain.errors import StaleStateError
from muraja.domain.models import Card, ReviewState
from muraja.domain.ports import CardCatalog, ReviewStateRepository

logger = logging.getLogger(__name__)


class InMemoryCardCatalog(CardCatalog):
    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[int, Card] = {card.id: card for card in cards}

    async def add_cards(self, cards: Iterable[Card]) -> int:
        """Insert or replace cards by id. Returns the number written."""
        count = 0
        for card in cards:
            self._cards[card.id] = card
            count += 1
        return count

    async def get_card(self, card_id: int) -> Card | None:
        return self._cards.get(card_id)

    async def list_active_cards(
        self,
        exclude_ids: Iterable[int] = (),
        limit: int | None = None,
        category: str | None = None,
    ) -> list[Card]:
        excluded = set(exclude_ids)
        result: list[Card] = []

        for card_id in sorted(self._cards):
            if limit is not None and len(result) >= limit:
                break
            card = self._cards[card_id]
            if not card.is_active or card_id in excluded:
                continue
            if category is not None and card.category != category:
                continue
            result.append(card)

        return result


class InMemoryReviewStateRepository(ReviewStateRepository):
    """
    Dict-backed store keyed by (user_id, card_id).

    The version compare-and-swap runs under an asyncio.Lock, so concurrent
    reviews of the same pair on one event loop cannot both win.
    """

    def __init__(self):
        self._states: dict[tuple[int, int], ReviewState] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: int, card_id: int) -> ReviewState | None:
        return self._states.get((user_id, card_id))

    async def upsert(self, state: ReviewState) -> ReviewState:
        async with self._lock:
            existing = self._states.get(state.key)
            actual_version = existing.version if existing else 0

            if actual_version != state.version:
                raise StaleStateError(
                    state.user_id, state.card_id, state.version, actual_version
                )

            stored = replace(state, version=actual_version + 1)
            self._states[state.key] = stored
            return stored

    async def list_due(self, user_id: int, now: datetime) -> list[ReviewState]:
        due = [
            s
            for (uid, _), s in self._states.items()
            if uid == user_id and s.is_due(now)
        ]
        return sorted(due, key=lambda s: (s.next_review_date, s.card_id))

    async def reviewed_card_ids(self, user_id: int) -> set[int]:
        return {cid for (uid, cid) in self._states if uid == user_id}

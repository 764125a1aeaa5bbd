"""
Ports (interfaces) for card content and review-state persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from .models import Card, ReviewState


class CardCatalog(ABC):
    """
    Port for read access to flashcard content.

    Implementations:
        - InMemoryCardCatalog: dict-backed, used by tests and the "memory" backend.
        - SqliteCardCatalog: the `flashcards` table of the SQLite database.
    """

    @abstractmethod
    async def get_card(self, card_id: int) -> Card | None:
        """
        Fetch a card by id regardless of its active flag.

        Returns:
            The Card, or None if the catalog has no such id.
        """
        pass

    async def get_active_card(self, card_id: int) -> Card | None:
        """
        Fetch a card only if it exists and is active.
        """
        card = await self.get_card(card_id)
        if card is None or not card.is_active:
            return None
        return card

    @abstractmethod
    async def list_active_cards(
        self,
        exclude_ids: Iterable[int] = (),
        limit: int | None = None,
        category: str | None = None,
    ) -> list[Card]:
        """
        List active cards in ascending id order.

        Args:
            exclude_ids: Card ids to leave out.
            limit: Maximum number of cards to return (None = no limit).
            category: Only cards with exactly this category, if given.

        Returns:
            List of active Card objects sorted by id.
        """
        pass


class ReviewStateRepository(ABC):
    """
    Port for persisting ReviewState records keyed by (user_id, card_id).

    Writes are optimistic: `upsert` succeeds only if the stored version still
    equals `state.version`, otherwise it raises StaleStateError and writes nothing.

    Implementations:
        - InMemoryReviewStateRepository
        - SqliteReviewStateRepository
    """

    @abstractmethod
    async def get(self, user_id: int, card_id: int) -> ReviewState | None:
        """
        Fetch the scheduling record for a pair, or None if it was never reviewed.
        """
        pass

    @abstractmethod
    async def upsert(self, state: ReviewState) -> ReviewState:
        """
        Insert or update `state` atomically.

        Args:
            state: The new state. Its `version` must equal the stored version
                (0 when no record exists yet).

        Returns:
            The stored state, carrying the incremented version.

        Raises:
            StaleStateError: Another writer updated the record first.
        """
        pass

    @abstractmethod
    async def list_due(self, user_id: int, now: datetime) -> list[ReviewState]:
        """
        List the user's non-mastered states with next_review_date <= now,
        sorted by (next_review_date, card_id) ascending.
        """
        pass

    @abstractmethod
    async def reviewed_card_ids(self, user_id: int) -> set[int]:
        """
        Ids of every card the user has a state for, mastered or not.
        """
        pass

"""
Domain errors for the review engine.

Raised by the domain and application layers; translated to transport
responses only at the edges (REST handlers, CLI).
"""


class ReviewError(Exception):
    """Base class for every failure the review engine reports to callers."""


class InvalidQuality(ReviewError):
    """Quality rating outside the 0-5 scale. Client error, never retried."""

    def __init__(self, quality: int):
        self.quality = quality
        super().__init__(f"Quality must be between 0 and 5, got {quality}")


class CardNotFound(ReviewError):
    """The card is absent from the catalog, or inactive where an active card is required."""

    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Flashcard {card_id} not found")


class ProgressNotFound(ReviewError):
    """The user has never reviewed the card, so no scheduling record exists."""

    def __init__(self, user_id: int, card_id: int):
        self.user_id = user_id
        self.card_id = card_id
        super().__init__(f"No review progress for user {user_id} on flashcard {card_id}")


class ConflictError(ReviewError):
    """Concurrent reviews of the same card kept colliding; the review was not recorded."""

    def __init__(self, user_id: int, card_id: int, attempts: int):
        self.user_id = user_id
        self.card_id = card_id
        self.attempts = attempts
        super().__init__(
            f"Review of flashcard {card_id} by user {user_id} conflicted with a concurrent "
            f"review {attempts} times"
        )


class StaleStateError(ReviewError):
    """
    Raised by a ReviewStateRepository when the version of the state being written
    no longer matches the stored one. Handled inside ReviewService by retrying.
    """

    def __init__(self, user_id: int, card_id: int, expected_version: int, actual_version: int):
        self.user_id = user_id
        self.card_id = card_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stale review state for user {user_id} / card {card_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )

"""
Backend Factory
Centralizes the logic for selecting the card catalog and review-state store.
"""

import logging

from muraja.application.config import AppConfig
from muraja.application.review_service import ReviewService
from muraja.domain.ports import CardCatalog, ReviewStateRepository
from muraja.infrastructure.adapters.memory import (
    InMemoryCardCatalog,
    InMemoryReviewStateRepository,
)
from muraja.infrastructure.adapters.sqlite import (
    SqliteCardCatalog,
    SqliteDatabase,
    SqliteReviewStateRepository,
)

logger = logging.getLogger(__name__)


def get_backends(config: AppConfig) -> tuple[CardCatalog, ReviewStateRepository]:
    """
    Returns the (catalog, store) pair for the configured backend.
    """
    if config.backend == "memory":
        logger.debug("Backend: memory")
        return InMemoryCardCatalog(), InMemoryReviewStateRepository()

    logger.debug(f"Backend: sqlite ({config.database_path})")
    db = SqliteDatabase(config.database_path)
    return SqliteCardCatalog(db), SqliteReviewStateRepository(db)


def build_review_service(config: AppConfig) -> ReviewService:
    catalog, states = get_backends(config)
    return ReviewService(
        catalog,
        states,
        max_attempts=config.max_review_attempts,
        default_due_limit=config.default_due_limit,
        max_due_limit=config.max_due_limit,
    )

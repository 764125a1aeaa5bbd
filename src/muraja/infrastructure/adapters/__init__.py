# Infrastructure Adapters Package
from .memory import InMemoryCardCatalog, InMemoryReviewStateRepository
from .sqlite import SqliteCardCatalog, SqliteDatabase, SqliteReviewStateRepository

__all__ = [
    "InMemoryCardCatalog",
    "InMemoryReviewStateRepository",
    "SqliteDatabase",
    "SqliteCardCatalog",
    "SqliteReviewStateRepository",
]

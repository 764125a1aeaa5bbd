# Domain Package
from .errors import (
    CardNotFound,
    ConflictError,
    InvalidQuality,
    ProgressNotFound,
    ReviewError,
    StaleStateError,
)
from .models import Card, ReviewState
from .ports import CardCatalog, ReviewStateRepository

__all__ = [
    "Card",
    "ReviewState",
    "CardCatalog",
    "ReviewStateRepository",
    "ReviewError",
    "InvalidQuality",
    "CardNotFound",
    "ProgressNotFound",
    "ConflictError",
    "StaleStateError",
]

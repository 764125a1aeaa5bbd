import os
from datetime import datetime, timezone

import pytest

from muraja.application.review_service import ReviewService
from muraja.domain.models import Card
from muraja.infrastructure.adapters.memory import (
    InMemoryCardCatalog,
    InMemoryReviewStateRepository,
)

NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


class MutableClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME at a temp dir and drop MURAJA_* variables so config is hermetic."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in [k for k in os.environ if k.startswith("MURAJA_")]:
        monkeypatch.delenv(key)
    return home


@pytest.fixture
def sample_cards():
    return [
        Card(id=1, front="ٱلرَّحْمَٰن", back="The Most Gracious", category="arabic_vocab"),
        Card(id=2, front="ٱلرَّحِيم", back="The Most Merciful", category="arabic_vocab"),
        Card(id=3, front="Ayat al-Kursi opening", back="2:255", category="verse_memorization"),
        Card(id=4, front="Actions are by intentions", back="Bukhari 1", category="hadith"),
        Card(id=5, front="صَبْر", back="Patience", category="arabic_vocab"),
        Card(id=6, front="Retired card", back="-", category="hadith", is_active=False),
    ]


@pytest.fixture
def catalog(sample_cards):
    return InMemoryCardCatalog(sample_cards)


@pytest.fixture
def store():
    return InMemoryReviewStateRepository()


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def service(catalog, store, clock):
    return ReviewService(catalog, store, clock=clock)


@pytest.fixture
def now():
    return NOW

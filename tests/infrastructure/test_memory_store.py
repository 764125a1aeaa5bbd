from datetime import timedelta

import pytest

from muraja.domain.errors import StaleStateError
from muraja.domain.models import Card, ReviewState


@pytest.mark.asyncio
async def test_upsert_assigns_versions(store):
    first = await store.upsert(ReviewState(user_id=1, card_id=1))
    second = await store.upsert(ReviewState(user_id=1, card_id=1, total_reviews=1, version=1))

    assert (first.version, second.version) == (1, 2)
    assert (await store.get(1, 1)).total_reviews == 1


@pytest.mark.asyncio
async def test_stale_upsert_writes_nothing(store):
    await store.upsert(ReviewState(user_id=1, card_id=1))

    with pytest.raises(StaleStateError):
        await store.upsert(ReviewState(user_id=1, card_id=1, total_reviews=3))

    assert (await store.get(1, 1)).total_reviews == 0


@pytest.mark.asyncio
async def test_list_due_sorted(store, now):
    await store.upsert(ReviewState(user_id=1, card_id=2, next_review_date=now - timedelta(days=1)))
    await store.upsert(ReviewState(user_id=1, card_id=1, next_review_date=now))
    await store.upsert(ReviewState(user_id=1, card_id=3, next_review_date=now - timedelta(days=1)))
    await store.upsert(ReviewState(user_id=1, card_id=4, next_review_date=now + timedelta(days=1)))

    assert [s.card_id for s in await store.list_due(1, now)] == [2, 3, 1]


@pytest.mark.asyncio
async def test_catalog_listing(catalog):
    assert [c.id for c in await catalog.list_active_cards(exclude_ids=[1], limit=2)] == [2, 3]
    assert [c.id for c in await catalog.list_active_cards(category="hadith")] == [4]

    assert await catalog.add_cards([Card(id=10, front="f", back="b", category="hadith")]) == 1
    assert [c.id for c in await catalog.list_active_cards(category="hadith")] == [4, 10]

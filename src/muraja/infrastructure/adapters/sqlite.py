"""
SQLite adapters — catalog and review-state store backed by one database file.

Each call opens its own connection in a worker thread, so the event loop
never blocks on disk I/O and concurrent requests do not share a cursor.
"""

import asyncio
import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from muraja.domain.errors import StaleStateError
from muraja.domain.models import Card, ReviewState
from muraja.domain.ports import CardCatalog, ReviewStateRepository

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

SCHEMA = """
CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY,
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT '',
    difficulty_level TEXT NOT NULL DEFAULT 'beginner',
    reference TEXT,
    notes TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS review_states (
    user_id INTEGER NOT NULL,
    card_id INTEGER NOT NULL,
    ease_factor TEXT NOT NULL,
    interval_days INTEGER NOT NULL,
    repetitions INTEGER NOT NULL,
    next_review_date TEXT NOT NULL,
    last_review_date TEXT,
    total_reviews INTEGER NOT NULL,
    success_rate TEXT NOT NULL,
    is_mastered INTEGER NOT NULL,
    version INTEGER NOT NULL,
    PRIMARY KEY (user_id, card_id)
);

CREATE INDEX IF NOT EXISTS ix_review_states_due
    ON review_states (user_id, is_mastered, next_review_date);
"""


def _format_ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class SqliteDatabase:
    """
    Owns the database path and schema. Hand out short-lived connections.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._initialized = False
        self._init_lock = threading.Lock()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        Yields a connection inside a transaction: committed on success,
        rolled back on error, always closed.
        """
        if not self._initialized:
            with self._init_lock:
                if not self._initialized:
                    self._initialize()

        conn = sqlite3.connect(self.path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            conn.executescript(SCHEMA)
        finally:
            conn.close()
        self._initialized = True
        logger.debug(f"SQLite schema ready at {self.path}")


class SqliteCardCatalog(CardCatalog):
    """Card content stored in the `flashcards` table."""

    def __init__(self, db: SqliteDatabase):
        self.db = db

    def _add_cards(self, cards: list[Card]) -> int:
        with self.db.connect() as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO flashcards "
                "(id, front, back, category, difficulty_level, reference, notes, "
                "is_active, created_date) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        c.id,
                        c.front,
                        c.back,
                        c.category,
                        c.difficulty_level,
                        c.reference,
                        c.notes,
                        int(c.is_active),
                        _format_ts(c.created_date),
                    )
                    for c in cards
                ],
            )
        return len(cards)

    async def add_cards(self, cards: Iterable[Card]) -> int:
        """Insert or replace cards by id. Returns the number written."""
        return await asyncio.to_thread(self._add_cards, list(cards))

    def _get_card(self, card_id: int) -> Card | None:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
        return self._row_to_card(row) if row else None

    async def get_card(self, card_id: int) -> Card | None:
        return await asyncio.to_thread(self._get_card, card_id)

    def _list_active_cards(
        self, excluded: set[int], limit: int | None, category: str | None
    ) -> list[Card]:
        query = "SELECT * FROM flashcards WHERE is_active = 1"
        params: list = []
        if category is not None:
            query += " AND category = ?"
            params.append(category)
        query += " ORDER BY id ASC"

        result: list[Card] = []
        with self.db.connect() as conn:
            # Exclusion is applied while streaming; the id set can exceed SQLite's parameter limit
            for row in conn.execute(query, params):
                if limit is not None and len(result) >= limit:
                    break
                if row["id"] in excluded:
                    continue
                result.append(self._row_to_card(row))
        return result

    async def list_active_cards(
        self,
        exclude_ids: Iterable[int] = (),
        limit: int | None = None,
        category: str | None = None,
    ) -> list[Card]:
        return await asyncio.to_thread(
            self._list_active_cards, set(exclude_ids), limit, category
        )

    @staticmethod
    def _row_to_card(row: sqlite3.Row) -> Card:
        return Card(
            id=row["id"],
            front=row["front"],
            back=row["back"],
            category=row["category"],
            difficulty_level=row["difficulty_level"],
            reference=row["reference"],
            notes=row["notes"],
            is_active=bool(row["is_active"]),
            created_date=_parse_ts(row["created_date"]),
        )


class SqliteReviewStateRepository(ReviewStateRepository):
    """
    Review states stored in the `review_states` table.

    Optimistic concurrency: version 0 inserts (the primary key rejects a
    second insert), later versions update only `WHERE version = ?`.
    """

    def __init__(self, db: SqliteDatabase):
        self.db = db

    def _get(self, user_id: int, card_id: int) -> ReviewState | None:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM review_states WHERE user_id = ? AND card_id = ?",
                (user_id, card_id),
            ).fetchone()
        return self._row_to_state(row) if row else None

    async def get(self, user_id: int, card_id: int) -> ReviewState | None:
        return await asyncio.to_thread(self._get, user_id, card_id)

    def _upsert(self, state: ReviewState) -> ReviewState:
        new_version = state.version + 1
        values = (
            str(state.ease_factor),
            state.interval_days,
            state.repetitions,
            _format_ts(state.next_review_date),
            _format_ts(state.last_review_date) if state.last_review_date else None,
            state.total_reviews,
            str(state.success_rate),
            int(state.is_mastered),
            new_version,
        )

        with self.db.connect() as conn:
            if state.version == 0:
                try:
                    conn.execute(
                        "INSERT INTO review_states (ease_factor, interval_days, repetitions, "
                        "next_review_date, last_review_date, total_reviews, success_rate, "
                        "is_mastered, version, user_id, card_id) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        (*values, state.user_id, state.card_id),
                    )
                except sqlite3.IntegrityError:
                    actual = self._current_version(conn, state.user_id, state.card_id)
                    raise StaleStateError(state.user_id, state.card_id, 0, actual) from None
            else:
                cursor = conn.execute(
                    "UPDATE review_states SET ease_factor = ?, interval_days = ?, "
                    "repetitions = ?, next_review_date = ?, last_review_date = ?, "
                    "total_reviews = ?, success_rate = ?, is_mastered = ?, version = ? "
                    "WHERE user_id = ? AND card_id = ? AND version = ?",
                    (*values, state.user_id, state.card_id, state.version),
                )
                if cursor.rowcount == 0:
                    actual = self._current_version(conn, state.user_id, state.card_id)
                    raise StaleStateError(state.user_id, state.card_id, state.version, actual)

        return replace(state, version=new_version)

    async def upsert(self, state: ReviewState) -> ReviewState:
        return await asyncio.to_thread(self._upsert, state)

    def _list_due(self, user_id: int, now: datetime) -> list[ReviewState]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM review_states "
                "WHERE user_id = ? AND is_mastered = 0 AND next_review_date <= ? "
                "ORDER BY next_review_date ASC, card_id ASC",
                (user_id, _format_ts(now)),
            ).fetchall()
        return [self._row_to_state(r) for r in rows]

    async def list_due(self, user_id: int, now: datetime) -> list[ReviewState]:
        return await asyncio.to_thread(self._list_due, user_id, now)

    def _reviewed_card_ids(self, user_id: int) -> set[int]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT card_id FROM review_states WHERE user_id = ?", (user_id,)
            ).fetchall()
        return {r["card_id"] for r in rows}

    async def reviewed_card_ids(self, user_id: int) -> set[int]:
        return await asyncio.to_thread(self._reviewed_card_ids, user_id)

    @staticmethod
    def _current_version(conn: sqlite3.Connection, user_id: int, card_id: int) -> int:
        row = conn.execute(
            "SELECT version FROM review_states WHERE user_id = ? AND card_id = ?",
            (user_id, card_id),
        ).fetchone()
        return row["version"] if row else 0

    @staticmethod
    def _row_to_state(row: sqlite3.Row) -> ReviewState:
        return ReviewState(
            user_id=row["user_id"],
            card_id=row["card_id"],
            ease_factor=Decimal(row["ease_factor"]),
            interval_days=row["interval_days"],
            repetitions=row["repetitions"],
            next_review_date=_parse_ts(row["next_review_date"]),
            last_review_date=_parse_ts(row["last_review_date"]),
            total_reviews=row["total_reviews"],
            success_rate=Decimal(row["success_rate"]),
            is_mastered=bool(row["is_mastered"]),
            version=row["version"],
        )

"""Load flashcard decks from YAML files into Card objects.

Deck format:

    cards:
      - id: 1
        front: "ٱلرَّحْمَٰن"
        back: "The Most Gracious"
        category: arabic_vocab
        reference: "1:3"
      - id: 2
        ...

`id`, `front`, `back` and `category` are required; `difficulty_level`,
`reference`, `notes` and `is_active` are optional.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor

from muraja.domain.constants import DEFAULT_DIFFICULTY_LEVEL
from muraja.domain.models import Card

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "front", "back", "category")


class DeckFormatError(ValueError):
    """The deck file is not valid YAML or does not describe a list of cards."""


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that forbids duplicate keys and records mapping line numbers."""

    def construct_mapping(self, node, deep=False):
        mapping = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            mapping.add(key)

        result = super().construct_mapping(node, deep)
        if isinstance(result, dict):
            result["__line__"] = node.start_mark.line + 1
        return result


def parse_deck(text: str) -> list[Card]:
    """
    Parse deck YAML text into cards.

    Raises:
        DeckFormatError: on YAML syntax errors, a missing `cards` list,
            missing required fields, bad ids, or duplicate card ids.
    """
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        raise DeckFormatError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
        raise DeckFormatError("Deck must be a mapping with a 'cards' list")

    cards: list[Card] = []
    seen_ids: set[int] = set()

    for index, raw in enumerate(data["cards"]):
        if not isinstance(raw, dict):
            raise DeckFormatError(f"Card #{index + 1} is not a mapping")

        card = _build_card(raw, index)
        if card.id in seen_ids:
            raise DeckFormatError(f"Duplicate card id {card.id} (line {raw['__line__']})")
        seen_ids.add(card.id)
        cards.append(card)

    return cards


def load_deck(path: Path) -> list[Card]:
    """Read and parse a deck file."""
    cards = parse_deck(Path(path).read_text(encoding="utf-8"))
    logger.info(f"Loaded {len(cards)} cards from {path}")
    return cards


def _build_card(raw: dict[str, Any], index: int) -> Card:
    line = raw.get("__line__", "?")

    missing = [f for f in REQUIRED_FIELDS if raw.get(f) in (None, "")]
    if missing:
        raise DeckFormatError(
            f"Card #{index + 1} (line {line}) is missing: {', '.join(missing)}"
        )

    card_id = raw["id"]
    if isinstance(card_id, bool) or not isinstance(card_id, int) or card_id < 1:
        raise DeckFormatError(f"Card #{index + 1} (line {line}) has invalid id {card_id!r}")

    is_active = raw.get("is_active", True)
    if not isinstance(is_active, bool):
        raise DeckFormatError(
            f"Card #{index + 1} (line {line}) has non-boolean is_active {is_active!r}"
        )

    return Card(
        id=card_id,
        front=str(raw["front"]),
        back=str(raw["back"]),
        category=str(raw["category"]),
        difficulty_level=str(raw.get("difficulty_level") or DEFAULT_DIFFICULTY_LEVEL),
        reference=_optional_str(raw.get("reference")),
        notes=_optional_str(raw.get("notes")),
        is_active=is_active,
    )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)

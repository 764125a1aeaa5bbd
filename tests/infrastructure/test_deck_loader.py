import pytest

from muraja.infrastructure.deck_loader import DeckFormatError, load_deck, parse_deck

VALID_DECK = """
cards:
  - id: 1
    front: "ٱلْحَمْدُ"
    back: "All praise"
    category: arabic_vocab
    reference: "1:2"
  - id: 2
    front: "Ayat al-Kursi"
    back: "Allah - there is no deity except Him..."
    category: verse_memorization
    difficulty_level: intermediate
    notes: Recite after every prayer
    is_active: false
"""


def test_parse_valid_deck():
    cards = parse_deck(VALID_DECK)

    assert [c.id for c in cards] == [1, 2]
    first, second = cards
    assert first.front == "ٱلْحَمْدُ"
    assert first.reference == "1:2"
    assert first.difficulty_level == "beginner"
    assert first.is_active is True
    assert second.difficulty_level == "intermediate"
    assert second.notes == "Recite after every prayer"
    assert second.is_active is False


def test_load_deck_from_file(tmp_path):
    path = tmp_path / "deck.yaml"
    path.write_text(VALID_DECK, encoding="utf-8")

    assert len(load_deck(path)) == 2


@pytest.mark.parametrize(
    "text,message",
    [
        ("cards: [\n", "Invalid YAML"),
        ("- just\n- a list\n", "'cards' list"),
        ("cards: nope\n", "'cards' list"),
        ("cards:\n  - plain string\n", "not a mapping"),
        ("cards:\n  - id: 1\n    front: f\n    back: b\n", "missing: category"),
        ("cards:\n  - id: 0\n    front: f\n    back: b\n    category: c\n", "invalid id"),
        ("cards:\n  - id: x\n    front: f\n    back: b\n    category: c\n", "invalid id"),
        (
            "cards:\n  - id: 1\n    front: f\n    back: b\n    category: c\n    is_active: maybe\n",
            "non-boolean",
        ),
    ],
)
def test_malformed_decks(text, message):
    with pytest.raises(DeckFormatError, match=message):
        parse_deck(text)


def test_duplicate_key_rejected():
    text = "cards:\n  - id: 1\n    front: f\n    front: g\n    back: b\n    category: c\n"
    with pytest.raises(DeckFormatError, match="duplicate key"):
        parse_deck(text)


def test_duplicate_card_id_reports_line():
    text = (
        "cards:\n"
        "  - id: 1\n    front: f\n    back: b\n    category: c\n"
        "  - id: 1\n    front: g\n    back: b\n    category: c\n"
    )
    with pytest.raises(DeckFormatError, match=r"Duplicate card id 1 \(line 6\)"):
        parse_deck(text)


def test_empty_document_rejected():
    with pytest.raises(DeckFormatError):
        parse_deck("")

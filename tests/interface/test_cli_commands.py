"""Tests for CLI commands: cards, due, review, progress, config and serve."""

import json
import os
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from muraja.interface.cli import app

runner = CliRunner()

DECK = """
cards:
  - id: 1
    front: "صَبْر"
    back: Patience
    category: arabic_vocab
  - id: 2
    front: "شُكْر"
    back: Gratitude
    category: arabic_vocab
  - id: 3
    front: Actions are by intentions
    back: Bukhari 1
    category: hadith
"""


@pytest.fixture
def db_args(tmp_path):
    return ["--db", str(tmp_path / "cli.db")]


@pytest.fixture
def loaded(db_args, tmp_path):
    deck = tmp_path / "deck.yaml"
    deck.write_text(DECK, encoding="utf-8")
    result = runner.invoke(app, [*db_args, "cards", "load", str(deck)])
    assert result.exit_code == 0, result.output
    return db_args


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "SM-2" in result.stdout
    assert "review" in result.stdout
    assert "due" in result.stdout


def test_cards_load_and_list(loaded):
    result = runner.invoke(app, [*loaded, "cards", "list", "--json"])
    assert result.exit_code == 0
    assert [c["id"] for c in json.loads(result.stdout)] == [1, 2, 3]

    result = runner.invoke(app, [*loaded, "cards", "list", "--category", "hadith"])
    assert result.exit_code == 0
    assert "Bukhari 1" in result.stdout
    assert "1 cards" in result.stdout


def test_cards_load_refuses_memory_backend(tmp_path):
    deck = tmp_path / "deck.yaml"
    deck.write_text(DECK, encoding="utf-8")

    result = runner.invoke(app, ["--backend", "memory", "cards", "load", str(deck)])

    assert result.exit_code == 1
    assert "does not persist" in result.output
    assert "Loaded" not in result.output


def test_cards_load_rejects_bad_deck(db_args, tmp_path):
    deck = tmp_path / "bad.yaml"
    deck.write_text("cards: nope\n", encoding="utf-8")

    result = runner.invoke(app, [*db_args, "cards", "load", str(deck)])

    assert result.exit_code == 1
    assert "'cards' list" in result.output


def test_due_then_review(loaded):
    result = runner.invoke(app, [*loaded, "due", "1", "--limit", "2", "--json"])
    assert result.exit_code == 0
    assert [c["id"] for c in json.loads(result.stdout)] == [1, 2]

    result = runner.invoke(app, [*loaded, "review", "1", "1", "4", "--json"])
    assert result.exit_code == 0
    state = json.loads(result.stdout)
    assert state["interval_days"] == 1
    assert state["repetitions"] == 1
    assert state["ease_factor"] == 2.5

    result = runner.invoke(app, [*loaded, "due", "1", "--json"])
    assert [c["id"] for c in json.loads(result.stdout)] == [2, 3]


def test_review_human_output(loaded):
    result = runner.invoke(app, [*loaded, "review", "5", "2", "0"])
    assert result.exit_code == 0
    assert "interval 1d" in result.stdout
    assert "ease 1.7" in result.stdout


def test_review_invalid_quality(loaded):
    result = runner.invoke(app, [*loaded, "review", "1", "1", "9"])
    assert result.exit_code == 1
    assert "Quality must be between 0 and 5" in result.output


def test_review_unknown_card(loaded):
    result = runner.invoke(app, [*loaded, "review", "1", "99", "4"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_progress(loaded):
    result = runner.invoke(app, [*loaded, "progress", "1", "3"])
    assert result.exit_code == 1

    runner.invoke(app, [*loaded, "review", "1", "3", "5"])

    result = runner.invoke(app, [*loaded, "progress", "1", "3"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["total_reviews"] == 1


def test_due_nothing_left(db_args):
    result = runner.invoke(app, [*db_args, "due", "1"])
    assert result.exit_code == 0
    assert "Nothing due." in result.stdout


def test_config_show(monkeypatch):
    monkeypatch.setenv("MURAJA_BACKEND", "memory")

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["backend"] == "memory"
    assert data["max_review_attempts"] == 3


@patch("uvicorn.run")
def test_serve_command(mock_run):
    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    mock_run.assert_called_with("muraja.server:app", host="127.0.0.1", port=9000, reload=False)


@patch("uvicorn.run")
def test_serve_passes_storage_options_to_app(mock_run, tmp_path, monkeypatch):
    # Registered first so the variable is removed again after the test
    monkeypatch.setenv("MURAJA_DATABASE_PATH", "placeholder")

    result = runner.invoke(app, ["--db", str(tmp_path / "s.db"), "serve"])

    assert result.exit_code == 0
    assert os.environ["MURAJA_DATABASE_PATH"] == str(tmp_path / "s.db")
    mock_run.assert_called_with("muraja.server:app", host="127.0.0.1", port=8787, reload=False)

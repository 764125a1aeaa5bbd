"""muraja CLI — review, due-queue, catalog and server commands."""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from muraja.application.config import resolve_config
from muraja.application.factory import build_review_service, get_backends
from muraja.domain.errors import ReviewError
from muraja.interface._common import (
    _resolve_with_overrides,
    card_to_dict,
    jsonable_config,
    state_to_dict,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="muraja: SM-2 spaced-repetition review engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

cards_app = typer.Typer(help="Browse and load flashcards.", no_args_is_help=True)
app.add_typer(cards_app, name="cards")

config_app = typer.Typer(help="Manage muraja configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _fail(e: Exception) -> NoReturn:
    typer.secho(str(e), err=True, fg="red")
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: sqlite, memory.")
    ] = None,
    database: Annotated[
        Path | None, typer.Option("--database", "--db", help="SQLite database file.")
    ] = None,
):
    """Global settings for muraja."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"backend": backend, "database_path": database}
    if verbose >= 2:
        logging.getLogger("muraja").setLevel(logging.DEBUG)
    elif verbose == 0:
        logging.getLogger("muraja").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    user_id: Annotated[int, typer.Argument(help="User to build the queue for.")],
    limit: Annotated[int | None, typer.Option(help="Maximum number of cards.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List the cards a user should [bold green]study next[/bold green]."""
    config = _resolve_with_overrides(ctx)
    service = build_review_service(config)

    cards = asyncio.run(service.get_due_cards(user_id, limit))

    if json_output:
        typer.echo(json.dumps([card_to_dict(c) for c in cards], indent=2, ensure_ascii=False))
        return

    if not cards:
        typer.secho("Nothing due.", fg="green")
        return

    for card in cards:
        typer.echo(f"[{card.id}] {card.front}  ({card.category})")


@app.command()
def review(
    ctx: typer.Context,
    user_id: Annotated[int, typer.Argument(help="Reviewing user.")],
    card_id: Annotated[int, typer.Argument(help="Reviewed card.")],
    quality: Annotated[int, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Record a review and show the new schedule."""
    config = _resolve_with_overrides(ctx)
    service = build_review_service(config)

    try:
        state = asyncio.run(service.review(user_id, card_id, quality))
    except ReviewError as e:
        _fail(e)

    if json_output:
        typer.echo(json.dumps(state_to_dict(state), indent=2))
        return

    typer.echo(
        f"Card {state.card_id}: next review {state.next_review_date:%Y-%m-%d %H:%M} UTC "
        f"(interval {state.interval_days}d, ease {state.ease_factor:.2f}, "
        f"reps {state.repetitions})"
    )
    if state.is_mastered:
        typer.secho("Mastered!", fg="green")


@app.command()
def progress(
    ctx: typer.Context,
    user_id: Annotated[int, typer.Argument(help="User.")],
    card_id: Annotated[int, typer.Argument(help="Card.")],
):
    """Show a user's scheduling state for one card as JSON."""
    config = _resolve_with_overrides(ctx)
    service = build_review_service(config)

    try:
        state = asyncio.run(service.get_progress(user_id, card_id))
    except ReviewError as e:
        _fail(e)

    typer.echo(json.dumps(state_to_dict(state), indent=2))


# ---------------------------------------------------------------------------
# Cards subgroup
# ---------------------------------------------------------------------------


@cards_app.command("list")
def cards_list(
    ctx: typer.Context,
    category: Annotated[str | None, typer.Option(help="Only this category.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List active flashcards."""
    config = _resolve_with_overrides(ctx)
    service = build_review_service(config)

    cards = asyncio.run(service.list_cards(category))

    if json_output:
        typer.echo(json.dumps([card_to_dict(c) for c in cards], indent=2, ensure_ascii=False))
        return

    for card in cards:
        typer.echo(f"[{card.id}] {card.front} -> {card.back}  ({card.category})")
    typer.echo(f"{len(cards)} cards")


@cards_app.command("load")
def cards_load(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="YAML deck file.", exists=True, dir_okay=False)],
):
    """Insert or replace flashcards from a YAML deck file."""
    from muraja.infrastructure.deck_loader import DeckFormatError, load_deck

    config = _resolve_with_overrides(ctx)
    if config.backend == "memory":
        _fail(ValueError("The memory backend does not persist cards; use --backend sqlite."))

    catalog, _ = get_backends(config)

    try:
        cards = load_deck(path)
    except DeckFormatError as e:
        _fail(e)

    count = asyncio.run(catalog.add_cards(cards))
    typer.secho(f"Loaded {count} cards into {config.database_path}.", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(jsonable_config(config), indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the REST API server."""
    import uvicorn

    config = _resolve_with_overrides(ctx, host=host, port=port)

    # The app resolves its own config on startup, so hand storage options over via env
    for key, value in ctx.obj.get("overrides", {}).items():
        if value is not None:
            os.environ[f"MURAJA_{key.upper()}"] = str(value)

    uvicorn.run("muraja.server:app", host=config.host, port=config.port, reload=reload)

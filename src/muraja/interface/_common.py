"""Helpers shared by CLI command modules."""

from pathlib import Path
from typing import Any

import typer

from muraja.application.config import AppConfig, resolve_config
from muraja.domain.models import Card, ReviewState


def _resolve_with_overrides(ctx: typer.Context | None = None, **kwargs: Any) -> AppConfig:
    """
    Resolve config, layering root-callback options (ctx.obj) and then
    command options on top. None values are ignored.
    """
    overrides: dict[str, Any] = {}
    if ctx is not None and ctx.obj:
        overrides.update(ctx.obj.get("overrides", {}))
    overrides.update(kwargs)
    return resolve_config(overrides)


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "front": card.front,
        "back": card.back,
        "category": card.category,
        "difficulty_level": card.difficulty_level,
        "reference": card.reference,
        "notes": card.notes,
        "is_active": card.is_active,
    }


def state_to_dict(state: ReviewState) -> dict[str, Any]:
    return {
        "user_id": state.user_id,
        "card_id": state.card_id,
        "ease_factor": float(state.ease_factor),
        "interval_days": state.interval_days,
        "repetitions": state.repetitions,
        "next_review_date": state.next_review_date.isoformat(),
        "last_review_date": (
            state.last_review_date.isoformat() if state.last_review_date else None
        ),
        "total_reviews": state.total_reviews,
        "success_rate": float(state.success_rate),
        "is_mastered": state.is_mastered,
    }


def jsonable_config(config: AppConfig) -> dict[str, Any]:
    return {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from muraja.application.config import resolve_config
from muraja.application.factory import build_review_service
from muraja.application.review_service import ReviewService
from muraja.consts import VERSION
from muraja.domain.errors import (
    CardNotFound,
    ConflictError,
    InvalidQuality,
    ProgressNotFound,
)
from muraja.domain.models import Card, ReviewState

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("muraja.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    config = resolve_config()
    logging.getLogger("muraja").setLevel(config.log_level)
    app.state.review_service = build_review_service(config)
    logger.info(f"muraja server v{VERSION} starting up ({config.backend} backend)...")
    yield
    # Shutdown
    logger.info("muraja server shutting down...")


app = FastAPI(
    title="muraja",
    description="Spaced-repetition (SM-2) flashcard review API.",
    version=VERSION,
    lifespan=lifespan,
)


def get_review_service(request: Request) -> ReviewService:
    service = getattr(request.app.state, "review_service", None)
    if service is None:
        service = build_review_service(resolve_config())
        request.app.state.review_service = service
    return service


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CardResponse(BaseModel):
    id: int
    front: str
    back: str
    category: str
    difficulty_level: str
    reference: str | None = None
    notes: str | None = None
    is_active: bool
    created_date: datetime

    @classmethod
    def from_domain(cls, card: Card) -> "CardResponse":
        return cls(
            id=card.id,
            front=card.front,
            back=card.back,
            category=card.category,
            difficulty_level=card.difficulty_level,
            reference=card.reference,
            notes=card.notes,
            is_active=card.is_active,
            created_date=card.created_date,
        )


class ReviewStateResponse(BaseModel):
    user_id: int
    card_id: int
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_date: datetime
    last_review_date: datetime | None = None
    total_reviews: int
    success_rate: float
    is_mastered: bool

    @classmethod
    def from_domain(cls, state: ReviewState) -> "ReviewStateResponse":
        return cls(
            user_id=state.user_id,
            card_id=state.card_id,
            ease_factor=float(state.ease_factor),
            interval_days=state.interval_days,
            repetitions=state.repetitions,
            next_review_date=state.next_review_date,
            last_review_date=state.last_review_date,
            total_reviews=state.total_reviews,
            success_rate=float(state.success_rate),
            is_mastered=state.is_mastered,
        )


class ReviewRequest(BaseModel):
    user_id: int
    # Checked by the service so out-of-range and fractional values map to 400
    quality: int | float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/flashcards", response_model=list[CardResponse])
async def list_flashcards(
    category: str | None = None,
    service: ReviewService = Depends(get_review_service),
):
    """All active flashcards, optionally filtered by category."""
    cards = await service.list_cards(category)
    return [CardResponse.from_domain(c) for c in cards]


@app.get("/flashcards/due/{user_id}", response_model=list[CardResponse])
async def get_due_cards(
    user_id: int,
    limit: int | None = None,
    service: ReviewService = Depends(get_review_service),
):
    """
    Flashcards due for review: overdue cards first, then unseen ones.
    """
    cards = await service.get_due_cards(user_id, limit)
    return [CardResponse.from_domain(c) for c in cards]


@app.get("/flashcards/{card_id}", response_model=CardResponse)
async def get_flashcard(card_id: int, service: ReviewService = Depends(get_review_service)):
    try:
        card = await service.get_card(card_id)
    except CardNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return CardResponse.from_domain(card)


@app.post("/flashcards/{card_id}/review", response_model=ReviewStateResponse)
async def review_flashcard(
    card_id: int,
    req: ReviewRequest,
    service: ReviewService = Depends(get_review_service),
):
    """
    Review a flashcard (applies the SM-2 algorithm).
    """
    try:
        state = await service.review(req.user_id, card_id, req.quality)
    except InvalidQuality as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CardNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConflictError as e:
        logger.error(f"Review failed: {e}")
        raise HTTPException(status_code=409, detail=str(e)) from e
    return ReviewStateResponse.from_domain(state)


@app.get("/flashcards/{card_id}/progress/{user_id}", response_model=ReviewStateResponse)
async def get_card_progress(
    card_id: int,
    user_id: int,
    service: ReviewService = Depends(get_review_service),
):
    """User's scheduling state for one flashcard."""
    try:
        state = await service.get_progress(user_id, card_id)
    except ProgressNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return ReviewStateResponse.from_domain(state)

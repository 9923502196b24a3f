"""闪卡 API 路由"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from ..core.config import get_config
from ..models.flashcard import (
    DeckStats,
    Flashcard,
    FlashcardCreate,
    FlashcardRead,
    FromLearningRequest,
    ReviewRequest,
)
from ..services.scheduler import FlashcardScheduler
from .deps import get_owner, get_scheduler

logger = logging.getLogger(__name__)


def create_flashcard_router() -> APIRouter:
    router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])
    cfg = get_config()

    @router.get("", response_model=list[FlashcardRead])
    async def get_due_flashcards(
        limit: int | None = None,
        as_of: datetime | None = None,
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> list[Flashcard]:
        if limit is None:
            limit = cfg.review.default_limit
        elif limit > cfg.review.max_limit:
            limit = cfg.review.max_limit
        return scheduler.due_cards(owner, as_of=as_of, limit=limit)

    @router.post("", response_model=FlashcardRead)
    async def create_flashcard(
        body: FlashcardCreate,
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> Flashcard:
        return scheduler.create_flashcard(owner, body.front, body.back, body.category, body.session_id)

    @router.post("/review", response_model=FlashcardRead)
    async def review_flashcard(
        body: ReviewRequest,
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> Flashcard:
        return scheduler.review(owner, body.flashcard_id, body.quality)

    @router.post("/from-learning", response_model=FlashcardRead)
    async def create_from_learning(
        body: FromLearningRequest,
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> Flashcard:
        return scheduler.create_from_learning(owner, body.learning_id, body.front, body.back, body.category)

    @router.get("/stats", response_model=DeckStats)
    async def deck_stats(
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> DeckStats:
        return scheduler.deck_stats(owner)

    return router

"""学习会话同步与查询路由"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..core.config import get_config
from ..models.study_session import SessionSync, StudySessionRead
from ..services.scheduler import FlashcardScheduler
from .deps import get_owner, get_scheduler


def create_session_router() -> APIRouter:
    router = APIRouter(prefix="/api", tags=["sessions"])
    cfg = get_config()
    limiter = Limiter(key_func=get_remote_address)

    @router.post("/sync/session", response_model=StudySessionRead)
    @limiter.limit(cfg.ingest.rate_limit)
    async def sync_session(
        request: Request,
        body: SessionSync,
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> dict[str, Any]:
        session, moments, cards = scheduler.ingest_session(owner, body)
        return {
            "id": session.id,
            "owner_id": session.owner_id,
            "title": session.title,
            "summary": session.summary,
            "transcript": body.transcript,
            "duration": session.duration,
            "created_at": session.created_at,
            "learning_moments": moments,
            "flashcards": cards,
        }

    @router.get("/sessions", response_model=list[StudySessionRead])
    async def list_sessions(
        owner: str = Depends(get_owner),
        scheduler: FlashcardScheduler = Depends(get_scheduler),
    ) -> list[dict[str, Any]]:
        return scheduler.list_sessions(owner)

    return router

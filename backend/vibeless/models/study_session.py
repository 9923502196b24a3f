"""学习会话模型 - 由桌面端同步上传"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlmodel import Field, SQLModel

from ..core.clock import utcnow
from .flashcard import FlashcardCreate, FlashcardRead
from .types import UTCDateTime


class StudySession(SQLModel, table=True):
    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)
    title: str = Field(default="")
    summary: str | None = Field(default=None)
    transcript_json: str | None = Field(default=None)
    duration: int | None = Field(default=None)  # seconds
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)


class LearningMomentBase(SQLModel):
    type: str  # concept|correction|vocabulary|...
    content: str
    context: str | None = Field(default=None)
    timestamp: float | None = Field(default=None)  # seconds into the session


class LearningMoment(LearningMomentBase, table=True):
    id: str = Field(primary_key=True)
    session_id: str = Field(foreign_key="studysession.id", index=True)


class LearningMomentRead(LearningMomentBase):
    id: str
    session_id: str


class SessionSync(SQLModel):
    title: str = ""
    summary: str | None = None
    transcript: Any = None
    duration: int | None = None
    flashcards: list[FlashcardCreate] = []
    learning_moments: list[LearningMomentBase] = []


class StudySessionRead(SQLModel):
    id: str
    owner_id: str
    title: str
    summary: str | None
    transcript: Any = None
    duration: int | None
    created_at: datetime
    learning_moments: list[LearningMomentRead] = []
    flashcards: list[FlashcardRead] = []

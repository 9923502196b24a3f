"""闪卡模型 - SM-2 调度字段"""

from __future__ import annotations

from datetime import datetime

from pydantic import StrictInt
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow
from .types import UTCDateTime

INITIAL_EASE_FACTOR = 2.5


class FlashcardBase(SQLModel):
    front: str
    back: str
    category: str | None = Field(default=None)


class Flashcard(FlashcardBase, table=True):
    """A learning flashcard owned by one user.

    The scheduling fields below are written only by the review operation.
    """

    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)
    session_id: str | None = Field(default=None, index=True)

    # SM-2 fields
    ease_factor: float = Field(default=INITIAL_EASE_FACTOR)
    interval_days: int = Field(default=0)
    repetitions: int = Field(default=0)
    next_review: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    last_review: datetime | None = Field(default=None, sa_type=UTCDateTime)

    # Optimistic lock, bumped on every committed review
    version: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class FlashcardCreate(FlashcardBase):
    session_id: str | None = None


class FlashcardRead(FlashcardBase):
    id: str
    owner_id: str
    session_id: str | None
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review: datetime
    last_review: datetime | None
    created_at: datetime


class ReviewRequest(SQLModel):
    flashcard_id: str
    # bools are not qualities
    quality: StrictInt


class FromLearningRequest(SQLModel):
    learning_id: str
    front: str
    back: str
    category: str | None = None


class DeckStats(SQLModel):
    total: int
    due: int
    learned: int

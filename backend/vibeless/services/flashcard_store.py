from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..core.errors import ReviewConflict, StorageFailure
from ..models.flashcard import Flashcard
from ..models.study_session import LearningMoment, StudySession
from .srs_engine import ScheduleUpdate

logger = logging.getLogger(__name__)


class FlashcardStore:
    """Record access for flashcards and the study sessions they come from.

    Every SQLAlchemy error is rolled back and re-raised as StorageFailure.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, card_id: str) -> Flashcard | None:
        try:
            return self.session.get(Flashcard, card_id)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to read flashcard {card_id}") from exc

    def add(self, *records: SQLModel) -> None:
        """Insert records in a single transaction."""
        try:
            self.session.add_all(records)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Insert of %d records failed", len(records))
            raise StorageFailure("Failed to store records") from exc
        for record in records:
            self.session.refresh(record)

    def apply_schedule(self, card_id: str, expected_version: int, schedule: ScheduleUpdate) -> Flashcard:
        """Write the five scheduling fields if the card is still at ``expected_version``."""
        statement = (
            update(Flashcard)
            .where(Flashcard.id == card_id, Flashcard.version == expected_version)
            .values(
                ease_factor=schedule.ease_factor,
                interval_days=schedule.interval_days,
                repetitions=schedule.repetitions,
                next_review=schedule.next_review,
                last_review=schedule.last_review,
                version=Flashcard.version + 1,
            )
        )
        try:
            result = self.session.exec(statement)
            if result.rowcount != 1:
                self.session.rollback()
                logger.warning("Stale review of %s at version %d rejected", card_id, expected_version)
                raise ReviewConflict(f"Flashcard {card_id} was reviewed concurrently, retry with fresh state")
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Commit of review for %s failed", card_id)
            raise StorageFailure(f"Failed to commit review of flashcard {card_id}") from exc

        card = self.get(card_id)
        if card is None:
            raise StorageFailure(f"Flashcard {card_id} vanished after commit")
        self.session.refresh(card)
        return card

    def due(self, owner_id: str, as_of: datetime, limit: int) -> Sequence[Flashcard]:
        statement = (
            select(Flashcard)
            .where(Flashcard.owner_id == owner_id, Flashcard.next_review <= as_of)
            .order_by(Flashcard.next_review, Flashcard.id)
            .limit(limit)
        )
        try:
            return self.session.exec(statement).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("Failed to query due flashcards") from exc

    def count(self, owner_id: str, due_as_of: datetime | None = None) -> int:
        statement = select(func.count(Flashcard.id)).where(Flashcard.owner_id == owner_id)
        if due_as_of is not None:
            statement = statement.where(Flashcard.next_review <= due_as_of)
        try:
            return self.session.exec(statement).one()
        except SQLAlchemyError as exc:
            raise StorageFailure("Failed to count flashcards") from exc

    # ------------------------------------------------------------------
    # Study sessions
    # ------------------------------------------------------------------

    def get_learning_moment(self, learning_id: str) -> tuple[LearningMoment, StudySession] | None:
        statement = (
            select(LearningMoment, StudySession)
            .join(StudySession, LearningMoment.session_id == StudySession.id)
            .where(LearningMoment.id == learning_id)
        )
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to read learning moment {learning_id}") from exc

    def get_study_session(self, session_id: str) -> StudySession | None:
        try:
            return self.session.get(StudySession, session_id)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to read study session {session_id}") from exc

    def list_sessions(
        self, owner_id: str, limit: int
    ) -> tuple[Sequence[StudySession], Sequence[LearningMoment], Sequence[Flashcard]]:
        """Latest sessions of ``owner_id`` with their learning moments and flashcards."""
        try:
            sessions = self.session.exec(
                select(StudySession)
                .where(StudySession.owner_id == owner_id)
                .order_by(StudySession.created_at.desc(), StudySession.id)
                .limit(limit)
            ).all()
            session_ids = [s.id for s in sessions]
            if not session_ids:
                return sessions, [], []
            moments = self.session.exec(
                select(LearningMoment)
                .where(LearningMoment.session_id.in_(session_ids))
                .order_by(LearningMoment.timestamp, LearningMoment.id)
            ).all()
            cards = self.session.exec(
                select(Flashcard)
                .where(Flashcard.session_id.in_(session_ids), Flashcard.owner_id == owner_id)
                .order_by(Flashcard.created_at, Flashcard.id)
            ).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("Failed to list study sessions") from exc
        return sessions, moments, cards

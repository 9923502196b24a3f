"""Review scheduling and the due queue.

``FlashcardScheduler`` is the only writer of a flashcard's scheduling fields.
It holds no state of its own: the store and the clock are passed in, and the
requesting owner id comes from whatever identity collaborator the caller uses.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from ..core.clock import as_utc, utcnow
from ..core.errors import Forbidden, InvalidInput, NotFound
from ..models.flashcard import INITIAL_EASE_FACTOR, DeckStats, Flashcard
from ..models.study_session import LearningMoment, SessionSync, StudySession
from .flashcard_store import FlashcardStore
from .srs_engine import SRSEngine, validate_quality

logger = logging.getLogger(__name__)

DEFAULT_DUE_LIMIT = 20
SESSION_LIST_LIMIT = 50


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class FlashcardScheduler:
    def __init__(self, store: FlashcardStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def review(self, requester: str, flashcard_id: str, quality: int) -> Flashcard:
        """Apply one recall-quality rating to a flashcard and return its new state.

        Raises InvalidInput before touching the store, then NotFound or
        Forbidden. The update is committed atomically against the version
        that was read, so a concurrent review raises ReviewConflict instead
        of being overwritten.
        """
        quality = validate_quality(quality)

        card = self.store.get(flashcard_id)
        if card is None:
            raise NotFound(f"Flashcard {flashcard_id} not found")
        if card.owner_id != requester:
            logger.warning("Owner %s tried to review flashcard %s of another owner", requester, flashcard_id)
            raise Forbidden(f"Flashcard {flashcard_id} belongs to another user")

        schedule = SRSEngine.review(card, quality, self.clock())
        updated = self.store.apply_schedule(card.id, card.version, schedule)
        logger.info(
            "Reviewed %s q=%d: reps=%d interval=%dd ease=%.2f",
            updated.id, quality, updated.repetitions, updated.interval_days, updated.ease_factor,
        )
        return updated

    # ------------------------------------------------------------------
    # Due queue
    # ------------------------------------------------------------------

    def due_cards(
        self, owner: str, as_of: datetime | None = None, limit: int = DEFAULT_DUE_LIMIT
    ) -> list[Flashcard]:
        """Cards of ``owner`` due at ``as_of``, oldest ``next_review`` first, ties by id."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInput(f"limit must be a positive integer, got {limit!r}")
        as_of = self.clock() if as_of is None else as_utc(as_of)
        return list(self.store.due(owner, as_of, limit))

    def deck_stats(self, owner: str, as_of: datetime | None = None) -> DeckStats:
        as_of = self.clock() if as_of is None else as_utc(as_of)
        total = self.store.count(owner)
        due = self.store.count(owner, due_as_of=as_of)
        return DeckStats(total=total, due=due, learned=total - due)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _build_flashcard(
        self, owner: str, front: str, back: str, category: str | None, session_id: str | None, now: datetime
    ) -> Flashcard:
        # Initial scheduling state is fixed here, never by the creator
        return Flashcard(
            id=_new_id("fc"),
            owner_id=owner,
            session_id=session_id,
            front=front,
            back=back,
            category=category,
            ease_factor=INITIAL_EASE_FACTOR,
            interval_days=0,
            repetitions=0,
            next_review=now,
            last_review=None,
            created_at=now,
        )

    def create_flashcard(
        self,
        owner: str,
        front: str,
        back: str,
        category: str | None = None,
        session_id: str | None = None,
    ) -> Flashcard:
        if session_id is not None:
            session = self.store.get_study_session(session_id)
            if session is None or session.owner_id != owner:
                raise NotFound(f"Study session {session_id} not found")
        card = self._build_flashcard(owner, front, back, category, session_id, self.clock())
        self.store.add(card)
        logger.info("Created flashcard %s for %s", card.id, owner)
        return card

    def create_from_learning(
        self, owner: str, learning_id: str, front: str, back: str, category: str | None = None
    ) -> Flashcard:
        """Turn a learning moment from one of ``owner``'s sessions into a flashcard."""
        found = self.store.get_learning_moment(learning_id)
        if found is None:
            raise NotFound(f"Learning moment {learning_id} not found")
        moment, session = found
        if session.owner_id != owner:
            # Other users' learning moments are reported as missing
            raise NotFound(f"Learning moment {learning_id} not found")
        return self.create_flashcard(owner, front, back, category or moment.type, session.id)

    # ------------------------------------------------------------------
    # Session ingestion
    # ------------------------------------------------------------------

    def ingest_session(self, owner: str, payload: SessionSync) -> tuple[StudySession, list[LearningMoment], list[Flashcard]]:
        """Store a synced study session with its learning moments and flashcards in one transaction."""
        now = self.clock()
        session = StudySession(
            id=_new_id("ss"),
            owner_id=owner,
            title=payload.title,
            summary=payload.summary,
            transcript_json=json.dumps(payload.transcript) if payload.transcript is not None else None,
            duration=payload.duration,
            created_at=now,
        )
        moments = [
            LearningMoment(id=_new_id("lm"), session_id=session.id, **lm.model_dump())
            for lm in payload.learning_moments
        ]
        cards = [
            self._build_flashcard(owner, fc.front, fc.back, fc.category, session.id, now)
            for fc in payload.flashcards
        ]
        self.store.add(session, *moments, *cards)
        logger.info(
            "Ingested session %s for %s: %d learning moments, %d flashcards",
            session.id, owner, len(moments), len(cards),
        )
        return session, moments, cards

    def list_sessions(self, owner: str, limit: int = SESSION_LIST_LIMIT) -> list[dict]:
        sessions, moments, cards = self.store.list_sessions(owner, limit)
        result = []
        for s in sessions:
            result.append({
                "id": s.id,
                "owner_id": s.owner_id,
                "title": s.title,
                "summary": s.summary,
                "transcript": json.loads(s.transcript_json) if s.transcript_json else None,
                "duration": s.duration,
                "created_at": s.created_at,
                "learning_moments": [m for m in moments if m.session_id == s.id],
                "flashcards": [c for c in cards if c.session_id == s.id],
            })
        return result

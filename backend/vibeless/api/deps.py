from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from ..core.db import get_session
from ..services.flashcard_store import FlashcardStore
from ..services.scheduler import FlashcardScheduler


class IdentityResolver(Protocol):
    def resolve(self, credential: str) -> str | None:
        """Map an opaque credential to an owner id, or None if unknown."""
        ...


class ConfigIdentityResolver:
    """Resolve API keys from the ``security.api_keys`` config mapping."""

    def __init__(self, api_keys: Mapping[str, str]) -> None:
        self._api_keys = dict(api_keys)

    def resolve(self, credential: str) -> str | None:
        return self._api_keys.get(credential)


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity


def get_owner(request: Request, resolver: IdentityResolver = Depends(get_identity_resolver)) -> str:
    """Owner id of the caller, taken from the X-API-Key header."""
    api_key = request.headers.get("X-API-Key", "")
    if not api_key:
        raise HTTPException(401, "API key required")
    owner = resolver.resolve(api_key)
    if owner is None:
        raise HTTPException(401, "Invalid API key")
    return owner


def get_scheduler(session: Session = Depends(get_session)) -> FlashcardScheduler:
    return FlashcardScheduler(FlashcardStore(session))

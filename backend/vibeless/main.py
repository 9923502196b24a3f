from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlmodel import Session, func, select

from .api.deps import ConfigIdentityResolver
from .api.flashcard_routes import create_flashcard_router
from .api.session_routes import create_session_router
from .core.config import get_config
from .core.db import get_session, init_db
from .core.errors import VibelessError
from .core.logger import setup_logging
from .models.flashcard import Flashcard

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

setup_logging()
config = get_config()

_start_time = time.time()

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Vibeless API",
    version=VERSION,
    description="Spaced-repetition review of the flashcards captured from your learning sessions.",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)
app.state.limiter = limiter
app.state.identity = ConfigIdentityResolver(config.security.api_keys)


def _error(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "detail": detail})


@app.exception_handler(VibelessError)
async def vibeless_error_handler(request: Request, exc: VibelessError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail)
    return _error(exc.status_code, exc.code, exc.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, "rate_limited", f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred")


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(create_flashcard_router())
app.include_router(create_session_router())


@app.get("/health")
async def healthcheck(session: Session = Depends(get_session)) -> dict:
    uptime = int(time.time() - _start_time)
    total_flashcards = session.exec(select(func.count(Flashcard.id))).one()
    return {
        "status": "ok",
        "version": VERSION,
        "uptime_seconds": uptime,
        "total_flashcards": total_flashcards,
    }


@app.on_event("startup")
async def on_startup() -> None:
    init_db()
    if not config.security.api_keys:
        logger.warning("No API keys configured; every request will be rejected with 401")

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from starlette.testclient import TestClient

# Set up test config before any app imports
_tmpdir = tempfile.mkdtemp()

_test_config_content = f"""\
database:
  url: "sqlite:///:memory:"
logging:
  level: "WARNING"
  file: "{_tmpdir}/test.log"
security:
  api_keys:
    "key-alice": "alice"
    "key-bob": "bob"
  cors_origins:
    - "http://localhost"
review:
  default_limit: 20
  max_limit: 50
ingest:
  rate_limit: "1000/minute"
"""

_test_config_path = Path(_tmpdir) / "config.yaml"
_test_config_path.write_text(_test_config_content)
os.environ["APP_CONFIG_PATH"] = str(_test_config_path)

from vibeless.core.config import get_config

get_config.cache_clear()

from vibeless.core.db import get_session
from vibeless.main import app

# Ensure all models are registered
from vibeless.models.flashcard import *  # noqa: F401, F403
from vibeless.models.study_session import *  # noqa: F401, F403
from vibeless.services.flashcard_store import FlashcardStore
from vibeless.services.scheduler import FlashcardScheduler

ALICE = {"X-API-Key": "key-alice"}
BOB = {"X-API-Key": "key-bob"}


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(name="engine")
def engine_fixture():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    return test_engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="clock")
def clock_fixture():
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture(name="scheduler")
def scheduler_fixture(session, clock):
    return FlashcardScheduler(FlashcardStore(session), clock=clock)


@pytest.fixture(name="client")
def client_fixture(engine):
    def override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()

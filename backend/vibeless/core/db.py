import logging
import re
from collections.abc import Generator
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

from .config import get_config

logger = logging.getLogger(__name__)

config = get_config()

connect_args = {"check_same_thread": False} if "sqlite" in config.database.url else {}
engine = create_engine(config.database.url, echo=False, connect_args=connect_args)


def init_db() -> None:
    # Import models to register them with SQLModel metadata
    from ..models import flashcard, study_session  # noqa: F401

    # Ensure the database directory exists for SQLite
    match = re.search(r"sqlite:///(.+)", config.database.url)
    if match and match.group(1) != ":memory:":
        db_path = Path(match.group(1))
        db_path.parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(engine)
    logger.info("Database ready: %s", engine.url.render_as_string(hide_password=True))


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig, get_config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class HealthProbeFilter(logging.Filter):
    """Drop /health polling lines from the uvicorn access log."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("GET /health") == -1


def setup_logging(config: AppConfig | None = None) -> None:
    config = config or get_config()
    level = getattr(logging, config.logging.level.upper(), logging.INFO)
    log_file = Path(config.logging.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    file_handler = RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [file_handler, console_handler]

    # SQL statements stay out of the app log
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(HealthProbeFilter())

import logging

import pytest

from vibeless.api.deps import ConfigIdentityResolver
from vibeless.core.config import AppConfig, find_config_path, get_config
from vibeless.core.logger import HealthProbeFilter, setup_logging


def test_test_config_is_loaded():
    cfg = get_config()
    assert cfg.database.url == "sqlite:///:memory:"
    assert cfg.security.api_keys == {"key-alice": "alice", "key-bob": "bob"}
    assert cfg.review.max_limit == 50


def test_defaults():
    cfg = AppConfig()
    assert cfg.review.default_limit == 20
    assert cfg.security.api_keys == {}


def test_identity_resolver():
    resolver = ConfigIdentityResolver({"k1": "alice"})
    assert resolver.resolve("k1") == "alice"
    assert resolver.resolve("k2") is None


def test_setup_logging_writes_to_file(tmp_path):
    cfg = AppConfig(logging={"level": "debug", "file": str(tmp_path / "logs" / "app.log")})
    root = logging.getLogger()
    previous = root.handlers[:], root.level
    try:
        setup_logging(cfg)
        assert root.level == logging.DEBUG
        logging.getLogger("vibeless.test").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in (tmp_path / "logs" / "app.log").read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers, level = previous
        root.setLevel(level)


def test_health_check_lines_are_filtered():
    health = logging.LogRecord("uvicorn.access", logging.INFO, "", 0, "GET /health HTTP/1.1 200", None, None)
    other = logging.LogRecord("uvicorn.access", logging.INFO, "", 0, "GET /api/flashcards HTTP/1.1 200", None, None)
    assert not HealthProbeFilter().filter(health)
    assert HealthProbeFilter().filter(other)


def test_missing_explicit_config_path(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_CONFIG_PATH", str(tmp_path / "absent.yaml"))
    with pytest.raises(FileNotFoundError):
        find_config_path()


def test_explicit_config_path_wins(monkeypatch, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("review:\n  max_limit: 5\n")
    monkeypatch.setenv("APP_CONFIG_PATH", str(path))
    assert find_config_path() == path

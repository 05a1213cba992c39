"""Structured Logging & Settings — JSON log records and env-driven configuration."""

import json
import logging

from collab.config import Settings
from collab.infrastructure.observability import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "collab.test", logging.WARNING, __file__, 1, "Denied %s", ("edit",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_extras():
    line = JSONFormatter().format(
        _record(requester_id="u1", project_id="p1", unrelated="x"),
    )
    payload = json.loads(line)
    assert payload["message"] == "Denied edit"
    assert payload["level"] == "WARNING"
    assert payload["requester_id"] == "u1"
    assert payload["project_id"] == "p1"
    assert "unrelated" not in payload


def test_json_formatter_omits_missing_extras():
    payload = json.loads(JSONFormatter().format(_record()))
    assert "requester_id" not in payload
    assert set(payload) == {"timestamp", "level", "logger", "message"}


def test_plain_postgres_url_rewritten_for_asyncpg(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://a:b@host:5432/db")
    settings = Settings(_env_file=None)
    assert settings.database_url == "postgresql+asyncpg://a:b@host:5432/db"


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("NOTIFICATIONS_ENABLED", raising=False)
    settings = Settings(_env_file=None)
    assert settings.notifications_enabled is True
    assert settings.database_statement_timeout_ms == 15_000

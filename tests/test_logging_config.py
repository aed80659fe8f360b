"""
Tests for the logging filters.
"""

import logging

from sessionseal.logging_config import (
    REDACTED,
    HealthCheckFilter,
    TokenRedactionFilter,
    get_logging_config,
)
from sessionseal.modules.crypto import encrypt


def _record(name: str, msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, msg, args, None)


def test_health_check_access_logs_are_dropped():
    health = HealthCheckFilter()

    assert health.filter(_record("uvicorn.access", '%s - "GET /health HTTP/1.1" 200', "127.0.0.1")) is False
    assert health.filter(_record("uvicorn.access", '127.0.0.1 - "GET /session HTTP/1.1" 200')) is True
    assert health.filter(_record("sessionseal", "GET /health")) is True


def test_tokens_are_redacted(secret_key):
    token = encrypt(b'{"id":"abc"}', secret_key)
    record = _record("sessionseal", "Cookie was %s", token)

    assert TokenRedactionFilter().filter(record) is True
    assert token not in record.getMessage()
    assert REDACTED in record.getMessage()


def test_url_encoded_tokens_are_redacted(secret_key):
    token = encrypt(b'{"id":"abc"}', secret_key).replace(";", "%3B")
    record = _record("uvicorn.access", f"GET /?t={token}")

    TokenRedactionFilter().filter(record)

    assert token not in record.getMessage()


def test_plain_messages_are_untouched():
    record = _record("sessionseal", "Loaded %d sessions", 3)

    TokenRedactionFilter().filter(record)

    assert record.getMessage() == "Loaded 3 sessions"
    assert record.args == (3,)


def test_logging_config_wires_filters():
    config = get_logging_config("DEBUG")

    assert config["loggers"]["sessionseal"]["level"] == "DEBUG"
    assert config["root"]["level"] == "DEBUG"
    assert "health_check_filter" in config["handlers"]["access"]["filters"]
    assert "token_redaction_filter" in config["handlers"]["default"]["filters"]

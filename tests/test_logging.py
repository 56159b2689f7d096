"""
EffectForge Logging & Rate Limiting Tests

Tests the log formatter, the secrets filter, stage timing and the
rate limiter's JSON envelope.

Run with: pytest tests/test_logging.py -v
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from flask import Flask

from forge_engine.core.config import ForgeConfig
from forge_engine.logging_utils import (
    SecretsSanitizer,
    StructuredFormatter,
    Timer,
    set_request_id,
    get_request_id,
)
from forge_engine import rate_limiter


def make_record(message, **extra):
    record = logging.LogRecord("forge.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# =============================================================================
# FORMATTING
# =============================================================================

class TestStructuredFormatter:

    def test_json_output(self):
        set_request_id("req-abc")
        line = StructuredFormatter(json_output=True).format(
            make_record("Generation completed", session_id="s-1", duration_ms=12.5)
        )
        data = json.loads(line)

        assert data["message"] == "Generation completed"
        assert data["request_id"] == "req-abc"
        assert data["session_id"] == "s-1"
        assert data["duration_ms"] == 12.5

    def test_text_output(self):
        set_request_id("")
        line = StructuredFormatter().format(make_record("hello", stage="analysis"))
        assert "[INFO    ]" in line
        assert line.endswith("hello (stage=analysis)")

    def test_request_id_generated(self):
        request_id = set_request_id()
        assert request_id
        assert get_request_id() == request_id


class TestSecretsSanitizer:

    def test_masks_key_shaped_tokens(self):
        record = make_record("Auth failed for sk-abcdefghijklmnopqrstuv")
        assert SecretsSanitizer().filter(record) is True
        assert "abcdefghijkl" not in record.getMessage()
        assert "sk-***" in record.getMessage()

    def test_masks_assignments(self):
        record = make_record("connect password=hunter22 host=db")
        SecretsSanitizer().filter(record)
        assert record.getMessage() == "connect password=*** host=db"

    def test_clean_message_untouched(self):
        record = make_record("Generated Neon Glow Effect")
        SecretsSanitizer().filter(record)
        assert record.getMessage() == "Generated Neon Glow Effect"


class TestTimer:

    def test_records_duration(self, caplog):
        logger = logging.getLogger("forge.test.timer")
        with caplog.at_level(logging.DEBUG, logger="forge.test.timer"):
            with Timer(logger, "analysis") as timer:
                pass

        assert timer.duration_ms >= 0
        assert "Operation completed: analysis" in caplog.text

    def test_failure_is_logged_and_raised(self, caplog):
        logger = logging.getLogger("forge.test.timer")
        with pytest.raises(ValueError):
            with Timer(logger, "generation"):
                raise ValueError("boom")
        assert "Operation failed: generation" in caplog.text


# =============================================================================
# RATE LIMITING
# =============================================================================

@pytest.fixture
def limited_app():
    app = Flask("limited")
    config = ForgeConfig(rate_limit_default="1 per minute")
    rate_limiter.init_rate_limiter(app, config)

    @app.route("/ping")
    def ping():
        return "pong"

    yield app
    rate_limiter.init_rate_limiter(Flask("reset"), ForgeConfig.for_testing())


class TestRateLimiter:

    def test_disabled(self):
        assert rate_limiter.init_rate_limiter(Flask("off"), ForgeConfig.for_testing()) is None
        assert rate_limiter.get_rate_limit_status() == {"enabled": False}

    def test_limit_returns_envelope(self, limited_app):
        client = limited_app.test_client()
        assert client.get("/ping").status_code == 200

        response = client.get("/ping")
        body = response.get_json()

        assert response.status_code == 429
        assert body["success"] is False
        assert body["data"]["error_type"] == "RateLimitError"
        assert response.headers["Retry-After"] == str(body["data"]["retry_after_seconds"])

    def test_status_lists_limits(self, limited_app):
        status = rate_limiter.get_rate_limit_status()
        assert status["enabled"] is True
        assert status["limits"]["default"] == "1 per minute"

    def test_key_prefers_forwarded_for(self):
        app = Flask("keys")
        with app.test_request_context(headers={"X-Forwarded-For": "10.0.0.7, 10.0.0.1"}):
            assert rate_limiter.get_rate_limit_key() == "10.0.0.7"
        with app.test_request_context(headers={"X-Rate-Limit-Key": "team-a"}):
            assert rate_limiter.get_rate_limit_key() == "user:team-a"

    def test_retry_after_parsing(self):
        assert rate_limiter._retry_after("retry after 30 seconds") == 30
        assert rate_limiter._retry_after("1 per 1 minute") == 60

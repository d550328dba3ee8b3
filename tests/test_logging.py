"""Tests for log redaction and logging setup."""

import logging

from flobot.utils.logging import _redact, get_logger


def redact(value: str) -> str:
    return _redact(None, "info", {"value": value})["value"]


class TestRedact:
    def test_authorization_bearer_header(self):
        out = redact("Authorization: Bearer s3cr3t-tok")
        assert "s3cr3t-tok" not in out
        assert out == "Authorization=***REDACTED***"

    def test_bare_bearer(self):
        out = redact("sent Bearer abc.def-123 upstream")
        assert "abc.def-123" not in out
        assert out == "sent Bearer=***REDACTED*** upstream"

    def test_token_pair(self):
        assert redact('{"token": "xyz123"}') == '{"token=***REDACTED***"}'

    def test_password_pair(self):
        assert "hunter2" not in redact("password=hunter2")

    def test_plain_text_untouched(self):
        assert redact("trigger added") == "trigger added"

    def test_non_string_values_untouched(self):
        event = _redact(None, "info", {"count": 3, "token": None})
        assert event == {"count": 3, "token": None}


class TestSetupLogging:
    def test_level_from_settings(self, configured_logging):
        configured_logging(log_level="debug")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, configured_logging):
        configured_logging(log_level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_output_is_redacted(self, configured_logging, capsys):
        configured_logging(log_level="INFO", log_json=True)
        get_logger("flobot.tests").info("request_sent", headers="Authorization: Bearer s3cr3t-tok")
        err = capsys.readouterr().err
        assert "request_sent" in err
        assert "s3cr3t-tok" not in err

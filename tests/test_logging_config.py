# tests/test_logging_config.py
import io
import sys

import structlog

from lexiflow.shared.logging_config import add_open_telemetry_spans, configure_logging, redact_secrets

logger = structlog.get_logger()


class TestLogProcessors:

    def test_credentials_are_masked(self):
        event = redact_secrets(None, "info", {"event": "github_step_failed", "github_token": "ghp_x", "step": "pr"})

        assert event["github_token"] == "***"
        assert event["step"] == "pr"

    def test_no_active_span(self):
        event = add_open_telemetry_spans(None, "info", {"event": "cache_hit"})

        assert event["trace_id"] is None
        assert event["span_id"] is None


class TestConfigureLogging:

    def test_reconfiguring_follows_the_new_stderr(self, monkeypatch):
        """
        Scenario: Logging is configured twice, with stderr swapped in between,
                  as happens across consecutive CLI runs in one process.
        Expected: A module-level logger writes to the stream of the latest run.
        """
        # Arrange
        first, second = io.StringIO(), io.StringIO()
        monkeypatch.setattr(sys, "stderr", first)
        configure_logging(log_format="json", level="INFO")
        logger.info("first_run")

        # Act
        first.close()
        monkeypatch.setattr(sys, "stderr", second)
        configure_logging(log_format="json", level="INFO")
        logger.info("second_run")

        # Assert
        assert '"event": "second_run"' in second.getvalue()

    def test_level_filter(self, monkeypatch):
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)
        configure_logging(log_format="json", level="WARNING")

        logger.info("quiet")
        logger.warning("loud")

        assert "quiet" not in stream.getvalue()
        assert "loud" in stream.getvalue()

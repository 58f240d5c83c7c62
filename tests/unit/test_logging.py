"""Unit tests for the logging module."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import httpx
import pytest
import structlog
from structlog.testing import capture_logs

from nuxeo_sdk import BasicAuthenticator, NuxeoClient, NuxeoHTTPError
from nuxeo_sdk.observability import (
    LogFormat,
    LogLevel,
    clear_request_context,
    configure_logging,
    current_request_id,
    generate_request_id,
    get_logger,
    redact_secrets,
    set_request_id,
)


if TYPE_CHECKING:
    from collections.abc import Generator

    import respx


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Restore structlog defaults and forget the request id."""
    structlog.reset_defaults()
    clear_request_context()
    yield
    structlog.reset_defaults()
    clear_request_context()


# ---------------------------------------------------------------------------
# TestLogLevel
# ---------------------------------------------------------------------------


class TestLogLevel:
    """Tests for LogLevel enum."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (LogLevel.DEBUG, logging.DEBUG),
            (LogLevel.INFO, logging.INFO),
            (LogLevel.WARNING, logging.WARNING),
            (LogLevel.ERROR, logging.ERROR),
            (LogLevel.CRITICAL, logging.CRITICAL),
        ],
    )
    def test_to_stdlib_level(self, level: LogLevel, expected: int) -> None:
        """Test conversion to stdlib levels."""
        assert level.to_stdlib_level() == expected

    def test_invalid_level(self) -> None:
        """Test an unknown level name is rejected."""
        with pytest.raises(ValueError, match="verbose"):
            LogLevel("verbose")


# ---------------------------------------------------------------------------
# TestRequestId
# ---------------------------------------------------------------------------


class TestRequestId:
    """Tests for request id correlation."""

    def test_generate_request_id(self) -> None:
        """Test ids are short, hex and unique."""
        first = generate_request_id()
        assert len(first) == 8
        int(first, 16)
        assert first != generate_request_id()

    def test_current_request_id_without_context(self) -> None:
        """Test a fresh id is returned when none is set."""
        assert current_request_id() != current_request_id()

    def test_set_request_id(self) -> None:
        """Test the set id is returned until cleared."""
        assert set_request_id("abc123") == "abc123"
        assert current_request_id() == "abc123"

        clear_request_context()

        assert current_request_id() != "abc123"

    def test_set_request_id_generates_when_none(self) -> None:
        """Test an id is generated when none is given."""
        request_id = set_request_id()
        assert len(request_id) == 8
        assert current_request_id() == request_id


# ---------------------------------------------------------------------------
# TestConfigureLogging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test JSON lines carry level, timestamp and context."""
        configure_logging("info", "json")
        set_request_id("req-1")

        get_logger("test").info("document_fetched", uid="doc-1")

        record = json.loads(capfd.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "document_fetched"
        assert record["level"] == "info"
        assert record["uid"] == "doc-1"
        assert record["request_id"] == "req-1"
        assert "timestamp" in record

    def test_logfmt_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test logfmt lines start with the fixed keys."""
        configure_logging(LogLevel.INFO, LogFormat.LOGFMT)

        get_logger("test", component="sdk").info("ready")

        line = capfd.readouterr().err.strip().splitlines()[-1]
        assert line.startswith("timestamp=")
        assert "level=info" in line
        assert "event=ready" in line
        assert "component=sdk" in line

    def test_level_filtering(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test records below the level are dropped."""
        configure_logging("WARNING", "json")
        log = get_logger("test")

        log.info("hidden")
        log.warning("shown")

        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_secrets_are_masked(self, capfd: pytest.CaptureFixture[str]) -> None:
        """Test credential values never reach the output."""
        configure_logging("info", "json")

        get_logger("test").info(
            "token_refreshed",
            access_token="s3cr3t",
            headers={"Authorization": "Bearer s3cr3t", "Accept": "*/*"},
        )

        err = capfd.readouterr().err
        assert "s3cr3t" not in err
        record = json.loads(err.strip().splitlines()[-1])
        assert record["access_token"] == "***"
        assert record["headers"] == {"Authorization": "***", "Accept": "*/*"}

    def test_invalid_format(self) -> None:
        """Test an unknown format is rejected."""
        with pytest.raises(ValueError, match="xml"):
            configure_logging("info", "xml")


# ---------------------------------------------------------------------------
# TestClientLogging
# ---------------------------------------------------------------------------


class TestClientLogging:
    """Tests for the events logged around HTTP calls."""

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_request_events_carry_request_id(
        self,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test each call is logged with method, path and request id."""
        respx_mock.get("/nuxeo/api/v1/repo/default/id/missing").mock(
            return_value=httpx.Response(404, text="not here")
        )
        set_request_id("corr-42")

        with capture_logs() as logs:
            async with NuxeoClient(
                "http://nuxeo.test/nuxeo",
                BasicAuthenticator("Administrator", "Administrator"),
                max_retries=0,
            ) as client:
                with pytest.raises(NuxeoHTTPError, match="HTTP 404"):
                    await client.repository().fetch_document_by_id("missing")

        events = [entry for entry in logs if entry["event"].startswith("api_")]
        assert [entry["event"] for entry in events] == [
            "api_request",
            "api_response",
            "api_error",
        ]
        assert all(entry["request_id"] == "corr-42" for entry in events)
        assert events[0]["method"] == "GET"
        assert events[0]["path"] == "/repo/default/id/missing"
        assert events[-1]["status_code"] == 404


# ---------------------------------------------------------------------------
# TestRedactSecrets
# ---------------------------------------------------------------------------


class TestRedactSecrets:
    """Tests for the redact_secrets processor."""

    def test_leaves_other_keys(self) -> None:
        """Test non-credential keys pass through unchanged."""
        event = {"event": "login", "username": "jdoe", "password": "pw"}

        result = redact_secrets(None, "info", event)

        assert result == {"event": "login", "username": "jdoe", "password": "***"}

    def test_ignores_non_mapping_headers(self) -> None:
        """Test a headers value that is not a dict is left alone."""
        event = {"event": "x", "headers": "raw"}

        assert redact_secrets(None, "info", event)["headers"] == "raw"

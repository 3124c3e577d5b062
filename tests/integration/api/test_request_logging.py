"""Integration tests for correlation IDs and access logging."""

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from loguru import logger

from src.api.constants import CORRELATION_ID_HEADER
from src.core.config import Settings
from src.core.logging import (
    ACCESS_LOG_FILE,
    APP_LOG_FILE,
    ERROR_LOG_FILE,
    _state,
    setup_logging,
)

USERS_URL = "/api/users"


def read_records(path: Path) -> list[dict[str, Any]]:
    """Flush pending records and parse a JSON-lines log file."""
    logger.complete()
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines() if line]


@pytest.fixture
def log_dir(settings: Settings) -> Path:
    """Configure the real log sinks for the test settings."""
    _state.configured = False
    setup_logging(settings)
    return Path(settings.log_dir)


@pytest.fixture
def logged_client(log_dir: Path, app: FastAPI) -> Generator[TestClient]:
    """Test client whose requests are written to the log files."""
    _ = log_dir
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.integration
class TestCorrelationId:
    """X-Correlation-ID handling."""

    def test_generated_when_missing(self, client: TestClient) -> None:
        """Responses carry a generated correlation ID."""
        response = client.get(USERS_URL)

        assert len(response.headers[CORRELATION_ID_HEADER]) == 36

    def test_propagated_from_request(self, client: TestClient) -> None:
        """A caller-provided correlation ID is echoed back."""
        response = client.get(
            f"{USERS_URL}/missing", headers={CORRELATION_ID_HEADER: "trace-123"}
        )

        assert response.status_code == 404
        assert response.headers[CORRELATION_ID_HEADER] == "trace-123"


@pytest.mark.integration
class TestAccessLog:
    """Access records written by the request logging middleware."""

    def test_one_record_per_request(
        self, logged_client: TestClient, log_dir: Path
    ) -> None:
        """Each request produces an access record with status and timing."""
        logged_client.post(
            USERS_URL,
            json={"fullname": "John Doe", "study_level": "Master", "age": 25},
            headers={CORRELATION_ID_HEADER: "trace-abc"},
        )

        records = read_records(log_dir / ACCESS_LOG_FILE)

        assert len(records) == 1
        record = records[0]
        assert record["message"] == "POST /api/users"
        assert record["status"] == 201
        assert record["context"]["body"]["fullname"] == "John Doe"
        assert record["context"]["correlation_id"] == "trace-abc"
        assert record["context"]["duration_ms"] >= 0

    def test_sensitive_body_fields_are_redacted(
        self, logged_client: TestClient, log_dir: Path
    ) -> None:
        """Credential-like keys in a body are never written to the log."""
        logged_client.post(
            USERS_URL,
            json={"fullname": "J", "study_level": "x", "age": 1, "password": "hunter2"},
        )

        records = read_records(log_dir / ACCESS_LOG_FILE)

        assert records[0]["context"]["body"]["password"] == "[REDACTED]"
        assert "hunter2" not in json.dumps(records)

    def test_malformed_body_is_logged_as_text(
        self, logged_client: TestClient, log_dir: Path
    ) -> None:
        """Unparsable bodies are logged raw, and the failure once as a warning."""
        logged_client.post(
            USERS_URL, content=b"{bad", headers={"Content-Type": "application/json"}
        )

        access = read_records(log_dir / ACCESS_LOG_FILE)
        app_records = read_records(log_dir / APP_LOG_FILE)
        parse_errors = [
            r for r in app_records if r["context"].get("event") == "JSON_PARSE_ERROR"
        ]

        assert access[0]["status"] == 400
        assert access[0]["context"]["body"] == "{bad"
        assert len(parse_errors) == 1
        assert parse_errors[0]["level"] == "WARNING"

    def test_health_is_excluded(self, logged_client: TestClient, log_dir: Path) -> None:
        """Excluded paths produce no access record."""
        logged_client.get("/health")

        assert read_records(log_dir / ACCESS_LOG_FILE) == []

    def test_not_found_is_logged_as_warning(
        self, logged_client: TestClient, log_dir: Path
    ) -> None:
        """Expected errors are logged once at warning severity."""
        logged_client.get(f"{USERS_URL}/missing")

        records = [
            r
            for r in read_records(log_dir / APP_LOG_FILE)
            if r["context"].get("event") == "GET_USER_NOT_FOUND"
        ]

        assert len(records) == 1
        assert records[0]["status"] == 404
        assert records[0]["level"] == "WARNING"
        assert read_records(log_dir / ERROR_LOG_FILE) == []

    def test_operation_events_are_logged(
        self, logged_client: TestClient, log_dir: Path
    ) -> None:
        """Successful operations log their event name."""
        logged_client.get(USERS_URL)

        events = [
            r["context"].get("event") for r in read_records(log_dir / APP_LOG_FILE)
        ]

        assert "DB_INIT" in events
        assert "STARTUP_STATE" in events
        assert "LIST_USERS" in events

"""Unit tests for sensitive data sanitization."""

from typing import Any

import pytest
from pytest_mock import MockerFixture

from src.core.config import LogConfig, Settings
from src.core.constants import REDACTED
from src.core.error_context import (
    _get_sensitive_fields,
    is_sensitive_field,
    sanitize_dict,
    sanitize_error_context,
    sanitize_sql_params,
    sanitize_value,
)


@pytest.fixture
def sample_sensitive_data() -> dict[str, Any]:
    """Provide nested data with sensitive fields at various depths."""
    return {
        "fullname": "John Doe",
        "password": "secret123",
        "profile": {
            "study_level": "Master",
            "api_key": "sk-1234567890",
        },
        "items": [{"age": 25, "token": "abc"}],
    }


@pytest.mark.unit
class TestSensitiveFieldDetection:
    """Field name matching."""

    @pytest.mark.parametrize(
        "field_name",
        ["password", "DB_PASSWORD", "api_key", "Authorization", "session_id"],
    )
    def test_sensitive_names(self, field_name: str) -> None:
        """Common credential names are detected."""
        assert is_sensitive_field(field_name) is True

    @pytest.mark.parametrize("field_name", ["fullname", "study_level", "age", "id"])
    def test_plain_names(self, field_name: str) -> None:
        """User record fields are not sensitive."""
        assert is_sensitive_field(field_name) is False

    def test_configured_fields(self, mocker: MockerFixture) -> None:
        """Fields listed in the log configuration are treated as sensitive."""
        settings = mocker.Mock(spec=Settings)
        settings.log_config = LogConfig(sensitive_fields=["nickname"])
        mocker.patch("src.core.error_context.get_settings", return_value=settings)
        _get_sensitive_fields.cache_clear()

        assert is_sensitive_field("user_nickname") is True


@pytest.mark.unit
class TestSanitization:
    """Redaction of values."""

    def test_sanitize_dict_is_recursive(
        self, sample_sensitive_data: dict[str, Any]
    ) -> None:
        """Nested dicts and lists are sanitized without touching the input."""
        result = sanitize_dict(sample_sensitive_data)

        assert result == {
            "fullname": "John Doe",
            "password": REDACTED,
            "profile": {"study_level": "Master", "api_key": REDACTED},
            "items": [{"age": 25, "token": REDACTED}],
        }
        assert sample_sensitive_data["password"] == "secret123"

    def test_sanitize_value_passes_scalars(self) -> None:
        """Scalars without a sensitive name are returned unchanged."""
        assert sanitize_value("plain") == "plain"
        assert sanitize_value(42) == 42

    def test_error_context(self) -> None:
        """Error context carries the error type and sanitized values."""
        context = sanitize_error_context(
            OSError("refused"), {"event": "DB_INIT_FAILED", "password": "x"}
        )

        assert context == {
            "error_type": "OSError",
            "event": "DB_INIT_FAILED",
            "password": REDACTED,
        }

    @pytest.mark.parametrize(
        ("params", "expected"),
        [
            (None, None),
            ({"fullname": "A", "secret": "b"}, {"fullname": "A", "secret": REDACTED}),
            (("a", 1), ("a", 1)),
            ("raw", REDACTED),
        ],
    )
    def test_sql_params(self, params: object, expected: object) -> None:
        """SQL parameters are sanitized according to their shape."""
        assert sanitize_sql_params(params) == expected

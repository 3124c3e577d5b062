"""Validation rules for user records.

``validate_user`` accepts any decoded JSON value and applies every field
rule independently, so a client gets the complete list of problems in one
response. The messages are part of the public API: they are returned
verbatim in the ``details`` of a 400 response, ordered as the fields are
declared (fullname, study_level, age).
"""

import math

from pydantic import BaseModel, Field

from src.core.types import JsonValue

MIN_FULLNAME_LENGTH = 2
MIN_STUDY_LEVEL_LENGTH = 1
MIN_AGE = 0
MAX_AGE = 150

PAYLOAD_INVALID = "Payload invalid"
FULLNAME_INVALID = "fullname is required (string min 2 chars)"
STUDY_LEVEL_INVALID = "study_level is required (string)"
AGE_NOT_A_NUMBER = "age is required and must be a number"
AGE_OUT_OF_RANGE = "age must be an integer between 0 and 150"


class UserRecord(BaseModel):
    """A normalized user record: trimmed strings and an integer age."""

    fullname: str = Field(..., min_length=MIN_FULLNAME_LENGTH)
    study_level: str = Field(..., min_length=MIN_STUDY_LEVEL_LENGTH)
    age: int = Field(..., ge=MIN_AGE, le=MAX_AGE)


class ValidationResult(BaseModel):
    """Outcome of ``validate_user``."""

    valid: bool
    record: UserRecord | None = None
    errors: list[str] = Field(default_factory=list)


def _to_number(value: JsonValue) -> int | float | None:
    """Convert a JSON value to a number, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        # JSON integers are unbounded; float() overflows past ~1e308
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _trimmed(value: JsonValue, min_length: int) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if len(trimmed) >= min_length else None


def validate_user(payload: JsonValue) -> ValidationResult:
    """Validate a candidate user record.

    Args:
        payload: The decoded request body.

    Returns:
        ValidationResult: The normalized record when valid, otherwise the
            ordered list of error messages.

    Examples:
        >>> validate_user({"fullname": "J", "study_level": "Master", "age": 25}).errors
        ['fullname is required (string min 2 chars)']
    """
    if not isinstance(payload, dict):
        return ValidationResult(valid=False, errors=[PAYLOAD_INVALID])

    errors: list[str] = []

    fullname = _trimmed(payload.get("fullname"), MIN_FULLNAME_LENGTH)
    if fullname is None:
        errors.append(FULLNAME_INVALID)

    study_level = _trimmed(payload.get("study_level"), MIN_STUDY_LEVEL_LENGTH)
    if study_level is None:
        errors.append(STUDY_LEVEL_INVALID)

    age = _to_number(payload.get("age"))
    if age is None:
        errors.append(AGE_NOT_A_NUMBER)
    elif not age.is_integer() or not MIN_AGE <= age <= MAX_AGE:
        errors.append(AGE_OUT_OF_RANGE)

    if errors:
        return ValidationResult(valid=False, errors=errors)

    record = UserRecord(
        fullname=fullname,  # type: ignore[arg-type]
        study_level=study_level,  # type: ignore[arg-type]
        age=int(age),  # type: ignore[arg-type]
    )
    return ValidationResult(valid=True, record=record)

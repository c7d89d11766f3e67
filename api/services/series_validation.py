"""Field and cross-field validation for series payloads.

Pure functions, no I/O. Payloads are plain mappings keyed by
``SeriesField`` values; any other key is ignored.

The cross-field rule ``watched_episodes <= total_episodes`` is always
checked against the state a write would *produce*: for partial updates the
supplied fields are overlaid on the current record first, so changing only
one side of the comparison cannot slip past the check.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import StrEnum
from typing import Any

from models import INTEGER_MAX, TITLE_MAX_LENGTH, SeriesStatus

RATING_MIN = Decimal("0")
RATING_MAX = Decimal("10")
RATING_QUANTUM = Decimal("0.1")


class SeriesField(StrEnum):
    """The closed set of client-writable series fields."""

    TITLE = "title"
    RATING = "rating"
    TOTAL_SEASONS = "total_seasons"
    TOTAL_EPISODES = "total_episodes"
    WATCHED_EPISODES = "watched_episodes"
    STATUS = "status"


@dataclass(frozen=True)
class SeriesFields:
    """A complete, validated set of writable series fields."""

    title: str
    rating: Decimal
    total_seasons: int
    total_episodes: int
    watched_episodes: int
    status: SeriesStatus


@dataclass(frozen=True)
class SeriesChanges:
    """Result of validating a partial update.

    ``changes`` holds only the supplied (normalized) fields; ``merged`` is
    the full state the record will have once they are applied.
    """

    changes: dict[SeriesField, Any]
    merged: SeriesFields


class SeriesValidationError(Exception):
    """Base class for series payload validation failures."""

    pass


class InvalidFieldError(SeriesValidationError):
    """Raised when a single field fails its type or range check."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvariantViolationError(SeriesValidationError):
    """Raised when watched_episodes would exceed total_episodes."""

    def __init__(self, watched_episodes: int, total_episodes: int):
        self.watched_episodes = watched_episodes
        self.total_episodes = total_episodes
        super().__init__(
            f"watched_episodes ({watched_episodes}) cannot exceed "
            f"total_episodes ({total_episodes})"
        )


class EmptyUpdateError(SeriesValidationError):
    """Raised when a partial update carries no recognized field."""

    def __init__(self) -> None:
        super().__init__("No fields provided for update")


def _check_title(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidFieldError(SeriesField.TITLE, "must be a string")
    title = value.strip()
    if not title:
        raise InvalidFieldError(SeriesField.TITLE, "must not be blank")
    if len(title) > TITLE_MAX_LENGTH:
        raise InvalidFieldError(
            SeriesField.TITLE, f"must be at most {TITLE_MAX_LENGTH} characters"
        )
    return title


def _check_rating(value: Any) -> Decimal:
    # bool is an int subclass; True must not pass as a rating of 1
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        raise InvalidFieldError(SeriesField.RATING, "must be a number")
    # str() first so 8.5 becomes Decimal("8.5"), not its binary expansion
    rating = Decimal(str(value))
    if not rating.is_finite():
        raise InvalidFieldError(SeriesField.RATING, "must be a finite number")
    if rating < RATING_MIN or rating > RATING_MAX:
        raise InvalidFieldError(
            SeriesField.RATING, f"must be between {RATING_MIN} and {RATING_MAX}"
        )
    quantized = rating.quantize(RATING_QUANTUM)
    if quantized != rating:
        raise InvalidFieldError(SeriesField.RATING, "must have at most one decimal place")
    return quantized


def _check_count(field: SeriesField, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(field, "must be an integer")
    if value < minimum:
        raise InvalidFieldError(field, f"must be at least {minimum}")
    if value > INTEGER_MAX:
        raise InvalidFieldError(field, f"must be at most {INTEGER_MAX}")
    return value


def _check_status(value: Any) -> SeriesStatus:
    if isinstance(value, SeriesStatus):
        return value
    match value:
        case "planned":
            return SeriesStatus.PLANNED
        case "watching":
            return SeriesStatus.WATCHING
        case "completed":
            return SeriesStatus.COMPLETED
        case _:
            allowed = ", ".join(status.value for status in SeriesStatus)
            raise InvalidFieldError(SeriesField.STATUS, f"must be one of: {allowed}")


def _check_field(field: SeriesField, value: Any) -> Any:
    if value is None:
        raise InvalidFieldError(field, "must not be null")
    match field:
        case SeriesField.TITLE:
            return _check_title(value)
        case SeriesField.RATING:
            return _check_rating(value)
        case SeriesField.TOTAL_SEASONS:
            return _check_count(field, value, 1)
        case SeriesField.TOTAL_EPISODES:
            return _check_count(field, value, 1)
        case SeriesField.WATCHED_EPISODES:
            return _check_count(field, value, 0)
        case SeriesField.STATUS:
            return _check_status(value)


def _check_invariant(fields: SeriesFields) -> None:
    if fields.watched_episodes > fields.total_episodes:
        raise InvariantViolationError(fields.watched_episodes, fields.total_episodes)


def validate_create_or_replace(payload: Mapping[str, Any]) -> SeriesFields:
    """Validate a full payload for create or replace.

    Raises:
        InvalidFieldError: A field is missing, mistyped, or out of range.
        InvariantViolationError: watched_episodes > total_episodes.
    """
    missing = [field.value for field in SeriesField if field.value not in payload]
    if missing:
        raise InvalidFieldError(", ".join(missing), "required")

    normalized = {
        field.value: _check_field(field, payload[field.value]) for field in SeriesField
    }
    fields = SeriesFields(**normalized)
    _check_invariant(fields)
    return fields


def validate_partial(
    payload: Mapping[str, Any], current: SeriesFields
) -> SeriesChanges:
    """Validate a partial update against the current persisted state.

    Raises:
        EmptyUpdateError: No recognized field present.
        InvalidFieldError: A supplied field is mistyped or out of range.
        InvariantViolationError: The merged state breaks
            watched_episodes <= total_episodes.
    """
    changes: dict[SeriesField, Any] = {
        field: _check_field(field, payload[field.value])
        for field in SeriesField
        if field.value in payload
    }
    if not changes:
        raise EmptyUpdateError()

    merged = replace(current, **{field.value: value for field, value in changes.items()})
    _check_invariant(merged)
    return SeriesChanges(changes=changes, merged=merged)

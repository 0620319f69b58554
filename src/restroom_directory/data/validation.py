"""
Record validation for rows read from the store.

Every raw row goes through one call, ``validate_restroom`` or
``validate_review``, which returns either the typed record or a
``Rejection``. ``validate_batch`` applies a validator across a result set
and logs each rejection once, so a malformed row shortens the result list
instead of failing the whole request.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from restroom_directory.data.records import RestroomWithRating, Review
from restroom_directory.exceptions import RecordRejectedError
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class Rejection:
    """A raw record that failed validation, with the reason why."""

    error: RecordRejectedError

    @property
    def reason(self) -> str:
        return self.error.details["reason"]

    @property
    def record(self) -> dict:
        return self.error.details["record"]


ValidationResult = Union[T, Rejection]


@dataclass
class ValidatedBatch(Generic[T]):
    """Outcome of validating a batch: typed records plus what was dropped."""

    accepted: list[T] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)


def describe_errors(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into 'field: message; field: message'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "record"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _validate(model: type[T], kind: str, record: Mapping[str, Any]) -> ValidationResult[T]:
    payload = dict(record)
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        return Rejection(RecordRejectedError(kind, describe_errors(e), record=payload))


def validate_restroom(record: Mapping[str, Any]) -> ValidationResult[RestroomWithRating]:
    """Validate an aggregated restroom row."""
    return _validate(RestroomWithRating, "restroom", record)


def validate_review(record: Mapping[str, Any]) -> ValidationResult[Review]:
    """Validate a review row. The rating may be absent but never outside 0-5."""
    return _validate(Review, "review", record)


def validate_batch(
    records: Iterable[Mapping[str, Any]],
    validator: Callable[[Mapping[str, Any]], ValidationResult[T]],
) -> ValidatedBatch[T]:
    """
    Validate every record, keeping the good ones in input order.

    Rejected records are logged with their payload and excluded.
    """
    batch: ValidatedBatch[T] = ValidatedBatch()
    for record in records:
        result = validator(record)
        if isinstance(result, Rejection):
            batch.rejected.append(result)
        else:
            batch.accepted.append(result)

    for rejection in batch.rejected:
        logger.warning("%s (payload=%r)", rejection.error.message, rejection.record)
    if batch.rejected:
        logger.info("Dropped %d of %d records", len(batch.rejected), len(batch.rejected) + len(batch.accepted))
    return batch

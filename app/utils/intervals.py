"""Time interval validation and duration accounting.

Everything here is pure: callers fetch the user's stored intervals and pass
them in. Intervals are half-open, ``[start_time, end_time)``, so an interval
that starts exactly when another ends does not overlap it.
"""
from datetime import datetime, timedelta, timezone
from typing import Annotated, Iterable, Literal, Optional, Protocol, Union

from pydantic import BaseModel, Field, PlainSerializer

_MILLISECOND = timedelta(milliseconds=1)
_MS_PER_MINUTE = 60_000


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a stored naive timestamp; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Naive UTC in memory and in MongoDB; JSON carries the offset
UtcDatetime = Annotated[
    datetime, PlainSerializer(as_utc, return_type=datetime, when_used="json")
]


class StoredInterval(Protocol):
    """Shape of an existing interval as read from storage."""

    id: str
    user_id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime]


class IntervalRecord(BaseModel):
    """Minimal stored-interval record, for intervals not yet written."""

    id: str
    user_id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime] = None


class IntervalCandidate(BaseModel):
    """A closed interval about to be written."""

    user_id: str
    start_time: datetime
    end_time: datetime
    exclude_id: Optional[str] = None


class IntervalConflict(BaseModel):
    """An existing interval that a candidate overlaps."""

    id: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    task_id: str


class IntervalOk(BaseModel):
    """Candidate accepted."""

    ok: Literal[True] = True


class OrderError(BaseModel):
    """Candidate ends at or before its start."""

    error: Literal["invalid_order"] = "invalid_order"
    message: str = "Start time must be before end time"


class OverlapError(BaseModel):
    """Candidate overlaps one or more existing intervals."""

    error: Literal["overlap"] = "overlap"
    message: str = "Time entry overlaps with existing entries"
    conflicts: list[IntervalConflict] = Field(default_factory=list)


ValidationResult = Union[IntervalOk, OrderError, OverlapError]


def normalize_timestamp(value: datetime) -> datetime:
    """
    Convert a timestamp to naive UTC, the form stored in MongoDB.

    Naive inputs are assumed to already be UTC.

    Examples:
        >>> from datetime import timezone, timedelta
        >>> normalize_timestamp(datetime(2024, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=2))))
        datetime.datetime(2024, 1, 1, 9, 0)
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap test; symmetric in its two intervals."""
    return a_start < b_end and b_start < a_end


def validate_interval(
    candidate: IntervalCandidate,
    existing: Iterable[StoredInterval],
) -> ValidationResult:
    """
    Check a closed candidate interval against a user's stored intervals.

    Running intervals (no end time), intervals of other users and the
    interval named by ``candidate.exclude_id`` are ignored. Every overlapping
    interval is reported, not just the first.

    Args:
        candidate: Interval to validate
        existing: Stored intervals to compare against

    Returns:
        IntervalOk, OrderError or OverlapError
    """
    start = normalize_timestamp(candidate.start_time)
    end = normalize_timestamp(candidate.end_time)

    if start >= end:
        return OrderError()

    conflicts = []
    for interval in existing:
        if interval.user_id != candidate.user_id or interval.end_time is None:
            continue
        if candidate.exclude_id is not None and interval.id == candidate.exclude_id:
            continue

        other_start = normalize_timestamp(interval.start_time)
        other_end = normalize_timestamp(interval.end_time)
        if intervals_overlap(start, end, other_start, other_end):
            conflicts.append(
                IntervalConflict(
                    id=interval.id,
                    start_time=other_start,
                    end_time=other_end,
                    task_id=interval.task_id,
                )
            )

    if conflicts:
        return OverlapError(conflicts=conflicts)
    return IntervalOk()


def compute_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Duration in whole minutes, rounding any partial minute up.

    Sub-millisecond precision is dropped, matching what MongoDB stores.

    Examples:
        >>> compute_minutes(datetime(2024, 1, 1, 10, 0, 0), datetime(2024, 1, 1, 10, 0, 1))
        1
        >>> compute_minutes(datetime(2024, 1, 1, 10, 0, 0), datetime(2024, 1, 1, 10, 1, 1))
        2
    """
    elapsed = normalize_timestamp(end_time) - normalize_timestamp(start_time)
    milliseconds = elapsed // _MILLISECOND
    return -(-milliseconds // _MS_PER_MINUTE)

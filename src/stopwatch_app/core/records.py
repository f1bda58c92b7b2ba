from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from stopwatch_app.utils.custom_exception import RecordValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class NewTimingRecord:
    """Input for RecordStorePort.create."""
    duration_ms: int
    user_id: Optional[int] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class TimingRecord:
    """A persisted, immutable snapshot of one timing session."""
    id: int
    duration_ms: int
    created_at: datetime = field(default_factory=utc_now)
    user_id: Optional[int] = None
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "duration": self.duration_ms,
            "createdAt": format_timestamp(self.created_at),
        }


def _is_int(value) -> bool:
    # bool is an int subclass but never a valid duration or id
    return isinstance(value, int) and not isinstance(value, bool)


def validate_new_record(new_record: NewTimingRecord) -> NewTimingRecord:
    """
    Checks a create input before it reaches any store.

    Raises:
        RecordValidationError: If ``duration_ms`` is not a non-negative integer,
            ``user_id`` is not an integer, or ``title`` is not a string.
    """
    errors = {}
    if not _is_int(new_record.duration_ms):
        errors["duration"] = "must be an integer"
    elif new_record.duration_ms < 0:
        errors["duration"] = "must be greater than or equal to 0"

    if new_record.user_id is not None and not _is_int(new_record.user_id):
        errors["userId"] = "must be an integer"

    if new_record.title is not None and not isinstance(new_record.title, str):
        errors["title"] = "must be a string"

    if errors:
        raise RecordValidationError("Invalid record data", details=errors)
    return new_record

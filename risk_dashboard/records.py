"""Coercion of raw student records into StudentRecord."""

import math
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, TypeVar, Union

from risk_dashboard.models import StudentRecord

RISK_LEVELS = ('low', 'medium', 'high')

NUMERIC_FIELDS = ('gpa', 'attendance_rate', 'engagement_score')

T = TypeVar('T')

RawRecord = Union[StudentRecord, Mapping[str, Any]]


class InvalidInput(ValueError):
    """A record field is present but cannot be read as its expected type."""

    def __init__(self, field: str, value: Any, reason: str = 'not numeric'):
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for '{field}': {value!r} ({reason})")


def coerce_number(value: Any, field: str) -> Optional[float]:
    """
    Read an optional numeric field.

    None, NaN and blank strings count as absent. Numbers and numeric strings
    are accepted; booleans, infinities and anything else are rejected.

    Raises:
        InvalidInput: if the value is present but not a finite number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInput(field, value, 'boolean is not numeric')

    if isinstance(value, Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise InvalidInput(field, value) from None
    else:
        raise InvalidInput(field, value, f"unsupported type {type(value).__name__}")

    if math.isnan(number):
        return None
    if math.isinf(number):
        raise InvalidInput(field, value, 'not finite')
    return number


def coerce_year(value: Any) -> int:
    """Academic year, truncated to an int. Absent or unreadable years count as year 1."""
    try:
        number = coerce_number(value, 'year')
    except InvalidInput:
        return 1
    if number is None:
        return 1
    return int(number)


def coerce_risk_level(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput('risk_level', value, 'expected a string')
    level = value.strip().lower()
    if not level:
        return None
    if level not in RISK_LEVELS:
        raise InvalidInput('risk_level', value, f"expected one of {', '.join(RISK_LEVELS)}")
    return level


def coerce_timestamp(value: Any, field: str) -> Optional[datetime]:
    """ISO 8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        stamp = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            stamp = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            raise InvalidInput(field, value, 'not an ISO timestamp') from None
    else:
        raise InvalidInput(field, value, f"unsupported type {type(value).__name__}")

    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _coerce_text(value: Any, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def coerce_record(raw: RawRecord) -> StudentRecord:
    """
    Turn a raw record from the record source into a StudentRecord.

    Args:
        raw: StudentRecord (returned as is) or a mapping of field values

    Returns:
        StudentRecord

    Raises:
        InvalidInput: if any present field is malformed
    """
    if isinstance(raw, StudentRecord):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidInput('record', raw, 'expected a mapping of fields')

    return StudentRecord(
        id=_coerce_text(record_id(raw), None),
        name=_coerce_text(raw.get('name'), 'Unknown'),
        department=_coerce_text(raw.get('department'), 'Unknown'),
        year=coerce_year(raw.get('year')),
        gpa=coerce_number(raw.get('gpa'), 'gpa'),
        attendance_rate=coerce_number(raw.get('attendance_rate'), 'attendance_rate'),
        engagement_score=coerce_number(raw.get('engagement_score'), 'engagement_score'),
        risk_level=coerce_risk_level(raw.get('risk_level')),
        updated_at=_last_change(raw),
    )


def coerce_records(records: Iterable[RawRecord]) -> List[StudentRecord]:
    """Coerce every record, failing on the first malformed one."""
    return [coerce_record(raw) for raw in records]


def stored_risk_level(record: RawRecord) -> Optional[str]:
    """
    Read the persisted risk classification without recomputing it.

    The stored value can be stale relative to RiskEngine.assess_student on
    the same record.
    """
    return coerce_record(record).risk_level


def group_by(items: Iterable[T], key: Callable[[T], Hashable]) -> Dict[Hashable, List[T]]:
    """Group items by key. Groups appear in first-seen order, members in input order."""
    groups: Dict[Hashable, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def record_id(raw: RawRecord) -> Optional[str]:
    """Identifier of a raw record without validating its other fields."""
    if isinstance(raw, StudentRecord):
        return raw.id
    if isinstance(raw, Mapping):
        value = raw.get('id')
        if value is None:
            value = raw.get('student_id')
        return None if value is None else str(value).strip()
    return None


def _last_change(raw: Mapping[str, Any]) -> Optional[datetime]:
    stamp = coerce_timestamp(raw.get('updated_at'), 'updated_at')
    if stamp is None:
        stamp = coerce_timestamp(raw.get('created_at'), 'created_at')
    return stamp

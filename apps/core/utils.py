"""
Small helpers shared across apps: query-string parsing and document numbers.
"""

import secrets
import string
import uuid
from datetime import datetime, time
from typing import Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

TRUTHY = ("true", "1", "yes")

KEY_ALPHABET = string.ascii_uppercase + string.digits


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Interpret a query-string flag. Returns None when the flag is absent."""
    if value is None or value == "":
        return None
    return value.lower() in TRUTHY


def parse_datetime_param(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse a date or datetime query parameter into an aware datetime.

    A bare date becomes the start of that day, or the last instant of the
    day when ``end_of_day`` is set.
    """
    if not value:
        return None

    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            return None
        parsed = datetime.combine(day, time.max if end_of_day else time.min)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def date_range_from_params(params, start_key="start_date", end_key="end_date") -> Tuple:
    """Return ``(start, end)`` aware datetimes from query params (either may be None)."""
    return (
        parse_datetime_param(params.get(start_key)),
        parse_datetime_param(params.get(end_key), end_of_day=True),
    )


def is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def random_code(length: int, group: int = 0) -> str:
    """
    Random upper-case alphanumeric code, optionally split into dash-separated
    groups of ``group`` characters.
    """
    chars = [secrets.choice(KEY_ALPHABET) for _ in range(length)]
    if not group:
        return "".join(chars)
    return "-".join("".join(chars[i : i + group]) for i in range(0, length, group))


def next_sequence_number(queryset, field: str, prefix: str, width: int) -> str:
    """
    Generate the next ``<prefix><zero padded counter>`` number for a queryset.

    The counter continues from the highest existing number that starts with
    ``prefix``.
    """
    last = (
        queryset.filter(**{f"{field}__startswith": prefix})
        .order_by(f"-{field}")
        .values_list(field, flat=True)
        .first()
    )
    if last:
        try:
            counter = int(last[len(prefix) :]) + 1
        except ValueError:
            counter = queryset.count() + 1
    else:
        counter = 1
    return f"{prefix}{counter:0{width}d}"

"""
app/validators/type_checks.py

Declared-type conformity checks and value coercion helpers.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from app.domain.field_metadata import FieldType

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)

TRUE_TOKENS = frozenset({"true", "1", "yes", "y", "on"})
FALSE_TOKENS = frozenset({"false", "0", "no", "n", "off"})


def to_number(value: Any) -> Decimal | None:
    """
    Return value as a finite Decimal, or None when it is not numeric.

    Booleans are not numbers here even though Python treats them as ints.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def to_datetime(value: Any) -> datetime | None:
    """
    Return value as a timezone-aware datetime, or None when it is not a date.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
    return None


def _is_json_value(value: Any) -> bool:
    if isinstance(value, (dict, list)):
        return True
    if not isinstance(value, str):
        return False
    try:
        decoded = json.loads(value)
    except ValueError:
        return False
    return isinstance(decoded, (dict, list))


def conforms_to_type(value: Any, field_type: str) -> bool:
    """
    Return True when value is, or cleanly parses as, the declared field type.
    """

    if field_type == FieldType.STRING:
        return isinstance(value, str)
    if field_type == FieldType.INTEGER:
        number = to_number(value)
        return number is not None and number == number.to_integral_value()
    if field_type == FieldType.DECIMAL:
        return to_number(value) is not None
    if field_type == FieldType.DATE:
        return to_datetime(value) is not None
    if field_type == FieldType.BOOLEAN:
        return to_bool(value) is not None
    if field_type == FieldType.JSON:
        return _is_json_value(value)
    return False

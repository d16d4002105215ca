"""
app/domain/attributes.py

Typed attribute values carried in entity and record attribute bags.

Attribute bags stay schema-flexible, but every value must belong to a closed
set of types. ``date``, ``datetime`` and ``Decimal`` have no native JSON form,
so they are encoded as tagged objects when written to JSON columns.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

AttributeValue = Union[str, int, float, bool, Decimal, date, datetime, dict, list, None]

_SUPPORTED_TYPES: tuple[type, ...] = (str, int, float, bool, Decimal, date, datetime, dict, list)

_TYPE_TAG = "__type__"


def is_supported_value(value: Any) -> bool:
    """
    Return True when value belongs to the AttributeValue union.
    """

    return value is None or isinstance(value, _SUPPORTED_TYPES)


def ensure_supported_value(key: str, value: Any) -> AttributeValue:
    """
    Return value unchanged, or raise TypeError for unsupported types.
    """

    if not is_supported_value(value):
        raise TypeError(
            f"Unsupported attribute type for '{key}': {type(value).__name__}."
        )
    return value


def is_blank(value: Any) -> bool:
    """
    Return True for None and whitespace-only strings.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def to_json_value(value: Any) -> Any:
    """
    Encode one attribute value into a JSON-safe structure.
    """

    # datetime is a date subclass; check it first.
    if isinstance(value, datetime):
        return {_TYPE_TAG: "datetime", "value": value.isoformat()}
    if isinstance(value, date):
        return {_TYPE_TAG: "date", "value": value.isoformat()}
    if isinstance(value, Decimal):
        return {_TYPE_TAG: "decimal", "value": str(value)}
    if isinstance(value, dict):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    return value


def from_json_value(value: Any) -> Any:
    """
    Decode a structure produced by to_json_value.
    """

    if isinstance(value, dict):
        tag = value.get(_TYPE_TAG)
        if tag is not None and set(value.keys()) == {_TYPE_TAG, "value"}:
            raw = value["value"]
            if tag == "datetime":
                return datetime.fromisoformat(raw)
            if tag == "date":
                return date.fromisoformat(raw)
            if tag == "decimal":
                return Decimal(raw)
        return {key: from_json_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_json_value(item) for item in value]
    return value


def encode_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    return {key: to_json_value(value) for key, value in attributes.items()}


def decode_attributes(payload: dict[str, Any] | None) -> dict[str, AttributeValue]:
    if not payload:
        return {}
    return {key: from_json_value(value) for key, value in payload.items()}

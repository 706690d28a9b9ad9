"""Helpers for mapping stored documents back onto domain types."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from granjapro.utils.helpers.exceptions import DocumentDecodeError

E = TypeVar("E", bound=Enum)


def decode_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Decode a stored string into a closed enum, rejecting unknown values."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise DocumentDecodeError(
            f"Unknown {field} {value!r} in stored document (expected one of: {allowed})"
        ) from None


def require(doc: Dict[str, Any], key: str) -> Any:
    """Return ``doc[key]`` or fail with a decode error naming the key."""
    if key not in doc or doc[key] is None:
        raise DocumentDecodeError(f"Stored document is missing required field '{key}'")
    return doc[key]


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as UTC ISO text so that lexical order is time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None

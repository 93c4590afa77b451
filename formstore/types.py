"""Core type definitions for the formstore package.

This module defines the fundamental types shared by the store, the notification
bus and the consumer bindings:
- Topic: Notification channels a subscriber can observe
- FieldErrorCode: Validation error codes for individual fields
- FieldSnapshot: Settled view of a single field (value, error, metadata)
- Type aliases for the value, metadata and error maps

The store never interprets field values or metadata; these types only describe
the shape of the maps it keeps and the payloads it emits.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

Values = Dict[str, Any]
"""Mapping from field name to its current value."""

FieldMeta = Dict[str, Any]
"""Arbitrary per-field annotations (e.g. ``touched``, ``focused``)."""

Properties = Dict[str, FieldMeta]
"""Mapping from field name to that field's metadata record."""

ErrorMap = Dict[str, str]
"""Mapping from field path to error message. Valid fields are absent."""


class Topic(str, Enum):
    """Notification topics emitted by a FormStore.

    Each topic carries a delta payload:
    - VALUES: the partial values that were written
    - PROPERTIES: ``{field: <entire updated metadata record>}``
    - ERRORS: the complete new error map
    """
    VALUES = "values"
    PROPERTIES = "properties"
    ERRORS = "errors"


class FieldErrorCode(str, Enum):
    """Validation error codes for individual field failures.

    Attached to FieldError objects by validators that can classify failures.
    The store itself only reads the path and message.
    """
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_FORMAT = "invalid_format"
    INVALID_VALUE = "invalid_value"
    TOO_LONG = "too_long"
    TOO_SHORT = "too_short"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FieldSnapshot:
    """Settled view of one field after a write.

    Returned by ``FormStore.set_field`` and passed to its ``on_settled`` hook
    once validation (if requested) has finished.

    Attributes:
        value: The value that was written
        error: The field's current error message, or None when valid
        meta: The field's metadata record, or None when none was ever set

    Examples:
        >>> snap = FieldSnapshot(value="Alice", error=None, meta={"touched": True})
        >>> snap.to_dict()
        {'value': 'Alice', 'error': None, 'meta': {'touched': True}}
    """
    value: Any
    error: Optional[str] = None
    meta: Optional[FieldMeta] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"value": self.value, "error": self.error, "meta": self.meta}


Callback = Callable[[Any], None]
"""Subscriber callback invoked with a topic payload."""

Unsubscribe = Callable[[], None]
"""Handle returned by ``on``; removes exactly one registration."""


__all__ = [
    "Values",
    "FieldMeta",
    "Properties",
    "ErrorMap",
    "Topic",
    "FieldErrorCode",
    "FieldSnapshot",
    "Callback",
    "Unsubscribe",
]

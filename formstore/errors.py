"""Structured error types for formstore validation.

Validators report failures as a single aggregate exception (ValidationFailure)
carrying an ordered list of per-field sub-errors (FieldError). The store reduces
that list into the flat ``{path: message}`` error map it keeps and emits.

Sub-errors from third-party validators do not have to be FieldError instances:
anything exposing ``path`` and ``message`` attributes, or a mapping with those
keys, is accepted by ``errors_to_map``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from formstore.types import ErrorMap, FieldErrorCode


@dataclass(frozen=True)
class FieldError:
    """Per-field validation error details.

    Attributes:
        path: Dot-notation field path (e.g., "email", "contact.phone")
        message: Human-readable error description
        code: Optional classification of the failure

    Examples:
        >>> err = FieldError(path="email", message="Invalid email format",
        ...                  code=FieldErrorCode.INVALID_FORMAT)
        >>> err.to_dict()
        {'path': 'email', 'message': 'Invalid email format', 'code': 'invalid_format'}
    """
    path: str
    message: str
    code: Optional[FieldErrorCode] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "path": self.path,
            "message": self.message,
        }
        if self.code is not None:
            result["code"] = self.code.value if isinstance(self.code, FieldErrorCode) else self.code
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        code = data.get("code")
        if isinstance(code, str):
            code = FieldErrorCode(code)
        return cls(
            path=data["path"],
            message=data["message"],
            code=code,
        )


class ValidationFailure(Exception):
    """Raised by a validator when one or more fields are invalid.

    Attributes:
        inner: Ordered list of per-field sub-errors
    """

    def __init__(self, inner: Optional[List[FieldError]] = None, message: Optional[str] = None):
        self.inner: List[FieldError] = list(inner or [])
        if message is None:
            message = f"{len(self.inner)} validation error(s)"
        super().__init__(message)


def _read(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def errors_to_map(inner: Optional[Iterable[Any]]) -> ErrorMap:
    """Reduce an ordered list of sub-errors into a field-keyed error map.

    When a path appears more than once, the last message wins.

    Args:
        inner: Sub-errors exposing ``path`` and ``message`` (attributes or
            mapping keys). None is treated as an empty list.

    Returns:
        Mapping from field path to error message

    Examples:
        >>> errors_to_map([
        ...     {"path": "a", "message": "required"},
        ...     {"path": "a", "message": "too short"},
        ... ])
        {'a': 'too short'}
    """
    result: ErrorMap = {}
    for entry in inner or []:
        result[_read(entry, "path")] = _read(entry, "message")
    return result


__all__ = [
    "FieldError",
    "ValidationFailure",
    "errors_to_map",
]

"""formstore: form state container with selective change notification.

formstore keeps a form's state outside any UI tree and provides:
- A store of field values, per-field metadata and validation errors
- Topic-based notifications that fire only when state actually changed
- An asynchronous validation pipeline driven by an injected validator
- Form-level and field-level bindings for UI adapters

Basic usage:
    >>> import asyncio
    >>> from formstore import FormStore, JsonSchemaValidator
    >>> schema = JsonSchemaValidator({
    ...     "type": "object",
    ...     "properties": {"name": {"type": "string"}},
    ...     "required": ["name"]
    ... })
    >>> store = FormStore({}, schema)
    >>> asyncio.run(store.validate())
    {'name': "Field 'name' is required"}
"""

__version__ = "0.1.0"
__author__ = "formstore contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formstore.bindings import FieldBinding, FormBinding
from formstore.errors import FieldError, ValidationFailure
from formstore.events import NotificationBus
from formstore.scope import FormScope
from formstore.store import FormStore, create_form_store
from formstore.types import FieldSnapshot, Topic
from formstore.validation import JsonSchemaValidator, Validator

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormStore",
    "create_form_store",
    "FormScope",
    "FormBinding",
    "FieldBinding",
    "NotificationBus",
    "Topic",
    "FieldSnapshot",
    "FieldError",
    "ValidationFailure",
    "Validator",
    "JsonSchemaValidator",
]

"""FormStore: form state container with change notification.

This module provides the FormStore class that holds a form's field values,
per-field metadata and validation errors, and notifies subscribers through a
NotificationBus whenever one of them actually changes.

The store:
- Emits only on real changes (shallow equality gates every emission)
- Emits deltas, not full state, on the "values" and "properties" topics
- Hands out copies of its state, never the internal mappings
- Delegates validation to an injected validator and reshapes its failure
  into a ``{field path: message}`` error map

Usage:
    >>> import asyncio
    >>> from formstore.store import FormStore
    >>> store = FormStore({"name": ""})
    >>> seen = []
    >>> off = store.on("values", seen.append)
    >>> store.set({"name": "Alice", "age": 30})
    >>> seen
    [{'name': 'Alice', 'age': 30}]
    >>> asyncio.run(store.set_field("name", "Alice")) is None  # unchanged
    True
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set, Union

from formstore.equality import is_same, shallow_equal
from formstore.errors import errors_to_map
from formstore.events import NotificationBus, TopicName
from formstore.types import (
    Callback,
    ErrorMap,
    FieldSnapshot,
    Properties,
    Topic,
    Unsubscribe,
    Values,
)

logger = logging.getLogger(__name__)

SettledHook = Callable[[FieldSnapshot], Any]


class FormStore:
    """State container for a single form scope.

    Each form scope owns exactly one store; stores never share state or
    subscribers.

    Attributes:
        schema: The active validator, or None

    Examples:
        >>> store = FormStore({"email": "a@b.c"})
        >>> store.get()
        {'email': 'a@b.c'}
        >>> store.set_field_meta("email", "touched", True)
        >>> store.get_properties()
        {'email': {'touched': True}}
    """

    def __init__(self, initial_values: Optional[Values] = None, schema: Any = None):
        """Create a store.

        Args:
            initial_values: Optional initial field values (copied)
            schema: Optional validator exposing ``validate(values, abort_early)``
        """
        self._values: Values = dict(initial_values or {})
        self._properties: Properties = {}
        self._errors: ErrorMap = {}
        self._schema = schema
        self._bus = NotificationBus()
        self._pending: Set["asyncio.Task[Optional[ErrorMap]]"] = set()

    @property
    def schema(self) -> Any:
        return self._schema

    # Subscriptions

    def on(self, topic: TopicName, callback: Callback) -> Unsubscribe:
        """Subscribe to a topic; returns an idempotent unsubscribe handle."""
        return self._bus.on(topic, callback)

    def _emit(self, topic: Topic, payload: Any) -> None:
        logger.debug("Emitting %s: %r", topic.value, payload)
        self._bus.emit(topic, payload)

    # Readers

    def get(self) -> Values:
        """Return a shallow copy of the current values."""
        return dict(self._values)

    def get_errors(self) -> ErrorMap:
        """Return a shallow copy of the current error map."""
        return dict(self._errors)

    def get_properties(self) -> Properties:
        """Return a shallow copy of the per-field metadata map."""
        return dict(self._properties)

    # Mutators

    def set(self, values: Values) -> None:
        """Merge values into the form and emit them on the "values" topic.

        The merge is unconditional; the payload is exactly the given delta.
        Does not trigger validation.

        Args:
            values: Partial mapping of field name to new value
        """
        delta = dict(values)
        self._values = {**self._values, **delta}
        self._emit(Topic.VALUES, delta)

    async def set_field(
        self,
        field: str,
        value: Any,
        should_validate: Union[bool, SettledHook] = True,
        on_settled: Optional[SettledHook] = None,
    ) -> Optional[FieldSnapshot]:
        """Write a single field value.

        Nothing happens when the value is the same as the current one.
        Otherwise the value is written, ``{field: value}`` is emitted on the
        "values" topic and, if requested, a full validation pass is awaited.

        Passing a callable as ``should_validate`` is the legacy form of
        ``on_settled``: validation runs and the callable is then invoked.

        Args:
            field: Field name
            value: New value
            should_validate: Whether to await ``validate()`` after writing
            on_settled: Called with the field's FieldSnapshot once settled

        Returns:
            FieldSnapshot for the field, or None when nothing changed
        """
        if callable(should_validate):
            on_settled, should_validate = should_validate, True

        if is_same(self._values.get(field), value):
            return None

        self._values[field] = value
        self._emit(Topic.VALUES, {field: value})

        if should_validate:
            await self.validate()

        snapshot = FieldSnapshot(
            value=value,
            error=self._errors.get(field),
            meta=self._properties.get(field),
        )
        if on_settled is not None:
            on_settled(snapshot)
        return snapshot

    def set_field_meta(self, field: str, prop: str, value: Any) -> None:
        """Set one metadata property on a field.

        The field's metadata record is replaced by a merged copy, and the
        whole new record is emitted as ``{field: record}`` on "properties".
        No-op when the property is shallow-equal to its current value.

        Args:
            field: Field name
            prop: Metadata key (e.g. "touched")
            value: New metadata value
        """
        meta = self._properties.get(field) or {}
        if shallow_equal(meta.get(prop), value):
            return
        self._properties[field] = {**meta, prop: value}
        self._emit(Topic.PROPERTIES, {field: self._properties[field]})

    def set_errors(self, errors: ErrorMap) -> None:
        """Replace the error map, emitting it on "errors" if it changed."""
        if shallow_equal(self._errors, errors):
            return
        self._errors = dict(errors)
        self._emit(Topic.ERRORS, dict(self._errors))

    # Validation

    async def validate(self) -> Optional[ErrorMap]:
        """Run the active validator against the current values.

        All field errors are requested (``abort_early=False``). A failure is
        reduced to ``{path: message}`` (last message wins per path) and applied
        through ``set_errors``. A failure without an ``inner`` error list
        counts as zero errors.

        Overlapping calls are not deduplicated: each one applies its own
        result when it settles.

        Returns:
            The resulting error map, or None when no validator is set
        """
        validate = getattr(self._schema, "validate", None) if self._schema is not None else None
        if validate is None:
            return None

        values = dict(self._values)
        try:
            result = validate(values, abort_early=False)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            inner = getattr(exc, "inner", None)
            if inner is None:
                logger.warning(
                    "Validator raised %s without field errors, treating as valid",
                    type(exc).__name__,
                    exc_info=True,
                )
            errors = errors_to_map(inner)
            logger.debug("Validation failed for fields: %s", ", ".join(map(str, errors)) or "<none>")
            self.set_errors(errors)
            return errors

        if self._errors:
            self.set_errors({})
        return {}

    def set_schema(self, schema: Any) -> None:
        """Replace the validator and start a validation pass without awaiting it.

        Callers that need the result must await ``validate()`` themselves
        (or ``wait_for_validation()``).
        """
        self._schema = schema
        self.schedule_validation()

    def schedule_validation(self) -> Optional["asyncio.Task[Optional[ErrorMap]]"]:
        """Start a validation pass in the background.

        Inside a running event loop the pass becomes a task tracked by the
        store. Without one, the pass runs to completion before returning.

        Returns:
            The scheduled task, or None when the pass already ran
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.validate())
            return None

        task = loop.create_task(self.validate())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_validation(self) -> None:
        """Wait until every background validation pass has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


def create_form_store(initial_values: Optional[Values] = None, initial_schema: Any = None) -> FormStore:
    """Create a store for one form scope.

    Args:
        initial_values: Optional initial field values
        initial_schema: Optional validator

    Returns:
        A new, independent FormStore
    """
    return FormStore(initial_values, initial_schema)


__all__ = [
    "FormStore",
    "SettledHook",
    "create_form_store",
]

"""Consumer bindings projecting a FormStore for form-level and field-level views.

Bindings hold no form state of their own. They read the store, subscribe to the
topics they care about and raise a render signal when their consumer should
refresh. The render signal is the optional ``on_render`` callback (called with
the binding) plus a ``render_count`` counter.

The store is always passed in explicitly; see ``formstore.scope.FormScope`` for
the usual way of creating bindings that share one store.
"""

import logging
from typing import Any, Callable, List, Optional

from formstore.equality import is_same
from formstore.store import FormStore
from formstore.types import ErrorMap, FieldMeta, FieldSnapshot, Properties, Topic, Unsubscribe, Values

logger = logging.getLogger(__name__)


class _Binding:
    """Shared subscription bookkeeping for bindings."""

    def __init__(self, store: FormStore, on_render: Optional[Callable[[Any], None]] = None):
        self.store = store
        self.on_render = on_render
        self.render_count = 0
        self._unsubscribers: List[Unsubscribe] = []

    @property
    def subscribed(self) -> bool:
        return bool(self._unsubscribers)

    def _render(self) -> None:
        self.render_count += 1
        if self.on_render is not None:
            self.on_render(self)

    def close(self) -> None:
        """Release every subscription held by this binding. Idempotent."""
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def subscribe(self):
        raise NotImplementedError

    def __enter__(self):
        return self.subscribe()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FormBinding(_Binding):
    """Form-level view of a store.

    ``is_valid`` is true while the store's error map is empty. It is recomputed
    and a render is signalled on every "errors" emission, never on "values" or
    "properties" emissions.

    Attributes:
        store: The store being projected
        with_values: Whether to keep a merged snapshot of emitted values
        on_change: Optional callback receiving every raw "values" delta
        is_valid: True when the store has no errors
        values: Merged snapshot of every "values" delta since subscription
            (None unless ``with_values``)

    Examples:
        >>> store = FormStore()
        >>> form = FormBinding(store, with_values=True).subscribe()
        >>> form.set({"name": "Alice"})
        >>> form.values
        {'name': 'Alice'}
        >>> form.is_valid
        True
    """

    def __init__(
        self,
        store: FormStore,
        with_values: bool = False,
        on_change: Optional[Callable[[Values], Any]] = None,
        on_render: Optional[Callable[["FormBinding"], None]] = None,
    ):
        super().__init__(store, on_render)
        self.with_values = with_values
        self.on_change = on_change
        self.is_valid = not store.get_errors()
        self.values: Optional[Values] = {} if with_values else None

    def get(self) -> Values:
        return self.store.get()

    def set(self, values: Values) -> None:
        self.store.set(values)

    def set_schema(self, schema: Any) -> None:
        self.store.set_schema(schema)

    def subscribe(self) -> "FormBinding":
        """Start observing the store.

        Signals one render and starts a validation pass to establish the
        initial validity. Calling it again while subscribed does nothing.
        """
        if self.subscribed:
            return self

        self._unsubscribers.append(self.store.on(Topic.ERRORS, self._handle_errors))
        if self.with_values:
            self._unsubscribers.append(self.store.on(Topic.VALUES, self._merge_values))
        if self.on_change is not None:
            self._unsubscribers.append(self.store.on(Topic.VALUES, self.on_change))

        self.is_valid = not self.store.get_errors()
        self._render()
        self.store.schedule_validation()
        return self

    def _handle_errors(self, errors: ErrorMap) -> None:
        self.is_valid = not self.store.get_errors()
        self._render()

    def _merge_values(self, delta: Values) -> None:
        self.values = {**(self.values or {}), **delta}


class FieldBinding(_Binding):
    """Field-level view of a store.

    Caches the field's value, metadata and error. Value changes signal a
    render only for controlled fields; uncontrolled consumers read the latest
    value through ``get_value()``. Metadata and error changes always signal a
    render.

    Attributes:
        store: The store being projected
        field: Field name
        controlled: Whether value changes signal a render

    Examples:
        >>> store = FormStore({"name": "Alice"})
        >>> name = FieldBinding(store, "name").subscribe()
        >>> name.value
        'Alice'
        >>> store.set({"name": "Bob"})
        >>> name.get_value(), name.render_count
        ('Bob', 1)
    """

    def __init__(
        self,
        store: FormStore,
        field: str,
        controlled: bool = False,
        on_render: Optional[Callable[["FieldBinding"], None]] = None,
    ):
        super().__init__(store, on_render)
        self.field = field
        self.controlled = controlled
        self._value: Any = None
        self._meta: FieldMeta = {}
        self._error: Optional[str] = None

    @property
    def value(self) -> Any:
        """Cached value, or an empty string when the field has none."""
        return "" if self._value is None else self._value

    @property
    def meta(self) -> FieldMeta:
        return self._meta

    @property
    def error(self) -> Optional[str]:
        return self._error

    def get_value(self) -> Any:
        """Latest value seen by this binding, whether or not it rendered."""
        return self._value

    async def set(self, value: Any) -> Optional[FieldSnapshot]:
        return await self.store.set_field(self.field, value)

    def set_meta(self, prop: str, value: Any) -> None:
        self.store.set_field_meta(self.field, prop, value)

    def subscribe(self) -> "FieldBinding":
        """Seed the cache from the store and observe all three topics.

        Signals one render. Calling it again while subscribed does nothing.
        """
        if self.subscribed:
            return self

        self._value = self.store.get().get(self.field)
        self._meta = self.store.get_properties().get(self.field) or {}
        self._error = self.store.get_errors().get(self.field)
        self._unsubscribers = [
            self.store.on(Topic.VALUES, self._handle_values),
            self.store.on(Topic.PROPERTIES, self._handle_properties),
            self.store.on(Topic.ERRORS, self._handle_errors),
        ]
        self._render()
        return self

    def rebind(self, field: Optional[str] = None, controlled: Optional[bool] = None) -> "FieldBinding":
        """Point the binding at another field or switch its controlled mode.

        When either setting changes on a subscribed binding, all subscriptions
        are released and re-established against the new settings.
        """
        next_field = self.field if field is None else field
        next_controlled = self.controlled if controlled is None else controlled
        if next_field == self.field and next_controlled == self.controlled:
            return self

        was_subscribed = self.subscribed
        self.close()
        self.field = next_field
        self.controlled = next_controlled
        logger.debug("Rebinding field binding to %r (controlled=%s)", next_field, next_controlled)
        if was_subscribed:
            self.subscribe()
        return self

    def _handle_values(self, values: Values) -> None:
        if self.field not in values or is_same(self._value, values[self.field]):
            return
        self._value = values[self.field]
        if self.controlled:
            self._render()

    def _handle_properties(self, properties: Properties) -> None:
        if self.field not in properties or properties[self.field] is self._meta:
            return
        self._meta = properties[self.field] or {}
        self._render()

    def _handle_errors(self, errors: ErrorMap) -> None:
        error = errors.get(self.field)
        if is_same(error, self._error):
            return
        self._error = error
        self._render()


__all__ = [
    "FormBinding",
    "FieldBinding",
]

"""FormScope: one store shared by the bindings of a form.

A FormScope creates a single FormStore and hands it to every binding it
creates, replacing implicit ambient context with an explicit owner. It also
forwards externally supplied values and schema changes to the store.

Usage:
    >>> from formstore.scope import FormScope
    >>> scope = FormScope(values={"name": "Alice"})
    >>> name = scope.field("name", controlled=True)
    >>> scope.update(values={"name": "Bob"})
    >>> name.value
    'Bob'
    >>> scope.close()
"""

from typing import Any, Callable, List, Optional, Union

from formstore.bindings import FieldBinding, FormBinding
from formstore.store import FormStore, create_form_store
from formstore.types import Values

_UNSET = object()


class FormScope:
    """Owner of one FormStore and the bindings created over it.

    Attributes:
        store: The scope's store

    Examples:
        >>> with FormScope(values={"age": 3}) as scope:
        ...     form = scope.form(with_values=True)
        ...     scope.update(values={"age": 4})
        ...     form.values
        {'age': 4}
    """

    def __init__(self, values: Optional[Values] = None, schema: Any = None):
        """Create the scope's store.

        When a schema is given, an initial validation pass is started.

        Args:
            values: Optional initial field values
            schema: Optional validator
        """
        self.store: FormStore = create_form_store(values, schema)
        self._bindings: List[Union[FormBinding, FieldBinding]] = []
        if schema is not None:
            self.store.schedule_validation()

    def form(
        self,
        with_values: bool = False,
        on_change: Optional[Callable[[Values], Any]] = None,
        on_render: Optional[Callable[[FormBinding], None]] = None,
    ) -> FormBinding:
        """Create and subscribe a form-level binding over the scope's store."""
        binding = FormBinding(self.store, with_values=with_values, on_change=on_change, on_render=on_render)
        self._bindings.append(binding)
        return binding.subscribe()

    def field(
        self,
        name: str,
        controlled: bool = False,
        on_render: Optional[Callable[[FieldBinding], None]] = None,
    ) -> FieldBinding:
        """Create and subscribe a field-level binding over the scope's store."""
        binding = FieldBinding(self.store, name, controlled=controlled, on_render=on_render)
        self._bindings.append(binding)
        return binding.subscribe()

    def update(self, values: Any = _UNSET, schema: Any = _UNSET) -> None:
        """Push external changes into the store.

        Args:
            values: New values, merged with ``store.set`` (skipped if omitted)
            schema: New validator, applied with ``store.set_schema``
                (skipped if omitted; pass None to remove the validator)
        """
        if values is not _UNSET:
            self.store.set(values)
        if schema is not _UNSET:
            self.store.set_schema(schema)

    def close(self) -> None:
        """Release every binding created through this scope."""
        bindings, self._bindings = self._bindings, []
        for binding in bindings:
            binding.close()

    def __enter__(self) -> "FormScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "FormScope",
]

"""Unit tests for the form-level and field-level bindings.

Tests cover:
- FormBinding validity tracking and its render signals
- Optional merged values snapshot and change callback
- FieldBinding caching in controlled and uncontrolled modes
- Metadata and error updates
- Rebinding and teardown
"""

import pytest

from formstore.bindings import FieldBinding, FormBinding
from formstore.errors import FieldError, ValidationFailure
from formstore.store import FormStore


class RequiredFieldsValidator:
    """Validator double that requires every listed field to be truthy."""

    def __init__(self, *fields):
        self.fields = fields

    async def validate(self, values, abort_early=False):
        inner = [FieldError(path=f, message="required") for f in self.fields if not values.get(f)]
        if inner:
            raise ValidationFailure(inner)


class TestFormBindingValidity:
    """Test is_valid and render signalling."""

    def test_initial_validity_from_store(self):
        """Should seed is_valid from the store's current errors."""
        store = FormStore()
        store.set_errors({"a": "required"})

        assert FormBinding(store).is_valid is False
        assert FormBinding(FormStore()).is_valid is True

    @pytest.mark.asyncio
    async def test_subscribe_renders_and_validates(self):
        """Should signal one render and start a validation pass."""
        store = FormStore({}, RequiredFieldsValidator("a"))
        form = FormBinding(store).subscribe()

        assert form.render_count == 1
        assert form.is_valid is True

        await store.wait_for_validation()

        assert form.is_valid is False
        assert form.render_count == 2

    def test_subscribe_outside_event_loop_validates_immediately(self):
        """Should establish validity before returning when no loop runs."""
        store = FormStore({}, RequiredFieldsValidator("a"))

        form = FormBinding(store).subscribe()

        assert form.is_valid is False
        assert form.render_count == 2

    @pytest.mark.asyncio
    async def test_renders_only_on_errors_topic(self):
        """Should ignore values and properties emissions."""
        store = FormStore()
        form = FormBinding(store).subscribe()
        await store.wait_for_validation()
        count = form.render_count

        store.set({"a": 1})
        store.set_field_meta("a", "touched", True)
        assert form.render_count == count

        store.set_errors({"a": "bad"})
        assert form.render_count == count + 1
        assert form.is_valid is False

        store.set_errors({})
        assert form.render_count == count + 2
        assert form.is_valid is True

    @pytest.mark.asyncio
    async def test_becomes_valid_after_field_fix(self):
        """Should flip is_valid when a field write clears the errors."""
        store = FormStore({}, RequiredFieldsValidator("a"))
        form = FormBinding(store).subscribe()
        await store.wait_for_validation()

        await store.set_field("a", "x")

        assert form.is_valid is True

    def test_on_render_receives_binding(self):
        """Should call on_render with the binding itself."""
        seen = []
        form = FormBinding(FormStore(), on_render=seen.append).subscribe()

        assert seen == [form]

    def test_subscribe_twice_is_noop(self):
        """Should not register twice or render again."""
        store = FormStore()
        form = FormBinding(store).subscribe()

        form.subscribe()
        store.set_errors({"a": "bad"})

        assert form.render_count == 2


class TestFormBindingValues:
    """Test the merged values snapshot and change callback."""

    def test_values_none_without_tracking(self):
        """Should not track values unless asked to."""
        store = FormStore()
        form = FormBinding(store).subscribe()

        store.set({"a": 1})

        assert form.values is None

    def test_with_values_merges_deltas(self):
        """Should shallow-merge every values delta into a running snapshot."""
        store = FormStore({"untouched": True})
        form = FormBinding(store, with_values=True).subscribe()

        store.set({"a": 1, "b": 2})
        store.set({"b": 3})

        assert form.values == {"a": 1, "b": 3}

    @pytest.mark.asyncio
    async def test_with_values_tracks_field_writes(self):
        """Should include single-field writes in the snapshot."""
        store = FormStore()
        form = FormBinding(store, with_values=True).subscribe()

        await store.set_field("name", "Alice")

        assert form.values == {"name": "Alice"}
        await store.wait_for_validation()

    def test_with_values_does_not_render(self):
        """Should not signal a render for values emissions."""
        store = FormStore()
        form = FormBinding(store, with_values=True).subscribe()

        store.set({"a": 1})

        assert form.render_count == 1

    def test_on_change_receives_raw_delta(self):
        """Should forward each values delta once to on_change."""
        changes = []
        store = FormStore()
        FormBinding(store, on_change=changes.append).subscribe()

        store.set({"a": 1})
        store.set({"a": 1})

        assert changes == [{"a": 1}, {"a": 1}]

    def test_delegates_to_store(self):
        """Should expose the store's get, set and set_schema."""
        store = FormStore()
        form = FormBinding(store)

        form.set({"a": ""})
        assert form.get() == {"a": ""}

        form.set_schema(RequiredFieldsValidator("a"))
        assert store.get_errors() == {"a": "required"}


class TestFormBindingTeardown:
    """Test releasing form bindings."""

    def test_close_stops_updates(self):
        """Should stop tracking errors, values and changes after close."""
        changes = []
        store = FormStore()
        form = FormBinding(store, with_values=True, on_change=changes.append).subscribe()

        form.close()
        form.close()
        store.set({"a": 1})
        store.set_errors({"a": "bad"})

        assert form.subscribed is False
        assert form.values == {}
        assert changes == []
        assert form.is_valid is True

    def test_context_manager(self):
        """Should subscribe on enter and close on exit."""
        store = FormStore()

        with FormBinding(store, with_values=True) as form:
            store.set({"a": 1})
            assert form.subscribed

        store.set({"b": 2})
        assert form.values == {"a": 1}
        assert form.subscribed is False


class TestFieldBindingSeed:
    """Test initial state of field bindings."""

    def test_seeds_from_store(self):
        """Should read value, metadata and error at subscription."""
        store = FormStore({"email": "x"})
        store.set_field_meta("email", "touched", True)
        store.set_errors({"email": "invalid"})

        field = FieldBinding(store, "email").subscribe()

        assert field.value == "x"
        assert field.meta == {"touched": True}
        assert field.error == "invalid"
        assert field.render_count == 1

    def test_defaults_for_unknown_field(self):
        """Should expose an empty value and metadata for an unset field."""
        field = FieldBinding(FormStore(), "missing").subscribe()

        assert field.value == ""
        assert field.get_value() is None
        assert field.meta == {}
        assert field.error is None

    def test_falsy_values_are_kept(self):
        """Should only replace None with an empty string."""
        field = FieldBinding(FormStore({"count": 0}), "count").subscribe()

        assert field.value == 0


class TestFieldBindingValues:
    """Test value emissions in controlled and uncontrolled modes."""

    def test_uncontrolled_updates_cache_without_render(self):
        """Should track the new value silently in uncontrolled mode."""
        store = FormStore({"name": "Alice"})
        field = FieldBinding(store, "name", controlled=False).subscribe()

        store.set({"name": "Bob"})

        assert field.get_value() == "Bob"
        assert field.value == "Bob"
        assert field.render_count == 1

    def test_controlled_updates_cache_and_renders(self):
        """Should signal a render for value changes in controlled mode."""
        store = FormStore({"name": "Alice"})
        field = FieldBinding(store, "name", controlled=True).subscribe()

        store.set({"name": "Bob"})

        assert field.get_value() == "Bob"
        assert field.render_count == 2

    def test_unchanged_value_does_not_render(self):
        """Should ignore a values emission carrying the cached value."""
        store = FormStore({"name": "Alice"})
        field = FieldBinding(store, "name", controlled=True).subscribe()

        store.set({"name": "Alice"})

        assert field.render_count == 1

    def test_other_fields_are_ignored(self):
        """Should ignore emissions that do not contain the field."""
        store = FormStore()
        field = FieldBinding(store, "name", controlled=True).subscribe()

        store.set({"email": "a@b.c"})

        assert field.get_value() is None
        assert field.render_count == 1

    @pytest.mark.asyncio
    async def test_set_writes_through_store(self):
        """Should write the field value via set_field."""
        store = FormStore()
        field = FieldBinding(store, "name", controlled=True).subscribe()

        snapshot = await field.set("Alice")

        assert store.get() == {"name": "Alice"}
        assert field.value == "Alice"
        assert snapshot.value == "Alice"


class TestFieldBindingMetaAndErrors:
    """Test metadata and error emissions."""

    def test_meta_change_always_renders(self):
        """Should render on metadata changes even when uncontrolled."""
        store = FormStore()
        field = FieldBinding(store, "name", controlled=False).subscribe()

        field.set_meta("touched", True)

        assert field.meta == {"touched": True}
        assert field.render_count == 2

    def test_meta_of_other_field_is_ignored(self):
        """Should ignore metadata emissions for other fields."""
        store = FormStore()
        field = FieldBinding(store, "name").subscribe()

        store.set_field_meta("email", "touched", True)

        assert field.meta == {}
        assert field.render_count == 1

    def test_error_change_always_renders(self):
        """Should render when the field's error appears or clears."""
        store = FormStore()
        field = FieldBinding(store, "name", controlled=False).subscribe()

        store.set_errors({"name": "required"})
        assert field.error == "required"
        assert field.render_count == 2

        store.set_errors({})
        assert field.error is None
        assert field.render_count == 3

    def test_unrelated_error_change_does_not_render(self):
        """Should ignore error maps where this field's error is unchanged."""
        store = FormStore()
        store.set_errors({"name": "required"})
        field = FieldBinding(store, "name").subscribe()

        store.set_errors({"name": "required", "email": "invalid"})

        assert field.render_count == 1

    @pytest.mark.asyncio
    async def test_validation_updates_field_error(self):
        """Should pick up errors produced by a validation pass."""
        store = FormStore({}, RequiredFieldsValidator("name"))
        field = FieldBinding(store, "name").subscribe()

        await store.validate()
        assert field.error == "required"

        await field.set("Alice")
        assert field.error is None


class TestFieldBindingLifecycle:
    """Test rebinding and teardown."""

    def test_rebind_to_other_field(self):
        """Should re-seed from and follow the new field only."""
        store = FormStore({"first": "A", "second": "B"})
        field = FieldBinding(store, "first", controlled=True).subscribe()

        field.rebind(field="second")
        store.set({"first": "A2"})

        assert field.field == "second"
        assert field.value == "B"
        assert field.render_count == 2

        store.set({"second": "B2"})
        assert field.value == "B2"
        assert field.render_count == 3

    def test_rebind_controlled_flag(self):
        """Should apply the new mode to later value emissions."""
        store = FormStore({"name": "A"})
        field = FieldBinding(store, "name", controlled=False).subscribe()

        field.rebind(controlled=True)
        store.set({"name": "B"})

        assert field.controlled is True
        assert field.render_count == 3

    def test_rebind_with_same_settings_is_noop(self):
        """Should keep subscriptions when nothing changed."""
        store = FormStore()
        field = FieldBinding(store, "name").subscribe()

        field.rebind(field="name", controlled=False)

        assert field.render_count == 1
        assert field.subscribed

    def test_rebind_unsubscribed_binding_stays_unsubscribed(self):
        """Should only update settings on a binding that is not subscribed."""
        field = FieldBinding(FormStore(), "a")

        field.rebind(field="b")

        assert field.field == "b"
        assert field.subscribed is False
        assert field.render_count == 0

    def test_close_releases_all_topics(self):
        """Should stop reacting to values, properties and errors."""
        store = FormStore({"name": "A"})
        field = FieldBinding(store, "name", controlled=True).subscribe()

        field.close()
        field.close()
        store.set({"name": "B"})
        store.set_field_meta("name", "touched", True)
        store.set_errors({"name": "bad"})

        assert field.subscribed is False
        assert field.value == "A"
        assert field.meta == {}
        assert field.error is None
        assert field.render_count == 1

    def test_on_render_receives_binding(self):
        """Should call on_render with the binding itself."""
        seen = []
        store = FormStore()
        field = FieldBinding(store, "name", controlled=True, on_render=seen.append).subscribe()

        store.set({"name": "x"})

        assert seen == [field, field]

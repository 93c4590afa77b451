"""Test suite for formstore.

This package contains tests for:
- Shallow equality helpers and the notification bus
- FormStore mutators, copy semantics and emission suppression
- The validation pipeline and the JSON Schema validator
- Form-level and field-level bindings
- Integration scenarios through FormScope
"""

"""Validator capability and JSON Schema adapter for formstore.

A FormStore does not validate anything itself. It calls an injected validator
with the current values and reshapes the failure it raises into an error map.
This module defines that capability (the Validator protocol) and ships one
implementation, JsonSchemaValidator, built on the jsonschema library.

Any object with a compatible ``validate`` method can be used as a store schema,
including validators whose ``validate`` is synchronous.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional

import jsonschema
from jsonschema import Draft7Validator
from typing_extensions import Protocol, runtime_checkable

from formstore.errors import FieldError, ValidationFailure
from formstore.types import FieldErrorCode, Values

logger = logging.getLogger(__name__)


@runtime_checkable
class Validator(Protocol):
    """Asynchronous validation capability consumed by FormStore.

    ``validate`` returns normally when the values are valid and raises
    ValidationFailure (or any exception exposing an ``inner`` list of
    ``{path, message}`` entries) when they are not. With ``abort_early``
    false, every field error must be reported, not only the first.
    """

    def validate(self, values: Values, abort_early: bool = False) -> Optional[Awaitable[Any]]:
        ...


class JsonSchemaValidator:
    """JSON Schema validator for form values.

    Wraps the jsonschema library and translates its errors into FieldError
    objects with dot-notation paths, error codes and readable messages.

    Attributes:
        schema: The JSON Schema definition to validate against
        validator: The underlying jsonschema validator instance

    Examples:
        >>> import asyncio
        >>> schema = {
        ...     'type': 'object',
        ...     'properties': {'name': {'type': 'string', 'maxLength': 5}},
        ...     'required': ['name']
        ... }
        >>> v = JsonSchemaValidator(schema)
        >>> asyncio.run(v.validate({'name': 'Alice'}))
        >>> v.collect({})
        [FieldError(path='name', message="Field 'name' is required", code=<FieldErrorCode.REQUIRED: 'required'>)]
    """

    def __init__(self, schema: Dict[str, Any]) -> None:
        """Initialize the validator with a JSON Schema.

        Args:
            schema: A JSON Schema definition (Draft 7 or compatible)

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema
        Draft7Validator.check_schema(schema)
        self.validator = Draft7Validator(schema)

    async def validate(self, values: Values, abort_early: bool = False) -> None:
        """Validate form values against the schema.

        Args:
            values: Current form values
            abort_early: Stop at the first error instead of collecting all

        Raises:
            ValidationFailure: If any field is invalid, carrying every
                translated error in schema iteration order
        """
        errors = self.collect(values, abort_early=abort_early)
        await asyncio.sleep(0)
        if errors:
            logger.debug("Schema validation failed with %d error(s)", len(errors))
            raise ValidationFailure(errors)

    def collect(self, values: Values, abort_early: bool = False) -> List[FieldError]:
        """Synchronously collect translated errors for the given values.

        Args:
            values: Form values to validate
            abort_early: Return after the first error

        Returns:
            List of FieldError objects (empty if valid)
        """
        errors: List[FieldError] = []
        for error in self.validator.iter_errors(values):
            errors.append(self._translate_error(error))
            if abort_early:
                break
        return errors

    def _translate_error(self, error: jsonschema.ValidationError) -> FieldError:
        """Translate a jsonschema ValidationError into a FieldError.

        Error mapping:
            - 'required' property errors -> REQUIRED, at the missing property's path
            - 'type' errors -> INVALID_TYPE
            - 'format' and 'pattern' errors -> INVALID_FORMAT
            - 'enum', 'const' and numeric range errors -> INVALID_VALUE
            - 'minLength' errors -> TOO_SHORT
            - 'maxLength' errors -> TOO_LONG
            - Other errors -> CUSTOM, carrying jsonschema's own message
        """
        path = ".".join(str(p) for p in error.path)

        if error.validator == "required":
            # jsonschema reports "'<prop>' is a required property"
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            full_path = f"{path}.{missing_prop}" if path else missing_prop
            return FieldError(
                path=full_path,
                message=f"Field '{full_path}' is required",
                code=FieldErrorCode.REQUIRED,
            )

        if error.validator == "type":
            return FieldError(
                path=path,
                message=f"Field '{path}' must be of type {error.validator_value}",
                code=FieldErrorCode.INVALID_TYPE,
            )

        if error.validator == "format":
            return FieldError(
                path=path,
                message=f"Field '{path}' must be a valid {error.validator_value}",
                code=FieldErrorCode.INVALID_FORMAT,
            )

        if error.validator == "pattern":
            return FieldError(
                path=path,
                message=f"Field '{path}' does not match pattern: {error.validator_value}",
                code=FieldErrorCode.INVALID_FORMAT,
            )

        if error.validator in ("enum", "const"):
            return FieldError(
                path=path,
                message=f"Field '{path}' must be one of: {error.validator_value}",
                code=FieldErrorCode.INVALID_VALUE,
            )

        if error.validator == "minLength":
            return FieldError(
                path=path,
                message=f"Field '{path}' must be at least {error.validator_value} characters",
                code=FieldErrorCode.TOO_SHORT,
            )

        if error.validator == "maxLength":
            return FieldError(
                path=path,
                message=f"Field '{path}' must be at most {error.validator_value} characters",
                code=FieldErrorCode.TOO_LONG,
            )

        if error.validator in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
            return FieldError(
                path=path,
                message=f"Field '{path}' violates {error.validator} constraint: {error.validator_value}",
                code=FieldErrorCode.INVALID_VALUE,
            )

        return FieldError(
            path=path,
            message=f"Field '{path}' validation failed: {error.message}",
            code=FieldErrorCode.CUSTOM,
        )


__all__ = [
    "Validator",
    "JsonSchemaValidator",
]

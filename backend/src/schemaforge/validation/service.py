"""Instance validation service.

Validates a candidate record against an object definition and returns a
structured, field-addressable result. Data violations are always returned,
never raised; configuration errors always propagate.
"""

import logging
from typing import Any

from schemaforge.metadata.types import FieldDefinition, ObjectDefinition
from schemaforge.validation.builder import SchemaBuilder
from schemaforge.validation.registry import (
    CustomPredicate,
    CustomValidatorRegistry,
    default_registry,
)
from schemaforge.validation.schema import FieldSchema, ObjectSchema
from schemaforge.validation.types import (
    FieldError,
    SchemaValidationError,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class ValidationService:
    """Validates instance data against object and field metadata.

    Example:
        service = ValidationService()
        service.register_custom_validator("isEven", lambda v: v % 2 == 0)

        result = await service.validate_instance(obj, fields, {"count": 3})
        if not result.valid:
            for error in result.errors:
                print(error.field, error.message)
    """

    def __init__(
        self,
        registry: CustomValidatorRegistry | None = None,
        *,
        strict_field_refs: bool = False,
    ):
        self.registry = registry if registry is not None else default_registry
        self.builder = SchemaBuilder(self.registry, strict_field_refs=strict_field_refs)

    def build_field_schema(self, field: FieldDefinition) -> FieldSchema:
        return self.builder.field_schema(field)

    def build_object_schema(
        self,
        obj: ObjectDefinition,
        fields: list[FieldDefinition],
    ) -> ObjectSchema:
        return self.builder.object_schema(obj, fields)

    def register_custom_validator(self, name: str, predicate: CustomPredicate) -> None:
        self.registry.register(name, predicate)

    async def validate_instance(
        self,
        obj: ObjectDefinition,
        fields: list[FieldDefinition],
        data: dict[str, Any] | None,
    ) -> ValidationResult:
        """Validate ``data`` against ``obj``, reporting every violation.

        Args:
            obj: The object definition whose field references drive validation
            fields: Field definitions the object's references resolve against
            data: Flat mapping of field short name to raw value

        Returns:
            ValidationResult with one FieldError per violation, ordered by the
            object's field order

        Raises:
            ConfigurationError: If the metadata cannot be built into a schema
        """
        schema = self.build_object_schema(obj, fields)

        try:
            await schema.validate(data)
        except SchemaValidationError as e:
            errors = [FieldError.from_violation(v) for v in e.violations]
            logger.debug(
                "Record for '%s' failed validation with %d error(s)",
                obj.short_name,
                len(errors),
            )
            return ValidationResult.from_errors(errors)

        return ValidationResult(valid=True)


# Process-wide service bound to the default registry.
validation_service = ValidationService()

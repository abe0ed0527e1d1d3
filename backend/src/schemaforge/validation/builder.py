"""Schema builder: turns field and object metadata into executable schemas."""

import logging

from schemaforge.metadata.types import FieldDatatype, FieldDefinition, ObjectDefinition
from schemaforge.validation.registry import CustomValidatorRegistry, default_registry
from schemaforge.validation.rules import apply_rule, is_email, is_url
from schemaforge.validation.schema import (
    FieldSchema,
    ObjectSchema,
    any_schema,
    coerce_boolean,
    coerce_date,
    coerce_number,
    coerce_string,
    coerce_string_list,
    coerce_time,
)
from schemaforge.validation.types import SchemaCategory, UnknownFieldError

logger = logging.getLogger(__name__)


def _string() -> FieldSchema:
    return FieldSchema(SchemaCategory.STRING, "Must be a string", coerce_string)


def _date() -> FieldSchema:
    return FieldSchema(SchemaCategory.DATE, "Must be a valid date", coerce_date)


def base_schema(datatype: FieldDatatype | str) -> FieldSchema:
    """Select the base shape for a datatype.

    Unrecognized datatypes get an unconstrained schema that accepts anything.
    """
    datatype = FieldDatatype.parse(datatype)

    if datatype in (FieldDatatype.TEXT, FieldDatatype.TEXT_AREA, FieldDatatype.SINGLE_SELECT):
        return _string()
    if datatype == FieldDatatype.EMAIL:
        return _string().with_check("email", "Must be a valid email address", is_email)
    if datatype == FieldDatatype.URL:
        return _string().with_check("url", "Must be a valid URL", is_url)
    if datatype == FieldDatatype.NUMBER:
        return FieldSchema(SchemaCategory.NUMBER, "Must be a valid number", coerce_number)
    if datatype == FieldDatatype.BOOLEAN:
        return FieldSchema(SchemaCategory.BOOLEAN, "Must be a valid boolean", coerce_boolean)
    if datatype in (FieldDatatype.DATE, FieldDatatype.DATETIME):
        return _date()
    if datatype == FieldDatatype.TIME:
        return FieldSchema(SchemaCategory.DATE, "Must be a valid date", coerce_time)
    if datatype == FieldDatatype.MULTI_SELECT:
        return FieldSchema(SchemaCategory.ARRAY, "Must be a list of strings", coerce_string_list)

    logger.debug("Unknown datatype %r, using unconstrained schema", datatype)
    return any_schema()


class SchemaBuilder:
    """Builds field and object schemas against a custom validator registry.

    Building has no side effects: equal metadata always yields behaviorally
    equivalent schemas, so schemas are rebuilt per call rather than cached.

    Args:
        registry: Registry CUSTOM rules resolve against (default: process-wide)
        strict_field_refs: Raise UnknownFieldError for object field references
            that do not resolve, instead of skipping them
    """

    def __init__(
        self,
        registry: CustomValidatorRegistry | None = None,
        *,
        strict_field_refs: bool = False,
    ):
        self.registry = registry if registry is not None else default_registry
        self.strict_field_refs = strict_field_refs

    def field_schema(self, field: FieldDefinition) -> FieldSchema:
        """Build the schema for one field.

        The result is always optional; mandatory-ness belongs to the object
        that uses the field, so the field's own ``mandatory`` is not consulted.

        Raises:
            ConfigurationError: If a rule cannot be built (e.g. unregistered
                custom validator)
        """
        schema = base_schema(field.datatype)
        for rule in field.validation_rules:
            schema = apply_rule(schema, rule, field.datatype, registry=self.registry)
        return schema.optional()

    def object_schema(
        self,
        obj: ObjectDefinition,
        fields: list[FieldDefinition],
    ) -> ObjectSchema:
        """Build the composite schema for an object.

        Each referenced field gets its field schema, made required with
        ``"{displayName} is required"`` when the object marks it mandatory.
        """
        by_name = {f.short_name: f for f in fields}
        shape: dict[str, FieldSchema] = {}

        for ref in obj.fields:
            field = by_name.get(ref.field_short_name)
            if field is None:
                if self.strict_field_refs:
                    raise UnknownFieldError(obj.short_name, ref.field_short_name)
                logger.warning(
                    "Object '%s' references unknown field '%s', skipping",
                    obj.short_name,
                    ref.field_short_name,
                )
                continue

            schema = self.field_schema(field)
            if ref.mandatory:
                schema = schema.required(f"{field.display_name} is required")
            shape[field.short_name] = schema

        logger.debug("Built schema for object '%s' with %d field(s)", obj.short_name, len(shape))
        return ObjectSchema(fields=shape)

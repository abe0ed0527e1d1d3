"""schemaforge validation engine.

Turns declarative field/object metadata into executable schemas:
- Schema builder: datatype → base schema, rules folded in declared order
- Rule engine: category-aware narrowing, incompatible rules are inert
- Custom validator registry: named predicates resolved at build time
- Validation service: runs every field, returns all errors at once

Usage:
    from schemaforge.validation import (
        ValidationService,
        register_custom_validator,
    )

    # At application startup
    register_custom_validator("isEven", lambda v: v % 2 == 0)

    # Per request
    result = await ValidationService().validate_instance(obj, fields, data)
"""

from schemaforge.validation.builder import SchemaBuilder, base_schema
from schemaforge.validation.registry import (
    CustomPredicate,
    CustomValidatorRegistry,
    custom_validator,
    default_registry,
    register_custom_validator,
)
from schemaforge.validation.rules import apply_rule, default_message, is_applicable
from schemaforge.validation.schema import Check, FieldSchema, ObjectSchema
from schemaforge.validation.service import ValidationService, validation_service
from schemaforge.validation.types import (
    ConfigurationError,
    CustomValidatorNotFoundError,
    FieldError,
    InvalidRuleError,
    SchemaCategory,
    SchemaValidationError,
    UnknownFieldError,
    ValidationResult,
    Violation,
)

__all__ = [
    # Types
    "ConfigurationError",
    "CustomValidatorNotFoundError",
    "FieldError",
    "InvalidRuleError",
    "SchemaCategory",
    "SchemaValidationError",
    "UnknownFieldError",
    "ValidationResult",
    "Violation",
    # Schemas
    "Check",
    "FieldSchema",
    "ObjectSchema",
    "SchemaBuilder",
    "base_schema",
    # Rules
    "apply_rule",
    "default_message",
    "is_applicable",
    # Registry
    "CustomPredicate",
    "CustomValidatorRegistry",
    "custom_validator",
    "default_registry",
    "register_custom_validator",
    # Service
    "ValidationService",
    "validation_service",
]

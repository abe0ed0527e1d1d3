"""Field and object metadata: model, YAML loader, and linting."""

from schemaforge.metadata.loader import MetadataError, MetadataLoader
from schemaforge.metadata.types import (
    FieldDatatype,
    FieldDefinition,
    ObjectDefinition,
    ObjectFieldRef,
    ValidationRule,
    ValidationType,
)

__all__ = [
    "FieldDatatype",
    "FieldDefinition",
    "MetadataError",
    "MetadataLoader",
    "ObjectDefinition",
    "ObjectFieldRef",
    "ValidationRule",
    "ValidationType",
]

"""Core types for the schemaforge validation engine.

Two error categories exist and never mix:
- Configuration errors: the metadata itself is broken (raised, never collected)
- Data violations: a value was rejected (collected into a ValidationResult)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SchemaCategory(Enum):
    """Value category of a base schema.

    Set once by the schema builder from the field's datatype. The rule engine
    uses it to decide which rules are applicable to a schema.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    ANY = "any"


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigurationError(ValueError):
    """Metadata is broken in a way that prevents building a schema."""


class CustomValidatorNotFoundError(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(f"Custom validator '{name}' not found")
        self.name = name


class InvalidRuleError(ConfigurationError):
    """A rule's parameter cannot be used (bad regex, non-numeric bound)."""


class UnknownFieldError(ConfigurationError):
    def __init__(self, object_name: str, field_name: str):
        super().__init__(
            f"Object '{object_name}' references unknown field '{field_name}'"
        )
        self.object_name = object_name
        self.field_name = field_name


# =============================================================================
# Data violations
# =============================================================================


@dataclass(frozen=True)
class Violation:
    """A single rejected check, as produced by schema execution.

    Attributes:
        path: Field short name the violation belongs to ("" for a bare field schema)
        message: Human-readable message
        value: The raw input value that was rejected
        check: Name of the check that failed (e.g. "required", "min_length")
    """

    path: str
    message: str
    value: Any = None
    check: str = ""


class SchemaValidationError(Exception):
    """Raised by schema execution when one or more checks fail.

    Carries every accumulated violation, not just the first.
    """

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        if len(self.violations) == 1:
            message = self.violations[0].message
        else:
            message = f"{len(self.violations)} errors occurred"
        super().__init__(message)

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]


@dataclass(frozen=True)
class FieldError:
    """A field-addressable error in a ValidationResult."""

    field: str
    message: str
    value: Any = None

    @classmethod
    def from_violation(cls, violation: Violation) -> "FieldError":
        return cls(field=violation.path, message=violation.message, value=violation.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "value": self.value,
        }


@dataclass
class ValidationResult:
    """Result of validating a record against an object definition.

    ``valid`` is True exactly when ``errors`` is empty.
    """

    valid: bool
    errors: list[FieldError] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))

    @property
    def error_fields(self) -> list[str]:
        """Field names with at least one error, in first-seen order."""
        seen: dict[str, None] = {}
        for error in self.errors:
            seen.setdefault(error.field, None)
        return list(seen)

    def errors_for(self, field_name: str) -> list[FieldError]:
        return [e for e in self.errors if e.field == field_name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }

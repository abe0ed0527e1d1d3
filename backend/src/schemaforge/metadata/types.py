"""Declarative metadata model: fields, objects, and validation rules.

Field definitions are reusable across many objects. Objects reference fields
by short name and decide, per reference, whether the field is mandatory in
that object's context. The validation engine only ever reads these records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldDatatype(Enum):
    """Closed set of datatypes a field may declare."""

    TEXT = "text"
    TEXT_AREA = "text_area"
    EMAIL = "email"
    URL = "url"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"

    @classmethod
    def parse(cls, raw: "FieldDatatype | str") -> "FieldDatatype | str":
        """Resolve a datatype name case-insensitively.

        Unrecognized names are returned as-is so the schema builder can fall
        back to an unconstrained shape for them.
        """
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).lower())
        except ValueError:
            return raw


class ValidationType(Enum):
    """Kinds of declarative validation rule."""

    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    MIN_VALUE = "min_value"
    MAX_VALUE = "max_value"
    EMAIL = "email"
    URL = "url"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, raw: "ValidationType | str") -> "ValidationType":
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).lower())


@dataclass(frozen=True)
class ValidationRule:
    """One declarative constraint attached to a field.

    Attributes:
        type: The rule kind
        value: Rule parameter (number for length/value rules, regex source for PATTERN)
        custom_function: Registry key, only meaningful for CUSTOM rules
        message: Optional override for the generated default message
    """

    type: ValidationType
    value: Any = None
    custom_function: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationRule":
        return cls(
            type=ValidationType.parse(data["type"]),
            value=data.get("value"),
            custom_function=data.get("customFunction"),
            message=data.get("message") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type.value}
        if self.value is not None:
            result["value"] = self.value
        if self.custom_function:
            result["customFunction"] = self.custom_function
        if self.message:
            result["message"] = self.message
        return result


@dataclass(frozen=True)
class FieldDefinition:
    short_name: str
    display_name: str
    datatype: FieldDatatype | str
    description: str = ""
    datatype_properties: dict[str, Any] = field(default_factory=dict)
    validation_rules: tuple[ValidationRule, ...] = ()
    mandatory: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldDefinition":
        """Create a FieldDefinition from a camelCase JSON/YAML dict."""
        short_name = data.get("shortName") or data["field"]
        return cls(
            short_name=short_name,
            display_name=data.get("displayName", short_name),
            datatype=FieldDatatype.parse(data.get("datatype", "text")),
            description=data.get("description", ""),
            datatype_properties=dict(data.get("datatypeProperties") or {}),
            validation_rules=tuple(
                ValidationRule.from_dict(r) for r in data.get("validationRules") or []
            ),
            mandatory=bool(data.get("mandatory", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        datatype = (
            self.datatype.value
            if isinstance(self.datatype, FieldDatatype)
            else self.datatype
        )
        return {
            "shortName": self.short_name,
            "displayName": self.display_name,
            "description": self.description,
            "datatype": datatype,
            "datatypeProperties": dict(self.datatype_properties),
            "validationRules": [r.to_dict() for r in self.validation_rules],
            "mandatory": self.mandatory,
        }


@dataclass(frozen=True)
class ObjectFieldRef:
    """A field as used by one object.

    ``mandatory`` here is authoritative for the owning object and is
    independent of the field definition's own ``mandatory`` default.
    """

    field_short_name: str
    mandatory: bool = False
    order: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ObjectFieldRef":
        return cls(
            field_short_name=data.get("fieldShortName") or data["field"],
            mandatory=bool(data.get("mandatory", False)),
            order=int(data.get("order", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fieldShortName": self.field_short_name,
            "mandatory": self.mandatory,
            "order": self.order,
        }


@dataclass(frozen=True)
class ObjectDefinition:
    short_name: str
    display_name: str
    fields: tuple[ObjectFieldRef, ...] = ()
    description: str = ""
    display_properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ObjectDefinition":
        """Create an ObjectDefinition from a camelCase JSON/YAML dict.

        Accepts either ``shortName`` or the YAML-style ``object`` key.
        """
        short_name = data.get("shortName") or data["object"]
        return cls(
            short_name=short_name,
            display_name=data.get("displayName", short_name),
            fields=tuple(ObjectFieldRef.from_dict(f) for f in data.get("fields") or []),
            description=data.get("description", ""),
            display_properties=dict(data.get("displayProperties") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "shortName": self.short_name,
            "displayName": self.display_name,
            "description": self.description,
            "fields": [f.to_dict() for f in self.fields],
            "displayProperties": dict(self.display_properties),
        }

    def field_names(self) -> list[str]:
        return [ref.field_short_name for ref in self.fields]

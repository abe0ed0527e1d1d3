"""Executable schemas built from field and object metadata.

A FieldSchema is immutable: every narrowing operation returns a new schema,
so one base schema can be shared and layered differently per object.

Execution never short-circuits across fields. Within a field, a value that
cannot be coerced to the schema's category reports a single type error;
otherwise every check runs and every failure is reported.
"""

import asyncio
import inspect
import math
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from schemaforge.validation.types import (
    SchemaCategory,
    SchemaValidationError,
    Violation,
)

# A check predicate receives the coerced value and may be sync or async.
Predicate = Callable[[Any], bool | Awaitable[bool]]


# =============================================================================
# Coercion
# =============================================================================


def _identity(value: Any) -> Any:
    return value


def coerce_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not strings")
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    raise TypeError(f"cannot use {type(value).__name__} as a string")


def coerce_number(value: Any) -> int | float | Decimal:
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, (int, Decimal)):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            raise ValueError("NaN is not a number")
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            parsed = float(text)  # raises ValueError for "" and garbage
        if math.isnan(parsed):
            raise ValueError("NaN is not a number")
        return parsed
    raise TypeError(f"cannot use {type(value).__name__} as a number")


_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0"}


def coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
    raise ValueError(f"{value!r} is not a boolean")


def coerce_date(value: Any) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise TypeError(f"cannot use {type(value).__name__} as a date")


def coerce_time(value: Any) -> time:
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return time.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text).time()
    raise TypeError(f"cannot use {type(value).__name__} as a time")


def coerce_string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"cannot use {type(value).__name__} as a list")
    if not all(isinstance(item, str) for item in value):
        raise TypeError("all list items must be strings")
    return list(value)


# =============================================================================
# Field schema
# =============================================================================


@dataclass(frozen=True)
class Check:
    """A named predicate with the message reported when it fails."""

    name: str
    message: str
    test: Predicate


@dataclass(frozen=True)
class FieldSchema:
    """Executable validator for a single value.

    Attributes:
        category: Value category, used by the rule engine's compatibility filter
        type_error: Message reported when the value cannot be coerced
        coerce: Converts a raw value into the category's type; raises
            TypeError or ValueError when it cannot
        checks: Checks run in order against the coerced value
        required_message: When set, absent or empty values are rejected with it
    """

    category: SchemaCategory
    type_error: str = ""
    coerce: Callable[[Any], Any] = _identity
    checks: tuple[Check, ...] = ()
    required_message: str | None = None

    @property
    def is_required(self) -> bool:
        return self.required_message is not None

    def with_check(self, name: str, message: str, test: Predicate) -> "FieldSchema":
        return replace(self, checks=self.checks + (Check(name, message, test),))

    def required(self, message: str) -> "FieldSchema":
        return replace(self, required_message=message)

    def optional(self) -> "FieldSchema":
        return replace(self, required_message=None)

    async def collect(self, value: Any, path: str = "") -> list[Violation]:
        """Run every check and return all violations (empty when valid)."""
        if value is None:
            if self.required_message is not None:
                return [Violation(path, self.required_message, value, "required")]
            return []

        try:
            coerced = self.coerce(value)
        except (TypeError, ValueError):
            return [Violation(path, self.type_error, value, "type")]

        violations: list[Violation] = []
        if self.required_message is not None and coerced == "":
            violations.append(Violation(path, self.required_message, value, "required"))

        for check in self.checks:
            outcome = check.test(coerced)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            if not outcome:
                violations.append(Violation(path, check.message, value, check.name))

        return violations

    async def validate(self, value: Any, path: str = "") -> Any:
        """Validate a value and return its coerced form.

        Raises:
            SchemaValidationError: With every violation, if any check failed
        """
        violations = await self.collect(value, path)
        if violations:
            raise SchemaValidationError(violations)
        return None if value is None else self.coerce(value)

    async def is_valid(self, value: Any) -> bool:
        return not await self.collect(value)


def any_schema() -> FieldSchema:
    return FieldSchema(category=SchemaCategory.ANY)


# =============================================================================
# Object schema
# =============================================================================


@dataclass(frozen=True)
class ObjectSchema:
    """Composite schema keyed by field short name.

    Every field is evaluated, concurrently, and violations are returned in
    the order the fields were declared.
    """

    fields: Mapping[str, FieldSchema] = field(default_factory=dict)
    type_error: str = "Must be an object"

    @property
    def field_names(self) -> list[str]:
        return list(self.fields)

    async def collect(self, data: Any) -> list[Violation]:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            return [Violation("", self.type_error, data, "type")]

        # A raising predicate cancels the remaining fields and propagates as-is
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [
                    tg.create_task(schema.collect(data.get(name), name))
                    for name, schema in self.fields.items()
                ]
        except ExceptionGroup as group:
            raise group.exceptions[0] from None
        return [violation for task in tasks for violation in task.result()]

    async def validate(self, data: Any) -> dict[str, Any]:
        """Validate a record and return it with declared fields coerced.

        Keys not declared by the schema are passed through untouched.

        Raises:
            SchemaValidationError: With every violation across every field
        """
        violations = await self.collect(data)
        if violations:
            raise SchemaValidationError(violations)

        result = dict(data or {})
        for name, schema in self.fields.items():
            if result.get(name) is not None:
                result[name] = schema.coerce(result[name])
        return result

"""Rule application engine.

Narrows a field schema with one declarative rule. Each rule kind applies to
one schema category; a rule declared against an incompatible category (e.g.
MIN_LENGTH on a NUMBER field) is inert and the schema is returned unchanged.
"""

import logging
import re
from decimal import Decimal
from typing import Any

from schemaforge.metadata.types import FieldDatatype, ValidationRule, ValidationType
from schemaforge.validation.registry import CustomValidatorRegistry, default_registry
from schemaforge.validation.schema import FieldSchema
from schemaforge.validation.types import InvalidRuleError, SchemaCategory

logger = logging.getLogger(__name__)


# =============================================================================
# Format Patterns
# =============================================================================

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

# Absolute URL with an explicit scheme
URL_PATTERN = re.compile(
    r"^(https?|ftp)://[^\s/$.?#].[^\s]*$",
    re.IGNORECASE
)


# Format checks pass an empty string; only a required check rejects blanks.
def is_email(value: str) -> bool:
    return value == "" or EMAIL_PATTERN.match(value) is not None


def is_url(value: str) -> bool:
    return value == "" or URL_PATTERN.match(value) is not None


# =============================================================================
# Compatibility
# =============================================================================

_STRING_RULES = frozenset({
    ValidationType.MIN_LENGTH,
    ValidationType.MAX_LENGTH,
    ValidationType.PATTERN,
    ValidationType.EMAIL,
    ValidationType.URL,
})

_NUMERIC_RULES = frozenset({
    ValidationType.MIN_VALUE,
    ValidationType.MAX_VALUE,
})


def is_applicable(rule_type: ValidationType, category: SchemaCategory) -> bool:
    """Whether a rule kind can narrow a schema of the given category."""
    if rule_type in _STRING_RULES:
        return category == SchemaCategory.STRING
    if rule_type in _NUMERIC_RULES:
        return category == SchemaCategory.NUMBER
    return rule_type == ValidationType.CUSTOM


def default_message(rule: ValidationRule) -> str:
    """Generate the message used when a rule carries no override."""
    messages = {
        ValidationType.MIN_LENGTH: f"Minimum length is {rule.value}",
        ValidationType.MAX_LENGTH: f"Maximum length is {rule.value}",
        ValidationType.PATTERN: "Invalid format",
        ValidationType.MIN_VALUE: f"Minimum value is {rule.value}",
        ValidationType.MAX_VALUE: f"Maximum value is {rule.value}",
        ValidationType.EMAIL: "Must be a valid email",
        ValidationType.URL: "Must be a valid URL",
        ValidationType.CUSTOM: "Validation failed",
    }
    return messages[rule.type]


# =============================================================================
# Rule parameters
# =============================================================================


def _numeric_param(rule: ValidationRule) -> int | float | Decimal:
    value: Any = rule.value
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
    raise InvalidRuleError(
        f"Rule '{rule.type.value}' requires a numeric value, got {value!r}"
    )


def _compile_pattern(rule: ValidationRule) -> re.Pattern[str]:
    if not isinstance(rule.value, str):
        raise InvalidRuleError(
            f"Rule 'pattern' requires a regular expression string, got {rule.value!r}"
        )
    try:
        return re.compile(rule.value)
    except re.error as e:
        raise InvalidRuleError(f"Invalid pattern '{rule.value}': {e}") from e


# =============================================================================
# Rule Application
# =============================================================================


def apply_rule(
    schema: FieldSchema,
    rule: ValidationRule,
    datatype: FieldDatatype | str | None = None,
    *,
    registry: CustomValidatorRegistry | None = None,
) -> FieldSchema:
    """Narrow ``schema`` with ``rule``.

    Args:
        schema: The schema to narrow (never mutated)
        rule: The declarative rule
        datatype: The owning field's datatype, for diagnostics only
        registry: Where CUSTOM rules resolve predicates (default: process-wide)

    Returns:
        A narrowed schema, or ``schema`` itself if the rule is inapplicable

    Raises:
        CustomValidatorNotFoundError: CUSTOM rule names an unregistered predicate
        InvalidRuleError: Rule parameter is unusable (bad regex, non-numeric bound)
    """
    if not is_applicable(rule.type, schema.category):
        logger.debug(
            "Skipping %s rule: not applicable to %s field (%s)",
            rule.type.value,
            schema.category.value,
            datatype,
        )
        return schema

    message = rule.message or default_message(rule)
    rule_type = rule.type

    if rule_type == ValidationType.MIN_LENGTH:
        bound = _numeric_param(rule)
        return schema.with_check("min_length", message, lambda v: len(v) >= bound)

    if rule_type == ValidationType.MAX_LENGTH:
        bound = _numeric_param(rule)
        return schema.with_check("max_length", message, lambda v: len(v) <= bound)

    if rule_type == ValidationType.PATTERN:
        pattern = _compile_pattern(rule)
        return schema.with_check(
            "pattern", message, lambda v: pattern.search(v) is not None
        )

    if rule_type == ValidationType.MIN_VALUE:
        bound = _numeric_param(rule)
        return schema.with_check("min_value", message, lambda v: v >= bound)

    if rule_type == ValidationType.MAX_VALUE:
        bound = _numeric_param(rule)
        return schema.with_check("max_value", message, lambda v: v <= bound)

    if rule_type == ValidationType.EMAIL:
        return schema.with_check("email", message, is_email)

    if rule_type == ValidationType.URL:
        return schema.with_check("url", message, is_url)

    # CUSTOM without a function name has nothing to resolve
    if not rule.custom_function:
        return schema
    source = registry if registry is not None else default_registry
    predicate = source.lookup(rule.custom_function)
    return schema.with_check("custom", message, predicate)

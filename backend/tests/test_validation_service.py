"""Tests for instance validation (ValidationService)."""

import asyncio
import dataclasses

import pytest

from schemaforge.metadata.types import (
    FieldDatatype,
    FieldDefinition,
    ObjectDefinition,
    ObjectFieldRef,
    ValidationRule,
    ValidationType,
)
from schemaforge.validation import (
    CustomValidatorNotFoundError,
    CustomValidatorRegistry,
    FieldError,
    ValidationResult,
    ValidationService,
    default_registry,
    validation_service,
)


@pytest.fixture
def registry():
    return CustomValidatorRegistry()


@pytest.fixture
def service(registry):
    return ValidationService(registry)


def make_field(
    short_name: str,
    datatype: FieldDatatype = FieldDatatype.TEXT,
    rules: list[ValidationRule] | None = None,
    mandatory: bool = False,
    display_name: str | None = None,
) -> FieldDefinition:
    return FieldDefinition(
        short_name=short_name,
        display_name=display_name or short_name.title(),
        datatype=datatype,
        validation_rules=tuple(rules or ()),
        mandatory=mandatory,
    )


def make_object(short_name: str, *refs: tuple[str, bool]) -> ObjectDefinition:
    return ObjectDefinition(
        short_name=short_name,
        display_name=short_name.title(),
        fields=tuple(
            ObjectFieldRef(field_short_name=name, mandatory=mandatory, order=i)
            for i, (name, mandatory) in enumerate(refs, start=1)
        ),
    )


# =============================================================================
# End-to-end
# =============================================================================


class TestEndToEnd:
    """Object with one optional TEXT field limited to 5..10 characters."""

    @pytest.fixture
    def metadata(self):
        field = make_field(
            "test",
            rules=[
                ValidationRule(ValidationType.MIN_LENGTH, 5),
                ValidationRule(ValidationType.MAX_LENGTH, 10),
            ],
        )
        return make_object("test_obj", ("test", False)), [field]

    @pytest.mark.asyncio
    async def test_too_short(self, service, metadata):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, {"test": "ab"})

        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].field == "test"
        assert "5" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_exactly_max_length(self, service, metadata):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, {"test": "abcdefghij"})

        assert result.valid is True
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_absent_optional_field(self, service, metadata):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, {})

        assert result.valid is True
        assert result.errors == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("length", [11, 20, 50])
    async def test_too_long(self, service, metadata, length):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, {"test": "x" * length})

        assert result.valid is False
        assert result.errors[0].message == "Maximum length is 10"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("length", [5, 6, 7, 8, 9, 10])
    async def test_accepts_values_within_bounds(self, service, metadata, length):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, {"test": "y" * length})

        assert result.valid is True


# =============================================================================
# Error details
# =============================================================================


class TestErrorDetails:
    @pytest.mark.asyncio
    async def test_field_level_error_details(self, service):
        field = make_field("age", FieldDatatype.NUMBER, [ValidationRule(ValidationType.MIN_VALUE, 18)])
        obj = make_object("user", ("age", True))

        result = await service.validate_instance(obj, [field], {"age": 15})

        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].field == "age"
        assert result.errors[0].value == 15
        assert "18" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_override_message_used(self, service):
        field = make_field(
            "age",
            FieldDatatype.NUMBER,
            [ValidationRule(ValidationType.MIN_VALUE, 18, message="Must be at least 18")],
        )
        result = await service.validate_instance(make_object("user", ("age", True)), [field], {"age": 15})

        assert result.errors == [FieldError(field="age", message="Must be at least 18", value=15)]

    @pytest.mark.asyncio
    async def test_error_value_is_raw_input(self, service):
        field = make_field("age", FieldDatatype.NUMBER, [ValidationRule(ValidationType.MIN_VALUE, 18)])

        result = await service.validate_instance(make_object("user", ("age", False)), [field], {"age": "15"})

        assert result.errors[0].value == "15"

    @pytest.mark.asyncio
    async def test_required_error_message(self, service):
        field = make_field("email", FieldDatatype.EMAIL, display_name="Email")

        result = await service.validate_instance(make_object("user", ("email", True)), [field], {})

        assert result.errors == [FieldError(field="email", message="Email is required", value=None)]

    @pytest.mark.asyncio
    async def test_to_dict(self, service):
        field = make_field("name", display_name="Name")
        result = await service.validate_instance(make_object("user", ("name", True)), [field], {})

        assert result.to_dict() == {
            "valid": False,
            "errors": [{"field": "name", "message": "Name is required", "value": None}],
        }


# =============================================================================
# Completeness and agreement
# =============================================================================


class TestCompleteness:
    @pytest.fixture
    def metadata(self):
        fields = [
            make_field("name", rules=[ValidationRule(ValidationType.MIN_LENGTH, 3)]),
            make_field("email", FieldDatatype.EMAIL),
            make_field("age", FieldDatatype.NUMBER, [ValidationRule(ValidationType.MAX_VALUE, 120)]),
            make_field("website", FieldDatatype.URL),
        ]
        obj = make_object("person", ("name", True), ("email", True), ("age", False), ("website", False))
        return obj, fields

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "record,expected_fields",
        [
            ({"name": "Ada", "email": "ada@example.com"}, []),
            ({"name": "A", "email": "ada@example.com"}, ["name"]),
            ({"name": "A", "email": "nope"}, ["name", "email"]),
            ({"email": "nope", "age": 200}, ["name", "email", "age"]),
            ({"name": "", "email": "", "age": "old", "website": "nowhere"}, ["name", "email", "age", "website"]),
        ],
    )
    async def test_every_violating_field_reported(self, service, metadata, record, expected_fields):
        obj, fields = metadata
        result = await service.validate_instance(obj, fields, record)

        assert result.error_fields == expected_fields
        assert len(result.errors) >= len(expected_fields)
        assert result.valid is (len(result.errors) == 0)

    @pytest.mark.asyncio
    async def test_errors_follow_object_field_order(self, service, metadata):
        obj, fields = metadata
        record = {"website": "nowhere", "age": 500, "email": "nope", "name": "A"}

        result = await service.validate_instance(obj, list(reversed(fields)), record)

        assert [e.field for e in result.errors] == ["name", "email", "age", "website"]

    @pytest.mark.asyncio
    async def test_multiple_errors_on_one_field(self, service):
        field = make_field(
            "code",
            rules=[
                ValidationRule(ValidationType.MIN_LENGTH, 5),
                ValidationRule(ValidationType.PATTERN, "^[0-9]+$"),
            ],
        )
        result = await service.validate_instance(make_object("thing", ("code", True)), [field], {"code": ""})

        assert [e.message for e in result.errors] == [
            "Code is required",
            "Minimum length is 5",
            "Invalid format",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [None, {}])
    async def test_missing_record_treated_as_empty(self, service, data):
        field = make_field("name", display_name="Name")
        result = await service.validate_instance(make_object("user", ("name", True)), [field], data)

        assert result.error_fields == ["name"]

    @pytest.mark.asyncio
    async def test_non_mapping_record_reported_not_raised(self, service):
        field = make_field("name")
        result = await service.validate_instance(make_object("user", ("name", True)), [field], "oops")

        assert result.valid is False
        assert result.errors == [FieldError(field="", message="Must be an object", value="oops")]


# =============================================================================
# Propagation and overrides
# =============================================================================


class TestRulePropagation:
    @pytest.mark.asyncio
    async def test_shared_field_rejects_in_every_object(self, service):
        zip_code = make_field("zip", rules=[ValidationRule(ValidationType.PATTERN, r"^\d{5}$")])
        billing = make_object("billing", ("zip", False))
        shipping = make_object("shipping", ("zip", False))

        for obj in (billing, shipping):
            result = await service.validate_instance(obj, [zip_code], {"zip": "ABCDE"})
            assert result.errors == [FieldError(field="zip", message="Invalid format", value="ABCDE")]

    @pytest.mark.asyncio
    async def test_editing_field_rules_changes_every_object(self, service):
        zip_code = make_field("zip")
        billing = make_object("billing", ("zip", False))
        shipping = make_object("shipping", ("zip", False))

        for obj in (billing, shipping):
            assert (await service.validate_instance(obj, [zip_code], {"zip": "ABCDE"})).valid

        edited = dataclasses.replace(
            zip_code, validation_rules=(ValidationRule(ValidationType.PATTERN, r"^\d{5}$"),)
        )

        for obj in (billing, shipping):
            result = await service.validate_instance(obj, [edited], {"zip": "ABCDE"})
            assert result.error_fields == ["zip"]


class TestMandatoryOverride:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", [{}, {"nickname": None}, {"nickname": ""}])
    async def test_mandatory_in_one_object_optional_in_another(self, service, missing):
        nickname = make_field("nickname", mandatory=False, display_name="Nickname")
        strict = make_object("strict", ("nickname", True))
        relaxed = make_object("relaxed", ("nickname", False))

        strict_result = await service.validate_instance(strict, [nickname], missing)
        relaxed_result = await service.validate_instance(relaxed, [nickname], missing)

        assert strict_result.errors[0] == FieldError("nickname", "Nickname is required", missing.get("nickname"))
        if missing.get("nickname") == "":
            # An empty string is present, so only the required check can fail
            assert relaxed_result.valid
        else:
            assert relaxed_result == ValidationResult(valid=True, errors=[])


class TestCompatibilityFilter:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [1, 12345678, -3, 0.5])
    async def test_string_rules_on_number_field_are_inert(self, service, value):
        field = make_field(
            "count",
            FieldDatatype.NUMBER,
            [
                ValidationRule(ValidationType.MIN_LENGTH, 5),
                ValidationRule(ValidationType.MAX_LENGTH, 1),
                ValidationRule(ValidationType.PATTERN, "^never$"),
            ],
        )
        result = await service.validate_instance(make_object("stats", ("count", False)), [field], {"count": value})

        assert result.valid is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["", "a", "zzzzzzzzzz"])
    async def test_numeric_rules_on_text_field_are_inert(self, service, value):
        field = make_field(
            "label",
            rules=[
                ValidationRule(ValidationType.MIN_VALUE, 100),
                ValidationRule(ValidationType.MAX_VALUE, -100),
            ],
        )
        result = await service.validate_instance(make_object("tags", ("label", False)), [field], {"label": value})

        assert result.valid is True


# =============================================================================
# Custom validators and error propagation
# =============================================================================


class TestCustomValidators:
    @pytest.mark.asyncio
    async def test_register_and_use(self, service):
        service.register_custom_validator("isEven", lambda v: isinstance(v, int) and v % 2 == 0)
        field = make_field(
            "evenNumber",
            FieldDatatype.NUMBER,
            [ValidationRule(ValidationType.CUSTOM, custom_function="isEven", message="Must be even")],
        )
        obj = make_object("numbers", ("evenNumber", False))

        assert (await service.validate_instance(obj, [field], {"evenNumber": 4})).valid
        result = await service.validate_instance(obj, [field], {"evenNumber": 3})
        assert result.errors == [FieldError("evenNumber", "Must be even", 3)]

    @pytest.mark.asyncio
    async def test_async_validators_run_for_every_field(self, service):
        seen = []

        async def not_taken(value):
            await asyncio.sleep(0)
            seen.append(value)
            return value != "taken"

        service.register_custom_validator("notTaken", not_taken)
        rule = ValidationRule(ValidationType.CUSTOM, custom_function="notTaken", message="Already taken")
        fields = [make_field("username", rules=[rule]), make_field("handle", rules=[rule])]
        obj = make_object("account", ("username", True), ("handle", True))

        result = await service.validate_instance(obj, fields, {"username": "taken", "handle": "taken"})

        assert result.error_fields == ["username", "handle"]
        assert sorted(seen) == ["taken", "taken"]

    @pytest.mark.asyncio
    async def test_unregistered_validator_raises(self, service):
        field = make_field("x", rules=[ValidationRule(ValidationType.CUSTOM, custom_function="nonExistent")])

        with pytest.raises(CustomValidatorNotFoundError, match="nonExistent"):
            await service.validate_instance(make_object("o", ("x", False)), [field], {"x": "1"})

    @pytest.mark.asyncio
    async def test_predicate_exception_propagates(self, service):
        def broken(value):
            raise RuntimeError("validator bug")

        service.register_custom_validator("broken", broken)
        field = make_field("x", rules=[ValidationRule(ValidationType.CUSTOM, custom_function="broken")])

        with pytest.raises(RuntimeError, match="validator bug"):
            await service.validate_instance(make_object("o", ("x", False)), [field], {"x": "1"})

    @pytest.mark.asyncio
    async def test_predicate_exception_cancels_other_fields(self, service):
        cancelled = []

        async def slow(value):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(value)
                raise
            return True

        def broken(value):
            raise RuntimeError("validator bug")

        service.register_custom_validator("slow", slow)
        service.register_custom_validator("broken", broken)
        fields = [
            make_field("a", rules=[ValidationRule(ValidationType.CUSTOM, custom_function="slow")]),
            make_field("b", rules=[ValidationRule(ValidationType.CUSTOM, custom_function="broken")]),
        ]
        obj = make_object("o", ("a", False), ("b", False))

        with pytest.raises(RuntimeError, match="validator bug"):
            await service.validate_instance(obj, fields, {"a": "1", "b": "2"})

        assert cancelled == ["1"]

    def test_service_registry_is_isolated(self, service, registry):
        service.register_custom_validator("localOnly", lambda v: True)

        assert registry.is_registered("localOnly")
        assert not default_registry.is_registered("localOnly")

    def test_module_singleton_uses_default_registry(self):
        assert validation_service.registry is default_registry


class TestValidationResult:
    def test_from_errors(self):
        assert ValidationResult.from_errors([]).valid is True
        result = ValidationResult.from_errors([FieldError("a", "bad", 1)])
        assert result.valid is False
        assert result.errors_for("a") == [FieldError("a", "bad", 1)]
        assert result.errors_for("b") == []

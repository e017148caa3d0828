"""Unit tests for the validation engine.

Tests cover:
- Rule order (required first, then length, type, custom)
- Number and date parsing
- Custom validators returning True, a message, or something else
- validate_form visiting every field
"""

import pytest

from formdesk.fields import FieldDefinition, FieldRegistry
from formdesk.types import DataType, FieldErrorCode
from formdesk.validation import (
    DATE_MESSAGE,
    NUMBER_MESSAGE,
    REQUIRED_MESSAGE,
    TOO_LONG_MESSAGE,
    validate,
    validate_field,
    validate_form,
)


class TestRequired:
    """Test the required rule."""

    def test_required_empty_fails(self):
        """Should fail with the required message."""
        result = validate(FieldDefinition(name="A", required=True), "")
        assert result.valid is False
        assert result.message == REQUIRED_MESSAGE
        assert result.code == FieldErrorCode.REQUIRED

    def test_required_none_fails(self):
        """None counts as empty."""
        assert validate(FieldDefinition(name="A", required=True), None).code == FieldErrorCode.REQUIRED

    def test_required_wins_over_every_other_rule(self):
        """No other rule runs before required, even the custom validator."""
        calls = []

        def custom(value):
            calls.append(value)
            return "custom ran"

        definition = FieldDefinition(
            name="A",
            required=True,
            data_type=DataType.NUMBER,
            max_length=0,
            custom_validator=custom,
        )
        result = validate(definition, "")

        assert result.message == REQUIRED_MESSAGE
        assert calls == []

    def test_optional_empty_passes(self):
        """An optional empty field is valid for every data type."""
        for data_type in DataType:
            assert validate(FieldDefinition(name="A", data_type=data_type), "").valid


class TestMaxLength:
    """Test the max_length rule."""

    def test_too_long(self):
        result = validate(FieldDefinition(name="A", max_length=3), "abcd")
        assert result.valid is False
        assert result.message == TOO_LONG_MESSAGE
        assert result.code == FieldErrorCode.TOO_LONG

    def test_exact_length_passes(self):
        assert validate(FieldDefinition(name="A", max_length=3), "abc").valid

    def test_length_checked_before_type(self):
        """A long non-number reports length, not type."""
        definition = FieldDefinition(name="A", max_length=2, data_type=DataType.NUMBER)
        assert validate(definition, "abc").code == FieldErrorCode.TOO_LONG


class TestDataTypes:
    """Test number and date parsing."""

    @pytest.mark.parametrize("value", ["0", "42", "-3.5", " 7 ", "1e3", "+.5"])
    def test_valid_numbers(self, value):
        assert validate(FieldDefinition(name="N", data_type=DataType.NUMBER), value).valid

    @pytest.mark.parametrize("value", ["abc", "12a", "nan", "inf", "1_000", "0x1F", "1e999"])
    def test_invalid_numbers(self, value):
        result = validate(FieldDefinition(name="N", data_type=DataType.NUMBER), value)
        assert result.valid is False
        assert result.message == NUMBER_MESSAGE
        assert result.code == FieldErrorCode.INVALID_TYPE

    @pytest.mark.parametrize("value", ["2024-02-29", "03/15/2023", "15 March 2023"])
    def test_valid_dates(self, value):
        assert validate(FieldDefinition(name="D", data_type=DataType.DATE), value).valid

    @pytest.mark.parametrize("value", ["not a date", "2023-02-30", "31/31/2023", "Monday", "March", "12.5", "2023"])
    def test_invalid_dates(self, value):
        result = validate(FieldDefinition(name="D", data_type=DataType.DATE), value)
        assert result.valid is False
        assert result.message == DATE_MESSAGE

    def test_strings_accept_anything(self):
        assert validate(FieldDefinition(name="S"), "anything at all").valid


class TestCustomValidator:
    """Test custom validators."""

    def test_true_is_valid(self):
        definition = FieldDefinition(name="A", custom_validator=lambda v: True)
        assert validate(definition, "x").valid

    def test_message_used_verbatim(self):
        definition = FieldDefinition(name="A", custom_validator=lambda v: "must start with E")
        result = validate(definition, "x")
        assert result.valid is False
        assert result.message == "must start with E"
        assert result.code == FieldErrorCode.CUSTOM

    def test_false_gets_generic_message(self):
        definition = FieldDefinition(name="A", custom_validator=lambda v: False)
        result = validate(definition, "x")
        assert result.valid is False
        assert result.message != ""

    def test_custom_runs_after_type_check(self):
        """A value that fails the type rule never reaches the custom validator."""
        calls = []
        definition = FieldDefinition(
            name="A",
            data_type=DataType.NUMBER,
            custom_validator=lambda v: calls.append(v) or True,
        )
        assert validate(definition, "abc").code == FieldErrorCode.INVALID_TYPE
        assert calls == []


class TestValidateForm:
    """Test validate_field and validate_form."""

    def test_validate_field_records_outcome(self):
        registry = FieldRegistry()
        registry.register(FieldDefinition(name="A", required=True))

        validate_field(registry, "A")
        state = registry.get("A")
        assert state.valid is False
        assert state.error_message == REQUIRED_MESSAGE

        registry.set("A", "x")
        validate_field(registry, "A")
        assert state.valid is True
        assert state.error_message == ""

    def test_validate_form_visits_every_field(self):
        """Every invalid field is marked, not just the first."""
        registry = FieldRegistry()
        registry.register(FieldDefinition(name="A", required=True))
        registry.register(FieldDefinition(name="B", required=True))
        registry.register(FieldDefinition(name="C"))

        result = validate_form(registry)

        assert result.is_valid is False
        assert result.invalid_fields == ["A", "B"]
        assert registry.get("A").valid is False
        assert registry.get("B").valid is False
        assert registry.get("C").valid is True

    def test_validate_form_all_valid(self):
        registry = FieldRegistry()
        registry.register(FieldDefinition(name="A", required=True))
        registry.set("A", "x")

        result = validate_form(registry)
        assert result.is_valid is True
        assert result.errors == []
        assert result.to_dict() == {"isValid": True, "errors": []}

    def test_failure_serialization(self):
        registry = FieldRegistry()
        registry.register(FieldDefinition(name="A", max_length=1))
        registry.set("A", "xy")

        failure = validate_form(registry).errors[0]
        assert failure.to_dict() == {
            "field": "A",
            "code": "too_long",
            "message": TOO_LONG_MESSAGE,
            "received": "xy",
        }

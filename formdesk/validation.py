"""Field validation engine for formdesk.

Validation is a fixed chain of rules evaluated against a field definition and
a candidate value. The first failing rule wins and later rules are not run:

1. required    - an empty value fails a required field
2. max_length  - the value is longer than the limit
3. number      - a non-empty value does not parse as a finite number
4. date        - a non-empty value does not parse as a calendar date
5. custom      - the definition's custom validator returns False or a message

``validate`` is pure. ``validate_field`` and ``validate_form`` write each result
back onto the registry so the presentation layer can show per-field errors.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from formdesk.errors import ValidationFailure
from formdesk.fields import FieldDefinition, FieldRegistry
from formdesk.types import DataType, FieldErrorCode


REQUIRED_MESSAGE = "field is required"
TOO_LONG_MESSAGE = "exceeds maximum length"
NUMBER_MESSAGE = "must be a valid number"
DATE_MESSAGE = "must be a valid date"
CUSTOM_MESSAGE = "failed custom validation"

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value.

    Attributes:
        valid: Whether every rule passed
        message: Message of the failing rule ("" when valid)
        code: Code of the failing rule (None when valid)

    Examples:
        >>> validate(FieldDefinition(name="QTY", data_type=DataType.NUMBER), "12.5")
        ValidationResult(valid=True, message='', code=None)
        >>> validate(FieldDefinition(name="QTY", required=True), "").message
        'field is required'
    """
    valid: bool
    message: str = ""
    code: Optional[FieldErrorCode] = None


@dataclass(frozen=True)
class FormValidationResult:
    """Outcome of validating every field of a form.

    Attributes:
        is_valid: True only if every field passed
        errors: One failure per invalid field, in field order
    """
    is_valid: bool
    errors: List[ValidationFailure] = field(default_factory=list)

    @property
    def invalid_fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }


_VALID = ValidationResult(valid=True)


def _is_number(value: str) -> bool:
    text = value.strip()
    if not _NUMBER_PATTERN.match(text):
        return False
    return math.isfinite(float(text))


def _is_date(value: str) -> bool:
    # A partial date ("March", "Monday") resolves differently per default.
    try:
        first = date_parser.parse(value, default=_DATE_DEFAULTS[0])
        second = date_parser.parse(value, default=_DATE_DEFAULTS[1])
    except (ValueError, OverflowError):
        return False
    return first.date() == second.date()


def validate(definition: FieldDefinition, value: Optional[str]) -> ValidationResult:
    """Validate a candidate value against a field definition.

    Args:
        definition: The field's static definition
        value: Candidate value; None is treated as empty

    Returns:
        ValidationResult for the first failing rule, or a valid result
    """
    value = value or ""

    if definition.required and value == "":
        return ValidationResult(False, REQUIRED_MESSAGE, FieldErrorCode.REQUIRED)

    if definition.max_length is not None and len(value) > definition.max_length:
        return ValidationResult(False, TOO_LONG_MESSAGE, FieldErrorCode.TOO_LONG)

    if value:
        if definition.data_type == DataType.NUMBER and not _is_number(value):
            return ValidationResult(False, NUMBER_MESSAGE, FieldErrorCode.INVALID_TYPE)
        if definition.data_type == DataType.DATE and not _is_date(value):
            return ValidationResult(False, DATE_MESSAGE, FieldErrorCode.INVALID_TYPE)

    if definition.custom_validator is not None:
        outcome = definition.custom_validator(value)
        if outcome is True:
            return _VALID
        if isinstance(outcome, str) and outcome:
            return ValidationResult(False, outcome, FieldErrorCode.CUSTOM)
        return ValidationResult(False, CUSTOM_MESSAGE, FieldErrorCode.CUSTOM)

    return _VALID


def validate_field(registry: FieldRegistry, name: str) -> ValidationResult:
    """Validate one registered field and record the outcome on it.

    Raises:
        UnknownFieldError: If the field is not registered
    """
    state = registry.get(name)
    result = validate(state.definition, state.value)
    if result.valid:
        state.mark_valid()
    else:
        state.mark_invalid(result.message)
    return result


def validate_form(registry: FieldRegistry) -> FormValidationResult:
    """Validate every field of the form.

    All fields are visited even after a failure so that each one carries an
    up-to-date ``valid``/``error_message`` pair.
    """
    errors: List[ValidationFailure] = []
    for state in registry:
        result = validate_field(registry, state.name)
        if not result.valid:
            errors.append(
                ValidationFailure(
                    field=state.name,
                    code=result.code or FieldErrorCode.CUSTOM,
                    message=result.message,
                    received=state.value,
                )
            )
    return FormValidationResult(is_valid=not errors, errors=errors)


__all__ = [
    "ValidationResult",
    "FormValidationResult",
    "validate",
    "validate_field",
    "validate_form",
    "REQUIRED_MESSAGE",
    "TOO_LONG_MESSAGE",
    "NUMBER_MESSAGE",
    "DATE_MESSAGE",
    "CUSTOM_MESSAGE",
]

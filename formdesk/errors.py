"""Error types for formdesk.

Errors fall into three groups:

- Setup errors (DuplicateFieldError, UnknownFieldError, EmptyFormError,
  UnknownTriggerError, InvalidModeTransitionError, InvalidDefinitionError)
  are programmer mistakes. They are raised immediately and are not meant to be
  recovered from by the end user.
- ValidationFailure is an expected, per-field outcome. It is never raised;
  it is collected by the validation engine and surfaced through the field's
  error message and the presentation gateway.
- Transport failures (QueryFailure, SaveFailure, LovFailure) wrap whatever the
  injected capabilities raised. The form controller catches them at its
  boundary and routes them through the ON_ERROR trigger.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from formdesk.types import FieldErrorCode, FormMode


class FormError(Exception):
    """Base class for every error raised by formdesk."""


class DuplicateFieldError(FormError):
    """Raised when registering a field name that is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field '{name}' is already registered")


class UnknownFieldError(FormError, KeyError):
    """Raised when addressing a field name that was never registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field '{name}' is not registered")

    def __str__(self) -> str:
        return self.args[0]


class EmptyFormError(FormError):
    """Raised when navigating a form that has no fields."""

    def __init__(self, message: str = "Form has no registered fields"):
        super().__init__(message)


class UnknownTriggerError(FormError):
    """Raised when registering a callback for a name outside TriggerName."""

    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"Unknown trigger '{name}'")


class InvalidModeTransitionError(FormError):
    """Raised when the query-mode state machine is asked for an impossible move.

    Attributes:
        current_mode: Mode before the attempted transition
        target_mode: Mode that was requested
    """

    def __init__(self, current_mode: FormMode, target_mode: FormMode):
        self.current_mode = current_mode
        self.target_mode = target_mode
        super().__init__(
            f"Invalid mode transition: cannot move from "
            f"'{current_mode.value}' to '{target_mode.value}'"
        )


class InvalidDefinitionError(FormError):
    """Raised when a form definition or form config fails schema validation.

    Attributes:
        path: Dot-notation path of the offending entry ("" for the root)
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class TransportFailure(FormError):
    """A collaborator capability failed.

    Attributes:
        cause: The exception raised by the capability, if any
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class QueryFailure(TransportFailure):
    """The form query capability failed."""


class SaveFailure(TransportFailure):
    """The persistence capability failed or rejected the record."""


class LovFailure(TransportFailure):
    """A list-of-values query failed.

    Attributes:
        lov_id: Binding that was being resolved
    """

    def __init__(self, lov_id: str, message: str, cause: Optional[BaseException] = None):
        self.lov_id = lov_id
        super().__init__(message, cause)


@dataclass(frozen=True)
class ValidationFailure:
    """Per-field validation failure.

    Attributes:
        field: Name of the field that failed
        code: Which rule failed
        message: Human-readable message, also stored on the field
        received: The value that was validated

    Examples:
        >>> failure = ValidationFailure(
        ...     field="EMPLOYEES.EMPLOYEE_ID",
        ...     code=FieldErrorCode.REQUIRED,
        ...     message="field is required",
        ...     received="",
        ... )
        >>> failure.to_dict()["code"]
        'required'
    """
    field: str
    code: FieldErrorCode
    message: str
    received: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "field": self.field,
            "code": self.code.value if isinstance(self.code, FieldErrorCode) else self.code,
            "message": self.message,
        }
        if self.received is not None:
            result["received"] = self.received
        return result


__all__ = [
    "FormError",
    "DuplicateFieldError",
    "UnknownFieldError",
    "EmptyFormError",
    "UnknownTriggerError",
    "InvalidModeTransitionError",
    "InvalidDefinitionError",
    "TransportFailure",
    "QueryFailure",
    "SaveFailure",
    "LovFailure",
    "ValidationFailure",
]

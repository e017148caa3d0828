"""Core type definitions for formdesk.

This module defines the fundamental types shared by every formdesk component:
- FormMode: NORMAL data entry vs QUERY (query-by-example) mode
- DataType: Value types a field can be validated against
- TriggerName: Closed vocabulary of lifecycle triggers
- Direction: Focus navigation direction
- FormAction: Commands a key binding can map to
- SaveStatus / QueryStatus / LovStatus: Typed outcomes of the async commands
- FieldErrorCode: Codes carried by per-field validation failures

It also declares the collaborator call signatures (query, LOV query,
persistence) that the form core consumes but never implements.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from typing_extensions import TypeAlias


class FormMode(str, Enum):
    """Form modes.

    NORMAL is the initial mode. QUERY turns field values into search filters;
    save and LOV auto-resolution are disabled while in it.
    """
    NORMAL = "normal"
    QUERY = "query"


class DataType(str, Enum):
    """Value types a field can hold."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class TriggerName(str, Enum):
    """Lifecycle trigger names.

    WHEN_VALIDATE_FIELD is an alias of WHEN_VALIDATE_ITEM: both spellings
    address the same trigger slot.
    """
    WHEN_VALIDATE_ITEM = "WHEN_VALIDATE_ITEM"
    WHEN_VALIDATE_FIELD = "WHEN_VALIDATE_ITEM"
    ENTER_QUERY_MODE = "ENTER_QUERY_MODE"
    AFTER_QUERY = "AFTER_QUERY"
    PRE_UPDATE = "PRE_UPDATE"
    POST_UPDATE = "POST_UPDATE"
    ON_ERROR = "ON_ERROR"

    @classmethod
    def coerce(cls, name: Union[str, "TriggerName"]) -> Optional["TriggerName"]:
        """Resolve a trigger by value or member name, None if unknown.

        Examples:
            >>> TriggerName.coerce("WHEN_VALIDATE_FIELD")
            <TriggerName.WHEN_VALIDATE_ITEM: 'WHEN_VALIDATE_ITEM'>
            >>> TriggerName.coerce("AFTER_SAVE") is None
            True
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        try:
            return cls(name)
        except ValueError:
            return cls.__members__.get(name)


class Direction(str, Enum):
    """Navigation direction through the field order."""
    FORWARD = "forward"
    BACKWARD = "backward"


class FormAction(str, Enum):
    """Commands a key binding may dispatch to."""
    NEXT_FIELD = "next_field"
    PREVIOUS_FIELD = "previous_field"
    ENTER_QUERY = "enter_query"
    EXECUTE_QUERY = "execute_query"
    SAVE = "save"
    CLEAR_FORM = "clear_form"
    LIST_OF_VALUES = "list_of_values"


class SaveStatus(str, Enum):
    """Outcome of a save request."""
    SAVED = "saved"
    NO_CHANGES = "no_changes"
    QUERY_MODE = "query_mode"
    INVALID = "invalid"
    FAILED = "failed"


class QueryStatus(str, Enum):
    """Outcome of an execute-query request."""
    LOADED = "loaded"
    NO_RECORDS = "no_records"
    NOT_IN_QUERY_MODE = "not_in_query_mode"
    FAILED = "failed"


class LovStatus(str, Enum):
    """Outcome of a list-of-values resolution."""
    APPLIED = "applied"
    NO_MATCH = "no_match"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    FAILED = "failed"


class FieldErrorCode(str, Enum):
    """Validation error codes for individual field failures."""
    REQUIRED = "required"
    TOO_LONG = "too_long"
    INVALID_TYPE = "invalid_type"
    CUSTOM = "custom"


# A result record is either keyed by property name or positional.
Record: TypeAlias = Union[Mapping[str, Any], Sequence[Any]]

QueryCapability: TypeAlias = Callable[[Mapping[str, str]], Awaitable[Sequence[Record]]]
"""Form query: filter parameters in, matching records out."""

LovQuery: TypeAlias = Callable[[str, Mapping[str, str]], Awaitable[Sequence[Record]]]
"""LOV query: the typed filter value plus the values of the binding's source fields."""

PersistenceCapability: TypeAlias = Callable[[Mapping[str, str]], Awaitable[Optional[bool]]]
"""Save a record. Raising, or returning False, is a failure."""

CustomValidator: TypeAlias = Callable[[str], Union[bool, str]]
"""Returns True when valid, otherwise the message to show."""


__all__ = [
    "FormMode",
    "DataType",
    "TriggerName",
    "Direction",
    "FormAction",
    "SaveStatus",
    "QueryStatus",
    "LovStatus",
    "FieldErrorCode",
    "Record",
    "QueryCapability",
    "LovQuery",
    "PersistenceCapability",
    "CustomValidator",
]

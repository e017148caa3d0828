"""Field definitions and the field registry.

The registry owns every field of one form: its definition, its current value,
the baseline (original) value it is compared against, and its validity. It also
owns the form-wide dirty flag, because every operation that may flip it
(set, reset, load, rebaseline) goes through the registry.

Usage:
    >>> registry = FieldRegistry()
    >>> _ = registry.register(FieldDefinition(name="EMPLOYEES.EMPLOYEE_ID", required=True))
    >>> _ = registry.register(FieldDefinition(name="EMPLOYEES.FIRST_NAME"))
    >>> registry.set("EMPLOYEES.FIRST_NAME", "Ada")
    >>> registry.dirty
    True
    >>> dict(registry.snapshot())
    {'EMPLOYEES.FIRST_NAME': 'Ada'}
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from formdesk.errors import DuplicateFieldError, UnknownFieldError
from formdesk.types import CustomValidator, DataType, LovQuery


@dataclass(frozen=True)
class LovBinding:
    """Binds a list-of-values lookup to a field.

    Either ``mappings`` (record property -> target field) or ``return_items``
    (positional record -> ordered target fields) must be given.

    Attributes:
        lov_id: Identifier of the lookup, used in logs and errors
        query: Capability called with the filter value and source-field values
        mappings: Ordered mapping from result property to target field name
        return_items: Ordered target field names for positional records
        source_fields: Fields whose current values parametrize the query
        columns: Record properties shown in the disambiguation prompt
    """
    lov_id: str
    query: LovQuery
    mappings: Mapping[str, str] = field(default_factory=dict)
    return_items: Tuple[str, ...] = ()
    source_fields: Tuple[str, ...] = ()
    columns: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.mappings and not self.return_items:
            raise ValueError(
                f"LOV '{self.lov_id}' needs either mappings or return_items"
            )
        # Normalise to read-only containers.
        object.__setattr__(self, "mappings", MappingProxyType(dict(self.mappings)))
        object.__setattr__(self, "return_items", tuple(self.return_items))
        object.__setattr__(self, "source_fields", tuple(self.source_fields))
        object.__setattr__(self, "columns", tuple(self.columns))

    @property
    def target_fields(self) -> List[str]:
        """Every field this binding may write, in mapping order."""
        if self.mappings:
            return list(self.mappings.values())
        return list(self.return_items)


@dataclass(frozen=True)
class FieldDefinition:
    """Static description of a form field.

    Attributes:
        name: Unique field name, optionally namespaced as ``BLOCK.FIELD``
        required: Whether an empty value is invalid
        data_type: Type the value must parse as
        max_length: Maximum number of characters, if limited
        lov_binding: List-of-values lookup attached to the field
        custom_validator: Extra check run after the built-in rules
        default_value: Value the field starts with
        label: Display label used in messages
    """
    name: str
    required: bool = False
    data_type: DataType = DataType.STRING
    max_length: Optional[int] = None
    lov_binding: Optional[LovBinding] = None
    custom_validator: Optional[CustomValidator] = None
    default_value: Optional[str] = None
    label: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.name

    @property
    def block(self) -> Optional[str]:
        """Block namespace of the field, if the name carries one."""
        if "." in self.name:
            return self.name.split(".", 1)[0]
        return None


@dataclass
class Field:
    """Runtime state of one registered field.

    ``valid`` is False only together with a non-empty ``error_message``.
    """
    definition: FieldDefinition
    value: str = ""
    original_value: str = ""
    valid: bool = True
    error_message: str = ""

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def changed(self) -> bool:
        return self.value != self.original_value

    def mark_valid(self) -> None:
        self.valid = True
        self.error_message = ""

    def mark_invalid(self, message: str) -> None:
        if not message:
            raise ValueError("an invalid field needs an error message")
        self.valid = False
        self.error_message = message


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class FieldRegistry:
    """Ordered registry of the fields of one form.

    Registration order is the navigation order. The dirty flag is sticky: once
    any field differs from its baseline the form stays dirty until a save
    re-baselines it or a reset/load replaces the baseline.
    """

    def __init__(self) -> None:
        self._fields: Dict[str, Field] = {}
        self.dirty = False

    def register(self, definition: FieldDefinition) -> Field:
        """Register a field and return its runtime state.

        Raises:
            ValueError: If the field name is empty
            DuplicateFieldError: If the name is already registered
        """
        name = definition.name
        if not name or not name.strip():
            raise ValueError("Field name must be a non-empty string")
        if name in self._fields:
            raise DuplicateFieldError(name)

        initial = _as_text(definition.default_value)
        state = Field(definition=definition, value=initial, original_value=initial)
        self._fields[name] = state
        return state

    def get(self, name: str) -> Field:
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(name) from None

    def value_of(self, name: str) -> str:
        return self.get(name).value

    def set(self, name: str, value: Optional[str]) -> None:
        """Store a new value for a field and update the dirty flag.

        Raises:
            UnknownFieldError: If the field is not registered
        """
        self.get(name).value = _as_text(value)
        if not self.dirty and any(f.changed for f in self._fields.values()):
            self.dirty = True

    def snapshot(self) -> Mapping[str, str]:
        """Read-only mapping of every non-empty field value, in field order."""
        return MappingProxyType(
            {name: f.value for name, f in self._fields.items() if f.value != ""}
        )

    def reset(self, to_original: bool = False) -> None:
        """Clear the form.

        With ``to_original`` every field goes back to its baseline; otherwise
        values and baselines are both cleared to "". Validity and dirty are
        cleared in both cases.
        """
        for f in self._fields.values():
            if to_original:
                f.value = f.original_value
            else:
                f.value = ""
                f.original_value = ""
            f.mark_valid()
        self.dirty = False

    def load(self, record: Mapping[str, Any]) -> None:
        """Load a record as the new clean baseline.

        Only keys that name a registered field are applied; fields absent from
        the record keep their current value and baseline.
        """
        for name, value in record.items():
            f = self._fields.get(name)
            if f is None:
                continue
            text = _as_text(value)
            f.value = text
            f.original_value = text
            f.mark_valid()
        self.dirty = False

    def rebaseline(self) -> None:
        """Make every current value the new original, clearing dirty."""
        for f in self._fields.values():
            f.original_value = f.value
        self.dirty = False

    def names(self) -> List[str]:
        return list(self._fields)

    def fields(self) -> List[Field]:
        return list(self._fields.values())

    def invalid_fields(self) -> List[Field]:
        return [f for f in self._fields.values() if not f.valid]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(list(self._fields.values()))

    def __len__(self) -> int:
        return len(self._fields)


__all__ = [
    "LovBinding",
    "FieldDefinition",
    "Field",
    "FieldRegistry",
]

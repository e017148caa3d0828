"""Form configuration: key bindings and user-facing messages.

The defaults reproduce the legacy terminal keyboard:

    Tab / Enter  next field        F7   enter query
    Shift+Tab    previous field    F8   execute query
    F6           clear form        F9   list of values
    F10          save

A configuration can be loaded from a plain (e.g. JSON) mapping; it is checked
against CONFIG_SCHEMA before use.

Usage:
    >>> config = FormConfig.from_dict({"keyBindings": {"Ctrl+S": "save"}})
    >>> config.action_for("s", ["ctrl"])
    <FormAction.SAVE: 'save'>
    >>> config.action_for("F10")
    <FormAction.SAVE: 'save'>
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from jsonschema import Draft7Validator

from formdesk.errors import InvalidDefinitionError
from formdesk.types import FormAction


DEFAULT_KEY_BINDINGS: Dict[str, FormAction] = {
    "Tab": FormAction.NEXT_FIELD,
    "Enter": FormAction.NEXT_FIELD,
    "Shift+Tab": FormAction.PREVIOUS_FIELD,
    "F6": FormAction.CLEAR_FORM,
    "F7": FormAction.ENTER_QUERY,
    "F8": FormAction.EXECUTE_QUERY,
    "F9": FormAction.LIST_OF_VALUES,
    "F10": FormAction.SAVE,
}

DEFAULT_MESSAGES: Dict[str, str] = {
    "saved": "record saved",
    "no_changes": "no changes to save",
    "save_in_query_mode": "cannot save in query mode",
    "invalid_form": "please correct the errors before saving",
    "save_failed": "save failed: {error}",
    "save_rejected": "save was rejected",
    "enter_query": "enter query mode",
    "no_records": "no records found",
    "query_failed": "query failed: {error}",
    "field_invalid": "{label}: {message}",
    "no_lov": "no list of values for {label}",
}

_MODIFIER_ORDER = ("Ctrl", "Alt", "Meta", "Shift")

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "keyBindings": {
            "type": "object",
            "additionalProperties": {"enum": [a.value for a in FormAction]},
        },
        "replaceDefaultBindings": {"type": "boolean"},
        "messages": {
            "type": "object",
            "propertyNames": {"enum": list(DEFAULT_MESSAGES)},
            "additionalProperties": {"type": "string"},
        },
    },
    "additionalProperties": False,
}


def normalize_chord(key: str, modifiers: Iterable[str] = ()) -> str:
    """Build the canonical chord string for a key plus modifiers.

    Modifiers are capitalised and sorted into Ctrl, Alt, Meta, Shift order;
    single-character keys are upper-cased.

    Examples:
        >>> normalize_chord("tab", ["shift"])
        'Shift+Tab'
        >>> normalize_chord("s", ["shift", "ctrl"])
        'Ctrl+Shift+S'
    """
    mods = {m.strip().capitalize() for m in modifiers if m and m.strip()}
    ordered = [m for m in _MODIFIER_ORDER if m in mods] + sorted(mods - set(_MODIFIER_ORDER))
    key = key.strip()
    key = key.upper() if len(key) == 1 else key[:1].upper() + key[1:]
    return "+".join(ordered + [key])


def _parse_chord(chord: str) -> str:
    *mods, key = chord.split("+")
    return normalize_chord(key, mods)


@dataclass
class FormConfig:
    """Runtime configuration of a form controller.

    Attributes:
        key_bindings: Canonical chord -> action
        messages: Message key -> text shown through the presentation layer
    """
    key_bindings: Dict[str, FormAction] = field(default_factory=lambda: dict(DEFAULT_KEY_BINDINGS))
    messages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MESSAGES))

    def action_for(self, key: str, modifiers: Iterable[str] = ()) -> Optional[FormAction]:
        return self.key_bindings.get(normalize_chord(key, modifiers))

    def message(self, key: str, **values: Any) -> str:
        text = self.messages.get(key, DEFAULT_MESSAGES[key])
        return text.format(**values) if values else text

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormConfig":
        """Create a FormConfig from a JSON-compatible mapping.

        Bindings are merged over the defaults unless ``replaceDefaultBindings``
        is true; messages are always merged over the defaults.

        Raises:
            InvalidDefinitionError: If ``data`` does not match CONFIG_SCHEMA
        """
        errors = sorted(Draft7Validator(CONFIG_SCHEMA).iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            first = errors[0]
            raise InvalidDefinitionError(first.message, ".".join(str(p) for p in first.path))

        bindings: Dict[str, FormAction] = {}
        if not data.get("replaceDefaultBindings", False):
            bindings.update(DEFAULT_KEY_BINDINGS)
        for chord, action in data.get("keyBindings", {}).items():
            bindings[_parse_chord(chord)] = FormAction(action)

        messages = dict(DEFAULT_MESSAGES)
        messages.update(data.get("messages", {}))
        return cls(key_bindings=bindings, messages=messages)


__all__ = [
    "DEFAULT_KEY_BINDINGS",
    "DEFAULT_MESSAGES",
    "CONFIG_SCHEMA",
    "FormConfig",
    "normalize_chord",
]

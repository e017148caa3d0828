"""Declarative form definitions.

A form can be described as plain data (typically JSON) and turned into a
FieldRegistry. Behaviour that cannot live in data (LOV queries and custom
validators) is referenced by id and supplied by the caller.

Example definition:

    {
      "name": "employees",
      "fields": [
        {"block": "EMPLOYEES", "name": "EMPLOYEE_ID", "required": true, "dataType": "number"},
        {"block": "EMPLOYEES", "name": "DEPARTMENT", "lov": "DEPT_LOV"},
        {"block": "EMPLOYEES", "name": "DEPARTMENT_NAME", "maxLength": 30}
      ],
      "lovs": {
        "DEPT_LOV": {
          "mappings": {"DEPT_ID": "EMPLOYEES.DEPARTMENT", "DEPT_NAME": "EMPLOYEES.DEPARTMENT_NAME"},
          "columns": ["DEPT_ID", "DEPT_NAME"]
        }
      }
    }

Field names are namespaced by their block (``EMPLOYEES.EMPLOYEE_ID``); LOV
targets and source fields use the namespaced names.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from jsonschema import Draft7Validator

from formdesk.errors import InvalidDefinitionError
from formdesk.fields import FieldDefinition, FieldRegistry, LovBinding
from formdesk.types import CustomValidator, DataType, LovQuery


_NAME = {"type": "string", "minLength": 1, "pattern": r"^[^.\s]+$"}
_QUALIFIED_NAME = {"type": "string", "minLength": 1}

FORM_DEFINITION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["fields"],
    "properties": {
        "name": {"type": "string"},
        "fields": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": _NAME,
                    "block": _NAME,
                    "label": {"type": "string"},
                    "required": {"type": "boolean"},
                    "dataType": {"enum": [t.value for t in DataType]},
                    "maxLength": {"type": "integer", "minimum": 0},
                    "defaultValue": {"type": ["string", "number", "null"]},
                    "lov": {"type": "string", "minLength": 1},
                    "validator": {"type": "string", "minLength": 1},
                },
                "additionalProperties": False,
            },
        },
        "lovs": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "mappings": {
                        "type": "object",
                        "additionalProperties": _QUALIFIED_NAME,
                        "minProperties": 1,
                    },
                    "returnItems": {"type": "array", "items": _QUALIFIED_NAME, "minItems": 1},
                    "sourceFields": {"type": "array", "items": _QUALIFIED_NAME},
                    "columns": {"type": "array", "items": {"type": "string"}},
                },
                "anyOf": [{"required": ["mappings"]}, {"required": ["returnItems"]}],
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

_validator = Draft7Validator(FORM_DEFINITION_SCHEMA)


def _check_schema(data: Any) -> None:
    errors = sorted(_validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        raise InvalidDefinitionError(first.message, ".".join(str(p) for p in first.path))


def _build_binding(lov_id: str, spec: Mapping[str, Any], lov_queries: Mapping[str, LovQuery]) -> LovBinding:
    query = lov_queries.get(lov_id)
    if query is None:
        raise InvalidDefinitionError(f"no query supplied for LOV '{lov_id}'", f"lovs.{lov_id}")
    return LovBinding(
        lov_id=lov_id,
        query=query,
        mappings=spec.get("mappings", {}),
        return_items=tuple(spec.get("returnItems", ())),
        source_fields=tuple(spec.get("sourceFields", ())),
        columns=tuple(spec.get("columns", ())),
    )


def build_registry(
    definition: Mapping[str, Any],
    lov_queries: Optional[Mapping[str, LovQuery]] = None,
    validators: Optional[Mapping[str, CustomValidator]] = None,
) -> FieldRegistry:
    """Build a FieldRegistry from a declarative form definition.

    Args:
        definition: Mapping matching FORM_DEFINITION_SCHEMA
        lov_queries: LOV id -> query capability
        validators: Validator id -> custom validator

    Returns:
        A registry with every field registered in definition order

    Raises:
        InvalidDefinitionError: If the definition does not match the schema,
            references an unknown LOV or validator, or an LOV targets a field
            that is not defined
        DuplicateFieldError: If two fields resolve to the same name
    """
    _check_schema(definition)
    lov_queries = lov_queries or {}
    validators = validators or {}

    lov_specs: Mapping[str, Any] = definition.get("lovs", {})
    bindings = {lov_id: _build_binding(lov_id, spec, lov_queries) for lov_id, spec in lov_specs.items()}

    registry = FieldRegistry()
    for index, entry in enumerate(definition["fields"]):
        path = f"fields.{index}"
        name = f"{entry['block']}.{entry['name']}" if entry.get("block") else entry["name"]

        binding = None
        if "lov" in entry:
            binding = bindings.get(entry["lov"])
            if binding is None:
                raise InvalidDefinitionError(f"unknown LOV '{entry['lov']}'", f"{path}.lov")

        custom = None
        if "validator" in entry:
            custom = validators.get(entry["validator"])
            if custom is None:
                raise InvalidDefinitionError(f"unknown validator '{entry['validator']}'", f"{path}.validator")

        default = entry.get("defaultValue")
        registry.register(
            FieldDefinition(
                name=name,
                required=entry.get("required", False),
                data_type=DataType(entry.get("dataType", DataType.STRING.value)),
                max_length=entry.get("maxLength"),
                lov_binding=binding,
                custom_validator=custom,
                default_value=None if default is None else str(default),
                label=entry.get("label"),
            )
        )

    for lov_id, binding in bindings.items():
        referenced: List[str] = binding.target_fields + list(binding.source_fields)
        for target in referenced:
            if target not in registry:
                raise InvalidDefinitionError(f"LOV '{lov_id}' references undefined field '{target}'", f"lovs.{lov_id}")

    return registry


def read_form_definition(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON form definition file and check it against the schema."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    _check_schema(data)
    return data


__all__ = [
    "FORM_DEFINITION_SCHEMA",
    "build_registry",
    "read_form_definition",
]

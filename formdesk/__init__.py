"""formdesk: a terminal-style data-entry form engine.

formdesk emulates a legacy block-mode data-entry form behind an explicit
command interface:
- Field registry with dirty tracking against a loaded or saved baseline
- Rule-chain field validation (required, length, number, date, custom)
- Query-by-example mode that loads the first matching record
- List-of-values lookups that auto-populate related fields
- Named lifecycle triggers (WHEN_VALIDATE_ITEM, PRE_UPDATE, POST_UPDATE, ...)
- Tab/Enter navigation and function-key bindings

Rendering and transport are left to injected collaborators.

Basic usage:
    >>> from formdesk import FieldDefinition, FieldRegistry, FormController
    >>> registry = FieldRegistry()
    >>> _ = registry.register(FieldDefinition(name="EMPLOYEES.EMPLOYEE_ID", required=True))
    >>> async def query(params): return []
    >>> async def persist(record): return True
    >>> form = FormController(registry, query=query, persist=persist)
    >>> print(form.mode.value)
    normal
"""

__version__ = "0.1.0"
__author__ = "formdesk developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formdesk.config import FormConfig
from formdesk.controller import FormController, FormSession
from formdesk.definition import build_registry, read_form_definition
from formdesk.fields import FieldDefinition, FieldRegistry, LovBinding
from formdesk.presentation import NullPresentation, PresentationGateway
from formdesk.types import (
    DataType,
    Direction,
    FormMode,
    LovStatus,
    QueryStatus,
    SaveStatus,
    TriggerName,
)

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormConfig",
    "FormController",
    "FormSession",
    "build_registry",
    "read_form_definition",
    "FieldDefinition",
    "FieldRegistry",
    "LovBinding",
    "NullPresentation",
    "PresentationGateway",
    "DataType",
    "Direction",
    "FormMode",
    "LovStatus",
    "QueryStatus",
    "SaveStatus",
    "TriggerName",
]

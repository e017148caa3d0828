"""Shared fixtures: a recording presentation gateway and small sample forms."""

from typing import Any, Callable, List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from formdesk.fields import FieldDefinition, FieldRegistry, LovBinding
from formdesk.types import Record


class RecordingPresentation:
    """Presentation gateway that records every call.

    ``choose`` decides the disambiguation answer: it receives the offered
    records and returns the pick, or None to cancel.
    """

    def __init__(self, choose: Optional[Callable[[Sequence[Record]], Optional[Record]]] = None):
        self.errors: List[str] = []
        self.messages: List[str] = []
        self.focused: List[str] = []
        self.disambiguations: List[Sequence[Record]] = []
        self.choose = choose or (lambda records: records[0])

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def show_message(self, message: str) -> None:
        self.messages.append(message)

    async def show_disambiguation(self, records: Sequence[Record], columns: Sequence[str] = ()) -> Optional[Record]:
        self.disambiguations.append(list(records))
        return self.choose(records)

    def focus(self, field_name: str) -> None:
        self.focused.append(field_name)


@pytest.fixture
def presentation():
    return RecordingPresentation()


@pytest.fixture
def dept_query():
    """LOV query for departments; tests set ``return_value``."""
    return AsyncMock(return_value=[])


@pytest.fixture
def dept_lov(dept_query):
    return LovBinding(
        lov_id="DEPT_LOV",
        query=dept_query,
        mappings={"DEPT_ID": "EMPLOYEES.DEPARTMENT", "DEPT_NAME": "EMPLOYEES.DEPARTMENT_NAME"},
        columns=("DEPT_ID", "DEPT_NAME"),
    )


@pytest.fixture
def employee_registry(dept_lov):
    """EMPLOYEES block: two required fields plus a department LOV pair."""
    registry = FieldRegistry()
    registry.register(FieldDefinition(name="EMPLOYEES.EMPLOYEE_ID", required=True))
    registry.register(FieldDefinition(name="EMPLOYEES.FIRST_NAME", required=True))
    registry.register(FieldDefinition(name="EMPLOYEES.DEPARTMENT", lov_binding=dept_lov))
    registry.register(FieldDefinition(name="EMPLOYEES.DEPARTMENT_NAME"))
    return registry


def make_registry(*names: str, **definitions: Any) -> FieldRegistry:
    """Registry with plain string fields named ``names``."""
    registry = FieldRegistry()
    for name in names:
        registry.register(FieldDefinition(name=name, **definitions))
    return registry

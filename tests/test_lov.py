"""Unit tests for list-of-values resolution.

Tests cover:
- Zero, one and many results
- Disambiguation selection and cancellation
- Positional return items and source-field parameters
- Query failures routed through ON_ERROR
"""

from unittest.mock import AsyncMock

import pytest

from formdesk.fields import FieldDefinition, FieldRegistry, LovBinding
from formdesk.lov import LovResolver
from formdesk.triggers import TriggerDispatcher
from formdesk.types import LovStatus
from tests.conftest import RecordingPresentation

SALES = {"DEPT_ID": "10", "DEPT_NAME": "Sales"}
RESEARCH = {"DEPT_ID": "20", "DEPT_NAME": "Research"}


@pytest.fixture
def resolver(employee_registry, presentation):
    return LovResolver(employee_registry, presentation, TriggerDispatcher())


class TestCardinality:
    """Test the policy for each result count."""

    @pytest.mark.asyncio
    async def test_no_match_leaves_fields(self, resolver, dept_lov, dept_query, employee_registry, presentation):
        dept_query.return_value = []

        resolution = await resolver.resolve(dept_lov, "99")

        assert resolution.status == LovStatus.NO_MATCH
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT_NAME") == ""
        assert presentation.errors == []
        assert presentation.disambiguations == []

    @pytest.mark.asyncio
    async def test_single_match_auto_applies(self, resolver, dept_lov, dept_query, employee_registry, presentation):
        dept_query.return_value = [SALES]

        resolution = await resolver.resolve(dept_lov, "10")

        assert resolution.status == LovStatus.APPLIED
        assert resolution.applied_fields == ("EMPLOYEES.DEPARTMENT", "EMPLOYEES.DEPARTMENT_NAME")
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT") == "10"
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT_NAME") == "Sales"
        assert presentation.disambiguations == []
        dept_query.assert_awaited_once_with("10", {})

    @pytest.mark.asyncio
    async def test_many_matches_prompt_once_then_apply(self, employee_registry, dept_lov, dept_query):
        presentation = RecordingPresentation(choose=lambda records: records[1])
        resolver = LovResolver(employee_registry, presentation)
        dept_query.return_value = [SALES, RESEARCH]

        resolution = await resolver.resolve(dept_lov, "%")

        assert resolution.status == LovStatus.APPLIED
        assert presentation.disambiguations == [[SALES, RESEARCH]]
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT") == "20"
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT_NAME") == "Research"

    @pytest.mark.asyncio
    async def test_selection_applies_same_fields_as_single_match(self, dept_lov, dept_query, employee_registry):
        """A picked record fills exactly the fields a single match would."""
        single = LovResolver(employee_registry, RecordingPresentation())
        dept_query.return_value = [SALES]
        auto = await single.resolve(dept_lov, "10")

        employee_registry.reset()
        picker = LovResolver(employee_registry, RecordingPresentation(choose=lambda records: records[0]))
        dept_query.return_value = [SALES, RESEARCH]
        picked = await picker.resolve(dept_lov, "%")

        assert picked.applied_fields == auto.applied_fields
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT_NAME") == "Sales"

    @pytest.mark.asyncio
    async def test_cancelled_selection_mutates_nothing(self, employee_registry, dept_lov, dept_query):
        presentation = RecordingPresentation(choose=lambda records: None)
        resolver = LovResolver(employee_registry, presentation)
        dept_query.return_value = [SALES, RESEARCH]

        resolution = await resolver.resolve(dept_lov, "%")

        assert resolution.status == LovStatus.CANCELLED
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT") == ""
        assert employee_registry.dirty is False

    @pytest.mark.asyncio
    async def test_always_prompt_shows_single_match(self, resolver, dept_lov, dept_query, presentation):
        dept_query.return_value = [SALES]

        resolution = await resolver.resolve(dept_lov, "", always_prompt=True)

        assert resolution.status == LovStatus.APPLIED
        assert len(presentation.disambiguations) == 1


class TestApply:
    """Test how records are written into fields."""

    @pytest.mark.asyncio
    async def test_missing_property_skipped(self, resolver, dept_lov, dept_query, employee_registry):
        dept_query.return_value = [{"DEPT_ID": "30"}]

        resolution = await resolver.resolve(dept_lov, "30")

        assert resolution.applied_fields == ("EMPLOYEES.DEPARTMENT",)
        assert employee_registry.value_of("EMPLOYEES.DEPARTMENT_NAME") == ""

    @pytest.mark.asyncio
    async def test_positional_return_items(self):
        query = AsyncMock(return_value=[("ITM-1", "Widget", "EA")])
        binding = LovBinding(
            lov_id="ITEM_LOV",
            query=query,
            return_items=("ITEMS.CODE", "ITEMS.DESCRIPTION", "ITEMS.UOM"),
        )
        registry = FieldRegistry()
        for name in binding.return_items:
            registry.register(FieldDefinition(name=name))

        await LovResolver(registry, RecordingPresentation()).resolve(binding, "ITM")

        assert [f.value for f in registry] == ["ITM-1", "Widget", "EA"]

    @pytest.mark.asyncio
    async def test_source_fields_parametrize_query(self):
        query = AsyncMock(return_value=[])
        binding = LovBinding(
            lov_id="CITY_LOV",
            query=query,
            mappings={"CITY": "ADDR.CITY"},
            source_fields=("ADDR.COUNTRY", "ADDR.REGION"),
        )
        registry = FieldRegistry()
        for name in ("ADDR.COUNTRY", "ADDR.REGION", "ADDR.CITY"):
            registry.register(FieldDefinition(name=name))
        registry.set("ADDR.COUNTRY", "NZ")

        await LovResolver(registry, RecordingPresentation()).resolve(binding, "Well")

        query.assert_awaited_once_with("Well", {"ADDR.COUNTRY": "NZ"})

    @pytest.mark.asyncio
    async def test_applied_targets_are_validated(self, dept_query):
        binding = LovBinding(lov_id="L", query=dept_query, mappings={"NAME": "B"})
        registry = FieldRegistry()
        registry.register(FieldDefinition(name="A", lov_binding=binding))
        registry.register(FieldDefinition(name="B", max_length=3))
        dept_query.return_value = [{"NAME": "too long"}]

        await LovResolver(registry, RecordingPresentation()).resolve(binding, "x")

        assert registry.get("B").valid is False


class TestFailures:
    """Test query failures."""

    @pytest.mark.asyncio
    async def test_query_failure_reported_not_raised(self, employee_registry, dept_lov, dept_query, presentation):
        dept_query.side_effect = ConnectionError("network down")
        triggers = TriggerDispatcher()
        seen = []
        triggers.register("ON_ERROR", seen.append)

        resolution = await LovResolver(employee_registry, presentation, triggers).resolve(dept_lov, "10")

        assert resolution.status == LovStatus.FAILED
        assert resolution.error.lov_id == "DEPT_LOV"
        assert isinstance(resolution.error.cause, ConnectionError)
        assert len(presentation.errors) == 1
        assert seen[0].error is resolution.error
        assert employee_registry.dirty is False

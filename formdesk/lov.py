"""List-of-values resolution.

A lookup resolves in three ways depending on how many records the LOV query
returns:

- none: nothing happens; a non-match is not a validation failure
- one: the record is applied straight away
- several: the presentation layer is asked to pick one; cancelling leaves
  the form untouched

Applying a record writes the mapped target fields directly through the
registry. Those writes never start another lookup, so chains of LOV fields
cannot recurse.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from formdesk.errors import LovFailure
from formdesk.fields import FieldRegistry, LovBinding
from formdesk.presentation import PresentationGateway
from formdesk.triggers import TriggerDispatcher
from formdesk.types import LovStatus, Record
from formdesk.validation import validate_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LovResolution:
    """Outcome of one LOV resolution.

    Attributes:
        status: What happened
        record: The record that was applied, if any
        applied_fields: Fields written while applying the record
        error: The failure, when status is FAILED
    """
    status: LovStatus
    record: Optional[Record] = None
    applied_fields: Tuple[str, ...] = ()
    error: Optional[LovFailure] = None


@dataclass
class LovResolver:
    """Resolves LOV bindings against one form's field registry."""

    registry: FieldRegistry
    presentation: PresentationGateway
    triggers: TriggerDispatcher = field(default_factory=TriggerDispatcher)

    def source_parameters(self, binding: LovBinding) -> Mapping[str, str]:
        """Current values of the binding's source fields (empty ones omitted)."""
        params = {}
        for name in binding.source_fields:
            value = self.registry.value_of(name)
            if value:
                params[name] = value
        return params

    async def resolve(self, binding: LovBinding, filter_value: str,
                      always_prompt: bool = False) -> LovResolution:
        """Run the binding's query and apply the outcome to the form.

        Args:
            binding: LOV to resolve
            filter_value: Search value typed by the user
            always_prompt: Show the picker even for a single match

        Returns:
            LovResolution describing what was applied. Query failures are
            reported through ON_ERROR and the presentation layer and come
            back as a FAILED resolution; they are never raised.
        """
        try:
            records = list(await binding.query(filter_value or "", self.source_parameters(binding)))
        except Exception as exc:
            return await self._fail(binding, exc)

        logger.debug("LOV %s returned %d records for %r", binding.lov_id, len(records), filter_value)
        if not records:
            return LovResolution(status=LovStatus.NO_MATCH)

        if len(records) == 1 and not always_prompt:
            chosen: Optional[Record] = records[0]
        else:
            try:
                chosen = await self.presentation.show_disambiguation(records, binding.columns)
            except Exception as exc:
                return await self._fail(binding, exc)
            if chosen is None:
                return LovResolution(status=LovStatus.CANCELLED)

        applied = self.apply(binding, chosen)
        return LovResolution(status=LovStatus.APPLIED, record=chosen, applied_fields=tuple(applied))

    def apply(self, binding: LovBinding, record: Record) -> List[str]:
        """Write ``record`` into the binding's target fields.

        Returns:
            Names of the fields that were written
        """
        writes: List[Tuple[str, Any]] = []
        if isinstance(record, Mapping):
            if binding.mappings:
                writes = [
                    (target, record[prop])
                    for prop, target in binding.mappings.items()
                    if prop in record
                ]
            else:
                writes = list(zip(binding.return_items, record.values()))
        elif isinstance(record, Sequence) and not isinstance(record, str):
            targets: Sequence[str] = binding.return_items or tuple(binding.mappings.values())
            writes = list(zip(targets, record))

        for target, value in writes:
            self.registry.set(target, value)
        for target, _ in writes:
            validate_field(self.registry, target)
        return [target for target, _ in writes]

    async def _fail(self, binding: LovBinding, exc: Exception) -> LovResolution:
        failure = LovFailure(binding.lov_id, f"List of values '{binding.lov_id}' failed: {exc}", cause=exc)
        logger.warning("%s", failure)
        self.presentation.show_error(str(failure))
        await self.triggers.fire_error(failure)
        return LovResolution(status=LovStatus.FAILED, error=failure)


__all__ = [
    "LovResolution",
    "LovResolver",
]

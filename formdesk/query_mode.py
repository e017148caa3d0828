"""Query-mode state machine for formdesk.

A form is either in NORMAL mode (values are record data) or in QUERY mode
(values are query-by-example filters). The state machine owns that mode and
the three operations whose behaviour depends on it:

- enter_query: clear the form and start composing a filter
- execute_query: run the filter and load the first match
- save: validate and persist the record (never in QUERY mode)

Rules enforced here rather than left to callers:
- save is refused in QUERY mode
- LOV auto-resolution is disabled in QUERY mode (see ``lov_enabled``)
- execute_query always returns the form to NORMAL mode, even when the query
  capability fails

Transport failures are raised as QueryFailure / SaveFailure for the form
controller to report; the state machine only guarantees that the form is
left in a safe state first.

Usage:
    >>> from formdesk.fields import FieldRegistry
    >>> sm = QueryModeStateMachine(FieldRegistry(), query=None, persist=None)
    >>> sm.mode
    <FormMode.NORMAL: 'normal'>
    >>> sm.can_transition_to(FormMode.QUERY)
    True
"""

import logging
from typing import Dict, Mapping, Optional, Set

from formdesk.config import FormConfig
from formdesk.errors import InvalidModeTransitionError, QueryFailure, SaveFailure
from formdesk.fields import FieldRegistry
from formdesk.presentation import NullPresentation, PresentationGateway
from formdesk.triggers import TriggerContext, TriggerDispatcher
from formdesk.types import (
    FormMode,
    PersistenceCapability,
    QueryCapability,
    QueryStatus,
    SaveStatus,
    TriggerName,
)
from formdesk.validation import validate_form

logger = logging.getLogger(__name__)


# Maps each mode to the modes it can move to. Re-entering QUERY is allowed
# and starts a fresh filter.
VALID_TRANSITIONS: Dict[FormMode, Set[FormMode]] = {
    FormMode.NORMAL: {FormMode.QUERY},
    FormMode.QUERY: {FormMode.QUERY, FormMode.NORMAL},
}


class QueryModeStateMachine:
    """NORMAL/QUERY mode state machine with query and save.

    Attributes:
        registry: Fields of the form
        mode: Current mode
    """

    def __init__(
        self,
        registry: FieldRegistry,
        query: Optional[QueryCapability],
        persist: Optional[PersistenceCapability],
        triggers: Optional[TriggerDispatcher] = None,
        presentation: Optional[PresentationGateway] = None,
        config: Optional[FormConfig] = None,
    ):
        self.registry = registry
        self._query = query
        self._persist = persist
        self.triggers = triggers if triggers is not None else TriggerDispatcher()
        self.presentation = presentation if presentation is not None else NullPresentation()
        self.config = config if config is not None else FormConfig()
        self.mode = FormMode.NORMAL

    @property
    def lov_enabled(self) -> bool:
        """LOV lookups only populate fields during normal entry."""
        return self.mode == FormMode.NORMAL

    @property
    def save_enabled(self) -> bool:
        return self.mode == FormMode.NORMAL

    def can_transition_to(self, target: FormMode) -> bool:
        return target in VALID_TRANSITIONS.get(self.mode, set())

    def transition_to(self, target: FormMode) -> None:
        """Move to ``target``.

        Raises:
            InvalidModeTransitionError: If the move is not in VALID_TRANSITIONS
        """
        if not self.can_transition_to(target):
            raise InvalidModeTransitionError(self.mode, target)
        logger.debug("Form mode %s -> %s", self.mode.value, target.value)
        self.mode = target

    def _context(self, trigger: TriggerName, record: Optional[Mapping[str, str]] = None) -> TriggerContext:
        return TriggerContext(trigger=trigger, mode=self.mode, record=dict(record or {}))

    async def _fire_after(self, trigger: TriggerName, context: TriggerContext) -> None:
        """Fire a trigger that runs after the work is done.

        The outcome already stands, so a failing callback is reported through
        ON_ERROR and the presentation layer instead of being raised.
        """
        try:
            await self.triggers.fire(trigger, context)
        except Exception as exc:
            logger.warning("%s trigger failed: %s", trigger.value, exc)
            self.presentation.show_error(str(exc))
            await self.triggers.fire_error(exc, mode=self.mode)

    async def enter_query(self) -> None:
        """Clear the form and switch to QUERY mode; fires ENTER_QUERY_MODE."""
        self.registry.reset(to_original=False)
        self.transition_to(FormMode.QUERY)
        self.presentation.show_message(self.config.message("enter_query"))
        await self.triggers.fire(TriggerName.ENTER_QUERY_MODE, self._context(TriggerName.ENTER_QUERY_MODE))

    async def execute_query(self) -> QueryStatus:
        """Run the current filter and load the first matching record.

        Only non-empty fields take part in the filter. The form is back in
        NORMAL mode once this returns or raises.

        Raises:
            QueryFailure: If the query capability failed; the filter has been
                cleared and the mode reset before raising
        """
        if self.mode != FormMode.QUERY:
            return QueryStatus.NOT_IN_QUERY_MODE
        params = dict(self.registry.snapshot())
        try:
            if self._query is None:
                raise RuntimeError("no query capability configured")
            records = list(await self._query(params))
        except Exception as exc:
            self.registry.reset(to_original=False)
            logger.warning("Query failed for %s: %s", params, exc)
            raise QueryFailure(self.config.message("query_failed", error=exc), cause=exc) from exc
        finally:
            self.transition_to(FormMode.NORMAL)

        # Filter text never survives into the result.
        self.registry.reset(to_original=False)
        if not records:
            self.presentation.show_message(self.config.message("no_records"))
            status = QueryStatus.NO_RECORDS
            loaded: Mapping[str, str] = {}
        else:
            first = records[0]
            if not isinstance(first, Mapping):
                raise QueryFailure(
                    f"query returned a {type(first).__name__}, expected a mapping record"
                )
            self.registry.load(first)
            status = QueryStatus.LOADED
            loaded = first

        logger.info("Query %s matched %d records", params, len(records))
        await self._fire_after(TriggerName.AFTER_QUERY, self._context(TriggerName.AFTER_QUERY, loaded))
        return status

    async def save(self) -> SaveStatus:
        """Validate and persist the current record.

        Refusals (query mode, invalid fields, nothing changed) are reported
        through the presentation layer and returned, not raised. Validation
        runs before the dirty check so every field's error state is current.

        Raises:
            SaveFailure: If persistence failed or rejected the record; the form
                stays dirty
        """
        if not self.save_enabled:
            self.presentation.show_error(self.config.message("save_in_query_mode"))
            return SaveStatus.QUERY_MODE

        if not validate_form(self.registry).is_valid:
            self.presentation.show_error(self.config.message("invalid_form"))
            return SaveStatus.INVALID

        if not self.registry.dirty:
            self.presentation.show_message(self.config.message("no_changes"))
            return SaveStatus.NO_CHANGES

        if self._persist is None:
            raise SaveFailure("no persistence capability configured")

        await self.triggers.fire(
            TriggerName.PRE_UPDATE, self._context(TriggerName.PRE_UPDATE, self.registry.snapshot())
        )
        # PRE_UPDATE may have written fields.
        payload = self.registry.snapshot()
        try:
            outcome = await self._persist(payload)
        except Exception as exc:
            logger.warning("Save failed: %s", exc)
            raise SaveFailure(self.config.message("save_failed", error=exc), cause=exc) from exc
        if outcome is False:
            raise SaveFailure(self.config.message("save_rejected"))

        self.registry.rebaseline()
        logger.info("Saved record with %d fields", len(payload))
        await self._fire_after(TriggerName.POST_UPDATE, self._context(TriggerName.POST_UPDATE, payload))
        self.presentation.show_message(self.config.message("saved"))
        return SaveStatus.SAVED

    def clear_form(self) -> None:
        """Clear every field and leave QUERY mode if in it."""
        self.registry.reset(to_original=False)
        if self.mode != FormMode.NORMAL:
            self.transition_to(FormMode.NORMAL)


__all__ = [
    "QueryModeStateMachine",
    "VALID_TRANSITIONS",
]

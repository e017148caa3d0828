"""FormController: the composition root of a formdesk form.

The controller ties together the field registry, validation, the query-mode
state machine, LOV resolution, navigation and triggers, and exposes them to
the presentation layer as an explicit command interface:

- on_field_changed(name, value)  - the user edited a field
- on_field_focused(name)         - the user moved focus
- on_key(key, modifiers)         - a key press, dispatched via FormConfig
- request_save / request_query / request_execute_query / request_clear /
  request_lov                    - the form commands themselves

One controller is one form session. All collaborators are injected through
the constructor; nothing is shared between controllers.

Failures from the injected capabilities and from trigger callbacks are
caught here, reported through ON_ERROR and the presentation gateway, and
turned into a FAILED status. Setup errors (unknown fields, empty forms)
propagate.

Usage:
    >>> import asyncio
    >>> from formdesk.fields import FieldDefinition, FieldRegistry
    >>> registry = FieldRegistry()
    >>> _ = registry.register(FieldDefinition(name="EMPLOYEES.EMPLOYEE_ID", required=True))
    >>> async def query(params):
    ...     return [{"EMPLOYEES.EMPLOYEE_ID": "7"}]
    >>> async def persist(record):
    ...     return True
    >>> form = FormController(registry, query=query, persist=persist)
    >>> asyncio.run(form.on_key("F7"))
    True
    >>> asyncio.run(form.request_execute_query())
    <QueryStatus.LOADED: 'loaded'>
    >>> form.registry.value_of("EMPLOYEES.EMPLOYEE_ID")
    '7'
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from formdesk.config import FormConfig
from formdesk.errors import UnknownFieldError
from formdesk.fields import FieldRegistry
from formdesk.lov import LovResolver
from formdesk.navigation import NavigationController
from formdesk.presentation import NullPresentation, PresentationGateway
from formdesk.query_mode import QueryModeStateMachine
from formdesk.triggers import TriggerCallback, TriggerContext, TriggerDispatcher
from formdesk.types import (
    Direction,
    FormAction,
    FormMode,
    LovStatus,
    PersistenceCapability,
    QueryCapability,
    QueryStatus,
    SaveStatus,
    TriggerName,
)
from formdesk.validation import CUSTOM_MESSAGE, validate_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormSession:
    """Point-in-time view of a form session.

    Attributes:
        mode: NORMAL or QUERY
        dirty: Whether any field differs from its baseline
        current_field: Field that has focus, if any
    """
    mode: FormMode
    dirty: bool
    current_field: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "mode": self.mode.value,
            "dirty": self.dirty,
            "currentField": self.current_field,
        }


class FormController:
    """One form session driven by explicit commands.

    Attributes:
        registry: The form's fields
        config: Key bindings and messages
        presentation: Gateway outcomes are reported to
        triggers: Lifecycle trigger callbacks
        state: Query-mode state machine (mode, query, save)
        lov: LOV resolver
        navigation: Focus navigation
        current_field: Field that has focus, if any
    """

    def __init__(
        self,
        registry: FieldRegistry,
        query: Optional[QueryCapability],
        persist: Optional[PersistenceCapability],
        presentation: Optional[PresentationGateway] = None,
        config: Optional[FormConfig] = None,
        triggers: Optional[TriggerDispatcher] = None,
    ):
        self.registry = registry
        self.config = config if config is not None else FormConfig()
        self.presentation = presentation if presentation is not None else NullPresentation()
        self.triggers = triggers if triggers is not None else TriggerDispatcher()
        self.state = QueryModeStateMachine(
            registry,
            query=query,
            persist=persist,
            triggers=self.triggers,
            presentation=self.presentation,
            config=self.config,
        )
        self.lov = LovResolver(registry, self.presentation, self.triggers)
        self.navigation = NavigationController(registry)
        self.current_field: Optional[str] = None
        self._field_locks: Dict[str, asyncio.Lock] = {}
        self._check_lov_bindings()

    def _check_lov_bindings(self) -> None:
        for state in self.registry:
            binding = state.definition.lov_binding
            if binding is None:
                continue
            for name in binding.target_fields + list(binding.source_fields):
                if name not in self.registry:
                    raise UnknownFieldError(name)

    # -- session -----------------------------------------------------------

    @property
    def mode(self) -> FormMode:
        return self.state.mode

    @property
    def dirty(self) -> bool:
        return self.registry.dirty

    @property
    def has_unsaved_changes(self) -> bool:
        """True when closing the form now would lose edits."""
        return self.mode == FormMode.NORMAL and self.registry.dirty

    @property
    def session(self) -> FormSession:
        return FormSession(mode=self.mode, dirty=self.dirty, current_field=self.current_field)

    def register_trigger(self, name: Union[str, TriggerName], callback: TriggerCallback) -> None:
        self.triggers.register(name, callback)

    # -- field events ------------------------------------------------------

    def _lock_for(self, name: str) -> asyncio.Lock:
        lock = self._field_locks.get(name)
        if lock is None:
            lock = self._field_locks[name] = asyncio.Lock()
        return lock

    async def on_field_changed(self, name: str, raw_value: Optional[str]) -> bool:
        """Handle an edit of one field.

        Changes to the same field are processed one at a time, including any
        LOV lookup they start. In QUERY mode the value is only stored as a
        filter. In NORMAL mode it is validated; a valid non-empty value on an
        LOV field resolves the LOV, then WHEN_VALIDATE_ITEM fires.

        A custom validator that raises is reported like a failing trigger and
        leaves the field invalid.

        Returns:
            Whether the field is valid after handling

        Raises:
            UnknownFieldError: If the field is not registered
        """
        state = self.registry.get(name)
        async with self._lock_for(name):
            self.registry.set(name, raw_value)
            if self.mode == FormMode.QUERY:
                return True

            try:
                result = validate_field(self.registry, name)
            except Exception as exc:
                state.mark_invalid(CUSTOM_MESSAGE)
                await self._report(exc, field_name=name)
                return False
            if not result.valid:
                self.presentation.show_error(
                    self.config.message(
                        "field_invalid",
                        label=state.definition.display_label,
                        message=result.message,
                    )
                )
                return False

            binding = state.definition.lov_binding
            if binding is not None and state.value and self.state.lov_enabled:
                await self.lov.resolve(binding, state.value)

            await self._fire_reporting(
                TriggerName.WHEN_VALIDATE_ITEM,
                TriggerContext(
                    trigger=TriggerName.WHEN_VALIDATE_ITEM,
                    mode=self.mode,
                    field_name=name,
                    value=state.value,
                ),
            )
            return state.valid

    def on_field_focused(self, name: str) -> None:
        """Record that ``name`` has focus (reported by the presentation layer)."""
        self.registry.get(name)
        self.current_field = name

    async def on_key(self, key: str, modifiers: Iterable[str] = ()) -> bool:
        """Dispatch a key press through the configured key bindings.

        Returns:
            False if the key is not bound, True once the action has run
        """
        action = self.config.action_for(key, modifiers)
        if action is None:
            return False
        logger.debug("Key %s %s -> %s", key, list(modifiers), action.value)

        if action == FormAction.NEXT_FIELD:
            self.navigate(Direction.FORWARD)
        elif action == FormAction.PREVIOUS_FIELD:
            self.navigate(Direction.BACKWARD)
        elif action == FormAction.ENTER_QUERY:
            await self.request_query()
        elif action == FormAction.EXECUTE_QUERY:
            await self.request_execute_query()
        elif action == FormAction.SAVE:
            await self.request_save()
        elif action == FormAction.CLEAR_FORM:
            self.request_clear()
        elif action == FormAction.LIST_OF_VALUES:
            await self.request_lov()
        return True

    def navigate(self, direction: Direction = Direction.FORWARD) -> str:
        """Move focus to the next field in ``direction`` and return its name.

        Raises:
            EmptyFormError: If the form has no fields
        """
        target = self.navigation.next(self.current_field, direction)
        self._focus(target)
        return target

    def _focus(self, name: str) -> None:
        self.current_field = name
        self.presentation.focus(name)

    # -- commands ----------------------------------------------------------

    async def request_save(self) -> SaveStatus:
        """Save the current record; see QueryModeStateMachine.save."""
        try:
            status = await self.state.save()
        except Exception as exc:
            await self._report(exc)
            return SaveStatus.FAILED

        if status == SaveStatus.INVALID:
            invalid = self.registry.invalid_fields()
            if invalid:
                self._focus(invalid[0].name)
        return status

    async def request_query(self) -> None:
        """Enter QUERY mode with a cleared form."""
        try:
            await self.state.enter_query()
        except Exception as exc:
            await self._report(exc)
        if len(self.registry):
            self._focus(self.navigation.first())

    async def request_execute_query(self) -> QueryStatus:
        """Run the query-by-example filter; see QueryModeStateMachine.execute_query."""
        try:
            return await self.state.execute_query()
        except Exception as exc:
            await self._report(exc)
            return QueryStatus.FAILED

    def request_clear(self) -> None:
        """Clear every field and return to NORMAL mode."""
        self.state.clear_form()

    async def request_lov(self, name: Optional[str] = None) -> LovStatus:
        """Open the list of values of ``name`` (default: the focused field).

        The picker is always shown, even for a single match.
        """
        name = name or self.current_field
        if name is None:
            return LovStatus.SKIPPED
        state = self.registry.get(name)
        binding = state.definition.lov_binding
        if binding is None:
            self.presentation.show_message(
                self.config.message("no_lov", label=state.definition.display_label)
            )
            return LovStatus.SKIPPED
        if not self.state.lov_enabled:
            return LovStatus.SKIPPED

        async with self._lock_for(name):
            resolution = await self.lov.resolve(binding, state.value, always_prompt=True)
        return resolution.status

    # -- error routing -----------------------------------------------------

    async def _fire_reporting(self, trigger: TriggerName, context: TriggerContext) -> bool:
        try:
            return await self.triggers.fire(trigger, context)
        except Exception as exc:
            await self._report(exc, field_name=context.field_name)
            return False

    async def _report(self, exc: Exception, field_name: Optional[str] = None) -> None:
        logger.warning("Form operation failed: %s", exc)
        self.presentation.show_error(str(exc))
        await self.triggers.fire_error(exc, mode=self.mode, field_name=field_name)


__all__ = [
    "FormSession",
    "FormController",
]

"""Trigger dispatch for formdesk.

Triggers are optional lifecycle hooks addressed by a closed set of names
(see TriggerName). Each name holds at most one callback; registering again
replaces the previous one. Callbacks may be plain functions or coroutine
functions; awaitable results are awaited.

Firing a trigger with no callback is a no-op. A callback that raises
propagates to whoever fired it, except for ON_ERROR fired through
``fire_error``: a failing error handler is logged and dropped so that error
reporting can never recurse into itself.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from formdesk.errors import UnknownTriggerError
from formdesk.types import FormMode, TriggerName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerContext:
    """Information passed to a trigger callback.

    Attributes:
        trigger: The trigger being fired
        mode: Form mode at the time of firing
        field_name: Field the trigger concerns, if any
        value: Field value the trigger concerns, if any
        record: Record involved (query parameters, save payload, loaded record)
        error: Exception being reported (ON_ERROR only)
    """
    trigger: TriggerName
    mode: FormMode = FormMode.NORMAL
    field_name: Optional[str] = None
    value: Optional[str] = None
    record: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None


TriggerCallback = Callable[[TriggerContext], Union[None, Awaitable[None]]]
"""Type alias for trigger callbacks."""


class TriggerDispatcher:
    """Registry of one callback per trigger name.

    Examples:
        >>> dispatcher = TriggerDispatcher()
        >>> dispatcher.register("PRE_UPDATE", lambda ctx: None)
        >>> dispatcher.is_registered(TriggerName.PRE_UPDATE)
        True
        >>> dispatcher.register("AFTER_SAVE", lambda ctx: None)
        Traceback (most recent call last):
            ...
        formdesk.errors.UnknownTriggerError: Unknown trigger 'AFTER_SAVE'
    """

    def __init__(self) -> None:
        self._callbacks: Dict[TriggerName, TriggerCallback] = {}

    @staticmethod
    def _resolve(name: Union[str, TriggerName]) -> TriggerName:
        trigger = TriggerName.coerce(name)
        if trigger is None:
            raise UnknownTriggerError(name)
        return trigger

    def register(self, name: Union[str, TriggerName], callback: TriggerCallback) -> None:
        """Register ``callback`` for ``name``, replacing any earlier one.

        Raises:
            UnknownTriggerError: If ``name`` is not a TriggerName
            TypeError: If ``callback`` is not callable
        """
        trigger = self._resolve(name)
        if not callable(callback):
            raise TypeError(f"Trigger callback for '{trigger.value}' must be callable")
        if trigger in self._callbacks:
            logger.debug("Replacing callback for trigger %s", trigger.value)
        self._callbacks[trigger] = callback

    def unregister(self, name: Union[str, TriggerName]) -> bool:
        """Remove the callback for ``name``; returns whether one was registered."""
        return self._callbacks.pop(self._resolve(name), None) is not None

    def is_registered(self, name: Union[str, TriggerName]) -> bool:
        return self._resolve(name) in self._callbacks

    async def fire(self, name: Union[str, TriggerName], context: Optional[TriggerContext] = None) -> bool:
        """Invoke the callback for ``name`` if there is one.

        Returns:
            True if a callback ran, False if none was registered

        Raises:
            Whatever the callback raises.
        """
        trigger = self._resolve(name)
        callback = self._callbacks.get(trigger)
        if callback is None:
            return False

        if context is None:
            context = TriggerContext(trigger=trigger)
        logger.debug("Firing trigger %s (field=%s)", trigger.value, context.field_name)
        result = callback(context)
        if inspect.isawaitable(result):
            await result
        return True

    async def fire_error(self, error: BaseException, mode: FormMode = FormMode.NORMAL,
                         field_name: Optional[str] = None) -> None:
        """Fire ON_ERROR for ``error``; a failing handler is logged and dropped."""
        context = TriggerContext(
            trigger=TriggerName.ON_ERROR,
            mode=mode,
            field_name=field_name,
            error=error,
        )
        try:
            await self.fire(TriggerName.ON_ERROR, context)
        except Exception:
            logger.exception("ON_ERROR trigger failed while handling %r", error)

    def clear(self) -> None:
        """Remove every registered callback."""
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)


__all__ = [
    "TriggerContext",
    "TriggerCallback",
    "TriggerDispatcher",
]

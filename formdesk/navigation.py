"""Focus navigation through the form's fields."""

from typing import Optional

from formdesk.errors import EmptyFormError, UnknownFieldError
from formdesk.fields import FieldRegistry
from formdesk.types import Direction


class NavigationController:
    """Computes the next field to focus, in registration order, wrapping.

    Examples:
        >>> from formdesk.fields import FieldDefinition
        >>> registry = FieldRegistry()
        >>> for name in ("f1", "f2", "f3"):
        ...     _ = registry.register(FieldDefinition(name=name))
        >>> nav = NavigationController(registry)
        >>> nav.next("f3", Direction.FORWARD)
        'f1'
        >>> nav.next("f1", Direction.BACKWARD)
        'f3'
    """

    def __init__(self, registry: FieldRegistry):
        self.registry = registry

    def next(self, current: Optional[str], direction: Direction = Direction.FORWARD) -> str:
        """Return the field after (or before) ``current``.

        With no current field, forward starts at the first field and backward
        at the last.

        Raises:
            EmptyFormError: If no fields are registered
            UnknownFieldError: If ``current`` is not a registered field
        """
        order = self.registry.names()
        if not order:
            raise EmptyFormError()

        step = 1 if Direction(direction) == Direction.FORWARD else -1
        if current is None:
            return order[0] if step == 1 else order[-1]
        if current not in self.registry:
            raise UnknownFieldError(current)

        return order[(order.index(current) + step) % len(order)]

    def first(self) -> str:
        return self.next(None, Direction.FORWARD)


__all__ = ["NavigationController"]

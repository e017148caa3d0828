"""Presentation collaborator contract.

The form core never renders anything. It reports outcomes to an object that
satisfies ``PresentationGateway``; everything but the disambiguation prompt
is fire-and-forget.
"""

import logging
from typing import Optional, Sequence

from typing_extensions import Protocol, runtime_checkable

from formdesk.types import Record

logger = logging.getLogger(__name__)


@runtime_checkable
class PresentationGateway(Protocol):
    """What the form controller needs from the presentation layer."""

    def show_error(self, message: str) -> None:
        ...

    def show_message(self, message: str) -> None:
        ...

    async def show_disambiguation(
        self, records: Sequence[Record], columns: Sequence[str] = ()
    ) -> Optional[Record]:
        """Let the user pick one of ``records``; None means cancelled."""
        ...

    def focus(self, field_name: str) -> None:
        ...


class NullPresentation:
    """Gateway that only logs; disambiguation is always cancelled.

    Useful for headless use, e.g. driving a form from a batch job.
    """

    def show_error(self, message: str) -> None:
        logger.error("form error: %s", message)

    def show_message(self, message: str) -> None:
        logger.info("form message: %s", message)

    async def show_disambiguation(
        self, records: Sequence[Record], columns: Sequence[str] = ()
    ) -> Optional[Record]:
        logger.info("disambiguation over %d records cancelled (no presentation)", len(records))
        return None

    def focus(self, field_name: str) -> None:
        logger.debug("focus %s", field_name)


__all__ = [
    "PresentationGateway",
    "NullPresentation",
]

"""Wizard window lifecycle: close hooks and the at-most-once outcome."""

import asyncio
import logging
from typing import Callable

from onboarding.session import WizardOutcome

logger = logging.getLogger(__name__)


class WizardWindow:
    """Owns the wizard's completion future.

    The first resolve() wins. close() runs the close hooks once and, if
    nothing resolved the outcome yet, resolves it as abandoned.
    """

    def __init__(self) -> None:
        self._outcome: asyncio.Future[WizardOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self._closed = False
        self._on_close: list[Callable[[], None]] = []

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_resolved(self) -> bool:
        return self._outcome.done()

    def on_close(self, callback: Callable[[], None]) -> None:
        self._on_close.append(callback)

    def resolve(self, outcome: WizardOutcome) -> bool:
        """Set the outcome. Returns False if it was already set."""
        if self._outcome.done():
            logger.debug("Outcome already resolved, ignoring %s", outcome.status.value)
            return False
        self._outcome.set_result(outcome)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for callback in self._on_close:
            try:
                callback()
            except Exception as e:
                logger.exception("Close hook failed: %s", e)
        if self.resolve(WizardOutcome.abandoned()):
            logger.info("Wizard closed before completion")

    async def wait(self) -> WizardOutcome:
        return await asyncio.shield(self._outcome)

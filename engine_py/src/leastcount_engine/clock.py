"""Per-room turn timer."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .constants import TURN_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

TimeoutCallback = Callable[[int], Awaitable[None]]


def _running_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TurnClock:
    """
    A single outstanding fire-once timer, armed with the turn token it was
    started for. The callback receives that token so it can recognise a fire
    that was already queued when the turn moved on.
    """

    def __init__(self, timeout: float = TURN_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.token: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, token: int, callback: TimeoutCallback) -> None:
        """Cancel any pending fire and start counting down for ``token``."""
        self.cancel()
        self.token = token
        self._task = asyncio.get_running_loop().create_task(self._run(token, callback))

    def cancel(self) -> None:
        task, self._task = self._task, None
        self.token = None
        # The expiry callback re-arms from inside its own task; never cancel that one
        if task is not None and not task.done() and task is not _running_task():
            task.cancel()

    async def _run(self, token: int, callback: TimeoutCallback) -> None:
        await asyncio.sleep(self.timeout)
        try:
            await callback(token)
        except Exception as e:
            logger.exception(f"Turn timeout handler failed for token {token}: {e}")

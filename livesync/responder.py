"""
Simulated counterpart for chat and consultation threads.

Picks a reply from a fixed phrase set and writes it either immediately
(chat assistant) or after a fixed delay (consultation counterpart). Delayed
replies are bound to a CancelToken owned by the thread's view: closing the
view cancels every reply still waiting, so nothing is written into a thread
the user has left.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

logger = logging.getLogger(__name__)

DELAY_PROFILES: dict[str, float] = {
    "instant": 0.0,
    "consultation": 2.0,
}


class CancelToken:
    """Cancellation scope tied to one view's lifetime."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._cancelled = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def track(self, task: asyncio.Task[Any]) -> None:
        if self._cancelled:
            task.cancel()
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> int:
        """Cancel every pending timer. Returns how many were still waiting."""
        self._cancelled = True
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("responder: cancelled %d pending replies token=%s", len(tasks), self.label)
        return len(tasks)


class SimulatedResponder:
    """Scripted stand-in for an asynchronous remote participant."""

    def __init__(
        self,
        phrases: Sequence[str],
        *,
        delay: float | str = "instant",
        rng: random.Random | None = None,
    ):
        if not phrases:
            raise ValueError("Responder needs at least one phrase")
        if isinstance(delay, str):
            if delay not in DELAY_PROFILES:
                raise ValueError(f"Unknown delay profile: {delay!r}. Valid profiles: {list(DELAY_PROFILES)}")
            delay = DELAY_PROFILES[delay]
        self.phrases = list(phrases)
        self.delay = float(delay)
        self._rng = rng or random.Random()

    def pick(self) -> str:
        """Pseudo-random phrase from the fixed set."""
        return self._rng.choice(self.phrases)

    def schedule(
        self,
        token: CancelToken,
        write: Callable[[str], Awaitable[Any]],
    ) -> asyncio.Task[Any] | None:
        """
        Write a reply after the configured delay unless token is cancelled first.

        The reply text is chosen now; write receives it when the timer fires.
        Returns None if the token is already cancelled.
        """
        if token.cancelled:
            return None
        reply = self.pick()
        task = asyncio.ensure_future(self._fire(token, reply, write))
        token.track(task)
        return task

    async def _fire(self, token: CancelToken, reply: str, write: Callable[[str], Awaitable[Any]]) -> Any:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if token.cancelled:
            logger.debug("responder: reply dropped, token=%s cancelled", token.label)
            return None
        return await write(reply)

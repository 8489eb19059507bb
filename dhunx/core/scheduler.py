# core/scheduler.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

log = logging.getLogger(__name__)

class DebouncedTask:
    """
    Single cancellable timer around an async callback.

    Every schedule() call re-arms the same timer, so a burst of calls inside
    the delay window results in one callback run when the timer fires.
    fire_now() runs a pending callback immediately without waiting.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float):
        self._callback = callback
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._on_timer)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def fire_now(self) -> bool:
        """Run the pending callback now. Returns False when nothing was pending."""
        if self._handle is None:
            return False
        self.cancel()
        await self._run()
        return True

    async def drain(self) -> None:
        """Wait for callbacks already started by the timer"""
        if self._running:
            await asyncio.gather(*self._running)

    def _on_timer(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._run())
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception as e:
            log.error(f"Scheduled callback failed: {e}")

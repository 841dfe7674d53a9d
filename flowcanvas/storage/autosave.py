"""Debounced draft autosave."""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from flowcanvas.visual.flow import AutomationFlow

logger = structlog.get_logger(__name__)

DEFAULT_DELAY = 1.5

SaveCallback = Callable[[AutomationFlow], Awaitable[None]]


class Autosaver:
    """Writes the latest flow once no edit has happened for ``delay`` seconds.

    Every :meth:`schedule` re-arms the timer. Without a running event loop
    the flow is only kept pending until :meth:`flush`.
    """

    def __init__(self, callback: SaveCallback, delay: float = DEFAULT_DELAY):
        self._callback = callback
        self.delay = delay
        self._pending: Optional[AutomationFlow] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, flow: AutomationFlow) -> None:
        self._pending = flow
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("autosave_deferred_no_loop", flow_id=flow.id)
            return
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        self._task = None
        try:
            await self._write()
        except Exception as e:
            logger.error("autosave_failed", error=str(e))

    async def _write(self) -> None:
        flow = self._pending
        if flow is None:
            return
        await self._callback(flow)
        # a newer flow scheduled during the write stays pending
        if self._pending is flow:
            self._pending = None
        logger.debug("autosave_written", flow_id=flow.id)

    def _cancel_timer(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def cancel(self) -> None:
        """Drop the pending write."""
        self._cancel_timer()
        self._pending = None

    async def flush(self) -> None:
        """Write the pending flow now."""
        self._cancel_timer()
        await self._write()

"""
Frame Clock - Drives the host's tick notification from an asyncio loop.

Stands in for the animation-frame callback of a UI: once per interval it
calls ``tick()`` on the target, which fans out to tick subscribers.
"""

import asyncio
import logging
from typing import Optional, Protocol

from funcarrows.core.config import get_config

logger = logging.getLogger(__name__)


class Tickable(Protocol):
    def tick(self) -> None:
        ...


class FrameClock:
    """Periodic tick driver."""

    def __init__(self, target: Tickable, interval_ms: Optional[float] = None):
        """
        Initialize the clock.

        Args:
            target: Object whose ``tick()`` is called every frame
            interval_ms: Frame interval, defaults to TimingConfig.frame_interval_ms
        """
        self._target = target
        self._interval_ms = interval_ms if interval_ms is not None else get_config().timing.frame_interval_ms
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._frames = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def frames(self) -> int:
        """Number of frames delivered since start."""
        return self._frames

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self._running:
            logger.warning("Frame clock already running")
            return
        self._running = True
        self._frames = 0
        self._task = asyncio.create_task(self._frame_loop())
        logger.debug(f"Frame clock started ({self._interval_ms}ms)")

    async def _frame_loop(self) -> None:
        """Main frame loop."""
        while self._running:
            try:
                self._target.tick()
            except Exception as e:
                logger.error(f"Error in frame tick: {e}")
            self._frames += 1
            await asyncio.sleep(self._interval_ms / 1000.0)

    async def run_frames(self, count: int) -> None:
        """Deliver exactly ``count`` frames, paced by the interval."""
        for _ in range(count):
            self._target.tick()
            self._frames += 1
            await asyncio.sleep(self._interval_ms / 1000.0)

    async def stop(self) -> None:
        """Stop ticking and wait for the loop to finish."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.debug(f"Frame clock stopped after {self._frames} frames")

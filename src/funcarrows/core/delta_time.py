"""
Delta Time - Frame-to-frame elapsed time for tick programs.

Programs read ``dt`` (milliseconds since the previous frame). The value is
clamped so that a clock resuming after a stall or a backgrounded window
cannot produce a huge step.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class DeltaTime:
    """
    Tracks the elapsed time between frames.

    ``tick()`` is called once per frame by the frame driver; ``dt`` is 0
    until two frames have been observed.
    """

    def __init__(
        self,
        max_delta_ms: float = 100.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the frame timer.

        Args:
            max_delta_ms: Upper clamp for the reported delta
            clock: Millisecond clock, defaults to the monotonic clock
        """
        self._max_delta_ms = max_delta_ms
        self._clock = clock or _monotonic_ms
        self._last_time: Optional[float] = None
        self._dt = 0.0

    @property
    def dt(self) -> float:
        """Milliseconds since the previous frame, clamped to [0, max]."""
        return min(self._max_delta_ms, max(0.0, self._dt))

    @property
    def raw_dt(self) -> float:
        """Unclamped delta of the last frame."""
        return self._dt

    def tick(self, now_ms: Optional[float] = None) -> float:
        """
        Record a frame.

        Args:
            now_ms: Frame timestamp in milliseconds, defaults to the clock

        Returns:
            The clamped delta for this frame
        """
        now = self._clock() if now_ms is None else now_ms
        if self._last_time is None:
            self._dt = 0.0
        else:
            self._dt = now - self._last_time
            if self._dt > self._max_delta_ms:
                logger.debug(f"Frame delta {self._dt:.1f}ms clamped to {self._max_delta_ms}ms")
        self._last_time = now
        return self.dt

    def reset(self) -> None:
        """Forget the previous frame."""
        self._last_time = None
        self._dt = 0.0

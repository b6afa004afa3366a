"""
Tests for funcarrows.core.delta_time module.
"""

from funcarrows.core.delta_time import DeltaTime


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestDeltaTime:
    """Tests for DeltaTime."""

    def test_zero_before_two_frames(self):
        """Test that dt is 0 until a previous frame exists."""
        delta = DeltaTime(clock=FakeClock())

        assert delta.dt == 0.0
        assert delta.tick() == 0.0

    def test_elapsed_between_frames(self):
        clock = FakeClock()
        delta = DeltaTime(clock=clock)
        delta.tick()

        clock.now += 16.0

        assert delta.tick() == 16.0
        assert delta.dt == 16.0

    def test_clamped_to_max(self):
        """Test that a long stall does not produce a huge step."""
        clock = FakeClock()
        delta = DeltaTime(max_delta_ms=100.0, clock=clock)
        delta.tick()

        clock.now += 5000.0
        delta.tick()

        assert delta.dt == 100.0
        assert delta.raw_dt == 5000.0

    def test_clamped_to_zero(self):
        """Test that a clock going backwards gives 0."""
        delta = DeltaTime()
        delta.tick(now_ms=500.0)
        delta.tick(now_ms=400.0)

        assert delta.dt == 0.0

    def test_explicit_timestamps(self):
        delta = DeltaTime()
        delta.tick(now_ms=0.0)
        assert delta.tick(now_ms=33.0) == 33.0

    def test_reset(self):
        delta = DeltaTime()
        delta.tick(now_ms=0.0)
        delta.tick(now_ms=20.0)
        delta.reset()

        assert delta.dt == 0.0
        assert delta.tick(now_ms=1000.0) == 0.0

    def test_default_clock(self):
        """Test the monotonic clock keeps dt within bounds."""
        delta = DeltaTime()
        delta.tick()
        delta.tick()
        assert 0.0 <= delta.dt <= 100.0

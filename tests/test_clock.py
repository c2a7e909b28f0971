"""Clock implementations."""

from datetime import datetime, timedelta, timezone

import pytest

from clinicdesk.core.clock import Clock, FixedClock, SystemClock


class TestClock:
    def test_base_clock_is_abstract(self):
        with pytest.raises(TypeError):
            Clock()

    def test_subclass_must_implement_now(self):
        class Incomplete(Clock):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_system_clock_is_utc(self):
        assert SystemClock().now().utcoffset() == timedelta(0)


class TestFixedClock:
    def test_naive_instant_is_taken_as_utc(self):
        clock = FixedClock(datetime(2026, 1, 19, 13, 0))
        assert clock.now() == datetime(2026, 1, 19, 13, 0, tzinfo=timezone.utc)

    def test_set_and_advance(self):
        clock = FixedClock()
        clock.set(datetime(2026, 1, 19, 13, 0))
        assert clock.advance(minutes=30) == datetime(2026, 1, 19, 13, 30, tzinfo=timezone.utc)
        assert clock.now() == datetime(2026, 1, 19, 13, 30, tzinfo=timezone.utc)

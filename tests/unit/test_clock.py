"""Unit tests for the injectable clocks."""

from datetime import date, datetime, timezone

from invoicing_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        clock = DeterministicClock(datetime(2025, 3, 15, 23, 59, 59, tzinfo=timezone.utc))

        assert clock.now() == clock.now()
        assert clock.today() == date(2025, 3, 15)

        clock.advance(1)
        assert clock.today() == date(2025, 3, 16)

    def test_advance_days(self):
        clock = DeterministicClock()
        clock.advance_days(31)

        assert clock.today() == date(2024, 2, 1)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(3600)
        clock.set_time(datetime(2026, 1, 1, tzinfo=timezone.utc))

        assert clock.now() == datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestSystemClock:

    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None

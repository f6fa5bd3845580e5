"""Tests for the clock oracle implementations."""

from __future__ import annotations

import pytest

from confidential_swap.domain.clock import Clock, FixedClock, SystemClock


class TestClocks:
    def test_protocol(self) -> None:
        assert isinstance(SystemClock(), Clock)
        assert isinstance(FixedClock(1), Clock)

    def test_system_clock_never_goes_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        times = iter([200.0, 100.0, 300.0])
        monkeypatch.setattr("confidential_swap.domain.clock.time.time", lambda: next(times))
        clock = SystemClock()
        assert [clock.now(), clock.now(), clock.now()] == [200, 200, 300]

    def test_fixed_clock_advance(self) -> None:
        clock = FixedClock(10)
        clock.advance(5)
        assert clock.now() == 15

    def test_fixed_clock_rejects_rewind(self) -> None:
        with pytest.raises(ValueError):
            FixedClock(10).advance(-1)

"""
tests/unit/test_throughput.py - Sliding-window throughput tests.
"""

import pytest

from monitoring.throughput import ThroughputMeter


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestThroughputMeter:
    def test_empty(self):
        meter = ThroughputMeter(window_seconds=10, clock=ManualClock())

        assert meter.rate() == 0
        assert meter.total == 0

    def test_rate_over_window(self):
        clock = ManualClock()
        meter = ThroughputMeter(window_seconds=10, clock=clock)

        for _ in range(5):
            meter.record()
            clock.now += 1

        assert meter.count_in_window() == 5
        assert meter.rate() == pytest.approx(0.5)

    def test_events_age_out(self):
        clock = ManualClock()
        meter = ThroughputMeter(window_seconds=10, clock=clock)

        meter.record(3)
        clock.now = 5
        meter.record()
        clock.now = 10

        assert meter.count_in_window() == 1
        clock.now = 15
        assert meter.count_in_window() == 0
        assert meter.total == 4

    def test_snapshot(self):
        clock = ManualClock()
        meter = ThroughputMeter(window_seconds=4, clock=clock)
        meter.record(2)

        snap = meter.snapshot()

        assert snap["tps"] == 0.5
        assert snap["in_window"] == 2
        assert snap["total"] == 2

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            ThroughputMeter(window_seconds=0)

from __future__ import annotations

import threading
import unittest

from water_reminder import (
    DEFAULT_INTERVAL_SECONDS,
    InvalidIntervalError,
    MAX_INTERVAL_SECONDS,
    ReminderScheduler,
    ReminderState,
)


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class ReminderStateTests(unittest.TestCase):
    def test_defaults_to_one_hour_with_start_as_baseline(self) -> None:
        clock = FakeClock(42.0)
        state = ReminderState(clock=clock)
        self.assertEqual(state.interval, DEFAULT_INTERVAL_SECONDS)
        self.assertEqual(state.last_shown, 42.0)

    def test_set_interval_is_read_back(self) -> None:
        state = ReminderState(clock=FakeClock())
        for value in (1, 5, 59, 3600, 86_399, MAX_INTERVAL_SECONDS):
            state.set_interval(value)
            self.assertEqual(state.interval, value)

    def test_rejects_non_positive_and_non_integer_intervals(self) -> None:
        state = ReminderState(interval=120, clock=FakeClock())
        for bad in (0, -5, 1.5, "60", None, True, MAX_INTERVAL_SECONDS + 1, 10**400):
            with self.assertRaises(InvalidIntervalError):
                state.set_interval(bad)
        self.assertEqual(state.interval, 120)

    def test_seconds_until_next_counts_down_and_floors_at_zero(self) -> None:
        clock = FakeClock()
        state = ReminderState(interval=10, clock=clock)
        clock.now = 4.0
        self.assertEqual(state.seconds_until_next(), 6.0)
        clock.now = 25.0
        self.assertEqual(state.seconds_until_next(), 0.0)

    def test_countdown_works_at_longest_interval(self) -> None:
        clock = FakeClock(1000.0)
        state = ReminderState(interval=MAX_INTERVAL_SECONDS, clock=clock)
        clock.now = 1001.5
        self.assertEqual(state.seconds_until_next(), MAX_INTERVAL_SECONDS - 1.5)


class ReminderSchedulerTickTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.state = ReminderState(clock=self.clock)
        self.fired: list[float] = []
        self.scheduler = ReminderScheduler(self.state, lambda: self.fired.append(self.clock.now))

    def tick_at(self, moment: float) -> None:
        self.clock.now = moment
        self.scheduler.tick()

    def test_fires_once_when_interval_elapses(self) -> None:
        self.tick_at(3599)
        self.assertEqual(self.fired, [])

        self.tick_at(3600)
        self.assertEqual(self.fired, [3600])
        self.assertEqual(self.state.last_shown, 3600)

        self.tick_at(3601)
        self.assertEqual(self.fired, [3600])

    def test_shorter_interval_uses_existing_baseline(self) -> None:
        self.tick_at(3600)
        self.clock.now = 3602
        self.state.set_interval(5)

        self.tick_at(3603)
        self.tick_at(3604)
        self.assertEqual(self.fired, [3600])

        self.tick_at(3605)
        self.assertEqual(self.fired, [3600, 3605])

    def test_shortening_below_elapsed_fires_on_next_tick(self) -> None:
        self.tick_at(1800)
        self.assertEqual(self.fired, [])

        self.state.set_interval(600)
        self.tick_at(1801)
        self.assertEqual(self.fired, [1801])
        self.assertEqual(self.state.last_shown, 1801)

    def test_changing_interval_does_not_reset_baseline(self) -> None:
        self.clock.now = 100
        self.state.set_interval(7200)
        self.assertEqual(self.state.last_shown, 0)

    def test_failing_trigger_still_resets_baseline(self) -> None:
        def broken() -> None:
            raise RuntimeError("window is gone")

        scheduler = ReminderScheduler(self.state, broken)
        self.clock.now = 3600
        scheduler.tick()
        self.assertEqual(self.state.last_shown, 3600)


class ReminderSchedulerThreadTests(unittest.TestCase):
    def test_background_loop_fires_and_stops(self) -> None:
        clock = FakeClock()
        state = ReminderState(interval=1, clock=clock)
        fired = threading.Event()
        calls: list[int] = []

        def on_trigger() -> None:
            calls.append(1)
            fired.set()

        scheduler = ReminderScheduler(state, on_trigger, tick_seconds=0.01)
        clock.now = 5.0
        self.assertTrue(scheduler.start())
        try:
            self.assertFalse(scheduler.start())
            self.assertTrue(fired.wait(timeout=2.0))
        finally:
            scheduler.stop()

        self.assertFalse(scheduler.is_running)
        self.assertEqual(len(calls), 1)
        self.assertEqual(state.last_shown, 5.0)

    def test_stop_without_start_is_a_no_op(self) -> None:
        scheduler = ReminderScheduler(ReminderState(clock=FakeClock()), lambda: None)
        scheduler.stop()
        self.assertFalse(scheduler.is_running)

    def test_can_restart_after_stop(self) -> None:
        scheduler = ReminderScheduler(ReminderState(clock=FakeClock()), lambda: None, tick_seconds=0.01)
        self.assertTrue(scheduler.start())
        scheduler.stop()
        self.assertTrue(scheduler.start())
        scheduler.stop()
        self.assertFalse(scheduler.is_running)


if __name__ == "__main__":
    unittest.main()

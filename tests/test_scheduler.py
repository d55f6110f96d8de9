"""
Tests for single-pass and continuous monitoring.
"""

import threading
import time
import unittest

from src.driftwatch.errors import PassCancelledError, StateLoadError
from src.driftwatch.scheduler import MonitoringScheduler, SchedulerState


class TestRunOnce(unittest.TestCase):
    def test_returns_pass_result(self) -> None:
        scheduler = MonitoringScheduler(lambda cancel_event: "result", interval_seconds=60)
        self.assertEqual(scheduler.run_once(), "result")
        self.assertEqual(scheduler.state, SchedulerState.IDLE)
        self.assertEqual(scheduler.passes_run, 1)

    def test_errors_propagate(self) -> None:
        def failing_pass(cancel_event: threading.Event) -> None:
            raise StateLoadError("no state")

        scheduler = MonitoringScheduler(failing_pass, interval_seconds=60)
        with self.assertRaises(StateLoadError):
            scheduler.run_once()
        self.assertEqual(scheduler.state, SchedulerState.IDLE)

    def test_invalid_interval(self) -> None:
        with self.assertRaises(ValueError):
            MonitoringScheduler(lambda cancel_event: None, interval_seconds=0)


class TestRunForever(unittest.TestCase):
    def test_cancel_during_wait_returns_promptly(self) -> None:
        cancel_event = threading.Event()
        scheduler = MonitoringScheduler(lambda e: "ok", interval_seconds=3600)

        thread = threading.Thread(target=scheduler.run_forever, args=(cancel_event,))
        started = time.monotonic()
        thread.start()
        time.sleep(0.1)
        cancel_event.set()
        thread.join(timeout=5)

        self.assertFalse(thread.is_alive())
        self.assertLess(time.monotonic() - started, 5)
        self.assertEqual(scheduler.passes_run, 1)
        self.assertEqual(scheduler.state, SchedulerState.CANCELLED)

    def test_failing_pass_does_not_stop_the_loop(self) -> None:
        cancel_event = threading.Event()
        calls = []
        results = []

        def run_pass(e: threading.Event) -> str:
            calls.append(1)
            if len(calls) == 1:
                raise StateLoadError("transient")
            if len(calls) == 3:
                e.set()
            return "ok"

        scheduler = MonitoringScheduler(run_pass, interval_seconds=0.01)
        scheduler.run_forever(cancel_event, on_result=results.append)

        self.assertEqual(len(calls), 3)
        self.assertEqual(results, ["ok", "ok"])
        self.assertEqual(scheduler.state, SchedulerState.CANCELLED)

    def test_cancelled_pass_ends_the_loop(self) -> None:
        cancel_event = threading.Event()

        def run_pass(e: threading.Event) -> None:
            e.set()
            raise PassCancelledError("cancelled")

        scheduler = MonitoringScheduler(run_pass, interval_seconds=0.01)
        scheduler.run_forever(cancel_event)
        self.assertEqual(scheduler.passes_run, 1)

    def test_no_pass_after_cancellation(self) -> None:
        cancel_event = threading.Event()
        cancel_event.set()
        calls = []
        scheduler = MonitoringScheduler(lambda e: calls.append(1), interval_seconds=0.01)
        scheduler.run_forever(cancel_event)
        self.assertEqual(calls, [])


if __name__ == "__main__":
    unittest.main()

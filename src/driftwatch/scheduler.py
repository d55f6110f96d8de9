"""
Monitoring scheduler.

Runs detection passes either once or on a fixed period until cancelled.
Cancellation is a ``threading.Event``: setting it wakes the inter-pass wait
immediately and in-flight passes observe it between resources and sends.
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

from ..utils import setup_logging
from .errors import PassCancelledError

logger = setup_logging()

T = TypeVar("T")


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


class MonitoringScheduler:
    """
    Drives ``run_pass`` in single-pass or continuous mode.

    Args:
        run_pass: Callable taking the cancel event and returning a pass result
        interval_seconds: Fixed period between pass starts in continuous mode
    """

    def __init__(
        self,
        run_pass: Callable[[threading.Event], T],
        interval_seconds: float = 300.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.run_pass = run_pass
        self.interval_seconds = interval_seconds
        self.state = SchedulerState.IDLE
        self.passes_run = 0

    def run_once(self, cancel_event: Optional[threading.Event] = None) -> T:
        """
        Run exactly one pass and return its result. Errors propagate.
        """
        cancel_event = cancel_event or threading.Event()
        self.state = SchedulerState.RUNNING
        try:
            return self.run_pass(cancel_event)
        finally:
            self.passes_run += 1
            self.state = SchedulerState.CANCELLED if cancel_event.is_set() else SchedulerState.IDLE

    def run_forever(
        self,
        cancel_event: threading.Event,
        on_result: Optional[Callable[[T], None]] = None,
    ) -> None:
        """
        Run passes every ``interval_seconds`` until ``cancel_event`` is set.

        A failing pass is logged and the loop continues; the next pass starts
        one period after the previous one started.
        """
        logger.info(f"Starting continuous monitoring (interval: {self.interval_seconds}s)")
        while not cancel_event.is_set():
            started = time.monotonic()
            self.state = SchedulerState.RUNNING
            try:
                result = self.run_pass(cancel_event)
                if on_result is not None:
                    on_result(result)
            except PassCancelledError:
                logger.info("Detection pass cancelled")
                break
            except Exception:
                logger.exception("Detection pass failed; continuing")
            finally:
                self.passes_run += 1

            if cancel_event.is_set():
                break
            self.state = SchedulerState.IDLE
            remaining = self.interval_seconds - (time.monotonic() - started)
            if remaining > 0 and cancel_event.wait(remaining):
                break

        self.state = SchedulerState.CANCELLED
        logger.info("Stopping drift monitoring")

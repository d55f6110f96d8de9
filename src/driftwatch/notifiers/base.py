"""
Notification channel contract and shared HTTP transport.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ...utils import setup_logging
from ..errors import NotificationError, PassCancelledError
from ..models import Report
from ..types import ABSENT

logger = setup_logging()

USER_AGENT = "driftwatch/1.0"
DEFAULT_TIMEOUT_SECONDS = 10.0


def format_value(value: Any) -> str:
    """Human-readable rendering of a Change value."""
    if value is ABSENT:
        return "<absent>"
    return str(value)


class Notifier(ABC):
    """A single notification channel."""

    #: Channel name used in dispatch results and error messages
    name: str = ""

    @abstractmethod
    def send(self, report: Report, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Deliver the report.

        Raises:
            NotificationError: If the channel is misconfigured or delivery fails
            PassCancelledError: If cancellation is observed before delivery starts
        """

    def raise_if_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise PassCancelledError(f"{self.name} notification cancelled")


class HTTPNotifier(Notifier):
    """Base for channels that POST JSON to a URL."""

    def __init__(
        self,
        url: Optional[str],
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url or ""
        self.timeout_seconds = timeout_seconds
        self._http = http_client

    def _post_json(
        self, payload: Dict[str, Any], cancel_event: Optional[threading.Event] = None
    ) -> None:
        self.raise_if_cancelled(cancel_event)
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        try:
            if self._http is not None:
                response = self._http.post(self.url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=httpx.Timeout(self.timeout_seconds)) as client:
                    response = client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(self.name, f"request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(self.name, f"returned status {response.status_code}")
        logger.debug(f"{self.name} notification sent successfully")

"""
Generic webhook channel: POSTs the wire-format report unchanged.
"""

import threading
from typing import Optional

from ..errors import NotificationError
from ..models import Report
from .base import HTTPNotifier


class WebhookNotifier(HTTPNotifier):
    name = "webhook"

    def send(self, report: Report, cancel_event: Optional[threading.Event] = None) -> None:
        if not self.url:
            raise NotificationError(self.name, "webhook URL not configured")
        self._post_json(dict(report.to_dict()), cancel_event)

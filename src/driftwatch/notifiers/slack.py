"""
Slack incoming-webhook channel.
"""

import threading
from typing import Any, Dict, List, Optional

from ..errors import NotificationError
from ..models import Report
from .base import HTTPNotifier, format_value

# Number of drifts rendered inline before the "... and N more" line
MAX_INLINE_DRIFTS = 5


def build_slack_message(report: Report) -> Dict[str, Any]:
    """Build the attachment-style Slack payload for a report."""
    color = "danger" if report.has_drift else "good"

    fields = [
        {"title": "Total Resources", "value": str(report.total_resources), "short": True},
        {"title": "Drifted Resources", "value": str(report.drift_count), "short": True},
    ]

    lines: List[str] = []
    for i, drift in enumerate(report.drifts):
        if i >= MAX_INLINE_DRIFTS:
            lines.append(f"\n... and {report.drift_count - MAX_INLINE_DRIFTS} more")
            break
        lines.append(f"\n• *{drift.resource_name}* ({drift.resource_type})\n")
        for change in drift.changes:
            lines.append(
                f"  - {change.field}: `{format_value(change.expected)}` → `{format_value(change.actual)}`\n"
            )

    attachment = {
        "color": color,
        "title": "🔍 Infrastructure Drift Detection Report",
        "text": "".join(lines),
        "fields": fields,
        "footer": "Drift Detector",
        "ts": int(report.timestamp.timestamp()),
    }
    return {"text": "Infrastructure Drift Detected", "attachments": [attachment]}


class SlackNotifier(HTTPNotifier):
    name = "slack"

    def send(self, report: Report, cancel_event: Optional[threading.Event] = None) -> None:
        if not self.url:
            raise NotificationError(self.name, "Slack webhook URL not configured")
        self._post_json(build_slack_message(report), cancel_event)

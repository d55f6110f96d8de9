"""
SMTP email channel.
"""

import html
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Sequence

from ...utils import setup_logging
from ..errors import NotificationError
from ..models import Report
from .base import DEFAULT_TIMEOUT_SECONDS, Notifier, format_value

logger = setup_logging()


def build_email_subject(report: Report) -> str:
    return f"[DRIFT ALERT] {report.drift_count} resource(s) drifted"


def build_email_html(report: Report) -> str:
    """Render the report as an HTML table, one row per drifted resource."""
    parts: List[str] = ["<html><body>", "<h2>🔍 Infrastructure Drift Detection Report</h2>"]

    if not report.has_drift:
        parts.append("<p style='color: green;'>✓ No drift detected. Infrastructure is in sync!</p>")
    else:
        parts.append(
            f"<p style='color: red;'>⚠ Drift detected in {report.drift_count} resource(s)</p>"
        )
        parts.append("<table border='1' cellpadding='10' cellspacing='0'>")
        parts.append(
            "<tr><th>Resource</th><th>Type</th><th>Provider</th><th>Severity</th><th>Changes</th></tr>"
        )
        for drift in report.drifts:
            parts.append("<tr>")
            parts.append(f"<td>{html.escape(drift.resource_name)}</td>")
            parts.append(f"<td>{html.escape(drift.resource_type)}</td>")
            parts.append(f"<td>{html.escape(drift.provider)}</td>")
            parts.append(f"<td>{drift.severity.value}</td>")
            parts.append("<td><ul>")
            for change in drift.changes:
                parts.append(
                    f"<li>{html.escape(change.field)}: "
                    f"{html.escape(format_value(change.expected))} → "
                    f"{html.escape(format_value(change.actual))}</li>"
                )
            parts.append("</ul></td>")
            parts.append("</tr>")
        parts.append("</table>")

    parts.append("<hr>")
    parts.append(
        f"<p><small>Sent by Drift Detector | Report generated at "
        f"{report.timestamp.strftime('%Y-%m-%d %H:%M:%S')}</small></p>"
    )
    parts.append("</body></html>")
    return "".join(parts)


def build_email_text(report: Report) -> str:
    lines = [report.summary, ""]
    for drift in report.drifts:
        lines.append(f"[{drift.severity.value}] {drift.resource_type}.{drift.resource_name} ({drift.provider})")
        for change in drift.changes:
            lines.append(
                f"  - {change.field}: {format_value(change.expected)} -> {format_value(change.actual)}"
            )
    return "\n".join(lines)


class EmailNotifier(Notifier):
    name = "email"

    def __init__(
        self,
        smtp_host: Optional[str],
        smtp_port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_address: Optional[str] = None,
        to: Sequence[str] = (),
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.from_address = from_address or "driftwatch@localhost"
        self.to = list(to)
        self.timeout_seconds = timeout_seconds

    def build_message(self, report: Report) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = build_email_subject(report)
        msg["From"] = self.from_address
        msg["To"] = ", ".join(self.to)
        msg.attach(MIMEText(build_email_text(report), "plain"))
        msg.attach(MIMEText(build_email_html(report), "html"))
        return msg

    def send(self, report: Report, cancel_event: Optional[threading.Event] = None) -> None:
        if not self.smtp_host or not self.to:
            raise NotificationError(self.name, "email configuration incomplete")

        msg = self.build_message(report)
        logger.debug(f"Sending email to {self.to}")
        self.raise_if_cancelled(cancel_event)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout_seconds) as server:
                if self.username and self.password:
                    server.starttls()
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(self.name, f"failed to send email: {e}") from e
        logger.info(f"Email notification sent: {msg['Subject']}")

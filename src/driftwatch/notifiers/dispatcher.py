"""
Notification dispatcher.

Sends one report to every enabled channel. Channels are independent: a
failing channel never prevents the others from being attempted, and dispatch
only returns once every send has finished. Outcomes are reported in channel
order regardless of completion order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from ...utils import setup_logging
from ..errors import NotificationDispatchError, NotificationError, PassCancelledError
from ..models import Report, Severity
from .base import Notifier
from .email import EmailNotifier
from .slack import SlackNotifier
from .webhook import WebhookNotifier

logger = setup_logging()


class ChannelStatus(str, Enum):
    """Outcome of one channel send."""

    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ChannelOutcome:
    channel: str
    status: ChannelStatus
    error: Optional[str] = None


@dataclass
class DispatchResult:
    """Per-channel outcomes of one dispatch, or the reason nothing was sent."""

    outcomes: List[ChannelOutcome] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    @property
    def failed(self) -> List[ChannelOutcome]:
        return [o for o in self.outcomes if o.status == ChannelStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise ``NotificationDispatchError`` if any channel failed."""
        failed = self.failed
        if failed:
            raise NotificationDispatchError(
                [NotificationError(o.channel, o.error or "failed") for o in failed]
            )


@dataclass(frozen=True)
class NotificationPolicy:
    """
    When a report is sent at all.

    Attributes:
        dry_run: Never send; the report is only printed
        no_notify: Never send
        always_notify: Send even when the report has no drift
        min_severity: Only send when some drift is at least this severe
    """

    dry_run: bool = False
    no_notify: bool = False
    always_notify: bool = False
    min_severity: Optional[Severity] = None

    def skip_reason(self, report: Report) -> Optional[str]:
        if self.dry_run:
            return "dry run"
        if self.no_notify:
            return "notifications disabled"
        if self.always_notify:
            return None
        if not report.has_drift:
            return "no drift detected"
        if self.min_severity is not None and not any(
            d.severity.at_least(self.min_severity) for d in report.drifts
        ):
            return f"no drift at or above {self.min_severity.value} severity"
        return None


class NotificationDispatcher:
    """Fans a report out to the configured channels."""

    def __init__(
        self,
        channels: Sequence[Notifier],
        policy: Optional[NotificationPolicy] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.channels = list(channels)
        self.policy = policy or NotificationPolicy()
        self.max_workers = max_workers

    def dispatch(
        self, report: Report, cancel_event: Optional[threading.Event] = None
    ) -> DispatchResult:
        reason = self.policy.skip_reason(report)
        if reason is None and not self.channels:
            reason = "no notification channels enabled"
        if reason is not None:
            logger.info(f"Skipping notifications: {reason}")
            return DispatchResult(skipped_reason=reason)

        workers = self.max_workers or len(self.channels)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify") as executor:
            futures = [
                executor.submit(self._send_one, channel, report, cancel_event)
                for channel in self.channels
            ]
            outcomes = [f.result() for f in futures]

        result = DispatchResult(outcomes=outcomes)
        if result.ok:
            logger.info(f"Notifications sent to {len(outcomes)} channel(s)")
        else:
            logger.error(
                f"Some notifications failed to send: {', '.join(o.channel for o in result.failed)}"
            )
        return result

    def _send_one(
        self, channel: Notifier, report: Report, cancel_event: Optional[threading.Event]
    ) -> ChannelOutcome:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Cancelled before sending {channel.name} notification")
            return ChannelOutcome(channel.name, ChannelStatus.CANCELLED)
        try:
            channel.send(report, cancel_event)
        except PassCancelledError:
            logger.info(f"Cancelled while sending {channel.name} notification")
            return ChannelOutcome(channel.name, ChannelStatus.CANCELLED)
        except NotificationError as e:
            logger.error(f"Failed to send {channel.name} notification: {e}")
            return ChannelOutcome(channel.name, ChannelStatus.FAILED, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error sending {channel.name} notification")
            return ChannelOutcome(channel.name, ChannelStatus.FAILED, f"{channel.name}: {e}")
        return ChannelOutcome(channel.name, ChannelStatus.SENT)


def build_channels(notifications: Any, timeout_seconds: float = 10.0) -> List[Notifier]:
    """
    Build the enabled channels from a ``NotificationsConfig``.

    Channels are ordered slack, email, webhook. An enabled channel with
    incomplete settings is still built so its send fails and is reported.
    """
    channels: List[Notifier] = []
    slack = notifications.slack
    if slack.enabled:
        channels.append(SlackNotifier(slack.webhook_url, timeout_seconds=timeout_seconds))
    email = notifications.email
    if email.enabled:
        channels.append(
            EmailNotifier(
                smtp_host=email.smtp_host,
                smtp_port=email.smtp_port,
                username=email.username,
                password=email.password,
                from_address=email.from_address,
                to=email.to,
                timeout_seconds=timeout_seconds,
            )
        )
    webhook = notifications.webhook
    if webhook.enabled:
        channels.append(WebhookNotifier(webhook.url, timeout_seconds=timeout_seconds))
    return channels

"""
Tests for the notification dispatcher: policy, partial failure and
cancellation.
"""

import threading
import time
import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import List, Optional

from src.driftwatch.errors import NotificationDispatchError, NotificationError, PassCancelledError
from src.driftwatch.models import Change, DriftItem, Report, Severity
from src.driftwatch.notifiers import (
    ChannelStatus,
    EmailNotifier,
    NotificationDispatcher,
    NotificationPolicy,
    Notifier,
    SlackNotifier,
    WebhookNotifier,
    build_channels,
)


class FakeNotifier(Notifier):
    def __init__(self, name: str, error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.name = name
        self.error = error
        self.delay = delay
        self.sent: List[Report] = []

    def send(self, report: Report, cancel_event: Optional[threading.Event] = None) -> None:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.sent.append(report)


def make_report(*severities: Severity) -> Report:
    drifts = [
        DriftItem(
            resource_type="aws_instance",
            resource_name=f"r{i}",
            provider="AWS",
            severity=severity,
            changes=(Change("ami", "a", "b"),),
        )
        for i, severity in enumerate(severities)
    ]
    return Report(
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        total_resources=5,
        drifts=drifts,
        summary="test",
    )


class TestNotificationPolicy(unittest.TestCase):
    def test_no_drift_skips_unless_always_notify(self) -> None:
        clean = make_report()
        self.assertEqual(NotificationPolicy().skip_reason(clean), "no drift detected")
        self.assertIsNone(NotificationPolicy(always_notify=True).skip_reason(clean))

    def test_dry_run_wins_over_always_notify(self) -> None:
        policy = NotificationPolicy(dry_run=True, always_notify=True)
        self.assertEqual(policy.skip_reason(make_report(Severity.CRITICAL)), "dry run")

    def test_no_notify(self) -> None:
        self.assertIsNotNone(NotificationPolicy(no_notify=True).skip_reason(make_report(Severity.HIGH)))

    def test_min_severity(self) -> None:
        policy = NotificationPolicy(min_severity=Severity.HIGH)
        self.assertIsNotNone(policy.skip_reason(make_report(Severity.MEDIUM, Severity.LOW)))
        self.assertIsNone(policy.skip_reason(make_report(Severity.MEDIUM, Severity.CRITICAL)))


class TestNotificationDispatcher(unittest.TestCase):
    def test_failure_does_not_short_circuit(self) -> None:
        slack = FakeNotifier("slack", error=NotificationError("slack", "returned status 500"))
        email = FakeNotifier("email", delay=0.05)
        webhook = FakeNotifier("webhook")
        result = NotificationDispatcher([slack, email, webhook]).dispatch(make_report(Severity.MEDIUM))

        self.assertEqual(len(email.sent), 1)
        self.assertEqual(len(webhook.sent), 1)
        self.assertFalse(result.ok)
        self.assertEqual([o.channel for o in result.outcomes], ["slack", "email", "webhook"])
        self.assertEqual(
            [o.status for o in result.outcomes],
            [ChannelStatus.FAILED, ChannelStatus.SENT, ChannelStatus.SENT],
        )
        with self.assertRaises(NotificationDispatchError) as context:
            result.raise_for_failures()
        self.assertEqual(context.exception.failed_channels, ["slack"])
        self.assertIn("some notifications failed to send", str(context.exception))

    def test_unexpected_exception_is_a_channel_failure(self) -> None:
        broken = FakeNotifier("webhook", error=RuntimeError("bug"))
        ok = FakeNotifier("slack")
        result = NotificationDispatcher([broken, ok]).dispatch(make_report(Severity.LOW))
        self.assertEqual([o.channel for o in result.failed], ["webhook"])
        self.assertEqual(len(ok.sent), 1)

    def test_all_channels_succeed(self) -> None:
        channels = [FakeNotifier("slack"), FakeNotifier("webhook")]
        result = NotificationDispatcher(channels).dispatch(make_report(Severity.HIGH))
        self.assertTrue(result.ok)
        self.assertFalse(result.skipped)
        result.raise_for_failures()

    def test_no_drift_invokes_no_channel(self) -> None:
        channel = FakeNotifier("slack")
        result = NotificationDispatcher([channel]).dispatch(make_report())
        self.assertTrue(result.skipped)
        self.assertTrue(result.ok)
        self.assertEqual(result.outcomes, [])
        self.assertEqual(channel.sent, [])

    def test_dry_run_invokes_no_channel(self) -> None:
        channel = FakeNotifier("slack")
        dispatcher = NotificationDispatcher([channel], NotificationPolicy(dry_run=True))
        result = dispatcher.dispatch(make_report(Severity.CRITICAL))
        self.assertEqual(result.skipped_reason, "dry run")
        self.assertEqual(channel.sent, [])

    def test_cancelled_before_send(self) -> None:
        cancel_event = threading.Event()
        cancel_event.set()
        channel = FakeNotifier("slack")
        result = NotificationDispatcher([channel]).dispatch(make_report(Severity.HIGH), cancel_event)
        self.assertEqual(result.outcomes[0].status, ChannelStatus.CANCELLED)
        self.assertEqual(channel.sent, [])
        self.assertTrue(result.ok)

    def test_cancelled_during_send(self) -> None:
        cancelling = FakeNotifier("slack", error=PassCancelledError("slack notification cancelled"))
        webhook = FakeNotifier("webhook")
        result = NotificationDispatcher([cancelling, webhook]).dispatch(make_report(Severity.HIGH))
        self.assertEqual(
            [o.status for o in result.outcomes], [ChannelStatus.CANCELLED, ChannelStatus.SENT]
        )
        self.assertTrue(result.ok)

    def test_no_channels(self) -> None:
        result = NotificationDispatcher([]).dispatch(make_report(Severity.HIGH))
        self.assertTrue(result.skipped)


class TestBuildChannels(unittest.TestCase):
    def test_only_enabled_channels_in_fixed_order(self) -> None:
        notifications = SimpleNamespace(
            slack=SimpleNamespace(enabled=True, webhook_url="https://hooks.slack.com/x"),
            email=SimpleNamespace(
                enabled=True,
                smtp_host="smtp.example.com",
                smtp_port=25,
                username="",
                password="",
                from_address="a@example.com",
                to=["b@example.com"],
            ),
            webhook=SimpleNamespace(enabled=False, url=""),
        )
        channels = build_channels(notifications)
        self.assertEqual([type(c) for c in channels], [SlackNotifier, EmailNotifier])
        self.assertEqual(channels[1].smtp_port, 25)

    def test_enabled_channel_without_url_is_still_built(self) -> None:
        notifications = SimpleNamespace(
            slack=SimpleNamespace(enabled=False, webhook_url=""),
            email=SimpleNamespace(enabled=False),
            webhook=SimpleNamespace(enabled=True, url=""),
        )
        channels = build_channels(notifications)
        self.assertIsInstance(channels[0], WebhookNotifier)
        result = NotificationDispatcher(channels).dispatch(make_report(Severity.HIGH))
        self.assertEqual(result.failed[0].channel, "webhook")


if __name__ == "__main__":
    unittest.main()

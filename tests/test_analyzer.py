"""
Tests for report building and summary wording.
"""

import unittest
from datetime import datetime, timezone

from src.driftwatch.analyzer import NO_DRIFT_SUMMARY, Analyzer, format_summary
from src.driftwatch.models import Change, DriftItem, Severity


def item(name: str, severity: Severity) -> DriftItem:
    return DriftItem(
        resource_type="aws_instance",
        resource_name=name,
        provider="AWS",
        severity=severity,
        changes=(Change("ami", "a", "b"),),
    )


class TestFormatSummary(unittest.TestCase):
    def test_no_drift(self) -> None:
        self.assertEqual(
            format_summary([]), "No drift detected. Infrastructure is in sync with Terraform state."
        )

    def test_singular_and_plural(self) -> None:
        drifts = [
            item("a", Severity.MEDIUM),
            item("b", Severity.CRITICAL),
            item("c", Severity.MEDIUM),
            item("d", Severity.MEDIUM),
        ]
        self.assertEqual(format_summary(drifts), "1 critical drift, 3 medium drifts")

    def test_all_buckets_in_severity_order(self) -> None:
        drifts = [
            item("a", Severity.LOW),
            item("b", Severity.HIGH),
            item("c", Severity.HIGH),
            item("d", Severity.CRITICAL),
            item("e", Severity.MEDIUM),
        ]
        self.assertEqual(
            format_summary(drifts), "1 critical drift, 2 high drifts, 1 medium drift, 1 low drift"
        )


class TestAnalyzer(unittest.TestCase):
    def test_generate_report_keeps_order_and_counts(self) -> None:
        drifts = [item("b", Severity.MEDIUM), item("a", Severity.CRITICAL)]
        timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        report = Analyzer().generate_report(drifts, total_resources=12, timestamp=timestamp)
        self.assertEqual([d.resource_name for d in report.drifts], ["b", "a"])
        self.assertEqual(report.total_resources, 12)
        self.assertEqual(report.timestamp, timestamp)
        self.assertEqual(report.summary, "1 critical drift, 1 medium drift")

    def test_empty_report(self) -> None:
        report = Analyzer().generate_report([], total_resources=0)
        self.assertFalse(report.has_drift)
        self.assertEqual(report.summary, NO_DRIFT_SUMMARY)
        self.assertIsNotNone(report.timestamp.tzinfo)


if __name__ == "__main__":
    unittest.main()

"""
Drift analyzer: turns detector output into a ``Report``.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .models import SEVERITY_ORDER, DriftItem, Report, count_by_severity

NO_DRIFT_SUMMARY = "No drift detected. Infrastructure is in sync with Terraform state."


def format_summary(drifts: Iterable[DriftItem]) -> str:
    """
    Render a one-line summary such as ``"1 critical drift, 3 medium drifts"``.

    Buckets are listed most urgent first and empty buckets are left out.
    """
    counts = count_by_severity(drifts)
    clauses: List[str] = []
    for severity in SEVERITY_ORDER:
        count = counts[severity]
        if count:
            noun = "drift" if count == 1 else "drifts"
            clauses.append(f"{count} {severity.value} {noun}")
    if not clauses:
        return NO_DRIFT_SUMMARY
    return ", ".join(clauses)


class Analyzer:
    """Builds the per-pass report."""

    def generate_report(
        self,
        drifts: Iterable[DriftItem],
        total_resources: int,
        timestamp: Optional[datetime] = None,
    ) -> Report:
        """
        Args:
            drifts: Drift items already in detector-registration order
            total_resources: Declared resources owned by the detectors that ran
            timestamp: Completion time; defaults to now in UTC
        """
        items = tuple(drifts)
        return Report(
            timestamp=timestamp or datetime.now(timezone.utc),
            total_resources=total_resources,
            drifts=items,
            summary=format_summary(items),
        )

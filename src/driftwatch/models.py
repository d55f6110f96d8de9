"""
Data model for drift detection.

Resources are parsed once per pass from the Terraform state and never mutated.
Detectors turn them into ``DriftItem`` records which the analyzer gathers into
a ``Report``. The report's ``to_dict``/``from_dict`` pair is the wire format
used by the webhook channel and by ``--output-format json``.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .types import ABSENT, ChangeDict, ComparableValue, DriftItemDict, ReportDict


class Severity(str, Enum):
    """Coarse ordinal drift classification, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Higher is more urgent."""
        return _SEVERITY_RANK[self]

    def at_least(self, threshold: "Severity") -> bool:
        return self.rank >= threshold.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}

# Summary buckets are rendered in this order
SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)

EXISTENCE_FIELD = "existence"


@dataclass(frozen=True)
class Resource:
    """One declared infrastructure object from the Terraform state."""

    type: str
    name: str
    provider: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    module: Optional[str] = None
    index_key: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("resource type must not be empty")
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def address(self) -> str:
        """Terraform-style address, e.g. ``module.net.aws_vpc.main[0]``."""
        address = f"{self.type}.{self.name}"
        if self.module:
            address = f"{self.module}.{address}"
        return address

    def get(self, key: str) -> ComparableValue:
        """Attribute lookup that maps missing and null to ``ABSENT``."""
        value = self.attributes.get(key)
        return ABSENT if value is None else value


@dataclass(frozen=True)
class TerraformState:
    """Parsed Terraform state snapshot."""

    version: int
    resources: Tuple[Resource, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", tuple(self.resources))

    def __len__(self) -> int:
        return len(self.resources)


def _to_wire(value: ComparableValue) -> Any:
    return None if value is ABSENT else value


def _from_wire(value: Any) -> ComparableValue:
    return ABSENT if value is None else value


@dataclass(frozen=True)
class Change:
    """One field-level mismatch between declared and live state."""

    field: str
    expected: ComparableValue
    actual: ComparableValue

    def to_dict(self) -> ChangeDict:
        return {
            "field": self.field,
            "expected": _to_wire(self.expected),
            "actual": _to_wire(self.actual),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Change":
        return cls(
            field=data["field"],
            expected=_from_wire(data.get("expected")),
            actual=_from_wire(data.get("actual")),
        )


@dataclass(frozen=True, eq=False)
class DriftItem:
    """
    A resource with at least one Change.

    Equality ignores the order of ``changes``.
    """

    resource_type: str
    resource_name: str
    provider: str
    severity: Severity
    changes: Tuple[Change, ...]
    resource_id: Optional[str] = None

    def __post_init__(self) -> None:
        changes = tuple(self.changes)
        if not changes:
            raise ValueError(
                f"DriftItem for {self.resource_type}.{self.resource_name} has no changes"
            )
        object.__setattr__(self, "changes", changes)
        object.__setattr__(self, "severity", Severity(self.severity))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DriftItem):
            return NotImplemented
        return (
            self.resource_type == other.resource_type
            and self.resource_name == other.resource_name
            and self.resource_id == other.resource_id
            and self.provider == other.provider
            and self.severity == other.severity
            and _same_changes(self.changes, other.changes)
        )

    __hash__ = None  # type: ignore[assignment]

    @property
    def is_existence_drift(self) -> bool:
        return any(c.field == EXISTENCE_FIELD for c in self.changes)

    def to_dict(self) -> DriftItemDict:
        data: DriftItemDict = {
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
        }
        if self.resource_id is not None:
            data["resource_id"] = self.resource_id
        data["provider"] = self.provider
        data["severity"] = self.severity.value
        data["changes"] = [c.to_dict() for c in self.changes]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DriftItem":
        return cls(
            resource_type=data["resource_type"],
            resource_name=data["resource_name"],
            resource_id=data.get("resource_id"),
            provider=data["provider"],
            severity=Severity(data["severity"]),
            changes=tuple(Change.from_dict(c) for c in data["changes"]),
        )


def _same_changes(left: Sequence[Change], right: Sequence[Change]) -> bool:
    # Changes may hold unhashable values, so match them pairwise
    if len(left) != len(right):
        return False
    remaining: List[Change] = list(right)
    for change in left:
        for idx, candidate in enumerate(remaining):
            if candidate == change:
                del remaining[idx]
                break
        else:
            return False
    return True


@dataclass(frozen=True)
class Report:
    """Result of one detection pass."""

    timestamp: datetime
    total_resources: int
    drifts: Tuple[DriftItem, ...]
    summary: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "drifts", tuple(self.drifts))

    @property
    def drift_count(self) -> int:
        return len(self.drifts)

    @property
    def has_drift(self) -> bool:
        return bool(self.drifts)

    def count_by_severity(self) -> Dict[Severity, int]:
        return count_by_severity(self.drifts)

    def to_dict(self) -> ReportDict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_resources": self.total_resources,
            "drifts": [d.to_dict() for d in self.drifts],
            "summary": self.summary,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Report":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            total_resources=int(data["total_resources"]),
            drifts=tuple(DriftItem.from_dict(d) for d in data.get("drifts") or []),
            summary=data["summary"],
        )

    @classmethod
    def from_json(cls, payload: str) -> "Report":
        return cls.from_dict(json.loads(payload))


def count_by_severity(drifts: Iterable[DriftItem]) -> Dict[Severity, int]:
    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for item in drifts:
        counts[item.severity] += 1
    return counts

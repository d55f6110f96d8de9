"""
Severity classification for drift items.

Rules are evaluated top-down over the set of changed fields and the first
match wins:

1. any change on ``existence``                     -> critical
2. any change on ``encryption`` or ``public_access`` -> high
3. otherwise                                        -> medium

``Severity.LOW`` is part of the taxonomy and of notification thresholds but is
not produced by these rules. Detectors may assign a severity directly for
their own comparisons (security group rule counts are always high).
"""

from typing import Iterable, Optional, Union

from .models import EXISTENCE_FIELD, Change, Severity

HIGH_RISK_FIELDS = frozenset({"encryption", "public_access"})


def _root_field(path: str) -> str:
    return path.split(".", 1)[0]


def determine_severity(changes: Iterable[Change]) -> Severity:
    """Classify a change set. The result does not depend on change order."""
    fields = {_root_field(change.field) for change in changes}
    if EXISTENCE_FIELD in fields:
        return Severity.CRITICAL
    if fields & HIGH_RISK_FIELDS:
        return Severity.HIGH
    return Severity.MEDIUM


def parse_severity(value: Union[str, Severity, None], default: Optional[Severity] = None) -> Severity:
    """
    Parse a severity name from configuration.

    The legacy config names ``info``/``warning`` map onto
    ``low``/``medium``.
    """
    if value is None or value == "":
        if default is None:
            raise ValueError("severity is required")
        return default
    if isinstance(value, Severity):
        return value
    aliases = {"info": Severity.LOW, "warning": Severity.MEDIUM, "warn": Severity.MEDIUM}
    normalised = str(value).strip().lower()
    if normalised in aliases:
        return aliases[normalised]
    try:
        return Severity(normalised)
    except ValueError:
        valid = ", ".join(s.value for s in Severity)
        raise ValueError(f"Unknown severity '{value}'. Expected one of: {valid}")

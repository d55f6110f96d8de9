"""
Generic comparison rules shared by all provider comparators.

Each provider module compares a fixed set of fields per resource type using
the helpers below:

- scalars use strict inequality (``"1"`` and ``1`` differ, so do ``True`` and ``1``)
- set-like fields (rule collections) are compared by element count
- map-like fields (tags, labels) are compared key by key over the declared keys

``ABSENT`` is a legal operand on either side. ``None`` is treated as absent.
"""

from typing import Any, Callable, List, Mapping, Optional

from ..models import EXISTENCE_FIELD, Change, DriftItem, Resource, Severity
from ..severity import determine_severity
from ..types import ABSENT, ComparableValue

Normaliser = Callable[[Any], Any]


def normalise(value: Any) -> ComparableValue:
    """Map ``None`` to ``ABSENT``; everything else passes through."""
    return ABSENT if value is None else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(expected: Any, actual: Any) -> bool:
    """
    Strict equality for JSON-like values.

    Numbers compare numerically (``1 == 1.0``). Any other type mismatch is
    unequal. Mappings and sequences are compared element-wise under the same
    rule.
    """
    expected = normalise(expected)
    actual = normalise(actual)
    if expected is ABSENT or actual is ABSENT:
        return expected is actual
    if _is_number(expected) and _is_number(actual):
        return expected == actual
    if isinstance(expected, bool) or isinstance(actual, bool):
        return type(expected) is type(actual) and expected == actual
    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        if set(expected) != set(actual):
            return False
        return all(values_equal(expected[k], actual[k]) for k in expected)
    if isinstance(expected, (list, tuple)) and isinstance(actual, (list, tuple)):
        if len(expected) != len(actual):
            return False
        return all(values_equal(e, a) for e, a in zip(expected, actual))
    if type(expected) is not type(actual):
        return False
    return bool(expected == actual)


def compare_scalar(
    changes: List[Change],
    field: str,
    expected: Any,
    actual: Any,
    normaliser: Optional[Normaliser] = None,
) -> None:
    """Append a Change when ``expected`` and ``actual`` differ."""
    expected = normalise(expected)
    actual = normalise(actual)
    if normaliser is not None:
        if expected is not ABSENT:
            expected = normalise(normaliser(expected))
        if actual is not ABSENT:
            actual = normalise(normaliser(actual))
    if not values_equal(expected, actual):
        changes.append(Change(field=field, expected=expected, actual=actual))


def _count(value: Any) -> int:
    value = normalise(value)
    if value is ABSENT:
        return 0
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        return len(value)
    return 1


def compare_count(changes: List[Change], field: str, expected: Any, actual: Any) -> None:
    """Coarse comparison of set-like fields by number of elements."""
    expected_count = _count(expected)
    actual_count = _count(actual)
    if expected_count != actual_count:
        changes.append(Change(field=field, expected=expected_count, actual=actual_count))


def compare_map(
    changes: List[Change],
    parent: str,
    expected: Any,
    actual: Any,
) -> None:
    """
    Compare each declared key of ``expected`` against ``actual``.

    Extra keys present only on the live side are not drift. Each missing or
    mismatched key produces its own ``<parent>.<key>`` Change.
    """
    expected = normalise(expected)
    actual = normalise(actual)
    if not isinstance(expected, Mapping):
        return
    live: Mapping = actual if isinstance(actual, Mapping) else {}
    for key, expected_value in expected.items():
        actual_value = normalise(live.get(key))
        if not values_equal(expected_value, actual_value):
            changes.append(
                Change(
                    field=f"{parent}.{key}",
                    expected=normalise(expected_value),
                    actual=actual_value,
                )
            )


def first_block(value: Any) -> Mapping:
    """
    Terraform encodes nested blocks as single-element lists; accept either
    that shape or a plain mapping.
    """
    if isinstance(value, Mapping):
        return value
    if isinstance(value, (list, tuple)) and value and isinstance(value[0], Mapping):
        return value[0]
    return {}


def existence_drift(resource: Resource, provider: str, actual: str = "deleted") -> DriftItem:
    """The resource is declared but cannot be located in the live provider."""
    return DriftItem(
        resource_type=resource.type,
        resource_name=resource.name,
        provider=provider,
        severity=Severity.CRITICAL,
        changes=(Change(field=EXISTENCE_FIELD, expected="exists", actual=actual),),
    )


def build_drift_item(
    resource: Resource,
    provider: str,
    resource_id: Optional[str],
    changes: List[Change],
    severity: Optional[Severity] = None,
) -> Optional[DriftItem]:
    """
    Wrap ``changes`` in a DriftItem, or return None when there are none.

    ``severity`` overrides the generic classifier for detector-specific rules.
    """
    if not changes:
        return None
    return DriftItem(
        resource_type=resource.type,
        resource_name=resource.name,
        resource_id=resource_id,
        provider=provider,
        severity=severity if severity is not None else determine_severity(changes),
        changes=tuple(changes),
    )

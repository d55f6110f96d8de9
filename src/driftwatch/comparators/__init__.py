"""
Resource Comparators Package.

Generic comparison rules live in ``base``; each provider module compares a
fixed set of fields per resource type.
"""

from .base import (
    build_drift_item,
    compare_count,
    compare_map,
    compare_scalar,
    existence_drift,
    values_equal,
)

__all__ = [
    "build_drift_item",
    "compare_count",
    "compare_map",
    "compare_scalar",
    "existence_drift",
    "values_equal",
]

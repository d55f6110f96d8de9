"""
GCP Resource Comparators Module.

Live compute instances are ``compute_v1.Instance`` messages converted to dicts
(proto field names). Storage buckets are summarised by ``GCPResourceFetcher``.
"""

from typing import Any, List

from ..models import Change, Resource
from ..types import ABSENT, LiveResourceData
from .base import compare_map, compare_scalar, first_block, normalise


def short_name(value: Any) -> Any:
    """
    Reduce a GCP resource URL to its last path segment.

    ``.../zones/europe-west1-b/machineTypes/e2-medium`` -> ``e2-medium``
    """
    if isinstance(value, str) and "/" in value:
        return value.rstrip("/").rsplit("/", 1)[-1]
    return value


def compare_compute_instance_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """Compare a ``google_compute_instance``."""
    changes: List[Change] = []
    compare_scalar(
        changes, "machine_type", resource.get("machine_type"), live.get("machine_type"), normaliser=short_name
    )
    compare_scalar(changes, "can_ip_forward", resource.get("can_ip_forward"), live.get("can_ip_forward", False))
    compare_scalar(
        changes,
        "deletion_protection",
        resource.get("deletion_protection"),
        live.get("deletion_protection", False),
    )
    compare_map(changes, "labels", resource.get("labels"), live.get("labels") or {})
    return changes


def compare_storage_bucket_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """
    Compare a ``google_storage_bucket``.

    Versioning, encryption and public access prevention are only compared when
    declared in state.
    """
    changes: List[Change] = []
    compare_scalar(
        changes,
        "storage_class",
        resource.get("storage_class"),
        live.get("storage_class"),
        normaliser=lambda v: v.upper() if isinstance(v, str) else v,
    )

    declared_versioning = normalise(resource.get("versioning"))
    if declared_versioning is not ABSENT:
        expected = bool(first_block(declared_versioning).get("enabled", False))
        compare_scalar(changes, "versioning", expected, bool(live.get("versioning_enabled")))

    declared_encryption = normalise(resource.get("encryption"))
    if declared_encryption is not ABSENT:
        expected_key = first_block(declared_encryption).get("default_kms_key_name")
        compare_scalar(changes, "encryption", expected_key, live.get("default_kms_key_name"))

    declared_prevention = resource.get("public_access_prevention")
    if declared_prevention is not ABSENT:
        compare_scalar(changes, "public_access", declared_prevention, live.get("public_access_prevention"))

    compare_map(changes, "labels", resource.get("labels"), live.get("labels") or {})
    return changes

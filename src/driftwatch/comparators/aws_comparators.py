"""
AWS Resource Comparators Module.

Compares Terraform state attributes with the live shapes returned by
``AWSResourceFetcher``. Live data keeps boto3's field names (``InstanceType``,
``IpPermissions``...); S3 lookups are assembled from several API calls into a
single dict by the fetcher.
"""

from typing import Any, Dict, List, Mapping

from ..models import Change, Resource
from ..types import ABSENT, LiveResourceData
from .base import compare_count, compare_map, compare_scalar, first_block, normalise


def _tags_to_dict(tags: Any) -> Dict[str, Any]:
    """boto3 returns tags as ``[{"Key": ..., "Value": ...}]``."""
    if isinstance(tags, Mapping):
        return dict(tags)
    result: Dict[str, Any] = {}
    for tag in tags or []:
        if tag.get("Key") is not None and tag.get("Value") is not None:
            result[tag["Key"]] = tag["Value"]
    return result


def compare_instance_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """Compare an ``aws_instance`` with an EC2 ``describe_instances`` entry."""
    changes: List[Change] = []
    compare_scalar(changes, "instance_type", resource.get("instance_type"), live.get("InstanceType"))
    compare_scalar(changes, "ami", resource.get("ami"), live.get("ImageId"))
    compare_scalar(changes, "subnet_id", resource.get("subnet_id"), live.get("SubnetId"))
    compare_map(changes, "tags", resource.get("tags"), _tags_to_dict(live.get("Tags")))
    return changes


def compare_s3_bucket_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """
    Compare an ``aws_s3_bucket`` with the fetcher's bucket summary.

    Versioning is only compared when the state declares a versioning block.
    Encryption is compared as enabled/disabled.
    """
    changes: List[Change] = []

    declared_versioning = normalise(resource.get("versioning"))
    if declared_versioning is not ABSENT:
        enabled = bool(first_block(declared_versioning).get("enabled", False))
        live_status = (live.get("Versioning") or {}).get("Status") or "Disabled"
        if enabled and live_status != "Enabled":
            changes.append(Change(field="versioning", expected="Enabled", actual=live_status))
        elif not enabled and live_status == "Enabled":
            changes.append(Change(field="versioning", expected="Disabled", actual=live_status))

    expected_encryption = bool(resource.attributes.get("server_side_encryption_configuration"))
    actual_encryption = bool(live.get("Encryption"))
    if expected_encryption != actual_encryption:
        changes.append(
            Change(
                field="encryption",
                expected="enabled" if expected_encryption else "disabled",
                actual="enabled" if actual_encryption else "disabled",
            )
        )

    compare_map(changes, "tags", resource.get("tags"), live.get("Tags") or {})
    return changes


_PUBLIC_ACCESS_FLAGS = (
    ("block_public_acls", "BlockPublicAcls"),
    ("block_public_policy", "BlockPublicPolicy"),
    ("ignore_public_acls", "IgnorePublicAcls"),
    ("restrict_public_buckets", "RestrictPublicBuckets"),
)


def compare_public_access_block_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """Compare an ``aws_s3_bucket_public_access_block`` flag by flag."""
    changes: List[Change] = []
    for state_key, live_key in _PUBLIC_ACCESS_FLAGS:
        expected = resource.get(state_key)
        # Terraform defaults every flag to false
        if expected is ABSENT:
            expected = False
        compare_scalar(changes, f"public_access.{state_key}", expected, live.get(live_key, False))
    return changes


def compare_security_group_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """
    Compare rule collections by count.

    Counting is a coarse proxy: a rule swapped for another with the same
    number of entries is not reported.
    """
    changes: List[Change] = []
    compare_count(changes, "ingress_rules_count", resource.get("ingress"), live.get("IpPermissions"))
    compare_count(changes, "egress_rules_count", resource.get("egress"), live.get("IpPermissionsEgress"))
    return changes

"""
Azure Resource Comparators Module.

Live data is the ``as_dict()`` form of azure-mgmt models, so nested
properties use the SDK's snake_case names (``hardware_profile.vm_size``,
``sku.name``...).
"""

from typing import Any, List

from ..models import Change, Resource
from ..types import ABSENT, LiveResourceData
from .base import compare_map, compare_scalar


def normalise_location(value: Any) -> Any:
    """``West Europe`` and ``westeurope`` name the same region."""
    if isinstance(value, str):
        return value.replace(" ", "").lower()
    return value


def _first_declared(resource: Resource, *keys: str) -> Any:
    for key in keys:
        value = resource.get(key)
        if value is not ABSENT:
            return value
    return ABSENT


def compare_virtual_machine_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """
    Compare ``azurerm_virtual_machine`` and the linux/windows variants.

    The legacy resource names the size ``vm_size``; the newer ones use ``size``.
    """
    changes: List[Change] = []
    size_field = "vm_size" if resource.type == "azurerm_virtual_machine" else "size"
    live_size = (live.get("hardware_profile") or {}).get("vm_size")
    compare_scalar(changes, size_field, resource.get(size_field), live_size)
    compare_scalar(
        changes, "location", resource.get("location"), live.get("location"), normaliser=normalise_location
    )
    compare_map(changes, "tags", resource.get("tags"), live.get("tags") or {})
    return changes


def compare_storage_account_attributes(resource: Resource, live: LiveResourceData) -> List[Change]:
    """Compare an ``azurerm_storage_account``."""
    changes: List[Change] = []
    sku = live.get("sku") or {}
    sku_name = sku.get("name") or ""
    live_tier = sku.get("tier") or (sku_name.split("_", 1)[0] if sku_name else None)
    live_replication = sku_name.split("_", 1)[1] if "_" in sku_name else None

    compare_scalar(changes, "account_tier", resource.get("account_tier"), live_tier)
    compare_scalar(changes, "account_replication_type", resource.get("account_replication_type"), live_replication)
    compare_scalar(changes, "min_tls_version", resource.get("min_tls_version"), live.get("minimum_tls_version"))

    # Provider v4 renamed these attributes; accept both spellings
    https_only = _first_declared(resource, "https_traffic_only_enabled", "enable_https_traffic_only")
    if https_only is not ABSENT:
        compare_scalar(changes, "encryption", https_only, live.get("enable_https_traffic_only"))

    public = _first_declared(resource, "allow_nested_items_to_be_public", "allow_blob_public_access")
    if public is not ABSENT:
        compare_scalar(changes, "public_access", public, live.get("allow_blob_public_access"))

    compare_map(changes, "tags", resource.get("tags"), live.get("tags") or {})
    return changes

"""
Azure drift detector.
"""

import threading
from typing import Dict, Optional

from ...utils import setup_logging
from ..comparators.azure_comparators import (
    compare_storage_account_attributes,
    compare_virtual_machine_attributes,
)
from ..comparators.base import build_drift_item, existence_drift
from ..errors import DetectorInitError
from ..models import DriftItem, Resource
from .base import Detector, ResourceCheck, require_attribute

logger = setup_logging()

VIRTUAL_MACHINE_TYPES = (
    "azurerm_virtual_machine",
    "azurerm_linux_virtual_machine",
    "azurerm_windows_virtual_machine",
)


class AzureDetector(Detector):
    """Detects drift in Azure resources for one subscription."""

    name = "Azure"
    resource_prefix = "azurerm_"

    def __init__(self, subscription_id: str, fetcher: object) -> None:
        if not subscription_id:
            raise DetectorInitError("Azure subscription ID is required")
        self.subscription_id = subscription_id
        self.fetcher = fetcher
        self._checks: Dict[str, ResourceCheck] = {
            vm_type: self._check_virtual_machine for vm_type in VIRTUAL_MACHINE_TYPES
        }
        self._checks["azurerm_storage_account"] = self._check_storage_account

    @classmethod
    def from_config(cls, subscription_id: str) -> "AzureDetector":
        if not subscription_id:
            raise DetectorInitError("Azure subscription ID is required")
        from ..fetchers.azure_fetchers import AzureResourceFetcher, create_credential

        try:
            fetcher = AzureResourceFetcher(subscription_id, credential=create_credential())
        except DetectorInitError:
            raise
        except Exception as e:
            raise DetectorInitError(f"failed to initialise Azure clients: {e}") from e
        logger.debug(f"Azure detector initialised for subscription: {subscription_id}")
        return cls(subscription_id, fetcher)

    @property
    def checks(self) -> Dict[str, ResourceCheck]:
        return self._checks

    def _check_virtual_machine(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        name = require_attribute(resource, "name")
        resource_group = require_attribute(resource, "resource_group_name")
        live = self.fetcher.get_virtual_machine(resource_group, name)  # type: ignore[attr-defined]
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_virtual_machine_attributes(resource, live)
        return build_drift_item(resource, self.name, live.get("id") or resource.attributes.get("id"), changes)

    def _check_storage_account(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        name = require_attribute(resource, "name")
        resource_group = require_attribute(resource, "resource_group_name")
        live = self.fetcher.get_storage_account(resource_group, name)  # type: ignore[attr-defined]
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_storage_account_attributes(resource, live)
        return build_drift_item(resource, self.name, live.get("id") or resource.attributes.get("id"), changes)

"""
GCP drift detector.
"""

import threading
from typing import Dict, Optional

from ...utils import setup_logging
from ..comparators.base import build_drift_item, existence_drift
from ..comparators.gcp_comparators import (
    compare_compute_instance_attributes,
    compare_storage_bucket_attributes,
)
from ..errors import DetectorInitError
from ..models import DriftItem, Resource
from .base import Detector, ResourceCheck, require_attribute

logger = setup_logging()


class GCPDetector(Detector):
    """Detects drift in GCP resources for one project."""

    name = "GCP"
    resource_prefix = "google_"

    def __init__(self, project_id: str, fetcher: object) -> None:
        if not project_id:
            raise DetectorInitError("GCP project ID is required")
        self.project_id = project_id
        self.fetcher = fetcher
        self._checks: Dict[str, ResourceCheck] = {
            "google_compute_instance": self._check_compute_instance,
            "google_storage_bucket": self._check_storage_bucket,
        }

    @classmethod
    def from_config(cls, project_id: str, timeout_seconds: int = 30) -> "GCPDetector":
        if not project_id:
            raise DetectorInitError("GCP project ID is required")
        from ..fetchers.gcp_fetchers import GCPResourceFetcher

        try:
            fetcher = GCPResourceFetcher(project_id, timeout_seconds=timeout_seconds)
        except Exception as e:
            raise DetectorInitError(f"failed to initialise GCP clients: {e}") from e
        logger.debug(f"GCP detector initialised for project: {project_id}")
        return cls(project_id, fetcher)

    @property
    def checks(self) -> Dict[str, ResourceCheck]:
        return self._checks

    def _check_compute_instance(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        name = require_attribute(resource, "name")
        zone = require_attribute(resource, "zone")
        live = self.fetcher.get_instance(zone, name)  # type: ignore[attr-defined]
        if live is None:
            return existence_drift(resource, self.name)
        resource_id = resource.attributes.get("id") or f"projects/{self.project_id}/zones/{zone}/instances/{name}"
        changes = compare_compute_instance_attributes(resource, live)
        return build_drift_item(resource, self.name, resource_id, changes)

    def _check_storage_bucket(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        name = require_attribute(resource, "name")
        live = self.fetcher.get_bucket(name)  # type: ignore[attr-defined]
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_storage_bucket_attributes(resource, live)
        return build_drift_item(resource, self.name, name, changes)

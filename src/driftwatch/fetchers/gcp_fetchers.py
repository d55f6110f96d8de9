"""
GCP Resource Fetchers Module.

Thin google-cloud wrappers returning live attributes as plain dicts.
"""

from typing import Any, Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import compute_v1, storage

from ...utils import fetcher_error_handler, setup_logging
from ..types import GCPInstancesClient, GCPStorageClient, LiveResourceData

logger = setup_logging()


def is_missing_gcp_error(error: Exception) -> bool:
    return isinstance(
        error,
        (gcp_exceptions.NotFound, gcp_exceptions.Forbidden, gcp_exceptions.PermissionDenied),
    )


class GCPResourceFetcher:
    """Fetches live GCP resources for one project."""

    def __init__(
        self,
        project_id: str,
        credentials: Optional[Any] = None,
        instances_client: Optional[GCPInstancesClient] = None,
        storage_client: Optional[GCPStorageClient] = None,
        timeout_seconds: int = 30,
    ) -> None:
        self.project_id = project_id
        self.timeout_seconds = timeout_seconds
        self.instances_client = instances_client or compute_v1.InstancesClient(credentials=credentials)
        self.storage_client = storage_client or storage.Client(project=project_id, credentials=credentials)

    @fetcher_error_handler(is_missing_gcp_error)
    def get_instance(self, zone: str, name: str) -> Optional[LiveResourceData]:
        instance = self.instances_client.get(
            project=self.project_id, zone=zone, instance=name, timeout=self.timeout_seconds
        )
        return compute_v1.Instance.to_dict(instance)

    @fetcher_error_handler(is_missing_gcp_error)
    def get_bucket(self, name: str) -> Optional[LiveResourceData]:
        bucket = self.storage_client.get_bucket(name, timeout=self.timeout_seconds)
        iam_configuration = bucket.iam_configuration or {}
        return {
            "name": bucket.name,
            "storage_class": bucket.storage_class,
            "versioning_enabled": bool(bucket.versioning_enabled),
            "labels": dict(bucket.labels or {}),
            "default_kms_key_name": bucket.default_kms_key_name,
            "public_access_prevention": iam_configuration.get("publicAccessPrevention"),
        }

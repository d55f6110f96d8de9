"""
Azure Resource Fetchers Module.

Thin azure-mgmt wrappers returning the ``as_dict()`` form of live models.
"""

from typing import Any, Optional

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.storage import StorageManagementClient

from ...utils import fetcher_error_handler, setup_logging
from ..errors import DetectorInitError
from ..types import AzureComputeClient, AzureStorageClient, LiveResourceData

logger = setup_logging()


ARM_SCOPE = "https://management.azure.com/.default"


def is_missing_azure_error(error: Exception) -> bool:
    # Authentication failures never mean the resource is gone
    if isinstance(error, ClientAuthenticationError):
        return False
    if isinstance(error, ResourceNotFoundError):
        return True
    return isinstance(error, HttpResponseError) and error.status_code in (403, 404)


def create_credential() -> Any:
    """
    Build a ``DefaultAzureCredential`` and prove it can issue an ARM token.

    Raises:
        DetectorInitError: If no credential in the chain is usable
    """
    credential = DefaultAzureCredential()
    try:
        credential.get_token(ARM_SCOPE)
    except ClientAuthenticationError as e:
        raise DetectorInitError(f"no usable Azure credential: {e}") from e
    return credential


class AzureResourceFetcher:
    """Fetches live Azure resources for one subscription."""

    def __init__(
        self,
        subscription_id: str,
        credential: Optional[Any] = None,
        compute_client: Optional[AzureComputeClient] = None,
        storage_client: Optional[AzureStorageClient] = None,
    ) -> None:
        self.subscription_id = subscription_id
        if compute_client is None or storage_client is None:
            credential = credential or DefaultAzureCredential()
        self.compute_client = compute_client or ComputeManagementClient(credential, subscription_id)
        self.storage_client = storage_client or StorageManagementClient(credential, subscription_id)

    @fetcher_error_handler(is_missing_azure_error)
    def get_virtual_machine(self, resource_group: str, name: str) -> Optional[LiveResourceData]:
        vm = self.compute_client.virtual_machines.get(resource_group, name)
        return vm.as_dict()

    @fetcher_error_handler(is_missing_azure_error)
    def get_storage_account(self, resource_group: str, name: str) -> Optional[LiveResourceData]:
        account = self.storage_client.storage_accounts.get_properties(resource_group, name)
        return account.as_dict()

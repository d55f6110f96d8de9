"""
Tests for live-resource fetchers. SDK clients are mocked; only error
classification and response shaping are exercised.
"""

import unittest
from unittest.mock import MagicMock, patch

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError, ResourceNotFoundError
from azure.identity import CredentialUnavailableError
from botocore.exceptions import ClientError
from google.api_core import exceptions as gcp_exceptions
from google.cloud import compute_v1

from src.driftwatch.errors import DetectorInitError, ResourceInspectionError
from src.driftwatch.fetchers.aws_fetchers import AWSResourceFetcher, create_session, is_missing_aws_error
from src.driftwatch.fetchers.azure_fetchers import (
    ARM_SCOPE,
    AzureResourceFetcher,
    create_credential,
    is_missing_azure_error,
)
from src.driftwatch.fetchers.gcp_fetchers import GCPResourceFetcher, is_missing_gcp_error


def client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestAWSResourceFetcher(unittest.TestCase):
    def setUp(self) -> None:
        self.ec2 = MagicMock()
        self.s3 = MagicMock()
        session = MagicMock()
        session.client.side_effect = lambda service, **kwargs: {"ec2": self.ec2, "s3": self.s3}[service]
        self.fetcher = AWSResourceFetcher("eu-west-2", session=session, max_retries=2, timeout_seconds=5)

    def test_clients_use_region_and_retry_config(self) -> None:
        self.assertIs(self.fetcher.ec2_client, self.ec2)
        self.assertIs(self.fetcher.s3_client, self.s3)

    def test_get_instance(self) -> None:
        self.ec2.describe_instances.return_value = {
            "Reservations": [{"Instances": [{"InstanceId": "i-1", "State": {"Name": "running"}}]}]
        }
        self.assertEqual(self.fetcher.get_instance("i-1")["InstanceId"], "i-1")

    def test_terminated_instance_is_missing(self) -> None:
        self.ec2.describe_instances.return_value = {
            "Reservations": [{"Instances": [{"InstanceId": "i-1", "State": {"Name": "terminated"}}]}]
        }
        self.assertIsNone(self.fetcher.get_instance("i-1"))

    def test_not_found_is_missing(self) -> None:
        self.ec2.describe_instances.side_effect = client_error("InvalidInstanceID.NotFound")
        self.assertIsNone(self.fetcher.get_instance("i-1"))

    def test_throttling_raises_inspection_error(self) -> None:
        self.ec2.describe_security_groups.side_effect = client_error("Throttling")
        with self.assertRaises(ResourceInspectionError):
            self.fetcher.get_security_group("sg-1")

    def test_get_bucket_summary(self) -> None:
        self.s3.get_bucket_versioning.return_value = {"Status": "Enabled"}
        self.s3.get_bucket_encryption.side_effect = client_error(
            "ServerSideEncryptionConfigurationNotFoundError"
        )
        self.s3.get_bucket_tagging.return_value = {"TagSet": [{"Key": "Team", "Value": "platform"}]}
        bucket = self.fetcher.get_bucket("logs")
        self.assertEqual(
            bucket,
            {
                "Name": "logs",
                "Versioning": {"Status": "Enabled"},
                "Encryption": None,
                "Tags": {"Team": "platform"},
            },
        )

    def test_get_bucket_without_tags(self) -> None:
        self.s3.get_bucket_versioning.return_value = {}
        self.s3.get_bucket_encryption.return_value = {"ServerSideEncryptionConfiguration": {"Rules": []}}
        self.s3.get_bucket_tagging.side_effect = client_error("NoSuchTagSet")
        bucket = self.fetcher.get_bucket("logs")
        self.assertEqual(bucket["Tags"], {})
        self.assertEqual(bucket["Encryption"], {"Rules": []})

    def test_missing_bucket(self) -> None:
        self.s3.head_bucket.side_effect = client_error("404", "HeadBucket")
        self.assertIsNone(self.fetcher.get_bucket("gone"))

    def test_access_denied_counts_as_missing(self) -> None:
        self.assertTrue(is_missing_aws_error(client_error("AccessDenied")))
        self.assertFalse(is_missing_aws_error(client_error("InternalError")))
        self.assertFalse(is_missing_aws_error(ValueError("x")))

    def test_public_access_block(self) -> None:
        self.s3.get_public_access_block.return_value = {
            "PublicAccessBlockConfiguration": {"BlockPublicAcls": True}
        }
        self.assertEqual(self.fetcher.get_public_access_block("logs"), {"BlockPublicAcls": True})


class TestGCPResourceFetcher(unittest.TestCase):
    def setUp(self) -> None:
        self.instances = MagicMock()
        self.storage = MagicMock()
        self.fetcher = GCPResourceFetcher(
            "my-project", instances_client=self.instances, storage_client=self.storage
        )

    def test_get_instance(self) -> None:
        self.instances.get.return_value = compute_v1.Instance(
            name="vm-1", machine_type="zones/z/machineTypes/e2-medium"
        )
        live = self.fetcher.get_instance("europe-west1-b", "vm-1")
        self.instances.get.assert_called_once_with(
            project="my-project", zone="europe-west1-b", instance="vm-1", timeout=30
        )
        self.assertEqual(live["name"], "vm-1")
        self.assertEqual(live["machine_type"], "zones/z/machineTypes/e2-medium")

    def test_get_bucket(self) -> None:
        bucket = MagicMock()
        bucket.name = "assets"
        bucket.storage_class = "STANDARD"
        bucket.versioning_enabled = True
        bucket.labels = {"env": "prod"}
        bucket.default_kms_key_name = None
        bucket.iam_configuration = {"publicAccessPrevention": "enforced"}
        self.storage.get_bucket.return_value = bucket
        self.assertEqual(
            self.fetcher.get_bucket("assets"),
            {
                "name": "assets",
                "storage_class": "STANDARD",
                "versioning_enabled": True,
                "labels": {"env": "prod"},
                "default_kms_key_name": None,
                "public_access_prevention": "enforced",
            },
        )

    def test_not_found_and_forbidden_are_missing(self) -> None:
        self.storage.get_bucket.side_effect = gcp_exceptions.NotFound("no bucket")
        self.assertIsNone(self.fetcher.get_bucket("gone"))
        self.assertTrue(is_missing_gcp_error(gcp_exceptions.Forbidden("denied")))
        self.assertFalse(is_missing_gcp_error(gcp_exceptions.ServiceUnavailable("later")))

    def test_server_error_raises_inspection_error(self) -> None:
        self.instances.get.side_effect = gcp_exceptions.InternalServerError("oops")
        with self.assertRaises(ResourceInspectionError):
            self.fetcher.get_instance("z", "vm")


class TestAzureResourceFetcher(unittest.TestCase):
    def setUp(self) -> None:
        self.compute = MagicMock()
        self.storage = MagicMock()
        self.fetcher = AzureResourceFetcher(
            "sub-1", compute_client=self.compute, storage_client=self.storage
        )

    def test_get_virtual_machine(self) -> None:
        self.compute.virtual_machines.get.return_value.as_dict.return_value = {
            "hardware_profile": {"vm_size": "Standard_B2s"}
        }
        live = self.fetcher.get_virtual_machine("rg", "vm")
        self.compute.virtual_machines.get.assert_called_once_with("rg", "vm")
        self.assertEqual(live["hardware_profile"]["vm_size"], "Standard_B2s")

    def test_get_storage_account(self) -> None:
        self.storage.storage_accounts.get_properties.return_value.as_dict.return_value = {"name": "acct"}
        self.assertEqual(self.fetcher.get_storage_account("rg", "acct"), {"name": "acct"})

    def test_not_found_is_missing(self) -> None:
        self.compute.virtual_machines.get.side_effect = ResourceNotFoundError("not found")
        self.assertIsNone(self.fetcher.get_virtual_machine("rg", "vm"))

    def test_http_status_classification(self) -> None:
        forbidden = HttpResponseError(message="forbidden")
        forbidden.status_code = 403
        throttled = HttpResponseError(message="throttled")
        throttled.status_code = 429
        self.assertTrue(is_missing_azure_error(forbidden))
        self.assertFalse(is_missing_azure_error(throttled))

        self.storage.storage_accounts.get_properties.side_effect = throttled
        with self.assertRaises(ResourceInspectionError):
            self.fetcher.get_storage_account("rg", "acct")

    def test_authentication_failure_is_not_missing(self) -> None:
        self.assertFalse(is_missing_azure_error(ClientAuthenticationError("token expired")))
        self.compute.virtual_machines.get.side_effect = CredentialUnavailableError("no credential")
        with self.assertRaises(ResourceInspectionError):
            self.fetcher.get_virtual_machine("rg", "vm")

    @patch("src.driftwatch.fetchers.azure_fetchers.DefaultAzureCredential")
    def test_create_credential_requests_arm_token(self, mock_credential: MagicMock) -> None:
        self.assertIs(create_credential(), mock_credential.return_value)
        mock_credential.return_value.get_token.assert_called_once_with(ARM_SCOPE)

        mock_credential.return_value.get_token.side_effect = CredentialUnavailableError("no credential")
        with self.assertRaises(DetectorInitError):
            create_credential()


class TestCreateSession(unittest.TestCase):
    @patch("src.driftwatch.fetchers.aws_fetchers.boto3")
    def test_session_with_credentials(self, mock_boto3: MagicMock) -> None:
        self.assertIs(create_session(), mock_boto3.session.Session.return_value)

    @patch("src.driftwatch.fetchers.aws_fetchers.boto3")
    def test_session_without_credentials(self, mock_boto3: MagicMock) -> None:
        mock_boto3.session.Session.return_value.get_credentials.return_value = None
        with self.assertRaises(DetectorInitError):
            create_session()


if __name__ == "__main__":
    unittest.main()

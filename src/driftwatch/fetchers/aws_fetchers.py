"""
AWS Resource Fetchers Module.

Thin boto3 wrappers returning the live attributes of a single resource, or
``None`` when it does not exist or cannot be accessed.
"""

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from ...utils import fetcher_error_handler, setup_logging
from ..errors import DetectorInitError
from ..types import EC2Client, LiveResourceData, S3Client

logger = setup_logging()

MISSING_ERROR_CODES = frozenset(
    {
        "404",
        "403",
        "NotFound",
        "NoSuchBucket",
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedOperation",
        "Forbidden",
        "InvalidInstanceID.NotFound",
        "InvalidInstanceID.Malformed",
        "InvalidGroup.NotFound",
        "InvalidGroupId.Malformed",
        "NoSuchPublicAccessBlockConfiguration",
    }
)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def is_missing_aws_error(error: Exception) -> bool:
    return isinstance(error, ClientError) and _error_code(error) in MISSING_ERROR_CODES


def create_session() -> Any:
    """
    Create the boto3 session shared by every region's fetcher.

    Raises:
        DetectorInitError: If the credential chain yields no credentials
    """
    session = boto3.session.Session()
    if session.get_credentials() is None:
        raise DetectorInitError("Unable to locate AWS credentials")
    return session


def build_boto_config(max_retries: int = 3, timeout_seconds: int = 30) -> BotoConfig:
    return BotoConfig(
        retries={"max_attempts": max_retries, "mode": "standard"},
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
    )


class AWSResourceFetcher:
    """Fetches live AWS resources in a single region."""

    def __init__(
        self,
        region: str,
        session: Optional[Any] = None,
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        self.region = region
        session = session or boto3.session.Session()
        boto_config = build_boto_config(max_retries, timeout_seconds)
        self.ec2_client: EC2Client = session.client("ec2", region_name=region, config=boto_config)
        self.s3_client: S3Client = session.client("s3", region_name=region, config=boto_config)

    @fetcher_error_handler(is_missing_aws_error)
    def get_instance(self, instance_id: str) -> Optional[LiveResourceData]:
        response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                if instance.get("InstanceId") != instance_id:
                    continue
                # Terminated instances stay visible for a while after deletion
                if (instance.get("State") or {}).get("Name") == "terminated":
                    logger.info(f"[EC2] Instance {instance_id} is terminated in {self.region}")
                    return None
                return instance
        return None

    @fetcher_error_handler(is_missing_aws_error)
    def get_security_group(self, group_id: str) -> Optional[LiveResourceData]:
        response = self.ec2_client.describe_security_groups(GroupIds=[group_id])
        groups = response.get("SecurityGroups", [])
        return groups[0] if groups else None

    @fetcher_error_handler(is_missing_aws_error)
    def get_bucket(self, bucket_name: str) -> Optional[LiveResourceData]:
        """
        Summarise a bucket as ``{Name, Versioning, Encryption, Tags}``.

        ``head_bucket`` decides existence; missing encryption or tagging
        configuration is a property of an existing bucket, not an absence.
        """
        self.s3_client.head_bucket(Bucket=bucket_name)
        versioning = self.s3_client.get_bucket_versioning(Bucket=bucket_name)

        encryption: Optional[Dict[str, Any]]
        try:
            encryption = self.s3_client.get_bucket_encryption(Bucket=bucket_name).get(
                "ServerSideEncryptionConfiguration"
            )
        except ClientError as e:
            if _error_code(e) != "ServerSideEncryptionConfigurationNotFoundError":
                raise
            encryption = None

        try:
            tag_set = self.s3_client.get_bucket_tagging(Bucket=bucket_name).get("TagSet", [])
        except ClientError as e:
            if _error_code(e) != "NoSuchTagSet":
                raise
            tag_set = []

        return {
            "Name": bucket_name,
            "Versioning": {"Status": versioning.get("Status")},
            "Encryption": encryption,
            "Tags": {t["Key"]: t["Value"] for t in tag_set},
        }

    @fetcher_error_handler(is_missing_aws_error)
    def get_public_access_block(self, bucket_name: str) -> Optional[LiveResourceData]:
        response = self.s3_client.get_public_access_block(Bucket=bucket_name)
        return response.get("PublicAccessBlockConfiguration")

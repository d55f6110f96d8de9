"""
AWS drift detector.

EC2 lookups are tried in every configured region; a resource found in none of
them is reported as deleted. S3 is global, so bucket lookups use the first
region's client.
"""

import threading
from typing import Dict, Optional, Sequence

from ...utils import setup_logging
from ..comparators.aws_comparators import (
    compare_instance_attributes,
    compare_public_access_block_attributes,
    compare_s3_bucket_attributes,
    compare_security_group_attributes,
)
from ..comparators.base import build_drift_item, existence_drift
from ..errors import DetectorInitError, PassCancelledError
from ..models import DriftItem, Resource, Severity
from ..types import LiveResourceData
from .base import Detector, ResourceCheck, require_attribute

logger = setup_logging()

DEFAULT_REGIONS = ("us-east-1",)


class AWSDetector(Detector):
    """Detects drift in AWS resources."""

    name = "AWS"
    resource_prefix = "aws_"

    def __init__(self, fetchers: Sequence) -> None:
        """
        Args:
            fetchers: One ``AWSResourceFetcher`` (or compatible object) per region
        """
        if not fetchers:
            raise DetectorInitError("AWS detector needs at least one region")
        self.fetchers = list(fetchers)
        self._checks: Dict[str, ResourceCheck] = {
            "aws_instance": self._check_instance,
            "aws_s3_bucket": self._check_s3_bucket,
            "aws_s3_bucket_public_access_block": self._check_public_access_block,
            "aws_security_group": self._check_security_group,
        }

    @classmethod
    def from_config(
        cls, regions: Sequence[str], max_retries: int = 3, timeout_seconds: int = 30
    ) -> "AWSDetector":
        from ..fetchers.aws_fetchers import AWSResourceFetcher, create_session

        regions = list(regions) or list(DEFAULT_REGIONS)
        try:
            session = create_session()
            fetchers = [
                AWSResourceFetcher(
                    region, session=session, max_retries=max_retries, timeout_seconds=timeout_seconds
                )
                for region in regions
            ]
        except DetectorInitError:
            raise
        except Exception as e:
            raise DetectorInitError(f"failed to load AWS config: {e}") from e
        logger.debug(f"AWS detector initialised for regions: {regions}")
        return cls(fetchers)

    @property
    def checks(self) -> Dict[str, ResourceCheck]:
        return self._checks

    def _find_in_regions(
        self, lookup: str, identifier: str, cancel_event: Optional[threading.Event] = None
    ) -> Optional[LiveResourceData]:
        for fetcher in self.fetchers:
            if cancel_event is not None and cancel_event.is_set():
                raise PassCancelledError(f"{self.name} lookup of {identifier} cancelled")
            live = getattr(fetcher, lookup)(identifier)
            if live is not None:
                return live
        return None

    def _check_instance(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        instance_id = require_attribute(resource, "id")
        live = self._find_in_regions("get_instance", instance_id, cancel_event)
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_instance_attributes(resource, live)
        return build_drift_item(resource, self.name, instance_id, changes)

    def _check_s3_bucket(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        bucket_name = require_attribute(resource, "bucket")
        live = self.fetchers[0].get_bucket(bucket_name)
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_s3_bucket_attributes(resource, live)
        return build_drift_item(resource, self.name, bucket_name, changes)

    def _check_public_access_block(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        bucket_name = require_attribute(resource, "bucket")
        live = self.fetchers[0].get_public_access_block(bucket_name)
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_public_access_block_attributes(resource, live)
        return build_drift_item(resource, self.name, bucket_name, changes)

    def _check_security_group(
        self, resource: Resource, cancel_event: Optional[threading.Event] = None
    ) -> Optional[DriftItem]:
        group_id = require_attribute(resource, "id")
        live = self._find_in_regions("get_security_group", group_id, cancel_event)
        if live is None:
            return existence_drift(resource, self.name)
        changes = compare_security_group_attributes(resource, live)
        # Rule count changes on a security group are always high severity
        return build_drift_item(resource, self.name, group_id, changes, severity=Severity.HIGH)

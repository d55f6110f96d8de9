"""
Provider Detector Contract.

A detector owns every resource type with its provider prefix. ``detect``
filters the state down to those resources before inspecting anything, which
keeps independently registered detectors from reporting each other's
resources.

Failure isolation inside ``detect``:

- a resource whose inspection fails is logged and skipped
- if every supported resource lacks its identifying attribute the whole call
  raises ``DetectorError``; the pass records it and moves on
- cancellation is checked before each resource and raises ``PassCancelledError``
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ...utils import setup_logging
from ..errors import DetectorError, MissingIdentifierError, PassCancelledError, ResourceInspectionError
from ..models import DriftItem, Resource, TerraformState
from ..types import ABSENT

logger = setup_logging()

ResourceCheck = Callable[[Resource, Optional[threading.Event]], Optional[DriftItem]]


class Detector(ABC):
    """Base class for cloud provider drift detectors."""

    #: Display name, also used as ``DriftItem.provider``
    name: str = ""
    #: Resource type prefix owned by this detector, e.g. ``aws_``
    resource_prefix: str = ""

    def owns(self, resource: Resource) -> bool:
        return resource.type.startswith(self.resource_prefix)

    def owned_resources(self, state: TerraformState) -> List[Resource]:
        return [r for r in state.resources if self.owns(r)]

    @property
    @abstractmethod
    def checks(self) -> Dict[str, ResourceCheck]:
        """Map of supported resource type to its check."""

    def detect(
        self, state: TerraformState, cancel_event: Optional[threading.Event] = None
    ) -> List[DriftItem]:
        """Inspect every owned resource and return its drift items in state order."""
        owned = self.owned_resources(state)
        logger.debug(f"Detecting drift in {len(owned)} {self.name} resources")

        drifts: List[DriftItem] = []
        inspected = 0
        missing_identifiers = 0
        for resource in owned:
            if cancel_event is not None and cancel_event.is_set():
                raise PassCancelledError(f"{self.name} detection cancelled")

            check = self.checks.get(resource.type)
            if check is None:
                logger.debug(f"No {self.name} comparator for {resource.type}; skipping {resource.address}")
                continue

            inspected += 1
            try:
                item = check(resource, cancel_event)
            except PassCancelledError:
                raise
            except MissingIdentifierError as e:
                missing_identifiers += 1
                logger.warning(f"Error checking {resource.address}: {e}")
                continue
            except ResourceInspectionError as e:
                logger.warning(f"Error checking {resource.address}: {e}")
                continue
            except Exception:
                logger.exception(f"Unexpected error checking {resource.address}")
                continue

            if item is not None:
                drifts.append(item)

        if inspected and missing_identifiers == inspected:
            raise DetectorError(
                f"{self.name}: none of the {inspected} supported resources carried an identifying attribute"
            )
        return drifts


def require_attribute(resource: Resource, key: str) -> Any:
    """Return a non-empty identifying attribute or raise ``MissingIdentifierError``."""
    value = resource.get(key)
    if value is ABSENT or value == "":
        raise MissingIdentifierError(f"{key} not found on {resource.address}")
    return value

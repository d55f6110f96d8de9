"""
Terraform state loading.

Turns a raw state document (local file or S3 object) into a ``TerraformState``.
Loading is lenient: malformed resource blocks and instances are skipped with
a warning rather than failing the whole load. Data sources (``mode: data``)
are not managed infrastructure and are dropped.
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..utils import download_s3_file, parse_terraform_state, setup_logging
from .errors import StateLoadError
from .models import Resource, TerraformState

logger = setup_logging()

LOCAL_PREFIX = "local://"


def _instance_name(name: str, index_key: Any) -> str:
    if index_key is None:
        return name
    if isinstance(index_key, str):
        return f'{name}["{index_key}"]'
    return f"{name}[{index_key}]"


def state_from_dict(state_data: Mapping[str, Any]) -> TerraformState:
    """
    Build a TerraformState from parsed state JSON.

    One ``Resource`` is produced per resource instance, so ``count`` and
    ``for_each`` instances are inspected individually.
    """
    version = state_data.get("version")
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        version = 0

    raw_resources = state_data.get("resources")
    if not isinstance(raw_resources, list):
        logger.warning("No resources found in state file")
        return TerraformState(version=int(version), resources=())

    resources: List[Resource] = []
    for idx, block in enumerate(raw_resources):
        if not isinstance(block, Mapping):
            logger.warning(f"Skipping malformed resource block at index {idx}")
            continue
        if block.get("mode", "managed") != "managed":
            continue
        resource_type = block.get("type")
        resource_name = block.get("name")
        if not isinstance(resource_type, str) or not resource_type:
            logger.warning(f"Skipping resource block at index {idx} without a type")
            continue
        if not isinstance(resource_name, str):
            resource_name = ""
        provider = block.get("provider")
        provider = provider if isinstance(provider, str) else ""
        module = block.get("module") if isinstance(block.get("module"), str) else None

        instances = block.get("instances")
        if not isinstance(instances, list):
            logger.warning(f"Skipping {resource_type}.{resource_name}: no instances list")
            continue
        for instance in instances:
            if not isinstance(instance, Mapping):
                continue
            attributes = instance.get("attributes")
            if not isinstance(attributes, Mapping):
                logger.warning(f"Skipping instance of {resource_type}.{resource_name} without attributes")
                continue
            index_key = instance.get("index_key")
            resources.append(
                Resource(
                    type=resource_type,
                    name=_instance_name(resource_name, index_key),
                    provider=provider,
                    attributes=attributes,
                    module=module,
                    index_key=index_key,
                )
            )

    logger.info(f"Loaded {len(resources)} resources from Terraform state")
    return TerraformState(version=int(version), resources=tuple(resources))


class StateLoader:
    """Loads Terraform state from a local path, ``local://`` path or ``s3://`` URL."""

    def __init__(self, state_path: str, s3_client: Optional[object] = None) -> None:
        self.state_path = state_path
        self.s3_client = s3_client

    def read(self) -> str:
        path = self.state_path
        if not path:
            raise StateLoadError("No Terraform state path configured")
        if path.startswith("s3://"):
            return download_s3_file(path, logger, s3_client=self.s3_client)
        if path.startswith(LOCAL_PREFIX):
            path = path[len(LOCAL_PREFIX):]
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StateLoadError(f"Failed to read state file {path}: {e}") from e

    def load(self) -> TerraformState:
        logger.debug(f"Loading Terraform state from: {self.state_path}")
        return state_from_dict(parse_terraform_state(self.read(), logger))


def filter_resources(
    state: TerraformState,
    resources_to_monitor: Sequence[str] = (),
    ignore_patterns: Iterable[str] = (),
) -> TerraformState:
    """
    Restrict a state to monitored resource types and drop ignored names.

    An empty ``resources_to_monitor`` keeps every type. Ignore patterns are
    regular expressions matched in full against the resource name.
    """
    compiled = [re.compile(p) for p in ignore_patterns]
    monitored = set(resources_to_monitor)
    kept = []
    for resource in state.resources:
        if monitored and resource.type not in monitored:
            continue
        if any(p.fullmatch(resource.name) for p in compiled):
            logger.debug(f"Ignoring {resource.address} (matches ignore pattern)")
            continue
        kept.append(resource)
    return TerraformState(version=state.version, resources=tuple(kept))

"""
Type definitions for driftwatch.

Attribute values arrive from Terraform state and from cloud SDK responses as
plain JSON-like Python values. The aliases below name those shapes, and
``ABSENT`` marks a value that is missing on one side of a comparison.
"""

# Cloud SDK clients are dynamically generated (boto3) or proto-plus wrappers
# (google-cloud) without useful static stubs, so they are annotated as Any.
from typing import Any, Dict, List, Union

EC2Client = Any
S3Client = Any
GCPInstancesClient = Any
GCPStorageClient = Any
AzureComputeClient = Any
AzureStorageClient = Any


class _Absent:
    """Singleton marking a value that is not present."""

    _instance = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Absent":
        return self

    def __deepcopy__(self, memo: Dict) -> "_Absent":
        return self

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

# Resource data types
ResourceValue = Union[str, int, float, bool, List, Dict, None]
LiveResourceData = Dict[str, Any]

# A comparison operand: a resource value or the ABSENT sentinel
ComparableValue = Union[ResourceValue, _Absent]

# Wire-format types
ChangeDict = Dict[str, ResourceValue]
DriftItemDict = Dict[str, Any]
ReportDict = Dict[str, Any]

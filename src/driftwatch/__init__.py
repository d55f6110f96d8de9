"""
driftwatch: Terraform drift detection across AWS, GCP and Azure.

The detection process:
1. Loads and parses the Terraform state file (local path or S3)
2. Runs one detector per enabled cloud provider over the resources it owns
3. Compares declared attributes with live attributes and classifies severity
4. Builds a report and sends it to the enabled notification channels

Entry points live in ``core`` (``detect_drift``) and ``scheduler``
(``MonitoringScheduler``). Submodules are not imported here because
``src.utils`` depends on ``errors`` and is itself imported by most modules.
"""

__version__ = "1.0.0"

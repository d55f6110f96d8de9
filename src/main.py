"""
AWS Lambda entry point for driftwatch.
"""

import json
from typing import Any, Dict

from .config import load_config
from .driftwatch.core import detect_drift
from .utils import setup_logging

JSON_HEADERS = {"Content-Type": "application/json"}


def _response(status_code: int, body: Dict[str, Any]) -> dict:
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": dict(JSON_HEADERS),
    }


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda handler function.

    Runs a single detection pass with configuration taken from the
    environment (and a bundled config file when present).

    Args:
        event: Lambda event data
        context: Lambda context

    Returns:
        Dictionary with statusCode and body containing the drift report
    """
    logger = setup_logging()
    try:
        # Load and validate configuration
        config = load_config()
        logger = setup_logging(config.log_level)
        logger.info("Starting Terraform drift detection")

        result = detect_drift(config)

        logger.info(
            f"Drift detection completed. Drift detected: {result.report.has_drift}"
        )

        body: Dict[str, Any] = dict(result.report.to_dict())
        body["drift_detected"] = result.report.has_drift
        body["drift_count"] = result.drift_count
        body["notification_failed"] = result.notification_failed
        if result.detector_errors:
            body["detector_errors"] = result.detector_errors
        return _response(200, body)

    except ValueError as e:
        # Configuration or validation errors
        logger.error(f"Configuration error: {str(e)}")
        return _response(400, {"error": "Configuration error", "message": str(e)})

    except Exception as e:
        # State load failures and unexpected errors
        logger.error(f"Unexpected error: {str(e)}")
        return _response(500, {"error": "Internal server error", "message": str(e)})

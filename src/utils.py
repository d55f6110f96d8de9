"""
Utility functions for driftwatch.
"""

import functools
import json
import logging
import re
from typing import Callable, Dict, Optional, TypeVar, cast
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .driftwatch.errors import ResourceInspectionError, StateLoadError

LOGGER_NAME = "driftwatch"


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up logging configuration for driftwatch.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). When omitted the
            current level is kept, defaulting to INFO on first use.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    if log_level is not None:
        logger.setLevel(getattr(logging, log_level.upper()))
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


F = TypeVar("F", bound=Callable[..., Optional[dict]])


def fetcher_error_handler(is_missing: Callable[[Exception], bool]) -> Callable[[F], F]:
    """
    Decorator for consistent error handling and logging in live-resource fetchers.

    Errors for which ``is_missing`` is true (not found, access denied) are
    logged and turned into ``None`` so the caller reports existence drift.
    Anything else is re-raised as ``ResourceInspectionError``.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: object, **kwargs: object) -> Optional[dict]:
            logger = setup_logging()
            try:
                return func(*args, **kwargs)
            except ResourceInspectionError:
                raise
            except Exception as e:
                if is_missing(e):
                    logger.info(f"{func.__name__}: resource not found or inaccessible ({e})")
                    return None
                logger.debug(f"Error in {func.__name__}: {e}")
                raise ResourceInspectionError(f"{func.__name__} failed: {e}") from e

        return cast(F, wrapper)

    return decorator


def download_s3_file(
    s3_path: str, logger: Optional[logging.Logger] = None, s3_client: Optional[object] = None
) -> str:
    """
    Downloads a file from S3 and returns its content as a string.

    Args:
        s3_path: S3 path in format 's3://bucket/key'
        logger: Logger instance for error logging
        s3_client: Optional boto3 S3 client to use instead of a default one

    Returns:
        File content as string

    Raises:
        StateLoadError: If the S3 path is invalid or the download fails
    """
    if logger is None:
        logger = setup_logging()

    parsed = urlparse(s3_path)
    bucket = parsed.netloc
    key = parsed.path.lstrip("/")
    if parsed.scheme != "s3" or not bucket or not key:
        raise StateLoadError(f"Invalid S3 path: {s3_path}")

    try:
        logger.info(f"Downloading S3 file: {s3_path}")
        client = s3_client or boto3.client("s3")
        response = client.get_object(Bucket=bucket, Key=key)  # type: ignore[attr-defined]
        content_bytes = response["Body"].read()
        content = (
            content_bytes.decode("utf-8")
            if isinstance(content_bytes, bytes)
            else str(content_bytes)
        )
        logger.info(f"Successfully downloaded {len(content)} bytes from S3")
        return content
    except (BotoCoreError, ClientError, UnicodeDecodeError) as e:
        logger.error(f"Failed to download S3 file {s3_path}: {str(e)}")
        raise StateLoadError(f"Failed to download state from {s3_path}: {e}") from e


def parse_terraform_state(
    state_content: str, logger: Optional[logging.Logger] = None
) -> Dict:
    """
    Parses Terraform state file content into a Python dict.

    Args:
        state_content: Raw state file content as string
        logger: Logger instance for error logging

    Returns:
        Parsed state data as dict

    Raises:
        StateLoadError: If state file contains invalid JSON or is not an object
    """
    if logger is None:
        logger = setup_logging()

    try:
        logger.info("Parsing Terraform state file")
        state_data = json.loads(state_content)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in state file: {e}")
        raise StateLoadError(f"Invalid JSON in state file: {e}") from e
    if not isinstance(state_data, dict):
        raise StateLoadError("State file did not parse to a dictionary.")
    logger.info(
        f"Successfully parsed state file with "
        f"{len(state_data.get('resources') or [])} resource blocks"
    )
    return state_data


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: object) -> float:
    """
    Parse a Go-style duration (``5m``, ``1h30m``, ``45s``) into seconds.

    Plain numbers are taken as seconds.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().lower()
        if not text:
            raise ValueError("Invalid duration: empty string")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    raise ValueError(f"Invalid duration: {value!r}")
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text):
                raise ValueError(f"Invalid duration: {value!r}")
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds

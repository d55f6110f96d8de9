"""
Configuration loader for driftwatch.

Settings come from an optional YAML file overlaid with environment variables.
``${VAR}`` references inside the YAML are expanded from the environment.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .driftwatch.errors import ConfigurationError
from .driftwatch.models import Severity
from .driftwatch.severity import parse_severity
from .utils import parse_duration

DEFAULT_CONFIG_PATHS = (
    Path("config") / "config.yaml",
    Path("config.yaml"),
    Path.home() / ".driftwatch" / "config.yaml",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class AWSProviderConfig:
    enabled: bool = True
    regions: List[str] = field(default_factory=lambda: ["us-east-1"])


@dataclass
class GCPProviderConfig:
    enabled: bool = False
    project_id: str = ""


@dataclass
class AzureProviderConfig:
    enabled: bool = False
    subscription_id: str = ""


@dataclass
class ProvidersConfig:
    aws: AWSProviderConfig = field(default_factory=AWSProviderConfig)
    gcp: GCPProviderConfig = field(default_factory=GCPProviderConfig)
    azure: AzureProviderConfig = field(default_factory=AzureProviderConfig)


@dataclass
class DetectionConfig:
    interval_seconds: float = 300.0
    resources_to_monitor: List[str] = field(default_factory=list)
    ignore_resources: List[str] = field(default_factory=list)
    min_severity: Optional[Severity] = None
    parallel: bool = False


@dataclass
class SlackConfig:
    enabled: bool = False
    webhook_url: str = ""


@dataclass
class EmailConfig:
    enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    username: str = ""
    password: str = ""
    from_address: str = ""
    to: List[str] = field(default_factory=list)


@dataclass
class WebhookConfig:
    enabled: bool = False
    url: str = ""


@dataclass
class NotificationsConfig:
    slack: SlackConfig = field(default_factory=SlackConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)


@dataclass
class Config:
    """Configuration class for driftwatch."""

    state_path: str
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    log_level: str = "INFO"
    max_retries: int = 3
    timeout_seconds: int = 30
    config_file: Optional[str] = None


def expand_env_references(value: Any, environ: Mapping[str, str]) -> Any:
    """Replace ``${VAR}`` in every string of a parsed YAML document."""
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(lambda m: environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: expand_env_references(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_references(v, environ) for v in value]
    return value


def find_config_file(path: Optional[str] = None) -> Optional[Path]:
    """
    Locate the YAML configuration file.

    An explicit path must exist; otherwise the default locations are searched
    and ``None`` is returned when none of them exists.
    """
    if path:
        explicit = Path(path).expanduser()
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        return explicit
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.is_file():
            return candidate
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error reading config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping")
    return value


def _string_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationError(f"'{key}' must be a list")
    return [str(v) for v in value]


def _int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e


def _parse_providers(data: Mapping[str, Any]) -> ProvidersConfig:
    aws = _section(data, "aws")
    gcp = _section(data, "gcp")
    azure = _section(data, "azure")
    return ProvidersConfig(
        aws=AWSProviderConfig(
            enabled=bool(aws.get("enabled", True)),
            regions=_string_list(aws.get("regions"), "providers.aws.regions") or ["us-east-1"],
        ),
        gcp=GCPProviderConfig(
            enabled=bool(gcp.get("enabled", False)),
            project_id=str(gcp.get("project_id") or ""),
        ),
        azure=AzureProviderConfig(
            enabled=bool(azure.get("enabled", False)),
            subscription_id=str(azure.get("subscription_id") or ""),
        ),
    )


def _parse_detection(data: Mapping[str, Any]) -> DetectionConfig:
    raw_severity = data.get("min_severity")
    try:
        interval = parse_duration(data.get("interval", "5m"))
        min_severity = parse_severity(raw_severity) if raw_severity else None
    except ValueError as e:
        raise ConfigurationError(f"Invalid detection settings: {e}") from e
    patterns = _string_list(data.get("ignore_resources"), "detection.ignore_resources")
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid ignore_resources pattern {pattern!r}: {e}") from e
    return DetectionConfig(
        interval_seconds=interval,
        resources_to_monitor=_string_list(
            data.get("resources_to_monitor"), "detection.resources_to_monitor"
        ),
        ignore_resources=patterns,
        min_severity=min_severity,
        parallel=bool(data.get("parallel", False)),
    )


def _parse_notifications(data: Mapping[str, Any]) -> NotificationsConfig:
    slack = _section(data, "slack")
    email = _section(data, "email")
    webhook = _section(data, "webhook")
    return NotificationsConfig(
        slack=SlackConfig(
            enabled=bool(slack.get("enabled", False)),
            webhook_url=str(slack.get("webhook_url") or ""),
        ),
        email=EmailConfig(
            enabled=bool(email.get("enabled", False)),
            smtp_host=str(email.get("smtp_host") or ""),
            smtp_port=_int(email.get("smtp_port", 587), "notifications.email.smtp_port"),
            username=str(email.get("username") or ""),
            password=str(email.get("password") or ""),
            from_address=str(email.get("from") or ""),
            to=_string_list(email.get("to"), "notifications.email.to"),
        ),
        webhook=WebhookConfig(
            enabled=bool(webhook.get("enabled", False)),
            url=str(webhook.get("url") or ""),
        ),
    )


def load_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> Config:
    """
    Loads and validates configuration.

    Args:
        path: Explicit YAML config path; default locations are searched otherwise
        environ: Environment mapping, ``os.environ`` by default

    Returns:
        Config object with validated settings

    Raises:
        ConfigurationError: If required configuration is missing or invalid
            (a ``ValueError`` subclass)
    """
    env = os.environ if environ is None else environ

    config_file = find_config_file(path)
    data: Dict[str, Any] = {}
    if config_file is not None:
        data = expand_env_references(_read_yaml(config_file), env)

    terraform = _section(data, "terraform")
    logging_section = _section(data, "logging")

    config = Config(
        state_path=str(terraform.get("state_path") or ""),
        providers=_parse_providers(_section(data, "providers")),
        detection=_parse_detection(_section(data, "detection")),
        notifications=_parse_notifications(_section(data, "notifications")),
        log_level=str(logging_section.get("level") or "INFO").upper(),
        config_file=str(config_file) if config_file is not None else None,
    )
    _apply_env_overrides(config, env)
    _validate(config)
    return config


def _apply_env_overrides(config: Config, env: Mapping[str, str]) -> None:
    state_path = env.get("STATE_FILE_PATH") or env.get("STATE_FILE_S3_PATH")
    if state_path:
        config.state_path = state_path
    if env.get("AWS_REGION"):
        config.providers.aws.regions = [env["AWS_REGION"]]
    if env.get("LOG_LEVEL"):
        config.log_level = env["LOG_LEVEL"].upper()
    if env.get("MAX_RETRIES"):
        config.max_retries = _int(env["MAX_RETRIES"], "MAX_RETRIES")
    if env.get("TIMEOUT_SECONDS"):
        config.timeout_seconds = _int(env["TIMEOUT_SECONDS"], "TIMEOUT_SECONDS")
    if env.get("DRIFT_INTERVAL"):
        try:
            config.detection.interval_seconds = parse_duration(env["DRIFT_INTERVAL"])
        except ValueError as e:
            raise ConfigurationError(f"DRIFT_INTERVAL: {e}") from e

    # Supplying an identifier through the environment turns the provider or channel on
    if env.get("GCP_PROJECT_ID"):
        config.providers.gcp.project_id = env["GCP_PROJECT_ID"]
        config.providers.gcp.enabled = True
    if env.get("AZURE_SUBSCRIPTION_ID"):
        config.providers.azure.subscription_id = env["AZURE_SUBSCRIPTION_ID"]
        config.providers.azure.enabled = True
    if env.get("SLACK_WEBHOOK_URL"):
        config.notifications.slack.webhook_url = env["SLACK_WEBHOOK_URL"]
        config.notifications.slack.enabled = True
    if env.get("WEBHOOK_URL"):
        config.notifications.webhook.url = env["WEBHOOK_URL"]
        config.notifications.webhook.enabled = True


def _validate(config: Config) -> None:
    if not config.state_path:
        raise ConfigurationError(
            "STATE_FILE_PATH environment variable or terraform.state_path is required"
        )
    if config.state_path.startswith("s3://") and len(config.state_path) <= len("s3://"):
        raise ConfigurationError("STATE_FILE_PATH must be a valid S3 path like s3://bucket/key")
    if config.log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level {config.log_level!r}; expected one of {', '.join(VALID_LOG_LEVELS)}"
        )
    if config.max_retries < 0:
        raise ConfigurationError("MAX_RETRIES must not be negative")
    if config.timeout_seconds <= 0:
        raise ConfigurationError("TIMEOUT_SECONDS must be positive")


DEFAULT_CONFIG_TEMPLATE = """\
# driftwatch configuration
# Values of the form ${VAR} are read from the environment.

terraform:
  # Local path, local://path or s3://bucket/key
  state_path: "./terraform.tfstate"

providers:
  aws:
    enabled: true
    regions:
      - "us-east-1"
    # Credentials come from the standard AWS chain (env vars, profile, IAM role)

  gcp:
    enabled: false
    project_id: "my-gcp-project"
    # Credentials: GOOGLE_APPLICATION_CREDENTIALS or gcloud application-default login

  azure:
    enabled: false
    subscription_id: "your-subscription-id"
    # Credentials: AZURE_CLIENT_ID / AZURE_CLIENT_SECRET / AZURE_TENANT_ID or az login

detection:
  # Period for --watch mode
  interval: "5m"

  # Resource types to check; empty means every supported type
  resources_to_monitor: []

  # Resource names matching any of these regexes are skipped
  ignore_resources:
    - ".*-ephemeral-.*"

  # Only notify when some drift is at least this severe (low, medium, high, critical)
  min_severity: "medium"

  # Run provider detectors concurrently
  parallel: false

notifications:
  slack:
    enabled: false
    webhook_url: "${SLACK_WEBHOOK_URL}"

  email:
    enabled: false
    smtp_host: "smtp.example.com"
    smtp_port: 587
    username: "${EMAIL_USERNAME}"
    password: "${EMAIL_PASSWORD}"
    from: "driftwatch@example.com"
    to:
      - "devops-team@example.com"

  webhook:
    enabled: false
    url: "${WEBHOOK_URL}"

logging:
  # DEBUG, INFO, WARNING or ERROR
  level: "INFO"
"""


def write_default_config(path: str, force: bool = False) -> Path:
    """
    Write the default configuration file.

    Raises:
        FileExistsError: If the file exists and ``force`` is false
    """
    target = Path(path)
    if target.exists() and not force:
        raise FileExistsError(f"Configuration file already exists at {target}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    return target

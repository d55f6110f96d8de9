"""
Core drift detection orchestration logic.

One pass: load the Terraform state, run every registered detector against it,
build the report and hand it to the notification dispatcher. Detectors are
fault-isolated: a detector that fails as a whole is recorded in the pass
result and contributes no drift items, and the remaining detectors still run.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..utils import setup_logging
from .analyzer import Analyzer
from .detectors import AWSDetector, AzureDetector, Detector, GCPDetector
from .errors import ConfigurationError, DetectorError, DetectorInitError, PassCancelledError
from .models import DriftItem, Report, TerraformState
from .notifiers import DispatchResult, NotificationDispatcher, NotificationPolicy, build_channels
from .state import StateLoader, filter_resources

logger = setup_logging()

PROVIDERS = ("aws", "gcp", "azure")


@dataclass
class PassResult:
    """Outcome of one detection pass."""

    report: Report
    detector_errors: Dict[str, str] = field(default_factory=dict)
    dispatch: Optional[DispatchResult] = None

    @property
    def drift_count(self) -> int:
        return self.report.drift_count

    @property
    def notification_failed(self) -> bool:
        return self.dispatch is not None and not self.dispatch.ok


def build_detectors(config, provider_filter: Optional[str] = None) -> List[Detector]:
    """
    Build the detectors enabled in ``config``, in aws, gcp, azure order.

    A detector that cannot be initialised is logged and left out.

    Raises:
        ConfigurationError: If the filter is unknown or no detector is usable
    """
    if provider_filter is not None and provider_filter not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown provider '{provider_filter}'. Expected one of: {', '.join(PROVIDERS)}"
        )

    def wanted(name: str, enabled: bool) -> bool:
        return enabled and (provider_filter is None or provider_filter == name)

    providers = config.providers
    factories: List[Tuple[str, bool, Callable[[], Detector]]] = [
        (
            "aws",
            providers.aws.enabled,
            lambda: AWSDetector.from_config(
                providers.aws.regions, config.max_retries, config.timeout_seconds
            ),
        ),
        (
            "gcp",
            providers.gcp.enabled,
            lambda: GCPDetector.from_config(providers.gcp.project_id, config.timeout_seconds),
        ),
        (
            "azure",
            providers.azure.enabled,
            lambda: AzureDetector.from_config(providers.azure.subscription_id),
        ),
    ]

    detectors: List[Detector] = []
    for name, enabled, factory in factories:
        if not wanted(name, enabled):
            continue
        try:
            detectors.append(factory())
        except DetectorInitError as e:
            logger.error(f"Failed to initialize {name} detector: {e}")

    if not detectors:
        raise ConfigurationError("no cloud providers enabled in configuration")
    return detectors


def _run_detector(
    detector: Detector, state: TerraformState, cancel_event: Optional[threading.Event]
) -> Tuple[List[DriftItem], Optional[str]]:
    logger.info(f"Checking {detector.name} resources...")
    try:
        return detector.detect(state, cancel_event), None
    except PassCancelledError:
        raise
    except DetectorError as e:
        logger.error(f"Error detecting drift in {detector.name}: {e}")
        return [], str(e)
    except Exception as e:
        logger.exception(f"Unexpected error detecting drift in {detector.name}")
        return [], f"{type(e).__name__}: {e}"


def run_detection_pass(
    state: TerraformState,
    detectors: Sequence[Detector],
    dispatcher: Optional[NotificationDispatcher] = None,
    cancel_event: Optional[threading.Event] = None,
    parallel: bool = False,
    analyzer: Optional[Analyzer] = None,
) -> PassResult:
    """
    Run detectors over a loaded state and dispatch the resulting report.

    Drift items are ordered by detector registration, then by resource order
    within the state, whether or not detectors run in parallel.

    Raises:
        PassCancelledError: If cancellation is observed before dispatch
    """
    if cancel_event is not None and cancel_event.is_set():
        raise PassCancelledError("pass cancelled before it started")

    if parallel and len(detectors) > 1:
        with ThreadPoolExecutor(max_workers=len(detectors), thread_name_prefix="detect") as executor:
            futures = [executor.submit(_run_detector, d, state, cancel_event) for d in detectors]
            results = [f.result() for f in futures]
    else:
        results = [_run_detector(d, state, cancel_event) for d in detectors]

    drifts: List[DriftItem] = []
    detector_errors: Dict[str, str] = {}
    for detector, (items, error) in zip(detectors, results):
        drifts.extend(items)
        if error is not None:
            detector_errors[detector.name] = error

    total_resources = sum(len(d.owned_resources(state)) for d in detectors)
    report = (analyzer or Analyzer()).generate_report(drifts, total_resources)
    logger.info(f"Drift detection completed: {report.summary}")

    if cancel_event is not None and cancel_event.is_set():
        raise PassCancelledError("pass cancelled before notifications were sent")

    dispatch = dispatcher.dispatch(report, cancel_event) if dispatcher is not None else None
    return PassResult(report=report, detector_errors=detector_errors, dispatch=dispatch)


def make_pass_runner(
    config,
    detectors: Sequence[Detector],
    policy: Optional[NotificationPolicy] = None,
    state_loader: Optional[StateLoader] = None,
) -> Callable[[threading.Event], PassResult]:
    """
    Bind configuration and detectors into a callable that runs one full pass.

    The state is reloaded on every call so continuous monitoring sees new
    applies.
    """
    loader = state_loader or StateLoader(config.state_path)
    channels = build_channels(config.notifications, timeout_seconds=config.timeout_seconds)
    if policy is None:
        policy = NotificationPolicy(min_severity=config.detection.min_severity)
    dispatcher = NotificationDispatcher(channels, policy)

    def run_pass(cancel_event: threading.Event) -> PassResult:
        logger.info("Loading Terraform state...")
        state = loader.load()
        state = filter_resources(
            state,
            config.detection.resources_to_monitor,
            config.detection.ignore_resources,
        )
        return run_detection_pass(
            state,
            detectors,
            dispatcher,
            cancel_event,
            parallel=config.detection.parallel,
        )

    return run_pass


def detect_drift(
    config,
    cancel_event: Optional[threading.Event] = None,
    provider_filter: Optional[str] = None,
    policy: Optional[NotificationPolicy] = None,
) -> PassResult:
    """
    Main entry point for a single drift detection pass.

    Raises:
        StateLoadError: If the Terraform state cannot be loaded
        ConfigurationError: If no detector is usable
    """
    detectors = build_detectors(config, provider_filter)
    run_pass = make_pass_runner(config, detectors, policy)
    return run_pass(cancel_event or threading.Event())

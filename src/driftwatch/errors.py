"""
Exception hierarchy for driftwatch.

Every error raised by the package derives from ``DriftwatchError`` so callers
can separate expected operational failures from programming errors.
"""

from typing import List, Sequence


class DriftwatchError(Exception):
    """Base class for all driftwatch errors."""


class ConfigurationError(DriftwatchError, ValueError):
    """Invalid or incomplete configuration, including a pass with no usable detectors."""


class StateLoadError(DriftwatchError):
    """The Terraform state could not be read or parsed. Fatal to the run."""


class DetectorInitError(DriftwatchError):
    """A detector could not be constructed (missing credential or identifier)."""


class DetectorError(DriftwatchError):
    """A detector failed as a whole for one pass."""


class ResourceInspectionError(DriftwatchError):
    """Inspecting a single resource failed for a reason other than absence."""


class MissingIdentifierError(ResourceInspectionError):
    """A resource lacks the attribute needed to locate it in the live provider."""


class PassCancelledError(DriftwatchError):
    """Cancellation was observed while a pass was in flight."""


class DriftDetectedError(DriftwatchError):
    """Raised when drift is found and the caller asked for that to be fatal."""

    def __init__(self, drift_count: int) -> None:
        super().__init__(f"drift detected in {drift_count} resource(s)")
        self.drift_count = drift_count


class NotificationError(DriftwatchError):
    """A single notification channel failed to deliver."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel


class NotificationDispatchError(DriftwatchError):
    """One or more enabled notification channels failed."""

    def __init__(self, failures: Sequence[NotificationError]) -> None:
        self.failures: List[NotificationError] = list(failures)
        channels = ", ".join(f.channel for f in self.failures)
        super().__init__(f"some notifications failed to send: {channels}")

    @property
    def failed_channels(self) -> List[str]:
        return [f.channel for f in self.failures]

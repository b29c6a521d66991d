"""All status codes, modes, and kinds used across subsystem boundaries.

Wire values (endpoint subpaths, event type strings, service check codes)
are part of the Datadog API contract and must not change.
"""

from enum import IntEnum, StrEnum


class LifecycleNotification(StrEnum):
    """Notification delivered by the host job runtime.

    The two variants map onto the build listener's start and completion
    hooks.
    """

    STARTED = "started"
    COMPLETED = "completed"


class BuildResult(StrEnum):
    """Three-way classification of a build's terminal result.

    The raw result string reported by the runtime is kept on the record;
    this enum is only used for reporting decisions (verb, alert type,
    service check status).
    """

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    OTHER = "OTHER"

    @classmethod
    def from_raw(cls, raw: str) -> "BuildResult":
        """Classify a raw runtime result string.

        Only exact matches are recognized; "success" or "UNSTABLE" both
        land in OTHER.
        """
        if raw == cls.SUCCESS.value:
            return cls.SUCCESS
        if raw == cls.FAILURE.value:
            return cls.FAILURE
        return cls.OTHER


class BuildEventType(StrEnum):
    """Event classification used by Datadog event roll-ups."""

    BUILD_START = "build start"
    BUILD_RESULT = "build result"


class AlertType(StrEnum):
    """Datadog event alert_type values."""

    SUCCESS = "success"
    FAILURE = "failure"
    INFO = "info"


class ServiceCheckStatus(IntEnum):
    """Datadog service check status codes."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class Endpoint(StrEnum):
    """Datadog API subpaths, relative to the configured base URL."""

    VALIDATE = "v1/validate"
    SERIES = "v1/series"
    EVENTS = "v1/events"
    CHECK_RUN = "v1/check_run"

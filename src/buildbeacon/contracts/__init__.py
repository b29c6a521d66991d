"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core or
telemetry. Settings are NOT re-exported here - import them from
buildbeacon.core.config.

Import patterns:
    from buildbeacon.contracts import BuildRecord, BuildRun, Endpoint
    from buildbeacon.core.config import BuildBeaconSettings
"""

from buildbeacon.contracts.enums import (
    AlertType,
    BuildEventType,
    BuildResult,
    Endpoint,
    LifecycleNotification,
    ServiceCheckStatus,
)
from buildbeacon.contracts.errors import BuildBeaconError, EnvironmentUnavailableError
from buildbeacon.contracts.records import BuildRecord
from buildbeacon.contracts.run import BuildRun

__all__ = [
    "AlertType",
    "BuildBeaconError",
    "BuildEventType",
    "BuildRecord",
    "BuildResult",
    "BuildRun",
    "Endpoint",
    "EnvironmentUnavailableError",
    "LifecycleNotification",
    "ServiceCheckStatus",
]

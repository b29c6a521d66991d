"""Metadata collection: BuildRun + environment -> BuildRecord."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import structlog

from buildbeacon.contracts.enums import BuildEventType, LifecycleNotification
from buildbeacon.contracts.errors import EnvironmentUnavailableError
from buildbeacon.contracts.records import BuildRecord

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from buildbeacon.contracts.run import BuildRun
    from buildbeacon.core.hostname import HostnameResolver

logger = structlog.get_logger(__name__)

BUILD_URL_ENV_VAR = "BUILD_URL"
NODE_NAME_ENV_VAR = "NODE_NAME"
# First present wins.
BRANCH_ENV_VARS = ("GIT_BRANCH", "CVS_BRANCH")

# Recorded when a completed run reports no result.
UNKNOWN_RESULT = "UNKNOWN"


def read_environment(run: BuildRun, *, log: BoundLogger | None = None) -> Mapping[str, str]:
    """Environment of the run, or an empty mapping if it cannot be read."""
    log = log if log is not None else logger
    try:
        return run.get_environment()
    except (EnvironmentUnavailableError, OSError, InterruptedError) as e:
        log.error(
            "Could not read build environment, continuing without it",
            error=str(e),
            error_type=type(e).__name__,
        )
        return {}


def resolve_branch(environment: Mapping[str, str]) -> str | None:
    for name in BRANCH_ENV_VARS:
        branch = environment.get(name)
        if branch is not None:
            return branch
    return None


def collect(
    run: BuildRun,
    phase: LifecycleNotification,
    resolver: HostnameResolver,
    configured_hostname: str | None = None,
    *,
    log: BoundLogger | None = None,
) -> BuildRecord:
    """Build the record describing a run at the given lifecycle point.

    Start records carry identity, start time and build URL only. Completion
    records add the result, duration, end time, node and branch.

    Args:
        run: The run being reported
        phase: Which notification triggered collection
        resolver: Hostname resolver
        configured_hostname: Static hostname override from settings
        log: Logger bound to the current notification

    Returns:
        A fully populated BuildRecord
    """
    log = log if log is not None else logger
    environment = read_environment(run, log=log)
    hostname = resolver.resolve(configured_hostname, environment, log=log)
    start_time = run.start_time_ms // 1000

    if phase is LifecycleNotification.STARTED:
        return BuildRecord(
            job=run.job_name,
            number=run.number,
            start_time=start_time,
            event_type=BuildEventType.BUILD_START,
            hostname=hostname,
            build_url=environment.get(BUILD_URL_ENV_VAR),
        )

    duration = run.duration_ms / 1000.0
    result = run.result
    if result is None:
        log.warning("Completed run reported no result", recorded_as=UNKNOWN_RESULT)
        result = UNKNOWN_RESULT

    return BuildRecord(
        job=run.job_name,
        number=run.number,
        start_time=start_time,
        event_type=BuildEventType.BUILD_RESULT,
        hostname=hostname,
        result=result,
        duration=duration,
        end_time=start_time + int(duration),
        build_url=environment.get(BUILD_URL_ENV_VAR),
        node=environment.get(NODE_NAME_ENV_VAR),
        branch=resolve_branch(environment),
    )

"""Build listener: reacts to lifecycle notifications and reports to Datadog.

STARTED   -> event
COMPLETED -> event, duration gauge, status service check

Jobs on the blacklist are skipped entirely. Each payload is delivered
independently; one failed delivery never prevents the others.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog

from buildbeacon.contracts.enums import Endpoint, LifecycleNotification
from buildbeacon.core.hostname import HostnameResolver
from buildbeacon.core.logging import bind_notification_logger
from buildbeacon.telemetry.client import DatadogClient
from buildbeacon.telemetry.collector import collect
from buildbeacon.telemetry.payloads import build_event, build_gauge, build_service_check
from buildbeacon.telemetry.tags import assemble_tags

if TYPE_CHECKING:
    from collections.abc import Mapping

    from structlog.stdlib import BoundLogger

    from buildbeacon.contracts.records import BuildRecord
    from buildbeacon.contracts.run import BuildRun
    from buildbeacon.core.config import BuildBeaconSettings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReportSummary:
    """What was reported for one notification.

    Attributes:
        record: The collected build record
        deliveries: Delivery outcome per endpoint attempted. A skipped
            payload (e.g. a gauge without duration) has no entry.
    """

    record: BuildRecord
    deliveries: Mapping[Endpoint, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "deliveries", MappingProxyType(dict(self.deliveries)))

    @property
    def all_delivered(self) -> bool:
        return all(self.deliveries.values())


class BuildListener:
    """Lifecycle controller for build telemetry.

    Example:
        listener = BuildListener(load_settings(path))
        listener.on_started(run)
        ...
        listener.on_completed(run)
    """

    def __init__(
        self,
        settings: BuildBeaconSettings,
        *,
        client: DatadogClient | None = None,
        resolver: HostnameResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the listener.

        Args:
            settings: Loaded, immutable settings
            client: Delivery client (default: DatadogClient(settings))
            resolver: Hostname resolver (default: HostnameResolver())
            clock: Source of the current unix time for gauge points and checks
        """
        self._settings = settings
        self._client = client if client is not None else DatadogClient(settings)
        self._resolver = resolver if resolver is not None else HostnameResolver()
        self._clock = clock

    def is_blacklisted(self, job_name: str) -> bool:
        return job_name.lower() in self._settings.blacklisted_jobs

    def on_started(self, run: BuildRun) -> ReportSummary | None:
        return self.handle(LifecycleNotification.STARTED, run)

    def on_completed(self, run: BuildRun) -> ReportSummary | None:
        return self.handle(LifecycleNotification.COMPLETED, run)

    def handle(self, notification: LifecycleNotification, run: BuildRun) -> ReportSummary | None:
        """Report a lifecycle notification.

        Args:
            notification: STARTED or COMPLETED
            run: The run the notification is about

        Returns:
            Summary of what was delivered, or None if the job is blacklisted
        """
        job_name = run.job_name
        if self.is_blacklisted(job_name):
            logger.debug("Job is blacklisted, skipping", job=job_name, notification=notification.value)
            return None

        log = bind_notification_logger(__name__, job=job_name, number=run.number, notification=notification.value)
        log.info("Build started" if notification is LifecycleNotification.STARTED else "Build completed")

        record = collect(run, notification, self._resolver, self._settings.hostname, log=log)
        tags = assemble_tags(record, self._settings.tag_node)
        deliveries: dict[Endpoint, bool] = {}

        log.info("Sending event")
        deliveries[Endpoint.EVENTS] = self._deliver(Endpoint.EVENTS, lambda: build_event(record, tags), log)

        if notification is LifecycleNotification.COMPLETED:
            now = int(self._clock())

            log.info("Sending metric", value=record.duration)
            gauge_delivered = self._deliver(Endpoint.SERIES, lambda: build_gauge(record, tags, now=now), log)
            if gauge_delivered is not None:
                deliveries[Endpoint.SERIES] = gauge_delivered

            log.info("Sending service check", succeeded=record.succeeded)
            deliveries[Endpoint.CHECK_RUN] = self._deliver(
                Endpoint.CHECK_RUN,
                lambda: build_service_check(record, tags, now=now),
                log,
            )

        return ReportSummary(record=record, deliveries=deliveries)

    def _deliver(
        self,
        endpoint: Endpoint,
        build: Callable[[], dict[str, Any] | None],
        log: BoundLogger,
    ) -> bool | None:
        """Build and post one payload, isolating its failure from siblings.

        Returns None when the builder produced nothing to send.
        """
        try:
            payload = build()
            if payload is None:
                log.warning("Nothing to send, skipping", endpoint=endpoint.value)
                return None
            return self._client.post(payload, endpoint, log=log)
        except Exception as e:
            # One payload failing MUST NOT block the others
            log.error(
                "Failed to report payload",
                endpoint=endpoint.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

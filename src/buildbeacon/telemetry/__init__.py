"""Build telemetry reporting pipeline.

Turns lifecycle notifications into Datadog API calls:

- collector: BuildRun + environment -> BuildRecord
- tags: BuildRecord -> ordered key:value tags
- payloads: event, duration gauge and service check bodies
- client: DatadogClient for delivery and API key validation
- listener: BuildListener orchestrating the above per notification
- errors: DeliveryError for rejected payloads

Usage:
    from buildbeacon.core.config import load_settings
    from buildbeacon.telemetry import BuildListener

    listener = BuildListener(load_settings(path))
    listener.on_completed(run)
"""

from buildbeacon.telemetry.client import DatadogClient, KeyValidation
from buildbeacon.telemetry.collector import collect
from buildbeacon.telemetry.errors import DeliveryError
from buildbeacon.telemetry.listener import BuildListener, ReportSummary
from buildbeacon.telemetry.payloads import (
    build_event,
    build_gauge,
    build_service_check,
    duration_to_string,
)
from buildbeacon.telemetry.tags import assemble_tags

__all__ = [
    "BuildListener",
    "DatadogClient",
    "DeliveryError",
    "KeyValidation",
    "ReportSummary",
    "assemble_tags",
    "build_event",
    "build_gauge",
    "build_service_check",
    "collect",
    "duration_to_string",
]

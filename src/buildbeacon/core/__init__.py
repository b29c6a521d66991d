"""Core infrastructure: Configuration, Hostname resolution, Logging."""

from buildbeacon.core.config import BuildBeaconSettings, load_settings
from buildbeacon.core.hostname import (
    CommandHostnameProvider,
    HostnameResolver,
    OSHostnameProvider,
    is_valid_hostname,
    is_valid_port,
    os_family,
)
from buildbeacon.core.logging import configure_logging, get_logger

__all__ = [
    "BuildBeaconSettings",
    "CommandHostnameProvider",
    "HostnameResolver",
    "OSHostnameProvider",
    "configure_logging",
    "get_logger",
    "is_valid_hostname",
    "is_valid_port",
    "load_settings",
    "os_family",
]

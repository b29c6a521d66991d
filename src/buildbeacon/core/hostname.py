"""Hostname resolution with multi-source fallback.

The hostname attached to every payload is taken from the first source
that yields a valid name:

1. The statically configured hostname
2. The HOSTNAME environment variable of the run
3. ``/bin/hostname -f`` (only on Unix-like operating systems)
4. The local network identity of this machine

A source failing (command missing, lookup error) is logged and skipped.
When nothing validates the resolver returns None and payloads are sent
without a host.
"""

from __future__ import annotations

import platform
import re
import socket
import subprocess
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

logger = structlog.get_logger(__name__)

LOCAL_HOSTNAMES = frozenset(
    {
        "localhost",
        "localhost.localdomain",
        "localhost6.localdomain6",
        "ip6-localhost",
    }
)

UNIX_OS_FAMILIES = frozenset({"mac", "linux", "freebsd", "sunos"})

MAX_HOSTNAME_LENGTH = 255

HOSTNAME_ENV_VAR = "HOSTNAME"

# RFC 1123: dot-separated labels of alphanumerics, hyphens allowed inside a label only.
_RFC_1123_HOSTNAME = re.compile(
    r"(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]*[a-zA-Z0-9])\.)*"
    r"([A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])",
    re.ASCII,
)

_PORT = re.compile(r"\d{1,5}", re.ASCII)


def is_valid_hostname(hostname: str | None) -> bool:
    """Check that a hostname is usable as a Datadog host label.

    Rejects empty values, local aliases (case-insensitive), names longer
    than 255 characters and anything outside the RFC 1123 grammar.
    """
    if not hostname:
        return False

    host = hostname.lower()
    if host in LOCAL_HOSTNAMES:
        logger.debug("Hostname is a local alias", hostname=hostname)
        return False

    if len(hostname) > MAX_HOSTNAME_LENGTH:
        logger.debug(
            "Hostname is too long",
            hostname_length=len(hostname),
            max_length=MAX_HOSTNAME_LENGTH,
        )
        return False

    # Matched against the original string: lower-casing folds some
    # non-ASCII letters (e.g. KELVIN SIGN) into ASCII.
    return _RFC_1123_HOSTNAME.fullmatch(hostname) is not None


def is_valid_port(port: str | None) -> bool:
    """Check that a string is a TCP port number between 1 and 65535."""
    if not port:
        return False
    if _PORT.fullmatch(port) is None:
        return False
    return 1 <= int(port) <= 65535


def os_family(os_name: str | None = None) -> str:
    """Human-friendly OS family: windows, linux, mac, sunos, freebsd, ...

    Takes the lower-cased first word of the OS name. Python reports macOS
    as "Darwin", which is normalized to "mac".
    """
    name = platform.system() if os_name is None else os_name
    words = name.split(" ")
    family = words[0].lower()
    if family == "darwin":
        return "mac"
    return family


@runtime_checkable
class OSHostnameProvider(Protocol):
    """Source of the hostname as reported by the operating system."""

    def get_hostname(self) -> str | None:
        """Return the OS hostname, or None if it could not be determined.

        May raise OSError, subprocess.SubprocessError or UnicodeDecodeError
        (undecodable command output); the resolver logs and skips the source.
        """
        ...


class CommandHostnameProvider:
    """Reads the fully qualified hostname from ``/bin/hostname -f``."""

    def __init__(self, command: tuple[str, ...] = ("/bin/hostname", "-f"), timeout: float = 5.0) -> None:
        self._command = command
        self._timeout = timeout

    def get_hostname(self) -> str | None:
        completed = subprocess.run(
            list(self._command),
            capture_output=True,
            text=True,
            timeout=self._timeout,
            check=True,
        )
        output = "".join(completed.stdout.splitlines()).strip()
        return output or None


def local_network_hostname() -> str:
    """Hostname of this machine from the local network identity."""
    return socket.getfqdn()


class HostnameResolver:
    """Determines the most trustworthy hostname label for a run.

    The OS query and local network lookup are injected so tests can stub
    them instead of spawning processes or touching DNS.

    Example:
        resolver = HostnameResolver()
        hostname = resolver.resolve(settings.hostname, run_environment)
    """

    def __init__(
        self,
        os_provider: OSHostnameProvider | None = None,
        local_lookup: Callable[[], str | None] = local_network_hostname,
        os_name: str | None = None,
    ) -> None:
        self._os_provider = os_provider if os_provider is not None else CommandHostnameProvider()
        self._local_lookup = local_lookup
        self._os_family = os_family(os_name)

    def resolve(
        self,
        configured_hostname: str | None,
        environment: Mapping[str, str],
        *,
        log: BoundLogger | None = None,
    ) -> str | None:
        """Return the first valid hostname, trying sources in strict order.

        Args:
            configured_hostname: Static hostname from settings, if any
            environment: Environment variables of the run
            log: Logger bound to the current notification

        Returns:
            The hostname, or None when no source validated
        """
        log = log if log is not None else logger

        if is_valid_hostname(configured_hostname):
            log.info("Using configured hostname", hostname=configured_hostname, source="settings")
            return configured_hostname

        env_hostname = environment.get(HOSTNAME_ENV_VAR)
        if is_valid_hostname(env_hostname):
            log.info("Using hostname from environment", hostname=env_hostname, source=HOSTNAME_ENV_VAR)
            return env_hostname

        if self._os_family in UNIX_OS_FAMILIES:
            os_hostname = self._query_os(log)
            if is_valid_hostname(os_hostname):
                log.info("Using hostname reported by the OS", hostname=os_hostname, source="os")
                return os_hostname

        local_hostname = self._query_local(log)
        if is_valid_hostname(local_hostname):
            log.info("Using local network hostname", hostname=local_hostname, source="local")
            return local_hostname

        log.warning(
            "Unable to reliably determine host name; set a static hostname in the settings",
            os_family=self._os_family,
        )
        return None

    def _query_os(self, log: BoundLogger) -> str | None:
        try:
            return self._os_provider.get_hostname()
        except (OSError, subprocess.SubprocessError, UnicodeDecodeError) as e:
            log.warning(
                "OS hostname query failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def _query_local(self, log: BoundLogger) -> str | None:
        try:
            return self._local_lookup()
        except OSError as e:
            log.warning(
                "Local hostname lookup failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

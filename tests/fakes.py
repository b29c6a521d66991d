"""Test doubles for the host runtime and OS collaborators."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from buildbeacon.contracts.errors import EnvironmentUnavailableError


@dataclass
class FakeRun:
    """BuildRun implementation with a fixed environment."""

    job_name: str
    number: int
    start_time_ms: int
    duration_ms: int = 0
    result: str | None = None
    environment: Mapping[str, str] = field(default_factory=dict)
    environment_error: Exception | None = None

    def get_environment(self) -> Mapping[str, str]:
        if self.environment_error is not None:
            raise self.environment_error
        return self.environment


def unavailable_environment_run(**kwargs: object) -> FakeRun:
    """A run whose environment read is interrupted."""
    return FakeRun(environment_error=EnvironmentUnavailableError("interrupted"), **kwargs)  # type: ignore[arg-type]


class StubOSProvider:
    """OSHostnameProvider returning a canned value (or raising)."""

    def __init__(self, hostname: str | None = None, error: Exception | None = None) -> None:
        self.hostname = hostname
        self.error = error
        self.calls = 0

    def get_hostname(self) -> str | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.hostname

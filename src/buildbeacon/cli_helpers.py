"""CLI helper functions: adapting a shell build step to the BuildRun protocol."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildbeacon.core.config import BuildBeaconSettings


@dataclass(frozen=True, slots=True)
class EnvironmentRun:
    """A run described by CLI options and the calling process environment.

    Used when buildbeacon is invoked from a build step rather than embedded
    in the CI server: BUILD_URL, NODE_NAME, GIT_BRANCH and HOSTNAME are
    read from the environment the step runs in.
    """

    job_name: str
    number: int
    start_time_ms: int
    duration_ms: int = 0
    result: str | None = None
    environment: Mapping[str, str] = field(default_factory=dict)

    def get_environment(self) -> Mapping[str, str]:
        return self.environment

    @classmethod
    def from_process(
        cls,
        *,
        job_name: str,
        number: int,
        start_time_ms: int,
        duration_ms: int = 0,
        result: str | None = None,
    ) -> "EnvironmentRun":
        """Build a run snapshotting the current process environment."""
        return cls(
            job_name=job_name,
            number=number,
            start_time_ms=start_time_ms,
            duration_ms=duration_ms,
            result=result,
            environment=dict(os.environ),
        )


def resolve_settings_path(settings: str | None) -> Path | None:
    """Expand a --settings value, None meaning environment-only settings."""
    if settings is None:
        return None
    return Path(settings).expanduser()


def describe_settings(settings: "BuildBeaconSettings") -> list[str]:
    """Secret-free summary lines of the effective settings."""
    lines = [
        f"base_url: {settings.base_url}",
        f"hostname: {settings.hostname or '(auto)'}",
        f"tag_node: {settings.tag_node}",
        f"blacklist: {', '.join(sorted(settings.blacklisted_jobs)) or '(none)'}",
    ]
    if settings.use_proxy:
        lines.append(f"proxy: {settings.proxy_url}")
    return lines

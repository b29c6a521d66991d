"""Protocol for the host job runtime's view of a single run."""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class BuildRun(Protocol):
    """One execution of a job, as exposed by the host runtime.

    Implementations adapt whatever the CI system hands out (a Jenkins Run,
    environment variables in a shell step, a webhook payload) to the
    attributes the reporting pipeline reads.

    Error handling:
        - get_environment() MAY raise EnvironmentUnavailableError (or
          OSError/InterruptedError); the collector degrades to an empty
          environment.
    """

    @property
    def job_name(self) -> str:
        """Display name of the job this run belongs to."""
        ...

    @property
    def number(self) -> int:
        """Run sequence number."""
        ...

    @property
    def start_time_ms(self) -> int:
        """Start time in unix milliseconds."""
        ...

    @property
    def duration_ms(self) -> int:
        """Run duration in milliseconds (0 while still running)."""
        ...

    @property
    def result(self) -> str | None:
        """Raw terminal result (e.g. "SUCCESS", "UNSTABLE"), None while running."""
        ...

    def get_environment(self) -> Mapping[str, str]:
        """Environment variables visible to the run."""
        ...

"""Build record: the normalized snapshot passed between reporting stages.

A BuildRecord is created fresh for every lifecycle notification, fully
populated by the metadata collector, and never mutated afterwards.
"""

from dataclasses import dataclass

from buildbeacon.contracts.enums import BuildEventType, BuildResult


@dataclass(frozen=True, slots=True)
class BuildRecord:
    """Identity, timing and result of one build run.

    Attributes:
        job: Display name of the job
        number: Run sequence number
        start_time: Start time in unix seconds (truncated from milliseconds)
        event_type: Purpose of the record (start or result)
        hostname: Resolved host label, None when no source validated
        result: Raw terminal result string, None while in progress
        duration: Run duration in seconds, None while in progress
        end_time: start_time + whole seconds of duration, when completed
        build_url: Link to the run, from BUILD_URL
        node: Execution node name, from NODE_NAME
        branch: VCS branch, from GIT_BRANCH or CVS_BRANCH
    """

    job: str
    number: int
    start_time: int
    event_type: BuildEventType
    hostname: str | None = None
    result: str | None = None
    duration: float | None = None
    end_time: int | None = None
    build_url: str | None = None
    node: str | None = None
    branch: str | None = None

    def __post_init__(self) -> None:
        """Enforce the in-progress/completed shape of the record."""
        if (self.result is None) != (self.duration is None):
            raise ValueError(
                f"BuildRecord requires result and duration to be both set or both absent. "
                f"Got result={self.result!r}, duration={self.duration!r}"
            )
        if self.end_time is not None and self.duration is None:
            raise ValueError("BuildRecord end_time requires a duration")
        if self.number < 0:
            raise ValueError(f"BuildRecord number must be non-negative, got {self.number}")

    @property
    def outcome(self) -> BuildResult | None:
        """Three-way classification of result, None while in progress."""
        if self.result is None:
            return None
        return BuildResult.from_raw(self.result)

    @property
    def succeeded(self) -> bool:
        return self.outcome is BuildResult.SUCCESS

    @property
    def timestamp(self) -> int:
        """When the reported event happened.

        Start records happen at start_time, result records at end_time.
        """
        if self.end_time is not None:
            return self.end_time
        return self.start_time

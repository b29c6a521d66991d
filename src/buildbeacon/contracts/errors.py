"""Exceptions that cross the boundary between the host runtime and the core."""


class BuildBeaconError(Exception):
    """Base class for all buildbeacon errors."""


class EnvironmentUnavailableError(BuildBeaconError):
    """Raised by a BuildRun when its environment variables cannot be read.

    The metadata collector treats this as "no environment data" and carries
    on with whatever fields it can still populate.
    """

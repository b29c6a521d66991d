"""
buildbeacon: Build lifecycle telemetry for the Datadog API.

Turns build start/completion notifications into Datadog events, a job
duration gauge and a pass/fail service check.
"""

__version__ = "0.1.0"

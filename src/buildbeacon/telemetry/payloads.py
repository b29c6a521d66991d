"""Payload builders for the Datadog events, series and check_run APIs.

Every builder is a pure function of a BuildRecord and its tags. The
current time is passed in by the caller so no builder reads the clock.

Field names are the Datadog wire contract:

    event:          title, text, date_happened, event_type, host, result,
                    tags, aggregation_key, alert_type, source_type_name
    series:         {"series": [{metric, points, type, host, tags}]}
    service check:  check, host_name, timestamp, status, tags

Host fields are omitted entirely when no hostname could be resolved.
"""

from typing import Any

from buildbeacon.contracts.enums import AlertType, BuildResult, ServiceCheckStatus
from buildbeacon.contracts.records import BuildRecord

SOURCE_TYPE_NAME = "jenkins"
JOB_DURATION_METRIC = "jenkins.job.duration"
JOB_STATUS_CHECK = "jenkins.job.status"

MINUTE = 60.0
HOUR = 3600.0


def duration_to_string(seconds: float) -> str:
    """Human-readable duration, e.g. ``(45.0 secs)`` or ``(2.0833333333333335 mins)``.

    Values are not rounded.
    """
    if seconds < MINUTE:
        return f"({seconds!r} secs)"
    if seconds < HOUR:
        return f"({seconds / MINUTE!r} mins)"
    return f"({seconds / HOUR!r} hrs)"


def _markdown_link(label: str, url: str | None) -> str:
    if url is None:
        return label
    return f"[{label}]({url})"


def build_event(record: BuildRecord, tags: list[str]) -> dict[str, Any]:
    """Build an events API payload announcing a build start or result.

    Result events carry ``source_type_name`` so Datadog rolls them up as
    Jenkins events; start events leave it out so they are not aggregated
    together with results.
    """
    payload: dict[str, Any] = {}
    outcome = record.outcome

    if outcome is None:
        verb = "started"
        payload["alert_type"] = AlertType.INFO.value
        link = _markdown_link(f"Follow build #{record.number} progress", record.build_url)
    else:
        if outcome is BuildResult.SUCCESS:
            verb = "succeeded"
            payload["alert_type"] = AlertType.SUCCESS.value
        else:
            verb = "failed"
            payload["alert_type"] = AlertType.FAILURE.value
        payload["source_type_name"] = SOURCE_TYPE_NAME
        link = _markdown_link(f"See results for build #{record.number}", record.build_url)

    title = f"{record.job} build #{record.number} {verb}"
    if record.hostname is not None:
        title = f"{title} on {record.hostname}"

    duration_text = duration_to_string(record.duration) if record.duration is not None else ""
    text = f"%%% \n {link} {duration_text} \n %%%"

    payload["title"] = title
    payload["text"] = text
    payload["date_happened"] = record.timestamp
    payload["event_type"] = record.event_type.value
    if record.hostname is not None:
        payload["host"] = record.hostname
    payload["result"] = record.result
    payload["tags"] = list(tags)
    # Groups every event of one job across runs
    payload["aggregation_key"] = record.job
    return payload


def build_gauge(
    record: BuildRecord,
    tags: list[str],
    *,
    now: int,
    metric: str = JOB_DURATION_METRIC,
) -> dict[str, Any] | None:
    """Build a series API payload with a single duration data point.

    Returns None when the record has no duration; the metric is skipped
    rather than sending a non-numeric value.
    """
    if record.duration is None:
        return None

    series: dict[str, Any] = {
        "metric": metric,
        "points": [[now, record.duration]],
        "type": "gauge",
    }
    if record.hostname is not None:
        series["host"] = record.hostname
    series["tags"] = list(tags)
    return {"series": [series]}


def service_check_status(record: BuildRecord) -> ServiceCheckStatus:
    if record.succeeded:
        return ServiceCheckStatus.OK
    return ServiceCheckStatus.CRITICAL


def build_service_check(
    record: BuildRecord,
    tags: list[str],
    *,
    now: int,
    check: str = JOB_STATUS_CHECK,
) -> dict[str, Any]:
    """Build a check_run API payload: OK for success, CRITICAL otherwise."""
    payload: dict[str, Any] = {"check": check}
    if record.hostname is not None:
        payload["host_name"] = record.hostname
    payload["timestamp"] = now
    payload["status"] = int(service_check_status(record))
    payload["tags"] = list(tags)
    return payload

"""Tag assembly for Datadog payloads."""

from buildbeacon.contracts.records import BuildRecord


def assemble_tags(record: BuildRecord, tag_node: bool) -> list[str]:
    """Derive ``key:value`` tags from a build record.

    Order is fixed: job, node, result, branch. Absent values produce no
    tag, and node is only tagged when enabled in settings.
    """
    tags = [f"job:{record.job}"]
    if record.node is not None and tag_node:
        tags.append(f"node:{record.node}")
    if record.result is not None:
        tags.append(f"result:{record.result}")
    if record.branch is not None:
        tags.append(f"branch:{record.branch}")
    return tags

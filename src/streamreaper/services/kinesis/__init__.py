import logging
from typing import Any

from boto3.session import Session

from streamreaper.conf.rules import ResourceRules
from streamreaper.reporter import ReportSink
from streamreaper.services.kinesis.errors import StreamDeleteError, StreamDeletionErrors
from streamreaper.services.kinesis.streams import (
    MAX_BATCH_SIZE,
    RESOURCE_TYPE,
    SERVICE,
    catalog_streams,
    nuke_streams,
)

logger = logging.getLogger(__name__)


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def cleanup_kinesis(session: Session, region: str, dry_run: bool, reporter: ReportSink, config: Any) -> int:
    """Discover matching streams in ``region`` and delete them batch by batch.

    Returns the number of successful DeleteStream calls. When any delete
    fails the failures from every batch are raised together once all
    batches ran. A ``max_batch_size`` below 1 is rejected before discovery.
    """
    section = getattr(config, "kinesis", None)
    rules = ResourceRules.from_config(section)
    batch_size = getattr(section, "max_batch_size", None)
    batch_size = MAX_BATCH_SIZE if batch_size is None else int(batch_size)
    if batch_size < 1:
        raise ValueError(f"kinesis.max_batch_size must be at least 1, got {batch_size}")
    enforce = bool(getattr(section, "enforce_consumer_deletion", False))

    client = session.client("kinesis", region_name=region)
    stream_names = catalog_streams(client, region, rules)

    if dry_run:
        for name in stream_names:
            reporter.record(region, SERVICE, RESOURCE_TYPE, "catalog", identifier=name, meta={"dry_run": True})
        logger.info("[%s][kinesis] dry-run: would delete %d stream(s)", region, len(stream_names))
        return 0

    deleted = 0
    failed: list[StreamDeleteError] = []
    for batch in _chunks(stream_names, batch_size):
        try:
            deleted += nuke_streams(client, region, batch, reporter, enforce_consumer_deletion=enforce)
        except StreamDeletionErrors as eg:
            batch_failed = [e for e in eg.exceptions if isinstance(e, StreamDeleteError)]
            deleted += len(batch) - len(batch_failed)
            failed.extend(batch_failed)

    if failed:
        raise StreamDeletionErrors(f"Failed to delete {len(failed)} Kinesis stream(s) in {region}", failed)
    return deleted

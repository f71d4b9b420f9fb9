import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from streamreaper.conf.rules import ResourceRules, ResourceValue
from streamreaper.reporter import ReportSink
from streamreaper.services.kinesis.errors import (
    StreamDeleteError,
    StreamDeletionErrors,
    TooManyStreamsError,
    is_deletion_in_progress,
)

SERVICE: str = "kinesis"
RESOURCE_TYPE: str = "Kinesis Stream"
# One DeleteStream request per stream is in flight at once; most AWS APIs
# throttle around 100 requests per second.
MAX_BATCH_SIZE: int = 100
logger = logging.getLogger(__name__)


def _get_stream_tags(client: Any, stream_name: str) -> dict[str, str]:
    tags = client.list_tags_for_stream(StreamName=stream_name).get("Tags", [])
    return {t["Key"]: t.get("Value", "") for t in tags if "Key" in t}


def catalog_streams(client: Any, region: str, rules: ResourceRules | None = None) -> list[str]:
    """Return every stream name in the region accepted by ``rules``.

    Any error while paging (or fetching tags) propagates; a partial listing
    is never returned.
    """
    rules = rules or ResourceRules()
    stream_names: list[str] = []
    try:
        paginator = client.get_paginator("list_streams")
        for page in paginator.paginate():
            for name in page.get("StreamNames", []):
                tags = _get_stream_tags(client, name) if rules.uses_tags else None
                if rules.should_include(ResourceValue(name=name, tags=tags)):
                    stream_names.append(name)
    except (ClientError, BotoCoreError) as e:
        logger.error("[%s][kinesis] Failed to list streams: %s", region, e)
        raise
    logger.info("[%s][kinesis] catalog_streams: %d stream(s) matched", region, len(stream_names))
    return stream_names


def delete_stream_async(
    client: Any,
    region: str,
    stream_name: str,
    reporter: ReportSink,
    enforce_consumer_deletion: bool = False,
) -> BaseException | None:
    err: BaseException | None = None
    try:
        client.delete_stream(StreamName=stream_name, EnforceConsumerDeletion=enforce_consumer_deletion)
    except Exception as e:
        err = e

    reporter.record(region, SERVICE, RESOURCE_TYPE, "delete", identifier=stream_name, error=err)

    if err is None:
        logger.debug("[%s][kinesis] [OK] stream %s deleted", region, stream_name)
    elif is_deletion_in_progress(err):
        logger.info("[%s][kinesis] stream %s already deleting or gone: %s", region, stream_name, err)
    else:
        logger.debug("[%s][kinesis] [Failed] error deleting stream %s: %s", region, stream_name, err)
    return err


def nuke_streams(
    client: Any,
    region: str,
    identifiers: list[str],
    reporter: ReportSink,
    enforce_consumer_deletion: bool = False,
) -> int:
    """Delete one batch of streams concurrently.

    Kinesis has no bulk delete, so every stream gets its own request and
    thread. Callers split work into batches of at most ``MAX_BATCH_SIZE``;
    a larger batch raises ``TooManyStreamsError`` before anything is
    deleted. All requests run to completion and every failure is raised
    together as ``StreamDeletionErrors``. Returns the number of streams
    deleted when nothing failed.
    """
    if not identifiers:
        logger.debug("[%s][kinesis] No streams to nuke", region)
        return 0

    if len(identifiers) > MAX_BATCH_SIZE:
        logger.error(
            "[%s][kinesis] Nuking too many streams at once (%d > %d): halting to avoid API rate limiting",
            region,
            len(identifiers),
            MAX_BATCH_SIZE,
        )
        raise TooManyStreamsError(len(identifiers), MAX_BATCH_SIZE)

    logger.debug("[%s][kinesis] Deleting %d stream(s)", region, len(identifiers))
    with ThreadPoolExecutor(max_workers=len(identifiers)) as ex:
        futs = {
            ex.submit(delete_stream_async, client, region, name, reporter, enforce_consumer_deletion): name
            for name in identifiers
        }
        errors: list[StreamDeleteError] = []
        for f in as_completed(futs):
            err = f.result()
            if err is not None:
                errors.append(StreamDeleteError(futs[f], err))

    if errors:
        raise StreamDeletionErrors(f"Failed to delete {len(errors)} Kinesis stream(s) in {region}", errors)
    return len(identifiers)

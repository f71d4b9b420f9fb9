import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from streamreaper.conf.config import get_config
from streamreaper.core.session_helper import create_aws_session
from streamreaper.reporter import ReportSink, get_reporter
from streamreaper.services.kinesis import cleanup_kinesis

logger = logging.getLogger(__name__)

SERVICE_HANDLERS: dict[str, Callable[..., int]] = {
    "kinesis": cleanup_kinesis,
}


def _service_supported_in_region(available_regions_map: dict[str, set[str]], service_key: str, region: str) -> bool:
    regions = available_regions_map.get(service_key)
    # If mapping unknown, default to allowed to avoid over-blocking
    return True if not regions else region in regions


def process_region_service(
    session: Any,
    region: str,
    service_key: str,
    handler: Callable[..., int],
    dry_run: bool,
    reporter: ReportSink,
    config: Any,
) -> int:
    if not callable(handler):
        raise TypeError(f"Handler for service '{service_key}' is not callable: {handler!r}")
    logger.info("[%s][%s] Starting (dry_run=%s)", region, service_key, dry_run)
    deleted = handler(session, region, dry_run, reporter, config)
    logger.info("[%s][%s] Finished", region, service_key)
    return int(deleted or 0)


def orchestrate_services(
    dry_run: bool = False,
    progress_cb: Callable[[dict[str, int]], None] | None = None,
    reporter: ReportSink | None = None,
) -> dict[str, int]:
    config = get_config()
    reporter = reporter or get_reporter()

    selected_services_raw = list(getattr(config.aws, "services", []) or [])
    if not selected_services_raw:
        raise ValueError("No services configured under aws.services")
    if any(str(s).lower() == "all" for s in selected_services_raw):
        selected_service_keys = list(SERVICE_HANDLERS.keys())
    else:
        selected_service_keys = [s for s in selected_services_raw if s in SERVICE_HANDLERS]

    if not selected_service_keys:
        raise ValueError("No valid services selected in the configuration.")

    regions_raw = list(getattr(config.aws, "region", []) or [])
    if not regions_raw:
        raise ValueError("No regions configured under aws.region")

    session = create_aws_session(config)

    available_regions_map: dict[str, set[str]] = {}
    for svc_key in selected_service_keys:
        try:
            available = session.get_available_regions(svc_key)
        except Exception as e:
            logger.debug("Could not resolve regions for %s: %s", svc_key, e)
            available = []
        available_regions_map[svc_key] = set(available)

    if any(str(r).lower() == "all" for r in regions_raw):
        union: set[str] = set()
        for svc_key in selected_service_keys:
            union.update(available_regions_map.get(svc_key, set()))
        if not union:
            raise ValueError(
                "Unable to resolve regions for selected services. Specify explicit aws.region or ensure AWS SDK can list regions."
            )
        regions = sorted(union)
    else:
        regions = regions_raw

    logger.info("Regions to process: %s", regions)
    logger.info("Selected services: %s", selected_service_keys)

    max_workers = getattr(config.aws, "max_workers", None)
    if not isinstance(max_workers, int) or max_workers <= 0:
        total_tasks = max(1, len(regions) * len(selected_service_keys))
        max_workers = min(32, total_tasks)

    stats = {"submitted": 0, "skipped": 0, "completed": 0, "pending": 0, "failures": 0, "succeeded": 0, "deletions": 0}

    def _emit() -> None:
        if progress_cb is None:
            return
        stats["pending"] = stats["submitted"] - stats["completed"]
        progress_cb({k: stats[k] for k in ("submitted", "completed", "pending", "failures", "succeeded", "deletions")})

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_map: dict[Any, tuple[str, str]] = {}
        for region in regions:
            for service_key in selected_service_keys:
                if not _service_supported_in_region(available_regions_map, service_key, region):
                    logger.info("[%s][%s] Skipped: service not available in region", region, service_key)
                    stats["skipped"] += 1
                    continue
                # boto3 sessions are not thread-safe: each task gets its own, built here
                task_session = create_aws_session(config)
                fut = executor.submit(
                    process_region_service,
                    task_session,
                    region,
                    service_key,
                    SERVICE_HANDLERS[service_key],
                    dry_run,
                    reporter,
                    config,
                )
                future_map[fut] = (region, service_key)
                stats["submitted"] += 1

        _emit()
        for future in as_completed(future_map):
            region, service_key = future_map[future]
            stats["completed"] += 1
            try:
                deleted = future.result()
                stats["deletions"] += deleted
                # "succeeded" counts tasks that deleted at least one resource
                if deleted > 0:
                    stats["succeeded"] += 1
                logger.info("[%s][%s] Task completed", region, service_key)
            except Exception as e:
                stats["failures"] += 1
                logger.exception("[%s][%s] Task failed: %s", region, service_key, e)
            _emit()

    return {k: stats[k] for k in ("submitted", "skipped", "failures", "succeeded", "deletions")}

from __future__ import annotations

import argparse
import threading
import time

from rich.console import Console
from rich.live import Live
from rich.table import Table

from streamreaper.conf.config import get_config
from streamreaper.logger import setup_logging
from streamreaper.orchestrator import orchestrate_services
from streamreaper.reporter import get_reporter


def _render_table(reporter, dry_run: bool) -> Table:  # type: ignore
    """Render a Rich table of recorded events.

    Adds a placeholder row while no events have been recorded yet so the
    interface never appears visually "empty" and communicates dry-run mode.
    """
    mode = "DRY-RUN" if dry_run else "EXECUTE"
    table = Table(title=f"StreamReaper - Live events ({mode})")
    table.add_column("Time", no_wrap=True, style="dim")
    table.add_column("Region", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Action", style="yellow")
    table.add_column("ID", overflow="fold", style="green")
    table.add_column("Error", overflow="fold", style="red")
    events = reporter.snapshot()
    if not events:
        table.add_row(
            "-",
            "-",
            "-",
            "waiting",
            "-",
            "No resource events yet (dry run)" if dry_run else "No resource events yet",
        )
        return table

    for e in events:
        table.add_row(
            e.timestamp,
            e.region,
            e.resource_type,
            e.action,
            e.identifier or "",
            e.error or "",
        )
    return table


def _render_summary_table(reporter, dry_run: bool) -> Table:  # type: ignore
    """Per region/resource-type counts of cataloged, deleted and failed resources."""
    mode = "DRY-RUN" if dry_run else "EXECUTE"
    table = Table(title=f"StreamReaper - Summary ({mode})")
    table.add_column("Region", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Cataloged", justify="right")
    table.add_column("Deleted", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")

    counts: dict[tuple[str, str], list[int]] = {}
    for e in reporter.snapshot():
        row = counts.setdefault((e.region, e.resource_type), [0, 0, 0])
        if e.action == "catalog":
            row[0] += 1
        elif e.error:
            row[2] += 1
        else:
            row[1] += 1
    if not counts:
        table.add_row("-", "-", "0", "0", "0")
    for (region, rtype), (cataloged, deleted, failed) in sorted(counts.items()):
        table.add_row(region, rtype, str(cataloged), str(deleted), str(failed))
    return table


def _plain_stream(reporter, done: threading.Event) -> None:
    printed = 0
    while True:
        finished = done.is_set()
        events = reporter.snapshot()
        for e in events[printed:]:
            err = f" error={e.error}" if e.error else ""
            print(f"[{e.timestamp}] {e.region} {e.resource_type} {e.action} id={e.identifier or ''}{err}")
        printed = len(events)
        if finished:
            return
        time.sleep(0.5)


def run_cli(
    dry_run: bool | None = None,
    verbose: bool | None = None,
    no_progress: bool = False,
    config_file: str | None = None,
    report_csv: str | None = None,
) -> dict[str, int]:
    # Merge CLI overrides into config so logging respects verbosity
    overrides = {"dry_run": dry_run, "verbose": verbose}
    config = get_config(config_file=config_file, cli_args=overrides)
    setup_logging(config)

    dry_run_eff = dry_run if dry_run is not None else bool(getattr(config, "dry_run", True))
    csv_path = report_csv or getattr(getattr(config, "reporting", None), "csv_path", None)

    console = Console()
    console.print(f"[bold]StreamReaper[/bold]\nMode: {'DRY-RUN' if dry_run_eff else 'EXECUTE'}\n")

    reporter = get_reporter()

    # Orchestrator runs in separate thread so Live table can update on main thread
    orchestrator_exc: list[Exception] = []
    summary: dict[str, int] = {}
    done = threading.Event()

    def _run_orchestrator():
        try:
            summary.update(orchestrate_services(dry_run=dry_run_eff, reporter=reporter))
        except Exception as exc:
            orchestrator_exc.append(exc)
        finally:
            done.set()

    orb_thread = threading.Thread(target=_run_orchestrator, daemon=True)
    orb_thread.start()

    try:
        if not no_progress:
            with Live(_render_table(reporter, dry_run_eff), refresh_per_second=4, console=console) as live:
                while orb_thread.is_alive():
                    live.update(_render_table(reporter, dry_run_eff))
                    time.sleep(0.25)
                live.update(_render_table(reporter, dry_run_eff))
        else:
            _plain_stream(reporter, done)
    except KeyboardInterrupt:
        console.print("\nInterrupted by user. Waiting for tasks to stop...")
    finally:
        orb_thread.join(timeout=5)

    if orchestrator_exc:
        raise orchestrator_exc[0]

    console.print(_render_summary_table(reporter, dry_run_eff))
    if csv_path:
        written = reporter.write_csv(csv_path)
        console.print(f"Report written to {written}")
    console.print("\nRun complete. Events recorded:", reporter.count())
    return summary


def app() -> None:
    parser = argparse.ArgumentParser(prog="streamreaper", description="Find and delete Kinesis data streams.")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Perform a dry run (default from config)")
    parser.add_argument("--execute", action="store_true", default=None, help="Execute deletions (overrides dry-run)")
    parser.add_argument("--verbose", action="store_true", default=None, help="Verbose logging")
    parser.add_argument("--config", default=None, help="Path to a YAML/JSON/TOML config file")
    parser.add_argument("--report-csv", default=None, help="Write recorded events to this CSV file")
    parser.add_argument("--no-progress", action="store_true", default=False, help="Disable live progress UI")
    args = parser.parse_args()

    # --execute takes precedence over --dry-run
    dry = False if args.execute else True if args.dry_run else None

    run_cli(
        dry_run=dry,
        verbose=args.verbose if args.verbose else None,
        no_progress=args.no_progress,
        config_file=args.config,
        report_csv=args.report_csv,
    )


if __name__ == "__main__":
    app()

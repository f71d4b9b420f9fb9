import sys
from typing import Any

import pyfiglet

from streamreaper.conf.config import get_config
from streamreaper.logger import setup_logging
from streamreaper.orchestrator import orchestrate_services


def _print_header(verbose: bool) -> None:
    if verbose:
        print("Starting StreamReaper")
        return
    print(pyfiglet.figlet_format("StreamReaper", font="slant").rstrip())
    print()


def _print_summary(summary: dict[str, Any], verbose: bool) -> None:
    """Organized multi-line summary for the whole run."""
    print("\nRun Summary")
    print("-----------")
    print(f"Tasks submitted   : {summary.get('submitted', 0)}")
    print(f"Tasks skipped     : {summary.get('skipped', 0)}")
    print(f"Tasks failed      : {summary.get('failures', 0)}")
    print(f"Tasks succeeded   : {summary.get('succeeded', 0)}")
    print(f"Total deletions   : {summary.get('deletions', 0)}")
    if verbose:
        print("(Verbose logging enabled - see log for detailed events)")


def run(dry_run: bool | None = None, progress_cb=None) -> dict[str, int]:
    config = get_config()
    setup_logging(config)
    dry_run_eff = dry_run if dry_run is not None else bool(getattr(config, "dry_run", True))
    return orchestrate_services(dry_run=dry_run_eff, progress_cb=progress_cb)


def main() -> None:
    config = get_config()
    dry_run = bool(getattr(config, "dry_run", True))
    verbose = bool(getattr(config, "verbose", False))

    _print_header(verbose)
    print(f"Mode: {'DRY-RUN' if dry_run else 'EXECUTE'}\n")

    progress_last_len = 0

    def progress_cb(stats: dict[str, int]) -> None:
        nonlocal progress_last_len
        if verbose:
            return
        line = (
            f"Progress: completed={stats.get('completed', 0)}/{stats.get('submitted', 0)} "
            f"pending={stats.get('pending', 0)} succeeded={stats.get('succeeded', 0)} "
            f"failures={stats.get('failures', 0)} deletions={stats.get('deletions', 0)}"
        )
        # Overwrite the same line in-place; pad with spaces to clear remnants
        sys.stdout.write("\r" + line.ljust(progress_last_len))
        sys.stdout.flush()
        progress_last_len = len(line)

    summary = run(dry_run=dry_run, progress_cb=progress_cb)
    if progress_last_len > 0:
        sys.stdout.write("\n")
        sys.stdout.flush()
    _print_summary(summary, verbose)


if __name__ == "__main__":
    main()

import logging
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(config=None) -> None:
    """Configure the root logger.

    Nothing is written to stdout: the live table owns the console. Logs go to
    a timestamped file when ``logging.file_enabled`` is set, and to stderr via
    Rich when ``verbose`` is on.
    """
    log_cfg = getattr(config, "logging", None)

    level = logging.INFO
    lvl_str = getattr(log_cfg, "level", None)
    if lvl_str:
        level = getattr(logging, str(lvl_str).upper(), level)
        if not isinstance(level, int):
            level = logging.INFO

    handlers: list[logging.Handler] = []
    if getattr(log_cfg, "enabled", True) is False:
        handlers.append(logging.NullHandler())
    else:
        if getattr(log_cfg, "file_enabled", False):
            log_dir = Path(str(getattr(log_cfg, "dir", "logs"))).expanduser()
            log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
            file_handler = logging.FileHandler(log_dir / f"streamreaper_{stamp}.log", encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handlers.append(file_handler)
        if getattr(config, "verbose", False):
            rich_handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
            rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
            handlers.append(rich_handler)
        if not handlers:
            handlers.append(logging.NullHandler())

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

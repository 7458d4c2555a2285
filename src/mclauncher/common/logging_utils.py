from __future__ import annotations

import logging
from pathlib import Path


LOG_FILE_NAME = "mclauncher.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(log_dir: Path, level: str = "INFO") -> Path | None:
    """Log to ``<log_dir>/mclauncher.log`` and stderr.

    Returns the log file path, or None when the directory cannot be created;
    then only stderr is used, so a bad game directory is still reported.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path: Path | None = log_dir / LOG_FILE_NAME
    file_error: OSError | None = None
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path, encoding="utf-8"))
    except OSError as exc:
        file_error = exc
        log_path = None

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # urllib3 logs every connection at DEBUG; keep our own GET lines readable.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    if file_error is not None:
        logging.getLogger(__name__).warning("Logging to stderr only, cannot open %s: %s", log_dir, file_error)
    return log_path

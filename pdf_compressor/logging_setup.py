from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s request_id=%(request_id)s %(message)s"


class RequestIdFilter(logging.Filter):
    """
    Ensures every log record has request_id attribute for consistent formatting.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def setup_logging(
        log_dir: Optional[Path],
        level: str = "INFO",
        file_name: str = "web.log",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 10,
) -> None:
    """Configure the root logger.

    ``log_dir=None`` keeps output on the console only (used by the CLI client).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicated handlers on reloads
    if root.handlers:
        return

    fmt = logging.Formatter(fmt=LOG_FORMAT)
    request_filter = RequestIdFilter()

    # Console
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    sh.addFilter(request_filter)
    root.addHandler(sh)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        # File with rotation
        fh = RotatingFileHandler(
            filename=str(log_dir / file_name),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        fh.setFormatter(fmt)
        fh.addFilter(request_filter)
        root.addHandler(fh)

    # Reduce noisy libs a bit
    logging.getLogger("pikepdf").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

"""
Logging setup for the listings service.

Store backends log which medium they use at startup, every create,
update and delete at INFO, and self-healing reads of a damaged JSON
store at WARNING.  ``setup_logging`` routes all of that to stderr and,
when ``LOG_FILE`` is configured, to a log file as well.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach console (and optional file) handlers to the root logger.

    Nothing happens if the root logger already has handlers, which is
    the case under uvicorn's own logging config and when ``create_app``
    runs more than once in a test session.

    Parameters
    ----------
    level : str
        ``LOG_LEVEL`` value such as ``"DEBUG"`` or ``"info"``; unknown
        names fall back to ``INFO``.
    logfile : Optional[str]
        ``LOG_FILE`` value.  Its directory is created if missing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

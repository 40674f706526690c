"""
Logging setup for MeasureStation.

Request handlers and the legacy order poller run on different threads, so
every line carries the thread name:

    2026-10-18 10:15:30 [INFO    ] [MainThread] measure_station.app - Starting MeasureStation
    2026-10-18 10:15:31 [INFO    ] [OrderPoll] measure_station.services.order_store - Baseline established
    2026-10-18 10:15:32 [WARNING ] [MainThread] measure_station.services.sync_service - Discarded 'order_created'

Handlers:
    - console (always)
    - logs/<namespace>.log and logs/<namespace>_error.log, rotating (production)

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=False)
    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional


APP_NAMESPACE = "measure_station"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ("urllib3", "werkzeug")


class ThreadContextFilter(logging.Filter):
    """Adds `thread_name` and `thread_id` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.thread_id = threading.get_ident()
        return True


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(ThreadContextFilter())
    logger.addHandler(handler)


def _rotating(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


def setup_logging(
    app_name: str = APP_NAMESPACE,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> logging.Logger:
    """
    Configure the application logger.

    Safe to call again (handlers are replaced, e.g. once per create_app()).

    Args:
        app_name: Namespace logger to configure
        log_level: Minimum level for console and app log
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Also write rotating app and error logs
        quiet_loggers: Third-party loggers limited to WARNING

    Returns:
        The namespace logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    _attach(logger, logging.StreamHandler(sys.stdout), log_level)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        _attach(logger, _rotating(log_dir / f"{app_name}.log"), log_level)
        _attach(logger, _rotating(log_dir / f"{app_name}_error.log"), logging.ERROR)
        logger.info(f"File logging enabled in {log_dir}")

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Module logger under the application namespace.

    "services.order_store" -> "measure_station.services.order_store"
    """
    if not name.startswith(APP_NAMESPACE):
        name = f"{APP_NAMESPACE}.{name}"
    return logging.getLogger(name)


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows in the [thread] log field."""
    threading.current_thread().name = name

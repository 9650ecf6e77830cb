"""Logging setup for the material pipeline."""

import logging
import logging.handlers
import os
import sys
import threading

logger = logging.getLogger("material_pipeline")

# Edit sessions are serialized per graph, so the thread id tells apart
# interleaved applies from a host's worker threads.
LOG_FORMAT = "%(asctime)s [%(levelname)s] [T%(thread)d] %(name)s: %(message)s"

# Pillow logs every PNG chunk at DEBUG while image headers are read.
_NOISY_LOGGERS = ("PIL",)

# 5 MB max per log file, keep 3 rotated backups
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_BACKUP_COUNT = 3
_setup_lock = threading.Lock()


def setup_logging(level: str = "INFO", log_file: str = None, force: bool = False):
    """Configure logging without clobbering host-app handlers by default.

    Standalone (no root handlers, or ``force``) the root logger gets a
    stderr handler and the optional rotating file. Embedded in a host
    application only the ``material_pipeline`` hierarchy is touched.
    """
    with _setup_lock:
        numeric_level = _resolve_level(level)
        _configure(numeric_level, log_file, force)
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))


def _resolve_level(level: str) -> int:
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        logger.warning("Invalid log level '%s', defaulting to INFO", level)
        numeric_level = logging.INFO
    return numeric_level


def _file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_file, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


def _configure(numeric_level: int, log_file: str, force: bool):
    root = logging.getLogger()
    if force or not root.handlers:
        handlers = [logging.StreamHandler(sys.stderr)]
        if log_file:
            handlers.append(_file_handler(log_file))
        logging.basicConfig(
            level=numeric_level,
            format=LOG_FORMAT,
            handlers=handlers,
            force=force,
        )
        return

    # Embedded mode: only touch our own logger hierarchy.
    logger.setLevel(numeric_level)
    if not log_file:
        return
    existing_files = {
        getattr(h, "baseFilename", None)
        for h in logger.handlers + root.handlers
        if isinstance(h, logging.FileHandler)
    }
    if os.path.abspath(log_file) in existing_files:
        return
    handler = _file_handler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.info("Adding file handler: %s", handler.baseFilename)

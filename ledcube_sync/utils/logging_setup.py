"""
Root logger configuration: console plus optional rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from ledcube_sync.config.models import LoggingConfig


LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def setup_logging(config: LoggingConfig) -> None:
    """
    Replace the root logger's handlers according to config.

    Console output goes to stderr when config.stderr is set, so that CLI
    commands can print JSON on stdout.
    """
    root = logging.getLogger()
    root.setLevel(config.level)
    root.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    stream = sys.stderr if config.stderr else sys.stdout
    _attach(root, logging.StreamHandler(stream), formatter, config.level)

    if config.file:
        try:
            handler = RotatingFileHandler(
                config.file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        except OSError as e:
            root.error(f"Cannot open log file {config.file}: {e}")
        else:
            _attach(root, handler, formatter, config.level)
            root.info(f"Also logging to {config.file}")

    root.debug(f"Log level {config.level}")


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter, level: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)

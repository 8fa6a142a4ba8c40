"""
Logging for the validator: one package logger, a log file and a console
stream that shares the terminal with the per-file batch progress bar.
"""
import logging
import os
import sys
from typing import Optional

from tqdm import tqdm

LOGGER_NAME = "po_validator"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

# Loggers of the provider SDKs and their HTTP transport. At INFO they emit a
# line per request, i.e. one per batch.
PROVIDER_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


class TqdmLoggingHandler(logging.Handler):
    """Console handler that prints above the batch progress bar instead of through it."""

    def __init__(self, level=logging.NOTSET, stream=None):
        super().__init__(level)
        self.stream = stream

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def _quiet_provider_loggers(log_level: int) -> None:
    provider_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in PROVIDER_LOGGERS:
        logging.getLogger(name).setLevel(provider_level)


def setup_logger(log_level_str: str, log_file_path: Optional[str], log_to_console: bool) -> logging.Logger:
    """
    Set up the ``po_validator`` logger.

    Modules log through children of this logger, so its handlers receive
    every message of the package. Provider SDK request logs are only shown
    at DEBUG.

    Args:
        log_level_str: The logging level as a string (e.g., 'INFO', 'DEBUG'). Unknown names mean INFO.
        log_file_path: The log file, or None/empty to skip file logging.
        log_to_console: Whether to log to stderr.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    logger.setLevel(log_level)
    _quiet_provider_loggers(log_level)

    # Reconfiguring replaces the previous handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = []
    if log_file_path:
        os.makedirs(os.path.dirname(log_file_path) or '.', exist_ok=True)
        handlers.append(logging.FileHandler(log_file_path, encoding='utf-8'))
    if log_to_console:
        handlers.append(TqdmLoggingHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger

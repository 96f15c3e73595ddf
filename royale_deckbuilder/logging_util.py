from __future__ import annotations

import os
import logging

# Logging configuration
PACKAGE_LOGGER = 'royale_deckbuilder'
LOG_DIR = os.getenv('LOG_DIR', 'logs')
LOG_FILE = os.path.join(LOG_DIR, 'royale_deckbuilder.log')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
if not isinstance(LOG_LEVEL, int):
    LOG_LEVEL = logging.INFO
LOG_TO_FILE = os.getenv('LOG_TO_FILE', '1').lower() not in ('0', 'false', 'off', 'disabled')


# Create a formatter that removes double underscores
class NoDunderFormatter(logging.Formatter):
    def format(self, record):
        record.name = record.name.replace("__", "")
        return super().format(record)


# Stream handler
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(NoDunderFormatter(LOG_FORMAT))

_file_handler: logging.FileHandler | None = None


def get_file_handler() -> logging.FileHandler | None:
    """Return the shared file handler, creating the log directory on first use."""
    global _file_handler
    if not LOG_TO_FILE:
        return None
    if _file_handler is None:
        try:
            os.makedirs(LOG_DIR, exist_ok=True)
            _file_handler = logging.FileHandler(LOG_FILE, mode='a', encoding='utf-8')
        except OSError:
            return None
        _file_handler.setFormatter(NoDunderFormatter(LOG_FORMAT))
    return _file_handler


def enable_file_logging(name: str = PACKAGE_LOGGER) -> logging.FileHandler | None:
    """Attach the shared file handler to the package logger.

    Library loggers only stream; entry points opt in to the log file so that
    importing the package never touches the filesystem.
    """
    file_handler = get_file_handler()
    if file_handler is None:
        return None
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)
    if file_handler not in logger.handlers:
        logger.addHandler(file_handler)
    return file_handler


# Logger assembly helper (idempotent)
def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(LOG_LEVEL)
        logger.addHandler(stream_handler)
    return logger

"""Logging for the fantasy engine and its admin CLI.

Engine modules log under ``ultifantasy.<module>`` and never attach handlers
themselves. A host embedding the engine routes the ``ultifantasy`` logger
however it likes; the admin CLI calls ``setup_logging``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

ROOT_LOGGER = 'ultifantasy'

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def get_logger(module: Optional[str] = None) -> logging.Logger:
    """
    Engine logger, or the child logger of one engine module.

    >>> get_logger('pricing').name
    'ultifantasy.pricing'
    """
    if not module:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f'{ROOT_LOGGER}.{module}')


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach handlers to the engine logger, replacing any from an earlier call.

    Args:
        log_dir: Directory for the timestamped log file (default: ./logs)
        level: Logging level for the engine logger and its handlers
        log_to_file: Write a detailed log file
        log_to_console: Write short messages to the console
        stream: Console stream (default: stderr, keeping stdout for CLI output)

    Returns:
        The configured ``ultifantasy`` logger
    """
    logger = get_logger()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_to_file:
        log_dir = Path(log_dir) if log_dir is not None else Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f'ultifantasy_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    return logger

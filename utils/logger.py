"""
Logging utilities for the world facts harvester.

All modules log through loguru. Console output goes to stderr so that the
run summary printed by main.py stays readable on stdout.
"""

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"
DEFAULT_LOG_FILE = "logs/world_facts.log"


def setup_logger(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_file_path: Optional[str] = None
) -> None:
    """
    Set up logger with console and file handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Whether to log to file
        log_to_console: Whether to log to console
        log_file_path: Custom log file path (optional)
    """
    logger.remove()
    # Records logged through the bare loguru logger carry no bound name
    logger.configure(extra={"name": "harvester"})

    if log_to_console:
        logger.add(
            sys.stderr,
            level=log_level,
            format=CONSOLE_FORMAT,
            colorize=True
        )

    if log_to_file:
        log_path = Path(log_file_path or DEFAULT_LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_path),
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            encoding="utf-8"
        )


def get_logger(name: str = None):
    """
    Get a logger instance bound to a module name.

    Args:
        name: Logger name (optional)

    Returns:
        Logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


@contextmanager
def log_stage(stage: str) -> Iterator[None]:
    """
    Log the start, duration and failure of a pipeline stage.

    Exceptions are logged and re-raised unchanged.
    """
    stage_logger = get_logger("pipeline")
    stage_logger.info(f"Stage '{stage}' started")
    start_time = time.time()

    try:
        yield
    except Exception as e:
        stage_logger.error(f"Stage '{stage}' failed after {time.time() - start_time:.2f}s: {e}")
        raise

    stage_logger.info(f"Stage '{stage}' finished in {time.time() - start_time:.2f}s")

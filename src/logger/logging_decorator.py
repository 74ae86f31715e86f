"""
Centralized Logging Utilities and Decorators

Provides reusable logging setup and function decorators for consistent logging
across the ingestion service. Every component (database, mediamanager,
validation, ingestion, pipeline) owns a named logger writing to its own file
under LOG_DIR.

Usage:
    from src.logger import setup_logging, log_function

    # Setup logging for a component
    logger = setup_logging(
        logger_name="ingestion",
        log_file="ingestion.log",
        verbose=True
    )

    # Decorate functions for automatic logging
    @log_function(logger_name="ingestion", log_args=True)
    def ingest(task):
        ...
"""

import functools
import logging
import os
import time
from pathlib import Path
from typing import Optional, Callable, Any

from dotenv import load_dotenv


load_dotenv()
LOG_DIR = os.getenv("LOG_DIR", "logs")


def resolve_log_file(log_file: str) -> Path:
    """
    Resolve a log file name against LOG_DIR.

    Bare file names ("ingestion.log") are placed inside LOG_DIR, anything
    containing a directory part is used as given.
    """
    log_path = Path(log_file)
    if log_path.parent == Path("."):
        return Path(LOG_DIR) / log_path
    return log_path


def setup_logging(
    logger_name: str,
    log_file: str = "app.log",
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging with file and optional console handlers.

    Args:
        logger_name: Name for the logger (e.g., "ingestion")
        log_file: Log file name or path (default: "app.log" inside LOG_DIR)
        verbose: If True, add console handler with DEBUG level (default: False)
        level: Base logging level (default: logging.INFO)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logging("pipeline", "pipeline.log", verbose=True)
        logger.info("Dispatcher started")
    """
    logger = logging.getLogger(logger_name)

    # Avoid adding multiple handlers if already configured
    if logger.handlers:
        if verbose and not any(
            getattr(h, "_verbose_console", False) for h in logger.handlers
        ):
            _add_console_handler(logger)
            logger.setLevel(logging.DEBUG)
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    # Create logs directory if needed
    log_path = resolve_log_file(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # File handler for detailed logging
    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(level)
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    # Console handler for verbose mode
    if verbose:
        _add_console_handler(logger)

    return logger


def _add_console_handler(logger: logging.Logger) -> None:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    console_handler._verbose_console = True
    logger.addHandler(console_handler)


def log_function(
    logger_name: Optional[str] = None,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator to automatically log function entry, exit, execution time, and exceptions.

    Args:
        logger_name: Custom logger name (if None, uses the decorated function's module name)
        log_file: Optional custom log file (if None, uses existing logger config)
        level: Log level for entry/exit messages (default: logging.INFO)
        log_args: If True, log function arguments (default: False)
        log_result: If True, log return value (default: False)
        log_execution_time: If True, log execution duration (default: True)

    Returns:
        Decorated function with logging

    Example:
        @log_function(logger_name="pipeline", log_result=True)
        def ingest_next(orchestrator, concurrent_tasks):
            ...

    Exceptions are logged with their traceback and re-raised unchanged.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            # Determine logger to use
            name = logger_name or func.__module__

            # Get or create logger
            if log_file:
                logger = setup_logging(
                    logger_name=f"{name}.{func.__name__}",
                    log_file=log_file,
                    level=level,
                )
            else:
                logger = logging.getLogger(name)
                if not logger.handlers:
                    logger = setup_logging(name, log_file=f"{name}.log", level=level)

            func_name = func.__name__
            log_msg = f"Calling {func_name}"

            if log_args and (args or kwargs):
                args_repr = [repr(a) for a in args]
                kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
                log_msg += f" with args: {', '.join(args_repr + kwargs_repr)}"

            logger.log(level, log_msg)

            start_time = time.time()

            try:
                result = func(*args, **kwargs)

                execution_time = time.time() - start_time
                completion_msg = f"Completed {func_name}"

                if log_execution_time:
                    completion_msg += f" in {execution_time:.2f}s"

                if log_result:
                    completion_msg += f" with result: {result!r}"

                logger.log(level, completion_msg)

                return result

            except Exception as e:
                execution_time = time.time() - start_time
                logger.error(
                    f"Exception in {func_name} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                    exc_info=True,
                )
                raise

        return wrapper

    return decorator


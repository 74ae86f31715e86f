"""Logging utilities shared by every ingestion component."""

from .logging_decorator import LOG_DIR, setup_logging, log_function

__all__ = ["LOG_DIR", "setup_logging", "log_function"]

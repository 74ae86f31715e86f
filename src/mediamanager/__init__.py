"""
Media Manager API package.

Thin HTTP client (requests) for the PBS Media Manager content API, plus its
environment-driven configuration.
"""

from .client import MediaManagerClient, is_error
from .config import MediaManagerConfig

__all__ = ["MediaManagerClient", "MediaManagerConfig", "is_error"]

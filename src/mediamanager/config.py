"""
Configuration settings for the Media Manager API client.

Values are read from the environment (and a local .env file) when the config
object is created.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    load_dotenv()
    return os.getenv(name, default)


@dataclass
class MediaManagerConfig:
    """Connection settings for the Media Manager API"""

    # Credentials
    api_key: Optional[str] = field(default_factory=lambda: _env("MM_KEY"))
    api_secret: Optional[str] = field(default_factory=lambda: _env("MM_SECRET"))

    # The API base URL is MM_ENDPOINT + MM_API
    endpoint: Optional[str] = field(default_factory=lambda: _env("MM_ENDPOINT"))
    api_path: str = field(default_factory=lambda: _env("MM_API", ""))

    # Seconds before a request is abandoned
    timeout: float = field(default_factory=lambda: float(_env("MM_TIMEOUT", "30")))

    @property
    def base_url(self) -> str:
        return f"{self.endpoint or ''}{self.api_path or ''}".rstrip("/")

    def validate(self) -> None:
        """
        Make sure every required setting is present.

        Raises:
            ValueError: Naming every missing environment variable.
        """
        missing = [
            name
            for name, value in (
                ("MM_KEY", self.api_key),
                ("MM_SECRET", self.api_secret),
                ("MM_ENDPOINT", self.endpoint),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables for Media Manager: {', '.join(missing)}"
            )

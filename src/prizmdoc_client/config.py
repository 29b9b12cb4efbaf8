"""
Configuration
=============

Settings for the conversion command line tool, loaded from environment
variables. Library users can ignore this module entirely and construct
`PrizmDocRestClient` directly.
"""

import os

from .transport import DEFAULT_POOL_MAXSIZE


class Settings:
    """
    A container for all configuration settings, loaded from environment variables.

    Invalid values raise `ValueError` so entry points can report a
    configuration error and exit.
    """

    # --- PrizmDoc Server / Cloud ---
    PRIZMDOC_URL: str
    PRIZMDOC_API_KEY: str | None

    # --- HTTP ---
    REQUEST_TIMEOUT: float
    POOL_MAXSIZE: int

    # --- Logging ---
    LOG_LEVEL: str
    LOG_FORMAT: str

    def __init__(self):
        self.PRIZMDOC_URL = os.getenv("PRIZMDOC_URL", "https://api.accusoft.com")
        self.PRIZMDOC_API_KEY = os.getenv("PRIZMDOC_API_KEY") or None

        self.REQUEST_TIMEOUT = self._get_positive_number("REQUEST_TIMEOUT", 60)
        self.POOL_MAXSIZE = int(
            self._get_positive_number("POOL_MAXSIZE", DEFAULT_POOL_MAXSIZE)
        )

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
        if self.LOG_FORMAT not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")

    def _get_positive_number(self, var_name: str, default: float) -> float:
        """
        Gets a numeric environment variable, raising an error if it is not a positive number.
        """
        raw = os.getenv(var_name)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{var_name}' must be a number.") from None
        if value <= 0:
            raise ValueError(f"Environment variable '{var_name}' must be positive.")
        return value

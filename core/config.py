"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. veracode_username -> VERACODE_USERNAME).

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. A plain-HTTP API base is only accepted in debug mode because
      credentials travel in every request.

Layer rule: core/ is the kernel. Only main.py configures logging.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("vcodereport.config")

DEFAULT_API_BASE = "https://analysiscenter.veracode.com/api/5.0"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in tests
    without a real .env file. Missing credentials are only an error once a
    fetch is attempted, so offline parsing (--file) works without them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "WARNING"

    # ------------------------------------------------------------------
    # API access
    # ------------------------------------------------------------------

    veracode_username: str = ""
    veracode_password: SecretStr = SecretStr("")
    veracode_api_base: str = DEFAULT_API_BASE
    # Seconds. Applied to both connect and read.
    request_timeout: float = 30.0

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    # JSON file of {"<categoryid>": "<name>"}; empty means the built-in table.
    category_map_file: Optional[Path] = None

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_api_access(self) -> "Settings":
        """Reject settings that would leak credentials or hang forever.

        Plain-HTTP API bases are refused unless DEBUG=true (local mock servers).
        Timeouts must be positive -- requests treats None as "wait forever".
        LOG_LEVEL must name a standard logging level.
        """
        self.veracode_api_base = self.veracode_api_base.rstrip("/")
        if not self.veracode_api_base.startswith("https://"):
            if self.debug:
                logger.warning("WARNING: Using non-HTTPS API base %s.", self.veracode_api_base)
            else:
                raise ValueError(
                    "VERACODE_API_BASE must use https. "
                    "To point at a local mock server, set DEBUG=true."
                )
        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be greater than zero.")
        self.log_level = self.log_level.strip().upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}.")
        return self

    @property
    def has_credentials(self) -> bool:
        return bool(self.veracode_username and self.veracode_password.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()

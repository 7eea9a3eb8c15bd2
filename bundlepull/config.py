"""Runtime configuration — env-driven registry and filesystem settings.

Centralized config using pydantic-settings for environment variable
support. Reads from a .env file and BUNDLEPULL_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class PullConfig(BaseSettings):
    """Configuration with environment variable overrides.

    All settings can be overridden via BUNDLEPULL_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export BUNDLEPULL_LOG_LEVEL=DEBUG
        export BUNDLEPULL_REGISTRY_USERNAME=robot
        export BUNDLEPULL_REGISTRY_PASSWORD=s3cret
        export BUNDLEPULL_REGISTRY_INSECURE=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUNDLEPULL_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"

    # Registry access
    registry_username: str = ""
    registry_password: str = ""
    registry_insecure: bool = False  # plain http instead of https
    registry_timeout_seconds: float = 30.0

    # Filesystem
    output_dir_mode: int = 0o700
    lock_file_mode: int = 0o600  # owner read/write
    temp_dir: Path | None = None  # archiver scratch space, None = system default


# Module-level singleton — import as `from bundlepull.config import config`
config = PullConfig()

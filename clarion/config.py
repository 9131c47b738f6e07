"""Runtime settings — env-driven via pydantic-settings.

Reads from a .env file and CLARION_* environment variables.  Only ambient
concerns live here (logging, I/O timeouts, fan-out width); destination
configuration always comes from service URLs.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClarionSettings(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CLARION_LOG_LEVEL=DEBUG
        export CLARION_SMTP_TIMEOUT_SECONDS=30
        export CLARION_MAX_WORKERS=4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CLARION_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    verbose: bool = False

    # Per-destination I/O timeouts, applied by the services themselves
    smtp_timeout_seconds: float = 15.0
    webhook_timeout_seconds: float = 10.0

    # Upper bound on fan-out threads; 0 means one thread per destination
    max_workers: int = 0

    def fanout_width(self, destinations: int) -> int:
        """Number of worker threads to use for *destinations* services."""
        if self.max_workers <= 0:
            return destinations
        return max(1, min(self.max_workers, destinations))


# Module-level singleton — import as `from clarion.config import settings`
settings = ClarionSettings()

"""Settings for the fleetshare API."""

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from fleetshare.workflow.retry import RetryPolicy


class Settings(BaseSettings):
    """
    Settings for the fleetshare API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from environment variables and validates them.

    This class automatically reads from:
    1. Environment variables (production)
    2. .env file (local development)

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (store_username, store_password).
    """

    # Store API
    store_server: str = "my.geotab.com"
    """Default store host. Requests may name a different server per database."""

    store_username: str
    """Service account user name used to authenticate against both databases (required)."""

    store_password: str
    """Service account password (required)."""

    store_request_timeout: float = 30.0
    """Per-request HTTP timeout in seconds for store calls."""

    # Share workflow
    auto_accept: bool = True
    """Rely on the target database's auto-accept setting instead of approving shares manually."""

    retry_max_attempts: int = 12
    """Polling budget for every cross-database wait."""

    retry_quick_attempts: int = 4
    """Number of polls that use the flat base delay before backoff kicks in."""

    retry_base_delay_ms: int = 50
    """Base delay between polls in milliseconds."""

    retry_max_delay_ms: int = 2000
    """Upper bound for a single backoff delay in milliseconds."""

    # Logging
    log_level: str = "INFO"
    """Minimum log level for stdout."""

    log_serialize: bool = False
    """Write JSON log records instead of the colored line format."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )

    def retry_policy(self) -> RetryPolicy:
        """Build the polling policy used by the share workflow."""
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            quick_attempts=self.retry_quick_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
        )

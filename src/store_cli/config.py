"""Execution context for store-cli using pydantic-settings.

All values come from the ``SD_*`` environment variables the build
environment exports. The context is loaded once at process start and is
frozen afterwards; the addressing and dispatch code receives it as an
argument and never reads the environment itself.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from store_cli.core.models import Scope

DISK_CACHE_STRATEGY = "disk"


def _parse_int(text: str) -> int:
    """Parse an integer with an optional 0x, 0o or 0b base prefix.

    A bare leading zero selects octal, so "010" is 8.
    """
    digits = text.lstrip("+-")
    if len(digits) > 1 and digits[0] == "0" and (digits[1].isdigit() or digits[1] == "_"):
        return int(text, 8)
    return int(text, 0)


class ExecutionContext(BaseSettings):
    """Environment-derived facts consumed by address resolution."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        frozen=True,
        populate_by_name=True,
    )

    # Remote store
    store_url: str = Field("", validation_alias="SD_STORE_URL")
    token: str = Field("", validation_alias="SD_TOKEN")
    store_timeout: float = Field(60.0, validation_alias="SD_STORE_TIMEOUT")

    # Build identity
    build_id: str = Field("", validation_alias="SD_BUILD_ID")
    job_id: str = Field("", validation_alias="SD_JOB_ID")
    event_id: str = Field("", validation_alias="SD_EVENT_ID")
    pipeline_id: str = Field("", validation_alias="SD_PIPELINE_ID")

    # Pull requests
    pull_request: str = Field("", validation_alias="SD_PULL_REQUEST")
    pr_parent_job_id: str = Field("", validation_alias="SD_PR_PARENT_JOB_ID")

    # Disk cache
    cache_strategy: str = Field("", validation_alias="SD_CACHE_STRATEGY")
    cache_max_size_mb: int = Field(0, validation_alias="SD_CACHE_MAX_SIZE_MB")
    event_cache_dir: str = Field("", validation_alias="SD_EVENT_CACHE_DIR")
    job_cache_dir: str = Field("", validation_alias="SD_JOB_CACHE_DIR")
    pipeline_cache_dir: str = Field("", validation_alias="SD_PIPELINE_CACHE_DIR")

    log_level: str = Field("INFO", validation_alias="SD_LOG_LEVEL")

    @field_validator("cache_strategy", mode="before")
    @classmethod
    def _lower_strategy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("cache_max_size_mb", mode="before")
    @classmethod
    def _lenient_size(cls, value: Any) -> int:
        # An unset or unparsable size means "no limit".
        if value is None or isinstance(value, int):
            return value or 0
        try:
            return _parse_int(str(value).strip())
        except ValueError:
            return 0

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request != ""

    @property
    def uses_disk_cache(self) -> bool:
        return self.cache_strategy == DISK_CACHE_STRATEGY

    def cache_dir_for(self, scope: Scope) -> Optional[Path]:
        """Get the local cache root for a scope.

        Args:
            scope: Cache scope

        Returns:
            Directory for the scope, or None if it is not configured
        """
        directory = {
            Scope.EVENT: self.event_cache_dir,
            Scope.JOB: self.job_cache_dir,
            Scope.PIPELINE: self.pipeline_cache_dir,
        }.get(scope, "")
        return Path(directory) if directory else None


def load_context() -> ExecutionContext:
    """Read the execution context from the environment.

    Returns:
        Frozen ExecutionContext
    """
    return ExecutionContext()

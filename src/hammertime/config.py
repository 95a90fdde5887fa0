"""Runtime settings for Hammertime.

Settings come from an optional YAML file, overridden by environment
variables, and are validated with Pydantic.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .retry import RetryConfig
from .tags import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Environment variable -> settings field
ENV_OVERRIDES = {
    "DRY_RUN": "dry_run",
    "AWS_REGION": "region",
    "MAX_WORKERS": "max_workers",
    "HAMMERTIME_RETRIES": "retries",
    "SLACK_WEBHOOK_URL": "slack_webhook_url",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """Hammertime configuration."""

    dry_run: bool = Field(default=False, description="Log mutations instead of making them")
    region: Optional[str] = Field(default=None, description="AWS region (default: boto3 chain)")
    max_workers: Optional[int] = Field(
        default=None, gt=0, description="Thread pool size (default: one per ASG)"
    )
    retries: int = Field(default=10, ge=0, description="Retries on throttling")
    min_delay: float = Field(default=1.0, ge=0, description="First backoff delay (seconds)")
    default_timezone: int = Field(
        default=DEFAULT_TIMEZONE, ge=-12, le=14, description="Fallback UTC offset"
    )
    slack_webhook_url: Optional[str] = Field(
        default=None, description="Slack Incoming Webhook for run summaries"
    )
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return level

    @field_validator("slack_webhook_url")
    @classmethod
    def empty_webhook_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def retry_config(self) -> RetryConfig:
        return RetryConfig(retries=self.retries, min_delay=self.min_delay)


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load settings from YAML and the environment.

    Args:
        path: YAML file (default: $HAMMERTIME_CONFIG, or no file)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        pydantic.ValidationError: If a value fails validation
    """
    path = path or os.getenv("HAMMERTIME_CONFIG")
    data: dict[str, Any] = {}

    if path:
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")

        logger.info(f"Loading settings from {file_path}")
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {file_path}")

    for env_name, field in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None and value != "":
            data[field] = value

    return Settings(**data)


def configure_logging(level: str) -> None:
    """Set the root log level and a plain format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(level)

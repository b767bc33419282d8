"""
Configuration for the Offboarding Engine.

Settings come from ``OFFBOARD_*`` environment variables and, optionally,
a YAML or JSON file whose values take precedence over the environment.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    config_file: Optional[str] = None

    state_file: Optional[str] = None
    audit_dir: Optional[str] = "audit_logs"
    profile_store_url: Optional[str] = None

    api_base_url: str = "http://localhost:8000"
    poll_interval_seconds: float = Field(30.0, gt=0)
    request_timeout_seconds: float = Field(10.0, gt=0)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="OFFBOARD_", extra="ignore")


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file into a dictionary."""
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from the environment and an optional file.

    Args:
        config_path: Path to a YAML/JSON file. Defaults to OFFBOARD_CONFIG_FILE.

    Returns:
        Resolved Settings
    """
    settings = Settings()
    path = config_path or settings.config_file
    if not path:
        return settings

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    file_values = _read_config_file(path)
    logger.info(f"Loaded configuration from {path}")
    return Settings(**{**file_values, "config_file": str(path)})


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging the same way for the CLI and the API server."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

"""
Settings for the adaptive scoring system.

Settings live in a YAML file; the Gemini API key comes from the environment
so that it never ends up in the settings file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from adaptive_scoring.constants import (
    DB_NAME,
    DEFAULT_CAPABLE_MODEL,
    DEFAULT_CHEAP_MODEL,
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_SETTINGS_PATH,
    GEMINI_API_KEY_ENV_VAR,
    SETTINGS_PATH_ENV_VAR,
)
from adaptive_scoring.exceptions import ConfigurationError
from util.logging_util import setup_logger

logger = setup_logger(__name__)


@dataclass
class Settings:
    """Runtime settings for both workflows."""
    topic_description: str = ""
    cheap_model: str = DEFAULT_CHEAP_MODEL
    capable_model: str = DEFAULT_CAPABLE_MODEL
    llm_timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS
    db_path: str = DB_NAME


def settings_path() -> Path:
    """The settings file in use: $ADAPTIVE_SCORING_CONFIG or the packaged default."""
    override = os.environ.get(SETTINGS_PATH_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_SETTINGS_PATH


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from YAML, falling back to defaults for missing keys."""
    if config_path is None:
        config_path = settings_path()

    if not config_path.exists():
        logger.warning(f"Settings file not found at {config_path}, using defaults")
        return Settings()

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {config_path} must contain a mapping")

    try:
        timeout = float(data.get("llm_timeout_seconds", DEFAULT_LLM_TIMEOUT_SECONDS))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid llm_timeout_seconds in {config_path}: {e}")

    return Settings(
        topic_description=(data.get("topic_description") or "").strip(),
        cheap_model=data.get("cheap_model") or DEFAULT_CHEAP_MODEL,
        capable_model=data.get("capable_model") or DEFAULT_CAPABLE_MODEL,
        llm_timeout_seconds=timeout,
        db_path=data.get("db_path") or DB_NAME,
    )


def get_gemini_api_key() -> str:
    """Read the Gemini API key from the environment."""
    api_key = os.environ.get(GEMINI_API_KEY_ENV_VAR, "").strip()
    if not api_key:
        raise ConfigurationError(f"{GEMINI_API_KEY_ENV_VAR} is not set")
    return api_key

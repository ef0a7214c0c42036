# runpod_flow/config/loader.py
"""
Configuration loading with auto-creation of defaults.

Uses platformdirs for cross-platform config directory management.
"""

import logging
import os
from pathlib import Path

import yaml
from platformdirs import user_config_path
from pydantic import SecretStr

from .schema import RunpodFlowConfig

logger = logging.getLogger(__name__)

API_KEY_ENV = "RUNPOD_API_KEY"


def get_config_path() -> Path:
    """Get path to config file, ensuring config directory exists."""
    config_dir = user_config_path("runpod-flow", ensure_exists=True)
    return config_dir / "config.yaml"


def load_config(path: Path | None = None) -> RunpodFlowConfig:
    """
    Load configuration from YAML file.

    If config file doesn't exist, creates it with defaults. The
    RUNPOD_API_KEY environment variable overrides runpod.api_key.

    Args:
        path: Config file location (defaults to get_config_path())

    Returns:
        Validated RunpodFlowConfig
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        config = RunpodFlowConfig()
        config_dict = config.model_dump(mode="json")
        # SecretStr dumps masked; store an empty slot instead
        config_dict["runpod"]["api_key"] = None

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Created default config at {config_path}")
    else:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f) or {}

        config = RunpodFlowConfig(**config_data)
        logger.info(f"Loaded config from {config_path}")

    env_key = os.environ.get(API_KEY_ENV)
    if env_key:
        runpod = config.runpod.model_copy(update={"api_key": SecretStr(env_key)})
        config = config.model_copy(update={"runpod": runpod})

    return config

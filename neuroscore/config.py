"""Global configuration for neuroscore.

The config lives in $NEUROSCORE_HOME/config.yaml (default
~/.config/neuroscore/config.yaml) and is written by `neuroscore init`.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel

from neuroscore.registry.reference import DEFAULT_REFERENCE_PATH

HOME_ENV_VAR = "NEUROSCORE_HOME"
REFERENCE_ENV_VAR = "NEUROSCORE_REFERENCE"


class GlobalConfig(BaseModel):
    """Settings persisted in config.yaml."""

    reference_path: Path | None = None
    default_age: float | None = None


def get_neuroscore_home() -> Path:
    """Get the neuroscore home directory."""
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home)
    return Path.home() / ".config" / "neuroscore"


def get_config_path() -> Path:
    return get_neuroscore_home() / "config.yaml"


def get_installed_reference_path() -> Path:
    """Where `neuroscore init` installs reference data."""
    return get_neuroscore_home() / "reference"


def load_global_config() -> GlobalConfig:
    """Load the global config, or defaults if it doesn't exist."""
    config_path = get_config_path()
    if not config_path.exists():
        return GlobalConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return GlobalConfig.model_validate(data)


def save_global_config(config: GlobalConfig) -> Path:
    """Write the global config, creating the home directory if needed."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(config.model_dump(mode="json", exclude_none=True), f, sort_keys=False)
    return config_path


def get_reference_path(explicit: Path | str | None = None) -> Path:
    """Resolve the reference data directory.

    Order: explicit argument, $NEUROSCORE_REFERENCE, the global config,
    then the packaged reference data.
    """
    if explicit:
        return Path(explicit)

    env_path = os.environ.get(REFERENCE_ENV_VAR)
    if env_path:
        return Path(env_path)

    config = load_global_config()
    if config.reference_path:
        return config.reference_path

    return DEFAULT_REFERENCE_PATH

"""Configuration management for virtual-repo-hub.

The configuration directory holds the device identity and the settings of the
active hub::

    <config dir>/deviceid            uuid4 identifying this device
    <config dir>/hub                 name of the active hub
    <config dir>/device/<hub>.yml    starred directories for this device
"""

import logging
import os
import uuid
from pathlib import Path

import yaml
from pydantic import ValidationError

from virtual_repo_hub.constants import (
    APP_NAME,
    CONFIG_DIR_NAME,
    CONFIG_HOME_ENV,
    DEFAULT_HUB,
    DEVICE_CONFIG_DIR,
    DEVICE_ID_FILE,
    DOT_CONFIG_DIR_NAME,
    HUB_ID_FILE,
)
from virtual_repo_hub.models import Config, DeviceConfig

logger = logging.getLogger(APP_NAME)

DEVICE_CONFIG_HEADER = """\
# Starred directories: alias -> path. Repositories found under these
# directories are checked by 'vrh check' when no paths are given.
# exclude_patterns and exclude_paths skip directories while scanning.
"""


class ConfigError(ValueError):
    """Raised when configuration cannot be located or parsed."""


class ConfigNotFoundError(FileNotFoundError):
    """Raised when the device has not been initialized."""


def config_dir() -> Path:
    """Locate the configuration directory.

    ``$VIRTUAL_REPO_HUB_HOME`` wins. Otherwise ``~/.config/virtual-repo-hub``
    is used when ``~/.config`` already exists, and ``~/.virtual-repo-hub``
    when it does not.

    Returns:
        Path to the configuration directory (which may not exist yet).

    Raises:
        ConfigError: If neither the override nor HOME is set.
    """
    override = os.environ.get(CONFIG_HOME_ENV)
    if override:
        return Path(override)

    home = os.environ.get("HOME")
    if not home:
        raise ConfigError(f"Neither HOME or {CONFIG_HOME_ENV} was defined")

    dot_config = Path(home) / ".config"
    # Don't take responsibility for creating .config if it doesn't exist.
    if dot_config.exists():
        return dot_config / CONFIG_DIR_NAME
    return Path(home) / DOT_CONFIG_DIR_NAME


def device_config_path(path: Path, hub: str) -> Path:
    """Path of the device config file for a hub."""
    return path / DEVICE_CONFIG_DIR / f"{hub}.yml"


def init_config(path: Path) -> Config | None:
    """Initialize configuration for this device.

    Args:
        path: Configuration directory.

    Returns:
        The new Config, or None if the device appears to already be
        initialized.
    """
    if (path / DEVICE_ID_FILE).exists():
        return None

    config = Config(device_id=str(uuid.uuid4()), hub=DEFAULT_HUB, device=DeviceConfig())

    path.mkdir(parents=True, exist_ok=True)
    (path / DEVICE_ID_FILE).write_text(config.device_id)
    (path / HUB_ID_FILE).write_text(config.hub)
    save_device_config(path, config)

    logger.debug("Initialized device %s in %s", config.device_id, path)
    return config


def load_config(path: Path) -> Config:
    """Load device identity and settings.

    Args:
        path: Configuration directory.

    Returns:
        Validated Config object.

    Raises:
        ConfigNotFoundError: If any configuration file is missing.
        ConfigError: If the device config is invalid YAML or schema.
    """
    device_id = read_required(path / DEVICE_ID_FILE)
    hub = read_required(path / HUB_ID_FILE)
    device_path = device_config_path(path, hub)
    raw = read_required(device_path)

    try:
        device = DeviceConfig(**(yaml.safe_load(raw) or {}))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {device_path}: {e}") from e
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid device config in {device_path}: {e}") from e

    return Config(device_id=device_id, hub=hub, device=device)


def read_required(file_path: Path) -> str:
    """Read a config file, raising ConfigNotFoundError if it is missing."""
    if not file_path.exists():
        raise ConfigNotFoundError(
            f"Config file not found: {file_path}. Run 'vrh init' to initialize this device"
        )
    return file_path.read_text().strip()


def save_device_config(path: Path, config: Config) -> None:
    """Write the device settings of the active hub.

    Args:
        path: Configuration directory.
        config: Configuration to persist.
    """
    device_path = device_config_path(path, config.hub)
    device_path.parent.mkdir(parents=True, exist_ok=True)
    body = yaml.safe_dump(config.device.model_dump(), default_flow_style=False, sort_keys=True)
    device_path.write_text(DEVICE_CONFIG_HEADER + body)

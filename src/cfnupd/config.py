"""
User configuration for cfnupd.

Settings live in a YAML file inside the per-user application directory
(for example ~/.config/cfnupd/config.yaml on Linux).
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import click
import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

APP_NAME = "cfnupd"
CONFIG_FILENAME = "config.yaml"
DEFAULT_EDITOR = "nano"
DEFAULT_POLL_INTERVAL = 3.0


@dataclass
class UpdaterConfig:
    """Settings read from the user configuration file."""

    editor: Optional[str] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        if self.editor is not None and not isinstance(self.editor, str):
            raise ConfigurationError(f"editor must be a string, got {self.editor!r}")
        if isinstance(self.poll_interval, bool) or not isinstance(
            self.poll_interval, (int, float)
        ):
            raise ConfigurationError(
                f"poll_interval must be a number, got {self.poll_interval!r}"
            )
        if self.poll_interval <= 0:
            raise ConfigurationError("poll_interval must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, leaving out unset values."""
        return {k: v for k, v in self.__dict__.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdaterConfig":
        """Create config from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in data.items() if k in known})


def get_config_path() -> Path:
    """Location of the user configuration file."""
    return Path(click.get_app_dir(APP_NAME)) / CONFIG_FILENAME


def load_config(path: Optional[Union[str, Path]] = None) -> UpdaterConfig:
    """Load configuration, returning defaults when the file does not exist."""
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        logger.debug(f"load_config::no config file at {config_path}")
        return UpdaterConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Unable to read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping")

    logger.debug(f"load_config::loaded {config_path}")
    return UpdaterConfig.from_dict(data)


def save_config(config: UpdaterConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """Write configuration to file."""
    config_path = Path(path) if path else get_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)
    except OSError as e:
        raise ConfigurationError(f"Unable to write {config_path}: {e}") from e
    return config_path


def resolve_editor(
    override: Optional[str] = None,
    path: Optional[Union[str, Path]] = None,
    config: Optional[UpdaterConfig] = None,
) -> str:
    """
    Pick the editor used to modify artifacts.

    Order: explicit override, the EDITOR environment variable, the config
    file. When none is set the config file is written with the default
    editor so the choice is visible to the user.

    An already loaded config can be passed in to avoid reading the file again.
    """
    if override:
        return override

    editor = os.environ.get("EDITOR")
    if editor:
        logger.debug(f"resolve_editor::env_var: {editor}")
        return editor

    config_path = Path(path) if path else get_config_path()
    if config is None:
        config = load_config(config_path)
    if config.editor:
        logger.debug(f"resolve_editor::config_file: {config.editor}")
        return config.editor

    config.editor = DEFAULT_EDITOR
    save_config(config, config_path)
    logger.debug(f"resolve_editor::wrote default editor {DEFAULT_EDITOR} to {config_path}")
    return DEFAULT_EDITOR

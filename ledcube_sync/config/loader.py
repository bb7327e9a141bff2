"""
Reading and writing the JSON configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .models import AppConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"

PathLike = Union[str, Path, None]


class ConfigurationError(Exception):
    """The configuration file is unreadable, not JSON, or fails validation."""


def describe_validation_error(error: ValidationError, heading: str) -> str:
    """
    Render a pydantic error as one line per offending field.

    Used for the config file and for animation sets read by the CLI.
    """
    lines = [heading]
    for item in error.errors():
        where = " -> ".join(str(part) for part in item["loc"]) or "(root)"
        lines.append(f"  - {where}: {item['msg']}")
    return "\n".join(lines)


def load_config(path: PathLike = None, create_missing: bool = True) -> AppConfig:
    """
    Load and validate the configuration.

    A missing file is not an error: defaults are returned and, when
    create_missing is set, written out so the user has a file to edit.

    Raises:
        ConfigurationError: If the file exists but cannot be used.
    """
    config_path = Path(path or DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        config = AppConfig()
        if create_missing:
            try:
                save_config(config, config_path)
            except ConfigurationError as e:
                logger.warning(f"Could not write default config: {e}")
        return config

    raw = _read_json(config_path)
    try:
        config = AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            describe_validation_error(e, f"Invalid settings in {config_path}:")
        ) from e

    logger.info(f"Configuration loaded from {config_path}")
    return config


def save_config(config: AppConfig, path: PathLike = None) -> None:
    """Write the configuration as indented JSON."""
    config_path = Path(path or DEFAULT_CONFIG_FILE)
    try:
        config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot write {config_path}: {e}") from e
    logger.info(f"Configuration written to {config_path}")


def _read_json(config_path: Path):
    try:
        return json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{config_path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

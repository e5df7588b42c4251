"""Resampling settings loaded from YAML."""

import logging
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import yaml

from .coordmap import BorderMode, Interpolation
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def _parse_number(key, value):
    # Strings and booleans are rejected, not coerced
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{key} must be a number, got {value!r}")
    return float(value)


@dataclass
class RemapConfig:
    """Settings a caller picks once and applies to every map and remap call."""

    interpolation: Interpolation = Interpolation.NEAREST
    border_mode: BorderMode = BorderMode.CONSTANT
    border_value: float = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RemapConfig":
        defaults = cls()
        unknown = set(raw) - set(cls.__dataclass_fields__)
        if unknown:
            raise InvalidParameterError(f"Unknown configuration keys: {sorted(unknown)}")

        config = cls(
            interpolation=Interpolation.parse(raw.get("interpolation", defaults.interpolation)),
            border_mode=BorderMode.parse(raw.get("border_mode", defaults.border_mode)),
            border_value=_parse_number("border_value", raw.get("border_value", defaults.border_value)),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """
        Check values for logical consistency.

        Raises:
            InvalidParameterError: If any value is out of range.
        """
        if self.border_mode is BorderMode.ISOLATED:
            raise InvalidParameterError("border_mode 'isolated' is not supported for resampling")
        if not np.isfinite(self.border_value):
            raise InvalidParameterError(f"border_value must be finite, got {self.border_value}")


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> RemapConfig:
    """
    Load resampling configuration from a YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated RemapConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        InvalidParameterError: If the config is malformed or has invalid values.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading remap config from {config_path}")
    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidParameterError(f"Invalid configuration file {config_path}: expected a mapping")

    try:
        config = RemapConfig.from_dict(raw)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"Invalid configuration file {config_path}: {e}") from e

    logger.info(f"Loaded remap configuration from {config_path}")
    return config

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""Config coercion shared by every entry point that accepts a configuration."""

from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from cfnetcdf.core.config.models import CFConfig
from cfnetcdf.core.exceptions import ConfigurationError


def ensure_config(config: Optional[Union[Dict[str, Any], CFConfig]]) -> CFConfig:
    """
    Convert ``None`` or a dict to ``CFConfig`` if needed.

    Args:
        config: Configuration as None, dict or CFConfig instance

    Returns:
        CFConfig instance

    Raises:
        ConfigurationError: If the dict holds invalid values
        TypeError: If config is of another type

    Example:
        >>> cfg = ensure_config({'decode_times': False})
        >>> cfg.decode_times
        False
    """
    if config is None:
        return CFConfig()
    if isinstance(config, CFConfig):
        return config
    if isinstance(config, dict):
        try:
            return CFConfig(**config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid cfnetcdf configuration: {e}") from e
    raise TypeError(
        f"config must be CFConfig, dict or None, got {type(config).__name__}. "
        "Use CFConfig.from_file() to load configuration."
    )

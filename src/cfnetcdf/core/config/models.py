# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Configuration model for the CF decode/encode pipeline.

Immutable (frozen) pydantic model with factory methods for YAML files and
``CFNETCDF_*`` environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cfnetcdf.core.constants import FileFormats
from cfnetcdf.core.exceptions import ConfigurationError

# Standard ConfigDict for all config models
FROZEN_CONFIG = ConfigDict(extra='forbid', populate_by_name=True, frozen=True)

ENV_PREFIX = 'CFNETCDF_'

MissingWithoutFillPolicy = Literal['raise', 'warn', 'ignore']


class CFConfig(BaseModel):
    """Options controlling how CF attributes are applied on read and write."""

    model_config = FROZEN_CONFIG

    mask_and_scale: bool = Field(
        default=True,
        description="Apply _FillValue masking and scale_factor/add_offset",
    )
    decode_times: bool = Field(
        default=True,
        description="Convert '<unit> since <date>' variables to timestamps",
    )
    missing_without_fill: MissingWithoutFillPolicy = Field(
        default='raise',
        description="Masked write to a variable without _FillValue: raise, warn or ignore",
    )
    default_format: str = Field(
        default=FileFormats.NETCDF4,
        description="Container format used when creating a dataset",
    )

    @field_validator('default_format')
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.lower()
        if value not in FileFormats.NETCDF4_PYTHON_NAMES:
            raise ValueError(f"Unknown format {value}")
        return value

    @classmethod
    def from_file(
        cls,
        path: Path,
        overrides: Optional[Dict[str, Any]] = None,
        *,
        use_env: bool = True,
    ) -> 'CFConfig':
        """
        Load configuration from a YAML file.

        Loading precedence (highest to lowest):
        1. Programmatic overrides
        2. Environment variables (CFNETCDF_*)
        3. Config file (YAML)
        4. Field defaults

        Args:
            path: Path to configuration YAML file
            overrides: Dictionary of programmatic overrides
            use_env: Whether to load environment variables (default: True)

        Raises:
            ConfigurationError: If the file is missing or a value is invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Cannot parse {path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a mapping")

        values = {str(k).lower(): v for k, v in file_config.items()}
        if use_env:
            values.update(_load_env_overrides())
        if overrides:
            values.update({k.lower(): v for k, v in overrides.items()})
        return _validated(cls, values)

    @classmethod
    def from_env(cls, overrides: Optional[Dict[str, Any]] = None) -> 'CFConfig':
        """Build configuration from ``CFNETCDF_*`` environment variables."""
        values = _load_env_overrides()
        if overrides:
            values.update({k.lower(): v for k, v in overrides.items()})
        return _validated(cls, values)


def _load_env_overrides() -> Dict[str, Any]:
    """Collect ``CFNETCDF_<FIELD>`` variables for known config fields."""
    overrides = {}
    for name in CFConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def _validated(cls: type, values: Dict[str, Any]) -> CFConfig:
    try:
        return cls(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid cfnetcdf configuration: {e}") from e

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""Configuration for cfnetcdf."""

from cfnetcdf.core.config.coercion import ensure_config
from cfnetcdf.core.config.models import CFConfig, MissingWithoutFillPolicy

__all__ = [
    "CFConfig",
    "MissingWithoutFillPolicy",
    "ensure_config",
]

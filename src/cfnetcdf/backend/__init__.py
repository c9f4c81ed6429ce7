# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""Storage backends: the abstract contract and its implementations."""

from .base import StorageBackend, VarInfo
from .memory import InMemoryBackend
from .netcdf4 import NetCDF4Backend

__all__ = [
    'StorageBackend',
    'VarInfo',
    'InMemoryBackend',
    'NetCDF4Backend',
]

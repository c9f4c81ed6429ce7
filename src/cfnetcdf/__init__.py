# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

# src/cfnetcdf/__init__.py
from .cfnetcdf_version import __version__

from .attributes import AttributeView, Attributes, MFAttributes
from .backend import InMemoryBackend, NetCDF4Backend, StorageBackend
from .cf import CFTransform, CFVariable
from .core import (
    GLOBAL,
    BackendError,
    CFConfig,
    CFNetCDFError,
    ConfigurationError,
    DataTypeError,
    IndexingError,
    IndexOutOfBoundsError,
    InvalidReferenceDateError,
    InvalidStrideError,
    MissingFillValueError,
    NCType,
    ShapeMismatchError,
    TimeUnitsError,
    UnrecognizedTimeUnitError,
    UnsupportedIndexKindError,
)
from .dataset import Dataset
from .indexing import StridedRange
from .timecodec import parse_time_units, time_decode, time_encode
from .variable import RawVariable

__all__ = [
    "__version__",
    "Dataset",
    "CFVariable",
    "RawVariable",
    "CFTransform",
    "StridedRange",
    "AttributeView",
    "Attributes",
    "MFAttributes",
    "StorageBackend",
    "InMemoryBackend",
    "NetCDF4Backend",
    "CFConfig",
    "GLOBAL",
    "NCType",
    "parse_time_units",
    "time_decode",
    "time_encode",
    "CFNetCDFError",
    "IndexingError",
    "UnsupportedIndexKindError",
    "InvalidStrideError",
    "IndexOutOfBoundsError",
    "ShapeMismatchError",
    "DataTypeError",
    "TimeUnitsError",
    "UnrecognizedTimeUnitError",
    "InvalidReferenceDateError",
    "MissingFillValueError",
    "ConfigurationError",
    "BackendError",
]

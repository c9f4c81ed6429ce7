# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""Common utilities and core components."""

from .config import CFConfig, ensure_config
from .constants import GLOBAL, CFAttributeNames, FileFormats, NCStatus, NCType, TimeUnits
from .exceptions import (
    BackendError,
    CFNetCDFError,
    ConfigurationError,
    DataTypeError,
    IndexingError,
    IndexOutOfBoundsError,
    InvalidReferenceDateError,
    InvalidStrideError,
    MissingFillValueError,
    ShapeMismatchError,
    TimeUnitsError,
    UnrecognizedTimeUnitError,
    UnsupportedIndexKindError,
)
from .mixins import ConfigMixin, LoggingMixin

__all__ = [
    'CFConfig',
    'ensure_config',
    'GLOBAL',
    'CFAttributeNames',
    'FileFormats',
    'NCStatus',
    'NCType',
    'TimeUnits',
    'BackendError',
    'CFNetCDFError',
    'ConfigurationError',
    'DataTypeError',
    'IndexingError',
    'IndexOutOfBoundsError',
    'InvalidReferenceDateError',
    'InvalidStrideError',
    'MissingFillValueError',
    'ShapeMismatchError',
    'TimeUnitsError',
    'UnrecognizedTimeUnitError',
    'UnsupportedIndexKindError',
    'ConfigMixin',
    'LoggingMixin',
]

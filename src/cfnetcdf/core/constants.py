# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Constants shared by the indexing layer, the CF pipeline and the backends.

Centralizes CF attribute names, the native element types of the storage
format, the time-unit table and the netCDF status codes so that every
module refers to one definition.
"""

from enum import Enum
from typing import Any, Dict

import numpy as np

from cfnetcdf.core.exceptions import DataTypeError


class CFAttributeNames:
    """Attribute names consulted by the CF decode/encode pipeline."""

    FILL_VALUE = '_FillValue'
    """Raw sentinel marking missing data."""

    SCALE_FACTOR = 'scale_factor'
    """Multiplier applied to raw values on read."""

    ADD_OFFSET = 'add_offset'
    """Offset added after scaling on read."""

    UNITS = 'units'
    """Units string; a ``<unit> since <date>`` value marks a time axis."""


class TimeUnits:
    """Length of one stored time unit, in milliseconds."""

    MILLISECONDS: Dict[str, int] = {
        'day': 24 * 60 * 60 * 1000,
        'days': 24 * 60 * 60 * 1000,
        'hour': 60 * 60 * 1000,
        'hours': 60 * 60 * 1000,
        'minute': 60 * 1000,
        'minutes': 60 * 1000,
        'second': 1000,
        'seconds': 1000,
    }

    SINCE = ' since '
    """Separator between the unit token and the reference date."""

    REFERENCE_DATE_SEPARATORS = (" ", "T")
    """Accepted separators between the date and time of a reference date."""


GLOBAL = -1
"""Variable id addressing dataset-level (global) attributes."""


class NCType(Enum):
    """
    Native element types of the storage format.

    The variant is resolved once when a variable handle is created; every
    later conversion goes through :attr:`dtype` and :attr:`is_text`.
    """

    BYTE = 'byte'
    UBYTE = 'ubyte'
    SHORT = 'short'
    USHORT = 'ushort'
    INT = 'int'
    UINT = 'uint'
    INT64 = 'int64'
    UINT64 = 'uint64'
    FLOAT = 'float'
    DOUBLE = 'double'
    CHAR = 'char'
    STRING = 'string'

    @property
    def dtype(self) -> np.dtype:
        """numpy dtype used for buffers of this type."""
        return _NUMPY_DTYPES[self]

    @property
    def is_text(self) -> bool:
        """Character and string types are never scaled or offset."""
        return self in (NCType.CHAR, NCType.STRING)

    @classmethod
    def from_any(cls, value: Any) -> 'NCType':
        """
        Resolve an element type from a type name, numpy dtype or Python type.

        Args:
            value: ``NCType``, netCDF type name (``'short'``, ``'double'``...),
                numpy dtype or anything ``numpy.dtype`` accepts, or ``str``.

        Returns:
            The matching ``NCType``

        Raises:
            DataTypeError: If the value names no supported storage type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        if value is str:
            return cls.STRING
        try:
            dtype = np.dtype(value)
        except TypeError as e:
            raise DataTypeError(f"Unsupported element type: {value!r}") from e
        if dtype.kind in ('S', 'a') and dtype.itemsize == 1:
            return cls.CHAR
        if dtype.kind in ('U', 'O'):
            return cls.STRING
        for nctype, candidate in _NUMPY_DTYPES.items():
            if candidate == dtype and not nctype.is_text:
                return nctype
        raise DataTypeError(f"Unsupported element type: {value!r}")


_NUMPY_DTYPES: Dict[NCType, np.dtype] = {
    NCType.BYTE: np.dtype('int8'),
    NCType.UBYTE: np.dtype('uint8'),
    NCType.SHORT: np.dtype('int16'),
    NCType.USHORT: np.dtype('uint16'),
    NCType.INT: np.dtype('int32'),
    NCType.UINT: np.dtype('uint32'),
    NCType.INT64: np.dtype('int64'),
    NCType.UINT64: np.dtype('uint64'),
    NCType.FLOAT: np.dtype('float32'),
    NCType.DOUBLE: np.dtype('float64'),
    NCType.CHAR: np.dtype('S1'),
    NCType.STRING: np.dtype('O'),
}


class NCStatus:
    """netCDF library status codes used by the backends."""

    NOERR = 0
    EBADID = -33
    EPERM = -37
    ENOTINDEFINE = -38
    EINDEFINE = -39
    EINVALCOORDS = -40
    ENAMEINUSE = -42
    ENOTATT = -43
    EBADTYPE = -45
    EBADDIM = -46
    ENOTVAR = -49
    ECHAR = -56
    EEDGE = -57
    ESTRIDE = -58
    ENOTNC4 = -111
    ELATEFILL = -122
    EUNKNOWN = -1

    MESSAGES: Dict[int, str] = {
        NOERR: 'No error',
        EBADID: 'NetCDF: Not a valid ID',
        EPERM: 'NetCDF: Write to read only',
        ENOTINDEFINE: 'NetCDF: Operation not allowed in data mode',
        EINDEFINE: 'NetCDF: Operation not allowed in define mode',
        EINVALCOORDS: 'NetCDF: Index exceeds dimension bound',
        ENAMEINUSE: 'NetCDF: String match to name in use',
        ENOTATT: 'NetCDF: Attribute not found',
        EBADTYPE: 'NetCDF: Not a valid data type or _FillValue type mismatch',
        EBADDIM: 'NetCDF: Invalid dimension ID or name',
        ENOTVAR: 'NetCDF: Variable not found',
        ECHAR: 'NetCDF: Attempt to convert between text & numbers',
        EEDGE: 'NetCDF: Start+count exceeds dimension bound',
        ESTRIDE: 'NetCDF: Illegal stride',
        ENOTNC4: 'NetCDF: Attempting netcdf-4 operation on netcdf-3 file',
        ELATEFILL: 'NetCDF: Attempt to define fill value when data already exists.',
        EUNKNOWN: 'NetCDF: Unknown error',
    }

    @classmethod
    def strerror(cls, code: int) -> str:
        """Message for a status code, like ``nc_strerror``."""
        return cls.MESSAGES.get(code, f'Unknown netCDF error code {code}')

    @classmethod
    def from_message(cls, message: str) -> int:
        """Recover a status code from a library message, ``EUNKNOWN`` if none matches."""
        for code, text in cls.MESSAGES.items():
            if code != cls.NOERR and text in message:
                return code
        return cls.EUNKNOWN


class FileFormats:
    """Container formats accepted when creating a dataset."""

    NETCDF4 = 'netcdf4'
    NETCDF4_CLASSIC = 'netcdf4_classic'
    NETCDF3_CLASSIC = 'netcdf3_classic'
    NETCDF3_64BIT_OFFSET = 'netcdf3_64bit_offset'

    NETCDF4_PYTHON_NAMES: Dict[str, str] = {
        NETCDF4: 'NETCDF4',
        NETCDF4_CLASSIC: 'NETCDF4_CLASSIC',
        NETCDF3_CLASSIC: 'NETCDF3_CLASSIC',
        NETCDF3_64BIT_OFFSET: 'NETCDF3_64BIT_OFFSET',
    }

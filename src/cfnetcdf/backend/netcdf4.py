# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Storage backend on top of netCDF4-python.

netCDF4-python addresses dimensions outer-to-inner (C order); this adapter
reverses every dimension list and transposes every array so that callers
see the innermost-first contract of ``StorageBackend``. Automatic masking,
scaling and char-to-string conversion are disabled: the raw stored values
reach the CF pipeline unchanged.

Variables are identified by name and dimensions by name; ``GLOBAL``
addresses the dataset itself.
"""

import logging
from pathlib import Path
from typing import Any, Hashable, List, Optional, Sequence, Tuple, Union

import netCDF4
import numpy as np

from cfnetcdf.backend.base import StorageBackend, VarInfo
from cfnetcdf.core.constants import GLOBAL, CFAttributeNames, FileFormats, NCStatus, NCType
from cfnetcdf.core.exceptions import BackendError, ConfigurationError, cfnetcdf_error_handler
from cfnetcdf.core.mixins import LoggingMixin

logger = logging.getLogger(__name__)

_OPEN_MODES = {
    'r': 'r',
    'a': 'a',
    'c': 'w',
    'w': 'w',
}

_NC4_TYPES = {
    NCType.BYTE: 'i1',
    NCType.UBYTE: 'u1',
    NCType.SHORT: 'i2',
    NCType.USHORT: 'u2',
    NCType.INT: 'i4',
    NCType.UINT: 'u4',
    NCType.INT64: 'i8',
    NCType.UINT64: 'u8',
    NCType.FLOAT: 'f4',
    NCType.DOUBLE: 'f8',
    NCType.CHAR: 'S1',
    NCType.STRING: str,
}


def _reversed(values: Sequence) -> tuple:
    return tuple(values)[::-1]


def _c_order_slices(
    start: Sequence[int], count: Sequence[int], stride: Sequence[int]
) -> Tuple[slice, ...]:
    slices = []
    for s, c, st in zip(_reversed(start), _reversed(count), _reversed(stride)):
        slices.append(slice(s, s + (c - 1) * st + 1, st) if c > 0 else slice(s, s))
    return tuple(slices)


class NetCDF4Backend(StorageBackend, LoggingMixin):
    """
    Adapter from ``netCDF4.Dataset`` to ``StorageBackend``.

    Args:
        dataset: An open ``netCDF4.Dataset``
        path: File name, for logs and reprs
    """

    def __init__(self, dataset: 'netCDF4.Dataset', path: str = ''):
        self._ds = dataset
        self.path = path
        self._ds.set_auto_maskandscale(False)
        self._ds.set_auto_chartostring(False)

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        mode: str = 'r',
        format: str = FileFormats.NETCDF4,
    ) -> 'NetCDF4Backend':
        """
        Open or create a file.

        Args:
            path: File name or OPeNDAP URL
            mode: ``'r'`` read-only, ``'a'`` append, ``'c'``/``'w'`` create (clobber)
            format: One of the ``FileFormats`` names (only used on create)

        Raises:
            ConfigurationError: Unknown mode or format
            BackendError: The file cannot be opened or created
        """
        if mode not in _OPEN_MODES:
            raise ConfigurationError(f"Unknown mode {mode!r}, expected one of {sorted(_OPEN_MODES)}")
        nc_format = FileFormats.NETCDF4_PYTHON_NAMES.get(format.lower())
        if nc_format is None:
            raise ConfigurationError(f"Unknown format {format}")

        with cfnetcdf_error_handler(f"opening {path}", logger):
            if _OPEN_MODES[mode] == 'w':
                ds = netCDF4.Dataset(str(path), 'w', clobber=True, format=nc_format)
            else:
                ds = netCDF4.Dataset(str(path), _OPEN_MODES[mode])
        logger.debug(f"Opened {path} (mode={mode}, format={ds.data_model})")
        return cls(ds, str(path))

    # -- helpers -------------------------------------------------------------

    def _var(self, varid: Hashable) -> 'netCDF4.Variable':
        try:
            var = self._ds.variables[varid]
        except KeyError:
            raise BackendError.from_code(NCStatus.ENOTVAR) from None
        var.set_auto_maskandscale(False)
        var.set_auto_chartostring(False)
        return var

    def _target(self, varid: Hashable):
        return self._ds if varid == GLOBAL else self._var(varid)

    @staticmethod
    def _nctype(var: 'netCDF4.Variable') -> NCType:
        if var.dtype is str:
            return NCType.STRING
        return NCType.from_any(var.dtype)

    # -- catalog -------------------------------------------------------------

    def inq_varid(self, name: str) -> str:
        if name not in self._ds.variables:
            raise BackendError.from_code(NCStatus.ENOTVAR)
        return name

    def inq_varids(self) -> List[str]:
        return list(self._ds.variables)

    def inq_var(self, varid: Hashable) -> VarInfo:
        var = self._var(varid)
        return VarInfo(var.name, self._nctype(var), _reversed(var.dimensions))

    def inq_dimlen(self, dimid: Hashable) -> int:
        return len(self._dim(dimid))

    def inq_dimname(self, dimid: Hashable) -> str:
        return self._dim(dimid).name

    def inq_dimid(self, name: str) -> str:
        self._dim(name)
        return name

    def inq_dimids(self) -> List[str]:
        return list(self._ds.dimensions)

    def _dim(self, dimid: Hashable) -> 'netCDF4.Dimension':
        try:
            return self._ds.dimensions[dimid]
        except KeyError:
            raise BackendError.from_code(NCStatus.EBADDIM) from None

    # -- data ----------------------------------------------------------------

    def get_var(self, varid: Hashable) -> np.ndarray:
        var = self._var(varid)
        with cfnetcdf_error_handler(f"reading {varid!r}", self.logger):
            return np.asarray(var[...]).T

    def put_var(self, varid: Hashable, data: np.ndarray) -> None:
        var = self._var(varid)
        with cfnetcdf_error_handler(f"writing {varid!r}", self.logger):
            var[...] = np.asarray(data).T

    def get_var1(self, varid: Hashable, index: Sequence[int]) -> Any:
        var = self._var(varid)
        with cfnetcdf_error_handler(f"reading {varid!r}{list(index)}", self.logger):
            value = np.asarray(var[_reversed(index) + (Ellipsis,)])
        return value.reshape(())[()]

    def put_var1(self, varid: Hashable, index: Sequence[int], value: Any) -> None:
        var = self._var(varid)
        with cfnetcdf_error_handler(f"writing {varid!r}{list(index)}", self.logger):
            var[_reversed(index) + (Ellipsis,)] = value

    def get_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
    ) -> np.ndarray:
        var = self._var(varid)
        if 0 in count:
            return np.empty(tuple(count), dtype=self._nctype(var).dtype)
        slices = _c_order_slices(start, count, stride)
        with cfnetcdf_error_handler(f"reading {varid!r}", self.logger):
            data = np.asarray(var[slices + (Ellipsis,)])
        return data.reshape(_reversed(count)).T

    def put_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
        data: np.ndarray,
    ) -> None:
        var = self._var(varid)
        if 0 in count:
            return
        slices = _c_order_slices(start, count, stride)
        with cfnetcdf_error_handler(f"writing {varid!r}", self.logger):
            var[slices + (Ellipsis,)] = np.asarray(data).T

    # -- attributes ----------------------------------------------------------

    def get_att(self, varid: Hashable, name: str) -> Any:
        target = self._target(varid)
        if name not in target.ncattrs():
            raise BackendError.from_code(NCStatus.ENOTATT)
        with cfnetcdf_error_handler(f"reading attribute {name!r}", self.logger):
            return target.getncattr(name)

    def put_att(self, varid: Hashable, name: str, value: Any) -> None:
        target = self._target(varid)
        if name == CFAttributeNames.FILL_VALUE and varid != GLOBAL:
            # netCDF4-python only sets the fill value through createVariable
            raise BackendError(
                NCStatus.ELATEFILL,
                f"{NCStatus.strerror(NCStatus.ELATEFILL)} Pass fill_value to "
                f"def_var instead of setting {name} on {target.name!r}",
            )
        with cfnetcdf_error_handler(f"writing attribute {name!r}", self.logger):
            target.setncattr(name, value)

    def list_atts(self, varid: Hashable) -> List[str]:
        return list(self._target(varid).ncattrs())

    # -- modes and definitions -----------------------------------------------

    def redef(self) -> None:
        # netCDF4-python enters and leaves define mode around each call itself
        self.logger.debug(f"redef on {self.path} is managed by netCDF4-python")

    def enddef(self) -> None:
        self.logger.debug(f"enddef on {self.path} is managed by netCDF4-python")

    def def_dim(self, name: str, length: int) -> str:
        with cfnetcdf_error_handler(f"defining dimension {name!r}", self.logger):
            self._ds.createDimension(name, length)
        return name

    def def_var(
        self,
        name: str,
        nctype: NCType,
        dimids: Sequence[Hashable],
        *,
        chunksizes: Optional[Sequence[int]] = None,
        shuffle: bool = False,
        deflate_level: Optional[int] = None,
        checksum: Optional[str] = None,
        fill_value: Any = None,
    ) -> str:
        options = {}
        if chunksizes is not None:
            options['chunksizes'] = _reversed(chunksizes)
        if deflate_level is not None:
            options['zlib'] = deflate_level > 0
            options['complevel'] = deflate_level
        if shuffle:
            options['shuffle'] = True
        if checksum == 'fletcher32':
            options['fletcher32'] = True
        if fill_value is not None:
            options['fill_value'] = fill_value
        with cfnetcdf_error_handler(f"defining variable {name!r}", self.logger):
            self._ds.createVariable(name, _NC4_TYPES[nctype], _reversed(dimids), **options)
        return name

    def inq_var_chunking(self, varid: Hashable) -> Tuple[str, Optional[Tuple[int, ...]]]:
        chunking = self._var(varid).chunking()
        if chunking == 'contiguous' or chunking is None:
            return 'contiguous', None
        return 'chunked', _reversed(chunking)

    def inq_var_deflate(self, varid: Hashable) -> Tuple[bool, bool, int]:
        filters = self._var(varid).filters() or {}
        return (
            bool(filters.get('shuffle', False)),
            bool(filters.get('zlib', False)),
            int(filters.get('complevel', 0)),
        )

    def inq_var_fletcher32(self, varid: Hashable) -> str:
        filters = self._var(varid).filters() or {}
        return 'fletcher32' if filters.get('fletcher32', False) else 'nochecksum'

    # -- lifecycle -----------------------------------------------------------

    def sync(self) -> None:
        with cfnetcdf_error_handler(f"syncing {self.path}", self.logger):
            self._ds.sync()

    def close(self) -> None:
        with cfnetcdf_error_handler(f"closing {self.path}", self.logger):
            self._ds.close()

    @property
    def description(self) -> str:
        return f"netCDF4:{self.path}"

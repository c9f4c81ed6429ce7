# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
In-memory storage backend.

Keeps every variable as a numpy array shaped innermost-first and enforces
the same define/data mode rules and edge checks as the netCDF library for
classic-model files. Used for tests and for scratch datasets that never
touch disk.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from cfnetcdf.backend.base import StorageBackend, VarInfo
from cfnetcdf.core.constants import GLOBAL, NCStatus, NCType
from cfnetcdf.core.exceptions import BackendError
from cfnetcdf.core.mixins import LoggingMixin


@dataclass
class _MemoryVariable:
    name: str
    nctype: NCType
    dimids: Tuple[int, ...]
    data: np.ndarray
    attributes: Dict[str, Any] = field(default_factory=dict)
    chunksizes: Optional[Tuple[int, ...]] = None
    shuffle: bool = False
    deflate_level: Optional[int] = None
    checksum: Optional[str] = None


def _default_fill(nctype: NCType) -> Any:
    if nctype is NCType.CHAR:
        return b'\x00'
    if nctype is NCType.STRING:
        return ''
    return 0


class InMemoryBackend(StorageBackend, LoggingMixin):
    """
    numpy-backed storage engine.

    Args:
        is_define: Start in define mode (True for a new dataset)
        read_only: Reject every mutating call with ``EPERM``

    Attributes:
        calls: Number of calls per backend method, for inspection in tests
    """

    def __init__(self, is_define: bool = True, read_only: bool = False):
        self.is_define = is_define
        self.read_only = read_only
        self.closed = False
        self.calls: Counter = Counter()
        self._dims: List[Tuple[str, int]] = []
        self._vars: List[_MemoryVariable] = []
        self._global_attributes: Dict[str, Any] = {}

    # -- helpers -------------------------------------------------------------

    def _touch(self, method: str) -> None:
        self.calls[method] += 1
        if self.closed:
            raise BackendError.from_code(NCStatus.EBADID)

    def _require_writable(self) -> None:
        if self.read_only:
            raise BackendError.from_code(NCStatus.EPERM)

    def _require_define(self) -> None:
        if not self.is_define:
            raise BackendError.from_code(NCStatus.ENOTINDEFINE)

    def _require_data(self) -> None:
        if self.is_define:
            raise BackendError.from_code(NCStatus.EINDEFINE)

    def _var(self, varid: Hashable) -> _MemoryVariable:
        if not isinstance(varid, int) or not 0 <= varid < len(self._vars):
            raise BackendError.from_code(NCStatus.ENOTVAR)
        return self._vars[varid]

    def _attributes(self, varid: Hashable) -> Dict[str, Any]:
        if varid == GLOBAL:
            return self._global_attributes
        return self._var(varid).attributes

    def _convert(self, var: _MemoryVariable, data: Any) -> np.ndarray:
        data = np.asarray(data)
        if var.nctype is NCType.CHAR and data.dtype.kind not in ('S', 'U', 'O'):
            raise BackendError.from_code(NCStatus.ECHAR)
        if not var.nctype.is_text and data.dtype.kind in ('S', 'U'):
            raise BackendError.from_code(NCStatus.ECHAR)
        return data.astype(var.nctype.dtype)

    def _slices(
        self,
        var: _MemoryVariable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
    ) -> Tuple[slice, ...]:
        ndim = len(var.dimids)
        if not len(start) == len(count) == len(stride) == ndim:
            raise BackendError.from_code(NCStatus.EINVALCOORDS)
        slices = []
        for dimid, s, c, st in zip(var.dimids, start, count, stride):
            length = self._dims[dimid][1]
            if st <= 0:
                raise BackendError.from_code(NCStatus.ESTRIDE)
            if s < 0 or s > length or (c > 0 and s == length):
                raise BackendError.from_code(NCStatus.EINVALCOORDS)
            if c < 0 or (c > 0 and s + (c - 1) * st >= length):
                raise BackendError.from_code(NCStatus.EEDGE)
            slices.append(slice(s, s + (c - 1) * st + 1, st) if c > 0 else slice(s, s))
        return tuple(slices)

    # -- catalog -------------------------------------------------------------

    def inq_varid(self, name: str) -> int:
        self._touch('inq_varid')
        for varid, var in enumerate(self._vars):
            if var.name == name:
                return varid
        raise BackendError.from_code(NCStatus.ENOTVAR)

    def inq_varids(self) -> List[int]:
        self._touch('inq_varids')
        return list(range(len(self._vars)))

    def inq_var(self, varid: Hashable) -> VarInfo:
        self._touch('inq_var')
        var = self._var(varid)
        return VarInfo(var.name, var.nctype, var.dimids)

    def inq_dimlen(self, dimid: Hashable) -> int:
        self._touch('inq_dimlen')
        return self._dim(dimid)[1]

    def inq_dimname(self, dimid: Hashable) -> str:
        self._touch('inq_dimname')
        return self._dim(dimid)[0]

    def inq_dimid(self, name: str) -> int:
        self._touch('inq_dimid')
        for dimid, (dimname, _) in enumerate(self._dims):
            if dimname == name:
                return dimid
        raise BackendError.from_code(NCStatus.EBADDIM)

    def inq_dimids(self) -> List[int]:
        self._touch('inq_dimids')
        return list(range(len(self._dims)))

    def _dim(self, dimid: Hashable) -> Tuple[str, int]:
        if not isinstance(dimid, int) or not 0 <= dimid < len(self._dims):
            raise BackendError.from_code(NCStatus.EBADDIM)
        return self._dims[dimid]

    # -- data ----------------------------------------------------------------

    def get_var(self, varid: Hashable) -> np.ndarray:
        self._touch('get_var')
        self._require_data()
        return self._var(varid).data.copy()

    def put_var(self, varid: Hashable, data: np.ndarray) -> None:
        self._touch('put_var')
        self._require_writable()
        self._require_data()
        var = self._var(varid)
        converted = self._convert(var, data)
        if converted.shape != var.data.shape:
            raise BackendError.from_code(NCStatus.EEDGE)
        var.data[...] = converted

    def get_var1(self, varid: Hashable, index: Sequence[int]) -> Any:
        self._touch('get_var1')
        self._require_data()
        var = self._var(varid)
        slices = self._slices(var, index, [1] * len(index), [1] * len(index))
        return var.data[slices + (Ellipsis,)].reshape(()).copy()[()]

    def put_var1(self, varid: Hashable, index: Sequence[int], value: Any) -> None:
        self._touch('put_var1')
        self._require_writable()
        self._require_data()
        var = self._var(varid)
        slices = self._slices(var, index, [1] * len(index), [1] * len(index))
        var.data[slices + (Ellipsis,)] = self._convert(var, value)

    def get_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
    ) -> np.ndarray:
        self._touch('get_vars')
        self._require_data()
        var = self._var(varid)
        slices = self._slices(var, start, count, stride)
        return np.array(var.data[slices + (Ellipsis,)])

    def put_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
        data: np.ndarray,
    ) -> None:
        self._touch('put_vars')
        self._require_writable()
        self._require_data()
        var = self._var(varid)
        slices = self._slices(var, start, count, stride)
        converted = self._convert(var, data)
        if converted.shape != tuple(count):
            raise BackendError.from_code(NCStatus.EEDGE)
        var.data[slices + (Ellipsis,)] = converted

    # -- attributes ----------------------------------------------------------

    def get_att(self, varid: Hashable, name: str) -> Any:
        self._touch('get_att')
        attributes = self._attributes(varid)
        if name not in attributes:
            raise BackendError.from_code(NCStatus.ENOTATT)
        return attributes[name]

    def put_att(self, varid: Hashable, name: str, value: Any) -> None:
        self._touch('put_att')
        self._require_writable()
        self._require_define()
        attributes = self._attributes(varid)
        if name == '_FillValue' and varid != GLOBAL:
            value = np.asarray(value, dtype=self._var(varid).nctype.dtype)[()]
        attributes[name] = value

    def list_atts(self, varid: Hashable) -> List[str]:
        self._touch('list_atts')
        return list(self._attributes(varid))

    # -- modes and definitions -----------------------------------------------

    def redef(self) -> None:
        self._touch('redef')
        self._require_writable()
        if self.is_define:
            raise BackendError.from_code(NCStatus.EINDEFINE)
        self.is_define = True

    def enddef(self) -> None:
        self._touch('enddef')
        if not self.is_define:
            raise BackendError.from_code(NCStatus.ENOTINDEFINE)
        self.is_define = False

    def def_dim(self, name: str, length: int) -> int:
        self._touch('def_dim')
        self._require_writable()
        self._require_define()
        if any(dimname == name for dimname, _ in self._dims):
            raise BackendError.from_code(NCStatus.ENAMEINUSE)
        self._dims.append((name, int(length)))
        return len(self._dims) - 1

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
    ) -> int:
        self._touch('def_var')
        self._require_writable()
        self._require_define()
        if any(var.name == name for var in self._vars):
            raise BackendError.from_code(NCStatus.ENAMEINUSE)
        shape = tuple(self._dim(dimid)[1] for dimid in dimids)
        fill = _default_fill(nctype) if fill_value is None else fill_value
        data = np.full(shape, fill, dtype=nctype.dtype)
        var = _MemoryVariable(
            name=name,
            nctype=nctype,
            dimids=tuple(dimids),
            data=data,
            chunksizes=tuple(chunksizes) if chunksizes is not None else None,
            shuffle=shuffle,
            deflate_level=deflate_level,
            checksum=checksum,
        )
        if fill_value is not None:
            var.attributes['_FillValue'] = np.asarray(fill_value, dtype=nctype.dtype)[()]
        self._vars.append(var)
        self.logger.debug(f"Defined variable {name!r} {nctype.value}{shape}")
        return len(self._vars) - 1

    def inq_var_chunking(self, varid: Hashable) -> Tuple[str, Optional[Tuple[int, ...]]]:
        self._touch('inq_var_chunking')
        var = self._var(varid)
        if var.chunksizes is None:
            return 'contiguous', None
        return 'chunked', var.chunksizes

    def inq_var_deflate(self, varid: Hashable) -> Tuple[bool, bool, int]:
        self._touch('inq_var_deflate')
        var = self._var(varid)
        deflate = var.deflate_level is not None and var.deflate_level > 0
        return var.shuffle, deflate, var.deflate_level or 0

    def inq_var_fletcher32(self, varid: Hashable) -> str:
        self._touch('inq_var_fletcher32')
        var = self._var(varid)
        return 'fletcher32' if var.checksum == 'fletcher32' else 'nochecksum'

    # -- lifecycle -----------------------------------------------------------

    def sync(self) -> None:
        self._touch('sync')

    def close(self) -> None:
        self._touch('close')
        self.closed = True

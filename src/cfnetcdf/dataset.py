# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Dataset facade.

Opens or creates a dataset on a storage backend, owns the shared
define/data mode state and hands out raw and CF-decoding variable handles.

Example:
    >>> with Dataset("sst.nc", "c") as ds:
    ...     ds.def_dim("time", 3)
    ...     v = ds.def_var("time", "double", ("time",))
    ...     v.attrib["units"] = "days since 2000-01-01 00:00:00"
    ...     ds.variable("time")[:] = [0.0, 1.0, 2.0]
    >>> with Dataset("sst.nc") as ds:
    ...     ds["time"][0]
    numpy.datetime64('2000-01-01T00:00:00.000')
"""

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from cfnetcdf.attributes import Attributes, format_attributes
from cfnetcdf.backend.base import StorageBackend
from cfnetcdf.backend.netcdf4 import NetCDF4Backend
from cfnetcdf.cf import CFVariable
from cfnetcdf.core.constants import GLOBAL, FileFormats, NCType
from cfnetcdf.core.exceptions import ConfigurationError
from cfnetcdf.core.mixins import ConfigMixin, LoggingMixin
from cfnetcdf.mode import DefineModeState
from cfnetcdf.variable import RawVariable

_CREATE_MODES = ('c', 'w')
_ALL_MODES = ('r', 'a') + _CREATE_MODES


class Dataset(LoggingMixin, ConfigMixin):
    """
    An open dataset.

    Args:
        path: File name or OPeNDAP URL (label only when ``backend`` is given)
        mode: ``'r'`` read-only, ``'a'`` append, ``'c'``/``'w'`` create (clobber)
        format: ``netcdf4`` (default from config), ``netcdf4_classic``,
            ``netcdf3_classic`` or ``netcdf3_64bit_offset``; used on create
        backend: Ready storage backend; no file is opened when given
        config: ``CFConfig``, dict or None

    Raises:
        ConfigurationError: Unknown mode or format
        BackendError: The file cannot be opened or created
    """

    def __init__(
        self,
        path: Union[str, Path] = '',
        mode: str = 'r',
        format: Optional[str] = None,
        *,
        backend: Optional[StorageBackend] = None,
        config: Any = None,
    ):
        self.config = config
        if mode not in _ALL_MODES:
            raise ConfigurationError(f"Unknown mode {mode!r}, expected one of {list(_ALL_MODES)}")
        format = (format or self.config.default_format).lower()
        if format not in FileFormats.NETCDF4_PYTHON_NAMES:
            raise ConfigurationError(f"Unknown format {format}")

        self.path = str(path)
        self.format = format
        if backend is None:
            backend = NetCDF4Backend.open(path, mode, format)
        self.backend = backend
        self.mode = DefineModeState(backend, is_define=mode in _CREATE_MODES)
        self.attrib = Attributes(backend, GLOBAL, self.mode)
        self._closed = False
        self.logger.debug(f"Dataset {self.path or backend.description} ready (mode={mode})")

    # -- context manager -----------------------------------------------------

    def __enter__(self) -> 'Dataset':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- definitions ---------------------------------------------------------

    def def_dim(self, name: str, length: int) -> None:
        """Define a dimension ``name`` of size ``length``."""
        self.mode.ensure_define()
        self.backend.def_dim(name, length)

    def def_var(
        self,
        name: str,
        vtype: Any,
        dimnames: Sequence[str] = (),
        *,
        chunksizes: Optional[Sequence[int]] = None,
        deflate_level: Optional[int] = None,
        shuffle: bool = False,
        checksum: Optional[str] = None,
        fill_value: Any = None,
    ) -> CFVariable:
        """
        Define a variable and return it as a ``CFVariable``.

        Args:
            name: Variable name
            vtype: Element type: netCDF type name, numpy dtype or ``str``
            dimnames: Dimension names, outer-to-inner; ``()`` for a scalar
            chunksizes: Chunk size per dimension, outer-to-inner
            deflate_level: 0 (no compression) to 9 (maximum compression)
            shuffle: Enable the shuffle filter
            checksum: ``'fletcher32'`` or ``'nochecksum'``
            fill_value: Value stored as ``_FillValue``

        Chunking, compression and checksums need a netCDF-4 container.
        """
        nctype = NCType.from_any(vtype)
        self.mode.ensure_define()
        dimids = [self.backend.inq_dimid(dimname) for dimname in reversed(tuple(dimnames))]
        self.backend.def_var(
            name,
            nctype,
            dimids,
            chunksizes=tuple(reversed(chunksizes)) if chunksizes is not None else None,
            shuffle=shuffle,
            deflate_level=deflate_level,
            checksum=checksum,
            fill_value=fill_value,
        )
        self.logger.debug(f"Defined {name} {nctype.value}{tuple(dimnames)}")
        return self[name]

    # -- variables -----------------------------------------------------------

    def keys(self) -> List[str]:
        """Names of all variables."""
        return [self.backend.inq_var(varid).name for varid in self.backend.inq_varids()]

    def __contains__(self, name: object) -> bool:
        return name in self.keys()

    def __iter__(self) -> Iterator[Tuple[str, CFVariable]]:
        for name in self.keys():
            yield name, self[name]

    def __len__(self) -> int:
        return len(self.keys())

    def variable(self, name: str) -> RawVariable:
        """Variable ``name`` without CF decoding."""
        return RawVariable(self.backend, self.backend.inq_varid(name), self.mode)

    def __getitem__(self, name: str) -> CFVariable:
        """Variable ``name`` with CF decoding on read and encoding on write."""
        return CFVariable(self.variable(name), config=self.config)

    @property
    def dimensions(self) -> Dict[str, int]:
        """Dimension name to length, in definition order."""
        return {
            self.backend.inq_dimname(dimid): self.backend.inq_dimlen(dimid)
            for dimid in self.backend.inq_dimids()
        }

    # -- lifecycle -----------------------------------------------------------

    def sync(self) -> None:
        """Write all pending changes to storage."""
        self.backend.sync()

    def close(self) -> None:
        """Close the dataset; pending changes are written. Closing twice is a no-op."""
        if self._closed:
            return
        self.backend.close()
        self._closed = True
        self.logger.debug(f"Closed {self.path or self.backend.description}")

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        lines = [f"Dataset: {self.path or self.backend.description}", "", "Variables"]
        for name in self.keys():
            lines.append(repr(self.variable(name)))
            lines.append("")
        lines.append("Global attributes")
        attributes = format_attributes(self.attrib)
        if attributes:
            lines.append(attributes)
        return "\n".join(lines)

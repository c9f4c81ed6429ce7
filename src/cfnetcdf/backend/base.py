# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Abstract storage backend.

The backend is column-major: every dimension list it takes or returns
(dimension ids, start, count, stride, array shapes, chunk sizes) is ordered
innermost-first, the reverse of the logical outer-to-inner order used by
variable handles. Failures are raised as ``BackendError`` with the status
code of the storage layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from cfnetcdf.core.constants import NCType


@dataclass(frozen=True)
class VarInfo:
    """
    Result of a variable inquiry.

    Attributes:
        name: Variable name
        nctype: Native element type
        dimids: Dimension ids, innermost-first
    """

    name: str
    nctype: NCType
    dimids: Tuple[Hashable, ...]


class StorageBackend(ABC):
    """Minimal contract the variable layer needs from a storage engine."""

    # -- catalog -------------------------------------------------------------

    @abstractmethod
    def inq_varid(self, name: str) -> Hashable:
        """Id of the variable called ``name``."""

    @abstractmethod
    def inq_varids(self) -> List[Hashable]:
        """Ids of all variables, in definition order."""

    @abstractmethod
    def inq_var(self, varid: Hashable) -> VarInfo:
        """Name, element type and (innermost-first) dimension ids of a variable."""

    @abstractmethod
    def inq_dimlen(self, dimid: Hashable) -> int:
        """Current length of a dimension."""

    @abstractmethod
    def inq_dimname(self, dimid: Hashable) -> str:
        """Name of a dimension."""

    @abstractmethod
    def inq_dimid(self, name: str) -> Hashable:
        """Id of the dimension called ``name``."""

    @abstractmethod
    def inq_dimids(self) -> List[Hashable]:
        """Ids of all dimensions, in definition order."""

    # -- data ----------------------------------------------------------------

    @abstractmethod
    def get_var(self, varid: Hashable) -> np.ndarray:
        """Whole variable, shaped innermost-first."""

    @abstractmethod
    def put_var(self, varid: Hashable, data: np.ndarray) -> None:
        """Write the whole variable from an innermost-first array."""

    @abstractmethod
    def get_var1(self, varid: Hashable, index: Sequence[int]) -> Any:
        """Single element at an innermost-first zero-based index."""

    @abstractmethod
    def put_var1(self, varid: Hashable, index: Sequence[int], value: Any) -> None:
        """Write a single element at an innermost-first zero-based index."""

    @abstractmethod
    def get_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
    ) -> np.ndarray:
        """Strided block, shaped ``count``."""

    @abstractmethod
    def put_vars(
        self,
        varid: Hashable,
        start: Sequence[int],
        count: Sequence[int],
        stride: Sequence[int],
        data: np.ndarray,
    ) -> None:
        """Write a strided block from an array shaped ``count``."""

    # -- attributes ----------------------------------------------------------

    @abstractmethod
    def get_att(self, varid: Hashable, name: str) -> Any:
        """Attribute value; ``BackendError(ENOTATT)`` when absent."""

    @abstractmethod
    def put_att(self, varid: Hashable, name: str, value: Any) -> None:
        """
        Create or replace an attribute.

        ``InMemoryBackend`` accepts ``_FillValue`` at any time.
        ``NetCDF4Backend`` rejects it with ``ELATEFILL``; there the fill value
        must be passed to :meth:`def_var`.
        """

    @abstractmethod
    def list_atts(self, varid: Hashable) -> List[str]:
        """Attribute names in storage order."""

    # -- modes and definitions -----------------------------------------------

    @abstractmethod
    def redef(self) -> None:
        """Enter define mode."""

    @abstractmethod
    def enddef(self) -> None:
        """Leave define mode."""

    @abstractmethod
    def def_dim(self, name: str, length: int) -> Hashable:
        """Define a dimension and return its id."""

    @abstractmethod
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
    ) -> Hashable:
        """
        Define a variable over innermost-first dimension ids.

        ``chunksizes`` is innermost-first as well. Storage options can only
        be honored by containers that support them.
        """

    @abstractmethod
    def inq_var_chunking(self, varid: Hashable) -> Tuple[str, Optional[Tuple[int, ...]]]:
        """``('contiguous', None)`` or ``('chunked', innermost-first sizes)``."""

    @abstractmethod
    def inq_var_deflate(self, varid: Hashable) -> Tuple[bool, bool, int]:
        """``(shuffle, deflate, deflate_level)``."""

    @abstractmethod
    def inq_var_fletcher32(self, varid: Hashable) -> str:
        """``'fletcher32'`` or ``'nochecksum'``."""

    # -- lifecycle -----------------------------------------------------------

    @abstractmethod
    def sync(self) -> None:
        """Flush pending changes to storage."""

    @abstractmethod
    def close(self) -> None:
        """Release the storage handle."""

    @property
    def description(self) -> str:
        """Short label used in logs and reprs."""
        return self.__class__.__name__

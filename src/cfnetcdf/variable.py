# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Raw (undecoded) variable access.

``RawVariable`` is a strided view over one backend variable. It resolves
index keys with :mod:`cfnetcdf.indexing`, picks the cheapest transfer
(single element, whole variable or strided block) and converts between the
logical outer-to-inner order and the backend's innermost-first order.
No CF attribute is ever applied here.
"""

from typing import Any, Hashable, Optional, Tuple

import numpy as np

from cfnetcdf.attributes import Attributes, format_attributes
from cfnetcdf.backend.base import StorageBackend
from cfnetcdf.core.exceptions import DataTypeError, ShapeMismatchError
from cfnetcdf.core.mixins import LoggingMixin
from cfnetcdf.indexing import CanonicalRequest, canonical_request, squeeze_result
from cfnetcdf.mode import DefineModeState


class RawVariable(LoggingMixin):
    """
    Strided view over one variable of a storage backend.

    Args:
        backend: Storage backend holding the variable
        varid: Backend id of the variable
        mode: The dataset's shared define/data mode state
    """

    def __init__(self, backend: StorageBackend, varid: Hashable, mode: DefineModeState):
        self.backend = backend
        self.varid = varid
        self.mode = mode

        info = backend.inq_var(varid)
        self.name = info.name
        self.nctype = info.nctype
        self._dimids = info.dimids
        self.shape: Tuple[int, ...] = tuple(
            backend.inq_dimlen(dimid) for dimid in reversed(info.dimids)
        )
        self.attrib = Attributes(backend, varid, mode)

    # -- metadata ------------------------------------------------------------

    @property
    def dtype(self) -> np.dtype:
        return self.nctype.dtype

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return int(np.prod(self.shape, dtype=np.int64))

    def __len__(self) -> int:
        if not self.shape:
            raise TypeError("len() of unsized (scalar) variable")
        return self.shape[0]

    @property
    def dimnames(self) -> Tuple[str, ...]:
        """Dimension names, outer-to-inner."""
        return tuple(self.backend.inq_dimname(dimid) for dimid in reversed(self._dimids))

    def chunking(self) -> Tuple[str, Optional[Tuple[int, ...]]]:
        """Storage layout (``'contiguous'`` or ``'chunked'``) and chunk sizes, outer-to-inner."""
        storage, sizes = self.backend.inq_var_chunking(self.varid)
        if sizes is not None:
            sizes = tuple(reversed(sizes))
        return storage, sizes

    def deflate(self) -> Tuple[bool, bool, int]:
        """``(shuffle, deflate, deflate_level)`` compression settings."""
        return self.backend.inq_var_deflate(self.varid)

    def checksum(self) -> str:
        """``'fletcher32'`` or ``'nochecksum'``."""
        return self.backend.inq_var_fletcher32(self.varid)

    # -- reading -------------------------------------------------------------

    def __getitem__(self, key: Any) -> Any:
        request = canonical_request(self.shape, key)
        self.mode.ensure_data()

        if request.is_point:
            value = self.backend.get_var1(self.varid, request.start)
            return np.asarray(value, dtype=self.dtype)[()]

        if request.covers(self.shape):
            self.logger.debug(f"{self.name}: reading whole variable {self.shape}")
            data = self.backend.get_var(self.varid)
        else:
            self.logger.debug(
                f"{self.name}: reading start={request.start} count={request.count} "
                f"stride={request.stride}"
            )
            data = self.backend.get_vars(
                self.varid, request.start, request.count, request.stride
            )

        data = squeeze_result(np.asarray(data).T, request.squeeze)
        if data.ndim == 0:
            return data[()]
        return data

    # -- writing -------------------------------------------------------------

    def __setitem__(self, key: Any, data: Any) -> None:
        request = canonical_request(self.shape, key)
        values = self._prepare(data, request)
        self.mode.ensure_data()

        if request.is_point:
            self.backend.put_var1(self.varid, request.start, values)
        elif request.covers(self.shape):
            self.logger.debug(f"{self.name}: writing whole variable {self.shape}")
            self.backend.put_var(self.varid, values.T)
        else:
            self.logger.debug(
                f"{self.name}: writing start={request.start} count={request.count} "
                f"stride={request.stride}"
            )
            self.backend.put_vars(
                self.varid, request.start, request.count, request.stride, values.T
            )

    def resolve(self, key: Any, data_shape: Optional[Tuple[int, ...]] = None) -> CanonicalRequest:
        """
        Resolve an index key, optionally checking the shape of data to be written.

        Raises:
            IndexingError: Invalid key
            ShapeMismatchError: ``data_shape`` cannot be written to the selection
        """
        request = canonical_request(self.shape, key)
        if data_shape is not None:
            self._check_shape(tuple(data_shape), request)
        return request

    def _check_shape(self, shape: Tuple[int, ...], request: CanonicalRequest) -> None:
        size = int(np.prod(shape, dtype=np.int64))
        if request.is_point:
            if size != 1:
                raise ShapeMismatchError(
                    f"{self.name}: cannot write {shape} data to a single element"
                )
            return
        if len(shape) == 0 or (len(shape) == 1 and size == 1):
            return
        if shape in (request.shape, request.result_shape):
            return
        raise ShapeMismatchError(
            f"{self.name}: data shape {shape} does not match "
            f"selection shape {request.result_shape}"
        )

    def _prepare(self, data: Any, request: CanonicalRequest) -> Any:
        """Convert to the native type and bring to the request's logical shape."""
        self._check_shape(np.shape(data), request)
        array = self.convert(data)

        if request.is_point:
            return array.reshape(())[()]
        if array.ndim == 0 or (array.ndim == 1 and array.size == 1):
            # scalar fill
            return np.broadcast_to(array.reshape(()), request.shape)
        return array.reshape(request.shape)

    def convert(self, data: Any) -> np.ndarray:
        """
        Convert values to the variable's native element type.

        Floating-point values written to integer variables are rounded to the
        nearest integer.

        Raises:
            DataTypeError: Text written to a numeric variable or vice versa,
                non-finite values for an integer variable, values outside
                the range of an integer type, or multi-character
                strings for a char variable
        """
        array = np.asarray(data)
        dtype = self.dtype

        if self.nctype.is_text:
            if array.dtype.kind in 'biufcmM':
                raise DataTypeError(
                    f"{self.name}: cannot store {array.dtype} values in a "
                    f"{self.nctype.value} variable"
                )
            if dtype.kind == 'S' and _longest_text(array) > 1:
                raise DataTypeError(f"{self.name}: char elements hold a single character")
            return array.astype(dtype)

        if array.dtype.kind in 'SUmM':
            raise DataTypeError(
                f"{self.name}: cannot store {array.dtype} values in a "
                f"{self.nctype.value} variable"
            )
        if dtype.kind in 'iu' and array.dtype.kind in 'fcO':
            try:
                array = array.astype(np.float64)
            except (TypeError, ValueError) as e:
                raise DataTypeError(f"{self.name}: {e}") from e
            if not np.all(np.isfinite(array)):
                raise DataTypeError(
                    f"{self.name}: non-finite values cannot be stored as {self.nctype.value}"
                )
            array = np.rint(array)
        if dtype.kind in 'iu' and array.dtype.kind in 'iuf' and array.size:
            info = np.iinfo(dtype)
            if array.min() < info.min or array.max() > info.max:
                raise DataTypeError(
                    f"{self.name}: values outside [{info.min}, {info.max}] cannot be "
                    f"stored as {self.nctype.value}"
                )
        try:
            return array.astype(dtype)
        except (TypeError, ValueError) as e:
            raise DataTypeError(f"{self.name}: {e}") from e

    def __repr__(self) -> str:
        return describe_variable(self)


def describe_variable(var: Any) -> str:
    """Plain-text summary of a variable: name, shape, type, dimensions, attributes."""
    lines = [var.name]
    if var.shape:
        lines[0] += "  (" + " × ".join(str(n) for n in var.shape) + ")"
        lines.append(f"  Datatype:    {var.nctype.value}")
        lines.append("  Dimensions:  " + " × ".join(var.dimnames))
    lines.append("  Attributes:")
    attributes = format_attributes(var.attrib, indent="     ")
    if attributes:
        lines.append(attributes)
    return "\n".join(lines)


def _longest_text(array: np.ndarray) -> int:
    if array.size == 0:
        return 0
    if array.dtype.kind in 'SU':
        return int(np.char.str_len(array).max())
    return max(len(item) for item in array.ravel())

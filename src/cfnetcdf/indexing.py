# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Index normalization for strided variable access.

Turns a heterogeneous index tuple (integers, full slices, contiguous and
strided ranges) into one ``StridedRange`` per dimension plus a squeeze mask,
and packs those ranges into the start/count/stride request understood by a
column-major storage backend.

Supported index elements:
    - ``int``: a single position; the dimension is dropped from the result
    - ``slice(None)`` / ``Ellipsis``: the whole dimension
    - ``slice(lo, hi)``: positions ``lo .. hi-1``
    - ``slice(lo, hi, step)`` and ``range(lo, hi, step)``: strided positions
    - ``StridedRange(lo, hi, step)``: inclusive bounds, stop trimmed to the last
      selected position

Bounds are never clipped or wrapped: negative positions and stops past the
extent are errors, detected before any backend call.
"""

import numbers
from dataclasses import dataclass
from typing import Any, Sequence, Tuple

import numpy as np

from cfnetcdf.core.exceptions import (
    IndexOutOfBoundsError,
    InvalidStrideError,
    UnsupportedIndexKindError,
    require,
)

Shape = Tuple[int, ...]


def _is_integer(value: Any) -> bool:
    return isinstance(value, (numbers.Integral, np.integer)) and not isinstance(
        value, (bool, np.bool_)
    )


@dataclass(frozen=True)
class StridedRange:
    """
    Inclusive, zero-based range of positions along one dimension.

    ``stop`` is normalized to the last selected position, so
    ``StridedRange(0, 9, 2)`` and ``StridedRange(0, 8, 2)`` are equal.

    Attributes:
        start: First position
        stop: Last selected position (inclusive); below ``start`` when empty
        step: Distance between selected positions, always positive

    Raises:
        UnsupportedIndexKindError: A non-integer field
        InvalidStrideError: Zero or negative step
    """

    start: int
    stop: int
    step: int = 1

    def __post_init__(self):
        for name in ('start', 'stop', 'step'):
            value = getattr(self, name)
            require(
                _is_integer(value),
                f"StridedRange {name} must be an integer, got {value!r}",
                UnsupportedIndexKindError,
            )
            object.__setattr__(self, name, int(value))
        require(
            self.step > 0,
            f"Stride must be a positive integer, got {self.step}",
            InvalidStrideError,
        )
        if self.stop > self.start:
            last = self.start + (self.stop - self.start) // self.step * self.step
            object.__setattr__(self, 'stop', last)

    @property
    def count(self) -> int:
        """Number of selected positions, ``ceil((stop - start + 1) / step)``."""
        if self.stop < self.start:
            return 0
        return (self.stop - self.start) // self.step + 1

    def __len__(self) -> int:
        return self.count

    def positions(self) -> range:
        """The selected positions, in increasing order."""
        return range(self.start, self.stop + 1, self.step)


@dataclass(frozen=True)
class CanonicalRequest:
    """
    Start/count/stride triples in backend (innermost-first) order.

    Attributes:
        start: Zero-based first position per dimension
        count: Number of positions per dimension
        stride: Step per dimension
        squeeze: Per logical dimension, True when it was addressed by a scalar
    """

    start: Tuple[int, ...]
    count: Tuple[int, ...]
    stride: Tuple[int, ...]
    squeeze: Tuple[bool, ...]

    @classmethod
    def from_ranges(
        cls, ranges: Sequence[StridedRange], squeeze: Sequence[bool]
    ) -> 'CanonicalRequest':
        """Pack logical-order ranges into a backend-order request."""
        ordered = tuple(reversed(ranges))
        return cls(
            start=tuple(r.start for r in ordered),
            count=tuple(r.count for r in ordered),
            stride=tuple(r.step for r in ordered),
            squeeze=tuple(squeeze),
        )

    @property
    def shape(self) -> Shape:
        """Shape of the transferred block in logical order, before squeezing."""
        return tuple(reversed(self.count))

    @property
    def result_shape(self) -> Shape:
        """Shape after dropping every squeezed dimension."""
        return tuple(n for n, drop in zip(self.shape, self.squeeze) if not drop)

    @property
    def is_point(self) -> bool:
        """True when every dimension was addressed by a scalar."""
        return len(self.squeeze) > 0 and all(self.squeeze)

    def covers(self, shape: Shape) -> bool:
        """True when the request selects the whole variable without squeezing."""
        return (
            not any(self.squeeze)
            and self.shape == tuple(shape)
            and all(s == 0 for s in self.start)
            and all(s == 1 for s in self.stride)
        )


def _is_full(value: Any) -> bool:
    return isinstance(value, slice) and value == slice(None)


def expand_key(key: Any, ndim: int) -> Tuple[Any, ...]:
    """
    Bring an index key to exactly ``ndim`` elements.

    A non-tuple key becomes a 1-tuple, one ``Ellipsis`` expands to full
    slices and a short key is padded with full slices at the end.

    Raises:
        UnsupportedIndexKindError: For more indices than dimensions or
            more than one ``Ellipsis``
    """
    if not isinstance(key, tuple):
        key = (key,)
    if ndim == 0 and all(_is_full(k) or k is Ellipsis for k in key):
        return ()

    n_ellipsis = sum(1 for k in key if k is Ellipsis)
    if n_ellipsis > 1:
        raise UnsupportedIndexKindError("An index can only have a single ellipsis ('...')")
    if n_ellipsis == 1:
        pos = next(i for i, k in enumerate(key) if k is Ellipsis)
        fill = ndim - (len(key) - 1)
        if fill < 0:
            raise UnsupportedIndexKindError(
                f"Too many indices: variable has {ndim} dimensions, got {len(key) - 1}"
            )
        key = key[:pos] + (slice(None),) * fill + key[pos + 1:]

    if len(key) > ndim:
        raise UnsupportedIndexKindError(
            f"Too many indices: variable has {ndim} dimensions, got {len(key)}"
        )
    return key + (slice(None),) * (ndim - len(key))


def _resolve_slice(dim: int, extent: int, start, stop, step) -> StridedRange:
    if step is None:
        step = 1
    for name, value in (('start', start), ('stop', stop), ('step', step)):
        require(
            value is None or _is_integer(value),
            f"Dimension {dim}: slice {name} must be an integer, got {value!r}",
            UnsupportedIndexKindError,
        )
    require(step > 0, f"Dimension {dim}: stride must be positive, got {step}", InvalidStrideError)

    start = 0 if start is None else int(start)
    stop = extent if stop is None else int(stop)

    require(
        start >= 0 and stop >= 0,
        f"Dimension {dim}: negative range bound {start}:{stop} (extent {extent})",
        IndexOutOfBoundsError,
    )
    require(
        stop <= extent,
        f"Dimension {dim}: range stop {stop} exceeds extent {extent}",
        IndexOutOfBoundsError,
    )
    if start >= stop:
        require(
            start <= extent,
            f"Dimension {dim}: range start {start} exceeds extent {extent}",
            IndexOutOfBoundsError,
        )
        # empty selection
        return StridedRange(start, start - 1, int(step))
    return StridedRange(start, stop - 1, int(step))


def _resolve(dim: int, extent: int, index: Any) -> Tuple[StridedRange, bool]:
    if _is_integer(index):
        i = int(index)
        require(
            0 <= i < extent,
            f"Dimension {dim}: index {i} out of bounds for extent {extent}",
            IndexOutOfBoundsError,
        )
        return StridedRange(i, i, 1), True

    if isinstance(index, slice):
        return _resolve_slice(dim, extent, index.start, index.stop, index.step), False

    if isinstance(index, range):
        return _resolve_slice(dim, extent, index.start, index.stop, index.step), False

    if isinstance(index, StridedRange):
        # stop is already the last selected position
        if index.count > 0:
            require(
                index.start >= 0 and index.stop < extent,
                f"Dimension {dim}: range {index.start}..{index.stop} outside extent {extent}",
                IndexOutOfBoundsError,
            )
        else:
            require(
                0 <= index.start <= extent,
                f"Dimension {dim}: range start {index.start} outside extent {extent}",
                IndexOutOfBoundsError,
            )
        return index, False

    raise UnsupportedIndexKindError(
        f"Dimension {dim}: unsupported index {index!r} of type {type(index).__name__}"
    )


def normalize_indexes(
    shape: Sequence[int], key: Any
) -> Tuple[Tuple[StridedRange, ...], Tuple[bool, ...]]:
    """
    Resolve an index key against a shape.

    Args:
        shape: Dimension extents, outer-to-inner
        key: Index element or tuple of index elements

    Returns:
        Tuple of (ranges, squeeze), both in logical order

    Raises:
        UnsupportedIndexKindError: Element of an unsupported kind
        InvalidStrideError: Zero or negative step
        IndexOutOfBoundsError: Bound outside the dimension extent
    """
    key = expand_key(key, len(shape))
    ranges = []
    squeeze = []
    for dim, (extent, index) in enumerate(zip(shape, key)):
        resolved, drop = _resolve(dim, extent, index)
        ranges.append(resolved)
        squeeze.append(drop)
    return tuple(ranges), tuple(squeeze)


def canonical_request(shape: Sequence[int], key: Any) -> CanonicalRequest:
    """Normalize ``key`` and pack it into a backend-order request."""
    ranges, squeeze = normalize_indexes(shape, key)
    return CanonicalRequest.from_ranges(ranges, squeeze)


def squeeze_result(data: np.ndarray, squeeze: Sequence[bool]) -> np.ndarray:
    """
    Drop every dimension flagged in ``squeeze``.

    All flagged dimensions have length one; the result is 0-d when every
    dimension is flagged.
    """
    if not any(squeeze):
        return data
    kept = tuple(n for n, drop in zip(data.shape, squeeze) if not drop)
    return data.reshape(kept)

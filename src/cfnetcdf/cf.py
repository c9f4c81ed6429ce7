# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
CF convention decode/encode pipeline.

Reading applies, in this fixed order:
    1. mask every element bit-equal to ``_FillValue``
    2. multiply by ``scale_factor``, then add ``add_offset`` (not for text)
    3. convert ``<unit> since <date>`` values to timestamps

Writing applies the exact inverse:
    1. take the mask of a masked array (nothing is missing otherwise)
    2. convert timestamps to offsets
    3. store ``_FillValue`` at missing positions
    4. subtract ``add_offset``, then divide by ``scale_factor`` (not for text)
    5. convert to the native element type

Missing elements are never scaled, offset or time-converted. Attributes
are read again on every call, so edits made between calls take effect.
"""

import warnings
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np

from cfnetcdf.attributes import AttributeView, get_optional
from cfnetcdf.core.constants import CFAttributeNames, NCType
from cfnetcdf.core.exceptions import MissingFillValueError
from cfnetcdf.core.mixins import ConfigMixin, LoggingMixin
from cfnetcdf.timecodec import is_time_units, time_decode, time_encode
from cfnetcdf.variable import RawVariable, describe_variable


def _as_scalar(value: Any) -> Any:
    # attributes are stored as arrays; single-element ones act as scalars
    if value is not None and np.ndim(value) > 0 and np.size(value) == 1:
        return np.asarray(value).reshape(())[()]
    return value


@dataclass(frozen=True)
class CFAttributes:
    """Snapshot of the attributes that drive the pipeline; None when absent."""

    fill_value: Any = None
    scale_factor: Any = None
    add_offset: Any = None
    units: Any = None

    @classmethod
    def read(cls, attrib: AttributeView) -> 'CFAttributes':
        names = attrib.list_names()
        return cls(
            fill_value=_as_scalar(get_optional(attrib, names, CFAttributeNames.FILL_VALUE)),
            scale_factor=_as_scalar(get_optional(attrib, names, CFAttributeNames.SCALE_FACTOR)),
            add_offset=_as_scalar(get_optional(attrib, names, CFAttributeNames.ADD_OFFSET)),
            units=get_optional(attrib, names, CFAttributeNames.UNITS),
        )

    @property
    def has_scaling(self) -> bool:
        return self.scale_factor is not None or self.add_offset is not None

    @property
    def is_time(self) -> bool:
        return is_time_units(self.units)


def fill_mask(data: np.ndarray, fill_value: Any) -> np.ndarray:
    """
    Flag every element bit-equal to ``fill_value``.

    Floating-point data is compared on its bit pattern, so a NaN fill value
    matches NaN elements.
    """
    data = np.asarray(data)
    if data.dtype.kind == 'f':
        fill = np.asarray(fill_value, dtype=data.dtype)
        if np.isnan(fill):
            return np.isnan(data)
        bits = np.dtype(f'u{data.dtype.itemsize}')
        return np.asarray(data.view(bits) == fill.view(bits), dtype=bool)
    if data.dtype.kind == 'O':
        return np.asarray(data == fill_value, dtype=bool)
    return np.asarray(data == np.asarray(fill_value, dtype=data.dtype), dtype=bool)


class CFTransform(LoggingMixin, ConfigMixin):
    """
    Decode raw buffers on read and encode values on write for one variable.

    Args:
        attrib: Attribute view of the variable
        nctype: Native element type of the variable
        converter: Final conversion to the native type (defaults to ``astype``)
        config: ``CFConfig``, dict or None
        name: Variable name, for messages
    """

    def __init__(
        self,
        attrib: AttributeView,
        nctype: NCType,
        converter: Optional[Callable[[Any], np.ndarray]] = None,
        config: Any = None,
        name: str = '',
    ):
        self.attrib = attrib
        self.nctype = nctype
        self.converter = converter
        self.config = config
        self.name = name

    # -- read path -----------------------------------------------------------

    def decode(self, raw: Any) -> Any:
        """
        Apply masking, scaling/offset and time decoding to raw values.

        Returns:
            ``numpy.ma.MaskedArray`` for array input; for scalar input the
            decoded scalar, or ``numpy.ma.masked`` when it is missing
        """
        attrs = CFAttributes.read(self.attrib)
        data = np.asarray(raw)
        mask_and_scale = self.config.mask_and_scale

        if mask_and_scale and attrs.fill_value is not None:
            mask = fill_mask(data, attrs.fill_value)
        else:
            mask = np.zeros(data.shape, dtype=bool)

        values = data
        if mask_and_scale and attrs.has_scaling and not self.nctype.is_text:
            values = data.astype(np.float64)
            valid = ~mask
            if attrs.scale_factor is not None:
                values[valid] = values[valid] * attrs.scale_factor
            if attrs.add_offset is not None:
                values[valid] = values[valid] + attrs.add_offset

        if self.config.decode_times and attrs.is_time and not self.nctype.is_text:
            stamps = np.full(values.shape, np.datetime64('NaT'), dtype='datetime64[ms]')
            valid = ~mask
            stamps[valid] = time_decode(values[valid], attrs.units)
            values = stamps

        result = np.ma.MaskedArray(values, mask=mask)
        if result.ndim == 0:
            return result[()]
        return result

    # -- write path ----------------------------------------------------------

    def encode(self, value: Any) -> Any:
        """
        Apply the inverse pipeline to values about to be written.

        Returns:
            Array (or scalar, for scalar input) in the native element type

        Raises:
            MissingFillValueError: Masked elements, no ``_FillValue`` and the
                ``missing_without_fill`` policy is ``'raise'``
        """
        attrs = CFAttributes.read(self.attrib)
        data, mask = self._split_mask(value)
        scalar = data.ndim == 0
        if scalar:
            data = data.reshape(1)
            mask = mask.reshape(1)
        valid = ~mask
        mask_and_scale = self.config.mask_and_scale
        scaled = mask_and_scale and attrs.has_scaling and not self.nctype.is_text

        if self.config.decode_times and attrs.is_time and not self.nctype.is_text:
            x = np.zeros(data.shape, dtype=np.float64)
            if valid.any():
                x[valid] = time_encode(data[valid], attrs.units)
        elif self.nctype.is_text:
            x = self._convert(data)
        elif scaled:
            x = data.astype(np.float64)
        else:
            x = np.array(data, copy=True)

        if mask.any():
            x = self._substitute_fill(x, mask, attrs)

        if scaled:
            if attrs.add_offset is not None:
                x[valid] = x[valid] - attrs.add_offset
            if attrs.scale_factor is not None:
                x[valid] = x[valid] / attrs.scale_factor

        x = self._convert(x)
        if scalar:
            return x[0]
        return x

    def _split_mask(self, value: Any) -> Tuple[np.ndarray, np.ndarray]:
        if value is np.ma.masked:
            return np.zeros((), dtype=np.float64), np.ones((), dtype=bool)
        if isinstance(value, np.ma.MaskedArray):
            return np.asarray(value.data), np.ma.getmaskarray(value).copy()
        data = np.asarray(value)
        return data, np.zeros(data.shape, dtype=bool)

    def _substitute_fill(self, x: np.ndarray, mask: np.ndarray, attrs: CFAttributes) -> np.ndarray:
        if self.config.mask_and_scale and attrs.fill_value is not None:
            if not self.nctype.is_text:
                x = x.astype(np.result_type(x.dtype, np.asarray(attrs.fill_value).dtype))
            x[mask] = attrs.fill_value
            return x

        n_missing = int(mask.sum())
        message = (
            f"{self.name}: {n_missing} masked element(s) written but the variable "
            f"has no {CFAttributeNames.FILL_VALUE}; values are stored unchanged"
        )
        policy = self.config.missing_without_fill
        if policy == 'raise':
            raise MissingFillValueError(
                f"{self.name}: {n_missing} masked element(s) cannot be written without "
                f"a {CFAttributeNames.FILL_VALUE} attribute"
            )
        if policy == 'warn':
            self.logger.warning(message)
            warnings.warn(message, UserWarning, stacklevel=4)
        else:
            self.logger.debug(message)
        return x

    def _convert(self, x: Any) -> np.ndarray:
        if self.converter is not None:
            return self.converter(x)
        return np.asarray(x).astype(self.nctype.dtype)


class CFVariable(LoggingMixin):
    """
    Variable whose indexing honors the CF convention.

    * ``_FillValue`` elements come back masked (``numpy.ma``)
    * ``scale_factor`` and ``add_offset`` are applied
    * time variables (recognized by their ``units``) come back as
      ``datetime64[ms]``

    Writing applies the inverse. ``var`` gives access to the raw values.

    Args:
        var: The raw variable
        config: ``CFConfig``, dict or None
    """

    def __init__(self, var: RawVariable, config: Any = None):
        self.var = var
        self.transform = CFTransform(
            var.attrib, var.nctype, converter=var.convert, config=config, name=var.name
        )

    @property
    def attrib(self):
        return self.var.attrib

    @property
    def name(self) -> str:
        return self.var.name

    @property
    def nctype(self) -> NCType:
        return self.var.nctype

    @property
    def dtype(self) -> np.dtype:
        return self.var.dtype

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.var.shape

    @property
    def ndim(self) -> int:
        return self.var.ndim

    @property
    def size(self) -> int:
        return self.var.size

    @property
    def dimnames(self) -> Tuple[str, ...]:
        return self.var.dimnames

    def __len__(self) -> int:
        return len(self.var)

    def chunking(self):
        return self.var.chunking()

    def deflate(self):
        return self.var.deflate()

    def checksum(self) -> str:
        return self.var.checksum()

    def __getitem__(self, key: Any) -> Any:
        return self.transform.decode(self.var[key])

    def __setitem__(self, key: Any, data: Any) -> None:
        self.var.resolve(key, np.shape(data))
        self.var[key] = self.transform.encode(data)

    def __repr__(self) -> str:
        return describe_variable(self)

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Time-axis codec for ``<unit> since <date>`` units strings.

Stored numbers are offsets from a reference instant in whole or fractional
units of seconds, minutes, hours or days. Decoding yields
``numpy.datetime64[ms]`` timestamps; encoding always yields ``float64``.

Example:
    >>> axis = parse_time_units("days since 2000-01-01 00:00:00")
    >>> axis.scale_ms
    86400000
    >>> time_decode([0.5], "days since 2000-01-01 00:00:00")
    array(['2000-01-01T12:00:00.000'], dtype='datetime64[ms]')
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from cfnetcdf.core.constants import TimeUnits
from cfnetcdf.core.exceptions import (
    DataTypeError,
    InvalidReferenceDateError,
    UnrecognizedTimeUnitError,
)


@dataclass(frozen=True)
class TimeAxis:
    """
    Reference instant and unit length of a time axis.

    Attributes:
        epoch: Reference instant, millisecond resolution
        scale_ms: Length of one stored unit in milliseconds
    """

    epoch: np.datetime64
    scale_ms: int


def is_time_units(units: Any) -> bool:
    """True when a units value requests time semantics (contains ``' since '``)."""
    return isinstance(units, str) and TimeUnits.SINCE in units


def _pad(field: str, width: int = 2) -> str:
    whole, dot, fraction = field.partition('.')
    return whole.zfill(width) + dot + fraction


def _parse_reference(reference: str) -> np.datetime64:
    # missing trailing fields default to the start of the period; single-digit
    # fields ("1900-1-1 0:0:0") are zero-padded before ISO parsing
    date, clock = reference, ''
    for separator in TimeUnits.REFERENCE_DATE_SEPARATORS:
        if separator in reference:
            date, clock = reference.split(separator, 1)
            break

    fields = date.split('-')
    if fields and fields[0]:
        fields[0] = fields[0].zfill(4)
    iso = '-'.join([fields[0]] + [_pad(f) for f in fields[1:]])
    clock = clock.strip()
    if clock:
        iso += 'T' + ':'.join(_pad(f) for f in clock.split(':'))

    epoch = np.datetime64(iso, 'ms')
    if np.isnat(epoch):
        raise ValueError("reference date is NaT")
    return epoch


def parse_time_units(units: str) -> TimeAxis:
    """
    Parse a units string of the form ``<unit> since YYYY-MM-DD[ HH:MM:SS]``.

    The unit token is matched case-insensitively against second(s),
    minute(s), hour(s) and day(s). Omitted time-of-day fields default
    to midnight. The axis is derived fresh on every call.

    Raises:
        UnrecognizedTimeUnitError: Not a ``since`` string, or unknown unit token
        InvalidReferenceDateError: Reference date is not a valid calendar date
    """
    if not is_time_units(units):
        raise UnrecognizedTimeUnitError(f"Not a time-axis units string: {units!r}")

    unit, reference = (part.strip() for part in units.split(TimeUnits.SINCE, 1))
    scale_ms = TimeUnits.MILLISECONDS.get(unit.lower())
    if scale_ms is None:
        raise UnrecognizedTimeUnitError(f"Unrecognized time unit {unit!r} in {units!r}")

    try:
        epoch = _parse_reference(reference)
    except ValueError as e:
        raise InvalidReferenceDateError(
            f"Cannot parse reference date {reference!r} in {units!r}: {e}"
        ) from e

    return TimeAxis(epoch, scale_ms)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def time_decode(values: Any, units: str) -> np.ndarray:
    """
    Convert numeric offsets to timestamps.

    Each value becomes ``epoch + round(value * scale_ms)`` milliseconds, with
    halves rounded away from zero.

    Returns:
        ``datetime64[ms]`` array with the shape of ``values``
    """
    axis = parse_time_units(units)
    offsets = np.asarray(values, dtype=np.float64) * axis.scale_ms
    millis = _round_half_away(offsets).astype(np.int64)
    return axis.epoch + millis.astype('timedelta64[ms]')


def time_encode(timestamps: Any, units: str) -> np.ndarray:
    """
    Convert timestamps to numeric offsets, ``(t - epoch) / scale_ms``.

    Accepts ``datetime``, ``numpy.datetime64`` or ISO strings (scalar or array).

    Returns:
        ``float64`` array with the shape of ``timestamps``

    Raises:
        DataTypeError: Values that are not timestamps, or ``NaT``
    """
    axis = parse_time_units(units)
    try:
        stamps = np.asarray(timestamps, dtype="datetime64[ms]")
    except (TypeError, ValueError) as e:
        raise DataTypeError(f"Cannot interpret values as timestamps: {e}") from e
    if np.isnat(stamps).any():
        raise DataTypeError(
            f"Cannot encode NaT against {units!r}; mask missing timestamps instead"
        )
    elapsed = (stamps - axis.epoch).astype(np.int64)
    return elapsed.astype(np.float64) / axis.scale_ms

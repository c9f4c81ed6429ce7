# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Custom exception hierarchy for cfnetcdf.

This module defines a hierarchy of exceptions that provide clear, specific
error types for the failure modes of the indexing layer, the CF pipeline
and the storage backends.
"""

import logging
from contextlib import contextmanager
from typing import Optional


class CFNetCDFError(Exception):
    """
    Base exception for all cfnetcdf-specific errors.

    All custom exceptions in cfnetcdf inherit from this class.
    This allows catching all cfnetcdf errors with a single except clause.
    """
    pass


class IndexingError(CFNetCDFError):
    """
    Index expression failures.

    Raised before any backend call when an index tuple cannot be turned
    into a start/count/stride request.
    """
    pass


class UnsupportedIndexKindError(IndexingError):
    """
    Index element of an unsupported kind.

    Raised when:
    - An element is not an integer, full slice, range or strided range
    - More indices are given than the variable has dimensions
    """
    pass


class InvalidStrideError(IndexingError):
    """
    Non-positive step in a strided range.
    """
    pass


class IndexOutOfBoundsError(IndexingError):
    """
    Index bound outside the dimension extent.

    Raised when:
    - A scalar index is negative or not smaller than the extent
    - A range starts or stops outside the dimension
    """
    pass


class ShapeMismatchError(CFNetCDFError):
    """
    Shape of written data differs from the resolved sub-range shape.
    """
    pass


class DataTypeError(CFNetCDFError):
    """
    Element type failures.

    Raised when:
    - A type name or dtype maps to no supported storage type
    - Written values cannot be converted to the variable's native type
    """
    pass


class TimeUnitsError(CFNetCDFError):
    """
    Time-axis units string failures.
    """
    pass


class UnrecognizedTimeUnitError(TimeUnitsError):
    """
    The unit token of a ``<unit> since <date>`` string is not supported.
    """
    pass


class InvalidReferenceDateError(TimeUnitsError):
    """
    The reference date of a ``<unit> since <date>`` string cannot be parsed.
    """
    pass


class MissingFillValueError(CFNetCDFError):
    """
    Masked elements written to a variable that defines no ``_FillValue``.
    """
    pass


class ConfigurationError(CFNetCDFError):
    """
    Configuration-related errors.

    Raised when:
    - Configuration values are invalid
    - Configuration file cannot be loaded or parsed
    - An unknown dataset format or open mode is requested
    """
    pass


class BackendError(CFNetCDFError):
    """
    Storage backend failure carrying the backend status code.

    Attributes:
        code: Numeric status code reported by the storage layer
        message: Human-readable message for the code
    """

    def __init__(self, code: int, message: str):
        super().__init__(f"{message} (status {code})")
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code: int) -> 'BackendError':
        """Build the error for a status code, looking up its message."""
        from cfnetcdf.core.constants import NCStatus

        return cls(code, NCStatus.strerror(code))


# =============================================================================
# Validation Helpers
# =============================================================================


def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: CFNetCDFError)

    Raises:
        CFNetCDFError (or specified error_type) if condition is False

    Example:
        >>> require(step > 0, "Stride must be positive", InvalidStrideError)
    """
    if error_type is None:
        error_type = CFNetCDFError
    if not condition:
        raise error_type(message)


@contextmanager
def cfnetcdf_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    error_type: type = BackendError,
    passthrough: tuple = (),
):
    """
    Context manager translating foreign exceptions into cfnetcdf errors.

    cfnetcdf errors are re-raised unchanged. Any other exception is logged
    (when a logger is given) and re-raised as ``error_type``; for
    ``BackendError`` the status code is recovered from the message.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        error_type: cfnetcdf exception type to convert generic exceptions to
        passthrough: Exception types that propagate untouched

    Example:
        >>> with cfnetcdf_error_handler("reading 'temp'", logger):
        ...     data = nc_var[...]
    """
    try:
        yield
    except CFNetCDFError:
        if logger:
            logger.debug(f"Error during {operation}", exc_info=True)
        raise
    except passthrough:
        raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}")
        if error_type is BackendError:
            from cfnetcdf.core.constants import NCStatus

            raise BackendError(NCStatus.from_message(str(e)), str(e)) from e
        raise error_type(f"Failed during {operation}: {e}") from e


# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Base
    'CFNetCDFError',
    # Domain exceptions
    'IndexingError',
    'UnsupportedIndexKindError',
    'InvalidStrideError',
    'IndexOutOfBoundsError',
    'ShapeMismatchError',
    'DataTypeError',
    'TimeUnitsError',
    'UnrecognizedTimeUnitError',
    'InvalidReferenceDateError',
    'MissingFillValueError',
    'ConfigurationError',
    'BackendError',
    # Helpers
    'require',
    'cfnetcdf_error_handler',
]

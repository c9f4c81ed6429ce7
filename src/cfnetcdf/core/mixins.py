# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Core mixins for cfnetcdf classes.

Provides the logging and configuration mixins that variable handles,
transforms and backends build upon.
"""

import logging
from typing import Any


class LoggingMixin:
    """
    Mixin providing standardized logger access.

    Ensures a logger is always available, defaulting to one named after the
    class if none is explicitly set.
    """

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        _logger = getattr(self, '_logger', None)
        if _logger is None:
            # Create a default logger if none exists
            module = self.__class__.__module__
            name = self.__class__.__name__
            self._logger = logging.getLogger(f"{module}.{name}")
            return self._logger
        return _logger

    @logger.setter
    def logger(self, value: logging.Logger) -> None:
        """Set the logger instance."""
        self._logger = value


class ConfigMixin:
    """
    Mixin for classes that carry a ``CFConfig``.

    Subclasses set ``self._config``; a default configuration is created
    lazily when none was given.
    """

    @property
    def config(self) -> 'CFConfig':  # noqa: F821
        """Typed configuration for this object."""
        config = getattr(self, '_config', None)
        if config is None:
            from cfnetcdf.core.config import CFConfig
            config = CFConfig()
            self._config = config
        return config

    @config.setter
    def config(self, value: Any) -> None:
        from cfnetcdf.core.config import ensure_config
        self._config = ensure_config(value)

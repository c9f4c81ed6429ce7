# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Shared define/data mode flag of one open dataset.

A dataset owns exactly one ``DefineModeState``; every variable and attribute
handle derived from it holds a reference to that same object, so a mode
switch made through one handle is seen by all of them.
"""

from cfnetcdf.backend.base import StorageBackend
from cfnetcdf.core.mixins import LoggingMixin


class DefineModeState(LoggingMixin):
    """
    Define/data mode of a dataset, switched idempotently before backend calls.

    Args:
        backend: Storage backend whose mode is tracked
        is_define: Initial mode (True for a freshly created dataset)
    """

    def __init__(self, backend: StorageBackend, is_define: bool):
        self.backend = backend
        self.is_define = is_define

    def ensure_data(self) -> None:
        """Make sure that the dataset is in data mode."""
        if self.is_define:
            self.logger.debug("Leaving define mode")
            self.backend.enddef()
            self.is_define = False

    def ensure_define(self) -> None:
        """Make sure that the dataset is in define mode."""
        if not self.is_define:
            self.logger.debug("Entering define mode")
            self.backend.redef()
            self.is_define = True

    def __repr__(self) -> str:
        return f"DefineModeState({'define' if self.is_define else 'data'})"

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 cfnetcdf contributors

"""
Attribute views.

``AttributeView`` is the capability interface the CF pipeline reads through:
``get(name)``, ``set(name, value)`` and ``list_names()``. The mapping
protocol (``[]``, ``in``, iteration, ``len``, ``items``) is derived from
those three methods.

Example:
    >>> ds.attrib['title'] = 'Sea surface temperature'
    >>> ds['sst'].attrib.get('scale_factor', 1.0)
"""

from abc import abstractmethod
from collections.abc import Mapping
from typing import Any, Hashable, Iterator, List, Optional, Sequence

from cfnetcdf.backend.base import StorageBackend
from cfnetcdf.core.constants import GLOBAL, NCStatus
from cfnetcdf.core.exceptions import BackendError
from cfnetcdf.mode import DefineModeState

_MISSING = object()


class AttributeView(Mapping):
    """Named attribute lookup for one variable or one dataset."""

    @abstractmethod
    def get(self, name: str, default: Any = None) -> Any:
        """Value of ``name``, or ``default`` when the attribute is absent."""

    @abstractmethod
    def set(self, name: str, value: Any) -> None:
        """Create or replace the attribute ``name``."""

    @abstractmethod
    def list_names(self) -> List[str]:
        """Attribute names in storage order."""

    def __getitem__(self, name: str) -> Any:
        value = self.get(name, _MISSING)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self.list_names()

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_names())

    def __len__(self) -> int:
        return len(self.list_names())

    def __repr__(self) -> str:
        return format_attributes(self)


class Attributes(AttributeView):
    """
    Attributes of one backend variable, or of the dataset for ``GLOBAL``.

    Args:
        backend: Storage backend holding the attributes
        varid: Variable id, or ``GLOBAL``
        mode: The dataset's shared define/data mode state
    """

    def __init__(self, backend: StorageBackend, varid: Hashable, mode: DefineModeState):
        self.backend = backend
        self.varid = varid
        self.mode = mode

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self.backend.get_att(self.varid, name)
        except BackendError as e:
            if e.code == NCStatus.ENOTATT:
                return default
            raise

    def set(self, name: str, value: Any) -> None:
        self.mode.ensure_define()
        self.backend.put_att(self.varid, name, value)

    def list_names(self) -> List[str]:
        return self.backend.list_atts(self.varid)

    @property
    def is_global(self) -> bool:
        return self.varid == GLOBAL


class MFAttributes(AttributeView):
    """
    Attributes aggregated over several datasets.

    Reads and the name list come from the first view; writes go to all of them.
    """

    def __init__(self, views: Sequence[AttributeView]):
        if not views:
            raise ValueError("MFAttributes needs at least one attribute view")
        self.views = list(views)

    def get(self, name: str, default: Any = None) -> Any:
        return self.views[0].get(name, default)

    def set(self, name: str, value: Any) -> None:
        for view in self.views:
            view.set(name, value)

    def list_names(self) -> List[str]:
        return self.views[0].list_names()


def format_attributes(attrib: AttributeView, indent: str = "  ") -> str:
    """One ``name = value`` line per attribute, in storage order."""
    lines = [f"{indent}{name:<20} = {value}" for name, value in attrib.items()]
    return "\n".join(lines)


def get_optional(attrib: AttributeView, names: List[str], name: str) -> Optional[Any]:
    """Attribute value when ``name`` is among ``names``, else None."""
    if name not in names:
        return None
    return attrib.get(name)

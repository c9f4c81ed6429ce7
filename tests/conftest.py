"""
Root conftest.py - Fixtures shared across all tests.

Unit tests run against the in-memory backend; integration tests create
real netCDF files under ``tmp_path``.
"""

import numpy as np
import pytest

from cfnetcdf import Dataset, InMemoryBackend


@pytest.fixture
def memory_backend():
    """Fresh in-memory backend, starting in define mode."""
    return InMemoryBackend()


@pytest.fixture
def dataset(memory_backend):
    """Empty dataset in create mode on the in-memory backend."""
    ds = Dataset("memory", "c", backend=memory_backend)
    yield ds
    ds.close()


@pytest.fixture
def cube_dataset(dataset):
    """
    Dataset holding ``cube``, an int variable of shape (2, 3, 4) with
    values ``arange(24)``, left in data mode.
    """
    dataset.def_dim("x", 2)
    dataset.def_dim("y", 3)
    dataset.def_dim("z", 4)
    dataset.def_var("cube", "int", ("x", "y", "z"))
    dataset.variable("cube")[:] = np.arange(24).reshape(2, 3, 4)
    return dataset


@pytest.fixture
def cube(cube_dataset):
    """Raw handle of the ``cube`` variable."""
    return cube_dataset.variable("cube")

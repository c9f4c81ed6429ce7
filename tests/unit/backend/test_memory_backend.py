"""
Unit tests for the in-memory storage backend.

The backend is addressed directly here, in its own innermost-first order.
"""

import numpy as np
import pytest

from cfnetcdf.backend import InMemoryBackend
from cfnetcdf.core.constants import GLOBAL, NCStatus, NCType
from cfnetcdf.core.exceptions import BackendError

pytestmark = pytest.mark.unit


@pytest.fixture
def backend():
    """Backend with variable 0 of backend shape (4, 3) holding arange(12), in data mode."""
    b = InMemoryBackend()
    inner = b.def_dim("inner", 4)
    outer = b.def_dim("outer", 3)
    b.def_var("grid", NCType.INT, [inner, outer])
    b.enddef()
    b.put_var(0, np.arange(12).reshape(4, 3))
    return b


def _code(excinfo):
    return excinfo.value.code


class TestModes:

    def test_data_call_in_define_mode(self):
        b = InMemoryBackend()
        b.def_dim("n", 2)
        b.def_var("v", NCType.INT, [0])
        with pytest.raises(BackendError) as excinfo:
            b.get_var(0)
        assert _code(excinfo) == NCStatus.EINDEFINE

    def test_definition_in_data_mode(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.def_dim("extra", 1)
        assert _code(excinfo) == NCStatus.ENOTINDEFINE

    def test_attribute_write_in_data_mode(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.put_att(GLOBAL, "title", "x")
        assert _code(excinfo) == NCStatus.ENOTINDEFINE

    def test_enddef_twice(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.enddef()
        assert _code(excinfo) == NCStatus.ENOTINDEFINE

    def test_redef_twice(self, backend):
        backend.redef()
        with pytest.raises(BackendError) as excinfo:
            backend.redef()
        assert _code(excinfo) == NCStatus.EINDEFINE

    def test_read_only(self):
        b = InMemoryBackend(is_define=False, read_only=True)
        with pytest.raises(BackendError) as excinfo:
            b.redef()
        assert _code(excinfo) == NCStatus.EPERM


class TestTransfers:

    def test_get_vars(self, backend):
        data = backend.get_vars(0, [1, 0], [2, 2], [2, 2])
        np.testing.assert_array_equal(data, np.arange(12).reshape(4, 3)[1:4:2, 0:3:2])

    def test_get_var1(self, backend):
        assert backend.get_var1(0, [3, 2]) == 11

    def test_put_vars(self, backend):
        backend.put_vars(0, [0, 1], [4, 1], [1, 1], np.full((4, 1), -1))
        np.testing.assert_array_equal(backend.get_var(0)[:, 1], [-1] * 4)

    def test_get_var_returns_copy(self, backend):
        backend.get_var(0)[0, 0] = 99
        assert backend.get_var1(0, [0, 0]) == 0

    def test_edge(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.get_vars(0, [3, 0], [2, 1], [1, 1])
        assert _code(excinfo) == NCStatus.EEDGE

    def test_start_out_of_range(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.get_var1(0, [4, 0])
        assert _code(excinfo) == NCStatus.EINVALCOORDS

    def test_wrong_rank(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.get_vars(0, [0], [1], [1])
        assert _code(excinfo) == NCStatus.EINVALCOORDS

    def test_bad_stride(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.get_vars(0, [0, 0], [1, 1], [0, 1])
        assert _code(excinfo) == NCStatus.ESTRIDE

    def test_put_wrong_shape(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.put_var(0, np.zeros((3, 4)))
        assert _code(excinfo) == NCStatus.EEDGE

    def test_text_into_numbers(self, backend):
        with pytest.raises(BackendError) as excinfo:
            backend.put_var1(0, [0, 0], "a")
        assert _code(excinfo) == NCStatus.ECHAR

    def test_calls_are_counted(self, backend):
        backend.get_var(0)
        backend.get_var(0)
        assert backend.calls['get_var'] == 2
        assert backend.calls['put_var'] == 1


class TestCatalog:

    def test_inquiries(self, backend):
        assert backend.inq_varid("grid") == 0
        info = backend.inq_var(0)
        assert info.name == "grid"
        assert info.nctype is NCType.INT
        assert info.dimids == (0, 1)
        assert backend.inq_dimlen(1) == 3
        assert backend.inq_dimname(0) == "inner"
        assert backend.inq_dimid("outer") == 1
        assert backend.inq_dimids() == [0, 1]

    @pytest.mark.parametrize("call, code", [
        (lambda b: b.inq_varid("missing"), NCStatus.ENOTVAR),
        (lambda b: b.inq_var(5), NCStatus.ENOTVAR),
        (lambda b: b.inq_dimid("missing"), NCStatus.EBADDIM),
        (lambda b: b.inq_dimlen(9), NCStatus.EBADDIM),
        (lambda b: b.get_att(0, "units"), NCStatus.ENOTATT),
    ])
    def test_lookup_errors(self, backend, call, code):
        with pytest.raises(BackendError) as excinfo:
            call(backend)
        assert _code(excinfo) == code

    def test_fill_value_prefills(self):
        b = InMemoryBackend()
        b.def_dim("n", 3)
        b.def_var("v", NCType.SHORT, [0], fill_value=-9)
        b.enddef()
        np.testing.assert_array_equal(b.get_var(0), [-9, -9, -9])
        assert b.get_att(0, "_FillValue") == -9
        assert b.get_att(0, "_FillValue").dtype == np.int16

    def test_closed(self, backend):
        backend.close()
        with pytest.raises(BackendError) as excinfo:
            backend.get_var(0)
        assert _code(excinfo) == NCStatus.EBADID

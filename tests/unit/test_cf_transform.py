"""
Unit tests for the CF decode/encode pipeline.

Exercises CFTransform directly over a dictionary-backed attribute view and
through CFVariable handles of an in-memory dataset.
"""

import numpy as np
import pytest

from cfnetcdf import Dataset, InMemoryBackend
from cfnetcdf.attributes import AttributeView
from cfnetcdf.cf import CFAttributes, CFTransform, fill_mask
from cfnetcdf.core.constants import NCType
from cfnetcdf.core.exceptions import (
    DataTypeError,
    MissingFillValueError,
    UnrecognizedTimeUnitError,
)

pytestmark = pytest.mark.unit

DAYS = "days since 2000-01-01 00:00:00"


class DictAttributes(AttributeView):
    """Attribute view over a plain dictionary."""

    def __init__(self, **values):
        self.values = dict(values)

    def get(self, name, default=None):
        return self.values.get(name, default)

    def set(self, name, value):
        self.values[name] = value

    def list_names(self):
        return list(self.values)


def _dataset(**config):
    return Dataset("memory", "c", backend=InMemoryBackend(), config=config or None)


@pytest.fixture
def packed(dataset):
    """short variable ``packed`` with scale 0.5, offset 10 and fill -999."""
    dataset.def_dim("n", 4)
    var = dataset.def_var("packed", "short", ("n",), fill_value=-999)
    var.attrib["scale_factor"] = 0.5
    var.attrib["add_offset"] = 10.0
    dataset.variable("packed")[:] = [0, 2, -999, 4]
    return dataset


@pytest.fixture
def time_axis(dataset):
    """double variable ``time`` in days since 2000-01-01 with fill -1."""
    dataset.def_dim("time", 3)
    var = dataset.def_var("time", "double", ("time",), fill_value=-1.0)
    var.attrib["units"] = DAYS
    dataset.variable("time")[:] = [0.0, -1.0, 1.5]
    return dataset


class TestFillMask:

    def test_integer(self):
        mask = fill_mask(np.array([1, -999, 3], dtype='i2'), -999)
        np.testing.assert_array_equal(mask, [False, True, False])

    def test_float_is_bitwise(self):
        mask = fill_mask(np.array([0.0, -0.0, 1.0]), 0.0)
        np.testing.assert_array_equal(mask, [True, False, False])

    def test_nan_fill(self):
        mask = fill_mask(np.array([np.nan, 1.0], dtype='f4'), np.nan)
        np.testing.assert_array_equal(mask, [True, False])

    def test_fill_cast_to_data_type(self):
        mask = fill_mask(np.array([9.96921e36, 1.0], dtype='f4'), 9.96921e36)
        np.testing.assert_array_equal(mask, [True, False])

    def test_text(self):
        mask = fill_mask(np.array([b'a', b'-'], dtype='S1'), b'-')
        np.testing.assert_array_equal(mask, [False, True])


class TestCFAttributes:

    def test_absent_attributes_are_none(self):
        attrs = CFAttributes.read(DictAttributes())
        assert attrs.fill_value is None
        assert not attrs.has_scaling
        assert not attrs.is_time

    def test_single_element_arrays_are_scalars(self):
        attrs = CFAttributes.read(DictAttributes(scale_factor=np.array([0.5]), units=DAYS))
        assert attrs.scale_factor == 0.5
        assert np.ndim(attrs.scale_factor) == 0
        assert attrs.is_time


class TestDecode:

    def test_identity_without_attributes(self):
        transform = CFTransform(DictAttributes(), NCType.INT)
        result = transform.decode(np.array([1, 2, 3], dtype='i4'))
        assert isinstance(result, np.ma.MaskedArray)
        assert not result.mask.any()
        np.testing.assert_array_equal(result, [1, 2, 3])

    def test_mask_scale_offset(self, packed):
        result = packed["packed"][:]
        np.testing.assert_array_equal(result.mask, [False, False, True, False])
        np.testing.assert_array_equal(result.compressed(), [10.0, 11.0, 12.0])
        assert result.dtype == np.float64

    def test_missing_elements_are_not_scaled(self, packed):
        result = packed["packed"][:]
        assert result.data[2] == -999

    def test_scale_only(self):
        attrib = DictAttributes(scale_factor=0.25)
        result = CFTransform(attrib, NCType.SHORT).decode(np.array([4, 8], dtype='i2'))
        np.testing.assert_array_equal(result, [1.0, 2.0])

    def test_offset_only(self):
        attrib = DictAttributes(add_offset=273.15)
        result = CFTransform(attrib, NCType.FLOAT).decode(np.array([0.0], dtype='f4'))
        np.testing.assert_allclose(result, [273.15])

    def test_scalar_result(self, packed):
        assert packed["packed"][1] == 11.0
        assert packed["packed"][2] is np.ma.masked

    def test_time(self, time_axis):
        result = time_axis["time"][:]
        assert result.dtype == np.dtype('datetime64[ms]')
        np.testing.assert_array_equal(result.mask, [False, True, False])
        assert result[0] == np.datetime64('2000-01-01', 'ms')
        assert result[2] == np.datetime64('2000-01-02T12:00', 'ms')
        assert np.isnat(result.data[1])

    def test_time_after_scaling(self):
        attrib = DictAttributes(scale_factor=0.5, units="hours since 2000-01-01 00:00:00")
        result = CFTransform(attrib, NCType.INT).decode(np.array([3], dtype='i4'))
        assert result[0] == np.datetime64('2000-01-01T01:30', 'ms')

    def test_plain_units_are_ignored(self):
        attrib = DictAttributes(units="m s-1")
        result = CFTransform(attrib, NCType.DOUBLE).decode(np.array([2.5]))
        np.testing.assert_array_equal(result, [2.5])

    def test_bad_time_units_fail(self):
        attrib = DictAttributes(units="fortnights since 2000-01-01 00:00:00")
        with pytest.raises(UnrecognizedTimeUnitError):
            CFTransform(attrib, NCType.DOUBLE).decode(np.array([1.0]))

    def test_text_is_never_scaled(self):
        attrib = DictAttributes(scale_factor=2.0, add_offset=1.0, _FillValue=b'-')
        raw = np.array([b'a', b'-', b'c'], dtype='S1')
        result = CFTransform(attrib, NCType.CHAR).decode(raw)
        assert result.dtype == np.dtype('S1')
        np.testing.assert_array_equal(result.mask, [False, True, False])
        assert result[2] == b'c'

    def test_attributes_read_on_every_call(self, packed):
        var = packed["packed"]
        assert var[0] == 10.0
        var.attrib["add_offset"] = 20.0
        assert var[0] == 20.0

    def test_unwritten_nan_fill_reads_missing(self, dataset):
        dataset.def_dim("n", 3)
        dataset.def_var("sst", "float", ("n",), fill_value=np.nan)
        result = dataset["sst"][:]
        assert result.mask.all()

    def test_mask_and_scale_disabled(self):
        ds = _dataset(mask_and_scale=False)
        ds.def_dim("n", 2)
        var = ds.def_var("v", "short", ("n",), fill_value=-1)
        var.attrib["scale_factor"] = 10.0
        ds.variable("v")[:] = [-1, 3]
        result = ds["v"][:]
        assert not result.mask.any()
        np.testing.assert_array_equal(result, [-1, 3])

    def test_decode_times_disabled(self):
        ds = _dataset(decode_times=False)
        ds.def_dim("time", 2)
        ds.def_var("time", "double", ("time",)).attrib["units"] = DAYS
        ds.variable("time")[:] = [1.0, 2.0]
        np.testing.assert_array_equal(ds["time"][:], [1.0, 2.0])


class TestEncode:

    def test_exact_round_trip(self, dataset):
        dataset.def_dim("n", 4)
        var = dataset.def_var("v", "short", ("n",))
        var.attrib["scale_factor"] = 2.0
        var.attrib["add_offset"] = 1.0
        values = np.array([1.0, 3.0, 5.0, 101.0])
        var[:] = values
        np.testing.assert_array_equal(dataset.variable("v")[:], [0, 1, 2, 50])
        np.testing.assert_array_equal(var[:], values)

    def test_approximate_round_trip(self, dataset):
        dataset.def_dim("n", 3)
        var = dataset.def_var("v", "double", ("n",))
        var.attrib["scale_factor"] = 0.1
        var.attrib["add_offset"] = -3.7
        values = np.array([0.3, 12.25, -8.8])
        var[:] = values
        np.testing.assert_allclose(var[:], values, rtol=1e-12)

    def test_masked_elements_store_fill(self, packed):
        var = packed["packed"]
        var[:] = np.ma.masked_array([10.0, 11.0, 12.0, 13.0], mask=[False, True, False, True])
        np.testing.assert_array_equal(packed.variable("packed")[:], [0, -999, 4, -999])

    def test_masked_scalar(self, packed):
        packed["packed"][0] = np.ma.masked
        assert packed.variable("packed")[0] == -999
        assert packed["packed"][0] is np.ma.masked

    def test_scalar_write(self, packed):
        packed["packed"][3] = 14.0
        assert packed.variable("packed")[3] == 8

    def test_scalar_broadcast(self, packed):
        packed["packed"][1:3] = 11.0
        np.testing.assert_array_equal(packed.variable("packed")[:], [0, 2, 2, 4])

    def test_time(self, time_axis):
        stamps = np.array(['2000-01-03', '2000-01-01T06:00', '1999-12-31'], dtype='datetime64[ms]')
        time_axis["time"][:] = stamps
        np.testing.assert_array_equal(time_axis.variable("time")[:], [2.0, 0.25, -1.0])

    def test_masked_time_stores_fill(self, time_axis):
        stamps = np.ma.masked_array(
            np.array(['2000-01-02', 'NaT', '2000-01-05'], dtype='datetime64[ms]'),
            mask=[False, True, False],
        )
        time_axis["time"][:] = stamps
        np.testing.assert_array_equal(time_axis.variable("time")[:], [1.0, -1.0, 4.0])
        np.testing.assert_array_equal(time_axis["time"][:].mask, [False, True, False])

    def test_masked_time_scalar(self, time_axis):
        time_axis["time"][2] = np.ma.masked
        assert time_axis.variable("time")[2] == -1.0

    def test_unmasked_not_a_time_rejected(self, dataset):
        dataset.def_dim("t", 2)
        var = dataset.def_var("days", "int", ("t",))
        var.attrib["units"] = DAYS
        dataset.variable("days")[:] = [5, 6]
        with pytest.raises(DataTypeError, match="NaT"):
            dataset["days"][:] = np.array(['2000-01-02', 'NaT'], dtype='datetime64[ms]')
        np.testing.assert_array_equal(dataset.variable("days")[:], [5, 6])

    def test_text_not_scaled(self, dataset):
        dataset.def_dim("n", 2)
        var = dataset.def_var("flag", "char", ("n",))
        var.attrib["scale_factor"] = 2.0
        var[:] = [b'y', b'n']
        np.testing.assert_array_equal(dataset.variable("flag")[:], [b'y', b'n'])

    def test_shape_checked_before_encoding(self, packed, memory_backend):
        from cfnetcdf.core.exceptions import ShapeMismatchError

        puts = memory_backend.calls['put_vars'] + memory_backend.calls['put_var']
        with pytest.raises(ShapeMismatchError):
            packed["packed"][:] = [1.0, 2.0]
        assert memory_backend.calls['put_vars'] + memory_backend.calls['put_var'] == puts


class TestMissingWithoutFill:
    """Masked writes to a variable that defines no _FillValue."""

    @staticmethod
    def _plain(ds):
        ds.def_dim("n", 3)
        ds.def_var("v", "int", ("n",))
        ds.variable("v")[:] = [7, 7, 7]
        return ds["v"]

    def test_raise_is_default(self, dataset, memory_backend):
        var = self._plain(dataset)
        puts = memory_backend.calls['put_var']
        with pytest.raises(MissingFillValueError, match="_FillValue"):
            var[:] = np.ma.masked_array([1, 2, 3], mask=[False, True, False])
        assert memory_backend.calls['put_var'] == puts
        np.testing.assert_array_equal(dataset.variable("v")[:], [7, 7, 7])

    def test_warn(self):
        var = self._plain(_dataset(missing_without_fill='warn'))
        with pytest.warns(UserWarning, match="has no _FillValue"):
            var[:] = np.ma.masked_array([1, 2, 3], mask=[False, True, False])
        np.testing.assert_array_equal(var.var[:], [1, 2, 3])

    def test_ignore(self, recwarn):
        var = self._plain(_dataset(missing_without_fill='ignore'))
        var[:] = np.ma.masked_array([1, 2, 3], mask=[False, True, False])
        np.testing.assert_array_equal(var.var[:], [1, 2, 3])
        assert not [w for w in recwarn if issubclass(w.category, UserWarning)]

    def test_unmasked_write_is_unaffected(self, dataset):
        var = self._plain(dataset)
        var[:] = np.ma.masked_array([4, 5, 6], mask=False)
        np.testing.assert_array_equal(dataset.variable("v")[:], [4, 5, 6])

    def test_direct_transform(self):
        transform = CFTransform(DictAttributes(), NCType.DOUBLE, config={'missing_without_fill': 'raise'})
        with pytest.raises(MissingFillValueError):
            transform.encode(np.ma.masked_array([1.0], mask=[True]))

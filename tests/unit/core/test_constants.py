"""
Tests for the constants module: element types, status codes and formats.
"""

import numpy as np
import pytest

from cfnetcdf.core.constants import FileFormats, NCStatus, NCType, TimeUnits
from cfnetcdf.core.exceptions import DataTypeError

pytestmark = [pytest.mark.unit, pytest.mark.quick]


class TestNCType:
    """Test resolution of native element types."""

    @pytest.mark.parametrize("value, expected", [
        ('short', NCType.SHORT),
        ('DOUBLE', NCType.DOUBLE),
        (np.int8, NCType.BYTE),
        (np.dtype('uint16'), NCType.USHORT),
        ('f4', NCType.FLOAT),
        (np.float64, NCType.DOUBLE),
        ('S1', NCType.CHAR),
        (str, NCType.STRING),
        (np.dtype('O'), NCType.STRING),
        (NCType.UINT64, NCType.UINT64),
    ])
    def test_from_any(self, value, expected):
        assert NCType.from_any(value) is expected

    @pytest.mark.parametrize("value", ['complex', np.complex128, object()])
    def test_unsupported_types(self, value):
        with pytest.raises(DataTypeError, match="Unsupported element type"):
            NCType.from_any(value)

    def test_text_types(self):
        assert NCType.CHAR.is_text
        assert NCType.STRING.is_text
        assert not any(t.is_text for t in NCType if t not in (NCType.CHAR, NCType.STRING))

    def test_dtypes(self):
        assert NCType.SHORT.dtype == np.dtype('int16')
        assert NCType.UINT.dtype == np.dtype('uint32')
        assert NCType.CHAR.dtype == np.dtype('S1')
        assert NCType.STRING.dtype == np.dtype('O')


class TestTimeUnits:

    def test_singular_and_plural_agree(self):
        for unit in ('day', 'hour', 'minute', 'second'):
            assert TimeUnits.MILLISECONDS[unit] == TimeUnits.MILLISECONDS[unit + 's']

    def test_day_length(self):
        assert TimeUnits.MILLISECONDS['days'] == 86_400_000


class TestNCStatus:

    def test_strerror(self):
        assert NCStatus.strerror(NCStatus.ENOTVAR) == 'NetCDF: Variable not found'

    def test_every_code_has_a_message(self):
        codes = [v for k, v in vars(NCStatus).items() if k.isupper() and isinstance(v, int)]
        assert set(codes) <= set(NCStatus.MESSAGES)


class TestFileFormats:

    def test_python_names(self):
        assert FileFormats.NETCDF4_PYTHON_NAMES[FileFormats.NETCDF3_CLASSIC] == 'NETCDF3_CLASSIC'
        assert len(FileFormats.NETCDF4_PYTHON_NAMES) == 4

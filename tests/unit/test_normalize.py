import pytest

from sfcc_cip.backend.avatica.models import Frame, WireRow
from sfcc_cip.backend.avatica.utils.normalize import (
    next_offset,
    normalize_frame,
    normalize_long_value,
)


class TestNormalizeLongValue:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 0),
            ("", 0),
            (0, 0),
            (42, 42),
            ("9007199254740993", 9007199254740993),
            ("-5", -5),
            (7.0, 7),
            ("12.0", 12),
            (True, 1),
        ],
    )
    def test_values(self, value, expected):
        assert normalize_long_value(value) == expected

    def test_unparseable_string_raises(self):
        with pytest.raises(ValueError):
            normalize_long_value("twelve")


class TestNormalizeFrame:
    def test_absent_frame_stays_absent(self):
        assert normalize_frame(None) is None

    def test_string_offset_and_missing_rows(self):
        frame = normalize_frame(Frame(offset="200", done=True, rows=None))
        assert frame.offset == 200
        assert frame.done is True
        assert frame.rows == []

    def test_dict_frame(self):
        frame = normalize_frame({"offset": "3", "rows": [{"value": []}]})
        assert frame.offset == 3
        assert frame.done is False
        assert frame.rows == [WireRow()]

    def test_does_not_mutate_input(self):
        original = Frame(offset="1", rows=None)
        normalize_frame(original)
        assert original.offset == "1"
        assert original.rows is None

    def test_next_offset(self):
        frame = Frame(offset="4", rows=[WireRow(), WireRow()])
        assert next_offset(frame) == 6
        assert next_offset(Frame(offset=0, rows=None)) == 0

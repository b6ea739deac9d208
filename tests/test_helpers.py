"""Tests for utility helpers."""

import pytest

from streamcipher.utils.helpers import int_or_none, traverse_obj


class TestTraverseObj:
    def test_simple_key(self):
        assert traverse_obj({"a": 1}, "a") == 1

    def test_nested_tuple_path(self):
        data = {"streamingData": {"formats": [{"itag": 18}]}}
        assert traverse_obj(data, ("streamingData", "formats", 0, "itag")) == 18

    def test_missing_key_returns_default(self):
        assert traverse_obj({"a": 1}, "b", default="nope") == "nope"

    def test_index_out_of_range(self):
        assert traverse_obj({"items": []}, ("items", 3)) is None

    def test_none_input(self):
        assert traverse_obj(None, "a", default="d") == "d"

    def test_multiple_paths_first_wins(self):
        data = {"x": None, "y": 99}
        assert traverse_obj(data, ("x",), ("y",)) == 99


class TestIntOrNone:
    @pytest.mark.parametrize(
        ("val", "expected"),
        [
            (42, 42),
            ("212", 212),
            ("3.9", None),
            (None, None),
            ("abc", None),
        ],
    )
    def test_values(self, val, expected):
        assert int_or_none(val) == expected

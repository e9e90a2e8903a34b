"""
Tests for cell and range addressing.
"""

import pytest

from gridreport.errors import GridStructuralError
from gridreport.grid import CellAddress, RangeAddress, column_index, column_letter


class TestColumns:

    def test_letters_roundtrip_on_boundaries(self):
        assert column_letter(1) == "A"
        assert column_letter(26) == "Z"
        assert column_letter(27) == "AA"
        assert column_letter(28) == "AB"
        assert column_index("AB") == 28
        assert column_index("zz") == 702

    def test_invalid_column(self):
        with pytest.raises(GridStructuralError):
            column_letter(0)
        with pytest.raises(GridStructuralError):
            column_index("A1")


class TestCellAddress:

    def test_a1_rendering(self):
        assert CellAddress(7, 3).to_a1() == "C7"
        assert CellAddress.from_a1("$C$7") == CellAddress(7, 3)

    def test_non_positive_coordinates_rejected(self):
        with pytest.raises(GridStructuralError):
            CellAddress(0, 1)


class TestRangeAddress:

    def test_text_form(self):
        assert RangeAddress(1, 1, 3, 3).to_a1() == "A1:C3"
        assert RangeAddress(2, 2, 2, 2).to_a1() == "B2"
        assert RangeAddress.from_a1("C3:A1") == RangeAddress(1, 1, 3, 3)

    def test_inverted_range_rejected(self):
        with pytest.raises(GridStructuralError):
            RangeAddress(3, 1, 1, 1)

    def test_geometry(self):
        a = RangeAddress.from_a1("B2:D5")
        assert (a.height, a.width) == (4, 3)
        assert a.contains(3, 3)
        assert not a.contains(1, 3)
        assert a.contains_range(RangeAddress.from_a1("C3:D4"))
        assert a.intersects(RangeAddress.from_a1("D5:E6"))
        assert not a.intersects(RangeAddress.from_a1("E1:F9"))
        assert a.last_row_address() == RangeAddress.from_a1("B5:D5")
        assert a.row(2) == RangeAddress.from_a1("B3:D3")

    def test_row_outside_range(self):
        with pytest.raises(GridStructuralError):
            RangeAddress.from_a1("A1:A2").row(3)

    def test_of_builds_from_size(self):
        assert RangeAddress.of(2, 1, 3, 2).to_a1() == "A2:B4"

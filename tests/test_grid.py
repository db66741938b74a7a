import pytest

from geo_tokens.grid import (Cell, CellRange, LatLng, bounds, cell_key, chebyshev,
                             parse_cell_key, to_cell, to_position)


@pytest.mark.parametrize("i,j", [(0, 0), (1, 1), (-1, -1), (369979, -1220571),
                                 (-369979, 1220570), (3, -7), (123456789, -987654321)])
def test_cell_position_round_trip(i, j):
    c = Cell(i, j)
    assert to_cell(to_position(c)) == c


def test_round_trip_sweep_including_negatives():
    for i in range(-300, 301, 7):
        for j in range(-300, 301, 11):
            assert to_cell(to_position(Cell(i, j))) == Cell(i, j)


def test_to_cell_floors_negative_positions():
    assert to_cell(LatLng(-0.00005, -0.00015)) == Cell(-1, -2)
    assert to_cell(LatLng(0.00005, 0.00015)) == Cell(0, 1)


def test_start_location_cell():
    assert to_cell(LatLng(36.997936938057016, -122.05703507501151)) == Cell(369979, -1220571)


def test_bounds_span_one_tile():
    b = bounds(Cell(2, -3))
    assert b.low == to_position(Cell(2, -3))
    assert b.high == to_position(Cell(3, -2))
    assert to_cell(b.center()) == Cell(2, -3)


def test_custom_tile_size():
    assert to_cell(LatLng(2.5, -0.5), tile=1.0) == Cell(2, -1)
    assert to_position(Cell(2, -1), tile=1.0) == LatLng(2.0, -1.0)


def test_cell_keys():
    assert cell_key(Cell(-4, 12)) == "-4,12"
    assert parse_cell_key("-4,12") == Cell(-4, 12)
    for bad in ("", "1", "1,2,3", "a,b", "1_0,2", " 1,2", "+1,2", "01,2", "-0,0", "1, 2", "1,\u0663"):
        with pytest.raises(ValueError):
            parse_cell_key(bad)


def test_chebyshev():
    assert chebyshev(Cell(0, 0), Cell(3, -2)) == 3
    assert chebyshev(Cell(-1, 5), Cell(-1, 5)) == 0


def test_cell_range():
    r = CellRange.spanning(Cell(2, 3), Cell(0, 1))
    assert r.lo == Cell(0, 1) and r.hi == Cell(2, 3)
    assert len(r) == 9 == len(list(r))
    assert Cell(1, 2) in r and Cell(3, 2) not in r
    assert "1,2" not in r

    wide = r.expand(2)
    assert wide.lo == Cell(-2, -1) and wide.hi == Cell(4, 5)
    assert CellRange.around(Cell(0, 0), 1) == CellRange(Cell(-1, -1), Cell(1, 1))


def test_cell_range_from_positions_any_corner_order():
    a, b = LatLng(0.00035, -0.00005), LatLng(-0.00015, 0.00025)
    assert CellRange.from_positions(a, b) == CellRange.from_positions(b, a)
    assert CellRange.from_positions(a, b) == CellRange(Cell(-2, -1), Cell(3, 2))


def test_empty_range_rejected():
    with pytest.raises(ValueError):
        CellRange(Cell(1, 0), Cell(0, 0))

"""
Grid module: maps real-world positions onto the unbounded cell lattice.

Cells are anchored at Null Island (0, 0): cell (i, j) covers latitudes
[i * tile, (i + 1) * tile) and longitudes [j * tile, (j + 1) * tile).
Everything here is pure arithmetic.
"""
from dataclasses import dataclass
from typing import Iterator, NamedTuple
import math
import re

TILE_DEGREES = 0.0001  # about the size of a house

_KEY = re.compile(r"(-?\d+),(-?\d+)", re.ASCII)


class LatLng(NamedTuple):
    lat: float
    lng: float


@dataclass(frozen=True)
class Cell:
    i: int
    j: int

    def offset(self, di: int, dj: int) -> "Cell":
        return Cell(self.i + di, self.j + dj)

    def __str__(self) -> str:
        return f"({self.i}, {self.j})"


class Bounds(NamedTuple):
    low: LatLng   # south-west (minimal) corner
    high: LatLng  # north-east corner

    def center(self) -> LatLng:
        return LatLng((self.low.lat + self.high.lat) / 2, (self.low.lng + self.high.lng) / 2)


# ---------- position <-> cell ----------
def _floor_index(x: float, tile: float) -> int:
    k = math.floor(x / tile)
    # division rounding can land one cell off; settle against the same
    # products to_position computes so the two stay exact inverses
    if (k + 1) * tile <= x:
        k += 1
    elif k * tile > x:
        k -= 1
    return int(k)


def to_cell(position: LatLng, tile: float = TILE_DEGREES) -> Cell:
    return Cell(_floor_index(position.lat, tile), _floor_index(position.lng, tile))


def to_position(cell: Cell, tile: float = TILE_DEGREES) -> LatLng:
    """Minimal corner of the cell."""
    return LatLng(cell.i * tile, cell.j * tile)


def bounds(cell: Cell, tile: float = TILE_DEGREES) -> Bounds:
    return Bounds(to_position(cell, tile), to_position(cell.offset(1, 1), tile))


# ---------- keys & distance ----------
def cell_key(cell: Cell) -> str:
    return f"{cell.i},{cell.j}"


def parse_cell_key(key: str) -> Cell:
    """Inverse of cell_key. Raises ValueError on anything else."""
    m = _KEY.fullmatch(key)
    if m is None:
        raise ValueError(f"bad cell key: {key!r}")
    cell = Cell(int(m.group(1)), int(m.group(2)))
    # "-0" and "01" parse but are not what cell_key writes
    if cell_key(cell) != key:
        raise ValueError(f"non-canonical cell key: {key!r}")
    return cell


def chebyshev(a: Cell, b: Cell) -> int:
    return max(abs(a.i - b.i), abs(a.j - b.j))


# ---------- ranges ----------
@dataclass(frozen=True)
class CellRange:
    """Inclusive rectangle of cells, lo.i <= i <= hi.i and lo.j <= j <= hi.j."""
    lo: Cell
    hi: Cell

    def __post_init__(self):
        if self.lo.i > self.hi.i or self.lo.j > self.hi.j:
            raise ValueError(f"empty cell range {self.lo}..{self.hi}")

    @classmethod
    def spanning(cls, a: Cell, b: Cell) -> "CellRange":
        """Range covering both cells, whichever corners they are."""
        return cls(Cell(min(a.i, b.i), min(a.j, b.j)), Cell(max(a.i, b.i), max(a.j, b.j)))

    @classmethod
    def from_positions(cls, a: LatLng, b: LatLng, tile: float = TILE_DEGREES) -> "CellRange":
        return cls.spanning(to_cell(a, tile), to_cell(b, tile))

    @classmethod
    def around(cls, center: Cell, radius: int) -> "CellRange":
        return cls(center.offset(-radius, -radius), center.offset(radius, radius))

    def expand(self, radius: int) -> "CellRange":
        return CellRange(self.lo.offset(-radius, -radius), self.hi.offset(radius, radius))

    @property
    def rows(self) -> int:
        return self.hi.i - self.lo.i + 1

    @property
    def cols(self) -> int:
        return self.hi.j - self.lo.j + 1

    def __len__(self) -> int:
        return self.rows * self.cols

    def __contains__(self, cell: object) -> bool:
        if not isinstance(cell, Cell):
            return False
        return self.lo.i <= cell.i <= self.hi.i and self.lo.j <= cell.j <= self.hi.j

    def __iter__(self) -> Iterator[Cell]:
        for i in range(self.lo.i, self.hi.i + 1):
            for j in range(self.lo.j, self.hi.j + 1):
                yield Cell(i, j)

"""
Player: where they stand on the grid and the one token they may carry.
"""
from dataclasses import dataclass
from typing import Optional

from .grid import Cell


@dataclass
class Player:
    cell: Cell
    held: Optional[int] = None

    def move(self, di: int, dj: int) -> Cell:
        self.cell = self.cell.offset(di, dj)
        return self.cell

    def move_to(self, cell: Cell) -> bool:
        """Returns False when already there."""
        if cell == self.cell:
            return False
        self.cell = cell
        return True

    def reset(self, cell: Cell) -> None:
        self.cell = cell
        self.held = None

    @property
    def empty_handed(self) -> bool:
        return self.held is None

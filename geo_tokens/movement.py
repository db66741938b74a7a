"""
Movement controllers: how the player's position reaches the session.

ButtonMovement steps one cell per press. PositionFeedMovement takes
real-world fixes (a GPS watch, or a recorded track) and only moves the
player when a fix lands in a different cell.
"""
from pathlib import Path
from typing import Iterable, Iterator
import csv
import logging

from .grid import LatLng, to_cell
from .session import GameSession

logger = logging.getLogger(__name__)

DIRECTIONS = {
    "north": (1, 0),
    "south": (-1, 0),
    "west": (0, -1),
    "east": (0, 1),
}


class MovementController:
    def __init__(self, session: GameSession):
        self.session = session
        self.active = False

    def initialize(self) -> None:
        self.active = True

    def cleanup(self) -> None:
        self.active = False


class ButtonMovement(MovementController):
    def press(self, direction: str) -> bool:
        if not self.active:
            return False
        if direction not in DIRECTIONS:
            raise ValueError(f"unknown direction {direction!r}")
        self.session.move(*DIRECTIONS[direction])
        return True


class PositionFeedMovement(MovementController):
    def on_position(self, position: LatLng) -> bool:
        """Returns True when the fix moved the player to a new cell."""
        if not self.active:
            return False
        cell = to_cell(position, self.session.cfg.tile_degrees)
        logger.debug("fix %.6f,%.6f -> cell %s", position.lat, position.lng, cell)
        return self.session.move_to(cell)

    def replay(self, fixes: Iterable[LatLng]) -> int:
        moved = 0
        for fix in fixes:
            if self.on_position(fix):
                moved += 1
        return moved


def read_track(path) -> Iterator[LatLng]:
    """Yield fixes from a CSV of lat,lng rows; blank lines and # comments skipped."""
    with Path(path).open("r", encoding="utf-8", newline="") as f:
        for lineno, row in enumerate(csv.reader(f), start=1):
            if not row or not row[0].strip() or row[0].lstrip().startswith("#"):
                continue
            try:
                lat, lng = (float(x) for x in row[:2])
            except ValueError as e:
                raise ValueError(f"{path}:{lineno}: bad fix {row!r}") from e
            yield LatLng(lat, lng)


def make_controller(mode: str, session: GameSession) -> MovementController:
    if mode == "geolocation":
        return PositionFeedMovement(session)
    if mode == "buttons":
        return ButtonMovement(session)
    raise ValueError(f"unknown movement mode {mode!r}")

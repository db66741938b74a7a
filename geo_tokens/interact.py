"""
Interaction rules for clicking a cache.

resolve() is pure: it takes the cache value, what the player holds and where
they stand, and says what happens. Applying the result (store write, save,
redraw) is the session's job.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .grid import Cell, chebyshev


class Outcome(Enum):
    PICKUP = "pickup"
    CRAFT = "craft"
    PLACE = "place"
    NOOP = "noop"
    OUT_OF_RANGE = "out_of_range"

    @property
    def changed(self) -> bool:
        return self in (Outcome.PICKUP, Outcome.CRAFT, Outcome.PLACE)


NOTICES = {
    Outcome.OUT_OF_RANGE: "Too far away! Move closer to interact.",
    Outcome.NOOP: "Nothing happens. Try picking up or combining matching tokens!",
}


@dataclass(frozen=True)
class Transition:
    outcome: Outcome
    cell_value: int
    held: Optional[int]

    @property
    def notice(self) -> Optional[str]:
        return NOTICES.get(self.outcome)


def in_range(cell: Cell, player_cell: Cell, interact_range: int) -> bool:
    return chebyshev(cell, player_cell) <= interact_range


def resolve(cell: Cell, current: int, held: Optional[int],
            player_cell: Cell, interact_range: int) -> Transition:
    if not in_range(cell, player_cell, interact_range):
        return Transition(Outcome.OUT_OF_RANGE, current, held)

    # pick up
    if held is None and current > 0:
        return Transition(Outcome.PICKUP, 0, current)

    # craft: two equal tokens make one of double value, left in the cache
    if held is not None and current > 0 and held == current:
        return Transition(Outcome.CRAFT, held * 2, None)

    # place into an emptied cache
    if held is not None and current == 0:
        return Transition(Outcome.PLACE, held, None)

    return Transition(Outcome.NOOP, current, held)


def produces_victory(t: Transition, target_value: int) -> bool:
    """True when a successful transition yields a token worth the target."""
    if not t.outcome.changed:
        return False
    if t.held is not None and t.held >= target_value:
        return True
    return t.outcome is Outcome.CRAFT and t.cell_value >= target_value

"""
Runner: headless play with a greedy explorer bot.
This is the single entrypoint you can call from a script or notebook.

The bot picks up the biggest token in reach when empty-handed, crafts when
a matching cache is in reach, otherwise walks toward the nearest useful
cache it can see (or wanders).
"""
from typing import Dict, Iterable, List, Optional
import logging
import numpy as np
from tqdm import trange

from .grid import Cell, CellRange, LatLng, chebyshev
from .interact import Outcome
from .movement import DIRECTIONS, ButtonMovement, PositionFeedMovement
from .persist import Storage
from .player import Player
from .session import GameSession
from .world import WorldConfig

logger = logging.getLogger(__name__)


class FollowCamera:
    """Viewport source centred on a player, for surfaces without a real map."""

    def __init__(self, half_rows: int = 10, half_cols: int = 16):
        self.half_rows = half_rows
        self.half_cols = half_cols
        self.target: Optional[Player] = None

    def follow(self, player: Player) -> None:
        self.target = player

    def __call__(self) -> CellRange:
        if self.target is None:
            raise RuntimeError("camera is not following anyone")
        c = self.target.cell
        return CellRange(c.offset(-self.half_rows, -self.half_cols),
                         c.offset(self.half_rows, self.half_cols))


def new_stats() -> Dict[str, int]:
    return {"moves": 0, "pickup": 0, "craft": 0, "place": 0, "noop": 0,
            "out_of_range": 0, "best_token": 0, "won_at": -1}


def _record(stats: Dict[str, int], session: GameSession, outcome: Outcome, tick: int) -> None:
    stats[outcome.value] += 1
    if session.player.held is not None:
        stats["best_token"] = max(stats["best_token"], session.player.held)
    if session.won and stats["won_at"] < 0:
        stats["won_at"] = tick


def _reachable(session: GameSession) -> List[Cell]:
    return [c for c in session.active.cells() if session.can_interact(c)]


def try_interact(session: GameSession) -> Optional[Outcome]:
    """Make the best move available from where the player stands."""
    held = session.player.held
    values = {c: session.store.get(c).value for c in _reachable(session)}
    if held is None:
        full = [c for c, v in values.items() if v > 0]
        if not full:
            return None
        pick = max(full, key=lambda c: (values[c], -chebyshev(c, session.player.cell)))
        return session.interact(pick).outcome
    match = [c for c, v in values.items() if v == held]
    if match:
        return session.interact(match[0]).outcome
    return None


def step_toward(session: GameSession, rng: np.random.Generator) -> None:
    held = session.player.held
    here = session.player.cell
    wanted = [c for c in session.active.cells()
              if (session.store.get(c).value == held if held is not None
                  else session.store.get(c).value > 0)]
    if wanted:
        goal = min(wanted, key=lambda c: chebyshev(c, here))
        di = int(np.sign(goal.i - here.i)); dj = int(np.sign(goal.j - here.j))
        # one axis per press, like the arrow buttons
        if di != 0 and (dj == 0 or rng.random() < 0.5):
            session.move(di, 0)
        else:
            session.move(0, dj)
        return
    name = list(DIRECTIONS)[int(rng.integers(0, len(DIRECTIONS)))]
    session.move(*DIRECTIONS[name])


def explore(steps: int = 500, seed: int = 7, config: Optional[WorldConfig] = None,
            storage: Optional[Storage] = None, stop_on_win: bool = True,
            quiet: bool = False) -> Dict[str, int]:
    config = config or WorldConfig()
    rng = np.random.default_rng(seed)
    camera = FollowCamera()
    session = GameSession.create(config, viewport=camera, storage=storage)
    camera.follow(session.player)
    session.start()
    buttons = ButtonMovement(session)
    buttons.initialize()

    stats = new_stats()
    for tick in trange(steps, desc="explore", disable=quiet):
        outcome = try_interact(session)
        if outcome is not None:
            _record(stats, session, outcome, tick)
            if session.won and stop_on_win:
                break
            continue
        step_toward(session, rng)
        stats["moves"] += 1

    buttons.cleanup()
    session.close()
    logger.info("explore finished: %s", stats)
    return stats


def replay_track(fixes: Iterable[LatLng], config: Optional[WorldConfig] = None,
                 storage: Optional[Storage] = None, quiet: bool = False) -> Dict[str, int]:
    """Walk a recorded position track, interacting greedily at every fix."""
    config = config or WorldConfig()
    camera = FollowCamera()
    session = GameSession.create(config, viewport=camera, storage=storage)
    camera.follow(session.player)
    session.start()
    feed = PositionFeedMovement(session)
    feed.initialize()

    stats = new_stats()
    fixes = list(fixes)
    for tick in trange(len(fixes), desc="track", disable=quiet):
        if feed.on_position(fixes[tick]):
            stats["moves"] += 1
        outcome = try_interact(session)
        if outcome is not None:
            _record(stats, session, outcome, tick)

    feed.cleanup()
    session.close()
    logger.info("track finished: %s", stats)
    return stats

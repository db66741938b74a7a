"""
Viewer: play on an interactive matplotlib map.
- axes are longitude (x) / latitude (y); one rectangle per active cache
- the camera follows the player; only caches near the view exist on screen
- HUD: position, inventory, victory
- feed of recent interactions and notices under the HUD

Controls:
  arrows / WASD = move one cell  |  click = interact with a cache
  R = reset position  |  N = new game  |  J = toggle feed  |  Q = quit
"""
from typing import Any, Iterable, Iterator, List, Optional
import logging
import time
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .grid import Cell, CellRange, LatLng, bounds, to_cell, to_position
from .movement import ButtonMovement, PositionFeedMovement, make_controller
from .persist import Storage
from .session import GameSession
from .world import CacheState, WorldConfig

logger = logging.getLogger(__name__)

VIEW_ROWS = 24   # cells visible top to bottom
VIEW_COLS = 36
FEED_LINES = 8

EDGE = "#555555"
EDGE_NEAR = "#00ff00"
EDGE_FAR = "#ff0000"


class CacheArtist:
    def __init__(self, rect: Rectangle, label):
        self.rect = rect
        self.label = label


class MatplotlibRenderer:
    """Draws caches as cell rectangles with their token value in the middle."""

    def __init__(self, ax, tile: float):
        self.ax = ax
        self.tile = tile

    def materialize(self, cell: Cell, state: CacheState) -> CacheArtist:
        b = bounds(cell, self.tile)
        rect = Rectangle((b.low.lng, b.low.lat), self.tile, self.tile,
                         facecolor="#1e88e5", edgecolor=EDGE, linewidth=1, zorder=2)
        self.ax.add_patch(rect)
        c = b.center()
        label = self.ax.text(c.lng, c.lat, "", ha="center", va="center",
                             fontsize=8, fontweight="bold", zorder=3)
        art = CacheArtist(rect, label)
        self.refresh(art, state)
        return art

    def refresh(self, handle: CacheArtist, state: CacheState) -> None:
        if state.empty:
            handle.label.set_text(""); handle.label.set_visible(False)
            handle.rect.set_alpha(0.05)
        else:
            handle.label.set_text(str(state.value)); handle.label.set_visible(True)
            handle.rect.set_alpha(0.2)

    def destroy(self, handle: CacheArtist) -> None:
        handle.rect.remove()
        handle.label.remove()


def _fix_iter(fixes: Optional[Iterable[LatLng]]) -> Optional[Iterator[LatLng]]:
    return iter(list(fixes)) if fixes is not None else None


def run_live(config: Optional[WorldConfig] = None, storage: Optional[Storage] = None,
             movement: str = "buttons", track: Optional[Iterable[LatLng]] = None,
             fps: int = 10) -> None:
    config = config or WorldConfig()
    tile = config.tile_degrees

    fig, ax = plt.subplots(figsize=(VIEW_COLS / 4, VIEW_ROWS / 4))
    try: fig.canvas.manager.set_window_title("Geo Tokens")
    except AttributeError: pass
    ax.set_facecolor("#f5f5f0")
    ax.set_xticks([]); ax.set_yticks([])

    # -------- camera helpers --------
    def center_on(pos: LatLng) -> None:
        half_w, half_h = VIEW_COLS * tile / 2, VIEW_ROWS * tile / 2
        ax.set_xlim(pos.lng - half_w, pos.lng + half_w)
        ax.set_ylim(pos.lat - half_h, pos.lat + half_h)

    def visible_cells() -> CellRange:
        (x0, x1), (y0, y1) = ax.get_xlim(), ax.get_ylim()
        return CellRange.from_positions(LatLng(y1, x0), LatLng(y0, x1), tile)

    center_on(config.start)
    session = GameSession.create(config, viewport=visible_cells, storage=storage,
                                 renderer=MatplotlibRenderer(ax, tile))

    player_dot = ax.scatter([], [], s=60, c="#d81b60", zorder=4)
    hud = ax.text(0.01, 0.99, "", transform=ax.transAxes, ha="left", va="top",
                  fontsize=8, family="monospace", zorder=5,
                  bbox={"facecolor": "white", "alpha": 0.85, "edgecolor": "none"})
    feed_text = ax.text(0.01, 0.80, "", transform=ax.transAxes, ha="left", va="top",
                        fontsize=7, family="monospace", zorder=5)
    feed_on = True
    hovered: List[Any] = [None]

    def follow_player() -> None:
        c = session.player.cell
        p = to_position(c, tile)
        center_on(LatLng(p.lat + tile / 2, p.lng + tile / 2))
        player_dot.set_offsets(np.c_[[p.lng + tile / 2], [p.lat + tile / 2]])

    def on_event(kind: str, info) -> None:
        if kind in ("start", "move", "new_game"):
            follow_player()
        elif kind == "victory":
            logger.info("victory reached")

    session.listeners.append(on_event)
    loaded = session.start()
    logger.info("viewer started (%s)", "loaded save" if loaded else "fresh world")

    controller = make_controller(movement, session)
    controller.initialize()
    buttons = controller if isinstance(controller, ButtonMovement) else ButtonMovement(session)
    feed = controller if isinstance(controller, PositionFeedMovement) else None
    fixes = _fix_iter(track)

    # -------- interaction --------
    def on_key(ev):
        nonlocal feed_on
        key = ev.key
        if key in ("up", "w"): buttons.press("north")
        elif key in ("down", "s"): buttons.press("south")
        elif key in ("left", "a"): buttons.press("west")
        elif key in ("right", "d"): buttons.press("east")
        elif key in ("r", "R"): session.reset_position()
        elif key in ("n", "N"): session.new_game()
        elif key in ("j", "J"): feed_on = not feed_on
        elif key in ("q", "Q"): plt.close(fig)

    def cell_at(ev) -> Optional[Cell]:
        if ev.inaxes is not ax or ev.xdata is None or ev.ydata is None:
            return None
        return to_cell(LatLng(float(ev.ydata), float(ev.xdata)), tile)

    def on_click(ev):
        cell = cell_at(ev)
        if cell is None or cell not in session.active:
            return
        session.interact(cell)

    def on_motion(ev):
        prev = hovered[0]
        if prev is not None and prev in session.active:
            art = session.active.handle(prev)
            art.rect.set_edgecolor(EDGE); art.rect.set_linewidth(1)
        cell = cell_at(ev)
        hovered[0] = cell if cell is not None and cell in session.active else None
        if hovered[0] is not None:
            art = session.active.handle(cell)
            art.rect.set_edgecolor(EDGE_NEAR if session.can_interact(cell) else EDGE_FAR)
            art.rect.set_linewidth(2)

    fig.canvas.mpl_connect("key_press_event", on_key)
    fig.canvas.mpl_connect("button_press_event", on_click)
    fig.canvas.mpl_connect("motion_notify_event", on_motion)

    plt.tight_layout(); plt.pause(0.001)
    delay = 1.0 / max(1, fps)

    while plt.fignum_exists(fig.number):
        if fixes is not None and feed is not None:
            fix = next(fixes, None)
            if fix is not None:
                feed.on_position(fix)

        hud.set_text(session.status_text())
        if feed_on:
            recent = [e for e in session.events if e["kind"] not in ("status", "move")]
            lines = []
            for e in recent[-FEED_LINES:]:
                if e["kind"] == "notice":
                    lines.append(e["message"])
                elif "i" in e:
                    lines.append(f"{e['kind']:<7} ({e['i']}, {e['j']}) -> {e['cell_value']}")
                else:
                    lines.append(e["kind"])
            feed_text.set_text("[recent]\n" + ("\n".join(lines) if lines else "(nothing yet)"))
        else:
            feed_text.set_text("")

        plt.pause(0.001); time.sleep(delay)

    controller.cleanup()
    session.close()

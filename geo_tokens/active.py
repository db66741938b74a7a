"""
Active caches: the on-screen representations of caches near the viewport.

Only cells inside the (buffered) viewport get a representation; everything
else is forgotten on screen and rebuilt from the store when it comes back
into view. The active map and the store never share a structure, so
dropping a representation cannot lose a cache's value.
"""
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple
import logging

from .grid import Cell, CellRange
from .world import CacheState, CacheStore

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """What the active manager drives on the drawing surface."""

    def materialize(self, cell: Cell, state: CacheState) -> Any:
        """Draw the cache and return a handle for it."""

    def refresh(self, handle: Any, state: CacheState) -> None:
        ...

    def destroy(self, handle: Any) -> None:
        ...


class NullRenderer:
    """Headless surface: handles are just the cells."""

    def materialize(self, cell: Cell, state: CacheState) -> Any:
        return cell

    def refresh(self, handle: Any, state: CacheState) -> None:
        pass

    def destroy(self, handle: Any) -> None:
        pass


class ActiveCellManager:
    def __init__(self, store: CacheStore, renderer: Optional[Renderer] = None):
        self.store = store
        self.renderer = renderer if renderer is not None else NullRenderer()
        self._active: Dict[Cell, Any] = {}
        self.viewport: Optional[CellRange] = None

    def set_viewport(self, cells: CellRange) -> Tuple[List[Cell], List[Cell]]:
        """Sync representations with the range. Returns (created, destroyed)."""
        self.viewport = cells

        destroyed = [c for c in self._active if c not in cells]
        for cell in destroyed:
            self._drop(cell)

        created: List[Cell] = []
        for cell in cells:
            if cell in self._active:
                continue
            state = self.store.get(cell)
            if state is None:
                continue
            self._active[cell] = self.renderer.materialize(cell, state)
            created.append(cell)

        if created or destroyed:
            logger.debug("viewport %s..%s: +%d -%d (active %d)",
                         cells.lo, cells.hi, len(created), len(destroyed), len(self._active))
        return created, destroyed

    def refresh(self, cell: Cell) -> bool:
        """Push the current value to the cell's representation, if it has one."""
        if cell not in self._active:
            return False
        state = self.store.get(cell)
        if state is None:
            return False
        self.renderer.refresh(self._active[cell], state)
        return True

    def clear(self) -> None:
        for cell in list(self._active):
            self._drop(cell)
        self.viewport = None

    def _drop(self, cell: Cell) -> None:
        handle = self._active.pop(cell)
        self.renderer.destroy(handle)

    # ---------- queries ----------
    def handle(self, cell: Cell) -> Any:
        return self._active.get(cell)

    def cells(self) -> Iterator[Cell]:
        return iter(list(self._active))

    def __contains__(self, cell: object) -> bool:
        return cell in self._active

    def __len__(self) -> int:
        return len(self._active)

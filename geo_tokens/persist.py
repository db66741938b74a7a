"""
Saving and loading a game.

The saved blob is JSON text of the shape
    {"playerCell": {"i": 0, "j": 0},
     "heldValue": 4 | null,
     "overrides": [["i,j", value], ...]}
Decoding checks the whole blob before handing anything back, so a bad save
is rejected outright rather than half applied.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol
import json
import logging
import os
import tempfile

from .errors import CorruptPersistedState
from .grid import Cell, cell_key, parse_cell_key
from .world import is_token_value

logger = logging.getLogger(__name__)

STORAGE_KEY = "geocacheGameState"


@dataclass
class SavedGame:
    player_cell: Cell
    held: Optional[int] = None
    overrides: Dict[Cell, int] = field(default_factory=dict)


# ---------- codec ----------
def to_blob(saved: SavedGame) -> dict:
    return {
        "playerCell": {"i": saved.player_cell.i, "j": saved.player_cell.j},
        "heldValue": saved.held,
        "overrides": [[cell_key(c), v] for c, v in
                      sorted(saved.overrides.items(), key=lambda kv: (kv[0].i, kv[0].j))],
    }


def _is_int(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def from_blob(blob) -> SavedGame:
    if not isinstance(blob, dict):
        raise CorruptPersistedState("saved state is not an object")
    for key in ("playerCell", "heldValue", "overrides"):
        if key not in blob:
            raise CorruptPersistedState(f"saved state lacks {key!r}")

    pc = blob["playerCell"]
    if not isinstance(pc, dict) or not _is_int(pc.get("i")) or not _is_int(pc.get("j")):
        raise CorruptPersistedState(f"bad playerCell: {pc!r}")

    held = blob["heldValue"]
    if held is not None and not (is_token_value(held) and held > 0):
        raise CorruptPersistedState(f"bad heldValue: {held!r}")

    entries = blob["overrides"]
    if not isinstance(entries, list):
        raise CorruptPersistedState("overrides is not a list")
    overrides: Dict[Cell, int] = {}
    for entry in entries:
        if not isinstance(entry, list) or len(entry) != 2 or not isinstance(entry[0], str):
            raise CorruptPersistedState(f"bad override entry: {entry!r}")
        key, value = entry
        try:
            cell = parse_cell_key(key)
        except ValueError as e:
            raise CorruptPersistedState(str(e)) from e
        if not is_token_value(value):
            raise CorruptPersistedState(f"bad override value at {key}: {value!r}")
        if cell in overrides:
            raise CorruptPersistedState(f"duplicate override for {key}")
        overrides[cell] = value

    return SavedGame(Cell(pc["i"], pc["j"]), held, overrides)


def serialize(saved: SavedGame) -> str:
    return json.dumps(to_blob(saved), separators=(",", ":"))


def deserialize(text: str) -> SavedGame:
    try:
        blob = json.loads(text)
    except (TypeError, ValueError) as e:
        raise CorruptPersistedState(f"saved state is not JSON: {e}") from e
    return from_blob(blob)


# ---------- sinks ----------
class Storage(Protocol):
    def persist(self, text: str) -> None: ...
    def load(self) -> Optional[str]: ...
    def remove(self) -> None: ...


class MemoryStorage:
    """Keeps the save in a dict, like a browser's key-value storage."""

    def __init__(self, key: str = STORAGE_KEY):
        self.key = key
        self.items: Dict[str, str] = {}

    def persist(self, text: str) -> None:
        self.items[self.key] = text

    def load(self) -> Optional[str]:
        return self.items.get(self.key)

    def remove(self) -> None:
        self.items.pop(self.key, None)


class JsonFileStorage:
    """One save per file; writes go through a temp file then os.replace."""

    def __init__(self, path):
        self.path = Path(path)

    def persist(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def load(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptPersistedState(f"{self.path} is not text: {e}") from e

    def remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        logger.info("removed save %s", self.path)

"""
Errors raised by the token world.

Interaction refusals (too far away, nothing to do) are not exceptions; see
interact.Outcome. What lives here is for broken inputs and missing pieces.
"""


class GameError(Exception):
    """Base class for everything the game raises on purpose."""


class ConfigError(GameError, ValueError):
    pass


class CorruptPersistedState(GameError, ValueError):
    """A saved game could not be decoded. Nothing from it was applied."""


class NoCacheHere(GameError, LookupError):
    def __init__(self, cell):
        super().__init__(f"no cache at cell ({cell.i}, {cell.j})")
        self.cell = cell


class MissingCollaborator(GameError, RuntimeError):
    """A session was built without something it cannot run without."""


class NoRandomSource(MissingCollaborator):
    pass


class NoViewportSource(MissingCollaborator):
    pass

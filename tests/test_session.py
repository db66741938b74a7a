import pytest

from geo_tokens.errors import NoCacheHere, NoRandomSource, NoViewportSource
from geo_tokens.grid import Cell
from geo_tokens.interact import Outcome
from geo_tokens.persist import JsonFileStorage, SavedGame, deserialize, serialize
from geo_tokens.session import GameSession
from geo_tokens.world import WorldConfig

from conftest import FixedViewport, VALUE_4, VALUE_8


@pytest.fixture
def world(luck):
    luck.cache(0, 0, VALUE_4).cache(0, 2, VALUE_4).cache(1, 1, VALUE_8).cache(0, 4, VALUE_4)
    return luck


def kinds(session):
    return [e["kind"] for e in session.events]


def test_pickup_then_craft_wins(world, make_session, storage):
    s = make_session()
    assert s.start() is False
    assert s.player.cell == Cell(0, 0)

    t = s.interact(Cell(0, 0))
    assert t.outcome is Outcome.PICKUP
    assert s.player.held == 4
    assert s.store.get(Cell(0, 0)).value == 0
    assert Cell(0, 0) in s.store

    s.move(0, 1)
    t = s.interact(Cell(0, 2))
    assert t.outcome is Outcome.CRAFT
    assert s.player.held is None
    assert s.store.get(Cell(0, 2)).value == 8
    assert s.store.snapshot() == {Cell(0, 0): 0, Cell(0, 2): 8}
    assert s.won
    assert "victory" in kinds(s)
    assert deserialize(storage.load()) == SavedGame(Cell(0, 1), None, {Cell(0, 0): 0, Cell(0, 2): 8})


def test_out_of_range_changes_nothing(world, make_session, storage):
    s = make_session()
    s.start()
    saved_before = storage.load()
    t = s.interact(Cell(0, 4))  # range 3, player at (0, 0)
    assert t.outcome is Outcome.OUT_OF_RANGE
    assert s.player.held is None
    assert s.store.get(Cell(0, 4)).value == 4
    assert len(s.store) == 0
    assert storage.load() == saved_before
    assert s.events[-1] == {"kind": "notice", "outcome": "out_of_range",
                            "message": "Too far away! Move closer to interact."}


def test_noop_changes_nothing(world, make_session):
    s = make_session()
    s.start()
    s.interact(Cell(0, 0))          # hold 4
    t = s.interact(Cell(1, 1))      # holds 8
    assert t.outcome is Outcome.NOOP
    assert s.player.held == 4 and s.store.get(Cell(1, 1)).value == 8
    assert Cell(1, 1) not in s.store


def test_place_back_into_emptied_cache(world, make_session, renderer):
    s = make_session()
    s.start()
    s.interact(Cell(0, 0))
    t = s.interact(Cell(0, 0))
    assert t.outcome is Outcome.PLACE
    assert s.player.held is None
    assert s.store.get(Cell(0, 0)).value == 4
    assert renderer.refreshed == [(Cell(0, 0), 0), (Cell(0, 0), 4)]


def test_no_cache_cell_is_not_interactable(world, make_session):
    s = make_session()
    s.start()
    with pytest.raises(NoCacheHere):
        s.interact(Cell(3, 3))


def test_state_survives_reload(world, make_session, storage):
    s = make_session()
    s.start()
    s.interact(Cell(0, 0))
    s.move(1, 0)
    s.close()

    again = make_session()
    assert again.start() is True
    assert again.player.cell == Cell(1, 0)
    assert again.player.held == 4
    assert again.store.get(Cell(0, 0)).value == 0


def test_corrupt_save_falls_back_to_fresh_world(world, make_session, storage):
    storage.persist('{"playerCell": {"i": 7, "j": 7}, "heldValue": 4, "overrides": [["1,1", 3]]}')
    s = make_session()
    assert s.start() is False
    assert s.player.cell == Cell(0, 0) and s.player.held is None
    assert len(s.store) == 0
    assert "corrupt_save" in kinds(s)


def test_loading_a_winning_hand_counts_as_won(world, make_session, storage, config):
    storage.persist(serialize(SavedGame(Cell(0, 0), config.target_value)))
    s = make_session()
    s.start()
    assert s.won


def test_new_game_resets_everything(world, make_session, renderer, storage):
    s = make_session()
    s.start()
    s.interact(Cell(0, 0))
    s.move(2, 2)
    s.new_game()
    assert s.player.cell == Cell(0, 0) and s.player.held is None
    assert len(s.store) == 0
    assert s.store.get(Cell(0, 0)).value == 4
    assert renderer.live[Cell(0, 0)].value == 4
    assert deserialize(storage.load()) == SavedGame(Cell(0, 0))


def test_reset_position_keeps_inventory(world, make_session):
    s = make_session()
    s.start()
    s.interact(Cell(0, 0))
    s.move(-3, 4)
    s.reset_position()
    assert s.player.cell == Cell(0, 0)
    assert s.player.held == 4


def test_move_to_same_cell_is_ignored(world, make_session):
    s = make_session()
    s.start()
    assert not s.move_to(Cell(0, 0))
    assert s.move_to(Cell(0, 1))


def test_listeners_hear_events(world, make_session):
    heard = []
    s = make_session()
    s.listeners.append(lambda kind, info: heard.append(kind))
    s.start()
    s.interact(Cell(0, 0))
    assert heard == ["start", "status", "pickup", "status"]


def test_status_text(world, make_session):
    s = make_session()
    s.start()
    assert s.status_text() == "Position: (0, 0)\nInventory: Empty"
    s.interact(Cell(1, 1))
    assert s.status_text() == "Position: (0, 0)\nInventory: Token [8]\n" \
                              "Victory! You crafted a token worth 8 or more!"


def test_missing_collaborators_are_fatal(config, luck, viewport):
    with pytest.raises(NoRandomSource):
        GameSession(config, None, viewport)
    with pytest.raises(NoViewportSource):
        GameSession(config, luck, None)
    with pytest.raises(NoViewportSource):
        GameSession.create(config)


def test_create_uses_seeded_luck(viewport):
    a = GameSession.create(WorldConfig(seed=3), viewport=viewport)
    b = GameSession.create(WorldConfig(seed=3), viewport=viewport)
    cells = [Cell(i, j) for i in range(-5, 6) for j in range(-5, 6)]
    assert [a.store.get(c) for c in cells] == [b.store.get(c) for c in cells]


def test_viewport_buffer_is_applied(world, make_session, viewport, config):
    config.viewport_radius = 2
    s = make_session(config)
    s.start()
    assert s.active.viewport == viewport.cells.expand(2)


def test_undecodable_save_file_falls_back_to_fresh_world(world, make_session, tmp_path):
    path = tmp_path / "save.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    s = make_session(storage=JsonFileStorage(path))
    assert s.start() is False
    assert s.player.cell == Cell(0, 0) and s.player.held is None
    assert len(s.store) == 0
    assert "corrupt_save" in kinds(s)
    s.interact(Cell(0, 0))
    assert deserialize(path.read_text()).held == 4


def test_victory_line_follows_the_held_token(world, make_session):
    s = make_session()
    s.start()
    s.interact(Cell(1, 1))          # pick up 8, target is 8
    assert s.won and s.status_text().endswith("worth 8 or more!")
    s.move(-1, -1)
    s.interact(Cell(0, 0))          # holds 8, cache 4: nothing
    s.interact(Cell(1, 1))          # put the 8 back
    assert s.player.held is None
    assert s.won
    assert "Victory" not in s.status_text()


class CountingViewport(FixedViewport):
    def __init__(self, cells, events):
        super().__init__(cells)
        self.events = events

    def __call__(self):
        self.events.append("viewport")
        return super().__call__()


def test_one_viewport_pass_per_move_after_the_move_event(world, make_session, viewport):
    order = []
    s = make_session(viewport=CountingViewport(viewport.cells, order))
    s.listeners.append(lambda kind, info: order.append(kind))
    s.start()
    assert order == ["start", "viewport", "status"]
    del order[:]
    s.move(0, 1)
    assert order == ["move", "viewport", "status"]
    del order[:]
    s.new_game()
    assert order == ["new_game", "viewport", "status"]

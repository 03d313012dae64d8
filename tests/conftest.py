"""Shared fixtures for the Hex Realm test suite."""

import pytest

from core.board import Board, Tile
from core.constants import Phase, Resource, Terrain
from core.hexgrid import HexGrid
from engine.game_engine import GameEngine


PLAYERS = [
    {"name": "Ada", "color": "red"},
    {"name": "Bo", "color": "blue"},
]


def make_board(size: int = 4, terrain: Terrain = Terrain.GRASS, value: int = 1) -> Board:
    """Create a board where every tile has the same terrain and value."""
    grid = HexGrid.square(size)
    tiles = {
        coord: Tile(coord=coord, terrain=terrain, resource_value=value)
        for coord in grid.coordinates()
    }
    return Board(grid, tiles)


def set_wallet(player, wood: int = 0, stone: int = 0, food: int = 0) -> None:
    """Overwrite a player's wallet."""
    player.resources[Resource.WOOD] = wood
    player.resources[Resource.STONE] = stone
    player.resources[Resource.FOOD] = food


def make_engine(board=None, players=PLAYERS, seed: int = 7, **kwargs) -> GameEngine:
    """Create a started engine on a fixed board, still in setup."""
    engine = GameEngine(seed=seed, **kwargs)
    assert engine.configure_players(players).success
    assert engine.use_board(board or make_board()).success
    assert engine.start().success
    return engine


def assert_board_consistent(engine: GameEngine) -> None:
    """Every invariant of GameState.validate() holds."""
    assert engine.state.validate() == []


@pytest.fixture
def engine():
    """Two players on a 4x4 grass board: Ada at (0,0), Bo at (3,3).

    Setup is complete; Ada is about to roll.
    """
    engine = make_engine()
    assert engine.select_tile((0, 0)).success
    assert engine.select_tile((3, 3)).success
    assert engine.state.phase == Phase.RESOURCE_COLLECTION
    return engine


@pytest.fixture
def action_engine(engine):
    """Same as engine, but Ada has rolled and is at the action hub."""
    assert engine.roll_dice().success
    assert engine.state.phase == Phase.ACTION
    return engine

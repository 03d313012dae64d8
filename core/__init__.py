"""Core data models for the Hex Realm game engine."""

from .constants import (
    Terrain,
    Resource,
    Phase,
    ActionName,
    CombatVariant,
    TERRAIN_RESOURCE,
    ACTION_SUB_PHASES,
    SUB_PHASES,
    TWO_STEP_PHASES,
    DIE_FACES,
    MIN_PLAYERS,
    MAX_PLAYERS,
    MIN_BOARD_SIZE,
    DEFAULT_BOARD_SIZE,
)

from .errors import (
    HexRealmError,
    InvalidPhaseAction,
    InvalidTileSelection,
    InsufficientResources,
    DuplicatePlayerIdentity,
    NoSnapshotAvailable,
    ConfigurationError,
    DataLoadError,
)

from .hexgrid import Coordinate, AdjacencyProvider, HexGrid, hex_distance

from .board import Tile, Board

from .player import Player, Cost

from .config import CostTable, RuleConfig, make_cost, CLASSIC_RULES, SKIRMISH_RULES, RULE_PRESETS

from .game_state import GameState

__all__ = [
    # Constants
    "Terrain",
    "Resource",
    "Phase",
    "ActionName",
    "CombatVariant",
    "TERRAIN_RESOURCE",
    "ACTION_SUB_PHASES",
    "SUB_PHASES",
    "TWO_STEP_PHASES",
    "DIE_FACES",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "MIN_BOARD_SIZE",
    "DEFAULT_BOARD_SIZE",
    # Errors
    "HexRealmError",
    "InvalidPhaseAction",
    "InvalidTileSelection",
    "InsufficientResources",
    "DuplicatePlayerIdentity",
    "NoSnapshotAvailable",
    "ConfigurationError",
    "DataLoadError",
    # Grid
    "Coordinate",
    "AdjacencyProvider",
    "HexGrid",
    "hex_distance",
    # Board
    "Tile",
    "Board",
    # Player
    "Player",
    "Cost",
    # Config
    "CostTable",
    "RuleConfig",
    "make_cost",
    "CLASSIC_RULES",
    "SKIRMISH_RULES",
    "RULE_PRESETS",
    # Game State
    "GameState",
]

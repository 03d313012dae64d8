"""Constants and enums for the Hex Realm game engine."""

from enum import Enum


class Terrain(Enum):
    """Terrain types a tile can have."""

    GRASS = "grass"
    FOREST = "forest"
    MOUNTAIN = "mountain"


class Resource(Enum):
    """Resources held in a player's wallet."""

    WOOD = "wood"
    STONE = "stone"
    FOOD = "food"


class Phase(Enum):
    """Turn phases including setup, the action hub and its sub-phases."""

    # Setup (executed once at game start)
    SETUP_SELECTION = "setup_selection"

    # Turn loop
    RESOURCE_COLLECTION = "resource_collection"
    ACTION = "action"

    # Action sub-phases (always return to ACTION)
    BUILD_ARMY = "build_army"
    BUILD_SETTLEMENT = "build_settlement"
    EXPAND_TERRITORY = "expand_territory"
    MOVE_ARMY = "move_army"
    COMBAT = "combat"

    # Terminal
    GAME_OVER = "game_over"


class ActionName(Enum):
    """Buttons the presentation layer can press."""

    ROLL_DICE = "roll_dice"
    BUILD_ARMY = "build_army"
    BUILD_SETTLEMENT = "build_settlement"
    EXPAND_TERRITORY = "expand_territory"
    MOVE_ARMY = "move_army"
    ATTACK = "attack"
    UNDO = "undo"
    END_TURN = "end_turn"
    CANCEL = "cancel"


class CombatVariant(Enum):
    """Combat resolution formulas."""

    AGGREGATE_ROLL = "aggregate_roll"
    PER_UNIT = "per_unit"


# Which wallet entry a tile's terrain feeds
TERRAIN_RESOURCE = {
    Terrain.FOREST: Resource.WOOD,
    Terrain.MOUNTAIN: Resource.STONE,
    Terrain.GRASS: Resource.FOOD,
}

# Sub-phase entered by each action button from ACTION
ACTION_SUB_PHASES = {
    ActionName.BUILD_ARMY: Phase.BUILD_ARMY,
    ActionName.BUILD_SETTLEMENT: Phase.BUILD_SETTLEMENT,
    ActionName.EXPAND_TERRITORY: Phase.EXPAND_TERRITORY,
    ActionName.MOVE_ARMY: Phase.MOVE_ARMY,
    ActionName.ATTACK: Phase.COMBAT,
}

SUB_PHASES = frozenset(ACTION_SUB_PHASES.values())

# Sub-phases that need a source tile before the target tile
TWO_STEP_PHASES = frozenset({Phase.MOVE_ARMY, Phase.COMBAT})

# Dice
DIE_FACES = 6
MIN_RESOURCE_VALUE = 1
MAX_RESOURCE_VALUE = DIE_FACES

# Player limits
MIN_PLAYERS = 2
MAX_PLAYERS = 6

# Board limits
MIN_BOARD_SIZE = 2
DEFAULT_BOARD_SIZE = 7

# Yield per matching tile, doubled by a settlement
BASE_YIELD = 1
SETTLEMENT_YIELD_MULTIPLIER = 2

# Defender keeps this share of its armies after repelling an attack
DEFENDER_RETENTION = 0.75

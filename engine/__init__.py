"""Game engine for the Hex Realm game.

This module provides the game logic including:
- Phase state machine for turn flow control
- Starting-tile selection
- Combat resolution and single-level undo
- Game engine coordinating play for any presentation layer
"""

from .phase_machine import (
    PhaseMachine,
    PhaseTransitionResult,
    PHASE_TRANSITIONS,
)

from .setup import (
    PlayerSpec,
    SetupManager,
    SetupValidationResult,
    initialize_game,
    validate_player_specs,
)

from .combat import (
    CombatResult,
    CombatResolver,
    AggregateRollResolver,
    PerUnitResolver,
    create_resolver,
)

from .undo import Snapshot, UndoManager

from .view import (
    ActionResult,
    EventKind,
    GameEvent,
    GameView,
    PlayerView,
)

from .game_engine import GameEngine, parse_action_name

__all__ = [
    # Phase machine
    "PhaseMachine",
    "PhaseTransitionResult",
    "PHASE_TRANSITIONS",
    # Setup
    "PlayerSpec",
    "SetupManager",
    "SetupValidationResult",
    "initialize_game",
    "validate_player_specs",
    # Combat
    "CombatResult",
    "CombatResolver",
    "AggregateRollResolver",
    "PerUnitResolver",
    "create_resolver",
    # Undo
    "Snapshot",
    "UndoManager",
    # Views
    "ActionResult",
    "EventKind",
    "GameEvent",
    "GameView",
    "PlayerView",
    # Game engine
    "GameEngine",
    "parse_action_name",
]

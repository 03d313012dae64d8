"""Presentation-facing records produced by the Hex Realm game engine.

The engine never talks to a rendering technology. Instead it exposes:
- GameView: everything a UI needs to draw the status panel and buttons
- ActionResult: the outcome of one tile click or button press
- GameEvent: notifications pushed to subscribed listeners
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from core.constants import ActionName, Phase


PHASE_INSTRUCTIONS: dict[Phase, str] = {
    Phase.SETUP_SELECTION: "{name}: Choose your starting hex",
    Phase.RESOURCE_COLLECTION: "Roll dice to collect resources",
    Phase.ACTION: "Choose an action: build, move armies, attack, or end turn",
    Phase.BUILD_ARMY: "Select a hex to build an army",
    Phase.BUILD_SETTLEMENT: "Select a hex to build a settlement",
    Phase.EXPAND_TERRITORY: "Select an adjacent hex to expand territory",
    Phase.MOVE_ARMY: "Select a hex with your army, then destination",
    Phase.COMBAT: "Select a hex with your army to attack from, then enemy hex",
    Phase.GAME_OVER: "{winner} wins!",
}

# Second-step prompts once a source tile is pending
PENDING_INSTRUCTIONS: dict[Phase, str] = {
    Phase.MOVE_ARMY: "Select a destination hex",
    Phase.COMBAT: "Select an enemy hex to attack",
}


class EventKind(Enum):
    """Kinds of notifications pushed to listeners."""

    STATE_CHANGED = "state_changed"
    PHASE_CHANGED = "phase_changed"
    DICE_ROLLED = "dice_rolled"
    COMBAT_RESOLVED = "combat_resolved"
    ACTION_REJECTED = "action_rejected"
    GAME_OVER = "game_over"


@dataclass
class GameEvent:
    """A notification for the presentation layer.

    Attributes:
        kind: What happened.
        payload: Event-specific details (phase names, dice, combat result...).
    """

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionResult:
    """Outcome of a tile selection or action invocation.

    Attributes:
        success: Whether the request was accepted.
        message: Human-readable status or rejection text.
        phase: Phase after the request.
        error: Error code of the rejection (None on success).
        info: Additional details (dice, combat outcome, winner...).
    """

    success: bool
    message: str
    phase: Phase
    error: Optional[str] = None
    info: dict[str, Any] = field(default_factory=dict)


@dataclass
class PlayerView:
    """Status panel contents for one player."""

    player_id: int
    name: str
    color: str
    resources: dict[str, int]
    tiles: int
    armies: int
    settlements: int
    regions: int
    has_moved_army_this_turn: bool


@dataclass
class GameView:
    """Everything a UI needs to draw its status panel and buttons.

    Attributes:
        phase: Current phase.
        current_player: Status of the player whose turn it is.
        dice: Last roll this turn (empty before rolling).
        instruction: Prompt text for the current phase.
        buttons: Enabled flag for every action button.
        undo_available: Whether the last action can be undone.
        pending_selection: Source tile of a two-step action, as (col, row).
        winner: Winning player's ID once the game is over.
        turn_number: Current turn.
    """

    phase: Phase
    current_player: PlayerView
    dice: tuple[int, ...]
    instruction: str
    buttons: dict[ActionName, bool]
    undo_available: bool
    pending_selection: Optional[tuple[int, int]] = None
    winner: Optional[int] = None
    turn_number: int = 1

    def enabled_actions(self) -> list[ActionName]:
        """Return the buttons that can currently be pressed."""
        return [name for name, enabled in self.buttons.items() if enabled]

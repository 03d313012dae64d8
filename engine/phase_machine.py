"""Phase state machine for the Hex Realm game engine.

Manages phase transitions including:
- Starting-tile selection (executed once at game start)
- The per-turn loop: resource collection, the action hub and its sub-phases
- End game detection

The phase machine enforces valid transitions and provides
the logic for when transitions should occur.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from core.constants import Phase, SUB_PHASES, TWO_STEP_PHASES

if TYPE_CHECKING:
    from core.game_state import GameState


# Valid phase transitions
PHASE_TRANSITIONS: dict[Phase, list[Phase]] = {
    # Setup (loops on itself until every player has a starting tile)
    Phase.SETUP_SELECTION: [Phase.RESOURCE_COLLECTION],
    # Turn loop
    Phase.RESOURCE_COLLECTION: [Phase.ACTION],
    Phase.ACTION: [
        Phase.BUILD_ARMY,
        Phase.BUILD_SETTLEMENT,
        Phase.EXPAND_TERRITORY,
        Phase.MOVE_ARMY,
        Phase.COMBAT,
        Phase.RESOURCE_COLLECTION,
    ],
    # Sub-phases always return to the hub (or end the game)
    Phase.BUILD_ARMY: [Phase.ACTION, Phase.GAME_OVER],
    Phase.BUILD_SETTLEMENT: [Phase.ACTION, Phase.GAME_OVER],
    Phase.EXPAND_TERRITORY: [Phase.ACTION, Phase.GAME_OVER],
    Phase.MOVE_ARMY: [Phase.ACTION, Phase.GAME_OVER],
    Phase.COMBAT: [Phase.ACTION, Phase.GAME_OVER],
    # Terminal
    Phase.GAME_OVER: [],
}


@dataclass
class PhaseTransitionResult:
    """Result of a phase transition attempt.

    Attributes:
        success: Whether the transition was successful.
        new_phase: The new phase if successful, None otherwise.
        reason: Description of why the transition failed (if it did).
    """

    success: bool
    new_phase: Optional[Phase]
    reason: Optional[str] = None


class PhaseMachine:
    """State machine for managing game phase transitions.

    The phase machine tracks the current phase and enforces valid
    transitions. It does not modify game state directly - it only
    validates moves and computes what the next phase should be.

    Phases:
        Setup (executed once):
        - SETUP_SELECTION: Each player claims one starting tile in turn order

        Turn loop (repeated each turn):
        - RESOURCE_COLLECTION: Current player rolls the dice
        - ACTION: Hub - pick a sub-phase or end the turn
        - BUILD_ARMY / BUILD_SETTLEMENT / EXPAND_TERRITORY: one tile click
        - MOVE_ARMY / COMBAT: source tile click, then target tile click
        - GAME_OVER: Terminal state
    """

    def __init__(self, initial_phase: Phase = Phase.SETUP_SELECTION):
        """Initialize the phase machine.

        Args:
            initial_phase: The starting phase (default: SETUP_SELECTION).
        """
        self._phase = initial_phase

    @property
    def phase(self) -> Phase:
        """Get the current phase."""
        return self._phase

    def sync(self, phase: Phase) -> None:
        """Jump to a phase without validation (used when restoring a snapshot)."""
        self._phase = phase

    def get_valid_transitions(self) -> list[Phase]:
        """Get the list of valid next phases from the current phase.

        Returns:
            List of phases that can be transitioned to.
        """
        return PHASE_TRANSITIONS.get(self._phase, [])

    def can_transition_to(self, target_phase: Phase) -> bool:
        """Check if a transition to the target phase is valid.

        Args:
            target_phase: The phase to transition to.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return target_phase in self.get_valid_transitions()

    def transition_to(self, target_phase: Phase) -> PhaseTransitionResult:
        """Attempt to transition to a new phase.

        Args:
            target_phase: The phase to transition to.

        Returns:
            PhaseTransitionResult indicating success or failure.
        """
        if not self.can_transition_to(target_phase):
            valid = self.get_valid_transitions()
            return PhaseTransitionResult(
                success=False,
                new_phase=None,
                reason=f"Cannot transition from {self._phase.value} to {target_phase.value}. "
                f"Valid transitions: {[p.value for p in valid]}",
            )

        self._phase = target_phase
        return PhaseTransitionResult(success=True, new_phase=target_phase)

    def is_setup_phase(self) -> bool:
        """Check if starting tiles are still being chosen."""
        return self._phase == Phase.SETUP_SELECTION

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self._phase == Phase.GAME_OVER

    def is_action_hub(self) -> bool:
        """Check if the current player may pick an action."""
        return self._phase == Phase.ACTION

    def is_sub_phase(self) -> bool:
        """Check if a build, expand, move or combat is in progress."""
        return self._phase in SUB_PHASES

    def is_two_step_phase(self) -> bool:
        """Check if the current sub-phase needs a source and a target tile."""
        return self._phase in TWO_STEP_PHASES

    # -------------------------------------------------------------------------
    # Phase transition logic helpers
    # -------------------------------------------------------------------------

    def should_end_setup(self, state: GameState) -> bool:
        """Check if starting-tile selection is complete.

        Args:
            state: The current game state.

        Returns:
            True once every player has claimed a starting tile.
        """
        if self._phase != Phase.SETUP_SELECTION:
            return False
        return not state.setup_queue

    def should_game_end(self, state: GameState) -> tuple[bool, Optional[int]]:
        """Check if exactly one player still fields armies.

        Never ends the game during setup, where the first players to
        choose are briefly the only ones with armies.

        Args:
            state: The current game state.

        Returns:
            Tuple of (should_end, winner_id).
        """
        if self._phase in (Phase.SETUP_SELECTION, Phase.GAME_OVER):
            return False, None

        armed = state.players_with_armies()
        if len(armed) == 1:
            return True, armed[0].player_id
        return False, None

    def compute_next_phase(self, state: GameState) -> PhaseTransitionResult:
        """Compute what the next phase should be once the current one completes.

        Args:
            state: The current game state.

        Returns:
            PhaseTransitionResult with the recommended next phase.
        """
        current = self._phase

        if current == Phase.SETUP_SELECTION:
            if self.should_end_setup(state):
                return PhaseTransitionResult(
                    success=True, new_phase=Phase.RESOURCE_COLLECTION
                )
            return PhaseTransitionResult(
                success=False,
                new_phase=None,
                reason="Not all players have chosen a starting tile",
            )

        if current == Phase.RESOURCE_COLLECTION:
            return PhaseTransitionResult(success=True, new_phase=Phase.ACTION)

        if current == Phase.ACTION:
            # Leaving the hub means ending the turn
            return PhaseTransitionResult(
                success=True, new_phase=Phase.RESOURCE_COLLECTION
            )

        if current in SUB_PHASES:
            should_end, _ = self.should_game_end(state)
            if should_end:
                return PhaseTransitionResult(
                    success=True,
                    new_phase=Phase.GAME_OVER,
                    reason="Only one player has armies remaining",
                )
            return PhaseTransitionResult(success=True, new_phase=Phase.ACTION)

        if current == Phase.GAME_OVER:
            return PhaseTransitionResult(
                success=False,
                new_phase=None,
                reason="Game has ended - no further transitions",
            )

        # Fallback (should not reach here)
        return PhaseTransitionResult(
            success=False,
            new_phase=None,
            reason=f"Unknown phase: {current}",
        )

    # -------------------------------------------------------------------------
    # String representation
    # -------------------------------------------------------------------------

    def __str__(self) -> str:
        """Return string representation of the phase machine."""
        return f"PhaseMachine(phase={self._phase.value})"

    def __repr__(self) -> str:
        """Return detailed representation of the phase machine."""
        return f"PhaseMachine(phase={self._phase!r})"

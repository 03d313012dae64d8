"""Tests for the phase state machine.

Tests cover:
1. Phase transitions (valid and invalid)
2. Setup completion
3. Turn loop transitions
4. End game condition detection
"""

import pytest

from core.constants import Phase, SUB_PHASES
from core.game_state import GameState
from engine.phase_machine import (
    PhaseMachine,
    PhaseTransitionResult,
    PHASE_TRANSITIONS,
)

from conftest import make_board


@pytest.fixture
def state() -> GameState:
    return GameState.create_initial_state(make_board(4), [("Ada", "red"), ("Bo", "blue")])


def place_army(state: GameState, player_id: int, coord, armies: int = 1) -> None:
    tile = state.board.tile_at(coord)
    state.players[player_id].claim(tile)
    tile.army_count = armies


# =============================================================================
# Phase Transition Tests
# =============================================================================


class TestPhaseTransitions:
    """Test valid and invalid phase transitions."""

    def test_initial_phase(self):
        """Should start in SETUP_SELECTION phase."""
        assert PhaseMachine().phase == Phase.SETUP_SELECTION

    def test_custom_initial_phase(self):
        machine = PhaseMachine(initial_phase=Phase.ACTION)
        assert machine.phase == Phase.ACTION
        assert machine.is_action_hub()

    def test_every_phase_has_transitions_entry(self):
        assert set(PHASE_TRANSITIONS) == set(Phase)

    def test_turn_loop(self):
        """Setup -> collection -> action -> sub-phase -> action -> collection."""
        machine = PhaseMachine()
        for phase in (
            Phase.RESOURCE_COLLECTION,
            Phase.ACTION,
            Phase.BUILD_ARMY,
            Phase.ACTION,
            Phase.RESOURCE_COLLECTION,
        ):
            result = machine.transition_to(phase)
            assert result.success, result.reason
            assert machine.phase == phase

    @pytest.mark.parametrize("sub_phase", sorted(SUB_PHASES, key=lambda p: p.value))
    def test_sub_phases_return_to_hub(self, sub_phase):
        machine = PhaseMachine(initial_phase=Phase.ACTION)
        assert machine.transition_to(sub_phase).success
        assert machine.is_sub_phase()
        assert machine.can_transition_to(Phase.ACTION)
        assert machine.can_transition_to(Phase.GAME_OVER)
        assert not machine.can_transition_to(Phase.RESOURCE_COLLECTION)

    def test_invalid_transition(self):
        machine = PhaseMachine()
        result = machine.transition_to(Phase.ACTION)
        assert not result.success
        assert result.new_phase is None
        assert "Cannot transition" in result.reason
        assert machine.phase == Phase.SETUP_SELECTION

    def test_no_sub_phase_to_sub_phase(self):
        machine = PhaseMachine(initial_phase=Phase.BUILD_ARMY)
        assert not machine.can_transition_to(Phase.COMBAT)

    def test_game_over_is_terminal(self):
        machine = PhaseMachine(initial_phase=Phase.GAME_OVER)
        assert machine.is_game_over()
        assert machine.get_valid_transitions() == []

    def test_two_step_phases(self):
        assert PhaseMachine(Phase.MOVE_ARMY).is_two_step_phase()
        assert PhaseMachine(Phase.COMBAT).is_two_step_phase()
        assert not PhaseMachine(Phase.BUILD_ARMY).is_two_step_phase()

    def test_sync_skips_validation(self):
        machine = PhaseMachine(initial_phase=Phase.ACTION)
        machine.sync(Phase.COMBAT)
        assert machine.phase == Phase.COMBAT


# =============================================================================
# Transition Logic Tests
# =============================================================================


class TestTransitionLogic:
    """Test should_* helpers and compute_next_phase."""

    def test_setup_ends_when_queue_is_empty(self, state):
        machine = PhaseMachine()
        assert not machine.should_end_setup(state)
        state.setup_queue.clear()
        assert machine.should_end_setup(state)
        assert machine.compute_next_phase(state).new_phase == Phase.RESOURCE_COLLECTION

    def test_incomplete_setup(self, state):
        result = PhaseMachine().compute_next_phase(state)
        assert not result.success

    def test_no_game_end_during_setup(self, state):
        """The first player to choose is briefly the only one with armies."""
        place_army(state, 0, (0, 0))
        assert PhaseMachine().should_game_end(state) == (False, None)

    def test_game_end_with_single_army_holder(self, state):
        place_army(state, 0, (0, 0))
        state.players[1].claim(state.board.tile_at((3, 3)))  # territory, no armies
        machine = PhaseMachine(initial_phase=Phase.COMBAT)
        assert machine.should_game_end(state) == (True, 0)
        result = machine.compute_next_phase(state)
        assert result.new_phase == Phase.GAME_OVER

    def test_game_continues_with_two_army_holders(self, state):
        place_army(state, 0, (0, 0))
        place_army(state, 1, (3, 3))
        machine = PhaseMachine(initial_phase=Phase.BUILD_ARMY)
        assert machine.should_game_end(state) == (False, None)
        assert machine.compute_next_phase(state).new_phase == Phase.ACTION

    def test_collection_and_hub(self, state):
        assert PhaseMachine(Phase.RESOURCE_COLLECTION).compute_next_phase(state).new_phase == Phase.ACTION
        assert PhaseMachine(Phase.ACTION).compute_next_phase(state).new_phase == Phase.RESOURCE_COLLECTION

    def test_game_over_has_no_next_phase(self, state):
        result = PhaseMachine(Phase.GAME_OVER).compute_next_phase(state)
        assert result == PhaseTransitionResult(
            success=False,
            new_phase=None,
            reason="Game has ended - no further transitions",
        )

    def test_str(self):
        assert str(PhaseMachine()) == "PhaseMachine(phase=setup_selection)"

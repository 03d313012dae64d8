"""Tests for the GameEngine.

Tests cover:
1. Configuration and start-up
2. Starting-tile selection through the engine
3. Resource collection
4. Build, settle and expand sub-phases
5. Two-step move and combat
6. Undo, cancel and end of turn
7. Views, button predicates and events
8. Invariants over random play
"""

import random

import pytest

from core.board import Board
from core.config import SKIRMISH_RULES
from core.constants import Phase, Resource, Terrain, ActionName
from core.errors import InvalidPhaseAction
from core.hexgrid import Coordinate
from engine.game_engine import GameEngine, parse_action_name
from engine.setup import PlayerSpec
from engine.view import EventKind

from conftest import PLAYERS, make_board, make_engine, set_wallet, assert_board_consistent


def ada(engine):
    return engine.state.players[0]


def bo(engine):
    return engine.state.players[1]


def tile(engine, col, row):
    return engine.state.board.tile_at((col, row))


def give_tile(engine, player_id, coord, armies=0, settlement=False):
    """Hand a tile to a player directly, for arranging positions."""
    t = engine.state.board.tile_at(coord)
    engine.state.players[player_id].claim(t)
    t.army_count = armies
    t.has_settlement = settlement
    return t


@pytest.fixture
def fixed_dice(engine, monkeypatch):
    """Every die shows 1."""
    monkeypatch.setattr(engine._rng, "randint", lambda a, b: 1)
    return engine


@pytest.fixture
def even_combat(action_engine, monkeypatch):
    """Combat factors are always 1.0, so the larger army wins."""
    monkeypatch.setattr(action_engine._rng, "uniform", lambda a, b: 1.0)
    return action_engine


# =============================================================================
# Configuration Tests
# =============================================================================


class TestConfiguration:
    """Test configure_players / configure_board / start."""

    def test_duplicate_names_rejected(self):
        engine = GameEngine()
        result = engine.configure_players([
            {"name": "Ada", "color": "red"},
            {"name": "Ada", "color": "blue"},
        ])
        assert not result.success
        assert result.error == "DUPLICATE_PLAYER_IDENTITY"
        assert [s.name for s in engine.player_specs] == ["Player 1", "Player 2"]

    def test_duplicate_colors_rejected(self):
        result = GameEngine().configure_players([("Ada", "red"), ("Bo", "RED")])
        assert not result.success
        assert result.error == "DUPLICATE_PLAYER_IDENTITY"

    def test_mixed_player_entries(self):
        engine = GameEngine()
        result = engine.configure_players([
            {"name": "Ada", "color": "red"},
            ("Bo", "blue"),
            PlayerSpec("Cy", "green"),
        ])
        assert result.success
        assert [s.name for s in engine.player_specs] == ["Ada", "Bo", "Cy"]

    @pytest.mark.parametrize("count", [1, 7])
    def test_player_count_limits(self, count):
        players = [(f"P{i}", f"c{i}") for i in range(count)]
        result = GameEngine().configure_players(players)
        assert not result.success
        assert result.error == "CONFIGURATION_ERROR"

    def test_player_entry_missing_color(self):
        result = GameEngine().configure_players([{"name": "Ada"}, {"name": "Bo", "color": "b"}])
        assert result.error == "CONFIGURATION_ERROR"

    @pytest.mark.parametrize("players", [
        ["Ada", "Bobby"],
        ["Ab", "Cd"],
        [("Ada", "red", "extra"), ("Bo", "blue")],
        [None, ("Bo", "blue")],
    ])
    def test_malformed_player_entries(self, players):
        engine = GameEngine()
        result = engine.configure_players(players)
        assert not result.success
        assert result.error == "CONFIGURATION_ERROR"
        assert [s.name for s in engine.player_specs] == ["Player 1", "Player 2"]

    @pytest.mark.parametrize("size", ["big", None, [4]])
    def test_malformed_board_size(self, size):
        result = GameEngine().configure_board(size)
        assert not result.success
        assert result.error == "CONFIGURATION_ERROR"

    def test_board_size(self):
        engine = GameEngine(seed=1)
        assert not engine.configure_board(1).success
        assert engine.configure_board(5).success
        assert engine.start().success
        assert len(engine.state.board) == 25

    def test_same_seed_same_board(self):
        boards = []
        for _ in range(2):
            engine = GameEngine(seed=42)
            engine.start()
            boards.append([(t.terrain, t.resource_value) for t in engine.state.board.all_tiles()])
        assert boards[0] == boards[1]

    def test_cannot_reconfigure_running_game(self, engine):
        result = engine.configure_board(6)
        assert not result.success
        assert result.error == "INVALID_PHASE_ACTION"

    def test_fixed_board_must_be_unowned(self):
        board = make_board(3)
        board.tile_at((0, 0)).owner = 0
        assert not GameEngine().use_board(board).success

    def test_fixed_board_reused_fresh_on_restart(self):
        board = make_board(3)
        engine = GameEngine()
        engine.use_board(board)
        engine.start()
        engine.select_tile((0, 0))
        assert board.tile_at((0, 0)).owner is None

    def test_requests_before_start(self):
        engine = GameEngine()
        result = engine.select_tile((0, 0))
        assert not result.success
        assert result.error == "INVALID_PHASE_ACTION"
        assert not engine.roll_dice().success
        with pytest.raises(RuntimeError):
            engine.state

    def test_str(self, engine):
        assert str(GameEngine()) == "GameEngine(not started)"
        assert str(engine) == "GameEngine(phase=resource_collection, turn=1)"


# =============================================================================
# Setup Phase Tests
# =============================================================================


class TestSetupSelection:
    """Test starting-tile selection through the engine."""

    def test_two_players_choose_non_adjacent_tiles(self):
        engine = make_engine()
        assert engine.state.phase == Phase.SETUP_SELECTION

        first = engine.select_tile((0, 0))
        assert first.success
        assert engine.state.phase == Phase.SETUP_SELECTION
        assert engine.state.current_player_idx == 1

        second = engine.select_tile((3, 3))
        assert second.success

        for coord, owner in (((0, 0), 0), ((3, 3), 1)):
            t = tile(engine, *coord)
            assert t.owner == owner
            assert t.army_count == 1
            assert t.has_settlement
        assert engine.state.phase == Phase.RESOURCE_COLLECTION
        assert engine.state.current_player_idx == 0
        assert engine.state.setup_queue == []
        assert_board_consistent(engine)

    def test_adjacent_start_rejected(self):
        engine = make_engine()
        engine.select_tile((0, 0))
        before = engine.state.state_hash()
        result = engine.select_tile((1, 0))
        assert not result.success
        assert result.error == "INVALID_TILE_SELECTION"
        assert engine.state.state_hash() == before

    def test_adjacent_start_allowed_in_skirmish(self):
        engine = make_engine(rules=SKIRMISH_RULES)
        engine.select_tile((0, 0))
        assert engine.select_tile((1, 0)).success

    def test_taken_tile_rejected(self):
        engine = make_engine(rules=SKIRMISH_RULES)
        engine.select_tile((0, 0))
        assert engine.select_tile((0, 0)).error == "INVALID_TILE_SELECTION"

    def test_off_board_rejected(self):
        engine = make_engine()
        assert engine.select_tile((10, 10)).error == "INVALID_TILE_SELECTION"

    @pytest.mark.parametrize("coord", [(1, 2, 3), (1,), 5, ([0], 0), (0.0, 0)])
    def test_malformed_coordinate_rejected(self, coord):
        engine = make_engine()
        before = engine.state.state_hash()
        result = engine.select_tile(coord)
        assert not result.success
        assert result.error == "INVALID_TILE_SELECTION"
        assert engine.state.state_hash() == before

    def test_buttons_rejected_during_setup(self):
        engine = make_engine()
        for action in ActionName:
            result = engine.invoke_action(action)
            assert not result.success
        assert engine.state.phase == Phase.SETUP_SELECTION

    def test_no_winner_during_setup(self):
        """Ada is briefly the only player with an army."""
        engine = make_engine()
        engine.select_tile((0, 0))
        assert not engine.is_game_over()

    def test_valid_tiles(self):
        engine = make_engine()
        assert len(engine.get_valid_tiles()) == 16
        engine.select_tile((0, 0))
        valid = engine.get_valid_tiles()
        assert Coordinate(1, 0) not in valid
        assert Coordinate(3, 3) in valid

    def test_three_players_in_order(self):
        players = PLAYERS + [{"name": "Cy", "color": "green"}]
        engine = make_engine(board=make_board(5), players=players)
        for coord, player_id in (((0, 0), 0), ((4, 0), 1), ((2, 4), 2)):
            assert engine.state.current_player_idx == player_id
            assert engine.select_tile(coord).success
        assert engine.state.phase == Phase.RESOURCE_COLLECTION
        assert engine.state.current_player_idx == 0


# =============================================================================
# Resource Collection Tests
# =============================================================================


class TestResourceCollection:
    """Test rolling dice."""

    def test_roll_enters_action(self, engine):
        result = engine.roll_dice()
        assert result.success
        assert engine.state.phase == Phase.ACTION
        assert len(engine.state.dice) == 2
        assert all(1 <= d <= 6 for d in engine.state.dice)

    def test_settlement_doubles_yield(self, fixed_dice):
        set_wallet(ada(fixed_dice))
        result = fixed_dice.roll_dice()
        assert fixed_dice.state.dice == (1, 1)
        # (0,0) is grass/1 with a settlement: 2 food per matching die
        assert ada(fixed_dice).wallet_summary() == {"wood": 0, "stone": 0, "food": 4}
        assert result.info["gains"] == {"food": 4}

    def test_plain_tile_yields_one(self, fixed_dice):
        set_wallet(ada(fixed_dice))
        tile(fixed_dice, 0, 0).has_settlement = False
        fixed_dice.roll_dice()
        assert ada(fixed_dice).amount(Resource.FOOD) == 2

    def test_terrain_decides_resource(self, fixed_dice):
        set_wallet(ada(fixed_dice))
        give_tile(fixed_dice, 0, (1, 0)).terrain = Terrain.FOREST
        fixed_dice.roll_dice()
        assert ada(fixed_dice).amount(Resource.WOOD) == 2

    def test_non_matching_die_yields_nothing(self, engine, monkeypatch):
        monkeypatch.setattr(engine._rng, "randint", lambda a, b: 6)
        before = ada(engine).wallet_summary()
        engine.roll_dice()
        assert ada(engine).wallet_summary() == before

    def test_only_current_player_collects(self, fixed_dice):
        before = bo(fixed_dice).wallet_summary()
        fixed_dice.roll_dice()
        assert bo(fixed_dice).wallet_summary() == before

    def test_collection_is_additive(self):
        for seed in range(20):
            engine = make_engine(board=make_board(4, value=seed % 6 + 1), seed=seed)
            engine.select_tile((0, 0))
            engine.select_tile((3, 3))
            before = dict(ada(engine).resources)
            engine.roll_dice()
            for resource, amount in before.items():
                assert ada(engine).amount(resource) >= amount

    def test_skirmish_rolls_one_die(self):
        engine = make_engine(rules=SKIRMISH_RULES)
        engine.select_tile((0, 0))
        engine.select_tile((3, 3))
        engine.roll_dice()
        assert len(engine.state.dice) == 1

    def test_cannot_roll_twice(self, action_engine):
        result = action_engine.roll_dice()
        assert result.error == "INVALID_PHASE_ACTION"

    def test_roll_does_not_enable_undo(self, action_engine):
        assert not action_engine.undo_available


# =============================================================================
# Build / Expand Tests
# =============================================================================


class TestBuildSettlement:
    def test_build_settlement_on_owned_empty_tile(self, action_engine):
        give_tile(action_engine, 0, (1, 0))
        set_wallet(ada(action_engine), wood=5, stone=5, food=5)

        assert action_engine.invoke_action(ActionName.BUILD_SETTLEMENT).success
        assert action_engine.state.phase == Phase.BUILD_SETTLEMENT
        result = action_engine.select_tile((1, 0))

        assert result.success
        assert ada(action_engine).wallet_summary() == {"wood": 0, "stone": 0, "food": 5}
        assert tile(action_engine, 1, 0).has_settlement
        assert action_engine.state.phase == Phase.ACTION
        assert_board_consistent(action_engine)

    def test_tile_with_settlement_rejected(self, action_engine):
        give_tile(action_engine, 0, (1, 0))
        set_wallet(ada(action_engine), wood=5, stone=5)
        action_engine.invoke_action(ActionName.BUILD_SETTLEMENT)

        result = action_engine.select_tile((0, 0))
        assert not result.success
        assert result.message == "You can only build settlements on your own empty hexes!"
        assert action_engine.state.phase == Phase.BUILD_SETTLEMENT
        assert ada(action_engine).amount(Resource.WOOD) == 5

    def test_nothing_to_settle(self, action_engine):
        set_wallet(ada(action_engine), wood=5, stone=5)
        result = action_engine.invoke_action(ActionName.BUILD_SETTLEMENT)
        assert result.error == "INVALID_PHASE_ACTION"
        assert action_engine.state.phase == Phase.ACTION

    def test_unaffordable(self, action_engine):
        give_tile(action_engine, 0, (1, 0))
        set_wallet(ada(action_engine), wood=5, stone=4)
        result = action_engine.invoke_action(ActionName.BUILD_SETTLEMENT)
        assert result.error == "INSUFFICIENT_RESOURCES"
        assert action_engine.state.phase == Phase.ACTION


class TestBuildArmy:
    def test_build_army(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        result = action_engine.select_tile((0, 0))
        assert result.success
        assert tile(action_engine, 0, 0).army_count == 2
        assert ada(action_engine).amount(Resource.FOOD) == 0
        assert action_engine.state.phase == Phase.ACTION

    def test_unaffordable(self, action_engine):
        set_wallet(ada(action_engine), food=9)
        result = action_engine.invoke_action(ActionName.BUILD_ARMY)
        assert not result.success
        assert result.error == "INSUFFICIENT_RESOURCES"
        assert result.message == "Not enough resources for army!"
        assert action_engine.state.phase == Phase.ACTION

    def test_foreign_tile_rejected(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        before = action_engine.state.state_hash()
        result = action_engine.select_tile((3, 3))
        assert result.message == "You can only build on your own hexes!"
        assert action_engine.state.state_hash() == before

    def test_skirmish_cost(self):
        engine = make_engine(rules=SKIRMISH_RULES)
        engine.select_tile((0, 0))
        engine.select_tile((3, 3))
        engine.roll_dice()
        set_wallet(ada(engine), wood=1, food=2)
        engine.invoke_action("build_army")
        assert engine.select_tile((0, 0)).success
        assert ada(engine).wallet_summary() == {"wood": 0, "stone": 0, "food": 0}


class TestExpandTerritory:
    def test_expand_without_wood_rejected(self, action_engine):
        set_wallet(ada(action_engine), wood=0, stone=5, food=5)
        owned_before = set(ada(action_engine).owned_tiles)
        result = action_engine.invoke_action(ActionName.EXPAND_TERRITORY)
        assert not result.success
        assert result.error == "INSUFFICIENT_RESOURCES"
        assert ada(action_engine).owned_tiles == owned_before
        assert tile(action_engine, 1, 0).owner is None

    def test_expand(self, action_engine):
        set_wallet(ada(action_engine), wood=3, stone=2)
        action_engine.invoke_action(ActionName.EXPAND_TERRITORY)
        assert action_engine.select_tile((1, 0)).success
        assert tile(action_engine, 1, 0).owner == 0
        assert tile(action_engine, 1, 0).army_count == 0
        assert Coordinate(1, 0) in ada(action_engine).owned_tiles
        assert ada(action_engine).wallet_summary()["wood"] == 0
        assert_board_consistent(action_engine)

    def test_non_adjacent_rejected(self, action_engine):
        set_wallet(ada(action_engine), wood=3, stone=2)
        action_engine.invoke_action(ActionName.EXPAND_TERRITORY)
        result = action_engine.select_tile((2, 2))
        assert result.message == "Can only expand to adjacent unowned hexes!"
        assert tile(action_engine, 2, 2).owner is None

    def test_owned_tile_rejected(self, action_engine):
        set_wallet(ada(action_engine), wood=3, stone=2)
        give_tile(action_engine, 1, (1, 0), armies=1)
        action_engine.invoke_action(ActionName.EXPAND_TERRITORY)
        assert not action_engine.select_tile((1, 0)).success
        assert tile(action_engine, 1, 0).owner == 1


# =============================================================================
# Move Army Tests
# =============================================================================


class TestMoveArmy:
    def test_move_last_army_off_plain_tile(self, action_engine):
        tile(action_engine, 0, 0).has_settlement = False
        assert action_engine.invoke_action(ActionName.MOVE_ARMY).success
        assert action_engine.select_tile((0, 0)).success
        assert action_engine.state.pending_selection == Coordinate(0, 0)

        result = action_engine.select_tile((1, 0))
        assert result.success
        source, dest = tile(action_engine, 0, 0), tile(action_engine, 1, 0)
        assert source.owner is None
        assert source.army_count == 0
        assert dest.owner == 0
        assert dest.army_count == 1
        assert ada(action_engine).has_moved_army_this_turn
        assert action_engine.state.pending_selection is None
        assert action_engine.state.phase == Phase.ACTION
        assert_board_consistent(action_engine)

    def test_settlement_keeps_source_owned(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        action_engine.select_tile((0, 1))
        source = tile(action_engine, 0, 0)
        assert source.owner == 0
        assert source.army_count == 0
        assert source.has_settlement

    def test_move_into_own_tile(self, action_engine):
        tile(action_engine, 0, 0).army_count = 3
        give_tile(action_engine, 0, (1, 0), armies=2)
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        action_engine.select_tile((1, 0))
        assert tile(action_engine, 0, 0).army_count == 2
        assert tile(action_engine, 1, 0).army_count == 3

    def test_one_move_per_turn(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        action_engine.select_tile((1, 0))
        assert not action_engine.get_button_states()[ActionName.MOVE_ARMY]
        result = action_engine.invoke_action(ActionName.MOVE_ARMY)
        assert result.error == "INVALID_PHASE_ACTION"

    def test_source_without_army_rejected(self, action_engine):
        give_tile(action_engine, 0, (1, 0))
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        result = action_engine.select_tile((1, 0))
        assert result.error == "INVALID_TILE_SELECTION"
        assert action_engine.state.pending_selection is None
        assert action_engine.state.phase == Phase.MOVE_ARMY

    def test_invalid_destination_keeps_pending(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        before = action_engine.state.state_hash()
        result = action_engine.select_tile((2, 2))
        assert not result.success
        assert action_engine.state.state_hash() == before
        assert action_engine.state.pending_selection == Coordinate(0, 0)
        assert action_engine.state.phase == Phase.MOVE_ARMY
        assert not ada(action_engine).has_moved_army_this_turn

    def test_enemy_destination_rejected(self, action_engine):
        give_tile(action_engine, 1, (1, 0), armies=1)
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        assert action_engine.select_tile((1, 0)).error == "INVALID_TILE_SELECTION"

    def test_cancel(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        assert action_engine.cancel().success
        assert action_engine.state.phase == Phase.ACTION
        assert action_engine.state.pending_selection is None
        assert not ada(action_engine).has_moved_army_this_turn

    def test_valid_tiles(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        assert action_engine.get_valid_tiles() == [Coordinate(0, 0)]
        action_engine.select_tile((0, 0))
        assert action_engine.get_valid_tiles() == [Coordinate(0, 1), Coordinate(1, 0)]


# =============================================================================
# Combat Tests
# =============================================================================


class TestCombat:
    def test_attack_needs_enemy_neighbor(self, action_engine):
        result = action_engine.invoke_action(ActionName.ATTACK)
        assert result.error == "INVALID_PHASE_ACTION"
        assert not action_engine.get_button_states()[ActionName.ATTACK]

    def test_attacker_captures_tile(self, even_combat):
        tile(even_combat, 0, 0).army_count = 4
        give_tile(even_combat, 1, (1, 0), armies=1, settlement=True)

        assert even_combat.invoke_action(ActionName.ATTACK).success
        assert even_combat.state.phase == Phase.COMBAT
        even_combat.select_tile((0, 0))
        result = even_combat.select_tile((1, 0))

        assert result.success
        assert result.info["combat"].attacker_won
        target = tile(even_combat, 1, 0)
        assert target.owner == 0
        assert target.army_count == 2
        assert target.has_settlement
        assert tile(even_combat, 0, 0).army_count == 2
        assert Coordinate(1, 0) in ada(even_combat).owned_tiles
        assert Coordinate(1, 0) not in bo(even_combat).owned_tiles
        # Bo still has an army at (3,3)
        assert even_combat.state.phase == Phase.ACTION
        assert_board_consistent(even_combat)

    def test_defender_repels(self, even_combat):
        give_tile(even_combat, 1, (1, 0), armies=4)
        even_combat.invoke_action(ActionName.ATTACK)
        even_combat.select_tile((0, 0))
        result = even_combat.select_tile((1, 0))
        assert not result.info["combat"].attacker_won
        assert tile(even_combat, 0, 0).army_count == 1
        assert tile(even_combat, 0, 0).owner == 0
        assert tile(even_combat, 1, 0).army_count == 3
        assert tile(even_combat, 1, 0).owner == 1

    def test_combat_never_adds_armies(self, action_engine):
        tile(action_engine, 0, 0).army_count = 5
        give_tile(action_engine, 1, (1, 0), armies=3)
        before = action_engine.state.board.army_total(0) + action_engine.state.board.army_total(1)
        action_engine.invoke_action(ActionName.ATTACK)
        action_engine.select_tile((0, 0))
        action_engine.select_tile((1, 0))
        after = action_engine.state.board.army_total(0) + action_engine.state.board.army_total(1)
        assert after <= before

    def test_invalid_target_keeps_pending(self, action_engine):
        give_tile(action_engine, 1, (1, 0), armies=1)
        action_engine.invoke_action(ActionName.ATTACK)
        action_engine.select_tile((0, 0))
        for coord in ((0, 1), (0, 0), (3, 3)):
            result = action_engine.select_tile(coord)
            assert result.message == "Invalid attack target - must be adjacent and enemy-owned!"
        assert action_engine.state.pending_selection == Coordinate(0, 0)

    def test_last_army_ends_game(self, even_combat):
        events = []
        even_combat.subscribe(events.append)
        tile(even_combat, 0, 0).army_count = 4
        give_tile(even_combat, 1, (1, 0), armies=1)
        tile(even_combat, 3, 3).army_count = 0

        even_combat.invoke_action(ActionName.ATTACK)
        even_combat.select_tile((0, 0))
        result = even_combat.select_tile((1, 0))

        assert result.info["winner"] == 0
        assert even_combat.is_game_over()
        assert even_combat.state.winner == 0
        assert not even_combat.undo_available
        assert EventKind.GAME_OVER in [e.kind for e in events]
        assert even_combat.get_view().instruction == "Ada wins!"
        for action in ActionName:
            assert not even_combat.invoke_action(action).success
        assert not even_combat.select_tile((2, 2)).success

    def test_per_unit_attacker_abandons_origin(self):
        engine = make_engine(rules=SKIRMISH_RULES)
        engine.select_tile((0, 0))
        engine.select_tile((3, 3))
        engine.roll_dice()
        tile(engine, 0, 0).has_settlement = False
        give_tile(engine, 1, (1, 0))

        engine.invoke_action(ActionName.ATTACK)
        engine.select_tile((0, 0))
        assert engine.select_tile((1, 0)).success
        assert tile(engine, 0, 0).owner is None
        assert tile(engine, 1, 0).owner == 0
        assert tile(engine, 1, 0).army_count == 1
        assert_board_consistent(engine)


# =============================================================================
# Undo Tests
# =============================================================================


class TestUndo:
    def test_undo_restores_exact_state(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        before = action_engine.state.state_hash()
        action_engine.select_tile((0, 0))
        assert action_engine.undo_available

        assert action_engine.undo().success
        assert action_engine.state.state_hash() == before
        assert action_engine.state.phase == Phase.BUILD_ARMY
        assert tile(action_engine, 0, 0).army_count == 1

        # Still in BUILD_ARMY, so the build can be redone
        assert action_engine.select_tile((0, 0)).success

    def test_undo_announces_phase_change(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        action_engine.select_tile((0, 0))
        assert action_engine.state.phase == Phase.ACTION

        events = []
        action_engine.subscribe(events.append)
        action_engine.undo()
        assert [e.kind for e in events] == [EventKind.PHASE_CHANGED, EventKind.STATE_CHANGED]
        assert events[0].payload == {"phase": "build_army", "previous": "action"}

    def test_second_undo_is_noop(self, action_engine):
        set_wallet(ada(action_engine), wood=3, stone=2)
        action_engine.invoke_action(ActionName.EXPAND_TERRITORY)
        action_engine.select_tile((1, 0))
        action_engine.undo()
        after_first = action_engine.state.state_hash()
        result = action_engine.undo()
        assert not result.success
        assert result.error == "NO_SNAPSHOT_AVAILABLE"
        assert action_engine.state.state_hash() == after_first

    def test_undo_move_restores_pending_source(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        action_engine.select_tile((0, 0))
        action_engine.select_tile((1, 0))
        action_engine.undo()
        assert action_engine.state.phase == Phase.MOVE_ARMY
        assert action_engine.state.pending_selection == Coordinate(0, 0)
        assert not ada(action_engine).has_moved_army_this_turn
        assert action_engine.get_view().instruction == "Select a destination hex"

    def test_undo_combat(self, even_combat):
        tile(even_combat, 0, 0).army_count = 4
        give_tile(even_combat, 1, (1, 0), armies=1)
        even_combat.invoke_action(ActionName.ATTACK)
        even_combat.select_tile((0, 0))
        before = even_combat.state.state_hash()
        even_combat.select_tile((1, 0))
        even_combat.undo()
        assert even_combat.state.state_hash() == before
        assert tile(even_combat, 1, 0).owner == 1
        assert_board_consistent(even_combat)

    def test_rejected_action_does_not_touch_snapshot(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        action_engine.select_tile((3, 3))
        assert not action_engine.undo_available

    def test_no_undo_across_end_turn(self, action_engine):
        set_wallet(ada(action_engine), food=10)
        action_engine.invoke_action(ActionName.BUILD_ARMY)
        action_engine.select_tile((0, 0))
        action_engine.end_turn()
        assert not action_engine.undo_available
        assert action_engine.undo().error == "NO_SNAPSHOT_AVAILABLE"


# =============================================================================
# End Turn Tests
# =============================================================================


class TestEndTurn:
    def test_end_turn(self, action_engine):
        ada(action_engine).has_moved_army_this_turn = True
        result = action_engine.end_turn()
        assert result.success
        state = action_engine.state
        assert state.current_player_idx == 1
        assert state.phase == Phase.RESOURCE_COLLECTION
        assert state.dice == ()
        assert state.pending_selection is None
        assert state.turn_number == 2
        assert not ada(action_engine).has_moved_army_this_turn

    def test_wraps_around(self, action_engine):
        action_engine.end_turn()
        action_engine.roll_dice()
        action_engine.end_turn()
        assert action_engine.state.current_player_idx == 0

    def test_advances_by_one_with_three_players(self):
        players = PLAYERS + [{"name": "Cy", "color": "green"}]
        engine = make_engine(board=make_board(5), players=players)
        for coord in ((0, 0), (4, 0), (2, 4)):
            engine.select_tile(coord)
        for expected in (1, 2, 0, 1):
            engine.roll_dice()
            engine.end_turn()
            assert engine.state.current_player_idx == expected

    def test_only_from_action_hub(self, engine):
        assert engine.end_turn().error == "INVALID_PHASE_ACTION"
        engine.roll_dice()
        engine.invoke_action(ActionName.MOVE_ARMY)
        assert engine.end_turn().error == "INVALID_PHASE_ACTION"
        assert engine.state.phase == Phase.MOVE_ARMY


# =============================================================================
# View / Button / Event Tests
# =============================================================================


class TestView:
    def test_buttons_before_roll(self, engine):
        buttons = engine.get_button_states()
        assert set(buttons) == set(ActionName)
        assert [a for a, enabled in buttons.items() if enabled] == [ActionName.ROLL_DICE]

    def test_buttons_at_hub(self, action_engine):
        set_wallet(ada(action_engine), wood=5, stone=5, food=5)
        enabled = action_engine.get_view().enabled_actions()
        assert enabled == [
            ActionName.EXPAND_TERRITORY,
            ActionName.MOVE_ARMY,
            ActionName.END_TURN,
        ]

    def test_buttons_in_sub_phase(self, action_engine):
        action_engine.invoke_action(ActionName.MOVE_ARMY)
        assert action_engine.get_view().enabled_actions() == [ActionName.CANCEL]

    def test_view_contents(self, action_engine):
        set_wallet(ada(action_engine), wood=1, stone=2, food=3)
        view = action_engine.get_view()
        assert view.phase == Phase.ACTION
        assert view.current_player.name == "Ada"
        assert view.current_player.resources == {"wood": 1, "stone": 2, "food": 3}
        assert view.current_player.tiles == 1
        assert view.current_player.armies == 1
        assert view.current_player.settlements == 1
        assert view.dice == action_engine.state.dice
        assert view.instruction == "Choose an action: build, move armies, attack, or end turn"
        assert not view.undo_available
        assert view.winner is None

    def test_setup_instruction_names_player(self):
        engine = make_engine()
        assert engine.get_view().instruction == "Ada: Choose your starting hex"

    def test_events(self, engine):
        events = []
        engine.subscribe(events.append)
        engine.roll_dice()
        kinds = [e.kind for e in events]
        assert EventKind.PHASE_CHANGED in kinds
        assert EventKind.DICE_ROLLED in kinds
        assert kinds[-1] == EventKind.STATE_CHANGED

        events.clear()
        engine.roll_dice()
        assert [e.kind for e in events] == [EventKind.ACTION_REJECTED]
        assert events[0].payload["error"] == "INVALID_PHASE_ACTION"

        engine.unsubscribe(events.append)
        events.clear()
        engine.end_turn()
        assert events == []


class TestActionNames:
    @pytest.mark.parametrize("raw, expected", [
        ("roll_dice", ActionName.ROLL_DICE),
        ("rollDice", ActionName.ROLL_DICE),
        ("endTurn", ActionName.END_TURN),
        ("ATTACK", ActionName.ATTACK),
        (ActionName.UNDO, ActionName.UNDO),
    ])
    def test_parse(self, raw, expected):
        assert parse_action_name(raw) == expected

    def test_unknown(self, engine):
        with pytest.raises(InvalidPhaseAction):
            parse_action_name("teleport")
        assert engine.invoke_action("teleport").error == "INVALID_PHASE_ACTION"


# =============================================================================
# Invariant Tests
# =============================================================================


class TestRandomPlay:
    """Drive the engine with random clicks and check invariants throughout."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_invariants_hold(self, seed):
        rng = random.Random(seed)
        engine = make_engine(board=Board.generate(5, random.Random(seed)), seed=seed)
        coords = [t.coord for t in engine.state.board.all_tiles()]

        for _ in range(400):
            if engine.is_game_over():
                break
            before_hash = engine.state.state_hash()
            before_wallets = [dict(p.resources) for p in engine.state.players]
            phase = engine.state.phase

            valid = engine.get_valid_tiles()
            enabled = engine.get_view().enabled_actions()
            choice = rng.random()
            if valid and choice < 0.6:
                result = engine.select_tile(rng.choice(valid))
            elif enabled and choice < 0.9:
                result = engine.invoke_action(rng.choice(enabled))
            else:
                result = engine.select_tile(rng.choice(coords))

            assert engine.state.validate() == []
            if not result.success:
                assert engine.state.state_hash() == before_hash
            if result.success and phase == Phase.RESOURCE_COLLECTION:
                for player, wallet in zip(engine.state.players, before_wallets):
                    for resource, amount in wallet.items():
                        assert player.amount(resource) >= amount
            for player in engine.state.players:
                assert all(amount >= 0 for amount in player.resources.values())

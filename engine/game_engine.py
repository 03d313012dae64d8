"""Main game engine for the Hex Realm game.

The GameEngine is the only interface the presentation layer talks to:
- configure_players() / configure_board(): setup-time configuration
- start(): Initialize a new game
- select_tile(): Forward a clicked tile to the current phase's handler
- invoke_action(): Press one of the action buttons
- get_view(): Poll everything needed to draw the status panel
- subscribe(): Receive GameEvents instead of polling

The engine enforces all game rules and manages phase transitions.
Every request is validated in full before anything is mutated, so a
rejected request leaves the state exactly as it was. Rule violations
never escape as exceptions; they come back as failed ActionResults.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from core.board import Board, Tile
from core.config import RuleConfig, CLASSIC_RULES
from core.constants import (
    Phase,
    ActionName,
    ACTION_SUB_PHASES,
    SUB_PHASES,
    TWO_STEP_PHASES,
    TERRAIN_RESOURCE,
    DIE_FACES,
    BASE_YIELD,
    SETTLEMENT_YIELD_MULTIPLIER,
    DEFAULT_BOARD_SIZE,
    MIN_BOARD_SIZE,
)
from core.errors import (
    HexRealmError,
    ConfigurationError,
    InvalidPhaseAction,
    InvalidTileSelection,
    InsufficientResources,
)
from core.game_state import GameState
from core.hexgrid import Coordinate
from core.player import Player

from .combat import CombatResult, create_resolver
from .phase_machine import PhaseMachine
from .setup import PlayerSpec, SetupManager, initialize_game, validate_player_specs
from .undo import UndoManager
from .view import (
    ActionResult,
    EventKind,
    GameEvent,
    GameView,
    PlayerView,
    PHASE_INSTRUCTIONS,
    PENDING_INSTRUCTIONS,
)

logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent], None]
PlayerInput = Union[PlayerSpec, Mapping[str, str], Sequence[str]]

DEFAULT_PLAYERS = [
    PlayerSpec("Player 1", "#ff4444"),
    PlayerSpec("Player 2", "#44ff44"),
]


def parse_action_name(name: Union[ActionName, str]) -> ActionName:
    """Resolve a button name to an ActionName.

    Accepts enum members, enum values ("roll_dice") and the camelCase
    element IDs used by web front ends ("rollDice").

    Raises:
        InvalidPhaseAction: If the name matches no action.
    """
    if isinstance(name, ActionName):
        return name
    key = str(name).replace("_", "").replace("-", "").lower()
    for action in ActionName:
        if action.value.replace("_", "") == key:
            return action
    raise InvalidPhaseAction(f"Unknown action: {name}", context={"action": name})


def _to_player_spec(entry: PlayerInput) -> PlayerSpec:
    if isinstance(entry, PlayerSpec):
        return entry
    if isinstance(entry, Mapping):
        try:
            return PlayerSpec(name=str(entry["name"]), color=str(entry["color"]))
        except KeyError as e:
            raise ConfigurationError(f"Player entry is missing {e}", context={"entry": dict(entry)})
    try:
        if isinstance(entry, str):
            raise TypeError(entry)
        name, color = entry
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Player entry must be a name and a color, got {entry!r}", context={"entry": repr(entry)}
        )
    return PlayerSpec(name=str(name), color=str(color))


class GameEngine:
    """Main engine for playing Hex Realm.

    The engine owns the game state, enforces rules, and is the single
    writer of the board and the players.

    Usage:
        engine = GameEngine(seed=7)
        engine.configure_players([{"name": "Ada", "color": "red"},
                                  {"name": "Bo", "color": "blue"}])
        engine.configure_board(7)
        engine.start()

        while not engine.is_game_over():
            view = engine.get_view()
            ...  # draw, then forward user input:
            engine.select_tile((col, row))
            engine.invoke_action("roll_dice")
    """

    def __init__(self, rules: RuleConfig = CLASSIC_RULES, seed: Optional[int] = None):
        """Initialize the game engine.

        Args:
            rules: Rule set (costs, dice, combat formula...).
            seed: Seed for the shared random source (dice, combat, board).

        Raises:
            ConfigurationError: If the rule set is inconsistent.
        """
        rules.validate()
        self.rules = rules
        self._rng = random.Random(seed)
        self._combat = create_resolver(rules, self._rng)
        self._player_specs: list[PlayerSpec] = list(DEFAULT_PLAYERS)
        self._board_size = DEFAULT_BOARD_SIZE
        self._board: Optional[Board] = None

        self._state: Optional[GameState] = None
        self._phase_machine: Optional[PhaseMachine] = None
        self._setup_manager: Optional[SetupManager] = None
        self._undo = UndoManager()
        self._listeners: list[Listener] = []
        self._last_message = ""

    @property
    def state(self) -> GameState:
        """Get the current game state.

        Raises:
            RuntimeError: If the game has not been started.
        """
        if self._state is None:
            raise RuntimeError("Game not started. Call start() first.")
        return self._state

    @property
    def phase(self) -> Phase:
        """Get the current game phase."""
        return self.state.phase

    @property
    def player_specs(self) -> list[PlayerSpec]:
        """Get the configured players."""
        return list(self._player_specs)

    @property
    def board_size(self) -> int:
        """Get the configured board size."""
        return self._board_size

    def is_started(self) -> bool:
        """Check if a game has been started."""
        return self._state is not None

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self._phase_machine is not None and self._phase_machine.is_game_over()

    @property
    def undo_available(self) -> bool:
        """Check if the last action can be undone."""
        return self._undo.available

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Register a callback that receives every GameEvent."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Stop sending events to a callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: EventKind, **payload: Any) -> None:
        event = GameEvent(kind=kind, payload=payload)
        for listener in list(self._listeners):
            listener(event)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def _ensure_configurable(self) -> None:
        if self._state is not None and not self.is_game_over():
            raise InvalidPhaseAction("Cannot reconfigure a game in progress")

    def configure_players(self, players: Sequence[PlayerInput]) -> ActionResult:
        """Set the players for the next game.

        Args:
            players: Entries of {"name", "color"}, (name, color) or PlayerSpec.

        Returns:
            ActionResult; rejected as a whole if any name or color repeats.
        """
        def apply() -> tuple[str, dict[str, Any]]:
            self._ensure_configurable()
            specs = [_to_player_spec(p) for p in players]
            if not self.rules.min_players <= len(specs) <= self.rules.max_players:
                raise ConfigurationError(
                    f"Number of players must be between {self.rules.min_players} "
                    f"and {self.rules.max_players}, got {len(specs)}"
                )
            validate_player_specs(specs)
            self._player_specs = specs
            return f"Configured {len(specs)} players", {"players": [s.name for s in specs]}

        return self._run(apply, requires_game=False)

    def configure_board(self, size: int) -> ActionResult:
        """Set the board size (columns = rows) for the next game."""
        def apply() -> tuple[str, dict[str, Any]]:
            self._ensure_configurable()
            try:
                board_size = int(size)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Board size must be an integer, got {size!r}")
            if board_size < MIN_BOARD_SIZE:
                raise ConfigurationError(
                    f"Board size must be at least {MIN_BOARD_SIZE}, got {size}"
                )
            self._board_size = board_size
            self._board = None
            return f"Board size set to {self._board_size}", {"size": self._board_size}

        return self._run(apply, requires_game=False)

    def use_board(self, board: Board) -> ActionResult:
        """Play the next game on a pre-built board (e.g. a loaded layout)."""
        def apply() -> tuple[str, dict[str, Any]]:
            self._ensure_configurable()
            if any(tile.is_owned() for tile in board.all_tiles()):
                raise ConfigurationError("A new game needs a board without owners")
            self._board = board
            return f"Using fixed board with {len(board)} tiles", {"tiles": len(board)}

        return self._run(apply, requires_game=False)

    # -------------------------------------------------------------------------
    # Game Initialization
    # -------------------------------------------------------------------------

    def start(self, seed: Optional[int] = None) -> ActionResult:
        """Initialize a new game from the current configuration.

        Args:
            seed: Optional reseed of the shared random source.

        Returns:
            ActionResult for the start request.
        """
        def apply() -> tuple[str, dict[str, Any]]:
            self._ensure_configurable()
            if seed is not None:
                self._rng.seed(seed)
            board = self._board.clone() if self._board is not None else None
            try:
                state, setup_manager = initialize_game(
                    self._player_specs,
                    self._board_size,
                    rules=self.rules,
                    rng=self._rng,
                    board=board,
                )
            except ValueError as e:
                raise ConfigurationError(str(e))

            self._state = state
            self._setup_manager = setup_manager
            self._phase_machine = PhaseMachine(initial_phase=Phase.SETUP_SELECTION)
            self._undo.clear()
            logger.info(
                "Started game with %d players on a %r",
                state.num_players(),
                state.board,
            )
            self._emit(EventKind.PHASE_CHANGED, phase=Phase.SETUP_SELECTION.value, previous=None)
            return self.get_instruction(), {}

        return self._run(apply, requires_game=False)

    # -------------------------------------------------------------------------
    # Public input API
    # -------------------------------------------------------------------------

    def select_tile(self, coord: Union[Coordinate, tuple[int, int]]) -> ActionResult:
        """Forward a clicked tile to the handler of the current phase."""
        handlers = {
            Phase.SETUP_SELECTION: self._handle_setup_selection,
            Phase.BUILD_ARMY: self._handle_build_army,
            Phase.BUILD_SETTLEMENT: self._handle_build_settlement,
            Phase.EXPAND_TERRITORY: self._handle_expand_territory,
            Phase.MOVE_ARMY: self._handle_move_army,
            Phase.COMBAT: self._handle_combat,
        }

        def apply() -> tuple[str, dict[str, Any]]:
            handler = handlers.get(self.state.phase)
            if handler is None:
                raise InvalidPhaseAction(
                    f"Selecting a hex does nothing during {self.state.phase.value}"
                )
            try:
                target = Coordinate(*coord)
                if not all(isinstance(v, int) for v in target):
                    raise TypeError(coord)
            except TypeError:
                raise InvalidTileSelection(
                    f"Expected a (col, row) pair, got {coord!r}", context={"coord": repr(coord)}
                )
            tile = self.state.board.tile_at(target)
            if tile is None:
                raise InvalidTileSelection(f"No hex at {target}", context={"coord": target})
            return handler(tile)

        return self._run(apply)

    def invoke_action(self, action: Union[ActionName, str]) -> ActionResult:
        """Press an action button."""
        def apply() -> tuple[str, dict[str, Any]]:
            name = parse_action_name(action)
            if name == ActionName.ROLL_DICE:
                return self._roll_dice()
            if name == ActionName.UNDO:
                return self._undo_last_action()
            if name == ActionName.END_TURN:
                return self._end_turn()
            if name == ActionName.CANCEL:
                return self._cancel()
            return self._enter_sub_phase(name)

        return self._run(apply)

    def roll_dice(self) -> ActionResult:
        return self.invoke_action(ActionName.ROLL_DICE)

    def end_turn(self) -> ActionResult:
        return self.invoke_action(ActionName.END_TURN)

    def undo(self) -> ActionResult:
        return self.invoke_action(ActionName.UNDO)

    def cancel(self) -> ActionResult:
        return self.invoke_action(ActionName.CANCEL)

    def _run(
        self,
        apply: Callable[[], tuple[str, dict[str, Any]]],
        requires_game: bool = True,
    ) -> ActionResult:
        """Execute a request and convert rule violations into results."""
        try:
            if requires_game and self._state is None:
                raise InvalidPhaseAction("Game not started")
            message, info = apply()
        except HexRealmError as e:
            phase = self._state.phase if self._state is not None else Phase.SETUP_SELECTION
            logger.debug("Rejected request: %s", e)
            self._last_message = e.message
            self._emit(EventKind.ACTION_REJECTED, error=e.code, message=e.message)
            return ActionResult(
                success=False,
                message=e.message,
                phase=phase,
                error=e.code,
                info=dict(e.context),
            )

        self._last_message = message
        phase = self._state.phase if self._state is not None else Phase.SETUP_SELECTION
        self._emit(EventKind.STATE_CHANGED, phase=phase.value, message=message)
        return ActionResult(success=True, message=message, phase=phase, info=info)

    # -------------------------------------------------------------------------
    # Phase Transition Logic
    # -------------------------------------------------------------------------

    def _transition_to_phase(self, new_phase: Phase) -> None:
        """Transition to a new phase, keeping machine and state in sync."""
        previous = self.state.phase
        result = self._phase_machine.transition_to(new_phase)
        if not result.success:
            raise InvalidPhaseAction(result.reason or f"Cannot enter {new_phase.value}")
        self.state.set_phase(new_phase)
        logger.debug("Phase %s -> %s", previous.value, new_phase.value)
        self._emit(EventKind.PHASE_CHANGED, phase=new_phase.value, previous=previous.value)

    def _complete_sub_phase(self) -> dict[str, Any]:
        """Leave a finished sub-phase: back to ACTION, or GAME_OVER."""
        _, winner = self._phase_machine.should_game_end(self.state)
        next_phase = self._phase_machine.compute_next_phase(self.state)
        if next_phase.new_phase != Phase.GAME_OVER:
            self._transition_to_phase(next_phase.new_phase)
            return {}

        self.state.winner = winner
        self._transition_to_phase(Phase.GAME_OVER)
        self._undo.clear()
        winner_name = self.state.get_player(winner).name
        logger.info("%s wins after turn %d", winner_name, self.state.turn_number)
        self._emit(EventKind.GAME_OVER, winner=winner, name=winner_name)
        return {"winner": winner}

    def _require_phase(self, *phases: Phase) -> None:
        if self.state.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise InvalidPhaseAction(
                f"Not allowed during {self.state.phase.value} (needs {allowed})",
                context={"phase": self.state.phase.value},
            )

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def _handle_setup_selection(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        self._setup_manager.select_start_tile(player.player_id, tile.coord)

        if self._phase_machine.should_end_setup(self.state):
            self.state.current_player_idx = 0
            self._transition_to_phase(Phase.RESOURCE_COLLECTION)
            return (
                f"{player.name} starts at {tile.coord}. "
                f"{self.state.get_current_player().name}: {self.get_instruction()}",
                {"coord": tile.coord},
            )
        return f"{player.name} starts at {tile.coord}. {self.get_instruction()}", {"coord": tile.coord}

    # -------------------------------------------------------------------------
    # Resource Collection
    # -------------------------------------------------------------------------

    def _roll_dice(self) -> tuple[str, dict[str, Any]]:
        self._require_phase(Phase.RESOURCE_COLLECTION)
        player = self.state.get_current_player()

        dice = tuple(self._rng.randint(1, DIE_FACES) for _ in range(self.rules.dice_count))
        gains = self._collect_resources(player, dice)
        self.state.dice = dice
        self._transition_to_phase(Phase.ACTION)

        gained = {resource.value: amount for resource, amount in gains.items() if amount}
        logger.info("%s rolled %s and collected %s", player.name, list(dice), gained)
        self._emit(EventKind.DICE_ROLLED, dice=list(dice), gains=gained)

        gains_text = ", ".join(f"{amount} {name}" for name, amount in gained.items()) or "nothing"
        return f"Rolled {', '.join(map(str, dice))}: collected {gains_text}", {
            "dice": list(dice),
            "gains": gained,
        }

    def _collect_resources(self, player: Player, dice: Sequence[int]) -> dict[Any, int]:
        """Credit the player's tiles whose resource value matches a rolled die."""
        gains = {resource: 0 for resource in TERRAIN_RESOURCE.values()}
        owned = self.state.board.owned_tiles(player.player_id)
        for value in dice:
            for tile in owned:
                if tile.resource_value != value:
                    continue
                amount = BASE_YIELD * (SETTLEMENT_YIELD_MULTIPLIER if tile.has_settlement else 1)
                resource = TERRAIN_RESOURCE[tile.terrain]
                player.gain(resource, amount)
                gains[resource] += amount
        return gains

    # -------------------------------------------------------------------------
    # Action hub
    # -------------------------------------------------------------------------

    def _check_can_enter(self, name: ActionName) -> None:
        """Raise if the sub-phase for name cannot be entered right now."""
        self._require_phase(Phase.ACTION)
        player = self.state.get_current_player()
        board = self.state.board
        costs = self.rules.costs

        if name == ActionName.BUILD_ARMY:
            if not player.can_afford(costs.army_cost):
                raise InsufficientResources("Not enough resources for army!")
            if not player.owned_tiles:
                raise InvalidPhaseAction("You have no hexes to build on")

        elif name == ActionName.BUILD_SETTLEMENT:
            if not player.can_afford(costs.settlement_cost):
                raise InsufficientResources("Not enough resources for settlement!")
            if not any(not t.has_settlement for t in board.owned_tiles(player.player_id)):
                raise InvalidPhaseAction("Every hex you own already has a settlement")

        elif name == ActionName.EXPAND_TERRITORY:
            if not player.can_afford(costs.territory_cost):
                raise InsufficientResources("Not enough resources to expand!")
            if not self._expansion_targets(player):
                raise InvalidPhaseAction("There is no unowned hex next to your territory")

        elif name == ActionName.MOVE_ARMY:
            if player.has_moved_army_this_turn:
                raise InvalidPhaseAction("You have already moved an army this turn")
            if not self._move_sources(player):
                raise InvalidPhaseAction("None of your armies can move")

        elif name == ActionName.ATTACK:
            if not self._attack_sources(player):
                raise InvalidPhaseAction("None of your armies borders an enemy hex")

    def _enter_sub_phase(self, name: ActionName) -> tuple[str, dict[str, Any]]:
        self._check_can_enter(name)
        self._transition_to_phase(ACTION_SUB_PHASES[name])
        return self.get_instruction(), {}

    def _cancel(self) -> tuple[str, dict[str, Any]]:
        if self.state.phase not in SUB_PHASES:
            raise InvalidPhaseAction("There is nothing to cancel")
        self.state.pending_selection = None
        self._transition_to_phase(Phase.ACTION)
        return self.get_instruction(), {}

    def _end_turn(self) -> tuple[str, dict[str, Any]]:
        self._require_phase(Phase.ACTION)
        player = self.state.get_current_player()
        player.reset_for_new_turn()
        self.state.pending_selection = None
        self.state.dice = ()
        self.state.advance_current_player()
        self.state.turn_number += 1
        self._undo.clear()
        self._transition_to_phase(Phase.RESOURCE_COLLECTION)

        next_player = self.state.get_current_player()
        logger.info("%s ended their turn; %s to play", player.name, next_player.name)
        return f"{next_player.name}: {self.get_instruction()}", {
            "next_player": next_player.player_id
        }

    def _undo_last_action(self) -> tuple[str, dict[str, Any]]:
        previous = self.state.phase
        snapshot = self._undo.undo(self.state)
        self._phase_machine.sync(snapshot.phase)
        if snapshot.phase != previous:
            self._emit(EventKind.PHASE_CHANGED, phase=snapshot.phase.value, previous=previous.value)
        logger.info("Undid last action; back in %s", snapshot.phase.value)
        return "Last action undone", {"phase": snapshot.phase.value}

    # -------------------------------------------------------------------------
    # Candidate tiles
    # -------------------------------------------------------------------------

    def _expansion_targets(self, player: Player) -> list[Tile]:
        board = self.state.board
        return [
            t for t in board.unowned_tiles()
            if board.is_adjacent_to_owner(t, player.player_id)
        ]

    def _move_destinations(self, player: Player, source: Tile) -> list[Tile]:
        return [
            n for n in self.state.board.neighbors_of(source.coord)
            if n.owner is None or n.owner == player.player_id
        ]

    def _move_sources(self, player: Player) -> list[Tile]:
        return [
            t for t in self.state.board.owned_tiles(player.player_id)
            if t.has_army() and self._move_destinations(player, t)
        ]

    def _attack_targets(self, player: Player, source: Tile) -> list[Tile]:
        return [
            n for n in self.state.board.neighbors_of(source.coord)
            if n.owner is not None and n.owner != player.player_id
        ]

    def _attack_sources(self, player: Player) -> list[Tile]:
        return [
            t for t in self.state.board.owned_tiles(player.player_id)
            if t.has_army() and self._attack_targets(player, t)
        ]

    def get_valid_tiles(self) -> list[Coordinate]:
        """Get the coordinates the current player may select right now.

        Useful for highlighting. Empty outside tile-selecting phases.
        """
        if self._state is None:
            return []
        state = self.state
        player = state.get_current_player()
        board = state.board
        phase = state.phase

        if phase == Phase.SETUP_SELECTION:
            return self._setup_manager.get_valid_start_tiles()
        if phase == Phase.BUILD_ARMY:
            tiles = board.owned_tiles(player.player_id)
        elif phase == Phase.BUILD_SETTLEMENT:
            tiles = [t for t in board.owned_tiles(player.player_id) if not t.has_settlement]
        elif phase == Phase.EXPAND_TERRITORY:
            tiles = self._expansion_targets(player)
        elif phase == Phase.MOVE_ARMY:
            source = state.pending_tile()
            tiles = (
                self._move_destinations(player, source) if source is not None
                else self._move_sources(player)
            )
        elif phase == Phase.COMBAT:
            source = state.pending_tile()
            tiles = (
                self._attack_targets(player, source) if source is not None
                else self._attack_sources(player)
            )
        else:
            tiles = []
        return [t.coord for t in tiles]

    # -------------------------------------------------------------------------
    # Build / Expand
    # -------------------------------------------------------------------------

    def _handle_build_army(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        cost = self.rules.costs.army_cost
        if not tile.is_owned_by(player.player_id):
            raise InvalidTileSelection("You can only build on your own hexes!")
        if not player.can_afford(cost):
            raise InsufficientResources("Not enough resources for army!")

        self._undo.save(self.state)
        player.spend(cost)
        tile.army_count += 1
        logger.info("%s built an army at %s", player.name, tile.coord)

        info = self._complete_sub_phase()
        return f"Army built at {tile.coord} ({tile.army_count} total)", info

    def _handle_build_settlement(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        cost = self.rules.costs.settlement_cost
        if not tile.is_owned_by(player.player_id) or tile.has_settlement:
            raise InvalidTileSelection("You can only build settlements on your own empty hexes!")
        if not player.can_afford(cost):
            raise InsufficientResources("Not enough resources for settlement!")

        self._undo.save(self.state)
        player.spend(cost)
        tile.has_settlement = True
        logger.info("%s built a settlement at %s", player.name, tile.coord)

        info = self._complete_sub_phase()
        return f"Settlement built at {tile.coord}", info

    def _handle_expand_territory(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        cost = self.rules.costs.territory_cost
        if tile.is_owned() or not self.state.board.is_adjacent_to_owner(tile, player.player_id):
            raise InvalidTileSelection("Can only expand to adjacent unowned hexes!")
        if not player.can_afford(cost):
            raise InsufficientResources("Not enough resources to expand!")

        self._undo.save(self.state)
        player.spend(cost)
        player.claim(tile)
        logger.info("%s expanded to %s", player.name, tile.coord)

        info = self._complete_sub_phase()
        return f"Territory expanded to {tile.coord}", info

    # -------------------------------------------------------------------------
    # Two-step actions
    # -------------------------------------------------------------------------

    def _select_source(self, tile: Tile, prompt: str) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        if not tile.is_owned_by(player.player_id) or not tile.has_army():
            raise InvalidTileSelection(f"Select a hex with your army to {prompt} from")
        self.state.pending_selection = tile.coord
        return self.get_instruction(), {"source": tile.coord}

    def _handle_move_army(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        source = self.state.pending_tile()
        if source is None:
            return self._select_source(tile, "move")

        if player.has_moved_army_this_turn:
            raise InvalidPhaseAction("You have already moved an army this turn")
        if not self.state.board.are_adjacent(source.coord, tile.coord) or (
            tile.owner is not None and tile.owner != player.player_id
        ):
            raise InvalidTileSelection(
                "Invalid move - destination must be adjacent and unowned or yours!"
            )

        self._undo.save(self.state)
        if tile.owner is None:
            player.claim(tile)
        tile.army_count += 1
        source.army_count -= 1
        if source.army_count == 0 and not source.has_settlement:
            player.release(source)
        player.has_moved_army_this_turn = True
        self.state.pending_selection = None
        logger.info("%s moved an army %s -> %s", player.name, source.coord, tile.coord)

        info = self._complete_sub_phase()
        return f"Army moved from {source.coord} to {tile.coord}", info

    def _handle_combat(self, tile: Tile) -> tuple[str, dict[str, Any]]:
        player = self.state.get_current_player()
        source = self.state.pending_tile()
        if source is None:
            return self._select_source(tile, "attack")

        if (
            tile.owner is None
            or tile.owner == player.player_id
            or not self.state.board.are_adjacent(source.coord, tile.coord)
        ):
            raise InvalidTileSelection(
                "Invalid attack target - must be adjacent and enemy-owned!"
            )

        self._undo.save(self.state)
        defender = self.state.get_player(tile.owner)
        result = self._combat.resolve(source.army_count, tile.army_count)
        self._apply_combat(player, defender, source, tile, result)
        self.state.pending_selection = None
        logger.info(
            "%s attacked %s at %s: %s",
            player.name,
            defender.name,
            tile.coord,
            result.summary(),
        )
        self._emit(
            EventKind.COMBAT_RESOLVED,
            attacker=player.player_id,
            defender=defender.player_id,
            source=source.coord,
            target=tile.coord,
            attacker_won=result.attacker_won,
        )

        info = self._complete_sub_phase()
        info["combat"] = result
        return result.summary(), info

    def _apply_combat(
        self,
        attacker: Player,
        defender: Player,
        origin: Tile,
        target: Tile,
        result: CombatResult,
    ) -> None:
        """Write a combat outcome onto the board."""
        if result.attacker_won:
            # Settlements change hands with the tile
            settlement = target.has_settlement
            defender.release(target)
            attacker.claim(target)
            target.has_settlement = settlement
            target.army_count = result.target_armies
            origin.army_count = result.origin_armies
            if origin.army_count == 0 and not origin.has_settlement:
                attacker.release(origin)
        else:
            origin.army_count = result.origin_armies
            target.army_count = result.target_armies

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def get_instruction(self) -> str:
        """Get the prompt text for the current phase."""
        state = self.state
        if state.phase in TWO_STEP_PHASES and state.pending_selection is not None:
            return PENDING_INSTRUCTIONS[state.phase]
        template = PHASE_INSTRUCTIONS.get(state.phase, "Select a hex to perform actions")
        winner = state.get_player(state.winner).name if state.winner is not None else ""
        return template.format(name=state.get_current_player().name, winner=winner)

    def get_button_states(self) -> dict[ActionName, bool]:
        """Get the enabled flag of every action button."""
        if self._state is None:
            return {name: False for name in ActionName}

        phase = self.state.phase
        buttons = {
            ActionName.ROLL_DICE: phase == Phase.RESOURCE_COLLECTION,
            ActionName.UNDO: self._undo.available,
            ActionName.END_TURN: phase == Phase.ACTION,
            ActionName.CANCEL: phase in SUB_PHASES,
        }
        for name in ACTION_SUB_PHASES:
            try:
                self._check_can_enter(name)
                buttons[name] = True
            except HexRealmError:
                buttons[name] = False
        return {name: buttons[name] for name in ActionName}

    def get_player_view(self, player: Player) -> PlayerView:
        board = self.state.board
        owned = board.owned_tiles(player.player_id)
        return PlayerView(
            player_id=player.player_id,
            name=player.name,
            color=player.color,
            resources=player.wallet_summary(),
            tiles=len(owned),
            armies=sum(t.army_count for t in owned),
            settlements=sum(1 for t in owned if t.has_settlement),
            regions=len(board.regions_of(player.player_id)),
            has_moved_army_this_turn=player.has_moved_army_this_turn,
        )

    def get_view(self) -> GameView:
        """Get everything the presentation layer needs to draw."""
        state = self.state
        pending = state.pending_selection
        return GameView(
            phase=state.phase,
            current_player=self.get_player_view(state.get_current_player()),
            dice=tuple(state.dice),
            instruction=self.get_instruction(),
            buttons=self.get_button_states(),
            undo_available=self._undo.available,
            pending_selection=(pending.col, pending.row) if pending is not None else None,
            winner=state.winner,
            turn_number=state.turn_number,
        )

    @property
    def last_message(self) -> str:
        """Get the message of the most recent request."""
        return self._last_message

    def __str__(self) -> str:
        """Return string representation of the engine."""
        if self._state is None:
            return "GameEngine(not started)"
        return f"GameEngine(phase={self.state.phase.value}, turn={self.state.turn_number})"

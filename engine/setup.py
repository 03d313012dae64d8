"""Initial game setup logic for the Hex Realm game engine.

Handles everything that happens once at the beginning of each game:
1. Validate the configured players (unique names and colors)
2. Build the board and the initial state
3. Starting-tile selection (SETUP_SELECTION phase), one tile per player
   in turn order

After setup completes, the game enters the turn loop at
RESOURCE_COLLECTION with the first player to move.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from core.board import Board, Tile
from core.config import RuleConfig, CLASSIC_RULES
from core.constants import Phase
from core.errors import DuplicatePlayerIdentity, InvalidPhaseAction, InvalidTileSelection
from core.game_state import GameState
from core.hexgrid import Coordinate

if TYPE_CHECKING:
    from core.player import Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerSpec:
    """Setup data for one player.

    Attributes:
        name: Display name, unique within a game.
        color: Display color, unique within a game.
    """

    name: str
    color: str


@dataclass
class SetupValidationResult:
    """Result of validating a starting-tile choice.

    Attributes:
        valid: Whether the choice is valid.
        reason: Description of why the choice is invalid (if it is).
    """

    valid: bool
    reason: Optional[str] = None


def validate_player_specs(specs: Sequence[PlayerSpec]) -> None:
    """Reject player lists that reuse a name or a color.

    Names are compared after trimming whitespace and ignoring case;
    colors are compared ignoring case ("#FF0000" == "#ff0000").

    Raises:
        DuplicatePlayerIdentity: Naming the duplicated field and value.
    """
    seen_names: set[str] = set()
    seen_colors: set[str] = set()
    for spec in specs:
        name_key = spec.name.strip().lower()
        color_key = spec.color.strip().lower()
        if name_key in seen_names:
            raise DuplicatePlayerIdentity(
                f"Player name '{spec.name}' is used more than once",
                context={"field": "name", "value": spec.name},
            )
        if color_key in seen_colors:
            raise DuplicatePlayerIdentity(
                f"Player color '{spec.color}' is used more than once",
                context={"field": "color", "value": spec.color},
            )
        seen_names.add(name_key)
        seen_colors.add(color_key)


class SetupManager:
    """Manages starting-tile selection.

    Each player, in turn order, claims one unowned tile. The tile
    receives one army and a settlement. Depending on the rules, a
    starting tile may not touch a tile someone else already claimed.
    """

    def __init__(self, state: GameState, rules: RuleConfig = CLASSIC_RULES):
        """Initialize the setup manager.

        Args:
            state: The game state to manage setup for.
            rules: Rule set (decides the adjacency restriction).
        """
        self.state = state
        self.rules = rules

    # -------------------------------------------------------------------------
    # Queue helpers
    # -------------------------------------------------------------------------

    def get_next_player(self) -> Optional[int]:
        """Get the ID of the next player to choose, or None if all have chosen."""
        return self.state.setup_queue[0] if self.state.setup_queue else None

    def is_setup_complete(self) -> bool:
        """Check if every player has claimed a starting tile."""
        return not self.state.setup_queue

    # -------------------------------------------------------------------------
    # Starting-tile selection
    # -------------------------------------------------------------------------

    def _adjacency_enforced(self) -> bool:
        """Whether the no-touching rule applies to the current pick.

        The rule is lifted when it would leave the player with no legal
        tile at all, which can happen on small boards.
        """
        if not self.rules.forbid_adjacent_start:
            return False
        board = self.state.board
        return any(not board.is_adjacent_to_any_owner(t) for t in board.unowned_tiles())

    def get_valid_start_tiles(self) -> list[Coordinate]:
        """Get every coordinate the current player may choose.

        Returns:
            Coordinates in stable board order.
        """
        if self.state.phase != Phase.SETUP_SELECTION:
            return []
        board = self.state.board
        enforce = self._adjacency_enforced()
        return [
            tile.coord
            for tile in board.unowned_tiles()
            if not (enforce and board.is_adjacent_to_any_owner(tile))
        ]

    def validate_start_tile(self, player_id: int, coord: Coordinate) -> SetupValidationResult:
        """Validate a starting-tile choice.

        Args:
            player_id: The player choosing.
            coord: The coordinate chosen.

        Returns:
            SetupValidationResult indicating if the choice is valid.
        """
        # Check phase
        if self.state.phase != Phase.SETUP_SELECTION:
            return SetupValidationResult(
                valid=False,
                reason=f"Not in SETUP_SELECTION phase (current: {self.state.phase.value})",
            )

        # Check it's the player's turn
        if self.get_next_player() != player_id:
            return SetupValidationResult(
                valid=False,
                reason=f"Not player {player_id}'s turn to choose",
            )

        tile = self.state.board.tile_at(coord)
        if tile is None:
            return SetupValidationResult(valid=False, reason=f"Tile {coord} does not exist")

        if tile.is_owned():
            return SetupValidationResult(valid=False, reason="This hex is already taken!")

        if self._adjacency_enforced() and self.state.board.is_adjacent_to_any_owner(tile):
            return SetupValidationResult(
                valid=False,
                reason="Cannot choose a hex adjacent to another player's starting hex!",
            )

        return SetupValidationResult(valid=True)

    def select_start_tile(self, player_id: int, coord: Coordinate) -> Tile:
        """Claim a starting tile for a player and advance the setup queue.

        Args:
            player_id: The player choosing.
            coord: The coordinate chosen.

        Returns:
            The claimed tile.

        Raises:
            InvalidPhaseAction: If not in setup or not this player's pick.
            InvalidTileSelection: If the tile cannot be chosen.
        """
        result = self.validate_start_tile(player_id, coord)
        if not result.valid:
            if self.state.phase != Phase.SETUP_SELECTION or self.get_next_player() != player_id:
                raise InvalidPhaseAction(result.reason or "Cannot choose a starting tile now")
            raise InvalidTileSelection(result.reason or "Invalid starting tile", context={"coord": coord})

        player: Player = self.state.get_player(player_id)
        tile = self.state.board.tile_at(coord)
        player.claim(tile)
        tile.army_count = 1
        tile.has_settlement = True

        self.state.setup_queue.pop(0)
        next_player = self.get_next_player()
        if next_player is not None:
            self.state.current_player_idx = next_player

        logger.info("%s chose starting tile %s", player.name, tile.coord)
        return tile


def initialize_game(
    player_specs: Sequence[PlayerSpec],
    board_size: int,
    rules: RuleConfig = CLASSIC_RULES,
    rng: Optional[random.Random] = None,
    board: Optional[Board] = None,
) -> tuple[GameState, SetupManager]:
    """Create a fresh game ready for starting-tile selection.

    Args:
        player_specs: Players in turn order.
        board_size: Columns/rows of the generated board (ignored if board given).
        rules: Rule set for the game.
        rng: Random source used to generate the board.
        board: Optional pre-built board (e.g. loaded from a layout file).

    Returns:
        Tuple of (initial state, setup manager).

    Raises:
        DuplicatePlayerIdentity: If names or colors repeat.
        ValueError: If the player count or board size is out of range.
    """
    validate_player_specs(player_specs)
    if board is None:
        board = Board.generate(board_size, rng)

    state = GameState.create_initial_state(
        board,
        [(spec.name, spec.color) for spec in player_specs],
        starting_resources=dict(rules.starting_resources),
        min_players=rules.min_players,
        max_players=rules.max_players,
    )
    logger.debug(
        "Initialized game: %d players on %r", state.num_players(), board
    )
    return state, SetupManager(state, rules)

"""Game state for the Hex Realm game engine.

GameState is the single source of truth for the entire game.
It combines the board, the players and the turn bookkeeping, and
provides cloning, serialization, hashing and invariant checks.
"""

from __future__ import annotations

import copy
import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .constants import Phase, Resource, MIN_PLAYERS, MAX_PLAYERS
from .board import Board, Tile
from .hexgrid import Coordinate
from .player import Player


@dataclass
class GameState:
    """The complete game state - single source of truth.

    Attributes:
        board: The hex board with per-tile occupancy.
        players: All players in turn order (player_id == index).
        phase: Current phase of the turn state machine.
        current_player_idx: Index of the player whose turn it is.
        pending_selection: Source tile of a two-step move or attack.
        dice: Values of the last roll this turn (empty before rolling).
        setup_queue: Player IDs still to choose a starting tile.
        turn_number: Turns completed since setup, plus one.
        winner: Player ID of the winner once the game is over.
    """

    board: Board
    players: list[Player]
    phase: Phase = Phase.SETUP_SELECTION
    current_player_idx: int = 0
    pending_selection: Optional[Coordinate] = None
    dice: tuple[int, ...] = ()
    setup_queue: list[int] = field(default_factory=list)
    turn_number: int = 1
    winner: Optional[int] = None

    @classmethod
    def create_initial_state(
        cls,
        board: Board,
        player_specs: Sequence[tuple[str, str]],
        starting_resources: Optional[dict[Resource, int]] = None,
        min_players: int = MIN_PLAYERS,
        max_players: int = MAX_PLAYERS,
    ) -> GameState:
        """Create an initial game state ready for starting-tile selection.

        Args:
            board: The game board (every tile unowned).
            player_specs: (name, color) pairs in turn order.
            starting_resources: Wallet each player starts with.
            min_players: Fewest players accepted.
            max_players: Most players accepted.

        Returns:
            A new GameState in SETUP_SELECTION with every player queued.

        Raises:
            ValueError: If the player count is out of range.
        """
        if not min_players <= len(player_specs) <= max_players:
            raise ValueError(
                f"Number of players must be between {min_players} and {max_players}, "
                f"got {len(player_specs)}"
            )

        players = []
        for i, (name, color) in enumerate(player_specs):
            player = Player(player_id=i, name=name, color=color)
            for resource, amount in (starting_resources or {}).items():
                player.resources[resource] = amount
            players.append(player)

        return cls(
            board=board,
            players=players,
            phase=Phase.SETUP_SELECTION,
            current_player_idx=0,
            setup_queue=[p.player_id for p in players],
        )

    # -------------------------------------------------------------------------
    # Player access methods
    # -------------------------------------------------------------------------

    def get_current_player(self) -> Player:
        """Get the player whose turn it is."""
        return self.players[self.current_player_idx]

    def get_player(self, player_id: int) -> Player:
        """Get a player by ID.

        Raises:
            ValueError: If player_id is invalid.
        """
        if not 0 <= player_id < len(self.players):
            raise ValueError(f"Invalid player ID: {player_id}")
        return self.players[player_id]

    def num_players(self) -> int:
        """Return the number of players."""
        return len(self.players)

    def advance_current_player(self) -> None:
        """Move to the next player in turn order."""
        self.current_player_idx = (self.current_player_idx + 1) % len(self.players)

    def players_with_armies(self) -> list[Player]:
        """Return players that still have at least one army on the board."""
        return [p for p in self.players if self.board.army_total(p.player_id) > 0]

    # -------------------------------------------------------------------------
    # Phase management
    # -------------------------------------------------------------------------

    def set_phase(self, phase: Phase) -> None:
        """Set the current game phase."""
        self.phase = phase

    def is_setup_phase(self) -> bool:
        """Check if starting tiles are still being chosen."""
        return self.phase == Phase.SETUP_SELECTION

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self.phase == Phase.GAME_OVER

    def pending_tile(self) -> Optional[Tile]:
        """Get the tile of the pending two-step selection, if any."""
        if self.pending_selection is None:
            return None
        return self.board.tile_at(self.pending_selection)

    # -------------------------------------------------------------------------
    # Cloning and serialization
    # -------------------------------------------------------------------------

    def clone(self) -> GameState:
        """Create a deep copy of the game state.

        Changes to the copy never reach this state, and vice versa.

        Returns:
            A complete deep copy of this GameState.
        """
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the game state to a dictionary.

        Useful for saving games, comparing states and debugging.

        Returns:
            Dictionary representation of the game state.
        """
        return {
            "phase": self.phase.value,
            "current_player_idx": self.current_player_idx,
            "pending_selection": (
                list(self.pending_selection) if self.pending_selection is not None else None
            ),
            "dice": list(self.dice),
            "setup_queue": list(self.setup_queue),
            "turn_number": self.turn_number,
            "winner": self.winner,
            "players": [
                {
                    "player_id": p.player_id,
                    "name": p.name,
                    "color": p.color,
                    "resources": p.wallet_summary(),
                    "owned_tiles": sorted(list(c) for c in p.owned_tiles),
                    "has_moved_army_this_turn": p.has_moved_army_this_turn,
                }
                for p in self.players
            ],
            "board_state": self._serialize_board_state(),
        }

    def _serialize_board_state(self) -> dict[str, Any]:
        """Serialize every tile, keyed by "col,row"."""
        return {
            f"{tile.coord.col},{tile.coord.row}": {
                "terrain": tile.terrain.value,
                "resource_value": tile.resource_value,
                "owner": tile.owner,
                "army_count": tile.army_count,
                "has_settlement": tile.has_settlement,
            }
            for tile in self.board.all_tiles()
        }

    def state_hash(self) -> str:
        """Compute a hash of the game state.

        Returns:
            A hex string hash of the serialized state.
        """
        state_json = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(state_json.encode()).hexdigest()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the game state for consistency.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        # Check player IDs are sequential
        for i, player in enumerate(self.players):
            if player.player_id != i:
                errors.append(f"Player at index {i} has ID {player.player_id} (expected {i})")

        # Check current player index is valid
        if not 0 <= self.current_player_idx < len(self.players):
            errors.append(f"Invalid current_player_idx: {self.current_player_idx}")

        # Check tiles: unowned tiles hold nothing, armies are non-negative
        for tile in self.board.all_tiles():
            if tile.army_count < 0:
                errors.append(f"Tile {tile.coord} has negative army count {tile.army_count}")
            if tile.owner is None and (tile.army_count != 0 or tile.has_settlement):
                errors.append(f"Unowned tile {tile.coord} holds armies or a settlement")
            if tile.owner is not None and not 0 <= tile.owner < len(self.players):
                errors.append(f"Tile {tile.coord} owned by unknown player {tile.owner}")

        # Check each player's territory matches the tile owners
        for player in self.players:
            expected = {t.coord for t in self.board.owned_tiles(player.player_id)}
            if player.owned_tiles != expected:
                errors.append(
                    f"Player {player.player_id} territory {sorted(player.owned_tiles)} "
                    f"does not match board {sorted(expected)}"
                )
            for resource, amount in player.resources.items():
                if amount < 0:
                    errors.append(f"Player {player.player_id} has negative {resource.value}")

        # Check the pending selection belongs to the current player
        if self.pending_selection is not None:
            tile = self.pending_tile()
            if tile is None:
                errors.append(f"Pending selection {self.pending_selection} is off the board")
            elif 0 <= self.current_player_idx < len(self.players) and (
                tile.owner != self.current_player_idx or tile.army_count <= 0
            ):
                errors.append(
                    f"Pending selection {self.pending_selection} is not an army "
                    f"of the current player"
                )

        # Check the setup queue only exists during setup
        if self.setup_queue and self.phase != Phase.SETUP_SELECTION:
            errors.append("Setup queue is not empty outside SETUP_SELECTION")

        return errors

    # -------------------------------------------------------------------------
    # String representation
    # -------------------------------------------------------------------------

    def __str__(self) -> str:
        """Return a human-readable string representation."""
        lines = [
            f"GameState(phase={self.phase.value}, turn={self.turn_number})",
            f"  Current player: {self.current_player_idx}",
            f"  Dice: {list(self.dice) or '-'}",
            f"  Players ({len(self.players)}):",
        ]
        for p in self.players:
            wallet = ", ".join(f"{k}={v}" for k, v in p.wallet_summary().items())
            lines.append(
                f"    P{p.player_id} {p.name}: {wallet}, tiles={len(p.owned_tiles)}, "
                f"armies={self.board.army_total(p.player_id)}"
            )
        return "\n".join(lines)

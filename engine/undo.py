"""Single-level undo for the Hex Realm game engine.

A Snapshot is a frozen, structural copy of everything an action can
change: tile occupancy, player wallets and territory, and the turn
bookkeeping. Terrain, resource values and topology never change, so
they are not captured. Restoring writes the recorded values back into
the live objects, so references held by the presentation layer stay
valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.constants import Phase, Resource
from core.errors import NoSnapshotAvailable
from core.game_state import GameState
from core.hexgrid import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileRecord:
    """Mutable part of a tile."""

    coord: Coordinate
    owner: Optional[int]
    army_count: int
    has_settlement: bool


@dataclass(frozen=True)
class PlayerRecord:
    """Mutable part of a player."""

    player_id: int
    resources: tuple[tuple[Resource, int], ...]
    owned_tiles: frozenset[Coordinate]
    has_moved_army_this_turn: bool


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of the game state taken right before an action."""

    tiles: tuple[TileRecord, ...]
    players: tuple[PlayerRecord, ...]
    phase: Phase
    current_player_idx: int
    pending_selection: Optional[Coordinate]
    dice: tuple[int, ...]
    setup_queue: tuple[int, ...]
    turn_number: int
    winner: Optional[int]

    @classmethod
    def capture(cls, state: GameState) -> Snapshot:
        """Record the current state."""
        return cls(
            tiles=tuple(
                TileRecord(t.coord, t.owner, t.army_count, t.has_settlement)
                for t in state.board.all_tiles()
            ),
            players=tuple(
                PlayerRecord(
                    player_id=p.player_id,
                    resources=tuple(sorted(p.resources.items(), key=lambda kv: kv[0].value)),
                    owned_tiles=frozenset(p.owned_tiles),
                    has_moved_army_this_turn=p.has_moved_army_this_turn,
                )
                for p in state.players
            ),
            phase=state.phase,
            current_player_idx=state.current_player_idx,
            pending_selection=state.pending_selection,
            dice=tuple(state.dice),
            setup_queue=tuple(state.setup_queue),
            turn_number=state.turn_number,
            winner=state.winner,
        )

    def restore(self, state: GameState) -> None:
        """Write the recorded values back into state."""
        for record in self.tiles:
            tile = state.board.tiles[record.coord]
            tile.owner = record.owner
            tile.army_count = record.army_count
            tile.has_settlement = record.has_settlement

        for record in self.players:
            player = state.players[record.player_id]
            player.resources = dict(record.resources)
            player.owned_tiles = set(record.owned_tiles)
            player.has_moved_army_this_turn = record.has_moved_army_this_turn

        state.phase = self.phase
        state.current_player_idx = self.current_player_idx
        state.pending_selection = self.pending_selection
        state.dice = self.dice
        state.setup_queue = list(self.setup_queue)
        state.turn_number = self.turn_number
        state.winner = self.winner


class UndoManager:
    """Holds at most one snapshot.

    Usage:
        undo = UndoManager()
        undo.save(state)      # right before applying an action
        ...
        undo.undo(state)      # restores and clears the slot
    """

    def __init__(self) -> None:
        self._snapshot: Optional[Snapshot] = None

    @property
    def available(self) -> bool:
        """Check if there is an action to undo."""
        return self._snapshot is not None

    def save(self, state: GameState) -> Snapshot:
        """Capture state, replacing any previous snapshot."""
        self._snapshot = Snapshot.capture(state)
        logger.debug("Saved undo snapshot (phase=%s)", state.phase.value)
        return self._snapshot

    def undo(self, state: GameState) -> Snapshot:
        """Restore the saved snapshot into state and clear the slot.

        Raises:
            NoSnapshotAvailable: If nothing has been saved.
        """
        if self._snapshot is None:
            raise NoSnapshotAvailable("Nothing to undo")
        snapshot = self._snapshot
        snapshot.restore(state)
        self._snapshot = None
        logger.debug("Restored undo snapshot (phase=%s)", snapshot.phase.value)
        return snapshot

    def clear(self) -> None:
        """Drop the snapshot so the last action can no longer be undone."""
        self._snapshot = None

"""Board model for the Hex Realm game engine.

The board is a fixed set of hex tiles indexed by coordinate:
- Topology comes from an AdjacencyProvider and never changes
- Terrain and resource values are drawn once at creation
- Only occupancy (owner, armies, settlement) changes during play
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .constants import (
    Terrain,
    MIN_RESOURCE_VALUE,
    MAX_RESOURCE_VALUE,
    MIN_BOARD_SIZE,
)
from .hexgrid import AdjacencyProvider, Coordinate, HexGrid


@dataclass
class Tile:
    """A single hex on the board.

    Attributes:
        coord: Grid coordinate identifying this tile.
        terrain: Terrain type, decides which resource the tile yields.
        resource_value: Die face (1-6) that triggers this tile's yield.
        owner: Player ID controlling the tile, or None.
        army_count: Number of army units stationed here.
        has_settlement: Whether a settlement doubles this tile's yield.
    """

    coord: Coordinate
    terrain: Terrain
    resource_value: int
    owner: Optional[int] = None
    army_count: int = 0
    has_settlement: bool = False

    def is_owned(self) -> bool:
        """Check if any player controls this tile."""
        return self.owner is not None

    def is_owned_by(self, player_id: int) -> bool:
        """Check if a specific player controls this tile."""
        return self.owner == player_id

    def has_army(self) -> bool:
        """Check if at least one army unit is stationed here."""
        return self.army_count > 0

    def clear(self) -> None:
        """Strip ownership and everything that depends on it."""
        self.owner = None
        self.army_count = 0
        self.has_settlement = False

    def clone(self) -> Tile:
        """Create a copy of this tile."""
        return Tile(
            coord=self.coord,
            terrain=self.terrain,
            resource_value=self.resource_value,
            owner=self.owner,
            army_count=self.army_count,
            has_settlement=self.has_settlement,
        )


class Board:
    """The game board: tiles plus the topology that connects them.

    Attributes:
        grid: Adjacency provider describing which tiles touch.
        tiles: Mapping from coordinate to tile state.
    """

    def __init__(self, grid: AdjacencyProvider, tiles: dict[Coordinate, Tile]):
        missing = [c for c in grid.coordinates() if c not in tiles]
        if missing:
            raise ValueError(f"Board is missing tiles for coordinates: {missing[:5]}")
        self.grid = grid
        self.tiles = tiles

    @classmethod
    def generate(cls, size: int, rng: Optional[random.Random] = None) -> Board:
        """Create a size x size board with random terrain and resource values.

        Args:
            size: Number of columns and rows.
            rng: Random source; a fresh unseeded one is used if omitted.

        Returns:
            A new board with every tile unowned.

        Raises:
            ValueError: If size is below MIN_BOARD_SIZE.
        """
        if size < MIN_BOARD_SIZE:
            raise ValueError(f"Board size must be at least {MIN_BOARD_SIZE}, got {size}")
        rng = rng or random.Random()
        grid = HexGrid.square(size)
        terrains = list(Terrain)
        tiles = {
            coord: Tile(
                coord=coord,
                terrain=rng.choice(terrains),
                resource_value=rng.randint(MIN_RESOURCE_VALUE, MAX_RESOURCE_VALUE),
            )
            for coord in grid.coordinates()
        }
        return cls(grid, tiles)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def tile_at(self, coord: Coordinate) -> Optional[Tile]:
        """Get the tile at a coordinate, or None if off the board."""
        return self.tiles.get(Coordinate(*coord))

    def neighbors_of(self, coord: Coordinate) -> list[Tile]:
        """Get the tiles adjacent to a coordinate."""
        return [
            self.tiles[neighbor]
            for neighbor in self.grid.neighbors(Coordinate(*coord))
            if neighbor in self.tiles
        ]

    def are_adjacent(self, a: Coordinate, b: Coordinate) -> bool:
        """Check if two coordinates are neighbors."""
        return self.grid.are_adjacent(Coordinate(*a), Coordinate(*b))

    def is_adjacent_to_owner(self, tile: Tile, player_id: int) -> bool:
        """Check if any neighbor of tile is owned by player_id."""
        return any(n.owner == player_id for n in self.neighbors_of(tile.coord))

    def is_adjacent_to_any_owner(self, tile: Tile) -> bool:
        """Check if any neighbor of tile is owned by anyone."""
        return any(n.is_owned() for n in self.neighbors_of(tile.coord))

    def all_tiles(self) -> list[Tile]:
        """Return all tiles in stable coordinate order."""
        return [self.tiles[c] for c in self.grid.coordinates()]

    def owned_tiles(self, player_id: int) -> list[Tile]:
        """Return all tiles owned by a player."""
        return [t for t in self.all_tiles() if t.owner == player_id]

    def unowned_tiles(self) -> list[Tile]:
        """Return all tiles without an owner."""
        return [t for t in self.all_tiles() if not t.is_owned()]

    def army_total(self, player_id: int) -> int:
        """Return the number of army units a player has on the board."""
        return sum(t.army_count for t in self.owned_tiles(player_id))

    def regions_of(self, player_id: int) -> list[set[Coordinate]]:
        """Return a player's territory split into contiguous regions."""
        owned = [t.coord for t in self.owned_tiles(player_id)]
        if isinstance(self.grid, HexGrid):
            return self.grid.connected_components(owned)
        return [{c} for c in owned]

    # -------------------------------------------------------------------------
    # Cloning
    # -------------------------------------------------------------------------

    def clone(self) -> Board:
        """Create a copy of this board. Topology is shared, tiles are copied."""
        return Board(self.grid, {coord: tile.clone() for coord, tile in self.tiles.items()})

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Board({self.grid!r}, tiles={len(self.tiles)})"

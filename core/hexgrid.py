"""Hex grid topology for the Hex Realm game engine.

Tiles are addressed by (col, row) offset coordinates on a rectangular
grid of flat-topped hexes where odd columns are shifted half a hex down
("odd-q" layout). Adjacency is precomputed once into a networkx graph;
the board only ever asks for neighbors and distances, so any other
topology can be plugged in through AdjacencyProvider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, NamedTuple

import networkx as nx


class Coordinate(NamedTuple):
    """Offset coordinate of a tile (column, row)."""

    col: int
    row: int

    def __str__(self) -> str:
        return f"({self.col},{self.row})"


# Axial direction vectors, shared by all hex layouts
AXIAL_DIRECTIONS: list[tuple[int, int]] = [
    (1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1),
]


def offset_to_axial(coord: Coordinate) -> tuple[int, int]:
    """Convert an odd-q offset coordinate to axial (q, r)."""
    q = coord.col
    r = coord.row - (coord.col - (coord.col & 1)) // 2
    return q, r


def axial_to_offset(q: int, r: int) -> Coordinate:
    """Convert an axial (q, r) coordinate to odd-q offset."""
    col = q
    row = r + (q - (q & 1)) // 2
    return Coordinate(col, row)


def hex_distance(a: Coordinate, b: Coordinate) -> int:
    """Number of steps between two tiles on an unbounded hex grid."""
    q1, r1 = offset_to_axial(a)
    q2, r2 = offset_to_axial(b)
    return max(abs(q1 - q2), abs(r1 - r2), abs((q1 + r1) - (q2 + r2)))


class AdjacencyProvider(ABC):
    """Source of tile topology consumed by the Board."""

    @abstractmethod
    def coordinates(self) -> list[Coordinate]:
        """Return every coordinate on the grid in a stable order."""
        pass

    @abstractmethod
    def neighbors(self, coord: Coordinate) -> list[Coordinate]:
        """Return the coordinates adjacent to coord (at most 6)."""
        pass

    @abstractmethod
    def distance(self, a: Coordinate, b: Coordinate) -> int:
        """Return the step distance between two coordinates."""
        pass

    def contains(self, coord: Coordinate) -> bool:
        """Check if a coordinate lies on the grid."""
        return coord in set(self.coordinates())

    def are_adjacent(self, a: Coordinate, b: Coordinate) -> bool:
        """Check if two coordinates share an edge."""
        return b in self.neighbors(a)


class HexGrid(AdjacencyProvider):
    """Rectangular odd-q hex grid backed by a networkx graph.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        graph: Undirected graph with one node per coordinate and one edge
            per pair of adjacent hexes. Topology is immutable.
    """

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.graph = self._build_graph()

    @classmethod
    def square(cls, size: int) -> HexGrid:
        """Create a size x size grid."""
        return cls(size, size)

    def _build_graph(self) -> nx.Graph:
        graph = nx.Graph()
        for row in range(self.height):
            for col in range(self.width):
                graph.add_node(Coordinate(col, row))

        for coord in list(graph.nodes):
            q, r = offset_to_axial(coord)
            for dq, dr in AXIAL_DIRECTIONS:
                neighbor = axial_to_offset(q + dq, r + dr)
                if neighbor in graph:
                    graph.add_edge(coord, neighbor)
        return graph

    def coordinates(self) -> list[Coordinate]:
        return [Coordinate(col, row) for row in range(self.height) for col in range(self.width)]

    def contains(self, coord: Coordinate) -> bool:
        return coord in self.graph

    def neighbors(self, coord: Coordinate) -> list[Coordinate]:
        if coord not in self.graph:
            return []
        return sorted(self.graph.neighbors(coord))

    def distance(self, a: Coordinate, b: Coordinate) -> int:
        return hex_distance(a, b)

    def are_adjacent(self, a: Coordinate, b: Coordinate) -> bool:
        return self.graph.has_edge(a, b)

    def connected_components(self, coords: Iterable[Coordinate]) -> list[set[Coordinate]]:
        """Split a set of coordinates into contiguous regions.

        Args:
            coords: Coordinates to group (typically one player's territory).

        Returns:
            List of regions, largest first.
        """
        subgraph = self.graph.subgraph(c for c in coords if c in self.graph)
        regions = [set(component) for component in nx.connected_components(subgraph)]
        return sorted(regions, key=lambda region: (-len(region), min(region)))

    def __repr__(self) -> str:
        return f"HexGrid({self.width}x{self.height})"

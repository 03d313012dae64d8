"""Rule and board data loader for the Hex Realm game engine.

Loads and validates rule sets and fixed board layouts from JSON files,
converting them into RuleConfig and Board instances ready for use in
the game.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.board import Board, Tile
from core.config import RuleConfig, RULE_PRESETS
from core.constants import Terrain, MIN_RESOURCE_VALUE, MAX_RESOURCE_VALUE, MIN_BOARD_SIZE
from core.errors import ConfigurationError, DataLoadError
from core.hexgrid import Coordinate, HexGrid

logger = logging.getLogger(__name__)


def resource_path(relative_path: str) -> Path:
    """Get the absolute path of a bundled data file (rules/, boards/)."""
    return Path(__file__).parent / relative_path


def _read_json(file_path: str | Path) -> Any:
    """Read a JSON document, wrapping every failure in DataLoadError."""
    path = Path(file_path)

    if not path.exists():
        raise DataLoadError(f"File not found: {path}", context={"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON in {path.name}: {e}", context={"path": str(path)})
    except OSError as e:
        raise DataLoadError(f"Error reading {path.name}: {e}", context={"path": str(path)})


# =============================================================================
# Rules
# =============================================================================


def load_rules(file_path: str | Path) -> RuleConfig:
    """Load a rule set from a JSON file.

    Missing keys fall back to the classic defaults.

    Args:
        file_path: Path to the JSON rule file.

    Returns:
        A validated RuleConfig.

    Raises:
        DataLoadError: If the file cannot be read or parsed.
        ConfigurationError: If the rules are malformed or inconsistent.
    """
    data = _read_json(file_path)
    if not isinstance(data, dict):
        raise ConfigurationError("Rule data must be a JSON object")
    rules = RuleConfig.from_dict(data)
    logger.debug("Loaded rules from %s", file_path)
    return rules


def load_rule_preset(name: str) -> RuleConfig:
    """Load one of the bundled rule presets ("classic", "skirmish").

    Raises:
        ConfigurationError: If no preset has that name.
    """
    key = name.strip().lower()
    if key not in RULE_PRESETS:
        raise ConfigurationError(
            f"Unknown rule preset '{name}'. Available: {sorted(RULE_PRESETS)}"
        )
    return load_rules(resource_path(f"rules/{key}.json"))


def resolve_rules(name_or_path: str) -> RuleConfig:
    """Load a preset by name, or a rule file by path."""
    if name_or_path.strip().lower() in RULE_PRESETS:
        return load_rule_preset(name_or_path)
    return load_rules(name_or_path)


# =============================================================================
# Boards
# =============================================================================


class BoardLoader:
    """Loads and validates fixed board layouts.

    Layout format:
        {"size": 3, "tiles": [{"col": 0, "row": 0, "terrain": "forest",
                               "resource_value": 4}, ...]}

    Every coordinate of the size x size grid must appear exactly once.
    """

    REQUIRED_FIELDS = ("col", "row", "terrain", "resource_value")

    def load_from_file(self, file_path: str | Path) -> Board:
        """Load a board from a JSON file.

        Raises:
            DataLoadError: If the file cannot be read, parsed or validated.
        """
        return self.load_from_dict(_read_json(file_path))

    def load_from_dict(self, data: dict[str, Any]) -> Board:
        """Load a board from a dictionary.

        Raises:
            DataLoadError: If validation fails.
        """
        self._validate_structure(data)

        size = data["size"]
        grid = HexGrid.square(size)
        tiles: dict[Coordinate, Tile] = {}
        for tile_data in data["tiles"]:
            tile = self._create_tile(tile_data)
            if not grid.contains(tile.coord):
                raise DataLoadError(f"Tile {tile.coord} is outside a {size}x{size} board")
            if tile.coord in tiles:
                raise DataLoadError(f"Duplicate tile: {tile.coord}")
            tiles[tile.coord] = tile

        missing = [c for c in grid.coordinates() if c not in tiles]
        if missing:
            raise DataLoadError(
                f"Layout is missing {len(missing)} tiles, first: {missing[0]}"
            )
        return Board(grid, tiles)

    def _validate_structure(self, data: dict[str, Any]) -> None:
        """Validate the basic structure of the layout data."""
        if not isinstance(data, dict):
            raise DataLoadError("Board data must be a dictionary")

        if "size" not in data:
            raise DataLoadError("Board data missing 'size' key")

        if "tiles" not in data:
            raise DataLoadError("Board data missing 'tiles' key")

        if not isinstance(data["size"], int) or data["size"] < MIN_BOARD_SIZE:
            raise DataLoadError(f"'size' must be an integer >= {MIN_BOARD_SIZE}")

        if not isinstance(data["tiles"], list):
            raise DataLoadError("'tiles' must be a list")

    def _create_tile(self, tile_data: dict[str, Any]) -> Tile:
        """Create an unowned Tile from a tile dictionary."""
        for field in self.REQUIRED_FIELDS:
            if field not in tile_data:
                raise DataLoadError(f"Tile missing required field: {field}")

        coord = Coordinate(tile_data["col"], tile_data["row"])

        try:
            terrain = Terrain(tile_data["terrain"])
        except ValueError:
            raise DataLoadError(
                f"Invalid terrain '{tile_data['terrain']}' at {coord}. "
                f"Valid terrains: {[t.value for t in Terrain]}"
            )

        value = tile_data["resource_value"]
        if not isinstance(value, int) or not MIN_RESOURCE_VALUE <= value <= MAX_RESOURCE_VALUE:
            raise DataLoadError(
                f"Resource value at {coord} must be {MIN_RESOURCE_VALUE}-{MAX_RESOURCE_VALUE}, "
                f"got {value}"
            )

        return Tile(coord=coord, terrain=terrain, resource_value=value)


def load_board(file_path: str | Path) -> Board:
    """Convenience function to load a board layout from a file."""
    board = BoardLoader().load_from_file(file_path)
    logger.debug("Loaded %r from %s", board, file_path)
    return board


def board_to_dict(board: Board) -> dict[str, Any]:
    """Serialize a board's layout (terrain and values, not occupancy)."""
    coords = [t.coord for t in board.all_tiles()]
    return {
        "size": max(c.col for c in coords) + 1,
        "tiles": [
            {
                "col": t.coord.col,
                "row": t.coord.row,
                "terrain": t.terrain.value,
                "resource_value": t.resource_value,
            }
            for t in board.all_tiles()
        ],
    }


def get_board_stats(board: Board) -> dict[str, Any]:
    """Get statistics about a board.

    Args:
        board: The board to analyze.

    Returns:
        Dictionary with tile counts per terrain and per resource value.
    """
    terrain_counts = {t.value: 0 for t in Terrain}
    value_counts = {v: 0 for v in range(MIN_RESOURCE_VALUE, MAX_RESOURCE_VALUE + 1)}

    for tile in board.all_tiles():
        terrain_counts[tile.terrain.value] += 1
        value_counts[tile.resource_value] += 1

    return {
        "num_tiles": len(board),
        "tiles_by_terrain": terrain_counts,
        "tiles_by_value": value_counts,
    }

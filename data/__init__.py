"""Rule and board data loading for the Hex Realm game engine."""

from .loader import (
    BoardLoader,
    resource_path,
    load_rules,
    load_rule_preset,
    resolve_rules,
    load_board,
    board_to_dict,
    get_board_stats,
)

__all__ = [
    # Rules
    "resource_path",
    "load_rules",
    "load_rule_preset",
    "resolve_rules",
    # Boards
    "BoardLoader",
    "load_board",
    "board_to_dict",
    "get_board_stats",
]

"""Interactive CLI driver for playing Hex Realm.

This module provides a text-based interface for playing Hex Realm.
It serves as both a playable game and a reference implementation
for how a GUI would interact with the game engine.

The driver is designed to be extensible:
- GameRenderer handles all display logic (can be swapped for GUI)
- ActionPrompter handles all user input (can be swapped for GUI events)
- GameDriver orchestrates the game loop

Usage:
    python -m engine.driver --players Ada:red Bo:blue --seed 7

Or from code:
    from engine.driver import GameDriver
    driver = GameDriver()
    driver.run()
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from core.constants import ActionName, Phase, DEFAULT_BOARD_SIZE
from core.board import Tile
from core.errors import HexRealmError

from engine.game_engine import GameEngine
from engine.view import ActionResult, GameView

logger = logging.getLogger(__name__)


# Command word -> action button
COMMANDS: dict[str, ActionName] = {
    "roll": ActionName.ROLL_DICE,
    "army": ActionName.BUILD_ARMY,
    "settle": ActionName.BUILD_SETTLEMENT,
    "expand": ActionName.EXPAND_TERRITORY,
    "move": ActionName.MOVE_ARMY,
    "attack": ActionName.ATTACK,
    "undo": ActionName.UNDO,
    "cancel": ActionName.CANCEL,
    "end": ActionName.END_TURN,
}

QUIT_COMMANDS = ("quit", "exit", "q")

HELP_TEXT = (
    "Commands: roll, army, settle, expand, move, attack, undo, cancel, end, "
    "<col> <row> to select a hex, help, quit"
)


# =============================================================================
# Display Formatters (GUI-ready abstraction)
# =============================================================================

class GameRenderer(ABC):
    """Abstract base class for rendering game state.

    Implement this interface to create a GUI renderer.
    The CLI renderer is provided as TextRenderer.
    """

    @abstractmethod
    def render_state(self, engine: GameEngine) -> None:
        """Render the board and the status panel."""
        pass

    @abstractmethod
    def render_message(self, message: str) -> None:
        """Render a message to the user."""
        pass

    @abstractmethod
    def render_error(self, error: str) -> None:
        """Render an error message."""
        pass

    @abstractmethod
    def render_game_over(self, engine: GameEngine) -> None:
        """Render the game over screen."""
        pass


class TextRenderer(GameRenderer):
    """CLI text-based renderer.

    Hexes are flat-topped in odd-q layout, so odd columns are drawn half
    a row lower than even ones. Each hex shows terrain initial and die
    value, then owner, army count and '*' for a settlement, e.g.
    ``F3 1x2*``.
    """

    CELL_WIDTH = 10

    # Player colors (ANSI codes)
    PLAYER_COLORS = [
        "\033[91m",  # Red
        "\033[94m",  # Blue
        "\033[92m",  # Green
        "\033[93m",  # Yellow
        "\033[95m",  # Magenta
        "\033[96m",  # Cyan
    ]
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    def __init__(self, use_colors: bool = True, out=None):
        """Initialize the renderer.

        Args:
            use_colors: Whether to use ANSI color codes.
            out: Stream to write to (default: sys.stdout).
        """
        self.use_colors = use_colors
        self.out = out

    def _print(self, text: str = "") -> None:
        print(text, file=self.out or sys.stdout)

    def _color(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if self.use_colors:
            return f"{color}{text}{self.RESET}"
        return text

    def _player_color(self, player_id: int) -> str:
        """Get the color code for a player."""
        return self.PLAYER_COLORS[player_id % len(self.PLAYER_COLORS)]

    @staticmethod
    def _strip_ansi(text: str) -> str:
        """Strip ANSI escape codes from text."""
        return re.sub(r"\033\[[0-9;]*m", "", text)

    def format_tile(self, tile: Tile, pending: bool = False) -> str:
        """Format one hex as a short token."""
        token = f"{tile.terrain.value[0].upper()}{tile.resource_value}"
        if tile.owner is not None:
            token += f" {tile.owner}"
            if tile.army_count:
                token += f"x{tile.army_count}"
            if tile.has_settlement:
                token += "*"
        if pending:
            token = f">{token}"
        padded = token.ljust(self.CELL_WIDTH)
        if tile.owner is not None:
            return self._color(padded, self._player_color(tile.owner))
        return padded

    def format_board(self, engine: GameEngine) -> list[str]:
        """Format the board as text lines."""
        state = engine.state
        tiles = state.board.all_tiles()
        width = max(t.coord.col for t in tiles) + 1
        height = max(t.coord.row for t in tiles) + 1

        header = "    " + "".join(f"c{col}".ljust(self.CELL_WIDTH) for col in range(width))
        lines = [self._color(header, self.DIM)]
        for row in range(height):
            for parity in (0, 1):
                cells = []
                for col in range(width):
                    tile = state.board.tile_at((col, row))
                    if col % 2 != parity or tile is None:
                        cells.append(" " * self.CELL_WIDTH)
                    else:
                        cells.append(self.format_tile(tile, tile.coord == state.pending_selection))
                label = f"r{row}".ljust(4) if parity == 0 else "    "
                lines.append((label + "".join(cells)).rstrip())
        return lines

    def format_status(self, view: GameView) -> list[str]:
        """Format the status panel as text lines."""
        player = view.current_player
        wallet = ", ".join(f"{name}={amount}" for name, amount in player.resources.items())
        name = self._color(player.name, self._player_color(player.player_id))
        lines = [
            self._color(f"Turn {view.turn_number} - {view.phase.value.upper()}", self.BOLD),
            f"Player: {name} ({player.color})",
            f"Resources: {wallet}",
            f"Territory: {player.tiles} hexes in {player.regions} regions, "
            f"{player.armies} armies, {player.settlements} settlements",
        ]
        if view.dice:
            lines.append(f"Dice: {' '.join(str(d) for d in view.dice)}")
        enabled = [action.value for action in view.enabled_actions()]
        lines.append(f"Available: {', '.join(enabled) or '-'}")
        lines.append(view.instruction)
        return lines

    def render_state(self, engine: GameEngine) -> None:
        """Render the board and the status panel."""
        self._print("\n" + "=" * 70)
        for line in self.format_board(engine):
            self._print(line)
        self._print("-" * 70)
        for line in self.format_status(engine.get_view()):
            self._print(line)

    def render_message(self, message: str) -> None:
        """Render a message to the user."""
        self._print(f"\n{message}")

    def render_error(self, error: str) -> None:
        """Render an error message."""
        self._print(self._color(f"\n[ERROR] {error}", "\033[91m"))

    def render_game_over(self, engine: GameEngine) -> None:
        """Render the game over screen."""
        state = engine.state
        self._print("\n" + "=" * 70)
        self._print(self._color("GAME OVER".center(70), self.BOLD))
        self._print("=" * 70)
        for line in self.format_board(engine):
            self._print(line)
        if state.winner is not None:
            winner = state.get_player(state.winner)
            text = f"{winner.name} wins after {state.turn_number} turns!"
            self._print(f"\n{self._color(text, self.BOLD)}")
        self._print("=" * 70)


# =============================================================================
# Action Prompter (GUI-ready abstraction)
# =============================================================================

class ActionPrompter(ABC):
    """Abstract base class for collecting player input.

    Implement this interface to feed GUI events into the driver.
    The CLI prompter is provided as TextPrompter.
    """

    @abstractmethod
    def prompt_command(self, message: str) -> Optional[str]:
        """Ask for the next command.

        Args:
            message: The prompt message.

        Returns:
            The raw command, or None if input has ended.
        """
        pass


class TextPrompter(ActionPrompter):
    """CLI text-based prompter."""

    def prompt_command(self, message: str) -> Optional[str]:
        """Read a command line from stdin."""
        try:
            return input(f"{message}\n> ").strip()
        except EOFError:
            return None


class ScriptedPrompter(ActionPrompter):
    """Replays a fixed list of commands (demos and tests)."""

    def __init__(self, commands: Sequence[str]):
        self._commands = list(commands)

    def prompt_command(self, message: str) -> Optional[str]:
        if not self._commands:
            return None
        return self._commands.pop(0)


# =============================================================================
# Game Driver
# =============================================================================

class GameDriver:
    """Main driver for running an interactive game session.

    This class orchestrates the game loop and delegates to:
    - GameEngine for game logic
    - GameRenderer for display
    - ActionPrompter for user input

    To create a GUI version, simply provide different renderer and prompter.
    """

    def __init__(
        self,
        engine: Optional[GameEngine] = None,
        renderer: Optional[GameRenderer] = None,
        prompter: Optional[ActionPrompter] = None,
    ):
        """Initialize the game driver.

        Args:
            engine: A configured engine (default: two players, classic rules).
            renderer: The renderer to use (default: TextRenderer).
            prompter: The prompter to use (default: TextPrompter).
        """
        self.engine = engine or GameEngine()
        self.renderer = renderer or TextRenderer()
        self.prompter = prompter or TextPrompter()

    def execute(self, raw: str) -> Optional[ActionResult]:
        """Run one command line against the engine.

        Returns:
            The engine's ActionResult, or None for help and unknown input.
        """
        words = raw.lower().split()
        if not words:
            return None

        if len(words) == 2 and all(w.lstrip("-").isdigit() for w in words):
            return self.engine.select_tile((int(words[0]), int(words[1])))

        if len(words) == 1 and words[0] in COMMANDS:
            return self.engine.invoke_action(COMMANDS[words[0]])

        if words[0] != "help":
            self.renderer.render_error(f"Unknown command: {raw}")
        self.renderer.render_message(HELP_TEXT)
        return None

    def run(self) -> None:
        """Run the main game loop until the game ends or input runs out."""
        if not self.engine.is_started():
            result = self.engine.start()
            if not result.success:
                self.renderer.render_error(result.message)
                return

        names = ", ".join(spec.name for spec in self.engine.player_specs)
        self.renderer.render_message(f"Starting Hex Realm with {names}!")
        self.renderer.render_message(HELP_TEXT)

        while not self.engine.is_game_over():
            self.renderer.render_state(self.engine)
            raw = self.prompter.prompt_command(self.engine.get_instruction())
            if raw is None or raw.lower() in QUIT_COMMANDS:
                logger.info("Session ended by player")
                return

            result = self.execute(raw)
            if result is None:
                continue
            if result.success:
                self.renderer.render_message(result.message)
            else:
                self.renderer.render_error(result.message)

        if self.engine.state.phase == Phase.GAME_OVER:
            self.renderer.render_game_over(self.engine)


# =============================================================================
# Entry Point
# =============================================================================

def parse_player_arg(value: str) -> dict[str, str]:
    """Parse a NAME:COLOR command-line value."""
    name, sep, color = value.partition(":")
    if not sep or not name.strip() or not color.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME:COLOR, got '{value}'")
    return {"name": name.strip(), "color": color.strip()}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexrealm",
        description="Play Hex Realm in the terminal",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--size", type=int, default=DEFAULT_BOARD_SIZE,
                        help="Board columns and rows")
    parser.add_argument("--players", nargs="+", type=parse_player_arg,
                        default=[parse_player_arg("Red:#ff4444"), parse_player_arg("Blue:#4444ff")],
                        metavar="NAME:COLOR", help="Players in turn order")
    parser.add_argument("--rules", type=str, default="classic",
                        help="Rule preset name (classic, skirmish) or path to a JSON rule file")
    parser.add_argument("--board", type=str, default=None,
                        help="Path to a JSON board layout (overrides --size)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI driver."""
    from data.loader import load_board, resolve_rules

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        rules = resolve_rules(args.rules)
        board = load_board(args.board) if args.board else None
    except HexRealmError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 2

    engine = GameEngine(rules=rules, seed=args.seed)
    for result in (
        engine.configure_players(args.players),
        engine.use_board(board) if board is not None else engine.configure_board(args.size),
    ):
        if not result.success:
            print(f"[ERROR] {result.message}", file=sys.stderr)
            return 2

    driver = GameDriver(engine, renderer=TextRenderer(use_colors=not args.no_color))
    try:
        driver.run()
    except KeyboardInterrupt:
        print("\n\nGame interrupted. Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())

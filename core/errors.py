"""Exception hierarchy for the Hex Realm game engine.

Every rule violation is a HexRealmError subclass. Rules code raises them;
GameEngine catches them at its public boundary and turns them into
ActionResult messages, so none of them ever reaches the presentation
layer as an uncaught exception.

Usage:
    from core.errors import InsufficientResources

    try:
        player.spend(cost)
    except InsufficientResources as e:
        print(e.message, e.context)
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "HexRealmError",
    "InvalidPhaseAction",
    "InvalidTileSelection",
    "InsufficientResources",
    "DuplicatePlayerIdentity",
    "NoSnapshotAvailable",
    "ConfigurationError",
    "DataLoadError",
]


class HexRealmError(Exception):
    """Base exception for all Hex Realm errors.

    Attributes:
        code: Machine-readable error code for categorization.
        message: Human-readable error description.
        context: Additional context for debugging.
    """

    code: str = "HEX_REALM_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class InvalidPhaseAction(HexRealmError):
    """Action invoked in a phase that does not allow it."""

    code: str = "INVALID_PHASE_ACTION"


class InvalidTileSelection(HexRealmError):
    """Selected tile has the wrong owner, adjacency or occupancy."""

    code: str = "INVALID_TILE_SELECTION"


class InsufficientResources(HexRealmError):
    """Wallet cannot cover a cost."""

    code: str = "INSUFFICIENT_RESOURCES"


class NoSnapshotAvailable(HexRealmError):
    """Undo requested with nothing to restore."""

    code: str = "NO_SNAPSHOT_AVAILABLE"


# =============================================================================
# Setup / Configuration Errors
# =============================================================================


class DuplicatePlayerIdentity(HexRealmError):
    """Two configured players share a name or a color."""

    code: str = "DUPLICATE_PLAYER_IDENTITY"


class ConfigurationError(HexRealmError):
    """Rule or board configuration is malformed."""

    code: str = "CONFIGURATION_ERROR"


class DataLoadError(HexRealmError):
    """A rule or board file could not be read or parsed."""

    code: str = "DATA_LOAD_ERROR"

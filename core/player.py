"""Player model for the Hex Realm game engine.

Each player has a resource wallet and a set of controlled tiles.
Ownership is always changed through claim()/release() so the player's
territory set and the tiles' owner fields never drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, TYPE_CHECKING

from .constants import Resource
from .errors import InsufficientResources, InvalidTileSelection
from .hexgrid import Coordinate

if TYPE_CHECKING:
    from .board import Tile


Cost = Mapping[Resource, int]


def empty_wallet() -> dict[Resource, int]:
    """Return a wallet with every resource at zero."""
    return {resource: 0 for resource in Resource}


@dataclass
class Player:
    """Represents a player in the Hex Realm game.

    Attributes:
        player_id: Unique identifier, equal to the index in turn order.
        name: Display name.
        color: Display color (opaque to the engine).
        resources: Wallet mapping each resource to a non-negative amount.
        owned_tiles: Coordinates of every tile this player controls.
        has_moved_army_this_turn: Whether the one allowed move was used.
    """

    player_id: int
    name: str
    color: str
    resources: dict[Resource, int] = field(default_factory=empty_wallet)
    owned_tiles: set[Coordinate] = field(default_factory=set)
    has_moved_army_this_turn: bool = False

    def amount(self, resource: Resource) -> int:
        """Get the amount of a resource in the wallet."""
        return self.resources.get(resource, 0)

    def can_afford(self, cost: Cost) -> bool:
        """Check if the wallet covers every entry of cost."""
        return all(self.amount(resource) >= amount for resource, amount in cost.items())

    def spend(self, cost: Cost) -> None:
        """Deduct a cost from the wallet.

        Raises:
            InsufficientResources: If the wallet cannot cover the cost.
                The wallet is left untouched.
        """
        if not self.can_afford(cost):
            missing = {
                resource.value: amount - self.amount(resource)
                for resource, amount in cost.items()
                if self.amount(resource) < amount
            }
            raise InsufficientResources(
                f"{self.name} cannot afford this",
                context={"player_id": self.player_id, "missing": missing},
            )
        for resource, amount in cost.items():
            self.resources[resource] = self.amount(resource) - amount

    def gain(self, resource: Resource, amount: int) -> None:
        """Add resources to the wallet.

        Raises:
            ValueError: If amount is negative.
        """
        if amount < 0:
            raise ValueError(f"Cannot gain a negative amount ({amount}) of {resource.value}")
        self.resources[resource] = self.amount(resource) + amount

    def claim(self, tile: Tile) -> None:
        """Take control of an unowned tile.

        Raises:
            InvalidTileSelection: If the tile already has an owner.
        """
        if tile.owner is not None:
            raise InvalidTileSelection(
                f"Tile {tile.coord} is already owned",
                context={"owner": tile.owner},
            )
        tile.owner = self.player_id
        self.owned_tiles.add(tile.coord)

    def release(self, tile: Tile) -> None:
        """Give up control of a tile, clearing its armies and settlement.

        Raises:
            InvalidTileSelection: If this player does not own the tile.
        """
        if tile.owner != self.player_id:
            raise InvalidTileSelection(
                f"Tile {tile.coord} is not owned by {self.name}",
                context={"owner": tile.owner},
            )
        tile.clear()
        self.owned_tiles.discard(tile.coord)

    def owns(self, coord: Coordinate) -> bool:
        """Check if this player controls the tile at coord."""
        return coord in self.owned_tiles

    def reset_for_new_turn(self) -> None:
        """Reset per-turn state at the end of this player's turn."""
        self.has_moved_army_this_turn = False

    def wallet_summary(self) -> dict[str, int]:
        """Return the wallet keyed by resource name."""
        return {resource.value: self.amount(resource) for resource in Resource}

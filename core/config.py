"""Rule configuration for the Hex Realm game engine.

Costs, dice and the combat formula vary between rule sets, so all of
those live here as data instead of being hard-coded in the engine. Two
presets are provided; custom rule sets can be built directly or loaded
from JSON via data.loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .constants import (
    Resource,
    CombatVariant,
    MIN_PLAYERS,
    MAX_PLAYERS,
)
from .errors import ConfigurationError


def make_cost(**amounts: int) -> Mapping[Resource, int]:
    """Build a read-only cost mapping from keyword amounts.

    Example:
        make_cost(wood=3, stone=2)
    """
    try:
        cost = {Resource(name): int(amount) for name, amount in amounts.items()}
    except ValueError as e:
        raise ConfigurationError(f"Unknown resource in cost {amounts}: {e}")
    return MappingProxyType(cost)


def _cost_from_dict(data: Mapping[str, Any], key: str) -> Mapping[Resource, int]:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"'{key}' must be a mapping of resource to amount")
    return make_cost(**data)


def _cost_to_dict(cost: Mapping[Resource, int]) -> dict[str, int]:
    return {resource.value: amount for resource, amount in cost.items()}


@dataclass(frozen=True)
class CostTable:
    """Resource costs of the purchasable actions."""

    settlement_cost: Mapping[Resource, int] = field(
        default_factory=lambda: make_cost(wood=5, stone=5)
    )
    army_cost: Mapping[Resource, int] = field(default_factory=lambda: make_cost(food=10))
    territory_cost: Mapping[Resource, int] = field(
        default_factory=lambda: make_cost(wood=3, stone=2)
    )

    def items(self) -> list[tuple[str, Mapping[Resource, int]]]:
        return [
            ("settlement_cost", self.settlement_cost),
            ("army_cost", self.army_cost),
            ("territory_cost", self.territory_cost),
        ]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CostTable:
        known = {name for name, _ in cls().items()}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown cost entries: {sorted(unknown)}")
        return cls(**{key: _cost_from_dict(value, key) for key, value in data.items()})

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {name: _cost_to_dict(cost) for name, cost in self.items()}


@dataclass(frozen=True)
class RuleConfig:
    """Complete rule set for one game.

    Attributes:
        costs: Prices of settlements, armies and territory.
        combat_variant: Which combat formula to use.
        combat_factor_range: Bounds of the random strength multiplier
            (aggregate-roll combat only).
        unit_health: Starting health of each unit (per-unit combat only).
        unit_damage: Damage dealt per hit (per-unit combat only).
        dice_count: Dice rolled during resource collection (1 or 2).
        starting_resources: Wallet every player starts with.
        forbid_adjacent_start: Whether a starting tile may touch another
            player's starting tile.
        min_players: Fewest players a game accepts.
        max_players: Most players a game accepts.
    """

    costs: CostTable = field(default_factory=CostTable)
    combat_variant: CombatVariant = CombatVariant.AGGREGATE_ROLL
    combat_factor_range: tuple[float, float] = (0.5, 1.5)
    unit_health: int = 100
    unit_damage: int = 50
    dice_count: int = 2
    starting_resources: Mapping[Resource, int] = field(
        default_factory=lambda: make_cost(wood=5, stone=5, food=5)
    )
    forbid_adjacent_start: bool = True
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS

    def validate(self) -> None:
        """Check the rule set for consistency.

        Raises:
            ConfigurationError: Describing the first problem found.
        """
        for name, cost in self.costs.items():
            if any(amount < 0 for amount in cost.values()):
                raise ConfigurationError(f"{name} has a negative amount: {_cost_to_dict(cost)}")
        if any(amount < 0 for amount in self.starting_resources.values()):
            raise ConfigurationError("Starting resources must be non-negative")
        if self.dice_count not in (1, 2):
            raise ConfigurationError(f"dice_count must be 1 or 2, got {self.dice_count}")
        low, high = self.combat_factor_range
        if not 0 <= low <= high:
            raise ConfigurationError(
                f"combat_factor_range must satisfy 0 <= low <= high, got {self.combat_factor_range}"
            )
        if self.unit_health <= 0 or self.unit_damage <= 0:
            raise ConfigurationError("unit_health and unit_damage must be positive")
        if not MIN_PLAYERS <= self.min_players <= self.max_players:
            raise ConfigurationError(
                f"Player limits must satisfy {MIN_PLAYERS} <= min <= max, "
                f"got {self.min_players}..{self.max_players}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RuleConfig:
        """Build a rule set from plain data, filling gaps with defaults.

        Raises:
            ConfigurationError: If a key is unknown or a value malformed.
        """
        data = dict(data)
        kwargs: dict[str, Any] = {}
        try:
            if "costs" in data:
                kwargs["costs"] = CostTable.from_dict(data.pop("costs"))
            if "combat_variant" in data:
                kwargs["combat_variant"] = CombatVariant(data.pop("combat_variant"))
            if "combat_factor_range" in data:
                low, high = data.pop("combat_factor_range")
                kwargs["combat_factor_range"] = (float(low), float(high))
            if "starting_resources" in data:
                kwargs["starting_resources"] = _cost_from_dict(
                    data.pop("starting_resources"), "starting_resources"
                )
            for key in ("unit_health", "unit_damage", "dice_count", "min_players", "max_players"):
                if key in data:
                    kwargs[key] = int(data.pop(key))
            if "forbid_adjacent_start" in data:
                kwargs["forbid_adjacent_start"] = bool(data.pop("forbid_adjacent_start"))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed rule configuration: {e}")

        if data:
            raise ConfigurationError(f"Unknown rule options: {sorted(data)}")

        config = cls(**kwargs)
        config.validate()
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "costs": self.costs.to_dict(),
            "combat_variant": self.combat_variant.value,
            "combat_factor_range": list(self.combat_factor_range),
            "unit_health": self.unit_health,
            "unit_damage": self.unit_damage,
            "dice_count": self.dice_count,
            "starting_resources": _cost_to_dict(self.starting_resources),
            "forbid_adjacent_start": self.forbid_adjacent_start,
            "min_players": self.min_players,
            "max_players": self.max_players,
        }


# Settlement 5/5, army 10 food, territory 3/2, two dice, aggregate combat
CLASSIC_RULES = RuleConfig()

# Lighter-weight rules: cheaper units, one die, per-unit combat
SKIRMISH_RULES = RuleConfig(
    costs=CostTable(
        settlement_cost=make_cost(wood=2, stone=1),
        army_cost=make_cost(food=2, wood=1),
        territory_cost=make_cost(stone=2),
    ),
    combat_variant=CombatVariant.PER_UNIT,
    dice_count=1,
    forbid_adjacent_start=False,
)

RULE_PRESETS: dict[str, RuleConfig] = {
    "classic": CLASSIC_RULES,
    "skirmish": SKIRMISH_RULES,
}

"""Combat resolution for the Hex Realm game engine.

Two formulas are supported, selected by RuleConfig.combat_variant:

Aggregate roll (default):
    Each side's strength is its army count times a uniform random factor.
    If the attacker is strictly stronger it takes the tile: the defender
    tile gets floor(a/2) armies and the origin keeps ceil(a/2). Otherwise
    the attacker falls back to ceil(a/2) and the defender keeps
    floor(d * 0.75). Armies are never created, only lost.

Per unit:
    Every unit starts with full health. Each attacking unit hits a random
    defending unit and vice versa; all hits land before casualties are
    removed. If no defenders survive, the attacker takes the tile: one
    survivor stays on the origin if more than one remains, otherwise the
    survivors all advance and the origin is abandoned.

Resolvers only compute outcomes; GameEngine applies them to the board.
"""

from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from core.config import RuleConfig
from core.constants import CombatVariant, DEFENDER_RETENTION

logger = logging.getLogger(__name__)


@dataclass
class CombatResult:
    """Outcome of one attack.

    Attributes:
        attacker_won: Whether the attacker captured the defending tile.
        attacker_before: Attacking army count before combat.
        defender_before: Defending army count before combat.
        origin_armies: Armies left on the attacking tile afterwards.
        target_armies: Armies on the defending tile afterwards.
        attack_strength: Aggregate-roll strength (None for per-unit combat).
        defense_strength: Aggregate-roll strength (None for per-unit combat).
    """

    attacker_won: bool
    attacker_before: int
    defender_before: int
    origin_armies: int
    target_armies: int
    attack_strength: Optional[float] = None
    defense_strength: Optional[float] = None

    @property
    def armies_lost(self) -> int:
        """Total units removed from the board by this fight."""
        return (self.attacker_before + self.defender_before) - (
            self.origin_armies + self.target_armies
        )

    def summary(self) -> str:
        """Return a one-line description of the outcome."""
        verdict = "Attack succeeded" if self.attacker_won else "Attack repelled"
        return (
            f"{verdict}: {self.attacker_before} vs {self.defender_before} -> "
            f"origin {self.origin_armies}, target {self.target_armies}"
        )


class CombatResolver(ABC):
    """Computes the outcome of an attack from two army counts."""

    def __init__(self, rng: random.Random):
        self.rng = rng

    @abstractmethod
    def resolve(self, attackers: int, defenders: int) -> CombatResult:
        """Resolve an attack.

        Args:
            attackers: Army count on the attacking tile (>= 1).
            defenders: Army count on the defending tile (>= 0).

        Returns:
            The computed CombatResult.
        """
        pass


class AggregateRollResolver(CombatResolver):
    """Strength = armies x random factor; stronger side wins, ties defend."""

    def __init__(self, rng: random.Random, factor_range: tuple[float, float] = (0.5, 1.5)):
        super().__init__(rng)
        self.factor_range = factor_range

    def _strength(self, armies: int) -> float:
        low, high = self.factor_range
        return armies * self.rng.uniform(low, high)

    def resolve(self, attackers: int, defenders: int) -> CombatResult:
        attack_strength = self._strength(attackers)
        defense_strength = self._strength(defenders)

        if attack_strength > defense_strength:
            result = CombatResult(
                attacker_won=True,
                attacker_before=attackers,
                defender_before=defenders,
                origin_armies=math.ceil(attackers / 2),
                target_armies=attackers // 2,
                attack_strength=attack_strength,
                defense_strength=defense_strength,
            )
        else:
            result = CombatResult(
                attacker_won=False,
                attacker_before=attackers,
                defender_before=defenders,
                origin_armies=math.ceil(attackers / 2),
                target_armies=math.floor(defenders * DEFENDER_RETENTION),
                attack_strength=attack_strength,
                defense_strength=defense_strength,
            )
        logger.debug(
            "Aggregate combat %.2f vs %.2f: %s",
            attack_strength,
            defense_strength,
            result.summary(),
        )
        return result


class PerUnitResolver(CombatResolver):
    """Simultaneous unit-by-unit exchange of fixed damage hits."""

    def __init__(self, rng: random.Random, unit_health: int = 100, unit_damage: int = 50):
        super().__init__(rng)
        self.unit_health = unit_health
        self.unit_damage = unit_damage

    def _exchange(self, attackers: int, defenders: int) -> tuple[int, int]:
        """Run one round of hits and return the survivors on each side."""
        attacker_health = [self.unit_health] * attackers
        defender_health = [self.unit_health] * defenders

        # Targets are picked from the pre-combat lineups so hits are simultaneous
        if defenders:
            for _ in range(attackers):
                defender_health[self.rng.randrange(defenders)] -= self.unit_damage
        if attackers:
            for _ in range(defenders):
                attacker_health[self.rng.randrange(attackers)] -= self.unit_damage

        surviving_attackers = sum(1 for h in attacker_health if h > 0)
        surviving_defenders = sum(1 for h in defender_health if h > 0)
        return surviving_attackers, surviving_defenders

    def resolve(self, attackers: int, defenders: int) -> CombatResult:
        surviving_attackers, surviving_defenders = self._exchange(attackers, defenders)

        if surviving_defenders == 0:
            if surviving_attackers > 1:
                origin, target = 1, surviving_attackers - 1
            else:
                origin, target = 0, surviving_attackers
            result = CombatResult(
                attacker_won=True,
                attacker_before=attackers,
                defender_before=defenders,
                origin_armies=origin,
                target_armies=target,
            )
        else:
            result = CombatResult(
                attacker_won=False,
                attacker_before=attackers,
                defender_before=defenders,
                origin_armies=surviving_attackers,
                target_armies=surviving_defenders,
            )
        logger.debug("Per-unit combat: %s", result.summary())
        return result


def create_resolver(rules: RuleConfig, rng: random.Random) -> CombatResolver:
    """Build the combat resolver selected by the rule set."""
    if rules.combat_variant == CombatVariant.PER_UNIT:
        return PerUnitResolver(rng, rules.unit_health, rules.unit_damage)
    return AggregateRollResolver(rng, rules.combat_factor_range)

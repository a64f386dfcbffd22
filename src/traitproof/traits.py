"""Deterministic trait derivation from VRF output.

For the category at position i:

    seed_i = SHA256(beta || i)            i as 4-byte big-endian
    value  = pool[int(seed_i) mod len(pool)]   full 256-bit big-endian digest
    roll   = seed_i[0] mod 100
    tier   = first tier whose cumulative weight exceeds roll

Traits are a pure function of (beta, categories). Re-deriving with the same
inputs reproduces them bit for bit, which is what lets a verifier detect a
tampered trait.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .defaults import DEFAULT_TIER_WEIGHTS
from .encoding import require, require_int
from .exceptions import MalformedBundleError, TraitMismatchError

ROLL_RANGE = 100


class RarityTier(StrEnum):
    """Rarity tiers, lowest to highest."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


# =============================================================================
# RARITY TABLE
# =============================================================================


@dataclass(frozen=True)
class RarityTable:
    """Tier weights in percent; cumulative order is common, rare, epic, legendary.

    The default table gives common 0-59, rare 60-84, epic 85-94, legendary 95-99.
    """

    common: int = DEFAULT_TIER_WEIGHTS["common"]
    rare: int = DEFAULT_TIER_WEIGHTS["rare"]
    epic: int = DEFAULT_TIER_WEIGHTS["epic"]
    legendary: int = DEFAULT_TIER_WEIGHTS["legendary"]

    def __post_init__(self) -> None:
        weights = self.weights()
        if any(w <= 0 for _, w in weights):
            raise ValueError("tier weights must be positive")
        if sum(w for _, w in weights) != ROLL_RANGE:
            raise ValueError(f"tier weights must sum to {ROLL_RANGE}")

    def weights(self) -> list[tuple[RarityTier, int]]:
        return [
            (RarityTier.COMMON, self.common),
            (RarityTier.RARE, self.rare),
            (RarityTier.EPIC, self.epic),
            (RarityTier.LEGENDARY, self.legendary),
        ]

    def thresholds(self) -> list[tuple[RarityTier, int, int]]:
        """Inclusive (tier, low, high) roll ranges."""
        result = []
        low = 0
        for tier, weight in self.weights():
            result.append((tier, low, low + weight - 1))
            low += weight
        return result

    def tier_for_roll(self, roll: int) -> tuple[RarityTier, int]:
        """Return the tier for a roll in [0, 99] and that tier's weight."""
        if not 0 <= roll < ROLL_RANGE:
            raise ValueError(f"roll must be in [0, {ROLL_RANGE - 1}]")
        for tier, low, high in self.thresholds():
            if low <= roll <= high:
                return tier, high - low + 1
        raise AssertionError("thresholds cover the full roll range")

    def to_dict(self) -> dict[str, int]:
        return {tier.value: weight for tier, weight in self.weights()}

    @classmethod
    def from_dict(cls, data: Mapping[str, int]) -> RarityTable:
        return cls(**{tier.value: int(data[tier.value]) for tier in RarityTier})


# =============================================================================
# CATEGORIES AND TRAITS
# =============================================================================


@dataclass(frozen=True)
class TraitCategory:
    """A named trait pool, fixed before generation and referenced by index."""

    name: str
    values: tuple[str, ...]
    rarity: RarityTable = field(default_factory=RarityTable)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("trait category needs a name")
        object.__setattr__(self, "values", tuple(self.values))
        if not self.values:
            raise ValueError(f"trait category {self.name!r} has an empty pool")

    @property
    def pool_size(self) -> int:
        return len(self.values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "values": list(self.values),
            "rarity": self.rarity.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraitCategory:
        rarity = data.get("rarity")
        return cls(
            name=data["name"],
            values=tuple(str(v) for v in data["values"]),
            rarity=RarityTable.from_dict(rarity) if rarity else RarityTable(),
        )


@dataclass(frozen=True)
class Trait:
    """A derived trait. Only meaningful next to the beta that produced it."""

    value: str
    tier: RarityTier
    rarity_pct: int
    roll: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "tier": self.tier.value,
            "rarity_pct": self.rarity_pct,
            "roll": self.roll,
        }

    @classmethod
    def from_dict(cls, data: Any, prefix: str = "") -> Trait:
        tier = require(data, "tier", str, prefix)
        try:
            tier_enum = RarityTier(tier)
        except ValueError as e:
            raise MalformedBundleError(f"field {prefix}tier has unknown value {tier!r}") from e
        roll = require_int(data, "roll", prefix, minimum=0)
        if roll >= ROLL_RANGE:
            raise MalformedBundleError(f"field {prefix}roll must be < {ROLL_RANGE}")
        return cls(
            value=require(data, "value", str, prefix),
            tier=tier_enum,
            rarity_pct=require_int(data, "rarity_pct", prefix, minimum=0),
            roll=roll,
        )


# =============================================================================
# DERIVATION
# =============================================================================


def derive_seed(beta: bytes, index: int) -> bytes:
    """SHA256(beta || index) with the index as 4-byte big-endian."""
    return hashlib.sha256(beta + index.to_bytes(4, "big")).digest()


def pool_index(seed: bytes, pool_size: int) -> int:
    """Index into a pool using the whole digest as a big-endian integer."""
    return int.from_bytes(seed, "big") % pool_size


def derive_trait(beta: bytes, index: int, category: TraitCategory) -> Trait:
    seed = derive_seed(beta, index)
    roll = seed[0] % ROLL_RANGE
    tier, rarity_pct = category.rarity.tier_for_roll(roll)
    return Trait(
        value=category.values[pool_index(seed, category.pool_size)],
        tier=tier,
        rarity_pct=rarity_pct,
        roll=roll,
    )


def derive_traits(beta: bytes, categories: Sequence[TraitCategory]) -> dict[str, Trait]:
    """Derive one trait per category, keyed by category name, in category order."""
    names = [c.name for c in categories]
    if len(set(names)) != len(names):
        raise ValueError("trait category names must be unique")
    return {category.name: derive_trait(beta, i, category) for i, category in enumerate(categories)}


def find_trait_mismatch(claimed: Mapping[str, Trait], derived: Mapping[str, Trait]) -> str | None:
    """Name of the first category where claimed and derived traits differ.

    Categories missing from either side count as mismatches.
    """
    for name, trait in derived.items():
        if claimed.get(name) != trait:
            return name
    for name in claimed:
        if name not in derived:
            return name
    return None


def verify_traits(beta: bytes, claimed: Mapping[str, Trait], categories: Sequence[TraitCategory]) -> None:
    """Re-derive traits and raise TraitMismatchError on any difference."""
    mismatch = find_trait_mismatch(claimed, derive_traits(beta, categories))
    if mismatch is not None:
        raise TraitMismatchError(mismatch)


__all__ = [
    "RarityTable",
    "RarityTier",
    "Trait",
    "TraitCategory",
    "derive_seed",
    "derive_trait",
    "derive_traits",
    "find_trait_mismatch",
    "pool_index",
    "verify_traits",
]

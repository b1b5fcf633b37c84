"""
Canonical Type Definitions
===========================

Single source of truth for shared types used across the codebase.
All modules should import shared enums and base types from here.

This module defines:
- Tier: Provider capability/cost tiers used for cascade ordering
- TIER_FALLBACK_ORDER: Static preference table, one ordering per tier
- FREE_TIERS: Tiers whose roles must not spill onto paid providers
- RoleId: Logical persona identifier
"""

from enum import StrEnum

__all__ = [
    "DEFAULT_TIER",
    "FREE_TIERS",
    "TIER_FALLBACK_ORDER",
    "RoleId",
    "Tier",
]

RoleId = str


class Tier(StrEnum):
    """Provider capability tiers, cheapest first.

    Declaration order is the capability order: comparisons go through
    ``Tier.rank`` rather than string ordering.
    """

    PEON = "peon"          # Fast, free, small models
    INTERN = "intern"      # Free but stronger
    STAFF = "staff"        # Balanced default
    MANAGER = "manager"    # Strong, usually metered
    MASTER = "master"      # Most capable, most expensive

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {tier: index for index, tier in enumerate(Tier)}

# Roles that do not declare a tier land in the middle of the range.
DEFAULT_TIER = Tier.STAFF

FREE_TIERS: frozenset[Tier] = frozenset({Tier.PEON, Tier.INTERN})

# Most preferred first. Every row lists every tier exactly once.
TIER_FALLBACK_ORDER: dict[Tier, tuple[Tier, ...]] = {
    Tier.PEON: (Tier.PEON, Tier.INTERN, Tier.STAFF, Tier.MANAGER, Tier.MASTER),
    Tier.INTERN: (Tier.INTERN, Tier.PEON, Tier.STAFF, Tier.MANAGER, Tier.MASTER),
    Tier.STAFF: (Tier.STAFF, Tier.MANAGER, Tier.INTERN, Tier.MASTER, Tier.PEON),
    Tier.MANAGER: (Tier.MANAGER, Tier.MASTER, Tier.STAFF, Tier.INTERN, Tier.PEON),
    Tier.MASTER: (Tier.MASTER, Tier.MANAGER, Tier.STAFF, Tier.INTERN, Tier.PEON),
}

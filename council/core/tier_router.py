"""
Tier Router for provider cascades.

Maps a role to its preferred tier and turns the registry into an ordered
candidate list: the preferred tier first, then the static fallback order,
registry order within each tier. Free-tier roles never spill onto paid
providers unless the role is premium-exempt.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..infra.telemetry import get_logger
from ..providers.base import Provider
from .exceptions import NoEligibleProviderError
from .types import DEFAULT_TIER, FREE_TIERS, TIER_FALLBACK_ORDER, RoleId, Tier

logger = get_logger(__name__)

# Role → preferred tier for the built-in personas.
DEFAULT_ROLE_TIERS: dict[RoleId, Tier] = {
    "ADMIN": Tier.MASTER,
    "AUDITOR": Tier.MANAGER,
    "TREASURY": Tier.MANAGER,
    "SALES": Tier.STAFF,
    "INVENTORY": Tier.STAFF,
    "PRODUCTION": Tier.STAFF,
    "PURCHASING": Tier.STAFF,
    "MARKET": Tier.STAFF,
    "COLLECTIONS": Tier.STAFF,
    "MARKETING": Tier.INTERN,
    "SATISFACTION": Tier.INTERN,
    "REPORTS": Tier.INTERN,
    "SALES_BOT": Tier.INTERN,
    "WHATSAPP_BOT": Tier.PEON,
    "SCHEDULE": Tier.PEON,
    "TEMPERATURE": Tier.PEON,
    "CHECKER": Tier.PEON,
}

# Customer-facing bot may fall back to paid providers.
DEFAULT_PREMIUM_EXEMPT_ROLES: frozenset[RoleId] = frozenset({"SALES_BOT"})


@dataclass(frozen=True)
class RoutingDecision:
    """Outcome of candidate selection for one request."""

    role: RoleId | None
    preferred_tier: Tier
    candidates: tuple[Provider, ...]
    paid_excluded: bool = False


class TierRouter:
    """
    Orders providers for a role.

    Strategy:
    1. Resolve preferred tier (explicit override, role map, default)
    2. Drop paid providers for free-tier roles without premium exemption
    3. Walk TIER_FALLBACK_ORDER, keeping registry order within a tier
    4. Fail fast when nothing is left

    The router holds an immutable snapshot of the registry and is safe to
    share between concurrent runs.
    """

    def __init__(
        self,
        providers: Iterable[Provider],
        role_tiers: Mapping[RoleId, Tier] | None = None,
        premium_exempt_roles: Iterable[RoleId] | None = None,
    ):
        self._providers: tuple[Provider, ...] = tuple(providers)
        self._role_tiers: dict[RoleId, Tier] = {**DEFAULT_ROLE_TIERS, **(role_tiers or {})}
        self._premium_exempt = frozenset(
            DEFAULT_PREMIUM_EXEMPT_ROLES
            if premium_exempt_roles is None
            else premium_exempt_roles
        )
        self._by_tier: dict[Tier, list[Provider]] = {tier: [] for tier in Tier}
        for provider in self._providers:
            self._by_tier[provider.tier].append(provider)

        logger.info(
            "tier_router_initialized",
            providers=len(self._providers),
            tiers=",".join(t.value for t in Tier if self._by_tier[t]) or "-",
        )

    @property
    def providers(self) -> tuple[Provider, ...]:
        return self._providers

    def resolve_tier(self, role: RoleId | None) -> Tier:
        """Preferred tier for a role; unmapped roles get DEFAULT_TIER."""
        if role is None:
            return DEFAULT_TIER
        return self._role_tiers.get(role, DEFAULT_TIER)

    def is_premium_exempt(self, role: RoleId | None) -> bool:
        return role is not None and role in self._premium_exempt

    def route(self, role: RoleId | None, tier: Tier | None = None) -> RoutingDecision:
        """
        Build the ordered candidate list.

        Args:
            role: Logical role id (None for anonymous requests)
            tier: Force a preferred tier instead of the role map

        Returns:
            RoutingDecision with at least one candidate

        Raises:
            NoEligibleProviderError: if no provider survives filtering
        """
        preferred = tier or self.resolve_tier(role)
        exclude_paid = preferred in FREE_TIERS and not self.is_premium_exempt(role)

        candidates: list[Provider] = []
        for fallback_tier in TIER_FALLBACK_ORDER[preferred]:
            for provider in self._by_tier[fallback_tier]:
                if exclude_paid and provider.paid:
                    continue
                candidates.append(provider)

        if not candidates:
            raise NoEligibleProviderError(role, preferred.value)

        logger.debug(
            "route_decision",
            role=role or "-",
            tier=preferred.value,
            candidates=",".join(p.name for p in candidates),
            paid_excluded=exclude_paid,
        )
        return RoutingDecision(
            role=role,
            preferred_tier=preferred,
            candidates=tuple(candidates),
            paid_excluded=exclude_paid,
        )

    def candidates(self, role: RoleId | None, tier: Tier | None = None) -> Sequence[Provider]:
        """Shorthand for ``route(...).candidates``."""
        return self.route(role, tier).candidates

"""
Tier Routing Unit Tests
=======================

Fallback table, role resolution, paid-provider filtering and candidate order.
"""

import pytest

from council.core.exceptions import NoEligibleProviderError
from council.core.tier_router import DEFAULT_PREMIUM_EXEMPT_ROLES, TierRouter
from council.core.types import DEFAULT_TIER, FREE_TIERS, TIER_FALLBACK_ORDER, Tier
from council.providers.base import Provider


async def _never(prompt: str) -> str:
    raise AssertionError("routing must not invoke providers")


def _p(name: str, tier: Tier, paid: bool = False) -> Provider:
    return Provider(name=name, tier=tier, invoke=_never, paid=paid)


class TestTierTable:

    def test_every_row_is_a_permutation_of_all_tiers(self):
        for tier, row in TIER_FALLBACK_ORDER.items():
            assert row[0] == tier
            assert len(row) == len(Tier)
            assert set(row) == set(Tier)

    def test_rank_follows_declaration_order(self):
        ranks = [t.rank for t in (Tier.PEON, Tier.INTERN, Tier.STAFF, Tier.MANAGER, Tier.MASTER)]
        assert ranks == sorted(ranks)
        assert Tier.MASTER.rank > Tier.STAFF.rank

    def test_free_tiers(self):
        assert FREE_TIERS == {Tier.PEON, Tier.INTERN}
        assert DEFAULT_TIER == Tier.STAFF


class TestRoleResolution:

    def setup_method(self):
        self.router = TierRouter([_p("s", Tier.STAFF)])

    def test_known_roles(self):
        assert self.router.resolve_tier("ADMIN") == Tier.MASTER
        assert self.router.resolve_tier("TREASURY") == Tier.MANAGER
        assert self.router.resolve_tier("WHATSAPP_BOT") == Tier.PEON

    def test_unknown_and_missing_role_use_default(self):
        assert self.router.resolve_tier("JANITOR") == Tier.STAFF
        assert self.router.resolve_tier(None) == Tier.STAFF

    def test_role_map_override(self):
        router = TierRouter([_p("s", Tier.STAFF)], role_tiers={"JANITOR": Tier.PEON})
        assert router.resolve_tier("JANITOR") == Tier.PEON
        assert router.resolve_tier("ADMIN") == Tier.MASTER


class TestCandidateOrdering:

    def test_staff_role_walks_fallback_order(self):
        router = TierRouter([
            _p("peon-1", Tier.PEON),
            _p("staff-1", Tier.STAFF),
            _p("manager-1", Tier.MANAGER),
            _p("staff-2", Tier.STAFF),
            _p("intern-1", Tier.INTERN),
            _p("master-1", Tier.MASTER),
        ])
        names = [p.name for p in router.candidates("SALES")]
        assert names == ["staff-1", "staff-2", "manager-1", "intern-1", "master-1", "peon-1"]

    def test_tier_override_bypasses_role_map(self):
        router = TierRouter([_p("staff-1", Tier.STAFF), _p("master-1", Tier.MASTER)])
        decision = router.route("SALES", Tier.MASTER)
        assert decision.preferred_tier == Tier.MASTER
        assert [p.name for p in decision.candidates] == ["master-1", "staff-1"]

    def test_every_provider_appears_once(self):
        providers = [_p(f"p{i}", tier) for i, tier in enumerate(Tier)]
        router = TierRouter(providers)
        for tier in Tier:
            names = [p.name for p in router.candidates(None, tier)]
            assert sorted(names) == sorted(p.name for p in providers)


class TestPaidFiltering:

    def setup_method(self):
        self.router = TierRouter([
            _p("peon-free", Tier.PEON),
            _p("intern-paid", Tier.INTERN, paid=True),
            _p("staff-free", Tier.STAFF),
            _p("master-paid", Tier.MASTER, paid=True),
        ])

    def test_free_role_never_sees_paid_providers(self):
        decision = self.router.route("WHATSAPP_BOT")
        assert decision.paid_excluded is True
        assert [p.name for p in decision.candidates] == ["peon-free", "staff-free"]

    def test_premium_exempt_role_keeps_paid_providers(self):
        assert "SALES_BOT" in DEFAULT_PREMIUM_EXEMPT_ROLES
        decision = self.router.route("SALES_BOT")
        assert decision.paid_excluded is False
        assert [p.name for p in decision.candidates] == [
            "intern-paid", "peon-free", "staff-free", "master-paid",
        ]

    def test_non_free_role_keeps_paid_providers(self):
        names = [p.name for p in self.router.candidates("ADMIN")]
        assert names == ["master-paid", "staff-free", "intern-paid", "peon-free"]

    def test_exemptions_can_be_cleared(self):
        router = TierRouter(self.router.providers, premium_exempt_roles=frozenset())
        assert router.route("SALES_BOT").paid_excluded is True

    def test_free_role_with_only_paid_providers_fails_fast(self):
        router = TierRouter([_p("master-paid", Tier.MASTER, paid=True)])
        with pytest.raises(NoEligibleProviderError) as exc_info:
            router.route("CHECKER")
        assert exc_info.value.status_code == 503
        assert exc_info.value.tier == "peon"

    def test_empty_registry_fails_fast(self):
        with pytest.raises(NoEligibleProviderError):
            TierRouter([]).route("ADMIN")

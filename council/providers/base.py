"""
Provider model.

A provider is a name, a tier, a paid flag and an async ``invoke`` capability
turning a prompt into response text (or raising). Providers are frozen once a
session builds them.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..core.types import Tier

InvokeFn = Callable[[str], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class Provider:
    """One invocable inference endpoint."""

    name: str
    tier: Tier
    invoke: InvokeFn = field(repr=False, compare=False)
    paid: bool = False
    model: str | None = None

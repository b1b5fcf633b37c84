"""
Provider Registry
=================

Builds the session's provider list from a ``Settings`` value.

The catalog below is static: each entry names a vendor credential slot, a
tier, whether the endpoint is metered, and which transport speaks to it.
``build_providers`` keeps catalog order, which is also the order providers of
the same tier are tried in. Entries whose credential slot is empty are skipped
without error.
"""

from dataclasses import dataclass

import httpx

from ..core.config import Settings
from ..core.types import Tier
from ..infra.telemetry import get_logger
from .base import Provider
from .transports import AnthropicTransport, GeminiTransport, OpenAICompatibleTransport

logger = get_logger(__name__)

__all__ = ["PROVIDER_CATALOG", "ProviderSpec", "build_providers"]

_TRANSPORTS = {
    "openai_compatible": OpenAICompatibleTransport,
    "gemini": GeminiTransport,
    "anthropic": AnthropicTransport,
}

GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """Static description of one catalog entry."""

    name: str
    tier: Tier
    credential: str
    transport: str
    url: str
    model: str
    paid: bool = False


PROVIDER_CATALOG: tuple[ProviderSpec, ...] = (
    # ── PEON: small free models ──
    ProviderSpec(
        name="groq-llama-8b",
        tier=Tier.PEON,
        credential="groq",
        transport="openai_compatible",
        url="https://api.groq.com/openai/v1/chat/completions",
        model="llama-3.1-8b-instant",
    ),
    ProviderSpec(
        name="cerebras-llama-8b",
        tier=Tier.PEON,
        credential="cerebras",
        transport="openai_compatible",
        url="https://api.cerebras.ai/v1/chat/completions",
        model="llama3.1-8b",
    ),
    # ── INTERN: larger free models ──
    ProviderSpec(
        name="gemini-flash",
        tier=Tier.INTERN,
        credential="gemini",
        transport="gemini",
        url=GEMINI_URL_TEMPLATE,
        model="gemini-2.0-flash",
    ),
    ProviderSpec(
        name="groq-llama-70b",
        tier=Tier.INTERN,
        credential="groq",
        transport="openai_compatible",
        url="https://api.groq.com/openai/v1/chat/completions",
        model="llama-3.3-70b-versatile",
    ),
    ProviderSpec(
        name="cerebras-llama-70b",
        tier=Tier.INTERN,
        credential="cerebras",
        transport="openai_compatible",
        url="https://api.cerebras.ai/v1/chat/completions",
        model="llama-3.3-70b",
    ),
    # ── STAFF ──
    ProviderSpec(
        name="gemini-2.5-flash",
        tier=Tier.STAFF,
        credential="gemini",
        transport="gemini",
        url=GEMINI_URL_TEMPLATE,
        model="gemini-2.5-flash",
    ),
    ProviderSpec(
        name="deepseek-chat",
        tier=Tier.STAFF,
        credential="deepseek",
        transport="openai_compatible",
        url="https://api.deepseek.com/chat/completions",
        model="deepseek-chat",
        paid=True,
    ),
    ProviderSpec(
        name="openrouter-llama-70b",
        tier=Tier.STAFF,
        credential="openrouter",
        transport="openai_compatible",
        url="https://openrouter.ai/api/v1/chat/completions",
        model="meta-llama/llama-3.3-70b-instruct",
        paid=True,
    ),
    # ── MANAGER ──
    ProviderSpec(
        name="gemini-pro",
        tier=Tier.MANAGER,
        credential="gemini",
        transport="gemini",
        url=GEMINI_URL_TEMPLATE,
        model="gemini-2.5-pro",
        paid=True,
    ),
    ProviderSpec(
        name="openai-gpt-4o-mini",
        tier=Tier.MANAGER,
        credential="openai",
        transport="openai_compatible",
        url="https://api.openai.com/v1/chat/completions",
        model="gpt-4o-mini",
        paid=True,
    ),
    # ── MASTER ──
    ProviderSpec(
        name="anthropic-claude",
        tier=Tier.MASTER,
        credential="anthropic",
        transport="anthropic",
        url="https://api.anthropic.com/v1/messages",
        model="claude-sonnet-4-20250514",
        paid=True,
    ),
    ProviderSpec(
        name="openai-gpt-4o",
        tier=Tier.MASTER,
        credential="openai",
        transport="openai_compatible",
        url="https://api.openai.com/v1/chat/completions",
        model="gpt-4o",
        paid=True,
    ),
)


def build_providers(
    settings: Settings,
    *,
    catalog: tuple[ProviderSpec, ...] = PROVIDER_CATALOG,
    client: httpx.AsyncClient | None = None,
) -> list[Provider]:
    """
    Build every provider whose credential is present.

    Args:
        settings: Session settings; only ``credentials`` and
            ``HTTP_MAX_TOKENS`` are read.
        catalog: Provider catalog (override for tests or custom deployments).
        client: Shared HTTP client; a short-lived client per call when None.

    Returns:
        Providers in catalog order.
    """
    providers: list[Provider] = []
    for spec in catalog:
        api_key = settings.credentials.get(spec.credential)
        if not api_key:
            continue
        transport_cls = _TRANSPORTS[spec.transport]
        transport = transport_cls(
            name=spec.name,
            url=spec.url,
            api_key=api_key,
            model=spec.model,
            max_tokens=settings.HTTP_MAX_TOKENS,
            timeout_s=settings.ATTEMPT_TIMEOUT_S,
            client=client,
        )
        providers.append(
            Provider(
                name=spec.name,
                tier=spec.tier,
                invoke=transport,
                paid=spec.paid,
                model=spec.model,
            )
        )

    logger.info(
        "providers_built",
        count=len(providers),
        credentials=",".join(settings.credentials.configured()) or "-",
    )
    return providers

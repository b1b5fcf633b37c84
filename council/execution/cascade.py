"""
Cascade Executor
================

Given a role and a prompt, tries candidate providers in order until one
returns non-empty text.

Per request:
  1. Result cache lookup (hit returns immediately, label suffixed)
  2. Candidate list from the TierRouter (fails fast when empty)
  3. Per provider, a bounded attempt loop:
       - each attempt wrapped in ``asyncio.wait_for`` (default 18s)
       - timeouts, 429 and 5xx are retried on the same provider after
         ``initial_delay * base**attempt`` seconds (1s, 2s)
       - any other error abandons the provider after one attempt
  4. First success is cached and labelled; a tier different from the
     preferred one is disclosed in the label
  5. Exhaustion raises CascadeExhaustedError with one "provider: reason"
     line per abandoned provider

Attempts are strictly sequential; no two providers are called concurrently
for the same request. ``sleep`` and ``clock`` are injectable so backoff can
be observed in tests without waiting.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

import httpx

from ..core.config import Settings
from ..core.exceptions import (
    DEFAULT_RETRY_CONFIG,
    CascadeExhaustedError,
    EmptyResponseError,
    NoEligibleProviderError,
    ProviderError,
    ProviderTimeoutError,
    RetryConfig,
)
from ..core.tier_router import TierRouter
from ..core.types import RoleId, Tier
from ..infra.cache import NullCache, ResponseCache, ResultCache
from ..infra.telemetry import MetricsCollector, get_logger, get_metrics
from ..providers.base import Provider
from ..providers.registry import build_providers

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class CascadeResponse:
    """Successful cascade outcome."""

    text: str
    provider: str                # label shown to callers
    tier: Tier | None = None     # tier that served the request; None on cache hit
    from_cache: bool = False
    attempts: int = 0


def label_for(provider: Provider, preferred: Tier) -> str:
    """Provider label, annotated when the serving tier differs from the preferred one."""
    if provider.tier == preferred:
        return provider.name
    direction = "upgraded" if provider.tier.rank > preferred.rank else "downgraded"
    return f"{provider.name} ({direction} from {preferred.name})"


class CascadeExecutor:
    """
    Tier-ordered provider cascade with cache, timeout and retry/backoff.

    Args:
        router: Candidate ordering over the session's providers
        cache: Result cache (NullCache disables memoization)
        retry: Attempt budget and backoff schedule per provider
        attempt_timeout_s: Timeout applied to every single attempt
        error_summary_chars: Truncation for per-provider error lines
        sleep: Awaitable used for backoff waits
        clock: Monotonic clock used for attempt latency
    """

    def __init__(
        self,
        router: TierRouter,
        cache: ResponseCache | None = None,
        *,
        retry: RetryConfig = DEFAULT_RETRY_CONFIG,
        attempt_timeout_s: float = 18.0,
        error_summary_chars: int = 200,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollector | None = None,
    ):
        self._router = router
        self._cache: ResponseCache = cache if cache is not None else NullCache()
        self._retry = retry
        self._attempt_timeout = attempt_timeout_s
        self._summary_chars = error_summary_chars
        self._sleep = sleep
        self._clock = clock
        self._metrics = metrics or get_metrics()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        providers: Iterable[Provider] | None = None,
        cache: ResponseCache | None = None,
        client: httpx.AsyncClient | None = None,
        **kwargs,
    ) -> CascadeExecutor:
        """Wire registry, router and cache from a Settings value."""
        if providers is None:
            providers = build_providers(settings, client=client)
        router = TierRouter(
            providers,
            role_tiers=settings.ROLE_TIERS,
            premium_exempt_roles=settings.PREMIUM_EXEMPT_ROLES,
        )
        if cache is None:
            cache = ResultCache(
                ttl_s=settings.CACHE_TTL_S,
                prefix_chars=settings.CACHE_PREFIX_CHARS,
                max_entries=settings.CACHE_MAX_ENTRIES,
            )
        retry = RetryConfig(
            max_attempts=settings.MAX_ATTEMPTS,
            initial_delay=settings.BACKOFF_INITIAL_S,
        )
        return cls(
            router,
            cache,
            retry=retry,
            attempt_timeout_s=settings.ATTEMPT_TIMEOUT_S,
            error_summary_chars=settings.ERROR_SUMMARY_CHARS,
            **kwargs,
        )

    @property
    def router(self) -> TierRouter:
        return self._router

    # ── Public API ───────────────────────────────────────────────────

    async def invoke(
        self,
        role: RoleId | None,
        prompt: str,
        *,
        tier: Tier | None = None,
    ) -> CascadeResponse:
        """
        Run the cascade for one logical request.

        Args:
            role: Role id used for tier resolution and the cache key
            prompt: Opaque prompt text
            tier: Force the preferred tier (the role map is bypassed)

        Raises:
            NoEligibleProviderError: no provider survives candidate selection
            CascadeExhaustedError: every candidate failed
        """
        hit = self._cache.get(role, prompt)
        if hit is not None:
            self._metrics.record_cache_lookup("hit")
            self._metrics.record_cascade("cache_hit")
            logger.info("cascade_cache_hit", role=role or "-", provider=hit.provider)
            return CascadeResponse(text=hit.response, provider=hit.provider, from_cache=True)
        self._metrics.record_cache_lookup("miss")

        try:
            decision = self._router.route(role, tier)
        except NoEligibleProviderError:
            self._metrics.record_cascade("no_provider")
            logger.warning("cascade_no_eligible_provider", role=role or "-")
            raise

        errors: list[str] = []
        total_attempts = 0
        for provider in decision.candidates:
            text, error, attempts = await self._run_provider(provider, prompt)
            total_attempts += attempts
            if text is not None:
                label = label_for(provider, decision.preferred_tier)
                self._cache.put(role, prompt, text, label)
                self._metrics.record_cascade("served")
                logger.info(
                    "cascade_served",
                    role=role or "-",
                    provider=label,
                    preferred_tier=decision.preferred_tier.value,
                    attempts=total_attempts,
                )
                return CascadeResponse(
                    text=text,
                    provider=label,
                    tier=provider.tier,
                    attempts=total_attempts,
                )
            errors.append(self._summarize(provider, error))

        self._metrics.record_cascade("exhausted")
        logger.warning(
            "cascade_exhausted",
            role=role or "-",
            providers=len(decision.candidates),
            attempts=total_attempts,
        )
        raise CascadeExhaustedError(errors)

    # ── Internal ─────────────────────────────────────────────────────

    async def _run_provider(
        self, provider: Provider, prompt: str
    ) -> tuple[str | None, ProviderError | None, int]:
        """Bounded attempt loop against one provider.

        Returns (text, None, attempts) on success, (None, last_error, attempts)
        when the provider is abandoned.
        """
        last_error: ProviderError | None = None
        attempts = 0
        for attempt in range(self._retry.max_attempts):
            attempts += 1
            started = self._clock()
            outcome = await self._attempt(provider, prompt)
            latency = self._clock() - started

            if isinstance(outcome, str):
                self._metrics.record_attempt(
                    provider=provider.name,
                    tier=provider.tier.value,
                    outcome="success",
                    latency_s=latency,
                )
                return outcome, None, attempts

            error = outcome
            last_error = error
            self._metrics.record_attempt(
                provider=provider.name,
                tier=provider.tier.value,
                outcome="retryable" if error.retryable else "terminal",
                latency_s=latency,
            )

            if not error.retryable:
                logger.warning(
                    "provider_abandoned",
                    provider=provider.name,
                    attempt=attempt + 1,
                    reason=error.detail,
                )
                break

            if attempt + 1 < self._retry.max_attempts:
                delay = self._retry.delay_for(attempt)
                logger.warning(
                    "provider_retry",
                    provider=provider.name,
                    attempt=attempt + 1,
                    max_attempts=self._retry.max_attempts,
                    delay_s=delay,
                    reason=error.detail,
                )
                await self._sleep(delay)
            else:
                logger.warning(
                    "provider_retries_exhausted",
                    provider=provider.name,
                    attempts=attempts,
                    reason=error.detail,
                )

        return None, last_error, attempts

    async def _attempt(self, provider: Provider, prompt: str) -> str | ProviderError:
        """One timed call. Returns the text or the classified error."""
        try:
            text = await asyncio.wait_for(provider.invoke(prompt), timeout=self._attempt_timeout)
        except TimeoutError:
            return ProviderTimeoutError(provider.name, self._attempt_timeout)
        except ProviderError as exc:
            return exc
        except Exception as exc:  # unknown provider failures are terminal
            return ProviderError(
                detail=f"{type(exc).__name__}: {exc}",
                provider=provider.name,
                original_error=exc,
            )

        if not isinstance(text, str) or not text.strip():
            return EmptyResponseError(provider.name)
        return text

    def _summarize(self, provider: Provider, error: ProviderError | None) -> str:
        reason = error.detail if error is not None else "no response"
        return f"{provider.name}: {reason}"[: self._summary_chars]

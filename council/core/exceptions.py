"""Custom exception classes for Council.

Includes:
- Base exception carrying an HTTP-friendly status and error code
- Provider failures with retry classification
- Cascade-level failures (no eligible provider, all providers exhausted)
- Retry configuration and backoff schedule
"""

from dataclasses import dataclass
from datetime import UTC, datetime


class CouncilException(Exception):
    """Base exception for all Council errors."""

    def __init__(
        self, detail: str, status_code: int = 500, error_code: str = "INTERNAL_ERROR"
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_dict(self):
        """Convert exception to dictionary for API response."""
        return {
            "error": self.error_code,
            "detail": self.detail,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }


class NoEligibleProviderError(CouncilException):
    """Raised when a role resolves to an empty candidate list.

    This is a configuration problem (no credentials for any eligible
    provider), never retried and distinct from a provider-call failure.
    """

    def __init__(self, role: str | None, tier: str, detail: str | None = None):
        self.role = role
        self.tier = tier
        super().__init__(
            detail=detail
            or f"No eligible provider for role '{role or '-'}' (preferred tier: {tier})",
            status_code=503,
            error_code="NO_ELIGIBLE_PROVIDER",
        )


# =============================================================================
# PROVIDER EXCEPTIONS (with retry classification)
# =============================================================================


class ProviderError(CouncilException):
    """Base exception for a single failed provider attempt."""

    def __init__(
        self,
        detail: str,
        provider: str = "unknown",
        retryable: bool = False,
        original_error: Exception | None = None,
    ):
        super().__init__(
            detail=detail, status_code=502, error_code="PROVIDER_ERROR"
        )
        self.provider = provider
        self.retryable = retryable
        self.original_error = original_error

    def to_dict(self):
        base = super().to_dict()
        base.update({"provider": self.provider, "retryable": self.retryable})
        return base


class ProviderTimeoutError(ProviderError):
    """Provider attempt exceeded its timeout."""

    def __init__(self, provider: str, timeout_seconds: float):
        super().__init__(
            detail=f"timed out after {timeout_seconds:g}s",
            provider=provider,
            retryable=True,
        )
        self.timeout_seconds = timeout_seconds


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-success HTTP status.

    Rate limits (429) and server errors (5xx) are transient and retried on
    the same provider; every other status abandons it.
    """

    def __init__(self, provider: str, status_code: int, body: str = ""):
        self.http_status = status_code
        detail = f"HTTP {status_code}"
        if body:
            detail = f"{detail}: {body[:120]}"
        super().__init__(
            detail=detail,
            provider=provider,
            retryable=status_code == 429 or 500 <= status_code < 600,
        )

    @property
    def is_rate_limit(self) -> bool:
        return self.http_status == 429


class EmptyResponseError(ProviderError):
    """Provider returned no usable text."""

    def __init__(self, provider: str):
        super().__init__(detail="empty response", provider=provider, retryable=False)


class CascadeExhaustedError(CouncilException):
    """Every candidate provider failed for one logical request."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            detail="all providers failed: " + " | ".join(self.errors),
            status_code=502,
            error_code="CASCADE_EXHAUSTED",
        )

    def to_dict(self):
        base = super().to_dict()
        base["errors"] = self.errors
        return base


# =============================================================================
# RETRY CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class RetryConfig:
    """Per-provider retry budget and backoff schedule."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Backoff to wait after failed attempt ``attempt`` (0-based)."""
        return min(self.initial_delay * (self.exponential_base ** attempt), self.max_delay)


DEFAULT_RETRY_CONFIG = RetryConfig()

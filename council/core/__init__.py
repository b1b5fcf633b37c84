"""Core types, settings and exceptions."""

from .config import CREDENTIAL_ENV_VARS, ProviderCredentials, Settings
from .exceptions import (
    DEFAULT_RETRY_CONFIG,
    CascadeExhaustedError,
    CouncilException,
    EmptyResponseError,
    NoEligibleProviderError,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeoutError,
    RetryConfig,
)
from .types import DEFAULT_TIER, FREE_TIERS, TIER_FALLBACK_ORDER, RoleId, Tier

__all__ = [
    "CREDENTIAL_ENV_VARS",
    "DEFAULT_RETRY_CONFIG",
    "DEFAULT_TIER",
    "FREE_TIERS",
    "TIER_FALLBACK_ORDER",
    "CascadeExhaustedError",
    "CouncilException",
    "EmptyResponseError",
    "NoEligibleProviderError",
    "ProviderCredentials",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "RetryConfig",
    "RoleId",
    "Settings",
    "Tier",
]

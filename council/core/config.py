"""
Runtime configuration for the provider cascade.

Settings are an explicit value: ``Settings.from_env()`` reads the process
environment (and a ``.env`` file when present) once, and the result is passed
into ``build_providers`` and the executor. Nothing else in the package reads
the environment.
"""

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .types import RoleId, Tier

__all__ = [
    "CREDENTIAL_ENV_VARS",
    "ProviderCredentials",
    "Settings",
]


class ProviderCredentials(BaseModel):
    """One credential slot per vendor. Empty slots omit that vendor."""

    gemini: str | None = None
    groq: str | None = None
    cerebras: str | None = None
    openrouter: str | None = None
    deepseek: str | None = None
    openai: str | None = None
    anthropic: str | None = None

    def get(self, slot: str) -> str | None:
        value = getattr(self, slot, None)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def configured(self) -> list[str]:
        return [slot for slot in type(self).model_fields if self.get(slot)]


CREDENTIAL_ENV_VARS: dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
    "cerebras": "CEREBRAS_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class Settings(BaseModel):
    """Cascade and pipeline settings."""

    APP_NAME: str = "Council"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    credentials: ProviderCredentials = Field(default_factory=ProviderCredentials)

    # Cascade
    ATTEMPT_TIMEOUT_S: float = Field(default=18.0, gt=0)
    MAX_ATTEMPTS: int = Field(default=3, ge=1)
    BACKOFF_INITIAL_S: float = Field(default=1.0, ge=0)
    ERROR_SUMMARY_CHARS: int = Field(default=200, ge=20)

    # Result cache
    CACHE_TTL_S: float = Field(default=300.0, gt=0)
    CACHE_PREFIX_CHARS: int = Field(default=160, ge=16)
    CACHE_MAX_ENTRIES: int = Field(default=1024, ge=1)

    # Transport
    HTTP_MAX_TOKENS: int = Field(default=2048, ge=1)

    # Merged over the built-in role map; roles missing from both use DEFAULT_TIER
    ROLE_TIERS: dict[RoleId, Tier] = Field(default_factory=dict)
    # None keeps the built-in exemptions
    PREMIUM_EXEMPT_ROLES: frozenset[RoleId] | None = None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (tests).
            dotenv: Load ``.env`` into the process environment first.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        credentials = ProviderCredentials(
            **{slot: environ.get(var) for slot, var in CREDENTIAL_ENV_VARS.items()}
        )

        overrides: dict[str, object] = {}
        for field_name, var in (
            ("ENVIRONMENT", "ENVIRONMENT"),
            ("LOG_LEVEL", "COUNCIL_LOG_LEVEL"),
            ("ATTEMPT_TIMEOUT_S", "COUNCIL_ATTEMPT_TIMEOUT_S"),
            ("MAX_ATTEMPTS", "COUNCIL_MAX_ATTEMPTS"),
            ("CACHE_TTL_S", "COUNCIL_CACHE_TTL_S"),
        ):
            value = environ.get(var)
            if value:
                overrides[field_name] = value

        return cls(credentials=credentials, **overrides)

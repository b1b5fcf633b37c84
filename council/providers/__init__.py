"""
Providers Module

A Provider is a named, tiered async callable ``prompt -> text``. The registry
builds the session's provider list from configured credentials.
"""

from .base import InvokeFn, Provider
from .registry import PROVIDER_CATALOG, ProviderSpec, build_providers
from .transports import AnthropicTransport, GeminiTransport, OpenAICompatibleTransport

__all__ = [
    "PROVIDER_CATALOG",
    "AnthropicTransport",
    "GeminiTransport",
    "InvokeFn",
    "OpenAICompatibleTransport",
    "Provider",
    "ProviderSpec",
    "build_providers",
]

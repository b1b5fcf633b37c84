"""
Council
=======

Tiered LLM provider cascade and a sequential multi-role decision pipeline.

Layers:
- core: tiers, settings, routing and the exception hierarchy
- providers: HTTP transports and the credential-driven registry
- execution: the cascade executor (cache, timeout, retry, fallback)
- agents: personas and the pipeline orchestrator
- api: FastAPI surface
"""

__version__ = "0.1.0"

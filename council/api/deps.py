"""
Shared API Dependencies
========================

Executor and orchestrator are built once in the application lifespan and
stored on ``app.state``; routes receive them through these dependencies.
"""

from fastapi import HTTPException, Request

from ..agents.orchestrator import PipelineOrchestrator
from ..execution.cascade import CascadeExecutor

__all__ = ["get_executor", "get_orchestrator"]


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return value


def get_executor(request: Request) -> CascadeExecutor:
    return _state(request, "executor")


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    return _state(request, "orchestrator")

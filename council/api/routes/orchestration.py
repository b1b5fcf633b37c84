"""
Cascade and Pipeline API Routes
===============================

Endpoints:
- POST /v1/invoke  : single role-aware cascade call
- POST /v1/pipeline: full decision pipeline with synthesis

Errors raised by the cascade are mapped by the application's exception
handlers: 503 when no provider is eligible, 502 when every provider failed.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...agents.orchestrator import PipelineOrchestrator
from ...core.types import Tier
from ...execution.cascade import CascadeExecutor
from ..deps import get_executor, get_orchestrator

router = APIRouter(tags=["council"])


class InvokeRequest(BaseModel):
    role: str | None = Field(default=None, description="Role id; unmapped roles use the default tier")
    prompt: str = Field(..., min_length=1)
    tier: Tier | None = Field(default=None, description="Force a preferred tier")


class InvokeResponse(BaseModel):
    text: str
    provider: str
    from_cache: bool = False


class PipelineRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=2000)
    context: str = Field(default="", description="Business data shown to every role")


@router.post("/invoke", response_model=InvokeResponse)
async def invoke(
    request: InvokeRequest,
    executor: CascadeExecutor = Depends(get_executor),
) -> InvokeResponse:
    response = await executor.invoke(request.role, request.prompt, tier=request.tier)
    return InvokeResponse(
        text=response.text,
        provider=response.provider,
        from_cache=response.from_cache,
    )


@router.post("/pipeline")
async def run_pipeline(
    request: PipelineRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    result = await orchestrator.run_pipeline(request.topic, request.context)
    return result.to_dict()

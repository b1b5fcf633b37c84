"""
Health and metrics endpoints.

Endpoints:
- GET /health : liveness plus the configured provider roster
- GET /metrics: Prometheus exposition
"""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ...execution.cascade import CascadeExecutor
from ...infra.telemetry import get_metrics
from ..deps import get_executor

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(executor: CascadeExecutor = Depends(get_executor)):
    providers = executor.router.providers
    return {
        "status": "ok" if providers else "degraded",
        "providers": [
            {"name": p.name, "tier": p.tier.value, "paid": p.paid} for p in providers
        ],
    }


@router.get("/metrics", include_in_schema=False)
async def metrics():
    return Response(content=get_metrics().export_prometheus(), media_type=CONTENT_TYPE_LATEST)

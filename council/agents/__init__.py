"""
Agents Module

Personas and the sequential decision pipeline built on the cascade.
"""

from .orchestrator import (
    FAILED_PLACEHOLDER,
    MANUAL_REVIEW_MESSAGE,
    VETO_MARKER,
    OrchestrationResult,
    OrchestrationStep,
    PipelineOrchestrator,
    RunStatus,
    StepOutcome,
    StepStatus,
    classify_response,
)
from .personas import DEFAULT_CHAIN, FINAL_STEP, PERSONAS, Persona, PipelineStepDefinition

__all__ = [
    "DEFAULT_CHAIN",
    "FAILED_PLACEHOLDER",
    "FINAL_STEP",
    "MANUAL_REVIEW_MESSAGE",
    "PERSONAS",
    "VETO_MARKER",
    "OrchestrationResult",
    "OrchestrationStep",
    "Persona",
    "PipelineOrchestrator",
    "PipelineStepDefinition",
    "RunStatus",
    "StepOutcome",
    "StepStatus",
    "classify_response",
]

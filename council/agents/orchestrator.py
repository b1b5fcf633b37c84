"""
Pipeline Orchestrator
=====================

Runs a fixed, ordered chain of role invocations against a shared, growing
transcript, then one synthesis step that reconciles every opinion into a
single recommendation.

Step lifecycle: PENDING → RUNNING → COMPLETED | VETOED | FAILED

- COMPLETED / VETOED: the cascade answered; VETOED when the answer starts
  with the ``[VETO]`` marker. The veto text still goes into the transcript.
- FAILED: the cascade gave up; the transcript gets a placeholder so later
  steps see a well-formed section.

Only the synthesis step can fail the run. Steps run strictly in order since
each prompt embeds everything said before it; there is no orchestration-level
retry (retries live in the cascade) and no whole-run deadline.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from ..core.exceptions import CouncilException
from ..core.types import Tier
from ..execution.cascade import CascadeExecutor
from ..infra.telemetry import clear_log_context, get_logger, get_metrics, set_log_context
from .personas import DEFAULT_CHAIN, FINAL_STEP, PipelineStepDefinition, persona_prompt

logger = get_logger(__name__)

VETO_MARKER = "[VETO]"
FAILED_PLACEHOLDER = "[FAILED TO RESPOND]"
MANUAL_REVIEW_MESSAGE = (
    "The agent chain failed to reach a decision. "
    "Please review the data manually before approving anything."
)

# ── Status Enums ─────────────────────────────────────────────────────────────


class StepStatus(StrEnum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    VETOED = "VETOED"


class RunStatus(StrEnum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# ── Step Outcome ─────────────────────────────────────────────────────────────


class OutcomeKind(StrEnum):
    NORMAL = "normal"
    VETO = "veto"


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Tagged reading of a step's response text."""

    kind: OutcomeKind
    text: str
    reason: str | None = None

    @property
    def is_veto(self) -> bool:
        return self.kind == OutcomeKind.VETO


def classify_response(text: str) -> StepOutcome:
    """Detect the veto marker at the start of a response.

    This is a text convention, not a protocol field: a response that merely
    mentions the marker later on is a normal opinion.
    """
    stripped = text.lstrip()
    if stripped.startswith(VETO_MARKER):
        reason = stripped[len(VETO_MARKER):].strip(" :-\n\t") or None
        return StepOutcome(OutcomeKind.VETO, text, reason)
    return StepOutcome(OutcomeKind.NORMAL, text)


# ── Records ──────────────────────────────────────────────────────────────────


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class OrchestrationStep:
    """One step of a run; mutated in place while it executes."""

    id: str
    role: str
    purpose: str
    input: str = ""
    output: str = ""
    status: StepStatus = StepStatus.PENDING
    timestamp: datetime = field(default_factory=_now)
    provider: str | None = None
    veto_reason: str | None = None
    is_final: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "purpose": self.purpose,
            "input": self.input,
            "output": self.output,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "provider": self.provider,
            "veto_reason": self.veto_reason,
            "is_final": self.is_final,
        }


@dataclass
class OrchestrationResult:
    """Audit trail of a run, handed back to the caller."""

    id: str
    topic: str
    steps: list[OrchestrationStep] = field(default_factory=list)
    final_decision: str = ""
    status: RunStatus = RunStatus.RUNNING
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None

    @property
    def vetoes(self) -> list[OrchestrationStep]:
        return [s for s in self.steps if s.status == StepStatus.VETOED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "steps": [s.to_dict() for s in self.steps],
            "final_decision": self.final_decision,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class Transcript:
    """Append-only accumulated text of a run."""

    def __init__(self, topic: str):
        self._entries: list[str] = [f'ORIGINAL TOPIC (owner\'s request): "{topic}"']

    def append_opinion(self, role: str, text: str) -> None:
        self._entries.append(f"--- OPINION OF {role} ---\n{text}")

    def render(self) -> str:
        return "\n\n".join(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# ── Prompts ──────────────────────────────────────────────────────────────────


def build_step_prompt(
    definition: PipelineStepDefinition, context: str, transcript: str
) -> str:
    return (
        f"{persona_prompt(definition.role, context)}\n\n"
        "ORCHESTRATION INSTRUCTION (you are part of a chain of agents):\n"
        f"{definition.purpose}\n\n"
        "CONTEXT ACCUMULATED SO FAR:\n"
        f"{transcript}\n\n"
        "YOUR TASK:\n"
        "Answer in at most 100 words.\n"
        "If you detect a major risk in your area (e.g. the customer does not pay, "
        f"there is no stock), start your answer with {VETO_MARKER} followed by the reason. "
        "Otherwise give your positive opinion or your reservations."
    )


def build_synthesis_prompt(
    definition: PipelineStepDefinition, topic: str, context: str, transcript: str
) -> str:
    return (
        f"{persona_prompt(definition.role, context)}\n\n"
        "YOU ARE THE ORCHESTRATOR (master agent). Below are your sub-agents' "
        f'opinions on the topic: "{topic}"\n\n'
        f"{transcript}\n\n"
        "YOUR TASK:\n"
        f"1. Check whether any opinion starts with {VETO_MARKER}. If one does, "
        "protecting the company takes precedence.\n"
        "2. Resolve conflicts between the opinions (e.g. Sales wants a discount "
        "but Inventory says the product is fresh: block the discount).\n"
        "3. Write ONE FINAL DECISION addressed to the owner.\n"
        "4. Mandatory format:\n"
        "   SUMMARY: [one sentence on what the team thought]\n"
        "   CONFLICTS: [any disagreement between the opinions]\n"
        "   RECOMMENDED DECISION: [your final, clear recommendation for the human to approve]"
    )


# ── Orchestrator ─────────────────────────────────────────────────────────────


class PipelineOrchestrator:
    """
    Sequential decision pipeline over a CascadeExecutor.

    Args:
        executor: Cascade used for every step
        chain: Ordered step definitions run before synthesis
        final_step: Synthesis step definition
        final_tier: Tier forced for the synthesis step
    """

    def __init__(
        self,
        executor: CascadeExecutor,
        chain: Sequence[PipelineStepDefinition] = DEFAULT_CHAIN,
        final_step: PipelineStepDefinition = FINAL_STEP,
        *,
        final_tier: Tier = Tier.MASTER,
    ):
        self._executor = executor
        self._chain = tuple(chain)
        self._final_step = final_step
        self._final_tier = final_tier
        self._metrics = get_metrics()

    @property
    def chain(self) -> tuple[PipelineStepDefinition, ...]:
        return self._chain

    async def run_pipeline(self, topic: str, context: str) -> OrchestrationResult:
        """
        Run every chain step, then the synthesis step.

        Never raises for provider failures: a failed chain step becomes a
        placeholder, a failed synthesis marks the result FAILED with a
        manual-review message.
        """
        result = OrchestrationResult(id=f"orch-{uuid.uuid4().hex[:12]}", topic=topic)
        transcript = Transcript(topic)
        set_log_context(pipeline_id=result.id)
        logger.info("pipeline_started", steps=len(self._chain) + 1)

        try:
            for index, definition in enumerate(self._chain):
                step = OrchestrationStep(
                    id=f"{result.id}-step-{index + 1}-{definition.role.lower()}",
                    role=definition.role,
                    purpose=definition.purpose,
                )
                result.steps.append(step)
                await self._run_chain_step(step, definition, context, transcript)

            final = OrchestrationStep(
                id=f"{result.id}-final-{self._final_step.role.lower()}",
                role=self._final_step.role,
                purpose=self._final_step.purpose,
                is_final=True,
            )
            result.steps.append(final)
            await self._run_synthesis(result, final, context, transcript)
        finally:
            result.finished_at = _now()
            logger.info(
                "pipeline_finished",
                status=result.status.value,
                vetoes=len(result.vetoes),
                failed_steps=sum(1 for s in result.steps if s.status == StepStatus.FAILED),
            )
            clear_log_context()

        self._metrics.record_pipeline(result.status.value)
        return result

    # ── Internal ─────────────────────────────────────────────────────

    async def _run_chain_step(
        self,
        step: OrchestrationStep,
        definition: PipelineStepDefinition,
        context: str,
        transcript: Transcript,
    ) -> None:
        set_log_context(step_id=step.id, role=step.role)
        step.input = transcript.render()
        step.status = StepStatus.RUNNING
        step.timestamp = _now()
        prompt = build_step_prompt(definition, context, step.input)

        try:
            response = await self._executor.invoke(definition.role, prompt)
        except CouncilException as exc:
            step.status = StepStatus.FAILED
            step.output = f"AGENT FAILURE: {exc.detail}"
            transcript.append_opinion(definition.role, FAILED_PLACEHOLDER)
            logger.warning("pipeline_step_failed", error=exc.error_code)
        else:
            outcome = classify_response(response.text)
            step.output = response.text
            step.provider = response.provider
            if outcome.is_veto:
                step.status = StepStatus.VETOED
                step.veto_reason = outcome.reason
                logger.info("pipeline_step_vetoed", provider=response.provider)
            else:
                step.status = StepStatus.COMPLETED
                logger.info("pipeline_step_completed", provider=response.provider)
            transcript.append_opinion(definition.role, response.text)

        self._metrics.record_step(role=step.role, status=step.status.value)

    async def _run_synthesis(
        self,
        result: OrchestrationResult,
        step: OrchestrationStep,
        context: str,
        transcript: Transcript,
    ) -> None:
        set_log_context(step_id=step.id, role=step.role)
        step.input = transcript.render()
        step.status = StepStatus.RUNNING
        step.timestamp = _now()
        prompt = build_synthesis_prompt(self._final_step, result.topic, context, step.input)

        try:
            response = await self._executor.invoke(
                self._final_step.role, prompt, tier=self._final_tier
            )
        except CouncilException as exc:
            step.status = StepStatus.FAILED
            step.output = f"FINAL ORCHESTRATION FAILURE: {exc.detail}"
            result.final_decision = MANUAL_REVIEW_MESSAGE
            result.status = RunStatus.FAILED
            logger.error("pipeline_synthesis_failed", error=exc.error_code)
        else:
            step.output = response.text
            step.provider = response.provider
            step.status = StepStatus.COMPLETED
            result.final_decision = response.text
            result.status = RunStatus.COMPLETED

        self._metrics.record_step(role=step.role, status=step.status.value)

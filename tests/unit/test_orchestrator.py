"""
Pipeline Orchestrator Unit Tests
================================

Sequential chain over a shared transcript, veto detection, failure
placeholders and synthesis fallback.
"""

import json

import pytest

from council.agents.orchestrator import (
    FAILED_PLACEHOLDER,
    MANUAL_REVIEW_MESSAGE,
    PipelineOrchestrator,
    RunStatus,
    StepStatus,
    classify_response,
)
from council.agents.personas import DEFAULT_CHAIN, PipelineStepDefinition
from council.core.exceptions import CascadeExhaustedError, NoEligibleProviderError
from council.core.tier_router import TierRouter
from council.core.types import Tier
from council.execution.cascade import CascadeExecutor, CascadeResponse
from council.infra.cache import NullCache


class FakeExecutor:
    """Answers per role; an exception value is raised instead."""

    def __init__(self, answers: dict):
        self.answers = answers
        self.calls: list[tuple[str, str, Tier | None]] = []

    async def invoke(self, role, prompt, *, tier=None):
        self.calls.append((role, prompt, tier))
        answer = self.answers[role]
        if isinstance(answer, BaseException):
            raise answer
        return CascadeResponse(text=answer, provider=f"{role.lower()}-model")

    def prompt_for(self, role: str) -> str:
        return next(prompt for r, prompt, _ in self.calls if r == role)


class TestClassifyResponse:

    def test_veto_prefix(self):
        outcome = classify_response("[VETO] insufficient funds")
        assert outcome.is_veto
        assert outcome.reason == "insufficient funds"
        assert outcome.text == "[VETO] insufficient funds"

    def test_leading_whitespace_is_ignored(self):
        assert classify_response("\n  [VETO]: no stock").reason == "no stock"

    def test_marker_later_in_text_is_not_a_veto(self):
        assert not classify_response("No [VETO] from me, go ahead").is_veto

    def test_bare_marker_has_no_reason(self):
        outcome = classify_response("[VETO]")
        assert outcome.is_veto
        assert outcome.reason is None


class TestPipelineOrchestrator:

    def _answers(self, **overrides):
        answers = {
            "SALES": "Good margin, go.",
            "TREASURY": "Cash is fine.",
            "INVENTORY": "Stock available.",
            "ADMIN": "SUMMARY: all good\nCONFLICTS: none\nRECOMMENDED DECISION: approve",
        }
        answers.update(overrides)
        return answers

    @pytest.mark.asyncio
    async def test_happy_path_runs_chain_then_synthesis(self):
        executor = FakeExecutor(self._answers())
        result = await PipelineOrchestrator(executor).run_pipeline("Discount for client X", "ctx")

        assert result.status == RunStatus.COMPLETED
        assert [s.role for s in result.steps] == ["SALES", "TREASURY", "INVENTORY", "ADMIN"]
        assert all(s.status == StepStatus.COMPLETED for s in result.steps)
        assert result.final_decision.startswith("SUMMARY:")
        assert result.steps[-1].is_final
        assert result.finished_at is not None

        tiers = [tier for _, _, tier in executor.calls]
        assert tiers == [None, None, None, Tier.MASTER]

    @pytest.mark.asyncio
    async def test_transcript_accumulates_in_order(self):
        executor = FakeExecutor(self._answers())
        result = await PipelineOrchestrator(executor).run_pipeline("Topic T", "Revenue: 10")

        first_input = result.steps[0].input
        assert 'ORIGINAL TOPIC' in first_input and '"Topic T"' in first_input
        assert "OPINION OF" not in first_input

        inventory_prompt = executor.prompt_for("INVENTORY")
        assert "--- OPINION OF SALES ---\nGood margin, go." in inventory_prompt
        assert "--- OPINION OF TREASURY ---\nCash is fine." in inventory_prompt
        assert inventory_prompt.index("OPINION OF SALES") < inventory_prompt.index("OPINION OF TREASURY")
        assert "Revenue: 10" in inventory_prompt
        assert DEFAULT_CHAIN[2].purpose in inventory_prompt

        final_prompt = executor.prompt_for("ADMIN")
        assert "RECOMMENDED DECISION" in final_prompt
        assert "--- OPINION OF INVENTORY ---\nStock available." in final_prompt

    @pytest.mark.asyncio
    async def test_failed_step_gets_placeholder_and_chain_continues(self):
        executor = FakeExecutor(
            self._answers(TREASURY=CascadeExhaustedError(["groq: HTTP 500"]))
        )
        result = await PipelineOrchestrator(executor).run_pipeline("topic", "ctx")

        treasury = result.steps[1]
        assert treasury.status == StepStatus.FAILED
        assert treasury.output == "AGENT FAILURE: all providers failed: groq: HTTP 500"
        assert treasury.provider is None
        assert result.steps[2].status == StepStatus.COMPLETED
        assert result.status == RunStatus.COMPLETED
        assert len(result.steps) == 4
        assert f"--- OPINION OF TREASURY ---\n{FAILED_PLACEHOLDER}" in executor.prompt_for("INVENTORY")

    @pytest.mark.asyncio
    async def test_veto_is_recorded_and_reaches_synthesis(self):
        executor = FakeExecutor(
            self._answers(
                TREASURY="[VETO] insufficient funds",
                INVENTORY=NoEligibleProviderError("INVENTORY", "staff"),
            )
        )
        result = await PipelineOrchestrator(executor).run_pipeline("Big order", "ctx")

        treasury, inventory = result.steps[1], result.steps[2]
        assert treasury.status == StepStatus.VETOED
        assert treasury.veto_reason == "insufficient funds"
        assert inventory.status == StepStatus.FAILED
        assert result.vetoes == [treasury]

        final_prompt = executor.prompt_for("ADMIN")
        assert "--- OPINION OF TREASURY ---\n[VETO] insufficient funds" in final_prompt
        assert f"--- OPINION OF INVENTORY ---\n{FAILED_PLACEHOLDER}" in final_prompt
        assert result.status == RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_synthesis_failure_marks_run_failed(self):
        executor = FakeExecutor(self._answers(ADMIN=CascadeExhaustedError(["a: timed out after 18s"])))
        result = await PipelineOrchestrator(executor).run_pipeline("topic", "ctx")

        assert result.status == RunStatus.FAILED
        assert result.final_decision == MANUAL_REVIEW_MESSAGE
        assert result.steps[-1].status == StepStatus.FAILED
        assert [s.status for s in result.steps[:3]] == [StepStatus.COMPLETED] * 3

    @pytest.mark.asyncio
    async def test_final_step_is_never_classified_as_veto(self):
        executor = FakeExecutor(self._answers(ADMIN="[VETO] do not proceed"))
        result = await PipelineOrchestrator(executor).run_pipeline("topic", "ctx")
        assert result.steps[-1].status == StepStatus.COMPLETED
        assert result.final_decision == "[VETO] do not proceed"

    @pytest.mark.asyncio
    async def test_custom_chain(self):
        executor = FakeExecutor({"AUDITOR": "Books are clean.", "ADMIN": "approve"})
        chain = [PipelineStepDefinition("AUDITOR", "Check the books.")]
        result = await PipelineOrchestrator(executor, chain).run_pipeline("topic", "ctx")
        assert [s.role for s in result.steps] == ["AUDITOR", "ADMIN"]
        assert "Check the books." in executor.prompt_for("AUDITOR")

    @pytest.mark.asyncio
    async def test_result_serializes_to_json(self):
        executor = FakeExecutor(self._answers(SALES="[VETO] margin too low"))
        result = await PipelineOrchestrator(executor).run_pipeline("topic", "ctx")
        payload = json.loads(json.dumps(result.to_dict()))
        assert payload["status"] == "COMPLETED"
        assert payload["steps"][0]["status"] == "VETOED"
        assert payload["steps"][0]["veto_reason"] == "margin too low"
        assert payload["id"] == result.id


class TestPipelineOverCascade:

    @pytest.mark.asyncio
    async def test_synthesis_is_forced_onto_master_tier(self, make_provider, sleep):
        staff, _ = make_provider("staff-llm", Tier.STAFF, "opinion")
        master, master_calls = make_provider("master-llm", Tier.MASTER, "DECISION")
        executor = CascadeExecutor(TierRouter([staff, master]), NullCache(), sleep=sleep)

        result = await PipelineOrchestrator(executor).run_pipeline("topic", "ctx")

        assert result.status == RunStatus.COMPLETED
        assert result.steps[0].provider == "staff-llm"
        assert result.steps[1].provider == "master-llm (upgraded from MANAGER)"
        assert result.steps[-1].provider == "master-llm"
        assert result.final_decision == "DECISION"
        assert master_calls.calls == 2

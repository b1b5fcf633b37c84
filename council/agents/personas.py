"""
Personas and the default decision chain.

A persona frames a role's prompt; the chain lists which roles weigh in, in
which order, and from which analytical angle.
"""

from dataclasses import dataclass

from ..core.types import RoleId


@dataclass(frozen=True, slots=True)
class Persona:
    name: str
    title: str


PERSONAS: dict[RoleId, Persona] = {
    "ADMIN": Persona("Clara", "General Administrator"),
    "PRODUCTION": Persona("Antonio", "Head of Production"),
    "SALES": Persona("Marcos", "Sales Director"),
    "AUDITOR": Persona("Beatriz", "Auditor"),
    "INVENTORY": Persona("Joaquim", "Head of Inventory"),
    "PURCHASING": Persona("Roberto", "Buyer"),
    "MARKET": Persona("Ana", "Market Consultant"),
    "SALES_BOT": Persona("Lucas", "Sales & Innovation"),
    "TREASURY": Persona("Mateus", "Treasurer"),
    "COLLECTIONS": Persona("Paula", "Collections"),
}


@dataclass(frozen=True, slots=True)
class PipelineStepDefinition:
    """One step of a decision chain."""

    role: RoleId
    purpose: str


DEFAULT_CHAIN: tuple[PipelineStepDefinition, ...] = (
    PipelineStepDefinition(
        "SALES",
        "Assess commercial viability, customer demand and the impact on sales targets.",
    ),
    PipelineStepDefinition(
        "TREASURY",
        "Assess the cash impact, receivable terms and the customer's default risk.",
    ),
    PipelineStepDefinition(
        "INVENTORY",
        "Assess physical viability: do we have the product, and will it spoil before delivery?",
    ),
)

FINAL_STEP = PipelineStepDefinition(
    "ADMIN",
    "Orchestrator: review every opinion, resolve conflicts and give the owner a final resolution.",
)


def persona_prompt(role: RoleId, context: str) -> str:
    """Role framing followed by the shared business context."""
    persona = PERSONAS.get(role)
    who = f"{persona.name} ({persona.title})" if persona else role
    return (
        f"You are {who}. Analyse the real data below and give your technical opinion.\n"
        "RULES: be direct, at most 100 words. Mark severity as RED, YELLOW or GREEN.\n"
        f"SYSTEM DATA:\n{context}"
    )

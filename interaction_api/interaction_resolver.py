# interaction_resolver.py
"""
Decides whether two medications interact.

Each stage is a plain function taking the resolution inputs and the knowledge
base and returning a verdict or None. The resolver runs them in order and
returns the first verdict produced; findings from different stages are never
merged.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from interaction_api.data_model import (
    InteractionVerdict,
    Severity,
    SOURCE_DOCUMENTATION,
    SOURCE_GROUP_ANALYSIS,
    SOURCE_KNOWLEDGE_BASE,
    normalize_ingredient,
)
from interaction_api.drug_groups import classify, lookup_group_interaction
from interaction_api.knowledge_base import KnowledgeBase
from interaction_api.text_severity import classify_severity, extract_relevant_excerpt

logger = logging.getLogger("uvicorn.error")

DEFAULT_NAMES = ("the first medication", "the second medication")


@dataclass
class ResolutionInputs:
    ingredients_a: List[str]
    ingredients_b: List[str]
    excerpt_a: str = ""
    excerpt_b: str = ""
    medication_names: Tuple[str, str] = DEFAULT_NAMES

    # Both medications carry exactly the same ingredient list
    same_ingredients: bool = field(init=False)

    def __post_init__(self):
        self.same_ingredients = self.ingredients_a == self.ingredients_b


Strategy = Callable[[ResolutionInputs, KnowledgeBase], Optional[InteractionVerdict]]


def default_verdict() -> InteractionVerdict:
    return InteractionVerdict(
        found=False,
        severity=Severity.NONE,
        description="No documented interactions were found between these medications.",
        recommendation="Consult a healthcare professional for specific advice.",
        source=None,
    )


# -----------------------------
# Stages
# -----------------------------

def knowledge_base_stage(inputs: ResolutionInputs, kb: KnowledgeBase) -> Optional[InteractionVerdict]:
    for a in inputs.ingredients_a:
        for b in inputs.ingredients_b:
            known = kb.find_interaction(a, b)
            if known:
                return InteractionVerdict(
                    found=True,
                    severity=known.severity,
                    description=known.description,
                    recommendation=known.recommendation,
                    source=SOURCE_KNOWLEDGE_BASE,
                )
    return None


def _documentation_match(ingredients: List[str], excerpt: str, document_owner: str) -> Optional[InteractionVerdict]:
    if not ingredients or not excerpt:
        return None
    lowered = excerpt.lower()
    for ingredient in ingredients:
        if ingredient in lowered:
            paragraph = extract_relevant_excerpt(excerpt, ingredient)
            severity = classify_severity(paragraph)
            return InteractionVerdict(
                found=True,
                severity=severity,
                description=(
                    f"Possible interaction found: the active ingredient {ingredient} is mentioned "
                    f"in the interactions section of {document_owner}."
                ),
                recommendation=(
                    "Read the interactions section of the product information and consult "
                    "a healthcare professional before combining these medications."
                ),
                detail=paragraph,
                source=SOURCE_DOCUMENTATION,
            )
    return None


def documentation_stage_a_to_b(inputs: ResolutionInputs, kb: KnowledgeBase) -> Optional[InteractionVerdict]:
    """Ingredients of the first medication mentioned in the second one's documentation."""
    return _documentation_match(inputs.ingredients_a, inputs.excerpt_b, inputs.medication_names[1])


def documentation_stage_b_to_a(inputs: ResolutionInputs, kb: KnowledgeBase) -> Optional[InteractionVerdict]:
    return _documentation_match(inputs.ingredients_b, inputs.excerpt_a, inputs.medication_names[0])


def group_stage(inputs: ResolutionInputs, kb: KnowledgeBase) -> Optional[InteractionVerdict]:
    groups_a = [g for g in map(classify, inputs.ingredients_a) if g]
    groups_b = [g for g in map(classify, inputs.ingredients_b) if g]
    if not groups_a or not groups_b:
        return None

    for group_a in groups_a:
        for group_b in groups_b:
            # A medication compared with itself does not interact with its own group
            if inputs.same_ingredients and group_a == group_b:
                continue
            interaction = lookup_group_interaction(group_a, group_b)
            if interaction:
                return InteractionVerdict(
                    found=True,
                    severity=interaction.severity,
                    description=f"Interaction between pharmacological groups: {interaction.description}",
                    recommendation=interaction.recommendation,
                    pharmacological_groups=[group_a, group_b],
                    source=SOURCE_GROUP_ANALYSIS,
                )
    return None


DEFAULT_STRATEGIES: Tuple[Strategy, ...] = (
    knowledge_base_stage,
    documentation_stage_a_to_b,
    documentation_stage_b_to_a,
    group_stage,
)


def _clean(ingredients: Optional[Sequence[str]]) -> List[str]:
    cleaned = []
    for ingredient in ingredients or []:
        if not isinstance(ingredient, str):
            continue
        name = normalize_ingredient(ingredient)
        if name:
            cleaned.append(name)
    return cleaned


class InteractionResolver:
    def __init__(self, knowledge_base: KnowledgeBase, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES):
        self.knowledge_base = knowledge_base
        self.strategies = tuple(strategies)

    def resolve(
        self,
        ingredients_a: Optional[Sequence[str]],
        ingredients_b: Optional[Sequence[str]],
        excerpt_a: Optional[str] = "",
        excerpt_b: Optional[str] = "",
        medication_names: Optional[Tuple[str, str]] = None,
    ) -> InteractionVerdict:
        inputs = ResolutionInputs(
            ingredients_a=_clean(ingredients_a),
            ingredients_b=_clean(ingredients_b),
            excerpt_a=excerpt_a if isinstance(excerpt_a, str) else "",
            excerpt_b=excerpt_b if isinstance(excerpt_b, str) else "",
            medication_names=tuple(medication_names) if medication_names else DEFAULT_NAMES,
        )
        if not inputs.ingredients_a or not inputs.ingredients_b:
            logger.debug("Resolver called with an empty ingredient list; returning default verdict")
            return default_verdict()

        for strategy in self.strategies:
            verdict = strategy(inputs, self.knowledge_base)
            if verdict is not None:
                logger.info(f"Interaction found by {strategy.__name__}: severity={verdict.severity.value}")
                return verdict
        return default_verdict()

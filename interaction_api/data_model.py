# data_model.py

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"   # interaction found, severity not determined
    NONE = "none"         # no interaction found


# --- Verdict sources ---

SOURCE_KNOWLEDGE_BASE = "local knowledge base"
SOURCE_DOCUMENTATION = "official documentation"
SOURCE_GROUP_ANALYSIS = "pharmacological group analysis"


def normalize_ingredient(value: Optional[str]) -> str:
    """Lower-case and trim an active ingredient name."""
    return (value or "").strip().lower()


# --- Knowledge models ---

@dataclass
class KnownInteraction:
    principles: Tuple[str, str]     # unordered pair, e.g. ("warfarina", "aspirina")
    severity: Severity
    description: str
    recommendation: str

    def matches(self, ingredient_a: str, ingredient_b: str) -> bool:
        """True if the stored pair equals {a, b} in either orientation."""
        stored = sorted(normalize_ingredient(p) for p in self.principles)
        return stored == sorted((ingredient_a, ingredient_b))


@dataclass(frozen=True)
class DrugGroup:
    id: str                         # e.g. "nsaid"
    members: Tuple[str, ...]        # substrings, e.g. ("ibuprofeno", "naproxeno")


@dataclass(frozen=True)
class GroupInteraction:
    groups: Tuple[str, str]
    severity: Severity
    description: str
    recommendation: str


# --- Registry model ---

@dataclass
class MedicationRecord:
    registry_id: str
    name: str
    active_ingredients: List[str] = field(default_factory=list)
    lab: Optional[str] = None
    prescription: Optional[str] = None


# --- Resolver output ---

@dataclass
class InteractionVerdict:
    found: bool
    severity: Severity
    description: str
    recommendation: str
    detail: Optional[str] = None
    pharmacological_groups: Optional[List[str]] = None
    source: Optional[str] = None


def verdict_to_dict(verdict: InteractionVerdict) -> dict:
    data = {
        "found": verdict.found,
        "severity": verdict.severity.value,
        "description": verdict.description,
        "recommendation": verdict.recommendation,
        "source": verdict.source,
    }
    if verdict.detail is not None:
        data["detail"] = verdict.detail
    if verdict.pharmacological_groups is not None:
        data["pharmacological_groups"] = list(verdict.pharmacological_groups)
    return data


def medication_to_dict(medication: MedicationRecord) -> dict:
    return {
        "registry_id": medication.registry_id,
        "name": medication.name,
        "active_ingredients": list(medication.active_ingredients),
    }

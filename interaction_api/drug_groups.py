# drug_groups.py
"""
Pharmacological groups and the interactions known between them.

Classification is a plain substring test against each group's member list,
so salts and compound names ("clopidogrel besilato") land in the group of
their base substance. It can over-match; callers should treat the group
stage as the weakest evidence the resolver has.
"""

from typing import Optional, Tuple

from interaction_api.data_model import DrugGroup, GroupInteraction, Severity, normalize_ingredient

# Iteration order is significant: the first matching group wins.
DRUG_GROUPS: Tuple[DrugGroup, ...] = (
    # Non-steroidal anti-inflammatory drugs
    DrugGroup("nsaid", ("ibuprofeno", "naproxeno", "diclofenaco", "ketorolaco", "dexketoprofeno", "aceclofenaco")),
    # Proton pump inhibitors
    DrugGroup("ppi", ("omeprazol", "pantoprazol", "lansoprazol", "esomeprazol", "rabeprazol")),
    DrugGroup("anticoagulantes", ("warfarina", "acenocumarol", "apixaban", "rivaroxaban", "dabigatran", "edoxaban")),
    DrugGroup("antiplatelets", ("aspirina", "clopidogrel", "prasugrel", "ticagrelor", "ácido acetilsalicílico")),
    DrugGroup("statins", ("simvastatina", "atorvastatina", "rosuvastatina", "pravastatina", "lovastatina",
                          "fluvastatina", "pitavastatina")),
    # ACE inhibitors
    DrugGroup("ace_inhibitors", ("enalapril", "ramipril", "lisinopril", "captopril", "perindopril", "fosinopril",
                                 "quinapril", "benazepril")),
    # Angiotensin II receptor blockers
    DrugGroup("arb", ("losartan", "valsartan", "candesartan", "telmisartan", "irbesartan", "olmesartan", "eprosartan")),
    DrugGroup("diuretics", ("hidroclorotiazida", "furosemida", "espironolactona", "torasemida", "indapamida",
                            "clortalidona", "eplerenona", "amilorida")),
    # Selective serotonin reuptake inhibitors
    DrugGroup("ssri", ("fluoxetina", "paroxetina", "sertralina", "citalopram", "escitalopram", "fluvoxamina")),
    DrugGroup("opioids", ("tramadol", "morfina", "fentanilo", "oxicodona", "tapentadol", "codeína", "buprenorfina",
                          "hidrocodona")),
)

GROUP_INTERACTIONS: Tuple[GroupInteraction, ...] = (
    GroupInteraction(
        groups=("nsaid", "anticoagulantes"),
        severity=Severity.HIGH,
        description="Significantly increased risk of bleeding, especially gastrointestinal",
        recommendation="Avoid this combination. If needed, consider gastric protection and watch for signs of bleeding.",
    ),
    GroupInteraction(
        groups=("nsaid", "antiplatelets"),
        severity=Severity.MEDIUM,
        description="Increased risk of bleeding and possible reduction of the antiplatelet effect",
        recommendation="Use with caution, at the lowest dose and for the shortest time possible.",
    ),
    GroupInteraction(
        groups=("ppi", "antiplatelets"),
        severity=Severity.MEDIUM,
        description="Possible reduced activation of some antiplatelet agents, especially clopidogrel",
        recommendation="Consider pantoprazole instead of omeprazole/esomeprazole alongside clopidogrel.",
    ),
    GroupInteraction(
        groups=("statins", "ppi"),
        severity=Severity.LOW,
        description="Possible increase in the levels of some statins",
        recommendation="Monitor for muscular adverse effects such as pain or weakness.",
    ),
    GroupInteraction(
        groups=("ace_inhibitors", "diuretics"),
        severity=Severity.LOW,
        description="May potentiate the hypotensive effect and raise the risk of hypotension",
        recommendation="Monitor blood pressure, especially when starting treatment or adjusting doses.",
    ),
    GroupInteraction(
        groups=("ssri", "opioids"),
        severity=Severity.MEDIUM,
        description="Increased risk of serotonin syndrome",
        recommendation="Watch for agitation, tremor, hyperthermia and altered mental state.",
    ),
)


def classify(ingredient: Optional[str]) -> Optional[str]:
    """Return the id of the first group with a member contained in the ingredient, or None."""
    name = normalize_ingredient(ingredient)
    if not name:
        return None
    for group in DRUG_GROUPS:
        if any(member in name for member in group.members):
            return group.id
    return None


def lookup_group_interaction(group_a: str, group_b: str,
                             table: Tuple[GroupInteraction, ...] = GROUP_INTERACTIONS) -> Optional[GroupInteraction]:
    """First entry whose unordered group pair equals {group_a, group_b}."""
    wanted = {group_a, group_b}
    for interaction in table:
        if set(interaction.groups) == wanted:
            return interaction
    return None

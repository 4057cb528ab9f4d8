# knowledge_base.py

import logging
import threading
from typing import List, Optional

from interaction_api.data_model import KnownInteraction, Severity, normalize_ingredient
from interaction_api.interaction_storage import StorageError

logger = logging.getLogger("uvicorn.error")

# Built-in seed, written to the store on first startup
BUILTIN_INTERACTIONS: List[KnownInteraction] = [
    KnownInteraction(
        principles=("paracetamol", "ibuprofeno"),
        severity=Severity.LOW,
        description="Combining paracetamol and ibuprofen can improve pain relief without a significant increase in adverse effects.",
        recommendation="This combination is commonly used and safe for most patients. Keep to the recommended dose of each medicine.",
    ),
    KnownInteraction(
        principles=("omeprazol", "clopidogrel"),
        severity=Severity.HIGH,
        description="Omeprazole can reduce the efficacy of clopidogrel by interfering with its activation through cytochrome P450 2C19, raising the risk of cardiovascular events.",
        recommendation="Use pantoprazole or another proton pump inhibitor that does not significantly interfere with clopidogrel activation.",
    ),
    KnownInteraction(
        principles=("warfarina", "aspirina"),
        severity=Severity.HIGH,
        description="The combination significantly increases the risk of bleeding by potentiating the anticoagulant effect.",
        recommendation="Avoid this combination. If it is strictly necessary, it requires close INR monitoring and watching for signs of bleeding.",
    ),
    KnownInteraction(
        principles=("simvastatina", "amlodipino"),
        severity=Severity.MEDIUM,
        description="Amlodipine can raise simvastatin levels, increasing the risk of myopathy and rhabdomyolysis.",
        recommendation="Do not exceed 20 mg of simvastatin per day alongside amlodipine, or consider another statin such as atorvastatin.",
    ),
    KnownInteraction(
        principles=("fluoxetina", "tramadol"),
        severity=Severity.MEDIUM,
        description="Increases the risk of serotonin syndrome through additive serotonergic effects.",
        recommendation="Watch for agitation, tremor, hyperthermia and changes in mental state. Consider alternative pain management.",
    ),
    KnownInteraction(
        principles=("enalapril", "espironolactona"),
        severity=Severity.MEDIUM,
        description="Increased risk of hyperkalaemia, especially in patients with renal impairment or diabetes.",
        recommendation="Monitor serum potassium regularly, especially when starting treatment or adjusting the dose.",
    ),
    KnownInteraction(
        principles=("levotiroxina", "carbonato de calcio"),
        severity=Severity.LOW,
        description="Calcium carbonate can reduce the absorption of levothyroxine when both are taken together.",
        recommendation="Separate the two doses by at least 4 hours.",
    ),
]


class KnowledgeBase:
    """
    Known ingredient-pair interactions backed by an injected store.

    The store is re-read on every lookup; writes go through a single lock so
    concurrent additions cannot lose each other's records.
    """

    def __init__(self, store, seed: Optional[List[KnownInteraction]] = None):
        self.store = store
        self.seed = list(seed if seed is not None else BUILTIN_INTERACTIONS)
        self._write_lock = threading.Lock()
        self._initialise()

    def _initialise(self) -> None:
        try:
            if not self.store.exists():
                self.store.save_all(self.seed)
                logger.info(f"Seeded knowledge base with {len(self.seed)} built-in interactions")
        except StorageError as e:
            logger.error(f"Could not seed knowledge base, using built-in set: {e}")

    def get_interactions(self) -> List[KnownInteraction]:
        try:
            return self.store.load()
        except StorageError as e:
            logger.error(f"Error reading interactions, falling back to built-in set: {e}")
            return list(self.seed)

    def find_interaction(self, ingredient_a: str, ingredient_b: str) -> Optional[KnownInteraction]:
        a = normalize_ingredient(ingredient_a)
        b = normalize_ingredient(ingredient_b)
        if not a or not b:
            return None
        for interaction in self.get_interactions():
            if interaction.matches(a, b):
                return interaction
        return None

    def add_interaction(self, record: KnownInteraction) -> None:
        """Append and persist a record. Raises StorageError if it cannot be written."""
        with self._write_lock:
            try:
                if not self.store.exists():
                    # Store vanished or was never seeded; keep the built-in set
                    logger.warning("Knowledge base store missing on write, re-seeding built-in interactions")
                    self.store.save_all(self.seed)
                self.store.append(record)
            except StorageError as e:
                logger.error(f"Error saving interaction {record.principles}: {e}")
                raise
        logger.info(f"Saved interaction {record.principles[0]} + {record.principles[1]}")

# registry_client.py
"""
Client for the CIMA medicinal-products registry (AEMPS).

Resolves drug names to registry records and registry ids to the
interactions section (4.5) of the product's technical sheet. Failures of the
interactions lookup degrade to an empty string so the resolver never sees a
fetch error.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from interaction_api.cache import TTLCache
from interaction_api.config import CIMA_BASE_URL, REGISTRY_CACHE_TTL, REGISTRY_TIMEOUT
from interaction_api.data_model import MedicationRecord, normalize_ingredient
from interaction_api.text_severity import html_to_text

logger = logging.getLogger("uvicorn.error")

MIN_SEARCH_LENGTH = 3
INTERACTIONS_SECTION = "4.5"


class RegistryError(Exception):
    pass


class CimaRegistryClient:
    def __init__(
        self,
        base_url: str = CIMA_BASE_URL,
        timeout: float = REGISTRY_TIMEOUT,
        cache: Optional[TTLCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else TTLCache(ttl_sec=REGISTRY_CACHE_TTL)
        self.session = session or requests.Session()

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        key = f"{path}?{sorted(params.items())}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        url = f"{self.base_url}/{path}"
        try:
            response = self.session.get(
                url, params=params, headers={"Accept": "application/json"}, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RegistryError(f"Registry request to {path} failed: {e}") from e

        self.cache.set(key, data)
        return data

    def search_medications(self, name: str) -> Dict[str, Any]:
        term = (name or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValueError(f"Search term must have at least {MIN_SEARCH_LENGTH} characters")
        return self._get_json("medicamentos", {"nombre": term})

    def get_medication(self, registry_id: str) -> Dict[str, Any]:
        data = self._get_json("medicamento", {"nregistro": registry_id})
        if not data:
            raise RegistryError(f"Medication {registry_id} not found in registry")
        return data

    def get_medication_record(self, registry_id: str) -> MedicationRecord:
        return to_medication_record(self.get_medication(registry_id), registry_id)

    def get_interactions_text(self, registry_id: str) -> str:
        """Section 4.5 as plain text; '' when the registry cannot provide it."""
        try:
            data = self._get_json(
                "docSegmentado/contenido/1",
                {"nregistro": registry_id, "seccion": INTERACTIONS_SECTION},
            )
        except RegistryError as e:
            logger.warning(f"Interactions section unavailable for {registry_id}: {e}")
            return ""
        return html_to_text(_section_content(data))


def _section_content(data: Any) -> str:
    if isinstance(data, dict):
        return data.get("contenido") or ""
    if isinstance(data, list):
        return "\n".join(item.get("contenido") or "" for item in data if isinstance(item, dict))
    return ""


def to_medication_record(data: Dict[str, Any], registry_id: Optional[str] = None) -> MedicationRecord:
    ingredients: List[str] = []
    for principle in data.get("principiosActivos") or []:
        name = normalize_ingredient(principle.get("nombre") if isinstance(principle, dict) else principle)
        if name:
            ingredients.append(name)
    return MedicationRecord(
        registry_id=str(data.get("nregistro") or registry_id or ""),
        name=data.get("nombre") or "",
        active_ingredients=ingredients,
        lab=data.get("labtitular"),
        prescription=data.get("cpresc"),
    )

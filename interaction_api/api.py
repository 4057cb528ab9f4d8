from concurrent.futures import ThreadPoolExecutor
from typing import List, Literal, Optional
import logging
import threading

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

from interaction_api.config import configure_logging, load_settings
from interaction_api.data_model import (
    KnownInteraction,
    Severity,
    medication_to_dict,
    verdict_to_dict,
)
from interaction_api.interaction_resolver import InteractionResolver
from interaction_api.interaction_storage import StorageError, build_interaction_store, interaction_to_dict
from interaction_api.knowledge_base import KnowledgeBase
from interaction_api.registry_client import CimaRegistryClient, RegistryError

logger = logging.getLogger("uvicorn.error")

# Guards lazy construction of the shared app-state services
_state_lock = threading.Lock()


# -----------------------------
# Request models
# -----------------------------
class KnownInteractionInput(BaseModel):
    principles: List[str] = Field(..., min_length=2, max_length=2)
    severity: Literal["high", "medium", "low"]
    description: str = Field(..., min_length=1)
    recommendation: str = ""

    @field_validator("principles")
    @classmethod
    def principles_not_blank(cls, value: List[str]) -> List[str]:
        cleaned = [p.strip() for p in value]
        if not all(cleaned):
            raise ValueError("active ingredient names must not be blank")
        return cleaned


# -----------------------------
# Dependencies
# -----------------------------
def get_knowledge_base(request: Request) -> KnowledgeBase:
    state = request.app.state
    if state.knowledge_base is None:
        with _state_lock:
            if state.knowledge_base is None:
                state.knowledge_base = KnowledgeBase(build_interaction_store(load_settings()))
    return state.knowledge_base


def get_registry(request: Request) -> CimaRegistryClient:
    state = request.app.state
    if state.registry_client is None:
        with _state_lock:
            if state.registry_client is None:
                settings = load_settings()
                state.registry_client = CimaRegistryClient(
                    base_url=settings.cima_base_url, timeout=settings.registry_timeout
                )
    return state.registry_client


def get_resolver(kb: KnowledgeBase = Depends(get_knowledge_base)) -> InteractionResolver:
    return InteractionResolver(kb)


def create_app(knowledge_base: Optional[KnowledgeBase] = None,
               registry_client: Optional[CimaRegistryClient] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Medication Interaction API")
    app.state.knowledge_base = knowledge_base
    app.state.registry_client = registry_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    @app.head("/")
    def root():
        return {"message": "Welcome to the Medication Interaction API"}

    @app.get("/api/medications")
    def search_medications(name: str = Query(""), registry: CimaRegistryClient = Depends(get_registry)):
        try:
            return registry.search_medications(name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RegistryError as e:
            logger.error(f"Error searching medications: {e}")
            raise HTTPException(status_code=502, detail="Error searching medications")

    @app.get("/api/medications/{registry_id}")
    def get_medication(registry_id: str, registry: CimaRegistryClient = Depends(get_registry)):
        try:
            return registry.get_medication(registry_id)
        except RegistryError as e:
            logger.error(f"Error fetching medication {registry_id}: {e}")
            raise HTTPException(status_code=502, detail="Error fetching medication")

    @app.get("/api/medications/{registry_id}/interactions")
    def get_interactions_section(registry_id: str, registry: CimaRegistryClient = Depends(get_registry)):
        return {"registry_id": registry_id, "content": registry.get_interactions_text(registry_id)}

    @app.get("/api/compare")
    def compare(
        registry_id_1: str = Query(""),
        registry_id_2: str = Query(""),
        registry: CimaRegistryClient = Depends(get_registry),
        resolver: InteractionResolver = Depends(get_resolver),
    ):
        if not registry_id_1 or not registry_id_2:
            raise HTTPException(status_code=400, detail="Two registry ids are required")
        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                med1_future = pool.submit(registry.get_medication_record, registry_id_1)
                med2_future = pool.submit(registry.get_medication_record, registry_id_2)
                text1_future = pool.submit(registry.get_interactions_text, registry_id_1)
                text2_future = pool.submit(registry.get_interactions_text, registry_id_2)
                med1, med2 = med1_future.result(), med2_future.result()
                text1, text2 = text1_future.result(), text2_future.result()
        except RegistryError as e:
            logger.error(f"Error comparing {registry_id_1} and {registry_id_2}: {e}")
            raise HTTPException(status_code=502, detail="Error fetching medications from registry")
        except Exception as e:
            logger.error(f"Error in /api/compare endpoint: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

        verdict = resolver.resolve(
            med1.active_ingredients,
            med2.active_ingredients,
            text1,
            text2,
            medication_names=(med1.name or "the first medication", med2.name or "the second medication"),
        )
        return {
            "medication_1": medication_to_dict(med1),
            "medication_2": medication_to_dict(med2),
            "interaction": verdict_to_dict(verdict),
        }

    @app.get("/api/known-interactions")
    def list_known_interactions(kb: KnowledgeBase = Depends(get_knowledge_base)):
        return [interaction_to_dict(i) for i in kb.get_interactions()]

    @app.post("/api/known-interactions", status_code=201)
    def save_known_interaction(payload: KnownInteractionInput, kb: KnowledgeBase = Depends(get_knowledge_base)):
        record = KnownInteraction(
            principles=(payload.principles[0], payload.principles[1]),
            severity=Severity(payload.severity),
            description=payload.description,
            recommendation=payload.recommendation,
        )
        try:
            kb.add_interaction(record)
        except StorageError:
            raise HTTPException(status_code=500, detail="Could not save interaction")
        return interaction_to_dict(record)

    return app


app = create_app()

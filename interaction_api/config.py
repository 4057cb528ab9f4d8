# config.py

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file at the very beginning
load_dotenv()

CIMA_BASE_URL = os.getenv("CIMA_BASE_URL", "https://cima.aemps.es/cima/rest")
REGISTRY_TIMEOUT = float(os.getenv("REGISTRY_TIMEOUT", "10"))
REGISTRY_CACHE_TTL = int(os.getenv("REGISTRY_CACHE_TTL", "3600"))  # one hour

KB_BACKEND = os.getenv("KB_BACKEND", "file")
INTERACTIONS_FILE = os.getenv(
    "INTERACTIONS_FILE", str(Path(__file__).parent / "data" / "interactions.json")
)

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_TABLE = os.getenv("SUPABASE_TABLE", "known_interactions")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass
class Settings:
    cima_base_url: str = CIMA_BASE_URL
    registry_timeout: float = REGISTRY_TIMEOUT
    registry_cache_ttl: int = REGISTRY_CACHE_TTL
    kb_backend: str = KB_BACKEND
    interactions_file: str = INTERACTIONS_FILE
    supabase_url: Optional[str] = SUPABASE_URL
    supabase_key: Optional[str] = SUPABASE_KEY
    supabase_table: str = SUPABASE_TABLE
    log_level: str = LOG_LEVEL


def load_settings() -> Settings:
    return Settings()


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.getLogger("uvicorn.error").setLevel(level.upper())

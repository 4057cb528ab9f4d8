# interaction_storage.py

import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from interaction_api.data_model import KnownInteraction, Severity


class StorageError(Exception):
    pass


# --------------------------
# Record <-> dict conversion
# --------------------------

def interaction_to_dict(interaction: KnownInteraction) -> dict:
    return {
        "principles": list(interaction.principles),
        "severity": interaction.severity.value,
        "description": interaction.description,
        "recommendation": interaction.recommendation,
    }


def dict_to_interaction(data: dict) -> KnownInteraction:
    """Build a record from its stored form. Raises StorageError on bad shape."""
    try:
        principles = data["principles"]
        if len(principles) != 2:
            raise ValueError(f"expected two principles, got {len(principles)}")
        return KnownInteraction(
            principles=(str(principles[0]), str(principles[1])),
            severity=Severity(data["severity"]),
            description=data.get("description", ""),
            recommendation=data.get("recommendation", ""),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed interaction record {data!r}: {e}") from e


# --------------------------
# Backends
# --------------------------

class JsonFileInteractionStore:
    """Ordered interaction list kept in a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> List[KnownInteraction]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"{self.path} does not hold a list of interactions")
        return [dict_to_interaction(d) for d in data]

    def save_all(self, records: List[KnownInteraction]) -> None:
        payload = [interaction_to_dict(r) for r in records]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e

    def append(self, record: KnownInteraction) -> None:
        records = self.load() if self.exists() else []
        records.append(record)
        self.save_all(records)


class InMemoryInteractionStore:
    def __init__(self, records: Optional[List[KnownInteraction]] = None):
        self._records = list(records) if records is not None else None

    def exists(self) -> bool:
        return self._records is not None

    def load(self) -> List[KnownInteraction]:
        if self._records is None:
            raise StorageError("In-memory store has not been initialised")
        return list(self._records)

    def save_all(self, records: List[KnownInteraction]) -> None:
        self._records = list(records)

    def append(self, record: KnownInteraction) -> None:
        if self._records is None:
            self._records = []
        self._records.append(record)


class SupabaseInteractionStore:
    """
    Interactions kept in a Supabase table with columns
    id (serial), principles (json), severity, description, recommendation.
    """

    def __init__(self, client, table: str = "known_interactions"):
        self.client = client
        self.table = table

    def _rows(self) -> list:
        try:
            response = self.client.table(self.table).select("*").order("id").execute()
        except Exception as e:
            raise StorageError(f"Supabase read from '{self.table}' failed: {e}") from e
        return response.data or []

    def exists(self) -> bool:
        return bool(self._rows())

    def load(self) -> List[KnownInteraction]:
        return [dict_to_interaction(row) for row in self._rows()]

    def save_all(self, records: List[KnownInteraction]) -> None:
        # Only used for seeding an empty table; rows are appended in order.
        if not records:
            return
        self._insert([interaction_to_dict(r) for r in records])

    def append(self, record: KnownInteraction) -> None:
        self._insert([interaction_to_dict(record)])

    def _insert(self, rows: List[dict]) -> None:
        try:
            self.client.table(self.table).insert(rows).execute()
        except Exception as e:
            raise StorageError(f"Supabase write to '{self.table}' failed: {e}") from e


def build_interaction_store(settings):
    """Pick the storage backend named by settings.kb_backend."""
    backend = (settings.kb_backend or "file").lower()
    if backend == "file":
        return JsonFileInteractionStore(settings.interactions_file)
    if backend == "memory":
        return InMemoryInteractionStore()
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("KB_BACKEND=supabase requires SUPABASE_URL and SUPABASE_KEY")
        from supabase import create_client

        client = create_client(settings.supabase_url, settings.supabase_key)
        return SupabaseInteractionStore(client, table=settings.supabase_table)
    raise ValueError(f"Unknown KB_BACKEND '{settings.kb_backend}'")

import threading

import pytest

from interaction_api.data_model import KnownInteraction, Severity
from interaction_api.interaction_storage import InMemoryInteractionStore, JsonFileInteractionStore, StorageError
from interaction_api.knowledge_base import BUILTIN_INTERACTIONS, KnowledgeBase


@pytest.fixture
def kb():
    return KnowledgeBase(InMemoryInteractionStore())


def test_seeds_empty_store(kb):
    assert kb.get_interactions() == BUILTIN_INTERACTIONS


def test_does_not_reseed_existing_store():
    existing = [KnownInteraction(("a", "b"), Severity.LOW, "d", "r")]
    kb = KnowledgeBase(InMemoryInteractionStore(existing))
    assert kb.get_interactions() == existing


@pytest.mark.parametrize("a,b", [("paracetamol", "ibuprofeno"), ("ibuprofeno", "paracetamol")])
def test_find_interaction_is_order_independent(kb, a, b):
    found = kb.find_interaction(a, b)
    assert found is not None
    assert found.severity == Severity.LOW
    assert kb.find_interaction(a, b) == kb.find_interaction(b, a)


def test_find_interaction_normalizes_input(kb):
    found = kb.find_interaction("  Warfarina ", "ASPIRINA")
    assert found.severity == Severity.HIGH


def test_find_interaction_requires_both_members(kb):
    assert kb.find_interaction("warfarina", "warfarina") is None
    assert kb.find_interaction("warfarina", "paracetamol") is None
    assert kb.find_interaction("", "aspirina") is None


def test_near_duplicate_spellings_are_not_unified(kb):
    assert kb.find_interaction("warfarina sodica", "aspirina") is None


def test_add_interaction_is_visible_to_lookup(kb):
    record = KnownInteraction(("litio", "ibuprofeno"), Severity.HIGH, "Raised lithium levels.", "Monitor lithium.")
    kb.add_interaction(record)
    assert kb.find_interaction("ibuprofeno", "litio") == record
    assert kb.get_interactions()[-1] == record


def test_saved_interaction_survives_restart(tmp_path):
    path = tmp_path / "interactions.json"
    record = KnownInteraction(("metformina", "contraste yodado"), Severity.MEDIUM, "Lactic acidosis risk.", "Pause metformin.")

    KnowledgeBase(JsonFileInteractionStore(path)).add_interaction(record)

    restarted = KnowledgeBase(JsonFileInteractionStore(path))
    assert restarted.find_interaction("contraste yodado", "metformina") == record
    assert len(restarted.get_interactions()) == len(BUILTIN_INTERACTIONS) + 1


def test_corrupt_store_falls_back_to_seed(tmp_path, caplog):
    path = tmp_path / "interactions.json"
    path.write_text("{not json", encoding="utf-8")

    kb = KnowledgeBase(JsonFileInteractionStore(path))

    assert kb.get_interactions() == BUILTIN_INTERACTIONS
    assert kb.find_interaction("aspirina", "warfarina").severity == Severity.HIGH
    assert "falling back" in caplog.text


class FailingStore(InMemoryInteractionStore):
    def append(self, record):
        raise StorageError("disk full")


def test_add_interaction_raises_storage_error():
    kb = KnowledgeBase(FailingStore())
    with pytest.raises(StorageError):
        kb.add_interaction(KnownInteraction(("a", "b"), Severity.LOW, "d", "r"))


def test_concurrent_adds_do_not_lose_records(tmp_path):
    kb = KnowledgeBase(JsonFileInteractionStore(tmp_path / "interactions.json"))
    records = [KnownInteraction((f"drug{i}", "x"), Severity.LOW, "d", "r") for i in range(20)]

    threads = [threading.Thread(target=kb.add_interaction, args=(r,)) for r in records]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stored = kb.get_interactions()
    assert len(stored) == len(BUILTIN_INTERACTIONS) + len(records)
    for r in records:
        assert r in stored


def test_add_after_store_removed_keeps_seed(tmp_path):
    path = tmp_path / "interactions.json"
    kb = KnowledgeBase(JsonFileInteractionStore(path))
    assert kb.find_interaction("warfarina", "aspirina").severity == Severity.HIGH
    path.unlink()

    record = KnownInteraction(("a", "b"), Severity.LOW, "d", "r")
    kb.add_interaction(record)

    assert kb.find_interaction("warfarina", "aspirina").severity == Severity.HIGH
    assert kb.get_interactions() == BUILTIN_INTERACTIONS + [record]


class UnseededStore(InMemoryInteractionStore):
    # Seeding fails at startup, so the store stays uninitialised
    def save_all(self, records):
        if not getattr(self, "ready", False):
            self.ready = True
            raise StorageError("not ready")
        super().save_all(records)


def test_add_after_failed_seed_keeps_seed():
    kb = KnowledgeBase(UnseededStore())
    assert not kb.store.exists()

    record = KnownInteraction(("a", "b"), Severity.LOW, "d", "r")
    kb.add_interaction(record)

    assert kb.get_interactions() == BUILTIN_INTERACTIONS + [record]

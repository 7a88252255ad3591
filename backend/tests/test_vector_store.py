"""Tests for the flat-file vector store."""

import math
import random
from pathlib import Path

import orjson
import pytest

from crop_rag.core.errors import StoreError
from crop_rag.models.entities import VectorRecord
from crop_rag.retrieval.vector_store import VectorStore, cosine_similarity


def _record(record_id: str, values: list[float], source: str = "doc.txt") -> VectorRecord:
    return VectorRecord(id=record_id, values=values, metadata={"source": source, "page": None}, text=record_id)


def test_self_similarity_round_trip(store_path: Path) -> None:
    store = VectorStore(store_path)
    record = _record("a", [0.3, -0.2, 0.9])
    store.upsert([record])

    results = store.query(record.values, 1)

    assert results[0].id == "a"
    assert math.isclose(results[0].score, 1.0, abs_tol=1e-9)


@pytest.mark.parametrize("values", [[], [0.0, 0.0, 0.0]])
def test_rejects_empty_and_zero_vectors(store_path: Path, values: list[float]) -> None:
    store = VectorStore(store_path)
    assert store.upsert([_record("bad", values)]) == 0
    assert store.size == 0
    assert not store_path.exists()


def test_upsert_replaces_in_place(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record("a", [1.0, 0.0]), _record("b", [0.0, 1.0])])
    store.upsert([_record("a", [0.0, 1.0], source="new.txt")])

    assert store.size == 2
    results = store.query([0.0, 1.0], 5)
    assert [result.id for result in results] == ["a", "b"]
    assert results[0].metadata["source"] == "new.txt"


def test_snapshot_is_reloaded(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record("a", [1.0, 2.0])])

    payload = orjson.loads(store_path.read_bytes())
    assert payload == [{"id": "a", "values": [1.0, 2.0], "metadata": {"source": "doc.txt", "page": None}, "text": "a"}]

    reloaded = VectorStore(store_path)
    assert reloaded.size == 1
    assert reloaded.dim == 2


def test_clear_persists_empty_snapshot(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record("a", [1.0, 2.0])])
    store.clear()

    assert store.size == 0
    assert store.dim is None
    assert orjson.loads(store_path.read_bytes()) == []
    assert store.query([1.0, 2.0]) == []


def test_relevance_floor_and_ordering(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert(
        [
            _record("orthogonal", [0.0, 1.0]),
            _record("close", [1.0, 0.1]),
            _record("closer", [1.0, 0.0]),
            _record("opposite", [-1.0, 0.0]),
            _record("barely", [0.1, 1.0]),
        ]
    )
    results = store.query([1.0, 0.0], 10)

    assert [result.id for result in results] == ["closer", "close"]
    assert all(result.score > 0.1 for result in results)


def test_floor_holds_for_random_vectors(store_path: Path) -> None:
    rng = random.Random(7)
    store = VectorStore(store_path)
    store.upsert([_record(f"r{i}", [rng.uniform(-1, 1) for _ in range(8)]) for i in range(50)])
    for _ in range(10):
        query = [rng.uniform(-1, 1) for _ in range(8)]
        results = store.query(query, 50)
        assert all(result.score > 0.1 for result in results)
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)


def test_top_k_limits_results(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record(f"r{i}", [1.0, i / 10]) for i in range(6)])
    assert len(store.query([1.0, 0.0], 3)) == 3
    assert store.query([1.0, 0.0], 0) == []


def test_mismatched_dimension_is_rejected(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record("a", [1.0, 0.0, 0.0])])
    assert store.upsert([_record("b", [1.0, 0.0])]) == 0
    assert store.size == 1


def test_sources_counts_chunks(store_path: Path) -> None:
    store = VectorStore(store_path)
    store.upsert([_record("a", [1.0]), _record("b", [2.0]), _record("c", [3.0], source="other.pdf")])
    assert store.sources() == {"doc.txt": 2, "other.pdf": 1}


def test_corrupt_snapshot_raises(store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json")
    with pytest.raises(StoreError):
        VectorStore(store_path)


def test_cosine_similarity_is_symmetric() -> None:
    rng = random.Random(3)
    for _ in range(100):
        a = [rng.uniform(-5, 5) for _ in range(6)]
        b = [rng.uniform(-5, 5) for _ in range(6)]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)


def test_cosine_similarity_edge_cases() -> None:
    assert cosine_similarity([], [1.0]) == 0.0
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == -1.0
    assert cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([float("nan"), 1.0], [1.0, 1.0]) == 0.0


def test_failed_save_raises_and_rolls_back(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = VectorStore(blocker / "vectorstore.json")

    with pytest.raises(StoreError):
        store.upsert([_record("a", [1.0, 0.0])])
    assert store.size == 0
    assert store.dim is None

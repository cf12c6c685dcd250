"""
In-memory vector store and cosine similarity.
"""

import dataclasses
import threading

import numpy as np
import pytest
from unittest.mock import patch

from verifact.vector.index import IVectorStore, InMemoryVectorStore, cosine_similarity
from verifact.vector.types import Ready, VectorRecord


def unit(position: int, dimension: int = 384) -> list:
    vector = [0.0] * dimension
    vector[position % dimension] = 1.0
    return vector


def record(record_id: str, embedding, record_type: str = "article", **metadata) -> VectorRecord:
    return VectorRecord(id=record_id, embedding=list(embedding), metadata={"type": record_type, **metadata})


@pytest.fixture
def store():
    store = InMemoryVectorStore()
    store.initialize()
    return store


def test_vector_store_interface():
    """Test that InMemoryVectorStore implements IVectorStore interface."""
    store = InMemoryVectorStore()

    assert isinstance(store, IVectorStore)
    result = store.initialize()
    assert isinstance(result, Ready)
    assert result.store is store
    assert not result.degraded


def test_add_single_record(store):
    """Test adding a single vector record."""
    assert store.upsert(record("test_id", unit(0), title="Sky color explained"))

    results = store.query(unit(0), top_k=1)
    assert len(results) == 1
    assert results[0].id == "test_id"
    assert results[0].score == pytest.approx(1.0)
    assert results[0].metadata["title"] == "Sky color explained"


def test_search_similarity_ordering(store):
    """Results come back in non-increasing score order, at most top_k."""
    rng = np.random.default_rng(7)
    for i in range(30):
        store.upsert(record(f"r{i}", rng.normal(size=384)))

    results = store.query(rng.normal(size=384).tolist(), top_k=10)

    assert len(results) == 10
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_top_k_larger_than_store(store):
    store.upsert(record("only", unit(1)))

    assert len(store.query(unit(1), top_k=50)) == 1


def test_non_positive_top_k_returns_nothing(store):
    store.upsert(record("only", unit(1)))

    assert store.query(unit(1), top_k=0) == []


def test_type_filter(store):
    """Querying for fact-checks never returns articles."""
    for i in range(5):
        store.upsert(record(f"article_{i}", unit(i), "article"))
        store.upsert(record(f"factcheck_{i}", unit(i), "factcheck"))

    factchecks = store.query(unit(0), top_k=10, type_filter="factcheck")
    articles = store.query(unit(0), top_k=10, type_filter="article")

    assert len(factchecks) == 5
    assert all(r.metadata["type"] == "factcheck" for r in factchecks)
    assert all(r.metadata["type"] == "article" for r in articles)
    assert factchecks[0].id == "factcheck_0"


def test_unknown_type_filter_returns_nothing(store):
    store.upsert(record("a", unit(0)))

    assert store.query(unit(0), top_k=5, type_filter="tweet") == []


def test_capacity_evicts_oldest_first(store):
    """1001 inserts leave 1000 records; the first one is gone, the last one present."""
    for i in range(1001):
        store.upsert(record(f"rec_{i}", unit(i)))

    assert len(store) == 1000
    assert "rec_0" not in store
    assert "rec_1" in store
    assert "rec_1000" in store
    assert store.stats().total_vectors == 1000


def test_eviction_ignores_reads():
    """FIFO: querying a record does not protect it from eviction."""
    store = InMemoryVectorStore(capacity=3)
    store.initialize()
    for name in ("a", "b", "c"):
        store.upsert(record(name, unit(ord(name))))

    store.query(unit(ord("a")), top_k=1)
    store.upsert(record("d", unit(ord("d"))))

    assert "a" not in store
    assert all(name in store for name in ("b", "c", "d"))


def test_upsert_overwrites_existing_id(store):
    """Test that an upsert with an existing id replaces the record."""
    store.upsert(record("same", unit(0), title="old"))
    store.upsert(record("same", unit(1), title="new"))

    assert len(store) == 1
    results = store.query(unit(1), top_k=1)
    assert results[0].id == "same"
    assert results[0].metadata["title"] == "new"


def test_dimension_mismatch_rejected(store):
    """A 384-dim store refuses vectors of another dimension."""
    assert store.upsert(record("short", [1.0, 0.0, 0.0])) is False
    assert len(store) == 0


def test_query_with_mismatched_dimension_scores_zero(store):
    store.upsert(record("a", unit(0)))

    results = store.query([1.0, 0.0], top_k=1)

    assert len(results) == 1
    assert results[0].score == 0.0


def test_empty_search(store):
    """Test searching an empty store."""
    assert store.query(unit(0), top_k=5) == []


def test_query_failure_returns_empty(store):
    store.upsert(record("a", unit(0)))

    with patch.object(store, "_query", side_effect=RuntimeError("corrupt")):
        assert store.query(unit(0), top_k=5) == []


def test_returned_metadata_is_a_copy(store):
    store.upsert(record("a", unit(0), title="original"))

    store.query(unit(0), top_k=1)[0].metadata["title"] = "changed"

    assert store.query(unit(0), top_k=1)[0].metadata["title"] == "original"


def test_stats(store):
    store.upsert(record("a", unit(0)))
    stats = store.stats()

    assert stats.backend == "memory"
    assert stats.total_vectors == 1
    assert stats.dimension == 384
    assert stats.to_dict()["totalVectors"] == 1


def test_concurrent_upserts_and_queries():
    """Writers and readers sharing the store never corrupt it."""
    store = InMemoryVectorStore(capacity=100)
    store.initialize()
    errors = []

    def writer(offset):
        try:
            for i in range(300):
                store.upsert(record(f"w{offset}_{i}", unit(offset + i)))
        except Exception as e:
            errors.append(e)

    def reader():
        try:
            for _ in range(100):
                results = store.query(unit(3), top_k=5)
                assert len(results) <= 5
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store) == 100


def test_record_type_is_required_and_immutable():
    with pytest.raises(ValueError):
        VectorRecord(id="x", embedding=unit(0), metadata={"type": "tweet"})

    rec = record("x", unit(0))
    with pytest.raises(dataclasses.FrozenInstanceError):
        rec.id = "y"


class TestCosineSimilarity:

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_is_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_mismatched_dimensions_is_zero(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_bounds_and_symmetry(self):
        rng = np.random.default_rng(42)
        for _ in range(50):
            a = rng.normal(size=16).tolist()
            b = rng.normal(size=16).tolist()
            score = cosine_similarity(a, b)
            assert -1.0 <= score <= 1.0
            assert score == pytest.approx(cosine_similarity(b, a))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Vector store interface and the in-process fallback backend.

Every backend implements the private hooks (_initialize, _upsert, _query, _stats);
the public methods wrap them with the shared failure policy: queries degrade to an
empty list, writes are logged and reported as False, initialization never raises.
"""

import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np

from .types import (
    EMBED_DIM,
    RECORD_TYPES,
    Degraded,
    InitResult,
    QueryResult,
    Ready,
    StoreStats,
    VectorRecord,
)
from ..core.errors import QueryFailure, UpsertFailure
from ..util.logging import logger

MEMORY_STORE_CAPACITY = 1000


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 for zero-magnitude or mismatched vectors."""
    if len(vec_a) != len(vec_b) or len(vec_a) == 0:
        return 0.0

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    magnitude = np.linalg.norm(a) * np.linalg.norm(b)
    if magnitude == 0 or not np.isfinite(magnitude):
        return 0.0

    similarity = float(np.dot(a, b) / magnitude)
    return max(-1.0, min(1.0, similarity))


class IVectorStore(ABC):
    """Abstract interface for vector storage operations."""

    backend = "abstract"

    def __init__(self, dimension: int = EMBED_DIM):
        self.dimension = dimension

    def initialize(self) -> InitResult:
        """Bring the backend up. Returns Ready(self) or Degraded(reason); never raises."""
        try:
            self._initialize()
        except Exception as e:
            reason = f"{self.backend} initialization failed: {e}"
            logger.log_backend_init(self.backend, "degraded", {"reason": reason})
            return Degraded(reason=reason)

        logger.log_backend_init(self.backend, "ready", {"dimension": self.dimension})
        return Ready(store=self)

    def upsert(self, record: VectorRecord) -> bool:
        """Insert or overwrite a record by id. Failures are logged and reported as False."""
        try:
            if len(record.embedding) != self.dimension:
                raise UpsertFailure(
                    f"Vector dimension {len(record.embedding)} does not match expected dimension {self.dimension}"
                )
            self._upsert(record)
        except Exception as e:
            logger.log_vector_operation(
                "upsert", record.id,
                {"backend": self.backend, "error": str(e)},
                status="failed"
            )
            return False

        logger.log_vector_operation("upsert", record.id, {"backend": self.backend, "type": record.type})
        return True

    def query(self, query_vector: Sequence[float], top_k: int = 10,
              type_filter: Optional[str] = None) -> List[QueryResult]:
        """Return up to top_k matches ranked by descending score. Failures return []."""
        if top_k <= 0:
            return []

        if type_filter is not None and type_filter not in RECORD_TYPES:
            logger.warning(f"Unknown record type filter '{type_filter}', returning no results")
            return []

        try:
            results = self._query(list(query_vector), top_k, type_filter)
        except Exception as e:
            failure = e if isinstance(e, QueryFailure) else QueryFailure(str(e))
            logger.log_query_failure(self.backend, failure, {"top_k": top_k, "type": type_filter})
            return []

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    def stats(self) -> StoreStats:
        """Observability snapshot; failures return zero stats."""
        try:
            return self._stats()
        except Exception as e:
            logger.error(f"Failed to read {self.backend} stats: {e}")
            return StoreStats(backend=self.backend, total_vectors=0, dimension=self.dimension)

    @abstractmethod
    def _initialize(self) -> None:
        """Connect and provision; raise on failure."""
        pass

    @abstractmethod
    def _upsert(self, record: VectorRecord) -> None:
        """Write one record; raise on failure."""
        pass

    @abstractmethod
    def _query(self, query_vector: List[float], top_k: int,
               type_filter: Optional[str]) -> List[QueryResult]:
        """Run a similarity query; raise on failure."""
        pass

    @abstractmethod
    def _stats(self) -> StoreStats:
        pass


class InMemoryVectorStore(IVectorStore):
    """Bounded in-process store ranking by brute-force cosine similarity.

    Records live in insertion order; once capacity is exceeded the oldest
    inserted record is evicted (FIFO, reads do not refresh a record).
    """

    backend = "memory"

    def __init__(self, dimension: int = EMBED_DIM, capacity: int = MEMORY_STORE_CAPACITY):
        super().__init__(dimension)
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._records: List[VectorRecord] = []
        self._lock = threading.Lock()

    def _initialize(self) -> None:
        with self._lock:
            self._records = []

    def _upsert(self, record: VectorRecord) -> None:
        stored = VectorRecord(
            id=record.id,
            embedding=[float(x) for x in record.embedding],
            metadata=dict(record.metadata)
        )

        with self._lock:
            records = list(self._records)
            for position, existing in enumerate(records):
                if existing.id == stored.id:
                    records[position] = stored
                    break
            else:
                records.append(stored)
                if len(records) > self.capacity:
                    records = records[-self.capacity:]
            # Readers keep scanning their old snapshot; swap in one assignment
            self._records = records

    def _query(self, query_vector: List[float], top_k: int,
               type_filter: Optional[str]) -> List[QueryResult]:
        with self._lock:
            snapshot = self._records

        results = []
        for record in snapshot:
            if type_filter is not None and record.type != type_filter:
                continue
            results.append(QueryResult(
                id=record.id,
                score=cosine_similarity(query_vector, record.embedding),
                metadata=dict(record.metadata)
            ))
        return results

    def _stats(self) -> StoreStats:
        with self._lock:
            count = len(self._records)
        return StoreStats(
            backend=self.backend,
            total_vectors=count,
            dimension=self.dimension,
            index_fullness=count / self.capacity,
            namespaces={"": count}
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        with self._lock:
            return any(r.id == record_id for r in self._records)

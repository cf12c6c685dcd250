"""
Vector store data model: records, ranked results, initialization outcomes and stats.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Union

if TYPE_CHECKING:
    from .index import IVectorStore

EMBED_DIM = 384

ARTICLE_TYPE = "article"
FACTCHECK_TYPE = "factcheck"
RECORD_TYPES = (ARTICLE_TYPE, FACTCHECK_TYPE)


@dataclass(frozen=True)
class VectorRecord:
    """Represents a vector record with metadata."""

    id: str
    """Unique identifier for the vector record"""

    embedding: List[float]
    """The vector representation of the content"""

    metadata: Dict[str, object]
    """Metadata; always carries the record 'type'"""

    def __post_init__(self):
        if not self.id:
            raise ValueError("VectorRecord id cannot be empty")
        if self.metadata.get("type") not in RECORD_TYPES:
            raise ValueError(f"VectorRecord type must be one of: {list(RECORD_TYPES)}")

    @property
    def type(self) -> str:
        return self.metadata["type"]


@dataclass
class QueryResult:
    """Represents a search result from vector store."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Cosine similarity of the match"""

    metadata: Dict[str, object]
    """Metadata associated with the matched record"""


@dataclass
class StoreStats:
    """Observability snapshot of a vector store."""

    backend: str
    total_vectors: int
    dimension: int
    index_fullness: float = 0.0
    namespaces: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "backend": self.backend,
            "totalVectors": self.total_vectors,
            "dimension": self.dimension,
            "indexFullness": self.index_fullness,
            "namespaces": dict(self.namespaces),
        }


@dataclass(frozen=True)
class Ready:
    """The configured backend initialized and is serving."""

    store: "IVectorStore"

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded:
    """The configured backend is unusable; store holds the in-memory replacement once resolved."""

    reason: str
    store: Optional["IVectorStore"] = None

    @property
    def degraded(self) -> bool:
        return True


InitResult = Union[Ready, Degraded]

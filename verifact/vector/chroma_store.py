"""
Local vector database backend on a Chroma server.
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .index import IVectorStore
from .types import EMBED_DIM, QueryResult, StoreStats, VectorRecord
from ..core.errors import InitializationFailure
from ..util.logging import logger

DEFAULT_COLLECTION_NAME = "news-factcheck-collection"
DEFAULT_CHROMA_URL = "http://localhost:8000"


def _scalar_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Chroma only stores str/int/float/bool values: drop None, JSON-encode the rest."""
    cleaned = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            cleaned[key] = value
        else:
            cleaned[key] = json.dumps(value, default=str)
    return cleaned


class ChromaVectorStore(IVectorStore):
    """Chroma-backed implementation of IVectorStore using a cosine HNSW collection."""

    backend = "chroma"

    def __init__(self, url: str = DEFAULT_CHROMA_URL, collection_name: str = DEFAULT_COLLECTION_NAME,
                 dimension: int = EMBED_DIM, client: Any = None):
        super().__init__(dimension)
        self.url = url
        self.collection_name = collection_name
        self._client = client
        self._collection = None

    def _initialize(self) -> None:
        if self._client is None:
            try:
                import chromadb
            except ImportError:
                raise InitializationFailure("Chroma not installed. Please install the chromadb package.")

            parsed = urlparse(self.url)
            self._client = chromadb.HttpClient(
                host=parsed.hostname or "localhost",
                port=parsed.port or 8000,
                ssl=parsed.scheme == "https"
            )

        self._collection = self._client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"}
        )
        logger.info(f"Using Chroma collection '{self.collection_name}' at {self.url}")

    def _require_collection(self):
        if self._collection is None:
            raise RuntimeError("Chroma collection not initialized")
        return self._collection

    def _upsert(self, record: VectorRecord) -> None:
        self._require_collection().upsert(
            ids=[record.id],
            embeddings=[[float(x) for x in record.embedding]],
            metadatas=[_scalar_metadata(record.metadata)]
        )

    def _query(self, query_vector: List[float], top_k: int,
               type_filter: Optional[str]) -> List[QueryResult]:
        params: Dict[str, Any] = {
            "query_embeddings": [query_vector],
            "n_results": top_k,
            "include": ["metadatas", "distances"],
        }
        if type_filter is not None:
            params["where"] = {"type": type_filter}

        response = self._require_collection().query(**params)

        ids = (response.get("ids") or [[]])[0]
        distances = (response.get("distances") or [[]])[0]
        metadatas = (response.get("metadatas") or [[]])[0]

        results = []
        for position, record_id in enumerate(ids):
            metadata = metadatas[position] if position < len(metadatas) else None
            results.append(QueryResult(
                id=record_id,
                # cosine distance -> similarity
                score=1.0 - float(distances[position]),
                metadata=dict(metadata or {})
            ))
        return results

    def _stats(self) -> StoreStats:
        count = int(self._require_collection().count())
        return StoreStats(
            backend=self.backend,
            total_vectors=count,
            dimension=self.dimension,
            namespaces={self.collection_name: count}
        )

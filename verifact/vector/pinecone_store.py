"""
Managed index backend on Pinecone serverless.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from .index import IVectorStore
from .types import EMBED_DIM, QueryResult, StoreStats, VectorRecord
from ..core.errors import InitializationFailure
from ..util.logging import logger

DEFAULT_INDEX_NAME = "verifact-factcheck-index"


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK model or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorStore(IVectorStore):
    """Pinecone-backed implementation of IVectorStore (cosine metric)."""

    backend = "pinecone"

    def __init__(
        self,
        api_key: Optional[str],
        index_name: str = DEFAULT_INDEX_NAME,
        dimension: int = EMBED_DIM,
        cloud: str = "aws",
        region: str = "us-east-1",
        poll_interval: float = 5.0,
        ready_timeout: float = 300.0,
        client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize Pinecone vector store.

        Args:
            api_key: Pinecone API key; initialization degrades without one
            index_name: Index to use, created when missing
            dimension: Dimension of the vectors (default: 384 for hash embeddings)
            cloud: Serverless cloud used when creating the index
            region: Serverless region used when creating the index
            poll_interval: Seconds between readiness checks after index creation
            ready_timeout: Wall-clock budget for the index to report ready
            client: Pre-built Pinecone client (tests inject a mock here)
        """
        super().__init__(dimension)
        self.api_key = api_key
        self.index_name = index_name
        self.cloud = cloud
        self.region = region
        self.poll_interval = poll_interval
        self.ready_timeout = ready_timeout
        self._client = client
        self._sleep = sleep
        self._clock = clock
        self._index = None

    def _initialize(self) -> None:
        if self._client is None:
            if not self.api_key:
                raise InitializationFailure("PINECONE_API_KEY is not set")
            try:
                from pinecone import Pinecone
            except ImportError:
                raise InitializationFailure("Pinecone not installed. Please install the pinecone package.")
            self._client = Pinecone(api_key=self.api_key)

        existing = self._list_index_names()
        logger.info(f"Available Pinecone indexes: {existing}")

        if self.index_name not in existing:
            logger.info(f"Creating Pinecone index '{self.index_name}' (dimension={self.dimension}, metric=cosine)")
            self._create_index()
            self.wait_for_index_ready()
        else:
            description = self._client.describe_index(self.index_name)
            dimension = _field(description, "dimension")
            if dimension is not None and int(dimension) != self.dimension:
                raise InitializationFailure(
                    f"Index '{self.index_name}' has dimension {dimension}, expected {self.dimension}"
                )

        self._index = self._client.Index(self.index_name)

    def _list_index_names(self) -> List[str]:
        listing = self._client.list_indexes()
        if hasattr(listing, "names"):
            return list(listing.names())
        indexes = _field(listing, "indexes", listing) or []
        return [_field(index, "name") for index in indexes]

    def _create_index(self) -> None:
        from pinecone import ServerlessSpec

        self._client.create_index(
            name=self.index_name,
            dimension=self.dimension,
            metric="cosine",
            spec=ServerlessSpec(cloud=self.cloud, region=self.region)
        )

    def wait_for_index_ready(self) -> None:
        """Poll describe_index until ready; raise InitializationFailure once the budget is spent."""
        deadline = self._clock() + self.ready_timeout

        while True:
            try:
                description = self._client.describe_index(self.index_name)
                status = _field(description, "status")
                if _field(status, "ready", False):
                    logger.info(f"Pinecone index '{self.index_name}' is ready")
                    return
                logger.info("Waiting for index to be ready...")
            except Exception as e:
                logger.info(f"Waiting for index creation... ({e})")

            if self._clock() + self.poll_interval > deadline:
                raise InitializationFailure(
                    f"Index '{self.index_name}' not ready after {self.ready_timeout:.0f}s"
                )
            self._sleep(self.poll_interval)

    def _require_index(self):
        if self._index is None:
            raise RuntimeError("Pinecone index not initialized")
        return self._index

    def _upsert(self, record: VectorRecord) -> None:
        metadata = {k: v for k, v in record.metadata.items() if v is not None}
        self._require_index().upsert(vectors=[{
            "id": record.id,
            "values": [float(x) for x in record.embedding],
            "metadata": metadata
        }])

    def _query(self, query_vector: List[float], top_k: int,
               type_filter: Optional[str]) -> List[QueryResult]:
        params: Dict[str, Any] = {
            "vector": query_vector,
            "top_k": top_k,
            "include_metadata": True,
        }
        if type_filter is not None:
            params["filter"] = {"type": {"$eq": type_filter}}

        response = self._require_index().query(**params)

        return [
            QueryResult(
                id=_field(match, "id"),
                score=float(_field(match, "score", 0.0)),
                metadata=dict(_field(match, "metadata") or {})
            )
            for match in _field(response, "matches") or []
        ]

    def _stats(self) -> StoreStats:
        stats = self._require_index().describe_index_stats()
        namespaces = _field(stats, "namespaces") or {}
        return StoreStats(
            backend=self.backend,
            total_vectors=int(_field(stats, "total_vector_count", 0) or 0),
            dimension=int(_field(stats, "dimension", self.dimension) or self.dimension),
            index_fullness=float(_field(stats, "index_fullness", 0.0) or 0.0),
            namespaces={
                name: int(_field(summary, "vector_count", 0) or 0)
                for name, summary in namespaces.items()
            }
        )

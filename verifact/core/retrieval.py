"""
Retrieval orchestration: embed a claim once, then rank previously seen articles
and previously issued fact-checks against that single embedding.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .errors import EmbeddingHardFailure
from .schemas import Article, FactCheckVerdict
from ..vector.chunking import context_aware_chunk
from ..vector.embeddings import EmbeddingGenerator
from ..vector.index import IVectorStore
from ..vector.records import article_record, factcheck_record, new_record_id
from ..vector.types import ARTICLE_TYPE, FACTCHECK_TYPE, QueryResult, StoreStats
from ..util.logging import logger

ARTICLE_TOP_K = 10
FACTCHECK_TOP_K = 5
KEYWORD_TOP_K = 20


@dataclass
class RetrievalResult:
    """Evidence retrieved for one claim."""

    claim: str
    embedding: List[float]
    similar_articles: List[QueryResult] = field(default_factory=list)
    similar_factchecks: List[QueryResult] = field(default_factory=list)


class RetrievalOrchestrator:
    """
    Composes the embedding generator and the vector store.

    The article and fact-check queries for a claim are independent and run
    on a small thread pool. Both share one deadline of query_timeout seconds;
    a query that does not finish in time contributes no results. Writes run
    on the same pool and are abandoned after write_timeout seconds.
    """

    def __init__(self, embedder: EmbeddingGenerator, store: IVectorStore,
                 query_timeout: float = 10.0, executor: Optional[ThreadPoolExecutor] = None,
                 write_timeout: Optional[float] = None):
        self.embedder = embedder
        self.store = store
        self.query_timeout = query_timeout
        self.write_timeout = query_timeout if write_timeout is None else write_timeout
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="verifact-query")

    def embed(self, text: str) -> List[float]:
        """Embed text; any failure here is a hard failure for the caller."""
        try:
            embedding = self.embedder.embed(text)
        except EmbeddingHardFailure:
            raise
        except Exception as e:
            raise EmbeddingHardFailure(f"Embedding generation failed: {e}") from e

        if len(embedding) != self.store.dimension:
            raise EmbeddingHardFailure(
                f"Embedding has {len(embedding)} dimensions, store expects {self.store.dimension}"
            )
        return embedding

    def retrieve_for_claim(self, claim: str) -> RetrievalResult:
        """Rank similar articles (top 10) and prior fact-checks (top 5) for a claim."""
        start_time = time.monotonic()
        embedding = self.embed(claim)
        deadline = time.monotonic() + self.query_timeout

        articles_future = self._executor.submit(self.store.query, embedding, ARTICLE_TOP_K, ARTICLE_TYPE)
        factchecks_future = self._executor.submit(self.store.query, embedding, FACTCHECK_TOP_K, FACTCHECK_TYPE)

        result = RetrievalResult(
            claim=claim,
            embedding=embedding,
            similar_articles=self._collect(articles_future, ARTICLE_TYPE, deadline),
            similar_factchecks=self._collect(factchecks_future, FACTCHECK_TYPE, deadline)
        )

        logger.log_retrieval(
            claim,
            len(result.similar_articles),
            len(result.similar_factchecks),
            (time.monotonic() - start_time) * 1000
        )
        return result

    def _collect(self, future: Future, record_type: str, deadline: float) -> List[QueryResult]:
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"{record_type} query timed out after {self.query_timeout}s, continuing without it")
            return []

    def search_by_keywords(self, keywords: Sequence[str], top_k: int = KEYWORD_TOP_K) -> List[QueryResult]:
        """Unfiltered similarity search over the joined keywords."""
        embedding = self.embed(" ".join(keywords))
        deadline = time.monotonic() + self.query_timeout
        return self._collect(self._executor.submit(self.store.query, embedding, top_k), "keyword", deadline)

    def _write(self, record) -> bool:
        """Upsert on the pool; a write still running after write_timeout counts as failed."""
        future = self._executor.submit(self.store.upsert, record)
        try:
            return future.result(timeout=self.write_timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.log_vector_operation(
                "upsert", record.id,
                {"backend": self.store.backend, "error": f"timed out after {self.write_timeout}s"},
                status="failed"
            )
            return False

    def index_article(self, article: Article, embedding: Optional[List[float]] = None) -> Optional[str]:
        """Store an article; returns its record id, or None when the write failed."""
        if embedding is None:
            embedding = self.embed(article.embedding_text())

        record = article_record(article, embedding)
        return record.id if self._write(record) else None

    def index_article_chunks(self, article: Article) -> List[str]:
        """Store one record per article chunk; returns the ids that were written."""
        chunks = context_aware_chunk(article.content or article.description or article.title, "article")
        parent_id = article.id or new_record_id(ARTICLE_TYPE)

        stored = []
        for chunk_index, text in enumerate(chunks):
            record = article_record(
                article,
                self.embed(f"{article.title} {text}"),
                extra={
                    "content": text,
                    "chunk_index": chunk_index,
                    "chunk_count": len(chunks),
                    "parent_id": parent_id,
                },
                record_id=f"{parent_id}_chunk_{chunk_index}"
            )
            if self._write(record):
                stored.append(record.id)
        return stored

    def record_factcheck(self, claim: str, verdict: FactCheckVerdict,
                         embedding: Optional[List[float]] = None) -> Optional[str]:
        """Store a computed fact-check; reuse the retrieval embedding when given."""
        if embedding is None:
            embedding = self.embed(claim)

        record = factcheck_record(claim, verdict, embedding)
        return record.id if self._write(record) else None

    def stats(self) -> StoreStats:
        return self.store.stats()

    def status(self) -> Dict[str, object]:
        """Active backend and embedding strategy, for health reporting."""
        return {
            "backend": self.store.backend,
            "embedding_strategy": self.embedder.strategy,
            "dimension": self.store.dimension,
        }

    def close(self) -> None:
        self._executor.shutdown(wait=False)


def build_orchestrator(store: Optional[IVectorStore] = None,
                       embedder: Optional[EmbeddingGenerator] = None) -> RetrievalOrchestrator:
    """Composition root: resolve the configured store and generator exactly once."""
    from .config import get_embedding_generator, get_query_timeout, log_config_issues, open_vector_store

    log_config_issues()

    if store is None:
        store = open_vector_store().store

    return RetrievalOrchestrator(
        embedder=embedder or get_embedding_generator(),
        store=store,
        query_timeout=get_query_timeout()
    )

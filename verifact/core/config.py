"""
Environment configuration and the factories that resolve the configured backends.

This module is the only place that reads the backend and embedding selectors.
Selectors are read from the environment on every call so a test or script can
change them before building the store.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

from ..vector.types import EMBED_DIM, Degraded, InitResult
from ..util.logging import logger, summarize_issues

load_dotenv()

VERSION = "1.0.0"

# Vector dimension and metric are fixed for every backend
SIMILARITY_METRIC = "cosine"

VECTOR_BACKENDS = {
    "pinecone": "pinecone",
    "managed-index": "pinecone",
    "chroma": "chroma",
    "local-vector-db": "chroma",
    "memory": "memory",
}

EMBEDDING_STRATEGIES = {
    "custom": "simple",
    "simple": "simple",
    "openai": "openai",
    "huggingface": "huggingface",
    "local": "local",
}

STRATEGY_CREDENTIALS = {
    "openai": "OPENAI_API_KEY",
    "huggingface": "HUGGINGFACE_API_KEY",
}


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def get_vector_database() -> str:
    """Raw backend selector (pinecone|managed-index|chroma|local-vector-db|memory)."""
    return os.getenv("VECTOR_DATABASE", "pinecone").strip().lower()


def get_embedding_model() -> str:
    """Raw embedding selector (custom|simple|openai|huggingface|local)."""
    return os.getenv("EMBEDDING_MODEL", "custom").strip().lower()


def get_memory_capacity() -> int:
    return _env_int("MEMORY_STORE_CAPACITY", 1000)


def get_embed_timeout() -> float:
    return _env_float("EMBED_TIMEOUT_SEC", 10.0)


def get_retrieval_timeout() -> float:
    return _env_float("RETRIEVAL_TIMEOUT_SEC", 10.0)


def get_internal_fallback() -> str:
    return os.getenv("EMBED_INTERNAL_FALLBACK", "zero").strip().lower()


def _positive_or_default(getter, name: str, default):
    """Read a numeric setting, using the default when it is malformed or not positive."""
    try:
        value = getter()
    except ValueError:
        value = None
    if value is None or value <= 0:
        logger.warning(f"Invalid {name} '{os.getenv(name)}', using {default}")
        return default
    return value


def get_query_timeout() -> float:
    """RETRIEVAL_TIMEOUT_SEC as used by the orchestrator; malformed values fall back to 10s."""
    return _positive_or_default(get_retrieval_timeout, "RETRIEVAL_TIMEOUT_SEC", 10.0)


def validate_config() -> List[str]:
    """Validate configuration and return any issues."""
    issues = []

    backend = get_vector_database()
    if backend not in VECTOR_BACKENDS:
        issues.append(f"Invalid VECTOR_DATABASE: {backend}")
    elif VECTOR_BACKENDS[backend] == "pinecone" and not os.getenv("PINECONE_API_KEY"):
        issues.append("VECTOR_DATABASE=pinecone requires PINECONE_API_KEY (falls back to memory)")

    strategy = get_embedding_model()
    if strategy not in EMBEDDING_STRATEGIES:
        issues.append(f"Invalid EMBEDDING_MODEL: {strategy}")
    else:
        credential = STRATEGY_CREDENTIALS.get(EMBEDDING_STRATEGIES[strategy])
        if credential and not os.getenv(credential):
            issues.append(f"EMBEDDING_MODEL={strategy} requires {credential} (falls back to simple)")

    if get_internal_fallback() not in ("zero", "random"):
        issues.append(f"Invalid EMBED_INTERNAL_FALLBACK: {get_internal_fallback()}")

    try:
        if get_memory_capacity() < 1:
            issues.append("MEMORY_STORE_CAPACITY must be >= 1")
        if _env_float("INDEX_READY_POLL_SEC", 5.0) <= 0:
            issues.append("INDEX_READY_POLL_SEC must be > 0")
        if _env_float("INDEX_READY_TIMEOUT_SEC", 300.0) <= 0:
            issues.append("INDEX_READY_TIMEOUT_SEC must be > 0")
        if get_embed_timeout() <= 0 or get_retrieval_timeout() <= 0:
            issues.append("EMBED_TIMEOUT_SEC and RETRIEVAL_TIMEOUT_SEC must be > 0")
    except ValueError as e:
        issues.append(f"Invalid numeric setting: {e}")

    return issues


def create_vector_store(backend: Optional[str] = None):
    """Build (but do not initialize) the store for a backend selector."""
    from ..vector.index import InMemoryVectorStore

    selector = (backend or get_vector_database()).strip().lower()
    resolved = VECTOR_BACKENDS.get(selector)

    if resolved == "pinecone":
        from ..vector.pinecone_store import PineconeVectorStore, DEFAULT_INDEX_NAME
        return PineconeVectorStore(
            api_key=os.getenv("PINECONE_API_KEY"),
            index_name=os.getenv("PINECONE_INDEX_NAME", DEFAULT_INDEX_NAME),
            dimension=EMBED_DIM,
            cloud=os.getenv("PINECONE_CLOUD", "aws"),
            region=os.getenv("PINECONE_REGION", "us-east-1"),
            poll_interval=_env_float("INDEX_READY_POLL_SEC", 5.0),
            ready_timeout=_env_float("INDEX_READY_TIMEOUT_SEC", 300.0)
        )
    elif resolved == "chroma":
        from ..vector.chroma_store import ChromaVectorStore, DEFAULT_CHROMA_URL, DEFAULT_COLLECTION_NAME
        return ChromaVectorStore(
            url=os.getenv("CHROMA_URL", DEFAULT_CHROMA_URL),
            collection_name=os.getenv("CHROMA_COLLECTION", DEFAULT_COLLECTION_NAME),
            dimension=EMBED_DIM
        )
    elif resolved == "memory":
        return InMemoryVectorStore(dimension=EMBED_DIM, capacity=get_memory_capacity())
    else:
        raise ValueError(f"Unknown vector database: {selector}")


def open_vector_store(store=None) -> InitResult:
    """
    Initialize the configured store, degrading to memory when it cannot be used.

    Args:
        store: Optional pre-built store (tests inject one here)

    Returns:
        Ready(store) or Degraded(reason, store=<initialized in-memory store>)
    """
    from ..vector.index import InMemoryVectorStore, MEMORY_STORE_CAPACITY

    try:
        candidate = store if store is not None else create_vector_store()
    except ValueError as e:
        result = Degraded(reason=str(e))
    else:
        result = candidate.initialize()

    if isinstance(result, Degraded):
        fallback = InMemoryVectorStore(
            dimension=EMBED_DIM,
            capacity=_positive_or_default(get_memory_capacity, "MEMORY_STORE_CAPACITY", MEMORY_STORE_CAPACITY)
        )
        fallback.initialize()
        logger.warning(f"Vector store degraded to in-memory storage: {result.reason}")
        return Degraded(reason=result.reason, store=fallback)

    return result


def get_vector_store():
    """Get the active vector store: the configured backend, or memory when it is unusable."""
    return open_vector_store().store


def create_embedding_provider(model: Optional[str] = None):
    """Build the provider for an embedding selector; missing credentials fall back to simple."""
    from ..vector.embeddings import (
        SimpleHashEmbedding,
        OpenAIEmbedding,
        HuggingFaceEmbedding,
        SentenceTransformerEmbedding,
        DEFAULT_OPENAI_MODEL,
        DEFAULT_HF_MODEL,
        DEFAULT_HF_INFERENCE_URL,
        DEFAULT_LOCAL_MODEL,
    )

    selector = (model or get_embedding_model()).strip().lower()
    strategy = EMBEDDING_STRATEGIES.get(selector)
    if strategy is None:
        logger.warning(f"Unknown EMBEDDING_MODEL '{selector}', using simple embeddings")
        return SimpleHashEmbedding(EMBED_DIM)

    credential = STRATEGY_CREDENTIALS.get(strategy)
    if credential and not os.getenv(credential):
        logger.warning(f"{credential} not set, using simple embeddings instead of {strategy}")
        return SimpleHashEmbedding(EMBED_DIM)

    if strategy == "openai":
        return OpenAIEmbedding(
            api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_EMBED_MODEL", DEFAULT_OPENAI_MODEL),
            dimension=EMBED_DIM,
            timeout=_positive_or_default(get_embed_timeout, "EMBED_TIMEOUT_SEC", 10.0)
        )
    elif strategy == "huggingface":
        return HuggingFaceEmbedding(
            api_key=os.getenv("HUGGINGFACE_API_KEY"),
            model=os.getenv("HF_EMBED_MODEL", DEFAULT_HF_MODEL),
            url_template=os.getenv("HF_INFERENCE_URL", DEFAULT_HF_INFERENCE_URL),
            dimension=EMBED_DIM,
            timeout=_positive_or_default(get_embed_timeout, "EMBED_TIMEOUT_SEC", 10.0)
        )
    elif strategy == "local":
        return SentenceTransformerEmbedding(
            model_name=os.getenv("LOCAL_EMBED_MODEL", DEFAULT_LOCAL_MODEL),
            dimension=EMBED_DIM
        )
    else:
        return SimpleHashEmbedding(EMBED_DIM)


def get_embedding_generator():
    """Get the embedding generator for the configured strategy."""
    from ..vector.embeddings import EmbeddingGenerator

    fallback = get_internal_fallback()
    if fallback not in ("zero", "random"):
        logger.warning(f"Invalid EMBED_INTERNAL_FALLBACK '{fallback}', using zero")
        fallback = "zero"

    return EmbeddingGenerator(
        provider=create_embedding_provider(),
        dimension=EMBED_DIM,
        internal_fallback=fallback
    )


def log_config_issues() -> List[str]:
    """Validate configuration and log the result once at startup."""
    issues = validate_config()
    if issues:
        logger.warning(f"Configuration issues: {summarize_issues(issues)}")
    return issues

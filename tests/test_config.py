"""
Backend and embedding selection from environment configuration.
"""

import pytest
from unittest.mock import MagicMock

from verifact.core import config
from verifact.vector.chroma_store import ChromaVectorStore
from verifact.vector.embeddings import (
    EmbeddingGenerator,
    HuggingFaceEmbedding,
    OpenAIEmbedding,
    SimpleHashEmbedding,
)
from verifact.vector.index import InMemoryVectorStore
from verifact.vector.pinecone_store import PineconeVectorStore
from verifact.vector.types import Degraded, Ready

CONFIG_VARS = [
    "VECTOR_DATABASE",
    "EMBEDDING_MODEL",
    "PINECONE_API_KEY",
    "PINECONE_INDEX_NAME",
    "CHROMA_URL",
    "CHROMA_COLLECTION",
    "OPENAI_API_KEY",
    "HUGGINGFACE_API_KEY",
    "MEMORY_STORE_CAPACITY",
    "INDEX_READY_POLL_SEC",
    "INDEX_READY_TIMEOUT_SEC",
    "EMBED_TIMEOUT_SEC",
    "RETRIEVAL_TIMEOUT_SEC",
    "EMBED_INTERNAL_FALLBACK",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an empty configuration."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert config.get_vector_database() == "pinecone"
    assert config.get_embedding_model() == "custom"
    assert config.get_memory_capacity() == 1000
    assert config.get_internal_fallback() == "zero"


@pytest.mark.parametrize("selector, expected", [
    ("pinecone", PineconeVectorStore),
    ("managed-index", PineconeVectorStore),
    ("chroma", ChromaVectorStore),
    ("local-vector-db", ChromaVectorStore),
    ("memory", InMemoryVectorStore),
    ("  MEMORY ", InMemoryVectorStore),
])
def test_create_vector_store_selectors(monkeypatch, selector, expected):
    monkeypatch.setenv("VECTOR_DATABASE", selector)

    assert isinstance(config.create_vector_store(), expected)


def test_create_vector_store_reads_backend_settings(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "chroma")
    monkeypatch.setenv("CHROMA_URL", "http://chroma.internal:9000")
    monkeypatch.setenv("CHROMA_COLLECTION", "claims")

    store = config.create_vector_store()

    assert store.url == "http://chroma.internal:9000"
    assert store.collection_name == "claims"


def test_pinecone_readiness_settings(monkeypatch):
    monkeypatch.setenv("INDEX_READY_POLL_SEC", "1.5")
    monkeypatch.setenv("INDEX_READY_TIMEOUT_SEC", "30")

    store = config.create_vector_store("pinecone")

    assert store.poll_interval == 1.5
    assert store.ready_timeout == 30.0


def test_unknown_backend_raises():
    with pytest.raises(ValueError):
        config.create_vector_store("redis")


def test_pinecone_without_key_degrades_to_memory(monkeypatch):
    """Pinecone selected with no API key: the service still comes up, on memory."""
    monkeypatch.setenv("VECTOR_DATABASE", "pinecone")

    result = config.open_vector_store()

    assert isinstance(result, Degraded)
    assert isinstance(result.store, InMemoryVectorStore)
    assert "PINECONE_API_KEY" in result.reason


def test_unknown_backend_degrades_to_memory(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "redis")

    result = config.open_vector_store()

    assert isinstance(result, Degraded)
    assert isinstance(result.store, InMemoryVectorStore)


def test_chroma_failure_degrades_to_memory():
    client = MagicMock()
    client.get_or_create_collection.side_effect = ConnectionError("connection refused")

    result = config.open_vector_store(ChromaVectorStore(client=client))

    assert isinstance(result, Degraded)
    assert isinstance(result.store, InMemoryVectorStore)


def test_memory_backend_is_ready(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "memory")
    monkeypatch.setenv("MEMORY_STORE_CAPACITY", "25")

    result = config.open_vector_store()

    assert isinstance(result, Ready)
    assert result.store.capacity == 25
    assert isinstance(config.get_vector_store(), InMemoryVectorStore)


@pytest.mark.parametrize("capacity", ["0", "abc", "-5"])
def test_bad_memory_capacity_still_starts(monkeypatch, capacity):
    """A malformed capacity degrades to a default-sized memory store instead of raising."""
    monkeypatch.setenv("VECTOR_DATABASE", "memory")
    monkeypatch.setenv("MEMORY_STORE_CAPACITY", capacity)

    result = config.open_vector_store()

    assert isinstance(result, Degraded)
    assert isinstance(result.store, InMemoryVectorStore)
    assert result.store.capacity == 1000


def test_bad_capacity_with_unreachable_backend(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "pinecone")
    monkeypatch.setenv("MEMORY_STORE_CAPACITY", "abc")

    result = config.open_vector_store()

    assert isinstance(result, Degraded)
    assert result.store.capacity == 1000


@pytest.mark.parametrize("selector, credential", [
    ("openai", "OPENAI_API_KEY"),
    ("huggingface", "HUGGINGFACE_API_KEY"),
])
def test_bad_embed_timeout_uses_default(monkeypatch, selector, credential):
    monkeypatch.setenv(credential, "secret")
    monkeypatch.setenv("EMBED_TIMEOUT_SEC", "soon")

    provider = config.create_embedding_provider(selector)

    assert provider.timeout == 10.0


@pytest.mark.parametrize("value", ["soon", "0"])
def test_bad_retrieval_timeout_uses_default(monkeypatch, value):
    monkeypatch.setenv("RETRIEVAL_TIMEOUT_SEC", value)

    assert config.get_query_timeout() == 10.0


@pytest.mark.parametrize("selector, credential, expected", [
    ("openai", "OPENAI_API_KEY", OpenAIEmbedding),
    ("huggingface", "HUGGINGFACE_API_KEY", HuggingFaceEmbedding),
])
def test_external_provider_with_credentials(monkeypatch, selector, credential, expected):
    monkeypatch.setenv(credential, "secret")

    assert isinstance(config.create_embedding_provider(selector), expected)


@pytest.mark.parametrize("selector", ["openai", "huggingface"])
def test_external_provider_without_credentials_falls_back(selector):
    assert isinstance(config.create_embedding_provider(selector), SimpleHashEmbedding)


@pytest.mark.parametrize("selector", ["custom", "simple", "word2vec"])
def test_simple_selectors(selector):
    assert isinstance(config.create_embedding_provider(selector), SimpleHashEmbedding)


def test_embedding_generator_from_env(monkeypatch):
    monkeypatch.setenv("EMBEDDING_MODEL", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EMBED_INTERNAL_FALLBACK", "random")

    generator = config.get_embedding_generator()

    assert isinstance(generator, EmbeddingGenerator)
    assert generator.strategy == "openai"
    assert generator.internal_fallback == "random"


def test_invalid_internal_fallback_uses_zero(monkeypatch):
    monkeypatch.setenv("EMBED_INTERNAL_FALLBACK", "ones")

    assert config.get_embedding_generator().internal_fallback == "zero"


def test_validate_config_clean(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "memory")

    assert config.validate_config() == []


def test_validate_config_reports_issues(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "pinecone")
    monkeypatch.setenv("EMBEDDING_MODEL", "huggingface")
    monkeypatch.setenv("MEMORY_STORE_CAPACITY", "0")

    issues = config.validate_config()

    assert any("PINECONE_API_KEY" in issue for issue in issues)
    assert any("HUGGINGFACE_API_KEY" in issue for issue in issues)
    assert any("MEMORY_STORE_CAPACITY" in issue for issue in issues)


def test_validate_config_non_numeric(monkeypatch):
    monkeypatch.setenv("VECTOR_DATABASE", "memory")
    monkeypatch.setenv("RETRIEVAL_TIMEOUT_SEC", "soon")

    issues = config.validate_config()

    assert len(issues) == 1
    assert "Invalid numeric setting" in issues[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

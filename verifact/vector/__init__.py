"""
Vector layer: embeddings, chunking and interchangeable vector store backends.
"""

# Package initialization for vector module
from .index import IVectorStore, InMemoryVectorStore, cosine_similarity
from .pinecone_store import PineconeVectorStore
from .chroma_store import ChromaVectorStore
from .types import VectorRecord, QueryResult, StoreStats, Ready, Degraded, EMBED_DIM
from .embeddings import (
    IEmbeddingProvider,
    SimpleHashEmbedding,
    OpenAIEmbedding,
    HuggingFaceEmbedding,
    SentenceTransformerEmbedding,
    EmbeddingGenerator,
)
from .chunking import chunk, context_aware_chunk

__all__ = [
    'IVectorStore',
    'InMemoryVectorStore',
    'PineconeVectorStore',
    'ChromaVectorStore',
    'cosine_similarity',
    'VectorRecord',
    'QueryResult',
    'StoreStats',
    'Ready',
    'Degraded',
    'EMBED_DIM',
    'IEmbeddingProvider',
    'SimpleHashEmbedding',
    'OpenAIEmbedding',
    'HuggingFaceEmbedding',
    'SentenceTransformerEmbedding',
    'EmbeddingGenerator',
    'chunk',
    'context_aware_chunk',
]

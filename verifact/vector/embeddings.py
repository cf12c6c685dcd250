"""
Embedding providers and the generator that applies the fallback policy.

The hash embedding is a coarse bag-of-words sketch: position-weighted token
frequencies folded into 384 buckets. Unrelated words can share a bucket.
"""

import math
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import numpy as np
import requests

from .types import EMBED_DIM
from ..core.errors import EmbeddingHardFailure, EmbeddingInternalFailure, EmbeddingServiceFailure
from ..util.logging import logger

OPENAI_INPUT_LIMIT = 8000
HUGGINGFACE_INPUT_LIMIT = 512

DEFAULT_OPENAI_MODEL = "text-embedding-3-small"
DEFAULT_HF_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_HF_INFERENCE_URL = "https://router.huggingface.co/hf-inference/models/{model}/pipeline/feature-extraction"
DEFAULT_LOCAL_MODEL = "all-MiniLM-L6-v2"

STOP_WORDS = frozenset("""
a about above after again against all am an and any are as at be because been before being
below between both but by can could did do does doing down during each few for from further
had has have having he her here hers herself him himself his how i if in into is it its itself
just me more most my myself no nor not now of off on once only or other ought our ours ourselves
out over own same she should so some such than that the their theirs them themselves then there
these they this those through to too under until up very was we were what when where which while
who whom why will with would you your yours yourself yourselves also however may might must shall
upon yet
""".split())

_TOKEN_RE = re.compile(r"\w+")


def simple_hash(word: str) -> int:
    """Deterministic 32-bit string hash (h * 31 + code, signed wrap, absolute value).

    Codes are UTF-16 code units, so characters outside the BMP contribute
    their surrogate pair.
    """
    encoded = word.encode("utf-16-le", "surrogatepass")
    value = 0
    for offset in range(0, len(encoded), 2):
        code = int.from_bytes(encoded[offset:offset + 2], "little")
        value = (value * 31 + code) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def tokenize(text: str) -> List[str]:
    """Lower-case word tokens with stop words removed."""
    return [token for token in _TOKEN_RE.findall(text.lower()) if token not in STOP_WORDS]


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    name = "abstract"

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class SimpleHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding with no external dependency.

    Each token longer than two characters adds 1/(position+1) to its word's
    weight, so earlier occurrences count more. Words are hashed into
    dimension buckets and the vector is L2-normalized; input with no usable
    tokens yields the zero vector.
    """

    name = "simple"

    def __init__(self, dimension: int = EMBED_DIM):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        weights = {}
        for position, token in enumerate(tokenize(text)):
            if len(token) > 2:
                weights[token] = weights.get(token, 0.0) + 1.0 / (position + 1)

        vector = np.zeros(self.dimension, dtype=np.float64)
        for word, weight in weights.items():
            vector[simple_hash(word) % self.dimension] += weight

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm

        return vector.tolist()

    def get_dimension(self) -> int:
        return self.dimension


class OpenAIEmbedding(IEmbeddingProvider):
    """OpenAI embeddings API, truncated to the configured dimension server-side."""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_OPENAI_MODEL,
                 dimension: int = EMBED_DIM, timeout: float = 10.0, client: Any = None):
        self.api_key = api_key
        self.model = model
        self.dimension = dimension
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise EmbeddingServiceFailure("OpenAI client not initialized: OPENAI_API_KEY is not set")
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=1)
        return self._client

    def embed_text(self, text: str) -> List[float]:
        response = self.client.embeddings.create(
            model=self.model,
            input=text[:OPENAI_INPUT_LIMIT],
            dimensions=self.dimension
        )
        if not response.data:
            raise EmbeddingServiceFailure("OpenAI returned no embedding data")
        return list(response.data[0].embedding)

    def get_dimension(self) -> int:
        return self.dimension


class HuggingFaceEmbedding(IEmbeddingProvider):
    """Hugging Face Inference feature-extraction endpoint (all-MiniLM-L6-v2, 384 dims)."""

    name = "huggingface"

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_HF_MODEL,
                 url_template: str = DEFAULT_HF_INFERENCE_URL, dimension: int = EMBED_DIM,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.url = url_template.format(model=model)
        self.dimension = dimension
        self.timeout = timeout
        self.session = session or requests.Session()

    def embed_text(self, text: str) -> List[float]:
        if not self.api_key:
            raise EmbeddingServiceFailure("HuggingFace client not initialized: HUGGINGFACE_API_KEY is not set")

        response = self.session.post(
            self.url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"inputs": text[:HUGGINGFACE_INPUT_LIMIT]},
            timeout=self.timeout
        )
        response.raise_for_status()
        payload = response.json()

        # Single inputs come back either flat or wrapped in one more list
        if isinstance(payload, list) and payload and isinstance(payload[0], list):
            payload = payload[0]
        if not isinstance(payload, list):
            raise EmbeddingServiceFailure(f"Unexpected HuggingFace response: {str(payload)[:100]}")
        return payload

    def get_dimension(self) -> int:
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider running in-process.

    Uses the all-MiniLM-L6-v2 model, which produces 384-dim vectors.
    """

    name = "local"

    def __init__(self, model_name: str = DEFAULT_LOCAL_MODEL, dimension: int = EMBED_DIM):
        self.model_name = model_name
        self.dimension = dimension
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> List[float]:
        embedding = self.model.encode(text, convert_to_tensor=False, normalize_embeddings=True)
        return embedding.tolist()

    def get_dimension(self) -> int:
        return self.dimension


class EmbeddingGenerator:
    """
    Produces fixed-dimension embeddings with the configured provider.

    External providers fall back to the hash embedding for the same text when
    they fail. If the hash embedding fails as well, a fallback vector is
    returned: the zero vector by default, or small random values when
    internal_fallback="random" (not reproducible, so it defeats caching).
    """

    def __init__(self, provider: Optional[IEmbeddingProvider] = None, dimension: int = EMBED_DIM,
                 internal_fallback: str = "zero"):
        if internal_fallback not in ("zero", "random"):
            raise ValueError(f"internal_fallback must be 'zero' or 'random', got {internal_fallback!r}")
        self.dimension = dimension
        self.simple = SimpleHashEmbedding(dimension)
        self.provider = provider or self.simple
        self.internal_fallback = internal_fallback

    @property
    def strategy(self) -> str:
        return self.provider.name

    def embed(self, text: str) -> List[float]:
        """Embed text; only raises EmbeddingHardFailure."""
        if self.provider is not self.simple:
            try:
                return self._checked(self.provider.embed_text(text), EmbeddingServiceFailure)
            except Exception as e:
                logger.log_embedding_fallback(self.provider.name, self.simple.name, e)

        return self.embed_simple(text)

    def embed_simple(self, text: str) -> List[float]:
        """Hash embedding with the internal-failure fallback applied."""
        try:
            return self._checked(self.simple.embed_text(text), EmbeddingInternalFailure)
        except Exception as e:
            logger.log_embedding_fallback(self.simple.name, self.internal_fallback, e)

        try:
            return self._fallback_vector()
        except Exception as e:
            raise EmbeddingHardFailure(f"No embedding could be produced: {e}") from e

    def _checked(self, vector, error_cls) -> List[float]:
        values = [float(x) for x in vector]
        if len(values) != self.dimension:
            raise error_cls(f"Embedding has {len(values)} dimensions, expected {self.dimension}")
        if not all(math.isfinite(x) for x in values):
            raise error_cls("Embedding contains non-finite values")
        return values

    def _fallback_vector(self) -> List[float]:
        if self.internal_fallback == "random":
            return np.random.default_rng().uniform(-0.05, 0.05, self.dimension).tolist()
        return [0.0] * self.dimension

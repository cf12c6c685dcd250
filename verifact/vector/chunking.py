"""
Sentence-aware text chunking with word overlap between consecutive chunks.
"""

import re
from typing import List

ARTICLE_CHUNK_SIZE = 1000
ARTICLE_OVERLAP_WORDS = 100
DEFAULT_CHUNK_SIZE = 512
DEFAULT_OVERLAP_WORDS = 50

# A sentence runs up to and including its terminal punctuation
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")


def split_sentences(text: str) -> List[str]:
    """Split text on terminal punctuation, keeping the punctuation on each sentence."""
    return [match.strip() for match in _SENTENCE_RE.findall(text) if match.strip()]


def overlap_words(text: str, overlap_size: int) -> str:
    """Return the last overlap_size words of text (all of it when shorter)."""
    if overlap_size <= 0:
        return ""
    words = text.split()
    if len(words) <= overlap_size:
        return " ".join(words)
    return " ".join(words[-overlap_size:])


def chunk(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE,
          overlap_size: int = DEFAULT_OVERLAP_WORDS) -> List[str]:
    """
    Split text into chunks of whole sentences.

    Sentences are accumulated while the joined chunk stays within
    max_chunk_size characters. Each new chunk starts with the last
    overlap_size words of the chunk before it. A sentence longer than
    max_chunk_size becomes a chunk of its own and is never cut.

    Args:
        text: Text to split
        max_chunk_size: Maximum chunk length in characters
        overlap_size: Number of words carried over from the previous chunk

    Returns:
        List of chunk strings in original order; never empty
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be > 0")
    if overlap_size < 0:
        raise ValueError("overlap_size must be >= 0")

    sentences = split_sentences(text or "")
    if not sentences:
        return [(text or "")[:max_chunk_size]]

    chunks: List[str] = []
    prefix = ""
    body: List[str] = []

    def render() -> str:
        return " ".join(part for part in [prefix] + body if part)

    for sentence in sentences:
        if len(sentence) > max_chunk_size:
            if body:
                chunks.append(render())
            chunks.append(sentence)
            prefix = overlap_words(sentence, overlap_size)
            body = []
            continue

        candidate = " ".join(part for part in [prefix] + body + [sentence] if part)
        if body and len(candidate) > max_chunk_size:
            closed = render()
            chunks.append(closed)
            prefix = overlap_words(closed, overlap_size)
            body = [sentence]
        else:
            body.append(sentence)

    if body:
        chunks.append(render())

    return chunks


def context_aware_chunk(text: str, content_type: str = "article") -> List[str]:
    """Chunk with the article parameterization (1000 chars / 100 words) or the generic one (512 / 50)."""
    if content_type == "article":
        return chunk(text, ARTICLE_CHUNK_SIZE, ARTICLE_OVERLAP_WORDS)
    return chunk(text, DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP_WORDS)

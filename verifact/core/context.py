"""
Assembles the evidence context handed to the LLM verdict client.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .retrieval import RetrievalResult
from ..vector.types import QueryResult

ARTICLE_SEPARATOR = "\n\n---\n\n"
FACTCHECK_SECTION = "\n\n=== PREVIOUS FACT-CHECKS ===\n\n"


@dataclass
class VerificationContext:
    text: str
    sources: List[Dict[str, Any]] = field(default_factory=list)


def format_article(result: QueryResult) -> str:
    meta = result.metadata
    return (
        f"Source: {meta.get('source')}\n"
        f"Title: {meta.get('title')}\n"
        f"Content: {meta.get('content') or meta.get('description')}\n"
        f"Published: {meta.get('publishedAt')}\n"
        f"Relevance Score: {result.score:.3f}"
    )


def format_factcheck(result: QueryResult) -> str:
    meta = result.metadata
    return (
        "Previous Fact-Check:\n"
        f"Claim: {meta.get('claim')}\n"
        f"Verdict: {meta.get('verdict')}\n"
        f"Evidence: {meta.get('evidence')}"
    )


def build_verification_context(retrieval: RetrievalResult) -> VerificationContext:
    """Render similar articles and prior fact-checks into one context string plus a sources list."""
    text = ARTICLE_SEPARATOR.join(format_article(r) for r in retrieval.similar_articles)

    previous = "\n\n".join(format_factcheck(r) for r in retrieval.similar_factchecks)
    if previous:
        text += FACTCHECK_SECTION + previous

    sources = [
        {
            "source": r.metadata.get("source"),
            "title": r.metadata.get("title"),
            "url": r.metadata.get("url"),
            "score": r.score,
            "publishedAt": r.metadata.get("publishedAt"),
        }
        for r in retrieval.similar_articles
    ]

    return VerificationContext(text=text, sources=sources)

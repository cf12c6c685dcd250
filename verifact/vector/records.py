"""
Builders turning articles and fact-check verdicts into vector records.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .types import ARTICLE_TYPE, FACTCHECK_TYPE, VectorRecord
from ..core.schemas import Article, FactCheckVerdict

METADATA_TEXT_LIMIT = 1000

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id(prefix: str) -> str:
    """Unique id of the form <prefix>_<epoch millis>_<9 random chars>."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: Optional[str], limit: int = METADATA_TEXT_LIMIT) -> Optional[str]:
    return text[:limit] if text else text


def _without_none(metadata: Dict[str, object]) -> Dict[str, object]:
    return {k: v for k, v in metadata.items() if v is not None}


def article_record(article: Article, embedding: List[float],
                   extra: Optional[Dict[str, object]] = None,
                   record_id: Optional[str] = None) -> VectorRecord:
    """Article record; content is truncated and the article's own id is kept when present."""
    metadata = {
        "title": article.title,
        "description": article.description,
        "content": _truncate(article.content),
        "source": article.source,
        "url": article.url,
        "publishedAt": article.published_at,
        "author": article.author,
        "type": ARTICLE_TYPE,
        "indexed_at": _now(),
    }
    if extra:
        metadata.update(extra)

    return VectorRecord(
        id=record_id or article.id or new_record_id(ARTICLE_TYPE),
        embedding=list(embedding),
        metadata=_without_none(metadata)
    )


def factcheck_record(claim: str, verdict: FactCheckVerdict, embedding: List[float]) -> VectorRecord:
    """Fact-check record; always gets a fresh id so re-checks never overwrite."""
    metadata = {
        "claim": claim,
        "verdict": verdict.verdict,
        "confidence": verdict.confidence,
        "evidence": verdict.evidence,
        "explanation": _truncate(verdict.explanation),
        "type": FACTCHECK_TYPE,
        "checked_at": _now(),
    }

    return VectorRecord(
        id=new_record_id(FACTCHECK_TYPE),
        embedding=list(embedding),
        metadata=_without_none(metadata)
    )

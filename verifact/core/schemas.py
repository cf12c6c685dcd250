"""
Pydantic models exchanged with the collaborators around the retrieval core:
ingested news articles and verdicts produced by the LLM client.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

VERDICTS = ["True", "False", "Partially True", "Unverified", "Misleading"]


class Article(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
    author: Optional[str] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('title cannot be empty')
        return v

    @field_validator('source', mode='before')
    @classmethod
    def source_name_from_object(cls, v: Any):
        # News APIs report the source as {"id": ..., "name": ...}
        if isinstance(v, dict):
            return v.get('name') or v.get('id')
        return v

    def embedding_text(self) -> str:
        """Text embedded for this article: title, description and content."""
        return f"{self.title} {self.description or ''} {self.content or ''}".strip()


class FactCheckVerdict(BaseModel):
    verdict: str
    confidence: float = 50
    evidence: str = ""
    explanation: str = ""
    sources_used: List[str] = Field(default_factory=list)
    key_points: List[str] = Field(default_factory=list)
    credibility_score: float = 50

    @field_validator('verdict')
    @classmethod
    def verdict_must_be_valid(cls, v):
        if v not in VERDICTS:
            raise ValueError(f'verdict must be one of: {VERDICTS}')
        return v

    @field_validator('confidence', 'credibility_score')
    @classmethod
    def score_must_be_percentage(cls, v):
        if not 0 <= v <= 100:
            raise ValueError('score must be between 0 and 100')
        return v

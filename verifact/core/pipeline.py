"""
Claim verification flow around the retrieval core.

The verdict client (an LLM behind some prompt) is a collaborator; this module
only fixes its interface and the order of operations: retrieve, build context,
ask for a verdict, remember the verdict for future claims.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .context import build_verification_context
from .retrieval import RetrievalOrchestrator
from .schemas import FactCheckVerdict
from ..vector.types import QueryResult


class IVerdictClient(ABC):
    """Abstract interface for the LLM that turns evidence into a verdict."""

    @abstractmethod
    def generate_verdict(self, claim: str, context: str, sources: List[Dict[str, Any]]) -> FactCheckVerdict:
        """Produce a structured verdict for a claim given the assembled context."""
        pass


@dataclass
class FactCheckOutcome:
    claim: str
    verdict: FactCheckVerdict
    sources: List[Dict[str, Any]] = field(default_factory=list)
    previous_factchecks: List[QueryResult] = field(default_factory=list)
    factcheck_id: Optional[str] = None
    embedding: List[float] = field(default_factory=list)


def verify_claim(claim: str, orchestrator: RetrievalOrchestrator, client: IVerdictClient) -> FactCheckOutcome:
    """
    Verify a claim against stored evidence.

    Raises EmbeddingHardFailure when the claim cannot be embedded. A failed
    write of the new fact-check leaves factcheck_id as None but does not
    change the returned verdict.
    """
    retrieval = orchestrator.retrieve_for_claim(claim)
    context = build_verification_context(retrieval)

    verdict = client.generate_verdict(claim, context.text, context.sources)

    factcheck_id = orchestrator.record_factcheck(claim, verdict, retrieval.embedding)

    return FactCheckOutcome(
        claim=claim,
        verdict=verdict,
        sources=context.sources,
        previous_factchecks=retrieval.similar_factchecks,
        factcheck_id=factcheck_id,
        embedding=retrieval.embedding
    )

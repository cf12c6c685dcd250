"""
Operations utilities - CLI tools for the vector index.

    verifact stats
    verifact index articles.json [--chunked]
    verifact retrieve "The sky is green"
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .core.config import open_vector_store, validate_config
from .core.errors import EmbeddingHardFailure
from .core.retrieval import build_orchestrator
from .core.schemas import Article
from .util.logging import logger


def _load_articles(path: Path) -> List[Article]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("articles", [])

    articles = []
    for position, item in enumerate(raw):
        try:
            articles.append(Article.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping article #{position}: {e.errors()[0]['msg']}")
    return articles


def stats_command(args) -> int:
    """Print backend status and index statistics as JSON."""
    result = open_vector_store()
    report = {
        "degraded": result.degraded,
        "reason": getattr(result, "reason", None),
        "config_issues": validate_config(),
        "stats": result.store.stats().to_dict(),
    }
    print(json.dumps(report, indent=2))
    return 0


def index_command(args) -> int:
    """Embed and store articles from a JSON file (a list, or {"articles": [...]})."""
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: {path} not found")
        return 1

    articles = _load_articles(path)
    if not articles:
        print("No articles to index. Exiting.")
        return 0

    opened = open_vector_store()
    if opened.degraded:
        print(f"WARNING: {opened.reason}; records are kept in memory for this run only")
    orchestrator = build_orchestrator(store=opened.store)
    indexed = 0
    failed = 0
    try:
        for article in articles:
            if args.chunked:
                ids = orchestrator.index_article_chunks(article)
                indexed += len(ids)
                failed += 0 if ids else 1
            elif orchestrator.index_article(article):
                indexed += 1
            else:
                failed += 1
    finally:
        orchestrator.close()

    print(f"✓ Indexed {indexed} records into {orchestrator.store.backend} ({failed} failed)")
    return 0 if failed == 0 else 2


def retrieve_command(args) -> int:
    """Print the articles and fact-checks most similar to a claim."""
    opened = open_vector_store()
    orchestrator = build_orchestrator(store=opened.store)
    try:
        result = orchestrator.retrieve_for_claim(args.claim)
    except EmbeddingHardFailure as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        orchestrator.close()

    report = {
        "claim": result.claim,
        "backend": orchestrator.store.backend,
        "degraded": opened.degraded,
        "reason": getattr(opened, "reason", None),
        "similarArticles": [
            {"id": r.id, "score": round(r.score, 4), "title": r.metadata.get("title")}
            for r in result.similar_articles
        ],
        "similarFactChecks": [
            {"id": r.id, "score": round(r.score, 4), "verdict": r.metadata.get("verdict")}
            for r in result.similar_factchecks
        ],
    }
    print(json.dumps(report, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="verifact", description="VeriFact vector index utilities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    stats = subparsers.add_parser("stats", help="Show backend status and index statistics")
    stats.set_defaults(func=stats_command)

    index = subparsers.add_parser(
        "index",
        help="Index articles from a JSON file (records on the memory backend last only for this run)"
    )
    index.add_argument("file", help="JSON file with a list of articles")
    index.add_argument(
        "--chunked",
        action="store_true",
        help="Store one record per article chunk (1000 chars, 100 words overlap)"
    )
    index.set_defaults(func=index_command)

    retrieve = subparsers.add_parser(
        "retrieve",
        help="Show evidence similar to a claim (the memory backend starts empty on every run)"
    )
    retrieve.add_argument("claim", help="Claim text")
    retrieve.set_defaults(func=retrieve_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

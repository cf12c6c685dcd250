"""
Structured operation logging for the retrieval core.
Every backend, embedding and retrieval event is reported as one line of operation/status/details.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for vector store, embedding and retrieval operations."""

    def __init__(self, name: str = "verifact"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {sanitize_details(details)}"

        self.logger.log(level, message)

    def log_backend_init(self, backend: str, status: str, details: Dict[str, Any] = None):
        """Log a vector backend initialization outcome."""
        level = logging.INFO if status == "ready" else logging.WARNING
        self.log_operation(f"store.{backend}.initialize", status, details, level=level)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.ERROR
        self.log_operation(f"vector.{operation}", status, log_details, level=level)

    def log_query_failure(self, backend: str, error: Exception, details: Dict[str, Any] = None):
        """Log a query that degraded to an empty result."""
        log_details = {"error": str(error), "error_type": type(error).__name__}
        if details:
            log_details.update(details)

        self.log_operation(f"store.{backend}.query", "failed", log_details, level=logging.ERROR)

    def log_embedding_fallback(self, strategy: str, fallback: str, error: Exception):
        """Log an embedding strategy falling back to another one."""
        log_details = {
            "strategy": strategy,
            "fallback": fallback,
            "error": str(error),
            "error_type": type(error).__name__
        }
        level = logging.ERROR if fallback in ("zero", "random") else logging.WARNING
        self.log_operation("embedding.fallback", "degraded", log_details, level=level)

    def log_retrieval(self, claim: str, article_count: int, factcheck_count: int, duration_ms: float):
        """Log a completed claim retrieval."""
        log_details = {
            "claim": claim,
            "articles": article_count,
            "factchecks": factcheck_count,
            "duration_ms": round(duration_ms, 2)
        }
        self.log_operation("retrieval.claim", "success", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def sanitize_details(details: Any, max_length: int = 100) -> Any:
    """Truncate long strings and vectors so log lines stay readable."""
    if isinstance(details, dict):
        return {k: sanitize_details(v, max_length) for k, v in details.items()}
    elif isinstance(details, str):
        return details[:max_length] + "..." if len(details) > max_length else details
    elif isinstance(details, (list, tuple)):
        if len(details) > 10:
            return f"[{len(details)} items]"
        return [sanitize_details(item, max_length) for item in details]
    else:
        return details


def summarize_issues(issues: List[str]) -> str:
    """Join configuration issues into a single log line."""
    return "; ".join(issues) if issues else "none"


# Global logger instance
logger = StructuredLogger()

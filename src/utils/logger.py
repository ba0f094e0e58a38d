"""
Structured Logger Module

Configures structlog for JSON-formatted structured logging with correlation IDs.
Every API request gets its own correlation ID so the search, embedding,
synthesis and narrative steps of one recommendation can be traced together.

Example Usage:
    from src.utils.logger import get_logger

    logger = get_logger(
        correlation_id="a1b2c3d4-e5f6-7890-abcd-ef1234567890",
        phase="ranking",
        component="candidate_ranker"
    )

    logger.info("Ranking candidates", candidate_count=30)
    logger.warning("User embedding unavailable, using degraded ranking")
    logger.error("ORCID search failed", status_code=503)

Log Levels:
    - DEBUG: Prompt and response excerpts, per-candidate scores
    - INFO: Pipeline step progress and result counts
    - WARNING: Degraded modes (missing credentials, empty embeddings, mock data)
    - ERROR: Upstream failures and unparsable LLM output
"""

import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

import structlog
from structlog.types import BindableLogger, EventDict, WrappedLogger

SENSITIVE_FIELDS = {
    "password",
    "api_key",
    "token",
    "secret",
    "credential",
    "auth",
    "authorization",
}


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Processor to mask sensitive credentials in log output.

    Args:
        logger: Logger instance
        method_name: Logging method name
        event_dict: Event dictionary to process

    Returns:
        Event dictionary with masked credentials

    Masks:
        - api_key, token, secret, credential, auth, authorization fields
        - Matches whole words separated by underscore or hyphen
        - Replaces values with "***MASKED***"
    """
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        for sensitive in SENSITIVE_FIELDS:
            if (
                key_lower == sensitive
                or key_lower.endswith(f"_{sensitive}")
                or key_lower.endswith(f"-{sensitive}")
                or key_lower.startswith(f"{sensitive}_")
                or key_lower.startswith(f"{sensitive}-")
            ):
                event_dict[key] = "***MASKED***"
                break

    return event_dict


def configure_logging(
    log_file: Optional[str] = "logs/lab-recommender.log", log_level: str = "INFO"
) -> None:
    """
    Configure structlog with JSON output to stdout and, optionally, a log file.

    Args:
        log_file: Path to log file, or None to log to stdout only
        log_level: Logging level (default: "INFO")

    Log Format (JSON):
        {
            "timestamp": "2025-05-20T10:30:45Z",
            "level": "info",
            "correlation_id": "a1b2c3d4-...",
            "phase": "synthesis",
            "component": "lab_recommender",
            "event": "Received recommendations from LLM",
            "count": 4
        }
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            mask_credentials,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    correlation_id: Optional[str] = None,
    phase: Optional[str] = None,
    component: Optional[str] = None,
) -> BindableLogger:
    """
    Get structured logger with bound context.

    Args:
        correlation_id: Correlation ID for request tracing (generates UUID if not provided)
        phase: Pipeline phase (e.g., "search", "ranking", "synthesis", "narrative")
        component: Component name (e.g., "candidate_ranker", "lab_recommender")

    Returns:
        BoundLogger with correlation_id, phase, and component bound to context
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    logger = structlog.get_logger()

    if correlation_id:
        logger = logger.bind(correlation_id=correlation_id)
    if phase:
        logger = logger.bind(phase=phase)
    if component:
        logger = logger.bind(component=component)

    return logger


def bind_request_context(correlation_id: str, **values: str) -> None:
    """Bind per-request context so every log line of the request carries it."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id, **values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


# Initialize logging on module import with default settings
configure_logging()

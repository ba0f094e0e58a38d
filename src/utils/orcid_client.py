"""
ORCID Directory Search Client

Searches the ORCID public API for researcher records and extracts the text
used for embedding. Search failures are fatal for the request: without
candidates there is nothing to recommend from.
"""

from typing import Any, Optional

import httpx
import structlog

from src.models.candidate import CandidateText
from src.models.config import ServiceSettings
from src.utils.errors import DirectorySearchError
from src.utils.json_path import get_value_by_path

logger = structlog.get_logger(__name__)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def extract_orcid_id(record: dict[str, Any]) -> str:
    return _text(get_value_by_path(record, "orcid-identifier.path"))


def extract_title(record: dict[str, Any]) -> str:
    return _text(get_value_by_path(record, "title.0.title.value")) or _text(
        get_value_by_path(record, "name.value")
    )


def extract_summary(record: dict[str, Any]) -> str:
    return _text(get_value_by_path(record, "summary.0.value")) or _text(
        get_value_by_path(record, "biography.value")
    )


def extract_keywords(record: dict[str, Any]) -> str:
    keywords = get_value_by_path(record, "keywords.value")
    if not isinstance(keywords, list):
        return ""
    return " ".join(_text(k) for k in keywords if _text(k))


def extract_work_summaries(record: dict[str, Any]) -> str:
    """Join work titles and journal titles from the record's work groups."""
    groups = record.get("group")
    if isinstance(groups, dict):
        groups = [groups]
    if not isinstance(groups, list):
        return ""

    parts: list[str] = []
    for group in groups:
        works = group.get("work-summary") if isinstance(group, dict) else None
        if not isinstance(works, list):
            continue
        for work in works:
            work_title = _text(get_value_by_path(work, "title.title.value"))
            journal_title = _text(get_value_by_path(work, "journal-title.value"))
            text = f"{work_title} {journal_title}".strip()
            if text:
                parts.append(text)
    return " ".join(parts)


def extract_candidate_text(record: Any) -> Optional[CandidateText]:
    """Extract identifier and embeddable text from a raw ORCID search record.

    Args:
        record: One entry of the search response's "result" list

    Returns:
        CandidateText, or None if the record has no ORCID iD or no text
    """
    if not isinstance(record, dict):
        return None

    orcid_id = extract_orcid_id(record)
    parts = [
        extract_title(record),
        extract_summary(record),
        extract_keywords(record),
        extract_work_summaries(record),
    ]
    text = " ".join(p for p in parts if p).strip()

    if not orcid_id or not text:
        return None
    return CandidateText(id=orcid_id, text=text)


class OrcidClient:
    """Client for the ORCID search endpoint."""

    def __init__(self, services: ServiceSettings, http_client: httpx.AsyncClient):
        self.services = services
        self.http_client = http_client

    async def search(
        self, query: str, limit: int = 10, correlation_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """
        Search ORCID for researchers matching a free-text query.

        Args:
            query: Free-text search query
            limit: Maximum number of rows
            correlation_id: Optional correlation ID for logging

        Returns:
            Raw result records (empty list when nothing matched)

        Raises:
            DirectorySearchError: On transport failure, non-2xx status or a
                non-JSON body
        """
        log = logger.bind(correlation_id=correlation_id) if correlation_id else logger
        url = f"{self.services.orcid_api_base_url}/search/"
        log.info("ORCID search", url=url, query=query, rows=limit)

        try:
            response = await self.http_client.get(
                url,
                params={"q": query, "rows": limit},
                headers={"Accept": "application/json"},
                timeout=self.services.http_timeout,
            )
        except httpx.HTTPError as e:
            log.error("ORCID request failed", error=str(e), error_type=type(e).__name__)
            raise DirectorySearchError(f"ORCID API request failed: {e}") from e

        if response.is_error:
            log.error(
                "ORCID API error",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise DirectorySearchError(
                f"ORCID API request failed (status {response.status_code})",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            log.error("ORCID response is not JSON", body=response.text[:200])
            raise DirectorySearchError("ORCID API returned a non-JSON response") from e

        results = data.get("result") if isinstance(data, dict) else None
        if not isinstance(results, list):
            results = []

        log.info(
            "ORCID search complete",
            result_count=len(results),
            num_found=data.get("num-found") if isinstance(data, dict) else None,
        )
        return results

"""
Shared test fixtures.

Outbound HTTP is faked with httpx.MockTransport routed through FakeUpstream,
which stands in for the ORCID, embedding and chat completion services.
"""

import json
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from src.models.config import AppConfig, ServiceSettings
from src.models.profile import UserProfile

ORCID_BASE = "https://orcid.test/v3.0"
LLM_BASE = "https://llm.test"

ChatReply = Union[str, tuple[int, str], Exception]


def chat_body(content: Optional[str]) -> dict[str, Any]:
    """OpenAI-style chat completion response body."""
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


class FakeUpstream:
    """In-memory stand-in for the three external services.

    Attributes:
        orcid_results: Records returned under "result" by the search endpoint
        orcid_status: HTTP status for the search endpoint
        embeddings: Map of text fragment -> vector; the first fragment contained
            in the embedded text wins
        default_embedding: Vector for texts matching no fragment (None -> HTTP 500)
        chat_replies: Queue of chat replies: content string, (status, body) or
            an exception to raise
        default_chat_reply: Content used once the queue is empty
        requests: Every request seen, in order
    """

    def __init__(self) -> None:
        self.orcid_results: list[dict[str, Any]] = []
        self.orcid_status = 200
        self.embeddings: dict[str, list[float]] = {}
        self.default_embedding: Optional[list[float]] = None
        self.chat_replies: list[ChatReply] = []
        self.default_chat_reply = "Strong mentorship and industry ties accelerate your career."
        self.requests: list[httpx.Request] = []

    def requests_to(self, path_fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if path_fragment in r.url.path]

    def chat_prompts(self) -> list[str]:
        prompts = []
        for request in self.requests_to("/chat/completions"):
            body = json.loads(request.content)
            prompts.append(body["messages"][-1]["content"])
        return prompts

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/search/"):
            if self.orcid_status != 200:
                return httpx.Response(self.orcid_status, text="orcid unavailable")
            return httpx.Response(
                200, json={"num-found": len(self.orcid_results), "result": self.orcid_results}
            )

        if path.endswith("/embeddings"):
            text = json.loads(request.content)["input"][0]
            vector = self._embedding_for(text)
            if vector is None:
                return httpx.Response(500, text="embedding failed")
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": vector}]})

        if path.endswith("/chat/completions"):
            reply: ChatReply = (
                self.chat_replies.pop(0) if self.chat_replies else self.default_chat_reply
            )
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, tuple):
                status, body = reply
                return httpx.Response(status, text=body)
            return httpx.Response(200, json=chat_body(reply))

        return httpx.Response(404, text=f"unexpected path {path}")

    def _embedding_for(self, text: str) -> Optional[list[float]]:
        if text in self.embeddings:
            return self.embeddings[text]
        for fragment, vector in self.embeddings.items():
            if fragment in text:
                return vector
        return self.default_embedding


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def config() -> AppConfig:
    """Configuration with an LLM key, pointing at the fake hosts."""
    return AppConfig(
        services=ServiceSettings(
            orcid_api_base_url=ORCID_BASE,
            llm_api_key="test-key",
            llm_base_url=LLM_BASE,
        ),
        log_file=None,
    )


@pytest.fixture
def config_without_key(config: AppConfig) -> AppConfig:
    """Configuration with no LLM credential (degraded/mock mode)."""
    services = config.services.model_copy(update={"llm_api_key": None})
    return config.model_copy(update={"services": services})


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        major="Computer Science",
        keywords="machine learning",
        education_level="masters_student",
    )


@pytest.fixture
def make_orcid_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw ORCID search records."""

    def _make(
        orcid_id: Optional[str],
        title: str = "",
        summary: str = "",
        keywords: Optional[list[str]] = None,
        works: Optional[list[tuple[str, str]]] = None,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {}
        if orcid_id is not None:
            record["orcid-identifier"] = {
                "uri": f"https://orcid.org/{orcid_id}",
                "path": orcid_id,
                "host": "orcid.org",
            }
        if title:
            record["title"] = [{"title": {"value": title}}]
        if summary:
            record["summary"] = [{"value": summary}]
        if keywords:
            record["keywords"] = {"value": keywords}
        if works:
            record["group"] = [
                {
                    "work-summary": [
                        {"title": {"title": {"value": t}}, "journal-title": {"value": j}}
                        for t, j in works
                    ]
                }
            ]
        return record

    return _make

"""
Pipeline error types.

Missing credentials are not errors (callers fall back to mock data), so only
failures that must abort a recommendation request live here.
"""


class RecommendationPipelineError(Exception):
    """Base class for failures that abort a recommendation request."""

    pass


class UpstreamServiceError(RecommendationPipelineError):
    """An external service failed at the transport or HTTP status level."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(message)


class DirectorySearchError(UpstreamServiceError):
    """Researcher directory search failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__("orcid", message, status_code)


class LLMServiceError(UpstreamServiceError):
    """Chat completion request failed or returned no content."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__("llm", message, status_code)


class RecommendationParseError(RecommendationPipelineError):
    """LLM output could not be turned into a list of recommendations."""

    pass

"""
FastAPI application exposing the recommendation pipeline.

Run with:
    uvicorn src.app:create_app --factory --host 0.0.0.0 --port 8000
or:
    python -m src.cli serve
"""

import os
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import httpx
import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.coordinator import RecommendationCoordinator
from src.models.config import AppConfig
from src.models.profile import UserProfile
from src.utils.errors import RecommendationPipelineError
from src.utils.logger import bind_request_context, clear_request_context, configure_logging

logger = structlog.get_logger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input."
PIPELINE_ERROR_MESSAGE = "A problem occurred while fetching recommendations."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing the request."

# system_params.json path for apps built by the factory (uvicorn --factory / --reload)
CONFIG_PATH_ENV = "LAB_RECOMMENDER_CONFIG"

router = APIRouter()


def validation_details(error: ValidationError) -> dict[str, list[str]]:
    """Flatten a pydantic ValidationError into {field: [messages]}."""
    details: dict[str, list[str]] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item.get("loc") else "body"
        details.setdefault(field, []).append(item["msg"])
    return details


def _invalid_input(details: dict[str, list[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": INVALID_INPUT_MESSAGE, "details": details},
    )


@router.get("/health", tags=["health"])
async def health(request: Request) -> dict[str, Any]:
    config: AppConfig = request.app.state.config
    return {"status": "ok", "llm_configured": config.services.llm_configured}


@router.post("/api/recommendations", tags=["recommendations"])
async def create_recommendations(request: Request) -> JSONResponse:
    """Validate the profile, run the pipeline and return recommendations."""
    correlation_id = getattr(request.state, "correlation_id", None)
    log = logger.bind(correlation_id=correlation_id)

    try:
        body = await request.json()
    except ValueError:
        log.warning("Request body is not valid JSON")
        return _invalid_input({"body": ["Request body must be valid JSON."]})

    if not isinstance(body, dict):
        log.warning("Request body is not a JSON object", body_type=type(body).__name__)
        return _invalid_input({"body": ["Request body must be a JSON object."]})

    try:
        profile = UserProfile.model_validate(body)
    except ValidationError as e:
        details = validation_details(e)
        log.warning("Invalid request body", details=details)
        return _invalid_input(details)

    coordinator: RecommendationCoordinator = request.app.state.coordinator
    try:
        labs = await coordinator.recommend(profile, correlation_id=correlation_id)
    except RecommendationPipelineError as e:
        log.error(
            "Error during recommendation pipeline",
            error=str(e),
            error_type=type(e).__name__,
            service=getattr(e, "service", None),
            status_code=getattr(e, "status_code", None),
        )
        return JSONResponse(
            status_code=500,
            content={"error": PIPELINE_ERROR_MESSAGE, "details": f"Details: {e}"},
        )
    except Exception as e:
        log.exception("Unexpected error in recommendation handler")
        return JSONResponse(
            status_code=500,
            content={"error": UNEXPECTED_ERROR_MESSAGE, "details": str(e)},
        )

    return JSONResponse(content=[lab.to_response() for lab in labs])


def create_app(
    config: Optional[AppConfig] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration (loaded from .env/environment and the
            file named by LAB_RECOMMENDER_CONFIG if None)
        http_client: Shared outbound HTTP client; created and closed with the
            app lifespan if None

    Returns:
        Configured FastAPI app
    """
    if config is None:
        config = AppConfig.load(config_path=os.environ.get(CONFIG_PATH_ENV) or None)
        configure_logging(log_file=config.log_file, log_level=config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owns_client = http_client is None
        client = http_client or httpx.AsyncClient(timeout=config.services.http_timeout)
        app.state.config = config
        app.state.coordinator = RecommendationCoordinator(config, client)
        logger.info(
            "Lab recommender started",
            llm_configured=config.services.llm_configured,
            orcid_api_base_url=config.services.orcid_api_base_url,
            chat_model=config.services.chat_model,
            embedding_model=config.services.embedding_model,
        )
        try:
            yield
        finally:
            if owns_client:
                await client.aclose()

    app = FastAPI(
        title="Lab Recommender",
        description="Research lab and mentor recommendations from an academic profile",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        bind_request_context(correlation_id, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = correlation_id
        return response

    app.include_router(router)
    return app

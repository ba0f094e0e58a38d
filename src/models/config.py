"""
Configuration Models

Pydantic models for service configuration. Built once at process start and
passed by reference into every component; business logic never reads the
environment directly.
"""

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Environment variable -> ServiceSettings field
ENV_FIELD_MAP = {
    "ORCID_API_BASE_URL": "orcid_api_base_url",
    "DEEPSEEK_API_KEY": "llm_api_key",
    "DEEPSEEK_BASE_URL": "llm_base_url",
    "DEEPSEEK_CHAT_ENDPOINT": "chat_endpoint",
    "DEEPSEEK_CHAT_MODEL": "chat_model",
    "DEEPSEEK_EMBEDDING_ENDPOINT": "embedding_endpoint",
    "DEEPSEEK_EMBEDDING_MODEL": "embedding_model",
    "DEEPSEEK_EMBEDDING_VECTOR_PATH": "embedding_vector_path",
    "HTTP_TIMEOUT_SECONDS": "http_timeout",
}


class ServiceSettings(BaseModel):
    """Outbound service endpoints, models and credentials."""

    orcid_api_base_url: str = Field(default="https://pub.orcid.org/v3.0")
    llm_api_key: Optional[str] = Field(default=None)
    llm_base_url: str = Field(default="https://api.deepseek.com")
    chat_endpoint: str = Field(default="/v1/chat/completions")
    chat_model: str = Field(default="deepseek-chat")
    embedding_endpoint: str = Field(default="/v1/embeddings")
    embedding_model: str = Field(default="deepseek-chat")
    embedding_vector_path: str = Field(default="data.0.embedding")
    http_timeout: float = Field(default=60.0, gt=0)

    @field_validator("llm_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only key as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("orcid_api_base_url", "llm_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("chat_endpoint", "embedding_endpoint")
    @classmethod
    def ensure_leading_slash(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @property
    def llm_configured(self) -> bool:
        return self.llm_api_key is not None

    @property
    def chat_url(self) -> str:
        return f"{self.llm_base_url}{self.chat_endpoint}"

    @property
    def embedding_url(self) -> str:
        return f"{self.llm_base_url}{self.embedding_endpoint}"


class RankingParams(BaseModel):
    """Candidate retrieval and similarity filtering parameters."""

    search_rows: int = Field(default=30, gt=0, le=200)
    min_similarity: float = Field(default=0.10, ge=0.0, le=1.0)
    top_k: int = Field(default=10, gt=0, le=100)
    fallback_k: int = Field(default=5, gt=0, le=100)


class GenerationParams(BaseModel):
    """Chat completion sampling parameters per prompt."""

    synthesis_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    synthesis_max_tokens: int = Field(default=2500, gt=0)
    narrative_temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    narrative_max_tokens: int = Field(default=100, gt=0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    services: ServiceSettings = Field(default_factory=ServiceSettings)
    ranking: RankingParams = Field(default_factory=RankingParams)
    generation: GenerationParams = Field(default_factory=GenerationParams)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default="logs/lab-recommender.log")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[dict] = None,
    ) -> "AppConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            overrides: Parsed system_params.json content applied underneath env values

        Returns:
            AppConfig: Validated configuration
        """
        env = os.environ if environ is None else environ
        data = dict(overrides or {})

        services = dict(data.get("services", {}))
        for env_key, field_name in ENV_FIELD_MAP.items():
            if env_key in env:
                services[field_name] = env[env_key]
        data["services"] = services

        if "LOG_LEVEL" in env:
            data["log_level"] = env["LOG_LEVEL"]
        if "LOG_FILE" in env:
            data["log_file"] = env["LOG_FILE"] or None

        return cls(**data)

    @classmethod
    def load(
        cls,
        config_path: Path | str | None = None,
        env_file: Path | str | None = Path(".env"),
    ) -> "AppConfig":
        """Load configuration from .env, the environment and an optional JSON file.

        Args:
            config_path: Path to system_params.json; None skips the file
            env_file: .env file loaded into the environment if it exists

        Returns:
            AppConfig: Validated configuration

        Raises:
            FileNotFoundError: If config_path is given but doesn't exist
            ValidationError: If config validation fails
        """
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)

        overrides: dict = {}
        if config_path is not None:
            config_path = Path(config_path)
            if not config_path.exists():
                raise FileNotFoundError(
                    f"Config file not found: {config_path}. "
                    f"Copy {config_path.stem}.example.json to {config_path.name}"
                )
            with open(config_path, "r", encoding="utf-8") as f:
                overrides = json.load(f)

        return cls.from_env(overrides=overrides)

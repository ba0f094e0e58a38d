"""
Unit tests for configuration models.
"""

import json

import pytest
from pydantic import ValidationError

from src.models.config import AppConfig, RankingParams, ServiceSettings


class TestServiceSettings:
    """Test cases for ServiceSettings."""

    def test_defaults(self):
        # Act
        services = ServiceSettings()

        # Assert
        assert services.orcid_api_base_url == "https://pub.orcid.org/v3.0"
        assert services.chat_url == "https://api.deepseek.com/v1/chat/completions"
        assert services.embedding_url == "https://api.deepseek.com/v1/embeddings"
        assert services.embedding_vector_path == "data.0.embedding"
        assert services.llm_configured is False

    def test_blank_key_is_not_configured(self):
        assert ServiceSettings(llm_api_key="   ").llm_configured is False
        assert ServiceSettings(llm_api_key=" sk-1 ").llm_api_key == "sk-1"

    def test_url_normalization(self):
        """Test trailing slashes and missing leading slashes are normalized."""
        # Act
        services = ServiceSettings(
            llm_base_url="https://llm.example.com/",
            chat_endpoint="chat",
            embedding_endpoint="/embed",
        )

        # Assert
        assert services.chat_url == "https://llm.example.com/chat"
        assert services.embedding_url == "https://llm.example.com/embed"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ServiceSettings(http_timeout=0)


class TestRankingParams:
    """Test cases for RankingParams."""

    def test_defaults(self):
        params = RankingParams()

        assert params.search_rows == 30
        assert params.min_similarity == 0.10
        assert params.top_k == 10
        assert params.fallback_k == 5

    def test_min_similarity_range(self):
        with pytest.raises(ValidationError):
            RankingParams(min_similarity=1.5)


class TestAppConfig:
    """Test cases for AppConfig loading."""

    def test_from_env_maps_variables(self):
        """Test that environment variables populate service settings."""
        # Arrange
        environ = {
            "ORCID_API_BASE_URL": "https://orcid.example/v3.0/",
            "DEEPSEEK_API_KEY": "sk-test",
            "DEEPSEEK_BASE_URL": "https://llm.example",
            "DEEPSEEK_CHAT_MODEL": "chat-x",
            "DEEPSEEK_EMBEDDING_MODEL": "embed-x",
            "DEEPSEEK_EMBEDDING_VECTOR_PATH": "embeddings[0]",
            "HTTP_TIMEOUT_SECONDS": "15",
            "LOG_LEVEL": "debug",
            "LOG_FILE": "",
        }

        # Act
        config = AppConfig.from_env(environ=environ)

        # Assert
        assert config.services.orcid_api_base_url == "https://orcid.example/v3.0"
        assert config.services.llm_api_key == "sk-test"
        assert config.services.chat_model == "chat-x"
        assert config.services.embedding_model == "embed-x"
        assert config.services.embedding_vector_path == "embeddings[0]"
        assert config.services.http_timeout == 15.0
        assert config.log_level == "DEBUG"
        assert config.log_file is None

    def test_env_overrides_json_overrides(self):
        # Arrange
        overrides = {
            "services": {"chat_model": "from-file"},
            "ranking": {"top_k": 3},
        }

        # Act
        config = AppConfig.from_env(
            environ={"DEEPSEEK_CHAT_MODEL": "from-env"}, overrides=overrides
        )

        # Assert
        assert config.services.chat_model == "from-env"
        assert config.ranking.top_k == 3

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            AppConfig.from_env(environ={"LOG_LEVEL": "verbose"})

    def test_load_reads_config_file(self, tmp_path, monkeypatch):
        """Test load() with a system_params.json file."""
        # Arrange
        for key in ("DEEPSEEK_API_KEY", "LOG_LEVEL", "LOG_FILE"):
            monkeypatch.delenv(key, raising=False)
        config_path = tmp_path / "system_params.json"
        config_path.write_text(
            json.dumps({"ranking": {"min_similarity": 0.25}, "log_level": "WARNING"})
        )

        # Act
        config = AppConfig.load(config_path=config_path, env_file=None)

        # Assert
        assert config.ranking.min_similarity == 0.25
        assert config.log_level == "WARNING"

    def test_load_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load(config_path=tmp_path / "missing.json", env_file=None)

    def test_load_reads_env_file(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.setenv("DEEPSEEK_CHAT_MODEL", "placeholder")
        monkeypatch.delenv("DEEPSEEK_CHAT_MODEL")
        env_file = tmp_path / ".env"
        env_file.write_text("DEEPSEEK_CHAT_MODEL=dotenv-model\n")

        # Act
        config = AppConfig.load(env_file=env_file)

        # Assert
        assert config.services.chat_model == "dotenv-model"

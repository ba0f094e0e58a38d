"""
Unit tests for logger module.
"""

from unittest.mock import patch, MagicMock

import structlog
from structlog.testing import capture_logs

from src.utils.logger import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    mask_credentials,
)


class TestMaskCredentials:
    """Test cases for mask_credentials processor."""

    def test_masks_api_key_field(self):
        """Test that api_key fields are masked."""
        # Arrange
        logger = MagicMock()
        event_dict = {"event": "Embedding request", "api_key": "sk-1234567890"}

        # Act
        result = mask_credentials(logger, "info", event_dict)

        # Assert
        assert result["api_key"] == "***MASKED***"

    def test_masks_authorization_header_field(self):
        """Test that authorization fields are masked."""
        # Arrange
        logger = MagicMock()
        event_dict = {"event": "LLM call", "authorization": "Bearer sk-abc"}

        # Act
        result = mask_credentials(logger, "info", event_dict)

        # Assert
        assert result["authorization"] == "***MASKED***"

    def test_masks_prefixed_and_suffixed_fields(self):
        """Test that sensitive words joined by underscore or hyphen are masked."""
        # Arrange
        logger = MagicMock()
        event_dict = {
            "deepseek_api_key": "sk-1",
            "token-value": "abc",
            "secret_name": "hidden",
        }

        # Act
        result = mask_credentials(logger, "info", event_dict)

        # Assert
        assert result["deepseek_api_key"] == "***MASKED***"
        assert result["token-value"] == "***MASKED***"
        assert result["secret_name"] == "***MASKED***"

    def test_does_not_mask_words_containing_sensitive_substring(self):
        """Test that only whole words are matched."""
        # Arrange
        logger = MagicMock()
        event_dict = {"author": "Ada Lovelace", "tokens_used": 120}

        # Act
        result = mask_credentials(logger, "info", event_dict)

        # Assert
        assert result["author"] == "Ada Lovelace"
        assert result["tokens_used"] == 120

    def test_does_not_mask_non_sensitive_fields(self):
        """Test that non-sensitive fields are not masked."""
        # Arrange
        logger = MagicMock()
        event_dict = {
            "event": "Candidates ranked",
            "orcid_id": "0000-0002-1825-0097",
            "count": 4,
        }

        # Act
        result = mask_credentials(logger, "info", event_dict)

        # Assert
        assert result["orcid_id"] == "0000-0002-1825-0097"
        assert result["count"] == 4


class TestConfigureLogging:
    """Test cases for configure_logging function."""

    @patch("src.utils.logger.Path")
    @patch("src.utils.logger.logging")
    @patch("src.utils.logger.structlog")
    def test_creates_log_directory(self, mock_structlog, mock_logging, mock_path):
        """Test that configure_logging creates the log file's directory."""
        # Arrange
        mock_log_path = MagicMock()
        mock_path.return_value = mock_log_path

        # Act
        configure_logging(log_file="logs/test.log")

        # Assert
        mock_log_path.parent.mkdir.assert_called_once_with(parents=True, exist_ok=True)
        mock_logging.FileHandler.assert_called_once_with("logs/test.log", encoding="utf-8")

    @patch("src.utils.logger.Path")
    @patch("src.utils.logger.logging")
    @patch("src.utils.logger.structlog")
    def test_stdout_only_without_log_file(self, mock_structlog, mock_logging, mock_path):
        """Test that no file handler is created when log_file is None."""
        # Act
        configure_logging(log_file=None)

        # Assert
        mock_path.assert_not_called()
        mock_logging.FileHandler.assert_not_called()
        handlers = mock_logging.basicConfig.call_args[1]["handlers"]
        assert len(handlers) == 1

    @patch("src.utils.logger.Path")
    @patch("src.utils.logger.logging")
    @patch("src.utils.logger.structlog")
    def test_configures_structlog_processors(
        self, mock_structlog, mock_logging, mock_path
    ):
        """Test that configure_logging sets up structlog processors."""
        # Act
        configure_logging(log_file=None)

        # Assert
        mock_structlog.configure.assert_called_once()
        call_kwargs = mock_structlog.configure.call_args[1]
        assert mask_credentials in call_kwargs["processors"]

    @patch("src.utils.logger.structlog")
    def test_applies_log_level(self, mock_structlog):
        """Test that the requested level reaches the stdlib root logger."""
        # Arrange
        with patch("src.utils.logger.logging.basicConfig") as mock_basic_config:
            # Act
            configure_logging(log_file=None, log_level="debug")

        # Assert
        assert mock_basic_config.call_args[1]["level"] == 10
        assert mock_basic_config.call_args[1]["force"] is True


class TestGetLogger:
    """Test cases for get_logger function."""

    def test_generates_correlation_id_if_not_provided(self):
        """Test that get_logger returns a usable logger without a correlation_id."""
        # Act
        logger = get_logger()

        # Assert
        assert logger is not None

    def test_binds_all_context_parameters(self):
        """Test that get_logger binds all context parameters."""
        # Act
        with capture_logs() as captured:
            logger = get_logger(
                correlation_id="test-id", phase="ranking", component="candidate_ranker"
            )
            logger.info("Candidates ranked")

        # Assert
        assert captured[0]["correlation_id"] == "test-id"
        assert captured[0]["phase"] == "ranking"
        assert captured[0]["component"] == "candidate_ranker"


class TestRequestContext:
    """Test cases for per-request context binding."""

    def test_bind_and_clear_request_context(self):
        """Test that request context is bound and then cleared."""
        # Act
        bind_request_context("req-1", path="/api/recommendations")
        bound = structlog.contextvars.get_contextvars()
        clear_request_context()

        # Assert
        assert bound == {"correlation_id": "req-1", "path": "/api/recommendations"}
        assert structlog.contextvars.get_contextvars() == {}

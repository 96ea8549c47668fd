"""Tests for error conversion and user-facing error messages."""

import pytest
import requests
from unittest.mock import patch

from promptgen.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    CredentialMissingError,
    FetchError,
    MissingParameterError,
    ModelNotFoundError,
    NetworkError,
    NetworkTimeoutError,
    OutputError,
    PromptgenError,
    RateLimitError,
    ServerError,
    UnsupportedParameterError,
    VendorError,
    handle_request_error,
    vendor_error,
)


class TestExceptionMessages:
    """Exceptions carry one-line user messages and help text."""

    def test_timeout_message(self):
        error = NetworkTimeoutError("Together", timeout=30)
        assert error.message == "Request timed out after 30 seconds"
        assert error.user_message == "Together: Request timed out after 30 seconds"
        assert "--timeout" in error.help_text

    def test_credential_missing_names_variable(self):
        error = CredentialMissingError("OpenAI", "OPENAI_API_KEY")
        assert "OPENAI_API_KEY" in error.user_message
        assert ".env" in error.help_text

    def test_missing_parameter_is_configuration_error(self):
        error = MissingParameterError("negative_prompt", "sdxl")
        assert isinstance(error, ConfigurationError)
        assert "--negative-prompt" in error.help_text
        assert error.user_message.startswith("Invalid service configuration")

    def test_model_not_found_lists_models(self):
        error = ModelNotFoundError("hf", "dalle3", ["sdxl", "flux-dev"])
        assert "dalle3" in error.user_message
        assert "sdxl, flux-dev" in error.help_text

    def test_unsupported_parameter_with_reason(self):
        error = UnsupportedParameterError("seed", "dalle3", "OpenAI has no seeding")
        assert str(error) == "Model `dalle3` does not support `seed` (OpenAI has no seeding)"

    def test_fetch_error_is_vendor_error(self):
        error = FetchError("Together", status_code=403)
        assert isinstance(error, VendorError)
        assert error.user_message == "Together: Failed to fetch image after successful generation"

    def test_output_error(self):
        error = OutputError("out.png", "Permission denied")
        assert error.user_message == "Couldn't write to out.png: Permission denied"

    def test_all_errors_share_base(self):
        for error in (
            NetworkError("OpenAI"),
            ServerError("OpenAI", "boom", 500),
            ConfigurationError("bad"),
            OutputError("x"),
        ):
            assert isinstance(error, PromptgenError)

    def test_construction_logs_at_debug_only(self):
        with patch("promptgen.exceptions.logger") as mock_logger:
            NetworkError("OpenAI", "refused")
        mock_logger.debug.assert_called_once()
        mock_logger.error.assert_not_called()


class TestVendorErrorMapping:
    """Non-2xx statuses pick a subclass but keep the vendor message."""

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status):
        error = vendor_error("OpenAI", status, "Invalid key")
        assert isinstance(error, AuthenticationError)
        assert error.status_code == status
        assert error.message == "Invalid key"

    def test_rate_limit_with_retry_after(self):
        error = vendor_error("OpenAI", 429, "Slow down", {"Retry-After": "12"})
        assert isinstance(error, RateLimitError)
        assert error.retry_after == 12
        assert "12 seconds" in error.help_text

    def test_rate_limit_with_unparseable_retry_after(self):
        error = vendor_error("OpenAI", 429, "Slow down", {"Retry-After": "soon"})
        assert error.retry_after is None

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors(self, status):
        error = vendor_error("Hugging Face", status, "Service Unavailable")
        assert isinstance(error, ServerError)
        assert error.status_code == status

    def test_other_client_errors(self):
        error = vendor_error("Together", 422, "steps must be <= 4")
        assert type(error) is VendorError
        assert error.user_message == "Together: steps must be <= 4"


class TestRequestsErrorHandling:
    """Conversion of requests transport errors."""

    def test_timeout(self):
        converted = handle_request_error(requests.exceptions.Timeout(), "OpenAI", 45)
        assert isinstance(converted, NetworkTimeoutError)
        assert converted.timeout == 45

    def test_connect_timeout_is_a_timeout(self):
        converted = handle_request_error(requests.exceptions.ConnectTimeout(), "OpenAI", 10)
        assert isinstance(converted, NetworkTimeoutError)

    def test_connection_error(self):
        converted = handle_request_error(requests.exceptions.ConnectionError("DNS failure"), "Together", 60)
        assert isinstance(converted, NetworkError)
        assert "DNS failure" in converted.message

    def test_generic_request_exception(self):
        converted = handle_request_error(requests.exceptions.TooManyRedirects("loop"), "Together", 60)
        assert isinstance(converted, NetworkError)

    def test_unknown_error(self):
        converted = handle_request_error(RuntimeError("weird"), "Together", 60)
        assert type(converted) is APIError
        assert "weird" in converted.message

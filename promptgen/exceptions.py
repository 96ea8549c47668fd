"""Custom exceptions for promptgen with user-friendly error messages."""

from __future__ import annotations
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class PromptgenError(Exception):
    """Base exception for all promptgen errors."""

    def __init__(self, message: str, user_message: Optional[str] = None, help_text: Optional[str] = None):
        """Initialize error with technical and user-friendly messages.

        Args:
            message: Technical error message for logs
            user_message: One-line message shown on stderr
            help_text: Optional help/suggestion text
        """
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.help_text = help_text

        self._log_error()

    def _log_error(self):
        """Log technical details; the CLI prints the user message itself."""
        logger.debug(f"{type(self).__name__}: {self.message}")


class ConfigurationError(PromptgenError):
    """The service catalog is missing, malformed or violates its schema."""

    def __init__(self, message: str, help_text: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(
            message,
            user_message=user_message or f"Invalid service configuration: {message}",
            help_text=help_text,
        )


class MissingParameterError(ConfigurationError):
    """Neither the CLI nor the model's defaults supply a required tunable."""

    def __init__(self, parameter: str, model: str):
        self.parameter = parameter
        self.model = model
        super().__init__(
            f"No value for `{parameter}`: not given on the command line and model `{model}` has no default",
            help_text=f"Pass --{parameter.replace('_', '-')} or add a default to the `{model}` entry",
        )


class ModelNotFoundError(ConfigurationError):
    """Requested model is not configured for the service."""

    def __init__(self, service: str, model: str, available_models: Optional[list[str]] = None):
        self.service = service
        self.model = model
        self.available_models = available_models or []

        help_text = "Run `gen --list-models` to see the configured models"
        if available_models:
            help_text += f". Available for {service}: {', '.join(available_models)}"

        message = f"Model `{model}` is not configured for service `{service}`"
        super().__init__(message, help_text=help_text, user_message=message)


class CredentialMissingError(PromptgenError):
    """Required API credential environment variable is absent."""

    def __init__(self, provider: str, env_var: str):
        self.provider = provider
        self.env_var = env_var
        super().__init__(
            f"{provider} API key not found: `{env_var}` not set",
            help_text=f"Export {env_var} or add it to a .env file in the working directory",
        )


class UnsupportedParameterError(PromptgenError):
    """A CLI value was given for a tunable the selected model or vendor cannot use."""

    def __init__(self, parameter: str, model: str, reason: Optional[str] = None):
        self.parameter = parameter
        self.model = model
        message = f"Model `{model}` does not support `{parameter}`"
        if reason:
            message += f" ({reason})"
        super().__init__(message, help_text=f"Drop --{parameter.replace('_', '-')} or choose another model")


class UnsupportedOperationError(PromptgenError):
    """The provider does not offer the requested kind of generation."""

    def __init__(self, provider: str, operation: str):
        self.provider = provider
        self.operation = operation
        super().__init__(f"{provider} does not support {operation} generation")


class APIError(PromptgenError):
    """Base class for errors raised while talking to a vendor API."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None, **kwargs):
        self.provider = provider
        self.status_code = status_code
        kwargs.setdefault("user_message", f"{provider}: {message}")
        super().__init__(message, **kwargs)


class NetworkTimeoutError(APIError):
    """API request did not complete within the configured timeout."""

    def __init__(self, provider: str, timeout: int):
        self.timeout = timeout
        super().__init__(
            provider=provider,
            message=f"Request timed out after {timeout} seconds",
            help_text="The provider took too long to respond. Try again or raise --timeout.",
        )


class NetworkError(APIError):
    """Network connectivity error."""

    def __init__(self, provider: str, details: Optional[str] = None):
        message = f"Network error connecting to {provider}"
        if details:
            message += f": {details}"

        super().__init__(
            provider=provider,
            message=message,
            user_message=message,
            help_text="Check your internet connection and try again",
        )


class VendorError(APIError):
    """Vendor answered with a non-2xx status and a readable error message."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None, help_text: Optional[str] = None):
        super().__init__(provider=provider, message=message, status_code=status_code, help_text=help_text)


class AuthenticationError(VendorError):
    """API authentication failed error."""

    def __init__(self, provider: str, message: str, status_code: int = 401):
        super().__init__(
            provider,
            message,
            status_code=status_code,
            help_text=f"Check your {provider} API key. Make sure it's valid and has the correct permissions.",
        )


class RateLimitError(VendorError):
    """Rate limit exceeded error."""

    def __init__(self, provider: str, message: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after

        help_text = "Try again in a few minutes, or use a different service"
        if retry_after:
            help_text = f"Wait {retry_after} seconds and try again, or switch to a different service"

        super().__init__(provider, message, status_code=429, help_text=help_text)


class ServerError(VendorError):
    """API server error (5xx)."""

    def __init__(self, provider: str, message: str, status_code: int):
        super().__init__(
            provider,
            message,
            status_code=status_code,
            help_text="Try again in a few minutes, or temporarily use a different service",
        )


class FetchError(VendorError):
    """Second-stage download of a generated artifact failed."""

    def __init__(self, provider: str, status_code: Optional[int] = None):
        super().__init__(
            provider,
            "Failed to fetch image after successful generation",
            status_code=status_code,
        )


class DecodeError(APIError):
    """Response body does not match the expected schema."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(provider=provider, message=message, status_code=status_code)


class OutputError(PromptgenError):
    """Output artifact could not be created or written."""

    def __init__(self, path: str, details: Optional[str] = None):
        self.path = path
        message = f"Couldn't write to {path}"
        if details:
            message += f": {details}"
        super().__init__(message)


def vendor_error(provider: str, status_code: int, message: str, headers: Optional[dict] = None) -> VendorError:
    """Pick the VendorError subclass for a non-2xx status.

    The vendor's message is kept verbatim; the subclass only adds help text.
    """
    if status_code in (401, 403):
        return AuthenticationError(provider, message, status_code=status_code)

    if status_code == 429:
        retry_after = None
        if headers and "Retry-After" in headers:
            try:
                retry_after = int(headers["Retry-After"])
            except ValueError:
                pass
        return RateLimitError(provider, message, retry_after)

    if status_code >= 500:
        return ServerError(provider, message, status_code)

    return VendorError(provider, message, status_code=status_code)


def handle_request_error(error: Exception, provider: str, timeout: int) -> APIError:
    """Convert a transport-level requests exception to a promptgen error.

    Args:
        error: The original exception
        provider: Name of the provider (for error messages)
        timeout: Configured per-request timeout in seconds

    Returns:
        APIError subclass with helpful messages
    """
    import requests

    if isinstance(error, requests.exceptions.Timeout):
        return NetworkTimeoutError(provider, timeout)

    if isinstance(error, requests.exceptions.ConnectionError):
        return NetworkError(provider, str(error))

    if isinstance(error, requests.exceptions.RequestException):
        return NetworkError(provider, str(error))

    return APIError(
        provider=provider,
        message=f"Unexpected error: {error}",
        help_text="Run again with --debug for details",
    )

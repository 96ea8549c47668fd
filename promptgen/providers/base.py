"""Shared plumbing for vendor API clients."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..config import DEFAULT_TIMEOUT, get_credential
from ..exceptions import (
    DecodeError,
    NetworkTimeoutError,
    UnsupportedOperationError,
    UnsupportedParameterError,
    handle_request_error,
    vendor_error,
)
from ..resolver import ResolvedRequest

logger = logging.getLogger(__name__)


def sparse(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None; omission means "not applicable"."""
    return {k: v for k, v in payload.items() if v is not None}


def _error_message(body: Any) -> Optional[str]:
    """Pull the human-readable message out of a vendor error envelope.

    Accepts ``{"error": "..."}``, ``{"error": {"message": "..."}}`` and
    ``{"message": "..."}``.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(body.get("message"), str):
        return body["message"]
    return None


class ProviderClient(ABC):
    """Abstract base class for vendor clients.

    Subclasses set the class attributes and implement generate_image();
    text-capable vendors also override generate_text().
    """

    provider_name: str = ""
    credential_env: str = ""
    supports_seed: bool = True
    supports_text: bool = False

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        self.api_key = get_credential(self.credential_env, self.provider_name)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            }
        )
        logger.debug(f"Created {self.provider_name} client (timeout={timeout}s)")

    @abstractmethod
    def build_image_payload(self, request: ResolvedRequest) -> Dict[str, Any]:
        """Vendor JSON body for an image request."""
        pass

    @abstractmethod
    def generate_image(self, request: ResolvedRequest) -> bytes:
        """Generate an image and return its raw bytes."""
        pass

    def generate_text(self, request: ResolvedRequest) -> str:
        raise UnsupportedOperationError(self.provider_name, "text")

    def check_seed(self, request: ResolvedRequest) -> None:
        if request.seed is not None and not self.supports_seed:
            raise UnsupportedParameterError("seed", request.model.id, f"{self.provider_name} has no seeding")

    def _send(
        self,
        method: str,
        url: str,
        session: Optional[requests.Session] = None,
        max_bytes: Optional[int] = None,
        **kwargs,
    ) -> requests.Response:
        """Issue one HTTP call and read its whole body within `timeout` seconds.

        The deadline covers connect, headers and the streamed body. The call
        runs on a daemon thread and is abandoned once the deadline passes.

        Raises:
            NetworkTimeoutError: If headers and body are not in by the deadline
            NetworkError: On any other transport failure
            DecodeError: If the body exceeds max_bytes
        """
        if session is None:
            session = self.session
        outcome: Dict[str, Any] = {}

        def call():
            try:
                response = session.request(method, url, timeout=self.timeout, stream=True, **kwargs)
                outcome["response"] = self._read_body(response, max_bytes)
            except BaseException as e:
                outcome["error"] = e

        worker = threading.Thread(target=call, name=f"{self.provider_name} {method}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            logger.debug(f"{method} {url} still running after {self.timeout}s, abandoning it")
            raise NetworkTimeoutError(self.provider_name, self.timeout)

        error = outcome.get("error")
        if isinstance(error, requests.exceptions.RequestException):
            raise handle_request_error(error, self.provider_name, self.timeout) from error
        if error is not None:
            raise error
        return outcome["response"]

    def _read_body(self, response: requests.Response, max_bytes: Optional[int] = None) -> requests.Response:
        """Drain a streamed response into memory, enforcing an optional size cap."""
        if max_bytes is not None:
            content_length = int(response.headers.get("Content-Length", 0) or 0)
            if content_length > max_bytes:
                response.close()
                raise DecodeError(self.provider_name, f"Response too large: {content_length} bytes (max: {max_bytes})")

        chunks = []
        downloaded = 0
        for chunk in response.iter_content(chunk_size=8192):
            downloaded += len(chunk)
            if max_bytes is not None and downloaded > max_bytes:
                response.close()
                raise DecodeError(self.provider_name, f"Response too large: over {max_bytes} bytes")
            chunks.append(chunk)

        response._content = b"".join(chunks)
        response._content_consumed = True
        return response

    def post_json(self, url: str, payload: Dict[str, Any]) -> requests.Response:
        """POST a JSON body and return the response if it is 2xx.

        Raises:
            NetworkTimeoutError: If the request exceeds the timeout
            VendorError: If the vendor answers non-2xx with a readable message
            DecodeError: If the error envelope itself cannot be decoded
        """
        logger.debug(f"Sending request to {self.provider_name} API: {url}")
        response = self._send("POST", url, json=payload)
        if not response.ok:
            raise self._error_from(response)
        logger.debug(f"Parsing response from {self.provider_name} API")
        return response

    def _error_from(self, response: requests.Response):
        status = response.status_code
        try:
            body = response.json()
        except ValueError as e:
            return DecodeError(
                self.provider_name,
                f"HTTP {status} with an undecodable error body: {e}",
                status_code=status,
            )

        message = _error_message(body)
        if message is None:
            return DecodeError(
                self.provider_name,
                f"HTTP {status} with an unexpected error body: {str(body)[:200]}",
                status_code=status,
            )
        return vendor_error(self.provider_name, status, message, dict(response.headers or {}))

    def json_body(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(self.provider_name, f"Response is not valid JSON: {e}") from e

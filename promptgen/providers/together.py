"""Together AI image generation client."""

from __future__ import annotations

import logging
from typing import Any, Dict
from urllib.parse import urlparse

import requests

from ..config import CREDENTIAL_ENV_VARS, DEFAULT_TIMEOUT
from ..exceptions import DecodeError, FetchError
from ..resolver import ResolvedRequest
from .base import ProviderClient, sparse

logger = logging.getLogger(__name__)

API_URL = "https://api.together.xyz/v1/images/generations"
MAX_IMAGE_BYTES = 50 * 1024 * 1024


class TogetherClient(ProviderClient):
    """Together returns a URL to the generated image; a second GET fetches it."""

    provider_name = "Together"
    credential_env = CREDENTIAL_ENV_VARS["together"]

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        super().__init__(timeout)
        # The pointer can name any host; it never sees the API key
        self.fetch_session = requests.Session()

    def build_image_payload(self, request: ResolvedRequest) -> Dict[str, Any]:
        payload = sparse(
            {
                "model": request.model.name,
                "prompt": request.prompt,
                "width": request.width,
                "height": request.height,
                "steps": request.steps,
                "negative_prompt": request.negative_prompt or None,
                "seed": request.seed,
            }
        )
        payload.update(request.model.options)
        return payload

    def generate_image(self, request: ResolvedRequest) -> bytes:
        self.check_seed(request)
        payload = self.build_image_payload(request)
        body = self.json_body(self.post_json(API_URL, payload))

        try:
            image_url = body["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError(self.provider_name, f"No image URL found in response ({e!r})") from e

        # SECURITY: only follow http(s) pointers
        if not isinstance(image_url, str) or urlparse(image_url).scheme not in ("http", "https"):
            raise DecodeError(self.provider_name, f"Invalid image URL in response: {image_url!r}")

        logger.debug(f"Fetching image result from {image_url}")
        image_response = self._send("GET", image_url, session=self.fetch_session, max_bytes=MAX_IMAGE_BYTES)
        if not image_response.ok:
            raise FetchError(self.provider_name, status_code=image_response.status_code)

        logger.debug(f"Parsing second response from {self.provider_name} API")
        return image_response.content

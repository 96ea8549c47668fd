"""OpenAI images and chat completions client."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict

from ..config import CREDENTIAL_ENV_VARS
from ..exceptions import DecodeError
from ..resolver import ResolvedRequest
from .base import ProviderClient, sparse

logger = logging.getLogger(__name__)

API_URL = "https://api.openai.com/v1"


class OpenAIClient(ProviderClient):
    """DALL-E image generation (inline base64) and chat text generation."""

    provider_name = "OpenAI"
    credential_env = CREDENTIAL_ENV_VARS["openai"]
    supports_seed = False  # DALL-E takes no seed
    supports_text = True

    def build_image_payload(self, request: ResolvedRequest) -> Dict[str, Any]:
        width = request.require("width")
        height = request.require("height")
        payload = sparse(
            {
                "model": request.model.name,
                "prompt": request.prompt,
                "n": 1,
                "response_format": "b64_json",
                "size": f"{width}x{height}",
                "style": request.style,
            }
        )
        payload.update(request.model.options)
        return payload

    def build_text_payload(self, request: ResolvedRequest) -> Dict[str, Any]:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        payload = sparse(
            {
                "model": request.model.name,
                "modalities": ["text"],
                "n": 1,
                "stream": False,
                "frequency_penalty": request.frequency,
                "presence_penalty": request.presence,
                "temperature": request.temperature,
                "messages": messages,
            }
        )
        payload.update(request.model.options)
        return payload

    def generate_image(self, request: ResolvedRequest) -> bytes:
        self.check_seed(request)
        payload = self.build_image_payload(request)
        body = self.json_body(self.post_json(f"{API_URL}/images/generations", payload))

        try:
            image = body["data"][0]
            b64_json = image["b64_json"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError(self.provider_name, f"No image data found in response ({e!r})") from e

        if image.get("revised_prompt"):
            logger.debug(f"Revised prompt: {image['revised_prompt']}")

        try:
            return base64.b64decode(b64_json, validate=True)
        except (binascii.Error, TypeError) as e:
            raise DecodeError(self.provider_name, f"Failed to decode base64 image: {e}") from e

    def generate_text(self, request: ResolvedRequest) -> str:
        self.check_seed(request)
        payload = self.build_text_payload(request)
        body = self.json_body(self.post_json(f"{API_URL}/chat/completions", payload))

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError(self.provider_name, f"No text content found in response ({e!r})") from e

        if not isinstance(content, str):
            raise DecodeError(self.provider_name, "No text content found in response")
        return content

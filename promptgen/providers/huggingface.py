"""Hugging Face Inference API client."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import CREDENTIAL_ENV_VARS, DEFAULT_TIMEOUT
from ..resolver import ResolvedRequest
from .base import ProviderClient, sparse

logger = logging.getLogger(__name__)

API_URL = "https://api-inference.huggingface.co/models"


class HuggingFaceClient(ProviderClient):
    """Text-to-image through the serverless Inference API.

    The response body is the image itself.
    """

    provider_name = "Hugging Face"
    credential_env = CREDENTIAL_ENV_VARS["hf"]

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        super().__init__(timeout)
        # Wait for a cold model instead of failing with 503; never reuse cached generations
        self.session.headers.update({"x-wait-for-model": "true", "x-use-cache": "false"})

    def build_image_payload(self, request: ResolvedRequest) -> Dict[str, Any]:
        parameters = sparse(
            {
                "width": request.width,
                "height": request.height,
                "guidance_scale": request.cfg,
                "num_inference_steps": request.steps,
                "negative_prompt": request.negative_prompt or None,
                "seed": request.seed,
            }
        )
        parameters.update(request.model.options)
        return {"inputs": request.prompt, "parameters": parameters}

    def generate_image(self, request: ResolvedRequest) -> bytes:
        self.check_seed(request)
        payload = self.build_image_payload(request)
        response = self.post_json(f"{API_URL}/{request.model.name}", payload)
        return response.content

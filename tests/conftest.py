import io
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
from PIL import Image

from promptgen.services import Registry, get_registry, load_registry


@pytest.fixture(autouse=True)
def fresh_registry_cache():
    """Each test sees a freshly loaded process-wide registry."""
    get_registry.cache_clear()
    yield
    get_registry.cache_clear()


@pytest.fixture
def registry() -> Registry:
    """The packaged service catalog."""
    return load_registry()


@pytest.fixture
def api_keys(monkeypatch) -> None:
    """Credentials for every vendor."""
    monkeypatch.setenv("HF_TOKEN", "hf_test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("TOGETHER_API_KEY", "together-test")


def _image_bytes(fmt: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 40, 40)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """Small valid PNG."""
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Small valid JPEG."""
    return _image_bytes("JPEG")


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """Factory for mock requests.Response objects."""

    def _make(
        status_code: int = 200,
        json_data=None,
        content: bytes = b"",
        headers: Optional[dict] = None,
        json_error: bool = False,
    ) -> Mock:
        response = Mock()
        response.status_code = status_code
        response.ok = status_code < 400
        response.headers = headers or {}
        response.content = content
        response.iter_content.return_value = [content] if content else []
        if json_error:
            response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        else:
            response.json.return_value = json_data
        return response

    return _make

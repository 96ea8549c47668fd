"""Vendor API clients and the dispatcher that picks one per service."""

from __future__ import annotations

from typing import Dict, Type, Union

from ..config import DEFAULT_TIMEOUT
from ..services import ServiceId
from .base import ProviderClient
from .huggingface import HuggingFaceClient
from .openai import OpenAIClient
from .together import TogetherClient

CLIENTS: Dict[ServiceId, Type[ProviderClient]] = {
    ServiceId.HF: HuggingFaceClient,
    ServiceId.OPENAI: OpenAIClient,
    ServiceId.TOGETHER: TogetherClient,
}


def client_class(service_id: Union[ServiceId, str]) -> Type[ProviderClient]:
    """Client class for a service id.

    Raises:
        ValueError: If service_id is not a known service
    """
    try:
        return CLIENTS[ServiceId(service_id)]
    except ValueError:
        raise ValueError(
            f"Unknown service: {service_id}. "
            f"Available services: {', '.join(s.value for s in CLIENTS)}"
        )


def create_client(service_id: Union[ServiceId, str], timeout: int = DEFAULT_TIMEOUT) -> ProviderClient:
    """Construct the client for a service.

    Construction errors (e.g. CredentialMissingError) propagate unchanged.
    """
    return client_class(service_id)(timeout=timeout)


__all__ = [
    "CLIENTS",
    "ProviderClient",
    "HuggingFaceClient",
    "OpenAIClient",
    "TogetherClient",
    "client_class",
    "create_client",
]

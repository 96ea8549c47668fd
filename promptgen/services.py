"""Service catalog: supported vendors, their models and per-model defaults.

The catalog ships as ``services.json`` next to this module. It is parsed and
validated once per process; every component receives the resulting
:class:`Registry` explicitly.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import services_override_path
from .exceptions import ConfigurationError, ModelNotFoundError

logger = logging.getLogger(__name__)

SERVICES_PATH = Path(__file__).with_name("services.json")

# Tunables a model may carry a default for; absent default == unsupported
TUNABLES: Tuple[str, ...] = (
    "height",
    "width",
    "cfg",
    "steps",
    "negative_prompt",
    "style",
    "frequency",
    "presence",
    "temperature",
    "system_prompt",
)


class ServiceId(str, Enum):
    HF = "hf"
    OPENAI = "openai"
    TOGETHER = "together"

    def __str__(self) -> str:
        return self.value


class ModelDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, description="Vendor-side model name")
    kind: Literal["image", "text"] = "image"

    # Image parameters
    height: Optional[int] = Field(None, gt=0)
    width: Optional[int] = Field(None, gt=0)
    cfg: Optional[float] = Field(None, ge=0)
    steps: Optional[int] = Field(None, gt=0)
    negative_prompt: Optional[str] = None
    style: Optional[Literal["natural", "vivid"]] = None

    # Text parameters
    frequency: Optional[float] = None
    presence: Optional[float] = None
    temperature: Optional[float] = Field(None, ge=0)
    system_prompt: Optional[str] = None

    # Vendor-specific extras merged verbatim into the request body
    options: Dict[str, Any] = Field(default_factory=dict)

    def default(self, tunable: str) -> Any:
        if tunable not in TUNABLES:
            raise KeyError(tunable)
        return getattr(self, tunable)

    def supports(self, tunable: str) -> bool:
        return self.default(tunable) is not None


class ServiceDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: ServiceId
    default_model: str
    models: Tuple[ModelDescriptor, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_models(self) -> "ServiceDescriptor":
        ids = [m.id for m in self.models]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate model ids for {self.id}: {', '.join(duplicates)}")
        if self.default_model not in ids:
            raise ValueError(f"default model `{self.default_model}` is not listed for {self.id}")
        return self


class Registry(BaseModel):
    """Immutable catalog of services and models."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default: ServiceId
    services: Tuple[ServiceDescriptor, ...]

    @model_validator(mode="after")
    def _check_services(self) -> "Registry":
        ids = [s.id for s in self.services]
        for service_id in ServiceId:
            if ids.count(service_id) != 1:
                raise ValueError(f"expected exactly one entry for service `{service_id}`, found {ids.count(service_id)}")
        return self

    def service(self, service_id: Union[ServiceId, str]) -> ServiceDescriptor:
        service_id = ServiceId(service_id)
        for s in self.services:
            if s.id == service_id:
                return s
        # Unreachable after validation
        raise ConfigurationError(f"service `{service_id}` not configured")

    def models_for(self, service_id: Union[ServiceId, str]) -> List[ModelDescriptor]:
        return list(self.service(service_id).models)

    def default_service(self) -> ServiceId:
        return self.default

    def default_model_for(self, service_id: Union[ServiceId, str]) -> str:
        return self.service(service_id).default_model

    def model_by_id(self, service_id: Union[ServiceId, str], model_id: str) -> ModelDescriptor:
        """Look up a model, raising ModelNotFoundError if the service lacks it."""
        models = self.models_for(service_id)
        for m in models:
            if m.id == model_id:
                return m
        raise ModelNotFoundError(str(ServiceId(service_id)), model_id, [m.id for m in models])


def parse_registry(payload: str, source: str = "services.json") -> Registry:
    """Parse and validate a JSON catalog.

    Raises:
        ConfigurationError: If the payload is not JSON or violates the schema
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse {source}: {e}") from e

    try:
        return Registry.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ConfigurationError(
            f"{source} does not match the catalog schema at {location}: {first['msg']}",
            help_text=str(e),
        ) from e


def load_registry(path: Optional[Path] = None) -> Registry:
    """Load the catalog from `path`, $PROMPTGEN_SERVICES, or the packaged file."""
    if path is None:
        override = services_override_path()
        path = Path(override) if override else SERVICES_PATH

    logger.debug(f"Loading service catalog from {path}")
    try:
        payload = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to load {path}: {e}") from e

    return parse_registry(payload, source=path.name)


@lru_cache(maxsize=None)
def get_registry() -> Registry:
    """Return the process-wide catalog, loading it on first use."""
    return load_registry()

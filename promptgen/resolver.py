"""Merge command-line overrides with per-model defaults.

Every tunable resolves the same way: an explicit CLI value wins, otherwise the
model's default is used. Hard tunables fail when neither source has a value;
soft ones (negative and system prompt) resolve to ``None`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import DEFAULT_TIMEOUT
from .exceptions import MissingParameterError, UnsupportedParameterError
from .services import ModelDescriptor, Registry, ServiceId

logger = logging.getLogger(__name__)

HARD_TUNABLES = ("steps", "cfg", "width", "height", "style", "frequency", "presence", "temperature")
SOFT_TUNABLES = ("negative_prompt", "system_prompt")


@dataclass(frozen=True)
class ResolvedRequest:
    service: ServiceId
    model: ModelDescriptor
    prompt: str
    negative_prompt: Optional[str] = None
    system_prompt: Optional[str] = None
    steps: Optional[int] = None
    cfg: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    style: Optional[str] = None
    frequency: Optional[float] = None
    presence: Optional[float] = None
    temperature: Optional[float] = None
    seed: Optional[int] = None
    out: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT

    def require(self, tunable: str) -> Any:
        """Value of a tunable the vendor cannot do without."""
        value = getattr(self, tunable)
        if value is None:
            raise MissingParameterError(tunable, self.model.id)
        return value


def resolve(tunable: str, cli_value: Any, model: ModelDescriptor) -> Any:
    """CLI value, else model default, else MissingParameterError."""
    if cli_value is not None:
        return cli_value
    default = model.default(tunable)
    if default is None:
        raise MissingParameterError(tunable, model.id)
    return default


def resolve_optional(tunable: str, cli_value: Any, model: ModelDescriptor) -> Any:
    """Like resolve(), but a value missing everywhere is simply absent."""
    if cli_value is not None:
        return cli_value
    return model.default(tunable)


def _check_supported(tunable: str, cli_value: Any, model: ModelDescriptor) -> None:
    if cli_value is not None and not model.supports(tunable):
        raise UnsupportedParameterError(tunable, model.id)


def resolve_request(args: Any, registry: Registry) -> ResolvedRequest:
    """Build the ResolvedRequest for one invocation.

    `args` is anything with the CLI attribute names (normally the argparse
    namespace); missing attributes count as "not given".
    """

    def cli(name: str) -> Any:
        return getattr(args, name, None)

    service = ServiceId(cli("service") or registry.default_service())
    model_id = cli("model") or registry.default_model_for(service)
    model = registry.model_by_id(service, model_id)
    logger.debug(f"Resolved service={service} model={model.id} ({model.name})")

    values = {}
    for tunable in HARD_TUNABLES:
        value = cli(tunable)
        _check_supported(tunable, value, model)
        values[tunable] = resolve(tunable, value, model) if model.supports(tunable) else None

    for tunable in SOFT_TUNABLES:
        value = cli(tunable)
        _check_supported(tunable, value, model)
        values[tunable] = resolve_optional(tunable, value, model)

    timeout = cli("timeout")
    request = ResolvedRequest(
        service=service,
        model=model,
        prompt=cli("prompt") or "",
        seed=cli("seed"),
        out=cli("out"),
        timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        **values,
    )
    logger.debug(f"Resolved request: {request}")
    return request

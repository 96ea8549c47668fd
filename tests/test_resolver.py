"""Tests for merging CLI overrides with model defaults."""
import pytest

from promptgen.cli import build_parser
from promptgen.exceptions import (
    MissingParameterError,
    ModelNotFoundError,
    UnsupportedParameterError,
)
from promptgen.resolver import ResolvedRequest, resolve, resolve_optional, resolve_request
from promptgen.services import ModelDescriptor, ServiceId


def parse(*argv):
    return build_parser().parse_args(list(argv))


OVERRIDES = [
    # (tunable, service, model, cli args, expected)
    ("steps", "hf", "sdxl", ["--steps", "12"], 12),
    ("cfg", "hf", "sdxl", ["--cfg", "2.5"], 2.5),
    ("width", "hf", "sdxl", ["--width", "768"], 768),
    ("height", "together", "flux-dev", ["--height", "512"], 512),
    ("negative_prompt", "hf", "sdxl", ["-n", "blurry"], "blurry"),
    ("style", "openai", "dalle3", ["--style", "natural"], "natural"),
    ("frequency", "openai", "gpt-4o", ["--frequency", "0.5"], 0.5),
    ("presence", "openai", "gpt-4o", ["--presence", "-0.5"], -0.5),
    ("temperature", "openai", "gpt-4o-mini", ["--temperature", "0.2"], 0.2),
    ("system_prompt", "openai", "gpt-4o", ["--system-prompt", "Be terse."], "Be terse."),
]


class TestPrecedence:
    """CLI value first, model default second."""

    @pytest.mark.parametrize("tunable,service,model,extra,expected", OVERRIDES)
    def test_cli_value_wins_over_default(self, registry, tunable, service, model, extra, expected):
        descriptor = registry.model_by_id(service, model)
        assert descriptor.default(tunable) != expected

        request = resolve_request(parse("prompt", "-s", service, "-m", model, *extra), registry)
        assert getattr(request, tunable) == expected

    @pytest.mark.parametrize("tunable,service,model,extra,expected", OVERRIDES)
    def test_default_used_without_cli_value(self, registry, tunable, service, model, extra, expected):
        request = resolve_request(parse("prompt", "-s", service, "-m", model), registry)
        assert getattr(request, tunable) == registry.model_by_id(service, model).default(tunable)

    def test_unsupported_tunables_resolve_to_none(self, registry):
        request = resolve_request(parse("prompt", "-s", "hf", "-m", "flux-schnell"), registry)
        assert request.cfg is None
        assert request.negative_prompt is None
        assert request.style is None
        assert request.temperature is None
        assert request.steps == 4


class TestResolveFunctions:
    """The two-source resolution helpers."""

    def test_resolve_prefers_cli(self):
        model = ModelDescriptor(id="m", name="org/m", steps=20)
        assert resolve("steps", 8, model) == 8

    def test_resolve_falls_back_to_default(self):
        model = ModelDescriptor(id="m", name="org/m", steps=20)
        assert resolve("steps", None, model) == 20

    def test_resolve_zero_is_a_value(self):
        model = ModelDescriptor(id="m", name="org/m", cfg=7.0)
        assert resolve("cfg", 0.0, model) == 0.0

    def test_resolve_missing_everywhere_names_tunable(self):
        model = ModelDescriptor(id="bare", name="org/bare")
        with pytest.raises(MissingParameterError) as exc:
            resolve("steps", None, model)
        assert exc.value.parameter == "steps"
        assert exc.value.model == "bare"
        assert "`steps`" in str(exc.value)
        assert "bare" in str(exc.value)

    def test_resolve_optional_allows_absence(self):
        model = ModelDescriptor(id="bare", name="org/bare")
        assert resolve_optional("negative_prompt", None, model) is None
        assert resolve_optional("negative_prompt", "ugly", ModelDescriptor(id="m", name="n", negative_prompt="")) == "ugly"

    def test_require_on_resolved_request(self):
        request = ResolvedRequest(
            service=ServiceId.OPENAI,
            model=ModelDescriptor(id="sizeless", name="dall-e-2"),
            prompt="p",
        )
        with pytest.raises(MissingParameterError, match="width"):
            request.require("width")


class TestResolveRequest:
    """Whole-request resolution."""

    def test_service_and_model_defaults(self, registry):
        request = resolve_request(parse("a red fox"), registry)
        assert request.service == ServiceId.HF
        assert request.model.id == "sdxl"
        assert request.prompt == "a red fox"
        assert request.seed is None

    def test_service_default_model(self, registry):
        request = resolve_request(parse("a red fox", "-s", "together"), registry)
        assert request.model.id == "flux-schnell"
        assert request.model.name == "black-forest-labs/FLUX.1-schnell"

    def test_openai_style_default(self, registry):
        request = resolve_request(parse("a lighthouse", "-s", "openai", "-m", "dalle3"), registry)
        assert request.style == "vivid"

    def test_seed_and_output_pass_through(self, registry):
        request = resolve_request(parse("p", "--seed", "42", "-o", "fox.png", "--timeout", "5"), registry)
        assert request.seed == 42
        assert request.out == "fox.png"
        assert request.timeout == 5

    def test_timeout_defaults_to_sixty(self, registry):
        assert resolve_request(parse("p"), registry).timeout == 60

    def test_unknown_model(self, registry):
        with pytest.raises(ModelNotFoundError):
            resolve_request(parse("p", "-s", "together", "-m", "sdxl"), registry)

    def test_cli_value_for_unsupported_tunable_fails(self, registry):
        with pytest.raises(UnsupportedParameterError) as exc:
            resolve_request(parse("p", "-s", "hf", "-m", "flux-schnell", "--cfg", "3.0"), registry)
        assert exc.value.parameter == "cfg"
        assert exc.value.model == "flux-schnell"

    def test_negative_prompt_on_model_without_support_fails(self, registry):
        with pytest.raises(UnsupportedParameterError, match="negative_prompt"):
            resolve_request(parse("p", "-s", "together", "-n", "blurry"), registry)

    def test_penalty_on_reasoning_model_fails(self, registry):
        with pytest.raises(UnsupportedParameterError, match="temperature"):
            resolve_request(parse("p", "-s", "openai", "-m", "o3-mini", "--temperature", "0.3"), registry)

    def test_namespace_without_optional_attributes(self, registry):
        class Args:
            prompt = "bare"

        request = resolve_request(Args(), registry)
        assert request.model.id == "sdxl"
        assert request.out is None

    def test_resolution_is_idempotent(self, registry):
        args = parse("a red fox", "-s", "together", "--steps", "6")
        first = resolve_request(args, registry)
        second = resolve_request(args, registry)
        assert first == second
        assert first.seed is None

    def test_resolved_request_is_frozen(self, registry):
        request = resolve_request(parse("p"), registry)
        with pytest.raises(AttributeError):
            request.steps = 1

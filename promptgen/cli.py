from __future__ import annotations

import argparse
import contextlib
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import CREDENTIAL_ENV_VARS, DEFAULT_IMAGE_OUT, DEFAULT_TIMEOUT
from .exceptions import PromptgenError
from .providers import client_class, create_client
from .resolver import ResolvedRequest, resolve_request
from .services import TUNABLES, Registry, ServiceId, get_registry
from .storage import write_image, write_text

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def setup_logging(debug: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if debug else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=debug)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gen", description="Generate images and text with hosted AI models")
    p.add_argument("prompt", nargs="?", help="The text to guide the generation (required unless listing)")
    p.add_argument("-m", "--model", help="Model id (see --list-models); defaults to the service's default")
    p.add_argument("-s", "--service", choices=[s.value for s in ServiceId], help="Service to use")
    p.add_argument("--seed", type=int, help="Seed for reproducibility")
    p.add_argument("--steps", type=_positive_int, help="Inference steps")
    p.add_argument("--cfg", type=float, help="Guidance scale")
    p.add_argument("--width", type=_positive_int, help="Width of the image")
    p.add_argument("--height", type=_positive_int, help="Height of the image")
    p.add_argument("-n", "--negative-prompt", help="Negative prompt")
    p.add_argument("--system-prompt", help="System prompt for text models")
    p.add_argument("--style", choices=["natural", "vivid"], help="Image style (OpenAI)")
    p.add_argument("--frequency", type=float, help="Frequency penalty for text models")
    p.add_argument("--presence", type=float, help="Presence penalty for text models")
    p.add_argument("--temperature", type=float, help="Sampling temperature for text models")
    p.add_argument("--timeout", type=_positive_int, default=DEFAULT_TIMEOUT,
                   help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT})")
    p.add_argument("-o", "--out",
                   help=f"Output file (default: {DEFAULT_IMAGE_OUT} for images; text is printed unless set)")

    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Suppress the progress spinner")
    verbosity.add_argument("--debug", action="store_true", help="Use debug logging")

    listing = p.add_mutually_exclusive_group()
    listing.add_argument("--list-models", action="store_true", help="Print models for the service")
    listing.add_argument("--list-services", action="store_true", help="Print services")

    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def print_services(registry: Registry) -> None:
    table = Table(title="Services")
    table.add_column("Service", style="cyan")
    table.add_column("Credential")
    table.add_column("Default model")
    table.add_column("Text")
    for service in registry.services:
        name = str(service.id)
        if service.id == registry.default_service():
            name += " (default)"
        cls = client_class(service.id)
        table.add_row(name, CREDENTIAL_ENV_VARS[service.id.value], service.default_model,
                      "yes" if cls.supports_text else "no")
    console.print(table)


def print_models(registry: Registry, service_id: ServiceId) -> None:
    table = Table(title=f"Models for {service_id}")
    table.add_column("Model", style="cyan")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Defaults")
    default_model = registry.default_model_for(service_id)
    for model in registry.models_for(service_id):
        defaults = ", ".join(
            f"{t}={model.default(t)!r}" for t in TUNABLES if model.supports(t)
        )
        name = model.id + (" (default)" if model.id == default_model else "")
        table.add_row(name, model.name, model.kind, escape(defaults))
    console.print(table)


def run(request: ResolvedRequest, quiet: bool = False) -> None:
    """Send the request and persist or print the result."""
    client = create_client(request.service, request.timeout)
    status = (
        contextlib.nullcontext()
        if quiet
        else console.status(f"Generating with {client.provider_name} ({request.model.id})...")
    )

    if request.model.kind == "text":
        with status:
            text = client.generate_text(request)
        if request.out:
            path = write_text(request.out, text)
            console.print(f"Saved text -> [green]{escape(str(path))}[/]", soft_wrap=True)
        else:
            console.print(text, markup=False, highlight=False, soft_wrap=True)
        return

    with status:
        image_bytes = client.generate_image(request)
    path = write_image(request.out or DEFAULT_IMAGE_OUT, image_bytes)
    console.print(f"Saved image -> [green]{escape(str(path))}[/]", soft_wrap=True)


def main(argv: Optional[list[str]] = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    setup_logging(debug=args.debug, quiet=args.quiet)

    try:
        registry = get_registry()

        if args.list_services:
            print_services(registry)
            return
        if args.list_models:
            print_models(registry, ServiceId(args.service or registry.default_service()))
            return

        if not args.prompt:
            p.error("the following arguments are required: prompt")

        request = resolve_request(args, registry)
        run(request, quiet=args.quiet)
    except PromptgenError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.user_message)}", soft_wrap=True)
        if e.help_text:
            logger.info(e.help_text)
        raise SystemExit(1)
    except KeyboardInterrupt:
        err_console.print("[yellow]Cancelled.[/]")
        raise SystemExit(130)


if __name__ == "__main__":
    main()

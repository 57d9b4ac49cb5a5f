"""Command-line entry point.

Generates Go code from a JSON generation request, or from an entity name::

    python -m codeforge.cli request.json
    python -m codeforge.cli request.json -o ./out --split-files --write
    python -m codeforge.cli --entity User --module example.com/app --write --compile
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from codeforge.catalog import LocalTemplateProcessor, TemplateCatalog
from codeforge.clients import HTTPCompilerClient, HTTPTemplateClient
from codeforge.compiler import LocalCompiler
from codeforge.config import Config
from codeforge.errors import CodeForgeError, InvalidRequestError
from codeforge.generator import (
    CodeGenerator,
    GenerationRequest,
    GenerationResult,
    create_complete_entity_set,
)
from codeforge.rendering import TemplateRenderer
from codeforge.utils import (
    console,
    format_size,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


def build_generator(config: Config) -> CodeGenerator:
    """Wire a ``CodeGenerator`` to the collaborators selected by *config*."""
    if config.use_local_compiler:
        compiler = LocalCompiler(
            go_binary=config.compiler.go_binary,
            timeout=config.compiler.timeout,
        )
        catalog = TemplateCatalog(TemplateRenderer(strict=config.generator.strict_templates))
        catalog.install_entity_templates()
        templates = LocalTemplateProcessor(catalog)
    else:
        compiler = HTTPCompilerClient(config.compiler.url, timeout=config.compiler.timeout)
        templates = HTTPTemplateClient(config.templates.url, timeout=config.templates.timeout)
    return CodeGenerator(compiler, templates=templates, config=config.generator)


def load_request(path: Path) -> GenerationRequest:
    """Read a JSON request file and parse its elements.

    Raises:
        InvalidRequestError: If the file is not valid JSON or an element
            payload cannot be parsed.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidRequestError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError(f"{path} must contain a JSON object")
    return GenerationRequest.from_payload(payload)


def print_result(result: GenerationResult) -> None:
    """Print the files and diagnostics of a generation run."""
    print_summary_table(
        {
            "Request": result.request_id,
            "Files": str(len(result.files)),
            "Total size": format_size(sum(f.size for f in result.files)),
            "Diagnostics": str(len(result.diagnostics)),
        },
        title="Generation Summary",
    )
    for generated in result.files:
        mark = "[green]+[/green]" if generated.success else "[red]x[/red]"
        console.print(f"  {mark} {generated.path} ({generated.kind}, {format_size(generated.size)})")
    for diagnostic in result.diagnostics:
        where = diagnostic.path + (f":{diagnostic.line}" if diagnostic.line else "")
        text = " ".join(p for p in (f"[{diagnostic.kind.value}]", where, diagnostic.message) if p)
        if diagnostic.severity == "warning":
            print_warning(text)
        else:
            print_error(text)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m codeforge.cli``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="CodeForge -- declarative Go code generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m codeforge.cli request.json\n"
            "  python -m codeforge.cli request.json -o ./out --split-files --write\n"
            "  python -m codeforge.cli --entity User --module example.com/app --write\n"
        ),
    )
    parser.add_argument("request", nargs="?", help="Path to a JSON generation request")
    parser.add_argument("--output", "-o", default=None, help="Output directory")
    parser.add_argument("--config", default=None, help="Path to a saved JSON configuration")
    parser.add_argument("--split-files", action="store_true", help="Write one file per element")
    parser.add_argument("--write", action="store_true", help="Write generated files to disk")
    parser.add_argument("--compile", action="store_true", help="Run go build after writing")
    parser.add_argument("--entity", default=None, help="Generate a full entity slice")
    parser.add_argument("--module", default="", help="Go module path (required with --entity)")
    parser.add_argument("--package", default="", help="Default package name")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print per-element progress")

    args = parser.parse_args(argv)

    if not args.request and not args.entity:
        parser.error("either a request file or --entity is required")

    config = Config.load(Path(args.config)) if args.config else Config.from_env()
    if args.verbose:
        config.generator.verbose = True

    try:
        if args.entity:
            elements = create_complete_entity_set(args.entity, args.module)
            request = GenerationRequest.from_elements(
                elements,
                module_path=args.module,
                package_name=args.package,
                split_files=True,
            )
        else:
            req_path = Path(args.request)
            if not req_path.exists():
                console.print(f"[bold red]Error:[/bold red] Request file not found: {req_path}")
                sys.exit(1)
            request = load_request(req_path)
    except InvalidRequestError as exc:
        print_error(f"Invalid request: {exc}")
        for detail in exc.details:
            console.print(f"  element {detail.get('index')}: {detail.get('errors')}")
        sys.exit(1)

    if args.output:
        request.output_path = args.output
    elif not request.output_path:
        request.output_path = str(config.output_dir)
    if args.package:
        request.package_name = args.package
    request.split_files = request.split_files or args.split_files
    request.write_files = request.write_files or args.write
    request.compile_project = request.compile_project or args.compile

    generator = build_generator(config)
    try:
        result = asyncio.run(generator.generate_code(request))
    except CodeForgeError as exc:
        print_error(f"Generation failed: {exc}")
        sys.exit(1)

    print_result(result)
    if result.success:
        print_success("Generation completed successfully!")
    else:
        print_error("Generation finished with errors.")
        sys.exit(1)


if __name__ == "__main__":
    main()

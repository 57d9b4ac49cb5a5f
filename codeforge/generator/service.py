"""Generation orchestration.

``CodeGenerator`` turns a parsed ``GenerationRequest`` into Go source files:

1. render every element (bounded concurrency, declared order preserved),
2. assemble each output file as package clause, inferred imports and the
   element texts separated by a blank line,
3. hand the files to the compiler collaborator for validation, then
   optionally write them to disk and compile the project.

A collaborator failure never discards generated text: it is recorded as a
diagnostic and the files are still returned.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from codeforge.catalog.models import TemplateRequest
from codeforge.config import GeneratorConfig
from codeforge.elements.models import RenderContext, element_package
from codeforge.errors import (
    CodeForgeError,
    ErrorKind,
    InvalidRequestError,
    RemoteFailureError,
)
from codeforge.generator.accumulator import CodeAccumulator
from codeforge.generator.entities import create_complete_entity_set
from codeforge.generator.models import (
    CompilerReport,
    Diagnostic,
    GeneratedFile,
    GenerationRequest,
    GenerationResult,
    new_request_id,
)
from codeforge.utils import console, print_warning, snake_case

if TYPE_CHECKING:
    from codeforge.clients import CompilerCollaborator, TemplateProcessor


# ---------------------------------------------------------------------------
# Import inference
# ---------------------------------------------------------------------------

STDLIB_IMPORTS: dict[str, str] = {
    "context": "context",
    "errors": "errors",
    "fmt": "fmt",
    "http": "net/http",
    "json": "encoding/json",
    "strconv": "strconv",
    "strings": "strings",
    "sync": "sync",
    "time": "time",
}

# Qualifiers resolved against ``<module_path>/internal/<package>``.
INTERNAL_PACKAGES: tuple[str, ...] = ("domain", "repository", "application", "handlers")

_QUALIFIER_RE = re.compile(r"(?<![\w.\"])([a-z][a-z0-9]*)\.[A-Z]")
# String, raw string and rune literals plus line and block comments.
_LITERAL_RE = re.compile(
    r'"(?:\\.|[^"\\\n])*"|`[^`]*`|\'(?:\\.|[^\'\\\n])*\'|//[^\n]*|/\*.*?\*/',
    re.DOTALL,
)


def infer_imports(
    body: str,
    package_name: str,
    module_path: str = "",
    local_packages: frozenset[str] = frozenset(),
) -> list[str]:
    """Return the sorted import paths referenced by qualified names in *body*.

    Standard-library qualifiers come first, followed by internal packages of
    *module_path*.  Literals and comments are ignored.  A file never imports
    its own package or any of *local_packages*.
    """
    code = _LITERAL_RE.sub(" ", body)
    qualifiers = set(_QUALIFIER_RE.findall(code)) - set(local_packages)

    std = sorted(STDLIB_IMPORTS[q] for q in qualifiers if q in STDLIB_IMPORTS)
    internal: list[str] = []
    if module_path:
        internal = sorted(
            f"{module_path}/internal/{q}"
            for q in qualifiers
            if q in INTERNAL_PACKAGES and q != package_name
        )
    return std + internal


def strip_local_qualifiers(text: str, local_packages: frozenset[str]) -> str:
    """Drop ``pkg.`` prefixes for *local_packages* outside literals and comments."""
    if not local_packages:
        return text
    names = "|".join(re.escape(name) for name in sorted(local_packages))
    pattern = re.compile(
        rf"({_LITERAL_RE.pattern})|(?<![\w.\"])(?:{names})\.(?=[A-Z])", re.DOTALL
    )
    return pattern.sub(lambda m: m.group(1) or "", text)


def render_header(package_name: str, imports: list[str]) -> str:
    """Return the package clause plus import block, ending in a blank line."""
    header = f"package {package_name}\n\n"
    if len(imports) == 1:
        header += f'import "{imports[0]}"\n\n'
    elif imports:
        header += "import (\n" + "".join(f'\t"{path}"\n' for path in imports) + ")\n\n"
    return header


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


@dataclass
class _FilePlan:
    """Elements routed to one output path, in declared order."""

    package: str
    texts: list[str] = field(default_factory=list)
    elements: list[str] = field(default_factory=list)
    kinds: set[str] = field(default_factory=set)
    render_failed: bool = False


class CodeGenerator:
    """Orchestrates element rendering, file assembly and compiler hand-off.

    Args:
        compiler: Validator/writer/compiler collaborator (``LocalCompiler`` or
            ``HTTPCompilerClient``).
        templates: Optional template processor used by
            :meth:`generate_from_templates`.
        config: Generator tuning.  Defaults to ``GeneratorConfig()``.
    """

    def __init__(
        self,
        compiler: CompilerCollaborator,
        templates: TemplateProcessor | None = None,
        config: GeneratorConfig | None = None,
    ) -> None:
        self.compiler = compiler
        self.templates = templates
        self.config = config or GeneratorConfig()

    # ------------------------------------------------------------------
    # Element generation
    # ------------------------------------------------------------------

    async def generate_code(self, request: GenerationRequest) -> GenerationResult:
        """Generate source files for every element of *request*.

        Raises:
            InvalidRequestError: If the request has no parsed elements.
        """
        elements = request.elements
        if not elements:
            raise InvalidRequestError(
                "Generation request has no parsed elements; call parse_elements() first"
            )
        if not request.id:
            request.id = new_request_id()

        package = request.package_name or self.config.default_package
        diagnostics: list[Diagnostic] = []

        # Route every element to its output path before rendering
        routes: list[tuple[str, str]] = [
            self._route(element, request, package) for element in elements
        ]
        # Packages declared by elements sharing a file with another package
        local_packages: dict[str, frozenset[str]] = {}
        for element, (path, file_package) in zip(elements, routes):
            own_package = element_package(element, "")
            if own_package and own_package != file_package:
                local_packages[path] = local_packages.get(path, frozenset()) | {own_package}
        texts = await self._render_all(
            elements, routes, local_packages, request.module_path, diagnostics
        )

        plans: dict[str, _FilePlan] = {}
        for element, (path, file_package), text in zip(elements, routes, texts):
            plan = plans.setdefault(path, _FilePlan(package=file_package))
            plan.elements.append(element.name)
            plan.kinds.add(element.kind)
            if text is None:
                plan.render_failed = True
            else:
                plan.texts.append(text)

        accumulator = CodeAccumulator()
        for path, plan in plans.items():
            body = "\n\n".join(plan.texts)
            imports = infer_imports(
                body, plan.package, request.module_path, local_packages.get(path, frozenset())
            )
            accumulator.append(path, render_header(plan.package, imports))
            for index, text in enumerate(plan.texts):
                accumulator.append(path, ("\n\n" if index else "") + text)
            accumulator.append(path, "\n")

        accumulator.set_metadata("request_id", request.id)
        accumulator.set_metadata("generated_at", datetime.now(timezone.utc).isoformat())
        accumulator.set_metadata("element_count", len(elements))
        accumulator.set_metadata("file_count", len(plans))
        accumulator.set_metadata("package_name", package)
        accumulator.set_metadata("module_path", request.module_path)
        accumulator.set_metadata("split_files", request.split_files)

        return await self._finish(
            request_id=request.id,
            accumulator=accumulator,
            plans=plans,
            diagnostics=diagnostics,
            output_path=request.output_path,
            write_files=request.write_files,
            compile_project=request.compile_project,
        )

    def _route(
        self, element: BaseModel, request: GenerationRequest, package: str
    ) -> tuple[str, str]:
        """Return ``(output path, package)`` for *element*."""
        ext = self.config.file_extension
        if not request.split_files:
            return (request.file_name or f"{package}{ext}", package)

        own_package = element_package(element, "")
        file_name = f"{snake_case(element.name)}{ext}"
        if own_package and own_package != package:
            return (f"internal/{own_package}/{file_name}", own_package)
        return (file_name, package)

    async def _render_all(
        self,
        elements: list[Any],
        routes: list[tuple[str, str]],
        local_packages: dict[str, frozenset[str]],
        module_path: str,
        diagnostics: list[Diagnostic],
    ) -> list[str | None]:
        """Render elements concurrently; failures become diagnostics and ``None``.

        Qualifiers naming a package declared in the same file are dropped.
        """
        semaphore = asyncio.Semaphore(self.config.max_parallel_renders)

        async def _render_with_semaphore(element: Any, path: str, file_package: str) -> str:
            local = local_packages.get(path, frozenset())
            ctx = RenderContext(
                package_name=file_package, module_path=module_path, local_packages=local
            )
            async with semaphore:
                text = await asyncio.to_thread(element.render, ctx)
            return strip_local_qualifiers(text, local)

        tasks = [
            _render_with_semaphore(element, path, file_package)
            for element, (path, file_package) in zip(elements, routes)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        texts: list[str | None] = []
        for element, (path, _), res in zip(elements, routes, results):
            if isinstance(res, CodeForgeError):
                diagnostics.append(
                    Diagnostic(
                        kind=ErrorKind.RENDER_FAILURE,
                        path=path,
                        element=element.name,
                        message=str(res),
                    )
                )
                print_warning(f"Element '{element.name}' failed to render: {res}")
                texts.append(None)
            elif isinstance(res, BaseException):
                raise res
            else:
                if self.config.verbose:
                    console.print(f"  [green]+[/green] {element.kind} {element.name} -> {path}")
                texts.append(res)
        return texts

    # ------------------------------------------------------------------
    # Template generation
    # ------------------------------------------------------------------

    async def generate_from_templates(
        self,
        template_requests: list[TemplateRequest],
        output_path: str = "",
        write_files: bool = False,
        compile_project: bool = False,
    ) -> GenerationResult:
        """Generate one file per template request via the template processor.

        Each file is written to the request's ``output_path`` (relative to
        *output_path*), or ``<template_id><ext>`` when it has none.

        Raises:
            InvalidRequestError: If no requests are given or no template
                processor is configured.
        """
        if not template_requests:
            raise InvalidRequestError("No template requests given")
        if self.templates is None:
            raise InvalidRequestError("No template processor configured")

        request_id = new_request_id()
        diagnostics: list[Diagnostic] = []
        accumulator = CodeAccumulator()
        plans: dict[str, _FilePlan] = {}

        for template_request in template_requests:
            path = template_request.output_path or (
                f"{template_request.template_id}{self.config.file_extension}"
            )
            parameters = dict(template_request.parameters)
            if template_request.package_name:
                parameters.setdefault("PackageName", template_request.package_name)

            plan = plans.setdefault(
                path, _FilePlan(package=template_request.package_name or self.config.default_package)
            )
            plan.elements.append(template_request.template_id)
            plan.kinds.add("template")
            try:
                code = await self.templates.process_template(
                    template_request.template_id, parameters
                )
            except CodeForgeError as exc:
                plan.render_failed = True
                diagnostics.append(
                    Diagnostic(
                        kind=exc.kind,
                        path=path,
                        element=template_request.template_id,
                        message=str(exc),
                    )
                )
                print_warning(f"Template '{template_request.template_id}' failed: {exc}")
                continue
            accumulator.append(path, code)

        accumulator.set_metadata("request_id", request_id)
        accumulator.set_metadata("generated_at", datetime.now(timezone.utc).isoformat())
        accumulator.set_metadata("template_count", len(template_requests))
        accumulator.set_metadata("file_count", len(accumulator))

        return await self._finish(
            request_id=request_id,
            accumulator=accumulator,
            plans=plans,
            diagnostics=diagnostics,
            output_path=output_path,
            write_files=write_files,
            compile_project=compile_project,
        )

    # ------------------------------------------------------------------
    # Entity bundles
    # ------------------------------------------------------------------

    def create_complete_entity_set(self, entity_name: str, module_path: str) -> list[BaseModel]:
        """Return the model/repository/service/handler elements for an entity."""
        return create_complete_entity_set(entity_name, module_path)

    # ------------------------------------------------------------------
    # Collaborator hand-off
    # ------------------------------------------------------------------

    async def _finish(
        self,
        request_id: str,
        accumulator: CodeAccumulator,
        plans: dict[str, _FilePlan],
        diagnostics: list[Diagnostic],
        output_path: str,
        write_files: bool,
        compile_project: bool,
    ) -> GenerationResult:
        files = accumulator.files()

        validated = await self._call(
            "validate_code", self.compiler.validate_code(files), diagnostics
        )
        if validated is not None:
            self._absorb(validated, plans, diagnostics)

        if write_files:
            written = await self._call(
                "write_files", self.compiler.write_files(accumulator, output_path), diagnostics
            )
            if written is not None:
                self._absorb(written, plans, diagnostics)
        if compile_project:
            compiled = await self._call(
                "compile_project", self.compiler.compile_project(output_path), diagnostics
            )
            if compiled is not None:
                self._absorb(compiled, plans, diagnostics)

        failed_paths = {d.path for d in diagnostics if d.severity == "error" and d.path}
        generated: list[GeneratedFile] = []
        for path, content in files.items():
            plan = plans.get(path)
            kinds = plan.kinds if plan else set()
            generated.append(
                GeneratedFile(
                    path=path,
                    content=content,
                    success=path not in failed_paths and not (plan and plan.render_failed),
                    package=plan.package if plan else "",
                    kind=next(iter(kinds)) if len(kinds) == 1 else "mixed",
                    size=len(content.encode("utf-8")),
                )
            )

        has_errors = any(d.severity == "error" for d in diagnostics)
        ok_files = sum(1 for f in generated if f.success)
        if has_errors and ok_files:
            diagnostics.append(
                Diagnostic(
                    kind=ErrorKind.PARTIAL_VALIDATION_FAILURE,
                    message=f"{ok_files} of {len(generated)} file(s) generated without errors",
                    severity="warning",
                )
            )

        metadata = accumulator.metadata
        metadata["total_size"] = str(accumulator.total_size())

        if self.config.verbose:
            style = "yellow" if has_errors else "green"
            console.print(
                f"[{style}]Generated {len(generated)} file(s), "
                f"{len([d for d in diagnostics if d.severity == 'error'])} error(s)[/{style}]"
            )

        return GenerationResult(
            request_id=request_id,
            files=generated,
            success=not has_errors,
            diagnostics=diagnostics,
            metadata=metadata,
        )

    async def _call(
        self, operation: str, call: Any, diagnostics: list[Diagnostic]
    ) -> CompilerReport | None:
        """Await a collaborator call, recording a remote failure as a diagnostic."""
        try:
            return await call
        except RemoteFailureError as exc:
            diagnostics.append(
                Diagnostic(kind=ErrorKind.REMOTE_FAILURE, message=str(exc))
            )
            print_warning(f"{operation}: {exc}")
            return None

    @staticmethod
    def _absorb(
        report: CompilerReport, plans: dict[str, _FilePlan], diagnostics: list[Diagnostic]
    ) -> None:
        """Merge a collaborator report into *diagnostics*.

        Diagnostics on a single-element file are attributed to that element.
        A failed report with no diagnostics still yields one.
        """
        for diagnostic in report.diagnostics:
            plan = plans.get(diagnostic.path)
            if not diagnostic.element and plan and len(plan.elements) == 1:
                diagnostic = diagnostic.model_copy(update={"element": plan.elements[0]})
            diagnostics.append(diagnostic)
        if not report.success and not report.diagnostics:
            diagnostics.append(
                Diagnostic(message=report.message or "Collaborator reported failure")
            )

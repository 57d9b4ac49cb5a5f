"""Shared pytest fixtures for the CodeForge test suite.

Provides reusable fixtures for:
- Temporary output directories
- Sample element payloads and generation requests
- A fake compiler collaborator recording every call
- Stores, renderers and catalogs
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from codeforge.blocks import BuildingBlockStore
from codeforge.catalog import TemplateCatalog
from codeforge.config import GeneratorConfig
from codeforge.generator import CodeGenerator, CompilerReport, Diagnostic, GenerationRequest
from codeforge.rendering import TemplateRenderer


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    output_dir = tmp_path / "generated"
    output_dir.mkdir()
    yield output_dir


# ---------------------------------------------------------------------------
# Element payloads
# ---------------------------------------------------------------------------

@pytest.fixture
def variable_payload() -> dict[str, Any]:
    return {"kind": "variable", "name": "count", "type": "int", "default_value": "0"}


@pytest.fixture
def struct_payload() -> dict[str, Any]:
    return {
        "kind": "struct",
        "name": "User",
        "fields": [
            {"kind": "variable", "name": "ID", "type": "string"},
            {"kind": "variable", "name": "CreatedAt", "type": "time.Time"},
        ],
    }


@pytest.fixture
def function_payload() -> dict[str, Any]:
    return {
        "kind": "function",
        "name": "Greet",
        "parameters": [{"kind": "variable", "name": "name", "type": "string"}],
        "returns": ["string"],
        "body": 'return fmt.Sprintf("hello %s", name)',
    }


@pytest.fixture
def sample_request(variable_payload, struct_payload, function_payload) -> GenerationRequest:
    """A parsed three-element request in single-file mode."""
    request = GenerationRequest.model_validate(
        {
            "elements": [variable_payload, struct_payload, function_payload],
            "module_path": "example.com/app",
            "package_name": "models",
        }
    )
    request.parse_elements()
    return request


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class FakeCompiler:
    """Records calls and answers with preset reports or exceptions."""

    def __init__(
        self,
        validate: CompilerReport | Exception | None = None,
        write: CompilerReport | Exception | None = None,
        compile: CompilerReport | Exception | None = None,
    ) -> None:
        self.validate = validate or CompilerReport()
        self.write = write or CompilerReport()
        self.compile = compile or CompilerReport()
        self.validated: list[dict[str, str]] = []
        self.written: list[tuple[dict[str, str], str]] = []
        self.compiled: list[str] = []

    @staticmethod
    def _answer(preset: CompilerReport | Exception) -> CompilerReport:
        if isinstance(preset, Exception):
            raise preset
        return preset

    async def validate_code(self, files: dict[str, str]) -> CompilerReport:
        self.validated.append(dict(files))
        return self._answer(self.validate)

    async def write_files(self, accumulator, output_path: str) -> CompilerReport:
        self.written.append((accumulator.files(), output_path))
        return self._answer(self.write)

    async def compile_project(self, project_path: str) -> CompilerReport:
        self.compiled.append(project_path)
        return self._answer(self.compile)


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def generator(fake_compiler) -> CodeGenerator:
    return CodeGenerator(fake_compiler, config=GeneratorConfig(max_parallel_renders=2))


@pytest.fixture
def failing_report() -> CompilerReport:
    return CompilerReport(
        success=False,
        diagnostics=[Diagnostic(path="models.go", line=3, message="undefined: Foo")],
    )


# ---------------------------------------------------------------------------
# Stores & templates
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> BuildingBlockStore:
    return BuildingBlockStore()


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def catalog(renderer) -> TemplateCatalog:
    catalog = TemplateCatalog(renderer)
    catalog.install_entity_templates()
    return catalog


@pytest.fixture
def entity_parameters() -> dict[str, str]:
    return {"EntityName": "User", "EntityVarName": "user", "ModulePath": "example.com/app"}

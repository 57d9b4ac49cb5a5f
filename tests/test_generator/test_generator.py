"""Unit tests for CodeGenerator (codeforge.generator.service).

Tests cover:
- File assembly (package clause, inferred imports, declared order)
- Single-file and split-file routing
- Render failures, validation failures and remote failures as diagnostics
- Optional write / compile hand-off
- Template-driven generation
- Entity bundles end to end
"""

from __future__ import annotations

import pytest

from codeforge.catalog import LocalTemplateProcessor, TemplateRequest
from codeforge.compiler import LocalCompiler
from codeforge.config import GeneratorConfig
from codeforge.errors import ErrorKind, InvalidRequestError, RemoteFailureError
from codeforge.generator import (
    CodeGenerator,
    CompilerReport,
    Diagnostic,
    GenerationRequest,
    create_complete_entity_set,
    infer_imports,
)
from codeforge.generator.service import render_header, strip_local_qualifiers


def _request(payloads, **fields) -> GenerationRequest:
    request = GenerationRequest.model_validate({"elements": payloads, **fields})
    request.parse_elements()
    return request


# ---------------------------------------------------------------------------
# Import inference
# ---------------------------------------------------------------------------


class TestInferImports:
    @pytest.mark.unit
    def test_stdlib_qualifiers(self):
        body = "func f(ctx context.Context, w http.ResponseWriter) {\n\tjson.NewEncoder(w)\n}"
        assert infer_imports(body, "main") == ["context", "encoding/json", "net/http"]

    @pytest.mark.unit
    def test_internal_packages_need_module_path(self):
        body = "var u *domain.User"
        assert infer_imports(body, "handlers") == []
        assert infer_imports(body, "handlers", "example.com/app") == ["example.com/app/internal/domain"]

    @pytest.mark.unit
    def test_own_package_not_imported(self):
        assert infer_imports("var u domain.User", "domain", "example.com/app") == []

    @pytest.mark.unit
    def test_strings_and_tags_ignored(self):
        body = 'var s = "time.Now()"\ntype T struct {\n\tA string `json:"a"`\n}'
        assert infer_imports(body, "main") == []

    @pytest.mark.unit
    def test_method_calls_on_values_ignored(self):
        assert infer_imports("return r.Context()", "main") == []

    @pytest.mark.unit
    def test_comments_ignored(self):
        body = (
            "// Clock wraps time.Now for tests\n"
            "type Clock struct {\n\tOffset int\n}\n"
            "/* see fmt.Sprintf */\n"
            "var r = '\"'"
        )
        assert infer_imports(body, "main") == []

    @pytest.mark.unit
    def test_local_packages_not_imported(self):
        body = "var u *domain.User\nvar at time.Time"
        imports = infer_imports(body, "app", "example.com/app", frozenset({"domain"}))
        assert imports == ["time"]

    @pytest.mark.unit
    def test_strip_local_qualifiers(self):
        text = 'var u domain.User // domain.User\nvar s = "domain.User"\nvar t time.Time'
        assert strip_local_qualifiers(text, frozenset({"domain"})) == (
            'var u User // domain.User\nvar s = "domain.User"\nvar t time.Time'
        )
        assert strip_local_qualifiers(text, frozenset()) == text

    @pytest.mark.unit
    def test_header_forms(self):
        assert render_header("main", []) == "package main\n\n"
        assert render_header("main", ["fmt"]) == 'package main\n\nimport "fmt"\n\n'
        assert render_header("main", ["fmt", "time"]) == (
            'package main\n\nimport (\n\t"fmt"\n\t"time"\n)\n\n'
        )


# ---------------------------------------------------------------------------
# generate_code
# ---------------------------------------------------------------------------


class TestGenerateCode:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_file_assembly(self, generator, sample_request):
        result = await generator.generate_code(sample_request)

        assert result.success is True
        assert [f.path for f in result.files] == ["models.go"]
        assert result.files[0].content == (
            "package models\n"
            "\n"
            "import (\n"
            '\t"fmt"\n'
            '\t"time"\n'
            ")\n"
            "\n"
            "var count int = 0\n"
            "\n"
            "// User represents a User\n"
            "type User struct {\n"
            '\tID string `json:"id"`\n'
            '\tCreatedAt time.Time `json:"created_at"`\n'
            "}\n"
            "\n"
            "func Greet(name string) string {\n"
            '\treturn fmt.Sprintf("hello %s", name)\n'
            "}\n"
        )
        assert result.files[0].kind == "mixed"
        assert result.files[0].package == "models"
        assert result.files[0].size == len(result.files[0].content)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_file_name_override(self, generator, variable_payload):
        result = await generator.generate_code(
            _request([variable_payload], file_name="vars.go", package_name="config")
        )
        assert result.files[0].path == "vars.go"
        assert result.files[0].content == "package config\n\nvar count int = 0\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_comment_qualifier_adds_no_import(self, generator):
        payload = {
            "kind": "struct",
            "name": "Clock",
            "comments": "Clock wraps time.Now for tests",
            "fields": [{"name": "Offset", "type": "int"}],
        }
        result = await generator.generate_code(_request([payload], package_name="main"))

        content = result.files[0].content
        assert content.startswith("package main\n\n// Clock wraps time.Now for tests\n")
        assert '"time"' not in content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_package(self, generator, variable_payload):
        result = await generator.generate_code(_request([variable_payload]))
        assert result.files[0].path == "main.go"
        assert result.files[0].content.startswith("package main\n")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_split_files(self, generator, sample_request):
        sample_request.split_files = True
        result = await generator.generate_code(sample_request)

        assert [f.path for f in result.files] == ["count.go", "user.go", "greet.go"]
        user = result.file("user.go")
        assert user.kind == "struct"
        assert user.content.startswith('package models\n\nimport "time"\n\n// User represents')
        assert result.file("count.go").content == "package models\n\nvar count int = 0\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declared_order_survives_concurrency(self, fake_compiler):
        generator = CodeGenerator(fake_compiler, config=GeneratorConfig(max_parallel_renders=3))
        payloads = [
            {"kind": "variable", "name": f"v{i:02d}", "type": "int"} for i in range(30)
        ]
        result = await generator.generate_code(_request(payloads))
        lines = [l for l in result.files[0].content.splitlines() if l.startswith("var ")]
        assert lines == [f"var v{i:02d} int" for i in range(30)]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_compiler_receives_snapshot(self, generator, fake_compiler, sample_request):
        result = await generator.generate_code(sample_request)
        assert fake_compiler.validated == [{"models.go": result.files[0].content}]
        assert fake_compiler.written == []
        assert fake_compiler.compiled == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_metadata(self, generator, sample_request):
        result = await generator.generate_code(sample_request)
        assert result.request_id == sample_request.id
        assert result.request_id.startswith("req_")
        assert result.metadata["element_count"] == "3"
        assert result.metadata["file_count"] == "1"
        assert result.metadata["module_path"] == "example.com/app"
        assert "generated_at" in result.metadata
        assert int(result.metadata["total_size"]) == result.files[0].size

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_request_id_kept(self, generator, variable_payload):
        result = await generator.generate_code(_request([variable_payload], id="req_custom"))
        assert result.request_id == "req_custom"


class TestInvalidRequests:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_elements(self, generator, fake_compiler):
        with pytest.raises(InvalidRequestError):
            await generator.generate_code(_request([]))
        assert fake_compiler.validated == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unparsed_request(self, generator, fake_compiler, variable_payload):
        request = GenerationRequest.model_validate({"elements": [variable_payload]})
        with pytest.raises(InvalidRequestError):
            await generator.generate_code(request)
        assert fake_compiler.validated == []


class TestFailures:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_render_failure_keeps_other_elements(self, generator, variable_payload):
        orphan = {"kind": "method", "name": "Orphan"}
        result = await generator.generate_code(_request([variable_payload, orphan]))

        assert result.success is False
        [diag] = result.errors
        assert diag.kind == ErrorKind.RENDER_FAILURE
        assert diag.element == "Orphan"
        assert "var count int = 0" in result.files[0].content
        assert result.files[0].success is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_partial_validation_failure(self, generator, fake_compiler, sample_request):
        sample_request.split_files = True
        fake_compiler.validate = CompilerReport(
            success=False,
            diagnostics=[Diagnostic(path="user.go", line=6, message="undefined: time")],
        )
        result = await generator.generate_code(sample_request)

        assert result.success is False
        assert len(result.files) == 3
        assert result.file("user.go").success is False
        assert result.file("count.go").success is True
        assert result.file("greet.go").success is True
        assert result.errors[0].element == "User"
        summary = [d for d in result.diagnostics if d.severity == "warning"]
        assert summary[0].kind == ErrorKind.PARTIAL_VALIDATION_FAILURE
        assert "2 of 3" in summary[0].message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_report_without_diagnostics(self, generator, fake_compiler, sample_request):
        fake_compiler.validate = CompilerReport(success=False, message="syntax error")
        result = await generator.generate_code(sample_request)
        assert result.success is False
        assert result.errors[0].message == "syntax error"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remote_failure_returns_files(self, generator, fake_compiler, sample_request):
        fake_compiler.validate = RemoteFailureError("validate_code", "connection refused")
        result = await generator.generate_code(sample_request)

        assert result.success is False
        assert result.files[0].content.startswith("package models")
        [diag] = result.errors
        assert diag.kind == ErrorKind.REMOTE_FAILURE
        assert "validate_code" in diag.message


class TestWriteAndCompile:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_and_compile_when_requested(self, generator, fake_compiler, sample_request):
        sample_request.write_files = True
        sample_request.compile_project = True
        sample_request.output_path = "out/app"
        result = await generator.generate_code(sample_request)

        assert result.success is True
        [(files, output_path)] = fake_compiler.written
        assert output_path == "out/app"
        assert list(files) == ["models.go"]
        assert fake_compiler.compiled == ["out/app"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_compile_failure(self, generator, fake_compiler, sample_request):
        sample_request.compile_project = True
        fake_compiler.compile = CompilerReport(
            success=False,
            diagnostics=[Diagnostic(path="models.go", line=9, message="undefined: fmt.Sprintf2")],
        )
        result = await generator.generate_code(sample_request)
        assert result.success is False
        assert result.files[0].success is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_remote_failure(self, generator, fake_compiler, sample_request):
        sample_request.write_files = True
        fake_compiler.write = RemoteFailureError("write_files", "boom", status=500)
        result = await generator.generate_code(sample_request)
        assert result.success is False
        assert "HTTP 500" in result.errors[0].message


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TestGenerateFromTemplates:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_renders_each_request(self, fake_compiler, catalog, entity_parameters):
        generator = CodeGenerator(fake_compiler, templates=LocalTemplateProcessor(catalog))
        result = await generator.generate_from_templates(
            [
                TemplateRequest(
                    template_id="model_template",
                    parameters=entity_parameters,
                    output_path="internal/domain/user.go",
                ),
                TemplateRequest(template_id="repository_template", parameters=entity_parameters),
            ]
        )

        assert result.success is True
        assert [f.path for f in result.files] == [
            "internal/domain/user.go",
            "repository_template.go",
        ]
        assert result.files[0].content.startswith("package domain")
        assert result.files[1].kind == "template"
        assert result.metadata["template_count"] == "2"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_template_becomes_diagnostic(self, fake_compiler, catalog, entity_parameters):
        generator = CodeGenerator(fake_compiler, templates=LocalTemplateProcessor(catalog))
        result = await generator.generate_from_templates(
            [
                TemplateRequest(template_id="model_template", parameters=entity_parameters),
                TemplateRequest(template_id="missing_template"),
            ]
        )
        assert result.success is False
        assert [f.path for f in result.files] == ["model_template.go"]
        assert result.errors[0].kind == ErrorKind.NOT_FOUND
        assert result.errors[0].element == "missing_template"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_processor(self, generator):
        with pytest.raises(InvalidRequestError):
            await generator.generate_from_templates([TemplateRequest(template_id="x")])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_requests(self, generator):
        with pytest.raises(InvalidRequestError):
            await generator.generate_from_templates([])


# ---------------------------------------------------------------------------
# Entity bundles
# ---------------------------------------------------------------------------


class TestEntityGeneration:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_entity_set_split_into_internal_packages(self):
        generator = CodeGenerator(LocalCompiler())
        elements = generator.create_complete_entity_set("user", "example.com/app")
        request = GenerationRequest.from_elements(
            elements, module_path="example.com/app", split_files=True
        )
        result = await generator.generate_code(request)

        assert result.success is True, result.diagnostics
        assert [f.path for f in result.files] == [
            "internal/domain/user.go",
            "internal/repository/user_repository.go",
            "internal/application/user_service.go",
            "internal/handlers/user_handler.go",
        ]
        handler = result.file("internal/handlers/user_handler.go")
        assert handler.package == "handlers"
        assert handler.content.startswith(
            "package handlers\n\n"
            "import (\n"
            '\t"encoding/json"\n'
            '\t"net/http"\n'
            '\t"example.com/app/internal/application"\n'
            '\t"example.com/app/internal/domain"\n'
            ")\n"
        )
        assert "service *application.UserService" in handler.content

        service = result.file("internal/application/user_service.go")
        assert '\t"errors"\n' in service.content
        assert "func (s *UserService) GetUser(ctx context.Context, id string) (*domain.User, error) {" in service.content

        model = result.file("internal/domain/user.go")
        assert 'import "time"' in model.content
        assert "func (u User) TableName() string {" in model.content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_entity_set_in_single_file(self):
        generator = CodeGenerator(LocalCompiler())
        elements = generator.create_complete_entity_set("user", "example.com/app")
        request = GenerationRequest.from_elements(
            elements, module_path="example.com/app", package_name="app"
        )
        result = await generator.generate_code(request)

        assert result.success is True, result.diagnostics
        assert [f.path for f in result.files] == ["app.go"]
        content = result.files[0].content
        assert content.startswith(
            "package app\n\n"
            "import (\n"
            '\t"context"\n'
            '\t"encoding/json"\n'
            '\t"errors"\n'
            '\t"net/http"\n'
            '\t"time"\n'
            ")\n"
        )
        assert "example.com/app/internal" not in content
        for qualified in ("domain.User", "repository.UserRepository", "application.UserService"):
            assert qualified not in content
        assert "repository UserRepository" in content
        assert "service *UserService" in content
        assert "GetByID(ctx context.Context, id string) (*User, error)" in content
        assert "var user User" in content

    @pytest.mark.unit
    def test_entity_set_is_closed_variants(self):
        elements = create_complete_entity_set("Order", "example.com/shop")
        assert [e.kind for e in elements] == ["struct", "interface", "struct", "struct"]
        assert [e.name for e in elements] == ["Order", "OrderRepository", "OrderService", "OrderHandler"]

"""Unit tests for the Jinja2 renderer (codeforge.rendering.engine)."""

from __future__ import annotations

import pytest

from codeforge.blocks.models import BlockType, BuildingBlock
from codeforge.errors import NotFoundError, RenderError
from codeforge.rendering import TemplateRenderer


class TestRender:
    @pytest.mark.unit
    def test_int_variable_with_default(self, renderer, store):
        block = store.find_by_name("int-variable")
        assert renderer.render(block.template, {"Name": "age", "DefaultValue": "25"}) == "var age int = 25"

    @pytest.mark.unit
    def test_int_variable_without_default(self, renderer, store):
        block = store.find_by_name("int-variable")
        assert renderer.render(block.template, {"Name": "age"}) == "var age int"

    @pytest.mark.unit
    def test_string_variable_quotes_default(self, renderer, store):
        block = store.find_by_name("string-variable")
        out = renderer.render(block.template, {"Name": "greeting", "DefaultValue": "Hello"})
        assert out == 'var greeting string = "Hello"'

    @pytest.mark.unit
    def test_render_block_merges_defaults(self, renderer, store):
        block = store.find_by_name("int-variable")
        assert renderer.render_block(block) == "var myInt int = 0"
        assert renderer.render_block(block, {"Name": "total"}) == "var total int = 0"

    @pytest.mark.unit
    def test_basic_struct_expands_fields(self, renderer, store):
        block = store.find_by_name("basic-struct")
        out = renderer.render(block.template, {"Name": "User", "Fields": "ID,CreatedAt"})
        assert out == (
            "type User struct {\n"
            '\tID string `json:"id"`\n'
            '\tCreatedAt string `json:"created_at"`\n'
            "}"
        )

    @pytest.mark.unit
    def test_basic_interface(self, renderer, store):
        block = store.find_by_name("basic-interface")
        out = renderer.render_block(block, {"Name": "Store", "Methods": "Open,Close"})
        assert out == "type Store interface {\n\tOpen() error\n\tClose() error\n}"

    @pytest.mark.unit
    def test_package_declaration(self, renderer, store):
        block = store.find_by_name("package-declaration")
        assert renderer.render(block.template, {"Name": "models"}) == "package models"

    @pytest.mark.unit
    def test_missing_placeholder_renders_empty(self, renderer):
        assert renderer.render("var {{ Name }} int", {}) == "var  int"

    @pytest.mark.unit
    def test_deterministic(self, renderer):
        pattern = "func {{ Name | pascal_case }}() {}"
        params = {"Name": "do_work"}
        assert renderer.render(pattern, params) == renderer.render(pattern, params)
        assert renderer.render(pattern, params) == "func DoWork() {}"

    @pytest.mark.unit
    def test_invalid_pattern_raises(self, renderer):
        with pytest.raises(RenderError):
            renderer.render("{% for x in %}", {})


class TestStrictMode:
    @pytest.mark.unit
    def test_missing_placeholder_raises(self):
        strict = TemplateRenderer(strict=True)
        with pytest.raises(RenderError):
            strict.render("var {{ Name }} int", {})

    @pytest.mark.unit
    def test_supplied_placeholders_render(self):
        strict = TemplateRenderer(strict=True)
        assert strict.render("var {{ Name }} int", {"Name": "n"}) == "var n int"


class TestValidation:
    @pytest.mark.unit
    def test_validate_accepts_good_pattern(self, renderer):
        renderer.validate("type {{ Name }} struct {}")

    @pytest.mark.unit
    def test_validate_rejects_bad_pattern(self, renderer):
        with pytest.raises(RenderError):
            renderer.validate("{{ Name ")

    @pytest.mark.unit
    def test_undeclared_parameters(self, renderer):
        missing = renderer.undeclared_parameters("var {{ Name }} {{ Type }}", {"Name": "x"})
        assert missing == {"Type"}


class TestPackagedTemplates:
    @pytest.mark.unit
    def test_list_templates(self, renderer):
        assert renderer.list_templates() == [
            "handler.go.j2",
            "model.go.j2",
            "repository.go.j2",
            "service.go.j2",
        ]

    @pytest.mark.unit
    def test_render_model_template(self, renderer, entity_parameters):
        out = renderer.render_template("model.go.j2", entity_parameters)
        assert out.startswith("package domain\n")
        assert "type User struct {" in out
        assert 'return "user"' in out

    @pytest.mark.unit
    def test_package_name_override(self, renderer, entity_parameters):
        out = renderer.render_template("repository.go.j2", {**entity_parameters, "PackageName": "store"})
        assert out.startswith("package store\n")
        assert '"example.com/app/internal/domain"' in out

    @pytest.mark.unit
    def test_unknown_template(self, renderer):
        with pytest.raises(NotFoundError):
            renderer.source("missing.go.j2")

    @pytest.mark.unit
    def test_block_type_is_irrelevant_to_rendering(self, renderer):
        block = BuildingBlock(type=BlockType.FUNCTION, name="f", template="func {{ Name }}() {}")
        assert renderer.render_block(block, {"Name": "Run"}) == "func Run() {}"

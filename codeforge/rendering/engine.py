"""Jinja2 template rendering for building blocks and catalog templates.

Provides the TemplateRenderer class which renders inline template patterns
(building-block templates, catalog template content) against a parameter
mapping, and loads the packaged ``.go.j2`` templates from the
``codeforge/rendering/templates/`` directory.

Placeholders missing from the parameters render as empty text unless the
renderer is created with ``strict=True``, in which case they raise
``RenderError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping

from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    meta,
    select_autoescape,
)

from codeforge.blocks.models import BuildingBlock
from codeforge.errors import NotFoundError, RenderError
from codeforge.utils import camel_case, pascal_case, snake_case


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 patterns for code generation.

    Rendering holds no state between calls: identical pattern and parameters
    always yield identical text.
    """

    def __init__(self, template_dir: str | Path | None = None, strict: bool = False) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.strict = strict
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined if strict else ChainableUndefined,
        )
        # Register custom filters
        self.env.filters["snake_case"] = _text_filter(snake_case)
        self.env.filters["pascal_case"] = _text_filter(pascal_case)
        self.env.filters["camel_case"] = _text_filter(camel_case)
        self.env.filters["csv"] = _csv_filter

    # -- Inline rendering --------------------------------------------------

    def render(self, pattern: str, parameters: Mapping[str, Any]) -> str:
        """Substitute *parameters* into *pattern*.

        Raises:
            RenderError: If the pattern does not compile, or (strict mode
                only) a placeholder has no value.
        """
        try:
            template = self.env.from_string(pattern)
            return template.render(**dict(parameters))
        except TemplateError as exc:
            raise RenderError(f"Template rendering failed: {exc}") from exc

    def render_block(
        self, block: BuildingBlock, overrides: Mapping[str, Any] | None = None
    ) -> str:
        """Render a building block with its declared defaults, partially overridden."""
        parameters = {**block.parameters, **(overrides or {})}
        return self.render(block.template, parameters)

    def validate(self, pattern: str) -> None:
        """Raise ``RenderError`` if *pattern* is not a valid template."""
        try:
            self.env.parse(pattern)
        except TemplateError as exc:
            raise RenderError(f"Invalid template: {exc}") from exc

    def undeclared_parameters(self, pattern: str, parameters: Mapping[str, Any]) -> set[str]:
        """Return placeholders *pattern* reads that *parameters* does not supply."""
        try:
            ast = self.env.parse(pattern)
        except TemplateError as exc:
            raise RenderError(f"Invalid template: {exc}") from exc
        return set(meta.find_undeclared_variables(ast)) - set(parameters)

    # -- Packaged templates ------------------------------------------------

    def render_template(self, template_path: str, context: Mapping[str, Any]) -> str:
        """Render a packaged template, e.g. ``"repository.go.j2"``."""
        return self.render(self.source(template_path), context)

    def source(self, template_path: str) -> str:
        """Return the raw text of a packaged template.

        Raises:
            NotFoundError: If no such template ships with the package.
        """
        try:
            source, _, _ = self.env.loader.get_source(self.env, template_path)
        except TemplateNotFound as exc:
            raise NotFoundError(f"Template file {template_path} not found") from exc
        return source

    def list_templates(self) -> list[str]:
        """Return a sorted list of all packaged ``.j2`` template paths."""
        if not self.template_dir.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.template_dir)) for p in self.template_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _csv_filter(value: Any) -> list[str]:
    """Split ``"ID,Name,Email"`` into ``["ID", "Name", "Email"]``; empty gives ``[]``."""
    text = str(value) if value else ""
    return [part.strip() for part in text.split(",") if part.strip()]


def _text_filter(func: Callable[[str], str]) -> Callable[[Any], str]:
    """Adapt a ``str -> str`` helper so undefined values render as empty text."""
    def _filter(value: Any) -> str:
        return func(str(value)) if value else ""
    return _filter

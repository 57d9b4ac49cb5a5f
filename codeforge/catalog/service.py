"""Template catalog -- categorised whole-file templates and their processing.

``TemplateCatalog`` stores templates in memory behind the same reader/writer
discipline as the building-block store, validates template syntax on every
create/update, and renders templates on request.  It also knows how to
install the packaged entity templates (model, repository, service, handler)
used by ``CodeGenerator.generate_from_templates``.

``LocalTemplateProcessor`` exposes a catalog through the async
template-processing contract, so the generator can use the catalog and the
remote ``HTTPTemplateClient`` interchangeably.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from codeforge.blocks.store import ReadWriteLock
from codeforge.catalog.models import (
    Template,
    TemplateCategory,
    TemplateParameter,
    TemplateRequest,
    TemplateResult,
)
from codeforge.errors import (
    AlreadyExistsError,
    InvalidRequestError,
    NotFoundError,
    RenderError,
)
from codeforge.rendering.engine import TemplateRenderer


# ---------------------------------------------------------------------------
# Packaged entity templates
# ---------------------------------------------------------------------------

_ENTITY_PARAMETERS = [
    TemplateParameter(name="EntityName", description="Name of the entity", required=True),
    TemplateParameter(name="EntityVarName", description="Variable name for the entity", required=True),
    TemplateParameter(name="ModulePath", description="Go module path", required=True),
    TemplateParameter(name="PackageName", description="Package clause of the generated file"),
]

# category -> (template file, well-known id, description suffix)
ENTITY_TEMPLATES: dict[TemplateCategory, tuple[str, str, str]] = {
    TemplateCategory.MODEL: ("model.go.j2", "model_template", "domain model"),
    TemplateCategory.REPOSITORY: ("repository.go.j2", "repository_template", "CRUD repository"),
    TemplateCategory.SERVICE: ("service.go.j2", "service_template", "application service"),
    TemplateCategory.HANDLER: ("handler.go.j2", "handler_template", "HTTP handler"),
}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TemplateCatalog:
    """Thread-safe in-memory registry of catalog templates."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self._templates: dict[str, Template] = {}
        self._lock = ReadWriteLock()

    # -- CRUD --------------------------------------------------------------

    def create(self, template: Template) -> Template:
        """Register *template* after checking its content compiles.

        Raises:
            RenderError: If the content is not a valid template.
            AlreadyExistsError: If the id is taken.
        """
        self.renderer.validate(template.content)
        with self._lock.write():
            if template.id in self._templates:
                raise AlreadyExistsError(f"Template with ID {template.id} already exists")
            self._templates[template.id] = template.model_copy(deep=True)
        return template

    def get(self, template_id: str) -> Template:
        with self._lock.read():
            template = self._templates.get(template_id)
            if template is None:
                raise NotFoundError(f"Template with ID {template_id} not found")
            return template.model_copy(deep=True)

    def update(self, template: Template) -> Template:
        self.renderer.validate(template.content)
        with self._lock.write():
            existing = self._templates.get(template.id)
            if existing is None:
                raise NotFoundError(f"Template with ID {template.id} not found")
            stored = template.model_copy(
                deep=True,
                update={
                    "created_at": existing.created_at,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            self._templates[template.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, template_id: str) -> None:
        with self._lock.write():
            if template_id not in self._templates:
                raise NotFoundError(f"Template with ID {template_id} not found")
            del self._templates[template_id]

    def list_by_category(self, category: TemplateCategory | str) -> list[Template]:
        """Return every template in *category* (built-in or user-defined)."""
        wanted = category.value if isinstance(category, TemplateCategory) else category
        with self._lock.read():
            return [
                t.model_copy(deep=True)
                for t in self._templates.values()
                if t.category_name == wanted
            ]

    def list_all(self) -> list[Template]:
        with self._lock.read():
            return [t.model_copy(deep=True) for t in self._templates.values()]

    # -- Processing --------------------------------------------------------

    def process(self, request: TemplateRequest) -> TemplateResult:
        """Render the requested template.

        Declared parameter defaults are applied first, then the request's
        parameters.  Rendering failures are reported in the result rather
        than raised.

        Raises:
            NotFoundError: If the template id is unknown.
            InvalidRequestError: If a required parameter is missing.
        """
        template = self.get(request.template_id)

        missing = [
            p.name
            for p in template.parameters
            if p.required and p.name not in request.parameters
        ]
        if missing:
            raise InvalidRequestError(
                f"Required parameter(s) missing for template {template.id}: {', '.join(missing)}",
                details=[{"parameter": name} for name in missing],
            )

        parameters: dict[str, Any] = {
            p.name: p.default_value for p in template.parameters if p.default_value
        }
        parameters.update(request.parameters)
        if request.package_name and "PackageName" not in request.parameters:
            parameters["PackageName"] = request.package_name

        try:
            code = self.renderer.render(template.content, parameters)
        except RenderError as exc:
            return TemplateResult(
                template_id=template.id,
                success=False,
                error_message=str(exc),
            )

        return TemplateResult(
            template_id=template.id,
            generated_code=code,
            success=True,
            metadata={
                "template_name": template.name,
                "category": template.category_name,
                "output_path": request.output_path,
                "package_name": request.package_name,
            },
        )

    # -- Entity templates --------------------------------------------------

    def create_entity_template(
        self,
        category: TemplateCategory,
        name: str,
        entity_name: str = "",
        template_id: str | None = None,
    ) -> Template:
        """Register the packaged template for *category* under *name*.

        Raises:
            NotFoundError: If *category* has no packaged template.
        """
        if category not in ENTITY_TEMPLATES:
            raise NotFoundError(f"No packaged template for category {category.value}")
        filename, _, summary = ENTITY_TEMPLATES[category]
        subject = f"{entity_name} entity" if entity_name else "an entity"
        kwargs: dict[str, Any] = {}
        if template_id:
            kwargs["id"] = template_id
        template = Template(
            name=name,
            category=category,
            description=f"{summary.capitalize()} template for {subject}",
            content=self.renderer.source(filename),
            parameters=[p.model_copy() for p in _ENTITY_PARAMETERS],
            examples=[f"{summary.capitalize()} for {subject}"],
            **kwargs,
        )
        return self.create(template)

    def create_repository_template(self, name: str, entity_name: str = "") -> Template:
        return self.create_entity_template(TemplateCategory.REPOSITORY, name, entity_name)

    def create_service_template(self, name: str, entity_name: str = "") -> Template:
        return self.create_entity_template(TemplateCategory.SERVICE, name, entity_name)

    def create_handler_template(self, name: str, entity_name: str = "") -> Template:
        return self.create_entity_template(TemplateCategory.HANDLER, name, entity_name)

    def create_model_template(self, name: str, entity_name: str = "") -> Template:
        return self.create_entity_template(TemplateCategory.MODEL, name, entity_name)

    def install_entity_templates(self) -> list[Template]:
        """Register all packaged entity templates under their well-known ids.

        Already-installed ids are left untouched.
        """
        installed: list[Template] = []
        for category, (_, template_id, _) in ENTITY_TEMPLATES.items():
            try:
                installed.append(self.get(template_id))
            except NotFoundError:
                installed.append(
                    self.create_entity_template(category, template_id, template_id=template_id)
                )
        return installed


# ---------------------------------------------------------------------------
# Async adapter
# ---------------------------------------------------------------------------


class LocalTemplateProcessor:
    """Serve the template-processing contract from an in-process catalog."""

    def __init__(self, catalog: TemplateCatalog) -> None:
        self.catalog = catalog

    async def process_template(self, template_id: str, parameters: dict[str, str]) -> str:
        """Render *template_id* and return the generated code.

        Raises:
            NotFoundError, InvalidRequestError: From the catalog.
            RenderError: If the template failed to render.
        """
        result = self.catalog.process(
            TemplateRequest(template_id=template_id, parameters=parameters)
        )
        if not result.success:
            raise RenderError(result.error_message or f"Template {template_id} failed to render")
        return result.generated_code

    async def get_template(self, template_id: str) -> dict[str, Any]:
        return self.catalog.get(template_id).model_dump(mode="json")

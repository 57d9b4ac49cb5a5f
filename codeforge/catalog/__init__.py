"""Template catalog -- categorised whole-file Go templates.

Usage::

    from codeforge.catalog import TemplateCatalog, TemplateRequest

    catalog = TemplateCatalog()
    catalog.install_entity_templates()
    result = catalog.process(TemplateRequest(
        template_id="repository_template",
        parameters={"EntityName": "User", "EntityVarName": "user", "ModulePath": "example.com/app"},
    ))
    print(result.generated_code)
"""

from codeforge.catalog.models import (
    Template,
    TemplateCategory,
    TemplateParameter,
    TemplateRequest,
    TemplateResult,
)
from codeforge.catalog.service import ENTITY_TEMPLATES, LocalTemplateProcessor, TemplateCatalog

__all__ = [
    "ENTITY_TEMPLATES",
    "LocalTemplateProcessor",
    "Template",
    "TemplateCatalog",
    "TemplateCategory",
    "TemplateParameter",
    "TemplateRequest",
    "TemplateResult",
]

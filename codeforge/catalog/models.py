"""Pydantic v2 models for the template catalog.

Catalog templates are whole-file patterns grouped by category (repository,
service, handler, ...).  They are distinct from the per-construct template
carried by a ``BuildingBlock``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TemplateCategory(str, Enum):
    """Built-in template categories.  Any other string is a user-defined category."""
    REPOSITORY = "repository"
    SERVICE = "service"
    STORAGE = "storage"
    ADAPTER = "adapter"
    VALUE_OBJECT = "value_object"
    DTO = "dto"
    USE_CASE = "use_case"
    HANDLER = "handler"
    MIDDLEWARE = "middleware"
    MODEL = "model"
    INTERFACE = "interface"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------

class TemplateParameter(BaseModel):
    """A parameter a template declares."""
    name: str = Field(..., min_length=1)
    type: str = Field(default="string")
    description: str = Field(default="")
    default_value: str = Field(default="")
    required: bool = Field(default=False)


class Template(BaseModel):
    """A categorised, whole-file code template."""
    id: str = Field(default_factory=lambda: _new_id("tmpl"))
    name: str = Field(..., min_length=1)
    category: Union[TemplateCategory, str] = Field(..., description="Built-in or user-defined category")
    description: str = Field(default="")
    content: str = Field(..., description="Jinja2 pattern")
    parameters: list[TemplateParameter] = Field(default_factory=list)
    building_blocks: list[str] = Field(
        default_factory=list, description="IDs of building blocks this template uses"
    )
    examples: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def category_name(self) -> str:
        if isinstance(self.category, TemplateCategory):
            return self.category.value
        return self.category


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------

class TemplateRequest(BaseModel):
    """A request to render one catalog template."""
    template_id: str = Field(..., min_length=1)
    parameters: dict[str, str] = Field(default_factory=dict)
    output_path: str = Field(default="", description="File path the rendered text is destined for")
    package_name: str = Field(default="")


class TemplateResult(BaseModel):
    """Outcome of processing a ``TemplateRequest``."""
    id: str = Field(default_factory=lambda: _new_id("result"))
    template_id: str
    generated_code: str = Field(default="")
    success: bool = Field(default=True)
    error_message: str | None = Field(default=None)
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)

"""Pydantic v2 models for building blocks.

A building block is a named, parameterised template for one Go construct,
with declared parameter defaults and example outputs.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class BlockType(str, Enum):
    """Construct category a building block produces."""
    VARIABLE = "variable"
    STRUCT = "struct"
    INTERFACE = "interface"
    FUNCTION = "function"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BuildingBlock(BaseModel):
    """A reusable, parameterised template for one code construct."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Immutable unique id")
    type: BlockType = Field(..., description="Construct category")
    name: str = Field(..., min_length=1, description="Human-readable name, unique within a type")
    description: str = Field(default="")
    template: str = Field(..., description="Jinja2 pattern with named placeholders")
    parameters: dict[str, str] = Field(
        default_factory=dict, description="Placeholder name -> default value"
    )
    examples: list[str] = Field(
        default_factory=list, description="Sample outputs (documentation only)"
    )
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

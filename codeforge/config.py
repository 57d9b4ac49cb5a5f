"""CodeForge configuration.

Centralised, typed configuration for the generator and its collaborators.
All settings use Pydantic v2 models so they are validated at construction
time and serialise to/from JSON or environment variables without
boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class CompilerConfig(BaseModel):
    """Where and how to reach the compiler/validation collaborator."""

    url: str = Field(default="http://localhost:8083")
    timeout: int = Field(default=60, ge=1, description="Per-request timeout in seconds")
    go_binary: str = Field(default="go", description="Go toolchain used by the local compiler")


class TemplateServiceConfig(BaseModel):
    """Configuration for the remote template-processing service."""

    url: str = Field(default="http://localhost:8082")
    timeout: int = Field(default=30, ge=1)


class GeneratorConfig(BaseModel):
    """Tuning knobs for the generation pipeline."""

    max_parallel_renders: int = Field(
        default=4, ge=1, description="Maximum elements rendered concurrently"
    )
    default_package: str = Field(default="main")
    file_extension: str = Field(default=".go")
    strict_templates: bool = Field(
        default=False,
        description="Fail on unresolved template placeholders instead of rendering them empty",
    )
    verbose: bool = Field(default=False, description="Print per-element progress")


class Config(BaseModel):
    """Global CodeForge configuration.

    Instances are usually created once by the CLI (or the embedding service)
    and passed to ``CodeGenerator`` and the collaborator clients.
    """

    output_dir: Path = Field(default=Path("./generated"))
    use_local_compiler: bool = Field(
        default=True, description="Use the in-process compiler instead of the HTTP service"
    )
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    templates: TemplateServiceConfig = Field(default_factory=TemplateServiceConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            CODEFORGE_OUTPUT_DIR, CODEFORGE_USE_LOCAL_COMPILER,
            CODEFORGE_COMPILER_URL, CODEFORGE_COMPILER_TIMEOUT,
            CODEFORGE_TEMPLATE_URL, CODEFORGE_MAX_PARALLEL,
            CODEFORGE_STRICT_TEMPLATES.
        """
        compiler_kwargs: dict[str, Any] = {}
        if os.environ.get("CODEFORGE_COMPILER_URL"):
            compiler_kwargs["url"] = os.environ["CODEFORGE_COMPILER_URL"]
        if os.environ.get("CODEFORGE_COMPILER_TIMEOUT"):
            compiler_kwargs["timeout"] = int(os.environ["CODEFORGE_COMPILER_TIMEOUT"])

        template_kwargs: dict[str, Any] = {}
        if os.environ.get("CODEFORGE_TEMPLATE_URL"):
            template_kwargs["url"] = os.environ["CODEFORGE_TEMPLATE_URL"]

        generator_kwargs: dict[str, Any] = {}
        if os.environ.get("CODEFORGE_MAX_PARALLEL"):
            generator_kwargs["max_parallel_renders"] = int(os.environ["CODEFORGE_MAX_PARALLEL"])
        if os.environ.get("CODEFORGE_STRICT_TEMPLATES"):
            generator_kwargs["strict_templates"] = _env_flag("CODEFORGE_STRICT_TEMPLATES")

        use_local = True
        if os.environ.get("CODEFORGE_USE_LOCAL_COMPILER"):
            use_local = _env_flag("CODEFORGE_USE_LOCAL_COMPILER")

        return cls(
            output_dir=Path(os.environ.get("CODEFORGE_OUTPUT_DIR", "./generated")),
            use_local_compiler=use_local,
            compiler=CompilerConfig(**compiler_kwargs),
            templates=TemplateServiceConfig(**template_kwargs),
            generator=GeneratorConfig(**generator_kwargs),
        )


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}

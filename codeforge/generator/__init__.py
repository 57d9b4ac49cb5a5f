"""CodeForge generator.

Turns parsed generation requests into Go source files and hands them to the
compiler collaborator.

Key classes:
    GenerationRequest  - Declarative request; raw element payloads + parsed elements
    CodeGenerator      - Render, assemble, validate, write and compile
    CodeAccumulator    - Per-request path -> text buffer
    GenerationResult   - Files, diagnostics and metadata of one run
"""

from .accumulator import CodeAccumulator
from .entities import create_complete_entity_set
from .models import (
    CompilerReport,
    Diagnostic,
    GeneratedFile,
    GenerationRequest,
    GenerationResult,
)
from .service import CodeGenerator, infer_imports

__all__ = [
    # Requests & results
    "GenerationRequest",
    "GenerationResult",
    "GeneratedFile",
    "Diagnostic",
    "CompilerReport",
    # Orchestration
    "CodeGenerator",
    "CodeAccumulator",
    "create_complete_entity_set",
    "infer_imports",
]

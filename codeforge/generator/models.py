"""Pydantic v2 models for generation requests, results and compiler reports.

A ``GenerationRequest`` arrives with untyped element payloads.  Calling
``parse_elements`` resolves every payload into a concrete ``CodeElement``
variant by its ``kind`` discriminator; a single unresolvable payload fails
the whole parse and leaves the request unparsed.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, TypeAdapter, ValidationError

from codeforge.elements.models import ELEMENT_KINDS, CodeElement
from codeforge.errors import ErrorKind, InvalidRequestError

_ELEMENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(CodeElement)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class GenerationRequest(BaseModel):
    """A declarative request to generate Go source from code elements."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", description="Assigned by the generator when empty")
    raw_elements: list[Any] = Field(
        default_factory=list,
        alias="elements",
        description="Untyped element payloads, each carrying a 'kind' discriminator",
    )
    module_path: str = Field(default="", description="Go module path used for internal imports")
    output_path: str = Field(default="", description="Directory the files are written under")
    package_name: str = Field(default="", description="Default package clause")
    file_name: str = Field(default="", description="Single-file mode output file name")
    split_files: bool = Field(default=False, description="Write one file per element")
    write_files: bool = Field(default=False, description="Persist files through the compiler")
    compile_project: bool = Field(
        default=False, alias="compile", description="Compile output_path afterwards"
    )
    parameters: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)

    _elements: list[Any] = PrivateAttr(default_factory=list)
    _parsed: bool = PrivateAttr(default=False)

    @property
    def elements(self) -> list[Any]:
        """Typed elements; empty until ``parse_elements`` succeeds."""
        return list(self._elements)

    @property
    def is_parsed(self) -> bool:
        return self._parsed

    def parse_elements(self) -> list[Any]:
        """Resolve every raw payload into a ``CodeElement`` variant.

        Raises:
            InvalidRequestError: If any payload has a missing or unknown
                ``kind`` or invalid fields.  ``details`` lists each failing
                index; no element is kept.
        """
        self._elements = []
        self._parsed = False

        parsed: list[Any] = []
        failures: list[dict[str, Any]] = []
        for index, raw in enumerate(self.raw_elements):
            try:
                parsed.append(_ELEMENT_ADAPTER.validate_python(raw))
            except ValidationError as exc:
                kind = raw.get("kind") if isinstance(raw, dict) else None
                errors = [
                    f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                ]
                if kind is not None and kind not in ELEMENT_KINDS:
                    errors = [
                        f"unknown kind {kind!r}; expected one of {', '.join(ELEMENT_KINDS)}"
                    ]
                failures.append({"index": index, "kind": kind, "errors": errors})

        if failures:
            raise InvalidRequestError(
                f"{len(failures)} of {len(self.raw_elements)} element payload(s) could not be parsed",
                details=failures,
            )

        self._elements = parsed
        self._parsed = True
        return list(parsed)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GenerationRequest":
        """Validate a wire payload and parse its elements in one step."""
        try:
            request = cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequestError(f"Malformed generation request: {exc}") from exc
        request.parse_elements()
        return request

    @classmethod
    def from_elements(cls, elements: Iterable[BaseModel], **fields: Any) -> "GenerationRequest":
        """Assemble a request from already-typed elements.

        The elements are dumped to payloads and parsed back, so the request
        goes through the same resolution step as a wire request.
        """
        raw = [element.model_dump(mode="json") for element in elements]
        request = cls(raw_elements=raw, **fields)
        request.parse_elements()
        return request


# ---------------------------------------------------------------------------
# Diagnostics & compiler reports
# ---------------------------------------------------------------------------

class Diagnostic(BaseModel):
    """One problem found while rendering, validating, writing or compiling."""
    kind: ErrorKind = Field(default=ErrorKind.PARTIAL_VALIDATION_FAILURE)
    message: str
    path: str = Field(default="")
    element: str = Field(default="", description="Name of the element the problem belongs to")
    line: int | None = Field(default=None)
    severity: Literal["error", "warning"] = Field(default="error")


class CompilerReport(BaseModel):
    """Response of a compiler collaborator operation."""
    success: bool = Field(default=True)
    message: str = Field(default="")
    diagnostics: list[Diagnostic] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class GeneratedFile(BaseModel):
    """A generated source file -- the externally visible result unit."""
    path: str
    content: str
    success: bool = Field(default=True)
    package: str = Field(default="")
    kind: str = Field(default="", description="Element kind, or 'mixed'")
    size: int = Field(default=0, description="Content length in bytes")


class GenerationResult(BaseModel):
    """Outcome of one generation run."""
    id: str = Field(default_factory=lambda: f"result_{uuid.uuid4().hex[:12]}")
    request_id: str
    files: list[GeneratedFile] = Field(default_factory=list)
    success: bool = Field(default=False)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    completed_at: datetime = Field(default_factory=_utc_now)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    def file(self, path: str) -> GeneratedFile | None:
        for generated in self.files:
            if generated.path == path:
                return generated
        return None

"""Collaborator contracts and their HTTP clients.

The generator talks to two collaborators, both behind small async
contracts so in-process and remote implementations are interchangeable:

* a *compiler* that validates files, writes them to disk and compiles a
  project (``LocalCompiler`` in :mod:`codeforge.compiler`, or
  ``HTTPCompilerClient`` here),
* a *template processor* that renders a catalog template by id
  (``LocalTemplateProcessor`` in :mod:`codeforge.catalog`, or
  ``HTTPTemplateClient`` here).

The HTTP clients wrap ``httpx.AsyncClient`` and raise
``RemoteFailureError`` carrying the operation name and status on any
transport error or non-success response.

Typical usage::

    compiler = HTTPCompilerClient("http://localhost:8083")
    report = await compiler.validate_code({"main.go": "package main\\n"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from codeforge.errors import NotFoundError, RemoteFailureError
from codeforge.generator.models import CompilerReport, Diagnostic

if TYPE_CHECKING:
    from codeforge.generator.accumulator import CodeAccumulator


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@runtime_checkable
class CompilerCollaborator(Protocol):
    """Validates, persists and compiles generated files."""

    async def validate_code(self, files: dict[str, str]) -> CompilerReport: ...

    async def write_files(
        self, accumulator: "CodeAccumulator", output_path: str
    ) -> CompilerReport: ...

    async def compile_project(self, project_path: str) -> CompilerReport: ...


@runtime_checkable
class TemplateProcessor(Protocol):
    """Renders catalog templates by id."""

    async def process_template(self, template_id: str, parameters: dict[str, str]) -> str: ...

    async def get_template(self, template_id: str) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Shared HTTP plumbing
# ---------------------------------------------------------------------------


class _HTTPClient:
    """Base for the collaborator clients.

    ``transport`` is passed straight to ``httpx.AsyncClient``; tests inject
    an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self.transport,
        )

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request, turning transport errors into ``RemoteFailureError``.

        The response is returned unchecked; callers decide which statuses
        are acceptable.
        """
        try:
            async with self._client() as client:
                return await client.request(method, url, json=json)
        except httpx.ConnectError as exc:
            raise RemoteFailureError(
                operation, f"cannot connect to {self.base_url}: {exc}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise RemoteFailureError(
                operation, f"request timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteFailureError(operation, str(exc)) from exc

    @staticmethod
    def _check(operation: str, response: httpx.Response) -> dict[str, Any]:
        """Return the JSON body of a 2xx response, else raise."""
        if not response.is_success:
            raise RemoteFailureError(
                operation, response.text[:500] or response.reason_phrase, response.status_code
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteFailureError(
                operation, "response body is not JSON", response.status_code
            ) from exc
        return data if isinstance(data, dict) else {}


def _report_from(data: dict[str, Any]) -> CompilerReport:
    """Build a ``CompilerReport`` from a collaborator JSON body.

    Diagnostics may be objects or bare strings; ``errors`` is accepted as an
    alias of ``diagnostics``.
    """
    raw = data.get("diagnostics") or data.get("errors") or []
    diagnostics: list[Diagnostic] = []
    for item in raw:
        if isinstance(item, str):
            diagnostics.append(Diagnostic(message=item))
        elif isinstance(item, dict):
            diagnostics.append(
                Diagnostic(
                    message=str(item.get("message", "")),
                    path=str(item.get("path") or item.get("file") or ""),
                    element=str(item.get("element", "")),
                    line=item.get("line"),
                    severity="warning" if item.get("severity") == "warning" else "error",
                )
            )
    return CompilerReport(
        success=bool(data.get("success", not diagnostics)),
        message=str(data.get("message") or data.get("output") or ""),
        diagnostics=diagnostics,
    )


# ---------------------------------------------------------------------------
# Compiler client
# ---------------------------------------------------------------------------


class HTTPCompilerClient(_HTTPClient):
    """Async client for the remote compiler/validation service."""

    def __init__(
        self,
        base_url: str = "http://localhost:8083",
        timeout: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, transport)

    async def validate_code(self, files: dict[str, str]) -> CompilerReport:
        response = await self._request(
            "validate_code",
            "POST",
            "/api/v1/validate",
            json={"files": [{"path": p, "content": c} for p, c in files.items()]},
        )
        return _report_from(self._check("validate_code", response))

    async def write_files(self, accumulator: "CodeAccumulator", output_path: str) -> CompilerReport:
        payload = {
            "output_path": output_path,
            "files": [{"path": p, "content": c} for p, c in accumulator.files().items()],
            "metadata": accumulator.metadata,
        }
        response = await self._request("write_files", "POST", "/api/v1/files/write", json=payload)
        return _report_from(self._check("write_files", response))

    async def compile_project(self, project_path: str) -> CompilerReport:
        response = await self._request(
            "compile_project", "POST", "/api/v1/compile", json={"project_path": project_path}
        )
        return _report_from(self._check("compile_project", response))


# ---------------------------------------------------------------------------
# Template client
# ---------------------------------------------------------------------------


class HTTPTemplateClient(_HTTPClient):
    """Async client for the remote template-processing service."""

    def __init__(
        self,
        base_url: str = "http://localhost:8082",
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, transport)

    async def process_template(self, template_id: str, parameters: dict[str, str]) -> str:
        """Render *template_id* remotely and return the generated code.

        Raises:
            RemoteFailureError: On transport failure, non-2xx status, or a
                response reporting ``success: false``.
        """
        response = await self._request(
            "process_template",
            "POST",
            "/api/v1/templates/process",
            json={"template_id": template_id, "parameters": parameters},
        )
        data = self._check("process_template", response)
        if not data.get("success", False):
            raise RemoteFailureError(
                "process_template",
                data.get("error_message") or f"template {template_id} was not processed",
                response.status_code,
            )
        return str(data.get("generated_code", ""))

    async def get_template(self, template_id: str) -> dict[str, Any]:
        """Fetch a template description.

        Raises:
            NotFoundError: If the service answers 404.
            RemoteFailureError: For any other failure.
        """
        response = await self._request("get_template", "GET", f"/api/v1/templates/{template_id}")
        if response.status_code == 404:
            raise NotFoundError(f"Template with ID {template_id} not found")
        return self._check("get_template", response)

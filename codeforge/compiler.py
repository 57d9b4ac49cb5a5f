"""In-process compiler collaborator.

``LocalCompiler`` fulfils the compiler contract without a remote service:

* ``validate_code`` runs cheap structural checks (package clause, balanced
  delimiters outside strings and comments),
* ``write_files`` writes the accumulator's snapshot below an output
  directory,
* ``compile_project`` runs ``go build ./...`` in the project directory.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING

from codeforge.generator.models import CompilerReport, Diagnostic
from codeforge.utils import run_command

if TYPE_CHECKING:
    from codeforge.generator.accumulator import CodeAccumulator

_PACKAGE_RE = re.compile(r"^package\s+[A-Za-z_]\w*\s*$", re.MULTILINE)
_GO_ERROR_RE = re.compile(r"^(?P<path>[^\s:]+\.go):(?P<line>\d+)(?::\d+)?:\s*(?P<message>.+)$")

_OPENERS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def check_delimiters(source: str) -> list[tuple[int, str]]:
    """Return ``(line, message)`` for every unbalanced delimiter in *source*.

    String, rune and raw-string literals and comments are skipped.
    """
    problems: list[tuple[int, str]] = []
    stack: list[tuple[str, int]] = []
    line = 1
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch == "\n":
            line += 1
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            end = n if end == -1 else end + 2
            line += source.count("\n", i, end)
            i = end
            continue
        elif ch == "`":
            end = source.find("`", i + 1)
            end = n if end == -1 else end + 1
            line += source.count("\n", i, end)
            i = end
            continue
        elif ch in ('"', "'"):
            j = i + 1
            while j < n and source[j] != ch and source[j] != "\n":
                j += 2 if source[j] == "\\" else 1
            i = j + 1
            continue
        elif ch in _OPENERS:
            stack.append((ch, line))
        elif ch in _CLOSERS:
            if not stack or stack[-1][0] != _CLOSERS[ch]:
                problems.append((line, f"unexpected '{ch}'"))
            else:
                stack.pop()
        i += 1

    for opener, opened_at in stack:
        problems.append((opened_at, f"unclosed '{opener}'"))
    return problems


class LocalCompiler:
    """Validate, write and compile generated Go files on this machine.

    Args:
        base_dir: Directory that relative output paths are resolved against.
        go_binary: Go toolchain executable.
        timeout: Seconds allowed for ``go build``.
    """

    def __init__(
        self,
        base_dir: str | Path = ".",
        go_binary: str = "go",
        timeout: int = 120,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.go_binary = go_binary
        self.timeout = timeout

    async def validate_code(self, files: dict[str, str]) -> CompilerReport:
        diagnostics: list[Diagnostic] = []
        for path, content in files.items():
            if not _PACKAGE_RE.search(content):
                diagnostics.append(
                    Diagnostic(path=path, line=1, message="missing package clause")
                )
            for line, message in check_delimiters(content):
                diagnostics.append(Diagnostic(path=path, line=line, message=message))

        return CompilerReport(
            success=not diagnostics,
            message=f"validated {len(files)} file(s)",
            diagnostics=diagnostics,
        )

    async def write_files(self, accumulator: "CodeAccumulator", output_path: str) -> CompilerReport:
        root = self._resolve(output_path)
        diagnostics: list[Diagnostic] = []
        written = 0
        for path, content in accumulator.files().items():
            target = (root / path).resolve()
            if Path(path).is_absolute() or not target.is_relative_to(root.resolve()):
                diagnostics.append(
                    Diagnostic(path=path, message="path escapes the output directory")
                )
                continue
            try:
                await asyncio.to_thread(_write_file, target, content)
            except OSError as exc:
                diagnostics.append(Diagnostic(path=path, message=f"write failed: {exc}"))
                continue
            written += 1

        return CompilerReport(
            success=not diagnostics,
            message=f"wrote {written} file(s) to {root}",
            diagnostics=diagnostics,
        )

    async def compile_project(self, project_path: str) -> CompilerReport:
        root = self._resolve(project_path)
        rc, stdout, stderr = await run_command(
            [self.go_binary, "build", "./..."], cwd=root, timeout=self.timeout
        )
        if rc == 0:
            return CompilerReport(success=True, message=stdout or "build succeeded")

        diagnostics: list[Diagnostic] = []
        for raw in stderr.splitlines():
            match = _GO_ERROR_RE.match(raw.strip())
            if match:
                diagnostics.append(
                    Diagnostic(
                        path=match.group("path").removeprefix("./"),
                        line=int(match.group("line")),
                        message=match.group("message"),
                    )
                )
        if not diagnostics:
            diagnostics.append(
                Diagnostic(message=stderr or f"{self.go_binary} build exited with code {rc}")
            )
        return CompilerReport(success=False, message=stderr, diagnostics=diagnostics)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path) if path else Path(".")
        return candidate if candidate.is_absolute() else self.base_dir / candidate


def _write_file(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")

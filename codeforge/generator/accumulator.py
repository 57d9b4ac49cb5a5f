"""Per-request output accumulator.

``CodeAccumulator`` collects rendered text per output path while a request
is being generated.  Appends may come from concurrent render workers; they
are serialized, and the text of one path is always the ordered
concatenation of everything appended to it.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone


class CodeAccumulator:
    """Output-path to text buffer plus free-form string metadata."""

    def __init__(self) -> None:
        self._buffers: dict[str, list[str]] = {}
        self._metadata: dict[str, str] = {}
        self._lock = threading.Lock()
        self.created_at = datetime.now(timezone.utc)

    def append(self, path: str, text: str) -> None:
        """Append *text* to the buffer for *path*, creating it on first use."""
        with self._lock:
            self._buffers.setdefault(path, []).append(text)

    def files(self) -> dict[str, str]:
        """Return a snapshot of every buffer, in first-append order."""
        with self._lock:
            return {path: "".join(parts) for path, parts in self._buffers.items()}

    def content(self, path: str) -> str:
        with self._lock:
            return "".join(self._buffers.get(path, []))

    def paths(self) -> list[str]:
        with self._lock:
            return list(self._buffers)

    def set_metadata(self, key: str, value: object) -> None:
        with self._lock:
            self._metadata[key] = str(value)

    @property
    def metadata(self) -> dict[str, str]:
        with self._lock:
            return dict(self._metadata)

    def files_by_extension(self, extension: str) -> dict[str, str]:
        """Return the snapshot restricted to paths ending in *extension*."""
        return {path: text for path, text in self.files().items() if path.endswith(extension)}

    def total_size(self) -> int:
        """Total size in bytes of all buffers (UTF-8)."""
        return sum(len(text.encode("utf-8")) for text in self.files().values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffers)

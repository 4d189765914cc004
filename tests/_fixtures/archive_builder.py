"""Helper utilities for constructing in-memory zip archives in tests."""

from __future__ import annotations

import io
import textwrap
import zipfile
from pathlib import Path
from typing import Iterable, Mapping, Union

Payload = Union[str, bytes]


class ArchiveBuilder:
    """Collects `path -> contents` entries and renders them as zip bytes."""

    def __init__(self, tmp_path: Path) -> None:
        self.tmp_path = tmp_path
        self._entries: dict[str, bytes] = {}
        self._dirs: list[str] = []

    def write(self, files: Mapping[str, Payload]) -> "ArchiveBuilder":
        """Add entries; text payloads are dedented before encoding."""
        for relative, content in files.items():
            if isinstance(content, str):
                content = textwrap.dedent(content).lstrip("\n").encode("utf-8")
            self._entries[relative] = content
        return self

    def mkdir(self, *paths: str) -> "ArchiveBuilder":
        self._dirs.extend(path.rstrip("/") + "/" for path in paths)
        return self

    def build(self, compression: int = zipfile.ZIP_DEFLATED) -> bytes:
        return build_zip(self._entries, dirs=self._dirs, compression=compression)

    def save(self, name: str = "archive.zip") -> Path:
        target = self.tmp_path / name
        target.write_bytes(self.build())
        return target


def build_zip(
    entries: Mapping[str, bytes],
    *,
    dirs: Iterable[str] = (),
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for directory in dirs:
            archive.writestr(directory, b"")
        for path, payload in entries.items():
            archive.writestr(path, payload)
    return buffer.getvalue()


__all__ = ["ArchiveBuilder", "build_zip"]

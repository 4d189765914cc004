"""Normalization of archive and remote entries into UnifiedFile records."""

from __future__ import annotations

import zlib
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from ..categories import TEXT, UNKNOWN, classify_extension, path_depth, split_extension
from ..config import ArchiveConfig, LimitsConfig
from ..logging import get_logger
from ..models import UnifiedFile
from .archive import ArchiveEntry

logger = get_logger("ingest.unifier")


@dataclass
class UnifiedSource:
    """Files and explicit folder paths produced by one ingestion pass."""

    files: List[UnifiedFile]
    folders: List[str]


def build_file(
    path: str,
    size: int,
    *,
    content: Optional[str] = None,
    binary: Optional[bytes] = None,
    remote_locator: Optional[str] = None,
    category: Optional[str] = None,
) -> UnifiedFile:
    """Create a record with name, extension, depth and category derived from the path."""
    name = path.rsplit("/", 1)[-1]
    extension = split_extension(name)
    return UnifiedFile(
        path=path,
        name=name,
        extension=extension,
        size=size,
        depth=path_depth(path),
        category=category or classify_extension(extension),
        content=content,
        binary=binary,
        remote_locator=remote_locator,
    )


def decode_text(raw: bytes) -> str:
    """Strict UTF-8 decode that tolerates a leading BOM."""
    return raw.decode("utf-8-sig")


class FileUnifier:
    """Applies the size tiers that decide what gets loaded into memory."""

    def __init__(
        self,
        limits: LimitsConfig | None = None,
        archive: ArchiveConfig | None = None,
    ) -> None:
        self.limits = limits or LimitsConfig()
        self.archive = archive or ArchiveConfig()

    def from_archive(self, entries: Sequence[ArchiveEntry]) -> UnifiedSource:
        """Load every file entry concurrently and keep archive order."""
        folders = [entry.path for entry in entries if entry.is_dir]
        file_entries = [entry for entry in entries if not entry.is_dir]

        if not file_entries:
            return UnifiedSource(files=[], folders=folders)

        workers = max(1, min(self.archive.workers, len(file_entries)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ziptree-unpack") as executor:
            files = list(executor.map(self._load_entry, file_entries))

        return UnifiedSource(files=files, folders=folders)

    def with_content(self, file: UnifiedFile, raw: bytes) -> UnifiedFile:
        """Fold fetched remote bytes into a new record; the locator is dropped on success."""
        try:
            text = decode_text(raw)
        except UnicodeDecodeError:
            logger.warning("Content of %s is not valid UTF-8; leaving it unscanned", file.path)
            return replace(file, category=UNKNOWN)
        return replace(file, content=text, remote_locator=None)

    def _load_entry(self, entry: ArchiveEntry) -> UnifiedFile:
        record = build_file(entry.path, entry.size)

        if entry.size >= self.limits.max_load_bytes:
            logger.debug("Skipping byte load for %s (%d bytes)", entry.path, entry.size)
            return replace(record, category=UNKNOWN)

        raw, error = _safe_read(entry)
        if raw is None:
            logger.warning("Could not read %s from archive: %s", entry.path, error)
            return replace(record, category=UNKNOWN)

        content = None
        category = record.category
        if category == TEXT and entry.size < self.limits.max_text_bytes:
            try:
                content = decode_text(raw)
            except UnicodeDecodeError:
                logger.warning("Content of %s is not valid UTF-8; leaving it unscanned", entry.path)
                category = UNKNOWN

        return replace(record, binary=raw, content=content, category=category)


def _safe_read(entry: ArchiveEntry) -> Tuple[Optional[bytes], Optional[Exception]]:
    # Encrypted members raise RuntimeError, damaged ones BadZipFile or zlib.error.
    try:
        return entry.read(), None
    except (RuntimeError, zipfile.BadZipFile, zlib.error, OSError, EOFError) as exc:
        return None, exc


__all__ = ["FileUnifier", "UnifiedSource", "build_file", "decode_text"]

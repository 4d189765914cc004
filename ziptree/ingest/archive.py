"""Zip archive enumeration."""

from __future__ import annotations

import io
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List

from ..categories import normalize_path
from ..errors import CorruptArchive
from ..logging import get_logger

logger = get_logger("ingest.archive")


@dataclass(frozen=True)
class ArchiveEntry:
    """A single archive member as listed in the central directory."""

    path: str
    is_dir: bool
    size: int
    compressed_size: int
    read: Callable[[], bytes] = field(repr=False, compare=False)


class ArchiveUnpacker:
    """Lists zip members without decompressing them up front."""

    @contextmanager
    def unpack(self, data: bytes) -> Iterator[List[ArchiveEntry]]:
        """Yield every entry, directory markers and empty files included.

        Sizes come from the central directory; bytes are only decompressed
        when an entry's ``read`` is called. The archive is closed when the
        block exits, after which ``read`` raises ``ValueError``.
        """
        if not data:
            raise CorruptArchive("Failed to process archive: the file is empty.")
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError) as exc:
            raise CorruptArchive(
                f"Failed to process archive. It may be corrupted or encrypted: {exc}"
            ) from exc

        with archive:
            yield _index(archive)


def _index(archive: zipfile.ZipFile) -> List[ArchiveEntry]:
    entries: Dict[str, ArchiveEntry] = {}
    for info in archive.infolist():
        path = normalize_path(info.filename)
        if not path:
            logger.debug("Skipping archive entry with empty path: %r", info.filename)
            continue
        if path in entries:
            logger.debug("Duplicate archive entry %s; keeping the last one", path)
            del entries[path]
        entries[path] = ArchiveEntry(
            path=path,
            is_dir=info.is_dir(),
            size=info.file_size,
            compressed_size=info.compress_size,
            read=_reader(archive, info),
        )

    logger.debug("Archive lists %d entries", len(entries))
    return list(entries.values())


def _reader(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Callable[[], bytes]:
    def _read() -> bytes:
        return archive.read(info)

    return _read


__all__ = ["ArchiveEntry", "ArchiveUnpacker"]

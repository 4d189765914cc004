from __future__ import annotations

from typing import Callable

from ziptree.categories import BINARY, IMAGE, TEXT, UNKNOWN
from ziptree.config import ArchiveConfig, LimitsConfig
from ziptree.ingest.archive import ArchiveEntry, ArchiveUnpacker
from ziptree.ingest.unifier import FileUnifier, build_file


def _entry(path: str, payload: bytes, *, size: int | None = None, read: Callable[[], bytes] | None = None) -> ArchiveEntry:
    return ArchiveEntry(
        path=path,
        is_dir=False,
        size=len(payload) if size is None else size,
        compressed_size=len(payload),
        read=read or (lambda: payload),
    )


def test_build_file_derives_name_extension_depth_and_category() -> None:
    record = build_file("src/lib/Module.PY", 42)

    assert record.name == "Module.PY"
    assert record.extension == "py"
    assert record.depth == 3
    assert record.category == TEXT
    assert record.is_loaded is False
    assert record.is_deferred is False


def test_build_file_handles_dotless_and_dotfile_names() -> None:
    assert build_file("Makefile", 1).extension == ""
    assert build_file("Makefile", 1).category == UNKNOWN
    assert build_file(".env", 1).extension == "env"
    assert build_file("logo.png", 1).category == IMAGE
    assert build_file("tool.exe", 1).category == BINARY


def test_from_archive_loads_text_and_binary(archive_builder) -> None:
    data = (
        archive_builder.write({"app.py": "print('hi')\n", "logo.png": b"\x89PNG\r\n"})
        .mkdir("empty")
        .build()
    )
    with ArchiveUnpacker().unpack(data) as entries:
        source = FileUnifier().from_archive(entries)

    assert source.folders == ["empty"]
    by_path = {file.path: file for file in source.files}
    assert by_path["app.py"].content == "print('hi')\n"
    assert by_path["app.py"].binary == b"print('hi')\n"
    assert by_path["logo.png"].content is None
    assert by_path["logo.png"].binary == b"\x89PNG\r\n"


def test_from_archive_preserves_entry_order() -> None:
    entries = [_entry(f"file{index}.txt", b"x") for index in range(20)]

    source = FileUnifier(archive=ArchiveConfig(workers=4)).from_archive(entries)

    assert [file.path for file in source.files] == [entry.path for entry in entries]


def test_text_over_text_limit_keeps_bytes_only() -> None:
    limits = LimitsConfig(max_text_bytes=4, max_load_bytes=100)
    source = FileUnifier(limits).from_archive([_entry("notes.txt", b"0123456789")])

    (record,) = source.files
    assert record.content is None
    assert record.binary == b"0123456789"
    assert record.category == TEXT


def test_file_at_load_limit_is_not_read() -> None:
    calls = []

    def _read() -> bytes:
        calls.append(True)
        return b""

    limits = LimitsConfig(max_load_bytes=10)
    source = FileUnifier(limits).from_archive([_entry("huge.bin", b"", size=10, read=_read)])

    (record,) = source.files
    assert calls == []
    assert record.binary is None
    assert record.category == UNKNOWN
    assert record.size == 10


def test_invalid_utf8_marks_file_unknown() -> None:
    source = FileUnifier().from_archive([_entry("broken.txt", b"\xff\xfe\xfa")])

    (record,) = source.files
    assert record.category == UNKNOWN
    assert record.content is None
    assert record.binary == b"\xff\xfe\xfa"


def test_bom_is_stripped_from_text() -> None:
    source = FileUnifier().from_archive([_entry("bom.txt", b"\xef\xbb\xbfhello")])

    assert source.files[0].content == "hello"


def test_unreadable_entry_becomes_unknown() -> None:
    def _read() -> bytes:
        raise RuntimeError("File is encrypted, password required for extraction")

    source = FileUnifier().from_archive([_entry("secret.txt", b"abc", read=_read)])

    (record,) = source.files
    assert record.category == UNKNOWN
    assert record.binary is None


def test_with_content_drops_locator() -> None:
    deferred = build_file("README.md", 5, remote_locator="https://raw.example/README.md")
    assert deferred.is_deferred

    loaded = FileUnifier().with_content(deferred, b"hello")

    assert loaded.content == "hello"
    assert loaded.remote_locator is None
    assert loaded.is_deferred is False
    assert deferred.content is None


def test_with_content_keeps_locator_on_decode_failure() -> None:
    deferred = build_file("blob.txt", 3, remote_locator="https://raw.example/blob.txt")

    result = FileUnifier().with_content(deferred, b"\xff\xfe\xfa")

    assert result.category == UNKNOWN
    assert result.content is None
    assert result.remote_locator == deferred.remote_locator

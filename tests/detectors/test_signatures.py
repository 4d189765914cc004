from __future__ import annotations

import pytest

from ziptree.detectors.signatures import (
    BINARY_MISMATCH,
    EXTENSION_MISMATCH,
    hex_preview,
    validate_signature,
)


@pytest.mark.parametrize(
    "extension, header",
    [
        ("png", b"\x89PNG\r\n\x1a\n"),
        ("jpg", b"\xff\xd8\xff\xe0"),
        ("JPEG", b"\xff\xd8\xff\xe1"),
        ("gif", b"GIF89a"),
        ("pdf", b"%PDF-1.7"),
        ("zip", b"PK\x03\x04rest"),
        ("exe", b"MZ\x90\x00"),
        ("webp", b"RIFF\x00\x00\x00\x00WEBPVP8 "),
    ],
)
def test_matching_signatures_pass(extension, header) -> None:
    assert validate_signature(f"file.{extension}", header, extension) is None


def test_mismatched_png_reports_hex_header() -> None:
    alert = validate_signature("logo.png", b"<?php echo 1; ?>", "png")

    assert alert is not None
    assert alert.kind == EXTENSION_MISMATCH
    assert alert.path == "logo.png"
    assert alert.details == "File extension is .png but header is 3C 3F 70 68 70 20 65 63"


def test_empty_header_for_signed_extension_is_a_mismatch() -> None:
    alert = validate_signature("empty.pdf", b"", "pdf")

    assert alert is not None
    assert "<empty>" in alert.details


def test_webp_requires_riff_container() -> None:
    alert = validate_signature("photo.webp", b"\x89PNG\r\n\x1a\n", "webp")

    assert alert is not None
    assert alert.kind == EXTENSION_MISMATCH


def test_riff_that_is_not_webp_is_flagged() -> None:
    alert = validate_signature("sound.webp", b"RIFF\x00\x00\x00\x00WAVEfmt ", "webp")

    assert alert is not None
    assert "WAVE" in alert.details


def test_text_with_null_bytes_is_binary_mismatch() -> None:
    alert = validate_signature("notes.txt", b"hello\x00world", "txt")

    assert alert is not None
    assert alert.kind == BINARY_MISMATCH


def test_null_check_precedes_pe_check() -> None:
    alert = validate_signature("script.js", b"MZ\x90\x00\x03\x00", "js")

    assert alert is not None
    assert alert.kind == BINARY_MISMATCH


def test_disguised_executable_with_text_extension() -> None:
    alert = validate_signature("readme.txt", b"MZ This program cannot be run", "txt")

    assert alert is not None
    assert alert.kind == EXTENSION_MISMATCH
    assert alert.details.startswith("CRITICAL")


def test_null_bytes_beyond_scan_window_are_ignored() -> None:
    header = b"a" * 512 + b"\x00"

    assert validate_signature("big.txt", header, "txt") is None


def test_unknown_extension_is_never_flagged() -> None:
    assert validate_signature("data.xyz", b"MZ\x00\x00", "xyz") is None
    assert validate_signature("Makefile", b"\x00\x00", "") is None


def test_hex_preview_truncates() -> None:
    assert hex_preview(bytes(range(12))) == "00 01 02 03 04 05 06 07"
    assert hex_preview(b"") == "<empty>"

"""Magic-byte validation of declared file extensions."""

from __future__ import annotations

from typing import Dict, Optional

from ..categories import is_text_extension
from ..models import FileSignatureAlert

EXTENSION_MISMATCH = "extension-mismatch"
BINARY_MISMATCH = "binary-mismatch"

_NULL_SCAN_BYTES = 512
_HEX_PREVIEW_BYTES = 8

_PE_MAGIC = b"MZ"
_RIFF_MAGIC = b"RIFF"
_WEBP_MARKER = b"WEBP"

SIGNATURES: Dict[str, bytes] = {
    "png": b"\x89PNG",
    "jpg": b"\xff\xd8",
    "jpeg": b"\xff\xd8",
    "gif": b"GIF8",
    "pdf": b"%PDF",
    "zip": b"PK\x03\x04",
    "jar": b"PK\x03\x04",
    "exe": _PE_MAGIC,
    "dll": _PE_MAGIC,
    "bmp": b"BM",
    "ico": b"\x00\x00\x01\x00",
    "gz": b"\x1f\x8b",
    "class": b"\xca\xfe\xba\xbe",
    "wasm": b"\x00asm",
}


def hex_preview(header: bytes, length: int = _HEX_PREVIEW_BYTES) -> str:
    """Render leading bytes as upper-case space-separated hex (``89 50 4E 47``)."""
    preview = " ".join(f"{byte:02X}" for byte in header[:length])
    return preview or "<empty>"


def validate_signature(path: str, header: bytes, extension: str) -> Optional[FileSignatureAlert]:
    """Return at most one alert when the leading bytes contradict the extension.

    Binary extensions are checked against the magic table (``webp`` by its
    RIFF container). Text extensions are checked for null bytes within the
    first 512 bytes, then for a disguised PE executable header.
    """
    ext = extension.lower()

    if ext == "webp":
        return _validate_webp(path, header)

    expected = SIGNATURES.get(ext)
    if expected is not None:
        if header.startswith(expected):
            return None
        return FileSignatureAlert(
            path=path,
            kind=EXTENSION_MISMATCH,
            details=f"File extension is .{ext} but header is {hex_preview(header)}",
        )

    if is_text_extension(ext):
        if b"\x00" in header[:_NULL_SCAN_BYTES]:
            return FileSignatureAlert(
                path=path,
                kind=BINARY_MISMATCH,
                details="File has text extension but contains binary data (null bytes).",
            )
        if header.startswith(_PE_MAGIC):
            return FileSignatureAlert(
                path=path,
                kind=EXTENSION_MISMATCH,
                details="CRITICAL: File appears to be a Windows Executable (PE) but has text extension.",
            )

    return None


def _validate_webp(path: str, header: bytes) -> Optional[FileSignatureAlert]:
    if not header.startswith(_RIFF_MAGIC):
        return FileSignatureAlert(
            path=path,
            kind=EXTENSION_MISMATCH,
            details=f"Expected WEBP (RIFF header), found {hex_preview(header, 4)}...",
        )
    # RIFF is shared with WAV/AVI; the form type at offset 8 identifies WEBP.
    if len(header) >= 12 and header[8:12] != _WEBP_MARKER:
        return FileSignatureAlert(
            path=path,
            kind=EXTENSION_MISMATCH,
            details=f"RIFF container is not WEBP (form type {header[8:12]!r})",
        )
    return None


__all__ = [
    "BINARY_MISMATCH",
    "EXTENSION_MISMATCH",
    "SIGNATURES",
    "hex_preview",
    "validate_signature",
]

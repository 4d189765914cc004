"""Static extension tables and path helpers."""

from __future__ import annotations

TEXT = "text"
IMAGE = "image"
BINARY = "binary"
UNKNOWN = "unknown"

_TEXT_EXTENSIONS = frozenset(
    {
        "js",
        "mjs",
        "cjs",
        "ts",
        "jsx",
        "tsx",
        "html",
        "htm",
        "css",
        "scss",
        "json",
        "md",
        "txt",
        "py",
        "java",
        "kt",
        "c",
        "h",
        "cpp",
        "hpp",
        "cc",
        "cs",
        "xml",
        "yaml",
        "yml",
        "toml",
        "ini",
        "cfg",
        "env",
        "gitignore",
        "svg",
        "php",
        "rb",
        "go",
        "rs",
        "sh",
        "bash",
        "ps1",
        "bat",
        "sql",
        "vue",
        "swift",
        "lock",
    }
)

_IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp", "bmp", "ico"})

_BINARY_EXTENSIONS = frozenset(
    {
        "exe",
        "dll",
        "so",
        "dylib",
        "bin",
        "zip",
        "jar",
        "gz",
        "tgz",
        "tar",
        "7z",
        "rar",
        "pdf",
        "class",
        "wasm",
        "pyc",
        "o",
        "a",
        "woff",
        "woff2",
        "ttf",
        "otf",
        "mp3",
        "mp4",
    }
)

_SENSITIVE_NAMES = frozenset(
    {
        ".env",
        "id_rsa",
        "id_dsa",
        "id_ecdsa",
        "id_ed25519",
        ".npmrc",
        ".pypirc",
        ".netrc",
        "credentials",
        "credentials.json",
        ".htpasswd",
    }
)

_SENSITIVE_EXTENSIONS = frozenset({"pem", "key", "p12", "pfx", "keystore", "jks"})


def split_extension(name: str) -> str:
    """Return the lower-cased suffix after the last dot, or an empty string."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def classify_extension(extension: str) -> str:
    """Map an extension to its category."""
    ext = extension.lower()
    if ext in _TEXT_EXTENSIONS:
        return TEXT
    if ext in _IMAGE_EXTENSIONS:
        return IMAGE
    if ext in _BINARY_EXTENSIONS:
        return BINARY
    return UNKNOWN


def is_text_extension(extension: str) -> bool:
    return extension.lower() in _TEXT_EXTENSIONS


def is_sensitive_path(path: str) -> bool:
    """True for files that usually hold credentials (.env files, private keys)."""
    name = path.rsplit("/", 1)[-1].lower()
    if name in _SENSITIVE_NAMES or name.startswith(".env."):
        return True
    return split_extension(name) in _SENSITIVE_EXTENSIONS


def normalize_path(raw: str) -> str:
    """Return a `/`-separated path without leading `/`, `./` or trailing `/`."""
    path = raw.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    path = path.lstrip("/").rstrip("/")
    parts = [part for part in path.split("/") if part and part != "."]
    return "/".join(parts)


def path_depth(path: str) -> int:
    return len(path.split("/")) if path else 0


__all__ = [
    "BINARY",
    "IMAGE",
    "TEXT",
    "UNKNOWN",
    "classify_extension",
    "is_sensitive_path",
    "is_text_extension",
    "normalize_path",
    "path_depth",
    "split_extension",
]

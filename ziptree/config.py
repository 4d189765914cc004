"""Configuration loading for ziptree (.ziptree.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".ziptree.yml"

_KIB = 1024
_MIB = 1024 * 1024


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LimitsConfig:
    """Resource guards applied while loading and scanning files."""

    max_text_bytes: int = 2 * _MIB
    max_load_bytes: int = 10 * _MIB
    max_line_length: int = 2000
    large_file_bytes: int = 5 * _MIB
    large_file_lines: int = 20_000
    zip_bomb_ratio: float = 100.0
    signature_header_bytes: int = 512
    max_archive_bytes: int = 100 * _MIB


@dataclass
class RemoteConfig:
    """Settings for the GitHub fetcher."""

    api_base: str = "https://api.github.com"
    raw_base: str = "https://raw.githubusercontent.com"
    default_branch: str = "HEAD"
    priority_limit: int = 10
    sample_limit: int = 10
    max_eager_file_bytes: int = 500 * _KIB
    max_eager_total_bytes: int = 4 * _MIB
    request_timeout: float = 30.0


@dataclass
class ArchiveConfig:
    """Settings for local archive ingestion."""

    workers: int = 8


@dataclass
class ZipTreeConfig:
    """Represents the settings defined in .ziptree.yml."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    source: Optional[Path] = None


def load_config(config_path: Path | None = None) -> ZipTreeConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return ZipTreeConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    limits = LimitsConfig()
    limits_data = _as_dict(data.get("limits"))
    limits.max_text_bytes = _as_int(limits_data.get("max_text_bytes"), limits.max_text_bytes)
    limits.max_load_bytes = _as_int(limits_data.get("max_load_bytes"), limits.max_load_bytes)
    limits.max_line_length = _as_int(limits_data.get("max_line_length"), limits.max_line_length)
    limits.large_file_bytes = _as_int(limits_data.get("large_file_bytes"), limits.large_file_bytes)
    limits.large_file_lines = _as_int(limits_data.get("large_file_lines"), limits.large_file_lines)
    limits.zip_bomb_ratio = _as_float(limits_data.get("zip_bomb_ratio"), limits.zip_bomb_ratio)
    limits.signature_header_bytes = _as_int(
        limits_data.get("signature_header_bytes"), limits.signature_header_bytes
    )
    limits.max_archive_bytes = _as_int(limits_data.get("max_archive_bytes"), limits.max_archive_bytes)

    remote = RemoteConfig()
    remote_data = _as_dict(data.get("remote"))
    remote.api_base = _as_str(remote_data.get("api_base"), remote.api_base).rstrip("/")
    remote.raw_base = _as_str(remote_data.get("raw_base"), remote.raw_base).rstrip("/")
    remote.default_branch = _as_str(remote_data.get("default_branch"), remote.default_branch)
    remote.priority_limit = _as_int(remote_data.get("priority_limit"), remote.priority_limit)
    remote.sample_limit = _as_int(remote_data.get("sample_limit"), remote.sample_limit)
    remote.max_eager_file_bytes = _as_int(
        remote_data.get("max_eager_file_bytes"), remote.max_eager_file_bytes
    )
    remote.max_eager_total_bytes = _as_int(
        remote_data.get("max_eager_total_bytes"), remote.max_eager_total_bytes
    )
    remote.request_timeout = _as_float(remote_data.get("request_timeout"), remote.request_timeout)

    archive = ArchiveConfig()
    archive_data = _as_dict(data.get("archive"))
    archive.workers = max(1, _as_int(archive_data.get("workers"), archive.workers))

    return ZipTreeConfig(limits=limits, remote=remote, archive=archive, source=config_file)


def _resolve_config_path(config_path: Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / CONFIG_FILENAME).resolve()
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _as_int(value: Any, default: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


__all__ = [
    "ArchiveConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "LimitsConfig",
    "RemoteConfig",
    "ZipTreeConfig",
    "load_config",
]

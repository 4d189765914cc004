"""Ingestion sources: zip archives and remote GitHub repositories."""

from .archive import ArchiveEntry, ArchiveUnpacker
from .github import GitHubFetcher, RemoteListing, RepoReference, parse_reference
from .unifier import FileUnifier, UnifiedSource, build_file

__all__ = [
    "ArchiveEntry",
    "ArchiveUnpacker",
    "FileUnifier",
    "GitHubFetcher",
    "RemoteListing",
    "RepoReference",
    "UnifiedSource",
    "build_file",
    "parse_reference",
]

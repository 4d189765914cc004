"""Exception taxonomy for ingestion and analysis failures."""

from __future__ import annotations


class ZipTreeError(RuntimeError):
    """Base class for errors that abort an analysis run."""


class CorruptArchive(ZipTreeError):
    """Raised when the archive index cannot be parsed."""


class ArchiveTooLarge(ZipTreeError):
    """Raised when archive bytes exceed the configured upload limit."""


class InvalidReference(ZipTreeError):
    """Raised when a repository reference cannot be resolved to owner/repo."""


class RemoteError(ZipTreeError):
    """Raised when the provider's metadata endpoint fails."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundOrPrivate(RemoteError):
    """Repository or branch does not exist, or is not visible without a token."""


class RateLimited(RemoteError):
    """Provider refused the request because of API rate limits."""


class ProviderError(RemoteError):
    """Any other provider or transport failure."""


class ContentFetchError(ZipTreeError):
    """Raised when a single file's content cannot be retrieved or decoded."""


__all__ = [
    "ArchiveTooLarge",
    "ContentFetchError",
    "CorruptArchive",
    "InvalidReference",
    "NotFoundOrPrivate",
    "ProviderError",
    "RateLimited",
    "RemoteError",
    "ZipTreeError",
]

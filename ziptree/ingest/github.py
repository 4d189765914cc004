"""GitHub repository listing and bounded content retrieval."""

from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlparse
from urllib.request import Request, urlopen

from ..categories import TEXT, normalize_path
from ..config import RemoteConfig
from ..errors import (
    ContentFetchError,
    InvalidReference,
    NotFoundOrPrivate,
    ProviderError,
    RateLimited,
)
from ..logging import get_logger
from ..models import UnifiedFile
from .unifier import FileUnifier, build_file

logger = get_logger("ingest.github")

ProgressCallback = Callable[[str], None]

_GITHUB_HOSTS = {"github.com", "www.github.com"}
_ACCEPT_HEADER = "application/vnd.github+json"

# Manifests, configs, readmes and conventional entry files.
_PRIORITY_PATTERN = re.compile(
    r"(package\.json|tsconfig\.json|pyproject\.toml|setup\.py|requirements\.txt"
    r"|\.env|README|index\.|main\.|server\.|app\.)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RepoReference:
    """Owner, repository, branch and optional sub-path parsed from user input."""

    owner: str
    repo: str
    branch: str
    sub_path: str = ""

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class RemoteListing:
    """Flat listing of a repository with eagerly fetched priority content."""

    reference: RepoReference
    files: List[UnifiedFile]
    folders: List[str]
    total_size: int
    truncated: bool


def parse_reference(reference: str, *, default_branch: str = "HEAD") -> RepoReference:
    """Parse a GitHub URL or ``owner/repo`` shorthand.

    Accepted forms are ``https://github.com/owner/repo``,
    ``https://github.com/owner/repo/tree/<branch>/<sub/path>``, the same
    without a scheme, and ``owner/repo``.
    """
    raw = (reference or "").strip()
    if not raw:
        raise InvalidReference("Repository reference is empty. Use owner/repo or a GitHub URL.")

    if "://" in raw:
        parsed = urlparse(raw)
        host = (parsed.hostname or "").lower()
        if host not in _GITHUB_HOSTS:
            raise InvalidReference(f"Unsupported repository host: {parsed.hostname or raw}")
        path = parsed.path
    else:
        path = raw.split("?", 1)[0].split("#", 1)[0]
        lowered = path.lower()
        for host in _GITHUB_HOSTS:
            if lowered.startswith(f"{host}/"):
                path = path[len(host) + 1 :]
                break

    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise InvalidReference(
            "Invalid GitHub reference. Use format: https://github.com/owner/repo"
        )

    owner = parts[0]
    repo = parts[1][:-4] if parts[1].endswith(".git") else parts[1]
    branch = default_branch
    sub_path = ""
    if len(parts) > 3 and parts[2] == "tree":
        branch = parts[3]
        sub_path = "/".join(parts[4:])

    return RepoReference(owner=owner, repo=repo, branch=branch, sub_path=sub_path)


class GitHubFetcher:
    """Lists a repository through the trees API and fetches a bounded subset of files."""

    BATCH_SIZE = 5

    def __init__(
        self,
        config: RemoteConfig | None = None,
        *,
        unifier: FileUnifier | None = None,
    ) -> None:
        self.config = config or RemoteConfig()
        self.unifier = unifier or FileUnifier()

    def fetch(
        self,
        reference: str,
        token: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> RemoteListing:
        """Resolve the reference, list every blob and eagerly fetch priority files."""
        ref = parse_reference(reference, default_branch=self.config.default_branch)
        _notify(progress, "Fetching repository structure...")
        payload = self._fetch_listing(ref, token)

        if payload.get("truncated"):
            logger.warning(
                "Tree listing for %s is truncated by the provider; analysing a partial listing",
                ref.slug,
            )

        files, folders, total_size = self._build_records(ref, payload.get("tree"))
        logger.info("Listed %d files in %s@%s", len(files), ref.slug, ref.branch)

        selection = self.select_priority(files)
        if selection:
            _notify(progress, f"Scanning {len(selection)} priority files...")
            files = self._fetch_selection(files, selection, token)

        return RemoteListing(
            reference=ref,
            files=files,
            folders=folders,
            total_size=total_size,
            truncated=bool(payload.get("truncated")),
        )

    def fetch_content(self, locator: str, token: str | None = None) -> bytes:
        """Return the raw bytes behind a content locator."""
        request = Request(locator, headers=self._headers(token, accept=None))
        try:
            with urlopen(request, timeout=self.config.request_timeout) as response:
                return response.read()
        except HTTPError as exc:
            raise ContentFetchError(
                f"Content request failed with status {exc.code}: {locator}"
            ) from exc
        except (URLError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            raise ContentFetchError(f"Content request failed: {reason}") from exc

    def select_priority(self, files: Sequence[UnifiedFile]) -> List[str]:
        """Pick the paths to fetch eagerly, bounded by count and total bytes."""
        candidates = [
            file
            for file in files
            if file.category == TEXT
            and file.is_deferred
            and file.size < self.config.max_eager_file_bytes
        ]
        priority = [file for file in candidates if _PRIORITY_PATTERN.search(file.path)]
        priority = priority[: self.config.priority_limit]
        chosen = {file.path for file in priority}
        sample = [file for file in candidates if file.path not in chosen]
        sample = sample[: self.config.sample_limit]

        selected: List[str] = []
        budget = self.config.max_eager_total_bytes
        for file in [*priority, *sample]:
            if file.size > budget:
                break
            budget -= file.size
            selected.append(file.path)
        return selected

    # ------------------------------------------------------------------
    # Helpers

    def _fetch_listing(self, ref: RepoReference, token: str | None) -> Dict[str, object]:
        url = (
            f"{self.config.api_base}/repos/{quote(ref.owner)}/{quote(ref.repo)}"
            f"/git/trees/{quote(ref.branch, safe='')}?recursive=1"
        )
        request = Request(url, headers=self._headers(token, accept=_ACCEPT_HEADER))
        try:
            with urlopen(request, timeout=self.config.request_timeout) as response:
                raw = response.read()
        except HTTPError as exc:
            raise _map_http_error(exc, ref) from exc
        except (URLError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            raise ProviderError(f"GitHub API request failed: {reason}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError("GitHub API returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ProviderError("GitHub API returned an unexpected payload")
        return payload

    def _build_records(
        self, ref: RepoReference, items: object
    ) -> Tuple[List[UnifiedFile], List[str], int]:
        files: List[UnifiedFile] = []
        folders: List[str] = []
        total_size = 0
        if not isinstance(items, list):
            return files, folders, total_size

        prefix = normalize_path(ref.sub_path)
        for item in items:
            if not isinstance(item, dict):
                continue
            path = normalize_path(str(item.get("path") or ""))
            if not path or not _within(path, prefix):
                continue
            kind = item.get("type")
            if kind == "tree":
                folders.append(path)
            elif kind == "blob":
                size = item.get("size")
                size = size if isinstance(size, int) and size >= 0 else 0
                total_size += size
                files.append(build_file(path, size, remote_locator=self._raw_url(ref, path)))
        return files, folders, total_size

    def _fetch_selection(
        self, files: List[UnifiedFile], selection: Sequence[str], token: str | None
    ) -> List[UnifiedFile]:
        by_path = {file.path: file for file in files}
        updated: Dict[str, UnifiedFile] = {}

        with ThreadPoolExecutor(
            max_workers=self.BATCH_SIZE, thread_name_prefix="ziptree-fetch"
        ) as executor:
            for start in range(0, len(selection), self.BATCH_SIZE):
                batch = [by_path[path] for path in selection[start : start + self.BATCH_SIZE]]
                results = list(executor.map(lambda file: self._try_fetch(file, token), batch))
                for file, raw in zip(batch, results):
                    if raw is not None:
                        updated[file.path] = self.unifier.with_content(file, raw)

        logger.debug("Eagerly fetched %d of %d selected files", len(updated), len(selection))
        return [updated.get(file.path, file) for file in files]

    def _try_fetch(self, file: UnifiedFile, token: str | None) -> Optional[bytes]:
        if file.remote_locator is None:
            return None
        try:
            return self.fetch_content(file.remote_locator, token)
        except ContentFetchError as exc:
            logger.warning("Failed to fetch %s: %s", file.path, exc)
            return None

    def _raw_url(self, ref: RepoReference, path: str) -> str:
        return (
            f"{self.config.raw_base}/{quote(ref.owner)}/{quote(ref.repo)}"
            f"/{quote(ref.branch)}/{quote(path)}"
        )

    @staticmethod
    def _headers(token: str | None, *, accept: str | None) -> Dict[str, str]:
        headers: Dict[str, str] = {"User-Agent": "ziptree"}
        if accept:
            headers["Accept"] = accept
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers


def _map_http_error(exc: HTTPError, ref: RepoReference) -> Exception:
    if exc.code == 404:
        return NotFoundOrPrivate(
            f"Repository or branch not found: {ref.slug}@{ref.branch}. Is it private?",
            status=404,
        )
    if exc.code in (403, 429):
        return RateLimited(
            "GitHub API rate limit exceeded. Provide a token or wait before retrying.",
            status=exc.code,
        )
    return ProviderError(f"GitHub API error {exc.code}: {exc.reason}", status=exc.code)


def _within(path: str, prefix: str) -> bool:
    if not prefix:
        return True
    return path == prefix or path.startswith(f"{prefix}/")


def _notify(progress: ProgressCallback | None, message: str) -> None:
    logger.info(message)
    if progress is not None:
        progress(message)


__all__ = [
    "GitHubFetcher",
    "ProgressCallback",
    "RemoteListing",
    "RepoReference",
    "parse_reference",
]

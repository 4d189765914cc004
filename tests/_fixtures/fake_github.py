"""Stand-in for urlopen that serves canned GitHub API and raw responses."""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Union
from urllib.error import HTTPError

API = "https://api.github.com"
RAW = "https://raw.githubusercontent.com"


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeGitHub:
    """Routes requests by full URL; an int route raises HTTPError with that status."""

    def __init__(self) -> None:
        self.routes: Dict[str, Union[bytes, int]] = {}
        self.requests: List[dict] = []

    def tree(
        self,
        owner: str,
        repo: str,
        items: List[dict],
        *,
        branch: str = "HEAD",
        truncated: bool = False,
    ) -> None:
        url = f"{API}/repos/{owner}/{repo}/git/trees/{branch}?recursive=1"
        self.routes[url] = json.dumps({"tree": items, "truncated": truncated}).encode("utf-8")

    def raw(self, owner: str, repo: str, path: str, body: Union[bytes, str, int], *, branch: str = "HEAD") -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[f"{RAW}/{owner}/{repo}/{branch}/{path}"] = body

    def fail(self, url: str, status: int) -> None:
        self.routes[url] = status

    def urls(self) -> List[str]:
        return [request["url"] for request in self.requests]

    def __call__(self, request, timeout: Optional[float] = None) -> FakeResponse:
        self.requests.append(
            {
                "url": request.full_url,
                "headers": {key.lower(): value for key, value in request.header_items()},
                "timeout": timeout,
            }
        )
        route = self.routes.get(request.full_url)
        if route is None:
            raise HTTPError(request.full_url, 404, "Not Found", hdrs=None, fp=None)
        if isinstance(route, int):
            raise HTTPError(request.full_url, route, "Error", hdrs=None, fp=None)
        return FakeResponse(route)


def blob(path: str, size: int) -> dict:
    return {"path": path, "type": "blob", "size": size, "mode": "100644", "sha": "0" * 40}


def folder(path: str) -> dict:
    return {"path": path, "type": "tree", "mode": "040000", "sha": "0" * 40}


__all__ = ["API", "RAW", "FakeGitHub", "FakeResponse", "blob", "folder"]

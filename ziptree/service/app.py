"""FastAPI application entrypoint for ziptree service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ZipTreeConfig
from ..errors import (
    ArchiveTooLarge,
    CorruptArchive,
    InvalidReference,
    NotFoundOrPrivate,
    ProviderError,
    RateLimited,
    ZipTreeError,
)
from ..export import result_to_dict
from ..logging import get_logger
from ..models import AnalysisResult
from ..orchestrator import Orchestrator

logger = get_logger("service")

_STATUS_BY_ERROR: Dict[type, int] = {
    ArchiveTooLarge: 413,
    CorruptArchive: 400,
    InvalidReference: 400,
    NotFoundOrPrivate: 404,
    RateLimited: 429,
    ProviderError: 502,
}


class GitHubRequest(BaseModel):
    reference: str
    token: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] | None = None,
    *,
    config: ZipTreeConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing the analysis operations."""

    def _default_factory() -> Orchestrator:
        return Orchestrator(config)

    factory = orchestrator_factory or _default_factory
    max_archive_bytes = (config or ZipTreeConfig()).limits.max_archive_bytes
    app = FastAPI(title="ZipTree Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # One orchestrator per request; runs share no mutable state.
        return factory()

    async def _run(call: Callable[[], AnalysisResult]) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, call)
        return result_to_dict(result)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze/archive")
    async def analyze_archive(
        request: Request,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        data = await _read_body(request, max_archive_bytes)
        return await _run(lambda: orchestrator.analyze_archive(data))

    @app.post("/analyze/github")
    async def analyze_github(
        payload: GitHubRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        return await _run(
            lambda: orchestrator.analyze_github(payload.reference, token=payload.token)
        )

    @app.exception_handler(ZipTreeError)
    async def analysis_error_handler(_: Any, exc: ZipTreeError) -> JSONResponse:
        status_code = 500
        for error_type, code in _STATUS_BY_ERROR.items():
            if isinstance(exc, error_type):
                status_code = code
                break
        logger.warning("Analysis request failed (%d): %s", status_code, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    return app


async def _read_body(request: Request, limit: int) -> bytes:
    """Buffer the request body, refusing it as soon as it passes ``limit`` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise ArchiveTooLarge(f"Archive is {declared} bytes; the limit is {limit} bytes.")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise ArchiveTooLarge(f"Archive exceeds the limit of {limit} bytes.")
    return bytes(body)


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    config: ZipTreeConfig | None = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)

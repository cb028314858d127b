"""FastAPI application entrypoint for doccov service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..checks import evaluate_thresholds
from ..config import ConfigError, DocCovConfig, parse_thresholds
from ..coverage import enrich_spec
from ..diff.markdown import parse_markdown_files
from ..logging import configure_logging
from ..models import spec_from_dict
from ..stores.diff_cache import DiffCache, InMemoryDiffCache, diff_with_cache


class MarkdownFile(BaseModel):
    path: str
    content: str


class EnrichRequest(BaseModel):
    spec: Dict[str, Any]


class DiffRequest(BaseModel):
    base: Dict[str, Any]
    head: Dict[str, Any]
    markdown: Optional[List[MarkdownFile]] = None


class ThresholdsModel(BaseModel):
    min_coverage: Optional[float] = None
    max_drift: Optional[float] = None
    drift_types: List[str] = Field(default_factory=list)
    examples: bool = False


class CheckRequest(BaseModel):
    spec: Dict[str, Any]
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)


class HealthResponse(BaseModel):
    status: str


def create_app(
    cache_factory: Callable[[], DiffCache] = InMemoryDiffCache,
) -> FastAPI:
    """Create the FastAPI application exposing doccov operations."""

    app = FastAPI(title="DocCov Service", version="1.0.0")
    cache = cache_factory()

    async def get_cache() -> DiffCache:
        # One cache per app so repeated diffs are served from it.
        return cache

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/enrich")
    async def enrich(payload: EnrichRequest) -> Dict[str, Any]:
        def _run_enrich() -> Dict[str, Any]:
            return enrich_spec(spec_from_dict(payload.spec)).to_dict()

        return await _run_blocking(_run_enrich)

    @app.post("/diff")
    async def diff(
        payload: DiffRequest,
        diff_cache: DiffCache = Depends(get_cache),
    ) -> Dict[str, Any]:
        def _run_diff() -> Dict[str, Any]:
            markdown_files = None
            if payload.markdown is not None:
                markdown_files = parse_markdown_files(
                    (item.path, item.content) for item in payload.markdown
                )
            return diff_with_cache(
                spec_from_dict(payload.base),
                spec_from_dict(payload.head),
                diff_cache,
                markdown_files=markdown_files,
            )

        return await _run_blocking(_run_diff)

    @app.post("/check")
    async def check(payload: CheckRequest) -> Dict[str, Any]:
        def _run_check() -> Dict[str, Any]:
            thresholds = parse_thresholds(payload.thresholds.model_dump())
            return evaluate_thresholds(spec_from_dict(payload.spec), thresholds).to_dict()

        return await _run_blocking(_run_check)

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


async def _run_blocking(func: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def run_service(
    host: str = "0.0.0.0", port: int = 8000, *, config: Optional[DocCovConfig] = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    if config is not None:
        configure_logging(
            verbose=config.logging.verbose,
            log_file=config.logging.log_file,
            levels=config.logging.levels,
        )
    app = create_app()
    uvicorn.run(app, host=host, port=port)

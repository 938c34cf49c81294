"""Coverage endpoints: one-shot, streamed, and catalog-backed."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from covermap.config import Settings
from covermap.dependencies import get_coverage_service, get_coverage_store, get_settings
from covermap.engine.errors import BoundaryFetchError, InvalidServiceUrlError, PersistenceError
from covermap.engine.service import CoverageAnalysis, CoverageService
from covermap.models.requests import CoverageRequest
from covermap.models.responses import CoverageResponse
from covermap.precompute.catalog import load_catalog
from covermap.precompute.store import CoverageStore

logger = logging.getLogger(__name__)

router = APIRouter()

_SENTINEL = object()  # marks end of queue


def _to_response(analysis: CoverageAnalysis) -> CoverageResponse:
    return CoverageResponse(
        svg=analysis.map.svg,
        summary=analysis.summary,
        status=analysis.status,
        cached=analysis.cached,
        precomputed=analysis.precomputed is not None,
    )


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


async def _stream_coverage(
    service: CoverageService,
    service_url: str,
    layer_id: int | None,
) -> AsyncGenerator[str, None]:
    """Run one analysis as a task, yielding progress events as batches complete."""
    queue: asyncio.Queue = asyncio.Queue()

    def on_progress(done: int, total: int) -> None:
        queue.put_nowait({"type": "progress", "completed": done, "total": total})

    async def run() -> CoverageAnalysis:
        try:
            return await service.analyze_coverage(service_url, layer_id, on_progress=on_progress)
        finally:
            queue.put_nowait(_SENTINEL)

    task = asyncio.create_task(run())

    while True:
        item = await queue.get()
        if item is _SENTINEL:
            break
        yield _sse("progress", item)

    try:
        analysis = await task
    except InvalidServiceUrlError as e:
        yield _sse("error", {"type": "error", "message": str(e)})
        return
    except BoundaryFetchError as e:
        logger.warning("Coverage stream failed: %s", e)
        yield _sse("error", {"type": "error", "message": "Coverage analysis unavailable"})
        return

    yield _sse("result", _to_response(analysis).model_dump())
    yield _sse("done", {"type": "done"})


@router.post("/coverage", response_model=CoverageResponse)
async def coverage(
    req: CoverageRequest,
    service: CoverageService = Depends(get_coverage_service),
) -> CoverageResponse:
    try:
        analysis = await service.analyze_coverage(req.service_url, req.layer_id)
    except InvalidServiceUrlError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except BoundaryFetchError as e:
        logger.warning("Coverage analysis unavailable: %s", e)
        raise HTTPException(status_code=502, detail="Coverage analysis unavailable") from e
    return _to_response(analysis)


@router.post("/coverage/stream")
async def coverage_stream(
    req: CoverageRequest,
    service: CoverageService = Depends(get_coverage_service),
) -> StreamingResponse:
    return StreamingResponse(
        _stream_coverage(service, req.service_url, req.layer_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/datasets/{dataset_id}/coverage", response_model=CoverageResponse)
async def dataset_coverage(
    dataset_id: str,
    settings: Settings = Depends(get_settings),
    service: CoverageService = Depends(get_coverage_service),
    store: CoverageStore = Depends(get_coverage_store),
) -> CoverageResponse:
    """Coverage for a catalog dataset, seeded from its precomputed record when one exists."""
    try:
        catalog = load_catalog(settings.catalog_path)
    except (OSError, ValueError) as e:
        logger.error("Could not load catalog %s: %s", settings.catalog_path, e)
        raise HTTPException(status_code=503, detail="Catalog unavailable") from e

    dataset = catalog.get_dataset(dataset_id)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"Unknown dataset: {dataset_id}")

    try:
        precomputed = store.load_precomputed(dataset_id)
    except PersistenceError as e:
        logger.warning("%s; falling back to live analysis", e)
        precomputed = None
    if precomputed is None:
        precomputed = dataset.coverage

    try:
        analysis = await service.analyze_coverage(
            dataset.public_web_service or "",
            precomputed=precomputed,
        )
    except InvalidServiceUrlError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except BoundaryFetchError as e:
        logger.warning("Coverage analysis unavailable for %s: %s", dataset_id, e)
        raise HTTPException(status_code=502, detail="Coverage analysis unavailable") from e
    return _to_response(analysis)

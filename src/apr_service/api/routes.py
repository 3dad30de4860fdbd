"""JSON API endpoints for current, latest and historical APR plus manual collection."""

from __future__ import annotations

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from apr_service.exceptions import AprServiceError, CollectionFailed

log = structlog.get_logger(__name__)

router = APIRouter()

NO_DATA_MESSAGE = "No APR data available yet. Please wait for the first sample collection."
FEED_UNAVAILABLE_MESSAGE = "APR data is temporarily unavailable: an upstream feed could not be read."
DEFAULT_HISTORY_LIMIT = 30


def _elapsed_ms(start: float) -> int:
    return round((time.monotonic() - start) * 1000)


def _parse_date(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime. Naive values are taken as UTC.

    Raises:
        ValueError: If value is not ISO 8601.
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _null_payload(message: str) -> dict:
    return {"currentApr": None, "aprProjected": None, "message": message}


@router.get("/current")
async def get_current_apr(request: Request) -> JSONResponse:
    """APR computed right now from fresh feeds against the latest stored sample.

    Always 200: missing baseline or feed failures degrade to a null payload.
    """
    orchestrator = request.app.state.orchestrator
    start = time.monotonic()

    try:
        current = await orchestrator.current()
    except AprServiceError as e:
        log.warning("current_apr_unavailable", error=str(e), elapsed_ms=_elapsed_ms(start))
        return JSONResponse(content=_null_payload(FEED_UNAVAILABLE_MESSAGE))

    if current.baseline is None:
        log.info("current_apr_no_baseline", elapsed_ms=_elapsed_ms(start))
        return JSONResponse(content=_null_payload(NO_DATA_MESSAGE))

    log.info(
        "current_apr_served",
        apr=current.apr,
        apr_projected=current.apr_projected,
        elapsed_ms=_elapsed_ms(start),
    )
    return JSONResponse(content=current.to_dict())


@router.get("/latest")
async def get_latest_samples(request: Request) -> JSONResponse:
    """The two most recent stored samples."""
    orchestrator = request.app.state.orchestrator
    samples = await orchestrator.latest_two()

    content: dict = {
        "samples": [s.to_dict() for s in samples],
        "count": len(samples),
    }
    if not samples:
        content["message"] = "No samples available yet."
    return JSONResponse(content=content)


@router.get("/history")
async def get_history(
    request: Request,
    limit: int = Query(DEFAULT_HISTORY_LIMIT),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
) -> JSONResponse:
    """Stored samples, most recent first, optionally bounded by an inclusive date range.

    Query params:
        limit: Maximum number of samples; missing, zero or negative means 30.
        startDate / endDate: ISO 8601 dates or datetimes.
    """
    orchestrator = request.app.state.orchestrator

    parsed: dict[str, datetime | None] = {"startDate": None, "endDate": None}
    for name, raw in (("startDate", start_date), ("endDate", end_date)):
        if not raw:
            continue
        try:
            parsed[name] = _parse_date(raw)
        except ValueError:
            log.warning("invalid_history_date", param=name, value=raw)
            return JSONResponse(
                content={"error": f"Invalid {name} format"}, status_code=400
            )

    samples = await orchestrator.history(
        limit=limit if limit > 0 else DEFAULT_HISTORY_LIMIT,
        start_date=parsed["startDate"],
        end_date=parsed["endDate"],
    )
    return JSONResponse(
        content={"samples": [s.to_dict() for s in samples], "count": len(samples)}
    )


@router.post("/collect")
async def collect_sample(request: Request) -> JSONResponse:
    """Manually trigger a collection cycle (same code path as the scheduler)."""
    orchestrator = request.app.state.orchestrator
    start = time.monotonic()

    try:
        sample = await orchestrator.collect(trigger="manual")
    except CollectionFailed as e:
        log.error("manual_collection_failed", error=str(e), elapsed_ms=_elapsed_ms(start))
        return JSONResponse(
            content={"error": "APR sample collection failed", "detail": str(e)},
            status_code=500,
        )

    log.info("manual_collection_done", sample_id=sample.id, elapsed_ms=_elapsed_ms(start))
    return JSONResponse(
        content={
            "message": "APR sample collected successfully",
            "sample": sample.to_dict(),
        },
        status_code=201,
    )


@router.get("/health")
async def health_check() -> JSONResponse:
    """Liveness only."""
    return JSONResponse(content={"status": "ok"})

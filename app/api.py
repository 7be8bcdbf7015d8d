"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import LiveModeRequest, LoadResult, ReadingOut, StateOut, SummaryOut
from models.records import REGION_ALL
from services.monitor import (
    MAX_THRESHOLD,
    MIN_THRESHOLD,
    DashboardView,
    MonitorService,
    build_default_monitor,
)
from settings import get_settings

router = APIRouter()


def get_monitor() -> MonitorService:
    return build_default_monitor()


def _build_view(
    monitor: MonitorService,
    region: str,
    threshold: Optional[float],
) -> DashboardView:
    monitor.tick()
    if threshold is None:
        threshold = get_settings().default_threshold
    try:
        return monitor.view(region, threshold)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


def _summary_payload(view: DashboardView) -> SummaryOut:
    return SummaryOut.from_summary(
        view.summary,
        region=view.region,
        crack_threshold=view.crack_threshold,
        generated_at=view.snapshot.generated_at,
    )


def _state_payload(monitor: MonitorService) -> StateOut:
    snapshot = monitor.state.snapshot()
    return StateOut(
        theme=snapshot.theme,
        live=snapshot.live,
        baseline_count=len(snapshot.baseline),
        historical_count=len(snapshot.historical),
        generated_at=snapshot.generated_at,
    )


@router.get(
    "/readings",
    response_model=List[ReadingOut],
    response_model_by_alias=True,
    summary="List readings that pass the current filter, newest first.",
)
async def list_readings(
    region: str = Query(REGION_ALL, description="Region name or 'All'."),
    threshold: Optional[float] = Query(None, ge=MIN_THRESHOLD, le=MAX_THRESHOLD),
    monitor: MonitorService = Depends(get_monitor),
) -> List[ReadingOut]:
    view = _build_view(monitor, region, threshold)
    return [ReadingOut.from_reading(reading) for reading in view.readings]


@router.get(
    "/summary",
    response_model=SummaryOut,
    response_model_by_alias=True,
    summary="Aggregate counts and alert flag for the filtered readings.",
)
async def get_summary(
    region: str = Query(REGION_ALL, description="Region name or 'All'."),
    threshold: Optional[float] = Query(None, ge=MIN_THRESHOLD, le=MAX_THRESHOLD),
    monitor: MonitorService = Depends(get_monitor),
) -> SummaryOut:
    return _summary_payload(_build_view(monitor, region, threshold))


@router.post(
    "/readings/refresh",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SummaryOut,
    response_model_by_alias=True,
    summary="Generate a fresh baseline batch immediately.",
)
async def refresh_readings(
    monitor: MonitorService = Depends(get_monitor),
) -> SummaryOut:
    monitor.refresh()
    return _summary_payload(monitor.view())


@router.post(
    "/uploads",
    response_model=LoadResult,
    summary="Upload a historical JSON or CSV file of readings.",
)
async def upload_history(
    file: UploadFile = File(..., description="JSON or CSV file of readings."),
    monitor: MonitorService = Depends(get_monitor),
) -> LoadResult:
    try:
        contents = await file.read()
        loaded = monitor.load_upload(file.filename or "upload", contents)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()
    return loaded.result


@router.delete(
    "/uploads",
    response_model=StateOut,
    summary="Discard uploaded historical readings.",
)
async def clear_history(monitor: MonitorService = Depends(get_monitor)) -> StateOut:
    monitor.clear_uploads()
    return _state_payload(monitor)


@router.get("/state", response_model=StateOut, summary="Current dashboard toggles.")
async def get_state(monitor: MonitorService = Depends(get_monitor)) -> StateOut:
    return _state_payload(monitor)


@router.post("/live", response_model=StateOut, summary="Enable or pause live refresh.")
async def set_live_mode(
    payload: LiveModeRequest,
    monitor: MonitorService = Depends(get_monitor),
) -> StateOut:
    monitor.state.set_live(payload.enabled)
    return _state_payload(monitor)


@router.post("/theme/toggle", response_model=StateOut, summary="Switch light/dark theme.")
async def toggle_theme(monitor: MonitorService = Depends(get_monitor)) -> StateOut:
    monitor.state.toggle_theme()
    return _state_payload(monitor)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard."}

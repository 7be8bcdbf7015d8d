from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from models.records import REGION_ALL, Reading, Region
from services.aggregator import is_high_risk
from services.monitor import MonitorService, build_default_monitor
from settings import get_settings
from storage.reading_file import format_timestamp


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.filters["timestamp"] = format_timestamp
templates.env.tests["high_risk"] = is_high_risk

CHART_WIDTH = 640
CHART_HEIGHT = 200
TABLE_LIMIT = 50


def get_monitor() -> MonitorService:
    return build_default_monitor()


@dataclass
class Bar:
    label: str
    count: int
    x: float
    height: float


def _stress_points(readings: Iterable[Reading]) -> str:
    """SVG polyline points for stress score over time, oldest on the left."""
    ordered = sorted(readings, key=lambda reading: reading.timestamp)
    if not ordered:
        return ""
    step = CHART_WIDTH / max(len(ordered) - 1, 1)
    points = [
        f"{index * step:.1f},{CHART_HEIGHT - reading.stress_score * CHART_HEIGHT:.1f}"
        for index, reading in enumerate(ordered)
    ]
    return " ".join(points)


def _region_bars(per_region_count: Dict[str, int]) -> List[Bar]:
    regions = [region.value for region in Region]
    peak = max(per_region_count.values(), default=0) or 1
    slot = CHART_WIDTH / len(regions)
    return [
        Bar(
            label=name,
            count=per_region_count.get(name, 0),
            x=index * slot,
            height=per_region_count.get(name, 0) / peak * CHART_HEIGHT,
        )
        for index, name in enumerate(regions)
    ]


def _redirect_to_ui(request: Request) -> RedirectResponse:
    return RedirectResponse(
        url=str(request.url_for("ui_index")), status_code=status.HTTP_303_SEE_OTHER
    )


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    region: str = REGION_ALL,
    threshold: Optional[float] = None,
    monitor: MonitorService = Depends(get_monitor),
) -> HTMLResponse:
    monitor.tick()
    try:
        view = monitor.view(
            region,
            get_settings().default_threshold if threshold is None else threshold,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "view": view,
            "regions": [REGION_ALL, *(member.value for member in Region)],
            "stress_points": _stress_points(view.readings),
            "region_bars": _region_bars(view.summary.per_region_count),
            "rows": view.readings[:TABLE_LIMIT],
            "chart_width": CHART_WIDTH,
            "chart_height": CHART_HEIGHT,
            "should_poll": view.snapshot.live,
            "refresh_seconds": get_settings().refresh_seconds,
        },
    )


@router.post("/ui/live", name="ui_live")
async def ui_toggle_live(
    request: Request,
    monitor: MonitorService = Depends(get_monitor),
) -> RedirectResponse:
    monitor.state.set_live(not monitor.state.snapshot().live)
    return _redirect_to_ui(request)


@router.post("/ui/theme", name="ui_theme")
async def ui_toggle_theme(
    request: Request,
    monitor: MonitorService = Depends(get_monitor),
) -> RedirectResponse:
    monitor.state.toggle_theme()
    return _redirect_to_ui(request)


@router.post("/ui/upload", name="ui_upload")
async def ui_upload(
    request: Request,
    file: UploadFile = File(...),
    monitor: MonitorService = Depends(get_monitor),
) -> RedirectResponse:
    contents = await file.read()
    await file.close()
    if contents:
        monitor.load_upload(file.filename or "upload", contents)
    return _redirect_to_ui(request)


@router.post("/ui/clear", name="ui_clear")
async def ui_clear(
    request: Request,
    monitor: MonitorService = Depends(get_monitor),
) -> RedirectResponse:
    monitor.clear_uploads()
    return _redirect_to_ui(request)

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
import logging

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from typing import Optional
import uvicorn

from .config import get_settings
from .models import AssetKind, Status
from .services.normalizer import load_dataset
from .services.report import render_export
from .services.scheduler import RefreshScheduler
from .services.search import building_stats, filter_stations, search, status_counts
from .services.session import Session
from .services.status import classify

logger = logging.getLogger(__name__)

# Project paths
ROOT = Path(__file__).resolve().parents[1]
FRONTEND_DIR = ROOT / "frontend"


def _load_session(session: Session) -> None:
    settings = get_settings()
    session.load(load_dataset(settings.json_path, settings.csv_path))


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger("backend").setLevel(settings.log_level)

    # Fresh state on every run: data is re-read from the static files.
    session = Session(thresholds=settings.thresholds)
    _load_session(session)
    scheduler = RefreshScheduler(session, interval=timedelta(seconds=settings.refresh_seconds))
    app.state.session = session
    app.state.scheduler = scheduler
    # Session state is only touched on this loop; other threads submit work to it.
    app.state.loop = asyncio.get_running_loop()
    if settings.auto_refresh:
        await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(
    title="Fire Safety Station Manager",
    version="1.0.0",
    description="Live inspection status for fire extinguisher and hose stations (session-based).",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=FRONTEND_DIR, check_dir=False), name="static")


def _session(request: Request) -> Session:
    return request.app.state.session


def _station_payload(station, now: datetime, session: Session, with_details: bool = False):
    data = station.model_dump(mode="json", by_alias=True)
    if with_details:
        for asset_json, asset in zip(data["assets"], station.assets):
            c = classify(asset, now, session.thresholds)
            asset_json["daysUntilDue"] = c.days_until_due
            asset_json["statusDetail"] = c.detail.model_dump()
    return data


@app.get("/", response_class=HTMLResponse)
def root():
    index = FRONTEND_DIR / "index.html"
    if not index.exists():
        return HTMLResponse("<h1>Frontend not found.</h1>", status_code=500)
    return index.read_text(encoding="utf-8")


@app.get("/api/buildings")
async def list_buildings(request: Request):
    """Buildings with per-status station counts."""
    session = _session(request)
    out = []
    for b in session.buildings:
        data = b.model_dump(mode="json", by_alias=True)
        data["statusCounts"] = building_stats(session.stations, b.id)
        out.append(data)
    return {"buildings": out, "count": len(out)}


@app.get("/api/stations")
async def list_stations(
    request: Request,
    status: Optional[Status] = None,
    building: Optional[str] = None,
    asset_type: Optional[AssetKind] = None,
):
    session = _session(request)
    now = datetime.now()
    stations = filter_stations(session.stations, status=status, building=building, asset_type=asset_type)
    return {"stations": [_station_payload(s, now, session) for s in stations], "count": len(stations)}


@app.get("/api/stations/{station_id}")
async def get_station(request: Request, station_id: str):
    """One station with days-until-due and status detail for each asset."""
    session = _session(request)
    station = session.find_station(station_id)
    if station is None:
        raise HTTPException(status_code=404, detail=f"Station {station_id} not found.")
    return _station_payload(station, datetime.now(), session, with_details=True)


@app.get("/api/search")
async def search_stations(request: Request, q: str = Query("", description="Station id, asset id, type or manufacturer")):
    matches = search(_session(request).stations, q)
    return {"matches": matches, "count": len(matches)}


@app.get("/api/stats")
async def stats(request: Request):
    return status_counts(_session(request).stations)


@app.post("/api/refresh")
async def refresh(request: Request):
    """Run a refresh pass now, outside the timers."""
    result = request.app.state.scheduler.tick()
    return result.model_dump(mode="json")


@app.post("/api/reload")
async def reload_data(request: Request):
    """Re-read the data files into the current session."""
    session = _session(request)
    _load_session(session)
    return {"source": session.dataset.source,
            "stations": len(session.stations),
            "assets": session.total_assets}


@app.get("/api/export/stations.{fmt}")
async def export_stations(request: Request, fmt: str):
    try:
        content, filename, media_type = render_export(_session(request), fmt)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StreamingResponse(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


if __name__ == "__main__":
    uvicorn.run("backend.app:app", host="0.0.0.0", port=8000, reload=True)

"""
CoverGrid v1 API Routes
Preview layout, per-album dominant colors and canvas export.
"""
import time
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from covergrid import __version__
from covergrid.schemas import (
    AlbumColor, AlbumGridRequest, ColorsRequest, ColorsResponse, ExportRequest,
    HealthResponse, PreviewCellModel, PreviewResponse
)
from covergrid.services.composer import brightness, preview_layout
from covergrid.services.observability import get_metrics_collector
from covergrid.services.orchestrator import ExportOrchestrator
from covergrid.utils.ids import generate_request_id
from covergrid.utils.logging import get_logger

router = APIRouter(prefix="/v1", tags=["CoverGrid"])


def get_orchestrator(k=None, seed=None) -> ExportOrchestrator:
    """Build an orchestrator per request; tests may override this."""
    return ExportOrchestrator(k=k, seed=seed)


@router.post("/preview",
             response_model=PreviewResponse,
             summary="Preview Grid Layout",
             description="Square cells of the on-screen preview, one album per cell")
async def preview(request: AlbumGridRequest) -> PreviewResponse:
    cells = preview_layout(request.albums, request.rows, request.cols)
    return PreviewResponse(
        rows=request.rows,
        cols=request.cols,
        cells=[PreviewCellModel(index=c.index, edge_px=c.edge_px, background=c.background) for c in cells]
    )


@router.post("/colors",
             response_model=ColorsResponse,
             summary="Dominant Album Colors",
             description="Dominant color of every album, with fallbacks for albums that fail")
async def album_colors(request: ColorsRequest) -> ColorsResponse:
    orchestrator = get_orchestrator(k=request.k, seed=request.seed)
    tiles = await orchestrator.build_tiles(request.albums)

    albums = [
        AlbumColor(
            source=tile.source,
            color=tile.color,
            brightness=brightness(tile.color),
            status=tile.status.value,
            cluster_colors=list(tile.colors),
            error=tile.error
        )
        for tile in tiles
    ]
    return ColorsResponse(albums=albums, fallback_count=sum(1 for t in tiles if t.is_fallback))


@router.post("/export",
             summary="Export Canvas",
             description="Compose the albums, brightest dominant color first, into a PNG download",
             responses={200: {"content": {"image/png": {}}}})
async def export_canvas(request: ExportRequest) -> Response:
    request_id = generate_request_id("req")
    orchestrator = get_orchestrator(k=request.k, seed=request.seed)

    try:
        result = await orchestrator.export(request.albums, request.rows, request.cols)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        get_logger().error(f"Export failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal export error")

    log_extra = {
        "request_id": request_id,
        "tiles": len(result.tiles),
        "fallback_tiles": result.fallback_count
    }
    if result.fallback_count:
        get_logger().warning("Export served with fallback tiles", extra=log_extra)
    else:
        get_logger().info("Export served", extra=log_extra)

    return Response(
        content=result.png,
        media_type="image/png",
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Request-ID": request_id,
            "X-Fallback-Tiles": str(result.fallback_count),
            "X-Canvas-Size": f"{result.width}x{result.height}"
        }
    )


@router.get("/healthz",
            response_model=HealthResponse,
            summary="Health Check",
            description="Liveness probe")
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, version=__version__)


@router.get("/metrics",
            summary="Pipeline Metrics",
            description="Stage timings and fallback counters")
async def get_metrics() -> Dict[str, Any]:
    collector = get_metrics_collector()
    stats = collector.get_all_stats()
    stats["recent"] = collector.get_recent_metrics(limit=20)
    stats["timestamp"] = int(time.time())
    return stats

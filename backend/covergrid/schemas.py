"""
CoverGrid API Schemas
Pydantic models for preview, color and export request/response validation.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from covergrid.config import config


class AlbumGridRequest(BaseModel):
    """Albums and grid shape supplied by the front end."""
    albums: List[str] = Field(
        default_factory=list,
        max_length=config.MAX_GRID * config.MAX_GRID,
        description="Album cover locators: http(s) URLs, data: URLs or local paths"
    )
    rows: int = Field(..., ge=0, le=config.MAX_GRID, description="Grid rows")
    cols: int = Field(..., ge=0, le=config.MAX_GRID, description="Grid columns")


class ExportRequest(AlbumGridRequest):
    """Export request; a non-empty grid is required."""
    rows: int = Field(..., ge=1, le=config.MAX_GRID, description="Grid rows")
    cols: int = Field(..., ge=1, le=config.MAX_GRID, description="Grid columns")
    k: Optional[int] = Field(None, ge=1, le=12, description="Number of color clusters")
    seed: Optional[int] = Field(None, ge=0, description="Seed for reproducible clustering")


class ColorsRequest(BaseModel):
    """Dominant color request for a list of albums."""
    albums: List[str] = Field(..., min_length=1, max_length=config.MAX_GRID * config.MAX_GRID)
    k: Optional[int] = Field(None, ge=1, le=12, description="Number of color clusters")
    seed: Optional[int] = Field(None, ge=0, description="Seed for reproducible clustering")


class PreviewCellModel(BaseModel):
    """One square of the preview grid."""
    index: int
    edge_px: float = Field(..., description="Square edge in CSS pixels")
    background: str = Field(..., description="Album locator shown in the cell, empty if none")


class PreviewResponse(BaseModel):
    rows: int
    cols: int
    cells: List[PreviewCellModel]


class AlbumColor(BaseModel):
    """Representative color of one album."""
    source: str
    color: str = Field(..., pattern=r"^#[0-9a-fA-F]{6}$", description="Color used for ordering")
    brightness: float = Field(..., ge=0.0, le=255.0)
    status: str = Field(..., description="ok, decode_failed, extraction_failed or failed")
    cluster_colors: List[Optional[str]] = Field(
        default_factory=list,
        description="Dominant color of every cluster (None for empty clusters)"
    )
    error: Optional[str] = None


class ColorsResponse(BaseModel):
    albums: List[AlbumColor]
    fallback_count: int


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("covergrid", description="Service name")

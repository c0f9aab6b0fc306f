"""
Tile Composer

Orders album tiles by the brightness of their dominant color and lays them
out on a square-celled canvas, plus the preview grid layout shown before
export.
"""

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from PIL import Image

from covergrid.config import config
from covergrid.services.colors.convert import hex_to_rgb


class TileStatus(str, Enum):
    """How a tile's color was obtained."""
    OK = "ok"
    DECODE_FAILED = "decode_failed"
    EXTRACTION_FAILED = "extraction_failed"
    FAILED = "failed"


@dataclass(frozen=True)
class ImageTile:
    """A decoded album image paired with its representative color."""
    source: str
    image: Optional[Image.Image]
    color: str
    status: TileStatus = TileStatus.OK
    error: Optional[str] = None
    colors: Tuple[Optional[str], ...] = field(default_factory=tuple)

    @property
    def is_fallback(self) -> bool:
        return self.status != TileStatus.OK


@dataclass(frozen=True)
class GridGeometry:
    rows: int
    cols: int
    tile_edge: int
    width: int
    height: int

    @property
    def capacity(self) -> int:
        return self.rows * self.cols


@dataclass(frozen=True)
class PreviewCell:
    index: int
    edge_px: float
    background: str


def brightness(color: str) -> float:
    """Perceived brightness of a hex color: 0.299 R + 0.587 G + 0.114 B."""
    r, g, b = hex_to_rgb(color)
    return (r * 299 + g * 587 + b * 114) / 1000


def order_tiles(tiles: Sequence[ImageTile]) -> List[ImageTile]:
    """Sort tiles brightest first; equal brightness keeps input order."""
    return sorted(tiles, key=lambda tile: brightness(tile.color), reverse=True)


def grid_geometry(rows: int, cols: int, canvas_edge: Optional[int] = None) -> GridGeometry:
    """
    Size a grid of square tiles so its longer side spans ``canvas_edge`` pixels.

    Raises:
        ValueError: If rows or cols is below 1
    """
    if rows < 1 or cols < 1:
        raise ValueError(f"Grid needs at least one row and column, got {rows}x{cols}")
    canvas_edge = config.CANVAS_EDGE if canvas_edge is None else canvas_edge

    tile_edge = max(1, canvas_edge // max(rows, cols))
    return GridGeometry(
        rows=rows,
        cols=cols,
        tile_edge=tile_edge,
        width=tile_edge * cols,
        height=tile_edge * rows
    )


def _tile_face(tile: ImageTile, edge: int) -> Image.Image:
    if tile.image is None:
        return Image.new('RGBA', (edge, edge), hex_to_rgb(tile.color) + (255,))
    return tile.image.convert('RGBA').resize((edge, edge), Image.Resampling.LANCZOS)


def compose_canvas(tiles: Sequence[ImageTile],
                   rows: int,
                   cols: int,
                   canvas_edge: Optional[int] = None) -> Image.Image:
    """
    Draw tiles left-to-right, top-to-bottom onto a transparent canvas.

    Tiles without a decoded image are painted with their color. Tiles beyond
    ``rows * cols`` do not fit and are skipped.
    """
    geometry = grid_geometry(rows, cols, canvas_edge)
    canvas = Image.new('RGBA', (geometry.width, geometry.height), (0, 0, 0, 0))

    if len(tiles) > geometry.capacity:
        logger.warning(f"{len(tiles)} tiles for a {rows}x{cols} grid; "
                       f"dropping {len(tiles) - geometry.capacity}")

    for i, tile in enumerate(tiles[:geometry.capacity]):
        x = (i % cols) * geometry.tile_edge
        y = (i // cols) * geometry.tile_edge
        canvas.paste(_tile_face(tile, geometry.tile_edge), (x, y))

    logger.info(f"Composed {min(len(tiles), geometry.capacity)} tiles on "
                f"{geometry.width}x{geometry.height} canvas")
    return canvas


def encode_png(canvas: Image.Image) -> bytes:
    """Encode a canvas as PNG bytes."""
    buffer = io.BytesIO()
    canvas.save(buffer, format='PNG')
    return buffer.getvalue()


def preview_layout(albums: Sequence[str],
                   rows: int,
                   cols: int,
                   preview_edge: Optional[int] = None) -> List[PreviewCell]:
    """
    Cells of the on-screen preview grid, in album order.

    Each cell is a square of ``preview_edge / max(rows, cols)`` pixels showing
    the album at the same index, or nothing when there is no such album.
    An empty grid (zero rows or columns) has no cells.
    """
    if rows < 0 or cols < 0:
        raise ValueError(f"Grid dimensions cannot be negative, got {rows}x{cols}")
    if rows * cols == 0:
        return []
    preview_edge = config.PREVIEW_EDGE if preview_edge is None else preview_edge

    edge = preview_edge / max(rows, cols)
    return [
        PreviewCell(index=i, edge_px=edge, background=albums[i] if i < len(albums) else "")
        for i in range(rows * cols)
    ]

"""
CoverGrid Export Orchestrator
Loads every album concurrently, extracts a dominant color per album and
composes the brightness-ordered canvas.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from typing import AsyncIterator, Callable, List, Optional, Sequence

import httpx
import numpy as np
from loguru import logger
from PIL import Image

from covergrid.config import config
from covergrid.services.colors.extraction import extract_dominant_colors
from covergrid.services.composer import (
    ImageTile, TileStatus, compose_canvas, encode_png, grid_geometry, order_tiles
)
from covergrid.services.imaging import decode_image, load_source, rgb_samples, sample_pixels
from covergrid.services.observability import get_metrics_collector, performance_monitor
from covergrid.services.reliability import DecodeFailure, ExtractionFailure, gather_settled
from covergrid.utils.ids import generate_request_id

# (pixels, rng) -> one color per cluster
Extractor = Callable[..., List[Optional[str]]]


@dataclass
class ExportResult:
    """Result of one export: the encoded canvas and the tiles on it."""
    png: bytes
    filename: str
    tiles: List[ImageTile]
    width: int
    height: int

    @property
    def fallback_count(self) -> int:
        return sum(1 for tile in self.tiles if tile.is_fallback)


class ExportOrchestrator:
    """Runs the per-album pipeline and the final composition."""

    def __init__(self,
                 k: Optional[int] = None,
                 seed: Optional[int] = None,
                 fallback_color: Optional[str] = None,
                 canvas_edge: Optional[int] = None,
                 client: Optional[httpx.AsyncClient] = None,
                 extractor: Optional[Extractor] = None):
        self.k = config.CLUSTER_COUNT if k is None else k
        self.seed = seed
        self.fallback_color = fallback_color or config.FALLBACK_COLOR
        if not config.validate_cluster_count(self.k):
            raise ValueError(f"Cluster count must be between 1 and 12, got {self.k}")
        if not config.validate_hex(self.fallback_color):
            raise ValueError(f"Invalid fallback color: {self.fallback_color!r}")
        self.canvas_edge = config.CANVAS_EDGE if canvas_edge is None else canvas_edge
        self.client = client
        self.extractor = extractor or partial(extract_dominant_colors, k=self.k)
        self.metrics = get_metrics_collector()

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=config.FETCH_TIMEOUT_S) as client:
            yield client

    def _fallback_tile(self, source: str, image: Optional[Image.Image],
                       status: TileStatus, error: BaseException) -> ImageTile:
        self.metrics.increment(f"fallback_{status.value}_total")
        logger.warning(f"Using fallback color {self.fallback_color} for {source[:80]}: {error}")
        return ImageTile(
            source=source,
            image=image,
            color=self.fallback_color,
            status=status,
            error=str(error)
        )

    def _extract(self, source: str, image: Image.Image, rng: np.random.Generator) -> List[Optional[str]]:
        try:
            colors = list(self.extractor(rgb_samples(sample_pixels(image)), rng=rng))
        except Exception as e:
            raise ExtractionFailure(source, f"{type(e).__name__}: {e}") from e

        if not colors or colors[0] is None:
            raise ExtractionFailure(source, "first cluster produced no color")
        return colors

    async def build_tile(self, source: str, client: httpx.AsyncClient,
                         rng: np.random.Generator) -> ImageTile:
        """
        Load one album and pick its representative color.

        Decode and extraction failures are recovered here with the fallback
        color, so the returned tile is always usable.
        """
        try:
            with performance_monitor("image_decode"):
                data = await load_source(source, client)
                image = await asyncio.to_thread(decode_image, data, source)
        except DecodeFailure as e:
            return self._fallback_tile(source, None, TileStatus.DECODE_FAILED, e)

        try:
            colors = await asyncio.to_thread(self._extract, source, image, rng)
        except ExtractionFailure as e:
            return self._fallback_tile(source, image, TileStatus.EXTRACTION_FAILED, e)

        return ImageTile(source=source, image=image, color=colors[0], colors=tuple(colors))

    async def build_tiles(self, albums: Sequence[str]) -> List[ImageTile]:
        """Build every tile concurrently, in album order."""
        seeds = np.random.SeedSequence(self.seed).spawn(len(albums))

        async with self._http_client() as client:
            outcomes = await gather_settled(
                self.build_tile(source, client, np.random.default_rng(child))
                for source, child in zip(albums, seeds)
            )

        tiles = []
        for source, outcome in zip(albums, outcomes):
            if outcome.ok:
                tiles.append(outcome.value)
            else:
                logger.error(f"Unexpected failure building tile for {source[:80]}: {outcome.error!r}")
                tiles.append(self._fallback_tile(source, None, TileStatus.FAILED, outcome.error))
        return tiles

    async def export(self, albums: Sequence[str], rows: int, cols: int) -> ExportResult:
        """
        Produce the exported canvas for a grid of albums.

        Raises:
            ValueError: If the grid dimensions are invalid
        """
        if not config.validate_grid(rows, cols):
            raise ValueError(f"Grid must be 1..{config.MAX_GRID} in each dimension, got {rows}x{cols}")
        export_id = generate_request_id()
        geometry = grid_geometry(rows, cols, self.canvas_edge)
        logger.info(f"[{export_id}] Exporting {len(albums)} albums on a {rows}x{cols} grid")

        tiles = order_tiles(await self.build_tiles(albums))

        try:
            with performance_monitor("canvas_composition", pixel_count=geometry.width * geometry.height):
                canvas = await asyncio.to_thread(compose_canvas, tiles, rows, cols, self.canvas_edge)
                png = await asyncio.to_thread(encode_png, canvas)
        except Exception as e:
            logger.error(f"[{export_id}] Composition failed: {e}")
            raise

        result = ExportResult(
            png=png,
            filename=config.EXPORT_FILENAME,
            tiles=tiles,
            width=geometry.width,
            height=geometry.height
        )
        logger.info(f"[{export_id}] Export complete: {len(png)} bytes, "
                    f"{result.fallback_count} fallback tiles")
        return result

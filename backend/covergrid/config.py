"""
CoverGrid Configuration
Manages environment variables and defaults for the preview/export services.
"""
import os
import re

from dotenv import load_dotenv

load_dotenv()

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class Config:
    """Configuration class for CoverGrid services."""

    # Logging
    LOG_LEVEL: str = os.environ.get("COVERGRID_LOG_LEVEL", "INFO")

    # Dominant color extraction
    CLUSTER_COUNT: int = int(os.environ.get("COVERGRID_CLUSTER_COUNT", "5"))
    KMEANS_TOLERANCE: float = float(os.environ.get("COVERGRID_KMEANS_TOLERANCE", "1e-9"))
    KMEANS_MAX_ITERATIONS: int = int(os.environ.get("COVERGRID_KMEANS_MAX_ITERATIONS", "300"))
    MAX_SAMPLES: int = int(os.environ.get("COVERGRID_MAX_SAMPLES", "20000"))  # 0 = use every pixel
    FALLBACK_COLOR: str = os.environ.get("COVERGRID_FALLBACK_COLOR", "#000000")

    # Canvas and preview geometry (pixels)
    CANVAS_EDGE: int = int(os.environ.get("COVERGRID_CANVAS_EDGE", "4000"))
    PREVIEW_EDGE: int = int(os.environ.get("COVERGRID_PREVIEW_EDGE", "750"))
    MAX_GRID: int = int(os.environ.get("COVERGRID_MAX_GRID", "20"))
    EXPORT_FILENAME: str = os.environ.get("COVERGRID_EXPORT_FILENAME", "canvas.png")

    # Image sources
    FETCH_TIMEOUT_S: float = float(os.environ.get("COVERGRID_FETCH_TIMEOUT_S", "30"))
    MAX_FILE_MB: int = int(os.environ.get("COVERGRID_MAX_FILE_MB", "20"))
    ALLOW_LOCAL_SOURCES: bool = os.environ.get("COVERGRID_ALLOW_LOCAL_SOURCES", "false").lower() == "true"

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get(
        "COVERGRID_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
    )

    @classmethod
    def validate_hex(cls, value: str) -> bool:
        """Validate a #rrggbb color string."""
        return bool(HEX_COLOR_RE.match(value))

    @classmethod
    def validate_grid(cls, rows: int, cols: int) -> bool:
        """Validate grid dimensions."""
        return 1 <= rows <= cls.MAX_GRID and 1 <= cols <= cls.MAX_GRID

    @classmethod
    def validate_cluster_count(cls, k: int) -> bool:
        """Validate number of color clusters."""
        return 1 <= k <= 12

    @classmethod
    def allowed_origins(cls) -> list:
        """Split the comma separated CORS origin list."""
        return [o.strip() for o in cls.ALLOWED_ORIGINS.split(",") if o.strip()]


# Global config instance
config = Config()

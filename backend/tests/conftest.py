"""
Test configuration and fixtures for CoverGrid tests.
"""
import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from covergrid.services.observability import get_metrics_collector
    get_metrics_collector().reset()


@pytest.fixture
def solid_png():
    """Factory for PNG bytes of a single-color image."""
    def _make(rgb, size=(8, 8)):
        img = Image.new('RGB', size, color=tuple(rgb))
        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()
    return _make


@pytest.fixture
def png_data_url(solid_png):
    """Factory for data: URLs of single-color PNG images."""
    def _make(rgb, size=(8, 8)):
        payload = base64.b64encode(solid_png(rgb, size)).decode('ascii')
        return f"data:image/png;base64,{payload}"
    return _make

"""
API tests for the v1 preview, colors and export endpoints.

Album covers are passed as data: URLs, so no network access is needed.
"""
import io

import pytest
from PIL import Image

from covergrid.api import v1
from covergrid.services.orchestrator import ExportOrchestrator


@pytest.fixture
def small_canvas(monkeypatch):
    """Shrink the export canvas to keep tests fast."""
    def _orchestrator(k=None, seed=None):
        return ExportOrchestrator(k=k, seed=seed, canvas_edge=64)
    monkeypatch.setattr(v1, "get_orchestrator", _orchestrator)


class TestPreviewEndpoint:

    def test_preview_layout(self, test_client):
        response = test_client.post("/v1/preview", json={"albums": ["a.png", "b.png"], "rows": 2, "cols": 2})

        assert response.status_code == 200
        data = response.json()
        assert len(data["cells"]) == 4
        assert data["cells"][0]["edge_px"] == 375.0
        assert [c["background"] for c in data["cells"]] == ["a.png", "b.png", "", ""]

    def test_empty_grid(self, test_client):
        response = test_client.post("/v1/preview", json={"albums": [], "rows": 0, "cols": 3})
        assert response.status_code == 200
        assert response.json()["cells"] == []

    def test_rejects_oversized_grid(self, test_client):
        response = test_client.post("/v1/preview", json={"albums": [], "rows": 500, "cols": 1})
        assert response.status_code == 422


class TestColorsEndpoint:

    def test_colors_with_fallback(self, test_client, png_data_url):
        albums = [png_data_url((255, 0, 0)), "/does/not/exist.png"]
        response = test_client.post("/v1/colors", json={"albums": albums, "seed": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_count"] == 1

        red, missing = data["albums"]
        assert red["color"] == "#ff0000"
        assert red["status"] == "ok"
        assert red["brightness"] == pytest.approx(76.245)
        assert len(red["cluster_colors"]) == 5
        assert missing["color"] == "#000000"
        assert missing["status"] == "decode_failed"
        assert missing["error"]

    def test_requires_albums(self, test_client):
        response = test_client.post("/v1/colors", json={"albums": []})
        assert response.status_code == 422


class TestExportEndpoint:

    def test_export_png_download(self, test_client, png_data_url, small_canvas):
        albums = [
            "/does/not/exist.png",
            png_data_url((0, 0, 255)),
            "data:garbage",
            png_data_url((255, 0, 0)),
        ]
        response = test_client.post("/v1/export", json={"albums": albums, "rows": 2, "cols": 2, "seed": 1})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert 'filename="canvas.png"' in response.headers["content-disposition"]
        assert response.headers["x-fallback-tiles"] == "2"
        assert response.headers["x-canvas-size"] == "64x64"

        canvas = Image.open(io.BytesIO(response.content)).convert('RGBA')
        assert canvas.getpixel((16, 16)) == (255, 0, 0, 255)
        assert canvas.getpixel((48, 16)) == (0, 0, 255, 255)
        assert canvas.getpixel((16, 48)) == (0, 0, 0, 255)

    def test_export_requires_grid(self, test_client, small_canvas):
        response = test_client.post("/v1/export", json={"albums": [], "rows": 0, "cols": 2})
        assert response.status_code == 422

    def test_local_path_is_not_read(self, test_client, tmp_path, solid_png, small_canvas):
        path = tmp_path / "cover.png"
        path.write_bytes(solid_png((12, 34, 56)))

        response = test_client.post("/v1/export", json={"albums": [str(path)], "rows": 1, "cols": 1})

        assert response.status_code == 200
        assert response.headers["x-fallback-tiles"] == "1"
        canvas = Image.open(io.BytesIO(response.content)).convert('RGBA')
        assert canvas.getpixel((32, 32)) == (0, 0, 0, 255)

    def test_local_errors_do_not_reveal_existence(self, test_client, tmp_path, solid_png):
        existing = tmp_path / "cover.png"
        existing.write_bytes(solid_png((12, 34, 56)))
        albums = [str(existing), str(tmp_path / "nope.png"), f"file://{existing}"]

        response = test_client.post("/v1/colors", json={"albums": albums})

        assert response.status_code == 200
        for album in response.json()["albums"]:
            assert album["status"] == "decode_failed"
            assert album["error"].endswith("only http(s) and data: sources are accepted")


class TestServiceEndpoints:

    def test_health_check(self, test_client):
        response = test_client.get("/v1/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "covergrid"
        assert "version" in data

    def test_metrics_after_extraction(self, test_client, png_data_url):
        test_client.post("/v1/colors", json={"albums": [png_data_url((0, 255, 0))]})
        response = test_client.get("/v1/metrics")

        assert response.status_code == 200
        operations = response.json()["operations"]
        assert "image_decode" in operations
        assert "color_clustering" in operations
        assert operations["color_clustering"]["total_calls"] == 1
        assert any(m["operation_name"] == "color_clustering" for m in response.json()["recent"])

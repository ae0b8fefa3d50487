"""Smoke tests for the FastAPI app.

These tests drive the wallpaper endpoint through the FastAPI TestClient.
The rasterizer is replaced with a recording stub so they run without the
native Cairo library, and assets are served from a temporary directory.
"""

import xml.etree.ElementTree as ET
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import encode_image, png_header

import main
from wallpaper import assets, raster
from wallpaper.ratelimit import RateLimiter


@pytest.fixture
def asset_dir(tmp_path, monkeypatch):
    """Point the asset backend at a sandboxed directory with a font in it."""
    public = tmp_path / "public"
    public.mkdir()
    (public / "Roboto-Bold.ttf").write_bytes(b"ttf-bytes")
    (public / "preview.png").write_bytes(encode_image(4, 4))
    monkeypatch.setattr(assets, "ASSETS_BACKEND", "local")
    monkeypatch.setattr(assets, "ASSETS_DIR", str(public))
    monkeypatch.setattr(assets, "_font_bytes", None)
    return public


@pytest.fixture
def rendered(monkeypatch):
    """Capture rasterizer calls instead of running Cairo."""
    calls = []

    async def fake_rasterize(svg, width, height, fonts=(), default_font_family="Roboto"):
        calls.append({"svg": svg, "width": width, "height": height, "fonts": list(fonts),
                      "family": default_font_family})
        return b"\x89PNG rendered"

    monkeypatch.setattr(raster, "rasterize", fake_rasterize)
    return calls


@pytest.fixture
def client(asset_dir, rendered, monkeypatch):
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(limit=1000))
    monkeypatch.setattr(main, "now", lambda: datetime(2025, 1, 1, 12, 0))
    return TestClient(main.app)


def _upload(data, name="bg.png", content_type="image/png"):
    return {"image": (name, data, content_type)}


def test_get_without_upload_redirects(client, monkeypatch):
    def explode(*args, **kwargs):
        raise AssertionError("layout must not run without a background")

    monkeypatch.setattr(main, "compute_layout", explode)
    resp = client.get("/", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == main.PROJECT_URL


def test_post_without_image_redirects(client):
    resp = client.post("/", data={"other": "field"}, follow_redirects=False)
    assert resp.status_code == 302


def test_post_png_returns_png(client, rendered, png_800x600):
    resp = client.post("/", files=_upload(png_800x600))
    assert resp.status_code == 200, resp.text
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert resp.content == b"\x89PNG rendered"
    (call,) = rendered
    assert (call["width"], call["height"]) == (800, 600)
    assert call["fonts"] == [b"ttf-bytes"]
    assert call["family"] == "Roboto"
    assert "2025 Year Remaining" in call["svg"]


def test_post_jpeg_svg_output(client, rendered, jpeg_640x480):
    resp = client.post("/?format=svg", files=_upload(jpeg_640x480, "bg.jpg", "image/jpeg"))
    assert resp.status_code == 200, resp.text
    assert resp.headers["content-type"].startswith("image/svg+xml")
    root = ET.fromstring(resp.text)
    assert root.get("width") == "640" and root.get("height") == "480"
    image = root.find("{http://www.w3.org/2000/svg}image")
    assert image.get("href").startswith("data:image/jpeg;base64,")
    assert "@font-face" in resp.text
    assert rendered == []


def test_missing_font_still_renders(client, asset_dir, png_800x600):
    (asset_dir / "Roboto-Bold.ttf").unlink()
    resp = client.post("/?format=svg", files=_upload(png_800x600))
    assert resp.status_code == 200
    assert "@font-face" not in resp.text
    ET.fromstring(resp.text)


def test_unsupported_format(client):
    resp = client.post("/", files=_upload(b"GIF89a" + b"\x00" * 64, "bg.gif", "image/gif"))
    assert resp.status_code == 415


def test_dimensions_too_large(client):
    resp = client.post("/", files=_upload(png_header(5000, 1000)))
    assert resp.status_code == 400
    assert "4096" in resp.json()["detail"]


def test_upload_too_large(client, monkeypatch, png_800x600):
    monkeypatch.setattr(main, "MAX_UPLOAD_BYTES", 256)
    resp = client.post("/", files=_upload(png_800x600))
    assert resp.status_code == 413


def test_truncated_png_uses_default_canvas(client, rendered):
    resp = client.post("/", files=_upload(b"\x89PNG\r\n\x1a\n"))
    assert resp.status_code == 200
    assert (rendered[0]["width"], rendered[0]["height"]) == (1438, 2592)


def test_rasterization_failure_is_500(client, monkeypatch, png_800x600):
    async def broken(*args, **kwargs):
        raise raster.RasterizationError("cairo exploded")

    monkeypatch.setattr(raster, "rasterize", broken)
    resp = client.post("/", files=_upload(png_800x600))
    assert resp.status_code == 500


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(main, "rate_limiter", RateLimiter(limit=2))
    headers = {main.CLIENT_IP_HEADER: "203.0.113.9"}
    codes = [client.get("/", headers=headers, follow_redirects=False).status_code for _ in range(3)]
    assert codes == [302, 302, 429]
    # other clients and header-less requests are unaffected
    assert client.get("/", headers={main.CLIENT_IP_HEADER: "203.0.113.10"}, follow_redirects=False).status_code == 302
    assert client.get("/", follow_redirects=False).status_code == 302


def test_static_assets(client):
    resp = client.get("/Roboto-Bold.ttf")
    assert resp.status_code == 200
    assert resp.content == b"ttf-bytes"
    assert client.get("/preview.png").status_code == 200
    assert client.get("/missing.png").status_code == 404
    assert client.get("/main.py").status_code == 404


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}

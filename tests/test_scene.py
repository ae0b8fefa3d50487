import base64
import xml.etree.ElementTree as ET
from datetime import datetime

import pytest

from wallpaper.layout import compute_layout
from wallpaper.models import CanvasDimensions, EmbeddedFont, EmbeddedImage
from wallpaper.scene import render_scene
from wallpaper.year_progress import compute_calendar_facts

SVG = "{http://www.w3.org/2000/svg}"


@pytest.fixture
def facts():
    return compute_calendar_facts(datetime(2025, 1, 1, 9, 0))


@pytest.fixture
def layout(facts):
    return compute_layout(CanvasDimensions(width=800, height=600), facts)


@pytest.fixture
def background(png_800x600):
    return EmbeddedImage(mime_type="image/png", data_b64=base64.b64encode(png_800x600).decode())


@pytest.fixture
def font():
    return EmbeddedFont(family="Roboto", data_b64=base64.b64encode(b"not-really-a-ttf").decode())


def _texts(root):
    return ["".join(t.itertext()) for t in root.iter(f"{SVG}text")]


def test_scene_is_well_formed_with_font(layout, facts, background, font):
    svg = render_scene(layout, facts, background, font)
    root = ET.fromstring(svg)
    assert root.tag == f"{SVG}svg"
    assert root.get("width") == "800"
    assert root.get("viewBox") == "0 0 800 600"
    style = root.find(f"{SVG}defs/{SVG}style")
    assert style is not None
    assert "@font-face" in style.text
    assert "'Roboto'" in style.text
    assert font.data_uri in style.text
    for text in root.iter(f"{SVG}text"):
        assert text.get("font-family").startswith("Roboto")


def test_scene_without_font_uses_sans_serif(layout, facts, background):
    svg = render_scene(layout, facts, background, None)
    root = ET.fromstring(svg)
    assert "@font-face" not in svg
    assert root.find(f"{SVG}defs/{SVG}style") is None
    for text in root.iter(f"{SVG}text"):
        assert text.get("font-family") == "sans-serif"


def test_background_covers_canvas(layout, facts, background):
    root = ET.fromstring(render_scene(layout, facts, background))
    image = root.find(f"{SVG}image")
    assert image.get("href") == background.data_uri
    assert image.get("width") == "800"
    assert image.get("height") == "600"
    assert image.get("preserveAspectRatio") == "xMidYMid slice"


def test_only_inline_references(layout, facts, background, font):
    root = ET.fromstring(render_scene(layout, facts, background, font))
    hrefs = [el.get("href") for el in root.iter() if el.get("href") is not None]
    assert hrefs and all(h.startswith("data:") for h in hrefs)
    assert "url(http" not in render_scene(layout, facts, background, font)


def test_text_content(layout, facts, background):
    root = ET.fromstring(render_scene(layout, facts, background))
    title, counter = _texts(root)
    assert title == "2025 Year Remaining"
    spans = [s.text for s in root.iter(f"{SVG}tspan")]
    assert spans == ["364", "days left", "0.3%"]
    assert "364" in counter


def test_one_rect_per_tile(layout, facts, background):
    root = ET.fromstring(render_scene(layout, facts, background))
    tiles = [r for r in root.iter(f"{SVG}rect") if "tile" in (r.get("class") or "").split()]
    assert len(tiles) == 365
    passed = [r for r in tiles if "passed" in r.get("class").split()]
    remaining = [r for r in tiles if "remaining" in r.get("class").split()]
    assert len(passed) == 1 and len(remaining) == 364
    assert passed[0].get("fill") == "rgba(255, 255, 255, 0.15)"
    assert {r.get("fill") for r in remaining} == {"#00f0ff"}


def test_progress_bar_rects(layout, facts, background):
    root = ET.fromstring(render_scene(layout, facts, background))
    rects = [r for r in root.iter(f"{SVG}rect") if r.get("class") is None]
    box, track, fill = rects
    assert float(track.get("width")) == pytest.approx(layout.progress_track.width)
    assert float(fill.get("width")) == pytest.approx(layout.progress_track.width / 365)
    assert float(fill.get("rx")) == pytest.approx(float(fill.get("height")) / 2)
    assert float(box.get("x")) == pytest.approx(layout.box.x)

"""SVG serialization of the laid-out widget.

The document is self-contained: the background photo and the optional
font are embedded as ``data:`` URIs, so the rasterizer never has to reach
the network or the filesystem.
"""

from __future__ import annotations

from typing import Optional

from jinja2 import Environment

from .models import CalendarFacts, EmbeddedFont, EmbeddedImage, LayoutGeometry, TileState

ACCENT = "#00f0ff"
TILE_COLORS = {
    TileState.PASSED: "rgba(255, 255, 255, 0.15)",
    TileState.REMAINING: ACCENT,
}
FALLBACK_FAMILY = "sans-serif"

SVG_TEMPLATE = """<svg width="{{ g.width }}" height="{{ g.height }}" viewBox="0 0 {{ g.width }} {{ g.height }}" xmlns="http://www.w3.org/2000/svg">
{%- if font %}
    <defs>
        <style>
            @font-face {
                font-family: '{{ font.family }}';
                src: url({{ font.data_uri }});
                font-weight: normal;
                font-style: normal;
            }
            text {
                font-family: '{{ font.family }}', sans-serif;
            }
        </style>
    </defs>
{%- else %}
    <defs/>
{%- endif %}
    <image href="{{ background.data_uri }}" x="0" y="0" width="{{ g.width }}" height="{{ g.height }}" preserveAspectRatio="xMidYMid slice"/>
    <rect x="{{ g.box.x }}" y="{{ g.box.y }}" width="{{ g.box.width }}" height="{{ g.box.height }}" rx="{{ g.box.radius }}" fill="rgba(0, 0, 0, 0.65)" stroke="rgba(255, 255, 255, 0.2)" stroke-width="{{ g.box_stroke_width }}"/>
    <text x="{{ g.title.x }}" y="{{ g.title.y }}" text-anchor="middle" font-family="{{ family }}" font-weight="bold" font-size="{{ g.title.font_size }}" fill="white">{{ facts.year }} Year Remaining</text>
    <text x="{{ g.counter.x }}" y="{{ g.counter.y }}" text-anchor="middle" font-family="{{ family }}" fill="white">
        <tspan font-weight="900" font-size="{{ g.counter.number_font_size }}" fill="{{ accent }}">{{ facts.remaining_days }}</tspan>
        <tspan font-weight="500" font-size="{{ g.counter.label_font_size }}" fill="rgba(255, 255, 255, 0.8)" dx="{{ g.counter.label_dx }}" dy="{{ g.counter.label_dy }}">days left</tspan>
        <tspan font-weight="bold" font-size="{{ g.counter.percent_font_size }}" fill="white" dx="{{ g.counter.percent_dx }}">{{ facts.progress_label }}</tspan>
    </text>
    <rect x="{{ g.progress_track.x }}" y="{{ g.progress_track.y }}" width="{{ g.progress_track.width }}" height="{{ g.progress_track.height }}" rx="{{ g.progress_track.radius }}" fill="rgba(255, 255, 255, 0.1)"/>
    <rect x="{{ g.progress_fill.x }}" y="{{ g.progress_fill.y }}" width="{{ g.progress_fill.width }}" height="{{ g.progress_fill.height }}" rx="{{ g.progress_fill.radius }}" fill="{{ accent }}"/>
{%- for tile in g.tiles %}
    <rect class="tile {{ tile.state.value }}" x="{{ tile.x }}" y="{{ tile.y }}" width="{{ tile.size }}" height="{{ tile.size }}" rx="{{ tile.radius }}" fill="{{ tile_colors[tile.state] }}"/>
{%- endfor %}
</svg>"""

_env = Environment(autoescape=True)
_template = _env.from_string(SVG_TEMPLATE)


def render_scene(
    layout: LayoutGeometry,
    facts: CalendarFacts,
    background: EmbeddedImage,
    font: Optional[EmbeddedFont] = None,
) -> str:
    """Serialize the widget over ``background`` into an SVG document string.

    Text uses the embedded font family when ``font`` is given and the
    generic sans-serif family otherwise.
    """
    family = f"{font.family}, {FALLBACK_FAMILY}" if font else FALLBACK_FAMILY
    return _template.render(
        g=layout,
        facts=facts,
        background=background,
        font=font,
        family=family,
        accent=ACCENT,
        tile_colors=TILE_COLORS,
    )

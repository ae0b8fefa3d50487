"""SVG to PNG rasterization backed by CairoSVG.

CairoSVG is imported lazily the first time a render is requested, so the
API process can start (and serve ``?format=svg``) on hosts where the native
Cairo library is missing. Engine setup runs at most once per process.

Cairo resolves font families through fontconfig and ignores ``@font-face``
rules, so font payloads handed to :func:`rasterize` are written once into
``FONT_INSTALL_DIR``, a directory fontconfig scans, before rendering.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import threading
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

FONT_INSTALL_DIR: str = os.getenv(
    "FONT_INSTALL_DIR", os.path.join(os.path.expanduser("~"), ".fonts")
)

_engine: Optional[Any] = None
_engine_lock = threading.Lock()
_installed_fonts: set[str] = set()


class RasterizationError(RuntimeError):
    """Raised when the SVG document cannot be turned into a bitmap."""


def ensure_engine() -> Any:
    """Import and return the CairoSVG module, initializing it only once."""
    global _engine
    if _engine is not None:
        return _engine
    with _engine_lock:
        if _engine is None:
            try:
                import cairosvg  # type: ignore
            except (ImportError, OSError) as e:
                raise RasterizationError(f"CairoSVG is not available: {e}") from e
            _engine = cairosvg
            logger.info("Rasterizer engine initialized (cairosvg %s)", getattr(cairosvg, "__version__", "?"))
    return _engine


def install_fonts(fonts: Sequence[bytes], family: str) -> None:
    """Make font payloads visible to fontconfig, once per distinct payload."""
    for payload in fonts:
        digest = hashlib.sha1(payload).hexdigest()[:12]
        if digest in _installed_fonts:
            continue
        with _engine_lock:
            if digest in _installed_fonts:
                continue
            path = os.path.join(FONT_INSTALL_DIR, f"{family}-{digest}.ttf")
            try:
                os.makedirs(FONT_INSTALL_DIR, exist_ok=True)
                if not os.path.exists(path):
                    with open(path, "wb") as f:
                        f.write(payload)
                    logger.info("Installed font %s for rasterizer", path)
            except OSError as e:
                # text still renders with a system face
                logger.warning("Could not install font %s: %s", path, e)
            _installed_fonts.add(digest)


def _render(svg: str, width: int, height: int) -> bytes:
    engine = ensure_engine()
    try:
        png = engine.svg2png(
            bytestring=svg.encode("utf-8"),
            output_width=width,
            output_height=height,
        )
    except Exception as e:
        raise RasterizationError(f"SVG rasterization failed: {e}") from e
    if not png:
        raise RasterizationError("SVG rasterization produced no output")
    return png


async def rasterize(
    svg: str,
    width: int,
    height: int,
    fonts: Sequence[bytes] = (),
    default_font_family: str = "Roboto",
) -> bytes:
    """Render an SVG document to PNG bytes at exactly ``width`` x ``height``.

    Args:
        svg: Self-contained SVG markup.
        width: Output width in pixels.
        height: Output height in pixels.
        fonts: TrueType payloads the document refers to.
        default_font_family: Family name the payloads are registered under.

    Returns:
        PNG-encoded bytes.

    Raises:
        RasterizationError: The engine is missing or rendering failed.
    """
    if fonts:
        install_fonts(fonts, default_font_family)
    png = await asyncio.to_thread(_render, svg, width, height)
    logger.info("Successfully generated PNG: %sx%s", width, height)
    return png

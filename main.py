import os
import base64
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse, Response
from starlette.datastructures import UploadFile

from wallpaper import assets, raster
from wallpaper.layout import compute_layout
from wallpaper.models import (
    CanvasDimensions,
    EmbeddedImage,
    ImageFormat,
)
from wallpaper.ratelimit import RateLimiter
from wallpaper.scene import render_scene
from wallpaper.sniff import detect_format, sniff_image
from wallpaper.year_progress import compute_calendar_facts

# --- Environment & Config ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
MAX_DIMENSION = int(os.getenv("MAX_DIMENSION", "4096"))
RATE_LIMIT = int(os.getenv("RATE_LIMIT", "20"))
RATE_WINDOW_SECONDS = float(os.getenv("RATE_WINDOW_SECONDS", "60"))
CLIENT_IP_HEADER = os.getenv("CLIENT_IP_HEADER", "cf-connecting-ip")
PROJECT_URL = os.getenv("PROJECT_URL", "https://github.com/kikuchy/this_year_limit_wallpaper")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
STATIC_SUFFIXES = (".png", ".ttf", ".wasm")

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("wallpaper.api")

logger.info(
    "[startup] assets backend=%s dir=%s, rate limit %s/%ss",
    assets.ASSETS_BACKEND, assets.ASSETS_DIR, RATE_LIMIT, RATE_WINDOW_SECONDS,
)

rate_limiter = RateLimiter(limit=RATE_LIMIT, window=RATE_WINDOW_SECONDS)

# --- App Init ---
app = FastAPI(title="Year Remaining Wallpaper")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def now() -> datetime:
    return datetime.now()


# --- Middleware ---
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if rate_limiter.is_limited(request.headers.get(CLIENT_IP_HEADER)):
        return Response("Too Many Requests", status_code=429, media_type="text/plain")
    return await call_next(request)


async def _read_upload(request: Request) -> Optional[bytes]:
    """Pull the ``image`` part out of a multipart upload and validate it.

    Returns None when the request carries no usable upload. Raises an
    HTTPException for uploads that are present but unacceptable.
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Request entity too large (max 5MB)")

    try:
        form = await request.form()
    except Exception as e:
        logger.error("Error parsing form data: %s", e)
        return None

    upload = form.get("image")
    if not isinstance(upload, UploadFile):
        return None

    # Content-Length may be missing or spoofed
    if upload.size is not None and upload.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File size too large (max 5MB)")
    raw = await upload.read(MAX_UPLOAD_BYTES + 1)
    if len(raw) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File size too large (max 5MB)")
    if not raw:
        return None

    if detect_format(raw) is ImageFormat.UNKNOWN:
        raise HTTPException(
            status_code=415,
            detail="Unsupported image format. Only PNG and JPEG are allowed.",
        )
    return raw


def _canvas_for(raw: bytes) -> CanvasDimensions:
    dims = sniff_image(raw)
    if dims.width > MAX_DIMENSION or dims.height > MAX_DIMENSION:
        raise HTTPException(status_code=400, detail=f"Image dimensions too large (max {MAX_DIMENSION}px)")
    if dims.width < 1 or dims.height < 1:
        raise HTTPException(status_code=400, detail="Image dimensions are invalid")
    return CanvasDimensions(width=dims.width, height=dims.height)


# --- Wallpaper Endpoint ---
@app.api_route("/", methods=["GET", "POST"])
async def wallpaper_endpoint(request: Request, output: Optional[str] = Query(None, alias="format")):
    raw = await _read_upload(request) if request.method == "POST" else None
    if raw is None:
        return RedirectResponse(PROJECT_URL, status_code=302)

    canvas = _canvas_for(raw)
    background = EmbeddedImage(
        mime_type=detect_format(raw).mime_type,
        data_b64=base64.b64encode(raw).decode("ascii"),
    )

    facts = compute_calendar_facts(now())
    layout = compute_layout(canvas, facts)
    font_bytes = await assets.get_font()
    svg = render_scene(layout, facts, background, assets.embed_font(font_bytes))

    if output == "svg":
        return Response(svg, media_type="image/svg+xml")

    try:
        png = await raster.rasterize(
            svg,
            canvas.width,
            canvas.height,
            fonts=[font_bytes] if font_bytes else [],
            default_font_family=assets.FONT_FAMILY,
        )
    except raster.RasterizationError as e:
        logger.error("Rasterization failed for %sx%s: %s", canvas.width, canvas.height, e)
        raise HTTPException(status_code=500, detail="Failed to render wallpaper.")
    return Response(
        png,
        media_type="image/png",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


# --- Static Assets ---
@app.get("/{asset_name}")
async def static_asset_endpoint(asset_name: str):
    """Serve fonts and images stored next to the service.

    Only ``.png``, ``.ttf`` and ``.wasm`` files from ``ASSETS_DIR`` are
    exposed; any other path is a 404.
    """
    if not asset_name.lower().endswith(STATIC_SUFFIXES):
        raise HTTPException(status_code=404, detail="Not found.")
    try:
        path = assets.asset_path(asset_name)
    except assets.AssetNotFound:
        raise HTTPException(status_code=404, detail=f"Asset {asset_name} not found.")
    return FileResponse(path)

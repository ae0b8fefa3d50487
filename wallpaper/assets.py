"""Static asset backend and the process-wide font cache.

Assets (the Roboto-Bold font and any images served next to it) are read
from a local directory in development. In production they can be fetched
from a CDN or object store by setting ``ASSETS_BACKEND=http`` and
``ASSETS_BASE_URL``.

Environment variables:
    ASSETS_BACKEND: 'local' (default) or 'http'.
    ASSETS_DIR: Base directory for the local backend (default './public').
    ASSETS_BASE_URL: Base URL for the http backend.
    FONT_FILE: Asset name of the font (default 'Roboto-Bold.ttf').
    FONT_FAMILY: Family name the font is declared under (default 'Roboto').
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
from typing import Optional

import httpx

from .models import EmbeddedFont

logger = logging.getLogger(__name__)

ASSETS_BACKEND: str = os.getenv("ASSETS_BACKEND", "local").lower()
ASSETS_DIR: str = os.getenv("ASSETS_DIR", "./public")
ASSETS_BASE_URL: str = os.getenv("ASSETS_BASE_URL", "").rstrip("/")
FONT_FILE: str = os.getenv("FONT_FILE", "Roboto-Bold.ttf")
FONT_FAMILY: str = os.getenv("FONT_FAMILY", "Roboto")

_font_bytes: Optional[bytes] = None
_font_lock = asyncio.Lock()


class AssetNotFound(LookupError):
    """Raised when an asset cannot be resolved by the configured backend."""


def asset_path(name: str) -> str:
    """Resolve ``name`` to a file inside ``ASSETS_DIR``.

    Raises:
        AssetNotFound: If the name escapes the asset directory or the file
            does not exist.
    """
    base = os.path.realpath(ASSETS_DIR)
    path = os.path.realpath(os.path.join(base, name))
    if os.path.commonpath([base, path]) != base or not os.path.isfile(path):
        raise AssetNotFound(name)
    return path


async def fetch_asset(name: str) -> bytes:
    """Read an asset's bytes from the configured backend.

    Raises:
        AssetNotFound: The backend has no such asset.
        httpx.HTTPError: The remote backend could not be reached.
    """
    if ASSETS_BACKEND == "http":
        if not ASSETS_BASE_URL:
            raise AssetNotFound(f"ASSETS_BASE_URL not set; cannot fetch {name}")
        async with httpx.AsyncClient(timeout=10, follow_redirects=True) as client:
            resp = await client.get(f"{ASSETS_BASE_URL}/{name}")
        if resp.status_code == 404:
            raise AssetNotFound(name)
        resp.raise_for_status()
        return resp.content
    path = asset_path(name)
    with open(path, "rb") as f:
        return f.read()


async def get_font() -> Optional[bytes]:
    """Return the cached font bytes, fetching them on first use.

    A failed fetch is logged and returns None; the next call tries again.
    """
    global _font_bytes
    if _font_bytes is not None:
        return _font_bytes
    async with _font_lock:
        if _font_bytes is None:
            try:
                _font_bytes = await fetch_asset(FONT_FILE)
            except (AssetNotFound, OSError, httpx.HTTPError) as e:
                logger.error("Error fetching font %s: %s", FONT_FILE, e)
                return None
    return _font_bytes


def embed_font(data: Optional[bytes]) -> Optional[EmbeddedFont]:
    if not data:
        return None
    return EmbeddedFont(family=FONT_FAMILY, data_b64=base64.b64encode(data).decode("ascii"))

"""Shared fixtures: real encoded images built with Pillow."""

import io
import struct

import pytest
from PIL import Image  # type: ignore


def encode_image(width: int, height: int, fmt: str = "PNG", **save_kwargs) -> bytes:
    img = Image.new("RGB", (width, height), color=(30, 60, 90))
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def png_header(width: int, height: int) -> bytes:
    """Signature plus a bare IHDR chunk; enough for sniffing, not decoding."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + struct.pack(">I", len(ihdr)) + b"IHDR" + ihdr + b"\x00" * 4


@pytest.fixture
def png_800x600() -> bytes:
    return encode_image(800, 600, "PNG")


@pytest.fixture
def jpeg_640x480() -> bytes:
    return encode_image(640, 480, "JPEG", quality=80)

"""Header sniffing for uploaded background images.

Only the few bytes needed to learn the encoded format and the pixel size
are read; the image is never decoded. Offsets used here:

PNG
    8-byte signature, then the IHDR chunk, which is always first. Its width
    and height are big-endian u32 values at byte offsets 16 and 20.

JPEG
    ``FF D8`` start-of-image followed by marker segments. Each segment is a
    big-endian u16 marker and a big-endian u16 length that counts itself but
    not the marker. Start-Of-Frame segments carry the sample precision at
    marker offset +4, then height (+5) and width (+7) as big-endian u16.

Sniffing never raises. Anything unreadable yields the default canvas size.
"""

from __future__ import annotations

import logging
import struct
from typing import Callable, Dict, Optional, Tuple

from .models import DEFAULT_HEIGHT, DEFAULT_WIDTH, ImageFormat, SniffResult

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8"

_PNG_WIDTH_OFFSET = 16
_PNG_HEIGHT_OFFSET = 20

SOF_MARKERS = frozenset(
    list(range(0xFFC0, 0xFFC4))
    + list(range(0xFFC5, 0xFFC8))
    + list(range(0xFFC9, 0xFFCC))
    + list(range(0xFFCD, 0xFFD0))
)

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")


def _read(fmt: struct.Struct, data: bytes, offset: int) -> Optional[int]:
    """Unpack one integer at ``offset`` or return None if it would overrun."""
    if offset < 0 or offset + fmt.size > len(data):
        return None
    return fmt.unpack_from(data, offset)[0]


def detect_format(data: bytes) -> ImageFormat:
    if data[:4] == PNG_SIGNATURE:
        return ImageFormat.PNG
    if data[:2] == JPEG_SIGNATURE:
        return ImageFormat.JPEG
    return ImageFormat.UNKNOWN


def _png_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    width = _read(_U32, data, _PNG_WIDTH_OFFSET)
    height = _read(_U32, data, _PNG_HEIGHT_OFFSET)
    if width is None or height is None:
        return None
    return width, height


def _jpeg_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    offset = 2
    while offset < len(data):
        marker = _read(_U16, data, offset)
        length = _read(_U16, data, offset + 2)
        if marker is None or length is None:
            return None
        if marker in SOF_MARKERS:
            height = _read(_U16, data, offset + 5)
            width = _read(_U16, data, offset + 7)
            if width is None or height is None:
                return None
            return width, height
        if length < 2:
            # malformed segment; a zero length would loop forever
            return None
        offset += length + 2
    return None


_PARSERS: Dict[ImageFormat, Callable[[bytes], Optional[Tuple[int, int]]]] = {
    ImageFormat.PNG: _png_dimensions,
    ImageFormat.JPEG: _jpeg_dimensions,
}


def sniff_image(data: bytes) -> SniffResult:
    """Detect the format and pixel size of an encoded image.

    Args:
        data: Raw upload bytes.

    Returns:
        The detected format with its dimensions, or the detected format
        with the default 1438x2592 size when the header cannot be read.
    """
    fmt = detect_format(data)
    parser = _PARSERS.get(fmt)
    dims = None
    if parser is not None:
        try:
            dims = parser(data)
        except (struct.error, ValueError) as e:
            logger.warning("Error detecting %s dimensions: %s", fmt.value, e)
    if dims is None:
        logger.info("Fallback to default dimensions: %sx%s", DEFAULT_WIDTH, DEFAULT_HEIGHT)
        return SniffResult(format=fmt, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT)
    width, height = dims
    logger.info("Detected %s: %sx%s", fmt.value.upper(), width, height)
    return SniffResult(format=fmt, width=width, height=height)


def get_image_dimensions(data: bytes) -> Tuple[int, int]:
    """Return ``(width, height)`` for an encoded image, falling back to default."""
    result = sniff_image(data)
    return result.width, result.height

"""Pydantic models and data schemas for the wallpaper pipeline.

This module defines the immutable value objects passed between the
sniffer, the calendar engine, the layout engine and the scene serializer.
All of them are request-scoped: they are built fresh for every request and
never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

MAX_DIMENSION = 4096
DEFAULT_WIDTH = 1438
DEFAULT_HEIGHT = 2592


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ImageFormat(str, Enum):
    """Encoded formats the sniffer can recognise."""

    PNG = "png"
    JPEG = "jpeg"
    UNKNOWN = "unknown"

    @property
    def mime_type(self) -> str:
        if self is ImageFormat.UNKNOWN:
            return "application/octet-stream"
        return f"image/{self.value}"


class CanvasDimensions(_Frozen):
    """Pixel size of the output canvas.

    Attributes:
        width: Canvas width in pixels (1..4096).
        height: Canvas height in pixels (1..4096).
    """

    width: int = Field(ge=1, le=MAX_DIMENSION)
    height: int = Field(ge=1, le=MAX_DIMENSION)


DEFAULT_DIMENSIONS = CanvasDimensions(width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT)


class SniffResult(_Frozen):
    """Format and size read from the header of an uploaded image.

    Width and height are not bounded here; the sniffer reports whatever the
    header claims and the caller decides whether the upload is acceptable.
    """

    format: ImageFormat
    width: int
    height: int


class CalendarFacts(_Frozen):
    """Calendar progress for a single instant.

    Attributes:
        year: Gregorian year of the instant.
        day_of_year: 1-based ordinal of the current day.
        total_days: Days in the year, 365 or 366.
        remaining_days: ``total_days - day_of_year``.
        progress_fraction: ``day_of_year / total_days``, unrounded.
    """

    year: int
    day_of_year: int = Field(ge=1)
    total_days: int
    remaining_days: int = Field(ge=0)
    progress_fraction: float = Field(ge=0.0, le=1.0)

    @property
    def progress_percent(self) -> float:
        return self.progress_fraction * 100

    @property
    def progress_label(self) -> str:
        return f"{self.progress_percent:.1f}%"


class TileState(str, Enum):
    PASSED = "passed"
    REMAINING = "remaining"


class Rect(_Frozen):
    x: float
    y: float
    width: float
    height: float
    radius: float = 0.0


class Tile(_Frozen):
    """One day cell of the year grid."""

    index: int
    row: int
    column: int
    x: float
    y: float
    size: float
    radius: float
    state: TileState


class TextAnchor(_Frozen):
    x: float
    y: float
    font_size: float


class CounterText(_Frozen):
    """Positions for the ``<n> days left <p>%`` line.

    The label and percentage spans are placed relative to the previous span
    using the ``dx``/``dy`` offsets.
    """

    x: float
    y: float
    number_font_size: float
    label_font_size: float
    label_dx: float
    label_dy: float
    percent_font_size: float
    percent_dx: float


class LayoutGeometry(_Frozen):
    """Every positioned primitive of the progress widget."""

    width: int
    height: int
    scale: float
    center_x: float
    box: Rect
    box_stroke_width: float
    bottom_margin: float
    title: TextAnchor
    counter: CounterText
    progress_track: Rect
    progress_fill: Rect
    grid_origin_x: float
    grid_origin_y: float
    grid_columns: int
    tiles: List[Tile]


class EmbeddedImage(_Frozen):
    """Background picture carried inline as a ``data:`` URI."""

    mime_type: str
    data_b64: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_b64}"


class EmbeddedFont(_Frozen):
    """TrueType font carried inline in the scene stylesheet."""

    family: str
    data_b64: str

    @property
    def data_uri(self) -> str:
        return f"data:font/ttf;base64,{self.data_b64}"

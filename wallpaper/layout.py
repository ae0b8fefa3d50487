"""Geometry of the year-progress widget.

Every measurement is expressed in a reference canvas of 1438x2592 pixels
and multiplied by a single uniform ``scale``, the smaller of the two axis
ratios, so the widget fits both dimensions and never distorts.

The widget is a rounded box holding four stacked bands::

    title     "2026 Year Remaining"
    counter   "74 days left 79.7%"
    progress  rounded track with a filled overlay
    grid      one tile per day, 7 rows, column-major

The box is centered horizontally and sits at 65% of the canvas height,
moved up when it would cross the bottom margin.
"""

from __future__ import annotations

import math

from .models import (
    CalendarFacts,
    CanvasDimensions,
    CounterText,
    LayoutGeometry,
    Rect,
    TextAnchor,
    Tile,
    TileState,
)

REFERENCE_WIDTH = 1438
REFERENCE_HEIGHT = 2592

GRID_ROWS = 7
MAX_YEAR_DAYS = 366
# tiles are sized for the longest year so the grid width is stable
GRID_COLUMNS = math.ceil(MAX_YEAR_DAYS / GRID_ROWS)

WIDTH_RATIO = 0.85
VERTICAL_POSITION = 0.65

BOX_PADDING = 48
BOX_RADIUS = 32
BOX_STROKE = 1.5
TILE_GAP = 8
TILE_RADIUS = 2

TITLE_AREA = 110
COUNTER_AREA = 130
PROGRESS_AREA = 30
GRID_TOP_GAP = 10
BOTTOM_PADDING = 40
BOTTOM_MARGIN = 40

TITLE_FONT = 48
TITLE_BASELINE = 70
COUNTER_BASELINE = 180
NUMBER_FONT = 120
LABEL_FONT = 36
LABEL_DX = 10
LABEL_DY = -25
PERCENT_DX = 30
PROGRESS_HEIGHT = 16


def compute_scale(width: float, height: float) -> float:
    return min(width / REFERENCE_WIDTH, height / REFERENCE_HEIGHT)


def tile_position(index: int, origin_x: float, origin_y: float, step: float):
    """Return ``(row, column, x, y)`` of a tile in the column-major grid."""
    column, row = divmod(index, GRID_ROWS)
    return row, column, origin_x + column * step, origin_y + row * step


def compute_layout(canvas: CanvasDimensions, facts: CalendarFacts) -> LayoutGeometry:
    """Lay out the widget for a canvas and a calendar state.

    The function is pure; ``canvas`` is assumed to be validated already.
    """
    width, height = canvas.width, canvas.height
    scale = compute_scale(width, height)

    indicator_width = width * WIDTH_RATIO
    box_padding = BOX_PADDING * scale
    tile_gap = TILE_GAP * scale

    available_grid_width = indicator_width - 2 * box_padding
    tile_size = (available_grid_width - (GRID_COLUMNS - 1) * tile_gap) / GRID_COLUMNS
    step = tile_size + tile_gap

    title_area = TITLE_AREA * scale
    counter_area = COUNTER_AREA * scale
    progress_area = PROGRESS_AREA * scale
    grid_area = GRID_ROWS * step + GRID_TOP_GAP * scale
    bottom_padding = BOTTOM_PADDING * scale

    indicator_height = title_area + counter_area + progress_area + grid_area + bottom_padding
    indicator_x = (width - indicator_width) / 2
    center_x = width / 2

    bottom_margin = BOTTOM_MARGIN * scale
    indicator_y = min(height * VERTICAL_POSITION, height - bottom_margin - indicator_height)

    grid_start_x = center_x - available_grid_width / 2
    grid_start_y = indicator_y + title_area + counter_area + progress_area + GRID_TOP_GAP * scale

    tiles = []
    for i in range(facts.total_days):
        row, column, x, y = tile_position(i, grid_start_x, grid_start_y, step)
        tiles.append(
            Tile(
                index=i,
                row=row,
                column=column,
                x=x,
                y=y,
                size=tile_size,
                radius=TILE_RADIUS * scale,
                state=TileState.PASSED if i < facts.day_of_year else TileState.REMAINING,
            )
        )

    progress_height = PROGRESS_HEIGHT * scale
    progress_y = indicator_y + title_area + counter_area + GRID_TOP_GAP * scale
    progress_track = Rect(
        x=grid_start_x,
        y=progress_y,
        width=available_grid_width,
        height=progress_height,
        radius=progress_height / 2,
    )
    progress_fill = Rect(
        x=grid_start_x,
        y=progress_y,
        width=available_grid_width * facts.progress_fraction,
        height=progress_height,
        radius=progress_height / 2,
    )

    return LayoutGeometry(
        width=width,
        height=height,
        scale=scale,
        center_x=center_x,
        box=Rect(
            x=indicator_x,
            y=indicator_y,
            width=indicator_width,
            height=indicator_height,
            radius=BOX_RADIUS * scale,
        ),
        box_stroke_width=BOX_STROKE * scale,
        bottom_margin=bottom_margin,
        title=TextAnchor(
            x=center_x,
            y=indicator_y + TITLE_BASELINE * scale,
            font_size=TITLE_FONT * scale,
        ),
        counter=CounterText(
            x=center_x,
            y=indicator_y + COUNTER_BASELINE * scale,
            number_font_size=NUMBER_FONT * scale,
            label_font_size=LABEL_FONT * scale,
            label_dx=LABEL_DX * scale,
            label_dy=LABEL_DY * scale,
            percent_font_size=TITLE_FONT * scale,
            percent_dx=PERCENT_DX * scale,
        ),
        progress_track=progress_track,
        progress_fill=progress_fill,
        grid_origin_x=grid_start_x,
        grid_origin_y=grid_start_y,
        grid_columns=math.ceil(facts.total_days / GRID_ROWS),
        tiles=tiles,
    )

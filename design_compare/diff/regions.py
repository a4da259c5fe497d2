"""Spatial grid and per-channel breakdowns of a pixel comparison."""

from __future__ import annotations

import math

import numpy as np

from design_compare.models.comparison import ChannelDiff, GridCell


def cell_bounds(width: int, height: int, rows: int, cols: int) -> list[tuple[int, int, int, int, int, int]]:
    """Return (row, col, x0, y0, x1, y1) for every cell, row-major.

    Cell size uses ceiling division so the last row/column may be smaller
    (or empty when the canvas is narrower than the grid).
    """
    cell_w = math.ceil(width / cols) if cols else 0
    cell_h = math.ceil(height / rows) if rows else 0
    bounds = []
    for row in range(rows):
        for col in range(cols):
            x0 = min(col * cell_w, width)
            y0 = min(row * cell_h, height)
            x1 = min(x0 + cell_w, width)
            y1 = min(y0 + cell_h, height)
            bounds.append((row, col, x0, y0, x1, y1))
    return bounds


def compute_grid(
    data_a: np.ndarray,
    data_b: np.ndarray,
    rows: int = 3,
    cols: int = 3,
) -> list[GridCell]:
    """Count exactly-differing RGBA pixels inside each grid cell.

    ``data_a`` and ``data_b`` are HxWx4 uint8 arrays of the same shape.
    """
    if rows < 1 or cols < 1:
        raise ValueError(f"Grid must have at least one row and column, got {rows}x{cols}")
    height, width = data_a.shape[:2]
    cells: list[GridCell] = []
    for row, col, x0, y0, x1, y1 in cell_bounds(width, height, rows, cols):
        region_a = data_a[y0:y1, x0:x1]
        region_b = data_b[y0:y1, x0:x1]
        cell_total = (y1 - y0) * (x1 - x0)
        cell_diff = int(np.any(region_a != region_b, axis=-1).sum()) if cell_total else 0
        cells.append(GridCell(
            row=row,
            col=col,
            total_pixels=cell_total,
            diff_pixels=cell_diff,
            diff_percentage=(cell_diff / cell_total) * 100 if cell_total > 0 else 0.0,
        ))
    return cells


def compute_channel_diff(data_a: np.ndarray, data_b: np.ndarray) -> ChannelDiff:
    """Mean absolute R/G/B divergence as a percentage of the full 0-255 range."""
    height, width = data_a.shape[:2]
    max_channel_diff = width * height * 255
    if max_channel_diff == 0:
        return ChannelDiff(r=0.0, g=0.0, b=0.0)

    delta = np.abs(data_a[..., :3].astype(np.int64) - data_b[..., :3].astype(np.int64))
    sums = delta.reshape(-1, 3).sum(axis=0)
    r, g, b = (float(s) / max_channel_diff * 100 for s in sums)
    return ChannelDiff(r=r, g=g, b=b)

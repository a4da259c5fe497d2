"""Pixel diff engine — compares a design capture against an implementation capture."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError
from pixelmatch.contrib.PIL import pixelmatch

from design_compare.diff.regions import compute_channel_diff, compute_grid
from design_compare.models.comparison import DiffMetrics

logger = logging.getLogger(__name__)

# Perceptual YIQ colour-distance tolerance (0-1).
DEFAULT_THRESHOLD = 0.1

DIFF_COLOR = (255, 0, 0)
AA_COLOR = (255, 255, 0)
FADE_ALPHA = 0.1


class ImageReadError(Exception):
    """Raised when a source image cannot be read or decoded."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        super().__init__(f"Cannot read image {self.path}: {reason}")


def compare_images(
    design_path: str | Path,
    storybook_path: str | Path,
    diff_output_path: str | Path,
    rows: int = 3,
    cols: int = 3,
    threshold: float = DEFAULT_THRESHOLD,
) -> DiffMetrics:
    """Compare two PNGs and write a diff raster highlighting mismatches.

    Images of different sizes are padded (top-left aligned, opaque white) to
    the larger of the two dimensions, so size mismatches show up as diff
    mass rather than being cropped away. Pixels that look like anti-aliasing
    in either image are left out of ``diff_pixels`` and drawn yellow in the
    raster; real mismatches are drawn red.
    """
    design_img = _read_image(design_path)
    storybook_img = _read_image(storybook_path)

    width = max(design_img.width, storybook_img.width)
    height = max(design_img.height, storybook_img.height)
    if design_img.size != storybook_img.size:
        logger.info(
            "Size mismatch: %s is %dx%d, %s is %dx%d; padding to %dx%d",
            design_path, design_img.width, design_img.height,
            storybook_path, storybook_img.width, storybook_img.height,
            width, height,
        )

    design_data = _normalize(design_img, width, height)
    storybook_data = _normalize(storybook_img, width, height)

    diff_img = Image.new("RGBA", (width, height))
    diff_pixels = pixelmatch(
        Image.fromarray(design_data),
        Image.fromarray(storybook_data),
        diff_img,
        threshold=threshold,
        includeAA=False,
        alpha=FADE_ALPHA,
        aa_color=AA_COLOR,
        diff_color=DIFF_COLOR,
    )
    total_pixels = width * height

    diff_output_path = Path(diff_output_path)
    diff_output_path.parent.mkdir(parents=True, exist_ok=True)
    diff_img.save(diff_output_path, format="PNG")
    logger.debug("Diff raster written to %s", diff_output_path)

    return DiffMetrics(
        total_pixels=total_pixels,
        diff_pixels=diff_pixels,
        diff_percentage=(diff_pixels / total_pixels) * 100 if total_pixels > 0 else 0.0,
        grid=compute_grid(design_data, storybook_data, rows, cols),
        channels=compute_channel_diff(design_data, storybook_data),
    )


def _read_image(path: str | Path) -> Image.Image:
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except FileNotFoundError as e:
        raise ImageReadError(path, "file not found") from e
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageReadError(path, str(e)) from e


def _normalize(img: Image.Image, width: int, height: int) -> np.ndarray:
    """Place ``img`` at (0, 0) on an opaque white canvas of the target size."""
    if img.size != (width, height):
        canvas = Image.new("RGBA", (width, height), (255, 255, 255, 255))
        canvas.paste(img, (0, 0))
        img = canvas
    return np.asarray(img, dtype=np.uint8).reshape(height, width, 4)


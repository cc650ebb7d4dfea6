"""Turn iteration grids into images and draw selection overlays on them."""

from __future__ import annotations

from typing import Optional

import numpy as np
import PIL.Image
import PIL.ImageDraw

from .selection import Marker, Overlay, Rectangle

try:
    from matplotlib import colormaps as _mpl_colormaps
except ImportError:  # Matplotlib < 3.5
    from matplotlib import cm as _mpl_colormaps  # type: ignore

OVERLAY_COLOR = (255, 0, 0)


def get_colormap(name):
    return _mpl_colormaps.get_cmap(name)


def colorize(
    grid: np.ndarray,
    width: int,
    height: int,
    max_iterations: int,
    *,
    colormap: Optional[str] = None,
) -> np.ndarray:
    """Return an ``(height, width, 3)`` uint8 image of ``grid``.

    Without a colormap, points are shaded from white (escape at once) to
    black (never escape). With a matplotlib colormap name, escaping points
    are coloured by their normalised count and interior points stay black.
    """

    counts = np.asarray(grid).reshape(height, width)
    scaled = counts.astype(np.float64) / float(max_iterations)

    if colormap is None:
        shade = np.uint8(255) - (scaled * 255).astype(np.uint8)
        return np.repeat(shade[..., np.newaxis], 3, axis=-1)

    cmap = get_colormap(colormap)
    rgba = np.array(cmap(scaled), copy=True)
    inside = counts >= max_iterations
    for k in (0, 1, 2):
        rgba[..., k] = np.where(inside, 0.0, rgba[..., k])
    return np.uint8(np.clip(rgba[..., :3] * 255, 0, 255))


def draw_overlay(image: PIL.Image.Image, overlay: Optional[Overlay], color=OVERLAY_COLOR) -> PIL.Image.Image:
    """Draw a selection marker or rectangle outline on ``image`` in place."""

    if overlay is None:
        return image
    if image.mode != "RGB":
        image = image.convert("RGB")

    if isinstance(overlay, Marker):
        if 0 <= overlay.x < image.width and 0 <= overlay.y < image.height:
            image.putpixel((overlay.x, overlay.y), tuple(color))
    elif isinstance(overlay, Rectangle):
        draw = PIL.ImageDraw.Draw(image)
        left, right = sorted((overlay.x1, overlay.x2))
        top, bottom = sorted((overlay.y1, overlay.y2))
        draw.rectangle([(left, top), (right, bottom)], outline=tuple(color))
    else:
        raise TypeError(f"Unknown overlay {overlay!r}.")
    return image


def frame_to_image(frame, *, colormap: Optional[str] = None) -> PIL.Image.Image:
    """Colourise a session frame and draw its overlay."""

    pixels = colorize(frame.grid, frame.width, frame.height, frame.max_iterations, colormap=colormap)
    image = PIL.Image.fromarray(pixels)
    return draw_overlay(image, frame.overlay)

"""Row-band decomposition of a render across parallel workers."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .errors import ConfigurationError, RenderCancelled
from .evaluator import escape_counts
from .viewport import Viewport, pixel_to_plane

Kernel = Callable[..., np.ndarray]


@dataclass(frozen=True)
class RowBand:
    """A contiguous slice ``[row_start, row_stop)`` of pixel rows owned by one worker."""

    index: int
    row_start: int
    row_stop: int

    @property
    def rows(self) -> int:
        return self.row_stop - self.row_start

    def bounds(self, viewport: Viewport) -> tuple[float, float, float, float]:
        """Plane sub-rectangle covered by this band."""

        x1, y1 = pixel_to_plane(viewport, 0, self.row_start)
        x2, y2 = pixel_to_plane(viewport, viewport.width, self.row_stop)
        return x1, y1, x2, y2

    def viewport(self, parent: Viewport) -> Viewport:
        """Band-local viewport over this band's sub-rectangle, on the parent's sampling lattice."""

        x1, y1, x2, y2 = self.bounds(parent)
        return parent.band(x1, y1, x2, y2, self.row_start, self.rows)

    def coordinates(self, band_viewport: Viewport) -> tuple[np.ndarray, np.ndarray]:
        """Row-major plane coordinates of every pixel of ``band_viewport``, rows counted from its top."""

        cols = np.arange(band_viewport.width, dtype=np.float64)
        rows = np.arange(self.rows, dtype=np.float64)
        px, py = np.meshgrid(cols, rows)
        real, imag = pixel_to_plane(band_viewport, px.reshape(-1), py.reshape(-1))
        return real, imag


def validate_limits(max_iterations: int, thread_count: int) -> None:
    if int(max_iterations) <= 0:
        raise ConfigurationError(f"max_iterations must be positive, got {max_iterations}.")
    if int(thread_count) <= 0:
        raise ConfigurationError(f"thread_count must be positive, got {thread_count}.")


def split_rows(height: int, thread_count: int) -> list[RowBand]:
    """Partition ``height`` rows into ``thread_count`` bands; the last one takes the remainder."""

    if thread_count <= 0:
        raise ConfigurationError(f"thread_count must be positive, got {thread_count}.")
    per_band = height // thread_count
    bands = []
    for index in range(thread_count):
        row_start = index * per_band
        row_stop = height if index == thread_count - 1 else row_start + per_band
        bands.append(RowBand(index=index, row_start=row_start, row_stop=row_stop))
    return bands


def _render_band(
    viewport: Viewport,
    band: RowBand,
    max_iterations: int,
    kernel: Kernel,
    device: Optional[str],
    cancel: Optional[threading.Event],
) -> Optional[np.ndarray]:
    if cancel is not None and cancel.is_set():
        return None
    band_viewport = band.viewport(viewport)
    if band.rows == 0:
        return np.zeros(0, dtype=np.int32)
    real, imag = band.coordinates(band_viewport)
    counts = kernel(real, imag, max_iterations, device=device)
    return np.asarray(counts, dtype=np.int32).reshape(-1)


def render(
    viewport: Viewport,
    max_iterations: int,
    thread_count: int,
    *,
    kernel: Kernel = escape_counts,
    device: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> np.ndarray:
    """Compute the iteration grid of ``viewport`` with ``thread_count`` parallel workers.

    Each worker owns one row band and its output buffer. The call blocks until
    every worker has returned and concatenates the bands in row order. When
    ``cancel`` is set before the join completes, :class:`RenderCancelled` is
    raised and no partial grid is returned.
    """

    validate_limits(max_iterations, thread_count)
    viewport.validate()

    bands = split_rows(viewport.height, thread_count)
    with ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix="mandelview-band") as pool:
        futures = [
            pool.submit(_render_band, viewport, band, int(max_iterations), kernel, device, cancel)
            for band in bands
        ]
        results = [future.result() for future in futures]

    if cancel is not None and cancel.is_set():
        raise RenderCancelled("Render cancelled before all row bands were joined.")

    grid = np.concatenate(results) if results else np.zeros(0, dtype=np.int32)
    if grid.size != viewport.size:
        raise RuntimeError(f"Row bands produced {grid.size} pixels, expected {viewport.size}.")
    grid.setflags(write=False)
    return grid

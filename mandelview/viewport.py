"""Viewport model: the plane rectangle mapped onto the pixel grid."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Union

import numpy as np

from .errors import DegenerateViewportError

DEFAULT_BOUNDS = (-2.0, -1.25, 0.5, 1.25)

Coordinate = Union[float, np.ndarray]


@dataclass(frozen=True)
class SamplingLattice:
    """Origin, per-pixel steps and first row of the pixel grid a band samples from.

    A row band carries its parent's lattice so its pixels land on exactly the
    same plane coordinates the full view would give them.
    """

    x_min: float
    y_min: float
    x_step: float
    y_step: float
    row_offset: int = 0


@dataclass(frozen=True)
class Viewport:
    """Plane rectangle ``(x1, y1)``-``(x2, y2)`` rendered at ``width`` x ``height`` pixels.

    ``(x1, y1)`` is the corner drawn at the top-left pixel. The corners are not
    required to be ordered; an inverted rectangle renders mirrored.
    """

    x1: float = DEFAULT_BOUNDS[0]
    y1: float = DEFAULT_BOUNDS[1]
    x2: float = DEFAULT_BOUNDS[2]
    y2: float = DEFAULT_BOUNDS[3]
    width: int = 800
    height: int = 600
    allow_distortion: bool = False
    lattice: Optional[SamplingLattice] = None

    @property
    def corners(self) -> tuple[float, float, float, float]:
        return (self.x1, self.y1, self.x2, self.y2)

    @property
    def ratios(self) -> tuple[float, float]:
        return derive_ratios(self)

    @property
    def xratio(self) -> float:
        return self.ratios[0]

    @property
    def yratio(self) -> float:
        return self.ratios[1]

    @property
    def size(self) -> int:
        return self.width * self.height

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise DegenerateViewportError(
                f"Viewport must have a positive pixel size, got {self.width}x{self.height}."
            )
        if not all(math.isfinite(value) for value in self.corners):
            raise DegenerateViewportError(f"Viewport corners must be finite, got {self.corners}.")

    def sampling_lattice(self) -> SamplingLattice:
        if self.lattice is not None:
            return self.lattice
        xratio, yratio = derive_ratios(self)
        return SamplingLattice(x_min=self.x1, y_min=self.y1, x_step=xratio, y_step=yratio)

    def band(self, x1: float, y1: float, x2: float, y2: float, row_start: int, rows: int) -> "Viewport":
        """Sub-viewport covering ``rows`` rows from ``row_start``, sampled on this view's lattice."""

        parent = self.sampling_lattice()
        lattice = replace(parent, row_offset=parent.row_offset + int(row_start))
        return replace(self, x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2), height=int(rows), lattice=lattice)

    def reset(self) -> "Viewport":
        x1, y1, x2, y2 = DEFAULT_BOUNDS
        return replace(self, x1=x1, y1=y1, x2=x2, y2=y2, lattice=None)

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, width=int(width), height=int(height), lattice=None)

    def with_corners(self, x1: float, y1: float, x2: float, y2: float) -> "Viewport":
        return replace(self, x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2), lattice=None)

    def with_distortion(self, allow_distortion: bool) -> "Viewport":
        if bool(allow_distortion) == self.allow_distortion:
            return self
        return replace(self, allow_distortion=bool(allow_distortion), lattice=None)


def derive_ratios(viewport: Viewport) -> tuple[float, float]:
    """Return the plane distance covered by one pixel along each axis.

    With distortion disabled the horizontal ratio is locked to the vertical
    one, so the rendered region keeps a square pixel aspect and ``x2`` only
    bounds the selection, not the sampling. A band keeps its parent's ratios.
    """

    viewport.validate()
    if viewport.lattice is not None:
        return viewport.lattice.x_step, viewport.lattice.y_step
    yratio = (viewport.y2 - viewport.y1) / viewport.height
    if viewport.allow_distortion:
        xratio = (viewport.x2 - viewport.x1) / viewport.width
    else:
        xratio = yratio
    return xratio, yratio


def pixel_to_plane(viewport: Viewport, px: Coordinate, py: Coordinate) -> tuple[Coordinate, Coordinate]:
    """Map pixel position(s) to plane coordinate(s) ``(real, imag)``.

    Accepts scalars or numpy arrays. Both the renderer and the selection
    gesture go through this function so a zoom box lands exactly on the
    pixels that were drawn. Rows of a band are counted from the band's top.
    """

    lattice = viewport.sampling_lattice()
    viewport.validate()
    if isinstance(px, np.ndarray) or isinstance(py, np.ndarray):
        rows = np.asarray(py, dtype=np.float64) + np.float64(lattice.row_offset)
        real = np.float64(lattice.x_min) + np.float64(lattice.x_step) * np.asarray(px, dtype=np.float64)
        imag = np.float64(lattice.y_min) + np.float64(lattice.y_step) * rows
        return real, imag
    rows = float(py) + float(lattice.row_offset)
    return lattice.x_min + lattice.x_step * float(px), lattice.y_min + lattice.y_step * rows

"""Single-entry cache that skips recomputing an unchanged view."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .config import Configuration
from .scheduler import render
from .viewport import Viewport


@dataclass(frozen=True)
class CacheSnapshot:
    """The view a stored grid was computed for. Compared with exact float equality."""

    x1: float
    y1: float
    x2: float
    y2: float
    width: int
    height: int
    xratio: float
    yratio: float
    max_iterations: int

    @classmethod
    def capture(cls, viewport: Viewport, max_iterations: int) -> "CacheSnapshot":
        xratio, yratio = viewport.ratios
        return cls(
            x1=viewport.x1,
            y1=viewport.y1,
            x2=viewport.x2,
            y2=viewport.y2,
            width=viewport.width,
            height=viewport.height,
            xratio=xratio,
            yratio=yratio,
            max_iterations=int(max_iterations),
        )


class RenderCache:
    """Hold the most recent ``(snapshot, grid)`` pair and serve it while the view is unchanged."""

    def __init__(self, renderer: Callable[..., np.ndarray] = render, *, device: Optional[str] = None):
        self._renderer = renderer
        self._device = device
        self.snapshot: Optional[CacheSnapshot] = None
        self.grid: Optional[np.ndarray] = None
        self.recomputes = 0
        self.elapsed: Optional[float] = None
        self.last_was_hit = False

    def clear(self) -> None:
        self.snapshot = None
        self.grid = None

    def get_or_compute(
        self,
        viewport: Viewport,
        config: Configuration,
        force_invalidate: bool = False,
    ) -> np.ndarray:
        config.validate()
        viewport = viewport.with_distortion(config.allow_distortion)
        snapshot = CacheSnapshot.capture(viewport, config.max_iterations)

        if not force_invalidate and self.grid is not None and snapshot == self.snapshot:
            self.last_was_hit = True
            return self.grid

        started = time.perf_counter()
        grid = self._renderer(
            viewport,
            config.max_iterations,
            config.thread_count,
            device=self._device,
        )
        self.elapsed = time.perf_counter() - started
        self.snapshot, self.grid = snapshot, grid
        self.recomputes += 1
        self.last_was_hit = False
        return grid

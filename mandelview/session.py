"""Explorer session: viewport, render cache and selection state behind one object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .cache import RenderCache
from .config import Configuration
from .scheduler import render
from .selection import Marker, Overlay, SelectionGesture, SelectionState
from .viewport import Viewport


@dataclass(frozen=True)
class Frame:
    """Everything a display needs to draw the current view."""

    grid: np.ndarray
    width: int
    height: int
    max_iterations: int
    overlay: Optional[Overlay]
    elapsed: Optional[float]
    cached: bool


class ExplorerSession:
    """Handle resize, click, generate and reset requests coming from a UI."""

    def __init__(
        self,
        config: Optional[Configuration] = None,
        width: int = 800,
        height: int = 600,
        *,
        renderer: Callable[..., np.ndarray] = render,
        device: Optional[str] = None,
    ):
        self.config = config if config is not None else Configuration()
        self.config.validate()
        self.viewport = Viewport(width=width, height=height, allow_distortion=self.config.allow_distortion)
        self.cache = RenderCache(renderer, device=device)
        self.gesture = SelectionGesture()

    @property
    def selection_state(self) -> SelectionState:
        return self.gesture.state

    def configure(self, config: Configuration) -> None:
        config.validate()
        self.config = config
        self.viewport = self.viewport.with_distortion(config.allow_distortion)

    def resize(self, width: int, height: int) -> None:
        self.viewport = self.viewport.resized(width, height)

    def click(self, px: float, py: float) -> Frame:
        outcome = self.gesture.click(self.viewport, px, py)
        self.viewport = outcome.viewport
        return self._frame(force_invalidate=True, overlay=outcome.overlay)

    def generate(self) -> Frame:
        pending = self.gesture.pending
        overlay = Marker(*pending.pixel) if pending is not None else None
        return self._frame(force_invalidate=False, overlay=overlay)

    def reset(self) -> Frame:
        self.gesture.cancel()
        self.viewport = self.viewport.reset()
        return self._frame(force_invalidate=False, overlay=None)

    def _frame(self, *, force_invalidate: bool, overlay: Optional[Overlay]) -> Frame:
        grid = self.cache.get_or_compute(self.viewport, self.config, force_invalidate)
        return Frame(
            grid=grid,
            width=self.viewport.width,
            height=self.viewport.height,
            max_iterations=self.config.max_iterations,
            overlay=overlay,
            elapsed=self.cache.elapsed,
            cached=self.cache.last_was_hit,
        )

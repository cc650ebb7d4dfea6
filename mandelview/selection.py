"""Two-click rectangle selection that rewrites the viewport to the selected box."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from .viewport import Viewport, pixel_to_plane


class SelectionState(enum.Enum):
    IDLE = "idle"
    AWAITING_SECOND_CLICK = "awaiting_second_click"


@dataclass(frozen=True)
class Marker:
    """Single pixel marking the first corner of a selection in progress."""

    x: int
    y: int


@dataclass(frozen=True)
class Rectangle:
    """Outline between the two clicked pixels of a completed selection."""

    x1: int
    y1: int
    x2: int
    y2: int


Overlay = Union[Marker, Rectangle]


@dataclass(frozen=True)
class PendingSelection:
    pixel: tuple[int, int]
    corner: tuple[float, float]


@dataclass(frozen=True)
class ClickOutcome:
    viewport: Viewport
    overlay: Overlay
    committed: bool


class SelectionGesture:
    """State machine alternating between ``IDLE`` and ``AWAITING_SECOND_CLICK``."""

    def __init__(self) -> None:
        self._pending: Optional[PendingSelection] = None

    @property
    def state(self) -> SelectionState:
        if self._pending is None:
            return SelectionState.IDLE
        return SelectionState.AWAITING_SECOND_CLICK

    @property
    def pending(self) -> Optional[PendingSelection]:
        return self._pending

    def cancel(self) -> None:
        self._pending = None

    def click(self, viewport: Viewport, px: float, py: float) -> ClickOutcome:
        """Feed one click at pixel ``(px, py)`` of the currently displayed ``viewport``.

        The first click only records the new top-left corner. The second click
        maps its pixel through the same, not yet updated, viewport and commits
        both corners. Inverted boxes are committed as given.
        """

        pixel = (int(px), int(py))
        corner = pixel_to_plane(viewport, px, py)

        if self._pending is None:
            self._pending = PendingSelection(pixel=pixel, corner=corner)
            return ClickOutcome(viewport=viewport, overlay=Marker(*pixel), committed=False)

        first = self._pending
        self._pending = None
        zoomed = viewport.with_corners(first.corner[0], first.corner[1], corner[0], corner[1])
        overlay = Rectangle(first.pixel[0], first.pixel[1], pixel[0], pixel[1])
        return ClickOutcome(viewport=zoomed, overlay=overlay, committed=True)

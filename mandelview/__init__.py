"""Public API for the Mandelbrot rectangle-zoom explorer."""

from .cache import CacheSnapshot, RenderCache
from .config import Configuration, load_configuration, save_configuration
from .errors import ConfigurationError, DegenerateViewportError, MandelviewError, RenderCancelled
from .evaluator import escape_counts, evaluate
from .scheduler import RowBand, render, split_rows
from .selection import Marker, Rectangle, SelectionGesture, SelectionState
from .session import ExplorerSession, Frame
from .viewport import DEFAULT_BOUNDS, SamplingLattice, Viewport, derive_ratios, pixel_to_plane

__all__ = [
    "CacheSnapshot",
    "Configuration",
    "ConfigurationError",
    "DEFAULT_BOUNDS",
    "DegenerateViewportError",
    "ExplorerSession",
    "Frame",
    "MandelviewError",
    "Marker",
    "Rectangle",
    "RenderCache",
    "RenderCancelled",
    "RowBand",
    "SamplingLattice",
    "SelectionGesture",
    "SelectionState",
    "Viewport",
    "derive_ratios",
    "escape_counts",
    "evaluate",
    "load_configuration",
    "pixel_to_plane",
    "render",
    "save_configuration",
    "split_rows",
]

"""Exceptions raised by the rendering core."""


class MandelviewError(Exception):
    """Base class for errors reported by :mod:`mandelview`."""


class ConfigurationError(MandelviewError, ValueError):
    """The render configuration cannot be scheduled (non-positive limits, bad values)."""


class DegenerateViewportError(MandelviewError, ValueError):
    """The viewport has no pixels or non-finite corners, so its ratios are undefined."""


class RenderCancelled(MandelviewError, RuntimeError):
    """A render was abandoned through its cancellation event before it finished."""

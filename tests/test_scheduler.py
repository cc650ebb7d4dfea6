import threading
import time

import numpy as np
import pytest

from mandelview import (
    ConfigurationError,
    DegenerateViewportError,
    RenderCancelled,
    Viewport,
    evaluate,
    pixel_to_plane,
    render,
    split_rows,
)
from mandelview.scheduler import RowBand


@pytest.fixture
def viewport():
    return Viewport(width=23, height=17)


def test_split_rows_last_band_takes_remainder():
    bands = split_rows(17, 5)
    assert [band.rows for band in bands] == [3, 3, 3, 3, 5]
    assert bands[0].row_start == 0
    assert bands[-1].row_stop == 17
    for previous, band in zip(bands, bands[1:]):
        assert band.row_start == previous.row_stop


def test_split_rows_more_threads_than_rows():
    bands = split_rows(2, 4)
    assert [band.rows for band in bands] == [0, 0, 0, 2]
    assert sum(band.rows for band in bands) == 2


@pytest.mark.parametrize("thread_count", [0, -3])
def test_split_rows_rejects_non_positive(thread_count):
    with pytest.raises(ConfigurationError):
        split_rows(10, thread_count)


def test_band_bounds_slice_the_plane(viewport):
    bands = split_rows(viewport.height, 2)
    top = bands[0].bounds(viewport)
    bottom = bands[1].bounds(viewport)
    assert top[0] == viewport.x1
    assert top[1] == viewport.y1
    assert top[3] == bottom[1]
    assert bottom[3] == pytest.approx(viewport.y2)


@pytest.mark.parametrize("thread_count", [2, 3, 5])
def test_parallel_bands_match_single_band(viewport, thread_count):
    assert viewport.height % thread_count != 0
    sequential = render(viewport, 40, 1)
    parallel = render(viewport, 40, thread_count)
    assert parallel.shape == (viewport.width * viewport.height,)
    np.testing.assert_array_equal(parallel, sequential)


def test_grid_matches_per_pixel_evaluation():
    viewport = Viewport(width=9, height=7, allow_distortion=True)
    grid = render(viewport, 25, 3)
    expected = []
    for py in range(viewport.height):
        for px in range(viewport.width):
            expected.append(evaluate(pixel_to_plane(viewport, px, py), 25))
    assert grid.tolist() == expected


def test_grid_is_read_only(viewport):
    grid = render(viewport, 10, 2)
    assert not grid.flags.writeable
    assert grid.min() >= 0
    assert grid.max() <= 10


def test_band_order_survives_out_of_order_completion():
    viewport = Viewport(width=4, height=6)
    yratio = viewport.yratio
    finished = []
    lock = threading.Lock()

    def row_index_kernel(real, imag, max_iterations, device=None):
        # The first band sleeps so later bands finish before it.
        if imag[0] == viewport.y1:
            time.sleep(0.2)
        with lock:
            finished.append(float(imag[0]))
        return np.rint((imag - viewport.y1) / yratio).astype(np.int32)

    grid = render(viewport, 20, 3, kernel=row_index_kernel)
    assert finished[-1] == viewport.y1
    assert grid.tolist() == [row for row in range(6) for _ in range(4)]


def test_each_worker_only_sees_its_band():
    viewport = Viewport(width=5, height=10)
    seen = []
    lock = threading.Lock()

    def recording_kernel(real, imag, max_iterations, device=None):
        with lock:
            seen.append(real.size)
        return np.zeros(real.size, dtype=np.int32)

    render(viewport, 5, 3, kernel=recording_kernel)
    assert sorted(seen) == [15, 15, 20]


@pytest.mark.parametrize("max_iterations,thread_count", [(0, 2), (10, 0), (-1, 1), (10, -2)])
def test_bad_limits_rejected_before_scheduling(viewport, max_iterations, thread_count):
    calls = []

    def kernel(real, imag, max_iterations, device=None):
        calls.append(1)
        return np.zeros(real.size, dtype=np.int32)

    with pytest.raises(ConfigurationError):
        render(viewport, max_iterations, thread_count, kernel=kernel)
    assert calls == []


def test_degenerate_viewport_rejected(viewport):
    with pytest.raises(DegenerateViewportError):
        render(viewport.resized(0, 10), 10, 2)
    with pytest.raises(DegenerateViewportError):
        render(viewport.resized(10, 0), 10, 2)


def test_cancelled_render_returns_nothing(viewport):
    cancel = threading.Event()
    cancel.set()
    calls = []

    def kernel(real, imag, max_iterations, device=None):
        calls.append(1)
        return np.zeros(real.size, dtype=np.int32)

    with pytest.raises(RenderCancelled):
        render(viewport, 10, 3, kernel=kernel, cancel=cancel)
    assert calls == []


def test_cancel_during_render():
    viewport = Viewport(width=3, height=4)
    cancel = threading.Event()

    def cancelling_kernel(real, imag, max_iterations, device=None):
        cancel.set()
        return np.zeros(real.size, dtype=np.int32)

    with pytest.raises(RenderCancelled):
        render(viewport, 10, 2, kernel=cancelling_kernel, cancel=cancel)


def test_row_band_coordinates_are_row_major():
    viewport = Viewport(width=3, height=4)
    band = RowBand(index=1, row_start=2, row_stop=4)
    real, imag = band.coordinates(band.viewport(viewport))
    assert real.size == 6
    xratio, yratio = viewport.ratios
    assert real[1] == viewport.x1 + xratio * 1.0
    assert imag[0] == viewport.y1 + yratio * 2.0
    assert imag[3] == viewport.y1 + yratio * 3.0


def test_band_viewport_covers_its_sub_rectangle():
    viewport = Viewport(width=4, height=7, allow_distortion=True)
    band = split_rows(viewport.height, 3)[1]
    band_viewport = band.viewport(viewport)

    assert band_viewport.corners == band.bounds(viewport)
    assert (band_viewport.width, band_viewport.height) == (4, 2)
    assert band_viewport.ratios == viewport.ratios
    assert pixel_to_plane(band_viewport, 3, 1) == pixel_to_plane(viewport, 3, band.row_start + 1)


def test_every_band_derives_its_sub_rectangle(monkeypatch):
    derived = []
    lock = threading.Lock()
    original_bounds = RowBand.bounds

    def recording_bounds(self, viewport):
        with lock:
            derived.append(self.index)
        return original_bounds(self, viewport)

    monkeypatch.setattr(RowBand, "bounds", recording_bounds)
    render(Viewport(width=4, height=7), 5, 3)
    assert sorted(derived) == [0, 1, 2]

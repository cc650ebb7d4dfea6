import numpy as np
import pytest

from mandelview import Viewport, escape_counts, evaluate, pixel_to_plane


@pytest.mark.parametrize("max_iterations", [1, 2, 10, 300])
def test_origin_never_escapes(max_iterations):
    assert evaluate(0j, max_iterations) == max_iterations


@pytest.mark.parametrize("max_iterations", [1, 2, 10, 300])
def test_two_escapes_immediately(max_iterations):
    assert evaluate(complex(2, 0), max_iterations) <= 1


def test_far_point_escapes_after_one_step():
    assert evaluate(complex(10, 10), 50) == 1


def test_period_two_bulb_stays_bounded():
    assert evaluate(complex(-1, 0), 500) == 500


def test_escape_count_of_small_real_point():
    # 0 -> 0.5 -> 0.75 -> 1.0625 -> 1.62890625 -> 3.15...
    assert evaluate(complex(0.5, 0), 100) == 5


def test_kernel_matches_scalar_evaluator():
    rng = np.random.default_rng(7)
    real = rng.uniform(-2.2, 0.8, size=257)
    imag = rng.uniform(-1.3, 1.3, size=257)

    counts = escape_counts(real, imag, 64)

    expected = [evaluate(complex(r, i), 64) for r, i in zip(real, imag)]
    assert counts.dtype == np.int32
    assert counts.tolist() == expected


def test_kernel_counts_stay_in_range():
    real = np.linspace(-2.5, 1.0, 101)
    imag = np.zeros_like(real)
    counts = escape_counts(real, imag, 30)
    assert counts.min() >= 0
    assert counts.max() <= 30


def test_kernel_empty_input():
    counts = escape_counts(np.array([]), np.array([]), 10)
    assert counts.shape == (0,)


def test_kernel_rejects_mismatched_arrays():
    with pytest.raises(ValueError):
        escape_counts(np.zeros(3), np.zeros(4), 10)


def test_plane_coordinate_pairs_are_accepted():
    viewport = Viewport()
    point = pixel_to_plane(viewport, 400, 300)
    assert evaluate(point, 50) == evaluate(complex(*point), 50)
    assert evaluate((0.0, 0.0), 12) == 12
    assert evaluate((2.0, 0.0), 12) <= 1

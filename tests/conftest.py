import os

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")

import numpy as np
import pytest

from mandelview import escape_counts


class CountingKernel:
    """Wraps the escape kernel and records how often and on how many points it ran."""

    def __init__(self):
        self.calls = 0
        self.points = 0

    def __call__(self, real, imag, max_iterations, device=None):
        self.calls += 1
        self.points += np.asarray(real).size
        return escape_counts(real, imag, max_iterations, device=device)


@pytest.fixture
def counting_kernel():
    return CountingKernel()

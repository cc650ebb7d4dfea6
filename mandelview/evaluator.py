"""Escape-time evaluation of the Mandelbrot recurrence."""

from __future__ import annotations

import numbers
from typing import Optional, Sequence, Union

import numpy as np
import tensorflow as tf

ESCAPE_RADIUS = 2
_ESCAPE_RADIUS_SQUARED = float(ESCAPE_RADIUS * ESCAPE_RADIUS)


def evaluate(c: Union[complex, Sequence[float]], max_iterations: int) -> int:
    """Return the number of iterations of ``z = z*z + c`` before ``|z| >= 2``.

    The orbit starts at ``z = 0``. Points that never escape return exactly
    ``max_iterations``. ``c`` is a complex number or a ``(real, imag)`` pair as
    returned by :func:`mandelview.viewport.pixel_to_plane`.
    """

    if isinstance(c, numbers.Complex):
        c_real, c_imag = float(c.real), float(c.imag)
    else:
        real, imag = c
        c_real, c_imag = float(real), float(imag)
    z_real = 0.0
    z_imag = 0.0
    n = 0
    while n < max_iterations and z_real * z_real + z_imag * z_imag < _ESCAPE_RADIUS_SQUARED:
        z_real, z_imag = z_real * z_real - z_imag * z_imag + c_real, 2.0 * z_real * z_imag + c_imag
        n += 1
    return n


@tf.function
def _escape_step(
    z_real: tf.Tensor,
    z_imag: tf.Tensor,
    c_real: tf.Tensor,
    c_imag: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every orbit that is still inside the escape radius by one step."""

    real_sq = z_real * z_real
    imag_sq = z_imag * z_imag
    horizon = tf.constant(_ESCAPE_RADIUS_SQUARED, dtype=z_real.dtype)
    active = tf.logical_and(active, real_sq + imag_sq < horizon)
    next_real = real_sq - imag_sq + c_real
    next_imag = 2.0 * z_real * z_imag + c_imag
    z_real = tf.where(active, next_real, z_real)
    z_imag = tf.where(active, next_imag, z_imag)
    ns = ns + tf.cast(active, tf.int32)
    return z_real, z_imag, ns, active


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[None], dtype=tf.float64),
        tf.TensorSpec(shape=[None], dtype=tf.float64),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    )
)
def _escape_run(c_real: tf.Tensor, c_imag: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the recurrence with a TensorFlow while loop until all orbits settle."""

    i = tf.constant(0, dtype=tf.int32)
    z_real = tf.zeros_like(c_real)
    z_imag = tf.zeros_like(c_imag)
    ns = tf.zeros_like(c_real, dtype=tf.int32)
    active = tf.ones_like(ns, dtype=tf.bool)

    def cond(i, z_real, z_imag, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, z_real, z_imag, ns, active):
        z_real, z_imag, ns, active = _escape_step(z_real, z_imag, c_real, c_imag, ns, active)
        return i + 1, z_real, z_imag, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, z_real, z_imag, ns, active))
    return ns


def escape_counts(
    real: np.ndarray,
    imag: np.ndarray,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Apply :func:`evaluate` element-wise to flat arrays of plane coordinates."""

    real = np.ascontiguousarray(real, dtype=np.float64).reshape(-1)
    imag = np.ascontiguousarray(imag, dtype=np.float64).reshape(-1)
    if real.shape != imag.shape:
        raise ValueError("real and imag coordinate arrays must have the same length.")
    if real.size == 0:
        return np.zeros(0, dtype=np.int32)

    with tf.device(device if device is not None else "/CPU:0"):
        ns = _escape_run(
            tf.convert_to_tensor(real, dtype=tf.float64),
            tf.convert_to_tensor(imag, dtype=tf.float64),
            tf.constant(int(max_iterations), dtype=tf.int32),
        )
    return ns.numpy().astype(np.int32, copy=False)

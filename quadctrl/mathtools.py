"""Rotations, homogeneous transforms and running statistics."""

from __future__ import annotations

import math
import sys
import warnings
from typing import TextIO

import numpy as np
from numpy.typing import ArrayLike

__all__ = [
    "AvgCov",
    "saturation",
    "kill_zero_offset",
    "inv_normalize",
    "window_func",
    "update_average",
    "update_covariance",
    "update_avg_cov",
    "rotx",
    "roty",
    "rotz",
    "skew",
    "rpy_to_rot_mat",
    "rot_mat_to_rpy",
    "quat_to_rot_mat",
    "rot_mat_to_exp",
    "homo_matrix",
    "homo_matrix_inverse",
    "homo_vec",
    "no_homo_vec",
    "vec12_to_vec34",
    "vec34_to_vec12",
]


def saturation(value: float, limits: ArrayLike) -> float:
    """Clamp ``value`` into the range spanned by the two ``limits`` (any order)."""
    a, b = (float(x) for x in np.asarray(limits, dtype=float).reshape(-1)[:2])
    low, high = (b, a) if a > b else (a, b)
    if value < low:
        return low
    if value > high:
        return high
    return value


def kill_zero_offset(value: float, limit: float) -> float:
    """Return 0 when ``value`` lies strictly inside ``(-limit, limit)``."""
    if -limit < value < limit:
        return 0
    return value


def inv_normalize(
    value: float,
    min_value: float,
    max_value: float,
    min_lim: float = -1.0,
    max_lim: float = 1.0,
) -> float:
    """Map ``value`` from ``[min_lim, max_lim]`` onto ``[min_value, max_value]``."""
    return (value - min_lim) * (max_value - min_value) / (max_lim - min_lim) + min_value


def window_func(
    x: float, window_ratio: float, x_range: float = 1.0, y_range: float = 1.0
) -> float:
    """Trapezoidal window: ramps up, holds ``y_range``, ramps down over ``x_range``."""
    if x < 0 or x > x_range:
        warnings.warn(
            f"[windowFunc] The x={x}, which should between [0, xRange]",
            RuntimeWarning,
            stacklevel=2,
        )
    if window_ratio <= 0 or window_ratio >= 0.5:
        warnings.warn(
            f"[windowFunc] The windowRatio={window_ratio}, which should between [0, 0.5]",
            RuntimeWarning,
            stacklevel=2,
        )
    if x / x_range < window_ratio:
        return x * y_range / (x_range * window_ratio)
    if x / x_range > 1 - window_ratio:
        return y_range * (x_range - x) / (x_range * window_ratio)
    return y_range


def update_average(exp: ArrayLike, new_value: ArrayLike, n: float) -> np.ndarray:
    """Return the running mean after the ``n``-th sample ``new_value``."""
    exp = np.asarray(exp, dtype=float)
    new_value = np.asarray(new_value, dtype=float)
    if exp.shape[0] != new_value.shape[0]:
        raise ValueError("The size of updateAverage is error")
    if abs(n - 1) < 0.001:
        return new_value.copy()
    return exp + (new_value - exp) / n


def update_covariance(
    cov: ArrayLike, exp_past: ArrayLike, new_value: ArrayLike, n: float
) -> np.ndarray:
    """Return the running (population) covariance after the ``n``-th sample."""
    cov = np.asarray(cov, dtype=float)
    exp_past = np.asarray(exp_past, dtype=float).reshape(-1)
    new_value = np.asarray(new_value, dtype=float).reshape(-1)
    if (
        cov.ndim != 2
        or cov.shape[0] != cov.shape[1]
        or cov.shape[0] != exp_past.shape[0]
        or exp_past.shape[0] != new_value.shape[0]
    ):
        raise ValueError("The size of updateCovariance is error")
    if abs(n - 1) < 0.1:
        return np.zeros_like(cov)
    diff = new_value - exp_past
    return cov * (n - 1) / n + np.outer(diff, diff) * (n - 1) / (n * n)


def update_avg_cov(
    cov: ArrayLike, exp: ArrayLike, new_value: ArrayLike, n: float
) -> tuple[np.ndarray, np.ndarray]:
    """Update covariance and then mean; return ``(cov, exp)``."""
    new_cov = update_covariance(cov, exp, new_value, n)
    new_exp = update_average(exp, new_value, n)
    return new_cov, new_exp


def rotx(theta: float) -> np.ndarray:
    s, c = math.sin(theta), math.cos(theta)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def roty(theta: float) -> np.ndarray:
    s, c = math.sin(theta), math.cos(theta)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotz(theta: float) -> np.ndarray:
    s, c = math.sin(theta), math.cos(theta)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def skew(v: float | ArrayLike) -> np.ndarray:
    """Skew-symmetric matrix: 2x2 for a scalar, 3x3 for a 3-vector."""
    if np.ndim(v) == 0:
        w = float(v)
        return np.array([[0.0, -w], [w, 0.0]])
    x, y, z = (float(a) for a in np.asarray(v, dtype=float).reshape(3))
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def rpy_to_rot_mat(roll: float, pitch: float, yaw: float) -> np.ndarray:
    return rotz(yaw) @ roty(pitch) @ rotx(roll)


def rot_mat_to_rpy(R: ArrayLike) -> np.ndarray:
    R = np.asarray(R, dtype=float)
    return np.array(
        [
            math.atan2(R[2, 1], R[2, 2]),
            math.asin(-R[2, 0]),
            math.atan2(R[1, 0], R[0, 0]),
        ]
    )


def quat_to_rot_mat(q: ArrayLike) -> np.ndarray:
    """Rotation matrix of a quaternion given as ``(w, x, y, z)``."""
    e0, e1, e2, e3 = (float(a) for a in np.asarray(q, dtype=float).reshape(4))
    return np.array(
        [
            [1 - 2 * (e2 * e2 + e3 * e3), 2 * (e1 * e2 - e0 * e3), 2 * (e1 * e3 + e0 * e2)],
            [2 * (e1 * e2 + e0 * e3), 1 - 2 * (e1 * e1 + e3 * e3), 2 * (e2 * e3 - e0 * e1)],
            [2 * (e1 * e3 - e0 * e2), 2 * (e2 * e3 + e0 * e1), 1 - 2 * (e1 * e1 + e2 * e2)],
        ]
    )


def rot_mat_to_exp(rm: ArrayLike) -> np.ndarray:
    """Exponential coordinates (axis times angle) of a rotation matrix."""
    rm = np.asarray(rm, dtype=float)
    diag_sum = float(np.diagonal(rm).sum())
    cos_value = min(1.0, max(-1.0, diag_sum / 2.0 - 0.5))
    angle = math.acos(cos_value)
    if abs(angle) < 1e-5:
        return np.zeros(3)
    if abs(angle - math.pi) < 1e-5:
        return angle * np.array([rm[0, 0] + 1, rm[0, 1], rm[0, 2]]) / math.sqrt(
            2 * (1 + rm[0, 0])
        )
    return (
        angle
        / (2.0 * math.sin(angle))
        * np.array([rm[2, 1] - rm[1, 2], rm[0, 2] - rm[2, 0], rm[1, 0] - rm[0, 1]])
    )


def homo_matrix(p: ArrayLike, rotation: ArrayLike) -> np.ndarray:
    """4x4 transform from a translation and a 3x3 rotation or a quaternion."""
    rotation = np.asarray(rotation, dtype=float)
    if rotation.shape == (3, 3):
        rot = rotation
    elif rotation.size == 4:
        rot = quat_to_rot_mat(rotation)
    else:
        raise ValueError(f"rotation must be 3x3 or a quaternion, got shape {rotation.shape}")
    homo = np.zeros((4, 4))
    homo[:3, :3] = rot
    homo[:3, 3] = np.asarray(p, dtype=float).reshape(3)
    homo[3, 3] = 1.0
    return homo


def homo_matrix_inverse(homo: ArrayLike) -> np.ndarray:
    homo = np.asarray(homo, dtype=float)
    rot_t = homo[:3, :3].T
    inv = np.zeros((4, 4))
    inv[:3, :3] = rot_t
    inv[:3, 3] = -rot_t @ homo[:3, 3]
    inv[3, 3] = 1.0
    return inv


def homo_vec(v3: ArrayLike) -> np.ndarray:
    """Append 1 to a 3-vector."""
    return np.append(np.asarray(v3, dtype=float).reshape(3), 1.0)


def no_homo_vec(v4: ArrayLike) -> np.ndarray:
    """Drop the last component of a 4-vector."""
    return np.asarray(v4, dtype=float).reshape(4)[:3].copy()


def vec12_to_vec34(vec12: ArrayLike) -> np.ndarray:
    """Stack consecutive triples of a 12-vector as the columns of a 3x4 matrix."""
    return np.asarray(vec12, dtype=float).reshape(4, 3).T.copy()


def vec34_to_vec12(vec34: ArrayLike) -> np.ndarray:
    """Concatenate the columns of a 3x4 matrix into a 12-vector."""
    return np.asarray(vec34, dtype=float).reshape(3, 4).T.reshape(12).copy()


class AvgCov:
    """Running mean and covariance of a vector signal, printed periodically."""

    def __init__(
        self,
        size: int,
        name: str,
        avg_only: bool = False,
        show_period: int = 1000,
        wait_count: int = 5000,
        zoom_factor: float = 10000,
        stream: TextIO | None = None,
    ) -> None:
        self.size = size
        self.name = name
        self.avg_only = avg_only
        self.show_period = show_period
        self.wait_count = wait_count
        self.zoom_factor = zoom_factor
        self.stream = stream
        self.average = np.zeros(size)
        self.covariance = np.zeros((size, size))
        self.measure_count = 0

    def measure(self, new_value: ArrayLike) -> None:
        """Add one sample; samples before ``wait_count`` are ignored."""
        self.measure_count += 1
        if self.measure_count <= self.wait_count:
            return
        n = self.measure_count - self.wait_count
        self.covariance, self.average = update_avg_cov(
            self.covariance, self.average, new_value, n
        )
        if self.measure_count % self.show_period == 0:
            out = self.stream if self.stream is not None else sys.stdout
            print(f"******{self.name} measured count: {n}******", file=out)
            print(f"{self.zoom_factor} Times Average of {self.name}", file=out)
            print(self.zoom_factor * self.average, file=out)
            if not self.avg_only:
                print(f"{self.zoom_factor} Times Covariance of {self.name}", file=out)
                print(self.zoom_factor * self.covariance, file=out)
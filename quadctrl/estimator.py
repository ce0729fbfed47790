"""Kalman filter estimating the body position and velocity from leg kinematics."""

from __future__ import annotations

from typing import Protocol

import numpy as np
from numpy.typing import ArrayLike

from quadctrl.enums import FrameType
from quadctrl.mathtools import vec34_to_vec12, window_func
from quadctrl.messages import LowlevelState

__all__ = ["RobotKinematics", "Estimator"]

_GRAVITY = np.array([0.0, 0.0, -9.81])
_LARGE_VARIANCE = 100.0

# Covariance of the measured input (body acceleration), tuned on an A1.
_INPUT_COVARIANCE = np.array(
    [
        [268.573, -43.819, -147.211],
        [-43.819, 92.949, 58.082],
        [-147.211, 58.082, 302.120],
    ]
)

# Measurement covariance of the feet positions and velocities (first 24 rows
# and columns); the four foot heights have unit variance.
_MEASUREMENT_BLOCK = [
    [0.008, 0.012, 0, -0.009, 0.012, 0, 0.009, -0.009, 0, -0.009, -0.009, 0,
     0, 0, 0, 0, 0, -0.001, -0.002, 0, 0, -0.003, 0, -0.001],
    [0.012, 0.019, -0.001, -0.014, 0.018, 0, 0.014, -0.013, 0, -0.014, -0.014, 0.001,
     -0.001, 0.001, -0.001, 0, 0, -0.001, -0.003, 0, -0.001, -0.004, 0, -0.001],
    [0, -0.001, 0.001, 0.001, -0.001, 0, 0, 0, 0, 0.001, 0, 0,
     0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [-0.009, -0.014, 0.001, 0.010, -0.013, 0, -0.010, 0.010, 0, 0.010, 0.010, 0,
     0.001, 0, 0, 0.001, 0, 0.001, 0.002, 0, 0, 0.003, 0, 0.001],
    [0.012, 0.018, -0.001, -0.013, 0.018, 0, 0.013, -0.013, 0, -0.013, -0.013, 0.001,
     -0.001, 0, -0.001, 0, 0.001, -0.001, -0.003, 0, -0.001, -0.004, 0, -0.001],
    [0, 0, 0, 0, 0, 0.001, 0, 0, 0, 0, 0, 0,
     0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0.009, 0.014, 0, -0.010, 0.013, 0, 0.010, -0.010, 0, -0.010, -0.010, 0,
     -0.001, 0, -0.001, 0, 0, -0.001, -0.001, 0, 0, -0.003, 0, -0.001],
    [-0.009, -0.013, 0, 0.010, -0.013, 0, -0.010, 0.009, 0, 0.010, 0.010, 0,
     0.001, 0, 0, 0, 0, 0.001, 0.002, 0, 0, 0.003, 0, 0.001],
    [0, 0, 0, 0, 0, 0, 0, 0, 0.001, 0, 0, 0,
     0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [-0.009, -0.014, 0.001, 0.010, -0.013, 0, -0.010, 0.010, 0, 0.010, 0.010, 0,
     0.001, 0, 0, 0, 0, 0.001, 0.002, 0, 0, 0.003, 0, 0.001],
    [-0.009, -0.014, 0, 0.010, -0.013, 0, -0.010, 0.010, 0, 0.010, 0.010, 0,
     0.001, 0, 0, 0, 0, 0.001, 0.002, 0, 0, 0.003, 0.001, 0.001],
    [0, 0.001, 0, 0, 0.001, 0, 0, 0, 0, 0, 0, 0.001,
     0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, -0.001, 0, 0.001, -0.001, 0, -0.001, 0.001, 0, 0.001, 0.001, 0,
     1.708, 0.048, 0.784, 0.062, 0.042, 0.053, 0.077, 0.001, -0.061, 0.046, -0.019, -0.029],
    [0, 0.001, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
     0.048, 5.001, -1.631, -0.036, 0.144, 0.040, 0.036, 0.016, -0.051, -0.067, -0.024, -0.005],
    [0, -0.001, 0, 0, -0.001, 0, -0.001, 0, 0, 0, 0, 0,
     0.784, -1.631, 1.242, 0.057, -0.037, 0.018, 0.034, -0.017, -0.015, 0.058, -0.021, -0.029],
    [0, 0, 0, 0.001, 0, 0, 0, 0, 0, 0, 0, 0,
     0.062, -0.036, 0.057, 6.228, -0.014, 0.932, 0.059, 0.053, -0.069, 0.148, 0.015, -0.031],
    [0, 0, 0, 0, 0.001, 0, 0, 0, 0, 0, 0, 0,
     0.042, 0.144, -0.037, -0.014, 3.011, 0.986, 0.076, 0.030, -0.052, -0.027, 0.057, 0.051],
    [-0.001, -0.001, 0, 0.001, -0.001, 0, -0.001, 0.001, 0, 0.001, 0.001, 0,
     0.053, 0.040, 0.018, 0.932, 0.986, 0.885, 0.090, 0.044, -0.055, 0.057, 0.051, -0.003],
    [-0.002, -0.003, 0, 0.002, -0.003, 0, -0.001, 0.002, 0, 0.002, 0.002, 0,
     0.077, 0.036, 0.034, 0.059, 0.076, 0.090, 6.230, 0.139, 0.763, 0.013, -0.019, -0.024],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
     0.001, 0.016, -0.017, 0.053, 0.030, 0.044, 0.139, 3.130, -1.128, -0.010, 0.131, 0.018],
    [0, -0.001, 0, 0, -0.001, 0, 0, 0, 0, 0, 0, 0,
     -0.061, -0.051, -0.015, -0.069, -0.052, -0.055, 0.763, -1.128, 0.866, -0.022, -0.053, 0.007],
    [-0.003, -0.004, 0, 0.003, -0.004, 0, -0.003, 0.003, 0, 0.003, 0.003, 0,
     0.046, -0.067, 0.058, 0.148, -0.027, 0.057, 0.013, -0.010, -0.022, 2.437, -0.102, 0.938],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0.001, 0,
     -0.019, -0.024, -0.021, 0.015, 0.057, 0.051, -0.019, 0.131, -0.053, -0.102, 4.944, 1.724],
    [-0.001, -0.001, 0, 0.001, -0.001, 0, -0.001, 0.001, 0, 0.001, 0.001, 0,
     -0.029, -0.005, -0.029, -0.031, 0.051, -0.003, -0.024, 0.018, 0.007, 0.938, 1.724, 1.569],
]


def _initial_measurement_noise() -> np.ndarray:
    R = np.zeros((28, 28))
    R[:24, :24] = np.array(_MEASUREMENT_BLOCK, dtype=float)
    R[24:, 24:] = np.eye(4)
    return R


class RobotKinematics(Protocol):
    """Forward kinematics the estimator needs from a robot model."""

    def feet_to_body_positions(self, state: LowlevelState, frame: FrameType) -> np.ndarray:
        """Return the 3x4 foot positions relative to the body, in ``frame``."""

    def feet_to_body_velocities(self, state: LowlevelState, frame: FrameType) -> np.ndarray:
        """Return the 3x4 foot velocities relative to the body, in ``frame``."""

    def foot_position(self, state: LowlevelState, leg_id: int, frame: FrameType) -> np.ndarray:
        """Return the position of one foot in ``frame``."""


class Estimator:
    """Linear Kalman filter over body position, velocity and the four feet.

    The state is position (3), velocity (3) and the global foot positions
    (3 x 4). The input is the measured body acceleration in the global frame;
    the measurements are foot positions and velocities relative to the body
    plus the foot heights, assumed zero. Feet in the air, or near the edges of
    their stance phase, get a large variance.

    ``contact`` and ``phase`` are read on every :meth:`run`; pass numpy arrays
    and update them in place to share them with the gait generator.
    """

    def __init__(
        self,
        robot_model: RobotKinematics,
        low_state: LowlevelState,
        contact: ArrayLike,
        phase: ArrayLike,
        dt: float,
        qdig: ArrayLike | None = None,
        name: str = "current",
    ) -> None:
        self.robot_model = robot_model
        self.low_state = low_state
        self.contact = np.asarray(contact)
        self.phase = np.asarray(phase)
        self.dt = float(dt)
        self.name = name
        if qdig is None:
            qdig = np.concatenate([np.full(6, 0.0003), np.full(12, 0.01)])
        qdig = np.asarray(qdig, dtype=float).reshape(-1)
        if qdig.size != 18:
            raise ValueError(f"qdig needs 18 entries, got {qdig.size}")
        self.qdig = qdig

        I3 = np.eye(3)
        A = np.zeros((18, 18))
        A[:3, :3] = I3
        A[:3, 3:6] = I3 * self.dt
        A[3:6, 3:6] = I3
        A[6:, 6:] = np.eye(12)
        B = np.zeros((18, 3))
        B[3:6, :] = I3 * self.dt
        C = np.zeros((28, 18))
        for leg in range(4):
            C[3 * leg:3 * leg + 3, :3] = -I3
            C[12 + 3 * leg:15 + 3 * leg, 3:6] = -I3
            C[24 + leg, 8 + 3 * leg] = 1.0
        C[:12, 6:] = np.eye(12)

        self.transition = A
        self.input_matrix = B
        self.output_matrix = C
        self.input_covariance = _INPUT_COVARIANCE.copy()
        self.process_noise = np.diag(qdig) + B @ self.input_covariance @ B.T
        self.measurement_noise = _initial_measurement_noise()
        self.covariance = _LARGE_VARIANCE * np.eye(18)
        self.state = np.zeros(18)

    def run(self) -> None:
        """Advance the filter by one time step using the current sensor state."""
        state = self.low_state
        feet_pos = np.asarray(
            self.robot_model.feet_to_body_positions(state, FrameType.GLOBAL), dtype=float
        ).reshape(3, 4)
        feet_vel = np.asarray(
            self.robot_model.feet_to_body_velocities(state, FrameType.GLOBAL), dtype=float
        ).reshape(3, 4)

        Q = self.process_noise.copy()
        R = self.measurement_noise.copy()
        for leg in range(4):
            q_block = slice(6 + 3 * leg, 9 + 3 * leg)
            r_block = slice(12 + 3 * leg, 15 + 3 * leg)
            height = 24 + leg
            if self.contact[leg] == 0:
                Q[q_block, q_block] = _LARGE_VARIANCE * np.eye(3)
                R[r_block, r_block] = _LARGE_VARIANCE * np.eye(3)
                R[height, height] = _LARGE_VARIANCE
            else:
                trust = window_func(float(self.phase[leg]), 0.2)
                scale = 1 + (1 - trust) * _LARGE_VARIANCE
                Q[q_block, q_block] = scale * self.process_noise[q_block, q_block]
                R[r_block, r_block] = scale * self.measurement_noise[r_block, r_block]
                R[height, height] = scale * self.measurement_noise[height, height]

        A, B, C = self.transition, self.input_matrix, self.output_matrix
        u = state.rot_mat() @ state.acc() + _GRAVITY
        x = A @ self.state + B @ u
        y_hat = C @ x
        y = np.concatenate([vec34_to_vec12(feet_pos), vec34_to_vec12(feet_vel), np.zeros(4)])

        p_priori = A @ self.covariance @ A.T + Q
        S = R + C @ p_priori @ C.T
        s_y = np.linalg.solve(S, y - y_hat)
        s_c = np.linalg.solve(S, C)
        s_r = np.linalg.solve(S, R)
        st_c = np.linalg.solve(S.T, C)
        ikc = np.eye(18) - p_priori @ C.T @ s_c

        self.state = x + p_priori @ C.T @ s_y
        self.covariance = ikc @ p_priori @ ikc.T + p_priori @ C.T @ s_r @ st_c @ p_priori.T

    def position(self) -> np.ndarray:
        """Estimated body position in the global frame."""
        return self.state[:3].copy()

    def velocity(self) -> np.ndarray:
        """Estimated body velocity in the global frame."""
        return self.state[3:6].copy()

    def foot_pos(self, i: int) -> np.ndarray:
        """Global position of foot ``i`` from the estimate and the kinematics."""
        body = np.asarray(
            self.robot_model.foot_position(self.low_state, i, FrameType.BODY), dtype=float
        ).reshape(3)
        return self.position() + self.low_state.rot_mat() @ body

    def feet_pos(self) -> np.ndarray:
        """Global positions of all feet as a 3x4 matrix."""
        return np.column_stack([self.foot_pos(i) for i in range(4)])

    def feet_vel(self) -> np.ndarray:
        """Global velocities of all feet as a 3x4 matrix."""
        rel = np.asarray(
            self.robot_model.feet_to_body_velocities(self.low_state, FrameType.GLOBAL),
            dtype=float,
        ).reshape(3, 4)
        return rel + self.velocity()[:, None]

    def pos_feet_to_body_global(self) -> np.ndarray:
        """Foot positions relative to the body, in the global frame, as 3x4."""
        position = self.position()
        return np.column_stack([self.foot_pos(i) - position for i in range(4)])
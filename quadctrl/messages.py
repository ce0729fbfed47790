"""Low-level motor commands, sensor state and user input values."""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike

from quadctrl.enums import UserCommand
from quadctrl.mathtools import quat_to_rot_mat, rot_mat_to_rpy, saturation

__all__ = [
    "MotorCmd",
    "LowlevelCmd",
    "MotorState",
    "IMU",
    "UserValue",
    "LowlevelState",
    "CmdPanel",
]

_MOTOR_COUNT = 12


@dataclass
class MotorCmd:
    mode: int = 0
    q: float = 0.0
    dq: float = 0.0
    tau: float = 0.0
    kp: float = 0.0
    kd: float = 0.0


def _legs(leg_id: int | None) -> range:
    return range(4) if leg_id is None else range(leg_id, leg_id + 1)


@dataclass
class LowlevelCmd:
    """Commands for the twelve joint motors, three per leg."""

    motor_cmd: list[MotorCmd] = field(
        default_factory=lambda: [MotorCmd() for _ in range(_MOTOR_COUNT)]
    )

    def _leg(self, leg_id: int) -> list[MotorCmd]:
        return self.motor_cmd[3 * leg_id:3 * leg_id + 3]

    def set_q(self, q: ArrayLike) -> None:
        for cmd, value in zip(self.motor_cmd, np.asarray(q, dtype=float).reshape(12)):
            cmd.q = float(value)

    def set_leg_q(self, leg_id: int, qi: ArrayLike) -> None:
        for cmd, value in zip(self._leg(leg_id), np.asarray(qi, dtype=float).reshape(3)):
            cmd.q = float(value)

    def set_qd(self, qd: ArrayLike) -> None:
        for cmd, value in zip(self.motor_cmd, np.asarray(qd, dtype=float).reshape(12)):
            cmd.dq = float(value)

    def set_leg_qd(self, leg_id: int, qdi: ArrayLike) -> None:
        for cmd, value in zip(self._leg(leg_id), np.asarray(qdi, dtype=float).reshape(3)):
            cmd.dq = float(value)

    def set_tau(self, tau: ArrayLike, torque_limit: ArrayLike = (-50.0, 50.0)) -> None:
        """Set joint torques, each clamped to ``torque_limit``."""
        for cmd, value in zip(self.motor_cmd, np.asarray(tau, dtype=float).reshape(12)):
            if math.isnan(value):
                warnings.warn("The setTau function meets Nan", RuntimeWarning, stacklevel=2)
            cmd.tau = saturation(float(value), torque_limit)

    def set_zero_dq(self, leg_id: int | None = None) -> None:
        """Zero joint velocities of one leg, or of all legs when ``leg_id`` is None."""
        for leg in _legs(leg_id):
            for cmd in self._leg(leg):
                cmd.dq = 0.0

    def set_zero_tau(self, leg_id: int) -> None:
        for cmd in self._leg(leg_id):
            cmd.tau = 0.0

    def _set_gains(self, leg_id: int | None, gains: list[tuple[float, float]]) -> None:
        for leg in _legs(leg_id):
            for cmd, (kp, kd) in zip(self._leg(leg), gains):
                cmd.mode = 10
                cmd.kp = kp
                cmd.kd = kd

    def set_sim_stance_gain(self, leg_id: int) -> None:
        self._set_gains(leg_id, [(180, 8), (180, 8), (300, 15)])

    def set_real_stance_gain(self, leg_id: int) -> None:
        self._set_gains(leg_id, [(60, 5), (40, 4), (80, 7)])

    def set_zero_gain(self, leg_id: int | None = None) -> None:
        self._set_gains(leg_id, [(0, 0)] * 3)

    def set_stable_gain(self, leg_id: int | None = None) -> None:
        self._set_gains(leg_id, [(0.8, 0.8)] * 3)

    def set_swing_gain(self, leg_id: int) -> None:
        self._set_gains(leg_id, [(3, 2)] * 3)


@dataclass
class MotorState:
    mode: int = 0
    q: float = 0.0
    dq: float = 0.0
    ddq: float = 0.0
    tau_est: float = 0.0


@dataclass
class IMU:
    """Inertial measurement; the quaternion is ``(w, x, y, z)``."""

    quaternion: list[float] = field(default_factory=lambda: [0.0] * 4)
    gyroscope: list[float] = field(default_factory=lambda: [0.0] * 3)
    accelerometer: list[float] = field(default_factory=lambda: [0.0] * 3)

    def rot_mat(self) -> np.ndarray:
        return quat_to_rot_mat(self.quaternion)

    def acc(self) -> np.ndarray:
        return np.array(self.accelerometer, dtype=float)

    def gyro(self) -> np.ndarray:
        return np.array(self.gyroscope, dtype=float)

    def quat(self) -> np.ndarray:
        return np.array(self.quaternion, dtype=float)


@dataclass
class UserValue:
    """Analog stick and trigger values from the user's input device."""

    lx: float = 0.0
    ly: float = 0.0
    rx: float = 0.0
    ry: float = 0.0
    l2: float = 0.0

    def set_zero(self) -> None:
        self.lx = self.ly = self.rx = self.ry = self.l2 = 0.0


@dataclass
class LowlevelState:
    """Sensor readings of the robot together with the latest user input."""

    imu: IMU = field(default_factory=IMU)
    motor_state: list[MotorState] = field(
        default_factory=lambda: [MotorState() for _ in range(_MOTOR_COUNT)]
    )
    user_cmd: UserCommand = UserCommand.NONE
    user_value: UserValue = field(default_factory=UserValue)

    def get_q(self) -> np.ndarray:
        """Joint angles as a 3x4 matrix, one column per leg."""
        return np.array([m.q for m in self.motor_state]).reshape(4, 3).T.copy()

    def get_qd(self) -> np.ndarray:
        """Joint velocities as a 3x4 matrix, one column per leg."""
        return np.array([m.dq for m in self.motor_state]).reshape(4, 3).T.copy()

    def rot_mat(self) -> np.ndarray:
        return self.imu.rot_mat()

    def acc(self) -> np.ndarray:
        return self.imu.acc()

    def gyro(self) -> np.ndarray:
        return self.imu.gyro()

    def acc_global(self) -> np.ndarray:
        return self.rot_mat() @ self.acc()

    def gyro_global(self) -> np.ndarray:
        return self.rot_mat() @ self.gyro()

    def yaw(self) -> float:
        return float(rot_mat_to_rpy(self.rot_mat())[2])

    def dyaw(self) -> float:
        return float(self.gyro_global()[2])

    def set_q(self, q: ArrayLike) -> None:
        for state, value in zip(self.motor_state, np.asarray(q, dtype=float).reshape(12)):
            state.q = float(value)


@dataclass
class CmdPanel:
    """Source of user commands and stick values."""

    user_cmd: UserCommand = UserCommand.NONE
    user_value: UserValue = field(default_factory=UserValue)

    def set_passive(self) -> None:
        self.user_cmd = UserCommand.L2_B

    def set_zero(self) -> None:
        self.user_value.set_zero()
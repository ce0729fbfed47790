"""Enumerations shared by the controller."""

from __future__ import annotations

from enum import Enum, auto

__all__ = [
    "CtrlPlatform",
    "RobotType",
    "UserCommand",
    "FrameType",
    "WaveStatus",
    "FSMMode",
    "FSMStateName",
]


class CtrlPlatform(Enum):
    GAZEBO = auto()
    REALROBOT = auto()


class RobotType(Enum):
    A1 = auto()
    Go1 = auto()


class UserCommand(Enum):
    NONE = auto()
    START = auto()  # trotting
    L2_A = auto()  # fixed stand
    L2_B = auto()  # passive
    L2_X = auto()  # free stand
    L2_Y = auto()  # move base
    L1_X = auto()  # balance test
    L1_A = auto()  # swing test
    L1_Y = auto()  # step test


class FrameType(Enum):
    BODY = auto()
    HIP = auto()
    GLOBAL = auto()


class WaveStatus(Enum):
    STANCE_ALL = auto()
    SWING_ALL = auto()
    WAVE_ALL = auto()


class FSMMode(Enum):
    NORMAL = auto()
    CHANGE = auto()


class FSMStateName(Enum):
    INVALID = auto()
    PASSIVE = auto()
    FIXEDSTAND = auto()
    FREESTAND = auto()
    TROTTING = auto()
    MOVE_BASE = auto()
    BALANCETEST = auto()
    SWINGTEST = auto()
    STEPTEST = auto()
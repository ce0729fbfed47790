"""Quadruped control building blocks: QP solving, math helpers, state estimation, input handling and plotting."""

__version__ = "0.1.0"

__all__ = [
    "quadprog",
    "mathtools",
    "timing",
    "enums",
    "messages",
    "joystick",
    "keyboard",
    "estimator",
    "plotting",
]
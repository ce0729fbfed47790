# quadctrl

Building blocks for controlling a four-legged robot, written in plain Python
on top of NumPy. Matplotlib is used only when recorded curves are drawn.

## Modules

- `quadctrl.quadprog` – a dense strictly convex quadratic program solver
  (Goldfarb–Idnani dual active-set method).
  `solve_quadprog(G, g0, CE, ce0, CI, ci0)` minimises `0.5 * x^T G x + g0^T x`
  subject to `CE^T x + ce0 == 0` and `CI^T x + ci0 >= 0`. Every column of `CE`
  and `CI` is one constraint; either pair may be omitted. It returns a
  `QPResult` with the solution `x`, the objective `value` and a `feasible`
  flag (the value is infinite when the problem is infeasible). Helpers
  `cholesky_decomposition`, `cholesky_solve`, `distance`, `seq` and
  `singleton` are exposed as well.
- `quadctrl.mathtools` – rotation matrices (`rotx`, `roty`, `rotz`,
  `rpy_to_rot_mat`, `rot_mat_to_rpy`, `quat_to_rot_mat` for `(w, x, y, z)`
  quaternions, `rot_mat_to_exp`), homogeneous transforms (`homo_matrix`,
  `homo_matrix_inverse`, `homo_vec`, `no_homo_vec`), `skew`, clamping and
  shaping helpers (`saturation`, `kill_zero_offset`, `inv_normalize`,
  `window_func`), running mean and covariance (`update_average`,
  `update_covariance`, `update_avg_cov`, and `AvgCov`, which prints them
  periodically) and the leg-vector reshapes `vec12_to_vec34` /
  `vec34_to_vec12`.
- `quadctrl.timing` – microsecond timestamps and a busy wait
  (`get_system_time`, `get_time_second`, `absolute_wait`).
- `quadctrl.enums` – `CtrlPlatform`, `RobotType`, `UserCommand`, `FrameType`,
  `WaveStatus`, `FSMMode`, `FSMStateName`.
- `quadctrl.messages` – low-level motor commands and robot state:
  `MotorCmd`, `LowlevelCmd` (joint targets, torques clamped to ±50 by
  default, and preset gain sets per leg), `MotorState`, `IMU`, `UserValue`,
  `LowlevelState` and the `CmdPanel` base for operator input.
- `quadctrl.joystick` – decoding of the 40-byte wireless remote packet
  (`KeySwitch`, `RockerBtnData`) and `WirelessHandle`, whose
  `receive_handle` turns button combinations (L2 or L1 with A/B/X/Y, or
  start) into a `UserCommand` and the sticks into a `UserValue` with a
  0.08 dead zone.
- `quadctrl.keyboard` – `KeyBoard`, a terminal key reader running in a
  background thread (`start` / `stop`, or use it as a context manager). Digit
  keys select commands, `wasd` and `ijkl` move the left and right sticks, the
  space bar centres them. `handle_key` processes a single key directly.
- `quadctrl.estimator` – `Estimator`, a linear Kalman filter fusing IMU
  acceleration with leg kinematics to track body position, velocity and foot
  positions. The robot model is anything that implements the
  `RobotKinematics` protocol.
- `quadctrl.plotting` – `PyPlot`, a recorder of named curves that can be
  inspected (`print_xy`) or drawn with matplotlib (`show_plot`,
  `show_plot_all`).

## A taste

```python
import numpy as np

from quadctrl.mathtools import rpy_to_rot_mat, rot_mat_to_rpy, saturation
from quadctrl.quadprog import solve_quadprog

R = rpy_to_rot_mat(0.1, -0.2, 0.3)
print(rot_mat_to_rpy(R))            # roughly [0.1, -0.2, 0.3]

print(saturation(3.0, np.array([1.0, -1.0])))   # 1.0

# minimise x0^2 + x1^2 - x0 subject to x0 + x1 - 1 >= 0
G = np.eye(2) * 2.0
g0 = np.array([-1.0, 0.0])
CI = np.array([[1.0], [1.0]])
ci0 = np.array([-1.0])
result = solve_quadprog(G, g0, CI=CI, ci0=ci0)
print(result.x, result.value, result.feasible)
```

Errors from the solver (a non-square or non-positive-definite `G`,
mismatched constraint sizes) are raised as `ValueError`; linearly dependent
equality constraints raise `RuntimeError`.

## What the package does not do

This is a library of parts, not a running controller. It has no command to
start, no contact-force distribution controller, no gait generator or state
machine, no robot models with leg kinematics (the estimator expects you to
supply one), and no connection to a simulator or to robot hardware: packets
and sensor readings have to be fed in by your own code.

## Tests

The test suite uses pytest; the `test` extra lists what it needs.
import math

import numpy as np
import pytest

from quadctrl.enums import UserCommand
from quadctrl.messages import IMU, CmdPanel, LowlevelCmd, LowlevelState, UserValue


def test_set_q_and_leg_q():
    cmd = LowlevelCmd()
    q = np.arange(12.0)
    cmd.set_q(q)
    assert [m.q for m in cmd.motor_cmd] == list(q)
    cmd.set_leg_q(2, [0.0, 0.67, -1.3])
    assert [m.q for m in cmd.motor_cmd[6:9]] == [0.0, 0.67, -1.3]
    assert cmd.motor_cmd[5].q == q[5]


def test_set_qd_and_zero_dq():
    cmd = LowlevelCmd()
    cmd.set_qd(np.ones(12))
    cmd.set_leg_qd(1, [4.0, 5.0, 6.0])
    assert [m.dq for m in cmd.motor_cmd[3:6]] == [4.0, 5.0, 6.0]
    cmd.set_zero_dq(1)
    assert [m.dq for m in cmd.motor_cmd[3:6]] == [0.0, 0.0, 0.0]
    assert cmd.motor_cmd[0].dq == 1.0
    cmd.set_zero_dq()
    assert all(m.dq == 0.0 for m in cmd.motor_cmd)


def test_set_tau_saturates():
    cmd = LowlevelCmd()
    tau = np.zeros(12)
    tau[0], tau[1], tau[2] = 100.0, -100.0, 3.0
    cmd.set_tau(tau)
    assert cmd.motor_cmd[0].tau == 50
    assert cmd.motor_cmd[1].tau == -50
    assert cmd.motor_cmd[2].tau == 3.0
    cmd.set_zero_tau(0)
    assert [m.tau for m in cmd.motor_cmd[:3]] == [0.0, 0.0, 0.0]


def test_set_tau_nan_warns():
    cmd = LowlevelCmd()
    tau = np.zeros(12)
    tau[4] = math.nan
    with pytest.warns(RuntimeWarning):
        cmd.set_tau(tau)
    assert math.isnan(cmd.motor_cmd[4].tau)


def test_gains():
    cmd = LowlevelCmd()
    cmd.set_sim_stance_gain(0)
    assert [(m.mode, m.kp, m.kd) for m in cmd.motor_cmd[:3]] == [
        (10, 180, 8), (10, 180, 8), (10, 300, 15)]
    cmd.set_real_stance_gain(1)
    assert [(m.kp, m.kd) for m in cmd.motor_cmd[3:6]] == [(60, 5), (40, 4), (80, 7)]
    cmd.set_swing_gain(2)
    assert all((m.kp, m.kd) == (3, 2) for m in cmd.motor_cmd[6:9])
    cmd.set_stable_gain()
    assert all((m.mode, m.kp, m.kd) == (10, 0.8, 0.8) for m in cmd.motor_cmd)
    cmd.set_zero_gain()
    assert all((m.kp, m.kd) == (0, 0) for m in cmd.motor_cmd)


def test_state_q_round_trip():
    state = LowlevelState()
    q = np.arange(12.0)
    state.set_q(q)
    mat = state.get_q()
    assert mat.shape == (3, 4)
    assert np.allclose(mat[:, 3], q[9:12])
    for i, m in enumerate(state.motor_state):
        m.dq = -q[i]
    assert np.allclose(state.get_qd(), -mat)


def test_state_imu_identity():
    state = LowlevelState()
    state.imu = IMU(quaternion=[1, 0, 0, 0], gyroscope=[0.1, 0.2, 0.3],
                    accelerometer=[0.0, 0.0, 9.81])
    assert np.allclose(state.rot_mat(), np.eye(3))
    assert np.allclose(state.acc_global(), state.acc())
    assert np.allclose(state.gyro_global(), [0.1, 0.2, 0.3])
    assert state.dyaw() == pytest.approx(0.3)
    assert np.allclose(state.imu.quat(), [1, 0, 0, 0])


def test_state_yaw():
    t = 0.6
    state = LowlevelState()
    state.imu.quaternion = [math.cos(t / 2), 0.0, 0.0, math.sin(t / 2)]
    state.imu.gyroscope = [0.0, 0.0, 0.25]
    assert state.yaw() == pytest.approx(t)
    assert state.dyaw() == pytest.approx(0.25)


def test_user_value_and_cmd_panel():
    panel = CmdPanel()
    assert panel.user_cmd is UserCommand.NONE
    panel.user_value = UserValue(lx=0.5, ly=-0.2, rx=0.1, ry=0.3, l2=1.0)
    panel.set_zero()
    assert panel.user_value == UserValue()
    panel.set_passive()
    assert panel.user_cmd is UserCommand.L2_B
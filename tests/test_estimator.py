import math

import numpy as np
import pytest

from quadctrl.enums import FrameType
from quadctrl.estimator import Estimator
from quadctrl.mathtools import rotz
from quadctrl.messages import LowlevelState

FEET_BODY = np.array(
    [
        [0.18, 0.18, -0.18, -0.18],
        [-0.13, 0.13, -0.13, 0.13],
        [-0.3, -0.3, -0.3, -0.3],
    ]
)
FEET_VEL = np.array(
    [
        [0.1, 0.0, 0.0, 0.2],
        [0.0, 0.3, 0.0, 0.0],
        [0.0, 0.0, -0.1, 0.0],
    ]
)


class FakeRobot:
    def __init__(self, feet=FEET_BODY, vel=FEET_VEL):
        self.feet = np.array(feet, dtype=float)
        self.vel = np.array(vel, dtype=float)

    def feet_to_body_positions(self, state, frame):
        if frame == FrameType.GLOBAL:
            return state.rot_mat() @ self.feet
        return self.feet.copy()

    def feet_to_body_velocities(self, state, frame):
        return self.vel.copy()

    def foot_position(self, state, leg_id, frame):
        return self.feet[:, leg_id].copy()


def make_state(quat=(1.0, 0.0, 0.0, 0.0)):
    state = LowlevelState()
    state.imu.quaternion = list(quat)
    state.imu.accelerometer = [0.0, 0.0, 9.81]
    return state


def make_estimator(robot=None, state=None, contact=None, phase=None):
    robot = robot or FakeRobot()
    state = state or make_state()
    contact = np.ones(4, dtype=int) if contact is None else contact
    phase = np.full(4, 0.5) if phase is None else phase
    return Estimator(robot, state, contact, phase, 0.002)


def test_initial_estimate_is_zero():
    est = make_estimator()
    assert np.allclose(est.position(), np.zeros(3))
    assert np.allclose(est.velocity(), np.zeros(3))


def test_system_matrices_structure():
    est = make_estimator()
    assert np.allclose(est.transition[:3, 3:6], 0.002 * np.eye(3))
    assert np.allclose(est.input_matrix[3:6], 0.002 * np.eye(3))
    assert est.output_matrix[24, 8] == 1
    assert est.output_matrix[27, 17] == 1
    assert np.allclose(est.output_matrix[:12, 6:], np.eye(12))


def test_noise_matrices():
    est = make_estimator()
    R = est.measurement_noise
    assert R.shape == (28, 28)
    assert R[12, 12] == pytest.approx(1.708)
    assert np.allclose(R[24:, 24:], np.eye(4))
    Q = est.process_noise
    assert np.allclose(Q, Q.T)
    assert Q[0, 0] == pytest.approx(0.0003)
    assert Q[6, 6] == pytest.approx(0.01)


def test_wrong_qdig_size_raises():
    with pytest.raises(ValueError):
        Estimator(FakeRobot(), make_state(), np.ones(4), np.full(4, 0.5), 0.002, qdig=np.ones(5))


def test_converges_to_standing_height():
    est = make_estimator(robot=FakeRobot(vel=np.zeros((3, 4))))
    for _ in range(300):
        est.run()
    assert est.position()[2] == pytest.approx(-FEET_BODY[2, 0], abs=1e-3)
    assert np.allclose(est.velocity(), np.zeros(3), atol=1e-3)
    assert np.all(np.isfinite(est.covariance))


def test_feet_positions_follow_rotation():
    half = math.pi / 4
    state = make_state((math.cos(half), 0.0, 0.0, math.sin(half)))
    est = make_estimator(state=state)
    expected = rotz(math.pi / 2) @ FEET_BODY
    assert np.allclose(est.feet_pos(), expected)
    assert np.allclose(est.pos_feet_to_body_global(), expected)
    assert np.allclose(est.foot_pos(2), expected[:, 2])


def test_feet_velocity_adds_body_velocity():
    est = make_estimator()
    assert np.allclose(est.feet_vel(), FEET_VEL)
    est.state[3:6] = [0.5, -0.2, 0.1]
    assert np.allclose(est.feet_vel(), FEET_VEL + np.array([[0.5], [-0.2], [0.1]]))


def test_relative_feet_positions_independent_of_body_position():
    est = make_estimator()
    est.state[:3] = [1.0, 2.0, 3.0]
    assert np.allclose(est.pos_feet_to_body_global(), FEET_BODY)
    assert np.allclose(est.feet_pos(), FEET_BODY + np.array([[1.0], [2.0], [3.0]]))


def test_shared_contact_array_and_swing_leg():
    contact = np.ones(4, dtype=int)
    est = make_estimator(contact=contact)
    contact[0] = 0
    assert est.contact[0] == 0
    for _ in range(50):
        est.run()
    P = est.covariance
    assert np.all(np.isfinite(P))
    assert np.allclose(P, P.T, atol=1e-8)
    assert P[6, 6] > P[9, 9]
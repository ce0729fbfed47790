import io
import math

import numpy as np
import pytest

from quadctrl import mathtools as mt


def test_saturation_clamps_with_either_limit_order():
    assert mt.saturation(5.0, (-1.0, 1.0)) == 1.0
    assert mt.saturation(-5.0, (1.0, -1.0)) == -1.0
    assert mt.saturation(0.3, (-1.0, 1.0)) == 0.3


def test_kill_zero_offset():
    assert mt.kill_zero_offset(0.05, 0.08) == 0
    assert mt.kill_zero_offset(-0.05, 0.08) == 0
    assert mt.kill_zero_offset(0.5, 0.08) == 0.5


def test_inv_normalize_maps_limits_to_range():
    assert mt.inv_normalize(-1.0, 2.0, 6.0) == pytest.approx(2.0)
    assert mt.inv_normalize(1.0, 2.0, 6.0) == pytest.approx(6.0)
    assert mt.inv_normalize(10.0, -3.0, 3.0, 10.0, 20.0) == pytest.approx(-3.0)


def test_window_func_shape():
    assert mt.window_func(0.5, 0.2) == pytest.approx(1.0)
    assert mt.window_func(0.0, 0.2) == pytest.approx(0.0)
    for x in (0.05, 0.1, 0.15):
        assert mt.window_func(x, 0.2) == pytest.approx(mt.window_func(1 - x, 0.2))
    assert mt.window_func(0.1, 0.2) < mt.window_func(0.15, 0.2)


def test_window_func_warns_out_of_range():
    with pytest.warns(RuntimeWarning):
        mt.window_func(1.5, 0.2)
    with pytest.warns(RuntimeWarning):
        mt.window_func(0.5, 0.6)


def test_update_avg_cov_matches_sample_statistics():
    rng = np.random.default_rng(1)
    samples = rng.normal(size=(50, 3))
    cov = np.zeros((3, 3))
    exp = np.zeros(3)
    for n, sample in enumerate(samples, start=1):
        cov, exp = mt.update_avg_cov(cov, exp, sample, n)
    assert np.allclose(exp, samples.mean(axis=0))
    assert np.allclose(cov, np.cov(samples.T, bias=True))


def test_update_average_size_error():
    with pytest.raises(ValueError):
        mt.update_average(np.zeros(3), np.zeros(2), 2)
    with pytest.raises(ValueError):
        mt.update_covariance(np.zeros((3, 2)), np.zeros(3), np.zeros(3), 2)


@pytest.mark.parametrize("rot", [mt.rotx, mt.roty, mt.rotz])
def test_rotations_orthonormal(rot):
    R = rot(0.7)
    assert np.allclose(R @ R.T, np.eye(3))
    assert np.linalg.det(R) == pytest.approx(1.0)
    assert np.allclose(rot(0.3) @ rot(0.4), R)


def test_skew():
    v = np.array([1.0, -2.0, 0.5])
    w = np.array([0.3, 0.1, -4.0])
    assert np.allclose(mt.skew(v) @ w, np.cross(v, w))
    S = mt.skew(2.0)
    assert np.allclose(S, -S.T)
    assert S[1, 0] == 2.0


def test_rpy_round_trip():
    rpy = np.array([0.1, -0.2, 0.3])
    assert np.allclose(mt.rot_mat_to_rpy(mt.rpy_to_rot_mat(*rpy)), rpy)


def test_quat_to_rot_mat():
    assert np.allclose(mt.quat_to_rot_mat([1, 0, 0, 0]), np.eye(3))
    t = 0.8
    q = [math.cos(t / 2), 0, 0, math.sin(t / 2)]
    assert np.allclose(mt.quat_to_rot_mat(q), mt.rotz(t))


def test_rot_mat_to_exp():
    assert np.allclose(mt.rot_mat_to_exp(np.eye(3)), np.zeros(3))
    assert np.allclose(mt.rot_mat_to_exp(mt.rotz(0.5)), [0, 0, 0.5])
    assert np.allclose(mt.rot_mat_to_exp(mt.rotx(math.pi)), [math.pi, 0, 0])


def test_homo_matrix_inverse_round_trip():
    p = np.array([1.0, 2.0, 3.0])
    H = mt.homo_matrix(p, mt.rpy_to_rot_mat(0.1, 0.2, 0.3))
    assert np.allclose(H @ mt.homo_matrix_inverse(H), np.eye(4))
    t = 0.4
    Hq = mt.homo_matrix(p, [math.cos(t / 2), math.sin(t / 2), 0, 0])
    assert np.allclose(Hq[:3, :3], mt.rotx(t))
    assert np.allclose(mt.no_homo_vec(Hq @ mt.homo_vec(np.zeros(3))), p)


def test_homo_matrix_bad_rotation():
    with pytest.raises(ValueError):
        mt.homo_matrix([0, 0, 0], [1, 2])


def test_vec12_vec34_round_trip():
    v = np.arange(12.0)
    m = mt.vec12_to_vec34(v)
    assert m.shape == (3, 4)
    assert np.allclose(m[:, 1], v[3:6])
    assert np.allclose(mt.vec34_to_vec12(m), v)


def test_avg_cov_measure():
    out = io.StringIO()
    avg = mt.AvgCov(2, "sig", show_period=4, wait_count=2, zoom_factor=1, stream=out)
    values = [np.array([9.0, 9.0]), np.array([9.0, 9.0]),
              np.array([1.0, 2.0]), np.array([3.0, 4.0])]
    for v in values:
        avg.measure(v)
    assert np.allclose(avg.average, np.mean(values[2:], axis=0))
    assert np.allclose(avg.covariance, np.cov(np.array(values[2:]).T, bias=True))
    assert "sig measured count: 2" in out.getvalue()
    assert "Covariance of sig" in out.getvalue()
"""Dense strictly convex quadratic programming (Goldfarb-Idnani dual method).

The problem solved is::

    minimise    0.5 * x^T G x + g0^T x
    subject to  CE^T x + ce0 == 0
                CI^T x + ci0 >= 0

``G`` is ``n x n`` and must be positive definite; every column of ``CE``
and ``CI`` is one constraint.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

_EPS = float(np.finfo(float).eps)
_INF = math.inf

__all__ = [
    "QPResult",
    "solve_quadprog",
    "cholesky_decomposition",
    "cholesky_solve",
    "distance",
    "seq",
    "singleton",
]


@dataclass(frozen=True)
class QPResult:
    """Solution of a quadratic program.

    ``value`` is infinite when the problem turned out to be infeasible;
    ``x`` then holds the last iterate.
    """

    x: np.ndarray
    value: float

    @property
    def feasible(self) -> bool:
        return math.isfinite(self.value)


def seq(start: int, end: int) -> set[int]:
    """Return the set of integers from ``start`` to ``end`` inclusive."""
    return set(range(start, end + 1))


def singleton(index: int) -> set[int]:
    """Return a set holding only ``index``."""
    return {index}


def distance(a: float, b: float) -> float:
    """Euclidean length of ``(a, b)``, computed without overflow."""
    a1 = abs(a)
    b1 = abs(b)
    if a1 > b1:
        t = b1 / a1
        return a1 * math.sqrt(1.0 + t * t)
    if b1 > a1:
        t = a1 / b1
        return b1 * math.sqrt(1.0 + t * t)
    return a1 * math.sqrt(2.0)


def cholesky_decomposition(A: ArrayLike) -> np.ndarray:
    """Factor a positive definite matrix as ``L L^T``.

    The returned matrix holds ``L`` in its lower triangle and ``L^T`` in its
    upper triangle (they share the diagonal). The input is not modified.
    Raises ``ValueError`` if the matrix is not positive definite.
    """
    A = np.array(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Cholesky decomposition needs a square matrix, got shape {A.shape}")
    n = A.shape[0]
    for i in range(n):
        for j in range(i, n):
            total = A[i, j] - A[i, :i] @ A[j, :i]
            if i == j:
                if total <= 0.0:
                    raise ValueError(f"Error in cholesky decomposition, sum: {total}")
                A[i, i] = math.sqrt(total)
            else:
                A[j, i] = total / A[i, i]
        A[i, i + 1:] = A[i + 1:, i]
    return A


def _forward_elimination(L: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve ``L y = b`` using the lower triangle of ``L``."""
    y = np.empty_like(b, dtype=float)
    for i in range(L.shape[0]):
        y[i] = (b[i] - L[i, :i] @ y[:i]) / L[i, i]
    return y


def _backward_elimination(U: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Solve ``U x = y`` using the upper triangle of ``U``."""
    x = np.empty_like(y, dtype=float)
    for i in range(U.shape[0] - 1, -1, -1):
        x[i] = (y[i] - U[i, i + 1:] @ x[i + 1:]) / U[i, i]
    return x


def cholesky_solve(L: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Solve ``A x = b`` given the output of :func:`cholesky_decomposition`."""
    L = np.asarray(L, dtype=float)
    b = np.asarray(b, dtype=float)
    return _backward_elimination(L, _forward_elimination(L, b))


def _diagonal_sum(M: np.ndarray) -> float:
    return float(np.diagonal(M).sum())


class _ActiveSet:
    """Factorisation state of the active constraint set."""

    def __init__(self, J: np.ndarray, p: int, size: int) -> None:
        n = J.shape[0]
        self.n = n
        self.p = p
        self.J = J
        self.R = np.zeros((n, n))
        self.r_norm = 1.0
        self.A = np.zeros(size + 1, dtype=int)
        self.u = np.zeros(size + 1)
        self.r = np.zeros(size + 1)
        self.iq = 0

    def step_direction(self, normal: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Return ``d = J^T n`` and the primal step ``z``; update ``r``."""
        iq = self.iq
        d = self.J.T @ normal
        z = self.J[:, iq:] @ d[iq:]
        for i in range(iq - 1, -1, -1):
            total = self.R[i, i + 1:iq] @ self.r[i + 1:iq]
            self.r[i] = (d[i] - total) / self.R[i, i]
        return d, z

    def add(self, d: np.ndarray) -> bool:
        """Append a constraint; return False if it is degenerate."""
        J = self.J
        for j in range(self.n - 1, self.iq, -1):
            cc = d[j - 1]
            ss = d[j]
            h = distance(cc, ss)
            if abs(h) < _EPS:
                continue
            d[j] = 0.0
            ss /= h
            cc /= h
            if cc < 0.0:
                cc = -cc
                ss = -ss
                d[j - 1] = -h
            else:
                d[j - 1] = h
            xny = ss / (1.0 + cc)
            t1 = J[:, j - 1].copy()
            t2 = J[:, j].copy()
            J[:, j - 1] = t1 * cc + t2 * ss
            J[:, j] = xny * (t1 + J[:, j - 1]) - t2
        self.iq += 1
        iq = self.iq
        self.R[:iq, iq - 1] = d[:iq]
        if abs(d[iq - 1]) <= _EPS * self.r_norm:
            return False
        self.r_norm = max(self.r_norm, abs(d[iq - 1]))
        return True

    def delete(self, constraint: int) -> None:
        """Remove an active inequality constraint and restore triangularity."""
        iq = self.iq
        A, u, R, J = self.A, self.u, self.R, self.J
        matches = [i for i in range(self.p, iq) if A[i] == constraint]
        if not matches:
            raise ValueError(
                f"Attempt to delete non existing constraint, constraint: {constraint}"
            )
        qq = matches[0]
        A[qq:iq - 1] = A[qq + 1:iq].copy()
        u[qq:iq - 1] = u[qq + 1:iq].copy()
        R[:, qq:iq - 1] = R[:, qq + 1:iq].copy()
        A[iq - 1] = A[iq]
        u[iq - 1] = u[iq]
        A[iq] = 0
        u[iq] = 0.0
        R[:iq, iq - 1] = 0.0
        iq -= 1
        self.iq = iq
        if iq == 0:
            return
        for j in range(qq, iq):
            cc = R[j, j]
            ss = R[j + 1, j]
            h = distance(cc, ss)
            if abs(h) < _EPS:
                continue
            cc /= h
            ss /= h
            R[j + 1, j] = 0.0
            if cc < 0.0:
                R[j, j] = -h
                cc = -cc
                ss = -ss
            else:
                R[j, j] = h
            xny = ss / (1.0 + cc)
            t1 = R[j, j + 1:iq].copy()
            t2 = R[j + 1, j + 1:iq].copy()
            R[j, j + 1:iq] = t1 * cc + t2 * ss
            R[j + 1, j + 1:iq] = xny * (t1 + R[j, j + 1:iq]) - t2
            t1 = J[:, j].copy()
            t2 = J[:, j + 1].copy()
            J[:, j] = t1 * cc + t2 * ss
            J[:, j + 1] = xny * (J[:, j] + t1) - t2


def _constraint_matrix(M: ArrayLike | None, n: int, name: str) -> np.ndarray:
    if M is None:
        return np.zeros((n, 0))
    M = np.asarray(M, dtype=float)
    if M.ndim != 2:
        raise ValueError(f"The matrix {name} must be two-dimensional")
    return M


def _constraint_vector(v: ArrayLike | None) -> np.ndarray:
    if v is None:
        return np.zeros(0)
    return np.asarray(v, dtype=float).reshape(-1)


def solve_quadprog(
    G: ArrayLike,
    g0: ArrayLike,
    CE: ArrayLike | None = None,
    ce0: ArrayLike | None = None,
    CI: ArrayLike | None = None,
    ci0: ArrayLike | None = None,
) -> QPResult:
    """Solve the quadratic program described in the module docstring.

    Raises ``ValueError`` on inconsistent dimensions or a matrix ``G`` that
    is not positive definite, and ``RuntimeError`` if the equality
    constraints are linearly dependent.
    """
    G = np.array(G, dtype=float)
    if G.ndim != 2:
        raise ValueError("The matrix G must be two-dimensional")
    n = G.shape[1]
    if G.shape[0] != n:
        raise ValueError(f"The matrix G is not a squared matrix ({G.shape[0]} x {n})")
    g0 = np.asarray(g0, dtype=float).reshape(-1)
    CE = _constraint_matrix(CE, n, "CE")
    ce0 = _constraint_vector(ce0)
    CI = _constraint_matrix(CI, n, "CI")
    ci0 = _constraint_vector(ci0)
    p = CE.shape[1]
    m = CI.shape[1]
    if CE.shape[0] != n:
        raise ValueError(
            f"The matrix CE is incompatible (incorrect number of rows {CE.shape[0]} , expecting {n})"
        )
    if ce0.size != p:
        raise ValueError(
            f"The vector ce0 is incompatible (incorrect dimension {ce0.size}, expecting {p})"
        )
    if CI.shape[0] != n:
        raise ValueError(
            f"The matrix CI is incompatible (incorrect number of rows {CI.shape[0]} , expecting {n})"
        )
    if ci0.size != m:
        raise ValueError(
            f"The vector ci0 is incompatible (incorrect dimension {ci0.size}, expecting {m})"
        )

    c1 = _diagonal_sum(G)
    L = cholesky_decomposition(G)
    l_inv = _forward_elimination(L, np.eye(n))
    c2 = _diagonal_sum(l_inv)
    active = _ActiveSet(l_inv.T.copy(), p, m + p)
    A, u, r = active.A, active.u, active.r

    # Unconstrained minimiser: a feasible point of the dual problem.
    x = -cholesky_solve(L, g0)
    f_value = 0.5 * float(g0 @ x)

    for i in range(p):
        normal = CE[:, i]
        d, z = active.step_direction(normal)
        iq = active.iq
        t2 = 0.0
        if abs(z @ z) > _EPS:
            t2 = (-(normal @ x) - ce0[i]) / (z @ normal)
        x = x + t2 * z
        u[iq] = t2
        u[:iq] -= t2 * r[:iq]
        f_value += 0.5 * t2 * t2 * float(z @ normal)
        A[i] = -i - 1
        if not active.add(d):
            raise RuntimeError("Constraints are linearly dependent")

    iai = np.arange(m)
    iaexcl = np.ones(m, dtype=bool)

    while True:
        # Step 1: choose a violated constraint.
        for i in range(p, active.iq):
            iai[A[i]] = -1
        s = CI.T @ x + ci0
        iaexcl[:] = True
        psi = float(np.minimum(s, 0.0).sum())
        ss = 0.0
        ip = 0
        if abs(psi) <= m * _EPS * c1 * c2 * 100.0:
            return QPResult(x, f_value)
        u_old = u.copy()
        A_old = A.copy()
        x_old = x.copy()

        restart = False
        while not restart:
            # Step 2: determine a new S-pair.
            for i in range(m):
                if s[i] < ss and iai[i] != -1 and iaexcl[i]:
                    ss = s[i]
                    ip = i
            if ss >= 0.0:
                return QPResult(x, f_value)
            normal = CI[:, ip]
            u[active.iq] = 0.0
            A[active.iq] = ip

            while True:
                # Step 2a: step direction; step 2b: step length.
                d, z = active.step_direction(normal)
                iq = active.iq
                dropped = 0
                t1 = _INF
                for k in range(p, iq):
                    if r[k] > 0.0 and u[k] / r[k] < t1:
                        t1 = u[k] / r[k]
                        dropped = int(A[k])
                if abs(z @ z) > _EPS:
                    t2 = -s[ip] / (z @ normal)
                    if t2 < 0:
                        t2 = _INF
                else:
                    t2 = _INF
                t = min(t1, t2)

                if t >= _INF:
                    return QPResult(x, _INF)
                if t2 >= _INF:
                    u[:iq] -= t * r[:iq]
                    u[iq] += t
                    iai[dropped] = dropped
                    active.delete(dropped)
                    continue

                x = x + t * z
                f_value += t * float(z @ normal) * (0.5 * t + u[iq])
                u[:iq] -= t * r[:iq]
                u[iq] += t

                if abs(t - t2) < _EPS:
                    if active.add(d):
                        iai[ip] = -1
                        restart = True
                    else:
                        iaexcl[ip] = False
                        active.delete(ip)
                        iai = np.arange(m)
                        for i in range(p, active.iq):
                            A[i] = A_old[i]
                            u[i] = u_old[i]
                            iai[A[i]] = -1
                        x = x_old.copy()
                    break

                iai[dropped] = dropped
                active.delete(dropped)
                s[ip] = CI[:, ip] @ x + ci0[ip]
# -*- mode: python; coding: utf-8 -*-
# Copyright 2011-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal as Taaae
from numpy.testing import assert_almost_equal as Taae

from dampls.minimizer import (
    CONVERGED_CONDITIONS,
    ExitCondition,
    LevenbergMarquardt,
    MinimizerConfig,
    Result,
    minimize,
)
from dampls.objective import Objective, ObjectiveModel
from dampls.simpleenum import members


class SpyModel(ObjectiveModel):
    """An objective whose RSS comes from an arbitrary function and whose
    gradient and Hessian are constant. Counts covariance evaluations."""

    def __init__(self, rssfunc, gradient, hessian, supports_jacobian=True):
        self._rssfunc = rssfunc
        self._gradient = np.array(gradient, dtype=float)
        self._hessian = np.array(hessian, dtype=float)
        self.npar = self._gradient.size
        self.supports_jacobian = supports_jacobian
        self.ncovar = 0

    def eval_func(self, params):
        self.nfev += 1
        self.params = np.array(params, dtype=float)
        if np.all(np.isfinite(self.params)):
            self.rss = float(self._rssfunc(self.params))
        else:
            self.rss = np.nan

    def eval_jacobian(self, params):
        self.njev += 1
        self.gradient = self._gradient.copy()
        self.hessian = self._hessian.copy()

    def eval_covariance(self, params):
        self.ncovar += 1
        self.params = np.array(params, dtype=float)


def proportional(yobs=(2.0, 4.01, 5.99), jacobian=True):
    x = np.array([1.0, 2.0, 3.0])

    def yfunc(params, vals):
        vals[:] = params[0] * x

    def jfunc(params, jac):
        jac[0] = x

    return Objective(1, yobs, yfunc, jfunc if jacobian else None)


def rosenbrock():
    def yfunc(params, vals):
        vals[0] = -10 * (params[1] - params[0] ** 2)
        vals[1] = params[0]

    def jfunc(params, jac):
        jac[0] = [20 * params[0], 1.0]
        jac[1] = [-10.0, 0.0]

    return Objective(2, [0.0, 1.0], yfunc, jfunc)


def test_exit_conditions():
    names = [n for n, v in members(ExitCondition)]
    assert sorted(names) == sorted(
        """none converged relative_gradient relative_points exceed_iterations
        invalid_values manually_stopped""".split()
    )
    assert ExitCondition.exceed_iterations not in CONVERGED_CONDITIONS
    assert ExitCondition.relative_points in CONVERGED_CONDITIONS


def test_proportional_fit():
    res = minimize(proportional(), [1.0])
    assert res.status in CONVERGED_CONDITIONS
    assert res.succeeded
    assert abs(res.params[0] - 2.0) < 1e-3
    Taae(res.params[0], 27.99 / 14, decimal=10)
    assert 0 <= res.niter < 50
    assert res.nfev > 0
    assert res.njev > 0

    # covariance of a one-parameter linear fit: rss / ndof / sum(x**2)
    Taae(res.covar[0, 0], res.rss / 2 / 14)
    Taae(res.perror[0], np.sqrt(res.rss / 2 / 14))
    Taae(res.corr[0, 0], 1.0)


def test_proportional_fit_numerical_derivatives():
    res = minimize(proportional(jacobian=False), [1.0])
    assert res.succeeded
    Taae(res.params[0], 27.99 / 14, decimal=6)


def test_hessian_not_left_damped():
    obj = proportional()
    minimize(obj, [1.0])
    Taae(obj.hessian[0, 0], 14.0)


def test_rosenbrock():
    records = []
    res = minimize(rosenbrock(), [-1.2, 1.0], monitor=records.append)
    assert res.succeeded
    Taaae(res.params, [1.0, 1.0], decimal=5)
    # no degrees of freedom
    assert res.covar is None

    assert len(records)
    assert records[-1].niter <= res.niter

    for prev, cur in zip(records[:-1], records[1:]):
        if not cur.accepted:
            # damping only grows during a run of rejections
            assert cur.mu >= prev.mu
            assert cur.mu == prev.mu * prev.nu
            assert cur.nu == 2 * prev.nu

    for rec in records:
        assert rec.nu >= 2
        if rec.accepted:
            assert rec.nu == 2
            assert rec.rho > 0
        else:
            assert not rec.rho > 0


def test_nan_initial_rss():
    model = SpyModel(lambda p: np.nan, [1.0], [[1.0]])
    res = minimize(model, [0.0])
    assert res.status == ExitCondition.invalid_values
    assert res.niter == -1
    assert model.ncovar == 1
    assert model.njev == 0
    assert not res.succeeded


def test_maxiter_zero():
    res = minimize(proportional(), [1.0], maxiter=0)
    assert res.status == ExitCondition.manually_stopped
    assert res.niter == -1
    Taae(res.params[0], 1.0)

    # RSS already within ftol: the later check wins.
    res = minimize(proportional(), [2.0], maxiter=0, ftol=1.0)
    assert res.status == ExitCondition.converged
    assert res.niter == -1


def test_zero_gradient_at_start():
    # Exits at the initial gradient check rather than by running out of
    # iterations; see "Zero-gradient / constant-RSS scenario" in DESIGN.md.
    model = SpyModel(lambda p: 5.0, [0.0, 0.0], np.eye(2))
    res = minimize(model, [1.0, 1.0])
    assert res.status == ExitCondition.relative_gradient
    assert res.niter == -1
    assert model.ncovar == 1
    assert model.nfev == 1


def test_gradient_checked_after_ftol_at_start():
    # Exact data at the solution: both tests pass, and the gradient is last.
    res = minimize(proportional(yobs=(2.0, 4.0, 6.0)), [2.0])
    assert res.status == ExitCondition.relative_gradient
    assert res.niter == -1


def test_rerun_from_converged_point():
    obj = proportional(yobs=(2.0, 4.0, 6.0))
    first = minimize(obj, [1.0])
    assert first.status == ExitCondition.converged
    assert first.niter >= 1

    again = minimize(obj, first.params.copy())
    assert again.succeeded
    assert again.niter <= 1

    # Noisy data: the rerun stops on a vanishing step.
    obj = proportional()
    first = minimize(obj, [1.0])
    assert first.succeeded

    again = minimize(obj, first.params.copy())
    assert again.status == ExitCondition.relative_points
    assert again.niter <= 1
    Taae(again.params[0], first.params[0], decimal=12)


def test_exceed_iterations():
    res = minimize(proportional(), [1.0], maxiter=1)
    assert res.status == ExitCondition.exceed_iterations
    assert res.niter == 1
    assert not res.succeeded
    # the step was taken and the covariance is evaluated there
    assert abs(res.params[0] - 2.0) < 1e-2
    assert res.covar is not None


def test_automatic_iteration_limit():
    # The RSS falls steadily along the gradient, so every step is accepted
    # and no tolerance is ever met.
    def rss(p):
        return 1e6 - p[0]

    model = SpyModel(rss, [-1.0], [[1.0]], supports_jacobian=True)
    res = minimize(model, [0.0])
    assert res.status == ExitCondition.exceed_iterations
    assert res.niter == 200

    model = SpyModel(rss, [-1.0], [[1.0]], supports_jacobian=False)
    res = minimize(model, [0.0])
    assert res.status == ExitCondition.exceed_iterations
    assert res.niter == 400


def test_zero_predicted_reduction_rejects():
    # diag(H) + mu = (1.5, -0.5), giving step (0, 2) and
    # step . (mu * step - g) = 2 * (0.5 * 2 - 1) = 0 exactly.
    model = SpyModel(lambda p: 1.0, [0.0, 1.0], np.diag([1.0, -1.0]))
    records = []
    res = minimize(model, [0.0, 0.0], initial_mu=0.5, monitor=records.append)

    assert records[0].accepted is False
    assert records[0].rho == 0.0
    assert records[0].mu == 1.0
    assert records[0].nu == 4.0
    # the next damped matrix is singular, which ends the run
    assert res.status == ExitCondition.invalid_values
    assert res.niter == 1
    assert model.ncovar == 1


def test_cancel():
    res = minimize(proportional(), [1.0], cancel=lambda: True)
    assert res.status == ExitCondition.manually_stopped
    assert res.niter == 0

    calls = []

    def cancel():
        calls.append(1)
        return len(calls) > 3

    res = minimize(rosenbrock(), [-1.2, 1.0], cancel=cancel)
    assert res.status == ExitCondition.manually_stopped
    assert len(calls) == 4


def test_bad_arguments():
    with pytest.raises(ValueError):
        minimize(None, [1.0])
    with pytest.raises(ValueError):
        minimize(proportional(), None)
    with pytest.raises(ValueError):
        minimize(proportional(), [1.0, 2.0])
    with pytest.raises(ValueError):
        minimize(proportional(), [1.0], gtol=-1)
    with pytest.raises(ValueError):
        minimize(proportional(), [1.0], initial_mu=0.0)


def test_config_objects():
    cfg = MinimizerConfig()
    assert cfg.initial_mu == 1e-3
    assert cfg.gtol == cfg.xtol == cfg.ftol == 1e-18
    assert cfg.maxiter == -1

    cfg.maxiter = 1
    lm = LevenbergMarquardt(cfg)

    # the minimizer keeps its own copy
    cfg.maxiter = 1000
    assert lm.config.maxiter == 1

    res = lm.minimize(proportional(), [1.0])
    assert res.status == ExitCondition.exceed_iterations

    # runs with different settings don't interfere
    other = LevenbergMarquardt()
    assert other.minimize(proportional(), [1.0]).succeeded
    assert lm.minimize(proportional(), [1.0]).niter == 1

    cfg = MinimizerConfig().parse(["gtol=1e-10", "maxiter=20", "initial_mu=0.01"])
    assert cfg.check() is cfg
    assert cfg.gtol == 1e-10
    assert cfg.maxiter == 20

    cfg.xtol = -1
    with pytest.raises(ValueError):
        cfg.check()


def test_result_is_read_only():
    res = minimize(proportional(), [1.0])
    assert isinstance(res, Result)
    with pytest.raises(AttributeError):
        res.niter = 3
    assert "status=" in repr(res)

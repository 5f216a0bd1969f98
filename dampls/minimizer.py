# -*- mode: python; coding: utf-8 -*-
# Copyright 2011-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

### The minimizer is the classic damped Gauss-Newton iteration with the
### Levenberg-Marquardt damping update of Nielsen. Usage information is given
### in the docstring farther below; references follow immediately.

# == Academic References ==
#
# Levenberg, K. 1944, "A method for the solution of certain nonlinear
#  problems in least squares," Quart. Appl. Math., vol. 2,
#  pp. 164-168.
#
# Marquardt, DW. 1963, "An algorithm for least squares estimation of
#  nonlinear parameters," SIAM J. Appl. Math., vol. 11, pp. 431-441.
#  (DOI: 10.1137/0111030 )
#
# Madsen, K., Nielsen, H. B. and Tingleff, O. 2004, "Methods for
#  Non-Linear Least Squares Problems," 2nd ed., Informatics and
#  Mathematical Modelling, Technical University of Denmark.
#  (The damping update used below is their equation 3.16.)
#
# Gavin, H. P. 2017, "The Levenberg-Marquardt method for nonlinear least
#  squares curve-fitting problems," Department of Civil and Environmental
#  Engineering, Duke University.

"""dampls.minimizer - damped Gauss-Newton (Levenberg-Marquardt) minimization

Basic usage::

    from dampls.objective import Objective
    from dampls.minimizer import minimize, ExitCondition

    obj = Objective(npar, yobs, yfunc, jfunc)
    result = minimize(obj, guess)

    if result.succeeded:
        print(result.params, result.perror)

Reusable configuration::

    from dampls.minimizer import LevenbergMarquardt, MinimizerConfig

    cfg = MinimizerConfig()
    cfg.gtol = 1e-12
    lm = LevenbergMarquardt(cfg)
    result = lm.minimize(obj, guess)

Configuration keywords (see :class:`MinimizerConfig`):

initial_mu
  The initial damping is ``initial_mu * max(diag(H))``. Default 1e-3.
gtol
  Stop when the infinity norm of the gradient is at most this. Default 1e-18.
xtol
  Stop when the L2 norm of a proposed step is at most ``xtol * (xtol + P.P)``.
  Default 1e-18.
ftol
  Stop when the residual sum of squares is at most this. Default 1e-18.
maxiter
  The maximum number of outer iterations. Negative means automatic:
  ``100 * (npar + 1)`` if the objective has an explicit Jacobian,
  ``200 * (npar + 1)`` otherwise. Zero evaluates the objective at the
  guess without iterating.

Result.status values (an :data:`ExitCondition`):

'converged'
  The residual sum of squares is at most ftol.
'relative_gradient'
  The infinity norm of the gradient is at most gtol.
'relative_points'
  The proposed step is small relative to the parameters (xtol).
'exceed_iterations'
  maxiter outer iterations were done without meeting any tolerance.
'invalid_values'
  The objective produced a NaN residual sum of squares.
'manually_stopped'
  maxiter was zero, or the run was cancelled.

When several tolerances are met at the same check the one tested last is
reported: gtol is tested after ftol at the starting point, and ftol after
gtol following an accepted step. Numerical trouble never raises; always check
`Result.status` (or `Result.succeeded`) before trusting the parameters.

"""

__all__ = """CONVERGED_CONDITIONS ExitCondition LevenbergMarquardt
MinimizerConfig Result minimize""".split()

import logging

import numpy as np

from . import Holder
from .kwargv import ParseKeywords
from .linalg import damped, enorm_careful, infnorm, solve
from .simpleenum import enumeration

logger = logging.getLogger(__name__)


@enumeration
class ExitCondition(object):
    none = "none"
    converged = "converged"
    relative_gradient = "relative_gradient"
    relative_points = "relative_points"
    exceed_iterations = "exceed_iterations"
    invalid_values = "invalid_values"
    manually_stopped = "manually_stopped"


CONVERGED_CONDITIONS = frozenset(
    [
        ExitCondition.converged,
        ExitCondition.relative_gradient,
        ExitCondition.relative_points,
    ]
)


class MinimizerConfig(ParseKeywords):
    """Tuning knobs for :class:`LevenbergMarquardt`.

    Each run gets its own configuration value; nothing here is shared between
    runs. Because this is a :class:`dampls.kwargv.ParseKeywords`, it can be
    filled in from ``key=value`` command-line words as well as by assignment.

    """

    initial_mu = 1e-3
    gtol = 1e-18
    xtol = 1e-18
    ftol = 1e-18
    maxiter = -1

    def check(self):
        """Coerce and validate the settings, raising :exc:`ValueError` for bad
        ones. Returns *self*."""
        self.initial_mu = float(self.initial_mu)
        self.gtol = float(self.gtol)
        self.xtol = float(self.xtol)
        self.ftol = float(self.ftol)
        self.maxiter = int(self.maxiter)

        if not (self.initial_mu > 0.0 and np.isfinite(self.initial_mu)):
            raise ValueError("initial_mu must be positive and finite")

        if not self.gtol >= 0.0:
            raise ValueError("gtol")

        if not self.xtol >= 0.0:
            raise ValueError("xtol")

        if not self.ftol >= 0.0:
            raise ValueError("ftol")

        return self


class Result(object):
    """The outcome of a minimization. Attributes:

    model     - The objective model, left at the final parameters.
    niter     - The number of outer iterations; -1 if the run stopped before
                the first one.
    status    - The :data:`ExitCondition` that ended the run.
    succeeded - Whether `status` is one of the converged conditions.
    params    - The final parameters (from `model`).
    rss       - The final residual sum of squares.
    covar     - The covariance of the parameters, or None.
    perror    - The 1σ uncertainties on the parameters, or None.
    corr      - The correlation matrix of the parameters, or None.
    nfev      - The number of function evaluations used.
    njev      - The number of Jacobian evaluations used.

    A Result can't be modified after it has been created.

    """

    __slots__ = ("_model", "_niter", "_status")

    def __init__(self, model, niter, status):
        object.__setattr__(self, "_model", model)
        object.__setattr__(self, "_niter", niter)
        object.__setattr__(self, "_status", status)

    def __setattr__(self, name, value):
        raise AttributeError("Result objects are read-only")

    def __repr__(self):
        return "<Result status=%s niter=%d rss=%r>" % (
            self._status,
            self._niter,
            self.rss,
        )

    model = property(lambda self: self._model)
    niter = property(lambda self: self._niter)
    status = property(lambda self: self._status)

    @property
    def succeeded(self):
        return self._status in CONVERGED_CONDITIONS

    @property
    def params(self):
        return self._model.params

    @property
    def rss(self):
        return self._model.rss

    @property
    def covar(self):
        return self._model.covar

    @property
    def perror(self):
        return self._model.perror

    @property
    def corr(self):
        return self._model.corr

    @property
    def nfev(self):
        return self._model.nfev

    @property
    def njev(self):
        return self._model.njev


class LevenbergMarquardt(object):
    """A configured Levenberg-Marquardt minimizer.

    config
      The :class:`MinimizerConfig` in use. It is copied on construction, so
      later changes to the caller's object do not leak into this minimizer.
    normfunc
      A function computing the L2 norm of a step, with the signature of
      :func:`dampls.linalg.enorm_careful` (the default).

    """

    normfunc = None

    def __init__(self, config=None):
        if config is None:
            config = MinimizerConfig()
        self.config = config.copy().check()

    def minimize(self, model, guess, cancel=None, monitor=None):
        """Minimize the residual sum of squares of *model* starting from *guess*.

        *cancel*, if given, is called with no arguments at the top of each
        outer iteration and each trial step; a true return stops the run with
        :data:`ExitCondition.manually_stopped`. *monitor*, if given, is called
        after each trial step is accepted or rejected with a
        :class:`dampls.Holder` having the fields ``niter``, ``mu``, ``nu``,
        ``rss``, ``rho`` and ``accepted`` (the damping values are those that
        will be used next).

        Returns a :class:`Result`.

        """
        if model is None:
            raise ValueError("model must not be None")
        if guess is None:
            raise ValueError("guess must not be None")

        guess = np.array(guess, dtype=float, ndmin=1).ravel()
        if model.npar is not None and guess.size != model.npar:
            raise ValueError(
                "expected exactly %d parameters, got %d" % (model.npar, guess.size)
            )

        cfg = self.config
        gtol, xtol, ftol = cfg.gtol, cfg.xtol, cfg.ftol
        finfo = np.finfo(float)
        enorm = self.normfunc
        if enorm is None:
            enorm = enorm_careful
        stopped = (lambda: False) if cancel is None else cancel

        status = ExitCondition.none

        model.reset_counts()
        model.eval_func(guess)
        p = np.array(model.params, dtype=float)
        rss = model.rss

        maxiter = cfg.maxiter
        if maxiter < 0:
            maxiter = (100 if model.supports_jacobian else 200) * (p.size + 1)

        if np.isnan(rss):
            logger.info("residual sum of squares is NaN at the initial guess")
            model.eval_covariance(p)
            return Result(model, -1, ExitCondition.invalid_values)

        # maxiter == 0 is the evaluation-only mode.
        if maxiter == 0:
            status = ExitCondition.manually_stopped

        if rss <= ftol:
            status = ExitCondition.converged

        model.eval_jacobian(p)
        grad = model.gradient
        hess = model.hessian
        hdiag = hess.diagonal().copy()

        if infnorm(grad) <= gtol:
            status = ExitCondition.relative_gradient

        if status != ExitCondition.none:
            logger.info("stopping before iterating: %s (rss=%g)", status, rss)
            model.eval_covariance(p)
            return Result(model, -1, status)

        mu = cfg.initial_mu * hdiag.max()
        nu = 2.0
        niter = 0

        while niter < maxiter and status == ExitCondition.none:
            if stopped():
                status = ExitCondition.manually_stopped
                break

            niter += 1

            while True:
                if stopped():
                    status = ExitCondition.manually_stopped
                    break

                # Solve (H + mu I) step = -g on a fresh damped copy of H.
                step = solve(damped(hess, hdiag, mu), -grad)

                if enorm(step, finfo) <= xtol * (xtol + np.dot(p, p)):
                    status = ExitCondition.relative_points
                    break

                pnew = p + step
                model.eval_func(pnew)
                rssnew = model.rss

                if np.isnan(rssnew):
                    status = ExitCondition.invalid_values
                    break

                # Ratio of the actual to the predicted reduction.
                prered = np.dot(step, mu * step - grad)
                rho = (rss - rssnew) / prered if prered != 0 else 0.0

                if rho > 0:
                    p = pnew
                    rss = rssnew

                    model.eval_jacobian(p)
                    grad = model.gradient
                    hess = model.hessian
                    hdiag = hess.diagonal().copy()

                    if infnorm(grad) <= gtol:
                        status = ExitCondition.relative_gradient

                    if rss <= ftol:
                        status = ExitCondition.converged

                    mu *= max(1.0 / 3, 1 - (2 * rho - 1) ** 3)
                    nu = 2.0
                    logger.debug(
                        "iter %d: accepted, rss=%g rho=%g mu=%g", niter, rss, rho, mu
                    )
                    if monitor is not None:
                        monitor(
                            Holder(
                                niter=niter, mu=mu, nu=nu, rss=rss, rho=rho, accepted=True
                            )
                        )
                    break

                mu *= nu
                nu *= 2
                logger.debug(
                    "iter %d: rejected, rss=%g rssnew=%g mu=%g", niter, rss, rssnew, mu
                )
                if monitor is not None:
                    monitor(
                        Holder(
                            niter=niter, mu=mu, nu=nu, rss=rss, rho=rho, accepted=False
                        )
                    )

                if not np.isfinite(mu):
                    # No finite damping yields an acceptable step.
                    status = ExitCondition.invalid_values
                    break

        if niter >= maxiter and status == ExitCondition.none:
            status = ExitCondition.exceed_iterations

        logger.info(
            "finished after %d iterations: %s (rss=%g, nfev=%d, njev=%d)",
            niter,
            status,
            rss,
            model.nfev,
            model.njev,
        )
        model.eval_covariance(p)
        return Result(model, niter, status)


def minimize(
    model,
    guess,
    initial_mu=1e-3,
    gtol=1e-18,
    xtol=1e-18,
    ftol=1e-18,
    maxiter=-1,
    cancel=None,
    monitor=None,
):
    """Minimize the residual sum of squares of the objective *model*.

    A one-shot wrapper around :class:`LevenbergMarquardt`; see the module
    documentation for the meaning of the keywords. Returns a :class:`Result`.

    """
    cfg = MinimizerConfig()
    cfg.set(initial_mu=initial_mu, gtol=gtol, xtol=xtol, ftol=ftol, maxiter=maxiter)
    return LevenbergMarquardt(cfg).minimize(
        model, guess, cancel=cancel, monitor=monitor
    )

# -*- mode: python; coding: utf-8 -*-
# Copyright 2011-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.objective - least-squares objective models

An objective model owns the current parameter vector and knows how to
evaluate, at any parameter vector, the weighted residual sum of squares (RSS),
its gradient and the Gauss-Newton approximation to its Hessian. The minimizer
in :mod:`dampls.minimizer` only ever talks to an objective through the
interface defined by :class:`ObjectiveModel`.

Basic usage::

    from dampls.objective import Objective

    def yfunc(params, vals):
        vals[:] = {model values computed from params}
    def jfunc(params, jac):
        jac[i,j] = {deriv of vals[j] w.r.t. params[i]}
        # i.e. jac[i] = {deriv of vals wrt params[i]}

    obj = Objective(npar, yobs, yfunc, jfunc=None, weights=None)
    obj.eval_func(guess)
    print(obj.rss)

If *jfunc* is None, the Jacobian is computed by finite differences. Note the
layout: the Jacobian has shape ``(npar, nobs)``, one row per parameter.

Quantities, with ``r = yobs - vals`` and ``W = diag(weights)``::

    rss      = r^T W r
    gradient = -J^T W r   (computed as -jac . (weights * r))
    hessian  = J^T W J    (computed as (jac * weights) . jac^T)

Parameter meta-information:

    obj.p_fix(paramindex, value)
    obj.p_free(paramindex)
    obj.p_step(paramindex, stepsize, isrel=False)
    obj.p_side(paramindex, sidedness) # one of 'auto', 'pos', 'neg', 'two'

Fixed parameters keep their configured value whatever vector they are handed,
and their Jacobian rows are zeroed, so the minimizer never moves them.

"""

__all__ = "DSIDE_AUTO DSIDE_NEG DSIDE_POS DSIDE_TWO Objective ObjectiveModel check_derivative".split()

import logging

import numpy as np

logger = logging.getLogger(__name__)

# Codes for the automatic derivative sidedness. With no parameter limits,
# "auto" behaves like "pos".
DSIDE_AUTO = 0x0
DSIDE_POS = 0x1
DSIDE_NEG = 0x2
DSIDE_TWO = 0x3

_dside_names = {
    "auto": DSIDE_AUTO,
    "pos": DSIDE_POS,
    "neg": DSIDE_NEG,
    "two": DSIDE_TWO,
}


anynotfinite = lambda x: not np.all(np.isfinite(x))


class ObjectiveModel(object):
    """The interface between the minimizer and a least-squares objective.

    Attributes:

    npar
      The number of parameters.
    params
      The parameter vector of the most recent function evaluation.
    rss
      The weighted residual sum of squares at `params`; NaN signals failure.
    gradient
      ``-J^T W r`` at the most recent Jacobian evaluation.
    hessian
      ``J^T W J`` at the most recent Jacobian evaluation.
    nfev
      The number of function evaluations since the last `reset_counts`.
    njev
      The number of Jacobian evaluations since the last `reset_counts`.
    supports_jacobian
      Whether the Jacobian comes from an explicit derivative function. The
      minimizer allows more iterations when it does not.
    covar, perror, corr
      Parameter covariance matrix, 1σ uncertainties and correlation matrix,
      set by `eval_covariance`; None if they could not be computed.

    Methods:

    reset_counts
      Zero `nfev` and `njev`.
    eval_func
      Evaluate the RSS at a parameter vector.
    eval_jacobian
      Evaluate the gradient and Hessian at a parameter vector.
    eval_covariance
      Compute the final covariance estimate at a parameter vector.

    None of the ``eval_`` methods raise because of numerical trouble; bad
    values propagate as NaNs.

    """

    npar = None
    params = None
    rss = None
    gradient = None
    hessian = None
    covar = None
    perror = None
    corr = None
    nfev = 0
    njev = 0
    supports_jacobian = False

    def reset_counts(self):
        self.nfev = 0
        self.njev = 0

    def eval_func(self, params):
        raise NotImplementedError()

    def eval_jacobian(self, params):
        raise NotImplementedError()

    def eval_covariance(self, params):
        raise NotImplementedError()


class Objective(ObjectiveModel):
    """A weighted least-squares objective built from a model function.

    Attributes beyond those of :class:`ObjectiveModel`:

    yobs
      The observed values, flattened to 1D.
    weights
      The per-observation weights ``W``; for Gaussian errors these are
      ``1/σ²``.
    values
      The model values at `params`.
    resids
      ``yobs - values``.
    jac
      The ``(npar, nobs)`` Jacobian of the most recent Jacobian evaluation.
    epsilon
      The floating-point epsilon used to size finite-difference steps; the
      machine epsilon if None.

    """

    yobs = None
    weights = None
    values = None
    resids = None
    jac = None
    epsilon = None

    _yfunc = None
    _jfunc = None
    _nout = None
    _jac_params = None

    _pvalue = None
    _pfixed = None
    _pstep = None
    _prelstep = None
    _pside = None

    def __init__(self, npar=None, yobs=None, yfunc=None, jfunc=None, weights=None):
        if npar is not None:
            self.set_npar(npar)
        if yfunc is not None:
            self.set_func(yobs, yfunc, jfunc, weights)

    # Parameters and their metadata -- can be configured without setting the
    # function.

    def set_npar(self, npar):
        try:
            npar = int(npar)
            assert npar > 0
        except Exception:
            raise ValueError("npar must be a positive integer")

        if self.npar == npar:
            return self

        self.npar = npar
        self._pvalue = np.full(npar, np.nan)
        self._pfixed = np.zeros(npar, dtype=bool)
        self._pstep = np.zeros(npar)
        self._prelstep = np.zeros(npar, dtype=bool)
        self._pside = np.full(npar, DSIDE_AUTO, dtype=int)
        return self

    def _check_npar(self):
        if self.npar is None:
            raise ValueError("no npar yet")

    def p_fix(self, idx, value):
        """Fix parameter(s) *idx* at *value*. Returns *self*."""
        self._check_npar()

        if anynotfinite(value):
            raise ValueError("value")

        self._pvalue[idx] = value
        self._pfixed[idx] = True
        return self

    def p_free(self, idx):
        """Let parameter(s) *idx* vary again. Returns *self*."""
        self._check_npar()
        self._pfixed[idx] = False
        return self

    def p_step(self, idx, step, isrel=False):
        self._check_npar()

        if np.any(~np.isfinite(step)) or np.any(np.asarray(step) < 0):
            raise ValueError("step")

        self._pstep[idx] = step
        self._prelstep[idx] = isrel
        return self

    def p_side(self, idx, sidedness):
        """Acceptable values for *sidedness* are "auto", "pos",
        "neg", and "two"."""
        self._check_npar()

        dsideval = _dside_names.get(sidedness)
        if dsideval is None:
            raise ValueError('unrecognized sidedness "%s"' % sidedness)

        self._pside[idx] = dsideval
        return self

    @property
    def nfree(self):
        self._check_npar()
        return int((~self._pfixed).sum())

    @property
    def ndof(self):
        self._check_func()
        return self._nout - self.nfree

    # The function and the observations.

    def set_func(self, yobs, yfunc, jfunc=None, weights=None):
        """Set the model function and the data it is compared to.

        *yfunc(params, vals)* must fill *vals* with the model values;
        *jfunc(params, jac)*, if not None, must fill the ``(npar, nobs)``
        array *jac*. *weights* defaults to one for every observation and may
        be a scalar. Returns *self*.

        """
        yobs = np.array(yobs, dtype=float, ndmin=1).ravel()
        if yobs.size < 1:
            raise ValueError("yobs must contain at least one value")
        if anynotfinite(yobs):
            raise ValueError("some observed values are nonfinite")

        if weights is None:
            weights = np.ones(yobs.shape)
        else:
            weights = np.array(weights, dtype=float, ndmin=1).ravel()
            if weights.size == 1:
                weights = np.broadcast_to(weights, yobs.shape).copy()

        if weights.shape != yobs.shape:
            raise ValueError("observed values and weights must have same shape")
        if anynotfinite(weights):
            raise ValueError("some weights are nonfinite")
        if np.any(weights < 0):
            raise ValueError("some weights are negative")

        if not callable(yfunc):
            raise ValueError("yfunc")
        if jfunc is not None and not callable(jfunc):
            raise ValueError("jfunc")

        self.yobs = yobs
        self.weights = weights
        self._nout = yobs.size
        self._yfunc = yfunc
        self._jfunc = jfunc
        self.supports_jacobian = jfunc is not None
        self.params = self.values = self.resids = self.rss = None
        self.jac = self.gradient = self.hessian = self._jac_params = None
        self.reset_counts()
        return self

    def _check_func(self):
        self._check_npar()
        if self._yfunc is None:
            raise ValueError("no model function yet")

    def _prep_params(self, params):
        self._check_func()
        params = np.array(params, dtype=float, ndmin=1).ravel()

        if params.size != self.npar:
            raise ValueError(
                "expected exactly %d parameters, got %d" % (self.npar, params.size)
            )

        params[self._pfixed] = self._pvalue[self._pfixed]
        return params

    def _same_point(self, a, b):
        return b is not None and np.array_equal(a, b, equal_nan=True)

    # Actual evaluation.

    def _ycall(self, params, vec):
        self.nfev += 1
        self._yfunc(params, vec)
        logger.debug("call #%d: f(%s) -> %s", self.nfev, params, vec)

    def eval_func(self, params):
        params = self._prep_params(params)
        vals = np.empty(self._nout)
        self._ycall(params, vals)

        self.params = params
        self.values = vals
        self.resids = self.yobs - vals
        self.rss = float(np.dot(self.weights, self.resids**2))

    def eval_jacobian(self, params):
        params = self._prep_params(params)

        if not self._same_point(params, self.params):
            self.eval_func(params)

        jac = np.zeros((self.npar, self._nout))
        self.njev += 1

        if self._jfunc is not None:
            self._jfunc(params, jac)
            logger.debug("jacobian #%d at %s", self.njev, params)
        else:
            self._jacobian_automatic(params, self.values, jac)

        jac[self._pfixed] = 0.0

        self.jac = jac
        self.gradient = -np.dot(jac, self.weights * self.resids)
        self.hessian = np.dot(jac * self.weights, jac.T)
        self._jac_params = params

    def _jacobian_automatic(self, params, fvec, jac):
        finfo = np.finfo(float)
        eps = np.sqrt(max(self.epsilon or finfo.eps, finfo.eps))
        ifree = np.where(~self._pfixed)[0]
        x = params[ifree]
        h = eps * np.abs(x)

        # Apply any fixed steps, absolute and relative.
        stepi = self._pstep[ifree]
        wh = np.where(stepi > 0)
        h[wh] = stepi[wh] * np.where(self._prelstep[ifree][wh], np.abs(x[wh]), 1.0)

        # Make sure no zero step values
        h[np.where(h == 0)] = eps

        dside = self._pside[ifree]
        wh = np.where(dside == DSIDE_NEG)
        h[wh] = -h[wh]

        logger.debug("finite-difference steps: %s", h)

        fp = np.empty(self._nout)
        fm = np.empty(self._nout)

        for i, pi in enumerate(ifree):
            xp = params.copy()
            xp[pi] += h[i]
            self._ycall(xp, fp)

            if dside[i] != DSIDE_TWO:
                # One-sided derivative
                jac[pi] = (fp - fvec) / h[i]
            else:
                # Two-sided ... extra func call
                xp[pi] = params[pi] - h[i]
                self._ycall(xp, fm)
                jac[pi] = (fp - fm) / (2 * h[i])

    def eval_covariance(self, params):
        """Estimate the parameter covariance at *params*.

        The covariance is the pseudo-inverse of the Hessian restricted to the
        free parameters, scaled by ``rss / ndof``. The model state is brought
        to *params* first; function and Jacobian evaluations are only redone
        if *params* differs from the last point they were made at.

        """
        params = self._prep_params(params)
        self.covar = self.perror = self.corr = None

        if not self._same_point(params, self.params):
            self.eval_func(params)

        ndof = self.ndof

        if ndof < 1:
            logger.debug("no degrees of freedom; not computing covariance")
            return
        if not np.isfinite(self.rss):
            logger.debug("nonfinite RSS; not computing covariance")
            return

        if not self._same_point(params, self._jac_params):
            self.eval_jacobian(params)

        if anynotfinite(self.hessian):
            logger.debug("nonfinite Hessian; not computing covariance")
            return

        ifree = np.where(~self._pfixed)[0]
        cv = np.linalg.pinv(self.hessian[np.ix_(ifree, ifree)]) * (self.rss / ndof)

        # Nonfree parameters get zeros.
        covar = np.zeros((self.npar, self.npar))
        covar[np.ix_(ifree, ifree)] = cv

        perror = np.zeros(self.npar)
        d = covar.diagonal()
        wh = np.where(d >= 0)
        perror[wh] = np.sqrt(d[wh])

        corr = np.zeros_like(covar)
        nz = np.where(perror > 0)[0]
        corr[np.ix_(nz, nz)] = covar[np.ix_(nz, nz)] / np.outer(perror[nz], perror[nz])

        self.covar = covar
        self.perror = perror
        self.corr = corr


def check_derivative(objective, params):
    """Compare an objective's explicit Jacobian to a finite-difference one.

    Returns ``(explicit, automatic)``, both ``(npar, nobs)`` arrays evaluated
    at *params*. The model function calls made here count towards the
    objective's `nfev`.

    """
    if objective._jfunc is None:
        raise ValueError("objective has no explicit Jacobian to check")

    params = objective._prep_params(params)
    fvec = np.empty(objective._nout)
    objective._ycall(params, fvec)

    explicit = np.zeros((objective.npar, objective._nout))
    objective._jfunc(params, explicit)

    auto = np.zeros_like(explicit)
    objective._jacobian_automatic(params, fvec, auto)
    return explicit, auto

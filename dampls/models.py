# -*- mode: python; coding: utf-8 -*-
# Copyright 2012-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""Model data with least-squares fitting

This module wraps :mod:`dampls.objective` and :mod:`dampls.minimizer` for the
common case of fitting a function of some parameters to a vector of data
with optional uncertainties::

  def func(slope, intercept, x):
      return slope * x + intercept

  mdl = Model(func, data, 1. / uncerts, args=(x,)).solve([1., 0.])
  mdl.print_soln()
  print(mdl['slope'].value, mdl['slope'].uncert)

Every model here is solved by the damped Gauss-Newton minimizer, so all of
them report parameter uncertainties the same way: the covariance is scaled
by the reduced χ² of the fit.

"""

__all__ = "Model PolynomialModel".split()

from functools import partial

import numpy as np
import numpy.polynomial.polynomial as npoly

from . import Holder


class Model(object):
    """Models data with the damped Gauss-Newton optimizer.

    The constructor's optional ``invsigma`` gives *inverse sigmas* of the
    data points, not inverse variances: write ``Model(func, data, 1. /
    uncerts)``. A data point with zero uncertainty cannot be expressed this
    way and must be handled as a constraint on the model instead.

    Before fitting, :attr:`objective` may be used to fix parameters or tune
    the finite-difference steps. After :meth:`solve`, the attributes below
    hold the outcome whether or not the fit converged; check :attr:`status`
    or ``result.succeeded``.

    """

    data = None
    "The data to be modeled, as a float array."

    invsigma = None
    "Inverse uncertainties of the data; the fit weights are ``invsigma**2``."

    pnames = None
    "The parameter names."

    objective = None
    "The :class:`dampls.objective.Objective` solved by :meth:`solve`."

    func = None
    deriv = None
    _args = ()

    result = None
    "The :class:`dampls.minimizer.Result` of the last fit."

    status = None
    niter = None
    params = None
    puncerts = None
    covar = None

    mfunc = None
    "The model function frozen at the best-fit parameters."

    mdata = None
    resids = None
    "``data - mdata``."

    chisq = None
    rchisq = None
    "χ² per degree of freedom, or None if there are none."

    def __init__(self, simple_func, data, invsigma=None, args=()):
        if simple_func is not None:
            self.set_simple_func(simple_func, args)
        if data is not None:
            self.set_data(data, invsigma)

    def set_data(self, data, invsigma=None):
        """Set the data to be modeled. A scalar *invsigma* applies to every point.
        Returns *self*."""
        self.data = np.array(data, dtype=float, ndmin=1)

        if invsigma is None:
            self.invsigma = np.ones(self.data.shape)
        else:
            invsigma = np.array(invsigma, dtype=float)
            if invsigma.ndim == 0:
                invsigma = np.full(self.data.shape, float(invsigma))
            if invsigma.shape != self.data.shape:
                raise ValueError("data and inverse-sigma arrays must have the same shape")
            self.invsigma = invsigma

        return self

    def set_func(self, func, pnames, args=(), deriv=None):
        """Set the model function, called as ``func(params, *args)`` and returning
        the modeled data. *deriv*, if given, is called the same way and
        returns the derivatives, shaped ``(npar,) + data.shape``; otherwise
        they are found numerically.

        A fresh :attr:`objective` is created. Returns *self*.

        """
        from .objective import Objective

        self.func = func
        self.deriv = deriv
        self._args = tuple(args)
        self.pnames = list(pnames)
        self.objective = Objective(len(self.pnames))
        return self

    def set_simple_func(self, func, args=()):
        """Set a model function called as ``func(p0, p1, ..., *args)``. The
        parameter names are taken from its signature. Returns *self*."""
        code = func.__code__
        npar = code.co_argcount - len(args)

        def wrapper(params, *args):
            return func(*(tuple(params) + args))

        return self.set_func(wrapper, code.co_varnames[:npar], args)

    def make_frozen_func(self, params):
        """Return :attr:`func` with its parameters bound to *params*; any extra
        arguments must still be supplied by the caller."""
        return partial(self.func, np.array(params, dtype=float, ndmin=1))

    def _prep_objective(self):
        if self.func is None:
            raise ValueError("no model function yet")
        if self.data is None:
            raise ValueError("no data yet")

        func, deriv, args = self.func, self.deriv, self._args
        npar = len(self.pnames)

        def yfunc(params, vals):
            vals[:] = np.asarray(func(params, *args), dtype=float).ravel()

        jfunc = None
        if deriv is not None:

            def jfunc(params, jac):
                jac[:] = np.asarray(deriv(params, *args), dtype=float).reshape((npar, -1))

        self.objective.set_func(self.data.ravel(), yfunc, jfunc, self.invsigma.ravel() ** 2)
        return self.objective

    def solve(self, guess, **settings):
        """Fit the model starting from *guess*. Keyword arguments set fields of
        a :class:`dampls.minimizer.MinimizerConfig`, such as ``gtol`` or
        ``maxiter``. Returns *self*.

        """
        from .minimizer import LevenbergMarquardt, MinimizerConfig

        cfg = MinimizerConfig()
        for key, value in settings.items():
            if key not in cfg._kwinfos:
                raise ValueError('unrecognized minimizer setting "%s"' % key)
            setattr(cfg, key, value)

        obj = self._prep_objective()
        self.result = res = LevenbergMarquardt(cfg).minimize(obj, guess)
        self.status = res.status
        self.niter = res.niter
        self.params = np.array(res.params)
        self.puncerts = res.perror
        self.covar = res.covar
        self.mfunc = self.make_frozen_func(self.params)

        self.resids = obj.resids.reshape(self.data.shape)
        self.mdata = self.data - self.resids
        self.chisq = res.rss
        self.rchisq = self.chisq / obj.ndof if obj.ndof > 0 else None
        return self

    def __getitem__(self, key):
        """Look up a parameter by name or index. The result is a
        :class:`dampls.Holder` with ``index``, ``name``, ``value`` and
        ``uncert`` fields; the last two are None before fitting."""
        if isinstance(key, str):
            if key not in self.pnames:
                raise ValueError('no such parameter named "%s"' % key)
            idx = self.pnames.index(key)
        elif isinstance(key, (int, np.integer)) and 0 <= key < len(self.pnames):
            idx = int(key)
        else:
            raise ValueError("illegal parameter key %r" % (key,))

        value = uncert = None
        if self.params is not None:
            value = self.params[idx]
        if self.puncerts is not None:
            uncert = self.puncerts[idx]

        return Holder(index=idx, name=self.pnames[idx], value=value, uncert=uncert)

    def print_soln(self):
        """Print the fitted parameters, their uncertainties and the goodness of
        fit. Returns *self*."""
        width = max(len(n) for n in self.pnames + ["r chi sq"])

        for i, name in enumerate(self.pnames):
            line = "%s: %14g" % (name.rjust(width), self.params[i])

            if self.puncerts is not None:
                err = self.puncerts[i]
                line += " +/- %14g" % err
                if self.params[i] != 0:
                    line += " (%.2f%%)" % abs(100.0 * err / self.params[i])

            print(line)

        if self.rchisq is not None:
            print("%s: %14g" % ("r chi sq".rjust(width), self.rchisq))
        elif self.chisq is not None:
            print("%s: %14g" % ("chi sq".rjust(width), self.chisq))
        return self

    def debug_derivative(self, guess):
        """Compare the analytic derivative to a numerical one at *guess*.
        Returns ``(explicit, auto)``; see
        :func:`dampls.objective.check_derivative`."""
        from .objective import check_derivative

        if self.deriv is None:
            raise ValueError("model has no analytic derivative to check")

        return check_derivative(self._prep_objective(), guess)


class PolynomialModel(Model):
    """Fit ``y = sum(a[i] * x**i for i in range(maxexponent + 1))``.

    The parameters are named "a0", "a1", ..., so "a2" is the quadratic
    coefficient. Derivatives are analytic. If :meth:`solve` is not given a
    guess, the starting point is a direct weighted polynomial fit, which the
    minimizer then refines and attaches uncertainties to.

    """

    def __init__(self, maxexponent, x, data, invsigma=None):
        self.maxexponent = maxexponent
        self.x = np.array(x, dtype=float, ndmin=1)
        npar = maxexponent + 1

        def deriv(params, x):
            return np.array([x**i for i in range(npar)])

        self.set_func(
            lambda params, x: npoly.polyval(x, params),
            ["a%d" % i for i in range(npar)],
            args=(self.x,),
            deriv=deriv,
        )
        self.set_data(data, invsigma)

    def make_frozen_func(self, params):
        return lambda x: npoly.polyval(x, params)

    def solve(self, guess=None, **settings):
        if guess is None:
            guess = npoly.polyfit(self.x, self.data, self.maxexponent, w=self.invsigma)
        return super(PolynomialModel, self).solve(guess, **settings)

# -*- mode: python; coding: utf-8 -*-
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.shapes - named one-dimensional model shapes

Each shape knows its parameter names, how to compute model values from
parameters and an X array, and the analytic derivatives of those values.
Derivatives use the same layout as everywhere else in this package:
``deriv(pars, x)[i]`` is d(model)/d(pars[i]).

Shapes are looked up by name with :func:`lookup`; this is how the ``dampfit``
tool selects its model.

"""

__all__ = "ExpShape GaussShape LineShape PowerShape Shape lookup names".split()

import numpy as np

from . import DamplsError


class Shape(object):
    name = None
    pnames = ()

    @property
    def npar(self):
        return len(self.pnames)

    def func(self, pars, x):
        """Return the model values at `x` for parameters `pars`."""
        raise NotImplementedError()

    def deriv(self, pars, x):
        """Return the ``(npar, x.size)`` Jacobian at `x` for parameters `pars`."""
        raise NotImplementedError()

    def make_model(self, x, data, invsigma=None, numderiv=False):
        """Return a :class:`dampls.models.Model` fitting this shape to `data`
        sampled at `x`. If `numderiv` is true, the analytic derivative is not
        given to the model and derivatives are computed numerically.

        """
        from .models import Model

        x = np.array(x, dtype=float, ndmin=1)
        mdl = Model(None, data, invsigma)
        mdl.set_func(
            self.func,
            self.pnames,
            args=(x,),
            deriv=None if numderiv else self.deriv,
        )
        return mdl


class LineShape(Shape):
    """``y = slope * x + intercept``"""

    name = "line"
    pnames = ("slope", "intercept")

    def func(self, pars, x):
        return pars[0] * x + pars[1]

    def deriv(self, pars, x):
        return np.array([x, np.ones_like(x)])


class ExpShape(Shape):
    """``y = amp * exp(rate * x)``"""

    name = "exp"
    pnames = ("amp", "rate")

    def func(self, pars, x):
        return pars[0] * np.exp(pars[1] * x)

    def deriv(self, pars, x):
        e = np.exp(pars[1] * x)
        return np.array([e, pars[0] * x * e])


class GaussShape(Shape):
    """``y = amp * exp(-(x - center)**2 / (2 * width**2))``"""

    name = "gauss"
    pnames = ("amp", "center", "width")

    def func(self, pars, x):
        amp, ctr, wid = pars
        return amp * np.exp(-0.5 * ((x - ctr) / wid) ** 2)

    def deriv(self, pars, x):
        amp, ctr, wid = pars
        dx = x - ctr
        e = np.exp(-0.5 * (dx / wid) ** 2)
        return np.array([e, amp * e * dx / wid**2, amp * e * dx**2 / wid**3])


class PowerShape(Shape):
    """``y = amp * x**index``; only meaningful for positive X."""

    name = "power"
    pnames = ("amp", "index")

    def func(self, pars, x):
        return pars[0] * x ** pars[1]

    def deriv(self, pars, x):
        xp = x ** pars[1]
        return np.array([xp, pars[0] * xp * np.log(x)])


_shapes = dict((s.name, s) for s in (LineShape(), ExpShape(), GaussShape(), PowerShape()))


def names():
    """Return a sorted list of the known shape names."""
    return sorted(_shapes.keys())


def lookup(name):
    """Return the :class:`Shape` named `name`, raising
    :exc:`dampls.DamplsError` if there is no such shape."""
    shape = _shapes.get(name)
    if shape is None:
        raise DamplsError(
            'no such shape "%s"; known shapes are: %s', name, ", ".join(names())
        )
    return shape

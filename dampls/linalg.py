# -*- mode: python; coding: utf-8 -*-
# Copyright 2011-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.linalg - the small amount of linear algebra the minimizer needs

Functions:

enorm_fast    - Naive Euclidean norm.
enorm_careful - Euclidean norm that rescales to dodge over/underflow.
infnorm       - Infinity norm (largest absolute element).
damped        - Copy of a square matrix with its diagonal replaced by diag + mu.
solve         - Dense linear solve that reports singular systems as NaNs.

The norm functions take a Numpy ``finfo`` object as their second argument so
that they can be swapped for one another; :func:`enorm_careful` is what the
minimizer uses.

"""

__all__ = "damped enorm_careful enorm_fast infnorm solve".split()

import numpy as np

# Euclidean norm-calculating functions. The naive implementation is fast but
# can be sensitive to under/overflows. The "careful" version is slower but
# rescales by the largest element when the squares would leave the
# representable range, using the thresholds of MINPACK's enorm.

enorm_fast = lambda v, finfo: np.sqrt(np.dot(v, v))

_rdwarf = 3.834e-20
_rgiant = 1.304e19


def enorm_careful(v, finfo):
    v = np.asarray(v)

    if v.size == 0:
        return 0.0

    mx = np.abs(v).max()

    if mx == 0:
        return v.dtype.type(0.0)
    if not np.isfinite(mx):
        # NaN or inf; either way every tolerance comparison must fail.
        return mx
    if mx > _rgiant / v.size or mx < _rdwarf:
        return mx * np.sqrt(np.dot(v / mx, v / mx))

    return np.sqrt(np.dot(v, v))


def infnorm(v):
    """Return ``max(|v_i|)``, NaN if any element is NaN, and 0 for an empty
    vector."""
    v = np.asarray(v)
    if v.size == 0:
        return 0.0
    if np.any(np.isnan(v)):
        return np.nan
    return np.abs(v).max()


def damped(a, diag, mu):
    """Return a new matrix equal to *a* but with diagonal ``diag + mu``.

    *a* itself is never modified: every trial step of the minimizer gets its
    own damped copy, so the undamped matrix held by the objective model is
    always consistent.

    """
    d = np.array(a, dtype=float, copy=True)
    idx = np.arange(d.shape[0])
    d[idx, idx] = np.asarray(diag) + mu
    return d


def solve(a, b):
    """Solve ``a x = b`` for *x*.

    Singular or non-finite systems do not raise: the returned vector is
    filled with NaN so that the caller's numerical checks fail naturally.

    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)

    if b.size == 0:
        return b.copy()

    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        return np.full(b.shape, np.nan)

    try:
        return np.linalg.solve(a, b)
    except np.linalg.LinAlgError:
        return np.full(b.shape, np.nan)

# -*- mode: python; coding: utf-8 -*-
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.cli.fittool - the 'dampfit' program."""

__all__ = "CheckDerivConfig FitConfig commandline".split()

import numpy as np

from .. import DamplsError
from ..kwargv import Custom, KwargvError, ParseKeywords
from ..minimizer import MinimizerConfig
from .. import shapes
from . import die, log_to_stderr, multitool, warn


def _fix_cols(value):
    if not len(value):
        return [0, 1]
    if len(value) > 3:
        raise KwargvError("cols= takes two or three column numbers, not %d", len(value))
    if any(c < 0 for c in value):
        raise KwargvError("column numbers must be nonnegative")
    return value


class DataConfig(ParseKeywords):
    data = Custom(str, required=True)
    shape = Custom(str, required=True)
    guess = Custom([float], required=True)
    cols = Custom([int], minvals=2, fixupfunc=_fix_cols)


class CheckDerivConfig(DataConfig):
    pass


class FitConfig(DataConfig, MinimizerConfig):
    numderiv = False
    verbose = False


def load_problem(cfg):
    """Load the data file named in *cfg* and look up the shape.

    Returns ``(shape, x, y, invsigma)``; *invsigma* is None if no uncertainty
    column was requested. Problems end the program via :func:`die`.

    """
    try:
        shape = shapes.lookup(cfg.shape)
    except DamplsError as e:
        die(e)

    if len(cfg.guess) != shape.npar:
        die(
            'shape "%s" has %d parameters (%s), but %d guess values were given',
            shape.name,
            shape.npar,
            ", ".join(shape.pnames),
            len(cfg.guess),
        )

    try:
        table = np.loadtxt(cfg.data, ndmin=2)
    except (OSError, ValueError) as e:
        die('cannot load data from "%s": %s', cfg.data, e)

    ncols = table.shape[1]
    for c in cfg.cols:
        if c >= ncols:
            die('data file "%s" has only %d columns; cannot use column %d', cfg.data, ncols, c)

    x = table[:, cfg.cols[0]]
    y = table[:, cfg.cols[1]]
    invsigma = None

    if len(cfg.cols) > 2:
        sigma = table[:, cfg.cols[2]]
        if np.any(sigma <= 0):
            die('uncertainties in column %d of "%s" must be positive', cfg.cols[2], cfg.data)
        invsigma = 1.0 / sigma

    return shape, x, y, invsigma


# The commands.

fit_doc = """\
Keywords:

data=
  Path of a text file of whitespace-separated numeric columns. Required.
shape=
  The model shape to fit: one of %s. Required.
guess=
  Comma-separated initial guesses for the shape parameters. Required.
cols=
  Column numbers (from 0) of X, Y and optionally the Y uncertainty.
  Default "0,1".
initial_mu=, gtol=, xtol=, ftol=, maxiter=
  Minimizer settings; a negative maxiter picks the limit automatically.
numderiv=
  If true, use finite-difference derivatives instead of the analytic ones.
verbose=
  If true, log every step of the minimizer to standard error.

The exit code is nonzero if the fit did not converge.
""" % (", ".join(shapes.names()))


class FitCommand(multitool.Command):
    name = "fit"
    argspec = "data=<path> shape=<name> guess=<v1,v2,...> [keywords...]"
    summary = "Fit a model shape to tabulated data."
    more_help = fit_doc

    def invoke(self, args, tool=None):
        cfg = FitConfig().parse_or_die(args)

        if cfg.verbose:
            log_to_stderr("debug")

        shape, x, y, invsigma = load_problem(cfg)
        mdl = shape.make_model(x, y, invsigma, numderiv=cfg.numderiv)

        try:
            mdl.solve(
                cfg.guess,
                initial_mu=cfg.initial_mu,
                gtol=cfg.gtol,
                xtol=cfg.xtol,
                ftol=cfg.ftol,
                maxiter=cfg.maxiter,
            )
        except ValueError as e:
            die(e)

        res = mdl.result
        mdl.print_soln()
        print("exit condition:", res.status)
        print("iterations:", res.niter)
        print("function evaluations:", res.nfev)
        print("jacobian evaluations:", res.njev)

        if not res.succeeded:
            warn("fit did not converge (%s)", res.status)
            return 1
        return 0


class CheckDerivCommand(multitool.Command):
    name = "check-deriv"
    argspec = "data=<path> shape=<name> guess=<v1,v2,...> [cols=<x,y>]"
    summary = "Compare a shape's analytic derivatives to numerical ones."
    more_help = """\
For every parameter and data point, the analytic and finite-difference
derivatives of the model are printed side by side, followed by their
difference. Large differences indicate a buggy derivative function."""

    def invoke(self, args, tool=None):
        cfg = CheckDerivConfig().parse_or_die(args)
        shape, x, y, invsigma = load_problem(cfg)
        mdl = shape.make_model(x, y, invsigma)
        explicit, auto = mdl.debug_derivative(cfg.guess)

        lmax = max(len(pn) for pn in shape.pnames)

        for i, pn in enumerate(shape.pnames):
            for j in range(explicit.shape[1]):
                print(
                    "%s %4d: %14g %14g %14g"
                    % (
                        pn.rjust(lmax),
                        j,
                        explicit[i, j],
                        auto[i, j],
                        explicit[i, j] - auto[i, j],
                    )
                )


# The driver.


class Dampfit(multitool.Multitool):
    cli_name = "dampfit"
    summary = "Fit models to data with the damped least-squares minimizer."
    command_classes = (FitCommand, CheckDerivCommand, multitool.HelpCommand)


def commandline(argv=None):
    Dampfit().main(argv)

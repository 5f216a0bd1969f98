# -*- mode: python; coding: utf-8 -*-
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""Damped Gauss-Newton (Levenberg-Marquardt) least-squares fitting.

The main entry point is :func:`dampls.minimizer.minimize`, which drives an
objective model (see :mod:`dampls.objective`) to the parameter vector that
minimizes its weighted residual sum of squares. Higher-level curve fitting
lives in :mod:`dampls.models`.

"""

__all__ = "DamplsError Holder".split()

__version__ = "0.1.0"  # also edit ../setup.py, ../docs/source/conf.py!


class DamplsError(Exception):
    """A generic base class for exceptions.

    All custom exceptions raised by :mod:`dampls` modules should be subclasses
    of this class.

    The constructor automatically applies old-fashioned ``printf``-like
    (``%``-based) string formatting if more than one argument is given::

      DamplsError('unknown shape %r; expected one of %s', name, names)
      # has text content equal to:
      'unknown shape %r; expected one of %s' % (name, names)

    If only a single argument is given, the exception text is its
    stringification without applying ``printf``-style formatting.

    """

    def __init__(self, fmt, *args):
        if not len(args):
            self.args = (str(fmt),)
        else:
            self.args = (str(fmt) % args,)

    def __str__(self):
        return self.args[0]

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.args[0])


class Holder(object):
    """Create a new :class:`Holder`. Any keyword arguments will be assigned as
    properties on the object itself, for instance, ``o = Holder(niter=1)``
    yields an object such that ``o.niter`` is 1.

    Holders are used as lightweight records throughout the package: the
    progress snapshots passed to minimizer monitors are Holders, and the
    keyword-configuration classes in :mod:`dampls.kwargv` derive from this
    class.

    """

    def __init__(self, **kwargs):
        self.set(**kwargs)

    def __str__(self):
        d = self.__dict__
        return "{" + ", ".join("%s=%s" % (k, d[k]) for k in sorted(d)) + "}"

    def __repr__(self):
        d = self.__dict__
        return "%s(%s)" % (
            self.__class__.__name__,
            ", ".join("%s=%r" % (k, d[k]) for k in sorted(d)),
        )

    def __iter__(self):
        return iter(self.__dict__.items())

    def __contains__(self, key):
        return key in self.__dict__

    def set(self, **kwargs):
        """For each keyword argument, sets an attribute on this :class:`Holder` to its
        value. Returns *self*.

        """
        self.__dict__.update(kwargs)
        return self

    def get(self, name, defval=None):
        """Get an attribute on this :class:`Holder`.

        Equivalent to ``getattr(self, name, defval)``.

        """
        return self.__dict__.get(name, defval)

    def set_one(self, name, value):
        """Set a single attribute on this object. Returns *self*."""
        self.__dict__[name] = value
        return self

    def copy(self):
        """Return a shallow copy of this object."""
        new = self.__class__.__new__(self.__class__)
        new.__dict__ = dict(self.__dict__)
        return new

    def to_dict(self):
        """Return a copy of this object converted to a :class:`dict`."""
        return self.__dict__.copy()

    def to_pretty(self, format="str"):
        """Return a string with a prettified version of this object’s contents.

        The format is a multiline string where each line is of the form ``key
        = value``. If the *format* argument is equal to ``"str"``, each
        ``value`` is the stringification of the value; if it is ``"repr"``, it
        is its :func:`repr`.

        """
        if format == "str":
            template = "%-*s = %s"
        elif format == "repr":
            template = "%-*s = %r"
        else:
            raise ValueError('unrecognized value for "format": %r' % format)

        d = self.__dict__
        maxlen = max([len(k) for k in d] + [0])
        return "\n".join(template % (maxlen, k, d[k]) for k in sorted(d))

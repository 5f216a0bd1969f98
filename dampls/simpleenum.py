# -*- mode: python; coding: utf-8 -*-
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""The :mod:`dampls.simpleenum` module contains a single decorator function for
creating “enumerations”, by which we mean a group of named, un-modifiable
values. The minimizer's exit conditions are declared this way::

  from dampls.simpleenum import enumeration

  @enumeration
  class ExitCondition(object):
      none = "none"
      converged = "converged"
      # etc

  if result.status == ExitCondition.converged:
      ...

Any attempt to assign to, delete, or read an undeclared attribute of the
resulting object raises :exc:`AttributeError`. The declared values can be
listed with :func:`members`.

"""

__all__ = "enumeration members".split()


def enumeration(cls):
    """A very simple decorator for creating enumerations. Unlike
    :class:`enum.Enum`, this just gives a way to use a class declaration to
    create an immutable object containing only the values specified in the
    class; the values themselves are plain Python objects, so they compare,
    hash and print as such.

    """
    name = cls.__name__

    def __str__(self):
        return "<enumeration holder %s>" % name

    def getattr_error(self, attr):
        raise AttributeError(
            "enumeration %s does not contain attribute %s" % (name, attr)
        )

    def modattr_error(self, *args, **kwargs):
        raise AttributeError("modification of %s enumeration not allowed" % name)

    values = dict((k, getattr(cls, k)) for k in dir(cls) if not k.startswith("_"))

    clsdict = {
        "__doc__": cls.__doc__,
        "__slots__": (),
        "__str__": __str__,
        "__repr__": __str__,
        "__getattr__": getattr_error,
        "__setattr__": modattr_error,
        "__delattr__": modattr_error,
        "_members": tuple(sorted(values.items())),
    }
    clsdict.update(values)

    enumcls = type(name, (object,), clsdict)
    return enumcls()


def members(enum):
    """Return the ``(name, value)`` pairs of an enumeration, sorted by name."""
    return type(enum)._members

# -*- mode: python; coding: utf-8 -*-
# Copyright 2012-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""The :mod:`dampls.kwargv` module provides keyword-style configuration
objects. They let a routine with several tuning knobs -- the minimizer is the
main customer -- be configured programmatically *or* from a command line of
``key=value`` words.

Keywords are class attributes of a :class:`ParseKeywords` subclass::

  from dampls.kwargv import ParseKeywords, Custom

  class FitSettings(ParseKeywords):
      maxiter = -1                        # int, default -1
      gtol = 1e-18                        # float
      verbose = False                     # bool: yes/no, true/false, on/off, 1/0
      label = str                         # str, default None
      guess = Custom([float], required=True)
      cols = Custom([int], minvals=2, fixupfunc=check_cols)

A one-element list such as ``[float]`` declares a comma-separated list of
that type, defaulting to the empty list. :class:`Custom` wraps a declaration
with extra options: ``required``, ``minvals`` (for lists, if the keyword is
given at all) and ``fixupfunc``, which post-processes the parsed value and
may raise :exc:`KwargvError`.

Instantiating the class fills in the defaults; :meth:`ParseKeywords.parse`
then updates them from a list of strings::

  cfg = FitSettings()
  cfg.gtol = 1e-12                                         # programmatic use
  cfg = FitSettings().parse(['guess=1,0.5', 'maxiter=50'])  # textual use

Keywords declared on base classes are inherited, so a command-line tool can
extend :class:`dampls.minimizer.MinimizerConfig` with its own settings.
Methods defined on the class are not keywords.

"""

__all__ = "Custom KwargvError ParseError ParseKeywords".split()

from . import DamplsError, Holder


class KwargvError(DamplsError):
    """Raised when invalid arguments have been provided."""


class ParseError(KwargvError):
    """Raised when a particular value cannot be parsed into its expected type."""


class Custom(Holder):
    """A keyword declaration *decl* (a default value, a type, or a one-element
    list) with extra options."""

    required = False
    minvals = 0
    fixupfunc = None

    def __init__(self, decl, **options):
        self.decl = decl
        self.set(**options)


def _parse_bool(s):
    s = s.lower()

    if s in "y yes t true on 1".split():
        return True
    if s in "n no f false off 0".split():
        return False
    raise ParseError('don\'t know how to interpret "%s" as a boolean', s)


def _scalar_parser(decl):
    """Return ``(parser, default)`` for a value or a type. Booleans come first
    since they are also ints."""
    if decl is bool or isinstance(decl, bool):
        parser = _parse_bool
    elif decl in (int, float, str):
        parser = decl
    elif isinstance(decl, (int, float, str)):
        parser = decl.__class__
    else:
        raise ValueError("can't figure out how to parse keywords declared as %r" % (decl,))

    if isinstance(decl, type):
        return parser, None
    return parser, decl


class _Keyword(object):
    def __init__(self, decl):
        opts = decl if isinstance(decl, Custom) else Custom(decl)
        decl = opts.decl

        self.required = opts.required
        self.minvals = opts.minvals
        self.fixupfunc = opts.fixupfunc
        self.islist = isinstance(decl, list)

        if self.islist:
            if len(decl) != 1:
                raise ValueError("list keywords are declared as [type], not %r" % (decl,))
            self.parser = _scalar_parser(decl[0])[0]
            default = []
        else:
            self.parser, default = _scalar_parser(decl)

        if self.required:
            default = None
        elif self.fixupfunc is not None:
            default = self.fixupfunc(default)

        self.default = default

    def parse(self, text):
        if not self.islist:
            return self.parser(text)

        items = [self.parser(t) for t in text.split(",")]
        if len(items) < self.minvals:
            raise ParseError(
                "expected at least %d values, but only got %d", self.minvals, len(items)
            )
        return items


def _keyword_decls(cls):
    """Gather keyword declarations from *cls* and its bases; subclasses
    override their parents."""
    decls = {}

    for klass in reversed(cls.__mro__):
        if klass in (object, Holder, ParseKeywords):
            continue
        for name, decl in vars(klass).items():
            if name[0] == "_" or isinstance(decl, (staticmethod, classmethod, property)):
                continue
            if callable(decl) and not isinstance(decl, type):
                continue  # a method
            decls[name] = decl

    return decls


class ParseKeywords(Holder):
    """The template class for keyword configurations. A subclass of
    :class:`dampls.Holder`. Declare attributes in a subclass following the
    scheme described above, then call :meth:`ParseKeywords.parse`.

    """

    def __init__(self):
        self._kwinfos = dict(
            (name, _Keyword(decl))
            for name, decl in _keyword_decls(self.__class__).items()
        )

        for name, info in self._kwinfos.items():
            self.set_one(name, info.default)

    def to_dict(self):
        d = super(ParseKeywords, self).to_dict()
        d.pop("_kwinfos", None)
        return d

    def to_pretty(self, format="str"):
        return Holder(**self.to_dict()).to_pretty(format)

    def parse(self, args=None):
        """Update this instance from the ``key=value`` strings in *args*, which
        defaults to ``sys.argv[1:]``. Returns *self*. Raises
        :exc:`KwargvError` for unknown keywords, unparseable values and
        missing required keywords.

        """
        if args is None:
            import sys

            args = sys.argv[1:]

        seen = set()

        for arg in args:
            kw, eq, text = arg.partition("=")
            if not len(eq):
                raise KwargvError('don\'t know what to do with argument "%s"', arg)

            info = self._kwinfos.get(kw)
            if info is None:
                raise KwargvError('unrecognized keyword argument "%s"', kw)
            if not len(text):
                raise KwargvError('empty value for keyword argument "%s"', kw)

            try:
                value = info.parse(text)
            except ParseError as e:
                raise KwargvError(
                    'cannot parse value "%s" for keyword argument "%s": %s', text, kw, e
                )
            except ValueError:
                raise KwargvError(
                    'cannot parse value "%s" for keyword argument "%s"', text, kw
                )

            if info.fixupfunc is not None:
                value = info.fixupfunc(value)

            seen.add(kw)
            self.set_one(kw, value)

        for kw, info in self._kwinfos.items():
            if info.required and kw not in seen:
                raise KwargvError('required keyword argument "%s" was not provided', kw)

        return self

    def parse_or_die(self, args=None):
        """Like :meth:`parse`, but a :exc:`KwargvError` ends the program through
        :func:`dampls.cli.die`. Returns *self*.

        """
        from .cli import die

        try:
            return self.parse(args)
        except KwargvError as e:
            die(e)

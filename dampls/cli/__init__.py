# -*- mode: python; coding: utf-8 -*-
# Copyright 2012-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.cli - small helpers shared by the command-line programs.

Functions:

die            - Abort the program with an error message.
warn           - Print a warning to standard error.
log_to_stderr  - Send the library's log messages to standard error.

Submodules:

multitool - Sub-command dispatch for ``dampfit``.
fittool   - The ``dampfit`` program.

"""

__all__ = "die log_to_stderr warn".split()

import logging
import sys


def _format(fmt, args):
    if not len(args):
        return str(fmt)
    return fmt % args


def die(fmt, *args):
    """Raise :exc:`SystemExit` with the message ``"error: " + fmt % args``.

    With no *args*, *fmt* is simply stringified, so an exception can be
    passed straight through::

       except DamplsError as e:
           die(e)

    """
    raise SystemExit("error: " + _format(fmt, args))


def warn(fmt, *args):
    print("warning:", _format(fmt, args), file=sys.stderr)


_log_levels = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def log_to_stderr(level="warn"):
    """Make the :mod:`logging` messages of the ``dampls`` package visible on
    standard error.

    level
      The minimum level to show: "debug", "info", "warn" or "error".

    Only the package logger is configured; the root logger is left alone.
    Calling this more than once does not duplicate output. Returns the
    logger.

    """
    levelno = _log_levels.get(level)
    if levelno is None:
        die('unrecognized log level "%s"', level)

    log = logging.getLogger("dampls")

    if not any(getattr(h, "_dampls_cli", False) for h in log.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        handler._dampls_cli = True
        log.addHandler(handler)

    log.setLevel(levelno)
    return log

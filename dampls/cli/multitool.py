# -*- mode: python; coding: utf-8 -*-
# Copyright 2015-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

"""dampls.cli.multitool - sub-command dispatch for command-line programs

A :class:`Multitool` is a program such as ``dampfit`` whose first argument
names one of several :class:`Command` objects, each with its own arguments
and help text::

  class FitCommand(multitool.Command):
      name = 'fit'
      argspec = 'data=<path> [keywords...]'
      summary = 'Fit a model to data.'

      def invoke(self, args, tool=None):
          ...
          return 0

  class Dampfit(multitool.Multitool):
      cli_name = 'dampfit'
      summary = 'Fit models to data.'
      command_classes = (FitCommand, multitool.HelpCommand)

  def commandline(argv=None):
      Dampfit().main(argv)

``dampfit``, ``dampfit --help`` and ``dampfit help`` print the list of
commands; ``dampfit fit --help`` and ``dampfit help fit`` print the help for
one command. A :exc:`UsageError` raised by a command is reported along with
that command's usage line.

"""

__all__ = "Command HelpCommand Multitool UsageError".split()

import sys

from .. import DamplsError


_help_flags = ("-h", "--help")


class UsageError(DamplsError):
    """Raised when a command is given arguments it cannot use."""


class Command(object):
    """One sub-command of a :class:`Multitool`.

    name
      The word that selects this command on the command line. Required.
    argspec
      A one-line summary of the command's arguments.
    summary
      A one-line description of what the command does.
    more_help
      Further help text, shown by ``--help``.
    help_if_no_args
      If true, running the command with no arguments prints its help.

    Subclasses implement :meth:`invoke`.

    """

    name = None
    argspec = ""
    summary = ""
    more_help = ""
    help_if_no_args = True

    def invoke(self, args, tool=None):
        """Run the command on the list of remaining arguments *args*. *tool* is
        the :class:`Multitool` doing the dispatching. The return value, if an
        integer, becomes the program's exit code.

        """
        raise NotImplementedError()

    def usage(self, prog):
        text = "%s %s %s" % (prog, self.name, self.argspec)
        for extra in (self.summary, self.more_help):
            if len(extra):
                text += "\n\n" + extra
        return text


class HelpCommand(Command):
    name = "help"
    argspec = "[command]"
    summary = "Show help on the program or one of its commands."
    help_if_no_args = False

    def invoke(self, args, tool=None):
        if not len(args):
            print(tool.usage())
        elif len(args) == 1:
            print(tool.lookup(args[0]).usage(tool.cli_name))
        else:
            raise UsageError("help takes at most one command name")
        return 0


class Multitool(object):
    """A command-line program made of named sub-commands.

    cli_name
      The program's name, as shown in help text.
    summary
      A one-line description of the program.
    command_classes
      The :class:`Command` subclasses to instantiate and register.

    """

    cli_name = None
    summary = ""
    command_classes = ()

    def __init__(self):
        self.commands = {}
        for cls in self.command_classes:
            self.register(cls())

    def register(self, cmd):
        """Add the :class:`Command` instance *cmd*. Returns *self*."""
        if cmd.name is None:
            raise ValueError("no name set for command %r" % cmd)
        if cmd.name in self.commands:
            raise ValueError('a command named "%s" is already registered' % cmd.name)
        self.commands[cmd.name] = cmd
        return self

    def lookup(self, name):
        cmd = self.commands.get(name)
        if cmd is None:
            raise UsageError('no such command "%s"', name)
        return cmd

    def usage(self):
        names = sorted(self.commands)
        width = max([len(n) for n in names] + [0])
        lines = ["%s <command> [arguments...]" % self.cli_name]

        if len(self.summary):
            lines += ["", self.summary]

        lines += ["", "Commands are:", ""]
        lines += [
            "  %s %-*s - %s"
            % (self.cli_name, width, n, self.commands[n].summary)
            for n in names
        ]
        lines += ["", "Most commands will give help if run with no arguments."]
        return "\n".join(lines)

    def run(self, argv):
        """Dispatch the Unix-style argument list *argv*, whose first item (the
        program name) is ignored. Returns the exit code.

        """
        args = list(argv[1:])

        if not len(args) or (len(args) == 1 and args[0] in _help_flags):
            print(self.usage())
            return 0

        usage = self.usage()

        try:
            cmd = self.lookup(args[0])
            usage = cmd.usage(self.cli_name)
            rest = args[1:]

            if (not len(rest) and cmd.help_if_no_args) or (
                len(rest) == 1 and rest[0] in _help_flags
            ):
                print(usage)
                return 0

            code = cmd.invoke(rest, tool=self)
        except UsageError as e:
            print("error:", e, file=sys.stderr)
            print("\nUsage:", usage.splitlines()[0], file=sys.stderr)
            return 1

        return code if isinstance(code, int) else 0

    def main(self, argv=None):
        """Run with *argv* (default :data:`sys.argv`) and exit with the
        resulting code. Never returns."""
        if argv is None:
            argv = sys.argv
        raise SystemExit(self.run(argv))

"""
Trellis programs: validate the tree, resolve the path, run or explain.

What this module provides
- Program: the invocation context (root command, global flags, output).
  • run(*arguments, context=...) resolves arguments against the tree, composes
    the flags of the resolved path and either calls the resolved command's
    run(context, *arguments) or renders its help.
  • main(prompt) is the process entry point: it runs, reports a failure on
    stderr through rich and exits with the matching exit code.

Quick start
    from trellis import Command, Program

    class Hello:
        name = "hello"
        long = "Say hello."

        def flags(self, flags):
            self.who = flags.string("name", "World", "your name")

        def run(self, context, *arguments):
            print(f"Hello, {self.who.value}!")

    if __name__ == "__main__":
        Program(Hello()).main()

Dispatch
1. a leading "help", or no arguments for a root that cannot run → help;
2. the resolved command cannot run → help (listing its children, if any);
3. otherwise the remaining arguments are parsed as flags: -h/-help/--help
   → help; any other flag error is raised as-is; on success the command runs
   with the non-flag arguments and its return value is returned.

Flags are composed per run, in order: the program's global flags, the
persistent flags of every ancestor of the resolved command (root first), and
the resolved command's own flags. A later declaration of the same name
replaces an earlier one.
"""
import shlex
import sys
from collections.abc import Iterable

from .capabilities import Capability, nameof, probe
from .context import Context
from .faults import CommandStructureError, HelpRequested, exit_code, report
from .flags import FlagSet
from .help import Helper
from .tree import HELP, resolve, strip_help, validate
from .utils import *


class Program:
    """
    The program to run: a root command plus program-wide settings.

    Parameters
    - root: command
      Entry point of the program (see trellis.capabilities for the traits).
    - global_flags: Callable[[FlagSet], None] | None
      Contributes flags available to every command (e.g., -verbose, -config).
    - output: writable text sink | None
      Where help is written; sys.stdout (looked up at run time) when None.
    - colorful, fancy: bool
      Styling of the fault reports printed by main().

    A Program is only read by run(); each run builds its own FlagSet, so the
    same Program can be run repeatedly. Commands that store flag values on
    themselves are not safe to run concurrently.
    """

    def __init__(self, root=None, /, global_flags=None, output=None, *, colorful=False, fancy=False):
        if global_flags is not None and not callable(global_flags):
            raise TypeError("Program 'global_flags' must be callable")
        if output is not None and not callable(getattr(output, "write", None)):
            raise TypeError("Program 'output' must be a writable text stream")
        self.root = root
        self.global_flags = global_flags
        self.output = output
        self.colorful = bool(colorful)
        self.fancy = bool(fancy)

    def run(self, *arguments, context=Unset):
        """
        Run the program with the process arguments (sys.argv[1:]).

        Returns the resolved command's return value, or None when help was
        rendered. The context (Context.background() when not given) is
        handed to the command's run as-is.

        Raises
        - MissingRootError / DuplicateCommandError before anything else when
          the tree is malformed.
        - UnknownCommandError, MissingImplementationError after rendering help.
        - FlagError subclasses for rejected flags (nothing is rendered).
        - whatever the command's run raises, unchanged.
        """
        if any(not isinstance(argument, str) for argument in arguments):
            raise TypeError("run() arguments must be strings")
        if (failure := validate(self.root)) is not None:
            raise failure
        context = coalesce(context, Context.background())

        trail = resolve(self.root, strip_help(arguments))
        flags = self._compose(trail)

        if (arguments and arguments[0] == HELP) or (not arguments and not _runnable(self.root)):
            return self._help(arguments, flags)
        if (run := probe(trail.terminal, Capability.RUNNABLE)) is None:
            return self._help(arguments, flags)
        try:
            flags.parse(arguments[trail.consumed:])
        except HelpRequested:
            return self._help(arguments, flags)
        return run(context, *flags.arguments)

    def _compose(self, trail):
        """
        Build the FlagSet of one run: global, then ancestors' persistent
        flags (root first), then the resolved command's flags.
        """
        flags = FlagSet(nameof(trail.root))
        if self.global_flags is not None:
            self.global_flags(flags)
        for ancestor in trail.ancestors:
            if (contribute := probe(ancestor, Capability.PERSISTENT_FLAGS)) is not None:
                contribute(flags)
        if (contribute := probe(trail.terminal, Capability.FLAGS)) is not None:
            contribute(flags)
        return flags

    def _help(self, arguments, flags):
        """
        Render help for the command named by arguments (a leading "help"
        stripped), resolving the full path regardless of runnability.
        """
        arguments = strip_help(arguments)
        trail = resolve(self.root, arguments)
        output = self.output if self.output is not None else sys.stdout
        Helper(output, nameof(self.root), trail.terminal, trail.breadcrumb, arguments, flags).render()
        return None

    def main(self, prompt=Unset, /, *, context=Unset):
        """
        Run as the process entry point and exit on failure.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.

        On failure the error is reported on stderr and the process exits with
        exit_code(error). Malformed trees (CommandStructureError) are not
        reported: they propagate as tracebacks. On success the command's
        return value is returned.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if any(not isinstance(token, str) for token in tokens):
                raise TypeError("main() argument must be a string or an iterable of strings")
        else:
            raise TypeError("main() argument must be a string or an iterable of strings")

        try:
            return self.run(*tokens, context=context)
        except CommandStructureError:
            raise
        except Exception as error:
            report(error, prog=_prog(self.root), colorful=self.colorful, fancy=self.fancy)
            sys.exit(exit_code(error))

    def __repr__(self):
        root = _prog(self.root) if self.root is not None else None
        return f"Program(root={root!r}, global_flags={self.global_flags is not None})"


def _runnable(command):
    return probe(command, Capability.RUNNABLE) is not None


def _prog(command):
    try:
        return nameof(command)
    except TypeError:
        return None


__all__ = ("Program",)

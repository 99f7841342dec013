"""
Trellis faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and logs searchable.
- CommandException: base type that carries message + options and knows how to
  render itself through rich (see __rich__).
- CommandStructureError: programmer mistakes in how a command tree was
  assembled (missing root, duplicated names). These are never reported as
  runtime outcomes; they abort the run.
- ExitError / exit_code(): map an outcome to a process exit code.
- report(): print any error to stderr in a friendly, lowercased form.
- getdoc(): optional description lookup for a code from the host application.

Integration
- Program.run raises CommandException subclasses as ordinary outcomes.
- Program.main reports them with report() and exits with exit_code().
"""
import subprocess
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across trellis (stable identifiers).

    grouping (by high-level domain)
    - structure (1010x)
      • MISSING_ROOT, DUPLICATE_COMMAND
    - routing (1110x)
      • UNKNOWN_COMMAND, MISSING_IMPLEMENTATION
    - flags (1111x/1112x)
      • BAD_FLAG_SYNTAX, UNKNOWN_FLAG, MISSING_FLAG_VALUE, INVALID_FLAG_VALUE,
        HELP_REQUESTED
    - delegated (1113x)
      • DELEGATED_ERROR, EXIT_REQUESTED, CANCELLED

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a
      string via normalize() so hosts can remap them to shorter labels.
    """
    # --- structure errors (10xxx) ---
    MISSING_ROOT                = 10101
    DUPLICATE_COMMAND           = 10102

    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    MISSING_IMPLEMENTATION      = 11103

    # --- flag errors (11xxx) ---
    BAD_FLAG_SYNTAX             = 11111
    UNKNOWN_FLAG                = 11112
    MISSING_FLAG_VALUE          = 11117
    INVALID_FLAG_VALUE          = 11124
    HELP_REQUESTED              = 11126

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR             = 11131
    EXIT_REQUESTED              = 11132
    CANCELLED                   = 11133

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class for every runtime fault raised by trellis.

    The message is the exact user-facing text (str(fault) returns it
    unchanged); options carry rendering context such as the program name,
    a hint, or the colorful/fancy switches used by __rich__.
    """
    fault = FaultCode.DELEGATED_ERROR
    title = "command error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message if message is not Unset else "")
        self.message = message if message is not Unset else ""
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "trellis"), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.fault.normalize(), styler("code")),
            " | ",
            text(self.options.get("title", self.title).title(), styler("error-title")),
            " ]"
        )
        renders = [text(self.message, styler("error-message"))]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replica = type(self).__new__(type(self))
        replica.__dict__.update(self.__dict__)
        CommandException.__init__(replica, self.message, **{**self.options, **overrides})
        return replica


class UnknownCommandError(CommandException):
    """
    A path segment beyond what the command tree defines was supplied.

    The path holds the program name followed by every segment up to and
    including the first one that did not match.
    """
    fault = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"

    def __init__(self, path, /, **options):
        self.path = tuple(path)
        super().__init__("unknown command: '%s'" % " ".join(self.path), **options)


class MissingImplementationError(CommandException):
    """
    A resolved command exposes none of run, commands, long or foot.
    """
    fault = FaultCode.MISSING_IMPLEMENTATION
    title = "missing implementation"

    def __init__(self, breadcrumb, /, **options):
        self.breadcrumb = tuple(breadcrumb)
        super().__init__(
            "command or topic '%s' is missing implementation" % " ".join(self.breadcrumb), **options
        )


class FlagError(CommandException):
    """
    The flag set rejected a token. The message comes verbatim from the parser.
    """
    fault = FaultCode.BAD_FLAG_SYNTAX
    title = "flag error"


class FlagSyntaxError(FlagError):
    fault = FaultCode.BAD_FLAG_SYNTAX
    title = "bad flag syntax"


class UnknownFlagError(FlagError):
    fault = FaultCode.UNKNOWN_FLAG
    title = "unknown flag"


class MissingFlagValueError(FlagError):
    fault = FaultCode.MISSING_FLAG_VALUE
    title = "missing flag value"


class FlagValueError(FlagError):
    fault = FaultCode.INVALID_FLAG_VALUE
    title = "invalid flag value"


class HelpRequested(FlagError):
    """
    Raised by the flag set when -h, -help or --help is parsed and no flag of
    that name was declared. The dispatcher turns it into help output.
    """
    fault = FaultCode.HELP_REQUESTED
    title = "help requested"

    def __init__(self, message="flag: help requested", /, **options):
        super().__init__(message, **options)


class CancelledError(CommandException):
    """
    Raised by Context.check() once the context was cancelled or timed out.
    """
    fault = FaultCode.CANCELLED
    title = "cancelled"

    def __init__(self, message="context canceled", /, **options):
        super().__init__(message, **options)


class ExitError(CommandException):
    """
    Wrap an error, adding an exit code for the process.

    Actions raise it to exit gracefully with a specific code:

        raise ExitError(error, code=3)

    The message is the wrapped error's message; the wrapped error is also
    chained as __cause__ so tracebacks keep the original context.
    """
    fault = FaultCode.EXIT_REQUESTED
    title = "exit"

    def __init__(self, error, /, code=1, **options):
        if not isinstance(code, int) or isinstance(code, bool):
            raise TypeError("ExitError 'code' must be an integer")
        self.error = error
        self.code = code
        super().__init__(str(error), **options)
        self.__cause__ = error if isinstance(error, BaseException) else None


class CommandStructureError(Exception):
    """
    Base class for mistakes in how a command tree was assembled.

    These abort a run before any argument is processed and are never
    converted into an exit code by Program.main.
    """
    fault = FaultCode.MISSING_ROOT


class MissingRootError(CommandStructureError, TypeError):
    fault = FaultCode.MISSING_ROOT

    def __init__(self, message="root command not implemented", /):
        super().__init__(message)


class DuplicateCommandError(CommandStructureError, ValueError):
    """
    Two siblings share a name. The path names the root, every ancestor and
    the duplicated name.
    """
    fault = FaultCode.DUPLICATE_COMMAND

    def __init__(self, path, /):
        self.path = tuple(path)
        super().__init__("command implemented multiple times: '%s'" % " ".join(self.path))


def _chain(error):
    """
    yield the error and every error it explicitly wraps (ExitError.error and
    __cause__, as set by "raise ... from ..."). an implicit __context__ is not
    followed: an error raised while handling another does not wrap it.
    """
    seen = set()
    pending = [error]
    while pending:
        if (current := pending.pop(0)) is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        if isinstance(current, ExitError) and isinstance(current.error, BaseException):
            pending.append(current.error)
        pending.append(current.__cause__)


def exit_code(error, /):
    """
    exit code for the process to use when a run ends with the given error.

    mapping
    - None → 0.
    - an ExitError anywhere in the explicit chain (the error itself, the error
      an ExitError wraps, or a __cause__) → its code.
    - subprocess.CalledProcessError from a child that exited normally (non
      negative returncode) → the child's exit status.
    - anything else → 1.

    typical usage

        try:
            program.run(*sys.argv[1:])
        except Exception as error:
            report(error)
            sys.exit(exit_code(error))
    """
    if error is None:
        return 0

    for current in _chain(error):
        if isinstance(current, ExitError):
            return current.code

    for current in _chain(error):
        if isinstance(current, subprocess.CalledProcessError) and current.returncode >= 0:
            return current.returncode

    return 1


def report(error, /, *, prog=None, colorful=False, fancy=False, file=None):
    """
    print an error to stderr (or the given console file) through rich.

    CommandExceptions render with their own header/hint layout; any other
    error is shown as '<prog>: <message>'.
    """
    target = console if file is None else Console(file=file, color_system=None, highlight=False)
    if isinstance(error, CommandException):
        target.print(error.__replace__(prog=prog, colorful=colorful, fancy=fancy))
        return
    message = Text.assemble(
        (prog or "trellis", "bold" if colorful else ""),
        ": ",
        (str(error) or type(error).__name__, "red" if colorful else ""),
    )
    target.print(message)


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "UnknownCommandError",
    "MissingImplementationError",
    "FlagError",
    "FlagSyntaxError",
    "UnknownFlagError",
    "MissingFlagValueError",
    "FlagValueError",
    "HelpRequested",
    "CancelledError",
    "ExitError",
    "CommandStructureError",
    "MissingRootError",
    "DuplicateCommandError",
    "exit_code",
    "report",
    "getdoc",
)

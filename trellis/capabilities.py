"""
Trellis capability model: what a command can do, found by probing.

A command is any object with a non-empty `name`. Everything else is an
optional trait, detected on the object itself; there is no base class to
inherit from:

    name                          identity, unique among siblings (required)
    short                         one-line description shown in command lists
    long                          help text shown by "help <command>"
    foot                          footer shown after the help (examples, links)
    commands()                    ordered child commands
    flags(flagset)                flags of this command
    persistent_flags(flagset)     flags this command lends to its descendants
    run(context, *arguments)      the action

Descriptive traits (short, long, foot) may be plain values or zero-argument
methods. A trait that is missing or None is absent.

    class Hello:
        name = "hello"
        short = "say hello"

        def flags(self, flags):
            self.who = flags.string("name", "World", "your name")

        def run(self, context, *arguments):
            print(f"Hello, {self.who.value}!")

For quick trees, Command composes traits without a class, and command()
turns a function into an executable Command:

    root = Command("app", long="Example application.")

    @root.command(short="say hello")
    def hello(context, *arguments): ...
"""
import enum
import functools
import inspect

from .utils import *


class Capability(enum.Flag):
    """
    Optional traits a command may expose (see the module docstring).
    """
    SHORTER = 1
    LONGER = 2
    FOOTER = 4
    PARENT = 8
    FLAGS = 16
    PERSISTENT_FLAGS = 32
    RUNNABLE = 64

    NONE = 0
    # Traits that make a command worth reaching: it runs, routes, or explains.
    USEFUL = RUNNABLE | PARENT | LONGER | FOOTER
    # Traits that make the usage line and flag list meaningful.
    USABLE = RUNNABLE | PARENT


# Capability → attribute probed on the command.
_attributes = {
    Capability.SHORTER: "short",
    Capability.LONGER: "long",
    Capability.FOOTER: "foot",
    Capability.PARENT: "commands",
    Capability.FLAGS: "flags",
    Capability.PERSISTENT_FLAGS: "persistent_flags",
    Capability.RUNNABLE: "run",
}

_descriptive = Capability.SHORTER | Capability.LONGER | Capability.FOOTER


def probe(command, capability, /):
    """
    Return an accessor for a single capability of command, or None if absent.

    - descriptive traits return a zero-argument callable producing the text;
    - behavioral traits (commands, flags, persistent_flags, run) return the
      bound callable itself, and are absent when the attribute is not callable.
    """
    if not isinstance(capability, Capability) or capability not in _attributes:
        raise TypeError("probe() second argument must be a single capability")
    object = getattr(command, _attributes[capability], None)
    if object is None:
        return None
    if capability in _descriptive:
        return functools.partial(textual, object)
    return object if callable(object) else None


def capabilities(command, /):
    """
    Return the Capability bitset of every trait command exposes.
    """
    found = Capability.NONE
    for capability in _attributes:
        if probe(command, capability) is not None:
            found |= capability
    return found


def nameof(command, /):
    """
    Return the name of a command, validating it is a non-empty string.
    """
    name = getattr(command, "name", None)
    if callable(name):
        name = name()
    if not isinstance(name, str) or not name:
        raise TypeError(f"command {command!r} must have a non-empty string 'name'")
    return name


def subcommands(command, /):
    """
    Return the children of command as a tuple (empty when it has none).
    """
    if (enumerate := probe(command, Capability.PARENT)) is None:
        return ()
    return tuple(enumerate())


class Command:
    """
    Composition record exposing exactly the traits it was given.

    Parameters
    - name: str
      Identity of the command; unique among its siblings.
    - short, long, foot: str | Callable[[], str] | None
      Descriptive traits.
    - run: Callable[[Context, *str], Any] | None
      The action. Its return value becomes the result of Program.run.
    - flags, persistent_flags: Callable[[FlagSet], None] | None
      Flag contributors.
    - commands: Iterable[command] | Unset
      Children. Unset means the record is not a parent; an empty iterable
      makes it a parent without children yet.

    The record is assembled by the caller and only read by the engine.
    """

    def __init__(
            self,
            name,
            /,
            *,
            short=None,
            long=None,
            foot=None,
            run=None,
            flags=None,
            persistent_flags=None,
            commands=Unset
    ):
        if not isinstance(name, str) or not name:
            raise TypeError("Command 'name' must be a non-empty string")
        for label, object in (("run", run), ("flags", flags), ("persistent_flags", persistent_flags)):
            if object is not None and not callable(object):
                raise TypeError(f"Command {label!r} must be callable")
        self.name = name
        self.short = short
        self.long = long
        self.foot = foot
        self.run = run
        self.flags = flags
        self.persistent_flags = persistent_flags
        self._children = None
        if commands is Unset:
            # Shadow the method so probing reports no PARENT capability.
            self.commands = None
        else:
            self._children = list(commands)

    def commands(self):
        return tuple(self._children)

    def add(self, *children):
        """
        Attach children (in order) and return self for chaining.
        """
        if self._children is None:
            self._children = []
            del self.commands
        for child in children:
            nameof(child)
            self._children.append(child)
        return self

    def command(self, source=Unset, /, **metadata):
        """
        Create a child command from a function, or return a decorator to do so.

            @root.command(short="say hello")
            def hello(context, *arguments): ...

        Existing commands (any object with a name) are attached as-is when no
        metadata is given.
        """
        @rename("command")
        def wrapper(source, /):
            if not metadata and not inspect.isroutine(source) and hasattr(source, "name"):
                self.add(source)
                return source
            self.add(child := command(source, **metadata))
            return child

        return wrapper(source) if source is not Unset else wrapper

    def __repr__(self):
        traits = ", ".join(
            _attributes[capability] for capability in _attributes if capability in capabilities(self)
        )
        return f"Command({self.name!r}, traits=[{traits}])"


def command(source=Unset, /, **metadata):
    """
    Create an executable Command from a function, or return a decorator.

    The function is called as function(context, *arguments). Unless given,
    the name is the function's __name__ (underscores become hyphens), `long`
    is its docstring and `short` the docstring's first line.

    Modes
    - Direct:     hello = command(function, short="say hello")
    - Decorator:  @command(name="hello")
                  def greet(context, *arguments): ...
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        doc = inspect.getdoc(source)
        options = {
            "short": doc.splitlines()[0] if doc else None,
            "long": doc or None,
        } | metadata
        name = options.pop("name", getattr(source, "__name__", "").replace("_", "-"))
        return Command(name, run=source, **options)

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "Capability",
    "Command",
    "capabilities",
    "command",
    "nameof",
    "probe",
    "subcommands",
)

"""
Command tree walking: structural validation and path resolution.

- validate(root) checks the tree once per run and returns a failure object
  (MissingRootError / DuplicateCommandError) or None; the caller decides
  whether to raise it.
- resolve(root, arguments) walks the leading path tokens against the tree
  and returns a Trail, the commands from the root to the deepest match.

Path tokens are the leading arguments that do not start with "-". The walk
stops at the first token that is not the exact name of a child of the
current command; it and everything after it are left for the flag set and
the action.
"""
from .capabilities import nameof, subcommands
from .faults import DuplicateCommandError, MissingRootError

HELP = "help"


class Trail(tuple):
    """
    Commands from the root to the deepest command matched by resolution.

    Never empty: the first element is always the root. Each element is a
    declared child of the element before it.
    """

    def __new__(cls, commands):
        commands = tuple(commands)
        if not commands:
            raise ValueError("Trail must contain at least the root command")
        return super().__new__(cls, commands)

    @property
    def root(self):
        return self[0]

    @property
    def terminal(self):
        """
        The deepest matched command (the root when nothing matched).
        """
        return self[-1]

    @property
    def ancestors(self):
        """
        Every command before the terminal one, root first.
        """
        return self[:-1]

    @property
    def consumed(self):
        """
        Number of argument tokens consumed as path components.
        """
        return len(self) - 1

    @property
    def breadcrumb(self):
        """
        Names of the matched commands, excluding the root.
        """
        return tuple(map(nameof, self[1:]))

    def __repr__(self):
        return f"Trail({' > '.join(map(nameof, self))})"


def validate(root, /):
    """
    Check the command tree rooted at root.

    Returns
    - MissingRootError when root is None.
    - DuplicateCommandError for the first sibling group (depth-first, in
      declaration order) holding two commands with the same name; its path
      is the root name, the ancestors and the duplicated name.
    - None when the tree is sound.
    """
    if root is None:
        return MissingRootError()
    return _find_duplicate(root, (nameof(root),))


def _find_duplicate(command, trail):
    names = set()
    for child in subcommands(command):
        name = nameof(child)
        if name in names:
            return DuplicateCommandError(trail + (name,))
        names.add(name)
        if (failure := _find_duplicate(child, trail + (name,))) is not None:
            return failure
    return None


def strip_help(arguments, /):
    """
    Drop a leading "help" token, which selects help mode rather than a path.
    """
    arguments = list(arguments)
    if arguments and arguments[0] == HELP:
        return arguments[1:]
    return arguments


def path_tokens(arguments, /):
    """
    Return the leading arguments that do not look like flags.
    """
    tokens = []
    for argument in arguments:
        if argument.startswith("-"):
            break
        tokens.append(argument)
    return tokens


def child(command, name, /):
    """
    Return the child of command named exactly name, or None.
    """
    for candidate in subcommands(command):
        if nameof(candidate) == name:
            return candidate
    return None


def resolve(root, arguments, /):
    """
    Walk the leading path tokens of arguments from root.

    The caller strips a leading "help" beforehand (see strip_help). An empty
    argument list resolves to Trail((root,)).
    """
    trail = [current := root]
    for name in path_tokens(arguments):
        if (current := child(current, name)) is None:
            break
        trail.append(current)
    return Trail(trail)


__all__ = (
    "HELP",
    "Trail",
    "child",
    "path_tokens",
    "resolve",
    "strip_help",
    "validate",
)

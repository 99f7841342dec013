"""
Small helpers shared by the trellis modules.

- Unset: the "argument not given" marker, for parameters where None is a
  meaningful value (e.g., Program.run(context=...), Command(commands=...)).
- coalesce(): swap Unset for a default.
- rename(): give generated wrappers a readable __name__ for tracebacks.
- quote(): print a string default the way help shows it ("World").
- textual(): turn a descriptive trait (value or zero-argument callable) into
  text.

    >>> coalesce(Unset, "fallback"), coalesce(None, "fallback")
    ('fallback', None)
    >>> quote('say "hi"')
    '"say \\\\"hi\\\\""'
"""
import functools
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker. There is exactly one instance per process:
    construction, copying and unpickling all return it.

    The marker is falsy and takes part in PEP 604 unions, so annotations and
    checks such as isinstance(value, str | Unset) work.
    """

    @functools.cache
    def __new__(cls):
        return object.__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __reduce__(self):
        return "Unset"

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return default when object is Unset, object otherwise (None, 0 and ""
    are kept).
    """
    return default if object is Unset else object


def _retitle(function, name):
    if not callable(function):
        raise TypeError("rename() first argument must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        function.__name__ = function.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError(f"rename() cannot rename {function!r}") from None
    return function


def rename(*parameters):
    """
    rename(function, name) renames function in place and returns it;
    rename(name) returns a decorator doing the same.
    """
    if len(parameters) == 2:
        return _retitle(*parameters)
    if len(parameters) != 1:
        raise TypeError(f"rename() takes 1 or 2 arguments ({len(parameters)} given)")
    name, = parameters
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    return _retitle(lambda function: _retitle(function, name), "rename")


_escapes = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def quote(text, /):
    """
    Return text in double quotes, escaping quotes, backslashes and control
    characters; printable characters (accented ones included) stay as-is.
    """
    if not isinstance(text, str):
        raise TypeError("quote() argument must be a string")

    def escape(char):
        if char in _escapes:
            return _escapes[char]
        if char.isprintable():
            return char
        return f"\\x{ord(char):02x}" if ord(char) < 0x100 else f"\\u{ord(char):04x}"

    return '"' + "".join(map(escape, text)) + '"'


def textual(object, /):
    """
    Text of a descriptive trait: short, long and foot may be plain values
    (str, rich Text) or zero-argument methods.
    """
    return str(object() if callable(object) else object)


__all__ = (
    "coalesce",
    "rename",
    "quote",
    "textual",
    "UnsetType",
    "Unset",
)

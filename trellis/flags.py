r"""
Trellis flag sets: typed flag declarations and the single-dash parser.

Overview
- Values
  • Value: base of every flag value holder. A value parses text with set(),
    prints itself with __str__, and exposes the typed result as `.value`.
  • StringValue, BooleanValue, IntegerValue, FloatingValue, DurationValue:
    the built-in typed holders.
  • FuncValue: calls a handler with the raw text each time the flag is set.
  Any object with set(text) and __str__ can be declared with FlagSet.var();
  an `is_bool` attribute (or method) returning True makes it a boolean flag.

- FlagSet
  • Declarations: string/boolean/integer/floating/duration return the value
    holder; var() registers a caller-owned value; func() is a decorator.
  • Declaring a name twice replaces the earlier flag: later contributors
    override earlier defaults.
  • parse(arguments) consumes flags up to the first non-flag argument or the
    "--" terminator; the rest is available as `arguments`.

Grammar
- "-flag" and "--flag" are equivalent.
- "-flag=value" and "-flag value" for value-bearing flags.
- Boolean flags only accept the inline form ("-flag=false"); "-flag" alone
  sets them to true.
- "-h", "-help" and "--help" raise HelpRequested unless declared.

Quick example:
    >>> flags = FlagSet("app")
    >>> name = flags.string("name", "World", "your `person` name")
    >>> verbose = flags.boolean("verbose", False, "show more information")
    >>> flags.parse(["-name", "Gopher", "-verbose", "file.txt"])
    >>> name.value, verbose.value, flags.arguments
    ('Gopher', True, ['file.txt'])
"""
import datetime
import decimal
import re

from .faults import (
    FlagSyntaxError,
    UnknownFlagError,
    MissingFlagValueError,
    FlagValueError,
    HelpRequested,
)
from .utils import *


class Value:
    """
    Base flag value holder.

    Subclasses set `typename` (the tag shown in help, "" for booleans),
    implement convert() and format(), and pick a zero value. A holder created
    without arguments carries the zero value, which is how help decides
    whether a default is worth printing.
    """
    typename = "value"
    zero = None
    is_bool = False

    def __init__(self, value=Unset, /):
        self.value = coalesce(value, self.zero)

    def convert(self, text):
        raise NotImplementedError

    def format(self, value):
        return str(value)

    def set(self, text):
        self.value = self.convert(text)

    def __str__(self):
        return self.format(self.value)

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"


class StringValue(Value):
    typename = "string"
    zero = ""

    def convert(self, text):
        return text


class BooleanValue(Value):
    typename = ""
    zero = False
    is_bool = True

    _truthy = frozenset({"1", "t", "T", "TRUE", "true", "True"})
    _falsy = frozenset({"0", "f", "F", "FALSE", "false", "False"})

    def convert(self, text):
        if text in self._truthy:
            return True
        if text in self._falsy:
            return False
        raise ValueError("parse error")

    def format(self, value):
        return "true" if value else "false"


class IntegerValue(Value):
    typename = "int"
    zero = 0

    def convert(self, text):
        if text != text.strip() or not text.isascii():
            raise ValueError("parse error")
        try:
            return int(text, 0)
        except ValueError:
            pass
        # int(..., 0) rejects leading zeros ("010"); read those as octal.
        if match := re.fullmatch(r"([+-]?)0([0-7_]+)", text):
            return int(match.group(1) + "0o" + match.group(2), 0)
        raise ValueError("parse error")


class FloatingValue(Value):
    typename = "float"
    zero = 0.0

    def convert(self, text):
        if text != text.strip() or not text.isascii():
            raise ValueError("parse error")
        try:
            return float(text)
        except ValueError:
            raise ValueError("parse error") from None

    def format(self, value):
        """
        Shortest representation that round-trips, switching to exponent form
        below 1e-4 or from 1e+06 on (e.g., 0.5, 1, 1e+06, 1.5e-05).
        """
        if value != value:
            return "NaN"
        if value in (float("inf"), float("-inf")):
            return "+Inf" if value > 0 else "-Inf"
        sign, digits, exponent = decimal.Decimal(repr(value)).normalize().as_tuple()
        digits = "".join(map(str, digits)) if any(digits) else "0"
        prefix = "-" if sign else ""
        if digits == "0":
            return prefix + "0"
        point = len(digits) + exponent  # decimal point position
        if not -4 <= point - 1 < 6:
            mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
            return f"{prefix}{mantissa}e{point - 1:+03d}"
        if point <= 0:
            return f"{prefix}0.{'0' * -point}{digits}"
        if point >= len(digits):
            return prefix + digits + "0" * (point - len(digits))
        return f"{prefix}{digits[:point]}.{digits[point:]}"


# Units accepted by duration flags, in microseconds (timedelta resolution).
_units = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}

_duration = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text, /):
    """
    Parse a duration such as "300ms", "-1.5h" or "2h45m" into a timedelta.

    A bare "0" is accepted; every other number needs a unit.
    """
    if not isinstance(text, str):
        raise TypeError("parse_duration() argument must be a string")
    source = text
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return datetime.timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {quote(source)}")
    total = 0.0
    position = 0
    while position < len(text):
        match = _duration.match(text, position)
        if not match or match.group(1) in ("", "."):
            raise ValueError(f"invalid duration {quote(source)}")
        total += float(match.group(1)) * _units[match.group(2)]
        position = match.end()
    return datetime.timedelta(microseconds=sign * round(total))


def format_duration(delta, /):
    """
    Format a timedelta the way durations are written on the command line.

    Examples: 0s, 300ms, 1.5s, 1m0s, 2h45m0s, -5s.
    """
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    def fraction(value, scale):
        whole, rest = divmod(value, scale)
        digits = f"{rest:0{len(str(scale)) - 1}d}".rstrip("0")
        return f"{whole}.{digits}" if digits else str(whole)

    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{fraction(micros, 1_000)}ms"
    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)
    seconds = fraction(micros, 1_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


class DurationValue(Value):
    typename = "duration"
    zero = datetime.timedelta(0)

    def convert(self, text):
        try:
            return parse_duration(text)
        except ValueError:
            raise ValueError("parse error") from None

    def format(self, value):
        return format_duration(value)


class FuncValue(Value):
    """
    Flag value that forwards the raw text to a handler on every occurrence.

    The handler may raise ValueError to reject the text; its message becomes
    the reason in the "invalid value" error.
    """
    typename = "value"
    zero = ""

    def __init__(self, handler=Unset, /):
        super().__init__()
        self._handler = handler

    def convert(self, text):
        if self._handler is not Unset:
            self._handler(text)
        return text

    def __str__(self):
        return ""


def _is_bool(value):
    flag = getattr(value, "is_bool", False)
    return bool(flag() if callable(flag) else flag)


class Flag:
    """
    A declared flag: its name, usage text, value holder and default text.

    The default is captured as text when the flag is declared, before any
    parsing happens, so help can show it even after values were set.
    """

    __slots__ = ("name", "usage", "value", "default")

    def __init__(self, name, usage, value, default):
        self.name = name
        self.usage = usage
        self.value = value
        self.default = default

    def is_zero_value(self):
        """
        True when the default text equals the text of the value type's zero.

        Values whose type cannot be built without arguments are compared
        against the empty string.
        """
        try:
            zero = type(self.value)()
        except TypeError:
            return self.default == ""
        return self.default == str(zero)

    def __repr__(self):
        return f"flag(name={self.name!r}, usage={self.usage!r}, default={self.default!r})"


def unquote_usage(flag, /):
    """
    Extract a back-quoted name from the usage string of a flag and return
    (typename, usage).

    Given "a `name` to show" it returns ("name", "a name to show"). If there
    are no back quotes, the name is a guess at the type of the flag's value:
    "" for boolean flags, the value's typename otherwise ("value" when the
    value does not declare one).
    """
    usage = flag.usage
    if (start := usage.find("`")) != -1 and (end := usage.find("`", start + 1)) != -1:
        name = usage[start + 1:end]
        return name, usage[:start] + name + usage[end + 1:]
    if _is_bool(flag.value):
        return "", usage
    return getattr(type(flag.value), "typename", "value"), usage


class FlagSet:
    """
    A set of defined flags, parsed from a list of argument tokens.

    A FlagSet is built for one invocation and discarded afterwards. The zero
    configuration recognizes -h/-help/--help as a help request (HelpRequested)
    unless a flag with that name has been declared.
    """

    def __init__(self, name="", /):
        if not isinstance(name, str):
            raise TypeError("FlagSet 'name' must be a string")
        self.name = name
        self._formal = {}
        self._actual = {}
        self._arguments = []
        self._parsed = False

    # ── Declarations ──────────────────────────────────────────────────────

    def var(self, value, name, usage=""):
        """
        Declare a flag backed by a caller-owned value object.

        Redeclaring a name replaces the earlier flag.
        """
        if not hasattr(value, "set") or not callable(value.set):
            raise TypeError("var() value must implement set(text)")
        if not isinstance(name, str):
            raise TypeError("var() name must be a string")
        if name.startswith("-"):
            raise ValueError(f"flag {name!r} begins with -")
        if "=" in name:
            raise ValueError(f"flag {name!r} contains =")
        if not isinstance(usage, str):
            raise TypeError("var() usage must be a string")
        self._formal[name] = Flag(name, usage, value, str(value))
        self._actual.pop(name, None)
        return value

    def string(self, name, default="", usage=""):
        return self.var(StringValue(default), name, usage)

    def boolean(self, name, default=False, usage=""):
        return self.var(BooleanValue(bool(default)), name, usage)

    def integer(self, name, default=0, usage=""):
        if not isinstance(default, int) or isinstance(default, bool):
            raise TypeError("integer() default must be an integer")
        return self.var(IntegerValue(default), name, usage)

    def floating(self, name, default=0.0, usage=""):
        return self.var(FloatingValue(float(default)), name, usage)

    def duration(self, name, default=datetime.timedelta(0), usage=""):
        if isinstance(default, str):
            default = parse_duration(default)
        if not isinstance(default, datetime.timedelta):
            raise TypeError("duration() default must be a timedelta or a duration string")
        return self.var(DurationValue(default), name, usage)

    def func(self, name, usage=""):
        """
        Decorator form: declare a flag that calls the decorated handler with
        the raw text each time it is set.

            @flags.func("level", "set the log `level`")
            def level(text): ...
        """
        @rename("func")
        def wrapper(handler):
            if not callable(handler):
                raise TypeError("@func() must be applied to a callable")
            self.var(FuncValue(handler), name, usage)
            return handler
        return wrapper

    # ── Introspection ─────────────────────────────────────────────────────

    def lookup(self, name):
        """
        Return the Flag declared under name, or None.
        """
        return self._formal.get(name)

    def set(self, name, text):
        """
        Set the named flag from text, as if it had been parsed.
        """
        if (flag := self._formal.get(name)) is None:
            raise UnknownFlagError(f"no such flag -{name}")
        flag.value.set(text)
        self._actual[name] = flag

    def visit_all(self, visitor):
        """
        Call visitor for every declared flag, in lexicographical order.
        """
        for name in sorted(self._formal):
            visitor(self._formal[name])

    def visit(self, visitor):
        """
        Call visitor for every flag that has been set, in lexicographical order.
        """
        for name in sorted(self._actual):
            visitor(self._actual[name])

    def __contains__(self, name):
        return name in self._formal

    def __len__(self):
        return len(self._formal)

    @property
    def parsed(self):
        return self._parsed

    @property
    def arguments(self):
        """
        The non-flag arguments remaining after parse().
        """
        return list(self._arguments)

    # ── Parsing ───────────────────────────────────────────────────────────

    def parse(self, arguments):
        """
        Parse flag definitions from the argument list, which should not
        include the command name or path.

        Raises a FlagError subclass on the first malformed or undefined flag
        and HelpRequested for an undeclared -h/-help/--help.
        """
        self._parsed = True
        self._arguments = list(arguments)
        while self._parse_one():
            pass

    def _parse_one(self):
        if not self._arguments:
            return False
        token = self._arguments[0]
        if len(token) < 2 or token[0] != "-":
            return False
        minuses = 1
        if token[1] == "-":
            minuses += 1
            if len(token) == 2:  # "--" terminates the flags
                del self._arguments[0]
                return False
        name = token[minuses:]
        if not name or name[0] in "-=":
            raise FlagSyntaxError(f"bad flag syntax: {token}")

        del self._arguments[0]
        inline = False
        text = ""
        if (equals := name.find("=", 1)) != -1:
            name, text, inline = name[:equals], name[equals + 1:], True

        if (flag := self._formal.get(name)) is None:
            if name in ("help", "h"):
                raise HelpRequested()
            raise UnknownFlagError(f"flag provided but not defined: -{name}")

        if _is_bool(flag.value):
            if not inline:
                text = "true"
            try:
                flag.value.set(text)
            except ValueError as error:
                if inline:
                    raise FlagValueError(f"invalid boolean value {quote(text)} for -{name}: {error}") from error
                raise FlagValueError(f"invalid boolean flag {name}: {error}") from error
        else:
            if not inline and self._arguments:
                text, inline = self._arguments.pop(0), True
            if not inline:
                raise MissingFlagValueError(f"flag needs an argument: -{name}")
            try:
                flag.value.set(text)
            except ValueError as error:
                raise FlagValueError(f"invalid value {quote(text)} for flag -{name}: {error}") from error

        self._actual[name] = flag
        return True

    def __repr__(self):
        return f"FlagSet(name={self.name!r}, flags={sorted(self._formal)!r})"


__all__ = (
    "Value",
    "StringValue",
    "BooleanValue",
    "IntegerValue",
    "FloatingValue",
    "DurationValue",
    "FuncValue",
    "Flag",
    "FlagSet",
    "parse_duration",
    "format_duration",
    "unquote_usage",
)

"""
Flags module behavioral tests (grammar, typed values, faults, help metadata).

Scope
- Validate the single-dash grammar: -x/--x, inline and separate values,
  boolean forms, the "--" terminator and the first non-flag argument.
- Validate flag faults and their messages.
- Validate typed values (int, float, duration) and their textual form.
- Validate help metadata: unquote_usage and zero-value detection.
- Validate redeclaration (later declarations replace earlier ones).

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (FlagSet, Flag, the value holders, the faults).
"""
import datetime
import unittest
from unittest import TestCase

from trellis import (
    FlagSet,
    StringValue,
    BooleanValue,
    IntegerValue,
    FloatingValue,
    DurationValue,
    FlagError,
    FlagSyntaxError,
    UnknownFlagError,
    MissingFlagValueError,
    FlagValueError,
    HelpRequested,
    parse_duration,
    format_duration,
    unquote_usage,
)


class TestFlagGrammar(TestCase):
    """Parsing of flag tokens into values and residual arguments."""

    def setUp(self):
        self.flags = FlagSet("app")
        self.name = self.flags.string("name", "World", "your name")
        self.verbose = self.flags.boolean("verbose", False, "show more information")
        self.count = self.flags.integer("count", 1, "how many")

    def testNoArguments(self):
        self.flags.parse([])
        self.assertTrue(self.flags.parsed)
        self.assertEqual(self.flags.arguments, [])
        self.assertEqual(self.name.value, "World")

    def testSeparateValue(self):
        self.flags.parse(["-name", "Gopher"])
        self.assertEqual(self.name.value, "Gopher")

    def testInlineValue(self):
        self.flags.parse(["-name=Gopher"])
        self.assertEqual(self.name.value, "Gopher")

    def testInlineEmptyValue(self):
        self.flags.parse(["-name="])
        self.assertEqual(self.name.value, "")

    def testDoubleDash(self):
        self.flags.parse(["--name", "Gopher", "--count=3"])
        self.assertEqual(self.name.value, "Gopher")
        self.assertEqual(self.count.value, 3)

    def testValueMayLookLikeFlag(self):
        self.flags.parse(["-name", "-verbose"])
        self.assertEqual(self.name.value, "-verbose")
        self.assertFalse(self.verbose.value)

    def testBooleanAlone(self):
        self.flags.parse(["-verbose", "false"])
        self.assertTrue(self.verbose.value)
        self.assertEqual(self.flags.arguments, ["false"])

    def testBooleanInline(self):
        for text, expected in (("true", True), ("1", True), ("T", True), ("false", False), ("0", False), ("F", False)):
            with self.subTest(text=text):
                flags = FlagSet()
                verbose = flags.boolean("verbose", not expected)
                flags.parse([f"-verbose={text}"])
                self.assertIs(verbose.value, expected)

    def testStopsAtFirstNonFlag(self):
        self.flags.parse(["-verbose", "file.txt", "-name", "Gopher"])
        self.assertTrue(self.verbose.value)
        self.assertEqual(self.name.value, "World")
        self.assertEqual(self.flags.arguments, ["file.txt", "-name", "Gopher"])

    def testTerminator(self):
        self.flags.parse(["-verbose", "--", "-name", "Gopher"])
        self.assertEqual(self.flags.arguments, ["-name", "Gopher"])
        self.assertEqual(self.name.value, "World")

    def testOnlyTerminator(self):
        self.flags.parse(["--"])
        self.assertEqual(self.flags.arguments, [])

    def testSingleHyphenIsArgument(self):
        self.flags.parse(["-", "-verbose"])
        self.assertEqual(self.flags.arguments, ["-", "-verbose"])
        self.assertFalse(self.verbose.value)

    def testVisitSetFlags(self):
        self.flags.parse(["-verbose", "-name", "x"])
        seen = []
        self.flags.visit(lambda flag: seen.append(flag.name))
        self.assertEqual(seen, ["name", "verbose"])

    def testVisitAllSorted(self):
        seen = []
        self.flags.visit_all(lambda flag: seen.append(flag.name))
        self.assertEqual(seen, ["count", "name", "verbose"])

    def testSetByName(self):
        self.flags.set("count", "7")
        self.assertEqual(self.count.value, 7)
        with self.assertRaises(UnknownFlagError):
            self.flags.set("missing", "7")

    def testContainsAndLen(self):
        self.assertIn("name", self.flags)
        self.assertNotIn("help", self.flags)
        self.assertEqual(len(self.flags), 3)


class TestFlagFaults(TestCase):
    """Rejected tokens raise FlagError subclasses with stable messages."""

    def setUp(self):
        self.flags = FlagSet("app")
        self.flags.string("name", "World", "your name")
        self.flags.boolean("verbose", False, "show more information")
        self.flags.integer("count", 1, "how many")

    def assertFault(self, arguments, fault, message):
        with self.assertRaises(fault) as context:
            self.flags.parse(arguments)
        self.assertIsInstance(context.exception, FlagError)
        self.assertEqual(str(context.exception), message)

    def testUndefined(self):
        self.assertFault(["-undefined"], UnknownFlagError, "flag provided but not defined: -undefined")

    def testUndefinedDoubleDash(self):
        self.assertFault(["--undefined=1"], UnknownFlagError, "flag provided but not defined: -undefined")

    def testBadSyntax(self):
        self.assertFault(["---name"], FlagSyntaxError, "bad flag syntax: ---name")
        self.assertFault(["-=x"], FlagSyntaxError, "bad flag syntax: -=x")

    def testMissingValue(self):
        self.assertFault(["-name"], MissingFlagValueError, "flag needs an argument: -name")

    def testInvalidInteger(self):
        self.assertFault(["-count", "many"], FlagValueError, 'invalid value "many" for flag -count: parse error')

    def testPaddedInteger(self):
        self.assertFault(["-count", " 1"], FlagValueError, 'invalid value " 1" for flag -count: parse error')

    def testInvalidBooleanInline(self):
        self.assertFault(["-verbose=maybe"], FlagValueError, 'invalid boolean value "maybe" for -verbose: parse error')

    def testHelpRequested(self):
        for token in ("-h", "-help", "--help", "--h"):
            with self.subTest(token=token):
                with self.assertRaises(HelpRequested):
                    self.flags.parse([token])

    def testDeclaredHelpIsAFlag(self):
        flags = FlagSet()
        topic = flags.string("help", "", "help topic")
        flags.parse(["-help", "flags"])
        self.assertEqual(topic.value, "flags")

    def testHelpRequestedMessage(self):
        self.assertEqual(str(HelpRequested()), "flag: help requested")


class TestDeclarations(TestCase):
    """Declaration checks and redeclaration."""

    def testRedeclarationReplaces(self):
        flags = FlagSet()
        first = flags.string("mode", "global", "first")
        second = flags.string("mode", "local", "second")
        flags.parse(["-mode", "x"])
        self.assertEqual(first.value, "global")
        self.assertEqual(second.value, "x")
        self.assertEqual(flags.lookup("mode").usage, "second")
        self.assertEqual(len(flags), 1)

    def testNamesValidated(self):
        flags = FlagSet()
        with self.assertRaises(ValueError):
            flags.string("-name")
        with self.assertRaises(ValueError):
            flags.string("a=b")
        with self.assertRaises(TypeError):
            flags.string(1)

    def testVarRequiresSet(self):
        with self.assertRaises(TypeError):
            FlagSet().var(object(), "thing")

    def testIntegerDefaultChecked(self):
        with self.assertRaises(TypeError):
            FlagSet().integer("count", True)
        with self.assertRaises(TypeError):
            FlagSet().integer("count", "1")

    def testDurationDefaultFromText(self):
        delay = FlagSet().duration("delay", "1m30s")
        self.assertEqual(delay.value, datetime.timedelta(seconds=90))

    def testFuncDecorator(self):
        flags = FlagSet()
        seen = []

        @flags.func("tag", "add a `label`")
        def tag(text):
            seen.append(text)

        flags.parse(["-tag", "a", "-tag=b"])
        self.assertEqual(seen, ["a", "b"])
        self.assertTrue(callable(tag))

    def testFuncRejection(self):
        flags = FlagSet()

        @flags.func("level")
        def level(text):
            if text not in ("low", "high"):
                raise ValueError("unknown level")

        with self.assertRaises(FlagValueError) as context:
            flags.parse(["-level", "mid"])
        self.assertEqual(str(context.exception), 'invalid value "mid" for flag -level: unknown level')

    def testCustomBooleanValue(self):
        class Switch:
            def __init__(self):
                self.on = False

            def is_bool(self):
                return True

            def set(self, text):
                self.on = text == "true"

            def __str__(self):
                return "true" if self.on else "false"

        flags = FlagSet()
        switch = flags.var(Switch(), "switch")
        flags.parse(["-switch", "rest"])
        self.assertTrue(switch.on)
        self.assertEqual(flags.arguments, ["rest"])


class TestValues(TestCase):
    """Typed values parse and print like their command-line form."""

    def testIntegerBases(self):
        for text, expected in (("10", 10), ("0x10", 16), ("010", 8), ("0o10", 8), ("0b11", 3), ("-7", -7), ("1_000", 1000)):
            with self.subTest(text=text):
                value = IntegerValue()
                value.set(text)
                self.assertEqual(value.value, expected)

    def testIntegerInvalid(self):
        with self.assertRaises(ValueError):
            IntegerValue().set("09")

    def testNumbersRejectPaddingAndNonAscii(self):
        for value, text in (
                (IntegerValue(), " 1"),
                (IntegerValue(), "1 "),
                (IntegerValue(), "\u0661\u0662"),
                (FloatingValue(), " 2.5"),
                (FloatingValue(), "2.5\n"),
                (FloatingValue(), "\u0661.5"),
        ):
            with self.subTest(text=text), self.assertRaises(ValueError) as context:
                value.set(text)
            self.assertEqual(str(context.exception), "parse error")

    def testFloatFormat(self):
        for number, expected in (
                (0.0, "0"),
                (1.0, "1"),
                (0.5, "0.5"),
                (-2.25, "-2.25"),
                (100.0, "100"),
                (123456.0, "123456"),
                (1e6, "1e+06"),
                (1.5e-5, "1.5e-05"),
                (0.0001, "0.0001"),
                (float("inf"), "+Inf"),
                (float("nan"), "NaN"),
        ):
            with self.subTest(number=number):
                self.assertEqual(str(FloatingValue(number)), expected)

    def testFloatParse(self):
        value = FloatingValue()
        value.set("2.5e3")
        self.assertEqual(value.value, 2500.0)
        with self.assertRaises(ValueError):
            value.set("abc")

    def testBooleanFormat(self):
        self.assertEqual(str(BooleanValue(True)), "true")
        self.assertEqual(str(BooleanValue()), "false")

    def testParseDuration(self):
        for text, expected in (
                ("0", datetime.timedelta(0)),
                ("300ms", datetime.timedelta(milliseconds=300)),
                ("1.5s", datetime.timedelta(seconds=1.5)),
                ("2h45m", datetime.timedelta(hours=2, minutes=45)),
                ("-5s", datetime.timedelta(seconds=-5)),
                ("10us", datetime.timedelta(microseconds=10)),
                ("10µs", datetime.timedelta(microseconds=10)),
        ):
            with self.subTest(text=text):
                self.assertEqual(parse_duration(text), expected)

    def testParseDurationInvalid(self):
        for text in ("", "5", "s", "1x", ".s", "-"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    parse_duration(text)

    def testFormatDuration(self):
        for delta, expected in (
                (datetime.timedelta(0), "0s"),
                (datetime.timedelta(milliseconds=300), "300ms"),
                (datetime.timedelta(seconds=1.5), "1.5s"),
                (datetime.timedelta(seconds=5), "5s"),
                (datetime.timedelta(minutes=1), "1m0s"),
                (datetime.timedelta(hours=2, minutes=45), "2h45m0s"),
                (datetime.timedelta(seconds=-5), "-5s"),
                (datetime.timedelta(microseconds=15), "15µs"),
        ):
            with self.subTest(delta=delta):
                self.assertEqual(format_duration(delta), expected)

    def testDurationValueRejects(self):
        value = DurationValue()
        with self.assertRaises(ValueError) as context:
            value.set("soon")
        self.assertEqual(str(context.exception), "parse error")


class TestHelpMetadata(TestCase):
    """Type tags, usage text and default values as shown in help."""

    def setUp(self):
        self.flags = FlagSet()

    def testUnquoteUsageBackQuotes(self):
        self.flags.string("name", "", "a `person` to greet")
        self.assertEqual(unquote_usage(self.flags.lookup("name")), ("person", "a person to greet"))

    def testUnquoteUsageTypename(self):
        self.flags.string("name", "", "name")
        self.flags.integer("count", 0, "count")
        self.flags.floating("ratio", 0.0, "ratio")
        self.flags.duration("delay", usage="delay")
        self.flags.boolean("verbose", usage="verbose")
        tags = {name: unquote_usage(self.flags.lookup(name))[0] for name in ("name", "count", "ratio", "delay", "verbose")}
        self.assertEqual(tags, {"name": "string", "count": "int", "ratio": "float", "delay": "duration", "verbose": ""})

    def testUnquoteUsageCustomValue(self):
        class Level:
            def set(self, text):
                pass

            def __str__(self):
                return ""

        self.flags.var(Level(), "level", "log level")
        self.assertEqual(unquote_usage(self.flags.lookup("level")), ("value", "log level"))

    def testZeroValues(self):
        self.flags.string("empty", "")
        self.flags.string("full", "x")
        self.flags.integer("zero", 0)
        self.flags.integer("one", 1)
        self.flags.boolean("off", False)
        self.flags.boolean("on", True)
        self.flags.duration("none")
        self.flags.duration("some", "5s")
        zero = {}
        self.flags.visit_all(lambda flag: zero.__setitem__(flag.name, flag.is_zero_value()))
        self.assertEqual(zero, {
            "empty": True, "full": False,
            "zero": True, "one": False,
            "off": True, "on": False,
            "none": True, "some": False,
        })

    def testDefaultIsCapturedAtDeclaration(self):
        self.flags.string("name", "World")
        self.flags.parse(["-name", "Gopher"])
        flag = self.flags.lookup("name")
        self.assertEqual(flag.default, "World")
        self.assertEqual(str(flag.value), "Gopher")

    def testStringValueHolder(self):
        value = StringValue("x")
        value.set("y")
        self.assertEqual((value.value, str(value)), ("y", "y"))


if __name__ == "__main__":
    unittest.main()

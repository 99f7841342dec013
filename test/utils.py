"""
Tests for the internal helpers and the Unset sentinel.

This module verifies:
- Singleton identity, falsy semantics and finality of `UnsetType`.
- Copying, pickling and thread safety of the sentinel.
- Union support so `str | Unset` works in isinstance checks.
- coalesce, rename, quote and textual.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from unittest import TestCase

from rich.text import Text

from trellis.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), UnsetType())
        self.assertIs(Unset, UnsetType())

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")
        self.assertEqual(str(Unset), "Unset")

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values (None/False).
        """
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testUnion(self) -> None:
        """
        `str | Unset` builds a union usable with isinstance().
        """
        self.assertIsInstance("text", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results: list[UnsetType] = []
        lock: Lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads: list[Thread] = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertTrue(results)
        for instance in results:
            self.assertIs(instance, Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce, rename, quote and textual.
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameCallable(self) -> None:
        def original():
            pass

        self.assertIs(rename(original, "renamed"), original)
        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("named")
        def original():
            pass

        self.assertEqual(original.__name__, "named")

    def testRenameErrors(self) -> None:
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename(len, "x")
        with self.assertRaises(TypeError):
            rename(3)

    def testQuote(self) -> None:
        self.assertEqual(quote("World"), '"World"')
        self.assertEqual(quote(""), '""')
        self.assertEqual(quote('say "hi"'), '"say \\"hi\\""')
        self.assertEqual(quote("a\\b\n\t"), '"a\\\\b\\n\\t"')
        self.assertEqual(quote("\x07"), '"\\x07"')
        self.assertEqual(quote("héllo"), '"héllo"')
        with self.assertRaises(TypeError):
            quote(3)

    def testTextual(self) -> None:
        self.assertEqual(textual("plain"), "plain")
        self.assertEqual(textual(lambda: "called"), "called")
        self.assertEqual(textual(Text("rich")), "rich")
        self.assertEqual(textual(42), "42")


if __name__ == '__main__':
    unittest.main()

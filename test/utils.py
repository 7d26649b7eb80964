"""
Tests for the utilities module.

This module verifies semantic guarantees of the helpers shared by every layer:
- The `Unset` sentinel: singleton identity, falsy semantics, representation,
  copy/pickle identity, thread safety and finality.
- coalesce(): only the sentinel is replaced.
- rename(): direct and decorator forms.
- mirror(): read-only properties handing out detached containers.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from unittest import TestCase

from rich.console import Console

from conch.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def setUp(self) -> None:
        self.unset: UnsetType = UnsetType()

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(self.unset, UnsetType())
        self.assertIs(Unset, self.unset)

    def testRepr(self) -> None:
        self.assertEqual(repr(self.unset), "Unset")
        self.assertEqual(str(self.unset), "Unset")

    def testRichConsolePrint(self) -> None:
        """
        Console.print(...) renders 'Unset' without ANSI when color is disabled.
        """
        console = Console(color_system=None, force_terminal=False)
        with console.capture() as capture:
            console.print(self.unset)
        self.assertEqual(capture.get().strip(), "Unset")

    def testFalsely(self) -> None:
        self.assertFalse(bool(self.unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values (None/False).
        """
        self.assertNotEqual(self.unset, None)
        self.assertNotEqual(self.unset, False)  # noqa: E712

    def testUnionWithTypes(self) -> None:
        self.assertIsInstance(self.unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(self.unset), self.unset)
        self.assertIs(copy.deepcopy(self.unset), self.unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(self.unset)), self.unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance (thread-safe singleton).
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

        self.assertEqual(len(results), 16)
        for instance in results:
            self.assertIs(instance, self.unset)

    def testFinalClass(self) -> None:
        """
        The class is final: attempts to subclass must fail with TypeError.
        """
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce("name", "fallback"), "name")
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        # falsy values other than the sentinel pass through
        self.assertEqual(coalesce("", "fallback"), "")
        self.assertIsNone(coalesce(None, "fallback"))

    def testRenameDirect(self) -> None:
        function = rename(lambda: None, "handler")
        self.assertEqual(function.__name__, "handler")
        self.assertEqual(function.__qualname__, "handler")

    def testRenameDecorator(self) -> None:
        @rename("generated")
        def function():
            pass

        self.assertEqual(function.__name__, "generated")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorIsReadOnlyAndDetached(self) -> None:
        class Box:
            items = mirror("items")
            label = mirror("label")

            def __init__(self):
                self._items = [["a"], {"k": {1, 2}}]
                self._label = "box"

        box = Box()
        box.items[0].append("b")
        box.items[1]["k"].add(3)
        self.assertEqual(box.items, [["a"], {"k": {1, 2}}])
        self.assertEqual(box.label, "box")
        with self.assertRaises(AttributeError):
            box.label = "other"  # type: ignore[misc]

    def testMirrorRejectsNonString(self) -> None:
        with self.assertRaises(TypeError):
            mirror(1)  # type: ignore[arg-type]


if __name__ == '__main__':
    unittest.main()

"""
Manager module behavioral tests (dispatch, entry points, built-ins, interactive loop).

Scope
- Validate end-to-end dispatch of text lines and argv sequences.
- Validate the failure paths: unknown command, validation, handler error/failure.
- Validate inline help, the built-in help/list commands and the batch loop.
- Validate the interactive loop on an in-memory stdin.

Conventions
- Test method names follow CamelCase per project convention.
- Managers write to in-memory streams with colors disabled; assertions look at text.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from conch import (
    CommandManager,
    CommandContext,
    Outcome,
    ParameterDefinition,
    create_manager,
)
from conch.faults import UnknownCommandError, ExecutionError, CommandFailedError, MissingParameterError


class ManagerTestCase(TestCase):
    def setUp(self) -> None:
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()
        self.manager = CommandManager(stdout=self.stdout, stderr=self.stderr, colorful=False)
        self.calls = []

        def add(context):
            self.calls.append(context.args)
            total = int(context.get_argument(0)) + int(context.get_argument(1))
            context.set_metadata("total", total)
            return True

        self.manager.create_command("add", "add two integers", add, category="Math") \
            .add_parameter("a", "first operand", True, type="int") \
            .add_parameter("b", "second operand", True, type="int")

    @property
    def out(self):
        return self.stdout.getvalue()

    @property
    def err(self):
        return self.stderr.getvalue()


class TestDispatch(ManagerTestCase):
    """Behavioral tests for process_string()/dispatch()."""

    def testAddEndToEnd(self):
        self.assertTrue(self.manager.process_string("add 3 4"))
        self.assertEqual(self.calls, [["3", "4"]])
        self.assertEqual(self.err, "")

    def testDispatchReturnsOutcome(self):
        context = CommandContext.from_string("add 3 4")
        outcome = self.manager.dispatch(context)
        self.assertIsInstance(outcome, Outcome)
        self.assertTrue(outcome.success)
        self.assertEqual(context.get_metadata("total"), 7)

    def testEmptyLineIsNoop(self):
        self.assertTrue(self.manager.process_string(""))
        self.assertTrue(self.manager.process_string("   "))
        self.assertEqual(self.out + self.err, "")

    def testRemoveEndToEnd(self):
        seen = []
        self.manager.create_command("rm", "remove", seen.append).add_parameter("path", required=True)
        self.assertTrue(self.manager.process_string("rm -rf dir"))
        context, = seen
        self.assertEqual(context.args, ["dir"])
        self.assertEqual(context.flags, {"r", "f"})
        self.assertEqual(context.options, {})

    def testUnknownCommandSuggests(self):
        self.manager.create_command("ls", "list files")
        self.manager.create_command("mkdir", "make a directory")
        outcome = self.manager.dispatch(CommandContext.from_string("lst"))
        self.assertFalse(outcome)
        self.assertIsInstance(outcome.fault, UnknownCommandError)
        self.assertEqual(outcome.fault.options["suggestions"], ["ls"])
        self.assertIn("unknown command 'lst'", self.err)
        self.assertIn("Did you mean one of these?", self.out)
        self.assertIn("  ls - list files", self.out)
        self.assertNotIn("mkdir", self.out)

    def testUnknownCommandWithoutSuggestions(self):
        self.assertFalse(self.manager.process_string("zzzzzzzz"))
        self.assertIn("Use 'list' to see all available commands", self.out)

    def testValidationFailureShowsUsage(self):
        outcome = self.manager.dispatch(CommandContext.from_string("add 3"))
        self.assertFalse(outcome)
        self.assertIsInstance(outcome.fault, MissingParameterError)
        self.assertIn("missing required parameter: b", self.err)
        self.assertIn("Usage help:", self.out)
        self.assertIn("Usage: add <a> <b>", self.out)
        self.assertEqual(self.calls, [])

    def testTooManyArguments(self):
        self.assertFalse(self.manager.process_string("add 1 2 3"))
        self.assertIn("too many arguments, at most 2 allowed", self.err)

    def testAutoHelpDisabled(self):
        self.manager.configure(auto_help=False)
        self.assertFalse(self.manager.process_string("add 3"))
        self.assertNotIn("Usage help:", self.out)

    def testHandlerExceptionBecomesFailure(self):
        self.assertFalse(self.manager.process_string("add x y"))
        self.assertIn("Execution Error", self.err)
        self.assertIn("ValueError", self.err)
        self.assertIn("See usage:", self.out)

    def testHandlerExceptionOutcome(self):
        outcome = self.manager.dispatch(CommandContext.from_string("add x y"))
        self.assertIsInstance(outcome.fault, ExecutionError)
        self.assertIsInstance(outcome.fault.options["exception"], ValueError)

    def testHandlerFalseIsFailure(self):
        self.manager.create_command("fail", "always fails", lambda context: False)
        outcome = self.manager.dispatch(CommandContext("fail"))
        self.assertFalse(outcome)
        self.assertIsInstance(outcome.fault, CommandFailedError)
        self.assertIn("Command Failed", self.err)
        self.assertIn("Command failed, see usage:", self.out)

    def testHandlerOutcomeMessage(self):
        self.manager.create_command("deny", "", lambda context: Outcome(False, "access denied"))
        self.assertFalse(self.manager.process_string("deny"))
        self.assertIn("access denied", self.err)

    def testCommandWithoutHandlerFails(self):
        self.manager.create_command("stub", "not implemented yet")
        self.assertFalse(self.manager.process_string("stub"))

    def testInlineHelpSkipsHandler(self):
        for line in ("add --help", "add -h", "add 1 2 3 4 --help", "add --help 1", "add x y -h"):
            with self.subTest(line=line):
                self.assertTrue(self.manager.process_string(line))
        self.assertEqual(self.calls, [])
        self.assertIn("Command: add", self.out)
        self.assertEqual(self.err, "")

    def testAliasDispatch(self):
        self.manager.find_command("add").add_alias("plus")
        self.assertTrue(self.manager.process_string("plus 1 1"))
        self.assertEqual(self.calls, [["1", "1"]])

    def testDispatchRejectsNonContext(self):
        with self.assertRaises(TypeError):
            self.manager.dispatch("add 1 2")  # type: ignore[arg-type]


class TestEntryPoints(ManagerTestCase):
    """Behavioral tests for process_args()/process_arg_loop()."""

    def testProcessArgs(self):
        self.assertTrue(self.manager.process_args(["add", "3", "4"]))
        self.assertEqual(self.calls, [["3", "4"]])

    def testProcessArgsEmpty(self):
        self.assertTrue(self.manager.process_args([]))

    def testArgLoopRunsEveryCommand(self):
        seen = []
        self.manager.create_command("touch", "", lambda context: seen.append(context.args)) \
            .add_parameter("...", "files")
        self.assertTrue(self.manager.process_arg_loop(["prog", "add", "1", "2", "-x", "touch", "a", "b"]))
        self.assertEqual(self.calls, [["1", "2"]])
        self.assertEqual(seen, [["a", "b"]])

    def testArgLoopReportsAnyFailure(self):
        self.assertFalse(self.manager.process_arg_loop(["prog", "add", "1", "--", "add", "2", "3"]))
        self.assertEqual(self.calls, [["2", "3"]])

    def testArgLoopSkipsProgramName(self):
        self.assertTrue(self.manager.process_arg_loop(["add"]))
        self.assertEqual(self.calls, [])


class TestBuiltins(ManagerTestCase):
    """Behavioral tests for help/list and the query helpers."""

    def testBuiltinsRegistered(self):
        self.assertTrue(self.manager.command_exists("help"))
        self.assertTrue(self.manager.command_exists("?"))
        self.assertTrue(self.manager.command_exists("list"))
        self.assertFalse(self.manager.command_exists("nope"))
        self.assertEqual(self.manager.get_command_list(), ["add", "help", "list"])

    def testBuiltinsCanBeSkipped(self):
        manager = CommandManager(stdout=io.StringIO(), stderr=io.StringIO(), builtins=False)
        self.assertEqual(manager.get_command_list(), [])

    def testCommandsByCategory(self):
        self.assertEqual(self.manager.get_commands_by_category(), {"General": ["help", "list"], "Math": ["add"]})

    def testGlobalHelp(self):
        self.assertTrue(self.manager.process_string("help"))
        self.assertIn("Global options:", self.out)
        self.assertIn("-c, --config <path>", self.out)
        self.assertIn("Special commands:", self.out)

    def testCommandHelp(self):
        self.assertTrue(self.manager.process_string("? add"))
        self.assertIn("Command: add", self.out)
        self.assertIn("Category: Math", self.out)

    def testHelpForUnknownCommand(self):
        self.assertTrue(self.manager.process_string("help nope"))
        self.assertIn("Command not found: nope", self.out)
        self.assertIn("Available commands:", self.out)
        self.assertFalse(self.manager.show_command_help("nope"))

    def testListSorted(self):
        self.assertTrue(self.manager.process_string("list"))
        self.assertIn("Available commands:", self.out)
        self.assertNotIn("Math:", self.out)
        self.assertLess(self.out.index("  add"), self.out.index("  help"))
        self.assertLess(self.out.index("  help"), self.out.index("  list"))

    def testListByCategory(self):
        self.assertTrue(self.manager.process_string("list -c"))
        self.assertIn("General:", self.out)
        self.assertIn("Math:", self.out)
        self.assertLess(self.out.index("General:"), self.out.index("Math:"))

    def testDuplicateRegistrationPrintsWarning(self):
        self.manager.create_command("add", "replacement")
        self.assertIn("Duplicate Command", self.err)
        self.assertEqual(self.manager.find_command("add").description, "replacement")

    def testCommandDecorator(self):
        @self.manager.command(parameters=[ParameterDefinition("text", required=True)])
        def echo(context):
            """Print the text back."""
            self.calls.append(context.args)

        self.assertTrue(self.manager.command_exists("echo"))
        self.assertEqual(echo.description, "Print the text back.")
        self.assertTrue(self.manager.process_string('echo "hi there"'))
        self.assertEqual(self.calls, [["hi there"]])


class TestConfiguration(TestCase):
    """Behavioral tests for manager configuration."""

    def testDefaults(self):
        manager = create_manager(stdout=io.StringIO(), stderr=io.StringIO())
        self.assertEqual(manager.prompt, "> ")
        self.assertTrue(manager.auto_help)
        self.assertTrue(manager.verbose_errors)
        self.assertTrue(manager.colorful)
        self.assertEqual(manager.max_suggestions, 5)

    def testConfigure(self):
        manager = create_manager(prompt="$ ", stdout=io.StringIO(), stderr=io.StringIO())
        self.assertEqual(manager.prompt, "$ ")
        manager.configure(max_suggestions=1, verbose_errors=False)
        self.assertEqual(manager.max_suggestions, 1)
        self.assertFalse(manager.verbose_errors)

    def testConfigureRejectsUnknownKeys(self):
        manager = create_manager(stdout=io.StringIO(), stderr=io.StringIO())
        with self.assertRaises(TypeError):
            manager.configure(theme="dark")
        with self.assertRaises(ValueError):
            manager.configure(max_suggestions=-1)

    def testSuggestionLimitApplied(self):
        stdout = io.StringIO()
        manager = create_manager(stdout=stdout, stderr=io.StringIO(), max_suggestions=1, builtins=False)
        for name in ("stat", "status"):
            manager.create_command(name, "")
        manager.process_string("st")
        self.assertIn("  stat -", stdout.getvalue())
        self.assertNotIn("status", stdout.getvalue())


class TestInteractive(ManagerTestCase):
    """Behavioral tests for run_interactive()."""

    def testStopsAtExit(self):
        self.manager.run_interactive(io.StringIO("add 3 4\n\nexit\nadd 1 2\n"))
        self.assertEqual(self.calls, [["3", "4"]])
        self.assertIn("> ", self.out)
        self.assertIn("Bye!", self.out)

    def testStopsAtEndOfInput(self):
        self.manager.run_interactive(io.StringIO("add 1 2"))
        self.assertEqual(self.calls, [["1", "2"]])

    def testFailureHint(self):
        self.manager.run_interactive(io.StringIO("add 1\nquit\n"))
        self.assertIn("Command failed, type 'help' for help", self.out)

    def testHelpAndListWords(self):
        self.manager.run_interactive(io.StringIO("help\nlist\n"))
        self.assertIn("Global options:", self.out)
        self.assertIn("Math:", self.out)


if __name__ == "__main__":
    unittest.main()

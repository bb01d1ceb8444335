"""
Commands module behavioral tests (callers, statuses, dispatch, handlers).

Scope
- Validate CommandStatus values and the OK/ERROR ordering.
- Validate CommandCaller construction flavors and its handler contract.
- Validate Commander dispatch: input order, per-command failure isolation,
  unregistered names, halting handlers and registry updates.
- Validate the console status handler.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Commander, CommandCaller, caller, statuses, faults).
"""
from __future__ import annotations

import unittest
from unittest import TestCase

from comproc import (
    CommandArgs,
    CommandCaller,
    CommandConfig,
    CommandStatus,
    Commander,
    ConsoleStatusHandler,
    NotEnoughValuesError,
    NotFoundError,
    Option,
    Status,
    StatusHandler,
    caller,
    console,
)


class Recorder:
    """Status handler collecting every status; halts when told to."""

    def __init__(self, halt_after=None):
        self.statuses = []
        self.halt_after = halt_after

    def __call__(self, status):
        self.statuses.append(status)
        return int(len(self.statuses) == self.halt_after)


class TestCommandStatus(TestCase):
    """CommandStatus values."""

    def testDefaults(self):
        status = CommandStatus("greet")
        self.assertEqual(status, ("greet", Status.OK, ""))
        self.assertTrue(status.ok)

    def testStatusOrdering(self):
        self.assertEqual(int(Status.ERROR), 0)
        self.assertEqual(int(Status.OK), 1)

    def testStatusCoercion(self):
        status = CommandStatus("greet", 0, "boom")
        self.assertIs(status.status, Status.ERROR)
        self.assertFalse(status.ok)

    def testRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            CommandStatus(1)
        with self.assertRaises(TypeError):
            CommandStatus("greet", Status.OK, None)


class TestCommandCaller(TestCase):
    """CommandCaller construction and invocation."""

    def setUp(self):
        self.config = CommandConfig("greet", [Option("name", 1)])

    def testCallbackReceivesArgs(self):
        received = []
        greet = CommandCaller(received.append, self.config)
        status = greet.invoke(CommandArgs("greet", {"name": "Ada"}))
        self.assertEqual(status, CommandStatus("greet"))
        self.assertEqual(received[0].get_string("name"), "Ada")

    def testInvokeWithTokens(self):
        received = []
        greet = CommandCaller(received.append, self.config)
        greet.invoke(["name", "Ada"])
        self.assertEqual(received[0].arg_table, {"name": "Ada"})
        self.assertEqual(received[0].command, "greet")

    def testInvokeWithTokensPropagatesFaults(self):
        greet = CommandCaller(lambda args: None, self.config)
        with self.assertRaises(NotEnoughValuesError):
            greet.invoke(["name"])

    def testReturnedStatusIsForwarded(self):
        greet = CommandCaller(lambda args: CommandStatus("greet", Status.ERROR, "nope"), self.config)
        self.assertEqual(greet(CommandArgs("greet")), CommandStatus("greet", Status.ERROR, "nope"))

    def testNonStatusReturnRejected(self):
        greet = CommandCaller(lambda args: 1, self.config)
        with self.assertRaises(TypeError):
            greet.invoke(CommandArgs("greet"))

    def testHandlerExceptionsPropagate(self):
        def fail(args):
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            CommandCaller(fail, self.config).invoke(CommandArgs("greet"))

    def testMethodName(self):
        class Greeter:
            def __init__(self):
                self.names = []

            def greet(self, args):
                self.names.append(args.get_string("name"))

        greeter = Greeter()
        CommandCaller(greeter, "greet", self.config).invoke(["name", "Ada"])
        self.assertEqual(greeter.names, ["Ada"])

    def testUnboundMethod(self):
        class Greeter:
            def __init__(self):
                self.names = []

            def greet(self, args):
                self.names.append(args.get_string("name"))

        greeter = Greeter()
        CommandCaller(greeter, Greeter.greet, self.config).invoke(["name", "Ada"])
        self.assertEqual(greeter.names, ["Ada"])

    def testInvalidConstruction(self):
        with self.assertRaises(TypeError):
            CommandCaller("not callable", self.config)
        with self.assertRaises(TypeError):
            CommandCaller(object(), "missing", self.config)
        with self.assertRaises(TypeError):
            CommandCaller(lambda args: None)

    def testNameAndConfig(self):
        greet = CommandCaller(lambda args: None, self.config)
        self.assertEqual(greet.name, "greet")
        self.assertEqual(greet.config, self.config)

    def testDecorator(self):
        @caller(self.config)
        def greet(args):
            pass

        self.assertIsInstance(greet, CommandCaller)
        self.assertEqual(greet.name, "greet")

    def testDecoratorShorthand(self):
        @caller("copy", Option("files", 2))
        def copy(args):
            pass

        self.assertEqual(copy.config, CommandConfig("copy", [Option("files", 2)]))

    def testDecoratorRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            caller(self.config)("greet")
        with self.assertRaises(TypeError):
            caller(1)


class TestCommander(TestCase):
    """Commander dispatch behavior."""

    def setUp(self):
        self.calls = []
        self.recorder = Recorder()
        self.commander = Commander(handler=self.recorder)

        @caller("greet", Option("name", 1))
        def greet(args):
            self.calls.append(("greet", args.arg_table))

        @caller("a")
        def a(args):
            self.calls.append(("a", args.get_string("unknown", "")))

        @caller("b")
        def b(args):
            self.calls.append(("b", args.get_string("unknown", "")))

        @caller("fail")
        def fail(args):
            raise RuntimeError("boom")

        for command in (greet, a, b, fail):
            self.commander.append_command(command)

    def testGreetSucceeds(self):
        statuses = self.commander.run(["greet", "name", "Ada"])
        self.assertEqual(statuses, [CommandStatus("greet", Status.OK, "")])
        self.assertEqual(self.calls, [("greet", {"name": "Ada"})])
        self.assertEqual(self.recorder.statuses, statuses)

    def testArityFailureBecomesErrorStatus(self):
        statuses = self.commander.run(["greet", "name"])
        self.assertEqual(statuses, [CommandStatus("greet", Status.ERROR, 'not enough arguments "name"')])
        self.assertEqual(self.calls, [])

    def testUnregisteredCommand(self):
        statuses = self.commander.run(["frobnicate"])
        self.assertEqual(statuses, [CommandStatus("frobnicate", Status.ERROR, "not a command")])

    def testDispatchOrder(self):
        self.commander.run(["a", "x", "b", "y"])
        self.assertEqual(self.calls, [("a", "x"), ("b", "y")])

    def testFailureDoesNotStopLaterCommands(self):
        statuses = self.commander.run(["greet", "name", "a", "b"])
        self.assertEqual([status.status for status in statuses], [Status.ERROR, Status.OK, Status.OK])
        self.assertEqual(self.calls, [("a", ""), ("b", "")])

    def testHandlerExceptionBecomesErrorStatus(self):
        statuses = self.commander.run(["fail", "a"])
        self.assertEqual(statuses[0], CommandStatus("fail", Status.ERROR, "boom"))
        self.assertTrue(statuses[1].ok)

    def testHaltingHandler(self):
        recorder = Recorder(halt_after=1)
        self.commander.set_handler(recorder)
        statuses = self.commander.run(["a", "b"])
        self.assertEqual(len(statuses), 1)
        self.assertEqual(self.calls, [("a", "")])

    def testHandlerReturningNoneContinues(self):
        self.commander.set_handler(lambda status: None)
        self.assertEqual(len(self.commander.run(["a", "b"])), 2)

    def testStringPromptIsSplit(self):
        self.commander.run('greet name "Ada Lovelace"')
        self.assertEqual(self.calls, [("greet", {"name": "Ada Lovelace"})])

    def testInitThenRun(self):
        self.commander.init(["a", "b"])
        self.assertEqual(self.commander.tokens, ["a", "b"])
        self.assertEqual(len(self.commander.run()), 2)

    def testRunWithTokensStoresThem(self):
        self.commander.init(["a"])
        self.commander.run(["b"])
        self.assertEqual(self.commander.tokens, ["b"])
        self.commander.run()
        self.assertEqual(self.calls, [("b", ""), ("b", "")])

    def testHandlerWithHandleMethod(self):
        class Halting:
            def __init__(self):
                self.statuses = []

            def handle(self, status):
                self.statuses.append(status)
                return 1

        handler = Halting()
        self.commander.set_handler(handler)
        statuses = self.commander.run(["a", "b"])
        self.assertEqual(statuses, [CommandStatus("a")])
        self.assertEqual(handler.statuses, statuses)
        self.assertIs(self.commander.handler, handler)

    def testParserIsDetached(self):
        parser = self.commander.parser
        self.assertTrue(parser.has("greet"))
        parser.remove("a")
        parser.append(CommandConfig("frobnicate"))
        statuses = self.commander.run(["frobnicate", "a"])
        self.assertEqual(statuses, [
            CommandStatus("frobnicate", Status.ERROR, "not a command"),
            CommandStatus("a"),
        ])
        self.assertTrue(self.commander.parser.has("a"))
        self.assertFalse(self.commander.parser.has("frobnicate"))

    def testConstructorTokens(self):
        commander = Commander(["frobnicate"])
        self.assertEqual(commander.run(), [CommandStatus("frobnicate", Status.ERROR, "not a command")])

    def testEmptyRun(self):
        self.assertEqual(self.commander.run([]), [])

    def testRemoveCommand(self):
        self.commander.remove_command("a").remove_command("missing")
        self.assertFalse(self.commander.has_command("a"))
        self.assertFalse(self.commander.parser.has("a"))
        statuses = self.commander.run(["a"])
        self.assertEqual(statuses, [CommandStatus("a", Status.ERROR, "not a command")])

    def testCommandLookup(self):
        self.assertEqual(self.commander.command("greet").name, "greet")
        with self.assertRaises(NotFoundError):
            self.commander.command("missing")

    def testCommandsView(self):
        commands = self.commander.commands
        commands.clear()
        self.assertEqual(set(self.commander.commands), {"greet", "a", "b", "fail"})

    def testInvokeCommand(self):
        status = self.commander.invoke_command("greet", ["name", "Ada"])
        self.assertTrue(status.ok)
        self.assertEqual(self.calls, [("greet", {"name": "Ada"})])
        with self.assertRaises(NotFoundError):
            self.commander.invoke_command("missing")

    def testFallbackCommand(self):
        seen = []

        @caller("unknown")
        def fallback(args):
            seen.append(args.get_str_vec("unknown"))

        self.commander.append_command(fallback)
        statuses = self.commander.run(["zzz", "yyy"])
        self.assertEqual(statuses, [CommandStatus("unknown")])
        self.assertEqual(seen, [["zzz", "yyy"]])

    def testStrictCommander(self):
        commander = Commander(handler=self.recorder, strict=True)
        commander.append_command(CommandCaller(lambda args: None, CommandConfig("greet", [Option("name", 1)])))
        statuses = commander.run(["greet", "name", "Ada", "extra"])
        self.assertEqual(statuses, [CommandStatus("greet", Status.ERROR, 'unexpected value "extra"')])

    def testInvalidRegistration(self):
        with self.assertRaises(TypeError):
            self.commander.append_command(CommandConfig("greet"))
        with self.assertRaises(TypeError):
            self.commander.set_handler(1)


class TestStatusHandlers(TestCase):
    """StatusHandler and ConsoleStatusHandler."""

    def testBaseHandlerContinues(self):
        handler = StatusHandler()
        self.assertEqual(handler.handle(CommandStatus("greet", Status.ERROR, "boom")), 0)
        self.assertEqual(handler(CommandStatus("greet")), 0)

    def testConsoleHandlerPrintsFailures(self):
        handler = ConsoleStatusHandler()
        with console.capture() as capture:
            self.assertEqual(handler.handle(CommandStatus("frobnicate", Status.ERROR, "not a command")), 0)
            handler.handle(CommandStatus("greet"))
        output = capture.get()
        self.assertIn("frobnicate", output)
        self.assertNotIn("greet", output)
        self.assertEqual(handler.failures, 1)

    def testConsoleHandlerVerbose(self):
        handler = ConsoleStatusHandler(verbose=True)
        with console.capture() as capture:
            handler.handle(CommandStatus("greet"))
        self.assertIn("greet", capture.get())

    def testConsoleHandlerHalts(self):
        handler = ConsoleStatusHandler(halt=True)
        with console.capture():
            self.assertEqual(handler.handle(CommandStatus("greet", Status.ERROR, "boom")), 1)
            self.assertEqual(handler.handle(CommandStatus("greet")), 0)

    def testCommanderWithConsoleHandler(self):
        commander = Commander(handler=ConsoleStatusHandler(halt=True))
        commander.append_command(CommandCaller(lambda args: None, CommandConfig("a")))
        with console.capture():
            statuses = commander.run(["zzz", "a"])
        self.assertEqual(len(statuses), 1)
        self.assertEqual(commander.handler.failures, 1)


if __name__ == "__main__":
    unittest.main()

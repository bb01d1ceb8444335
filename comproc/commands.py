"""
Comproc command layer: bind handlers to schemas and dispatch parsed commands.

What this module provides
- Status / CommandStatus: the outcome of one command invocation, a name, an
  OK/ERROR code and a human-readable message.
- StatusHandler: continuation policy fed with every status; a non-zero return
  stops the dispatch loop. ConsoleStatusHandler prints statuses on the stderr
  console.
- CommandCaller: a schema plus the handler that runs when the command occurs.
  Built from a plain callable or from an instance and one of its methods.
- caller(...): decorator building a CommandCaller from a function.
- Commander: registry of callers sharing one CommandParser; run() tokenizes,
  parses and invokes every command in input order.

Recovery
- Accessors, the parser and callers raise. Commander is the only place where
  faults are caught: each one becomes an ERROR status for the failing command
  and the loop moves on to the next command unless the handler says stop.

Quick start
    from comproc import Commander, CommandConfig, Option, caller

    @caller(CommandConfig("greet", [Option("name", 1)]))
    def greet(args):
        print("hello", args.get_string("name"))

    commander = Commander(handler=ConsoleStatusHandler())
    commander.append_command(greet)
    commander.run("greet name Ada")
"""
import functools
import shlex
from collections import namedtuple
from collections.abc import Iterable
from enum import IntEnum

from rich.text import Text

from .faults import FaultCode, CommandException, console, render, notfound
from .options import UNKNOWN, CommandConfig
from .parser import CommandArgs, CommandParser, Segment
from .utils import Unset, SchemaType, rename

NOT_A_COMMAND = "not a command"
"""Message of the status reported for a token that names no registered command."""


class Status(IntEnum):
    ERROR = 0
    OK = 1


class CommandStatus(namedtuple("CommandStatus", ("name", "status", "msg"), defaults=(Status.OK, ""))):
    """
    Outcome of one command invocation.

    Fields
    - name: the command name (for an unregistered command, its first token).
    - status: Status.OK or Status.ERROR.
    - msg: free text; empty on success by convention, the fault message on error.
    """
    __slots__ = ()

    def __new__(cls, name, status=Status.OK, msg=""):
        if not isinstance(name, str):
            raise TypeError("command-status 'name' must be a string")
        if not isinstance(msg, str):
            raise TypeError("command-status 'msg' must be a string")
        return super().__new__(cls, name, Status(status), msg)

    @property
    def ok(self):
        return self.status is Status.OK

    def __rich__(self):
        return _render_status(self)


def _render_status(status, /, *, colorful=False, fancy=False):
    """
    Build the rich renderable of a status: one line when OK, a fault block otherwise.
    """
    if status.ok:
        return Text.assemble(
            "[ ",
            Text(status.name, "bold" if colorful else ""),
            " ] ",
            Text(status.msg or "ok", "green" if colorful else ""),
        )
    if status.msg == NOT_A_COMMAND:
        return render(
            "not a command",
            '"%s" is not a registered command' % status.name,
            "check the spelling or register it with append_command()",
            code=FaultCode.NOT_A_COMMAND,
            colorful=colorful,
            fancy=fancy,
        )
    return render(
        "%s failed" % (status.name or UNKNOWN),
        status.msg or "something went wrong",
        code=FaultCode.DELEGATED_ERROR,
        colorful=colorful,
        fancy=fancy,
    )


class StatusHandler(metaclass=SchemaType):
    """
    Continuation policy of a Commander.

    handle(status) is called once per dispatched command, in order; returning 0
    continues with the next command, anything else stops the run. The base
    class accepts every status silently.
    """

    def handle(self, status, /):
        return 0

    def __call__(self, status, /):
        return self.handle(status)


class ConsoleStatusHandler(StatusHandler):
    """
    Print statuses on the stderr console.

    Options
    - fancy: wrap failures into a panel.
    - colorful: style the output (see __styles__ in faults.render).
    - verbose: also print successful statuses.
    - halt: stop the run at the first failure.

    failures counts the ERROR statuses seen so far, handy for exit codes.
    """

    __introspectable__ = (
        "fancy",
        "colorful",
        "verbose",
        "halt",
        "failures",
    )

    def __init__(self, *, fancy=False, colorful=False, verbose=False, halt=False):
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._verbose = bool(verbose)
        self._halt = bool(halt)
        self._failures = 0

    def handle(self, status, /):
        if not status.ok:
            self._failures += 1
        if not status.ok or self._verbose:
            console.print(_render_status(status, colorful=self._colorful, fancy=self._fancy))
        return int(self._halt and not status.ok)


class CommandCaller(metaclass=SchemaType):
    """
    A command schema bound to the handler that runs it.

    Construction
    - CommandCaller(callback, config): callback(args) is called with the parsed
      CommandArgs.
    - CommandCaller(instance, method, config): 'method' is a function taking
      (self, args) or the name of a method of 'instance'.

    Handler contract
    - return a CommandStatus, or None for a plain success.
    - exceptions propagate out of invoke(); a Commander turns them into ERROR
      statuses.
    """

    __introspectable__ = (
        "callback",
        "config",
    )
    __displayable__ = (
        "name",
        "config",
    )

    def __init__(self, *parameters):
        match parameters:
            case (callback, CommandConfig() as config):
                if not callable(callback):
                    raise TypeError(f"{type(self).__typename__} 'callback' must be callable")
            case (instance, str() as method, CommandConfig() as config):
                callback = getattr(instance, method, None)
                if not callable(callback):
                    raise TypeError(f"{type(self).__typename__} {type(instance).__name__!r} has no method {method!r}")
            case (instance, method, CommandConfig() as config):
                if not callable(method):
                    raise TypeError(f"{type(self).__typename__} 'method' must be callable or a method name")
                callback = functools.partial(method, instance)
            case _:
                raise TypeError(
                    f"{type(self).__typename__} takes (callback, config) or (instance, method, config)"
                )
        self._callback = callback
        self._config = config

    @property
    def name(self):
        return self._config.name

    def invoke(self, arguments, /, *, strict=False):
        """
        Run the handler.

        'arguments' is either a parsed CommandArgs, forwarded as is, or the raw
        tokens that followed the command name, parsed here against this
        caller's schema alone.
        """
        if not isinstance(arguments, CommandArgs):
            parser = CommandParser(configs=[self._config], strict=strict)
            arguments = parser.parse_segment(Segment(self._config.name, arguments))

        status = self._callback(arguments)
        if status is None:
            return CommandStatus(self._config.name)
        if not isinstance(status, CommandStatus):
            raise TypeError(
                f"{type(self).__typename__} handler of {self._config.name!r} must return a command-status or None"
            )
        return status

    __call__ = invoke


def caller(config, /, *options):
    """
    Build a decorator turning a function into a CommandCaller.

    Forms
    - @caller(CommandConfig("greet", [...]))
    - @caller("greet", Option("name", 1), ...): shorthand building the config.
    """
    if isinstance(config, str):
        config = CommandConfig(config, options)
    elif not isinstance(config, CommandConfig):
        raise TypeError("caller() first argument must be a command-config or a command name")
    elif options:
        raise TypeError("caller() takes options only together with a command name")

    @rename("caller")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@caller() must be applied to a callable")
        return CommandCaller(callback, config)

    return wrapper


def _tokenize(prompt, /):
    """
    Normalize a prompt into a list of tokens.

    - str: shell-like string, split with shlex.split.
    - Iterable[str]: items trimmed, empty ones dropped.
    """
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if not isinstance(prompt, Iterable):
        raise TypeError("tokens must be a string or an iterable of strings")
    tokens = []
    for item in prompt:
        if not isinstance(item, str):
            raise TypeError("tokens must be a string or an iterable of strings")
        if item := item.strip():
            tokens.append(item)
    return tokens


def _failure(name, exception, /):
    if isinstance(exception, CommandException):
        return CommandStatus(name, Status.ERROR, exception.message)
    return CommandStatus(name, Status.ERROR, str(exception))


class Commander(metaclass=SchemaType):
    """
    Registry of command callers and the loop that dispatches them.

    Lifecycle
    - register callers with append_command(); their schemas go to the shared
      parser, so a name is a command for tokenization exactly when it has a
      caller.
    - set the tokens (constructor or init()) and run(), or run(tokens) directly.

    run() semantics
    - commands are dispatched strictly left to right, each exactly once;
    - a parse or handler failure is reported as an ERROR status for that command
      only, the remaining commands still run;
    - a token run that starts with an unregistered name yields
      CommandStatus(<token>, ERROR, "not a command");
    - every status is handed to the handler, a non-zero answer stops the loop.
    """

    __introspectable__ = (
        "commands",
        "strict",
    )
    __displayable__ = (
        "commands",
        "strict",
    )

    def __init__(self, tokens=Unset, /, handler=Unset, *, strict=False):
        self._parser = CommandParser(strict=strict)
        self._commands = {}
        self._handler = StatusHandler()
        self._strict = bool(strict)
        if tokens is not Unset:
            self.init(tokens)
        if handler is not Unset:
            self.set_handler(handler)

    @property
    def tokens(self):
        return self._parser.tokens

    @property
    def handler(self):
        return self._handler

    @property
    def parser(self):
        """
        Detached snapshot of the tokenizer state (tokens, schemas, strictness).

        Schemas are registered through append_command() only, so the names the
        parser recognizes always match the registered callers.
        """
        return CommandParser(self._parser.tokens, configs=self._parser.configs.values(), strict=self._strict)

    def init(self, tokens, /):
        self._parser.init(_tokenize(tokens))
        return self

    def set_handler(self, handler, /):
        """
        Install the continuation policy: a StatusHandler, any object with a
        handle(status) method, or a plain callable taking the status.
        """
        if not callable(getattr(handler, "handle", handler)):
            raise TypeError(f"{type(self).__typename__} handler must be a status-handler or a callable")
        self._handler = handler
        return self

    def append_command(self, caller, /):
        if not isinstance(caller, CommandCaller):
            raise TypeError(f"{type(self).__typename__} append_command() argument must be a command-caller")
        self._commands[caller.name] = caller
        self._parser.append(caller.config)
        return self

    def remove_command(self, name, /):
        self._commands.pop(name, None)
        self._parser.remove(name)
        return self

    def has_command(self, name, /):
        return name in self._commands

    def command(self, name, /):
        try:
            return self._commands[name]
        except KeyError:
            raise notfound(name, hint="register it with append_command()") from None

    def invoke_command(self, name, tokens=(), /):
        """
        Invoke one registered command with the tokens that follow its name.

        Faults propagate; no handler is involved.
        """
        return self.command(name).invoke(_tokenize(tokens), strict=self._strict)

    def _dispatch(self, segment, outcome, /):
        if isinstance(outcome, Exception):
            return _failure(segment.command, outcome)
        if segment.command not in self._commands:
            name = segment.tokens[0] if segment.command == UNKNOWN and segment.tokens else segment.command
            return CommandStatus(name, Status.ERROR, NOT_A_COMMAND)
        try:
            return self._commands[segment.command].invoke(outcome)
        except Exception as exception:
            return _failure(segment.command, exception)

    def run(self, tokens=Unset, /):
        """
        Parse and dispatch every command; return the statuses handed to the handler.

        'tokens' defaults to the sequence set with init(). When given, they
        replace that sequence first, so a later run() repeats them. A string is
        split shell-like.
        """
        if tokens is not Unset:
            self.init(tokens)
        segments = self._parser.scan()

        # parse everything first so a malformed command cannot hide the ones after it
        plan = []
        for segment in segments:
            try:
                plan.append((segment, self._parser.parse_segment(segment)))
            except Exception as exception:
                plan.append((segment, exception))

        statuses = []
        for segment, outcome in plan:
            statuses.append(status := self._dispatch(segment, outcome))
            if getattr(self._handler, "handle", self._handler)(status):
                break

        return statuses


__all__ = (
    "NOT_A_COMMAND",
    "Status",
    "CommandStatus",
    "StatusHandler",
    "ConsoleStatusHandler",
    "CommandCaller",
    "caller",
    "Commander",
)

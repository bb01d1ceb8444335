"""
Comproc parser layer: split a flat token stream into per-command argument tables.

What this module provides
- CommandArgs: the parsed result of one command, a command name plus a table
  option-name -> value string (several values joined by exactly one space).
- Segment: one command name plus the run of tokens that belongs to it.
- CommandParser: owns a registry of CommandConfig and a raw token sequence, and
  turns the sequence into an ordered list of CommandArgs.

Tokenization
- scan(): a registered command name opens a segment; every following token up to
  the next registered name belongs to it. A run that starts with an unregistered
  token becomes an UNKNOWN segment that keeps that token.
- parse_segment(): walks one segment against the command's schema (or the
  implicit catch-all schema for UNKNOWN, under which every token is a value):
  • a declared option name opens a group, the following tokens are its values;
  • tokens before any option belong to the option named after the command when
    the schema declares one, otherwise to the UNKNOWN entry;
  • a non-variadic option stops absorbing once it holds arg_size values. The
    surplus falls into the UNKNOWN entry, or raises UnexpectedValueError when
    the parser is strict;
  • a group with fewer values than its arity fails with NotEnoughValuesError.
- parse(): scan + parse_segment over the whole sequence, fail-fast.

Tokens are taken as given: no quoting, escaping or "--" convention is
interpreted here. Command names, option names and values are told apart only by
membership in the registry and in the active schema.

Quick start
    >>> parser = CommandParser(configs=[CommandConfig("greet", [Option("name", 1)])])
    >>> parser.parse(["greet", "name", "Ada"])[0].get_string("name")
    'Ada'
"""
import re
from collections import namedtuple
from collections.abc import Iterable, Mapping

from .faults import NotEnoughValuesError, UnexpectedValueError, ParseError, OutOfRangeError, notfound
from .options import UNKNOWN, Option, CommandConfig, catchall
from .utils import Unset, SchemaType

UINT_MAX = 0xFFFFFFFF


def _sanitize_tokens(tokens, /):
    """
    Materialize a token sequence into a tuple of strings.

    A bare string is rejected: iterating it would yield characters, not tokens.
    Splitting a command line into tokens is the embedder's job (see Commander.run).
    """
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("tokens must be an iterable of strings")
    tokens = tuple(tokens)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("tokens must be an iterable of strings")
    return tokens


class CommandArgs(metaclass=SchemaType):
    """
    Parsed arguments of one command.

    Table
    - keys are option names of the command's schema, or UNKNOWN.
    - values are strings; several values of one option are joined by a single
      space and come back as a list through get_str_vec().

    Accessors
    - get_string(name) / get_uint(name) fail with NotFoundError when the key is
      absent; with a default they return it instead.
    - get_uint() fails with ParseError on text that is not an unsigned 32-bit
      integer, default or not.
    - get_str_vec(name) returns [] for an absent key unless throw=True.

    Value semantics: copies (copy.copy, copy.deepcopy, copy.replace) never share
    their table with the instance they were made from.
    """

    __introspectable__ = (
        "command",
        "arg_table",
    )

    def __init__(self, command="", /, arg_table=()):
        if not isinstance(command, str):
            raise TypeError(f"{type(self).__typename__} 'command' must be a string")
        self._command = command
        self._arg_table = {}
        for key, value in (arg_table.items() if isinstance(arg_table, Mapping) else arg_table):
            self.insert(key, value)

    def insert(self, key, value, /):
        """
        Store 'value' under 'key', replacing any previous value.

        'value' is a string, or an iterable of strings joined by one space.
        """
        if not isinstance(key, str):
            raise TypeError(f"{type(self).__typename__} keys must be strings")
        if not isinstance(value, str):
            if not isinstance(value, Iterable):
                raise TypeError(f"{type(self).__typename__} values must be strings or iterables of strings")
            value = list(value)
            if not all(isinstance(item, str) for item in value):
                raise TypeError(f"{type(self).__typename__} values must be strings or iterables of strings")
            value = " ".join(value)
        self._arg_table[key] = value
        return self

    def extend(self, key, values, /):
        """
        Append 'values' to whatever 'key' already holds (one space between items).
        """
        self._arg_table[key] = " ".join(filter(None, (self._arg_table.get(key, ""), " ".join(values))))
        return self

    def remove(self, key, /):
        self._arg_table.pop(key, None)
        return self

    def has(self, name, /):
        return name in self._arg_table

    def _lookup(self, name, default):
        try:
            return self._arg_table[name]
        except KeyError:
            if default is not Unset:
                return default
            raise notfound(name, command=self._command) from None

    def get_string(self, name, /, default=Unset):
        return self._lookup(name, default)

    def get_uint(self, name, /, default=Unset):
        """
        Read 'name' as an unsigned 32-bit integer.

        Only an absent key falls back to 'default'; a present but malformed
        value always raises ParseError.
        """
        if name not in self._arg_table and default is not Unset:
            return default
        value = self._lookup(name, default)
        if not re.fullmatch(r"[0-9]+", value):
            raise ParseError(
                'value "%s" of "%s" is not an unsigned integer' % (value, name),
                key=name,
                value=value,
                hint="pass a non-negative whole number (for example: %s 42)" % name,
            )
        if (number := int(value)) > UINT_MAX:
            raise ParseError(
                'value "%s" of "%s" is out of the unsigned integer range' % (value, name),
                key=name,
                value=value,
                hint="pass a number no greater than %d" % UINT_MAX,
            )
        return number

    def get_str_vec(self, name, /, throw=False):
        """
        Split the value of 'name' back into the ordered list of its tokens.
        """
        if name not in self._arg_table:
            if throw:
                raise notfound(name, command=self._command)
            return []
        if not (value := self._arg_table[name]):
            return []
        return value.split(" ")

    def __contains__(self, name):
        return name in self._arg_table

    def __iter__(self):
        return iter(self._arg_table)

    def __len__(self):
        return len(self._arg_table)

    def __eq__(self, other):
        if not isinstance(other, CommandArgs):
            return NotImplemented
        return self._command == other._command and self._arg_table == other._arg_table

    __hash__ = None

    def __copy__(self):
        return type(self)(self._command, self._arg_table)

    def __deepcopy__(self, memo, /):
        return self.__copy__()

    def __replace__(self, /, **changes):
        return type(self)(changes.pop("command", self._command), changes.pop("arg_table", self._arg_table), **changes)


Segment = namedtuple("Segment", ("command", "tokens"))
Segment.__doc__ = """one command name plus the tokens that belong to it (the name excluded)."""


class CommandParser(metaclass=SchemaType):
    """
    Schema-driven tokenizer.

    State
    - tokens: the raw token sequence (set at construction or with init()).
    - configs: registry of CommandConfig keyed by command name.
    - results: the CommandArgs produced by the last parse().
    - strict: raise UnexpectedValueError on surplus values instead of moving
      them to the UNKNOWN entry.

    Registry
    - append(config) registers under config.name; last write wins.
    - remove(name) forgets a config; unknown names are a no-op. Already parsed
      CommandArgs are never affected.
    """

    __introspectable__ = (
        "tokens",
        "configs",
        "results",
        "strict",
    )
    __displayable__ = (
        "configs",
        "strict",
    )

    def __init__(self, tokens=(), /, configs=(), *, strict=False):
        self._tokens = _sanitize_tokens(tokens)
        self._configs = {}
        self._results = []
        self._strict = bool(strict)
        for config in configs:
            self.append(config)

    def init(self, tokens, /):
        self._tokens = _sanitize_tokens(tokens)
        return self

    def append(self, config, /):
        if not isinstance(config, CommandConfig):
            raise TypeError(f"{type(self).__typename__} append() argument must be a command-config")
        self._configs[config.name] = config
        return self

    def remove(self, name, /):
        self._configs.pop(name, None)
        return self

    def has(self, name, /):
        return name in self._configs

    def config(self, name, /):
        try:
            return self._configs[name]
        except KeyError:
            raise notfound(name, hint="register it with append(CommandConfig(%r))" % name) from None

    def scan(self, tokens=Unset, /):
        """
        Split the tokens into segments, one per command occurrence, in order.
        """
        tokens = self._tokens if tokens is Unset else _sanitize_tokens(tokens)
        segments = []
        index = 0

        while index < len(tokens):
            registered = tokens[index] in self._configs
            command = tokens[index] if registered else UNKNOWN
            # an UNKNOWN run keeps its first token
            start = index + registered
            index += 1
            while index < len(tokens) and tokens[index] not in self._configs:
                index += 1
            segments.append(Segment(command, tokens[start:index]))

        return segments

    def parse_segment(self, segment, /):
        """
        Build the CommandArgs of one segment, validating option arity.
        """
        command, tokens = segment
        tokens = _sanitize_tokens(tokens)
        if command in self._configs:
            config = self._configs[command]
            names = config.options
        elif command == UNKNOWN:
            # the catch-all schema opens no groups: every token is a value, "unknown" included
            config = catchall()
            names = {}
        else:
            raise notfound(command, hint="register it with append(CommandConfig(%r))" % command)

        args = CommandArgs(command)
        spill = Option(UNKNOWN, 0, variadic=True)
        leading = True
        index = 0

        while index < len(tokens):
            if tokens[index] in names:
                key = tokens[index]
                option = config.option(key)
                index += 1
            elif leading and config.has(config.name):
                key = config.name
                option = config.option(key)
            else:
                key, option = UNKNOWN, spill
            leading = False

            values = []
            while index < len(tokens) and tokens[index] not in names:
                if option.bounded and len(values) >= option.arg_size:
                    if self._strict:
                        raise UnexpectedValueError(
                            'unexpected value "%s"' % tokens[index],
                            command=command,
                            option=key,
                            token=tokens[index],
                            hint="%r takes %d value(s); remove the extra ones" % (key, option.arg_size),
                        )
                    break
                values.append(tokens[index])
                index += 1

            if not option.accepts(len(values)):
                raise NotEnoughValuesError(
                    'not enough arguments "%s"' % key,
                    command=command,
                    option=key,
                    expected=option.arg_size,
                    got=len(values),
                    hint="%r takes %s%d value(s) but got %d" % (
                        key, "at least " * option.variadic, option.arg_size, len(values)
                    ),
                )

            args.extend(key, values)

        return args

    def parse(self, tokens=Unset, /):
        """
        Parse the whole token sequence; arity faults propagate uncaught.
        """
        if tokens is not Unset:
            self.init(tokens)
        self._results = [self.parse_segment(segment) for segment in self.scan()]
        return list(self._results)

    def command(self, index, /):
        """
        Return the CommandArgs parsed at position 'index'.

        Raises OutOfRangeError when no command was parsed at that position.
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"{type(self).__typename__} indices must be integers")
        try:
            return self._results[index]
        except IndexError:
            raise OutOfRangeError(
                "no parsed command at position %d (%d parsed)" % (index, len(self._results)),
                index=index,
                hint="run parse() first or pick an index below %d" % len(self._results),
            ) from None

    __getitem__ = command

    def __len__(self):
        return len(self._results)

    def __iter__(self):
        return iter(list(self._results))


__all__ = (
    "CommandArgs",
    "Segment",
    "CommandParser",
)

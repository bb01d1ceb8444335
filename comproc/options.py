r"""
Comproc option schemas.

Overview
- Option: one named slot of a command with its arity contract
  (exactly arg_size values, or at least arg_size values when variadic).
- CommandConfig: the schema of one command, a name plus its options keyed by
  option name.
- UNKNOWN / catchall(): the reserved catch-all identifier and the implicit
  schema used for tokens that match no registered command.

Arity
- variadic=False: the option consumes exactly arg_size values. A group with
  fewer values fails with NotEnoughValuesError; surplus values are never
  absorbed by it.
- variadic=True: arg_size is a floor. The option absorbs every following value
  up to the next option name, and fails only with fewer than arg_size values.
- arg_size=0 and variadic=False declares a flag: present or absent, no value.

Construction only checks shapes (types and the sign of arg_size); whether the
declared arity is met is decided by the parser.

Quick start
    >>> greet = CommandConfig("greet").append(Option("name", 1)).append(Option("loud"))
    >>> greet.option("name").arg_size
    1
"""
from .faults import notfound
from .utils import Unset, SchemaType

UNKNOWN = "unknown"
"""Reserved name of the catch-all command and option."""


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    return name


def _sanitize_arg_size(cls, arg_size, /):
    if isinstance(arg_size, bool) or not isinstance(arg_size, int):
        raise TypeError(f"{cls.__typename__} 'arg_size' must be an integer")
    elif arg_size < 0:
        raise ValueError(f"{cls.__typename__} 'arg_size' must be a non-negative integer")
    return arg_size


class Option(metaclass=SchemaType):
    """
    Named, arity-constrained slot of a command schema.

    Properties
    - name: identifier, unique within its owning CommandConfig.
    - arg_size: number of values (exact, or minimum when variadic).
    - variadic: whether arg_size is a floor rather than an exact count.

    The three properties are read-only; the builder-style setters
    set_name/set_arg_size/set_variadic mutate in place and return the option,
    so declarations chain:

        Option("files").set_arg_size(1).set_variadic(True)
    """

    __introspectable__ = (
        "name",
        "arg_size",
        "variadic",
    )

    def __init__(self, name="", /, arg_size=0, *, variadic=False):
        self._name = _sanitize_name(type(self), name)
        self._arg_size = _sanitize_arg_size(type(self), arg_size)
        self._variadic = bool(variadic)

    def set_name(self, name, /):
        self._name = _sanitize_name(type(self), name)
        return self

    def set_arg_size(self, arg_size, /):
        self._arg_size = _sanitize_arg_size(type(self), arg_size)
        return self

    def set_variadic(self, variadic, /):
        self._variadic = bool(variadic)
        return self

    @property
    def bounded(self):
        """
        True when the option stops absorbing values at arg_size.
        """
        return not self._variadic

    def accepts(self, count, /):
        """
        Tell whether a group holding 'count' values satisfies the arity.
        """
        return count >= self._arg_size if self._variadic else count == self._arg_size

    def __eq__(self, other):
        if not isinstance(other, Option):
            return NotImplemented
        return (self._name, self._arg_size, self._variadic) == (other._name, other._arg_size, other._variadic)

    __hash__ = None


class CommandConfig(metaclass=SchemaType):
    """
    Schema of one command: its name and the options it accepts.

    Lookups
    - has(name) never fails.
    - option(name) fails with NotFoundError for an undeclared name; check has()
      first or be prepared to handle the fault.

    Registration
    - append(option) stores the option under its own name; appending another
      option with the same name replaces the previous one (last write wins).

    The command name may coincide with one of its option names. When it does,
    tokens that follow the command name before any option name are values of
    that option; otherwise they land in the catch-all UNKNOWN entry.
    """

    __introspectable__ = (
        "name",
        "options",
    )

    def __init__(self, name="", /, options=()):
        self._name = _sanitize_name(type(self), name)
        self._options = {}
        for option in options:
            self.append(option)

    def append(self, option, /):
        if not isinstance(option, Option):
            raise TypeError(f"{type(self).__typename__} append() argument must be an option")
        self._options[option.name] = option
        return self

    def remove(self, name, /):
        self._options.pop(name, None)
        return self

    def has(self, name, /):
        return name in self._options

    def option(self, name, /, default=Unset):
        """
        Return the option declared under 'name'.

        Raises NotFoundError when the name is not declared and no default is given.
        """
        try:
            return self._options[name]
        except KeyError:
            if default is not Unset:
                return default
            raise notfound(name, config=self._name, hint="declare it with append(Option(%r, ...))" % name) from None

    def __contains__(self, name):
        return name in self._options

    def __iter__(self):
        return iter(self._options)

    def __len__(self):
        return len(self._options)

    def __eq__(self, other):
        if not isinstance(other, CommandConfig):
            return NotImplemented
        return self._name == other._name and self._options == other._options

    __hash__ = None


def catchall():
    """
    Build the implicit schema used for unregistered commands.

    It is named UNKNOWN and declares one variadic UNKNOWN option with a floor of
    zero, so it absorbs every token it is handed.
    """
    return CommandConfig(UNKNOWN, (Option(UNKNOWN, 0, variadic=True),))


__all__ = (
    "UNKNOWN",
    "Option",
    "CommandConfig",
    "catchall",
)

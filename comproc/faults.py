"""
Comproc faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every failure the core
  can report. Codes are grouped by domain to keep copy consistent and make
  logs/searches predictable.
- CommandException: base type that carries a message + options and knows how to
  render itself in a friendly, lowercased and actionable way.
- ArityError family, NotFoundError, ParseError, OutOfRangeError: the taxonomy
  raised by schemas, parsed arguments, the parser and the callers.
- render(): shared rich renderer used by exceptions and by status handlers.

UX goals
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- Accessors and the parser raise these faults synchronously.
- Commander is the recovery boundary: it turns any fault into an ERROR status,
  and ConsoleStatusHandler prints it through the stderr console below.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the dispatcher (stable identifiers).

    grouping (by high-level domain)
    - lookups (2110x)
      • NOT_FOUND
    - arity (2111x)
      • NOT_ENOUGH_VALUES, UNEXPECTED_VALUE
    - conversions (2112x)
      • PARSE_FAILURE
    - positions (2113x)
      • OUT_OF_RANGE
    - dispatch (2114x/2115x)
      • NOT_A_COMMAND, DELEGATED_ERROR

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- lookup errors (21xxx) ---
    NOT_FOUND                   = 21101

    # --- arity errors (21xxx) ---
    NOT_ENOUGH_VALUES           = 21111
    UNEXPECTED_VALUE            = 21112

    # --- conversion errors (21xxx) ---
    PARSE_FAILURE               = 21121

    # --- position errors (21xxx) ---
    OUT_OF_RANGE                = 21131

    # --- dispatch errors (21xxx) ---
    NOT_A_COMMAND               = 21141
    DELEGATED_ERROR             = 21151

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def render(title, message, hint="", /, *, code, colorful=False, fancy=False, ratio=Unset):
    """
    build a rich renderable for one fault or failed status.

    layout
    - header: "[ <prog> — <code> | <Title> ]"
    - body: the message, then an arrowed hint when one is given.
    - fancy wraps everything into a panel titled with the header.

    host hooks (read from __main__)
    - __prog__: program label (defaults to "comproc").
    - __styles__: style overrides merged over the defaults below.
    - __codes__: code relabelling, see FaultCode.normalize().
    """
    main = __import__("__main__")

    styles = defaultdict(str, {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title

        # body
        "error-message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    } | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", "comproc"), styler("prog-name")),
        " — ",
        text(code.normalize(), styler("code")),
        " | ",
        text(title.title(), styler("error-title")),
        " ]"
    )
    body = [text(message, styler("error-message"))]
    if hint:
        body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if fancy:
        width = None
        if ratio is not Unset:
            width = int((console.width - 4) * ratio)
        return Panel(Group(*body), title=header, title_align="left", width=width)

    return Group(header, *body)


class CommandException(Exception):
    """
    base of every fault raised by the core.

    contract
    - message: one lowercased sentence, also the str() of the exception and the
      msg carried by the ERROR status a Commander synthesizes from it.
    - options: read-only mapping with the rendering context (code, title, hint)
      and fault-specific details (key, option, token, value, index, ...).
    - copy.replace(fault, **overrides) returns a new fault with merged options.
    """
    __code__ = FaultCode.DELEGATED_ERROR
    __title__ = "command error"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__code__,
            "title": type(self).__title__,
        } | options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __rich__(self):
        return render(
            self.options["title"],
            self.message,
            self.options.get("hint", ""),
            code=self.options["code"],
            colorful=self.options.get("colorful", False),
            fancy=self.options.get("fancy", False),
            ratio=self.options.get("ratio", Unset),
        )

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NotFoundError(CommandException, KeyError):
    """a name lookup failed (option, config, argument or registered command)."""
    __code__ = FaultCode.NOT_FOUND
    __title__ = "not found"

    def __str__(self):
        # KeyError quotes its argument; keep the plain message instead.
        return self.message


class ArityError(CommandException):
    """the declared value count of an option is not satisfied."""
    __code__ = FaultCode.NOT_ENOUGH_VALUES
    __title__ = "arity mismatch"


class NotEnoughValuesError(ArityError):
    __code__ = FaultCode.NOT_ENOUGH_VALUES
    __title__ = "not enough values"


class UnexpectedValueError(ArityError):
    __code__ = FaultCode.UNEXPECTED_VALUE
    __title__ = "unexpected value"


class ParseError(CommandException, ValueError):
    """a stored value could not be converted to the requested type."""
    __code__ = FaultCode.PARSE_FAILURE
    __title__ = "unparsable value"


class OutOfRangeError(CommandException, IndexError):
    """a positional lookup into the parsed commands is out of bounds."""
    __code__ = FaultCode.OUT_OF_RANGE
    __title__ = "out of range"


def notfound(key, /, **options):
    """
    build the canonical NotFoundError for a missing key.
    """
    return NotFoundError('key "%s" not found' % key, key=key, **options)


__all__ = (
    "FaultCode",
    "CommandException",
    "NotFoundError",
    "ArityError",
    "NotEnoughValuesError",
    "UnexpectedValueError",
    "ParseError",
    "OutOfRangeError",
    "console",
    "render",
)

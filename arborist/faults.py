"""
Arborist faults (the closed error taxonomy) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every kind of failure the
  command tree can surface. The set is closed: callers and the engine itself
  classify failures by kind (see kindof()), never by message text.
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased, and actionable way.
- One concrete exception per kind (help, flag syntax, invalid arguments, no
  action, unparsed tree, work failure).

Kinds and their usage-rendering policy
- help requested       → usage is rendered where it was requested.
- flag syntax          → the flag binder renders usage, the engine adds nothing.
- invalid arguments    → usage is rendered at the rejecting command.
- no executable action → no usage (there is nothing useful to describe).
- unparsed tree        → caller-contract violation, no usage.
- work failure         → anything raised by a work function; propagated as-is.

Integration
- The engine raises these and never prints them.
- In shell mode, invoke() renders them via rich (__rich__) and exits with
  FaultCode.status.
"""
import copy
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - 1110x: help requested
    - 1111x: flag syntax (malformed, unknown, missing value, invalid value)
    - 1112x: invalid positional arguments (validator rejections)
    - 1113x: configuration (terminal command without a work function)
    - 1114x: caller contract (run without a parsed route)
    - 1115x: work failures (anything raised by a work function)

    spacing leaves room for future additions without reshuffling existing codes.
    """
    HELP_REQUESTED       = 11101
    FLAG_SYNTAX          = 11111
    INVALID_ARGUMENTS    = 11121
    NO_EXECUTABLE_ACTION = 11131
    UNPARSED_TREE        = 11141
    WORK_FAILURE         = 11151

    @property
    def status(self):
        """
        process exit status conventionally associated with this kind.

        - help → 0 (the user asked for it)
        - flag syntax / invalid arguments → 2 (usage errors)
        - anything else → 1
        """
        if self is FaultCode.HELP_REQUESTED:
            return 0
        if self in (FaultCode.FLAG_SYNTAX, FaultCode.INVALID_ARGUMENTS):
            return 2
        return 1

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base of every fault raised by the command tree.

    attributes
    - message: lowercased, one-sentence description.
    - options: read-only mapping with the context of the fault. common keys:
      • command: the Command where the fault happened.
      • hint: a single actionable suggestion.
      • title: overrides the class title in rendered headers.
      • colorful/fancy: rendering switches (set by invoke()).
    """
    code = Unset
    title = "command failure"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, self.title)
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        if not isinstance(cls.code, FaultCode):
            raise TypeError(f"fault {cls.__name__!r} must declare a fault code")

    @property
    def command(self):
        return self.options.get("command")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {})

        colorful = self.options.get("colorful", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), styles.get(style, "") if colorful else "")

        command = self.command
        prog = getattr(main, "__prog__", getattr(getattr(command, "root", None), "name", "arborist"))

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(self.code.normalize(), "code"),
            " | ",
            text(self.options.get("title", self.title), "error-title"),
            " ]"
        )
        renders = [text(self.message, "error-message")]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class HelpRequested(CommandException):
    """
    raised when a help flag is seen (or by a work function asking for usage).
    """
    code = FaultCode.HELP_REQUESTED
    title = "help requested"


class FlagSyntaxError(CommandException):
    """
    base of the flag-token failures reported by the flag binder.
    """
    code = FaultCode.FLAG_SYNTAX
    title = "bad flag"

    @property
    def token(self):
        return self.options.get("token")


class MalformedFlagError(FlagSyntaxError):
    title = "malformed flag"


class UnknownFlagError(FlagSyntaxError):
    title = "unknown flag"


class MissingFlagValueError(FlagSyntaxError):
    title = "missing flag value"


class InvalidFlagValueError(FlagSyntaxError):
    title = "invalid flag value"


class InvalidArgumentsError(CommandException):
    """
    raised when a command validator rejects the positional arguments.

    the validator's own reason is kept in options["reason"].
    """
    code = FaultCode.INVALID_ARGUMENTS
    title = "invalid arguments"

    @property
    def reason(self):
        return self.options.get("reason")


class NoExecutableActionError(CommandException):
    """
    raised when the selected terminal command does not define a work function.
    """
    code = FaultCode.NO_EXECUTABLE_ACTION
    title = "no executable action"


class UnparsedTreeError(CommandException):
    code = FaultCode.UNPARSED_TREE
    title = "unparsed command tree"


class WorkFailure(CommandException):
    """
    presentation wrapper for an arbitrary exception raised by a work function.

    the engine never raises this itself (work failures propagate untouched);
    invoke() builds one in shell mode so the failure renders like any other fault.
    """
    code = FaultCode.WORK_FAILURE
    title = "work failure"

    @property
    def error(self):
        return self.options.get("error")


def kindof(exception, /):
    """
    classify any exception into the closed set of fault kinds.

    - CommandException subclasses report their own code.
    - any other exception is an opaque work failure.
    """
    if isinstance(exception, CommandException):
        return exception.code
    if isinstance(exception, BaseException):
        return FaultCode.WORK_FAILURE
    raise TypeError("kindof() argument must be an exception")


def present(exception, /, **options):
    """
    return a renderable fault for any exception, merging rendering options.

    foreign exceptions are wrapped into WorkFailure (message is the exception text,
    or its type name when empty) so they share the fault layout.
    """
    if not isinstance(exception, CommandException):
        exception = WorkFailure(str(exception) or type(exception).__name__, error=exception)
    return copy.replace(exception, **options)


__all__ = (
    "FaultCode",
    "CommandException",
    "HelpRequested",
    "FlagSyntaxError",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingFlagValueError",
    "InvalidFlagValueError",
    "InvalidArgumentsError",
    "NoExecutableActionError",
    "UnparsedTreeError",
    "WorkFailure",
    "kindof",
    "present",
)

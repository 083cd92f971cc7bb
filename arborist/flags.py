r"""
Arborist flag binder: named flags bound from a token list.

What this module provides
- Flag: one flag definition (name, converter, default, description) plus its
  bound value. Whether a flag is boolean is an explicit, declared capability
  (Flag.boolean), never guessed from the converter or the value.
- FlagSet: an ordered registry of flags for one command, with definers
  (string/boolean/integer/floating/define) and parse(tokens) which binds flag
  values and returns the positional remainder.

Grammar (one token at a time, left to right)
- a token shorter than two characters, or not starting with '-', stops parsing:
  it and every token after it are returned as positionals.
- '--' is consumed and stops parsing (everything after it is positional, even
  tokens that look like flags or subcommand names).
- '-name' and '--name' are equivalent; either may carry an inline '=value'.
- boolean flags never consume the next token: '-v' sets True, '-v=false' sets
  False (accepted spellings: 1 t T TRUE true True / 0 f F FALSE false False).
- other flags take their inline value or, failing that, the next token
  (whatever it looks like).

Faults
- MalformedFlagError      '---x', '-=x', '--=x'
- UnknownFlagError        a name that is not defined (except h/help)
- HelpRequested           '-h' / '-help' / '--help' when no such flag is defined
- MissingFlagValueError   a value flag at the end of the tokens
- InvalidFlagValueError   the converter raised ValueError/TypeError
Before raising any of them the set calls its usage hook, so help and syntax
errors always come with the flag listing.

Quick example
    >>> flags = FlagSet("serve")
    >>> port = flags.integer("port", 8080, "port to listen on")
    >>> flags.parse(["-port=9090", "-", "x"])
    ['-', 'x']
    >>> flags["port"]
    9090
"""
import re

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .faults import *
from .utils import *

console = Console(stderr=True)

_TRUTHS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def truth(value, /):
    """
    convert a boolean literal (see module docs) into a bool; ValueError otherwise.
    """
    if isinstance(value, bool):
        return value
    if value in _TRUTHS:
        return True
    if value in _FALSES:
        return False
    raise ValueError(f"invalid boolean literal {value!r}")


def integer(value, /):
    """
    convert an integer literal, honoring 0x/0o/0b prefixes and '_' separators.
    """
    return int(value, 0)


class Flag(metaclass=IntrospectiveType):
    """
    A single named flag and its bound value.

    Properties (read-only)
    - name: the flag name without dashes (e.g. "port").
    - type: converter applied to raw string values.
    - default: value before any binding.
    - descr: short description for usage output (None when not given).
    - boolean: True when the flag is a presence switch (no value token).

    Mutable state
    - value: the current value; starts as default and is replaced by set().
    """
    __introspectable__ = (
        "name",
        "type",
        "default",
        "descr",
        "boolean",
    )

    def __init__(self, name, /, type=str, default=Unset, descr=Unset, *, boolean=False):
        if not isinstance(name, str):
            raise TypeError(f"{self.__typename__} 'name' must be a string")
        elif not re.fullmatch(r"[^\W\d_]\w*(-\w+)*", name := name.strip()):
            raise ValueError(f"{self.__typename__} 'name' must be a shell-style name without leading dashes (got {name!r})")

        if not callable(type):
            raise TypeError(f"{self.__typename__} 'type' must be callable")

        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{self.__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{self.__typename__} 'descr' cannot be empty")

        self._name = name
        self._boolean = bool(boolean)
        # boolean flags always convert through truth()
        self._type = truth if self._boolean else type
        self._default = coalesce(default, False if self._boolean else None)
        self._descr = coalesce(descr)
        self.value = self._default

    @property
    def synopsis(self):
        """
        how the flag is spelled in usage output.

        - boolean flags: '-name' (no '=value' form is advertised).
        - other flags: '-name <default>', with '...' standing for an empty default.
        """
        if self.boolean:
            return f"-{self.name}"
        default = "..." if self.default is None or self.default == "" else str(self.default)
        return f"-{self.name} {default}"

    def set(self, raw, /):
        """
        convert `raw` and store it as the current value.

        converters signal bad input with ValueError or TypeError; both propagate.
        """
        self.value = self.type(raw)
        return self.value

    def reset(self):
        """
        restore the default as the current value.
        """
        self.value = self.default


class FlagSet(metaclass=IntrospectiveType):
    """
    The flags of one command.

    Lifecycle
    - define flags up front (string/boolean/integer/floating/define).
    - parse(tokens) binds values in place and returns the positional remainder.
    - read values back with flags["name"] (or keep the Flag returned by the definer).

    Usage hook
    - `usage` is a zero-argument callable invoked right before a help request or
      a syntax fault is raised. Commands point it at their own help(); when unset
      the set prints a plain flag listing to `output`.

    Parse state
    - `terminated` tells whether the last parse() stopped at an explicit '--'
      (the remainder is then positional no matter what it looks like).
    """
    __introspectable__ = (
        "name",
    )

    def __init__(self, name, /, *, output=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{self.__typename__} 'name' must be a string")
        if not isinstance(output, Console | Unset):
            raise TypeError(f"{self.__typename__} 'output' must be a rich console")
        self._name = name
        self._flags = {}
        self._output = output
        self.usage = Unset
        self.terminated = False

    @property
    def output(self):
        return coalesce(self._output, console)

    def define(self, name, /, type=str, default=Unset, descr=Unset, *, boolean=False):
        """
        register a new flag and return it; names must be unique within the set.
        """
        flag = Flag(name, type, default, descr, boolean=boolean)
        if flag.name in self._flags:
            raise ValueError(f"{self.__typename__} {self.name!r} flag {flag.name!r} is already defined")
        self._flags[flag.name] = flag
        return flag

    def string(self, name, /, default="", descr=Unset):
        return self.define(name, str, default, descr)

    def boolean(self, name, /, default=False, descr=Unset):
        return self.define(name, truth, default, descr, boolean=True)

    def integer(self, name, /, default=0, descr=Unset):
        return self.define(name, integer, default, descr)

    def floating(self, name, /, default=0.0, descr=Unset):
        return self.define(name, float, default, descr)

    def lookup(self, name, /):
        """
        return the Flag named `name` (no dashes) or None.
        """
        return self._flags.get(name)

    def __getitem__(self, name, /):
        return self._flags[name].value

    def __contains__(self, name, /):
        return name in self._flags

    def __len__(self):
        return len(self._flags)

    def __iter__(self):
        # sorted by name, not by definition order
        return iter(sorted(self._flags.values(), key=lambda flag: flag.name))

    def reset(self):
        """
        restore every flag to its default and clear the parse state.
        """
        for flag in self._flags.values():
            flag.reset()
        self.terminated = False

    def _fail(self, fault):
        if self.usage:
            self.usage()
        else:
            self.output.print(self._listing())
        raise fault

    def _listing(self):
        listing = Table.grid(padding=(0, 2))
        for flag in self:
            listing.add_row(Text("  " + flag.synopsis), Text(str(coalesce(flag.descr, ""))))
        return Group(Text(f"usage of {self.name}:"), listing)

    def parse(self, tokens, /):
        """
        bind every leading flag token and return the remaining positionals.

        parameters
        - tokens: iterable of str (each item is one argv-style token).

        returns
        - list[str]: the tokens left after the flags (and after '--' if present).

        raises
        - HelpRequested, MalformedFlagError, UnknownFlagError,
          MissingFlagValueError, InvalidFlagValueError (see module docs).
        """
        tokens = list(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError(f"{self.__typename__} tokens must be strings")

        self.terminated = False
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if len(token) < 2 or token[0] != "-":
                break

            index += 1
            if token == "--":
                self.terminated = True
                break

            dashes = 2 if token[1] == "-" else 1
            name = token[dashes:]
            if not name or name[0] in "-=":
                self._fail(MalformedFlagError(
                    "bad flag syntax: %s" % token,
                    token=token,
                    hint="flags are spelled -name, -name=value or -name value",
                ))

            name, separator, value = name.partition("=")
            inline = bool(separator)

            if (flag := self._flags.get(name)) is None:
                if name in ("h", "help"):
                    self._fail(HelpRequested(
                        "help requested",
                        token=token,
                    ))
                self._fail(UnknownFlagError(
                    "flag provided but not defined: -%s" % name,
                    token=token,
                    flag=name,
                    hint="use -h to list the flags this command accepts",
                ))

            if flag.boolean and not inline:
                flag.set(True)
                continue

            if not inline:
                if index >= len(tokens):
                    self._fail(MissingFlagValueError(
                        "flag needs an argument: -%s" % name,
                        token=token,
                        flag=name,
                        hint="pass a value with -%s=<value> or -%s <value>" % (name, name),
                    ))
                value = tokens[index]
                index += 1

            try:
                flag.set(value)
            except (ValueError, TypeError) as error:
                self._fail(InvalidFlagValueError(
                    "invalid value %r for flag -%s: %s" % (value, name, error),
                    token=token,
                    flag=name,
                    value=value,
                    hint="check the expected type of -%s with -h" % name,
                ))

        return tokens[index:]


__all__ = (
    "Flag",
    "FlagSet",
    "truth",
    "integer",
)

"""
Arborist command layer: build a command tree, resolve argv against it, run it.

What this module provides
- Command: one node of the tree. It owns an identity (usage line, aliases,
  help texts), its children, its flags (a FlagSet), an optional validator for
  its positional arguments and an optional work function.
- Route: the immutable result of parsing, i.e. the chain of commands from the
  parsed node down to the selected terminal plus the positionals for its work.
- Factories and helpers:
  • command(usage, ...): decorator turning a work function into a Command.
  • invoke(command, prompt): convenience runner (argv, shell string or tokens).

Lifecycle
    root = Command("app [flags] <command>", descr="an example tool")

    @root.command("greet [flags] <name>", validator=exactargs(1), descr="say hello")
    def greet(context, args):
        print("hello", args[0])

    route = root.parse(["greet", "world"])   # resolve (flags are bound here)
    root.run(route)                          # invoke greet's work function

Resolution (parse), per command
1. bind this command's flags: they are the tokens after the command name and
   before the next subcommand name ('--' stops flag parsing at this level only).
2. if the first positional names a child (name or alias, case-insensitive),
   continue in that child with the rest of the positionals.
3. otherwise this command is the terminal: it must have a work function, and its
   validator (if any) must accept the positionals.

Execution (run)
- walks the route and invokes exactly one work function: work(context, args).
- a work function may raise HelpRequested or InvalidArgumentsError to have its
  usage printed; anything else it raises propagates untouched.

Faults
- Every failure reaches the caller as an exception from arborist.faults. Usage is
  rendered at most once per invocation, at the command that failed.
"""
import inspect
import shlex
import sys
from collections import namedtuple
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .faults import *
from .flags import FlagSet
from .usage import render
from .utils import *

console = Console(stderr=True)


class Route(namedtuple("Route", ("path", "args"))):
    """
    The selection produced by Command.parse().

    Fields
    - path: tuple of commands; path[0] is the command parse() was called on, each
      next element is the child selected under the previous one, and path[-1] is
      the terminal whose work function will run.
    - args: tuple of positional arguments for the terminal's work function.

    Routes never point back into the tree's state, so the same tree can be parsed
    any number of times and every route stays valid on its own.
    """
    __slots__ = ()

    def __new__(cls, path, args=()):
        path = tuple(path)
        if not path:
            raise ValueError("route path cannot be empty")
        if not all(isinstance(step, Command) for step in path):
            raise TypeError("route path must contain commands")
        return super().__new__(cls, path, tuple(args))

    @property
    def head(self):
        return self.path[0]

    @property
    def terminal(self):
        return self.path[-1]

    def descend(self):
        """
        return the same route without its head (the part below the head command).
        """
        if len(self.path) < 2:
            raise ValueError("cannot descend past the terminal command")
        return type(self)(self.path[1:], self.args)

    def __str__(self):
        return " ".join(step.name for step in self.path)


def _sanitize_text(cls, name, value, /):
    # help texts: str | Text | Unset; strings are trimmed and must not end up empty
    if not isinstance(value, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} must be a string")
    elif isinstance(value, str) and not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
    return coalesce(value)


def _sanitize_hook(cls, name, value, /):
    if value is not Unset and not callable(value):
        raise TypeError(f"{cls.__typename__} {name!r} must be callable")
    return coalesce(value)


def _resolve_output(cls, output, /):
    """
    accept a rich console or any text stream (wrapped into a console).
    """
    if isinstance(output, Console | Unset):
        return output
    if callable(getattr(output, "write", None)):
        return Console(file=output)
    raise TypeError(f"{cls.__typename__} 'output' must be a rich console or a text stream")


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique names.

    Behavior
    - Names and aliases are compared case-insensitively, exactly like routing does,
      so two siblings can never both claim the same token.
    - On conflict raises ValueError naming the clashing token.
    """
    if parent is Unset:
        return

    claimed = {name.casefold() for name in self.names}
    for sibling in parent._children:
        if clashes := claimed & {name.casefold() for name in sibling.names}:
            typeof = "subcommand" if parent.parent else "command"
            raise ValueError(
                f"{type(self).__typename__} {typeof} name {sorted(clashes)[0]!r} is already in use by {sibling.name!r}"
            )
    parent._children.append(self)


class Command(metaclass=IntrospectiveType):
    """
    A node of the command tree: a namespace for children, an action, or both.

    Identity
    - usage: one-line usage message; its first word is the command name.
      Recommended syntax: "cmd [flags] subcmd [flags] <required> [<optional> ...]".
    - aliases: alternate names accepted instead of the name (case-insensitive).
    - descr: short help, shown next to the name in the parent's usage.
    - details: long help, shown in this command's usage (falls back to descr).

    Behavior
    - flags: FlagSet for this command; created empty on first use so that -h
      always works.
    - validator: callable(args) -> str | None over the positional arguments
      (see arborist.validators). A returned reason becomes InvalidArgumentsError
      and the usage of this command is printed.
    - work: callable(context, args) doing the actual work. Commands without work
      are pure namespaces; selecting one as terminal is NoExecutableActionError.
    - renderer: callable(command) -> str | rich renderable producing usage text
      (defaults to arborist.usage.render).

    Presentation (inherited from the parent when Unset)
    - output: rich console (or text stream) usage is printed to; stderr by default.
    - shell: when True, invoke() prints faults and exits instead of raising.
    - colorful / fancy: styling switches for usage and fault rendering.
    """

    __introspectable__ = (
        "usage",
        "aliases",
        "descr",
        "details",
        "validator",
        "work",
        "renderer",
        "parent",
        "children",
        "shell",
        "colorful",
        "fancy",
    )

    # no parent: parent → children → parent would recurse
    __displayable__ = (
        "name",
        "aliases",
        "descr",
        "children",
    )

    def __init__(
            self,
            usage,
            /,
            parent=Unset,
            *,
            aliases=(),
            descr=Unset,
            details=Unset,
            flags=Unset,
            validator=Unset,
            work=Unset,
            renderer=Unset,
            output=Unset,
            shell=Unset,
            colorful=Unset,
            fancy=Unset
    ):
        cls = type(self)

        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        if not isinstance(usage, str):
            raise TypeError(f"{cls.__typename__} 'usage' must be a string")
        elif not (usage := usage.strip()):
            raise ValueError(f"{cls.__typename__} 'usage' cannot be empty")

        if isinstance(aliases, str) or not isinstance(aliases, Iterable):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        sanitized = []
        for alias in aliases:
            if not isinstance(alias, str):
                raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
            elif not (alias := alias.strip()) or len(alias.split()) > 1:
                raise ValueError(f"{cls.__typename__} aliases must be single non-empty words")
            sanitized.append(alias)

        if not isinstance(flags, FlagSet | Unset):
            raise TypeError(f"{cls.__typename__} 'flags' must be a flag set")

        self._usage = usage
        self._aliases = sanitized
        self._descr = _sanitize_text(cls, "descr", descr)
        self._details = _sanitize_text(cls, "details", details)
        self._flags = flags
        self._validator = _sanitize_hook(cls, "validator", validator)
        self._work = _sanitize_hook(cls, "work", work)
        self._renderer = _sanitize_hook(cls, "renderer", renderer)
        self._output = _resolve_output(cls, output)
        self._parent = coalesce(parent)
        self._children = []
        # runtime flags inherit from the parent when Unset
        self._shell = bool(coalesce(shell, getattr(self._parent, "shell", False)))
        self._colorful = bool(coalesce(colorful, getattr(self._parent, "colorful", False)))
        self._fancy = bool(coalesce(fancy, getattr(self._parent, "fancy", False)))

        _attach_to_parent(self, parent)

    @property
    def name(self):
        """
        Name of the command: the first word of its usage line.
        """
        return self.usage.split(maxsplit=1)[0]

    @property
    def names(self):
        """
        Every token that selects this command: its name followed by its aliases.
        """
        return (self.name, *self.aliases)

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def output(self):
        if self._output is not Unset:
            return self._output
        if self.parent:
            return self.parent.output
        return console

    @property
    def flags(self):
        """
        The FlagSet of this command, created empty (named after the command) on first access.
        """
        if self._flags is Unset:
            self._flags = FlagSet(self.name)
        return self._flags

    def selectedby(self, token, /):
        """
        Tell whether `token` names this command (name or alias, case-insensitive).
        """
        token = token.casefold()
        return any(token == name.casefold() for name in self.names)

    def help(self):
        """
        Render the usage of this command to its output console.

        Plain strings returned by a custom renderer are printed verbatim (no rich
        markup or highlighting), so brackets in usage lines survive untouched.
        """
        renderable = (self.renderer or render)(self)
        if isinstance(renderable, str):
            self.output.print(renderable, markup=False, highlight=False)
        else:
            self.output.print(renderable)

    def command(self, usage, /, **options):
        """
        Decorator creating a child command whose work function is the decorated callable.

        Thin wrapper around command(usage, self, **options).
        """
        return command(usage, self, **options)

    def parse(self, args, /):
        """
        Resolve `args` against this command and its descendants.

        Parameters
        - args: iterable of str, the argument vector without the program name.

        Returns
        - Route from this command to the selected terminal, carrying the
          positional arguments for the terminal's work function.

        Raises
        - HelpRequested / FlagSyntaxError: straight from the flag binder (which
          already printed the usage of the command being parsed).
        - NoExecutableActionError: the terminal has no work function.
        - InvalidArgumentsError: the terminal's validator rejected the
          positionals (its usage is printed first).

        Notes
        - Flag values are bound as a side effect, level by level.
        - Every flag of this command and its descendants is reset to its default
          first, so a parse never sees values bound by an earlier one.
        - The tree itself is not modified; parsing again is always allowed.
        """
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")
        args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError("parse() argument must be an iterable of strings")

        for node in self._walk():
            if node._flags is not Unset:
                node._flags.reset()

        return self._resolve(args)

    def _walk(self):
        yield self
        for child in self._children:
            yield from child._walk()

    def _resolve(self, args):
        flags = self.flags
        flags.usage = self.help
        remainder = flags.parse(args)

        # after an explicit '--' the remainder belongs to this command, subcommand names included
        if remainder and not flags.terminated:
            for child in self._children:
                if child.selectedby(remainder[0]):
                    route = child._resolve(remainder[1:])
                    return Route((self, *route.path), route.args)

        if self.work is None:
            raise self._noaction()

        if self.validator is not None and (reason := self.validator(remainder)) is not None:
            self.help()
            raise InvalidArgumentsError(
                "invalid arguments: %s" % reason,
                command=self,
                reason=str(reason),
                hint="run '%s -h' to see the expected usage" % " ".join(step.name for step in self.path),
            )

        return Route((self,), remainder)

    def run(self, route=Unset, /, context=None):
        """
        Invoke the work function selected by a previous parse().

        Parameters
        - route: the Route returned by parse() on this very command.
        - context: any caller-supplied value (e.g. a cancellation event), handed
          to the work function unchanged and never inspected here.

        Returns
        - whatever the terminal's work function returns.

        Raises
        - UnparsedTreeError: no route, or a route that does not start here.
        - NoExecutableActionError: the terminal has no work function.
        - anything raised by the work function, unchanged. HelpRequested and
          InvalidArgumentsError print the terminal's usage before propagating.
        """
        if not isinstance(route, Route) or route.head is not self:
            raise UnparsedTreeError(
                "command tree is unparsed, can't run",
                command=self,
                hint="call parse() first and hand its route to run()",
            )

        if len(route.path) > 1:
            return route.path[1].run(route.descend(), context)

        if self.work is None:
            raise self._noaction()

        try:
            return self.work(context, list(route.args))
        except (HelpRequested, InvalidArgumentsError):
            self.help()
            raise

    def parse_and_run(self, args, /, context=None):
        """
        parse() then run() in one call; the first failure wins.
        """
        return self.run(self.parse(args), context)

    def __invoke__(self, prompt=Unset, /, context=None):
        """
        Execute this command with a token stream.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; will be split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Behavior
        - Outside shell mode every failure is raised to the caller.
        - In shell mode faults are printed to the output console and the process
          exits with FaultCode.status (help → 0, usage errors → 2, others → 1);
          help itself is not printed twice since usage was already rendered.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        try:
            return self.parse_and_run(tokens, context)
        except Exception as error:
            if not self.shell:
                raise
            code = kindof(error)
            if code is not FaultCode.HELP_REQUESTED:
                where = getattr(error, "command", None) if isinstance(error, CommandException) else None
                self.output.print(present(
                    error,
                    command=where or self,
                    colorful=self.colorful,
                    fancy=self.fancy,
                ))
            sys.exit(code.status)

    def _noaction(self):
        route = " ".join(step.name for step in self.path)
        return NoExecutableActionError(
            "terminal command (%s) does not define a work function" % self.name,
            command=self,
            hint=(
                "run '%s -h' to see the available subcommands" % route
                if self._children else
                "give '%s' a work function or subcommands" % route
            ),
        )


def command(usage, /, parent=Unset, **options):
    """
    Return a decorator that wraps a work function into a Command.

    Usage
        @command("tool [flags] <file>", validator=exactargs(1))
        def tool(context, args): ...

    Parameters
    - usage: usage line of the new command (first word is its name).
    - parent: Command to attach the new command under (Unset for a root).
    - **options: forwarded to Command (aliases, descr, details, flags,
      validator, renderer, output, shell, colorful, fancy).

    Notes
    - When descr is not given, the first line of the function's docstring is used.
    """
    if "work" in options:
        raise TypeError("@command() receives the work function by decoration")

    @rename("command")
    def wrapper(work, /):
        if not callable(work):
            raise TypeError("@command() must be applied to a callable")
        defaults = {}
        if doc := inspect.getdoc(work):
            defaults["descr"] = doc.splitlines()[0]
        return Command(usage, parent, work=work, **(defaults | options))

    return wrapper


def invoke(object, prompt=Unset, /, context=None):
    """
    Convenience runner for commands.

    Parameters
    - object: an instance providing __invoke__ (a Command).
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of str.
    - context: forwarded to the work function.

    Raises
    - TypeError: when 'object' does not implement __invoke__.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt, context)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "Route",
    "command",
    "invoke",
)

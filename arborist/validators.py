"""
Arborist argument validators (the positional-argument pipeline).

A validator is a pure callable over the positional arguments left after flag
binding:

    validator(args) -> str | None

- None means the arguments are acceptable.
- a string is the human-readable reason they are not; the command wraps it into
  InvalidArgumentsError and renders its usage.

Validators only inspect the length of the list and the membership of its items,
so they never raise for any list of strings. Constructor arguments, on the other
hand, are checked eagerly (a bad bound is a programming error).

Provided
- noargs                 → rejects any argument.
- minargs(n) / maxargs(n) / exactargs(n) / rangeargs(min, max)
                         → count bounds (inclusive).
- validargs(allowed)     → every argument must belong to `allowed`;
                           an empty `allowed` yields a validator that accepts anything.
- combine(*validators)   → runs validators in order, first failure wins.

Quick example
    >>> check = combine(minargs(1), validargs(["start", "stop"]))
    >>> check(["start"]) is None
    True
    >>> check([])
    'requires at least 1 arg(s), received 0'
"""
from .utils import rename


def _count(name, value, /):
    # bool is an int subclass, not a count
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name}() count must be an integer")
    if value < 0:
        raise ValueError(f"{name}() count cannot be negative")
    return value


def noargs(args, /):
    """
    reject any positional argument.
    """
    if len(args) > 0:
        return "was expecting to receive no arguments, received %d" % len(args)
    return None


def minargs(n, /):
    """
    build a validator requiring at least `n` arguments.
    """
    n = _count("minargs", n)

    @rename(f"minargs({n})")
    def validator(args, /):
        if len(args) < n:
            return "requires at least %d arg(s), received %d" % (n, len(args))
        return None

    return validator


def maxargs(n, /):
    """
    build a validator accepting at most `n` arguments.
    """
    n = _count("maxargs", n)

    @rename(f"maxargs({n})")
    def validator(args, /):
        if len(args) > n:
            return "requires at most %d arg(s), received %d" % (n, len(args))
        return None

    return validator


def exactargs(n, /):
    """
    build a validator requiring exactly `n` arguments.
    """
    n = _count("exactargs", n)

    @rename(f"exactargs({n})")
    def validator(args, /):
        if len(args) != n:
            return "requires exactly %d arg(s), received %d" % (n, len(args))
        return None

    return validator


def rangeargs(min, max, /):
    """
    build a validator requiring between `min` and `max` arguments (both inclusive).
    """
    min = _count("rangeargs", min)
    max = _count("rangeargs", max)
    if min > max:
        raise ValueError("rangeargs() lower bound cannot exceed the upper bound")

    @rename(f"rangeargs({min}, {max})")
    def validator(args, /):
        if not min <= len(args) <= max:
            return "requires between %d and %d arg(s), received %d" % (min, max, len(args))
        return None

    return validator


def validargs(allowed, /):
    """
    build a validator accepting only arguments contained in `allowed`.

    notes
    - matching is exact (case-sensitive).
    - with an empty `allowed` the validator accepts every list; this is the
      degenerate "no restriction" case, not a validator that rejects everything.
    """
    if isinstance(allowed, str):
        raise TypeError("validargs() argument must be an iterable of strings, not a string")
    allowed = tuple(dict.fromkeys(allowed))
    if not all(isinstance(item, str) for item in allowed):
        raise TypeError("validargs() argument must be an iterable of strings")

    if not allowed:
        @rename("validargs()")
        def validator(args, /):
            return None

        return validator

    valid = frozenset(allowed)

    @rename(f"validargs({", ".join(map(repr, allowed))})")
    def validator(args, /):
        for arg in args:
            if arg not in valid:
                return "received %r, valid arguments are %s" % (arg, ", ".join(map(repr, allowed)))
        return None

    return validator


def combine(*validators):
    """
    merge several validators into one that runs them in declaration order.

    the first failure is returned as-is and later validators are not consulted.
    """
    for validator in validators:
        if not callable(validator):
            raise TypeError("combine() arguments must be callable validators")

    @rename(f"combine({", ".join(getattr(v, "__name__", repr(v)) for v in validators)})")
    def validator(args, /):
        for each in validators:
            if (reason := each(args)) is not None:
                return reason
        return None

    return validator


__all__ = (
    "noargs",
    "minargs",
    "maxargs",
    "exactargs",
    "rangeargs",
    "validargs",
    "combine",
)

"""Comparator classes used for argument matching."""

from __future__ import annotations

import re
import typing as t

from .members import KeywordArg


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        ...


class Literal:
    """Match values equal to ``expected``."""

    __slots__ = ("expected",)

    def __init__(self, expected: object) -> None:
        self.expected = expected

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* equals the captured value."""
        if value is self.expected:
            return True
        try:
            return bool(value == self.expected)
        except Exception:  # noqa: BLE001 - exotic __eq__ implementations
            return False

    def __eq__(self, other: object) -> bool:
        """Compare captured values."""
        return isinstance(other, Literal) and Literal(self.expected)(other.expected)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return the repr of the captured value."""
        return repr(self.expected)


class Any:
    """Match any value; ``typ`` only documents the expected type."""

    __slots__ = ("typ",)

    def __init__(self, typ: type = object) -> None:
        self.typ = typ

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __eq__(self, other: object) -> bool:
        """Two ``Any`` matchers are equal when they declare the same type."""
        return isinstance(other, Any) and other.typ is self.typ

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        if self.typ is object:
            return "Any()"
        return f"Any({self.typ.__name__})"


class IsA:
    """Match instances of ``typ``."""

    __slots__ = ("typ",)

    def __init__(self, typ: type | tuple[type, ...]) -> None:
        self.typ = typ

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``value`` is an instance of ``typ``."""
        return isinstance(value, self.typ)

    def __eq__(self, other: object) -> bool:
        """Compare the checked types."""
        return isinstance(other, IsA) and other.typ == self.typ

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        if isinstance(self.typ, tuple):
            names = ", ".join(typ.__name__ for typ in self.typ)
            return f"IsA(({names}))"
        return f"IsA({self.typ.__name__})"


class Regex:
    """Match if *value* is a string matching ``pattern``."""

    __slots__ = ("_pattern",)

    def __init__(self, pattern: str) -> None:
        self._pattern = re.compile(pattern)

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches *value*."""
        return isinstance(value, str) and bool(self._pattern.search(value))

    def __eq__(self, other: object) -> bool:
        """Compare compiled patterns."""
        return isinstance(other, Regex) and other._pattern == self._pattern

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Regex({self._pattern.pattern!r})"


class Contains:
    """Match if ``item`` is found in *value*."""

    __slots__ = ("item",)

    def __init__(self, item: object) -> None:
        self.item = item

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``item`` is in *value*."""
        try:
            return self.item in value  # type: ignore[operator]
        except TypeError:
            return False

    def __eq__(self, other: object) -> bool:
        """Compare the searched items."""
        return isinstance(other, Contains) and other.item == self.item

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Contains({self.item!r})"


class StartsWith:
    """Match if *value* is a string beginning with ``prefix``."""

    __slots__ = ("prefix",)

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* starts with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)

    def __eq__(self, other: object) -> bool:
        """Compare prefixes."""
        return isinstance(other, StartsWith) and other.prefix == self.prefix

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"StartsWith({self.prefix!r})"


class Predicate:
    """Use a custom ``func`` to determine a match.

    ``func`` is evaluated once per candidate call and must be free of side
    effects.
    """

    __slots__ = ("func",)

    def __init__(self, func: t.Callable[[t.Any], object]) -> None:
        self.func = func

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))

    def __eq__(self, other: object) -> bool:
        """Predicates are equal only when they wrap the same function."""
        return isinstance(other, Predicate) and other.func is self.func

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debug representation."""
        name = getattr(self.func, "__qualname__", None) or repr(self.func)
        return f"Predicate({name})"


class Keyword:
    """Match one ``**kwargs`` entry by name, then its value with ``matcher``."""

    __slots__ = ("matcher", "name")

    def __init__(self, name: str, matcher: Comparator) -> None:
        self.name = name
        self.matcher = matcher

    def __call__(self, value: object) -> bool:
        """Return ``True`` for a same-named entry whose value matches."""
        return (
            isinstance(value, KeywordArg)
            and value.name == self.name
            and bool(self.matcher(value.value))
        )

    def __eq__(self, other: object) -> bool:
        """Compare names and wrapped matchers."""
        return (
            isinstance(other, Keyword)
            and other.name == self.name
            and other.matcher == self.matcher
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return ``name=matcher``."""
        return f"{self.name}={self.matcher!r}"


_MATCHER_TYPES: tuple[type, ...] = (
    Literal,
    Any,
    IsA,
    Regex,
    Contains,
    StartsWith,
    Predicate,
    Keyword,
)


def is_matcher(value: object) -> bool:
    """Return ``True`` when *value* is one of the comparator classes."""
    return isinstance(value, _MATCHER_TYPES)


def as_matcher(value: object) -> Comparator:
    """Wrap plain values in :class:`Literal`; keep comparators unchanged.

    ``**kwargs`` entries become :class:`Keyword` matchers around their value.
    """
    if is_matcher(value):
        return t.cast("Comparator", value)
    if isinstance(value, KeywordArg):
        return Keyword(value.name, as_matcher(value.value))
    return Literal(value)


__all__ = [
    "Any",
    "Comparator",
    "Contains",
    "IsA",
    "Keyword",
    "Literal",
    "Predicate",
    "Regex",
    "StartsWith",
    "as_matcher",
    "is_matcher",
]

"""Records of calls observed on a substitute."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from .members import Access, Member, MemberInfo

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Expectation

_REPR_ARG_LIMIT: t.Final[int] = 80


def shorten(text: str, limit: int = _REPR_ARG_LIMIT) -> str:
    """Truncate *text* to *limit* characters."""
    if len(text) <= limit:
        return text
    return f"{text[: limit - 1]}…"


def format_args(values: t.Sequence[object]) -> str:
    """Render call arguments as a comma separated list."""
    return ", ".join(shorten(repr(value)) for value in values)


def format_access(member: Member, values: t.Sequence[object]) -> str:
    """Render a member access such as ``add(1, 2)`` or ``total = 5``."""
    if member.access is Access.CALL:
        return f"{member.name}({format_args(values)})"
    if member.access is Access.GET:
        if values:
            return f"{member.name}[{format_args(values)}]"
        return member.name
    operator = {Access.SET: "=", Access.ADD: "+=", Access.REMOVE: "-="}[member.access]
    return f"{member.name} {operator} {format_args(values)}"


@dc.dataclass(slots=True)
class Call:
    """A call forwarded by a substitute before it is dispatched.

    ``base`` runs the real implementation when one exists.
    """

    info: MemberInfo
    access: Access
    args: tuple[object, ...]
    base: t.Callable[[], object] | None = None

    @property
    def member(self) -> Member:
        """Return the identity of the touched accessor."""
        return Member(self.info.name, self.access)


@dc.dataclass(frozen=True, slots=True)
class Invocation:
    """Immutable record of one call made against a substitute."""

    member: Member
    args: tuple[object, ...]
    index: int
    expectation: Expectation | None = dc.field(default=None, compare=False)

    @property
    def matched(self) -> bool:
        """Return ``True`` when an expectation handled the call."""
        return self.expectation is not None

    def describe(self) -> str:
        """Return a readable representation of the call."""
        return format_access(self.member, self.args)

    def __repr__(self) -> str:
        """Return a convenient debug representation."""
        return f"Invocation(#{self.index} {self.describe()})"


__all__ = ["Call", "Invocation", "format_access", "format_args", "shorten"]

"""Translate setup/verify expressions into call descriptors.

An expression is a callable such as ``lambda c: c.repo.find(1, Any(int))``.
It is evaluated once against a recorder that notes every member access, so
the mocking engine never has to inspect Python syntax. Plain argument values
become :class:`~cap_mox.comparators.Literal` matchers; comparator objects
are kept as they are.
"""

from __future__ import annotations

import contextvars
import dataclasses as dc
import typing as t

from .comparators import as_matcher
from .errors import ConfigurationError, NotSupportedChainError
from .invocation import format_access
from .members import (
    Access,
    KeywordArg,
    Member,
    MemberInfo,
    MemberKind,
    is_mockable,
    registry_for,
)

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .comparators import Comparator
    from .controller import Mock
    from .invocation import Call

Expression = t.Callable[[t.Any], object]

_RECORDING: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "cap_mox_recording", default=False
)


def is_recording() -> bool:
    """Return ``True`` while an expression is being translated."""
    return _RECORDING.get()


@dc.dataclass(frozen=True, slots=True)
class Hop:
    """One member access within a chained expression."""

    info: MemberInfo
    access: Access
    matchers: tuple[Comparator, ...] = ()

    @property
    def member(self) -> Member:
        """Return the identity of the accessed member."""
        return Member(self.info.name, self.access)

    def describe(self) -> str:
        """Return e.g. ``find(1)`` or ``total``."""
        return format_access(self.member, self.matchers)


@dc.dataclass(frozen=True, slots=True)
class CallDescriptor:
    """Result of translating an expression.

    ``root`` is the mock owning a captured substitute when the expression
    starts from one, otherwise ``None`` (the mock the expression was given
    to). ``hops[-1]`` is the target; earlier hops form the chain.
    """

    root: Mock | None
    hops: tuple[Hop, ...]

    @property
    def target(self) -> Hop:
        """Return the final hop."""
        return self.hops[-1]

    @property
    def chain(self) -> tuple[Hop, ...]:
        """Return the hops leading to the target."""
        return self.hops[:-1]

    @property
    def member(self) -> Member:
        """Return the identity of the target member."""
        return self.target.member

    @property
    def matchers(self) -> tuple[Comparator, ...]:
        """Return the target's ordered matchers."""
        return self.target.matchers

    @property
    def is_property_get(self) -> bool:
        """Return ``True`` when the target reads a property."""
        return self.target.access is Access.GET

    @property
    def is_property_set(self) -> bool:
        """Return ``True`` when the target assigns a property."""
        return self.target.access is Access.SET

    def as_setter(self, value: object) -> CallDescriptor:
        """Turn a property read into an assignment of *value*."""
        target = self.target
        if target.access is not Access.GET or target.info.kind is not MemberKind.PROPERTY:
            msg = f"{target.describe()} is not a property"
            raise ConfigurationError(msg)
        setter = Hop(target.info, Access.SET, (as_matcher(value),))
        return dc.replace(self, hops=(*self.chain, setter))

    def describe(self) -> str:
        """Return the whole chain, e.g. ``repo.find(1)``."""
        return ".".join(hop.describe() for hop in self.hops)


class _Recorder:
    """Stand-in passed to expressions; records attribute access and calls."""

    __slots__ = ("_hops", "_registry", "_root", "_type_name")

    def __init__(
        self,
        registry: t.Mapping[str, MemberInfo] | None,
        type_name: str,
        root: Mock | None = None,
        hops: tuple[Hop, ...] = (),
    ) -> None:
        self._registry = registry
        self._type_name = type_name
        self._root = root
        self._hops = hops

    def __getattr__(self, name: str) -> object:
        if name.startswith("__"):
            raise AttributeError(name)
        if name.startswith("_"):
            msg = f"cannot set up private member {self._type_name}.{name}"
            raise ConfigurationError(msg)
        if self._registry is None:
            msg = (
                f"{self._type_name} is not a mockable type; cannot continue "
                f"the chain with {name!r}"
            )
            raise NotSupportedChainError(msg)
        info = self._registry.get(name)
        if info is None:
            msg = f"{self._type_name} has no member {name!r}"
            raise ConfigurationError(msg)
        if info.kind in {MemberKind.METHOD, MemberKind.STATIC}:
            return _PendingCall(self, info)
        return self._extend(Hop(info, Access.GET), info.return_type)

    def _extend(self, hop: Hop, return_type: object) -> _Recorder:
        return recorder_for(return_type, self._root, (*self._hops, hop))

    def __repr__(self) -> str:
        path = ".".join(hop.describe() for hop in self._hops)
        return f"<recorder {self._type_name}: {path or '(root)'}>"


class _PendingCall:
    """A method looked up on a recorder that has not been called yet."""

    __slots__ = ("info", "recorder")

    def __init__(self, recorder: _Recorder, info: MemberInfo) -> None:
        self.recorder = recorder
        self.info = info

    def __call__(self, *args: object, **kwargs: object) -> _Recorder:
        values = self.info.bind(args, kwargs)
        hop = Hop(self.info, Access.CALL, _matchers_for(values))
        return self.recorder._extend(hop, self.info.return_type)  # noqa: SLF001


def _matchers_for(values: t.Iterable[object]) -> tuple[Comparator, ...]:
    matchers: list[Comparator] = []
    for value in values:
        inner = value.value if isinstance(value, KeywordArg) else value
        if isinstance(inner, _Recorder | _PendingCall):
            msg = (
                f"arguments may not refer to mocked members: {inner!r}; read "
                "the value into a local variable before the expression"
            )
            raise ConfigurationError(msg)
        matchers.append(as_matcher(value))
    return tuple(matchers)


def recorder_for(
    tp: object, root: Mock | None = None, hops: tuple[Hop, ...] = ()
) -> _Recorder:
    """Return a recorder continuing a chain whose current value is a *tp*."""
    registry = registry_for(tp) if is_mockable(tp) else None
    type_name = getattr(tp, "__name__", None) or repr(tp)
    return _Recorder(registry, type_name, root, hops)


def record_call(mock: Mock, call: Call) -> _Recorder:
    """Record a call made on a captured substitute during translation."""
    hop = Hop(call.info, call.access, _matchers_for(call.args))
    return recorder_for(call.info.return_type, mock, (hop,))


def translate(mock: Mock, expression: Expression) -> CallDescriptor:
    """Evaluate *expression* against a recorder for *mock*.

    Every substitute is in recording mode while the expression runs, so an
    argument such as ``m.find(other.object.name)`` would be recorded rather
    than read and is rejected with :class:`ConfigurationError`. Read such
    values into a local variable first and pass that to the expression.
    """
    recorder = _Recorder(mock.registry, mock.name)
    token = _RECORDING.set(True)
    try:
        result = expression(recorder)
    finally:
        _RECORDING.reset(token)
    if isinstance(result, _PendingCall):
        msg = f"method {result.info.name!r} must be invoked in the expression"
        raise ConfigurationError(msg)
    if not isinstance(result, _Recorder) or not result._hops:  # noqa: SLF001
        msg = "expression must access a member of the mocked object"
        raise ConfigurationError(msg)
    return CallDescriptor(result._root, result._hops)  # noqa: SLF001


__all__ = [
    "CallDescriptor",
    "Expression",
    "Hop",
    "is_recording",
    "record_call",
    "recorder_for",
    "translate",
]

"""Expectation (setup) model: a call pattern plus configured behaviour."""

from __future__ import annotations

import typing as t

from .invocation import format_access
from .members import KeywordArg
from .times import Times

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .comparators import Comparator
    from .controller import Mock
    from .invocation import Call, Invocation
    from .members import Member


class _Unset:
    """Marker for behaviour slots that were never configured."""

    _instance: t.ClassVar[_Unset | None] = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<unset>"

    def __bool__(self) -> bool:
        return False


UNSET: t.Final = _Unset()

ExceptionSpec = BaseException | type[BaseException] | t.Callable[..., BaseException]


def _split(values: t.Sequence[object]) -> tuple[tuple[object, ...], dict[str, object]]:
    """Turn argument slots back into call arguments for user callables."""
    args = tuple(value for value in values if not isinstance(value, KeywordArg))
    kwargs = {
        value.name: value.value for value in values if isinstance(value, KeywordArg)
    }
    return args, kwargs


class Expectation:
    """A registered call pattern and the behaviour attached to it.

    Behaviour mutators return ``self`` so they can be chained after
    :meth:`cap_mox.Mock.setup`.
    """

    def __init__(
        self,
        member: Member,
        matchers: t.Sequence[Comparator],
        *,
        owner: Mock | None = None,
        prefix: str = "",
        fluent: bool = False,
    ) -> None:
        self.member = member
        self.matchers: tuple[Comparator, ...] = tuple(matchers)
        self.owner = owner
        self.prefix = prefix
        self.fluent = fluent
        self.call_count = 0
        self.is_verifiable = False
        self.times: Times | None = None
        self.fail_message: str | None = None
        self._return_value: object = UNSET
        self._producer: t.Callable[..., object] | None = None
        self._exception: ExceptionSpec | None = None
        self._callback: t.Callable[..., object] | None = None
        self._call_base = False
        self._event: tuple[t.Callable[[t.Any], object], tuple[object, ...]] | None = (
            None
        )

    # ------------------------------------------------------------------
    # Behaviour configuration
    # ------------------------------------------------------------------
    def returns(self, value: object) -> Expectation:
        """Return ``value`` from matching calls."""
        self._return_value = value
        self._producer = None
        return self

    def returns_from(self, producer: t.Callable[..., object]) -> Expectation:
        """Return ``producer(*args)`` computed per matching call."""
        self._producer = producer
        self._return_value = UNSET
        return self

    def throws(self, exception: ExceptionSpec) -> Expectation:
        """Raise *exception* from matching calls.

        Accepts an exception instance, an exception class, or a callable
        receiving the call arguments and returning an exception.
        """
        self._exception = exception
        return self

    def callback(self, func: t.Callable[..., object]) -> Expectation:
        """Invoke ``func(*args)`` whenever a call matches."""
        self._callback = func
        return self

    def call_base(self) -> Expectation:
        """Delegate to the real implementation unless a return is configured."""
        self._call_base = True
        return self

    def raises(
        self, event: t.Callable[[t.Any], object], *args: object
    ) -> Expectation:
        """Raise the event selected by *event* with *args* after a match."""
        self._event = (event, args)
        return self

    def verifiable(
        self, times: Times | None = None, message: str | None = None
    ) -> Expectation:
        """Include this expectation in :meth:`cap_mox.Mock.verify`."""
        self.is_verifiable = True
        self.times = times
        self.fail_message = message
        return self

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def matches(self, invocation: Invocation) -> bool:
        """Return ``True`` if *invocation* satisfies this expectation."""
        return invocation.member == self.member and self.matches_args(
            invocation.args
        )

    def matches_args(self, args: t.Sequence[object]) -> bool:
        """Check arity, then every matcher against its positional argument."""
        if len(args) != len(self.matchers):
            return False
        return all(
            matcher(arg) for matcher, arg in zip(self.matchers, args, strict=True)
        )

    def same_pattern(self, other: Expectation) -> bool:
        """Return ``True`` when *other* targets the same call pattern."""
        return self.member == other.member and self.matchers == other.matchers

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    @property
    def has_return(self) -> bool:
        """Return ``True`` when a value or producer was configured."""
        return self._producer is not None or self._return_value is not UNSET

    def execute(self, call: Call) -> object:
        """Run the configured behaviour; :data:`UNSET` means no result."""
        if self._callback is not None:
            args, kwargs = _split(call.args)
            self._callback(*args, **kwargs)
        if self._event is not None and self.owner is not None:
            event, event_args = self._event
            self.owner.raise_event(event, *event_args)
        if self._exception is not None:
            raise self._build_exception(call.args)
        if self._producer is not None:
            args, kwargs = _split(call.args)
            return self._producer(*args, **kwargs)
        if self._return_value is not UNSET:
            return self._return_value
        if self._call_base and call.base is not None:
            return call.base()
        return UNSET

    def _build_exception(self, args: tuple[object, ...]) -> BaseException:
        raised = self._exception
        if isinstance(raised, BaseException):
            return raised
        if isinstance(raised, type) and issubclass(raised, BaseException):
            return raised()
        positional, keywords = _split(args)
        factory = t.cast("t.Callable[..., BaseException]", raised)
        exc = factory(*positional, **keywords)
        if not isinstance(exc, BaseException):
            msg = f"throws() callable returned {exc!r}, not an exception"
            raise TypeError(msg)
        return exc

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def describe(self) -> str:
        """Return the call pattern, e.g. ``Calculator.add(1, Any(int))``."""
        access = format_access(self.member, self.matchers)
        return f"{self.prefix}.{access}" if self.prefix else access

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Expectation({self.describe()}, calls={self.call_count})"


__all__ = ["UNSET", "Expectation"]

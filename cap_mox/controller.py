"""Mock instances and the repository that creates them."""

from __future__ import annotations

import enum
import threading
import types  # noqa: TC003
import typing as t

from .comparators import Any
from .defaults import DefaultValue, DefaultValueProvider, provider_for
from .errors import (
    ConfigurationError,
    UnassociatedEventError,
    UnsupportedCapabilityError,
    VerificationError,
    caller_site,
)
from .expectations import Expectation
from .fluent import inner_mock, resolve
from .interceptor import Interceptor
from .members import (
    Access,
    Member,
    MemberInfo,
    MemberKind,
    is_interface,
    is_mockable,
    merged_registry,
    registry_for,
)
from .synthesizer import owning_mock, synthesize
from .times import Times
from .translator import CallDescriptor, Expression, Hop, translate
from .verifiers import verify_expression, verify_mocks

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .invocation import Invocation

T = t.TypeVar("T")

_ANY_VALUE: t.Final = Any()


class MockBehavior(enum.StrEnum):
    """How a mock treats calls no expectation matches."""

    STRICT = "strict"
    LOOSE = "loose"


class _PropertyValue:
    """Backing storage for a stubbed property."""

    __slots__ = ("value",)

    def __init__(self, value: object) -> None:
        self.value = value

    def get(self) -> object:
        return self.value

    def set(self, value: object) -> None:
        self.value = value


def _check_target(descriptor: CallDescriptor, verb: str) -> None:
    """Reject targets that cannot be intercepted."""
    hop = descriptor.target
    info = hop.info
    label = f"{info.owner.__name__}.{hop.describe()}"
    if info.kind is MemberKind.STATIC:
        msg = f"cannot {verb} {label}: static members are not instance members"
        raise ConfigurationError(msg)
    if info.kind is MemberKind.EVENT:
        msg = f"cannot {verb} event {label}; use raise_event() instead"
        raise ConfigurationError(msg)
    if info.kind is MemberKind.FIELD or not info.overridable:
        msg = f"cannot {verb} non-overridable member {label}"
        raise ConfigurationError(msg)
    if hop.access is Access.GET and info.kind is MemberKind.PROPERTY:
        if not info.readable:
            msg = f"property {label} is not readable"
            raise ConfigurationError(msg)
    if hop.access is Access.SET and not info.writable:
        msg = f"property {info.owner.__name__}.{info.name} is not writable"
        raise ConfigurationError(msg)


def _require_property(descriptor: CallDescriptor) -> None:
    target = descriptor.target
    if target.access is not Access.GET or target.info.kind is not MemberKind.PROPERTY:
        msg = f"{target.describe()} is not a property"
        raise ConfigurationError(msg)


class Mock(t.Generic[T]):
    """A configurable substitute for one or more capabilities."""

    def __init__(
        self,
        capability: type[T],
        behavior: MockBehavior | str = MockBehavior.LOOSE,
        *,
        default_value: DefaultValue | str = DefaultValue.EMPTY,
        call_base: bool = False,
        name: str | None = None,
        constructor_args: t.Sequence[object] | None = None,
    ) -> None:
        """Create a new mock.

        Parameters
        ----------
        capability:
            Class to substitute: an ABC, a protocol, or a non-final class.
        behavior:
            ``STRICT`` raises for calls with no matching expectation; ``LOOSE``
            (the default) answers them with the default value strategy.
        default_value:
            ``EMPTY`` returns zero/empty values; ``MOCK`` additionally returns
            cached child substitutes for mockable return types.
        call_base:
            When ``True``, unmatched calls run the real implementation where
            one exists.
        name:
            Label used in diagnostics; defaults to the capability name.
        constructor_args:
            Arguments passed to the capability's ``__init__`` when the
            substitute is created. ``None`` skips the constructor.
        """
        if not is_mockable(capability):
            msg = f"{capability!r} cannot be mocked"
            raise UnsupportedCapabilityError(msg)
        if constructor_args is not None and getattr(capability, "_is_protocol", False):
            msg = f"protocol {capability.__name__} has no constructor to call"
            raise ConfigurationError(msg)
        self.behavior = MockBehavior(behavior)
        self.call_base = call_base
        self.name = name or capability.__name__
        self.constructor_args = (
            tuple(constructor_args) if constructor_args is not None else None
        )
        self.capabilities: tuple[type, ...] = (capability,)
        self.registry: dict[str, MemberInfo] = dict(registry_for(capability))
        self.interceptor = Interceptor(self)
        self.inner_mocks: dict[Member, Mock[t.Any]] = {}
        self.inner_lock = threading.Lock()
        self._object: object | None = None
        self._object_lock = threading.RLock()
        self.default_value = DefaultValue(default_value)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def default_value(self) -> DefaultValue:
        """Return the default value strategy."""
        return self._default_value

    @default_value.setter
    def default_value(self, value: DefaultValue | str) -> None:
        self._default_value = DefaultValue(value)
        self.default_value_provider: DefaultValueProvider = provider_for(
            self._default_value
        )

    @property
    def is_strict(self) -> bool:
        """Return ``True`` for :attr:`MockBehavior.STRICT` mocks."""
        return self.behavior is MockBehavior.STRICT

    # ------------------------------------------------------------------
    # Substitute object and capabilities
    # ------------------------------------------------------------------
    @property
    def object(self) -> T:
        """Return the substitute, creating it on first access."""
        with self._object_lock:
            if self._object is None:
                self._object = synthesize(self)
            return t.cast("T", self._object)

    @property
    def is_materialized(self) -> bool:
        """Return ``True`` once :attr:`object` has been created."""
        return self._object is not None

    def as_(self, capability: type) -> Mock[t.Any]:
        """Add *capability* to the substitute's implemented interfaces."""
        if capability in self.capabilities:
            return self
        if self.is_materialized:
            msg = (
                f"cannot add {capability.__name__} to {self.name}: the mocked "
                "object was already created"
            )
            raise UnsupportedCapabilityError(msg)
        if not is_interface(capability):
            msg = (
                f"{capability!r} is not an abstract base class or protocol; "
                "only interfaces can be added to a mock"
            )
            raise UnsupportedCapabilityError(msg)
        self.capabilities = (*self.capabilities, capability)
        self.registry = merged_registry(self.capabilities)
        return self

    @classmethod
    def get(cls, instance: object, capability: type | None = None) -> Mock[t.Any]:
        """Return the mock that produced the substitute *instance*."""
        mock = owning_mock(instance)
        if mock is None:
            msg = f"{instance!r} was not created by a cap_mox mock"
            raise ConfigurationError(msg)
        if capability is not None and not any(
            issubclass(implemented, capability) for implemented in mock.capabilities
        ):
            names = ", ".join(cap.__name__ for cap in mock.capabilities)
            msg = (
                f"mock {mock.name} does not implement {capability.__name__} "
                f"(implements: {names})"
            )
            raise ConfigurationError(msg)
        return mock

    # ------------------------------------------------------------------
    # Child mocks
    # ------------------------------------------------------------------
    def create_child(self, member: Member, capability: type) -> Mock[t.Any]:
        """Build a child mock sharing this mock's configuration."""
        return Mock(
            capability,
            self.behavior,
            default_value=self.default_value,
            call_base=self.call_base,
            name=f"{self.name}.{member.name}",
        )

    def inner_mock(self, member: Member, capability: type) -> Mock[t.Any]:
        """Return the cached child mock for *member*."""
        return inner_mock(self, member, capability)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def _register(self, descriptor: CallDescriptor) -> Expectation:
        _check_target(descriptor, "set up")
        target = t.cast("Mock[t.Any]", resolve(self, descriptor))
        expectation = Expectation(
            descriptor.member, descriptor.matchers, owner=target, prefix=target.name
        )
        target.interceptor.add_expectation(expectation)
        return expectation

    def setup(self, expression: Expression) -> Expectation:
        """Register an expectation for the call described by *expression*."""
        return self._register(translate(self, expression))

    def setup_get(self, expression: Expression) -> Expectation:
        """Register an expectation for reading a property."""
        descriptor = translate(self, expression)
        _require_property(descriptor)
        return self._register(descriptor)

    def setup_set(
        self, expression: Expression, value: object = _ANY_VALUE
    ) -> Expectation:
        """Register an expectation for assigning *value* to a property.

        ``value`` may be a comparator; it defaults to matching any value.
        """
        descriptor = translate(self, expression)
        return self._register(descriptor.as_setter(value))

    def setup_property(self, expression: Expression, initial: object = None) -> Mock[T]:
        """Give a property stub behaviour: reads return the last assigned value."""
        descriptor = translate(self, expression)
        _require_property(descriptor)
        self._stub_property(descriptor, initial)
        return self

    def _stub_property(self, descriptor: CallDescriptor, initial: object) -> None:
        storage = _PropertyValue(initial)
        self._register(descriptor).returns_from(storage.get)
        if descriptor.target.info.writable:
            self._register(descriptor.as_setter(Any())).callback(storage.set)

    def setup_all_properties(self) -> Mock[T]:
        """Stub every readable property, recursing into auto-mocked values."""
        self._setup_all_properties(set())
        return self

    def _setup_all_properties(self, path: set[type]) -> None:
        # ``path`` holds the capabilities being stubbed above this mock; a
        # self-referencing capability is not stubbed again below itself.
        primary = self.capabilities[0]
        if primary in path:
            return
        path.add(primary)
        try:
            for info in list(self.registry.values()):
                if info.kind is not MemberKind.PROPERTY:
                    continue
                if not (info.readable and info.overridable):
                    continue
                initial = self.default_value_provider.provide_default(info, self)
                child = owning_mock(initial)
                if child is not None:
                    child._setup_all_properties(path)  # noqa: SLF001
                descriptor = CallDescriptor(None, (Hop(info, Access.GET),))
                self._stub_property(descriptor, initial)
        finally:
            path.discard(primary)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def raise_event(self, event: str | Expression, *args: object) -> None:
        """Invoke the handlers subscribed to *event* in subscription order.

        *event* is the event name or an expression selecting it, e.g.
        ``lambda m: m.changed``. A handler exception propagates at once.
        """
        if isinstance(event, str):
            target: Mock[t.Any] | None = self
            info = self.registry.get(event)
        else:
            descriptor = translate(self, event)
            info = descriptor.target.info
            target = resolve(self, descriptor, create=False)
        if info is None or info.kind is not MemberKind.EVENT:
            msg = f"{self.name} declares no event {event!r}"
            raise UnassociatedEventError(msg)
        if target is None:
            return
        for handler in target.interceptor.get_invocation_list(info.name):
            handler(*args)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------
    @property
    def invocations(self) -> list[Invocation]:
        """Return a snapshot of the calls received by this mock."""
        return self.interceptor.invocations()

    def _verify_descriptor(
        self, descriptor: CallDescriptor, times: Times | None, message: str | None
    ) -> None:
        __tracebackhide__ = True
        _check_target(descriptor, "verify")
        try:
            verify_expression(
                self, descriptor, times or Times.at_least_once(), message
            )
        except VerificationError as err:
            raise err.relocated(caller_site()) from None

    def verify(
        self,
        expression: Expression | None = None,
        times: Times | None = None,
        message: str | None = None,
    ) -> None:
        """Verify calls on this mock.

        Without an expression, every expectation marked ``verifiable()`` on
        this mock and its auto-mocked children must be satisfied. With one,
        calls matching it must have happened ``times`` times (default: at
        least once).
        """
        __tracebackhide__ = True
        if expression is None:
            try:
                verify_mocks([self], only_verifiable=True)
            except VerificationError as err:
                raise err.relocated(caller_site()) from None
            return
        self._verify_descriptor(translate(self, expression), times, message)

    def verify_get(
        self,
        expression: Expression,
        times: Times | None = None,
        message: str | None = None,
    ) -> None:
        """Verify reads of a property."""
        __tracebackhide__ = True
        descriptor = translate(self, expression)
        _require_property(descriptor)
        self._verify_descriptor(descriptor, times, message)

    def verify_set(
        self,
        expression: Expression,
        value: object = _ANY_VALUE,
        times: Times | None = None,
        message: str | None = None,
    ) -> None:
        """Verify assignments of *value* (any value by default) to a property."""
        __tracebackhide__ = True
        descriptor = translate(self, expression)
        setter = descriptor.as_setter(value)
        self._verify_descriptor(setter, times, message)

    def verify_all(self) -> None:
        """Verify every expectation, verifiable or not, across the mock graph."""
        __tracebackhide__ = True
        try:
            verify_mocks([self], only_verifiable=False)
        except VerificationError as err:
            raise err.relocated(caller_site()) from None

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Mock({self.name}, behavior={self.behavior.value})"


class MockRepository:
    """Create mocks with shared defaults and verify them together."""

    def __init__(
        self,
        behavior: MockBehavior | str = MockBehavior.LOOSE,
        *,
        default_value: DefaultValue | str = DefaultValue.EMPTY,
        call_base: bool = False,
        verify_on_exit: bool = True,
    ) -> None:
        """Create a repository.

        Parameters
        ----------
        behavior, default_value, call_base:
            Defaults applied to every mock created by :meth:`create`.
        verify_on_exit:
            When ``True`` (the default), leaving the ``with`` block without
            an exception calls :meth:`verify`.
        """
        self.behavior = MockBehavior(behavior)
        self.default_value = DefaultValue(default_value)
        self.call_base = call_base
        self._verify_on_exit = verify_on_exit
        self._mocks: list[Mock[t.Any]] = []

    @property
    def mocks(self) -> list[Mock[t.Any]]:
        """Return the mocks created so far."""
        return list(self._mocks)

    def create(
        self,
        capability: type[T],
        behavior: MockBehavior | str | None = None,
        *,
        name: str | None = None,
        constructor_args: t.Sequence[object] | None = None,
    ) -> Mock[T]:
        """Create a mock using the repository defaults."""
        mock = Mock(
            capability,
            self.behavior if behavior is None else behavior,
            default_value=self.default_value,
            call_base=self.call_base,
            name=name,
            constructor_args=constructor_args,
        )
        self._mocks.append(mock)
        return mock

    def verify(self) -> None:
        """Verify the verifiable expectations of every created mock."""
        __tracebackhide__ = True
        try:
            verify_mocks(self._mocks, only_verifiable=True)
        except VerificationError as err:
            raise err.relocated(caller_site()) from None

    def verify_all(self) -> None:
        """Verify all expectations of every created mock."""
        __tracebackhide__ = True
        try:
            verify_mocks(self._mocks, only_verifiable=False)
        except VerificationError as err:
            raise err.relocated(caller_site()) from None

    def __enter__(self) -> MockRepository:
        """Enter the repository context."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Verify on a clean exit when ``verify_on_exit`` is enabled."""
        if exc_type is None and self._verify_on_exit:
            self.verify()


def _as_mock(target: Mock[t.Any] | object) -> Mock[t.Any]:
    if isinstance(target, Mock):
        return target
    return Mock.get(target)


def setup(target: Mock[t.Any] | object, expression: Expression) -> Expectation:
    """Set up *expression* on a mock or on the mock behind a substitute."""
    return _as_mock(target).setup(expression)


def verify(
    target: Mock[t.Any] | object,
    expression: Expression | None = None,
    times: Times | None = None,
    message: str | None = None,
) -> None:
    """Verify on a mock or on the mock behind a substitute."""
    __tracebackhide__ = True
    _as_mock(target).verify(expression, times, message)


def raise_event(
    target: Mock[t.Any] | object, event: str | Expression, *args: object
) -> None:
    """Raise *event* on a mock or on the mock behind a substitute."""
    _as_mock(target).raise_event(event, *args)


__all__ = [
    "Mock",
    "MockBehavior",
    "MockRepository",
    "raise_event",
    "setup",
    "verify",
]

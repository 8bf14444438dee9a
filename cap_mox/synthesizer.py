"""Build substitute objects whose members forward to an interceptor."""

from __future__ import annotations

import functools
import inspect
import logging
import typing as t

from .events import BoundEvent, Event, Handler
from .invocation import Call
from .members import Access, MemberInfo, MemberKind
from .translator import is_recording

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import Mock
    from .interceptor import Interceptor

logger = logging.getLogger(__name__)

MOCK_ATTR: t.Final[str] = "_cap_mox_mock"


class _InterceptedBoundEvent(BoundEvent):
    """Bound event whose subscriptions are routed through the interceptor."""

    __slots__ = ()

    def subscribe(self, handler: Handler) -> None:
        """Forward the subscription to the interceptor."""
        t.cast("_InterceptedEvent", self.event).dispatch(Access.ADD, handler)

    def unsubscribe(self, handler: Handler) -> None:
        """Forward the unsubscription to the interceptor."""
        t.cast("_InterceptedEvent", self.event).dispatch(Access.REMOVE, handler)

    def handlers(self) -> list[Handler]:
        """Return the interceptor's subscription list."""
        event = t.cast("_InterceptedEvent", self.event)
        return event.interceptor.get_invocation_list(self.name)


class _InterceptedEvent(Event):
    bound_type = _InterceptedBoundEvent

    def __init__(self, info: MemberInfo, interceptor: Interceptor) -> None:
        super().__init__()
        self.name = info.name
        self.info = info
        self.interceptor = interceptor

    def dispatch(self, access: Access, handler: Handler) -> None:
        self.interceptor.intercept(Call(self.info, access, (handler,)))


def _original(info: MemberInfo) -> object:
    return inspect.getattr_static(info.owner, info.name, None)


def _method_base(
    info: MemberInfo, instance: object, args: tuple[object, ...], kwargs: dict[str, object]
) -> t.Callable[[], object] | None:
    func = _original(info)
    if info.abstract or not callable(func):
        return None
    return functools.partial(func, instance, *args, **kwargs)


async def _dispatch_async(interceptor: Interceptor, call: Call) -> object:
    result = interceptor.intercept(call)
    if inspect.isawaitable(result):
        return await result
    return result


def _build_method(info: MemberInfo, interceptor: Interceptor) -> t.Callable[..., object]:
    def method(self: object, *args: object, **kwargs: object) -> object:
        call = Call(
            info,
            Access.CALL,
            info.bind(args, kwargs),
            _method_base(info, self, args, kwargs),
        )
        if info.is_async and not is_recording():
            return _dispatch_async(interceptor, call)
        return interceptor.intercept(call)

    original = _original(info)
    if callable(original):
        functools.update_wrapper(method, original, updated=())
    return method


def _build_property(info: MemberInfo, interceptor: Interceptor) -> property:
    original = _original(info)
    base_prop = original if isinstance(original, property) and not info.abstract else None

    def fget(self: object) -> object:
        base = None
        if base_prop is not None and base_prop.fget is not None:
            base = functools.partial(base_prop.fget, self)
        return interceptor.intercept(Call(info, Access.GET, (), base))

    def fset(self: object, value: object) -> None:
        base = None
        if base_prop is not None and base_prop.fset is not None:
            base = functools.partial(base_prop.fset, self, value)
        interceptor.intercept(Call(info, Access.SET, (value,), base))

    return property(
        fget if info.readable else None,
        fset if info.writable else None,
        doc=getattr(original, "__doc__", None),
    )


def _build_member(info: MemberInfo, interceptor: Interceptor) -> object:
    if info.kind is MemberKind.METHOD:
        return _build_method(info, interceptor)
    if info.kind is MemberKind.PROPERTY:
        return _build_property(info, interceptor)
    return _InterceptedEvent(info, interceptor)


def _repr(self: object) -> str:
    mock = getattr(type(self), MOCK_ATTR)
    return f"<substitute {mock.name}>"


def synthesize(mock: Mock) -> object:
    """Create the substitute object for *mock*.

    The substitute subclasses every capability of the mock and overrides
    each overridable method, property and event so that it forwards a
    :class:`~cap_mox.invocation.Call` to ``mock.interceptor``.
    """
    interceptor = mock.interceptor
    namespace: dict[str, object] = {
        MOCK_ATTR: mock,
        "__module__": __name__,
        "__repr__": _repr,
    }
    for name, info in mock.registry.items():
        if info.overridable and info.kind in {
            MemberKind.METHOD,
            MemberKind.PROPERTY,
            MemberKind.EVENT,
        }:
            namespace[name] = _build_member(info, interceptor)

    primary = mock.capabilities[0]
    proxy_type = type(f"{primary.__name__}Substitute", mock.capabilities, namespace)
    proxy_type.__abstractmethods__ = frozenset()
    instance = object.__new__(proxy_type)
    if mock.constructor_args is not None:
        primary.__init__(instance, *mock.constructor_args)
    logger.debug("Synthesized substitute %s for %s", proxy_type.__name__, mock.name)
    return instance


def owning_mock(instance: object) -> Mock | None:
    """Return the mock behind a substitute, or ``None`` for other objects."""
    return getattr(type(instance), MOCK_ATTR, None)


__all__ = ["MOCK_ATTR", "owning_mock", "synthesize"]

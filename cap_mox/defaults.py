"""Default values returned for calls no expectation handles."""

from __future__ import annotations

import collections.abc as cabc
import enum
import logging
import types
import typing as t

from .members import MemberInfo, is_mockable

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import Mock

logger = logging.getLogger(__name__)


class DefaultValue(enum.StrEnum):
    """Strategy used by loose mocks for unconfigured members."""

    EMPTY = "empty"
    MOCK = "mock"


_EMPTY_FACTORIES: dict[object, t.Callable[[], object]] = {
    bool: bool,
    int: int,
    float: float,
    complex: complex,
    str: str,
    bytes: bytes,
    bytearray: bytearray,
    list: list,
    tuple: tuple,
    dict: dict,
    set: set,
    frozenset: frozenset,
    cabc.Iterable: list,
    cabc.Collection: list,
    cabc.Sequence: list,
    cabc.MutableSequence: list,
    cabc.Mapping: dict,
    cabc.MutableMapping: dict,
    cabc.Set: frozenset,
    cabc.MutableSet: set,
    cabc.Iterator: lambda: iter(()),
    cabc.Generator: lambda: iter(()),
}


def empty_value(tp: object) -> object:
    """Return the zero or empty value for *tp*, or ``None``.

    Numbers, booleans and strings get their zero value, well-known
    collection types an empty instance, everything else ``None``.
    """
    if tp is None or tp is types.NoneType:
        return None
    origin = t.get_origin(tp)
    if origin is t.Annotated:
        return empty_value(t.get_args(tp)[0])
    if origin is t.Union or origin is types.UnionType:
        return None
    factory = _EMPTY_FACTORIES.get(origin if origin is not None else tp)
    if factory is None:
        return None
    return factory()


class DefaultValueProvider(t.Protocol):
    """Supplies a value when no expectation produced one."""

    def provide_default(self, info: MemberInfo, mock: Mock) -> object:
        """Return the default for a call to *info* on *mock*."""
        ...


class EmptyDefaultValueProvider:
    """Zero, empty or ``None`` depending on the declared return type."""

    def provide_default(self, info: MemberInfo, mock: Mock) -> object:
        """Return :func:`empty_value` of the member's return type."""
        del mock
        return empty_value(info.return_type)


class MockDefaultValueProvider(EmptyDefaultValueProvider):
    """Return child substitutes for mockable return types."""

    def provide_default(self, info: MemberInfo, mock: Mock) -> object:
        """Return a cached child mock's object, or the empty value."""
        if not is_mockable(info.return_type):
            return super().provide_default(info, mock)
        capability = t.cast("type", info.return_type)
        child = mock.inner_mock(info.member(), capability)
        logger.debug("Returning auto-mock %s for %s", child.name, info.name)
        return child.object


def provider_for(strategy: DefaultValue) -> DefaultValueProvider:
    """Return the provider implementing *strategy*."""
    if strategy is DefaultValue.MOCK:
        return MockDefaultValueProvider()
    return EmptyDefaultValueProvider()


__all__ = [
    "DefaultValue",
    "DefaultValueProvider",
    "EmptyDefaultValueProvider",
    "MockDefaultValueProvider",
    "empty_value",
    "provider_for",
]

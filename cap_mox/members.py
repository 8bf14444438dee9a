"""Member registry built by reflecting over a capability class once."""

from __future__ import annotations

import abc
import dataclasses as dc
import enum
import functools
import inspect
import logging
import types
import typing as t

from .events import Event

logger = logging.getLogger(__name__)

_SKIPPED_BASES: frozenset[object] = frozenset(
    {object, abc.ABC, t.Protocol, t.Generic}
)
_VALUE_MODULES: frozenset[str] = frozenset(
    {
        "builtins",
        "collections",
        "collections.abc",
        "datetime",
        "decimal",
        "enum",
        "fractions",
        "numbers",
        "pathlib",
        "types",
        "typing",
        "uuid",
    }
)


class Access(enum.StrEnum):
    """How an invocation touches a member."""

    CALL = "call"
    GET = "get"
    SET = "set"
    ADD = "add"
    REMOVE = "remove"


class MemberKind(enum.StrEnum):
    """Kinds of capability members found by reflection."""

    METHOD = "method"
    PROPERTY = "property"
    EVENT = "event"
    FIELD = "field"
    STATIC = "static"


@dc.dataclass(frozen=True, slots=True)
class Member:
    """Identity of one accessor of a capability member."""

    name: str
    access: Access

    def __str__(self) -> str:
        """Return a compact form such as ``total=`` for a setter."""
        suffix = {
            Access.SET: "=",
            Access.ADD: "+=",
            Access.REMOVE: "-=",
        }.get(self.access, "")
        return f"{self.name}{suffix}"


@dc.dataclass(frozen=True, slots=True)
class KeywordArg:
    """One entry of a ``**kwargs`` catch-all, kept with its name."""

    name: str
    value: object

    def __repr__(self) -> str:
        """Return ``name=value`` as written at the call site."""
        return f"{self.name}={self.value!r}"


@dc.dataclass(frozen=True, slots=True)
class MemberInfo:
    """Reflected description of a capability member."""

    name: str
    kind: MemberKind
    owner: type
    return_type: object = None
    signature: inspect.Signature | None = None
    readable: bool = False
    writable: bool = False
    overridable: bool = False
    abstract: bool = False
    is_async: bool = False

    def member(self, access: Access | None = None) -> Member:
        """Return the identity for *access* (the natural one by default)."""
        if access is None:
            access = Access.CALL if self.kind is MemberKind.METHOD else Access.GET
        return Member(self.name, access)

    def bind(
        self, args: t.Sequence[object], kwargs: t.Mapping[str, object]
    ) -> tuple[object, ...]:
        """Normalise a call into one value per argument slot.

        ``*args`` contribute one slot per value and ``**kwargs`` one
        :class:`KeywordArg` per entry, sorted by name.
        """
        if self.signature is None:
            return tuple(args)
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        values: list[object] = []
        for name, value in bound.arguments.items():
            kind = self.signature.parameters[name].kind
            if kind is inspect.Parameter.VAR_POSITIONAL:
                values.extend(t.cast("tuple[object, ...]", value))
            elif kind is inspect.Parameter.VAR_KEYWORD:
                extra = t.cast("dict[str, object]", value)
                values.extend(KeywordArg(key, extra[key]) for key in sorted(extra))
            else:
                values.append(value)
        return tuple(values)


def is_mockable(tp: object) -> bool:
    """Return ``True`` when *tp* is a class a substitute can be built for."""
    if not isinstance(tp, type):
        return False
    if tp.__module__ in _VALUE_MODULES or issubclass(tp, enum.Enum):
        return False
    return not getattr(tp, "__final__", False)


def is_interface(tp: object) -> bool:
    """Return ``True`` for abstract base classes and protocols."""
    return is_mockable(tp) and isinstance(tp, abc.ABCMeta)


def _is_protocol(cls: type) -> bool:
    return bool(getattr(cls, "_is_protocol", False))


def _hints(obj: object) -> dict[str, object]:
    try:
        return t.get_type_hints(obj)
    except Exception:  # noqa: BLE001 - unresolved forward references
        logger.debug("Could not resolve annotations of %r", obj)
        return {}


def _strip_self(signature: inspect.Signature) -> inspect.Signature:
    params = list(signature.parameters.values())[1:]
    return signature.replace(parameters=params)


def _describe_function(
    capability: type, name: str, func: types.FunctionType
) -> MemberInfo:
    protocol = _is_protocol(capability)
    return MemberInfo(
        name=name,
        kind=MemberKind.METHOD,
        owner=capability,
        return_type=_hints(func).get("return"),
        signature=_strip_self(inspect.signature(func)),
        overridable=not getattr(func, "__final__", False),
        abstract=protocol or getattr(func, "__isabstractmethod__", False),
        is_async=inspect.iscoroutinefunction(func),
    )


def _describe_property(capability: type, name: str, prop: property) -> MemberInfo:
    getter = prop.fget
    return MemberInfo(
        name=name,
        kind=MemberKind.PROPERTY,
        owner=capability,
        return_type=_hints(getter).get("return") if getter is not None else None,
        signature=inspect.Signature(),
        readable=getter is not None,
        writable=prop.fset is not None,
        overridable=not getattr(getter, "__final__", False),
        abstract=_is_protocol(capability) or prop.__isabstractmethod__,
    )


def _describe_attribute(capability: type, name: str, raw: object) -> MemberInfo:
    if isinstance(raw, Event):
        return MemberInfo(name, MemberKind.EVENT, capability, overridable=True)
    if isinstance(raw, staticmethod | classmethod):
        return MemberInfo(name, MemberKind.STATIC, capability)
    if isinstance(raw, property):
        return _describe_property(capability, name, raw)
    if isinstance(raw, types.FunctionType):
        return _describe_function(capability, name, raw)
    return MemberInfo(
        name,
        MemberKind.FIELD,
        capability,
        return_type=type(raw),
        readable=True,
    )


def _describe_annotation(capability: type, name: str, hint: object) -> MemberInfo:
    return MemberInfo(
        name=name,
        kind=MemberKind.PROPERTY,
        owner=capability,
        return_type=hint,
        signature=inspect.Signature(),
        readable=True,
        writable=True,
        overridable=True,
        abstract=True,
    )


@functools.cache
def registry_for(capability: type) -> t.Mapping[str, MemberInfo]:
    """Return the public members of *capability* keyed by name."""
    members: dict[str, MemberInfo] = {}
    hints = _hints(capability)
    for klass in reversed(capability.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        namespace = vars(klass)
        for name, raw in namespace.items():
            if not name.startswith("_"):
                members[name] = _describe_attribute(capability, name, raw)
        for name in inspect.get_annotations(klass):
            if name.startswith("_") or name in namespace:
                continue
            members[name] = _describe_annotation(capability, name, hints.get(name))
    return types.MappingProxyType(members)


def merged_registry(capabilities: t.Iterable[type]) -> dict[str, MemberInfo]:
    """Merge registries; earlier capabilities win on name clashes."""
    merged: dict[str, MemberInfo] = {}
    for capability in capabilities:
        for name, info in registry_for(capability).items():
            merged.setdefault(name, info)
    return merged


__all__ = [
    "Access",
    "KeywordArg",
    "Member",
    "MemberInfo",
    "MemberKind",
    "is_interface",
    "is_mockable",
    "merged_registry",
    "registry_for",
]

"""Resolve chained member access into per-hop child mocks."""

from __future__ import annotations

import logging
import typing as t

from .errors import NotSupportedChainError
from .expectations import Expectation
from .members import MemberKind, is_mockable

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import Mock
    from .members import Member
    from .translator import CallDescriptor, Hop

logger = logging.getLogger(__name__)

_CHAINABLE_KINDS: frozenset[MemberKind] = frozenset(
    {MemberKind.METHOD, MemberKind.PROPERTY}
)


def inner_mock(mock: Mock, member: Member, capability: type) -> Mock:
    """Return the child mock cached for *member*, creating it on first use."""
    with mock.inner_lock:
        child = mock.inner_mocks.get(member)
        if child is None:
            child = mock.create_child(member, capability)
            mock.inner_mocks[member] = child
            logger.debug("Created auto-mock %s", child.name)
        return child


def resolve(
    mock: Mock, descriptor: CallDescriptor, *, create: bool = True
) -> Mock | None:
    """Return the mock whose interceptor owns the descriptor's target.

    Each chain hop is routed to a cached child mock, so two expressions
    sharing a prefix end up on the same child. With ``create=False`` no
    child is created and ``None`` is returned when the chain was never
    traversed.
    """
    current = descriptor.root if descriptor.root is not None else mock
    for hop in descriptor.chain:
        _check_hop(current, hop)
        if not create:
            child = current.inner_mocks.get(hop.member)
            if child is None:
                return None
            current = child
            continue
        child = inner_mock(current, hop.member, t.cast("type", hop.info.return_type))
        _ensure_hop_setup(current, hop, child)
        current = child
    return current


def _check_hop(parent: Mock, hop: Hop) -> None:
    info = hop.info
    if info.kind not in _CHAINABLE_KINDS or not info.overridable:
        msg = (
            f"{parent.name}.{hop.describe()} is a {info.kind} that cannot be "
            "overridden, so the chain cannot be auto-mocked"
        )
        raise NotSupportedChainError(msg)
    if not is_mockable(info.return_type):
        msg = (
            f"{parent.name}.{hop.describe()} returns {info.return_type!r}, "
            "which is not a mockable type"
        )
        raise NotSupportedChainError(msg)


def _ensure_hop_setup(parent: Mock, hop: Hop, child: Mock) -> None:
    """Make the parent return the child's substitute for this hop.

    The hop setup is appended again when a later setup with the same
    pattern has taken the hop over, so the newest chain wins.
    """
    expectation = Expectation(
        hop.member, hop.matchers, owner=parent, prefix=parent.name, fluent=True
    )
    interceptor = parent.interceptor
    latest = next(
        (
            existing
            for existing in reversed(interceptor.expectations())
            if existing.same_pattern(expectation)
        ),
        None,
    )
    if latest is not None and latest.fluent:
        return
    interceptor.add_expectation(expectation.returns(child.object))


__all__ = ["inner_mock", "resolve"]

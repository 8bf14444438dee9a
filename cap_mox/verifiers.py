"""Verification helpers for :class:`~cap_mox.controller.Mock`."""

from __future__ import annotations

import logging
import typing as t
from textwrap import indent

from .errors import VerificationError, caller_site, current_site
from .expectations import Expectation
from .fluent import resolve
from .times import describe_count

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import Mock
    from .invocation import Invocation
    from .times import Times
    from .translator import CallDescriptor

logger = logging.getLogger(__name__)


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def _format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _describe_setups(setups: t.Sequence[Expectation]) -> str:
    if not setups:
        return "No setups configured."
    return "\n".join(
        f"{setup.describe()}, {describe_count(setup.call_count)}" for setup in setups
    )


def _describe_invocations(invocations: t.Sequence[Invocation]) -> str:
    return _numbered(
        [
            inv.describe() if inv.matched else f"{inv.describe()} (no matching setup)"
            for inv in invocations
        ]
    )


def _expected_call(descriptor: CallDescriptor, target: Mock | None, root: Mock) -> str:
    if target is not None:
        return f"{target.name}.{descriptor.target.describe()}"
    return f"{root.name}.{descriptor.describe()}"


def verify_expression(
    mock: Mock,
    descriptor: CallDescriptor,
    times: Times,
    message: str | None = None,
) -> None:
    """Check that calls matching *descriptor* occurred *times* times.

    Counting re-scans the invocation log with an unregistered expectation,
    so registered expectations and their counters are left untouched.
    """
    __tracebackhide__ = True
    target = resolve(mock, descriptor, create=False)
    invocations: list[Invocation] = []
    setups: list[Expectation] = []
    count = 0
    if target is not None:
        expected = Expectation(descriptor.member, descriptor.matchers)
        interceptor = target.interceptor
        count = interceptor.count_matching(expected)
        invocations = [
            inv for inv in interceptor.invocations() if inv.member == expected.member
        ]
        setups = [
            setup
            for setup in interceptor.expectations()
            if setup.member == expected.member and not setup.fluent
        ]
    expression = _expected_call(descriptor, target, mock)
    if times.is_satisfied_by(count):
        logger.debug("Verified %s: %d call(s)", expression, count)
        return

    headline = times.failure_message(expression, count)
    title = f"{message}\n{headline}" if message else headline
    msg = _format_sections(
        title,
        [
            ("Expected", f"{expression}\nexpected calls={times.describe()}"),
            ("Observed calls", f"{count} (expected {times.describe()})"),
            ("Recorded invocations", _describe_invocations(invocations)),
            ("Configured setups and invocations", _describe_setups(setups)),
        ],
    )
    raise VerificationError(msg, call_site=caller_site(), origin=current_site())


def _describe_unmet(expectation: Expectation, times: Times) -> str:
    lines = [
        expectation.describe(),
        f"expected {times.describe()}, observed "
        f"{describe_count(expectation.call_count)}",
    ]
    if expectation.fail_message:
        lines.append(expectation.fail_message)
    return "\n".join(lines)


def collect_failures(
    mock: Mock, *, only_verifiable: bool, seen: set[int] | None = None
) -> list[str]:
    """Describe unmet expectations of *mock* and every auto-mocked child."""
    if seen is None:
        seen = set()
    if id(mock) in seen:
        return []
    seen.add(id(mock))
    failures = [
        _describe_unmet(expectation, times)
        for expectation, times in mock.interceptor.unmet(
            only_verifiable=only_verifiable
        )
    ]
    for child in list(mock.inner_mocks.values()):
        failures.extend(
            collect_failures(child, only_verifiable=only_verifiable, seen=seen)
        )
    return failures


def verify_mocks(mocks: t.Iterable[Mock], *, only_verifiable: bool) -> None:
    """Raise :class:`VerificationError` listing all unmet expectations."""
    __tracebackhide__ = True
    seen: set[int] = set()
    failures: list[str] = []
    for mock in mocks:
        failures.extend(
            collect_failures(mock, only_verifiable=only_verifiable, seen=seen)
        )
    if not failures:
        return
    msg = _format_sections(
        "Mock verification failed.",
        [("The following setups were not matched", _numbered(failures))],
    )
    raise VerificationError(msg, call_site=caller_site(), origin=current_site())


__all__ = ["collect_failures", "verify_expression", "verify_mocks"]

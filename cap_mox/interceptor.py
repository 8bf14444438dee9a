"""Call interception and dispatch for one mock."""

from __future__ import annotations

import logging
import threading
import typing as t

from .errors import UnmatchedStrictCallError
from .expectations import UNSET
from .invocation import Invocation, format_access
from .members import Access
from .times import Times
from .translator import is_recording, record_call

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import Mock
    from .events import Handler
    from .expectations import Expectation
    from .invocation import Call

logger = logging.getLogger(__name__)


class Interceptor:
    """Routes calls on a substitute to its expectations.

    Expectations and invocations are append-only. The lock only guards list
    mutation and snapshots; behaviours run without holding it, so callbacks
    may call back into this or any other mock.
    """

    def __init__(self, mock: Mock) -> None:
        self.mock = mock
        self._lock = threading.Lock()
        self._expectations: list[Expectation] = []
        self._invocations: list[Invocation] = []
        self._handlers: dict[str, list[Handler]] = {}

    # ------------------------------------------------------------------
    # Registration and snapshots
    # ------------------------------------------------------------------
    def add_expectation(self, expectation: Expectation) -> None:
        """Append *expectation*; later registrations take precedence."""
        with self._lock:
            self._expectations.append(expectation)

    def expectations(self) -> list[Expectation]:
        """Return a snapshot of registered expectations in order."""
        with self._lock:
            return list(self._expectations)

    def invocations(self) -> list[Invocation]:
        """Return a snapshot of the invocation log."""
        with self._lock:
            return list(self._invocations)

    def get_invocation_list(self, event: str) -> list[Handler]:
        """Return the handlers currently subscribed to *event*, in order."""
        with self._lock:
            return list(self._handlers.get(event, ()))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def intercept(self, call: Call) -> object:
        """Dispatch *call* and return the value for the caller."""
        if is_recording():
            return record_call(self.mock, call)
        if call.access in {Access.ADD, Access.REMOVE}:
            self._update_handlers(call)
            return None

        expectation = self._match(call)
        if expectation is None:
            return self._handle_unmatched(call)
        result = expectation.execute(call)
        if result is UNSET:
            return self._default_for(call)
        return result

    def _match(self, call: Call) -> Expectation | None:
        member = call.member
        for expectation in reversed(self.expectations()):
            if expectation.member == member and expectation.matches_args(call.args):
                with self._lock:
                    expectation.call_count += 1
                    self._append(call, expectation)
                return expectation
        return None

    def _append(self, call: Call, expectation: Expectation | None) -> Invocation:
        invocation = Invocation(
            call.member, call.args, len(self._invocations), expectation
        )
        self._invocations.append(invocation)
        return invocation

    def _handle_unmatched(self, call: Call) -> object:
        with self._lock:
            self._append(call, None)
        mock = self.mock
        if mock.is_strict:
            description = f"{mock.name}.{format_access(call.member, call.args)}"
            logger.debug("Strict mock rejected %s", description)
            msg = (
                f"{description} invocation failed with mock behavior Strict.\n"
                "All invocations on the mock must have a corresponding setup."
            )
            raise UnmatchedStrictCallError(msg)
        if mock.call_base and call.base is not None:
            return call.base()
        return self._default_for(call)

    def _default_for(self, call: Call) -> object:
        if call.access is Access.SET:
            return None
        return self.mock.default_value_provider.provide_default(call.info, self.mock)

    def _update_handlers(self, call: Call) -> None:
        (handler,) = call.args
        name = call.info.name
        with self._lock:
            self._append(call, None)
            handlers = self._handlers.setdefault(name, [])
            if call.access is Access.ADD:
                handlers.append(t.cast("Handler", handler))
                return
            for index in range(len(handlers) - 1, -1, -1):
                if handlers[index] == handler:
                    del handlers[index]
                    break

    # ------------------------------------------------------------------
    # Verification support
    # ------------------------------------------------------------------
    def count_matching(self, expected: Expectation) -> int:
        """Count logged invocations accepted by *expected*."""
        return sum(1 for inv in self.invocations() if expected.matches(inv))

    def unmet(self, *, only_verifiable: bool) -> list[tuple[Expectation, Times]]:
        """Return expectations whose call counter is outside their policy."""
        failures: list[tuple[Expectation, Times]] = []
        for expectation in self.expectations():
            if expectation.fluent:
                continue
            if only_verifiable and not expectation.is_verifiable:
                continue
            times = expectation.times or Times.at_least_once()
            if not times.is_satisfied_by(expectation.call_count):
                failures.append((expectation, times))
        return failures


__all__ = ["Interceptor"]

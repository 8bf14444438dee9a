"""Exception hierarchy raised by :mod:`cap_mox`."""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as t
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent


@dc.dataclass(frozen=True, slots=True)
class CallSite:
    """Source location of a frame."""

    filename: str
    lineno: int
    function: str

    def __str__(self) -> str:
        """Return ``file:line in function``."""
        return f"{self.filename}:{self.lineno} in {self.function}"


def _is_internal(filename: str) -> bool:
    try:
        return Path(filename).resolve().parent == _PACKAGE_DIR
    except (OSError, ValueError):  # pragma: no cover - exotic frame filenames
        return False


def caller_site() -> CallSite | None:
    """Return the innermost frame outside the :mod:`cap_mox` package."""
    frame: t.Any = sys._getframe(1)  # noqa: SLF001
    while frame is not None and _is_internal(frame.f_code.co_filename):
        frame = frame.f_back
    if frame is None:
        return None
    return CallSite(frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name)


def current_site() -> CallSite:
    """Return the location of the caller of this helper."""
    frame = sys._getframe(1)  # noqa: SLF001
    return CallSite(frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name)


class CapMoxError(Exception):
    """Base class for all errors raised by cap_mox."""


class ConfigurationError(CapMoxError, ValueError):
    """A setup or verify expression targets a member that cannot be mocked."""


class UnsupportedCapabilityError(CapMoxError):
    """The capability set of a mock cannot be extended as requested."""


class UnmatchedStrictCallError(CapMoxError):
    """A strict mock received a call that no expectation matches."""


class UnassociatedEventError(CapMoxError):
    """An event was raised that the capability does not declare."""


class NotSupportedChainError(CapMoxError):
    """An auto-mocked chain passes through a member that cannot be mocked."""


class VerificationError(CapMoxError, AssertionError):
    """Observed calls do not satisfy a verification.

    ``call_site`` is the user frame that asked for the verification and
    ``origin`` the internal frame where the mismatch was detected.
    """

    def __init__(
        self,
        message: str,
        *,
        call_site: CallSite | None = None,
        origin: CallSite | None = None,
    ) -> None:
        super().__init__(message)
        self.call_site = call_site
        self.origin = origin

    def relocated(self, call_site: CallSite | None) -> VerificationError:
        """Return this error re-anchored at *call_site* with a fresh traceback."""
        self.call_site = call_site
        return self.with_traceback(None)


__all__ = [
    "CallSite",
    "CapMoxError",
    "ConfigurationError",
    "NotSupportedChainError",
    "UnassociatedEventError",
    "UnmatchedStrictCallError",
    "UnsupportedCapabilityError",
    "VerificationError",
    "caller_site",
    "current_site",
]

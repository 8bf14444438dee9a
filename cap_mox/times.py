"""Invocation count policies used by verification."""

from __future__ import annotations

import dataclasses as dc

from ._validators import validate_count, validate_range


@dc.dataclass(frozen=True, slots=True)
class Times:
    """Closed interval ``[minimum, maximum]`` of acceptable call counts.

    ``maximum`` is ``None`` for an unbounded range. Use the named
    constructors rather than building instances directly.
    """

    minimum: int
    maximum: int | None
    label: str = dc.field(default="", compare=False)

    @classmethod
    def never(cls) -> Times:
        """Require zero calls."""
        return cls(0, 0, "never")

    @classmethod
    def once(cls) -> Times:
        """Require exactly one call."""
        return cls(1, 1, "once")

    @classmethod
    def at_least_once(cls) -> Times:
        """Require one or more calls."""
        return cls(1, None, "at least once")

    @classmethod
    def at_most_once(cls) -> Times:
        """Allow zero or one call."""
        return cls(0, 1, "at most once")

    @classmethod
    def exactly(cls, count: int) -> Times:
        """Require exactly *count* calls."""
        validate_count(count)
        return cls(count, count, f"exactly {count} times")

    @classmethod
    def at_least(cls, count: int) -> Times:
        """Require *count* or more calls."""
        validate_count(count)
        return cls(count, None, f"at least {count} times")

    @classmethod
    def at_most(cls, count: int) -> Times:
        """Allow up to *count* calls."""
        validate_count(count)
        return cls(0, count, f"at most {count} times")

    @classmethod
    def between(cls, minimum: int, maximum: int, *, inclusive: bool = True) -> Times:
        """Require a count inside ``minimum..maximum``.

        With ``inclusive=False`` both bounds are excluded.
        """
        validate_range(minimum, maximum)
        if inclusive:
            return cls(
                minimum,
                maximum,
                f"between {minimum} and {maximum} times (inclusive)",
            )
        if maximum - minimum < 2:
            msg = f"exclusive range {minimum}..{maximum} admits no count"
            raise ValueError(msg)
        return cls(
            minimum + 1,
            maximum - 1,
            f"between {minimum} and {maximum} times (exclusive)",
        )

    def is_satisfied_by(self, count: int) -> bool:
        """Return ``True`` when *count* lies within the range."""
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def describe(self) -> str:
        """Return a human readable form such as ``exactly 2 times``."""
        if self.label:
            return self.label
        if self.maximum is None:
            return f"at least {self.minimum} times"
        return f"between {self.minimum} and {self.maximum} times (inclusive)"

    def failure_message(self, expression: str, count: int) -> str:
        """Return the headline used when *count* does not satisfy the range."""
        return (
            f"Expected invocation on the mock {self.describe()}, "
            f"but was {count} times: {expression}"
        )

    def __str__(self) -> str:
        """Return :meth:`describe`."""
        return self.describe()


def describe_count(count: int) -> str:
    """Render an observed count the way a matching policy would be written."""
    if count == 0:
        return "Times.never()"
    if count == 1:
        return "Times.once()"
    return f"Times.exactly({count})"


__all__ = ["Times", "describe_count"]

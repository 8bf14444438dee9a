"""Unit tests for substitute synthesis."""

from __future__ import annotations

import inspect

from cap_mox import Mock
from cap_mox.synthesizer import owning_mock
from cap_mox.unittests._capabilities import Calculator, Clock, Fetcher, Greeter


def test_substitute_type_is_named_after_capability() -> None:
    """The generated class subclasses the capability."""
    substitute = Mock(Calculator).object
    assert type(substitute).__name__ == "CalculatorSubstitute"
    assert issubclass(type(substitute), Calculator)


def test_overridden_methods_keep_metadata() -> None:
    """Intercepting methods carry the original name and docstring."""
    substitute = Mock(Calculator).object
    assert type(substitute).add.__name__ == "add"
    assert type(substitute).add.__doc__ == "Return ``a + b``."
    assert type(substitute).total.__doc__ == "Return the running total."


def test_async_substitute_methods_return_coroutines() -> None:
    """Async members stay awaitable."""
    result = Mock(Fetcher).object.fetch("u")
    assert inspect.iscoroutine(result)
    result.close()


def test_protocol_substitute_inherits_protocol() -> None:
    """Protocol substitutes inherit from the protocol class."""
    substitute = Mock(Clock).object
    assert Clock in type(substitute).__mro__
    substitute.now = 3.0
    assert substitute.now == 0.0


def test_constructor_runs_only_when_requested() -> None:
    """Constructor arguments are forwarded to ``__init__``."""
    assert "greeting" not in vars(Mock(Greeter).object)
    assert Mock(Greeter, constructor_args=("hey",)).object.greeting == "hey"


def test_owning_mock_of_plain_objects_is_none() -> None:
    """Objects not created by a mock have no owner."""
    assert owning_mock(object()) is None
    mock = Mock(Calculator)
    assert owning_mock(mock.object) is mock

"""Capability mocks built around a setup-exercise-verify lifecycle.

Create a :class:`Mock` for an abstract class or protocol, configure
expectations with :meth:`Mock.setup`, hand :attr:`Mock.object` to the code
under test, and check the observed calls with :meth:`Mock.verify`.
"""

from __future__ import annotations

from .comparators import Any, Contains, IsA, Literal, Predicate, Regex, StartsWith
from .controller import Mock, MockBehavior, MockRepository, raise_event, setup, verify
from .defaults import (
    DefaultValue,
    DefaultValueProvider,
    EmptyDefaultValueProvider,
    MockDefaultValueProvider,
)
from .errors import (
    CapMoxError,
    ConfigurationError,
    NotSupportedChainError,
    UnassociatedEventError,
    UnmatchedStrictCallError,
    UnsupportedCapabilityError,
    VerificationError,
)
from .events import Event
from .expectations import Expectation
from .invocation import Invocation
from .times import Times

__all__ = [
    "Any",
    "CapMoxError",
    "ConfigurationError",
    "Contains",
    "DefaultValue",
    "DefaultValueProvider",
    "EmptyDefaultValueProvider",
    "Event",
    "Expectation",
    "Invocation",
    "IsA",
    "Literal",
    "Mock",
    "MockBehavior",
    "MockDefaultValueProvider",
    "MockRepository",
    "NotSupportedChainError",
    "Predicate",
    "Regex",
    "StartsWith",
    "Times",
    "UnassociatedEventError",
    "UnmatchedStrictCallError",
    "UnsupportedCapabilityError",
    "VerificationError",
    "raise_event",
    "setup",
    "verify",
]

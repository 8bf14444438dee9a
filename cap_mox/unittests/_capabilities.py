"""Capability classes shared by the unit tests."""

from __future__ import annotations

import abc
import typing as t

from cap_mox import Event


class Calculator(abc.ABC):
    """Arithmetic service used by most scenarios."""

    @abc.abstractmethod
    def add(self, a: int, b: int) -> int:
        """Return ``a + b``."""

    @property
    @abc.abstractmethod
    def total(self) -> int:
        """Return the running total."""


class Disposable(abc.ABC):
    """Secondary interface added with ``Mock.as_``."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release resources."""


class Repository(abc.ABC):
    """Lookup service reached through :class:`Service`."""

    updated = Event()

    @abc.abstractmethod
    def find(self, key: str) -> str | None:
        """Return the value stored under *key*."""

    @abc.abstractmethod
    def keys(self) -> list[str]:
        """Return every stored key."""


class Connection(abc.ABC):
    """Connection handed out by :class:`Service`."""

    @abc.abstractmethod
    def send(self, payload: bytes) -> int:
        """Send *payload* and return the byte count."""

    @property
    @abc.abstractmethod
    def repository(self) -> Repository:
        """Return the repository behind this connection."""


class Service(abc.ABC):
    """Entry point of the chained scenarios."""

    @property
    @abc.abstractmethod
    def repository(self) -> Repository:
        """Return the primary repository."""

    @abc.abstractmethod
    def connect(self, url: str) -> Connection:
        """Open a connection to *url*."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Return the service name."""

    @name.setter
    @abc.abstractmethod
    def name(self, value: str) -> None: ...


class Thermostat(abc.ABC):
    """Sensor publishing temperature changes."""

    changed = Event("Raised with the new temperature.")

    @abc.abstractmethod
    def read(self) -> float:
        """Return the current temperature."""


class Clock(t.Protocol):
    """Structural capability with an attribute and a defaulted parameter."""

    now: float

    def tick(self, seconds: float = 1.0) -> float:
        """Advance the clock."""
        ...


class Fetcher(abc.ABC):
    """Asynchronous capability."""

    @abc.abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download *url*."""


class Greeter:
    """Concrete class with real implementations."""

    def __init__(self, greeting: str = "hello") -> None:
        self.greeting = greeting

    def greet(self, name: str) -> str:
        """Return a greeting for *name*."""
        return f"{self.greeting} {name}"

    @property
    def loud(self) -> bool:
        """Return whether greetings are shouted."""
        return False


class _Backend:
    """Concrete helper stored in a plain class attribute."""

    def find(self, key: str) -> str:
        return key


class Settings(abc.ABC):
    """Capability mixing members that cannot all be intercepted."""

    limit = 10
    backend = _Backend()

    @staticmethod
    def create() -> Settings:
        """Build settings."""
        raise NotImplementedError

    @t.final
    def frozen(self) -> int:
        """Return a value that subclasses may not override."""
        return 1

    @abc.abstractmethod
    def value(self, key: str) -> str:
        """Return the setting under *key*."""


class Node(abc.ABC):
    """Self-referencing capability for recursive auto-mocking."""

    @property
    @abc.abstractmethod
    def parent(self) -> Node:
        """Return the parent node."""

    @property
    @abc.abstractmethod
    def label(self) -> str:
        """Return the node label."""


class Journal(abc.ABC):
    """Capability with variadic parameters."""

    @abc.abstractmethod
    def log(self, message: str, *args: object, **fields: object) -> int:
        """Record *message* formatted with *args*; return the entry id."""

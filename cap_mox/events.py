"""Event declarations for capabilities."""

from __future__ import annotations

import typing as t

Handler = t.Callable[..., object]


class BoundEvent:
    """An :class:`Event` bound to one instance.

    Supports ``subscribe``/``unsubscribe`` as well as ``+=``/``-=``.
    """

    __slots__ = ("event", "instance")

    def __init__(self, event: Event, instance: object) -> None:
        self.event = event
        self.instance = instance

    @property
    def name(self) -> str:
        """Return the declared event name."""
        return self.event.name

    def subscribe(self, handler: Handler) -> None:
        """Append *handler* to the subscription list."""
        self._handler_list().append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        """Remove the most recent subscription of *handler*, if any."""
        handlers = self._handler_list()
        for index in range(len(handlers) - 1, -1, -1):
            if handlers[index] == handler:
                del handlers[index]
                return

    def handlers(self) -> list[Handler]:
        """Return a snapshot of the subscribed handlers in order."""
        return list(self._handler_list())

    def fire(self, *args: object) -> None:
        """Invoke every subscribed handler with *args*."""
        for handler in self.handlers():
            handler(*args)

    def _handler_list(self) -> list[Handler]:
        storage = self.instance.__dict__
        return storage.setdefault(self.event.storage_key, [])

    def __iadd__(self, handler: Handler) -> BoundEvent:
        self.subscribe(handler)
        return self

    def __isub__(self, handler: Handler) -> BoundEvent:
        self.unsubscribe(handler)
        return self

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<event {self.name} of {type(self.instance).__name__}>"


class Event:
    """Declare a subscribable event on a capability class.

    ``changed = Event()`` in a class body gives instances a ``changed``
    attribute supporting ``+=`` and ``-=`` with handler callables.
    """

    bound_type: t.ClassVar[type[BoundEvent]] = BoundEvent

    def __init__(self, doc: str | None = None) -> None:
        self.name = ""
        self.__doc__ = doc

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    @property
    def storage_key(self) -> str:
        """Return the instance ``__dict__`` key holding handlers."""
        return f"_event_{self.name}_handlers"

    @t.overload
    def __get__(self, instance: None, owner: type | None = None) -> Event: ...

    @t.overload
    def __get__(self, instance: object, owner: type | None = None) -> BoundEvent: ...

    def __get__(
        self, instance: object | None, owner: type | None = None
    ) -> Event | BoundEvent:
        if instance is None:
            return self
        return self.bound_type(self, instance)

    def __set__(self, instance: object, value: object) -> None:
        # ``obj.evt += handler`` rebinds the attribute to the same bound event.
        if isinstance(value, BoundEvent) and value.event is self:
            return
        msg = f"cannot assign to event {self.name!r}; use += or -="
        raise AttributeError(msg)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Event({self.name!r})"


__all__ = ["BoundEvent", "Event", "Handler"]

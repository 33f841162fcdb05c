"""EventBus — named listeners with synchronous, ordered, fault-isolated dispatch.

Listeners run on the caller's stack, in registration order, every time
their event is emitted. Nothing is batched or deferred, so an expensive
listener on a hot read event slows down every read.

The listener table lives on the instance; diagnostics overrides live in _anchor.
"""

from __future__ import annotations

import functools
import logging
import weakref
from typing import Any, Callable

from reactive_context import _anchor
from reactive_context.diagnostics import Diagnostics, get_diagnostics

logger = logging.getLogger("reactive_context.bus")

Listener = Callable[[Any, Any], None]
Disposer = Callable[[], None]


def _remove(table: dict[str, list[Listener]], event: str, callback: Listener) -> None:
    """Drop the first registration of callback; drop the event once it is empty."""
    callbacks = table.get(event)
    if not callbacks:
        return
    try:
        callbacks.remove(callback)
    except ValueError:
        return  # not registered
    if not callbacks:
        del table[event]
    logger.debug("Unsubscribed from event: %s", event)


class EventBus:
    """Registry of named listeners.

    Every listener is called as callback(payload, owner). owner is the
    object given to the constructor, or the bus itself.
    """

    __slots__ = ("_id", "_owner", "_listeners", "__weakref__")

    def __init__(self, owner: Any = None) -> None:
        self._id = _anchor.new_id()
        self._owner = owner
        # event -> [callback]; kept on the instance so listeners that refer
        # back to the bus are collected with it
        self._listeners: dict[str, list[Listener]] = {}
        weakref.finalize(self, _anchor.release, self._id)

    @property
    def _diagnostics(self) -> Diagnostics:
        return _anchor.diagnostics.get(self._id) or get_diagnostics()

    def on(self, event: str, callback: Listener) -> Disposer:
        """Register callback for event. Returns a function that removes it.

        Registering the same callback twice makes it run twice.

        Usage:
            unsubscribe = ctx.on("state:count:change", lambda e, ctx: print(e.new_value))
            ...
            unsubscribe()
        """
        if not callable(callback):
            raise TypeError(f"Listener for {event!r} must be callable, got {callback!r}")
        self._listeners.setdefault(event, []).append(callback)
        logger.debug("Subscribed to event: %s", event)

        def _unsubscribe() -> None:
            self.off(event, callback)

        return _unsubscribe

    def off(self, event: str, callback: Listener) -> None:
        """Remove the first registration of callback for event. No-op if absent.

        Does not remove listeners registered with once(); use the function
        once() returned.
        """
        _remove(self._listeners, event, callback)

    def once(self, event: str, callback: Listener) -> Disposer:
        """Register callback to run on the next emission of event only.

        The registered entry is a wrapper, not callback itself, so
        off(event, callback) leaves it in place. The returned function
        (or remove_all_listeners) removes it.
        """
        if not callable(callback):
            raise TypeError(f"Listener for {event!r} must be callable, got {callback!r}")

        table = self._listeners

        @functools.wraps(callback)
        def _once(payload, owner):
            _remove(table, event, _once)
            callback(payload, owner)

        return self.on(event, _once)

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Remove every listener for event, or for every event if None."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def get_registered_events(self) -> list[str]:
        """Events that currently have at least one listener."""
        return list(self._listeners)

    def get_listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def has_listeners(self, event: str) -> bool:
        return self.get_listener_count(event) > 0

    def _emit(self, event: str, payload: Any) -> None:
        """Call every listener registered for event at dispatch start.

        Listeners added while dispatching wait for the next emission;
        listeners removed while dispatching still get this one. A listener
        that raises is reported to the diagnostics sink and the rest still run.
        """
        callbacks = self._listeners.get(event)
        if not callbacks:
            return

        owner = self if self._owner is None else self._owner
        for callback in list(callbacks):
            try:
                callback(payload, owner)
            except Exception as exc:
                self._report(event, exc)

    def _report(self, event: str, exc: Exception) -> None:
        try:
            self._diagnostics.listener_error(event, exc)
        except Exception:
            logger.exception('Diagnostics sink failed while reporting an error in "%s"', event)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(events={len(self._listeners)})"

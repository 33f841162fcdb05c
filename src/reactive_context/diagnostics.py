"""Diagnostic sinks — where warnings and listener failures are reported.

Two things are reported, neither of them an event on the bus:

- reassignment: a dict/list that was reactive got overwritten, so the
  subtree under it stops emitting events.
- listener_error: a listener raised while an event was being dispatched.
  Dispatch has already moved on to the next listener.

The default sink logs both. Install a different one globally:
    reactive_context.set_diagnostics(MySink())

or per host:
    ctx = ReactiveContext(diagnostics=MySink())
"""

from __future__ import annotations

import logging

logger = logging.getLogger("reactive_context.diagnostics")


class Diagnostics:
    """Base sink. Ignores everything; subclass and override what you need."""

    def reassignment(self, namespace: str | None, key: object, old_value: object) -> None:
        pass

    def listener_error(self, event: str, exc: Exception) -> None:
        pass


class LoggingDiagnostics(Diagnostics):
    """Default sink: warnings and errors go to the standard logging module."""

    def reassignment(self, namespace, key, old_value):
        kind = "list" if isinstance(old_value, list) else "dict"
        if namespace is None:
            logger.warning(
                "Reassigning root %s '%s' removes its reactivity. "
                "Consider modifying its items instead.",
                kind, key,
            )
        else:
            logger.warning(
                "Reassigning %s '%s' at '%s' removes its reactivity. "
                "Consider modifying its items instead.",
                kind, key, namespace,
            )

    def listener_error(self, event, exc):
        logger.error('Error in listener for "%s"', event, exc_info=exc)


_default: Diagnostics = LoggingDiagnostics()


def set_diagnostics(sink: Diagnostics | None) -> None:
    """Set the process-wide default sink. None restores the logging sink.

    Hosts created with an explicit diagnostics= keep their own sink.
    """
    global _default
    _default = sink if sink is not None else LoggingDiagnostics()


def get_diagnostics() -> Diagnostics:
    return _default

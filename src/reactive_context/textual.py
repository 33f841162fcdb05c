"""Textual integration for reactive_context. Opt-in — requires textual.

Binds context events to widget updates. Effects are skipped while the app
isn't running or is paused, and NoMatches from widget queries (the widget
was removed) is swallowed. Any other error goes through the context's
normal listener-error reporting.

Pause state lives in this module, keyed by id(app), never on the app.
"""

from contextlib import contextmanager

from textual.css.query import NoMatches

# id present <-> inside a pause() block for that app
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, ctx, event, effect):
    """Run effect(payload) on every emission of event while app is safe.

    Returns the unsubscribe function from ctx.on().

    Usage:
        bind(app, ctx, "state:count:change",
             lambda e: app.query_one("#count", Label).update(str(e.new_value)))
    """

    def _guarded(payload, owner):
        if not is_safe(app):
            return
        try:
            effect(payload)
        except NoMatches:
            pass

    return ctx.on(event, _guarded)

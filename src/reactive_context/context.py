"""ReactiveContext — a host object with observable fields.

Subclass it (or use it directly) and declare fields:

    class AppContext(ReactiveContext):
        def __init__(self):
            super().__init__()
            self.declare_fields({
                "state": {"count": 0, "user": {"name": "", "authenticated": False}},
                "items": [],
            })

    ctx = AppContext()
    ctx.on("state:count:change", lambda e, ctx: print(e.old_value, "->", e.new_value))

    ctx.state.count            # emits 'state:count:read' and 'state:read'
    ctx.state.count = 5        # emits 'state:count:change' and 'state:change'
    ctx.state.user.name = "J"  # emits 'state.user:name:change' and 'state.user:change'
    ctx.items.push("x")        # emits 'items:change'
    ctx.items[0] = "y"         # emits 'items:0:change' and 'items:change'
    ctx.state.user = {}        # diagnostic, then 'state:user:change'

Reading a field itself (ctx.state) emits nothing. Assigning a field emits
a single '<field>:change'.
"""

from __future__ import annotations

import keyword
from typing import Any, Mapping

from reactive_context import _anchor
from reactive_context.bus import EventBus
from reactive_context.diagnostics import Diagnostics
from reactive_context.errors import FieldCollisionError
from reactive_context.events import ChangeEvent, change_event
from reactive_context.node import NodeFactory, is_container, unwrap, unwrap_deep


class ReactiveContext(EventBus):
    """Event bus plus named, deeply observable fields."""

    def __init__(self, *, diagnostics: Diagnostics | None = None) -> None:
        super().__init__()
        _anchor.fields[self._id] = {}
        if diagnostics is not None:
            _anchor.diagnostics[self._id] = diagnostics
        self._factory = NodeFactory(self)

    @property
    def _fields(self) -> dict[str, Any]:
        return _anchor.fields[self._id]

    def declare_fields(self, definitions: Mapping[str, Any]) -> None:
        """Install one observable field per name, holding its initial value.

        All names are checked before any is installed, so a failing call
        leaves the host unchanged.

        Raises:
            ValueError: a name is not a valid identifier.
            FieldCollisionError: a name is already a field, attribute or method.
        """
        for name in definitions:
            if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
                raise ValueError(f"Field name must be an identifier, got {name!r}")
            if self._is_taken(name):
                raise FieldCollisionError(name)

        for name, initial_value in definitions.items():
            self._fields[name] = self._factory.wrap(unwrap_deep(initial_value), name)

    def get_field_names(self) -> list[str]:
        return list(self._fields)

    def _is_taken(self, name: str) -> bool:
        return name in self._fields or name in vars(self) or hasattr(type(self), name)

    def _write_field(self, name: str, new_value: Any) -> None:
        fields = self._fields
        old_value = fields[name]

        raw_old = unwrap(old_value)
        if is_container(raw_old):
            self._diagnostics.reassignment(None, name, raw_old)
            self._factory.detach(raw_old)

        fields[name] = self._factory.wrap(unwrap_deep(new_value), name)

        self._emit(change_event(name), ChangeEvent(name, old_value, new_value))

    def __getattr__(self, name: str) -> Any:
        try:
            fields = _anchor.fields[object.__getattribute__(self, "_id")]
            return fields[name]
        except (AttributeError, KeyError):
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        fields = _anchor.fields.get(getattr(self, "_id", None))
        if fields is not None and name in fields:
            self._write_field(name, value)
        else:
            super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name in self._fields:
            raise AttributeError(f"Field '{name}' cannot be deleted")
        super().__delattr__(name)

    def __dir__(self):
        return [*super().__dir__(), *self._fields]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fields={self.get_field_names()!r})"

"""Reactive nodes — dicts and lists whose reads and writes become events.

A node wraps exactly one raw dict or list and turns access into bus
emissions named after its namespace (the dotted path from the field):

    ctx.state.count          # 'state:count:read', then 'state:read'
    ctx.state.count = 5      # 'state:count:change', then 'state:change'
    ctx.items.push("x")      # 'items:change' with a MutationEvent

Nested dicts/lists are wrapped lazily on first traversal and cached per
host, so the same raw container always comes back as the same node.
Primitives are never wrapped.

Interception only covers access through the node. Code holding the raw
container (node.target, or a reference taken before declaration) reads
and writes it without any events.
"""

from __future__ import annotations

import functools
import weakref
from typing import TYPE_CHECKING, Any, Iterator

from reactive_context import _anchor
from reactive_context.events import ChangeEvent, MutationEvent, ReadEvent, change_event, read_event

if TYPE_CHECKING:
    from reactive_context.bus import EventBus

# Python spellings of the nine in-place array mutators.
MUTATING_METHODS = frozenset({
    "push", "pop", "shift", "unshift", "splice",
    "sort", "reverse", "fill", "copy_within",
})


def is_container(value: object) -> bool:
    return isinstance(value, (dict, list))


def unwrap(value: Any) -> Any:
    """The raw container behind a node, or value itself."""
    if isinstance(value, ReactiveNode):
        return value._target
    return value


def unwrap_deep(value: Any) -> Any:
    """unwrap(value), with nodes nested anywhere below it replaced by their targets.

    Containers are rewritten in place, so the stored data never holds a node.
    """
    value = unwrap(value)
    seen: set[int] = set()
    stack = [value]
    while stack:
        item = stack.pop()
        if not is_container(item) or id(item) in seen:
            continue
        seen.add(id(item))
        slots = item.items() if isinstance(item, dict) else enumerate(item)
        for key, child in list(slots):
            if isinstance(child, ReactiveNode):
                child = child._target
                item[key] = child
            stack.append(child)
    return value


class NodeFactory:
    """Creates and caches the nodes of one host.

    The cache is a WeakValueDictionary keyed by id(target): it never keeps
    a node alive. A live node holds its target, so the id can't be reused
    while the entry exists. The factory only holds a weak reference to its
    host, so nodes kept around after the host is gone go quiet.
    """

    __slots__ = ("_host_id", "_host_ref")

    def __init__(self, host: EventBus) -> None:
        self._host_id = host._id
        self._host_ref = weakref.ref(host)
        _anchor.nodes[self._host_id] = weakref.WeakValueDictionary()

    @property
    def _cache(self) -> weakref.WeakValueDictionary | None:
        return _anchor.nodes.get(self._host_id)

    def wrap(self, target: Any, namespace: str) -> Any:
        """Return the node for target, creating it on first use.

        Anything that is not a dict or list is returned unchanged.
        """
        if not is_container(target):
            return target

        cache = self._cache
        if cache is None:
            # Host collected; nothing left to notify.
            return target

        node = cache.get(id(target))
        if node is not None and node._target is target:
            return node

        node = _node_class(target)(target, namespace, self)
        cache[id(target)] = node
        return node

    def detached(self, target: Any, namespace: str) -> Any:
        """An uncached node that never emits. Used below a detached node."""
        if not is_container(target):
            return target
        return _node_class(target)(target, namespace, self, detached=True)

    def detach(self, value: Any) -> None:
        """Detach the cached nodes for value and every container below it."""
        cache = self._cache
        if cache is None:
            return

        seen: set[int] = set()
        stack = [unwrap(value)]
        while stack:
            item = stack.pop()
            if not is_container(item) or id(item) in seen:
                continue
            seen.add(id(item))
            node = cache.get(id(item))
            if node is not None and node._target is item:
                del cache[id(item)]
                node._detached = True
            stack.extend(item.values() if isinstance(item, dict) else item)

    def emit(self, event: str, payload: Any) -> None:
        host = self._host_ref()
        if host is not None:
            host._emit(event, payload)

    def reassigned(self, namespace: str, key: object, old_value: Any) -> None:
        host = self._host_ref()
        if host is not None:
            host._diagnostics.reassignment(namespace, key, old_value)


class ReactiveNode:
    """Base for ReactiveDict and ReactiveList.

    get(key)/set(key, value) are the interception points; the item and
    attribute sugar of the subclasses goes through them.
    """

    __slots__ = ("_target", "_namespace", "_factory", "_detached", "__weakref__")

    def __init__(self, target, namespace: str, factory: NodeFactory, *, detached: bool = False) -> None:
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_namespace", namespace)
        object.__setattr__(self, "_factory", factory)
        object.__setattr__(self, "_detached", detached)

    @property
    def target(self):
        """The raw container. Access through it is not observed."""
        return self._target

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def detached(self) -> bool:
        """True once the container was overwritten; a detached node never emits."""
        return self._detached

    # --- subclass hooks ---

    def _observable_key(self, key):
        """key as reported in events, or None if access to it is not observed."""
        raise NotImplementedError

    def _peek(self, key, default):
        raise NotImplementedError

    def _assign(self, key, value) -> None:
        raise NotImplementedError

    # --- interception ---

    def get(self, key, default=None) -> Any:
        """Read key. Containers come back wrapped; primitives emit read events."""
        value = self._peek(key, default)
        prop = self._observable_key(key)
        if prop is None:
            return value

        if is_container(value):
            namespace = f"{self._namespace}.{prop}"
            if self._detached:
                return self._factory.detached(value, namespace)
            return self._factory.wrap(value, namespace)

        if not self._detached and not str(prop).startswith("_"):
            self._factory.emit(read_event(self._namespace, prop), ReadEvent(prop, value))
            self._factory.emit(read_event(self._namespace), ReadEvent(prop, value))
        return value

    def set(self, key, value) -> None:
        """Write key. Emits the specific change event, then the generic one.

        Overwriting a dict/list reports a reassignment diagnostic and
        detaches the nodes of the old subtree.
        """
        prop = self._observable_key(key)
        if prop is None or self._detached:
            self._assign(key, unwrap_deep(value))
            return

        old_value = self._peek(key, None)
        if is_container(old_value):
            self._factory.reassigned(self._namespace, prop, old_value)
            self._factory.detach(old_value)

        self._assign(key, unwrap_deep(value))

        self._factory.emit(change_event(self._namespace, prop), ChangeEvent(prop, old_value, value))
        self._factory.emit(change_event(self._namespace), ChangeEvent(prop, old_value, value))

    # --- pass-through ---

    def __getitem__(self, key):
        return self.get(key)

    def __setitem__(self, key, value) -> None:
        self.set(key, value)

    def __delitem__(self, key) -> None:
        del self._target[key]

    def __len__(self) -> int:
        return len(self._target)

    def __contains__(self, item) -> bool:
        return unwrap(item) in self._target

    def __eq__(self, other) -> bool:
        return self._target == unwrap(other)

    __hash__ = None

    def __repr__(self) -> str:
        state = " detached" if self._detached else ""
        return f"{type(self).__name__}({self._namespace!r}{state}, {self._target!r})"


class ReactiveDict(ReactiveNode):
    """Node over a dict. String keys are observable.

    Public keys are also reachable as attributes (node.count) unless they
    collide with a node method or property; use node["get"] for those.
    Missing keys read as None.
    """

    __slots__ = ()

    def _observable_key(self, key):
        return key if isinstance(key, str) else None

    def _peek(self, key, default):
        return self._target.get(key, default)

    def _assign(self, key, value):
        self._target[key] = value

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __setattr__(self, name: str, value) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __iter__(self) -> Iterator:
        return iter(self._target)

    def keys(self):
        return self._target.keys()

    def values(self) -> Iterator:
        for key in list(self._target):
            yield self.get(key)

    def items(self) -> Iterator:
        for key in list(self._target):
            yield key, self.get(key)


def _clamp(index: int, length: int) -> int:
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def _mutator(fn):
    """Run fn against the raw list, then emit one <ns>:change MutationEvent."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        result = fn(self, *args, **kwargs)
        if not self._detached:
            self._factory.emit(
                change_event(self._namespace),
                MutationEvent(fn.__name__, args, len(self._target), kwargs=kwargs),
            )
        return result

    return wrapper


class ReactiveList(ReactiveNode):
    """Node over a list. Integer indices are observable.

    Negative indices are normalized, so ctx.items[-1] on a three item
    list emits 'items:2:read'. Slices read and write the raw list without
    events. Reading past the end yields None; writing past it raises
    IndexError.
    """

    __slots__ = ()

    def _observable_key(self, key):
        if isinstance(key, bool) or not isinstance(key, int):
            return None
        index = key + len(self._target) if key < 0 else key
        return index if index >= 0 else None

    def _peek(self, key, default):
        if isinstance(key, slice):
            return self._target[key]
        try:
            return self._target[key]
        except IndexError:
            return default

    def _assign(self, key, value):
        self._target[key] = value

    def __iter__(self) -> Iterator:
        for index in range(len(self._target)):
            yield self.get(index)

    def index(self, value, *args) -> int:
        return self._target.index(unwrap(value), *args)

    def count(self, value) -> int:
        return self._target.count(unwrap(value))

    # --- mutators ---

    @_mutator
    def push(self, *items) -> int:
        self._target.extend(unwrap_deep(item) for item in items)
        return len(self._target)

    @_mutator
    def pop(self):
        return self._target.pop() if self._target else None

    @_mutator
    def shift(self):
        return self._target.pop(0) if self._target else None

    @_mutator
    def unshift(self, *items) -> int:
        self._target[0:0] = [unwrap_deep(item) for item in items]
        return len(self._target)

    @_mutator
    def splice(self, start: int, delete_count: int | None = None, *items) -> list:
        """Remove delete_count items at start, insert items there. Returns the removed items."""
        length = len(self._target)
        start = _clamp(start, length)
        if delete_count is None:
            delete_count = length - start
        else:
            delete_count = min(max(delete_count, 0), length - start)
        removed = self._target[start:start + delete_count]
        self._target[start:start + delete_count] = [unwrap_deep(item) for item in items]
        return removed

    @_mutator
    def sort(self, *, key=None, reverse: bool = False) -> None:
        self._target.sort(key=key, reverse=reverse)

    @_mutator
    def reverse(self) -> None:
        self._target.reverse()

    @_mutator
    def fill(self, value, start: int = 0, end: int | None = None) -> None:
        length = len(self._target)
        start = _clamp(start, length)
        end = length if end is None else _clamp(end, length)
        value = unwrap_deep(value)
        for index in range(start, end):
            self._target[index] = value

    @_mutator
    def copy_within(self, target: int, start: int = 0, end: int | None = None) -> None:
        """Copy target[start:end] over the items beginning at index target."""
        length = len(self._target)
        target = _clamp(target, length)
        start = _clamp(start, length)
        end = length if end is None else _clamp(end, length)
        count = min(end - start, length - target)
        if count > 0:
            self._target[target:target + count] = self._target[start:start + count]


def _node_class(target) -> type[ReactiveNode]:
    return ReactiveList if isinstance(target, list) else ReactiveDict

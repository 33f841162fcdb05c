"""Data anchor — plain Python structures that hold all per-host state.

Field storage, node caches and diagnostics overrides live here, keyed by the
owning host's id. Hosts and buses are thin handles holding an _id, so no
code outside the package has a mutation path into this state.
"""

import itertools
import weakref

# Host state
fields: dict[int, dict[str, object]] = {}  # host_id -> field name -> value
nodes: dict[int, weakref.WeakValueDictionary] = {}  # host_id -> id(target) -> node
diagnostics: dict[int, object] = {}  # host_id -> sink override

# ID generation; itertools.count is atomic under the GIL
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def release(owner_id: int) -> None:
    """Drop every entry for owner_id. Registered as a weakref.finalize hook."""
    fields.pop(owner_id, None)
    nodes.pop(owner_id, None)
    diagnostics.pop(owner_id, None)

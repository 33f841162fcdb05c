"""reactive_context: deeply observable state with hierarchical events."""

from importlib.metadata import version as _version

__version__ = _version("reactive-context")

from reactive_context.bus import EventBus
from reactive_context.context import ReactiveContext
from reactive_context.diagnostics import Diagnostics, LoggingDiagnostics, get_diagnostics, set_diagnostics
from reactive_context.errors import FieldCollisionError, ReactiveContextError
from reactive_context.events import ChangeEvent, MutationEvent, ReadEvent, change_event, read_event
from reactive_context.node import MUTATING_METHODS, NodeFactory, ReactiveDict, ReactiveList, ReactiveNode, unwrap, unwrap_deep
# textual is not auto-imported; opt-in only

__all__ = [
    "ReactiveContext",
    "EventBus",
    "ReactiveNode",
    "ReactiveDict",
    "ReactiveList",
    "NodeFactory",
    "MUTATING_METHODS",
    "unwrap",
    "unwrap_deep",
    "ReadEvent",
    "ChangeEvent",
    "MutationEvent",
    "read_event",
    "change_event",
    "Diagnostics",
    "LoggingDiagnostics",
    "set_diagnostics",
    "get_diagnostics",
    "ReactiveContextError",
    "FieldCollisionError",
]
